"""
Reconciliation of manual price-override periods.

A listing's pricing periods must never overlap. When a new period is
inserted it always wins: every existing period it intersects is deleted,
trimmed or split around it. The reconciler only computes a plan; applying it
is the caller's job (see services/pricing_periods.py), which keeps this
module free of I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Iterable, Optional

from stay_settlement.errors import ValidationError
from stay_settlement.utils.datetime import parse_iso_date

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class PricingPeriodData:
    """A date-range price override; start_date and end_date are both inclusive."""

    listing_id: str
    start_date: date
    end_date: date
    price: Optional[int] = None  # minor units
    percentage_adjustment: Optional[int] = None
    label: Optional[str] = None
    id: Optional[str] = None

    def normalized(self) -> "PricingPeriodData":
        """Same period with both ends coerced to calendar days."""
        return replace(
            self,
            start_date=parse_iso_date(self.start_date),
            end_date=parse_iso_date(self.end_date),
        )

    def overlaps(self, other: "PricingPeriodData") -> bool:
        return not (self.end_date < other.start_date or self.start_date > other.end_date)


@dataclass
class ReconciliationPlan:
    to_add: list[PricingPeriodData] = field(default_factory=list)
    to_update: list[PricingPeriodData] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)


def reconcile_pricing_periods(
    new_period: PricingPeriodData,
    existing_periods: Iterable[PricingPeriodData],
) -> ReconciliationPlan:
    """
    Plan the changes needed to insert new_period without overlaps.

    For each existing period E of the same listing, compared to the new
    period N at day granularity:

    - no overlap: untouched
    - N covers E entirely: E is deleted
    - E strictly contains N: E keeps its left part [E.start, N.start-1] and a
      copy of E is added for the right part [N.end+1, E.end]
    - E starts before N and ends inside it: E ends at N.start-1
    - E starts inside N and ends after it: E starts at N.end+1

    Args:
        new_period: Period being inserted (its id is ignored)
        existing_periods: Current periods; other listings' periods are skipped

    Returns:
        ReconciliationPlan whose to_add starts with the new period itself

    Raises:
        ValidationError: If the new period ends before it starts
    """
    new = replace(new_period.normalized(), id=None)
    if new.end_date < new.start_date:
        raise ValidationError("end_date must not be before start_date")

    plan = ReconciliationPlan(to_add=[new])

    for raw_existing in existing_periods:
        existing = raw_existing.normalized()
        if existing.listing_id != new.listing_id or existing.id is None:
            continue

        if not existing.overlaps(new):
            continue

        if new.start_date <= existing.start_date and new.end_date >= existing.end_date:
            plan.to_delete.append(existing.id)
            continue

        if existing.start_date < new.start_date and existing.end_date > new.end_date:
            plan.to_update.append(replace(existing, end_date=new.start_date - ONE_DAY))
            plan.to_add.append(
                replace(existing, id=None, start_date=new.end_date + ONE_DAY)
            )
            continue

        if existing.start_date < new.start_date:
            plan.to_update.append(replace(existing, end_date=new.start_date - ONE_DAY))
            continue

        plan.to_update.append(replace(existing, start_date=new.end_date + ONE_DAY))

    return plan
