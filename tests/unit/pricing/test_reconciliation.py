"""Unit tests for pricing period reconciliation."""

from dataclasses import replace
from datetime import date
from itertools import count

import pytest

from stay_settlement.errors import ValidationError
from stay_settlement.pricing.reconciliation import (
    PricingPeriodData,
    reconcile_pricing_periods,
)

LISTING = "villa-1"


def period(start: str, end: str, price: int = 10000, id=None, listing=LISTING, label=None):
    return PricingPeriodData(
        listing_id=listing,
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        price=price,
        label=label,
        id=id,
    )


def apply_plan(existing, plan, ids):
    """Apply a plan to an in-memory list the way the writer applies it to the table."""
    updated = {p.id: p for p in plan.to_update}
    result = [updated.get(p.id, p) for p in existing if p.id not in plan.to_delete]
    for added in plan.to_add:
        result.append(replace(added, id=f"p{next(ids)}"))
    return result


def assert_no_overlaps(periods):
    ordered = sorted(periods, key=lambda p: p.start_date)
    for left, right in zip(ordered, ordered[1:]):
        assert left.end_date < right.start_date, (left, right)


@pytest.mark.unit
def test_no_overlap_leaves_existing_untouched() -> None:
    existing = [period("2025-07-01", "2025-07-05", id="a")]

    plan = reconcile_pricing_periods(period("2025-07-10", "2025-07-12", 20000), existing)

    assert [(p.start_date, p.end_date) for p in plan.to_add] == [
        (date(2025, 7, 10), date(2025, 7, 12))
    ]
    assert plan.to_update == []
    assert plan.to_delete == []


@pytest.mark.unit
def test_new_period_containing_existing_deletes_it() -> None:
    existing = [period("2025-07-03", "2025-07-05", id="a")]

    plan = reconcile_pricing_periods(period("2025-07-01", "2025-07-10", 20000), existing)

    assert plan.to_delete == ["a"]
    assert plan.to_update == []
    assert len(plan.to_add) == 1


@pytest.mark.unit
def test_identical_range_replaces_existing() -> None:
    existing = [period("2025-07-01", "2025-07-05", id="a")]

    plan = reconcile_pricing_periods(period("2025-07-01", "2025-07-05", 30000), existing)

    assert plan.to_delete == ["a"]


@pytest.mark.unit
def test_existing_strictly_containing_new_is_split() -> None:
    existing = [period("2025-07-01", "2025-07-31", 10000, id="a", label="July")]

    plan = reconcile_pricing_periods(period("2025-07-10", "2025-07-15", 25000), existing)

    assert plan.to_delete == []
    assert len(plan.to_update) == 1
    left = plan.to_update[0]
    assert left.id == "a"
    assert (left.start_date, left.end_date) == (date(2025, 7, 1), date(2025, 7, 9))

    assert len(plan.to_add) == 2
    new, right = plan.to_add
    assert new.price == 25000
    assert right.id is None
    assert (right.start_date, right.end_date) == (date(2025, 7, 16), date(2025, 7, 31))
    assert right.price == 10000
    assert right.label == "July"


@pytest.mark.unit
def test_left_overlap_trims_existing_end() -> None:
    existing = [period("2025-07-01", "2025-07-10", id="a")]

    plan = reconcile_pricing_periods(period("2025-07-05", "2025-07-20"), existing)

    assert plan.to_update[0].end_date == date(2025, 7, 4)
    assert plan.to_update[0].start_date == date(2025, 7, 1)


@pytest.mark.unit
def test_right_overlap_trims_existing_start() -> None:
    existing = [period("2025-07-10", "2025-07-20", id="a")]

    plan = reconcile_pricing_periods(period("2025-07-01", "2025-07-12"), existing)

    assert plan.to_update[0].start_date == date(2025, 7, 13)
    assert plan.to_update[0].end_date == date(2025, 7, 20)


@pytest.mark.unit
def test_single_day_overlap_at_boundary() -> None:
    existing = [period("2025-07-01", "2025-07-05", id="a")]

    plan = reconcile_pricing_periods(period("2025-07-05", "2025-07-08"), existing)

    assert plan.to_update[0].end_date == date(2025, 7, 4)


@pytest.mark.unit
def test_other_listings_are_ignored() -> None:
    existing = [period("2025-07-01", "2025-07-31", id="b", listing="chalet-2")]

    plan = reconcile_pricing_periods(period("2025-07-10", "2025-07-15"), existing)

    assert plan.to_update == []
    assert plan.to_delete == []
    assert len(plan.to_add) == 1


@pytest.mark.unit
def test_new_period_id_is_ignored() -> None:
    plan = reconcile_pricing_periods(period("2025-07-01", "2025-07-02", id="stale"), [])

    assert plan.to_add[0].id is None


@pytest.mark.unit
def test_reversed_period_rejected() -> None:
    with pytest.raises(ValidationError):
        reconcile_pricing_periods(period("2025-07-10", "2025-07-01"), [])


@pytest.mark.unit
def test_sequence_of_inserts_never_overlaps() -> None:
    ids = count(1)
    periods: list[PricingPeriodData] = []
    inserts = [
        ("2025-07-01", "2025-07-31"),
        ("2025-07-10", "2025-07-15"),
        ("2025-07-14", "2025-07-20"),
        ("2025-06-25", "2025-07-02"),
        ("2025-07-12", "2025-07-12"),
        ("2025-07-01", "2025-08-10"),
        ("2025-08-05", "2025-08-06"),
    ]

    for start, end in inserts:
        plan = reconcile_pricing_periods(period(start, end), periods)
        periods = apply_plan(periods, plan, ids)
        assert_no_overlaps(periods)

    covered = {p.start_date for p in periods}
    assert date(2025, 6, 25) in covered
