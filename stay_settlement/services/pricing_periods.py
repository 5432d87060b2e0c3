"""Manual price-override periods for a listing."""

from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stay_settlement.db.readers.listings import get_listing_with_credentials
from stay_settlement.db.readers.pricing_periods import get_pricing_period, list_pricing_periods
from stay_settlement.db.writers.pricing_periods import (
    apply_reconciliation_plan,
    delete_pricing_period,
)
from stay_settlement.errors import Forbidden, NotFound
from stay_settlement.pricing.reconciliation import (
    PricingPeriodData,
    ReconciliationPlan,
    reconcile_pricing_periods,
)
from stay_settlement.services.cancellation import Caller

logger = structlog.get_logger(__name__)


def _require_listing_owner(conn, listing_id: str, caller: Optional[Caller]) -> None:
    listing = get_listing_with_credentials(conn, listing_id)
    if listing is None:
        raise NotFound("Listing not found", {"listing_id": listing_id})
    if caller is not None and not caller.is_admin and listing["owner_account_id"] != caller.user_id:
        raise Forbidden("Not allowed to manage this listing", {"listing_id": listing_id})


def get_listing_periods(engine: Engine, listing_id: str) -> list[PricingPeriodData]:
    with engine.connect() as conn:
        _require_listing_owner(conn, listing_id, None)
        return list_pricing_periods(conn, listing_id)


def apply_pricing_period(
    engine: Engine,
    new_period: PricingPeriodData,
    caller: Optional[Caller] = None,
) -> tuple[ReconciliationPlan, list[PricingPeriodData]]:
    """
    Insert a pricing period, trimming or splitting any period it overlaps.

    The snapshot read, the plan and its application all happen in one
    transaction.

    Args:
        engine (Engine): Database engine.
        new_period (PricingPeriodData): Period to insert.
        caller (Caller, optional): When given, must own the listing or be an
            administrator.

    Returns:
        tuple: The applied plan and the listing's periods afterwards.

    Raises:
        NotFound: Unknown listing.
        Forbidden: Caller may not manage the listing.
        ValidationError: The period ends before it starts.
    """
    with engine.begin() as conn:
        _require_listing_owner(conn, new_period.listing_id, caller)
        existing = list_pricing_periods(conn, new_period.listing_id)
        plan = reconcile_pricing_periods(new_period, existing)
        apply_reconciliation_plan(conn, plan)
        periods = list_pricing_periods(conn, new_period.listing_id)

    logger.info(
        "pricing_period_applied",
        listing_id=new_period.listing_id,
        start_date=str(new_period.start_date),
        end_date=str(new_period.end_date),
    )
    return plan, periods


def remove_pricing_period(engine: Engine, period_id: str, caller: Optional[Caller] = None) -> None:
    """
    Delete one pricing period.

    Raises:
        NotFound: Unknown period.
        Forbidden: Caller may not manage the period's listing.
    """
    with engine.begin() as conn:
        period = get_pricing_period(conn, period_id)
        if period is None:
            raise NotFound("Pricing period not found", {"period_id": period_id})
        _require_listing_owner(conn, period.listing_id, caller)
        delete_pricing_period(conn, period_id)

    logger.info("pricing_period_deleted", period_id=period_id, listing_id=period.listing_id)
