from uuid import uuid4

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from stay_settlement.models.pricing_periods import PricingPeriod
from stay_settlement.pricing.reconciliation import PricingPeriodData, ReconciliationPlan
from stay_settlement.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def apply_reconciliation_plan(conn: Connection, plan: ReconciliationPlan) -> list[str]:
    """
    Write a reconciliation plan: deletes first, then trims, then inserts.

    Must run inside a single transaction (engine.begin()) so no reader ever
    observes a half-applied split.

    Args:
        conn (Connection): SQLAlchemy DB connection inside a transaction.
        plan (ReconciliationPlan): Output of reconcile_pricing_periods.

    Returns:
        list[str]: IDs of the inserted periods, in plan.to_add order.
    """
    now = utc_now()

    if plan.to_delete:
        conn.execute(delete(PricingPeriod).where(PricingPeriod.id.in_(plan.to_delete)))

    for period in plan.to_update:
        conn.execute(
            update(PricingPeriod)
            .where(PricingPeriod.id == period.id)
            .values(start_date=period.start_date, end_date=period.end_date, updated_at=now)
        )

    new_ids: list[str] = []
    for period in plan.to_add:
        period_id = uuid4().hex
        conn.execute(
            insert(PricingPeriod).values(
                **_row(period), id=period_id, created_at=now, updated_at=now
            )
        )
        new_ids.append(period_id)

    logger.info(
        "pricing_plan_applied",
        added=len(plan.to_add),
        updated=len(plan.to_update),
        deleted=len(plan.to_delete),
    )
    return new_ids


def delete_pricing_period(conn: Connection, period_id: str) -> bool:
    """
    Permanently delete a pricing period.

    Returns:
        bool: True if a row was deleted.
    """
    result = conn.execute(delete(PricingPeriod).where(PricingPeriod.id == period_id))
    return result.rowcount > 0


def _row(period: PricingPeriodData) -> dict:
    return {
        "listing_id": period.listing_id,
        "start_date": period.start_date,
        "end_date": period.end_date,
        "price": period.price,
        "percentage_adjustment": period.percentage_adjustment,
        "label": period.label,
    }
