from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from stay_settlement.models.pricing_periods import PricingPeriod
from stay_settlement.pricing.reconciliation import PricingPeriodData


def _to_data(row: dict) -> PricingPeriodData:
    return PricingPeriodData(
        id=row["id"],
        listing_id=row["listing_id"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        price=row["price"],
        percentage_adjustment=row["percentage_adjustment"],
        label=row["label"],
    )


def list_pricing_periods(conn: Connection, listing_id: str) -> list[PricingPeriodData]:
    """
    Fetch all pricing periods of a listing, ordered by start date.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        listing_id (str): Portal listing ID.

    Returns:
        list[PricingPeriodData]: The listing's periods.
    """
    rows = conn.execute(
        select(PricingPeriod.__table__)
        .where(PricingPeriod.listing_id == listing_id)
        .order_by(PricingPeriod.start_date)
    ).mappings()
    return [_to_data(dict(row)) for row in rows]


def get_pricing_period(conn: Connection, period_id: str) -> Optional[PricingPeriodData]:
    row = (
        conn.execute(select(PricingPeriod.__table__).where(PricingPeriod.id == period_id))
        .mappings()
        .fetchone()
    )
    return _to_data(dict(row)) if row else None
