from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from stay_settlement.config import SCHEMA
from stay_settlement.models.base import Base

_PREFIX = f"{SCHEMA}." if SCHEMA else ""


class PricingPeriod(Base):
    """
    ORM model for a manual price override over an inclusive date range.

    Either price (absolute nightly price in minor units) or
    percentage_adjustment (relative to the PMS rate) is set. Periods of one
    listing never overlap; inserts go through the reconciler to keep it so.

    The rows are the owner's calendar configuration: they are served to the
    owner calendar through GET /listings/{id}/pricing-periods and mirrored
    into the PMS rate plan by the owner. Quotes and checkout never read them;
    the PMS rates and the PMS's own quote are the only price sources there.
    """

    __tablename__ = "pricing_periods"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(32), primary_key=True)
    listing_id = Column(
        String(64),
        ForeignKey(f"{_PREFIX}listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    price = Column(Integer, nullable=True)
    percentage_adjustment = Column(Integer, nullable=True)
    label = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
