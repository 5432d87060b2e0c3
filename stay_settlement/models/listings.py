from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from stay_settlement.config import SCHEMA
from stay_settlement.models.base import Base

_PREFIX = f"{SCHEMA}." if SCHEMA else ""


class Listing(Base):
    """
    ORM model for a bookable property.

    Only the columns the settlement pipeline reads are mapped here; the
    listing's descriptive content is owned by the catalogue side of the portal.
    pms_listing_id links the listing to its apartment in the owner's PMS.
    """

    __tablename__ = "listings"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(64), primary_key=True)
    owner_account_id = Column(
        String(64),
        ForeignKey(f"{_PREFIX}owner_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    pms_listing_id = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, server_default="eur")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
