"""SQLAlchemy model for listing owners and their PMS / payout credentials."""

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, true
from sqlalchemy.sql import func

from stay_settlement.config import SCHEMA
from stay_settlement.models.base import Base


class OwnerAccount(Base):
    """
    ORM model for an account that owns listings.

    Holds the credentials the settlement pipeline needs to act on the owner's
    behalf: the PMS API key and customer id, and the payment processor's
    connected account that receives payouts, and an optional per-owner
    platform fee percentage.
    """

    __tablename__ = "owner_accounts"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(64), primary_key=True)
    pms_api_key = Column(String, nullable=True)
    pms_customer_id = Column(Integer, nullable=True)
    payment_account_id = Column(String, nullable=True)  # connected payout account
    application_fee_percent = Column(Numeric(5, 2), nullable=True)  # overrides PLATFORM_FEE_PERCENT
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
