# models/bookings.py

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from stay_settlement.config import SCHEMA
from stay_settlement.models.base import Base

_PREFIX = f"{SCHEMA}." if SCHEMA else ""

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")


class Booking(Base):
    """
    ORM model for a guest's stay booking.

    A row is created in status "pending" when a checkout session is opened,
    keyed by the payment processor's session id. The settlement webhook moves
    it to "confirmed" exactly once and records the payment intent; the PMS
    reservation id is filled in afterwards and may stay null if the PMS write
    failed. Bookings are never deleted, only cancelled.
    """

    __tablename__ = "bookings"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(32), primary_key=True)
    listing_id = Column(
        String(64),
        ForeignKey(f"{_PREFIX}listings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    guest_user_id = Column(String(64), nullable=False, index=True)
    check_in = Column(String(10), nullable=False)  # YYYY-MM-DD
    check_out = Column(String(10), nullable=False)  # YYYY-MM-DD, exclusive
    nights = Column(Integer, nullable=False)
    guests = Column(Integer, nullable=False)
    adults = Column(Integer, nullable=True)
    children = Column(Integer, nullable=True)
    total_price = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=False)
    status = Column(String(16), nullable=False, server_default="pending", index=True)
    guest_note = Column(Text, nullable=True)
    guest_first_name = Column(String, nullable=True)
    guest_last_name = Column(String, nullable=True)
    guest_email = Column(String, nullable=True)
    guest_phone = Column(String, nullable=True)
    payment_session_id = Column(String, nullable=False, unique=True)
    payment_intent_id = Column(String, nullable=True, index=True)
    external_reservation_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
