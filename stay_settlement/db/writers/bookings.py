from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from stay_settlement.models.bookings import Booking
from stay_settlement.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_pending_booking(conn: Connection, data: dict[str, Any]) -> str:
    """
    Insert a pending booking placeholder for an opened checkout session.

    Args:
        conn (Connection): SQLAlchemy DB connection (inside a transaction).
        data (dict): Booking columns; must include payment_session_id.

    Returns:
        str: The new booking ID.
    """
    now = utc_now()
    booking_id = uuid4().hex

    conn.execute(
        insert(Booking).values(
            **data,
            id=booking_id,
            status="pending",
            created_at=now,
            updated_at=now,
        )
    )

    logger.info(
        "pending_booking_inserted",
        booking_id=booking_id,
        payment_session_id=data.get("payment_session_id"),
    )
    return booking_id


def confirm_booking(
    conn: Connection,
    payment_session_id: str,
    payment_intent_id: str,
    paid_at: Optional[datetime] = None,
) -> bool:
    """
    Move a booking from pending to confirmed, at most once.

    The status check and the write are one conditional UPDATE, so two
    concurrent deliveries of the same payment event cannot both win.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        payment_session_id (str): Checkout session ID the booking is keyed by.
        payment_intent_id (str): Captured payment intent to record.
        paid_at (datetime, optional): Payment time; defaults to now.

    Returns:
        bool: True if this call performed the transition, False if the booking
        was not pending (already confirmed, cancelled, or missing).

    Raises:
        ValueError: If payment_intent_id is empty.
    """
    if not payment_intent_id:
        raise ValueError("confirm_booking requires a payment_intent_id")

    now = utc_now()
    stmt = (
        update(Booking)
        .where(Booking.payment_session_id == payment_session_id)
        .where(Booking.status == "pending")
        .values(
            status="confirmed",
            payment_intent_id=payment_intent_id,
            paid_at=paid_at or now,
            updated_at=now,
        )
    )
    result = conn.execute(stmt)
    return result.rowcount == 1


def set_external_reservation_id(
    conn: Connection, booking_id: str, external_reservation_id: str
) -> None:
    """
    Record the PMS reservation ID for a booking.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (str): Booking ID.
        external_reservation_id (str): Reservation ID returned by the PMS.
    """
    conn.execute(
        update(Booking)
        .where(Booking.id == booking_id)
        .values(external_reservation_id=external_reservation_id, updated_at=utc_now())
    )


def cancel_booking(conn: Connection, booking_id: str) -> bool:
    """
    Move a confirmed booking to cancelled.

    Returns:
        bool: True if the booking was confirmed and is now cancelled.
    """
    result = conn.execute(
        update(Booking)
        .where(Booking.id == booking_id)
        .where(Booking.status == "confirmed")
        .values(status="cancelled", updated_at=utc_now())
    )
    return result.rowcount == 1


def cancel_booking_by_payment_intent(conn: Connection, payment_intent_id: str) -> bool:
    """
    Cancel the confirmed booking paid by the given payment intent.

    Used when the payment processor reports a refund issued outside the
    portal (e.g. from the processor's dashboard).

    Returns:
        bool: True if a booking was cancelled.
    """
    result = conn.execute(
        update(Booking)
        .where(Booking.payment_intent_id == payment_intent_id)
        .where(Booking.status == "confirmed")
        .values(status="cancelled", updated_at=utc_now())
    )
    return result.rowcount > 0
