from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from stay_settlement.models.bookings import Booking
from stay_settlement.models.listings import Listing


def get_booking(conn: Connection, booking_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a booking by its ID.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        booking_id (str): Booking ID.

    Returns:
        Optional[dict[str, Any]]: Booking columns or None if not found.
    """
    row = (
        conn.execute(select(Booking.__table__).where(Booking.id == booking_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def get_booking_by_session(conn: Connection, payment_session_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a booking by the payment processor's checkout session ID.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        payment_session_id (str): Checkout session ID.

    Returns:
        Optional[dict[str, Any]]: Booking columns or None if not found.
    """
    row = (
        conn.execute(
            select(Booking.__table__).where(Booking.payment_session_id == payment_session_id)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def get_booking_with_owner(conn: Connection, booking_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a booking together with the owner account of its listing.

    Used for ownership checks before a cancellation.

    Returns:
        Optional[dict[str, Any]]: Booking columns plus owner_account_id, or None.
    """
    row = (
        conn.execute(
            select(Booking.__table__, Listing.owner_account_id)
            .join(Listing, Listing.id == Booking.listing_id)
            .where(Booking.id == booking_id)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_unsynced_bookings(conn: Connection) -> list[dict[str, Any]]:
    """
    List confirmed bookings that have no PMS reservation recorded.

    These are the candidates for manual reconciliation with the PMS.

    Returns:
        list[dict[str, Any]]: Booking rows ordered by payment time.
    """
    rows = conn.execute(
        select(Booking.__table__)
        .where(Booking.status == "confirmed")
        .where(Booking.external_reservation_id.is_(None))
        .order_by(Booking.paid_at)
    ).mappings()
    return [dict(row) for row in rows]
