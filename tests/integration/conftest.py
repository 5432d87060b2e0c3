"""
Fixtures for integration tests backed by the in-memory database.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
from sqlalchemy import update
from sqlalchemy.engine import Engine

from stay_settlement.db.writers.bookings import insert_pending_booking
from stay_settlement.models.bookings import Booking


@pytest.fixture
def make_booking(db_engine: Engine, seeded_listing: str) -> Callable[..., str]:
    """
    Factory inserting a booking for the seeded listing.

    make_booking(session_id="cs_1", status="confirmed", payment_intent_id="pi_1", ...)
    Returns the booking id.
    """

    def _make(session_id: str = "cs_test_1", **overrides: Any) -> str:
        status = overrides.pop("status", "pending")
        post_insert = {
            key: overrides.pop(key)
            for key in ("payment_intent_id", "external_reservation_id")
            if key in overrides
        }
        data = {
            "listing_id": seeded_listing,
            "guest_user_id": "guest-1",
            "check_in": "2025-07-01",
            "check_out": "2025-07-05",
            "nights": 4,
            "guests": 3,
            "adults": 2,
            "children": 1,
            "total_price": 50000,
            "currency": "eur",
            "guest_note": "Late arrival",
            "guest_first_name": "Ada",
            "guest_last_name": "Lovelace",
            "guest_email": "ada@example.com",
            "guest_phone": "+39 555 0100",
            "payment_session_id": session_id,
        }
        data.update(overrides)
        with db_engine.begin() as conn:
            booking_id = insert_pending_booking(conn, data)
            if status != "pending" or post_insert:
                conn.execute(
                    update(Booking)
                    .where(Booking.id == booking_id)
                    .values(status=status, **post_insert)
                )
        return booking_id

    return _make
