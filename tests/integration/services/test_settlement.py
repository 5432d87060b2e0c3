"""Integration tests for the settlement state machine."""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from stay_settlement.db.readers.bookings import get_booking
from stay_settlement.db.readers.event_logs import list_event_logs
from stay_settlement.errors import InvalidState
from stay_settlement.network.client import PmsRequestError
from stay_settlement.services.cancellation import Caller, cancel_confirmed_booking
from stay_settlement.services.settlement import handle_payment_event


def completed_event(session_id: str = "cs_test_1", **session_fields) -> dict:
    session = {
        "id": session_id,
        "object": "checkout.session",
        "payment_intent": "pi_test_1",
        "payment_status": "paid",
        **session_fields,
    }
    return {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": session}}


def booking_row(db_engine, booking_id):
    with db_engine.connect() as conn:
        return get_booking(conn, booking_id)


def error_logs(db_engine):
    with db_engine.connect() as conn:
        return list_event_logs(conn, level="error")


@pytest.mark.integration
def test_payment_confirms_booking_and_creates_reservation(
    db_engine, make_booking, fake_pms, event_log
) -> None:
    booking_id = make_booking("cs_test_1")

    outcome = handle_payment_event(completed_event(), db_engine, fake_pms, event_log)

    assert outcome.outcome == "confirmed"
    assert outcome.booking_id == booking_id
    booking = booking_row(db_engine, booking_id)
    assert booking["status"] == "confirmed"
    assert booking["payment_intent_id"] == "pi_test_1"
    assert booking["external_reservation_id"] == "555"

    (reservation,) = fake_pms.created
    assert reservation.pms_listing_id == 101
    assert reservation.total_price == 50000
    assert reservation.note == "Late arrival"


@pytest.mark.integration
def test_redelivered_event_is_a_no_op(db_engine, make_booking, fake_pms, event_log) -> None:
    make_booking("cs_test_1")

    first = handle_payment_event(completed_event(), db_engine, fake_pms, event_log)
    second = handle_payment_event(completed_event(), db_engine, fake_pms, event_log)

    assert first.outcome == "confirmed"
    assert second.outcome == "duplicate"
    assert len(fake_pms.created) == 1


@pytest.mark.integration
def test_pms_failure_keeps_booking_confirmed(db_engine, make_booking, fake_pms, event_log) -> None:
    booking_id = make_booking("cs_test_1")
    fake_pms.reservation_error = PmsRequestError("PMS create_reservation failed: 500", status_code=500)

    outcome = handle_payment_event(completed_event(), db_engine, fake_pms, event_log)

    assert outcome.outcome == "confirmed"
    booking = booking_row(db_engine, booking_id)
    assert booking["status"] == "confirmed"
    assert booking["external_reservation_id"] is None

    (entry,) = error_logs(db_engine)
    assert entry["source"] == "settlement"
    assert entry["metadata"]["booking_id"] == booking_id
    assert entry["metadata"]["payment_session_id"] == "cs_test_1"
    assert "500" in entry["metadata"]["error"]


@pytest.mark.integration
def test_missing_booking_is_logged_and_acknowledged(db_engine, seeded_listing, fake_pms, event_log) -> None:
    outcome = handle_payment_event(completed_event("cs_unknown"), db_engine, fake_pms, event_log)

    assert outcome.outcome == "booking_missing"
    assert fake_pms.created == []
    assert error_logs(db_engine)[0]["metadata"]["payment_session_id"] == "cs_unknown"


@pytest.mark.integration
def test_unpaid_completion_waits_for_async_success(
    db_engine, make_booking, fake_pms, event_log
) -> None:
    booking_id = make_booking("cs_test_1")

    unpaid = handle_payment_event(
        completed_event(payment_status="unpaid"), db_engine, fake_pms, event_log
    )
    assert unpaid.outcome == "unpaid"
    assert booking_row(db_engine, booking_id)["status"] == "pending"

    succeeded = completed_event()
    succeeded["type"] = "checkout.session.async_payment_succeeded"
    outcome = handle_payment_event(succeeded, db_engine, fake_pms, event_log)

    assert outcome.outcome == "confirmed"
    assert booking_row(db_engine, booking_id)["status"] == "confirmed"


@pytest.mark.integration
def test_unrelated_events_are_ignored(db_engine, fake_pms, event_log) -> None:
    event = {"id": "evt_2", "type": "customer.created", "data": {"object": {"id": "cus_1"}}}

    assert handle_payment_event(event, db_engine, fake_pms, event_log).outcome == "ignored"


@pytest.mark.integration
def test_expanded_payment_intent_object(db_engine, make_booking, fake_pms, event_log) -> None:
    booking_id = make_booking("cs_test_1")

    handle_payment_event(
        completed_event(payment_intent={"id": "pi_expanded", "object": "payment_intent"}),
        db_engine,
        fake_pms,
        event_log,
    )

    assert booking_row(db_engine, booking_id)["payment_intent_id"] == "pi_expanded"


@pytest.mark.integration
def test_completion_without_payment_intent_stays_pending(
    db_engine, make_booking, fake_pms, fake_payments, event_log
) -> None:
    booking_id = make_booking("cs_test_1")

    outcome = handle_payment_event(
        completed_event(payment_intent=None), db_engine, fake_pms, event_log
    )

    assert outcome.outcome == "missing_payment_intent"
    assert outcome.booking_id == booking_id
    booking = booking_row(db_engine, booking_id)
    assert booking["status"] == "pending"
    assert booking["payment_intent_id"] is None
    assert fake_pms.created == []
    (entry,) = error_logs(db_engine)
    assert entry["metadata"]["payment_session_id"] == "cs_test_1"

    with pytest.raises(InvalidState):
        cancel_confirmed_booking(
            booking_id, Caller(user_id="owner-1"), db_engine, fake_pms, fake_payments, event_log
        )


@pytest.mark.integration
def test_dashboard_refund_cancels_confirmed_booking(
    db_engine, make_booking, fake_pms, event_log
) -> None:
    booking_id = make_booking("cs_test_1", status="confirmed", payment_intent_id="pi_test_1")
    event = {
        "id": "evt_3",
        "type": "charge.refunded",
        "data": {"object": {"id": "ch_1", "payment_intent": "pi_test_1", "refunded": True}},
    }

    outcome = handle_payment_event(event, db_engine, fake_pms, event_log)

    assert outcome.outcome == "refunded"
    assert booking_row(db_engine, booking_id)["status"] == "cancelled"


@pytest.mark.integration
def test_database_failure_before_mutation_propagates(fake_pms, event_log) -> None:
    broken_engine = Mock()
    broken_engine.connect.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    with pytest.raises(OperationalError):
        handle_payment_event(completed_event(), broken_engine, fake_pms, event_log)
