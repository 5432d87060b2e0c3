"""
Settlement of payment processor events.

State machine for a booking once its payment session exists:

    pending --(payment captured)--> confirmed --(refund)--> cancelled

Confirmation is committed before the PMS is contacted. A PMS failure after
that point never rolls the booking back: the payment is captured, so the
failure is recorded as an error-level event log entry for manual
reconciliation and the booking stays confirmed with no external reservation.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from stay_settlement.db.readers.bookings import get_booking_by_session
from stay_settlement.db.readers.listings import get_listing_with_credentials
from stay_settlement.db.writers.bookings import (
    cancel_booking_by_payment_intent,
    confirm_booking,
    set_external_reservation_id,
)
from stay_settlement.metrics import settlement_outcomes
from stay_settlement.network.client import PmsRequestError
from stay_settlement.network.pms import PmsClient, PmsCredentials, ReservationRequest
from stay_settlement.services.event_log import EventLogger

logger = structlog.get_logger(__name__)

SOURCE = "settlement"

CHECKOUT_COMPLETED = "checkout.session.completed"
ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
CHARGE_REFUNDED = "charge.refunded"
CONFIRMING_EVENTS = frozenset({CHECKOUT_COMPLETED, ASYNC_PAYMENT_SUCCEEDED})


@dataclass(frozen=True)
class SettlementOutcome:
    outcome: str
    booking_id: Optional[str] = None


def _object_id(value: Any) -> Optional[str]:
    """Processor references arrive either as an id or as an expanded object."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def handle_payment_event(
    event: dict[str, Any],
    engine: Engine,
    pms: PmsClient,
    event_log: EventLogger,
) -> SettlementOutcome:
    """
    Apply one verified payment processor event.

    Every return value maps to a 200 acknowledgement. Only a database error
    raised before any state change escapes, so the processor redelivers.

    Args:
        event (dict): Verified event body.
        engine (Engine): Database engine.
        pms (PmsClient): PMS client for reservation creation.
        event_log (EventLogger): Operational event log sink.

    Returns:
        SettlementOutcome: What the event did.
    """
    event_type = event.get("type")
    data_object = (event.get("data") or {}).get("object") or {}

    if event_type in CONFIRMING_EVENTS:
        outcome = _settle_checkout(event_type, data_object, engine, pms, event_log)
    elif event_type == CHARGE_REFUNDED:
        outcome = _settle_refund(data_object, engine, event_log)
    else:
        logger.info("payment_event_ignored", event_type=event_type, event_id=event.get("id"))
        outcome = SettlementOutcome("ignored")

    settlement_outcomes.labels(outcome=outcome.outcome).inc()
    return outcome


def _settle_checkout(
    event_type: str,
    session: dict[str, Any],
    engine: Engine,
    pms: PmsClient,
    event_log: EventLogger,
) -> SettlementOutcome:
    session_id = session.get("id")
    if event_type == CHECKOUT_COMPLETED and session.get("payment_status") == "unpaid":
        # Delayed payment methods confirm later via the async success event
        logger.info("checkout_completed_unpaid", payment_session_id=session_id)
        return SettlementOutcome("unpaid")

    with engine.connect() as conn:
        booking = get_booking_by_session(conn, session_id) if session_id else None

    if booking is None:
        logger.error("booking_not_found_for_session", payment_session_id=session_id)
        event_log.error(
            SOURCE,
            f"No booking found for payment session {session_id}",
            {"payment_session_id": session_id, "event_type": event_type},
        )
        return SettlementOutcome("booking_missing")

    if booking["status"] != "pending":
        logger.info("booking_already_settled", booking_id=booking["id"], status=booking["status"])
        return SettlementOutcome("duplicate", booking["id"])

    payment_intent_id = _object_id(session.get("payment_intent"))
    if not payment_intent_id:
        # A confirmed booking must be refundable; leave it pending for an operator
        logger.error(
            "payment_intent_missing", booking_id=booking["id"], payment_session_id=session_id
        )
        event_log.error(
            SOURCE,
            f"Payment session {session_id} completed without a payment intent",
            {
                "booking_id": booking["id"],
                "payment_session_id": session_id,
                "event_type": event_type,
            },
        )
        return SettlementOutcome("missing_payment_intent", booking["id"])

    with engine.begin() as conn:
        confirmed = confirm_booking(conn, session_id, payment_intent_id)

    if not confirmed:
        # A concurrent delivery won the conditional update
        logger.info("booking_confirmation_lost_race", booking_id=booking["id"])
        return SettlementOutcome("duplicate", booking["id"])

    logger.info(
        "booking_confirmed",
        booking_id=booking["id"],
        payment_session_id=session_id,
        payment_intent_id=payment_intent_id,
    )
    event_log.info(
        SOURCE,
        f"Booking {booking['id']} confirmed",
        {"booking_id": booking["id"], "payment_session_id": session_id},
    )

    _create_external_reservation(booking, engine, pms, event_log)
    return SettlementOutcome("confirmed", booking["id"])


def _create_external_reservation(
    booking: dict[str, Any],
    engine: Engine,
    pms: PmsClient,
    event_log: EventLogger,
) -> Optional[str]:
    """
    Create the PMS reservation for a freshly confirmed booking.

    Never raises. Failures are logged with the booking and session ids so the
    reservation can be created by hand.
    """
    context = {
        "booking_id": booking["id"],
        "payment_session_id": booking["payment_session_id"],
        "listing_id": booking["listing_id"],
    }

    try:
        with engine.connect() as conn:
            listing = get_listing_with_credentials(conn, booking["listing_id"])
    except SQLAlchemyError as err:
        _reservation_failed(event_log, "credential lookup failed", str(err), context)
        return None

    if listing is None or listing["pms_listing_id"] is None or not listing["pms_api_key"]:
        _reservation_failed(event_log, "listing has no PMS integration", None, context)
        return None

    credentials = PmsCredentials(
        api_key=listing["pms_api_key"], customer_id=listing["pms_customer_id"]
    )
    reservation = ReservationRequest(
        pms_listing_id=listing["pms_listing_id"],
        check_in=booking["check_in"],
        check_out=booking["check_out"],
        first_name=booking["guest_first_name"] or "",
        last_name=booking["guest_last_name"] or "",
        email=booking["guest_email"] or "",
        adults=booking["adults"] if booking["adults"] is not None else booking["guests"],
        children=booking["children"] or 0,
        total_price=booking["total_price"],
        phone=booking["guest_phone"],
        note=booking["guest_note"],
    )

    try:
        reservation_id = pms.create_reservation(credentials, reservation)
    except PmsRequestError as err:
        _reservation_failed(event_log, "PMS rejected or did not answer", str(err), context)
        return None

    try:
        with engine.begin() as conn:
            set_external_reservation_id(conn, booking["id"], reservation_id)
    except SQLAlchemyError as err:
        _reservation_failed(
            event_log,
            f"PMS reservation {reservation_id} created but not recorded",
            str(err),
            {**context, "external_reservation_id": reservation_id},
        )
        return None

    settlement_outcomes.labels(outcome="pms_synced").inc()
    logger.info("pms_reservation_recorded", external_reservation_id=reservation_id, **context)
    event_log.info(
        SOURCE,
        f"PMS reservation {reservation_id} created for booking {booking['id']}",
        {**context, "external_reservation_id": reservation_id},
    )
    return reservation_id


def _reservation_failed(
    event_log: EventLogger, reason: str, error: Optional[str], context: dict[str, Any]
) -> None:
    settlement_outcomes.labels(outcome="pms_failed").inc()
    logger.error("pms_reservation_failed", reason=reason, error=error, **context)
    event_log.error(
        SOURCE,
        f"PMS reservation failed for booking {context['booking_id']}: {reason}",
        {**context, "error": error},
    )


def _settle_refund(
    charge: dict[str, Any], engine: Engine, event_log: EventLogger
) -> SettlementOutcome:
    """Cancel the confirmed booking behind a charge refunded outside the portal."""
    payment_intent_id = _object_id(charge.get("payment_intent"))
    if not payment_intent_id:
        return SettlementOutcome("ignored")

    with engine.begin() as conn:
        cancelled = cancel_booking_by_payment_intent(conn, payment_intent_id)

    if not cancelled:
        return SettlementOutcome("ignored")

    logger.info("booking_cancelled_by_refund", payment_intent_id=payment_intent_id)
    event_log.info(
        SOURCE,
        f"Booking for payment {payment_intent_id} marked cancelled via refund",
        {"payment_intent_id": payment_intent_id},
    )
    return SettlementOutcome("refunded")
