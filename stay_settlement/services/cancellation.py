"""
Cancellation of confirmed bookings by the listing owner or an administrator.

The refund is the financially authoritative step and runs first: if it fails,
nothing else happens. The PMS cancellation is best-effort, and the local
status update always follows a successful refund.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.engine import Engine

from stay_settlement.db.readers.bookings import get_booking, get_booking_with_owner
from stay_settlement.db.readers.listings import get_listing_with_credentials
from stay_settlement.db.writers.bookings import cancel_booking
from stay_settlement.errors import Forbidden, InvalidState, NotFound, ServiceUnavailable
from stay_settlement.metrics import cancellation_outcomes
from stay_settlement.network.client import PmsRequestError
from stay_settlement.network.payments import PaymentGateway
from stay_settlement.network.pms import PmsClient, PmsCredentials
from stay_settlement.services.event_log import EventLogger

logger = structlog.get_logger(__name__)

SOURCE = "cancellation"


@dataclass(frozen=True)
class Caller:
    user_id: str
    is_admin: bool = False


@dataclass(frozen=True)
class CancellationResult:
    booking_id: str
    status: str


def cancel_confirmed_booking(
    booking_id: str,
    caller: Caller,
    engine: Engine,
    pms: PmsClient,
    payments: PaymentGateway,
    event_log: EventLogger,
) -> CancellationResult:
    """
    Refund and cancel a confirmed booking.

    Args:
        booking_id (str): Booking to cancel.
        caller (Caller): Authenticated user requesting the cancellation.
        engine (Engine): Database engine.
        pms (PmsClient): PMS client.
        payments (PaymentGateway): Payment processor gateway.
        event_log (EventLogger): Operational event log sink.

    Returns:
        CancellationResult

    Raises:
        NotFound: No such booking.
        Forbidden: Caller neither owns the listing nor is an administrator.
        InvalidState: Booking is not confirmed.
        ServiceUnavailable: The refund failed; the booking is unchanged.
    """
    with engine.connect() as conn:
        booking = get_booking_with_owner(conn, booking_id)

    if booking is None:
        raise NotFound("Booking not found", {"booking_id": booking_id})
    if not caller.is_admin and booking["owner_account_id"] != caller.user_id:
        raise Forbidden("Not allowed to cancel this booking", {"booking_id": booking_id})
    if booking["status"] != "confirmed":
        raise InvalidState(
            f"Cannot cancel a booking in status {booking['status']}",
            {"booking_id": booking_id, "status": booking["status"]},
        )

    # 1. Refund
    payment_intent_id = booking["payment_intent_id"]
    if payment_intent_id:
        try:
            refund_id = payments.refund(payment_intent_id)
        except ServiceUnavailable:
            cancellation_outcomes.labels(outcome="refund_failed").inc()
            event_log.error(
                SOURCE,
                f"Refund failed for booking {booking_id}",
                {"booking_id": booking_id, "payment_intent_id": payment_intent_id},
            )
            raise
        event_log.info(
            SOURCE,
            f"Refund issued for booking {booking_id}",
            {"booking_id": booking_id, "payment_intent_id": payment_intent_id, "refund_id": refund_id},
        )

    # 2. PMS
    external_id = booking["external_reservation_id"]
    if external_id:
        _cancel_external_reservation(booking, external_id, engine, pms, event_log)

    # 3. Local status
    with engine.begin() as conn:
        cancelled = cancel_booking(conn, booking_id)
        if not cancelled:
            # The refund webhook may have cancelled it in the meantime
            current = get_booking(conn, booking_id)
            status = current["status"] if current else None
            if status != "cancelled":
                raise InvalidState(
                    f"Cannot cancel a booking in status {status}",
                    {"booking_id": booking_id, "status": status},
                )

    cancellation_outcomes.labels(outcome="cancelled").inc()
    logger.info("booking_cancelled", booking_id=booking_id, cancelled_by=caller.user_id)
    event_log.info(
        SOURCE,
        f"Booking {booking_id} cancelled",
        {"booking_id": booking_id, "cancelled_by": caller.user_id},
    )
    return CancellationResult(booking_id=booking_id, status="cancelled")


def _cancel_external_reservation(
    booking: dict,
    external_id: str,
    engine: Engine,
    pms: PmsClient,
    event_log: EventLogger,
) -> None:
    """Best-effort PMS cancellation; never raises."""
    booking_id = booking["id"]
    with engine.connect() as conn:
        listing = get_listing_with_credentials(conn, booking["listing_id"])

    if listing is None or not listing["pms_api_key"]:
        logger.warning("pms_cancel_skipped", booking_id=booking_id, reservation_id=external_id)
        event_log.warn(
            SOURCE,
            f"PMS cancel skipped for reservation {external_id}: no PMS credentials",
            {"booking_id": booking_id, "external_reservation_id": external_id},
        )
        return

    credentials = PmsCredentials(
        api_key=listing["pms_api_key"], customer_id=listing["pms_customer_id"]
    )
    metadata = {"booking_id": booking_id, "external_reservation_id": external_id}
    try:
        pms.cancel_reservation(credentials, external_id)
    except PmsRequestError as err:
        if err.status_code is not None:
            logger.warning(
                "pms_cancel_rejected", status_code=err.status_code, **metadata
            )
            event_log.warn(
                SOURCE,
                f"PMS cancel returned {err.status_code} for reservation {external_id}",
                {**metadata, "pms_status": err.status_code},
            )
        else:
            logger.error("pms_cancel_failed", error=str(err), **metadata)
            event_log.error(
                SOURCE,
                f"PMS cancel failed for reservation {external_id}: {err}",
                {**metadata, "error": str(err)},
            )
        return

    logger.info("pms_reservation_cancelled", **metadata)
    event_log.info(SOURCE, f"PMS reservation {external_id} cancelled", metadata)
