"""
Checkout session issuing.

Verifies the stay against live PMS data, opens a hosted payment session for
the server-computed total and records a pending booking keyed by the session
id. The pending row already carries the stay, price and guest contact, and
settlement (services/settlement.py) reads them from there when it creates the
PMS reservation. The session metadata holds the same facts so the processor
dashboard shows them, but settlement never reads metadata back.

Charges go to the owner's connected payout account with the platform fee
(PLATFORM_FEE_PERCENT, or the owner's override) kept as the application fee.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stay_settlement.config import PLATFORM_FEE_PERCENT, PUBLIC_BASE_URL
from stay_settlement.db.writers.bookings import insert_pending_booking
from stay_settlement.errors import AvailabilityConflict, PriceMismatch, ValidationError
from stay_settlement.metrics import checkout_outcomes
from stay_settlement.network.payments import PaymentGateway
from stay_settlement.network.pms import PmsClient
from stay_settlement.pricing.money import percentage_of_minor_units
from stay_settlement.services.availability import verify_availability
from stay_settlement.services.event_log import EventLogger
from stay_settlement.services.listings import resolve_bookable_listing
from stay_settlement.services.price_integrity import unavailable_error, verify_stay_price

logger = structlog.get_logger(__name__)

SOURCE = "checkout"


@dataclass(frozen=True)
class GuestContact:
    first_name: str
    last_name: str
    email: str
    adults: int
    children: int = 0
    phone: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class CheckoutRequest:
    listing_id: str
    user_id: str
    check_in: str
    check_out: str
    guests: int
    currency: str
    client_computed_price: int  # minor units
    guest_contact: GuestContact


@dataclass(frozen=True)
class CheckoutResult:
    redirect_url: str
    booking_id: str
    payment_session_id: str
    total_price: int


def create_checkout(
    request: CheckoutRequest,
    engine: Engine,
    pms: PmsClient,
    payments: PaymentGateway,
    event_log: EventLogger,
) -> CheckoutResult:
    """
    Open a payment session for a verified stay.

    Args:
        request (CheckoutRequest): Stay, client price and guest contact.
        engine (Engine): Database engine.
        pms (PmsClient): PMS client.
        payments (PaymentGateway): Payment processor gateway.
        event_log (EventLogger): Operational event log sink.

    Returns:
        CheckoutResult: Redirect URL to the processor's hosted payment page.

    Raises:
        NotFound: Unknown listing or listing without PMS integration.
        ValidationError: Bad stay, currency, unpriceable dates, or an owner
            without a payout account.
        AvailabilityConflict: The PMS rejects the stay.
        PriceMismatch: The client price drifted beyond tolerance.
        ServiceUnavailable: The PMS or payment processor is unreachable.
    """
    listing = resolve_bookable_listing(engine, request.listing_id)
    currency = request.currency.lower()
    if currency != listing.currency.lower():
        raise ValidationError(
            "Currency does not match listing",
            {"currency": currency, "listing_currency": listing.currency.lower()},
        )
    if not listing.payment_account_id:
        checkout_outcomes.labels(outcome="no_payout_account").inc()
        raise ValidationError(
            "This listing's host has not set up payouts yet", {"listing_id": listing.id}
        )

    availability = verify_availability(
        pms,
        listing.credentials,
        listing.pms_listing_id,
        request.check_in,
        request.check_out,
        request.guests,
    )
    if not availability.is_available(listing.pms_listing_id):
        rejection = availability.rejection_for(listing.pms_listing_id)
        checkout_outcomes.labels(outcome="unavailable").inc()
        event_log.error(
            SOURCE,
            f"Availability conflict for listing {listing.id} "
            f"({request.check_in} - {request.check_out}): {rejection.message}",
            {
                "listing_id": listing.id,
                "check_in": request.check_in,
                "check_out": request.check_out,
                "guests": request.guests,
                "reason": rejection.reason.value,
            },
        )
        raise unavailable_error(rejection)

    try:
        verified = verify_stay_price(
            pms,
            listing,
            request.check_in,
            request.check_out,
            request.guests,
            request.client_computed_price,
            event_log=event_log,
            availability=availability,
        )
    except PriceMismatch:
        checkout_outcomes.labels(outcome="price_mismatch").inc()
        raise
    except AvailabilityConflict:
        checkout_outcomes.labels(outcome="unavailable").inc()
        raise

    fee_percent = (
        listing.application_fee_percent
        if listing.application_fee_percent is not None
        else PLATFORM_FEE_PERCENT
    )
    application_fee = percentage_of_minor_units(verified.total_price, fee_percent)

    contact = request.guest_contact
    metadata = {
        "listing_id": listing.id,
        "pms_listing_id": str(listing.pms_listing_id),
        "user_id": request.user_id,
        "check_in": request.check_in,
        "check_out": request.check_out,
        "nights": str(verified.nights),
        "guests": str(request.guests),
        "adults": str(contact.adults),
        "children": str(contact.children),
        "currency": currency,
        "total_price": str(verified.total_price),
        "application_fee": str(application_fee),
        "guest_first_name": contact.first_name,
        "guest_last_name": contact.last_name,
        "guest_email": contact.email,
        "guest_phone": contact.phone or "",
        "guest_note": contact.note or "",
    }
    plural = "s" if verified.nights != 1 else ""
    session = payments.create_checkout_session(
        amount=verified.total_price,
        currency=currency,
        product_name=listing.title,
        description=f"{verified.nights} night{plural} · {request.check_in} to {request.check_out}",
        customer_email=contact.email,
        metadata=metadata,
        success_url=f"{PUBLIC_BASE_URL}/booking/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{PUBLIC_BASE_URL}/listings/{listing.id}",
        connected_account_id=listing.payment_account_id,
        application_fee_amount=application_fee,
    )

    with engine.begin() as conn:
        booking_id = insert_pending_booking(
            conn,
            {
                "listing_id": listing.id,
                "guest_user_id": request.user_id,
                "check_in": request.check_in,
                "check_out": request.check_out,
                "nights": verified.nights,
                "guests": request.guests,
                "adults": contact.adults,
                "children": contact.children,
                "total_price": verified.total_price,
                "currency": currency,
                "guest_note": contact.note,
                "guest_first_name": contact.first_name,
                "guest_last_name": contact.last_name,
                "guest_email": contact.email,
                "guest_phone": contact.phone,
                "payment_session_id": session.id,
            },
        )

    checkout_outcomes.labels(outcome="session_created").inc()
    logger.info(
        "checkout_session_created",
        listing_id=listing.id,
        booking_id=booking_id,
        payment_session_id=session.id,
        total_price=verified.total_price,
    )
    event_log.info(
        SOURCE,
        "Checkout session created",
        {"listing_id": listing.id, "booking_id": booking_id, "payment_session_id": session.id},
    )
    return CheckoutResult(
        redirect_url=session.url,
        booking_id=booking_id,
        payment_session_id=session.id,
        total_price=verified.total_price,
    )
