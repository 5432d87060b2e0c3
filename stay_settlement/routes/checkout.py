import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from stay_settlement.dependencies import (
    get_db_engine,
    get_event_logger,
    get_payment_gateway,
    get_pms_client,
)
from stay_settlement.network.payments import PaymentGateway
from stay_settlement.network.pms import PmsClient
from stay_settlement.routes._auth import get_caller
from stay_settlement.schemas.checkout import CheckoutPayload, CheckoutResponse
from stay_settlement.services.cancellation import Caller
from stay_settlement.services.checkout import CheckoutRequest, GuestContact, create_checkout
from stay_settlement.services.event_log import EventLogger

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
def open_checkout(
    payload: CheckoutPayload,
    caller: Caller = Depends(get_caller),
    engine: Engine = Depends(get_db_engine),
    pms: PmsClient = Depends(get_pms_client),
    payments: PaymentGateway = Depends(get_payment_gateway),
    event_log: EventLogger = Depends(get_event_logger),
) -> CheckoutResponse:
    """
    Verify a stay and open a hosted payment session for it.

    Returns:
        CheckoutResponse: URL of the processor's payment page.
    """
    contact = payload.guest_contact
    result = create_checkout(
        CheckoutRequest(
            listing_id=payload.listing_id,
            user_id=caller.user_id,
            check_in=payload.check_in.isoformat(),
            check_out=payload.check_out.isoformat(),
            guests=payload.guests,
            currency=payload.currency,
            client_computed_price=payload.client_computed_price,
            guest_contact=GuestContact(
                first_name=contact.first_name,
                last_name=contact.last_name,
                email=contact.email,
                adults=contact.adults,
                children=contact.children,
                phone=contact.phone,
                note=contact.note,
            ),
        ),
        engine=engine,
        pms=pms,
        payments=payments,
        event_log=event_log,
    )
    return CheckoutResponse(redirect_url=result.redirect_url)
