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
from stay_settlement.schemas.bookings import CancellationResponse
from stay_settlement.services.cancellation import Caller, cancel_confirmed_booking
from stay_settlement.services.event_log import EventLogger

router = APIRouter()


@router.post("/bookings/{booking_id}/cancel", response_model=CancellationResponse)
def cancel_booking_route(
    booking_id: str,
    caller: Caller = Depends(get_caller),
    engine: Engine = Depends(get_db_engine),
    pms: PmsClient = Depends(get_pms_client),
    payments: PaymentGateway = Depends(get_payment_gateway),
    event_log: EventLogger = Depends(get_event_logger),
) -> CancellationResponse:
    """Refund and cancel a confirmed booking on behalf of its host or an admin."""
    result = cancel_confirmed_booking(booking_id, caller, engine, pms, payments, event_log)
    return CancellationResponse(booking_id=result.booking_id, status=result.status)
