"""
Payment processor webhook endpoint.

The processor retries any non-2xx answer, so every verified event is
acknowledged with 200 unless the database failed before anything changed.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from stay_settlement.dependencies import (
    get_db_engine,
    get_event_logger,
    get_payment_gateway,
    get_pms_client,
)
from stay_settlement.errors import SignatureInvalid
from stay_settlement.network.payments import PaymentGateway
from stay_settlement.network.pms import PmsClient
from stay_settlement.services.event_log import EventLogger
from stay_settlement.services.settlement import handle_payment_event

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/payments/webhook")
async def payment_webhook(
    request: Request,
    engine: Engine = Depends(get_db_engine),
    pms: PmsClient = Depends(get_pms_client),
    payments: PaymentGateway = Depends(get_payment_gateway),
    event_log: EventLogger = Depends(get_event_logger),
) -> JSONResponse:
    """
    Receive a signed event from the payment processor.

    Returns:
        JSONResponse: 200 with the settlement outcome.

    Raises:
        SignatureInvalid: Rendered as 400; the payload is never processed.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = payments.construct_event(payload, signature)
    except SignatureInvalid as err:
        client_host = request.client.host if request.client else None
        logger.warning("webhook_signature_rejected", reason=str(err), client=client_host)
        await run_in_threadpool(
            event_log.warn,
            "webhook",
            f"Rejected payment webhook: {err}",
            {"client": client_host},
        )
        raise

    logger.info("payment_webhook_received", event_type=event.get("type"), event_id=event.get("id"))
    outcome = await run_in_threadpool(handle_payment_event, event, engine, pms, event_log)

    return JSONResponse(
        content={"received": True, "outcome": outcome.outcome, "booking_id": outcome.booking_id}
    )
