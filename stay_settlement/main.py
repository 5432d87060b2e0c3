# stay_settlement/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stay_settlement.config import ALLOWED_ORIGINS
from stay_settlement.errors import SettlementError
from stay_settlement.logging_config import setup_logging
from stay_settlement.middleware import RequestIDMiddleware
from stay_settlement.routes.bookings import router as bookings_router
from stay_settlement.routes.checkout import router as checkout_router
from stay_settlement.routes.event_logs import router as event_logs_router
from stay_settlement.routes.health import router as health_router
from stay_settlement.routes.metrics import router as metrics_router
from stay_settlement.routes.pricing_periods import router as pricing_periods_router
from stay_settlement.routes.quotes import router as quotes_router
from stay_settlement.routes.webhook import router as webhook_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Stay Settlement API",
    description="Checkout, payment settlement and cancellation of vacation-rental stays",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(SettlementError)
async def settlement_error_handler(request: Request, exc: SettlementError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(quotes_router, tags=["Quotes"])
app.include_router(checkout_router, tags=["Checkout"])
app.include_router(webhook_router, tags=["Webhooks"])
app.include_router(bookings_router, tags=["Bookings"])
app.include_router(pricing_periods_router, tags=["Pricing"])
app.include_router(event_logs_router, tags=["Event Logs"])
