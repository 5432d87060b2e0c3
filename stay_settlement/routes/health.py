"""
Liveness and readiness probes.

/ready gates traffic on the database only. The payment webhook secret is
reported alongside it because a replica without one rejects every webhook,
but a missing secret is a deploy error that restarting will not fix, so it
does not take the replica out of rotation.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from stay_settlement import config
from stay_settlement.db.engine import check_engine_health

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """Process is up. Never touches the database."""
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check() -> JSONResponse:
    """
    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"database": "ok", "payment_webhook": "configured"}}
    """
    database_ok = check_engine_health()
    checks = {
        "database": "ok" if database_ok else "failed",
        "payment_webhook": "configured" if config.PAYMENT_WEBHOOK_SECRET else "missing",
    }

    if not database_ok:
        logger.error("readiness_check_failed", checks=checks)
        return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})

    if checks["payment_webhook"] == "missing":
        logger.warning("payment_webhook_secret_missing")
    return JSONResponse(content={"status": "ready", "checks": checks})
