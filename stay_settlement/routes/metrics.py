"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP stay_settlement_outcomes_total Payment webhook events by settlement outcome
        # TYPE stay_settlement_outcomes_total counter
        stay_settlement_outcomes_total{outcome="confirmed"} 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """Metrics in Prometheus text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
