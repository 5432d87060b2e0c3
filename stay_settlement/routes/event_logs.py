"""Operator view of the persistent event log."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Engine

from stay_settlement.db.readers.event_logs import list_event_logs
from stay_settlement.db.writers.event_logs import acknowledge_event_logs
from stay_settlement.dependencies import get_db_engine
from stay_settlement.routes._auth import get_admin
from stay_settlement.schemas.event_logs import AcknowledgePayload, EventLogOut
from stay_settlement.services.cancellation import Caller

router = APIRouter()


@router.get("/event-logs", response_model=list[EventLogOut])
def get_event_logs(
    level: Optional[str] = Query(None, description="info, warning or error"),
    source: Optional[str] = Query(None),
    acknowledged: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    _admin: Caller = Depends(get_admin),
    engine: Engine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        return list_event_logs(
            conn, level=level, source=source, acknowledged=acknowledged, limit=limit
        )


@router.post("/event-logs/acknowledge")
def acknowledge(
    payload: AcknowledgePayload,
    _admin: Caller = Depends(get_admin),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, int]:
    with engine.begin() as conn:
        count = acknowledge_event_logs(conn, payload.ids)
    return {"acknowledged": count}
