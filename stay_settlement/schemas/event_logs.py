from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventLogOut(BaseModel):
    id: str
    level: str
    source: str
    message: str
    metadata: Optional[dict[str, Any]] = None
    acknowledged: bool
    created_at: datetime


class AcknowledgePayload(BaseModel):
    ids: list[str] = Field(..., min_length=1, description="Event log entry IDs to acknowledge")
