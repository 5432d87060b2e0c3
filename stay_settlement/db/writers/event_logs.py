from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from stay_settlement.models.event_logs import EventLog
from stay_settlement.utils.datetime import utc_now


def insert_event_log(
    conn: Connection,
    level: str,
    source: str,
    message: str,
    metadata: Optional[dict[str, Any]] = None,
) -> str:
    """
    Append one entry to the event log.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        level (str): info, warning or error.
        source (str): Component that produced the entry (e.g. "settlement").
        message (str): Human-readable description.
        metadata (dict, optional): Identifiers and raw error details.

    Returns:
        str: The new entry ID.
    """
    entry_id = uuid4().hex
    conn.execute(
        insert(EventLog.__table__).values(
            {
                "id": entry_id,
                "level": level,
                "source": source,
                "message": message,
                "metadata": metadata,
                "acknowledged": False,
                "created_at": utc_now(),
            }
        )
    )
    return entry_id


def acknowledge_event_logs(conn: Connection, entry_ids: list[str]) -> int:
    """
    Mark event log entries as handled by an operator.

    Returns:
        int: Number of entries updated.
    """
    if not entry_ids:
        return 0
    result = conn.execute(
        update(EventLog).where(EventLog.id.in_(entry_ids)).values(acknowledged=True)
    )
    return result.rowcount
