from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from stay_settlement.models.event_logs import EventLog


def list_event_logs(
    conn: Connection,
    level: Optional[str] = None,
    source: Optional[str] = None,
    acknowledged: Optional[bool] = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """
    Fetch event log entries, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        level (str, optional): Only entries of this level.
        source (str, optional): Only entries from this source.
        acknowledged (bool, optional): Filter on the acknowledged flag.
        limit (int): Maximum number of entries.

    Returns:
        list[dict[str, Any]]: Entries with "metadata" holding the JSON payload.
    """
    stmt = select(
        EventLog.id,
        EventLog.level,
        EventLog.source,
        EventLog.message,
        EventLog.metadata_.label("metadata"),
        EventLog.acknowledged,
        EventLog.created_at,
    )
    if level is not None:
        stmt = stmt.where(EventLog.level == level)
    if source is not None:
        stmt = stmt.where(EventLog.source == source)
    if acknowledged is not None:
        stmt = stmt.where(EventLog.acknowledged == acknowledged)

    rows = conn.execute(stmt.order_by(EventLog.created_at.desc()).limit(limit)).mappings()
    return [dict(row) for row in rows]
