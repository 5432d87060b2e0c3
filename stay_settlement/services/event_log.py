"""
Persistent operational event log.

Entries are written in their own transaction so an entry survives a rollback
of the caller's work, and a failing write never breaks the operation being
logged.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from stay_settlement.db.writers.event_logs import insert_event_log
from stay_settlement.metrics import event_log_write_failures

logger = structlog.get_logger(__name__)


class EventLogger:
    def __init__(self, engine: Engine):
        self.engine = engine

    def info(self, source: str, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        self._write("info", source, message, metadata)

    def warn(self, source: str, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        self._write("warning", source, message, metadata)

    def error(self, source: str, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        self._write("error", source, message, metadata)

    def _write(
        self, level: str, source: str, message: str, metadata: Optional[dict[str, Any]]
    ) -> None:
        try:
            with self.engine.begin() as conn:
                insert_event_log(conn, level, source, message, metadata)
        except SQLAlchemyError as err:
            event_log_write_failures.inc()
            logger.error(
                "event_log_write_failed",
                level=level,
                source=source,
                message=message,
                error=str(err),
            )
