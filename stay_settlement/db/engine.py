"""
SQLAlchemy engine singleton with production-ready connection pooling.

This module creates a single engine instance. On PostgreSQL the pool is sized
for concurrent request handlers; SQLite (local development and tests) keeps
SQLAlchemy's default pool, which does not accept sizing arguments.
"""

from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from stay_settlement.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

_engine_options: dict[str, Any] = {
    "future": True,
    "pool_pre_ping": True,  # Verify connections before using (detect stale connections)
    "echo": False,
}
if not DATABASE_URL.startswith("sqlite"):
    _engine_options.update(
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections when pool is exhausted
        pool_recycle=3600,  # Recycle connections after 1 hour
    )

engine: Engine = create_engine(DATABASE_URL, **_engine_options)


def check_engine_health(db_engine: Engine = engine) -> bool:
    """
    Check if database engine is healthy and connections are working.

    This function is used by the /ready endpoint to verify database
    connectivity before allowing traffic to the service.

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
