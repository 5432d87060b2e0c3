"""
FastAPI dependency injection providers.

Route handlers receive the database engine, the PMS client, the payment
gateway and the event log sink through these providers. Tests swap any of
them with app.dependency_overrides.
"""

from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.engine import Engine

from stay_settlement.db.engine import engine
from stay_settlement.network.payments import PaymentGateway
from stay_settlement.network.pms import PmsClient
from stay_settlement.services.event_log import EventLogger


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
    """
    yield engine


def get_pms_client() -> PmsClient:
    return PmsClient()


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway()


def get_event_logger(db_engine: Engine = Depends(get_db_engine)) -> EventLogger:
    """Event log sink bound to the same engine the request uses."""
    return EventLogger(db_engine)
