from sqlalchemy import Boolean, Column, DateTime, String, Text, false
from sqlalchemy.sql import func

from stay_settlement.config import SCHEMA
from stay_settlement.models.base import Base, JSONType


class EventLog(Base):
    """
    ORM model for the append-only operational event log.

    Used both as an audit trail and to surface partial failures that need a
    human, e.g. a PMS reservation that could not be created after payment was
    captured. Operators mark entries acknowledged once handled.
    """

    __tablename__ = "event_logs"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(32), primary_key=True)
    level = Column(String(16), nullable=False, index=True)  # info | warning | error
    source = Column(String(64), nullable=False, index=True)
    message = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSONType, nullable=True)
    acknowledged = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
