"""SQLAlchemy model for dispatch failures awaiting reconciliation."""

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from notification_center.infrastructure.database import Base
from notification_center.utils import storage_now


class DispatchFailureModel(Base):
    """Failure raised while resolving or fanning out an event."""

    __tablename__ = "notification_dispatch_failure"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(40), nullable=False)
    detail = Column(Text, nullable=False)
    client_id = Column(String(128), nullable=True)
    condominium_id = Column(String(128), nullable=True)
    event_type = Column(String(80), nullable=True)
    source_event_id = Column(String(32), nullable=True, index=True)
    source_queue_id = Column(String(32), nullable=True, index=True)
    recipients = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(), nullable=False, default=storage_now)


__all__ = ["DispatchFailureModel"]
