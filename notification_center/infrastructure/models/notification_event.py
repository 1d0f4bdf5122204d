"""SQLAlchemy model for persisted domain notification events."""

from sqlalchemy import Column, DateTime, Index, JSON, String, Text

from notification_center.infrastructure.database import Base
from notification_center.utils import storage_now


class NotificationEventModel(Base):
    """Immutable trace of every emitted domain event."""

    __tablename__ = "notification_event"
    __table_args__ = (
        Index("ix_notification_event_scope", "client_id", "condominium_id", "created_at"),
    )

    id = Column(String(32), primary_key=True)
    client_id = Column(String(128), nullable=False)
    condominium_id = Column(String(128), nullable=False)
    event_type = Column(String(80), nullable=False)
    module = Column(String(30), nullable=False)
    priority = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    dedupe_key = Column(String(255), nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    audience = Column(JSON, nullable=False, default=dict)
    entity_id = Column(String(128), nullable=False, default="")
    entity_type = Column(String(80), nullable=False, default="")
    event_metadata = Column("metadata", JSON, nullable=False, default=dict)
    status = Column(String(30), nullable=False)
    created_at = Column(DateTime(), nullable=False, default=storage_now)
    created_by = Column(String(128), nullable=False)
    created_by_name = Column(String(120), nullable=False)


__all__ = ["NotificationEventModel"]
