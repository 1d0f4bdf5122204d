"""SQLAlchemy model for dispatched notification queues."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String

from notification_center.infrastructure.database import Base
from notification_center.utils import storage_now


class NotificationQueueModel(Base):
    """Recipient set resolved for one emitted event."""

    __tablename__ = "notification_queue"

    id = Column(String(32), primary_key=True)
    source_event_id = Column(
        String(32), ForeignKey("notification_event.id"), nullable=False, unique=True
    )
    client_id = Column(String(128), nullable=False)
    condominium_id = Column(String(128), nullable=False)
    event_type = Column(String(80), nullable=False)
    module = Column(String(30), nullable=False)
    priority = Column(String(20), nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False)
    dedupe_key = Column(String(255), nullable=False)
    recipients = Column(JSON, nullable=False, default=list)
    recipients_count = Column(Integer, nullable=False)
    created_at = Column(DateTime(), nullable=False, default=storage_now)
    dispatched_at = Column(DateTime(), nullable=False, default=storage_now)
    dispatched_by = Column(String(128), nullable=False)


__all__ = ["NotificationQueueModel"]
