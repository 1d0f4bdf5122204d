"""SQLAlchemy model for notifications stored in recipient feeds."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, JSON, String, Text
from sqlalchemy.sql import expression

from notification_center.infrastructure.database import Base
from notification_center.utils import storage_now


class UserNotificationModel(Base):
    """Database representation for a recipient's notification."""

    __tablename__ = "user_notification"
    __table_args__ = (
        Index(
            "ix_user_notification_feed",
            "client_id",
            "condominium_id",
            "recipient_id",
            "created_at",
        ),
    )

    id = Column(String(32), primary_key=True)
    client_id = Column(String(128), nullable=False)
    condominium_id = Column(String(128), nullable=False)
    recipient_id = Column(String(128), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    module = Column(String(30), nullable=False)
    event_type = Column(String(80), nullable=False)
    priority = Column(String(20), nullable=False)
    read = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    read_at = Column(DateTime(), nullable=True)
    entity_id = Column(String(128), nullable=False, default="")
    entity_type = Column(String(80), nullable=False, default="")
    event_metadata = Column("metadata", JSON, nullable=False, default=dict)
    source_event_id = Column(String(32), ForeignKey("notification_event.id"), nullable=False)
    source_queue_id = Column(String(32), ForeignKey("notification_queue.id"), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=storage_now)
    created_by = Column(String(128), nullable=False)


__all__ = ["UserNotificationModel"]
