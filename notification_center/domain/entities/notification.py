"""Domain entity representing a notification in a recipient's feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .event import EventType, NotificationModule, Priority
from .identity import FeedPath, TenantContext


@dataclass
class RecipientNotification:
    """Information message delivered to a specific recipient."""

    id: str | None
    recipient_id: str
    title: str
    body: str
    module: NotificationModule
    event_type: EventType
    priority: Priority
    source_event_id: str
    tenant_context: TenantContext
    created_by: str
    source_queue_id: str | None = None
    entity_id: str = ""
    entity_type: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def feed_path(self) -> FeedPath:
        return FeedPath(self.tenant_context, self.recipient_id)


__all__ = ["RecipientNotification"]
