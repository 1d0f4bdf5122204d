"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from notification_center.domain.entities import EventType, NotificationModule, Priority


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: str
    recipient_id: str
    title: str
    body: str
    module: NotificationModule
    event_type: EventType
    priority: Priority
    source_event_id: str
    source_queue_id: str | None = None
    entity_id: str = ""
    entity_type: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_by: str
    read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationFeedRead(BaseModel):
    """Most recent notifications of the recipient and how many are unread."""

    items: list[NotificationRead] = Field(default_factory=list)
    unread_count: int = 0


class MarkAllReadResponse(BaseModel):
    updated: int = Field(..., ge=0, description="Notificaciones marcadas como leídas")


__all__ = ["MarkAllReadResponse", "NotificationFeedRead", "NotificationRead"]
