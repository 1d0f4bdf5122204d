"""Persistence helpers for notification queue records."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy.orm import Session

from notification_center.domain.entities import (
    EventType,
    NotificationModule,
    Priority,
    QueueRecord,
    TenantContext,
)
from notification_center.infrastructure.models import NotificationQueueModel
from notification_center.utils import from_storage, now_in_app_timezone, to_storage


class NotificationQueueRepository:
    """Create and read :class:`QueueRecord` documents."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, record: QueueRecord) -> QueueRecord:
        recipients = list(dict.fromkeys(record.recipients))
        if not recipients:
            raise ValueError("A notification queue requires at least one recipient")

        now = now_in_app_timezone()
        model = NotificationQueueModel(
            id=record.id or uuid4().hex,
            source_event_id=record.source_event_id,
            client_id=record.tenant_context.client_id,
            condominium_id=record.tenant_context.condominium_id,
            event_type=record.event_type.value,
            module=record.module.value,
            priority=record.priority.value,
            channels=list(record.channels),
            status=record.status,
            dedupe_key=record.dedupe_key,
            recipients=recipients,
            recipients_count=len(recipients),
            created_at=to_storage(record.created_at or now),
            dispatched_at=to_storage(record.dispatched_at or now),
            dispatched_by=record.dispatched_by,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get_by_source_event(self, event_id: str) -> QueueRecord | None:
        model = (
            self.session.query(NotificationQueueModel)
            .filter(NotificationQueueModel.source_event_id == event_id)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    @staticmethod
    def _to_entity(model: NotificationQueueModel) -> QueueRecord:
        return QueueRecord(
            id=model.id,
            source_event_id=model.source_event_id,
            event_type=EventType(model.event_type),
            module=NotificationModule(model.module),
            priority=Priority(model.priority),
            channels=tuple(model.channels or ()),
            dedupe_key=model.dedupe_key,
            recipients=tuple(model.recipients or ()),
            tenant_context=TenantContext(model.client_id, model.condominium_id),
            dispatched_by=model.dispatched_by,
            status=model.status,
            created_at=from_storage(model.created_at),
            dispatched_at=from_storage(model.dispatched_at),
        )


__all__ = ["NotificationQueueRepository"]
