"""Persistence helpers for emitted domain events."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from notification_center.domain.entities import (
    EventRecord,
    EventStatus,
    EventType,
    NotificationModule,
    Priority,
    TenantContext,
    audience_from_dict,
    audience_to_dict,
)
from notification_center.infrastructure.models import NotificationEventModel
from notification_center.utils import from_storage, now_in_app_timezone, to_storage


class NotificationEventRepository:
    """Create and read :class:`EventRecord` documents."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, record: EventRecord) -> EventRecord:
        model = NotificationEventModel(
            id=record.id or uuid4().hex,
            client_id=record.tenant_context.client_id,
            condominium_id=record.tenant_context.condominium_id,
            event_type=record.event_type.value,
            module=record.module.value,
            priority=record.priority.value,
            title=record.title,
            body=record.body,
            dedupe_key=record.dedupe_key,
            channels=list(record.channels),
            audience=audience_to_dict(record.audience),
            entity_id=record.entity_id,
            entity_type=record.entity_type,
            event_metadata=dict(record.metadata),
            status=record.status.value,
            created_at=to_storage(record.created_at or now_in_app_timezone()),
            created_by=record.created_by,
            created_by_name=record.created_by_name,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, event_id: str) -> EventRecord | None:
        model = self.session.get(NotificationEventModel, event_id)
        return self._to_entity(model) if model else None

    def list_for_tenant(
        self, tenant_context: TenantContext, *, limit: int | None = 50
    ) -> Sequence[EventRecord]:
        query = (
            self.session.query(NotificationEventModel)
            .filter(NotificationEventModel.client_id == tenant_context.client_id)
            .filter(NotificationEventModel.condominium_id == tenant_context.condominium_id)
            .order_by(NotificationEventModel.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_entity(model: NotificationEventModel) -> EventRecord:
        return EventRecord(
            id=model.id,
            event_type=EventType(model.event_type),
            module=NotificationModule(model.module),
            priority=Priority(model.priority),
            title=model.title,
            body=model.body,
            dedupe_key=model.dedupe_key,
            channels=tuple(model.channels or ()),
            audience=audience_from_dict(model.audience or {}),
            entity_id=model.entity_id or "",
            entity_type=model.entity_type or "",
            metadata=dict(model.event_metadata or {}),
            status=EventStatus(model.status),
            tenant_context=TenantContext(model.client_id, model.condominium_id),
            created_by=model.created_by,
            created_by_name=model.created_by_name,
            created_at=from_storage(model.created_at),
        )


__all__ = ["NotificationEventRepository"]
