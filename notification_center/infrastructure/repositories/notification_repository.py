"""Persistence helpers for notifications stored in recipient feeds."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notification_center.domain.entities import (
    EventType,
    FeedPath,
    NotificationModule,
    Priority,
    RecipientNotification,
    TenantContext,
)
from notification_center.infrastructure.models import UserNotificationModel
from notification_center.utils import from_storage, now_in_app_timezone, to_storage


class NotificationRepository:
    """Provide feed queries and batched writes for :class:`RecipientNotification`."""

    def __init__(self, session: Session, *, max_batch_size: int = 400) -> None:
        self.session = session
        self.max_batch_size = max_batch_size

    def list_for_feed(
        self,
        feed_path: FeedPath,
        *,
        limit: int | None = 100,
    ) -> Sequence[RecipientNotification]:
        query = self._feed_query(feed_path).order_by(
            UserNotificationModel.created_at.desc(), UserNotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def get(self, feed_path: FeedPath, notification_id: str) -> RecipientNotification | None:
        model = self._feed_query(feed_path).filter(UserNotificationModel.id == notification_id).one_or_none()
        return self._to_entity(model) if model else None

    def count_unread(self, feed_path: FeedPath) -> int:
        return self._feed_query(feed_path).filter(UserNotificationModel.read.is_(False)).count()

    def create_many(
        self, notifications: Sequence[RecipientNotification]
    ) -> Sequence[RecipientNotification]:
        """Write ``notifications`` in one atomic batch."""

        self._ensure_batch_size(len(notifications))
        now = now_in_app_timezone()
        models = []
        for notification in notifications:
            model = UserNotificationModel(id=notification.id or uuid4().hex)
            self._apply_entity_to_model(model, notification, created_at=notification.created_at or now)
            models.append(model)

        try:
            self.session.add_all(models)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return [self._to_entity(model) for model in models]

    def mark_as_read(self, feed_path: FeedPath, notification_ids: Iterable[str]) -> int:
        """Flag the unread notifications among ``notification_ids`` as read.

        Already read notifications keep their original ``read_at``. Returns the
        number of notifications that changed.
        """

        ids = list(dict.fromkeys(notification_id for notification_id in notification_ids if notification_id))
        if not ids:
            return 0
        self._ensure_batch_size(len(ids))

        try:
            updated = (
                self._feed_query(feed_path)
                .filter(UserNotificationModel.id.in_(ids))
                .filter(UserNotificationModel.read.is_(False))
                .update(
                    {
                        UserNotificationModel.read: True,
                        UserNotificationModel.read_at: to_storage(
                            now_in_app_timezone()
                        ),
                    },
                    synchronize_session=False,
                )
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return updated

    def _ensure_batch_size(self, size: int) -> None:
        if size > self.max_batch_size:
            msg = f"Batch of {size} writes exceeds the limit of {self.max_batch_size}"
            raise ValueError(msg)

    def _feed_query(self, feed_path: FeedPath):
        context = feed_path.tenant_context
        return (
            self.session.query(UserNotificationModel)
            .filter(UserNotificationModel.client_id == context.client_id)
            .filter(UserNotificationModel.condominium_id == context.condominium_id)
            .filter(UserNotificationModel.recipient_id == feed_path.recipient_id)
        )

    @staticmethod
    def _apply_entity_to_model(
        model: UserNotificationModel,
        notification: RecipientNotification,
        *,
        created_at,
    ) -> None:
        model.client_id = notification.tenant_context.client_id
        model.condominium_id = notification.tenant_context.condominium_id
        model.recipient_id = notification.recipient_id
        model.title = notification.title
        model.body = notification.body
        model.module = notification.module.value
        model.event_type = notification.event_type.value
        model.priority = notification.priority.value
        model.read = notification.read
        model.read_at = to_storage(notification.read_at)
        model.entity_id = notification.entity_id
        model.entity_type = notification.entity_type
        model.event_metadata = dict(notification.metadata)
        model.source_event_id = notification.source_event_id
        model.source_queue_id = notification.source_queue_id
        model.created_at = to_storage(created_at)
        model.created_by = notification.created_by

    @staticmethod
    def _to_entity(model: UserNotificationModel) -> RecipientNotification:
        return RecipientNotification(
            id=model.id,
            recipient_id=model.recipient_id,
            title=model.title,
            body=model.body,
            module=NotificationModule(model.module),
            event_type=EventType(model.event_type),
            priority=Priority(model.priority),
            source_event_id=model.source_event_id,
            source_queue_id=model.source_queue_id,
            tenant_context=TenantContext(model.client_id, model.condominium_id),
            created_by=model.created_by,
            entity_id=model.entity_id or "",
            entity_type=model.entity_type or "",
            metadata=dict(model.event_metadata or {}),
            read=bool(model.read),
            read_at=from_storage(model.read_at),
            created_at=from_storage(model.created_at),
        )


__all__ = ["NotificationRepository"]
