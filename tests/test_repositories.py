"""Tests for the SQLAlchemy repositories."""

from __future__ import annotations

import pytest

from notification_center.domain.entities import (
    ROLE_ADMIN,
    ROLE_ADMIN_ASSISTANT,
    DirectoryUser,
    EventType,
    FeedPath,
    NotificationModule,
    Priority,
    QueueRecord,
    RecipientNotification,
)
from notification_center.infrastructure.repositories import (
    DirectoryRepository,
    NotificationQueueRepository,
    NotificationRepository,
)


def _notification(tenant, recipient_id: str) -> RecipientNotification:
    return RecipientNotification(
        id=None,
        recipient_id=recipient_id,
        title="Turno sin salida",
        body="Falta registrar la salida del turno nocturno.",
        module=NotificationModule.STAFF,
        event_type=EventType.STAFF_SHIFT_MISSING_CHECKOUT,
        priority=Priority.MEDIUM,
        source_event_id="event-1",
        tenant_context=tenant,
        created_by="admin-1",
    )


def test_directory_upsert_updates_existing_member(session_factory, tenant) -> None:
    with session_factory() as session:
        repository = DirectoryRepository(session)
        created = repository.upsert(
            DirectoryUser(uid="u-1", client_id="client-1", condominium_id="condo-1", role=ROLE_ADMIN_ASSISTANT)
        )
        updated = repository.upsert(
            DirectoryUser(
                uid="u-1", client_id="client-1", condominium_id="condo-1", role=ROLE_ADMIN, name="Luis"
            )
        )
        members = repository.list_for_tenant(tenant)

    assert created.id == updated.id
    assert [(member.uid, member.role, member.name) for member in members] == [("u-1", ROLE_ADMIN, "Luis")]


def test_create_many_rejects_oversized_batches(session_factory, tenant) -> None:
    with session_factory() as session:
        repository = NotificationRepository(session, max_batch_size=2)
        with pytest.raises(ValueError):
            repository.create_many([_notification(tenant, f"u-{index}") for index in range(3)])


def test_feed_is_scoped_to_recipient_and_tenant(session_factory, tenant, other_tenant) -> None:
    with session_factory() as session:
        repository = NotificationRepository(session)
        created = repository.create_many(
            [
                _notification(tenant, "u-1"),
                _notification(tenant, "u-2"),
                _notification(other_tenant, "u-1"),
            ]
        )

        feed = repository.list_for_feed(FeedPath(tenant, "u-1"))
        assert [notification.id for notification in feed] == [created[0].id]
        assert repository.count_unread(FeedPath(other_tenant, "u-1")) == 1
        assert repository.get(FeedPath(tenant, "u-2"), created[0].id) is None


def test_mark_as_read_ignores_other_feeds(session_factory, tenant) -> None:
    with session_factory() as session:
        repository = NotificationRepository(session)
        created = repository.create_many([_notification(tenant, "u-1"), _notification(tenant, "u-2")])

        changed = repository.mark_as_read(FeedPath(tenant, "u-1"), [created[1].id, created[0].id])

        assert changed == 1
        assert repository.count_unread(FeedPath(tenant, "u-2")) == 1


def test_queue_is_found_by_its_source_event(session_factory, tenant) -> None:
    queue = QueueRecord(
        id=None,
        source_event_id="event-9",
        event_type=EventType.STAFF_SHIFT_MISSING_CHECKOUT,
        module=NotificationModule.STAFF,
        priority=Priority.MEDIUM,
        channels=("in_app",),
        dedupe_key="shift:9",
        recipients=("admin-1", "assistant-1"),
        tenant_context=tenant,
        dispatched_by="admin-1",
    )

    with session_factory() as session:
        repository = NotificationQueueRepository(session)
        created = repository.create(queue)
        found = repository.get_by_source_event("event-9")
        missing = repository.get_by_source_event("event-10")

    assert found.id == created.id
    assert found.recipients == ("admin-1", "assistant-1")
    assert found.dispatched_at.tzinfo is not None
    assert missing is None
