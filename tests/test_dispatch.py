"""Tests for the dispatch coordinator."""

from __future__ import annotations

import logging
import math
import threading

import anyio
import pytest

from notification_center.application.use_cases.notifications import (
    AudienceResolver,
    DispatchOutcome,
    chunked,
)
from notification_center.domain.entities import (
    DispatchMode,
    DomainEvent,
    EventStatus,
    EventType,
    FailureKind,
    FeedPath,
    Identity,
    Priority,
    SpecificUsers,
)
from notification_center.domain.errors import DirectoryQueryFailure, StorageWriteFailure
from notification_center.infrastructure.models import (
    DispatchFailureModel,
    NotificationEventModel,
    NotificationQueueModel,
    UserNotificationModel,
)
from notification_center.infrastructure.repositories import (
    DispatchFailureRepository,
    NotificationEventRepository,
    NotificationQueueRepository,
    NotificationRepository,
)

pytestmark = pytest.mark.anyio


def _invoice_event(**overrides) -> DomainEvent:
    values = {
        "event_type": EventType.FINANCE_INVOICE_PENDING_PAYMENT,
        "dedupe_key": "invoice:INV-001",
        "title": "Factura pendiente",
        "body": "La factura INV-001 está pendiente de pago.",
        "entity_id": "INV-001",
        "entity_type": "invoice",
        "metadata": {"amount": 1520.5},
    }
    values.update(overrides)
    return DomainEvent(**values)


def _count(session_factory, model) -> int:
    with session_factory() as session:
        return session.query(model).count()


def _feed(session_factory, tenant, recipient_id):
    with session_factory() as session:
        return NotificationRepository(session).list_for_feed(FeedPath(tenant, recipient_id))


def test_chunked_respects_limit() -> None:
    recipients = [f"user-{index}" for index in range(1001)]

    batches = chunked(recipients, 400)

    assert len(batches) == math.ceil(1001 / 400)
    assert all(len(batch) <= 400 for batch in batches)
    assert [recipient for batch in batches for recipient in batch] == recipients


def test_chunked_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        chunked(["a"], 0)


async def test_invoice_event_fans_out_to_admins_and_assistants(
    make_dispatcher, session_factory, default_members, tenant
) -> None:
    """Two admins and one assistant receive one unread notification each."""

    result = await make_dispatcher().emit(_invoice_event())

    assert result.outcome is DispatchOutcome.DISPATCHED
    assert result.recipients == ("admin-1", "admin-2", "assistant-1")
    assert result.batches == 1
    assert _count(session_factory, NotificationEventModel) == 1
    assert _count(session_factory, NotificationQueueModel) == 1

    with session_factory() as session:
        record = NotificationEventRepository(session).get(result.event_id)
        queue = NotificationQueueRepository(session).get_by_source_event(result.event_id)

    assert record.status is EventStatus.EMITTED
    assert record.priority is Priority.CRITICAL
    assert record.channels == ("in_app",)
    assert record.created_by == "admin-1"
    assert record.created_by_name == "Ana Administradora"
    assert queue.id == result.queue_id
    assert queue.recipients == ("admin-1", "admin-2", "assistant-1")
    assert queue.recipients_count == 3
    assert queue.status == "dispatched"

    for recipient_id in queue.recipients:
        feed = _feed(session_factory, tenant, recipient_id)
        assert len(feed) == 1
        assert feed[0].read is False
        assert feed[0].read_at is None
        assert feed[0].source_event_id == result.event_id
        assert feed[0].source_queue_id == result.queue_id
        assert feed[0].metadata == {"amount": 1520.5}


async def test_duplicate_emission_within_window_is_suppressed(
    make_dispatcher, session_factory, default_members, clock
) -> None:
    dispatcher = make_dispatcher()

    first = await dispatcher.emit(_invoice_event())
    clock.advance(1)
    second = await dispatcher.emit(_invoice_event())

    assert first.outcome is DispatchOutcome.DISPATCHED
    assert second.outcome is DispatchOutcome.DEDUPLICATED
    assert _count(session_factory, NotificationEventModel) == 1
    assert _count(session_factory, UserNotificationModel) == 3


async def test_emission_after_window_is_recorded_again(
    make_dispatcher, session_factory, default_members, clock
) -> None:
    dispatcher = make_dispatcher()

    await dispatcher.emit(_invoice_event())
    clock.advance(16)
    second = await dispatcher.emit(_invoice_event())

    assert second.outcome is DispatchOutcome.DISPATCHED
    assert _count(session_factory, NotificationEventModel) == 2


async def test_recipients_are_written_in_bounded_batches(
    make_dispatcher, session_factory, tenant
) -> None:
    audience = SpecificUsers.of([f"user-{index}" for index in range(5)])
    dispatcher = make_dispatcher(max_batch_size=2)

    result = await dispatcher.emit(_invoice_event(audience=audience))

    assert result.outcome is DispatchOutcome.DISPATCHED
    assert result.batches == 3
    assert set(result.delivered) == set(audience.user_ids)
    for recipient_id in audience.user_ids:
        assert len(_feed(session_factory, tenant, recipient_id)) == 1


async def test_failed_batch_is_reported_and_others_committed(
    make_dispatcher, session_factory, tenant, monkeypatch
) -> None:
    audience = SpecificUsers.of([f"user-{index}" for index in range(5)])
    dispatcher = make_dispatcher(max_batch_size=2)
    write_batch = dispatcher._write_batch
    calls = []

    def flaky_write(notifications):
        calls.append(len(notifications))
        if len(calls) == 2:
            raise StorageWriteFailure("batch rejected")
        write_batch(notifications)

    monkeypatch.setattr(dispatcher, "_write_batch", flaky_write)

    result = await dispatcher.emit(_invoice_event(audience=audience))

    assert calls == [2, 2, 1]
    assert result.outcome is DispatchOutcome.PARTIALLY_DISPATCHED
    assert result.failed_recipients == ("user-2", "user-3")
    assert result.delivered == ("user-0", "user-1", "user-4")
    assert result.batches == 2
    assert _count(session_factory, UserNotificationModel) == 3
    assert _feed(session_factory, tenant, "user-2") == []

    with session_factory() as session:
        failures = DispatchFailureRepository(session).list()
    assert len(failures) == 1
    assert failures[0].kind is FailureKind.PARTIAL_FANOUT
    assert failures[0].source_queue_id == result.queue_id
    assert failures[0].recipients == ["user-2", "user-3"]


async def test_server_mode_leaves_event_pending(make_dispatcher, session_factory, default_members) -> None:
    dispatcher = make_dispatcher(dispatch_mode=DispatchMode.SERVER)

    result = await dispatcher.emit(_invoice_event())

    assert result.outcome is DispatchOutcome.PENDING_DISPATCH
    with session_factory() as session:
        record = NotificationEventRepository(session).get(result.event_id)
    assert record.status is EventStatus.PENDING_DISPATCH
    assert _count(session_factory, NotificationQueueModel) == 0
    assert _count(session_factory, UserNotificationModel) == 0


async def test_missing_identity_aborts_silently(make_dispatcher, session_factory) -> None:
    result = await make_dispatcher(identity=None).emit(_invoice_event())

    assert result.outcome is DispatchOutcome.SKIPPED
    assert _count(session_factory, NotificationEventModel) == 0


async def test_missing_tenant_aborts_silently(make_dispatcher, session_factory) -> None:
    identity = Identity(user_id="admin-1", client_id="client-1")

    result = await make_dispatcher(identity=identity).emit(_invoice_event())

    assert result.outcome is DispatchOutcome.SKIPPED
    assert _count(session_factory, NotificationEventModel) == 0


async def test_event_context_overrides_session_tenant(
    make_dispatcher, session_factory, seed_directory, other_tenant
) -> None:
    seed_directory([("admin-9", "admin")], other_tenant)

    result = await make_dispatcher().emit(_invoice_event(tenant_context=other_tenant))

    assert result.recipients == ("admin-9",)
    assert len(_feed(session_factory, other_tenant, "admin-9")) == 1


async def test_author_name_falls_back_to_email_then_default(make_dispatcher, session_factory) -> None:
    identity = Identity(user_id="u-1", email="u1@example.com", client_id="client-1", condominium_id="condo-1")
    anonymous = Identity(user_id="u-2", client_id="client-1", condominium_id="condo-1")

    first = await make_dispatcher(identity=identity).emit(_invoice_event(dedupe_key="a"))
    second = await make_dispatcher(identity=anonymous).emit(_invoice_event(dedupe_key="b"))

    with session_factory() as session:
        repository = NotificationEventRepository(session)
        assert repository.get(first.event_id).created_by_name == "u1@example.com"
        assert repository.get(second.event_id).created_by_name == "Usuario"


async def test_empty_audience_notifies_actor(make_dispatcher, session_factory, tenant) -> None:
    result = await make_dispatcher().emit(_invoice_event())

    assert result.recipients == ("admin-1",)
    assert len(_feed(session_factory, tenant, "admin-1")) == 1


async def test_directory_failure_is_reported(make_dispatcher, session_factory) -> None:
    class BrokenResolver(AudienceResolver):
        async def resolve(self, tenant_context, fallback_recipient_id, audience):
            raise DirectoryQueryFailure("directory offline")

    dispatcher = make_dispatcher(audience_resolver=BrokenResolver(session_factory))

    result = await dispatcher.emit(_invoice_event())

    assert result.outcome is DispatchOutcome.FAILED
    assert _count(session_factory, NotificationEventModel) == 1
    assert _count(session_factory, NotificationQueueModel) == 0
    with session_factory() as session:
        failures = DispatchFailureRepository(session).list()
    assert [failure.kind for failure in failures] == [FailureKind.DIRECTORY_QUERY]
    assert failures[0].source_event_id == result.event_id


async def test_failed_event_write_releases_dedupe_slot(
    make_dispatcher, session_factory, monkeypatch
) -> None:
    dispatcher = make_dispatcher()
    persist_event = dispatcher._persist_event
    attempts = []

    def failing_once(record):
        attempts.append(record.dedupe_key)
        if len(attempts) == 1:
            raise StorageWriteFailure("store offline")
        return persist_event(record)

    monkeypatch.setattr(dispatcher, "_persist_event", failing_once)

    first = await dispatcher.emit(_invoice_event())
    second = await dispatcher.emit(_invoice_event())

    assert first.outcome is DispatchOutcome.FAILED
    assert second.outcome is DispatchOutcome.DISPATCHED
    assert _count(session_factory, NotificationEventModel) == 1
    assert _count(session_factory, DispatchFailureModel) == 1


async def test_unexpected_errors_never_reach_the_caller(make_dispatcher, session_factory) -> None:
    class ExplodingResolver(AudienceResolver):
        async def resolve(self, tenant_context, fallback_recipient_id, audience):
            raise RuntimeError("boom")

    dispatcher = make_dispatcher(audience_resolver=ExplodingResolver(session_factory))

    result = await dispatcher.emit(_invoice_event())

    assert result.outcome is DispatchOutcome.FAILED


async def test_scheduled_emission_runs_in_background(make_dispatcher, session_factory, default_members) -> None:
    dispatcher = make_dispatcher()

    dispatcher.schedule(_invoice_event())
    await dispatcher.drain()

    assert _count(session_factory, UserNotificationModel) == 3


async def test_schedule_from_worker_thread_runs_on_event_loop(
    make_dispatcher, session_factory, default_members
) -> None:
    dispatcher = make_dispatcher()

    await anyio.to_thread.run_sync(dispatcher.schedule, _invoice_event())

    await dispatcher.drain()

    assert _count(session_factory, UserNotificationModel) == 3


async def test_schedule_from_plain_thread_uses_dispatcher_loop(
    make_dispatcher, session_factory, default_members
) -> None:
    dispatcher = make_dispatcher()
    errors: list[BaseException] = []

    def call_schedule() -> None:
        try:
            dispatcher.schedule(_invoice_event())
        except BaseException as exc:
            errors.append(exc)

    worker = threading.Thread(target=call_schedule)
    worker.start()
    worker.join(timeout=1)

    await anyio.sleep(0.05)
    await dispatcher.drain()

    assert errors == []
    assert _count(session_factory, UserNotificationModel) == 3


def test_schedule_without_event_loop_drops_event(make_dispatcher, session_factory, caplog) -> None:
    dispatcher = make_dispatcher()

    with caplog.at_level(logging.WARNING):
        dispatcher.schedule(_invoice_event())

    assert "Dropping" in caplog.text
    assert _count(session_factory, NotificationEventModel) == 0


async def test_live_feed_receives_new_notification(
    make_dispatcher, feed_manager, default_members, tenant
) -> None:
    snapshots = []
    subscription = await feed_manager.subscribe(FeedPath(tenant, "admin-2"), snapshots.append)

    await make_dispatcher().emit(_invoice_event())

    assert [len(snapshot) for snapshot in snapshots] == [0, 1]
    assert snapshots[-1][0].title == "Factura pendiente"
    subscription.close()
