"""Dispatch of domain events into recipient notification feeds."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, TypeVar

import anyio
from anyio import from_thread
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from notification_center.domain import catalog
from notification_center.domain.entities import (
    DEFAULT_CHANNELS,
    DispatchFailure,
    DispatchMode,
    DomainEvent,
    EventRecord,
    EventStatus,
    FailureKind,
    FeedPath,
    Identity,
    QueueRecord,
    RecipientNotification,
    TenantContext,
)
from notification_center.domain.errors import (
    DirectoryQueryFailure,
    IdentityUnavailable,
    PartialFanoutFailure,
    StorageWriteFailure,
    TenantContextMissing,
)
from notification_center.infrastructure.identity import SessionIdentityProvider
from notification_center.infrastructure.notifications import (
    DispatchFailureReporter,
    FeedSubscriptionManager,
)
from notification_center.infrastructure.repositories import (
    NotificationEventRepository,
    NotificationQueueRepository,
    NotificationRepository,
)
from notification_center.utils import now_in_app_timezone

from .audience import AudienceResolver
from .dedupe import DedupeGuard, dedupe_scope_key

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 400
DEFAULT_IDENTITY_TIMEOUT_SECONDS = 5.0

T = TypeVar("T")


class DispatchOutcome(str, Enum):
    SKIPPED = "skipped"
    DEDUPLICATED = "deduplicated"
    PENDING_DISPATCH = "pending_dispatch"
    DISPATCHED = "dispatched"
    PARTIALLY_DISPATCHED = "partially_dispatched"
    FAILED = "failed"


@dataclass(frozen=True)
class DispatchResult:
    """Summary of one emission, for callers and logs that care."""

    outcome: DispatchOutcome
    event_id: str | None = None
    queue_id: str | None = None
    recipients: tuple[str, ...] = ()
    delivered: tuple[str, ...] = ()
    failed_recipients: tuple[str, ...] = ()
    batches: int = 0


def chunked(items: Sequence[T], size: int) -> list[tuple[T, ...]]:
    """Split ``items`` into consecutive tuples of at most ``size`` elements."""

    if size <= 0:
        raise ValueError("Chunk size must be positive")
    return [tuple(items[start : start + size]) for start in range(0, len(items), size)]


class NotificationDispatcher:
    """Coordinate one domain event from emission to per-recipient fan-out.

    :meth:`emit` never raises: notification problems must not break the
    business operation that produced the event. Failures after the event
    record exists go to ``failure_reporter`` for reconciliation.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        identity_provider: SessionIdentityProvider,
        audience_resolver: AudienceResolver,
        dedupe_guard: DedupeGuard,
        feed_manager: FeedSubscriptionManager | None = None,
        failure_reporter: DispatchFailureReporter | None = None,
        dispatch_mode: DispatchMode = DispatchMode.CLIENT,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        identity_timeout: float = DEFAULT_IDENTITY_TIMEOUT_SECONDS,
    ) -> None:
        if max_batch_size <= 0:
            raise ValueError("max_batch_size must be positive")
        self._session_factory = session_factory
        self._identity_provider = identity_provider
        self._audience_resolver = audience_resolver
        self._dedupe_guard = dedupe_guard
        self._feed_manager = feed_manager
        self._failure_reporter = failure_reporter or DispatchFailureReporter(session_factory)
        self.dispatch_mode = DispatchMode(dispatch_mode)
        self.max_batch_size = max_batch_size
        self._identity_timeout = identity_timeout
        self._background: set[asyncio.Task] = set()
        try:
            self._loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    async def emit(self, event: DomainEvent) -> DispatchResult:
        """Run the full pipeline for ``event`` and describe what happened."""

        self._loop = asyncio.get_running_loop()
        try:
            return await self._emit(event)
        except Exception:
            logger.exception("Unexpected error emitting %s (%s)", event.event_type, event.dedupe_key)
            return DispatchResult(DispatchOutcome.FAILED)

    def schedule(self, event: DomainEvent) -> None:
        """Emit ``event`` without waiting for the outcome.

        Safe to call from the event loop, from an AnyIO worker thread or from
        any other thread once the dispatcher has seen its loop. Events that
        cannot reach a loop are logged and dropped.
        """

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self._start_emit(event)
            return

        try:
            from_thread.run_sync(self._start_emit, event)
            return
        except RuntimeError:
            pass

        loop = self._loop
        try:
            if loop is None or loop.is_closed():
                raise RuntimeError("no event loop available")
            loop.call_soon_threadsafe(self._start_emit, event)
        except RuntimeError as exc:
            logger.warning("Dropping %s (%s): %s", event.event_type, event.dedupe_key, exc)

    def _start_emit(self, event: DomainEvent) -> None:
        task = asyncio.get_running_loop().create_task(self.emit(event))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for every emission started by :meth:`schedule`."""

        while self._background:
            await asyncio.gather(*list(self._background))

    async def _emit(self, event: DomainEvent) -> DispatchResult:
        try:
            identity = await self._identity_provider.wait_for_identity(self._identity_timeout)
            tenant_context = self._resolve_tenant(event, identity)
        except (IdentityUnavailable, TenantContextMissing) as exc:
            logger.debug("Skipping %s: %s", event.event_type, exc)
            return DispatchResult(DispatchOutcome.SKIPPED)

        scope_key = dedupe_scope_key(tenant_context, event.dedupe_key)
        if self._dedupe_guard.should_skip(scope_key):
            logger.debug("Duplicate emission suppressed for %s", scope_key)
            return DispatchResult(DispatchOutcome.DEDUPLICATED)

        entry = catalog.lookup(event.event_type)
        record = EventRecord(
            id=None,
            event_type=entry.event_type,
            module=event.module or entry.module,
            priority=event.priority or entry.default_priority,
            title=event.title,
            body=event.body,
            dedupe_key=event.dedupe_key,
            channels=tuple(event.channels or DEFAULT_CHANNELS),
            audience=event.audience or entry.default_audience,
            entity_id=event.entity_id or "",
            entity_type=event.entity_type or "",
            metadata=dict(event.metadata or {}),
            status=(
                EventStatus.PENDING_DISPATCH
                if self.dispatch_mode is DispatchMode.SERVER
                else EventStatus.EMITTED
            ),
            tenant_context=tenant_context,
            created_by=identity.user_id,
            created_by_name=identity.author_name,
            created_at=now_in_app_timezone(),
        )

        try:
            record = await anyio.to_thread.run_sync(self._persist_event, record)
        except StorageWriteFailure as exc:
            self._dedupe_guard.forget(scope_key)
            await self._report(FailureKind.STORAGE_WRITE, str(exc), record)
            return DispatchResult(DispatchOutcome.FAILED)

        if self.dispatch_mode is DispatchMode.SERVER:
            logger.info("Event %s (%s) left pending for server dispatch", record.id, record.event_type.value)
            return DispatchResult(DispatchOutcome.PENDING_DISPATCH, event_id=record.id)

        try:
            recipients = await self._audience_resolver.resolve(
                tenant_context, identity.user_id, record.audience
            )
        except DirectoryQueryFailure as exc:
            await self._report(FailureKind.DIRECTORY_QUERY, str(exc), record)
            return DispatchResult(DispatchOutcome.FAILED, event_id=record.id)

        queue = QueueRecord(
            id=None,
            source_event_id=record.id,
            event_type=record.event_type,
            module=record.module,
            priority=record.priority,
            channels=record.channels,
            dedupe_key=record.dedupe_key,
            recipients=recipients,
            tenant_context=tenant_context,
            dispatched_by=identity.user_id,
        )
        try:
            queue = await anyio.to_thread.run_sync(self._persist_queue, queue)
        except StorageWriteFailure as exc:
            await self._report(FailureKind.STORAGE_WRITE, str(exc), record, recipients=recipients)
            return DispatchResult(
                DispatchOutcome.FAILED,
                event_id=record.id,
                recipients=recipients,
                failed_recipients=recipients,
            )

        return await self._fan_out(record, queue)

    async def _fan_out(self, record: EventRecord, queue: QueueRecord) -> DispatchResult:
        delivered: list[str] = []
        failed: list[str] = []
        committed = 0
        batches = chunked(queue.recipients, self.max_batch_size)
        created_at = now_in_app_timezone()

        for index, batch in enumerate(batches, start=1):
            notifications = [
                self._build_notification(record, queue, recipient_id, created_at)
                for recipient_id in batch
            ]
            try:
                await anyio.to_thread.run_sync(self._write_batch, notifications)
            except StorageWriteFailure as exc:
                logger.error(
                    "Fan-out batch %d/%d of queue %s failed: %s", index, len(batches), queue.id, exc
                )
                failed.extend(batch)
                continue

            delivered.extend(batch)
            committed += 1
            if self._feed_manager is not None:
                await self._feed_manager.publish_many(
                    FeedPath(queue.tenant_context, recipient_id) for recipient_id in batch
                )

        if failed:
            error = PartialFanoutFailure(queue.id, failed)
            await self._report(
                FailureKind.PARTIAL_FANOUT, str(error), record, queue_id=queue.id, recipients=failed
            )
            outcome = DispatchOutcome.PARTIALLY_DISPATCHED if delivered else DispatchOutcome.FAILED
        else:
            outcome = DispatchOutcome.DISPATCHED
            logger.info(
                "Event %s (%s) dispatched to %d recipients in %d batches",
                record.id,
                record.event_type.value,
                len(delivered),
                len(batches),
            )

        return DispatchResult(
            outcome,
            event_id=record.id,
            queue_id=queue.id,
            recipients=queue.recipients,
            delivered=tuple(delivered),
            failed_recipients=tuple(failed),
            batches=committed,
        )

    @staticmethod
    def _resolve_tenant(event: DomainEvent, identity: Identity) -> TenantContext:
        tenant_context = event.tenant_context or identity.tenant_context
        if tenant_context is None or not tenant_context.client_id or not tenant_context.condominium_id:
            raise TenantContextMissing()
        return tenant_context

    @staticmethod
    def _build_notification(
        record: EventRecord, queue: QueueRecord, recipient_id: str, created_at
    ) -> RecipientNotification:
        return RecipientNotification(
            id=None,
            recipient_id=recipient_id,
            title=record.title,
            body=record.body,
            module=record.module,
            event_type=record.event_type,
            priority=record.priority,
            source_event_id=record.id,
            source_queue_id=queue.id,
            tenant_context=record.tenant_context,
            created_by=record.created_by,
            entity_id=record.entity_id,
            entity_type=record.entity_type,
            metadata=dict(record.metadata),
            read=False,
            read_at=None,
            created_at=created_at,
        )

    def _persist_event(self, record: EventRecord) -> EventRecord:
        try:
            with self._session_factory() as session:
                return NotificationEventRepository(session).create(record)
        except SQLAlchemyError as exc:
            raise StorageWriteFailure(f"Could not store event {record.event_type.value}: {exc}") from exc

    def _persist_queue(self, queue: QueueRecord) -> QueueRecord:
        try:
            with self._session_factory() as session:
                return NotificationQueueRepository(session).create(queue)
        except SQLAlchemyError as exc:
            raise StorageWriteFailure(f"Could not store queue for event {queue.source_event_id}: {exc}") from exc

    def _write_batch(self, notifications: list[RecipientNotification]) -> None:
        try:
            with self._session_factory() as session:
                NotificationRepository(session, max_batch_size=self.max_batch_size).create_many(
                    notifications
                )
        except SQLAlchemyError as exc:
            raise StorageWriteFailure(f"Could not commit {len(notifications)} notifications: {exc}") from exc

    async def _report(
        self,
        kind: FailureKind,
        detail: str,
        record: EventRecord,
        *,
        queue_id: str | None = None,
        recipients: Sequence[str] = (),
    ) -> None:
        await self._failure_reporter.report(
            DispatchFailure(
                id=None,
                kind=kind,
                detail=detail,
                client_id=record.tenant_context.client_id,
                condominium_id=record.tenant_context.condominium_id,
                event_type=record.event_type.value,
                source_event_id=record.id,
                source_queue_id=queue_id,
                recipients=list(recipients),
            )
        )


__all__ = [
    "DEFAULT_IDENTITY_TIMEOUT_SECONDS",
    "DEFAULT_MAX_BATCH_SIZE",
    "DispatchOutcome",
    "DispatchResult",
    "NotificationDispatcher",
    "chunked",
]
