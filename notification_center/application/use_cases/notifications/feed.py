"""Recipient side view over a live notification feed."""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Sequence

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from notification_center.domain.entities import (
    FeedPath,
    RecipientNotification,
    TenantContext,
)
from notification_center.domain.errors import IdentityUnavailable, StorageWriteFailure
from notification_center.infrastructure.identity import SessionIdentityProvider
from notification_center.infrastructure.notifications import (
    FeedSubscription,
    FeedSubscriptionManager,
)
from notification_center.infrastructure.repositories import NotificationRepository

from .dispatch import DEFAULT_IDENTITY_TIMEOUT_SECONDS, DEFAULT_MAX_BATCH_SIZE, chunked

logger = logging.getLogger(__name__)

FEED_UNAVAILABLE_MESSAGE = "No fue posible cargar las notificaciones"


class FeedState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SUBSCRIBED = "subscribed"


class NotificationFeedStore:
    """Hold the live notification list of the signed-in recipient.

    The store owns at most one :class:`FeedSubscription`. Connecting to a
    different tenant closes the previous subscription before opening the new
    one, and every snapshot replaces the cached list entirely.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        identity_provider: SessionIdentityProvider,
        feed_manager: FeedSubscriptionManager,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        identity_timeout: float = DEFAULT_IDENTITY_TIMEOUT_SECONDS,
        on_change: Callable[["NotificationFeedStore"], Any] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._identity_provider = identity_provider
        self._feed_manager = feed_manager
        self.max_batch_size = max_batch_size
        self._identity_timeout = identity_timeout
        self._on_change = on_change
        self._lock = anyio.Lock()
        self._subscription: FeedSubscription | None = None
        self._notifications: list[RecipientNotification] = []
        self.state = FeedState.UNINITIALIZED
        self.error: str | None = None

    async def __aenter__(self) -> "NotificationFeedStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    @property
    def notifications(self) -> list[RecipientNotification]:
        return list(self._notifications)

    @property
    def unread(self) -> list[RecipientNotification]:
        return [notification for notification in self._notifications if not notification.read]

    @property
    def unread_count(self) -> int:
        return sum(1 for notification in self._notifications if not notification.read)

    @property
    def subscription(self) -> FeedSubscription | None:
        return self._subscription

    @property
    def feed_path(self) -> FeedPath | None:
        return self._subscription.path if self._subscription is not None else None

    async def connect(self, tenant_context: TenantContext | None = None) -> FeedSubscription | None:
        """Subscribe to the recipient's feed under ``tenant_context``.

        Falls back to the session tenant. Returns ``None`` without touching
        the current subscription when no identity or tenant is available.
        """

        async with self._lock:
            try:
                identity = await self._identity_provider.wait_for_identity(self._identity_timeout)
            except IdentityUnavailable:
                logger.debug("Feed connect skipped: no authenticated session")
                return None

            context = tenant_context or identity.tenant_context
            if context is None:
                logger.debug("Feed connect skipped: tenant context missing for %s", identity.user_id)
                return None

            path = FeedPath(context, identity.user_id)
            current = self._subscription
            if current is not None and current.active and current.path == path:
                return current

            self._release()
            self._subscription = await self._feed_manager.subscribe(
                path, self._apply_snapshot, self._apply_error
            )
            self.state = FeedState.SUBSCRIBED
            logger.debug("Feed subscribed to %s", path)
            return self._subscription

    async def disconnect(self) -> None:
        async with self._lock:
            self._release()

    async def mark_as_read(self, notification_id: str) -> bool:
        """Mark one notification as read; ``False`` when nothing changed."""

        path = self._connected_path()
        if path is None:
            return False
        changed = await self._mark(path, [notification_id])
        if changed:
            await self._feed_manager.publish(path)
        return changed > 0

    async def mark_all_as_read(self) -> int:
        """Mark every cached unread notification as read, batch by batch."""

        path = self._connected_path()
        if path is None:
            return 0
        unread_ids = [notification.id for notification in self.unread if notification.id]
        if not unread_ids:
            return 0

        changed = 0
        for batch in chunked(unread_ids, self.max_batch_size):
            changed += await self._mark(path, batch)
        await self._feed_manager.publish(path)
        return changed

    def _connected_path(self) -> FeedPath | None:
        if self._subscription is None or not self._subscription.active:
            logger.warning("Notification feed is not connected")
            return None
        return self._subscription.path

    async def _mark(self, path: FeedPath, notification_ids: Sequence[str]) -> int:
        try:
            return await anyio.to_thread.run_sync(self._update_read_state, path, list(notification_ids))
        except SQLAlchemyError as exc:
            raise StorageWriteFailure(f"Could not update read state in {path}: {exc}") from exc

    def _update_read_state(self, path: FeedPath, notification_ids: list[str]) -> int:
        with self._session_factory() as session:
            repository = NotificationRepository(session, max_batch_size=self.max_batch_size)
            return repository.mark_as_read(path, notification_ids)

    def _release(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            logger.debug("Feed subscription to %s released", self._subscription.path)
        self._subscription = None
        self._notifications = []
        self.state = FeedState.UNINITIALIZED
        self.error = None

    async def _apply_snapshot(self, snapshot: list[RecipientNotification]) -> None:
        self._notifications = list(snapshot)
        self.error = None
        await self._changed()

    async def _apply_error(self, error: Exception) -> None:
        logger.warning("Notification feed subscription error: %s", error)
        self.error = FEED_UNAVAILABLE_MESSAGE
        await self._changed()

    async def _changed(self) -> None:
        if self._on_change is None:
            return
        result = self._on_change(self)
        if inspect.isawaitable(result):
            await result


__all__ = ["FEED_UNAVAILABLE_MESSAGE", "FeedState", "NotificationFeedStore"]
