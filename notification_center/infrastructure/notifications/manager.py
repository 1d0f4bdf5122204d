"""Live subscriptions to recipient notification feeds."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Iterable, Sequence, Set

import anyio
from sqlalchemy.orm import Session, sessionmaker

from notification_center.domain.entities import FeedPath, RecipientNotification
from notification_center.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[list[RecipientNotification]], Awaitable[None] | None]
ErrorListener = Callable[[Exception], Awaitable[None] | None]


class FeedSubscription:
    """Handle for one live subscription; closing it stops every delivery."""

    def __init__(
        self,
        manager: "FeedSubscriptionManager",
        path: FeedPath,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None,
    ) -> None:
        self.path = path
        self._manager = manager
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        """Release the subscription. Safe to call more than once."""

        if not self._active:
            return
        self._active = False
        self._manager.unsubscribe(self)

    def __enter__(self) -> "FeedSubscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    async def deliver(self, snapshot: list[RecipientNotification]) -> None:
        if self._active:
            await _call(self._on_snapshot, snapshot)

    async def fail(self, error: Exception) -> None:
        if self._active and self._on_error is not None:
            await _call(self._on_error, error)


class FeedSubscriptionManager:
    """Manage live feed subscriptions grouped by feed path.

    Every change published for a path reloads the most recent ``feed_limit``
    notifications once and hands the full list to each subscriber.
    """

    def __init__(self, session_factory: sessionmaker[Session], *, feed_limit: int = 100) -> None:
        self._session_factory = session_factory
        self._feed_limit = feed_limit
        self._subscriptions: DefaultDict[FeedPath, Set[FeedSubscription]] = defaultdict(set)

    async def subscribe(
        self,
        path: FeedPath,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> FeedSubscription:
        """Register a subscription for ``path`` and deliver its first snapshot."""

        subscription = FeedSubscription(self, path, on_snapshot, on_error)
        self._subscriptions[path].add(subscription)
        await self._publish_to(path, [subscription])
        return subscription

    def unsubscribe(self, subscription: FeedSubscription) -> None:
        """Remove ``subscription`` from the pool of its path."""

        subscriptions = self._subscriptions.get(subscription.path)
        if subscriptions is None:
            return
        subscriptions.discard(subscription)
        if not subscriptions:
            self._subscriptions.pop(subscription.path, None)
        if subscription.active:
            subscription.close()

    def live_subscriptions(self, path: FeedPath | None = None) -> list[FeedSubscription]:
        if path is not None:
            return list(self._subscriptions.get(path, ()))
        return [subscription for pool in self._subscriptions.values() for subscription in pool]

    async def publish(self, path: FeedPath) -> None:
        """Deliver the current snapshot of ``path`` to its subscribers."""

        subscriptions = list(self._subscriptions.get(path, ()))
        if subscriptions:
            await self._publish_to(path, subscriptions)

    async def publish_many(self, paths: Iterable[FeedPath]) -> None:
        for path in dict.fromkeys(paths):
            await self.publish(path)

    async def _publish_to(self, path: FeedPath, subscriptions: Sequence[FeedSubscription]) -> None:
        try:
            snapshot = await anyio.to_thread.run_sync(self._load_snapshot, path)
        except Exception as exc:
            logger.warning("Could not load notification feed %s: %s", path, exc)
            for subscription in subscriptions:
                await self._guarded(subscription, subscription.fail, exc)
            return

        for subscription in subscriptions:
            await self._guarded(subscription, subscription.deliver, list(snapshot))

    async def _guarded(self, subscription: FeedSubscription, method, argument) -> None:
        try:
            await method(argument)
        except Exception:
            logger.exception("Feed listener for %s failed; closing its subscription", subscription.path)
            subscription.close()

    def _load_snapshot(self, path: FeedPath) -> Sequence[RecipientNotification]:
        with self._session_factory() as session:
            return NotificationRepository(session).list_for_feed(path, limit=self._feed_limit)


async def _call(callback: Callable[[Any], Any], argument: Any) -> None:
    result = callback(argument)
    if inspect.isawaitable(result):
        await result


__all__ = ["FeedSubscription", "FeedSubscriptionManager"]
