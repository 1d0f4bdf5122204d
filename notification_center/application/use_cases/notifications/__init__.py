"""Use cases for emitting domain events and reading notification feeds."""

from .audience import AudienceResolver
from .dedupe import DEFAULT_DEDUPE_WINDOW_SECONDS, DedupeGuard, dedupe_scope_key
from .dispatch import (
    DEFAULT_IDENTITY_TIMEOUT_SECONDS,
    DEFAULT_MAX_BATCH_SIZE,
    DispatchOutcome,
    DispatchResult,
    NotificationDispatcher,
    chunked,
)
from .feed import FEED_UNAVAILABLE_MESSAGE, FeedState, NotificationFeedStore

__all__ = [
    "AudienceResolver",
    "DEFAULT_DEDUPE_WINDOW_SECONDS",
    "DEFAULT_IDENTITY_TIMEOUT_SECONDS",
    "DEFAULT_MAX_BATCH_SIZE",
    "DedupeGuard",
    "DispatchOutcome",
    "DispatchResult",
    "FEED_UNAVAILABLE_MESSAGE",
    "FeedState",
    "NotificationDispatcher",
    "NotificationFeedStore",
    "chunked",
    "dedupe_scope_key",
]
