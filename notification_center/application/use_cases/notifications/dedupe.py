"""Process-local suppression of repeated domain event emissions."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable

from notification_center.domain.entities import TenantContext

DEFAULT_DEDUPE_WINDOW_SECONDS = 15.0


def dedupe_scope_key(tenant_context: TenantContext, dedupe_key: str) -> str:
    return f"{tenant_context.scope_key}:{dedupe_key}"


class DedupeGuard:
    """Drop emissions whose scope key was accepted less than ``window`` ago.

    The guard only sees emissions made by this process. Several instances of
    the service each keep their own map, so a burst spread across instances
    is not collapsed. Keys whose window has elapsed are evicted on every
    check, so the map only holds keys accepted within the last window.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_DEDUPE_WINDOW_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        # Oldest acceptance first.
        self._last_accepted: OrderedDict[str, float] = OrderedDict()

    def __len__(self) -> int:
        return len(self._last_accepted)

    def should_skip(self, scope_key: str) -> bool:
        """Return ``True`` when ``scope_key`` is still inside its window.

        A skipped call leaves the stored timestamp untouched; an accepted call
        records the current time.
        """

        now = self._clock()
        self._evict_expired(now)
        if scope_key in self._last_accepted:
            return True
        self._last_accepted[scope_key] = now
        return False

    def forget(self, scope_key: str) -> None:
        self._last_accepted.pop(scope_key, None)

    def _evict_expired(self, now: float) -> None:
        while self._last_accepted:
            oldest_key, accepted_at = next(iter(self._last_accepted.items()))
            if now - accepted_at < self.window_seconds:
                break
            del self._last_accepted[oldest_key]


__all__ = ["DEFAULT_DEDUPE_WINDOW_SECONDS", "DedupeGuard", "dedupe_scope_key"]
