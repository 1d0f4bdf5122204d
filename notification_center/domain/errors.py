"""Error types raised along the notification pipeline."""

from __future__ import annotations

from typing import Sequence


class NotificationError(Exception):
    """Base class for notification pipeline errors."""


class IdentityUnavailable(NotificationError):
    """No authenticated session became available in time."""

    def __init__(self, message: str = "No authenticated session") -> None:
        super().__init__(message)


class TenantContextMissing(NotificationError):
    """The client or condominium of the session could not be determined."""

    def __init__(self, message: str = "Tenant context is incomplete") -> None:
        super().__init__(message)


class DirectoryQueryFailure(NotificationError):
    """The user directory could not be queried."""


class StorageWriteFailure(NotificationError):
    """A document could not be written to the store."""


class PartialFanoutFailure(NotificationError):
    """Some fan-out chunks failed after others were committed."""

    def __init__(self, queue_id: str | None, failed_recipients: Sequence[str]) -> None:
        self.queue_id = queue_id
        self.failed_recipients = list(failed_recipients)
        super().__init__(
            f"Fan-out for queue {queue_id} failed for {len(self.failed_recipients)} recipients"
        )


__all__ = [
    "DirectoryQueryFailure",
    "IdentityUnavailable",
    "NotificationError",
    "PartialFanoutFailure",
    "StorageWriteFailure",
    "TenantContextMissing",
]
