"""Repository implementations for infrastructure layer."""

from .directory_repository import DirectoryRepository
from .dispatch_failure_repository import DispatchFailureRepository
from .notification_event_repository import NotificationEventRepository
from .notification_queue_repository import NotificationQueueRepository
from .notification_repository import NotificationRepository

__all__ = [
    "DirectoryRepository",
    "DispatchFailureRepository",
    "NotificationEventRepository",
    "NotificationQueueRepository",
    "NotificationRepository",
]
