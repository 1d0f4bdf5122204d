"""ORM models used by the application infrastructure."""

from .directory_user import DirectoryUserModel
from .dispatch_failure import DispatchFailureModel
from .notification import UserNotificationModel
from .notification_event import NotificationEventModel
from .notification_queue import NotificationQueueModel

__all__ = [
    "DirectoryUserModel",
    "DispatchFailureModel",
    "NotificationEventModel",
    "NotificationQueueModel",
    "UserNotificationModel",
]
