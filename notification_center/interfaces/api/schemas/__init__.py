from .notification import MarkAllReadResponse, NotificationFeedRead, NotificationRead
from .notification_event import (
    CatalogEntryRead,
    DispatchAccepted,
    DispatchFailureRead,
    DomainEventCreate,
    EventRecordRead,
)

__all__ = [
    "CatalogEntryRead",
    "DispatchAccepted",
    "DispatchFailureRead",
    "DomainEventCreate",
    "EventRecordRead",
    "MarkAllReadResponse",
    "NotificationFeedRead",
    "NotificationRead",
]
