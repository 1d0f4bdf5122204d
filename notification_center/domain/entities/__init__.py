"""Domain entities exposed by the application."""

from .audience import (
    SCOPE_ADMINS,
    SCOPE_ADMINS_AND_ASSISTANTS,
    SCOPE_SPECIFIC_USERS,
    Admins,
    AdminsAndAssistants,
    AudienceSpec,
    SpecificUsers,
    audience_from_dict,
    audience_to_dict,
)
from .directory_user import ROLE_ADMIN, ROLE_ADMIN_ASSISTANT, DirectoryUser
from .dispatch_failure import DispatchFailure, FailureKind
from .event import (
    CHANNEL_IN_APP,
    DEFAULT_CHANNELS,
    QUEUE_STATUS_DISPATCHED,
    DispatchMode,
    DomainEvent,
    EventRecord,
    EventStatus,
    EventType,
    NotificationModule,
    Priority,
    QueueRecord,
)
from .identity import FeedPath, Identity, TenantContext
from .notification import RecipientNotification

__all__ = [
    "SCOPE_ADMINS",
    "SCOPE_ADMINS_AND_ASSISTANTS",
    "SCOPE_SPECIFIC_USERS",
    "Admins",
    "AdminsAndAssistants",
    "AudienceSpec",
    "SpecificUsers",
    "audience_from_dict",
    "audience_to_dict",
    "ROLE_ADMIN",
    "ROLE_ADMIN_ASSISTANT",
    "DirectoryUser",
    "DispatchFailure",
    "FailureKind",
    "CHANNEL_IN_APP",
    "DEFAULT_CHANNELS",
    "QUEUE_STATUS_DISPATCHED",
    "DispatchMode",
    "DomainEvent",
    "EventRecord",
    "EventStatus",
    "EventType",
    "NotificationModule",
    "Priority",
    "QueueRecord",
    "FeedPath",
    "Identity",
    "TenantContext",
    "RecipientNotification",
]
