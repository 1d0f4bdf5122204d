"""Domain events emitted by business modules and their persisted records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .audience import AudienceSpec
from .identity import TenantContext

CHANNEL_IN_APP = "in_app"
DEFAULT_CHANNELS: tuple[str, ...] = (CHANNEL_IN_APP,)
QUEUE_STATUS_DISPATCHED = "dispatched"


class NotificationModule(str, Enum):
    """Business module that originates a notification."""

    INVENTORY = "inventory"
    MAINTENANCE = "maintenance"
    STAFF = "staff"
    PROJECTS = "projects"
    FINANCE = "finance"
    SYSTEM = "system"


class Priority(str, Enum):
    """Display priority of a notification, ``critical`` being the highest."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EventType(str, Enum):
    """Closed set of domain conditions that can be notified."""

    INVENTORY_LOW_STOCK = "inventory.low_stock"
    INVENTORY_OUT_OF_STOCK = "inventory.out_of_stock"
    MAINTENANCE_TICKET_CREATED = "maintenance.ticket_created"
    MAINTENANCE_TICKET_HIGH_PRIORITY = "maintenance.ticket_high_priority"
    MAINTENANCE_APPOINTMENT_24H = "maintenance.appointment_24h"
    STAFF_EMPLOYEE_STATUS_ALERT = "staff.employee_status_alert"
    STAFF_SHIFT_MISSING_CHECKOUT = "staff.shift_missing_checkout"
    STAFF_DOCUMENT_EXPIRING = "staff.document_expiring"
    FINANCE_PETTY_CASH_LOW_THRESHOLD = "finance.petty_cash_low_threshold"
    FINANCE_RECONCILIATION_NET_DIFFERENCE = "finance.reconciliation_net_difference"
    FINANCE_EXPENSE_OUTLIER = "finance.expense_outlier"
    FINANCE_INVOICE_PENDING_PAYMENT = "finance.invoice_pending_payment"
    PROJECTS_EXPENSE_MOVEMENT_REGISTERED = "projects.expense_movement_registered"
    PROJECTS_TASK_OVERDUE = "projects.task_overdue"
    PROJECTS_DEPENDENCY_BLOCKED = "projects.dependency_blocked"
    PROJECTS_SCHEDULE_DEVIATION = "projects.schedule_deviation"
    PROJECTS_COST_DEVIATION = "projects.cost_deviation"


class DispatchMode(str, Enum):
    """Deployment level switch deciding who performs the fan-out."""

    CLIENT = "client"
    SERVER = "server"


class EventStatus(str, Enum):
    """Terminal state assigned to an :class:`EventRecord` when it is written."""

    PENDING_DISPATCH = "pending_dispatch"
    EMITTED = "emitted"


@dataclass(frozen=True)
class DomainEvent:
    """Notification request built by a business module.

    ``module``, ``priority``, ``audience`` and ``channels`` are optional and
    fall back to the catalog entry of ``event_type`` (``channels`` falls back
    to in-app only). ``tenant_context`` overrides the session's tenant.
    """

    event_type: EventType
    dedupe_key: str
    title: str
    body: str
    module: NotificationModule | None = None
    priority: Priority | None = None
    audience: AudienceSpec | None = None
    channels: tuple[str, ...] | None = None
    entity_id: str | None = None
    entity_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    tenant_context: TenantContext | None = None


@dataclass
class EventRecord:
    """Persisted trace of a domain event that passed deduplication."""

    id: str | None
    event_type: EventType
    module: NotificationModule
    priority: Priority
    title: str
    body: str
    dedupe_key: str
    channels: tuple[str, ...]
    audience: AudienceSpec
    entity_id: str
    entity_type: str
    metadata: dict[str, Any]
    status: EventStatus
    tenant_context: TenantContext
    created_by: str
    created_by_name: str
    created_at: datetime | None = None


@dataclass
class QueueRecord:
    """Snapshot of the recipients an event was fanned out to."""

    id: str | None
    source_event_id: str
    event_type: EventType
    module: NotificationModule
    priority: Priority
    channels: tuple[str, ...]
    dedupe_key: str
    recipients: tuple[str, ...]
    tenant_context: TenantContext
    dispatched_by: str
    status: str = QUEUE_STATUS_DISPATCHED
    created_at: datetime | None = None
    dispatched_at: datetime | None = None

    @property
    def recipients_count(self) -> int:
        return len(self.recipients)


__all__ = [
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
]
