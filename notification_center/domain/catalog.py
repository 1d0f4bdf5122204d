"""Static catalog describing every notifiable domain event."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .entities import (
    AdminsAndAssistants,
    AudienceSpec,
    EventType,
    NotificationModule,
    Priority,
)

_MODULE_LABELS: Mapping[NotificationModule, str] = MappingProxyType(
    {
        NotificationModule.INVENTORY: "Inventario",
        NotificationModule.MAINTENANCE: "Mantenimiento",
        NotificationModule.STAFF: "Personal",
        NotificationModule.PROJECTS: "Proyectos",
        NotificationModule.FINANCE: "Finanzas",
        NotificationModule.SYSTEM: "Sistema",
    }
)


@dataclass(frozen=True)
class CatalogEntry:
    """Defaults applied to a domain event of a given type."""

    event_type: EventType
    module: NotificationModule
    description: str
    default_priority: Priority
    default_audience: AudienceSpec

    @property
    def module_label(self) -> str:
        return _MODULE_LABELS[self.module]


def _entry(
    event_type: EventType,
    module: NotificationModule,
    description: str,
    priority: Priority,
    audience: AudienceSpec | None = None,
) -> tuple[EventType, CatalogEntry]:
    return event_type, CatalogEntry(
        event_type=event_type,
        module=module,
        description=description,
        default_priority=priority,
        default_audience=audience or AdminsAndAssistants(),
    )


NOTIFICATION_EVENT_CATALOG: Mapping[EventType, CatalogEntry] = MappingProxyType(
    dict(
        [
            _entry(
                EventType.INVENTORY_LOW_STOCK,
                NotificationModule.INVENTORY,
                "Item con stock por debajo del mínimo configurado.",
                Priority.HIGH,
            ),
            _entry(
                EventType.INVENTORY_OUT_OF_STOCK,
                NotificationModule.INVENTORY,
                "Item sin existencias (stock en 0).",
                Priority.CRITICAL,
            ),
            _entry(
                EventType.MAINTENANCE_TICKET_CREATED,
                NotificationModule.MAINTENANCE,
                "Nuevo ticket de mantenimiento registrado.",
                Priority.MEDIUM,
            ),
            _entry(
                EventType.MAINTENANCE_TICKET_HIGH_PRIORITY,
                NotificationModule.MAINTENANCE,
                "Ticket de mantenimiento marcado en prioridad alta.",
                Priority.HIGH,
            ),
            _entry(
                EventType.MAINTENANCE_APPOINTMENT_24H,
                NotificationModule.MAINTENANCE,
                "Visita programada dentro de las próximas 24 horas.",
                Priority.MEDIUM,
            ),
            _entry(
                EventType.STAFF_EMPLOYEE_STATUS_ALERT,
                NotificationModule.STAFF,
                "Cambio relevante de estatus laboral del empleado.",
                Priority.HIGH,
            ),
            _entry(
                EventType.STAFF_SHIFT_MISSING_CHECKOUT,
                NotificationModule.STAFF,
                "Turno con entrada registrada pero sin salida.",
                Priority.HIGH,
            ),
            _entry(
                EventType.STAFF_DOCUMENT_EXPIRING,
                NotificationModule.STAFF,
                "Documento laboral próximo a vencer.",
                Priority.MEDIUM,
            ),
            _entry(
                EventType.FINANCE_PETTY_CASH_LOW_THRESHOLD,
                NotificationModule.FINANCE,
                "Caja chica por debajo del umbral configurado.",
                Priority.HIGH,
            ),
            _entry(
                EventType.FINANCE_RECONCILIATION_NET_DIFFERENCE,
                NotificationModule.FINANCE,
                "Conciliación con diferencia neta detectada.",
                Priority.HIGH,
            ),
            _entry(
                EventType.FINANCE_EXPENSE_OUTLIER,
                NotificationModule.FINANCE,
                "Egreso alto fuera de patrón histórico.",
                Priority.HIGH,
            ),
            _entry(
                EventType.FINANCE_INVOICE_PENDING_PAYMENT,
                NotificationModule.FINANCE,
                "Nueva factura pendiente de pago generada para el cliente.",
                Priority.CRITICAL,
            ),
            _entry(
                EventType.PROJECTS_EXPENSE_MOVEMENT_REGISTERED,
                NotificationModule.PROJECTS,
                "Movimiento de gasto registrado en un proyecto.",
                Priority.MEDIUM,
            ),
            _entry(
                EventType.PROJECTS_TASK_OVERDUE,
                NotificationModule.PROJECTS,
                "Tarea vencida detectada en gestión de proyectos.",
                Priority.HIGH,
            ),
            _entry(
                EventType.PROJECTS_DEPENDENCY_BLOCKED,
                NotificationModule.PROJECTS,
                "Tarea bloqueada por dependencia.",
                Priority.HIGH,
            ),
            _entry(
                EventType.PROJECTS_SCHEDULE_DEVIATION,
                NotificationModule.PROJECTS,
                "Desviación de tiempo mayor al 10% en proyecto activo.",
                Priority.HIGH,
            ),
            _entry(
                EventType.PROJECTS_COST_DEVIATION,
                NotificationModule.PROJECTS,
                "Desviación de costo mayor al 10% del presupuesto inicial.",
                Priority.CRITICAL,
            ),
        ]
    )
)


def _verify_catalog() -> None:
    """Fail at import time when an event type has no catalog entry."""

    missing = [event_type.value for event_type in EventType if event_type not in NOTIFICATION_EVENT_CATALOG]
    if missing:
        raise RuntimeError(
            "Notification catalog is missing entries for: " + ", ".join(sorted(missing))
        )


_verify_catalog()


def lookup(event_type: EventType | str) -> CatalogEntry:
    """Return the catalog entry for ``event_type``.

    Strings are accepted at the boundary and raise :class:`ValueError` when
    they do not name a known event type.
    """

    return NOTIFICATION_EVENT_CATALOG[EventType(event_type)]


def list_entries() -> list[CatalogEntry]:
    """Return every catalog entry in declaration order."""

    return [NOTIFICATION_EVENT_CATALOG[event_type] for event_type in EventType]


__all__ = ["CatalogEntry", "NOTIFICATION_EVENT_CATALOG", "list_entries", "lookup"]
