"""Tests for the notification event catalog."""

from __future__ import annotations

import pytest

from notification_center.domain import catalog
from notification_center.domain.entities import (
    AdminsAndAssistants,
    EventType,
    NotificationModule,
    Priority,
)


def test_every_event_type_has_a_catalog_entry() -> None:
    """Every declared event type resolves to an entry of its own type."""

    entries = catalog.list_entries()

    assert len(entries) == len(EventType) == 17
    assert [entry.event_type for entry in entries] == list(EventType)


def test_catalog_defaults_to_admins_and_assistants() -> None:
    assert all(
        isinstance(entry.default_audience, AdminsAndAssistants) for entry in catalog.list_entries()
    )


def test_lookup_accepts_enum_and_wire_values() -> None:
    by_enum = catalog.lookup(EventType.FINANCE_INVOICE_PENDING_PAYMENT)
    by_value = catalog.lookup("finance.invoice_pending_payment")

    assert by_enum is by_value
    assert by_enum.module is NotificationModule.FINANCE
    assert by_enum.default_priority is Priority.CRITICAL
    assert by_enum.module_label == "Finanzas"


def test_lookup_rejects_unknown_event_types() -> None:
    with pytest.raises(ValueError):
        catalog.lookup("finance.unknown_event")


def test_event_type_prefix_matches_module() -> None:
    for entry in catalog.list_entries():
        assert entry.event_type.value.split(".", 1)[0] == entry.module.value


def test_catalog_is_read_only() -> None:
    with pytest.raises(TypeError):
        catalog.NOTIFICATION_EVENT_CATALOG[EventType.INVENTORY_LOW_STOCK] = None  # type: ignore[index]
