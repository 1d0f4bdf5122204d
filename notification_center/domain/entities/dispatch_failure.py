"""Domain entity recording a dispatch step that could not complete."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FailureKind(str, Enum):
    DIRECTORY_QUERY = "directory_query_failure"
    STORAGE_WRITE = "storage_write_failure"
    PARTIAL_FANOUT = "partial_fanout_failure"


@dataclass
class DispatchFailure:
    """Reconciliation entry for an event that was not fully delivered.

    ``recipients`` lists the recipients whose notifications were not written,
    when that is known.
    """

    id: int | None
    kind: FailureKind
    detail: str
    client_id: str | None = None
    condominium_id: str | None = None
    event_type: str | None = None
    source_event_id: str | None = None
    source_queue_id: str | None = None
    recipients: list[str] = field(default_factory=list)
    created_at: datetime | None = None


__all__ = ["DispatchFailure", "FailureKind"]
