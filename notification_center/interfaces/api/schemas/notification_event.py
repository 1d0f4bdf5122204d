"""Pydantic models for domain event emission and its reconciliation view."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from notification_center.domain.entities import (
    SCOPE_ADMINS,
    SCOPE_ADMINS_AND_ASSISTANTS,
    SCOPE_SPECIFIC_USERS,
    Admins,
    AdminsAndAssistants,
    AudienceSpec,
    DomainEvent,
    EventStatus,
    EventType,
    FailureKind,
    NotificationModule,
    Priority,
    SpecificUsers,
    TenantContext,
)


class AdminsAudience(BaseModel):
    scope: Literal["admins"] = SCOPE_ADMINS

    def to_domain(self) -> AudienceSpec:
        return Admins()


class AdminsAndAssistantsAudience(BaseModel):
    scope: Literal["admins_and_assistants"] = SCOPE_ADMINS_AND_ASSISTANTS

    def to_domain(self) -> AudienceSpec:
        return AdminsAndAssistants()


class SpecificUsersAudience(BaseModel):
    scope: Literal["specific_users"] = SCOPE_SPECIFIC_USERS
    user_ids: list[str] = Field(default_factory=list, description="Destinatarios explícitos")

    def to_domain(self) -> AudienceSpec:
        return SpecificUsers.of(self.user_ids)


AudienceInput = Annotated[
    Union[AdminsAudience, AdminsAndAssistantsAudience, SpecificUsersAudience],
    Field(discriminator="scope"),
]


class TenantContextInput(BaseModel):
    client_id: str = Field(..., min_length=1)
    condominium_id: str = Field(..., min_length=1)


class DomainEventCreate(BaseModel):
    """Payload used by business modules to emit a domain event."""

    event_type: EventType
    dedupe_key: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)
    module: NotificationModule | None = None
    priority: Priority | None = None
    audience: AudienceInput | None = None
    channels: list[Literal["in_app"]] | None = None
    entity_id: str | None = None
    entity_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    context: TenantContextInput | None = Field(
        default=None, description="Condominio destino; por defecto el de la sesión"
    )

    def to_domain(self) -> DomainEvent:
        """Return the :class:`DomainEvent` described by this payload."""

        return DomainEvent(
            event_type=self.event_type,
            dedupe_key=self.dedupe_key,
            title=self.title,
            body=self.body,
            module=self.module,
            priority=self.priority,
            audience=self.audience.to_domain() if self.audience is not None else None,
            channels=tuple(self.channels) if self.channels else None,
            entity_id=self.entity_id,
            entity_type=self.entity_type,
            metadata=dict(self.metadata),
            tenant_context=(
                TenantContext(self.context.client_id, self.context.condominium_id)
                if self.context is not None
                else None
            ),
        )


class DispatchAccepted(BaseModel):
    status: str = "accepted"
    event_type: EventType
    dedupe_key: str


class CatalogEntryRead(BaseModel):
    """Catalog defaults of an event type."""

    event_type: EventType
    module: NotificationModule
    module_label: str
    description: str
    default_priority: Priority
    default_audience: dict[str, Any]


class EventRecordRead(BaseModel):
    """Persisted domain event with the recipients it was fanned out to."""

    id: str
    event_type: EventType
    module: NotificationModule
    priority: Priority
    title: str
    body: str
    dedupe_key: str
    channels: list[str]
    audience: dict[str, Any]
    entity_id: str = ""
    entity_type: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: EventStatus
    created_by: str
    created_by_name: str
    created_at: datetime | None = None
    queue_id: str | None = None
    recipients: list[str] | None = None


class DispatchFailureRead(BaseModel):
    id: int
    kind: FailureKind
    detail: str
    event_type: str | None = None
    source_event_id: str | None = None
    source_queue_id: str | None = None
    recipients: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


__all__ = [
    "AdminsAndAssistantsAudience",
    "AdminsAudience",
    "AudienceInput",
    "CatalogEntryRead",
    "DispatchAccepted",
    "DispatchFailureRead",
    "DomainEventCreate",
    "EventRecordRead",
    "SpecificUsersAudience",
    "TenantContextInput",
]
