"""Endpoints to emit domain events and review their dispatch."""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from notification_center.domain import catalog
from notification_center.domain.catalog import CatalogEntry
from notification_center.domain.entities import (
    DispatchFailure,
    EventRecord,
    Identity,
    QueueRecord,
    TenantContext,
    audience_to_dict,
)
from notification_center.infrastructure.repositories import (
    DispatchFailureRepository,
    NotificationEventRepository,
    NotificationQueueRepository,
)
from notification_center.interfaces.api.dependencies import (
    NotificationServices,
    get_current_identity,
    get_notification_services,
    get_tenant_context,
    require_admin,
)
from notification_center.interfaces.api.schemas import (
    CatalogEntryRead,
    DispatchAccepted,
    DispatchFailureRead,
    DomainEventCreate,
    EventRecordRead,
)

router = APIRouter(prefix="/notification-events", tags=["notification-events"])
logger = logging.getLogger(__name__)


def _catalog_entry_to_schema(entry: CatalogEntry) -> CatalogEntryRead:
    return CatalogEntryRead(
        event_type=entry.event_type,
        module=entry.module,
        module_label=entry.module_label,
        description=entry.description,
        default_priority=entry.default_priority,
        default_audience=audience_to_dict(entry.default_audience),
    )


def _event_to_schema(record: EventRecord, queue: QueueRecord | None = None) -> EventRecordRead:
    return EventRecordRead(
        id=record.id or "",
        event_type=record.event_type,
        module=record.module,
        priority=record.priority,
        title=record.title,
        body=record.body,
        dedupe_key=record.dedupe_key,
        channels=list(record.channels),
        audience=audience_to_dict(record.audience),
        entity_id=record.entity_id,
        entity_type=record.entity_type,
        metadata=record.metadata,
        status=record.status,
        created_by=record.created_by,
        created_by_name=record.created_by_name,
        created_at=record.created_at,
        queue_id=queue.id if queue is not None else None,
        recipients=list(queue.recipients) if queue is not None else None,
    )


def _failure_to_schema(failure: DispatchFailure) -> DispatchFailureRead:
    return DispatchFailureRead(
        id=failure.id or 0,
        kind=failure.kind,
        detail=failure.detail,
        event_type=failure.event_type,
        source_event_id=failure.source_event_id,
        source_queue_id=failure.source_queue_id,
        recipients=failure.recipients,
        created_at=failure.created_at,
    )


@router.get("/catalog", response_model=list[CatalogEntryRead])
def list_catalog(_: Identity = Depends(get_current_identity)) -> list[CatalogEntryRead]:
    """Devuelve el catálogo de eventos notificables."""

    return [_catalog_entry_to_schema(entry) for entry in catalog.list_entries()]


@router.post("/", response_model=DispatchAccepted, status_code=status.HTTP_202_ACCEPTED)
def emit_event(
    event_in: DomainEventCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_current_identity),
    services: NotificationServices = Depends(get_notification_services),
) -> DispatchAccepted:
    """Registra un evento de dominio y lo despacha en segundo plano."""

    if event_in.context is None and identity.tenant_context is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Se requiere un condominio activo",
        )

    if event_in.context is not None and event_in.context.client_id != identity.client_id:
        logger.warning(
            "Rejected %s from %s targeting client %s",
            event_in.event_type.value,
            identity.user_id,
            event_in.context.client_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado",
        )

    background_tasks.add_task(services.dispatcher(identity).emit, event_in.to_domain())
    logger.debug("Queued %s (%s) from %s", event_in.event_type.value, event_in.dedupe_key, identity.user_id)
    return DispatchAccepted(event_type=event_in.event_type, dedupe_key=event_in.dedupe_key)


@router.get("/", response_model=list[EventRecordRead])
async def list_events(
    limit: int = Query(50, ge=1, le=200),
    tenant_context: TenantContext = Depends(get_tenant_context),
    _: Identity = Depends(require_admin),
    services: NotificationServices = Depends(get_notification_services),
) -> list[EventRecordRead]:
    """Devuelve los eventos más recientes del condominio activo."""

    def load() -> list[EventRecord]:
        with services.session_factory() as session:
            return list(NotificationEventRepository(session).list_for_tenant(tenant_context, limit=limit))

    records = await anyio.to_thread.run_sync(load)
    return [_event_to_schema(record) for record in records]


@router.get("/failures", response_model=list[DispatchFailureRead])
async def list_failures(
    limit: int = Query(100, ge=1, le=500),
    tenant_context: TenantContext = Depends(get_tenant_context),
    _: Identity = Depends(require_admin),
    services: NotificationServices = Depends(get_notification_services),
) -> list[DispatchFailureRead]:
    """Devuelve los fallos de despacho pendientes de conciliación."""

    def load() -> list[DispatchFailure]:
        with services.session_factory() as session:
            return list(
                DispatchFailureRepository(session).list(
                    client_id=tenant_context.client_id,
                    condominium_id=tenant_context.condominium_id,
                    limit=limit,
                )
            )

    failures = await anyio.to_thread.run_sync(load)
    return [_failure_to_schema(failure) for failure in failures]


@router.get("/{event_id}", response_model=EventRecordRead)
async def read_event(
    event_id: str,
    tenant_context: TenantContext = Depends(get_tenant_context),
    _: Identity = Depends(require_admin),
    services: NotificationServices = Depends(get_notification_services),
) -> EventRecordRead:
    """Obtiene un evento y los destinatarios a los que se despachó."""

    def load() -> tuple[EventRecord | None, QueueRecord | None]:
        with services.session_factory() as session:
            record = NotificationEventRepository(session).get(event_id)
            if record is None or record.tenant_context != tenant_context:
                return None, None
            return record, NotificationQueueRepository(session).get_by_source_event(event_id)

    record, queue = await anyio.to_thread.run_sync(load)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Evento no encontrado")
    return _event_to_schema(record, queue)
