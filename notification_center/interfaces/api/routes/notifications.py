"""Endpoints and websocket handler for recipient notification feeds."""

from __future__ import annotations

import logging
from typing import Any

import anyio
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from notification_center.application.use_cases.notifications import NotificationFeedStore
from notification_center.domain.entities import (
    FeedPath,
    Identity,
    RecipientNotification,
    TenantContext,
)
from notification_center.domain.errors import StorageWriteFailure
from notification_center.infrastructure.repositories import NotificationRepository
from notification_center.interfaces.api.dependencies import (
    NotificationServices,
    get_current_identity,
    get_notification_services,
    get_tenant_context,
    resolve_identity,
)
from notification_center.interfaces.api.schemas import (
    MarkAllReadResponse,
    NotificationFeedRead,
    NotificationRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

WS_POLICY_VIOLATION = 1008


def _notification_to_schema(notification: RecipientNotification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or "",
        recipient_id=notification.recipient_id,
        title=notification.title,
        body=notification.body,
        module=notification.module,
        event_type=notification.event_type,
        priority=notification.priority,
        source_event_id=notification.source_event_id,
        source_queue_id=notification.source_queue_id,
        entity_id=notification.entity_id,
        entity_type=notification.entity_type,
        metadata=notification.metadata or {},
        created_by=notification.created_by,
        read=notification.read,
        read_at=notification.read_at,
        created_at=notification.created_at,
    )


def _snapshot_payload(store: NotificationFeedStore) -> dict[str, Any]:
    return {
        "type": "snapshot",
        "data": [
            _notification_to_schema(notification).model_dump(mode="json")
            for notification in store.notifications
        ],
        "unread_count": store.unread_count,
    }


def _load_notification(
    services: NotificationServices, feed_path: FeedPath, notification_id: str
) -> RecipientNotification | None:
    with services.session_factory() as session:
        return NotificationRepository(session).get(feed_path, notification_id)


async def _connected(store: NotificationFeedStore, tenant_context: TenantContext) -> None:
    if await store.connect(tenant_context) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Se requiere un condominio activo",
        )
    if store.error:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=store.error)


@router.get("/", response_model=NotificationFeedRead)
async def read_feed(
    identity: Identity = Depends(get_current_identity),
    tenant_context: TenantContext = Depends(get_tenant_context),
    services: NotificationServices = Depends(get_notification_services),
) -> NotificationFeedRead:
    """Devuelve las notificaciones más recientes del usuario autenticado."""

    async with services.feed_store(identity) as store:
        await _connected(store, tenant_context)
        return NotificationFeedRead(
            items=[_notification_to_schema(notification) for notification in store.notifications],
            unread_count=store.unread_count,
        )


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    identity: Identity = Depends(get_current_identity),
    tenant_context: TenantContext = Depends(get_tenant_context),
    services: NotificationServices = Depends(get_notification_services),
) -> MarkAllReadResponse:
    """Marca como leídas todas las notificaciones pendientes."""

    async with services.feed_store(identity) as store:
        await _connected(store, tenant_context)
        try:
            updated = await store.mark_all_as_read()
        except StorageWriteFailure as exc:
            logger.error("Could not mark feed of %s as read: %s", identity.user_id, exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="No fue posible actualizar las notificaciones",
            ) from exc
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: str,
    identity: Identity = Depends(get_current_identity),
    tenant_context: TenantContext = Depends(get_tenant_context),
    services: NotificationServices = Depends(get_notification_services),
) -> NotificationRead:
    """Marca una notificación como leída."""

    async with services.feed_store(identity) as store:
        await _connected(store, tenant_context)
        try:
            await store.mark_as_read(notification_id)
        except StorageWriteFailure as exc:
            logger.error("Could not mark notification %s as read: %s", notification_id, exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="No fue posible actualizar las notificaciones",
            ) from exc
        notification = await anyio.to_thread.run_sync(
            _load_notification,
            services,
            FeedPath(tenant_context, identity.user_id),
            notification_id,
        )

    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notificación no encontrada")
    return _notification_to_schema(notification)


@router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    services: NotificationServices = Depends(get_notification_services),
) -> None:
    """Websocket endpoint that streams the feed of the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    try:
        identity = resolve_identity(token, websocket.query_params.get("condominium_id"))
    except HTTPException:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return
    if identity.tenant_context is None:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def push(store: NotificationFeedStore) -> None:
        if store.error:
            await websocket.send_json({"type": "error", "detail": store.error})
        else:
            await websocket.send_json(_snapshot_payload(store))

    async with services.feed_store(identity, on_change=push) as store:
        await store.connect()
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                except WebSocketDisconnect:
                    raise
                except ValueError:
                    continue

                if not isinstance(message, dict):
                    continue

                message_type = message.get("type")
                try:
                    if message_type == "ping":
                        await websocket.send_json({"type": "pong"})
                    elif message_type == "read" and isinstance(message.get("id"), str):
                        await store.mark_as_read(message["id"])
                    elif message_type == "read_all":
                        await store.mark_all_as_read()
                except StorageWriteFailure as exc:
                    logger.error("Feed update from websocket failed: %s", exc)
                    await websocket.send_json(
                        {"type": "error", "detail": "No fue posible actualizar las notificaciones"}
                    )
        except WebSocketDisconnect:
            logger.debug("Feed websocket of %s disconnected", identity.user_id)
