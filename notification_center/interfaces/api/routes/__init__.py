from fastapi import FastAPI

from .notification_events import router as notification_events_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Registra todos los routers de la API en la aplicación FastAPI."""

    app.include_router(notification_events_router)
    app.include_router(notifications_router)
