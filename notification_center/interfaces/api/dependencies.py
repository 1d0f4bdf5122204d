"""FastAPI dependency utilities."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, sessionmaker

from notification_center.application.use_cases.notifications import (
    AudienceResolver,
    DedupeGuard,
    NotificationDispatcher,
    NotificationFeedStore,
)
from notification_center.config import Settings, get_settings
from notification_center.domain.entities import ROLE_ADMIN, Identity, TenantContext
from notification_center.infrastructure.database import get_session_factory
from notification_center.infrastructure.identity import SessionIdentityProvider
from notification_center.infrastructure.notifications import (
    DispatchFailureReporter,
    FeedSubscriptionManager,
)
from notification_center.infrastructure.security import decode_access_token, identity_from_claims

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


@dataclass
class NotificationServices:
    """Process wide collaborators shared by every request."""

    settings: Settings
    session_factory: sessionmaker[Session]
    feed_manager: FeedSubscriptionManager
    dedupe_guard: DedupeGuard
    audience_resolver: AudienceResolver
    failure_reporter: DispatchFailureReporter

    def dispatcher(self, identity: Identity) -> NotificationDispatcher:
        """Return a dispatcher acting on behalf of ``identity``."""

        return NotificationDispatcher(
            self.session_factory,
            identity_provider=SessionIdentityProvider(identity),
            audience_resolver=self.audience_resolver,
            dedupe_guard=self.dedupe_guard,
            feed_manager=self.feed_manager,
            failure_reporter=self.failure_reporter,
            dispatch_mode=self.settings.notification_dispatch_mode,
            max_batch_size=self.settings.notification_max_batch_size,
            identity_timeout=self.settings.identity_timeout_seconds,
        )

    def feed_store(
        self,
        identity: Identity,
        on_change: Callable[[NotificationFeedStore], Any] | None = None,
    ) -> NotificationFeedStore:
        """Return a feed store for ``identity``; the caller must disconnect it."""

        return NotificationFeedStore(
            self.session_factory,
            identity_provider=SessionIdentityProvider(identity),
            feed_manager=self.feed_manager,
            max_batch_size=self.settings.notification_max_batch_size,
            identity_timeout=self.settings.identity_timeout_seconds,
            on_change=on_change,
        )


def build_notification_services(
    settings: Settings, session_factory: sessionmaker[Session]
) -> NotificationServices:
    """Wire the notification pipeline from ``settings``."""

    return NotificationServices(
        settings=settings,
        session_factory=session_factory,
        feed_manager=FeedSubscriptionManager(
            session_factory, feed_limit=settings.notification_feed_limit
        ),
        dedupe_guard=DedupeGuard(settings.notification_dedupe_window_seconds),
        audience_resolver=AudienceResolver(session_factory),
        failure_reporter=DispatchFailureReporter(session_factory),
    )


@lru_cache
def get_notification_services() -> NotificationServices:
    """Return the cached services of this process."""

    return build_notification_services(get_settings(), get_session_factory())


def resolve_identity(token: str, condominium_id: str | None = None) -> Identity:
    """Resolve the acting identity for the provided token."""

    try:
        claims = decode_access_token(token)
        return identity_from_claims(claims, condominium_id=condominium_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_identity(
    token: str = Depends(oauth2_scheme),
    condominium_id: str | None = Header(default=None, alias="X-Condominium-Id"),
) -> Identity:
    """Return the identity carried by the bearer token."""

    return resolve_identity(token, condominium_id)


def get_tenant_context(identity: Identity = Depends(get_current_identity)) -> TenantContext:
    """Ensure the request is scoped to a client and condominium."""

    tenant_context = identity.tenant_context
    if tenant_context is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Se requiere un condominio activo",
        )
    return tenant_context


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Ensure the authenticated user has administrator privileges."""

    if identity.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado",
        )
    return identity


__all__ = [
    "NotificationServices",
    "build_notification_services",
    "get_current_identity",
    "get_notification_services",
    "get_tenant_context",
    "oauth2_scheme",
    "require_admin",
    "resolve_identity",
]
