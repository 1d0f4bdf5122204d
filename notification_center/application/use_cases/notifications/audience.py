"""Resolution of audience specifications into recipient identifiers."""

from __future__ import annotations

import logging

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from notification_center.domain.entities import (
    ROLE_ADMIN,
    ROLE_ADMIN_ASSISTANT,
    Admins,
    AdminsAndAssistants,
    AudienceSpec,
    SpecificUsers,
    TenantContext,
)
from notification_center.domain.errors import DirectoryQueryFailure
from notification_center.infrastructure.repositories import DirectoryRepository

logger = logging.getLogger(__name__)


class AudienceResolver:
    """Turn an :data:`AudienceSpec` into a non-empty tuple of recipient ids."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def resolve(
        self,
        tenant_context: TenantContext,
        fallback_recipient_id: str,
        audience: AudienceSpec,
    ) -> tuple[str, ...]:
        """Return the unique recipients of ``audience``.

        When nothing matches, the acting user (``fallback_recipient_id``) is
        returned so the event still lands in at least one feed.
        """

        if isinstance(audience, SpecificUsers):
            candidates = [str(user_id) for user_id in audience.user_ids if user_id]
        elif isinstance(audience, Admins):
            candidates = await self._query_roles(tenant_context, (ROLE_ADMIN,))
        elif isinstance(audience, AdminsAndAssistants):
            candidates = await self._query_roles(
                tenant_context, (ROLE_ADMIN, ROLE_ADMIN_ASSISTANT)
            )
        else:
            raise TypeError(f"Unsupported audience specification: {audience!r}")

        recipients = tuple(dict.fromkeys(candidates))
        if not recipients:
            logger.debug(
                "Audience %s resolved empty for %s; falling back to %s",
                audience.scope,
                tenant_context.scope_key,
                fallback_recipient_id,
            )
            return (fallback_recipient_id,)
        return recipients

    async def _query_roles(
        self, tenant_context: TenantContext, roles: tuple[str, ...]
    ) -> list[str]:
        try:
            return await anyio.to_thread.run_sync(self._list_uids, tenant_context, roles)
        except SQLAlchemyError as exc:
            raise DirectoryQueryFailure(
                f"Could not query directory of {tenant_context.scope_key} for roles {roles}"
            ) from exc

    def _list_uids(self, tenant_context: TenantContext, roles: tuple[str, ...]) -> list[str]:
        with self._session_factory() as session:
            return DirectoryRepository(session).list_uids_by_roles(tenant_context, roles)


__all__ = ["AudienceResolver"]
