"""Persistence layer for the tenant user directory."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notification_center.domain.entities import DirectoryUser, TenantContext
from notification_center.infrastructure.models import DirectoryUserModel


class DirectoryRepository:
    """Query directory members of a condominium."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_uids_by_roles(
        self, tenant_context: TenantContext, roles: Sequence[str]
    ) -> list[str]:
        """Return the uids of members whose role is one of ``roles``."""

        query = self._scoped(tenant_context)
        if len(roles) == 1:
            query = query.filter(DirectoryUserModel.role == roles[0])
        else:
            query = query.filter(DirectoryUserModel.role.in_(list(roles)))
        query = query.order_by(DirectoryUserModel.id)
        return [model.uid for model in query.all() if model.uid]

    def list_for_tenant(self, tenant_context: TenantContext) -> Sequence[DirectoryUser]:
        query = self._scoped(tenant_context).order_by(DirectoryUserModel.id)
        return [self._to_entity(model) for model in query.all()]

    def upsert(self, user: DirectoryUser) -> DirectoryUser:
        """Create ``user`` or update the role and contact data of its uid."""

        model = (
            self._scoped(TenantContext(user.client_id, user.condominium_id))
            .filter(DirectoryUserModel.uid == user.uid)
            .one_or_none()
        )
        if model is None:
            model = DirectoryUserModel(
                uid=user.uid,
                client_id=user.client_id,
                condominium_id=user.condominium_id,
            )
        model.role = user.role
        model.name = user.name
        model.email = user.email
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _scoped(self, tenant_context: TenantContext):
        return (
            self.session.query(DirectoryUserModel)
            .filter(DirectoryUserModel.client_id == tenant_context.client_id)
            .filter(DirectoryUserModel.condominium_id == tenant_context.condominium_id)
        )

    @staticmethod
    def _to_entity(model: DirectoryUserModel) -> DirectoryUser:
        return DirectoryUser(
            id=model.id,
            uid=model.uid,
            client_id=model.client_id,
            condominium_id=model.condominium_id,
            role=model.role,
            name=model.name,
            email=model.email,
        )


__all__ = ["DirectoryRepository"]
