"""Persistence helpers for dispatch failures."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notification_center.domain.entities import DispatchFailure, FailureKind
from notification_center.infrastructure.models import DispatchFailureModel
from notification_center.utils import from_storage, now_in_app_timezone, to_storage


class DispatchFailureRepository:
    """Store and list failures pending reconciliation."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, failure: DispatchFailure) -> DispatchFailure:
        model = DispatchFailureModel(
            kind=failure.kind.value,
            detail=failure.detail,
            client_id=failure.client_id,
            condominium_id=failure.condominium_id,
            event_type=failure.event_type,
            source_event_id=failure.source_event_id,
            source_queue_id=failure.source_queue_id,
            recipients=list(failure.recipients),
            created_at=to_storage(failure.created_at or now_in_app_timezone()),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list(
        self,
        *,
        client_id: str | None = None,
        condominium_id: str | None = None,
        limit: int | None = 100,
    ) -> Sequence[DispatchFailure]:
        query = self.session.query(DispatchFailureModel)
        if client_id is not None:
            query = query.filter(DispatchFailureModel.client_id == client_id)
        if condominium_id is not None:
            query = query.filter(DispatchFailureModel.condominium_id == condominium_id)
        query = query.order_by(DispatchFailureModel.created_at.desc(), DispatchFailureModel.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_entity(model: DispatchFailureModel) -> DispatchFailure:
        return DispatchFailure(
            id=model.id,
            kind=FailureKind(model.kind),
            detail=model.detail,
            client_id=model.client_id,
            condominium_id=model.condominium_id,
            event_type=model.event_type,
            source_event_id=model.source_event_id,
            source_queue_id=model.source_queue_id,
            recipients=list(model.recipients or []),
            created_at=from_storage(model.created_at),
        )


__all__ = ["DispatchFailureRepository"]
