"""Failure sink used by the dispatch pipeline."""

from __future__ import annotations

import logging

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from notification_center.domain.entities import DispatchFailure
from notification_center.infrastructure.repositories import DispatchFailureRepository

logger = logging.getLogger(__name__)


class DispatchFailureReporter:
    """Log dispatch failures and persist them for later reconciliation."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def report(self, failure: DispatchFailure) -> DispatchFailure | None:
        logger.error(
            "Notification dispatch failure (%s) event=%s queue=%s recipients=%d: %s",
            failure.kind.value,
            failure.source_event_id,
            failure.source_queue_id,
            len(failure.recipients),
            failure.detail,
        )
        try:
            return await anyio.to_thread.run_sync(self._persist, failure)
        except SQLAlchemyError:
            logger.exception(
                "Could not record dispatch failure for event %s", failure.source_event_id
            )
            return None

    def _persist(self, failure: DispatchFailure) -> DispatchFailure:
        with self._session_factory() as session:
            return DispatchFailureRepository(session).create(failure)


__all__ = ["DispatchFailureReporter"]
