"""Timestamps in the application timezone.

Rows store naive datetimes expressed in ``APP_TIMEZONE``; entities always
carry aware values. Repositories convert with :func:`to_storage` and
:func:`from_storage`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notification_center.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def app_timezone() -> tzinfo:
    """Return the zone named by ``APP_TIMEZONE``, or UTC when it is unknown."""

    name = get_settings().app_timezone.strip()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r, storing timestamps in UTC", name)
        return timezone.utc


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=app_timezone())


def storage_now() -> datetime:
    """Column default: the current time as stored, without ``tzinfo``."""

    return to_storage(now_in_app_timezone())


def to_storage(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(app_timezone())
    return value.replace(tzinfo=None)


def from_storage(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(app_timezone())
    return value.replace(tzinfo=app_timezone())


__all__ = ["app_timezone", "from_storage", "now_in_app_timezone", "storage_now", "to_storage"]
