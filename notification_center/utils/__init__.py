"""Utility helpers for reusable functionality."""

from .datetime import (
    app_timezone,
    from_storage,
    now_in_app_timezone,
    storage_now,
    to_storage,
)
from .logging import configure_logging

__all__ = [
    "app_timezone",
    "configure_logging",
    "from_storage",
    "now_in_app_timezone",
    "storage_now",
    "to_storage",
]
