"""Realtime feed helpers for the infrastructure layer."""

from .failures import DispatchFailureReporter
from .manager import FeedSubscription, FeedSubscriptionManager

__all__ = [
    "DispatchFailureReporter",
    "FeedSubscription",
    "FeedSubscriptionManager",
]
