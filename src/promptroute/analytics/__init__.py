"""Opt-in, anonymous usage analytics."""

from promptroute.analytics.collector import AnalyticsCollector
from promptroute.analytics.queue import (
    AnalyticsEvent,
    AnalyticsQueue,
    AnalyticsSink,
    HttpAnalyticsSink,
)
from promptroute.analytics.utils import content_hash, sanitize_config

__all__ = [
    "AnalyticsCollector",
    "AnalyticsEvent",
    "AnalyticsQueue",
    "AnalyticsSink",
    "HttpAnalyticsSink",
    "content_hash",
    "sanitize_config",
]
