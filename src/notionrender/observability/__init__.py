"""Observability: structured logging, metrics hooks and failure notifications."""

from __future__ import annotations

from .logger import StructuredFormatter, get_logger
from .metrics import MetricsHook, NoopMetricsHook
from .notify import CollectingNotifier, NoopNotifier, Notifier

__all__ = [
    "CollectingNotifier",
    "MetricsHook",
    "NoopMetricsHook",
    "NoopNotifier",
    "Notifier",
    "StructuredFormatter",
    "get_logger",
]
