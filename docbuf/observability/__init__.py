"""Lightweight observability helpers for logging and metrics instrumentation."""

from __future__ import annotations

from .logging import configure_logging, get_logger, log_diagnostics, log_event
from .metrics import (
    collect_metrics,
    emit_metric,
    record_metric,
    register_metric_listener,
    unregister_metric_listener,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "log_diagnostics",
    "log_event",
    "collect_metrics",
    "emit_metric",
    "record_metric",
    "register_metric_listener",
    "unregister_metric_listener",
]
