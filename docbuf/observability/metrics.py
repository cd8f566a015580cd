"""Metric hooks for the DocBuf toolchain.

The toolchain never ships metrics anywhere itself. It calls
:func:`record_metric` at a few points and every registered listener receives
``(name, values, labels)``:

- ``docbuf.compile.duration_ms`` and ``docbuf.compile.errors`` from the compiler
- ``docbuf.ratelimit.rejected`` from endpoint rate limiters
- ``docbuf.signature.invalid`` from the signing envelope
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import RLock
from typing import Callable, Dict, Iterator, List, Optional, Tuple

MetricListener = Callable[[str, Dict[str, float], Dict[str, str]], None]
MetricEvent = Tuple[str, Dict[str, float], Dict[str, str]]

_LISTENERS: List[MetricListener] = []
_LOCK = RLock()


def register_metric_listener(callback: MetricListener) -> None:
    with _LOCK:
        if callback not in _LISTENERS:
            _LISTENERS.append(callback)


def unregister_metric_listener(callback: MetricListener) -> None:
    with _LOCK:
        if callback in _LISTENERS:
            _LISTENERS.remove(callback)


def emit_metric(name: str, values: Optional[Dict[str, float]] = None, labels: Optional[Dict[str, str]] = None) -> None:
    """Send ``values`` to every listener; labels are stringified."""
    payload = dict(values or {})
    tags = {str(key): str(value) for key, value in (labels or {}).items()}
    with _LOCK:
        listeners = list(_LISTENERS)
    for callback in listeners:
        try:
            callback(name, payload, tags)
        except Exception:
            # Metrics never break the caller.
            continue


def record_metric(name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
    emit_metric(name, values={"value": value}, labels=tags)


@contextmanager
def collect_metrics() -> Iterator[List[MetricEvent]]:
    """Collect every metric emitted inside the block.

    Example:
        >>> with collect_metrics() as events:
        ...     compile_source(source)
        >>> events[0][0]
        'docbuf.compile.duration_ms'
    """
    events: List[MetricEvent] = []

    def listener(name: str, values: Dict[str, float], labels: Dict[str, str]) -> None:
        events.append((name, values, labels))

    register_metric_listener(listener)
    try:
        yield events
    finally:
        unregister_metric_listener(listener)


__all__ = [
    "MetricListener",
    "MetricEvent",
    "register_metric_listener",
    "unregister_metric_listener",
    "emit_metric",
    "record_metric",
    "collect_metrics",
]
