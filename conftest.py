"""Shared pytest fixtures for all tests."""

import pytest

from docbuf.observability.metrics import collect_metrics


@pytest.fixture
def metric_events():
    """Collect every metric emitted while the test runs."""
    with collect_metrics() as events:
        yield events
