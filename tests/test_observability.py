from __future__ import annotations

import logging

import pytest

from docbuf.errors import UnknownType
from docbuf.observability import (
    configure_logging,
    emit_metric,
    get_logger,
    log_diagnostics,
    log_event,
    record_metric,
)


@pytest.fixture
def docbuf_logger():
    logger = get_logger("docbuf")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_get_logger_is_cached() -> None:
    assert get_logger("docbuf.codec") is get_logger("docbuf.codec")
    assert get_logger("docbuf.codec") is logging.getLogger("docbuf.codec")


def test_configure_logging_is_idempotent(docbuf_logger: logging.Logger) -> None:
    before = len(docbuf_logger.handlers)
    configure_logging("debug")
    configure_logging(logging.WARNING)

    assert len(docbuf_logger.handlers) == before + 1
    assert docbuf_logger.level == logging.WARNING


def test_configure_logging_falls_back_to_info(docbuf_logger: logging.Logger) -> None:
    configure_logging("chatty")
    assert docbuf_logger.level == logging.INFO


def test_log_event_attaches_structured_data(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="docbuf"):
        log_event("encoded", "Encoded Order", size=12)

    (record,) = caplog.records
    assert record.docbuf_event == "encoded"
    assert record.docbuf_data == {"size": 12}


def test_log_diagnostics(caplog: pytest.LogCaptureFixture) -> None:
    errors = [UnknownType("Unknown type 'Nope'", name="Nope", path="a.docbuf", line=3, column=9)]
    with caplog.at_level(logging.WARNING, logger="docbuf"):
        assert log_diagnostics(errors) == 1

    (record,) = caplog.records
    assert "a.docbuf:3:9" in record.getMessage()
    assert record.docbuf_data == {"code": "UNKNOWN_TYPE"}


def test_metric_payloads(metric_events) -> None:
    record_metric("docbuf.test", 2.5, tags={"limit": 3})
    emit_metric("docbuf.multi", {"a": 1.0, "b": 2.0})

    assert metric_events == [
        ("docbuf.test", {"value": 2.5}, {"limit": "3"}),
        ("docbuf.multi", {"a": 1.0, "b": 2.0}, {}),
    ]
