from __future__ import annotations

import logging

import pytest

import docbuf
from docbuf.compiler import compile_source
from docbuf.errors import ParseFailed, ValidationFailed
from docbuf.observability import register_metric_listener, unregister_metric_listener
from docbuf.schema import SchemaModel


def test_package_exports(shop_source: str) -> None:
    model = docbuf.compile_source(shop_source)
    assert isinstance(model, SchemaModel)
    assert docbuf.decode(model, "Order", docbuf.encode(model, "Order", {"id": 1}))["id"] == 1
    assert isinstance(docbuf.__version__, str)


def test_success_metrics_and_log(shop_source: str, metric_events, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="docbuf"):
        compile_source(shop_source, path="shop.docbuf")

    ((name, values, labels),) = metric_events
    assert name == "docbuf.compile.duration_ms"
    assert values["value"] >= 0
    assert labels == {"target": "shop.docbuf", "status": "ok"}

    (record,) = [record for record in caplog.records if getattr(record, "docbuf_event", None) == "compiled"]
    assert record.docbuf_data == {"modules": 1, "documents": 2, "enums": 1, "processes": 1}


def test_failure_metrics_and_diagnostics(make_schema, metric_events, caplog: pytest.LogCaptureFixture) -> None:
    source = make_schema("document A { x: Nope, y: Missing }\n")

    with caplog.at_level(logging.WARNING, logger="docbuf"):
        with pytest.raises(ValidationFailed) as excinfo:
            compile_source(source, path="bad.docbuf")

    names = [name for name, _, _ in metric_events]
    assert names == ["docbuf.compile.duration_ms", "docbuf.compile.errors"]
    assert metric_events[0][2]["status"] == "error"
    assert metric_events[1][1] == {"value": float(len(excinfo.value.errors))}

    diagnostics = [record for record in caplog.records if getattr(record, "docbuf_event", None) == "diagnostic"]
    assert len(diagnostics) == len(excinfo.value.errors)
    assert all(record.levelno == logging.WARNING for record in diagnostics)


def test_parse_failures_are_compilation_errors(metric_events) -> None:
    with pytest.raises(docbuf.CompilationError) as excinfo:
        compile_source("module x;\n")
    assert isinstance(excinfo.value, ParseFailed)
    assert metric_events[-1][0] == "docbuf.compile.errors"


def test_failing_listener_does_not_break_compilation(shop_source: str) -> None:
    def broken(name, values, labels):
        raise RuntimeError("listener failure")

    register_metric_listener(broken)
    try:
        assert compile_source(shop_source).root.name == "Order"
    finally:
        unregister_metric_listener(broken)
