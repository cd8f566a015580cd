"""
Compilation pipeline entry points.

``source text -> Module AST -> SchemaModel``. Each stage either succeeds
completely or raises a :class:`~docbuf.errors.CompilationError` carrying
every diagnostic it collected.
"""

from __future__ import annotations

import time
from os import PathLike
from typing import Optional

from docbuf.ast import Program
from docbuf.config import CompilerConfig
from docbuf.errors import CompilationError
from docbuf.lang.parser import parse_module
from docbuf.loader import load_program
from docbuf.observability.logging import get_logger, log_diagnostics, log_event
from docbuf.observability.metrics import record_metric
from docbuf.schema.model import SchemaModel
from docbuf.schema.validator import validate_program

logger = get_logger(__name__)


class _CompileTimer:
    """Records duration and error-count metrics around one compilation."""

    def __init__(self, target: str):
        self.target = target
        self.start = 0.0

    def __enter__(self) -> "_CompileTimer":
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        duration_ms = (time.perf_counter() - self.start) * 1000.0
        failed = exc is not None
        record_metric(
            "docbuf.compile.duration_ms",
            duration_ms,
            tags={"target": self.target, "status": "error" if failed else "ok"},
        )
        if isinstance(exc, CompilationError):
            record_metric("docbuf.compile.errors", float(len(exc.errors)), tags={"target": self.target})
            log_diagnostics(exc.errors, logger=logger)


def compile_program(program: Program) -> SchemaModel:
    """Validate an already-loaded program."""
    with _CompileTimer(program.entry or "<program>"):
        model = validate_program(program)
    _log_success(program.entry or "<program>", model)
    return model


def compile_source(source: str, path: str = "") -> SchemaModel:
    """
    Compile a single self-contained module from source text.

    Raises:
        ParseFailed: lexical or syntax errors
        ValidationFailed: semantic errors, including imports (a single
            source cannot import other files; use :func:`compile_file`)
    """
    target = path or "<source>"
    with _CompileTimer(target):
        module = parse_module(source, path=path)
        logger.debug(
            "parsed %s: %d import(s), %d declaration(s)", module.name, len(module.imports), len(module.body)
        )
        model = validate_program(Program(modules=[module], entry=module.name))
    _log_success(target, model)
    return model


def compile_file(path: str | PathLike[str], config: Optional[CompilerConfig] = None) -> SchemaModel:
    """
    Compile the schema at ``path`` and everything it imports.

    Example:
        >>> model = compile_file("schemas/shop.docbuf")
        >>> model.root.name
        'Order'
    """
    target = str(path)
    with _CompileTimer(target):
        program = load_program(path, config)
        logger.debug("loaded %d module(s) from %s", len(program.modules), target)
        model = validate_program(program)
    _log_success(target, model)
    return model


def _log_success(target: str, model: SchemaModel) -> None:
    log_event(
        "compiled",
        f"Compiled {target}",
        logger=logger,
        modules=len(model.modules),
        documents=sum(1 for _ in model.documents),
        enums=sum(1 for _ in model.enums),
        processes=sum(1 for _ in model.processes),
    )


__all__ = ["compile_file", "compile_program", "compile_source"]
