"""Utilities for loading DocBuf schema files and their imports into Program ASTs."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from os import PathLike
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from docbuf.ast import Import, Module, Program
from docbuf.config import CompilerConfig
from docbuf.errors import (
    DocbufError,
    ImportCycle,
    LexError,
    ModuleResolutionError,
    ParseFailed,
    UnresolvedImport,
)
from docbuf.lang.parser import parse_module
from docbuf.observability.logging import get_logger

logger = get_logger(__name__)


def _read_source(source_path: Path) -> str:
    """Read a schema file as UTF-8, reporting bad bytes as a lexical error."""
    try:
        data = source_path.read_bytes()
    except OSError as exc:
        raise UnresolvedImport(
            f"Cannot read schema file {source_path}: {exc.strerror or exc}",
            path=str(source_path),
        ) from exc
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        prefix = data[:exc.start].decode("utf-8")
        line = prefix.count("\n") + 1
        column = len(prefix) - prefix.rfind("\n")
        error = LexError(
            f"Invalid UTF-8 byte 0x{data[exc.start]:02x} at offset {exc.start}",
            position=exc.start,
            unexpected_char=data[exc.start:exc.end].decode("latin-1"),
            path=str(source_path),
            line=line,
            column=column,
        )
        raise ParseFailed([error], path=str(source_path)) from exc


def _parse_module(source_path: Path) -> Module:
    text = _read_source(source_path)
    module = parse_module(text, path=str(source_path))
    module.path = str(source_path)
    return module


def _import_error(importer: Module, statement: Import, message: str, cls=UnresolvedImport, **kwargs) -> DocbufError:
    where = statement.location.error_fields() if statement.location else {}
    where["path"] = importer.path or None
    return cls(message, **where, **kwargs)


def resolve_import_path(importer: Path, raw_path: str, extensions: Sequence[str]) -> Optional[Path]:
    """Return the file an ``import`` statement refers to, or ``None``.

    Relative paths are taken from the importing file's directory. A path
    without a suffix is tried with each known source extension.
    """
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        candidate = importer.parent / candidate
    if candidate.is_file():
        return candidate.resolve()
    if not candidate.suffix:
        for extension in extensions:
            with_suffix = candidate.with_name(candidate.name + extension)
            if with_suffix.is_file():
                return with_suffix.resolve()
    return None


def _parse_batch(paths: List[Path], config: CompilerConfig) -> List[Module]:
    """Parse one import level, in parallel when allowed."""
    if config.parallel_parse and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = [executor.submit(_parse_module, path) for path in paths]
            outcomes = []
            for future in futures:
                try:
                    outcomes.append(future.result())
                except ParseFailed as exc:
                    outcomes.append(exc)
    else:
        outcomes = []
        for path in paths:
            try:
                outcomes.append(_parse_module(path))
            except ParseFailed as exc:
                outcomes.append(exc)

    failures = [outcome for outcome in outcomes if isinstance(outcome, ParseFailed)]
    if failures:
        errors: List[DocbufError] = []
        for failure in failures:
            errors.extend(failure.errors)
        raise ParseFailed(errors, path=failures[0].path)
    return outcomes


def _find_cycle(edges: Dict[Path, List[Path]], start: Path) -> Optional[List[Path]]:
    visiting: List[Path] = []
    done: set = set()

    def visit(node: Path) -> Optional[List[Path]]:
        if node in visiting:
            return visiting[visiting.index(node):] + [node]
        if node in done:
            return None
        visiting.append(node)
        for target in edges.get(node, []):
            cycle = visit(target)
            if cycle:
                return cycle
        visiting.pop()
        done.add(node)
        return None

    return visit(start)


def load_program(
    entry_path: str | PathLike[str],
    config: Optional[CompilerConfig] = None,
) -> Program:
    """
    Load the schema file at ``entry_path`` together with everything it imports.

    Raises:
        UnresolvedImport: an import names a file that does not exist
        ImportCycle: the import graph is not acyclic
        ParseFailed: any reached file has syntax errors
    """
    config = config or CompilerConfig()
    entry = Path(entry_path).resolve()
    if not entry.is_file():
        raise UnresolvedImport(f"Schema file not found: {entry}", path=str(entry))

    modules: Dict[Path, Module] = {}
    edges: Dict[Path, List[Path]] = {}
    frontier: List[Path] = [entry]
    depth = 0

    while frontier:
        if depth > config.max_import_depth:
            raise ModuleResolutionError(
                f"Import depth exceeds {config.max_import_depth}",
                path=str(frontier[0]),
                hint="Raise [compiler] max_import_depth in docbuf.toml",
            )
        parsed = _parse_batch(frontier, config)
        discovered: List[Path] = []
        for path, module in zip(frontier, parsed):
            modules[path] = module
            targets: List[Path] = []
            for statement in module.imports:
                target = resolve_import_path(path, statement.path, config.source_extensions)
                if target is None:
                    raise _import_error(module, statement, f"Cannot resolve import '{statement.path}'")
                statement.resolved_path = str(target)
                targets.append(target)
                if target not in modules and target not in frontier and target not in discovered:
                    discovered.append(target)
            edges[path] = targets
        logger.debug("parsed %d module(s) at import depth %d", len(frontier), depth)
        frontier = discovered
        depth += 1

    cycle = _find_cycle(edges, entry)
    if cycle:
        importer = modules[cycle[-2]]
        statement = next(s for s in importer.imports if s.resolved_path == str(cycle[-1]))
        chain = " -> ".join(path.name for path in cycle)
        raise _import_error(
            importer,
            statement,
            f"Import cycle detected: {chain}",
            cls=ImportCycle,
            cycle=[str(path) for path in cycle],
        )

    for module in modules.values():
        for statement in module.imports:
            statement.resolved_module = modules[Path(statement.resolved_path)].name

    program = Program(modules=list(modules.values()), entry=modules[entry].name)
    logger.debug("loaded program %s with %d module(s)", program.entry, len(program.modules))
    return program


__all__ = ["load_program", "resolve_import_path"]
