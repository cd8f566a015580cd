"""Workspace configuration for the DocBuf compiler and codec.

Settings live in ``docbuf.toml`` (or a JSON ``.docbufrc``) at the workspace
root::

    [compiler]
    source_extensions = [".docbuf", ".dbuf"]
    parallel_parse = true
    max_workers = 4
    max_import_depth = 32

    [codec]
    max_depth = 64
    max_message_size = 16777216
    validate_before_encode = false
    fill_defaults = true

    [logging]
    level = "INFO"

A missing file yields the defaults below. ``DOCBUF_LOG_LEVEL`` overrides the
configured log level, and :meth:`DocbufConfig.apply_logging` hands it to
:func:`docbuf.observability.configure_logging`.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from docbuf.lang import SOURCE_EXTENSIONS
from docbuf.observability.logging import configure_logging

CONFIG_FILENAMES = ("docbuf.toml", ".docbufrc")
LOG_LEVEL_ENV = "DOCBUF_LOG_LEVEL"


@dataclass
class CompilerConfig:
    """Settings for locating, parsing and resolving schema sources."""

    source_extensions: Tuple[str, ...] = SOURCE_EXTENSIONS
    parallel_parse: bool = True
    max_workers: Optional[int] = None
    max_import_depth: int = 32


@dataclass
class CodecLimits:
    """Safety limits and defaults applied by the binary codec."""

    max_depth: int = 64
    max_message_size: int = 16 * 1024 * 1024
    validate_before_encode: bool = False
    fill_defaults: bool = True


@dataclass
class DocbufConfig:
    """Resolved workspace configuration."""

    root: Path
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    codec: CodecLimits = field(default_factory=CodecLimits)
    log_level: str = "WARNING"
    source: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def apply_logging(self) -> logging.Logger:
        """Set the ``docbuf`` logger to :attr:`log_level`."""
        return configure_logging(self.log_level)


def _read_json_config(path: Path) -> Dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    return json.loads(content)


def _read_toml_config(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _parse_compiler(data: Dict[str, Any]) -> CompilerConfig:
    section = data.get("compiler") or {}
    extensions_raw = section.get("source_extensions")
    if isinstance(extensions_raw, str):
        extensions = (extensions_raw,)
    elif isinstance(extensions_raw, (list, tuple)):
        extensions = tuple(str(item) for item in extensions_raw)
    else:
        extensions = CompilerConfig.source_extensions
    extensions = tuple(ext if ext.startswith(".") else f".{ext}" for ext in extensions)

    max_workers_raw = section.get("max_workers")
    return CompilerConfig(
        source_extensions=extensions,
        parallel_parse=bool(section.get("parallel_parse", CompilerConfig.parallel_parse)),
        max_workers=int(max_workers_raw) if max_workers_raw is not None else None,
        max_import_depth=int(section.get("max_import_depth", CompilerConfig.max_import_depth)),
    )


def _parse_codec(data: Dict[str, Any]) -> CodecLimits:
    section = data.get("codec") or {}
    return CodecLimits(
        max_depth=int(section.get("max_depth", CodecLimits.max_depth)),
        max_message_size=int(section.get("max_message_size", CodecLimits.max_message_size)),
        validate_before_encode=bool(section.get("validate_before_encode", CodecLimits.validate_before_encode)),
        fill_defaults=bool(section.get("fill_defaults", CodecLimits.fill_defaults)),
    )


def _parse_log_level(data: Dict[str, Any]) -> str:
    section = data.get("logging") or {}
    level = os.environ.get(LOG_LEVEL_ENV) or section.get("level") or DocbufConfig.log_level
    return os.path.expandvars(str(level)).upper()


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.exists() else None
    for candidate in CONFIG_FILENAMES:
        path = root / candidate
        if path.exists():
            return path
    return None


def load_config(root: Path, explicit: Optional[Path] = None) -> DocbufConfig:
    """Load the workspace configuration rooted at ``root``."""
    root = Path(root).resolve()
    config_path = locate_config_file(root, Path(explicit) if explicit is not None else None)
    if config_path is None:
        return DocbufConfig(root=root, log_level=_parse_log_level({}))

    if config_path.suffix == ".toml":
        data = _read_toml_config(config_path)
    else:
        data = _read_json_config(config_path)

    return DocbufConfig(
        root=root,
        compiler=_parse_compiler(data),
        codec=_parse_codec(data),
        log_level=_parse_log_level(data),
        source=config_path,
        raw=data,
    )


__all__ = [
    "CONFIG_FILENAMES",
    "LOG_LEVEL_ENV",
    "CompilerConfig",
    "CodecLimits",
    "DocbufConfig",
    "locate_config_file",
    "load_config",
]
