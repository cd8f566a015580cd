"""Positions of syntax nodes inside schema files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class SourceLocation:
    """Where a node starts: the schema file plus a 1-based line and column."""

    file: str
    line: int
    column: int = 0

    def error_fields(self) -> Dict[str, Any]:
        """Keyword arguments locating a :class:`~docbuf.errors.DocbufError` here."""
        return {"path": self.file or None, "line": self.line, "column": self.column}

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


__all__ = ["SourceLocation"]
