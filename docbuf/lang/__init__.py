"""Language-level constants for the DocBuf schema grammar."""

from __future__ import annotations

from typing import FrozenSet, Tuple

LANGUAGE_NAME = "docbuf"

# (major, minor) pairs accepted in ``pragma docbuf v<major>[.<minor>];``
LANGUAGE_VERSION: Tuple[int, int] = (1, 0)
SUPPORTED_LANGUAGE_VERSIONS: FrozenSet[Tuple[int, int]] = frozenset({(1, 0)})

SOURCE_EXTENSIONS: Tuple[str, ...] = (".docbuf", ".dbuf", ".docb", ".doc", ".db")


def format_version(version: Tuple[int, int]) -> str:
    return f"v{version[0]}.{version[1]}"


__all__ = [
    "LANGUAGE_NAME",
    "LANGUAGE_VERSION",
    "SUPPORTED_LANGUAGE_VERSIONS",
    "SOURCE_EXTENSIONS",
    "format_version",
]
