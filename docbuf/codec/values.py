"""Python values for enumerable instances."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EnumValue:
    """An enumerable value: the variant name and its payload (``None`` for unit variants)."""

    variant: str
    value: Any = None

    def __str__(self) -> str:
        if self.value is None:
            return self.variant
        return f"{self.variant}({self.value!r})"


__all__ = ["EnumValue"]
