"""Unified error model for DocBuf.

Every failure the toolchain reports derives from :class:`DocbufError`. Errors
carry a source location (when one is known), a stable ``code`` for programmatic
handling and an optional ``hint``. Lexing, parsing and validation collect their
diagnostics and raise them together through :class:`CompilationError`; codec,
signing and rate-limit errors are raised immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence


@dataclass
class ErrorLocation:
    path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def describe(self) -> str:
        if self.path and self.line is not None and self.column is not None:
            return f"{self.path}:{self.line}:{self.column}"
        if self.line is not None and self.column is not None:
            return f"{self.line}:{self.column}"
        if self.path and self.line is not None:
            return f"{self.path}:{self.line}"
        if self.path:
            return self.path
        return "unknown location"


class DocbufError(Exception):
    """Base class for all compiler/codec errors surfaced to users."""

    code: str = "DOCBUF_ERROR"
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = ErrorLocation(path=path, line=line, column=column)
        self.path = path
        self.line = line
        self.column = column
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint

    def format(self) -> str:
        components = [self.message]
        meta_parts = []
        location_desc = self.location.describe()
        if location_desc != "unknown location":
            meta_parts.append(location_desc)
        if self.code:
            meta_parts.append(self.code)
        if meta_parts:
            components[-1] = f"{components[-1]} ({'; '.join(meta_parts)})"
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(part for part in components if part)


# ====================================================================
# Source errors
# ====================================================================


class LexError(DocbufError):
    """Raised when the lexer meets a character that cannot start a token."""

    code = "LEX_ERROR"

    def __init__(
        self,
        message: str,
        *,
        position: int,
        unexpected_char: str = "",
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message, path=path, line=line, column=column)
        self.position = position
        self.unexpected_char = unexpected_char


class ParseError(DocbufError):
    """Raised when the parser encounters invalid syntax."""

    code = "PARSE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        expected: Optional[Sequence[str]] = None,
        found: Optional[str] = None,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message, path=path, line=line, column=column, hint=hint)
        self.expected: List[str] = list(expected or [])
        self.found = found

    def format(self) -> str:
        base = super().format()
        details = []
        if self.expected:
            if len(self.expected) == 1:
                details.append(f"expected {self.expected[0]}")
            else:
                details.append(f"expected one of: {', '.join(self.expected)}")
        if self.found:
            details.append(f"found {self.found}")
        if details:
            return f"{base} [{'; '.join(details)}]"
        return base


class MissingPragma(ParseError):
    """The file does not start with ``pragma docbuf v<version>;``."""

    code = "MISSING_PRAGMA"


class UnsupportedVersion(ParseError):
    """The pragma names a language version this compiler does not implement."""

    code = "UNSUPPORTED_VERSION"


class ModuleResolutionError(DocbufError):
    """Raised when module or import resolution fails."""

    code = "RESOLUTION_ERROR"


class UnresolvedImport(ModuleResolutionError):
    code = "UNRESOLVED_IMPORT"


class ImportCycle(ModuleResolutionError):
    code = "IMPORT_CYCLE"

    def __init__(self, message: str, *, cycle: Sequence[str], **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.cycle = list(cycle)


# ====================================================================
# Semantic errors
# ====================================================================


class SemanticError(DocbufError):
    """Raised when a syntactically valid schema is semantically invalid."""

    code = "SEMANTIC_ERROR"


class DuplicateName(SemanticError):
    code = "DUPLICATE_NAME"

    def __init__(self, message: str, *, name: str, first_line: Optional[int] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.name = name
        self.first_line = first_line


class UnknownType(SemanticError):
    code = "UNKNOWN_TYPE"

    def __init__(self, message: str, *, name: str, available: Iterable[str] = (), **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.name = name
        self.available = sorted(available)
        if self.hint is None:
            similar = _find_similar(name, self.available)
            if similar:
                self.hint = f"Did you mean: {', '.join(similar[:3])}?"


class AmbiguousType(SemanticError):
    code = "AMBIGUOUS_TYPE"

    def __init__(self, message: str, *, name: str, candidates: Iterable[str] = (), **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.name = name
        self.candidates = sorted(candidates)


class MissingRoot(SemanticError):
    code = "MISSING_ROOT"


class MultipleRoots(SemanticError):
    code = "MULTIPLE_ROOTS"

    def __init__(self, message: str, *, roots: Iterable[str] = (), **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.roots = list(roots)


class InvalidOption(SemanticError):
    code = "INVALID_OPTION"

    def __init__(self, message: str, *, field: str, reason: str, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.field = field
        self.reason = reason


class InvalidEndpoint(SemanticError):
    code = "INVALID_ENDPOINT"


class InvalidVariant(SemanticError):
    code = "INVALID_VARIANT"


# ====================================================================
# Aggregated diagnostics
# ====================================================================


class CompilationError(DocbufError):
    """Carries every diagnostic collected by one compilation stage."""

    code = "COMPILATION_FAILED"

    def __init__(self, errors: Sequence[DocbufError], *, path: Optional[str] = None) -> None:
        self.errors: List[DocbufError] = list(errors)
        count = len(self.errors)
        summary = f"{count} error{'s' if count != 1 else ''}"
        if self.errors:
            summary = f"{summary}: {self.errors[0].format()}"
        super().__init__(summary, path=path)

    def __iter__(self):
        return iter(self.errors)

    def format(self) -> str:
        return "\n".join(error.format() for error in self.errors)


class ParseFailed(CompilationError):
    code = "PARSE_FAILED"


class ValidationFailed(CompilationError):
    code = "VALIDATION_FAILED"


# ====================================================================
# Runtime errors
# ====================================================================


class CodecError(DocbufError):
    """Raised when bytes cannot be turned into a value or vice versa."""

    code = "CODEC_ERROR"

    def __init__(self, message: str, *, offset: Optional[int] = None, field: Optional[str] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.offset = offset
        self.field = field


class UnexpectedEof(CodecError):
    code = "UNEXPECTED_EOF"


class UnknownTag(CodecError):
    code = "UNKNOWN_TAG"

    def __init__(self, message: str, *, tag: int, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.tag = tag


class MissingRequiredField(CodecError):
    code = "MISSING_REQUIRED_FIELD"


class TypeMismatch(CodecError):
    code = "TYPE_MISMATCH"


class MalformedData(CodecError):
    code = "MALFORMED_DATA"


class NestingTooDeep(CodecError):
    code = "NESTING_TOO_DEEP"


class ConstraintViolation(CodecError):
    code = "CONSTRAINT_VIOLATION"


class SignatureInvalid(DocbufError):
    """The message is well formed but its signature does not verify."""

    code = "SIGNATURE_INVALID"


class RateLimitExceeded(DocbufError):
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, *, endpoint: str, limit: int, retry_after: float, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.endpoint = endpoint
        self.limit = limit
        self.retry_after = retry_after


def _find_similar(target: str, candidates: List[str], max_distance: int = 2) -> List[str]:
    """Find similar names using Levenshtein distance."""

    def levenshtein(s1: str, s2: str) -> int:
        if len(s1) < len(s2):
            return levenshtein(s2, s1)
        if len(s2) == 0:
            return len(s1)
        previous_row = list(range(len(s2) + 1))
        for i, c1 in enumerate(s1):
            current_row = [i + 1]
            for j, c2 in enumerate(s2):
                insertions = previous_row[j + 1] + 1
                deletions = current_row[j] + 1
                substitutions = previous_row[j] + (c1 != c2)
                current_row.append(min(insertions, deletions, substitutions))
            previous_row = current_row
        return previous_row[-1]

    scored = [(name, levenshtein(target.lower(), name.lower())) for name in candidates]
    scored.sort(key=lambda item: item[1])
    return [name for name, distance in scored if distance <= max_distance]


__all__ = [
    "ErrorLocation",
    "DocbufError",
    "LexError",
    "ParseError",
    "MissingPragma",
    "UnsupportedVersion",
    "ModuleResolutionError",
    "UnresolvedImport",
    "ImportCycle",
    "SemanticError",
    "DuplicateName",
    "UnknownType",
    "AmbiguousType",
    "MissingRoot",
    "MultipleRoots",
    "InvalidOption",
    "InvalidEndpoint",
    "InvalidVariant",
    "CompilationError",
    "ParseFailed",
    "ValidationFailed",
    "CodecError",
    "UnexpectedEof",
    "UnknownTag",
    "MissingRequiredField",
    "TypeMismatch",
    "MalformedData",
    "NestingTooDeep",
    "ConstraintViolation",
    "SignatureInvalid",
    "RateLimitExceeded",
]
