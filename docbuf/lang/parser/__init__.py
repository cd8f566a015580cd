"""DocBuf schema parser package.

Public API:
    parse_module(source, path) -> Module
    DocbufParser - The parser class

Every syntax problem found in a file is reported together through
:class:`~docbuf.errors.ParseFailed`.
"""

from __future__ import annotations

from docbuf.ast import Module
from docbuf.errors import MissingPragma, ParseError, ParseFailed, UnsupportedVersion

from .parse import DocbufParser


def parse_module(source: str, path: str = "") -> Module:
    """
    Parse DocBuf source code into a Module AST.

    Args:
        source: DocBuf source text
        path: Optional file path for error reporting

    Returns:
        Module AST node

    Raises:
        ParseFailed: If the source has lexical or syntax errors. A missing or
            unsupported pragma is reported as its only error.

    Example:
        ```python
        source = '''
        pragma docbuf v1;
        module shop;

        #[document::options { root = true; }]
        document Order {
            id: u64,
        }
        '''

        module = parse_module(source)
        print(module.name)  # "shop"
        ```
    """
    parser = DocbufParser(source, path=path)
    return parser.parse()


__all__ = [
    "parse_module",
    "DocbufParser",
    "ParseError",
    "ParseFailed",
    "MissingPragma",
    "UnsupportedVersion",
]
