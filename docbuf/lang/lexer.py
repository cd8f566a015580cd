"""Lexical analyzer (tokenizer) for the DocBuf schema language.

Converts source text into a stream of tokens for parsing. Ordinary comments
(``//`` and nestable ``/* */``) are dropped; ``///`` documentation comments are
kept as ``DOC_COMMENT`` tokens so the parser can attach them to the following
declaration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional

from docbuf.errors import LexError


class TokenType(Enum):
    """Token types for the DocBuf language."""

    # Literals
    STRING = auto()
    INTEGER = auto()
    FLOAT = auto()
    BOOLEAN = auto()

    # Identifiers and Keywords
    IDENTIFIER = auto()
    PRAGMA = auto()
    MODULE = auto()
    IMPORT = auto()
    DOCUMENT = auto()
    ENUMERABLE = auto()
    PROCESS = auto()

    # Punctuation
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LPAREN = auto()
    RPAREN = auto()
    ARROW = auto()
    COMMA = auto()
    COLON = auto()
    DOUBLE_COLON = auto()
    SEMICOLON = auto()
    ASSIGN = auto()
    DOT = auto()
    OPTIONS_START = auto()

    # Special
    DOC_COMMENT = auto()
    EOF = auto()


@dataclass
class Token:
    """A single token with position information."""

    type: TokenType
    value: str
    line: int
    column: int
    offset: int = 0
    doc: Optional[str] = None

    def describe(self) -> str:
        if self.type == TokenType.EOF:
            return "end of file"
        if self.type in (TokenType.IDENTIFIER, TokenType.STRING, TokenType.INTEGER, TokenType.FLOAT):
            return f"{self.type.name.lower()} {self.value!r}"
        return repr(self.value)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


KEYWORDS = {
    "pragma": TokenType.PRAGMA,
    "module": TokenType.MODULE,
    "import": TokenType.IMPORT,
    "document": TokenType.DOCUMENT,
    "enumerable": TokenType.ENUMERABLE,
    "process": TokenType.PROCESS,
    "true": TokenType.BOOLEAN,
    "false": TokenType.BOOLEAN,
}

CHAR_TOKENS = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "=": TokenType.ASSIGN,
    ".": TokenType.DOT,
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "'": "'", "0": "\0"}

_DIGITS = frozenset("0123456789")
_IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_IDENT_CHARS = _IDENT_START | _DIGITS


def _is_digit(char: Optional[str]) -> bool:
    """ASCII digits only; ``str.isdigit`` also accepts superscripts."""
    return char is not None and char in _DIGITS


class Lexer:
    """Tokenizer for DocBuf source code.

    With ``recover=True`` invalid characters are recorded in :attr:`errors` and
    skipped so that lexing continues; otherwise the first :class:`LexError`
    is raised.
    """

    def __init__(self, source: str, path: str = "", *, recover: bool = False):
        self.source = source
        self.path = path
        self.recover = recover
        self.pos = 0
        self.line = 1
        self.column = 1
        self.errors: List[LexError] = []

    def error(self, message: str, *, char: str = "", line: Optional[int] = None,
              column: Optional[int] = None, position: Optional[int] = None) -> LexError:
        return LexError(
            message,
            position=self.pos if position is None else position,
            unexpected_char=char,
            path=self.path or None,
            line=self.line if line is None else line,
            column=self.column if column is None else column,
        )

    def _report(self, error: LexError) -> None:
        if not self.recover:
            raise error
        self.errors.append(error)

    def peek(self, offset: int = 0) -> Optional[str]:
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self) -> Optional[str]:
        if self.pos >= len(self.source):
            return None
        char = self.source[self.pos]
        self.pos += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def skip_whitespace(self) -> None:
        while self.peek() is not None and (self.peek().isspace() or self.peek() == "\ufeff"):
            self.advance()

    def skip_line(self) -> str:
        chars = []
        while self.peek() is not None and self.peek() != "\n":
            chars.append(self.advance())
        return "".join(chars)

    def skip_block_comment(self) -> None:
        """Skip a ``/* */`` comment; block comments nest."""
        start_line, start_column, start_pos = self.line, self.column, self.pos
        self.advance()
        self.advance()
        depth = 1
        while depth:
            if self.peek() is None:
                self._report(self.error(
                    "Unterminated block comment",
                    line=start_line, column=start_column, position=start_pos,
                ))
                return
            if self.peek() == "/" and self.peek(1) == "*":
                self.advance()
                self.advance()
                depth += 1
            elif self.peek() == "*" and self.peek(1) == "/":
                self.advance()
                self.advance()
                depth -= 1
            else:
                self.advance()

    def read_string(self) -> str:
        start_line, start_column, start_pos = self.line, self.column, self.pos
        self.advance()
        chars = []
        while True:
            char = self.peek()
            if char is None or char == "\n":
                self._report(self.error(
                    "Unterminated string literal",
                    line=start_line, column=start_column, position=start_pos,
                ))
                break
            if char == '"':
                self.advance()
                break
            if char == "\\":
                self.advance()
                escape = self.advance()
                if escape is None:
                    continue
                chars.append(_ESCAPES.get(escape, escape))
            else:
                chars.append(self.advance())
        return "".join(chars)

    def read_number(self) -> tuple[TokenType, str]:
        chars = []
        token_type = TokenType.INTEGER
        if self.peek() == "-":
            chars.append(self.advance())
        while _is_digit(self.peek()):
            chars.append(self.advance())
        if self.peek() == "." and _is_digit(self.peek(1)):
            token_type = TokenType.FLOAT
            chars.append(self.advance())
            while _is_digit(self.peek()):
                chars.append(self.advance())
        if self.peek() in ("e", "E") and (
            _is_digit(self.peek(1))
            or (self.peek(1) in ("+", "-") and _is_digit(self.peek(2)))
        ):
            token_type = TokenType.FLOAT
            chars.append(self.advance())
            if self.peek() in ("+", "-"):
                chars.append(self.advance())
            while _is_digit(self.peek()):
                chars.append(self.advance())
        return token_type, "".join(chars)

    def read_identifier(self) -> str:
        chars = []
        while self.peek() in _IDENT_CHARS:
            chars.append(self.advance())
        return "".join(chars)

    def tokens(self) -> Iterator[Token]:
        """Lazily yield tokens, finishing with a single ``EOF`` token."""
        while True:
            self.skip_whitespace()
            if self.pos >= len(self.source):
                break

            line, column, offset = self.line, self.column, self.pos
            char = self.peek()
            nxt = self.peek(1)

            if char == "/" and nxt == "/":
                if self.peek(2) == "/" and self.peek(3) != "/":
                    self.advance()
                    self.advance()
                    self.advance()
                    text = self.skip_line()
                    if text.startswith(" "):
                        text = text[1:]
                    yield Token(TokenType.DOC_COMMENT, text.rstrip(), line, column, offset)
                else:
                    self.skip_line()
                continue

            if char == "/" and nxt == "*":
                self.skip_block_comment()
                continue

            if char == '"':
                value = self.read_string()
                yield Token(TokenType.STRING, value, line, column, offset)
                continue

            if _is_digit(char) or (char == "-" and _is_digit(nxt)):
                token_type, value = self.read_number()
                yield Token(token_type, value, line, column, offset)
                continue

            if char in _IDENT_START:
                value = self.read_identifier()
                yield Token(KEYWORDS.get(value, TokenType.IDENTIFIER), value, line, column, offset)
                continue

            if char == "-" and nxt == ">":
                self.advance()
                self.advance()
                yield Token(TokenType.ARROW, "->", line, column, offset)
                continue

            if char == ":":
                self.advance()
                if self.peek() == ":":
                    self.advance()
                    yield Token(TokenType.DOUBLE_COLON, "::", line, column, offset)
                else:
                    yield Token(TokenType.COLON, ":", line, column, offset)
                continue

            if char == "#" and nxt == "[":
                self.advance()
                self.advance()
                yield Token(TokenType.OPTIONS_START, "#[", line, column, offset)
                continue

            if char in CHAR_TOKENS:
                self.advance()
                yield Token(CHAR_TOKENS[char], char, line, column, offset)
                continue

            self._report(self.error(f"Unexpected character: {char!r}", char=char))
            self.advance()

        yield Token(TokenType.EOF, "", self.line, self.column, self.pos)


class TokenStream:
    """A restartable, lazily evaluated view of the tokens of one source text.

    Each iteration re-lexes from the beginning; :attr:`errors` reflects the
    most recent complete pass.
    """

    def __init__(self, source: str, path: str = "", *, recover: bool = False):
        self.source = source
        self.path = path
        self.recover = recover
        self.errors: List[LexError] = []

    def __iter__(self) -> Iterator[Token]:
        lexer = Lexer(self.source, self.path, recover=self.recover)
        self.errors = lexer.errors
        return lexer.tokens()


def tokenize(source: str, path: str = "") -> List[Token]:
    """Tokenize DocBuf source code, raising on the first invalid character."""
    return list(Lexer(source, path).tokens())


__all__ = ["Token", "TokenType", "Lexer", "TokenStream", "tokenize", "KEYWORDS"]
