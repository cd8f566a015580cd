"""Recursive descent parser for DocBuf schema sources.

The parser reports every malformed construct it can find in one pass: each
problem is recorded as a :class:`ParseError` and the parser resynchronizes at
the next member or statement boundary. A missing or unsupported ``pragma`` is
the exception; it aborts the file immediately.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from docbuf.ast import Import, Module, SourceLocation
from docbuf.ast.declarations import Declaration
from docbuf.errors import (
    DocbufError,
    MissingPragma,
    ParseError,
    ParseFailed,
    UnsupportedVersion,
)
from docbuf.lang import LANGUAGE_NAME, SUPPORTED_LANGUAGE_VERSIONS, format_version
from docbuf.lang.lexer import Token, TokenStream, TokenType
from docbuf.observability.logging import get_logger

from .declarations import DeclarationParsingMixin

logger = get_logger(__name__)

_VERSION_PATTERN = re.compile(r"v(\d+)$")
_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")

_DECLARATION_KEYWORDS = (TokenType.DOCUMENT, TokenType.ENUMERABLE, TokenType.PROCESS)


def _fold_doc_comments(tokens: Iterable[Token]) -> List[Token]:
    """Attach ``///`` comment text to the next significant token."""
    folded: List[Token] = []
    pending: List[str] = []
    for token in tokens:
        if token.type == TokenType.DOC_COMMENT:
            pending.append(token.value)
            continue
        if pending:
            token.doc = "\n".join(pending)
            pending = []
        folded.append(token)
    return folded


class DocbufParser(DeclarationParsingMixin):
    """
    Recursive descent parser producing one :class:`Module` per source text.

    Grammar:
        Module     = Pragma , { Statement } ;
        Pragma     = "pragma" , "docbuf" , VERSION , ";" ;
        Statement  = ModuleDecl | ImportDecl | Declaration ;
        ModuleDecl = "module" , DottedIdentifier , ";" ;
        ImportDecl = "import" , STRING , ";" ;
    """

    def __init__(self, source: str, *, path: str = ""):
        self.source = source
        self.path = path

        stream = TokenStream(source, path, recover=True)
        self.tokens: List[Token] = _fold_doc_comments(stream)
        self.pos = 0

        self.errors: List[DocbufError] = list(stream.errors)

        self.module_name: Optional[str] = None
        self.module_doc: Optional[str] = None
        self.language_version: Optional[Tuple[int, int]] = None
        self.imports: List[Import] = []
        self.declarations: List[Declaration] = []

    # ====================================================================
    # Token Management
    # ====================================================================

    def peek(self, offset: int = 0) -> Token:
        pos = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[pos]

    def current(self) -> Token:
        return self.peek(0)

    def advance(self) -> Token:
        token = self.current()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def match(self, *types: TokenType) -> bool:
        return self.current().type in types

    def consume_if(self, *types: TokenType) -> Optional[Token]:
        if self.match(*types):
            return self.advance()
        return None

    def expect(self, *types: TokenType, what: Optional[str] = None) -> Token:
        token = self.current()
        if token.type not in types:
            expected = [what] if what else [_describe_type(t) for t in types]
            raise self.error("Unexpected token", expected=expected, token=token)
        return self.advance()

    def error(
        self,
        message: str,
        *,
        expected: Optional[List[str]] = None,
        token: Optional[Token] = None,
        hint: Optional[str] = None,
        cls: type = ParseError,
    ) -> ParseError:
        """Create a syntax error at ``token`` (default: the current token)."""
        token = token or self.current()
        return cls(
            message,
            expected=expected,
            found=token.describe(),
            path=self.path or None,
            line=token.line,
            column=token.column,
            hint=hint,
        )

    def record(self, error: DocbufError) -> None:
        logger.debug("parse error recorded: %s", error.format())
        self.errors.append(error)

    def location(self, token: Token) -> SourceLocation:
        return SourceLocation(file=self.path, line=token.line, column=token.column)

    def _consume_name(self, *, allow_keywords: bool = False, what: str = "identifier") -> Token:
        token = self.current()
        if token.type == TokenType.IDENTIFIER:
            return self.advance()
        if allow_keywords and _IDENTIFIER_PATTERN.match(token.value or ""):
            return self.advance()
        raise self.error(f"Expected {what}", expected=[what], token=token)

    def _parse_dotted_identifier(self, *, allow_keywords: bool = False) -> str:
        parts = [self._consume_name(allow_keywords=allow_keywords).value]
        while self.consume_if(TokenType.DOT):
            parts.append(self._consume_name(allow_keywords=allow_keywords).value)
        return ".".join(parts)

    def _at_declaration_start(self) -> bool:
        """True when the cursor sits on ``document Foo``-style text."""
        token = self.current()
        if token.type in _DECLARATION_KEYWORDS:
            return self.peek(1).type == TokenType.IDENTIFIER
        return False

    def synchronize(self) -> None:
        """Skip ahead to the next top-level statement."""
        self.advance()
        while not self.match(TokenType.EOF):
            if self.match(TokenType.MODULE, TokenType.IMPORT, TokenType.OPTIONS_START):
                return
            if self._at_declaration_start():
                return
            self.advance()

    # ====================================================================
    # High-Level Parsing
    # ====================================================================

    def parse(self) -> Module:
        """
        Parse the entire source text.

        Raises:
            ParseFailed: carrying every lexical and syntactic error found.
        """
        self.parse_pragma()

        while not self.match(TokenType.EOF):
            try:
                self.parse_statement()
            except ParseError as exc:
                self.record(exc)
                self.synchronize()

        if self.module_name is None and not self.errors:
            self.record(ParseError(
                "Missing module declaration",
                expected=["'module <name>;'"],
                path=self.path or None,
                line=1,
                column=1,
                hint="Declare the module name after the pragma, e.g. 'module shop;'",
            ))

        if self.errors:
            raise ParseFailed(self.errors, path=self.path or None)

        module = self.build_module()
        logger.debug(
            "parsed module %s: %d declaration(s), %d import(s)",
            module.name, len(module.body), len(module.imports),
        )
        return module

    def parse_pragma(self) -> None:
        """
        Parse the leading version pragma.

        Grammar:
            Pragma = "pragma" , "docbuf" , "v" MAJOR [ "." MINOR ] , ";" ;
        """
        token = self.current()
        if token.type != TokenType.PRAGMA:
            self._abort(self.error(
                "Source must start with a docbuf pragma",
                expected=["'pragma docbuf v1;'"],
                token=token,
                cls=MissingPragma,
            ))
        self.module_doc = token.doc
        self.advance()

        language = self.current()
        if language.type != TokenType.IDENTIFIER or language.value != LANGUAGE_NAME:
            self._abort(self.error(
                "Pragma must name the docbuf language",
                expected=[f"'{LANGUAGE_NAME}'"],
                token=language,
                cls=MissingPragma,
            ))
        self.advance()

        version_token = self.current()
        match = _VERSION_PATTERN.match(version_token.value or "") if version_token.type == TokenType.IDENTIFIER else None
        if match is None:
            self._abort(self.error(
                "Malformed pragma version",
                expected=["version such as 'v1'"],
                token=version_token,
                cls=UnsupportedVersion,
            ))
        self.advance()
        major = int(match.group(1))
        minor = 0
        if self.consume_if(TokenType.DOT):
            minor_token = self.current()
            if minor_token.type != TokenType.INTEGER:
                self._abort(self.error(
                    "Malformed pragma version",
                    expected=["minor version number"],
                    token=minor_token,
                    cls=UnsupportedVersion,
                ))
            self.advance()
            minor = int(minor_token.value)

        if (major, minor) not in SUPPORTED_LANGUAGE_VERSIONS:
            supported = ", ".join(format_version(v) for v in sorted(SUPPORTED_LANGUAGE_VERSIONS))
            self._abort(self.error(
                f"Unsupported docbuf version v{major}.{minor}",
                expected=[supported],
                token=version_token,
                cls=UnsupportedVersion,
            ))
        self.language_version = (major, minor)

        if not self.match(TokenType.SEMICOLON):
            self._abort(self.error("Pragma must end with ';'", expected=["';'"], cls=MissingPragma))
        self.advance()

    def _abort(self, error: ParseError) -> None:
        raise ParseFailed([error, *self.errors], path=self.path or None)

    def parse_statement(self) -> None:
        token = self.current()
        if token.type == TokenType.MODULE:
            self.parse_module_declaration()
        elif token.type == TokenType.IMPORT:
            self.parse_import_declaration()
        elif token.type == TokenType.PRAGMA:
            raise self.error(
                "Pragma can only appear once, as the first statement",
                hint="Remove the repeated pragma",
            )
        else:
            decl = self.parse_top_level_declaration()
            if decl is not None:
                self.declarations.append(decl)

    def parse_module_declaration(self) -> None:
        """
        Grammar:
            ModuleDecl = "module" , DottedIdentifier , ";" ;
        """
        module_token = self.expect(TokenType.MODULE)
        name = self._parse_dotted_identifier(allow_keywords=True)
        self.expect(TokenType.SEMICOLON)
        if self.module_name is not None:
            raise self.error(
                "Module can only be declared once",
                token=module_token,
                hint=f"This file already declares module '{self.module_name}'",
            )
        self.module_name = name
        if module_token.doc and not self.module_doc:
            self.module_doc = module_token.doc

    def parse_import_declaration(self) -> None:
        """
        Grammar:
            ImportDecl = "import" , STRING , ";" ;
        """
        import_token = self.expect(TokenType.IMPORT)
        path_token = self.expect(TokenType.STRING, what="quoted import path")
        self.expect(TokenType.SEMICOLON)
        if not path_token.value.strip():
            raise self.error("Import path cannot be empty", token=path_token)
        self.imports.append(Import(path=path_token.value.strip(), location=self.location(import_token)))

    def build_module(self) -> Module:
        return Module(
            name=self.module_name,
            language_version=self.language_version,
            path=self.path,
            imports=list(self.imports),
            body=list(self.declarations),
            doc=self.module_doc,
        )


def _describe_type(token_type: TokenType) -> str:
    symbols = {
        TokenType.LBRACE: "'{'",
        TokenType.RBRACE: "'}'",
        TokenType.LBRACKET: "'['",
        TokenType.RBRACKET: "']'",
        TokenType.LPAREN: "'('",
        TokenType.RPAREN: "')'",
        TokenType.ARROW: "'->'",
        TokenType.COMMA: "','",
        TokenType.COLON: "':'",
        TokenType.DOUBLE_COLON: "'::'",
        TokenType.SEMICOLON: "';'",
        TokenType.ASSIGN: "'='",
        TokenType.DOT: "'.'",
        TokenType.OPTIONS_START: "'#['",
    }
    return symbols.get(token_type, token_type.name.lower().replace("_", " "))


__all__ = ["DocbufParser"]
