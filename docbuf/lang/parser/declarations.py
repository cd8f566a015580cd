"""Declaration parsing for documents, enumerables and processes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional, Tuple, TypeVar

from docbuf.ast import (
    DocumentDecl,
    EndpointDecl,
    EnumDecl,
    FieldDecl,
    ListOf,
    OptionBlock,
    OptionEntry,
    OptionValue,
    ProcessDecl,
    TypeExpr,
    TypeName,
    VariantDecl,
)
from docbuf.ast.declarations import Declaration
from docbuf.errors import ParseError
from docbuf.lang.lexer import Token, TokenType

if TYPE_CHECKING:
    from .parse import DocbufParser

T = TypeVar("T")

# Option scopes accepted in front of each construct.
DOCUMENT_SCOPES = ("document",)
ENUM_SCOPES = ("enum",)
PROCESS_SCOPES = ("process",)
FIELD_SCOPES = ("field",)
VARIANT_SCOPES = ("field", "item")
ENDPOINT_SCOPES = ("endpoint",)

_CONSTRUCT_SCOPES = {
    TokenType.DOCUMENT: DOCUMENT_SCOPES,
    TokenType.ENUMERABLE: ENUM_SCOPES,
    TokenType.PROCESS: PROCESS_SCOPES,
}


def _join_docs(*docs: Optional[str]) -> Optional[str]:
    parts = [doc for doc in docs if doc]
    return "\n".join(parts) if parts else None


class DeclarationParsingMixin:
    """Mixin with the block-level grammar of the DocBuf language."""

    # ====================================================================
    # Top-Level Declarations
    # ====================================================================

    def parse_top_level_declaration(self: "DocbufParser") -> Optional[Declaration]:
        """
        Grammar:
            Declaration = { OptionBlock } , ( Document | Enumerable | Process ) ;
        """
        first = self.current()
        options_token = first if first.type == TokenType.OPTIONS_START else None
        options = self.parse_option_blocks()

        keyword = self.current()
        if keyword.type not in _CONSTRUCT_SCOPES:
            raise self.error(
                "Expected a declaration",
                expected=["'document'", "'enumerable'", "'process'"],
                token=keyword,
                hint="Top-level statements are 'module', 'import', 'document', 'enumerable' and 'process'",
            )

        if options is not None and options.scope not in _CONSTRUCT_SCOPES[keyword.type]:
            self.record(self.error(
                f"'{options.scope}::options' cannot annotate {keyword.value!r}",
                expected=[f"'{scope}::options'" for scope in _CONSTRUCT_SCOPES[keyword.type]],
                token=options_token,
            ))

        doc = _join_docs(first.doc, keyword.doc if keyword is not first else None)

        if keyword.type == TokenType.DOCUMENT:
            return self.parse_document(options, doc)
        if keyword.type == TokenType.ENUMERABLE:
            return self.parse_enumerable(options, doc)
        return self.parse_process(options, doc)

    def parse_document(self: "DocbufParser", options: Optional[OptionBlock], doc: Optional[str]) -> DocumentDecl:
        """
        Grammar:
            Document = "document" , IDENTIFIER , "{" , [ Field , { "," , Field } , [ "," ] ] , "}" ;
        """
        keyword = self.expect(TokenType.DOCUMENT)
        name = self._consume_name(what="document name")
        fields = self._parse_members(self.parse_field)
        return DocumentDecl(
            name=name.value,
            fields=fields,
            options=options,
            doc=doc,
            location=self.location(keyword),
        )

    def parse_enumerable(self: "DocbufParser", options: Optional[OptionBlock], doc: Optional[str]) -> EnumDecl:
        """
        Grammar:
            Enumerable = "enumerable" , IDENTIFIER , "{" , { Variant } , "}" ;
        """
        keyword = self.expect(TokenType.ENUMERABLE)
        name = self._consume_name(what="enumerable name")
        variants = self._parse_members(self.parse_variant)
        return EnumDecl(
            name=name.value,
            variants=variants,
            options=options,
            doc=doc,
            location=self.location(keyword),
        )

    def parse_process(self: "DocbufParser", options: Optional[OptionBlock], doc: Optional[str]) -> ProcessDecl:
        """
        Grammar:
            Process = "process" , IDENTIFIER , "{" , { Endpoint } , "}" ;
        """
        keyword = self.expect(TokenType.PROCESS)
        name = self._consume_name(what="process name")
        endpoints = self._parse_members(self.parse_endpoint)
        return ProcessDecl(
            name=name.value,
            endpoints=endpoints,
            options=options,
            doc=doc,
            location=self.location(keyword),
        )

    # ====================================================================
    # Members
    # ====================================================================

    def _parse_members(self: "DocbufParser", parse_member: Callable[[], T]) -> List[T]:
        """Parse a braced member list, recovering at member boundaries."""
        self.expect(TokenType.LBRACE)
        members: List[T] = []
        while not self.match(TokenType.RBRACE, TokenType.EOF):
            if self._at_declaration_start():
                # The block was never closed; let the top level take over.
                self.record(self.error("Unclosed block", expected=["'}'"]))
                return members
            start = self.pos
            try:
                members.append(parse_member())
            except ParseError as exc:
                self.record(exc)
                self._skip_member()
                if self.pos == start:
                    self.advance()
        self.expect(TokenType.RBRACE)
        return members

    def _skip_member(self: "DocbufParser") -> None:
        """Skip to just past the next ``,`` or to the closing ``}``."""
        depth = 0
        while not self.match(TokenType.EOF):
            token = self.current()
            if depth == 0 and self._at_declaration_start():
                return
            if token.type in (TokenType.LBRACE, TokenType.LBRACKET, TokenType.LPAREN):
                depth += 1
            elif token.type in (TokenType.RBRACE, TokenType.RBRACKET, TokenType.RPAREN):
                if depth == 0:
                    return
                depth -= 1
            elif token.type == TokenType.COMMA and depth == 0:
                self.advance()
                return
            self.advance()

    def _expect_member_end(self: "DocbufParser") -> None:
        if self.consume_if(TokenType.COMMA) or self.match(TokenType.RBRACE):
            return
        raise self.error("Expected ',' or '}' after member", expected=["','", "'}'"])

    def _parse_member_head(
        self: "DocbufParser", scopes: Tuple[str, ...], construct: str
    ) -> Tuple[Optional[OptionBlock], Token, Optional[str]]:
        """Parse leading option blocks and the member name."""
        first = self.current()
        options = self.parse_option_blocks()
        if options is not None and options.scope not in scopes:
            raise self.error(
                f"'{options.scope}::options' cannot annotate a {construct}",
                expected=[f"'{scope}::options'" for scope in scopes],
                token=first,
            )
        name = self._consume_name(allow_keywords=True, what=f"{construct} name")
        doc = _join_docs(first.doc, name.doc if name is not first else None)
        return options, name, doc

    def parse_field(self: "DocbufParser") -> FieldDecl:
        """
        Grammar:
            Field = { OptionBlock } , IDENTIFIER , ":" , TypeExpr ;
        """
        options, name, doc = self._parse_member_head(FIELD_SCOPES, "field")
        self.expect(TokenType.COLON)
        type_expr = self.parse_type_expr()
        if self.match(TokenType.ARROW):
            raise self.error(
                "Endpoint marker '->' is only allowed inside a process",
                hint="Remove '-> ()' or move the member into a process block",
            )
        self._expect_member_end()
        return FieldDecl(
            name=name.value,
            type=type_expr,
            options=options,
            doc=doc,
            location=self.location(name),
        )

    def parse_variant(self: "DocbufParser") -> VariantDecl:
        """
        Grammar:
            Variant = { OptionBlock } , IDENTIFIER , [ ":" , TypeExpr ] ;
        """
        options, name, doc = self._parse_member_head(VARIANT_SCOPES, "variant")
        type_expr = None
        if self.consume_if(TokenType.COLON):
            type_expr = self.parse_type_expr()
        self._expect_member_end()
        return VariantDecl(
            name=name.value,
            type=type_expr,
            options=options,
            doc=doc,
            location=self.location(name),
        )

    def parse_endpoint(self: "DocbufParser") -> EndpointDecl:
        """
        Grammar:
            Endpoint = { OptionBlock } , IDENTIFIER , ":" , TypeExpr , "->" , "(" , [ TypeExpr ] , ")" ;
        """
        options, name, doc = self._parse_member_head(ENDPOINT_SCOPES, "endpoint")
        self.expect(TokenType.COLON)
        request = self.parse_type_expr()
        self.expect(TokenType.ARROW, what="'->' after endpoint request type")
        self.expect(TokenType.LPAREN)
        response = None
        if not self.match(TokenType.RPAREN):
            response = self.parse_type_expr()
        self.expect(TokenType.RPAREN)
        self._expect_member_end()
        return EndpointDecl(
            name=name.value,
            request=request,
            response=response,
            options=options,
            doc=doc,
            location=self.location(name),
        )

    def parse_type_expr(self: "DocbufParser") -> TypeExpr:
        """
        Grammar:
            TypeExpr = "[" , TypeExpr , "]" | IDENTIFIER , { "." , IDENTIFIER } ;
        """
        start = self.current()
        if self.consume_if(TokenType.LBRACKET):
            element = self.parse_type_expr()
            self.expect(TokenType.RBRACKET)
            return ListOf(element=element, location=self.location(start))
        if start.type != TokenType.IDENTIFIER:
            raise self.error("Expected a type", expected=["type name", "'['"], token=start)
        name = self._parse_dotted_identifier()
        return TypeName(name=name, location=self.location(start))

    # ====================================================================
    # Option Blocks
    # ====================================================================

    def parse_option_blocks(self: "DocbufParser") -> Optional[OptionBlock]:
        """Parse consecutive option blocks, merging those of the same scope."""
        merged: Optional[OptionBlock] = None
        while self.match(TokenType.OPTIONS_START):
            block = self.parse_option_block()
            if merged is None:
                merged = block
            elif block.scope != merged.scope:
                raise self.error(
                    f"Conflicting option scopes '{merged.scope}' and '{block.scope}'",
                )
            else:
                merged.entries.extend(block.entries)
        return merged

    def parse_option_block(self: "DocbufParser") -> OptionBlock:
        """
        Grammar:
            OptionBlock = "#[" , IDENTIFIER , "::" , "options" , "{" , { OptionEntry } , "}" , "]" ;
        """
        start = self.expect(TokenType.OPTIONS_START)
        scope = self._consume_name(allow_keywords=True, what="option scope")
        self.expect(TokenType.DOUBLE_COLON)
        keyword = self._consume_name(what="'options'")
        if keyword.value != "options":
            raise self.error("Expected 'options'", expected=["'options'"], token=keyword)
        self.expect(TokenType.LBRACE)

        entries: List[OptionEntry] = []
        while not self.match(TokenType.RBRACE, TokenType.EOF):
            try:
                entries.append(self.parse_option_entry())
            except ParseError as exc:
                self.record(exc)
                while not self.match(TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
                    self.advance()
                self.consume_if(TokenType.SEMICOLON)
        self.expect(TokenType.RBRACE)
        self.expect(TokenType.RBRACKET)
        return OptionBlock(scope=scope.value, entries=entries, location=self.location(start))

    def parse_option_entry(self: "DocbufParser") -> OptionEntry:
        """
        Grammar:
            OptionEntry = IDENTIFIER , "=" , Literal , ";" ;
        """
        key = self._consume_name(allow_keywords=True, what="option name")
        self.expect(TokenType.ASSIGN)
        value = self.parse_literal()
        if not self.consume_if(TokenType.SEMICOLON) and not self.match(TokenType.RBRACE):
            raise self.error("Expected ';' after option value", expected=["';'"])
        return OptionEntry(key=key.value, value=value, location=self.location(key))

    def parse_literal(self: "DocbufParser") -> OptionValue:
        token = self.current()
        if token.type == TokenType.STRING:
            self.advance()
            return OptionValue(kind="string", value=token.value, raw=token.value)
        if token.type == TokenType.INTEGER:
            self.advance()
            return OptionValue(kind="integer", value=int(token.value), raw=token.value)
        if token.type == TokenType.FLOAT:
            self.advance()
            return OptionValue(kind="float", value=float(token.value), raw=token.value)
        if token.type == TokenType.BOOLEAN:
            self.advance()
            return OptionValue(kind="boolean", value=token.value == "true", raw=token.value)
        if token.type == TokenType.IDENTIFIER:
            value = self._parse_dotted_identifier()
            return OptionValue(kind="identifier", value=value, raw=value)
        raise self.error(
            "Expected a literal value",
            expected=["string", "number", "boolean", "identifier"],
            token=token,
        )


__all__ = ["DeclarationParsingMixin"]
