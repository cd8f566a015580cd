from __future__ import annotations

import pytest

from docbuf.errors import LexError, MissingPragma, ParseError, ParseFailed, UnsupportedVersion
from docbuf.lang.parser import parse_module


def _errors(source: str):
    with pytest.raises(ParseFailed) as excinfo:
        parse_module(source, path="broken.docbuf")
    return excinfo.value.errors


@pytest.mark.parametrize(
    "source",
    [
        "module a;",
        "",
        "pragma protobuf v1;\nmodule a;",
        "pragma docbuf v1\nmodule a;",
    ],
)
def test_missing_or_malformed_pragma(source: str) -> None:
    errors = _errors(source)
    assert len(errors) == 1
    assert isinstance(errors[0], MissingPragma)


@pytest.mark.parametrize("version", ["v2", "v1.1", "version1", "v1.x"])
def test_unsupported_version(version: str) -> None:
    errors = _errors(f"pragma docbuf {version};\nmodule a;")
    assert len(errors) == 1
    assert isinstance(errors[0], UnsupportedVersion)


def test_all_member_errors_are_collected() -> None:
    source = "\n".join(
        [
            "pragma docbuf v1;",
            "module a;",
            "document A {",
            "    x u8,",
            "    y: ,",
            "    z: u8,",
            "}",
            "document B {",
            "    w: u8 -> (),",
            "}",
        ]
    )
    errors = _errors(source)
    assert [error.line for error in errors] == [4, 5, 9]
    assert all(isinstance(error, ParseError) for error in errors)
    assert "only allowed inside a process" in errors[2].message
    assert errors[0].path == "broken.docbuf"


def test_unclosed_block_recovers_at_next_declaration() -> None:
    source = "\n".join(
        [
            "pragma docbuf v1;",
            "module a;",
            "document A {",
            "    x: u8,",
            "document B { y: u8 }",
            "document C { z: }",
        ]
    )
    errors = _errors(source)
    assert len(errors) == 2
    assert errors[0].message == "Unclosed block"
    assert errors[1].line == 6


def test_option_scope_must_match_construct() -> None:
    source = """
pragma docbuf v1;
module a;
#[field::options { root = true; }]
document A { x: u8 }
document B {
    #[endpoint::options { stream = true; }]
    y: u8,
}
"""
    errors = _errors(source)
    assert len(errors) == 2
    assert "cannot annotate" in errors[0].message
    assert "cannot annotate a field" in errors[1].message


def test_conflicting_option_scopes() -> None:
    source = """
pragma docbuf v1;
module a;
document A {
    #[field::options { required = true; }]
    #[endpoint::options { stream = true; }]
    x: u8,
}
"""
    errors = _errors(source)
    assert "Conflicting option scopes" in errors[0].message


def test_bad_option_entry_does_not_hide_later_errors() -> None:
    source = """
pragma docbuf v1;
module a;
document A {
    #[field::options { required = ; max_length = 3; }]
    x: String,
    y u8,
}
"""
    errors = _errors(source)
    assert len(errors) == 2
    assert "Expected a literal value" in errors[0].message


def test_missing_module_declaration() -> None:
    errors = _errors("pragma docbuf v1;\ndocument A { x: u8 }")
    assert len(errors) == 1
    assert "Missing module declaration" in errors[0].message


def test_module_declared_twice() -> None:
    errors = _errors("pragma docbuf v1;\nmodule a;\nmodule b;\n")
    assert "only be declared once" in errors[0].message


def test_repeated_pragma() -> None:
    errors = _errors("pragma docbuf v1;\nmodule a;\npragma docbuf v1;\n")
    assert "Pragma can only appear once" in errors[0].message


def test_empty_import_path() -> None:
    errors = _errors('pragma docbuf v1;\nmodule a;\nimport "  ";\n')
    assert "Import path cannot be empty" in errors[0].message


def test_lexical_errors_are_reported_with_syntax_errors() -> None:
    errors = _errors("pragma docbuf v1;\nmodule a;\n$\n")
    assert isinstance(errors[0], LexError)
    assert errors[0].line == 3


@pytest.mark.parametrize(
    "source",
    [
        "pragma docbuf v1.\u00b2;\nmodule a;\n",
        "pragma docbuf v1;\nmodule a;\ndocument D {\n    #[field::options { max_length = \u00b2; }]\n    s: String,\n}\n",
    ],
)
def test_unicode_digits_are_lexical_errors(source: str) -> None:
    errors = _errors(source)
    assert any(isinstance(error, LexError) and error.unexpected_char == "\u00b2" for error in errors)


def test_endpoint_requires_unit_response_marker() -> None:
    errors = _errors("pragma docbuf v1;\nmodule a;\nprocess P { call: A, }\n")
    assert errors[0].expected == ["'->' after endpoint request type"]


def test_error_format_includes_location_and_expectation() -> None:
    errors = _errors("pragma docbuf v1;\nmodule a;\ndocument A { x u8 }\n")
    formatted = errors[0].format()
    assert "broken.docbuf:3:16" in formatted
    assert "expected ':'" in formatted
