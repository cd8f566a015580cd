from __future__ import annotations

from docbuf.ast import DocumentDecl, EndpointDecl, EnumDecl, ListOf, ProcessDecl, TypeName
from docbuf.lang.parser import parse_module


def test_parse_shop_module(shop_source: str) -> None:
    module = parse_module(shop_source, path="shop.docbuf")

    assert module.name == "shop"
    assert module.path == "shop.docbuf"
    assert module.language_version == (1, 0)
    assert module.doc == "Orders placed through the storefront."
    assert [type(decl) for decl in module.body] == [EnumDecl, DocumentDecl, DocumentDecl, ProcessDecl]
    assert [decl.name for decl in module.documents] == ["Item", "Order"]


def test_document_fields_and_types(shop_source: str) -> None:
    module = parse_module(shop_source)
    order = module.documents[1]

    assert order.doc == "An order placed by a customer."
    assert order.options.scope == "document"
    assert order.options.as_dict() == {"root": True}
    assert [field.name for field in order.fields] == ["id", "email", "items", "status", "note", "gift", "tags"]

    items = order.fields[2].type
    assert isinstance(items, ListOf)
    assert items.element.name == "Item"

    tags = order.fields[6].type
    assert isinstance(tags, ListOf) and isinstance(tags.element, ListOf)
    assert tags.element.element.name == "String"

    email = order.fields[1]
    assert email.options.get("regex").value == "^[^@]+@[^@]+$"


def test_enumerable_variants(shop_source: str) -> None:
    status = parse_module(shop_source).enums[0]

    assert [variant.name for variant in status.variants] == ["Pending", "Shipped", "Refunded"]
    assert status.variants[0].type is None
    assert status.variants[1].type.name == "String"
    assert status.variants[2].options.as_dict() == {"min_value": 1}


def test_process_endpoints(shop_source: str) -> None:
    process = parse_module(shop_source).processes[0]

    assert process.options.as_dict() == {"port": 8443, "crypto": "ed25519", "hash": "sha256"}
    submit, bulk = process.endpoints
    assert isinstance(submit, EndpointDecl)
    assert submit.request.name == "Order"
    assert submit.response is None
    assert submit.options.as_dict() == {"request_rate_limit_per_minute": 2, "signature_required": True}
    assert isinstance(bulk.request, ListOf)


def test_pragma_with_minor_version() -> None:
    module = parse_module("pragma docbuf v1.0;\nmodule a;\n")
    assert module.language_version == (1, 0)
    assert module.body == []


def test_imports_and_dotted_names() -> None:
    source = """
pragma docbuf v1;
module shop.orders;
import "common.docbuf";
import "./types";

document A {
    money: common.Money,
}
"""
    module = parse_module(source)
    assert module.name == "shop.orders"
    assert [statement.path for statement in module.imports] == ["common.docbuf", "./types"]
    assert module.imports[0].location.line == 4
    money = module.documents[0].fields[0].type
    assert isinstance(money, TypeName)
    assert money.name == "common.Money"


def test_option_literal_kinds() -> None:
    source = """
pragma docbuf v1;
module a;
document A {
    #[field::options { min_value = -5; max_value = 2.5e1; name = "renamed"; default = Some.Value }]
    x: f64,
}
"""
    options = parse_module(source).documents[0].fields[0].options
    assert [(entry.key, entry.value.kind, entry.value.value) for entry in options.entries] == [
        ("min_value", "integer", -5),
        ("max_value", "float", 25.0),
        ("name", "string", "renamed"),
        ("default", "identifier", "Some.Value"),
    ]


def test_repeated_option_blocks_merge() -> None:
    source = """
pragma docbuf v1;
module a;
document A {
    #[field::options { required = true; }]
    #[field::options { max_length = 3; }]
    x: String
}
"""
    field = parse_module(source).documents[0].fields[0]
    assert field.options.keys() == ["required", "max_length"]


def test_item_scope_on_variants_and_keyword_member_names() -> None:
    source = """
pragma docbuf v1;
module a;
enumerable E {
    #[item::options { name = "first"; }]
    A,
    B: u8
}
document D {
    module: String,
    process: u8,
}
"""
    module = parse_module(source)
    assert module.enums[0].variants[0].options.scope == "item"
    assert [field.name for field in module.documents[0].fields] == ["module", "process"]


def test_typed_response_is_parsed() -> None:
    source = """
pragma docbuf v1;
module a;
process P {
    call: A -> (A),
}
"""
    endpoint = parse_module(source).processes[0].endpoints[0]
    assert endpoint.response.name == "A"


def test_doc_comments_attach_to_members() -> None:
    source = """
pragma docbuf v1;
module a;
document A {
    /// The identifier.
    /// Never reused.
    id: u64,
}
"""
    field = parse_module(source).documents[0].fields[0]
    assert field.doc == "The identifier.\nNever reused."
