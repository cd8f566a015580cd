from __future__ import annotations

import textwrap

import pytest

from docbuf.codec.values import EnumValue
from docbuf.compiler import compile_source
from docbuf.schema.model import SchemaModel

SHOP_SOURCE = textwrap.dedent(
    '''
    /// Orders placed through the storefront.
    pragma docbuf v1;
    module shop;

    enumerable Status {
        Pending,
        Shipped: String,
        #[field::options { min_value = 1; }]
        Refunded: u32,
    }

    document Item {
        #[field::options { required = true; min_length = 1; max_length = 32; }]
        sku: String,
        #[field::options { min_value = 1; max_value = 100; default = 1; }]
        quantity: u16,
        price: f64,
    }

    /// An order placed by a customer.
    #[document::options { root = true; }]
    document Order {
        #[field::options { required = true; }]
        id: u64,
        #[field::options { regex = "^[^@]+@[^@]+$"; }]
        email: String,
        items: [Item],
        #[field::options { default = Pending; }]
        status: Status,
        note: bytes,
        gift: bool,
        tags: [[String]],
    }

    #[process::options { port = 8443; crypto = ed25519; hash = sha256; }]
    process Orders {
        #[endpoint::options { request_rate_limit_per_minute = 2; signature_required = true; }]
        submit: Order -> (),
        bulk: [Order] -> (),
    }
    '''
)


def _schema(body: str, *, module: str = "test") -> str:
    return f"pragma docbuf v1;\nmodule {module};\n" + textwrap.dedent(body)


@pytest.fixture
def make_schema():
    """Wrap declarations in the pragma and module header."""
    return _schema


@pytest.fixture
def shop_source() -> str:
    return SHOP_SOURCE


@pytest.fixture
def shop_model() -> SchemaModel:
    return compile_source(SHOP_SOURCE, path="shop.docbuf")


@pytest.fixture
def full_order() -> dict:
    return {
        "id": 42,
        "email": "ada@example.com",
        "items": [
            {"sku": "A-1", "quantity": 2, "price": 9.5},
            {"sku": "B-2", "quantity": 1, "price": 0.25},
        ],
        "status": EnumValue("Shipped", "DHL"),
        "note": b"\x00\xffgift wrap",
        "gift": True,
        "tags": [["red", "large"], []],
    }
