from __future__ import annotations

import pytest

from docbuf.codec import Encoder, EnumValue, encode, validate_instance, validate_value
from docbuf.errors import ConstraintViolation
from docbuf.schema import DocumentRef, ListType, SchemaModel


@pytest.mark.parametrize(
    "changes, path",
    [
        ({"email": "not-an-address"}, "Order.email"),
        ({"items": [{"sku": ""}]}, "Order.items[0].sku"),
        ({"items": [{"sku": "A", "quantity": 0}]}, "Order.items[0].quantity"),
        ({"items": [{"sku": "A"}, {"sku": "B", "quantity": 101}]}, "Order.items[1].quantity"),
        ({"items": [{"sku": "x" * 33}]}, "Order.items[0].sku"),
        ({"status": EnumValue("Refunded", 0)}, "Order.status.Refunded"),
    ],
)
def test_violations_name_the_field(shop_model: SchemaModel, changes: dict, path: str) -> None:
    instance = {"id": 1, **changes}
    with pytest.raises(ConstraintViolation) as excinfo:
        validate_instance(shop_model, "Order", instance)
    assert excinfo.value.field == path


def test_valid_instance_passes(shop_model: SchemaModel, full_order: dict) -> None:
    validate_instance(shop_model, "Order", full_order)
    validate_instance(shop_model, shop_model.root, {"id": 1, "status": EnumValue("Refunded", 1)})


def test_encoding_only_checks_constraints_when_asked(shop_model: SchemaModel) -> None:
    instance = {"id": 1, "items": [{"sku": ""}]}

    assert encode(shop_model, "Order", instance)
    with pytest.raises(ConstraintViolation, match="min_length 1"):
        Encoder(shop_model, validate_before_encode=True).encode("Order", instance)
    with pytest.raises(ConstraintViolation):
        encode(shop_model, "Order", instance, validate_before_encode=True)


def test_values_nested_in_lists(shop_model: SchemaModel) -> None:
    orders = ListType(DocumentRef("shop.Order"))
    with pytest.raises(ConstraintViolation) as excinfo:
        validate_value(shop_model, orders, [{"id": 1}, {"id": 2, "email": "x"}])
    assert excinfo.value.field == "value[1].email"

    with pytest.raises(ConstraintViolation):
        Encoder(shop_model, validate_before_encode=True).encode_value(orders, [{"id": 2, "email": "x"}])
