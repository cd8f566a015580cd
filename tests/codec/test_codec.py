from __future__ import annotations

import struct
from concurrent.futures import ThreadPoolExecutor

import pytest

from docbuf.codec import Decoder, Encoder, EnumValue, decode, encode
from docbuf.compiler import compile_source
from docbuf.config import CodecLimits
from docbuf.errors import (
    MalformedData,
    MissingRequiredField,
    NestingTooDeep,
    TypeMismatch,
    UnexpectedEof,
    UnknownTag,
)
from docbuf.schema import DocumentRef, ListType, SchemaModel, narrow_f32

ID_ONE = b"\x01\x04" + (1).to_bytes(8, "little")


def test_round_trip(shop_model: SchemaModel, full_order: dict) -> None:
    data = encode(shop_model, "Order", full_order)
    assert decode(shop_model, "Order", data) == full_order


def test_field_layout(shop_model: SchemaModel) -> None:
    assert encode(shop_model, "Order", {"id": 1}) == ID_ONE
    assert encode(shop_model, "Order", {"id": 1, "gift": False}) == ID_ONE + b"\x06\x0b\x00"
    assert encode(shop_model, "Order", {"id": 1, "email": "a@b"}) == ID_ONE + b"\x02\x0c\x03a@b"


def test_enum_layout(shop_model: SchemaModel) -> None:
    pending = encode(shop_model, "Order", {"id": 1, "status": "Pending"})
    assert pending == ID_ONE + b"\x04\x10\x01\x00"
    refunded = encode(shop_model, "Order", {"id": 1, "status": EnumValue("Refunded", 5)})
    assert refunded == ID_ONE + b"\x04\x10\x05\x02" + (5).to_bytes(4, "little")


def test_absent_fields_are_omitted_and_defaults_filled(shop_model: SchemaModel) -> None:
    data = encode(shop_model, "Order", {"id": 7, "note": None, "items": [{"sku": "X"}]})

    assert decode(shop_model, "Order", data) == {
        "id": 7,
        "items": [{"sku": "X", "quantity": 1}],
        "status": EnumValue("Pending"),
    }
    assert decode(shop_model, "Order", data, fill_defaults=False) == {"id": 7, "items": [{"sku": "X"}]}


def test_decoder_from_limits(shop_model: SchemaModel) -> None:
    decoder = Decoder.from_limits(shop_model, CodecLimits(fill_defaults=False))
    assert decoder.decode("Order", ID_ONE) == {"id": 1}


def test_unknown_tags_are_skipped(shop_model: SchemaModel) -> None:
    newer_fields = (
        b"\x63\x0c\x02hi"
        + b"\x64\x0e\x03\x02" + b"\x01\x00\x00\x00" * 2
        + b"\x65\x0f\x02\x01\x0b"
    )
    assert decode(shop_model, "Order", ID_ONE + newer_fields, fill_defaults=False) == {"id": 1}


def test_truncated_input(shop_model: SchemaModel, full_order: dict) -> None:
    data = encode(shop_model, "Order", full_order)
    with pytest.raises(UnexpectedEof):
        decode(shop_model, "Order", data[:-1])
    with pytest.raises(UnexpectedEof):
        decode(shop_model, "Order", ID_ONE[:5])


def test_list_count_beyond_input(shop_model: SchemaModel) -> None:
    with pytest.raises(UnexpectedEof):
        decode(shop_model, "Order", ID_ONE + b"\x03\x0e\x0f\x7f")


def test_missing_required_field(shop_model: SchemaModel) -> None:
    with pytest.raises(MissingRequiredField) as excinfo:
        encode(shop_model, "Order", {"email": "a@b"})
    assert excinfo.value.field == "Order.id"

    with pytest.raises(MissingRequiredField, match=r"Order\.items\[0\]\.sku is required"):
        decode(shop_model, "Order", ID_ONE + b"\x03\x0e\x0f\x01\x00")


@pytest.mark.parametrize(
    "instance, path",
    [
        ({"id": "1"}, "Order.id"),
        ({"id": -1}, "Order.id"),
        ({"id": 2**64}, "Order.id"),
        ({"id": True}, "Order.id"),
        ({"id": 1, "gift": 1}, "Order.gift"),
        ({"id": 1, "email": b"a@b"}, "Order.email"),
        ({"id": 1, "note": "text"}, "Order.note"),
        ({"id": 1, "items": {"sku": "A"}}, "Order.items"),
        ({"id": 1, "items": [None]}, "Order.items[0]"),
        ({"id": 1, "items": [{"sku": "A", "quantity": 70000}]}, "Order.items[0].quantity"),
        ({"id": 1, "status": EnumValue("Lost")}, "Order.status"),
        ({"id": 1, "status": EnumValue("Pending", 1)}, "Order.status"),
        ({"id": 1, "status": EnumValue("Shipped")}, "Order.status"),
        ({"id": 1, "status": 3}, "Order.status"),
        ({"id": 1, "tags": [["a", 1]]}, "Order.tags[0][1]"),
    ],
)
def test_encode_type_mismatch(shop_model: SchemaModel, instance: dict, path: str) -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        encode(shop_model, "Order", instance)
    assert excinfo.value.field == path


def test_encode_rejects_unknown_keys(shop_model: SchemaModel) -> None:
    with pytest.raises(TypeMismatch, match="has no field"):
        encode(shop_model, "Order", {"id": 1, "colour": "red"})


def test_integers_are_accepted_for_floats(shop_model: SchemaModel) -> None:
    data = encode(shop_model, "Item", {"sku": "A", "price": 3})
    assert decode(shop_model, "Item", data) == {"sku": "A", "price": 3.0, "quantity": 1}


@pytest.fixture
def gauge_model(make_schema) -> SchemaModel:
    return compile_source(
        make_schema(
            """
            #[document::options { root = true; }]
            document Gauge {
                #[field::options { default = 0.1; }]
                level: f32,
                reading: f64,
            }
            """
        )
    )


def test_f32_values_round_trip_exactly(gauge_model: SchemaModel) -> None:
    assert gauge_model.root.get_field("level").options.default == narrow_f32(0.1) == 0.10000000149011612

    for value in (0.5, -1.25, 3.0, narrow_f32(0.1), float("inf")):
        data = encode(gauge_model, "Gauge", {"level": value})
        assert data == b"\x01\x09" + struct.pack("<f", value)
        assert decode(gauge_model, "Gauge", data) == {"level": value}

    assert decode(gauge_model, "Gauge", b"") == {"level": 0.10000000149011612}
    assert decode(gauge_model, "Gauge", encode(gauge_model, "Gauge", {"reading": 0.1})) == {
        "level": 0.10000000149011612,
        "reading": 0.1,
    }


@pytest.mark.parametrize("value", [0.1, 1e39, 2**24 + 1])
def test_f32_rejects_values_it_cannot_hold(gauge_model: SchemaModel, value: float) -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        encode(gauge_model, "Gauge", {"level": value})
    assert excinfo.value.field == "Gauge.level"


def test_f32_mismatch_suggests_the_narrowed_value(gauge_model: SchemaModel) -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        encode(gauge_model, "Gauge", {"level": 0.1})
    assert "narrow_f32(0.1) = 0.10000000149011612" in excinfo.value.hint


@pytest.mark.parametrize(
    "suffix, error",
    [
        (b"\x01\x04" + bytes(8), MalformedData),
        (b"\x02\x0c\x01\xff", TypeMismatch),
        (b"\x06\x0b\x02", TypeMismatch),
        (b"\x06\x0c\x00", TypeMismatch),
        (b"\x04\x10\x01\x09", UnknownTag),
        (b"\x04\x10\x02\x00\x00", MalformedData),
        (b"\x05\x11\x00", MalformedData),
    ],
)
def test_decode_rejects_bad_input(shop_model: SchemaModel, suffix: bytes, error: type) -> None:
    with pytest.raises(error):
        decode(shop_model, "Order", ID_ONE + suffix)


def test_unknown_variant_tag_is_reported(shop_model: SchemaModel) -> None:
    with pytest.raises(UnknownTag) as excinfo:
        decode(shop_model, "Order", ID_ONE + b"\x04\x10\x01\x09")
    assert excinfo.value.tag == 9
    assert excinfo.value.field == "Order.status"


def test_nesting_limit(shop_model: SchemaModel, full_order: dict) -> None:
    data = encode(shop_model, "Order", full_order)
    with pytest.raises(NestingTooDeep):
        Decoder(shop_model, max_depth=1).decode("Order", data)
    with pytest.raises(NestingTooDeep):
        Encoder(shop_model, max_depth=1).encode("Order", full_order)


def test_recursive_documents(make_schema) -> None:
    model = compile_source(
        make_schema(
            """
            #[document::options { root = true; }]
            document Node { value: i32, next: Node }
            """
        )
    )
    chain = {"value": 0}
    for value in range(1, 6):
        chain = {"value": value, "next": chain}

    assert decode(model, "Node", encode(model, "Node", chain)) == chain
    with pytest.raises(NestingTooDeep):
        Encoder(model, max_depth=3).encode("Node", chain)


def test_message_size_limit(shop_model: SchemaModel, full_order: dict) -> None:
    with pytest.raises(MalformedData, match="max_message_size"):
        Encoder(shop_model, max_message_size=16).encode("Order", full_order)

    data = encode(shop_model, "Order", full_order)
    with pytest.raises(MalformedData, match="max_message_size"):
        Decoder(shop_model, max_message_size=len(data) - 1).decode("Order", data)


def test_encode_value_for_list_requests(shop_model: SchemaModel, full_order: dict) -> None:
    orders = ListType(DocumentRef("shop.Order"))
    batch = [full_order, {"id": 2, "status": EnumValue("Pending")}]

    data = Encoder(shop_model).encode_value(orders, batch)
    assert data[0] == 0x0E
    assert Decoder(shop_model).decode_value(orders, data) == batch

    with pytest.raises(MalformedData, match="trailing"):
        Decoder(shop_model).decode_value(orders, data + b"\x00")
    with pytest.raises(TypeMismatch):
        Decoder(shop_model).decode_value(DocumentRef("shop.Order"), data)


def test_encoder_is_shareable(shop_model: SchemaModel, full_order: dict) -> None:
    encoder = Encoder(shop_model)
    expected = encoder.encode("Order", full_order)
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: encoder.encode("Order", full_order), range(16)))
    assert set(results) == {expected}
