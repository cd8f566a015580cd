from __future__ import annotations

import pytest

from docbuf.codec import EnumValue
from docbuf.config import CodecLimits
from docbuf.errors import ConstraintViolation, RateLimitExceeded, SignatureInvalid
from docbuf.rpc import RateLimitRegistry, RequestCodec
from docbuf.schema import SchemaModel
from docbuf.signing import SignedMessage, generate_private_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_signed_request_round_trip(shop_model: SchemaModel, full_order: dict) -> None:
    codec = RequestCodec(shop_model, "Orders", "submit")
    key = generate_private_key()

    data = codec.encode_request(full_order, private_key=key)
    assert SignedMessage.from_bytes(data).payload == codec.encode_payload(full_order)
    assert codec.decode_request(data, public_key=key.public_key()) == full_order


def test_list_requests(shop_model: SchemaModel, full_order: dict) -> None:
    codec = RequestCodec(shop_model, "shop.Orders", "bulk")
    batch = [full_order, {"id": 2, "status": EnumValue("Pending")}]

    assert codec.limiter is None
    assert codec.decode_request(codec.encode_request(batch)) == batch


def test_quota_is_enforced_before_decoding(shop_model: SchemaModel) -> None:
    registry = RateLimitRegistry(clock=FakeClock())
    codec = RequestCodec(shop_model, "Orders", "submit", registry=registry)
    key = generate_private_key()
    data = codec.encode_request({"id": 1}, private_key=key)

    codec.decode_request(data, public_key=key.public_key())
    codec.decode_request(data, public_key=key.public_key())
    with pytest.raises(RateLimitExceeded):
        codec.decode_request(data, public_key=key.public_key())

    again = RequestCodec(shop_model, "Orders", "submit", registry=registry)
    assert again.limiter is codec.limiter


def test_unsigned_request_is_rejected(shop_model: SchemaModel) -> None:
    codec = RequestCodec(shop_model, "Orders", "submit")
    unsigned = SignedMessage(codec.encode_payload({"id": 1})).to_bytes()
    with pytest.raises(SignatureInvalid):
        codec.decode_request(unsigned, public_key=generate_private_key().public_key())


def test_codec_limits_apply(shop_model: SchemaModel) -> None:
    codec = RequestCodec(
        shop_model,
        "Orders",
        "bulk",
        limits=CodecLimits(validate_before_encode=True, fill_defaults=False),
    )
    assert codec.decode_request(codec.encode_request([{"id": 1}])) == [{"id": 1}]
    with pytest.raises(ConstraintViolation):
        codec.encode_request([{"id": 1, "email": "nobody"}])


def test_unknown_endpoint(shop_model: SchemaModel) -> None:
    with pytest.raises(KeyError):
        RequestCodec(shop_model, "Orders", "cancel")
