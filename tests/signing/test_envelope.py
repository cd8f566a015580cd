from __future__ import annotations

import pytest

from docbuf.errors import CodecError, MalformedData, SignatureInvalid, UnexpectedEof
from docbuf.schema import ProcessConfig, SchemaModel
from docbuf.signing import SIGNED, UNSIGNED, SignedMessage, SigningEnvelope, generate_private_key

PAYLOAD = b"\x01\x04" + (42).to_bytes(8, "little")


@pytest.fixture
def orders(shop_model: SchemaModel):
    return shop_model.process("Orders")


@pytest.fixture
def submit(orders) -> SigningEnvelope:
    return SigningEnvelope(orders.endpoint("submit"), orders.config, process=orders.qualified_name)


@pytest.fixture
def bulk(orders) -> SigningEnvelope:
    return SigningEnvelope(orders.endpoint("bulk"), orders.config, process=orders.qualified_name)


def test_message_framing() -> None:
    assert SignedMessage(b"abc").to_bytes() == b"\x03abc" + bytes([UNSIGNED])
    assert SignedMessage(b"abc", b"sig").to_bytes() == b"\x03abc" + bytes([SIGNED]) + b"\x03sig"
    assert SignedMessage.from_bytes(b"\x03abc\x01\x03sig") == SignedMessage(b"abc", b"sig")
    assert not SignedMessage.from_bytes(b"\x00\x00").is_signed


@pytest.mark.parametrize(
    "data, error",
    [
        (b"", UnexpectedEof),
        (b"\x05ab", UnexpectedEof),
        (b"\x02ab", UnexpectedEof),
        (b"\x02ab\x01\x05sig", UnexpectedEof),
        (b"\x02ab\x02", MalformedData),
        (b"\x02ab\x00\x00", MalformedData),
    ],
)
def test_malformed_framing(data: bytes, error: type) -> None:
    with pytest.raises(error):
        SignedMessage.from_bytes(data)


def test_seal_and_open_signed(submit: SigningEnvelope) -> None:
    key = generate_private_key("ed25519")
    sealed = submit.seal(PAYLOAD, key)

    assert SignedMessage.from_bytes(sealed).is_signed
    assert submit.open(sealed, key.public_key()) == PAYLOAD


def test_tampered_payload_is_rejected(submit: SigningEnvelope, metric_events) -> None:
    key = generate_private_key("ed25519")
    message = SignedMessage.from_bytes(submit.seal(PAYLOAD, key))
    forged = SignedMessage(PAYLOAD[:-1] + b"\x01", message.signature).to_bytes()

    with pytest.raises(SignatureInvalid, match="does not verify"):
        submit.open(forged, key.public_key())

    assert (
        "docbuf.signature.invalid",
        {"value": 1.0},
        {"process": "shop.Orders", "endpoint": "submit", "reason": "signature does not verify"},
    ) in metric_events


def test_missing_signature_on_required_endpoint(submit: SigningEnvelope, metric_events) -> None:
    unsigned = SignedMessage(PAYLOAD).to_bytes()
    with pytest.raises(SignatureInvalid, match="missing signature"):
        submit.open(unsigned, generate_private_key().public_key())
    assert [name for name, _, _ in metric_events] == ["docbuf.signature.invalid"]


def test_required_endpoint_needs_keys(submit: SigningEnvelope) -> None:
    with pytest.raises(ValueError, match="requires a signing key"):
        submit.seal(PAYLOAD)
    sealed = submit.seal(PAYLOAD, generate_private_key())
    with pytest.raises(ValueError, match="requires a verification key"):
        submit.open(sealed)


def test_key_must_match_configured_algorithm(submit: SigningEnvelope) -> None:
    with pytest.raises(ValueError, match="signs with ed25519, got a ecdsa-p256 key"):
        submit.seal(PAYLOAD, generate_private_key("ecdsa-p256"))


def test_optional_signatures(bulk: SigningEnvelope) -> None:
    assert not bulk.signature_required
    assert bulk.open(bulk.seal(PAYLOAD)) == PAYLOAD

    key = generate_private_key()
    sealed = bulk.seal(PAYLOAD, key)
    assert bulk.open(sealed) == PAYLOAD
    assert bulk.open(sealed, key.public_key()) == PAYLOAD


def test_garbage_is_a_codec_error(submit: SigningEnvelope, metric_events) -> None:
    with pytest.raises(CodecError):
        submit.open(b"\xff\xff\xff")
    assert metric_events == []


def test_configured_algorithms_are_used(orders) -> None:
    config = ProcessConfig(crypto="ecdsa-p256", hash="sha384")
    envelope = SigningEnvelope(orders.endpoint("submit"), config)
    key = generate_private_key("ecdsa-p256")

    assert envelope.open(envelope.seal(PAYLOAD, key), key.public_key()) == PAYLOAD
