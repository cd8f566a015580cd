"""Payload signing for endpoints that carry ``signature_required``."""

from .envelope import SIGNED, UNSIGNED, SignedMessage, SigningEnvelope
from .keys import (
    PrivateKey,
    PublicKey,
    digest,
    generate_private_key,
    key_algorithm,
    load_private_key,
    load_public_key,
    public_key_bytes,
    sign,
    verify,
)

__all__ = [
    "SIGNED",
    "UNSIGNED",
    "SignedMessage",
    "SigningEnvelope",
    "PrivateKey",
    "PublicKey",
    "digest",
    "generate_private_key",
    "key_algorithm",
    "load_private_key",
    "load_public_key",
    "public_key_bytes",
    "sign",
    "verify",
]
