"""
Digital signatures over encoded payloads.

The payload is hashed with the process's ``hash`` algorithm and the digest is
signed with its ``crypto`` algorithm. Supported algorithms:

- ``ed25519`` (default) and ``ed448``: the digest is signed as the message
- ``ecdsa-p256``: the digest is signed as a pre-hashed ECDSA input

Key material is always passed in by the caller; nothing here touches the
file system.
"""

from __future__ import annotations

from typing import Optional, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from docbuf.schema.process import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_SIGNATURE_ALGORITHM,
    HASH_ALGORITHMS,
    SIGNATURE_ALGORITHMS,
)

PrivateKey = Union[ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey, ec.EllipticCurvePrivateKey]
PublicKey = Union[ed25519.Ed25519PublicKey, ed448.Ed448PublicKey, ec.EllipticCurvePublicKey]

_HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha3-256": hashes.SHA3_256,
}


def _hash(name: str) -> hashes.HashAlgorithm:
    try:
        return _HASHES[name]()
    except KeyError:
        raise ValueError(f"Unsupported hash algorithm '{name}' (expected one of: {', '.join(HASH_ALGORITHMS)})") from None


def digest(payload: bytes, hash_algorithm: str = DEFAULT_HASH_ALGORITHM) -> bytes:
    """Hash ``payload`` with the named algorithm."""
    hasher = hashes.Hash(_hash(hash_algorithm))
    hasher.update(payload)
    return hasher.finalize()


def generate_private_key(algorithm: str = DEFAULT_SIGNATURE_ALGORITHM) -> PrivateKey:
    if algorithm == "ed25519":
        return ed25519.Ed25519PrivateKey.generate()
    if algorithm == "ed448":
        return ed448.Ed448PrivateKey.generate()
    if algorithm == "ecdsa-p256":
        return ec.generate_private_key(ec.SECP256R1())
    raise ValueError(f"Unsupported signature algorithm '{algorithm}' (expected one of: {', '.join(SIGNATURE_ALGORITHMS)})")


def key_algorithm(key: Union[PrivateKey, PublicKey]) -> str:
    """Return the algorithm name a private or public key belongs to."""
    if isinstance(key, (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey)):
        return "ed25519"
    if isinstance(key, (ed448.Ed448PrivateKey, ed448.Ed448PublicKey)):
        return "ed448"
    if isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)) and isinstance(key.curve, ec.SECP256R1):
        return "ecdsa-p256"
    raise ValueError(f"Unsupported key type {type(key).__name__}")


def load_private_key(data: bytes, password: Optional[bytes] = None) -> PrivateKey:
    """Load a private key from raw Ed25519/Ed448 bytes, PEM or DER."""
    if len(data) == 32:
        return ed25519.Ed25519PrivateKey.from_private_bytes(data)
    if len(data) == 57:
        return ed448.Ed448PrivateKey.from_private_bytes(data)
    try:
        if data.lstrip().startswith(b"-----BEGIN"):
            key = serialization.load_pem_private_key(data, password=password)
        else:
            key = serialization.load_der_private_key(data, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"Cannot load private key: {exc}") from exc
    key_algorithm(key)
    return key


def load_public_key(data: bytes) -> PublicKey:
    """Load a public key from raw bytes (Ed25519, Ed448, uncompressed P-256 point), PEM or DER."""
    if len(data) == 32:
        return ed25519.Ed25519PublicKey.from_public_bytes(data)
    if len(data) == 57:
        return ed448.Ed448PublicKey.from_public_bytes(data)
    if len(data) == 65 and data[0] == 0x04:
        return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), data)
    try:
        if data.lstrip().startswith(b"-----BEGIN"):
            key = serialization.load_pem_public_key(data)
        else:
            key = serialization.load_der_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"Cannot load public key: {exc}") from exc
    key_algorithm(key)
    return key


def public_key_bytes(key: Union[PrivateKey, PublicKey]) -> bytes:
    """Raw public key bytes, accepted back by :func:`load_public_key`."""
    if hasattr(key, "public_key"):
        key = key.public_key()
    if isinstance(key, ec.EllipticCurvePublicKey):
        return key.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)
    return key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)


def sign(private_key: PrivateKey, payload: bytes, *, hash_algorithm: str = DEFAULT_HASH_ALGORITHM) -> bytes:
    """Hash ``payload`` and sign the digest."""
    hashed = digest(payload, hash_algorithm)
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        return private_key.sign(hashed, ec.ECDSA(Prehashed(_hash(hash_algorithm))))
    return private_key.sign(hashed)


def verify(
    public_key: Union[PublicKey, PrivateKey],
    payload: bytes,
    signature: bytes,
    *,
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
) -> bool:
    """Return ``True`` only if ``signature`` is valid for ``payload``."""
    if hasattr(public_key, "public_key"):
        public_key = public_key.public_key()
    hashed = digest(payload, hash_algorithm)
    try:
        if isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, hashed, ec.ECDSA(Prehashed(_hash(hash_algorithm))))
        else:
            public_key.verify(signature, hashed)
    except InvalidSignature:
        return False
    return True


__all__ = [
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
