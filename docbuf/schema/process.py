"""
Network and crypto configuration attached to a ``process`` declaration.

The configuration is opaque to the compiler and codec: it is validated for
shape here and handed unchanged to the transport that serves the process.
Only ``crypto`` and ``hash`` are consumed inside the toolchain, by the
signing envelope.

Example:
    #[process::options {
        host = "0.0.0.0";
        port = 8443;
        protocol = quic;
        keypair = "keys/service.pem";
        crypto = ed25519;
        hash = sha256;
    }]
    process Orders { ... }
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SIGNATURE_ALGORITHMS = ("ed25519", "ed448", "ecdsa-p256")
HASH_ALGORITHMS = ("sha256", "sha384", "sha512", "sha3-256")

DEFAULT_SIGNATURE_ALGORITHM = "ed25519"
DEFAULT_HASH_ALGORITHM = "sha256"


class ProcessConfig(BaseModel):
    """
    Recognized ``#[process::options {...}]`` keys.

    Unknown keys and ill-typed values are rejected by pydantic; the validator
    reports each rejection as an ``InvalidOption`` diagnostic.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
    )

    host: str = Field("127.0.0.1", description="Interface the transport binds or connects to")
    port: int = Field(4433, ge=1, le=65535, description="Transport port")
    ipv6: bool = Field(False, description="Prefer IPv6 addressing")
    protocol: str = Field("quic", description="Transport protocol name")
    cert_chain: Optional[str] = Field(None, description="Path to the TLS certificate chain")
    cert_key: Optional[str] = Field(None, description="Path to the TLS private key")
    keypair: Optional[str] = Field(None, description="Path to the signing keypair")
    crypto: str = Field(DEFAULT_SIGNATURE_ALGORITHM, description="Signature algorithm")
    hash: str = Field(DEFAULT_HASH_ALGORITHM, description="Digest signed by the signature algorithm")
    noise: bool = Field(False, description="Use a Noise protocol encrypted transport")
    config: Optional[str] = Field(None, description="External transport config file")

    @field_validator("crypto")
    @classmethod
    def validate_crypto(cls, v: str) -> str:
        value = v.lower().replace("_", "-")
        if value not in SIGNATURE_ALGORITHMS:
            raise ValueError(f"unsupported signature algorithm '{v}' (expected one of: {', '.join(SIGNATURE_ALGORITHMS)})")
        return value

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        value = v.lower().replace("_", "-")
        if value not in HASH_ALGORITHMS:
            raise ValueError(f"unsupported hash algorithm '{v}' (expected one of: {', '.join(HASH_ALGORITHMS)})")
        return value

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        if not v:
            raise ValueError("protocol cannot be empty")
        return v.lower()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


__all__ = [
    "SIGNATURE_ALGORITHMS",
    "HASH_ALGORITHMS",
    "DEFAULT_SIGNATURE_ALGORITHM",
    "DEFAULT_HASH_ALGORITHM",
    "ProcessConfig",
]
