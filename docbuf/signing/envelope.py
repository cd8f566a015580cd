"""
Signed message framing for endpoint payloads.

A sealed message is laid out as::

    varint payload length , payload , flag byte [ , varint signature length , signature ]

where the flag byte is ``0`` for unsigned and ``1`` for signed messages.
Framing problems raise :class:`~docbuf.errors.CodecError` subclasses; a
missing or failing signature on an endpoint that requires one raises
:class:`~docbuf.errors.SignatureInvalid`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from docbuf.errors import MalformedData, SignatureInvalid
from docbuf.observability.logging import get_logger
from docbuf.observability.metrics import record_metric
from docbuf.schema.model import EndpointSchema
from docbuf.schema.process import ProcessConfig
from docbuf.codec.wire import Reader, Writer

from .keys import PrivateKey, PublicKey, key_algorithm, sign, verify

logger = get_logger(__name__)

UNSIGNED = 0x00
SIGNED = 0x01


@dataclass(frozen=True)
class SignedMessage:
    payload: bytes
    signature: Optional[bytes] = None

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    def to_bytes(self) -> bytes:
        writer = Writer()
        writer.write_length_prefixed(self.payload)
        if self.signature is None:
            writer.write_byte(UNSIGNED)
        else:
            writer.write_byte(SIGNED)
            writer.write_length_prefixed(self.signature)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, memoryview]) -> "SignedMessage":
        reader = Reader(data)
        payload = reader.read(reader.read_length())
        offset = reader.offset
        flag = reader.read_byte()
        if flag == UNSIGNED:
            signature = None
        elif flag == SIGNED:
            signature = reader.read(reader.read_length())
        else:
            raise MalformedData(f"Unknown signature flag 0x{flag:02x}", offset=offset)
        if not reader.at_end:
            raise MalformedData(f"{reader.remaining} trailing byte(s) after signed message", offset=reader.offset)
        return cls(payload=payload, signature=signature)


class SigningEnvelope:
    """
    Seals and opens payloads for one endpoint.

    The algorithms come from the owning process's configuration; whether a
    signature is mandatory comes from the endpoint's ``signature_required``
    option.
    """

    def __init__(self, endpoint: EndpointSchema, config: Optional[ProcessConfig] = None, *, process: str = ""):
        self.endpoint = endpoint
        self.config = config or ProcessConfig()
        self.process = process

    @property
    def signature_required(self) -> bool:
        return self.endpoint.signature_required

    def _check_key(self, key: Union[PrivateKey, PublicKey]) -> None:
        algorithm = key_algorithm(key)
        if algorithm != self.config.crypto:
            raise ValueError(
                f"Endpoint '{self.endpoint.name}' signs with {self.config.crypto}, got a {algorithm} key"
            )

    def seal(self, payload: bytes, private_key: Optional[PrivateKey] = None) -> bytes:
        """Frame ``payload``, signing it when a key is given."""
        if private_key is None:
            if self.signature_required:
                raise ValueError(f"Endpoint '{self.endpoint.name}' requires a signing key")
            return SignedMessage(bytes(payload)).to_bytes()
        self._check_key(private_key)
        signature = sign(private_key, bytes(payload), hash_algorithm=self.config.hash)
        return SignedMessage(bytes(payload), signature).to_bytes()

    def open(self, data: Union[bytes, bytearray, memoryview], public_key: Optional[PublicKey] = None) -> bytes:
        """
        Unframe ``data`` and return the payload.

        Raises:
            CodecError: the framing is malformed
            SignatureInvalid: a required signature is missing or does not verify
        """
        message = SignedMessage.from_bytes(data)
        if message.signature is None:
            if self.signature_required:
                self._reject("missing signature")
            return message.payload
        if public_key is None:
            if self.signature_required:
                raise ValueError(f"Endpoint '{self.endpoint.name}' requires a verification key")
            return message.payload
        self._check_key(public_key)
        if not verify(public_key, message.payload, message.signature, hash_algorithm=self.config.hash):
            self._reject("signature does not verify")
        return message.payload

    def _reject(self, reason: str) -> None:
        record_metric(
            "docbuf.signature.invalid",
            1.0,
            tags={"process": self.process, "endpoint": self.endpoint.name, "reason": reason},
        )
        logger.warning("rejected message for %s.%s: %s", self.process, self.endpoint.name, reason)
        raise SignatureInvalid(f"Endpoint '{self.endpoint.name}': {reason}")


__all__ = ["SIGNED", "UNSIGNED", "SignedMessage", "SigningEnvelope"]
