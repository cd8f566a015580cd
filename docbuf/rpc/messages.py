"""Request encoding for one endpoint, as used by a transport."""

from __future__ import annotations

from typing import Any, Optional

from docbuf.codec.decoder import Decoder
from docbuf.codec.encoder import Encoder
from docbuf.config import CodecLimits
from docbuf.schema.model import SchemaModel
from docbuf.signing.envelope import SigningEnvelope
from docbuf.signing.keys import PrivateKey, PublicKey

from .descriptor import EndpointDescriptor, describe_endpoint
from .ratelimit import RateLimiter, RateLimitRegistry


class RequestCodec:
    """
    Encoder, decoder, signing envelope and rate limiter bound to an endpoint.

    ``encode_request`` produces sealed bytes for the wire; ``decode_request``
    counts the call against the endpoint's quota, checks the signature and
    decodes the payload. Requests declared as ``[Document]`` are Python lists.

    Example:
        >>> codec = RequestCodec(model, "shop.Orders", "submit")
        >>> data = codec.encode_request({"id": 7}, private_key=key)
        >>> codec.decode_request(data, public_key=key.public_key())
        {'id': 7}
    """

    def __init__(
        self,
        model: SchemaModel,
        process: str,
        endpoint: str,
        *,
        limits: Optional[CodecLimits] = None,
        registry: Optional[RateLimitRegistry] = None,
    ):
        limits = limits or CodecLimits()
        process_schema = model.process(process)
        endpoint_schema = process_schema.endpoint(endpoint)

        self.model = model
        self.descriptor: EndpointDescriptor = describe_endpoint(process_schema, endpoint_schema)
        self.encoder = Encoder.from_limits(model, limits)
        self.decoder = Decoder.from_limits(model, limits)
        self.envelope = SigningEnvelope(endpoint_schema, process_schema.config, process=process_schema.qualified_name)
        if registry is not None:
            self.limiter: Optional[RateLimiter] = registry.for_endpoint(self.descriptor)
        elif endpoint_schema.rate_limit is not None:
            self.limiter = RateLimiter(endpoint_schema.rate_limit, name=self.descriptor.qualified_name)
        else:
            self.limiter = None

    def encode_payload(self, request: Any) -> bytes:
        if self.descriptor.request_is_list:
            return self.encoder.encode_value(self.descriptor.request, request)
        return self.encoder.encode(self.descriptor.request_document, request)

    def decode_payload(self, payload: bytes) -> Any:
        if self.descriptor.request_is_list:
            return self.decoder.decode_value(self.descriptor.request, payload)
        return self.decoder.decode(self.descriptor.request_document, payload)

    def encode_request(self, request: Any, private_key: Optional[PrivateKey] = None) -> bytes:
        return self.envelope.seal(self.encode_payload(request), private_key)

    def decode_request(self, data: bytes, public_key: Optional[PublicKey] = None) -> Any:
        """
        Raises:
            RateLimitExceeded: the endpoint's quota for this window is spent
            SignatureInvalid: a required signature is missing or does not verify
            CodecError: the bytes are not a valid request
        """
        if self.limiter is not None:
            self.limiter.acquire()
        return self.decode_payload(self.envelope.open(data, public_key))


__all__ = ["RequestCodec"]
