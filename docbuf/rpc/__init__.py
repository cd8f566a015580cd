"""Endpoint descriptors, process configuration and per-endpoint rate limiting."""

from .config import ProcessConfig, process_config_from_mapping, transport_settings
from .descriptor import EndpointDescriptor, ProcessDescriptor, describe, describe_endpoint, describe_process
from .ratelimit import WINDOW_SECONDS, RateLimiter, RateLimitRegistry
from .messages import RequestCodec

__all__ = [
    "ProcessConfig",
    "process_config_from_mapping",
    "transport_settings",
    "EndpointDescriptor",
    "ProcessDescriptor",
    "describe",
    "describe_endpoint",
    "describe_process",
    "WINDOW_SECONDS",
    "RateLimiter",
    "RateLimitRegistry",
    "RequestCodec",
]
