"""
Process network and crypto configuration.

The model itself lives with the schema model so that a compiled
:class:`~docbuf.schema.model.ProcessSchema` can carry it; transports import
it from here.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from docbuf.schema.process import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_SIGNATURE_ALGORITHM,
    HASH_ALGORITHMS,
    SIGNATURE_ALGORITHMS,
    ProcessConfig,
)


def process_config_from_mapping(values: Mapping[str, Any]) -> ProcessConfig:
    """Build a :class:`ProcessConfig`, raising ``pydantic.ValidationError`` on bad input."""
    return ProcessConfig.model_validate(dict(values))


def transport_settings(config: ProcessConfig) -> Dict[str, Any]:
    """Settings handed to the transport collaborator; unset paths are dropped."""
    return {key: value for key, value in config.to_dict().items() if value is not None}


__all__ = [
    "DEFAULT_HASH_ALGORITHM",
    "DEFAULT_SIGNATURE_ALGORITHM",
    "HASH_ALGORITHMS",
    "SIGNATURE_ALGORITHMS",
    "ProcessConfig",
    "process_config_from_mapping",
    "transport_settings",
]
