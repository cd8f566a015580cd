"""
Read-only endpoint descriptors for transport and dispatch layers.

Descriptors are a projection of a compiled :class:`SchemaModel`; they own no
network state and can be shared freely between threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

from docbuf.schema.model import EndpointSchema, ProcessSchema, SchemaModel
from docbuf.schema.process import ProcessConfig
from docbuf.schema.serialization import type_to_dict
from docbuf.schema.types import TypeRef


@dataclass(frozen=True)
class EndpointDescriptor:
    process: str
    name: str
    id: int
    request: TypeRef
    request_document: str
    request_is_list: bool
    stream: bool = False
    required: bool = False
    rate_limit: Optional[int] = None
    signature_required: bool = False
    doc: Optional[str] = None
    schema: Optional[EndpointSchema] = field(default=None, repr=False, compare=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.process}.{self.name}"

    @property
    def response(self) -> None:
        """Endpoints always answer with the unit ``()``."""
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "process": self.process,
            "name": self.name,
            "id": self.id,
            "request": type_to_dict(self.request),
            "request_document": self.request_document,
            "response": None,
            "stream": self.stream,
            "required": self.required,
            "rate_limit": self.rate_limit,
            "signature_required": self.signature_required,
        }


@dataclass(frozen=True)
class ProcessDescriptor:
    name: str
    qualified_name: str
    config: ProcessConfig
    endpoints: Tuple[EndpointDescriptor, ...] = ()
    doc: Optional[str] = None

    def __iter__(self) -> Iterator[EndpointDescriptor]:
        return iter(self.endpoints)

    def __len__(self) -> int:
        return len(self.endpoints)

    def endpoint(self, name: str) -> EndpointDescriptor:
        for endpoint in self.endpoints:
            if endpoint.name == name:
                return endpoint
        raise KeyError(f"Process '{self.qualified_name}' has no endpoint '{name}'")

    def endpoint_by_id(self, endpoint_id: int) -> EndpointDescriptor:
        for endpoint in self.endpoints:
            if endpoint.id == endpoint_id:
                return endpoint
        raise KeyError(f"Process '{self.qualified_name}' has no endpoint with id {endpoint_id}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.qualified_name,
            "config": self.config.to_dict(),
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }


def describe_endpoint(process: ProcessSchema, endpoint: EndpointSchema) -> EndpointDescriptor:
    return EndpointDescriptor(
        process=process.qualified_name,
        name=endpoint.name,
        id=endpoint.id,
        request=endpoint.request,
        request_document=endpoint.request_document,
        request_is_list=endpoint.request_is_list,
        stream=endpoint.stream,
        required=endpoint.required,
        rate_limit=endpoint.rate_limit,
        signature_required=endpoint.signature_required,
        doc=endpoint.doc,
        schema=endpoint,
    )


def describe_process(process: ProcessSchema) -> ProcessDescriptor:
    return ProcessDescriptor(
        name=process.name,
        qualified_name=process.qualified_name,
        config=process.config,
        endpoints=tuple(describe_endpoint(process, endpoint) for endpoint in process.endpoints),
        doc=process.doc,
    )


def describe(model: SchemaModel) -> Tuple[ProcessDescriptor, ...]:
    """
    Project every process of ``model`` into descriptors.

    Processes come in module order, endpoints in declaration order (which is
    also ascending id order).
    """
    return tuple(describe_process(process) for process in model.processes)


__all__ = [
    "EndpointDescriptor",
    "ProcessDescriptor",
    "describe",
    "describe_endpoint",
    "describe_process",
]
