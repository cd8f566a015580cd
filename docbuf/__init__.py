"""
DocBuf schema compiler and binary codec.

DocBuf describes typed messages in ``.docbuf`` source files (documents,
enumerables and processes with endpoints) and encodes instances of them
into a compact, tagged binary format.

The code is organised into several modules:

* ``lang`` - the lexer and the recursive-descent parser producing the AST.
* ``ast`` - dataclasses for the syntax tree of one source file.
* ``loader`` - reads an entry file and everything it imports.
* ``schema`` - the semantic validator and the immutable ``SchemaModel`` it
  builds, plus JSON export of that model.
* ``codec`` - schema-driven encoding and decoding of document instances.
* ``signing`` - the optional signature envelope for endpoint payloads.
* ``rpc`` - read-only endpoint descriptors, process configuration and
  per-endpoint rate limiting for transports.
* ``codegen`` - generation of Python bindings from a compiled model.
"""

from importlib import metadata as _metadata

from .codec import Decoder, Encoder, EnumValue, decode, encode
from .compiler import compile_file, compile_program, compile_source
from .config import CodecLimits, CompilerConfig, DocbufConfig, load_config
from .errors import (
    CodecError,
    CompilationError,
    DocbufError,
    ParseFailed,
    RateLimitExceeded,
    SignatureInvalid,
    ValidationFailed,
)
from .schema import SchemaModel, deserialize_schema, serialize_schema

try:  # pragma: no cover - metadata lookup depends on install mode
    __version__ = _metadata.version("docbuf")
except _metadata.PackageNotFoundError:  # pragma: no cover - source tree
    __version__ = "0.1.0"

__all__ = [
    "__version__",
    "compile_file",
    "compile_program",
    "compile_source",
    "Encoder",
    "Decoder",
    "EnumValue",
    "encode",
    "decode",
    "SchemaModel",
    "serialize_schema",
    "deserialize_schema",
    "CodecLimits",
    "CompilerConfig",
    "DocbufConfig",
    "load_config",
    "DocbufError",
    "CompilationError",
    "ParseFailed",
    "ValidationFailed",
    "CodecError",
    "SignatureInvalid",
    "RateLimitExceeded",
]
