"""
Python binding generation.

Consumes a compiled :class:`SchemaModel` and returns the source of a Python
module with:

- a ``@dataclass`` per document, with ``to_dict``/``from_dict`` converting
  to and from the codec's value mapping
- a ``str`` ``Enum`` of variant names per enumerable
- tag tables for fields, variants and endpoints

Nothing here touches the file system; callers decide where the text goes.
"""

from __future__ import annotations

import keyword
import math
import re
from typing import Any, Dict, List, Optional

from docbuf.observability.logging import get_logger
from docbuf.schema.model import DocumentSchema, EnumSchema, FieldSchema, ProcessSchema, SchemaModel
from docbuf.schema.types import DocumentRef, EnumRef, ListType, ScalarKind, ScalarType, TypeRef

logger = get_logger(__name__)

_SCALAR_ANNOTATIONS = {
    ScalarKind.F32: "float",
    ScalarKind.F64: "float",
    ScalarKind.BOOL: "bool",
    ScalarKind.STRING: "str",
    ScalarKind.BYTES: "bytes",
}

_RUNTIME_HELPERS = '''
def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value
'''


def python_identifier(name: str) -> str:
    """Turn a schema name into a usable Python identifier."""
    ident = re.sub(r"\W", "_", name)
    if not ident or ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


def constant_name(name: str) -> str:
    """``OrderLine`` -> ``ORDER_LINE``."""
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", python_identifier(name))
    return snake.upper()


class PythonBindingGenerator:
    def __init__(self, model: SchemaModel, module: Optional[str] = None):
        self.model = model
        self.modules = [model.module(module)] if module is not None else list(model.modules)
        self.lines: List[str] = []
        self._class_names: Dict[str, str] = {}

    # ====================================================================
    # Names and types
    # ====================================================================

    def _assign_class_names(self) -> None:
        for declaration in [*self.model.documents, *self.model.enums]:
            self._class_names[declaration.qualified_name] = python_identifier(declaration.output_name)
        owners: Dict[str, str] = {}
        for schema in self.modules:
            for declaration in [*schema.documents, *schema.enums]:
                class_name = self._class_names[declaration.qualified_name]
                if class_name in owners:
                    raise ValueError(
                        f"Generated class name '{class_name}' is used by both "
                        f"{owners[class_name]} and {declaration.qualified_name}"
                    )
                owners[class_name] = declaration.qualified_name

    def class_name(self, ref: TypeRef) -> str:
        return self._class_names[ref.name]

    def annotation(self, type_ref: TypeRef) -> str:
        if isinstance(type_ref, ScalarType):
            return "int" if type_ref.kind.is_integer else _SCALAR_ANNOTATIONS[type_ref.kind]
        if isinstance(type_ref, ListType):
            return f"List[{self.annotation(type_ref.element)}]"
        if isinstance(type_ref, DocumentRef):
            return f'"{self.class_name(type_ref)}"'
        if isinstance(type_ref, EnumRef):
            return "EnumValue"
        raise TypeError(f"No annotation for {type_ref!r}")

    def _load_expression(self, type_ref: TypeRef, expr: str, depth: int = 0) -> str:
        if isinstance(type_ref, DocumentRef):
            return f"{self.class_name(type_ref)}.from_dict({expr})"
        if isinstance(type_ref, ListType):
            item = f"item{depth}"
            inner = self._load_expression(type_ref.element, item, depth + 1)
            if inner == item:
                return f"list({expr})"
            return f"[{inner} for {item} in {expr}]"
        return expr

    def _default_literal(self, field: FieldSchema) -> str:
        value = field.options.default
        if isinstance(field.type, EnumRef):
            return f"EnumValue({value!r})"
        if isinstance(value, float) and not math.isfinite(value):
            return f"float({str(value)!r})"
        return repr(value)

    # ====================================================================
    # Emitters
    # ====================================================================

    def emit(self, line: str = "") -> None:
        self.lines.append(line)

    def generate(self) -> str:
        self._assign_class_names()
        names = ", ".join(schema.name for schema in self.modules)
        self.emit(f'"""Generated DocBuf bindings for {names}. Do not edit."""')
        self.emit()
        self.emit("from __future__ import annotations")
        self.emit()
        self.emit("from dataclasses import dataclass")
        self.emit("from enum import Enum")
        self.emit("from typing import Any, Dict, List, Optional")
        self.emit()
        self.emit("from docbuf.codec.values import EnumValue")
        self.emit()
        self.lines.extend(_RUNTIME_HELPERS.rstrip("\n").split("\n"))

        exported: List[str] = []
        for schema in self.modules:
            for enum in schema.enums:
                exported.extend(self.emit_enum(enum))
            for document in schema.documents:
                exported.extend(self.emit_document(document))
            for process in schema.processes:
                exported.append(self.emit_process(process))

        self.emit()
        self.emit()
        self.emit("__all__ = [")
        for name in exported:
            self.emit(f'    "{name}",')
        self.emit("]")
        self.emit()
        logger.debug("generated %d binding(s) for %s", len(exported), names)
        return "\n".join(self.lines)

    def emit_enum(self, enum: EnumSchema) -> List[str]:
        class_name = self._class_names[enum.qualified_name]
        tags_name = f"{constant_name(class_name)}_TAGS"
        self.emit()
        self.emit()
        self.emit(f"class {class_name}(str, Enum):")
        if enum.doc:
            self.emit(f"    {_docstring(enum.doc)}")
            self.emit()
        for variant in enum.variants:
            self.emit(f"    {constant_name(variant.output_name)} = {variant.name!r}")
        self.emit()
        self.emit()
        self.emit(f"{tags_name}: Dict[str, int] = {{")
        for variant in enum.variants:
            self.emit(f"    {variant.name!r}: {variant.tag},")
        self.emit("}")
        return [class_name, tags_name]

    def emit_document(self, document: DocumentSchema) -> List[str]:
        class_name = self._class_names[document.qualified_name]
        tags_name = f"{constant_name(class_name)}_FIELD_TAGS"
        ordered = [field for field in document.fields if field.required]
        ordered += [field for field in document.fields if not field.required]

        self.emit()
        self.emit()
        self.emit("@dataclass")
        self.emit(f"class {class_name}:")
        if document.doc:
            self.emit(f"    {_docstring(document.doc)}")
            self.emit()
        for field in ordered:
            attribute = python_identifier(field.output_name)
            annotation = self.annotation(field.type)
            if field.required:
                self.emit(f"    {attribute}: {annotation}")
            elif field.options.has_default:
                self.emit(f"    {attribute}: {annotation} = {self._default_literal(field)}")
            else:
                self.emit(f"    {attribute}: Optional[{annotation}] = None")
        if not ordered:
            self.emit("    pass")

        self.emit()
        self.emit("    def to_dict(self) -> Dict[str, Any]:")
        self.emit("        data = {")
        for field in document.fields:
            self.emit(f"            {field.name!r}: _dump(self.{python_identifier(field.output_name)}),")
        self.emit("        }")
        self.emit("        return {key: value for key, value in data.items() if value is not None}")

        self.emit()
        self.emit("    @classmethod")
        self.emit(f'    def from_dict(cls, data: Dict[str, Any]) -> "{class_name}":')
        if not document.fields:
            self.emit("        return cls()")
        else:
            self.emit("        return cls(")
            for field in document.fields:
                key = repr(field.name)
                loaded = self._load_expression(field.type, f"data[{key}]")
                attribute = python_identifier(field.output_name)
                if loaded == f"data[{key}]":
                    value = f"data[{key}]" if field.required else f"data.get({key})"
                    if field.options.has_default and not field.required:
                        value = f"data.get({key}, {self._default_literal(field)})"
                else:
                    value = f"None if data.get({key}) is None else {loaded}"
                self.emit(f"            {attribute}={value},")
            self.emit("        )")

        self.emit()
        self.emit()
        self.emit(f"{tags_name}: Dict[str, int] = {{")
        for field in document.fields:
            self.emit(f"    {field.name!r}: {field.tag},")
        self.emit("}")
        return [class_name, tags_name]

    def emit_process(self, process: ProcessSchema) -> str:
        table = f"{constant_name(process.name)}_ENDPOINTS"
        self.emit()
        self.emit()
        self.emit(f"{table}: Dict[str, int] = {{")
        for endpoint in process.endpoints:
            self.emit(f"    {endpoint.name!r}: {endpoint.id},")
        self.emit("}")
        return table


def _docstring(text: str) -> str:
    cleaned = " ".join(text.split()).replace("\\", "\\\\").replace('"""', "'''")
    return f'"""{cleaned}"""'


def generate_python_bindings(model: SchemaModel, module: Optional[str] = None) -> str:
    """
    Generate Python source for ``model`` (or only for ``module``).

    Args:
        model: A compiled schema model.
        module: Restrict output to one module's declarations. References to
            other modules keep their generated class names and must be
            importable by the caller.

    Returns:
        Python module source text.
    """
    return PythonBindingGenerator(model, module).generate()


__all__ = ["PythonBindingGenerator", "generate_python_bindings", "python_identifier", "constant_name"]
