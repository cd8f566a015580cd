"""
Semantic validation and type resolution.

:class:`SchemaResolver` walks every parsed module of one compilation session
and turns the AST into an immutable :class:`SchemaModel`. It:

1. Builds a per-module symbol table and reports duplicate declarations
2. Resolves type references against local and imported declarations
3. Checks option blocks (bounds ordering, regex compilation, defaults)
4. Assigns field, variant and endpoint tags in declaration order
5. Enforces a single ``root = true`` document across the program

All diagnostics are collected and raised together as
:class:`~docbuf.errors.ValidationFailed`. The resolver holds no global state,
so independent sessions never interfere.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from docbuf.ast import (
    DocumentDecl,
    EndpointDecl,
    EnumDecl,
    FieldDecl,
    ListOf,
    Module,
    OptionBlock,
    OptionValue,
    ProcessDecl,
    Program,
    SourceLocation,
    TypeExpr,
    VariantDecl,
)
from docbuf.ast.declarations import Declaration
from docbuf.errors import (
    AmbiguousType,
    DocbufError,
    DuplicateName,
    InvalidEndpoint,
    InvalidOption,
    InvalidVariant,
    MissingRoot,
    MultipleRoots,
    SemanticError,
    UnknownType,
    UnresolvedImport,
    ValidationFailed,
    _find_similar,
)
from docbuf.observability.logging import get_logger

from .constraints import F32_MAX, check_constraints, fits_scalar, narrow_f32
from .model import (
    DocumentSchema,
    EndpointSchema,
    EnumSchema,
    FieldOptions,
    FieldSchema,
    ModuleSchema,
    ProcessSchema,
    SchemaModel,
    VariantSchema,
    compile_pattern,
)
from .process import ProcessConfig
from .types import DocumentRef, EnumRef, ListType, ScalarKind, ScalarType, TypeRef, is_document_list, scalar_kind

logger = get_logger(__name__)

MAX_VARIANTS = 256

_BOOL = ("boolean",)
_INT = ("integer",)
_NUMBER = ("integer", "float")
_NAME = ("string", "identifier")

DOCUMENT_OPTIONS: Dict[str, Optional[Tuple[str, ...]]] = {"root": _BOOL, "name": _NAME}
ENUM_OPTIONS: Dict[str, Optional[Tuple[str, ...]]] = {"name": _NAME}
FIELD_OPTIONS: Dict[str, Optional[Tuple[str, ...]]] = {
    "required": _BOOL,
    "default": None,
    "min_length": _INT,
    "max_length": _INT,
    "min_value": _NUMBER,
    "max_value": _NUMBER,
    "regex": ("string",),
    "name": _NAME,
}
VARIANT_OPTIONS: Dict[str, Optional[Tuple[str, ...]]] = {
    key: kinds for key, kinds in FIELD_OPTIONS.items() if key not in ("required", "default")
}
ENDPOINT_OPTIONS: Dict[str, Optional[Tuple[str, ...]]] = {
    "stream": _BOOL,
    "required": _BOOL,
    "request_rate_limit_per_minute": _INT,
    "signature_required": _BOOL,
}


def _split_qualified(name: str) -> Tuple[str, str]:
    module, _, short = name.rpartition(".")
    return module, short


def _has_length(type_ref: TypeRef) -> bool:
    if isinstance(type_ref, ListType):
        return True
    return isinstance(type_ref, ScalarType) and type_ref.kind.is_sized


class SchemaResolver:
    """Resolves and validates the modules of one compilation session."""

    def __init__(self, program: Program):
        self.program = program
        self.errors: List[DocbufError] = []
        self._modules: Dict[str, Module] = {}
        self._symbols: Dict[str, Dict[str, Declaration]] = {}
        self._imports: Dict[str, List[str]] = {}
        self._root_locations: Dict[str, Optional[SourceLocation]] = {}

    # ====================================================================
    # Diagnostics
    # ====================================================================

    def _error(self, cls: type, message: str, location: Optional[SourceLocation], **kwargs: Any) -> DocbufError:
        where = location.error_fields() if location else {}
        error = cls(message, **where, **kwargs)
        self.errors.append(error)
        return error

    # ====================================================================
    # Entry point
    # ====================================================================

    def resolve(self) -> SchemaModel:
        """
        Validate the program and build its schema model.

        Raises:
            ValidationFailed: carrying every semantic diagnostic found.
        """
        modules = self._collect_modules()
        for module in modules:
            self._collect_symbols(module)
        for module in modules:
            self._collect_imports(module)

        schemas = [self._build_module(module) for module in modules]
        self._check_roots(schemas)

        if self.errors:
            raise ValidationFailed(self.errors, path=modules[0].path if modules else None)

        model = SchemaModel(modules=tuple(schemas))
        logger.debug(
            "validated %d module(s): %d document(s), %d enumerable(s), %d process(es)",
            len(schemas),
            sum(len(m.documents) for m in schemas),
            sum(len(m.enums) for m in schemas),
            sum(len(m.processes) for m in schemas),
        )
        return model

    # ====================================================================
    # Symbol tables
    # ====================================================================

    def _collect_modules(self) -> List[Module]:
        modules: List[Module] = []
        for module in self.program.modules:
            location = SourceLocation(file=module.path, line=1, column=1)
            if not module.name:
                self._error(SemanticError, "Module has no name", location, hint="Add 'module <name>;' after the pragma")
                continue
            if module.name in self._modules:
                first = self._modules[module.name]
                self._error(
                    DuplicateName,
                    f"Module '{module.name}' is declared by both {first.path or '<source>'} and {module.path or '<source>'}",
                    location,
                    name=module.name,
                )
                continue
            self._modules[module.name] = module
            modules.append(module)
        return modules

    def _collect_symbols(self, module: Module) -> None:
        symbols: Dict[str, Declaration] = {}
        for decl in module.body:
            if scalar_kind(decl.name) is not None:
                self._error(
                    SemanticError,
                    f"'{decl.name}' is a built-in scalar type and cannot be redeclared",
                    decl.location,
                )
                continue
            if decl.name in symbols:
                first = symbols[decl.name]
                first_line = first.location.line if first.location else None
                self._error(
                    DuplicateName,
                    f"'{decl.name}' is already declared in module '{module.name}'"
                    + (f" (line {first_line})" if first_line else ""),
                    decl.location,
                    name=decl.name,
                    first_line=first_line,
                )
                continue
            symbols[decl.name] = decl
        self._symbols[module.name] = symbols

    def _collect_imports(self, module: Module) -> None:
        visible: List[str] = []
        for statement in module.imports:
            target = statement.resolved_module
            if target is None or target not in self._modules:
                self._error(
                    UnresolvedImport,
                    f"Import '{statement.path}' was not resolved to a module",
                    statement.location,
                    hint="Compile the entry file with compile_file() so imports are loaded",
                )
                continue
            if target != module.name and target not in visible:
                visible.append(target)
        self._imports[module.name] = visible

    def _available_types(self, module: Module) -> List[str]:
        names = [kind.value for kind in ScalarKind]
        for name, decl in self._symbols.get(module.name, {}).items():
            if isinstance(decl, (DocumentDecl, EnumDecl)):
                names.append(name)
        for imported in self._imports.get(module.name, []):
            for name, decl in self._symbols.get(imported, {}).items():
                if isinstance(decl, (DocumentDecl, EnumDecl)):
                    names.append(name)
                    names.append(f"{imported}.{name}")
        return names

    # ====================================================================
    # Type resolution
    # ====================================================================

    @staticmethod
    def _as_ref(module_name: str, decl: Optional[Declaration]) -> Optional[TypeRef]:
        if isinstance(decl, DocumentDecl):
            return DocumentRef(f"{module_name}.{decl.name}")
        if isinstance(decl, EnumDecl):
            return EnumRef(f"{module_name}.{decl.name}")
        return None

    def _resolve_type(self, module: Module, expr: TypeExpr) -> Optional[TypeRef]:
        if isinstance(expr, ListOf):
            element = self._resolve_type(module, expr.element)
            return ListType(element) if element is not None else None

        name = expr.name
        kind = scalar_kind(name)
        if kind is not None:
            return ScalarType(kind)

        imports = self._imports.get(module.name, [])

        if "." in name:
            module_name, short = _split_qualified(name)
            if module_name != module.name and module_name not in imports:
                self._error(
                    UnknownType,
                    f"Unknown type '{name}': module '{module_name}' is not imported by '{module.name}'",
                    expr.location,
                    name=name,
                    hint=f"Import the file declaring module '{module_name}'",
                )
                return None
            ref = self._as_ref(module_name, self._symbols.get(module_name, {}).get(short))
            if ref is None:
                self._error(
                    UnknownType,
                    f"Unknown type '{name}'",
                    expr.location,
                    name=name,
                    available=self._available_types(module),
                )
            return ref

        local = self._symbols.get(module.name, {}).get(name)
        ref = self._as_ref(module.name, local)
        if ref is not None:
            return ref
        if isinstance(local, ProcessDecl):
            self._error(UnknownType, f"'{name}' is a process, not a type", expr.location, name=name)
            return None

        candidates = [
            imported
            for imported in imports
            if self._as_ref(imported, self._symbols.get(imported, {}).get(name)) is not None
        ]
        if len(candidates) == 1:
            return self._as_ref(candidates[0], self._symbols[candidates[0]][name])
        if len(candidates) > 1:
            qualified = [f"{candidate}.{name}" for candidate in candidates]
            self._error(
                AmbiguousType,
                f"Type '{name}' is declared by several imported modules",
                expr.location,
                name=name,
                candidates=qualified,
                hint=f"Qualify the reference, e.g. '{qualified[0]}'",
            )
            return None

        self._error(
            UnknownType,
            f"Unknown type '{name}'",
            expr.location,
            name=name,
            available=self._available_types(module),
        )
        return None

    def _enum_decl(self, ref: EnumRef) -> Optional[EnumDecl]:
        module_name, short = _split_qualified(ref.name)
        decl = self._symbols.get(module_name, {}).get(short)
        return decl if isinstance(decl, EnumDecl) else None

    # ====================================================================
    # Options
    # ====================================================================

    def _read_options(
        self,
        block: Optional[OptionBlock],
        allowed: Optional[Dict[str, Optional[Tuple[str, ...]]]],
        owner: str,
        location: Optional[SourceLocation],
    ) -> Dict[str, OptionValue]:
        """Return option values by key, reporting unknown, duplicate and ill-typed entries."""
        if block is None:
            return {}
        values: Dict[str, OptionValue] = {}
        for entry in block.entries:
            entry_location = entry.location or location
            if allowed is not None and entry.key not in allowed:
                similar = _find_similar(entry.key, list(allowed))
                self._error(
                    InvalidOption,
                    f"Unknown option '{entry.key}' on '{owner}'",
                    entry_location,
                    field=owner,
                    reason=f"unknown option '{entry.key}'",
                    hint=f"Did you mean '{similar[0]}'?" if similar else f"Known options: {', '.join(sorted(allowed))}",
                )
                continue
            if entry.key in values:
                self._error(
                    InvalidOption,
                    f"Option '{entry.key}' is set more than once on '{owner}'",
                    entry_location,
                    field=owner,
                    reason=f"duplicate option '{entry.key}'",
                )
                continue
            kinds = allowed.get(entry.key) if allowed is not None else None
            if kinds and entry.value.kind not in kinds:
                self._error(
                    InvalidOption,
                    f"Option '{entry.key}' on '{owner}' expects a {' or '.join(kinds)} value, got {entry.value.kind}",
                    entry_location,
                    field=owner,
                    reason=f"'{entry.key}' must be a {' or '.join(kinds)}",
                )
                continue
            values[entry.key] = entry.value
        return values

    def _field_options(
        self,
        values: Dict[str, OptionValue],
        type_ref: Optional[TypeRef],
        owner: str,
        location: Optional[SourceLocation],
    ) -> FieldOptions:
        """Check one field's (or variant's) options against its resolved type."""
        problems: List[str] = []

        def invalid(reason: str) -> None:
            problems.append(reason)
            self._error(
                InvalidOption,
                f"Invalid options on '{owner}': {reason}",
                location,
                field=owner,
                reason=reason,
            )

        def number(key: str) -> Optional[Any]:
            value = values.get(key)
            return value.value if value is not None else None

        min_length = number("min_length")
        max_length = number("max_length")
        min_value = number("min_value")
        max_value = number("max_value")
        regex = values["regex"].value if "regex" in values else None
        name = values["name"].value if "name" in values else None
        required = bool(values["required"].value) if "required" in values else False

        if min_length is not None or max_length is not None:
            if type_ref is not None and not _has_length(type_ref):
                invalid(f"min_length/max_length apply to String, bytes and list fields, not {type_ref}")
            for key, bound in (("min_length", min_length), ("max_length", max_length)):
                if bound is not None and bound < 0:
                    invalid(f"{key} cannot be negative ({bound})")
            if min_length is not None and max_length is not None and min_length > max_length:
                invalid(f"min_length ({min_length}) is greater than max_length ({max_length})")

        if min_value is not None or max_value is not None:
            if type_ref is not None and not (isinstance(type_ref, ScalarType) and type_ref.kind.is_numeric):
                invalid(f"min_value/max_value apply to numeric fields, not {type_ref}")
            elif isinstance(type_ref, ScalarType) and type_ref.kind.is_integer:
                for key in ("min_value", "max_value"):
                    option = values.get(key)
                    if option is None:
                        continue
                    if option.kind != "integer":
                        invalid(f"{key} must be an integer for {type_ref.kind.value} fields")
                    elif not fits_scalar(type_ref.kind, option.value):
                        invalid(f"{key} {option.value} is out of range for {type_ref.kind.value}")
            if min_value is not None and max_value is not None and min_value > max_value:
                invalid(f"min_value ({min_value}) is greater than max_value ({max_value})")

        if regex is not None:
            if type_ref is not None and type_ref != ScalarType(ScalarKind.STRING):
                invalid(f"regex applies to String fields, not {type_ref}")
            try:
                compile_pattern(regex)
            except re.error as exc:
                invalid(f"regex {regex!r} does not compile: {exc}")

        if name is not None and not str(name).strip():
            invalid("name cannot be empty")

        options = FieldOptions(
            required=required,
            min_length=min_length,
            max_length=max_length,
            min_value=min_value,
            max_value=max_value,
            regex=regex if not problems else None,
            name=name,
        )

        default_value = values.get("default")
        if default_value is None:
            return options
        if required:
            invalid("a required field cannot also declare a default")
            return options
        if type_ref is None:
            return options

        default, reason = self._coerce_default(default_value, type_ref)
        if reason is not None:
            invalid(reason)
            return options
        if not problems:
            violation = check_constraints(options, type_ref, default)
            if violation is not None:
                invalid(f"default {violation}")
                return options

        return FieldOptions(
            required=required,
            default=default,
            min_length=min_length,
            max_length=max_length,
            min_value=min_value,
            max_value=max_value,
            regex=options.regex,
            name=name,
        )

    def _coerce_default(self, value: OptionValue, type_ref: TypeRef) -> Tuple[Any, Optional[str]]:
        """Convert a ``default`` literal to the field's Python value."""
        if isinstance(type_ref, ScalarType):
            kind = type_ref.kind
            if kind.is_integer:
                if value.kind != "integer":
                    return None, f"default {value.raw!r} is not an integer"
                if not fits_scalar(kind, value.value):
                    return None, f"default {value.value} is out of range for {kind.value}"
                return value.value, None
            if kind.is_float:
                if not value.is_number:
                    return None, f"default {value.raw!r} is not a number"
                try:
                    coerced = float(value.value)
                except OverflowError:
                    return None, f"default {value.raw} is out of range for {kind.value}"
                if kind == ScalarKind.F32 and math.isfinite(coerced) and abs(coerced) <= F32_MAX:
                    coerced = narrow_f32(coerced)
                if not fits_scalar(kind, coerced):
                    return None, f"default {value.value} is out of range for {kind.value}"
                return coerced, None
            if kind == ScalarKind.BOOL:
                if value.kind != "boolean":
                    return None, f"default {value.raw!r} is not a boolean"
                return value.value, None
            if kind == ScalarKind.STRING:
                if value.kind != "string":
                    return None, f"default {value.raw!r} is not a string"
                return value.value, None
            return None, "bytes fields cannot declare a default"
        if isinstance(type_ref, EnumRef):
            if value.kind not in _NAME:
                return None, f"default for an enumerable must name a variant, got {value.raw!r}"
            decl = self._enum_decl(type_ref)
            variant = next((v for v in decl.variants if v.name == value.value), None) if decl else None
            if variant is None:
                return None, f"'{value.value}' is not a variant of {type_ref.name}"
            if variant.type is not None:
                return None, f"default variant '{variant.name}' carries a value; only unit variants can be defaults"
            return variant.name, None
        return None, f"{type_ref} fields cannot declare a default"

    # ====================================================================
    # Declarations
    # ====================================================================

    def _build_module(self, module: Module) -> ModuleSchema:
        documents: List[DocumentSchema] = []
        enums: List[EnumSchema] = []
        processes: List[ProcessSchema] = []
        for decl in module.body:
            if self._symbols[module.name].get(decl.name) is not decl:
                continue
            if isinstance(decl, DocumentDecl):
                documents.append(self._build_document(module, decl))
            elif isinstance(decl, EnumDecl):
                enums.append(self._build_enum(module, decl))
            elif isinstance(decl, ProcessDecl):
                processes.append(self._build_process(module, decl))
        return ModuleSchema(
            name=module.name,
            path=module.path,
            version=module.language_version or (1, 0),
            imports=tuple(self._imports.get(module.name, [])),
            documents=tuple(documents),
            enums=tuple(enums),
            processes=tuple(processes),
            doc=module.doc,
        )

    def _check_member_names(
        self, members: Sequence[Any], owner: str, kind: str
    ) -> None:
        seen: Dict[str, Any] = {}
        for member in members:
            if member.name in seen:
                first = seen[member.name]
                first_line = first.location.line if first.location else None
                self._error(
                    DuplicateName,
                    f"{kind} '{member.name}' is declared more than once in '{owner}'",
                    member.location,
                    name=member.name,
                    first_line=first_line,
                )
            else:
                seen[member.name] = member

    def _check_output_names(self, members: Sequence[Tuple[str, str, Optional[SourceLocation]]], owner: str) -> None:
        outputs: Dict[str, str] = {}
        for declared, output, location in members:
            if output in outputs and outputs[output] != declared:
                self._error(
                    DuplicateName,
                    f"'{declared}' is renamed to '{output}', which '{outputs[output]}' already uses in '{owner}'",
                    location,
                    name=output,
                )
            outputs.setdefault(output, declared)

    def _build_document(self, module: Module, decl: DocumentDecl) -> DocumentSchema:
        options = self._read_options(decl.options, DOCUMENT_OPTIONS, decl.name, decl.location)
        self._check_member_names(decl.fields, decl.name, "Field")

        fields: List[FieldSchema] = []
        outputs: List[Tuple[str, str, Optional[SourceLocation]]] = []
        for tag, field_decl in enumerate(decl.fields, start=1):
            fields_schema = self._build_field(module, decl, field_decl, tag)
            if fields_schema is None:
                continue
            fields.append(fields_schema)
            outputs.append((field_decl.name, fields_schema.output_name, field_decl.location))
        self._check_output_names(outputs, decl.name)

        root = bool(options["root"].value) if "root" in options else False
        qualified = f"{module.name}.{decl.name}"
        if root:
            self._root_locations[qualified] = decl.location
        return DocumentSchema(
            name=decl.name,
            module=module.name,
            fields=tuple(fields),
            root=root,
            rename=options["name"].value if "name" in options else None,
            doc=decl.doc,
        )

    def _build_field(self, module: Module, owner: DocumentDecl, decl: FieldDecl, tag: int) -> Optional[FieldSchema]:
        label = f"{owner.name}.{decl.name}"
        type_ref = self._resolve_type(module, decl.type)
        values = self._read_options(decl.options, FIELD_OPTIONS, label, decl.location)
        options = self._field_options(values, type_ref, label, decl.location)
        if type_ref is None:
            return None
        return FieldSchema(name=decl.name, tag=tag, type=type_ref, options=options, doc=decl.doc)

    def _build_enum(self, module: Module, decl: EnumDecl) -> EnumSchema:
        options = self._read_options(decl.options, ENUM_OPTIONS, decl.name, decl.location)
        if not decl.variants:
            self._error(InvalidVariant, f"Enumerable '{decl.name}' declares no variants", decl.location)
        if len(decl.variants) > MAX_VARIANTS:
            self._error(
                InvalidVariant,
                f"Enumerable '{decl.name}' declares {len(decl.variants)} variants; at most {MAX_VARIANTS} are allowed",
                decl.location,
            )
        self._check_member_names(decl.variants, decl.name, "Variant")

        variants: List[VariantSchema] = []
        outputs: List[Tuple[str, str, Optional[SourceLocation]]] = []
        for tag, variant_decl in enumerate(decl.variants):
            variant = self._build_variant(module, decl, variant_decl, tag)
            if variant is None:
                continue
            variants.append(variant)
            outputs.append((variant_decl.name, variant.output_name, variant_decl.location))
        self._check_output_names(outputs, decl.name)

        return EnumSchema(
            name=decl.name,
            module=module.name,
            variants=tuple(variants),
            rename=options["name"].value if "name" in options else None,
            doc=decl.doc,
        )

    def _build_variant(self, module: Module, owner: EnumDecl, decl: VariantDecl, tag: int) -> Optional[VariantSchema]:
        label = f"{owner.name}.{decl.name}"
        values = self._read_options(decl.options, VARIANT_OPTIONS, label, decl.location)
        if decl.type is None:
            constrained = sorted(key for key in values if key != "name")
            if constrained:
                self._error(
                    InvalidVariant,
                    f"Unit variant '{label}' cannot declare {', '.join(constrained)}",
                    decl.location,
                )
            name = values["name"].value if "name" in values else None
            return VariantSchema(name=decl.name, tag=tag, options=FieldOptions(name=name), doc=decl.doc)

        type_ref = self._resolve_type(module, decl.type)
        if isinstance(type_ref, ListType):
            self._error(
                InvalidVariant,
                f"Variant '{label}' carries {type_ref}; variants carry a scalar, document or enumerable",
                decl.location,
            )
            return None
        options = self._field_options(values, type_ref, label, decl.location)
        if type_ref is None:
            return None
        return VariantSchema(name=decl.name, tag=tag, type=type_ref, options=options, doc=decl.doc)

    def _build_process(self, module: Module, decl: ProcessDecl) -> ProcessSchema:
        values = self._read_options(decl.options, None, decl.name, decl.location)
        try:
            config = ProcessConfig.model_validate({key: value.value for key, value in values.items()})
        except ValidationError as exc:
            for detail in exc.errors():
                key = ".".join(str(part) for part in detail.get("loc", ())) or decl.name
                self._error(
                    InvalidOption,
                    f"Invalid process option '{key}' on '{decl.name}': {detail.get('msg')}",
                    decl.location,
                    field=f"{decl.name}.{key}",
                    reason=str(detail.get("msg")),
                )
            config = ProcessConfig()

        self._check_member_names(decl.endpoints, decl.name, "Endpoint")
        endpoints: List[EndpointSchema] = []
        for endpoint_id, endpoint_decl in enumerate(decl.endpoints):
            endpoint = self._build_endpoint(module, decl, endpoint_decl, endpoint_id)
            if endpoint is not None:
                endpoints.append(endpoint)

        return ProcessSchema(
            name=decl.name,
            module=module.name,
            endpoints=tuple(endpoints),
            config=config,
            doc=decl.doc,
        )

    def _build_endpoint(
        self, module: Module, owner: ProcessDecl, decl: EndpointDecl, endpoint_id: int
    ) -> Optional[EndpointSchema]:
        label = f"{owner.name}.{decl.name}"
        values = self._read_options(decl.options, ENDPOINT_OPTIONS, label, decl.location)
        request = self._resolve_type(module, decl.request)

        valid = True
        if request is not None:
            if not (isinstance(request, DocumentRef) or is_document_list(request)):
                self._error(
                    InvalidEndpoint,
                    f"Endpoint '{label}' takes {request}; requests must be a document or a list of documents",
                    decl.location,
                )
                valid = False
        if decl.response is not None:
            self._error(
                InvalidEndpoint,
                f"Endpoint '{label}' declares a typed response '{decl.response}'; endpoints return '()'",
                decl.response.location or decl.location,
                hint="Use '-> ()'",
            )
            valid = False

        rate_limit = None
        if "request_rate_limit_per_minute" in values:
            rate_limit = values["request_rate_limit_per_minute"].value
            if rate_limit <= 0:
                self._error(
                    InvalidOption,
                    f"request_rate_limit_per_minute on '{label}' must be a positive integer, got {rate_limit}",
                    decl.location,
                    field=label,
                    reason="request_rate_limit_per_minute must be positive",
                )
                valid = False

        if request is None or not valid:
            return None
        return EndpointSchema(
            name=decl.name,
            id=endpoint_id,
            request=request,
            stream=bool(values["stream"].value) if "stream" in values else False,
            required=bool(values["required"].value) if "required" in values else False,
            rate_limit=rate_limit,
            signature_required=bool(values["signature_required"].value) if "signature_required" in values else False,
            doc=decl.doc,
        )

    # ====================================================================
    # Program-wide checks
    # ====================================================================

    def _check_roots(self, schemas: List[ModuleSchema]) -> None:
        roots = [document.qualified_name for schema in schemas for document in schema.documents if document.root]
        if not roots:
            entry = self._modules.get(self.program.entry or "") if self.program.entry else None
            path = entry.path if entry else (schemas[0].path if schemas else "")
            self._error(
                MissingRoot,
                "No document is marked as the root",
                SourceLocation(file=path, line=1, column=1),
                hint="Annotate exactly one document with '#[document::options { root = true; }]'",
            )
        elif len(roots) > 1:
            self._error(
                MultipleRoots,
                f"Only one document may be the root; found {', '.join(roots)}",
                self._root_locations.get(roots[1]),
                roots=roots,
            )


def validate_program(program: Program) -> SchemaModel:
    """Validate ``program`` in a fresh resolver session."""
    return SchemaResolver(program).resolve()


def validate_module(module: Module) -> SchemaModel:
    """Validate a single module that imports nothing."""
    return validate_program(Program(modules=[module], entry=module.name))


__all__ = [
    "MAX_VARIANTS",
    "SchemaResolver",
    "validate_program",
    "validate_module",
]
