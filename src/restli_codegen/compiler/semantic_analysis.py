# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic analysis for named types and resource descriptions.

Structural checks run on a single definition at a time: duplicate names,
invalid enum fallbacks, non-positive fixed sizes, malformed resource
method lists. Checks that need other definitions (nested unions, default
literals of complex types, typeref loops) run through a resolver once the
type graph has been walked.
"""

from __future__ import annotations

from dataclasses import dataclass

from restli_codegen.model.resources import MethodKind, ResourceKind, ResourceSchema
from restli_codegen.model.types import (
    EnumType,
    FieldDef,
    FixedType,
    NamedType,
    RecordType,
    SchemaError,
    TypeResolver,
    TyperefType,
    UnionType,
)
from restli_codegen.wire.codec import Codec, parse_default

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class SemanticError:
    """A structural error detected during semantic analysis.

    Attributes:
        message: Human-readable description of the error.
    """

    message: str


def analyze(definition: NamedType) -> list[SemanticError]:
    """Perform structural checks on a single named type.

    Checks performed:
    - Records: duplicate field names.
    - Unions: at least one member; duplicate member names.
    - Enums: duplicate or empty symbols; the unknown-symbol fallback must
      not collide with a declared symbol.
    - Fixed: the size must be positive.

    Returns:
        A list of :class:`SemanticError` instances. An empty list means no
        errors were found.
    """
    ctx = f"{definition.kind} '{definition.identity}'"
    if isinstance(definition, RecordType):
        return _check_duplicate_names([f.name for f in definition.fields], f"Duplicate field name '{{}}' in {ctx}")
    if isinstance(definition, UnionType):
        errors = _check_duplicate_names([m.name for m in definition.members], f"Duplicate member '{{}}' in {ctx}")
        if not definition.members:
            errors.append(SemanticError(f"{ctx} has no members"))
        return errors
    if isinstance(definition, EnumType):
        return _check_enum_symbols(ctx, definition)
    if isinstance(definition, FixedType):
        if definition.size <= 0:
            return [SemanticError(f"{ctx} has non-positive size {definition.size}")]
        return []
    return []


def analyze_references(definition: NamedType, resolver: TypeResolver) -> list[SemanticError]:
    """Check the parts of *definition* that depend on other definitions.

    Checks performed:
    - Union members may not themselves be unions.
    - Typeref chains must end in a concrete type.
    - Record field defaults must decode against the field type.
    """
    ctx = f"{definition.kind} '{definition.identity}'"
    codec = Codec(resolver)
    errors: list[SemanticError] = []
    if isinstance(definition, UnionType):
        for member in definition.members:
            if isinstance(codec.terminal(member.type), UnionType):
                errors.append(SemanticError(f"{ctx}: member '{member.name}' is a nested union"))
    elif isinstance(definition, TyperefType):
        try:
            codec.terminal(definition)
        except SchemaError as exc:
            errors.append(SemanticError(f"{ctx}: {exc}"))
    elif isinstance(definition, RecordType):
        for f in definition.fields:
            errors.extend(_check_default(ctx, f, resolver))
    return errors


def analyze_resource(schema: ResourceSchema) -> list[SemanticError]:
    """Perform structural checks on one resource description (not its children).

    Checks performed:
    - Duplicate finder, action and entity action names; duplicate methods.
    - Finders and actions are declared separately, not in ``supports``.
    - Collections must declare a key; only collections may declare finders
      or entity actions.
    - Duplicate sub-resource names.
    """
    ctx = f"resource '{schema.namespace}.{schema.name}'"
    errors: list[SemanticError] = []
    errors.extend(_check_duplicate_names([m.value for m in schema.supports], f"Duplicate method '{{}}' in {ctx}"))
    errors.extend(_check_duplicate_names([f.name for f in schema.finders], f"Duplicate finder '{{}}' in {ctx}"))
    errors.extend(_check_duplicate_names([a.name for a in schema.actions], f"Duplicate action '{{}}' in {ctx}"))
    errors.extend(
        _check_duplicate_names([a.name for a in schema.entity_actions], f"Duplicate entity action '{{}}' in {ctx}")
    )
    errors.extend(
        _check_duplicate_names([s.name for s in schema.subresources], f"Duplicate sub-resource '{{}}' in {ctx}")
    )
    for kind in schema.supports:
        if kind in (MethodKind.FINDER, MethodKind.ACTION):
            errors.append(SemanticError(f"{ctx}: '{kind.value}' must be declared as a finder or action, not supported"))
    if schema.kind == ResourceKind.COLLECTION and schema.key is None:
        errors.append(SemanticError(f"{ctx}: collection has no key"))
    if schema.kind != ResourceKind.COLLECTION and schema.kind != ResourceKind.ASSOCIATION:
        if schema.finders:
            errors.append(SemanticError(f"{ctx}: only collections can declare finders"))
        if schema.entity_actions:
            errors.append(SemanticError(f"{ctx}: only collections can declare entity actions"))
    if schema.kind == ResourceKind.ACTIONS and schema.supports:
        errors.append(SemanticError(f"{ctx}: an actions resource cannot support rest methods"))
    if schema.kind == ResourceKind.SIMPLE:
        for kind in schema.supports:
            if kind not in _SIMPLE_METHODS:
                errors.append(SemanticError(f"{ctx}: a simple resource cannot support '{kind.value}'"))
    return errors


# ################
# Implementation
# ################

_SIMPLE_METHODS = frozenset({MethodKind.GET, MethodKind.UPDATE, MethodKind.PARTIAL_UPDATE, MethodKind.DELETE})


def _check_duplicate_names(names: list[str], fmt: str) -> list[SemanticError]:
    """Return a SemanticError for each name that appears more than once.

    Only one error per unique duplicate name is emitted (even if it appears
    three or more times). *fmt* must contain a single ``{}`` placeholder
    that will be filled with the duplicate name.
    """
    seen: set[str] = set()
    reported: set[str] = set()
    errors: list[SemanticError] = []
    for name in names:
        if name in seen:
            if name not in reported:
                errors.append(SemanticError(fmt.format(name)))
                reported.add(name)
        else:
            seen.add(name)
    return errors


def _check_enum_symbols(ctx: str, enum: EnumType) -> list[SemanticError]:
    errors = _check_duplicate_names(enum.symbols, f"Duplicate symbol '{{}}' in {ctx}")
    if any(not s for s in enum.symbols):
        errors.append(SemanticError(f"{ctx} has an empty symbol"))
    if enum.unknown_symbol in enum.symbols:
        errors.append(SemanticError(f"{ctx}: fallback symbol '{enum.unknown_symbol}' is also a declared symbol"))
    return errors


def _check_default(ctx: str, f: FieldDef, resolver: TypeResolver) -> list[SemanticError]:
    if f.default is None:
        return []
    try:
        parse_default(resolver, f.type, f.default)
    except SchemaError as exc:
        return [SemanticError(f"{ctx}: field '{f.name}': {exc}")]
    return []
