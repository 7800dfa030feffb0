# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type-directed conversion between in-memory values and wire trees.

A wire tree is the shape shared by both encodings: records, unions and maps
become dicts, arrays become lists and everything else is a scalar. The
:class:`Codec` base class owns the per-variant rules (typeref unwrapping,
union validation, enum fallback, default population) and uses JSON-native
scalars; the structured-literal codec only swaps the scalar hooks and adds
its own text syntax on top.

In-memory values are plain Python data: records are dicts keyed by field
name, unions are single-key dicts, enums are symbol strings, arrays are
lists, maps are ``dict[str, V]`` and fixed/bytes values are ``bytes``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, assert_never

from restli_codegen.model.identity import Identity
from restli_codegen.model.types import (
    ArrayType,
    EnumType,
    FieldDef,
    FixedType,
    MapType,
    NamedType,
    NamedTypeRef,
    PrimitiveType,
    PrimitiveTypeRef,
    RecordType,
    SchemaError,
    TypeRef,
    TypeResolver,
    TyperefType,
    UnionType,
)
from restli_codegen.wire.errors import DecodeError, EncodeError, UnionMemberError

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

# The variants a type reference can resolve to once typerefs are unwrapped.
Terminal = PrimitiveTypeRef | RecordType | UnionType | EnumType | ArrayType | MapType | FixedType


def validate_single_member(union: UnionType, value: Any) -> str:
    """Check that exactly one member of *union* is populated in *value*.

    Returns:
        The name of the populated member.

    Raises:
        UnionMemberError: If *value* is not a mapping, names an unknown
            member, or has zero or several populated members.
    """
    if not isinstance(value, Mapping):
        raise UnionMemberError(f"{union.identity}: expected a mapping, got {type(value).__name__}")
    unknown = sorted(k for k in value if union.member(k) is None)
    if unknown:
        raise UnionMemberError(f"{union.identity}: unknown member(s) {', '.join(unknown)}")
    populated = [k for k, v in value.items() if v is not None]
    if len(populated) != 1:
        raise UnionMemberError(
            f"{union.identity}: zero or multiple members populated ({len(populated)} populated)"
        )
    return populated[0]


class Codec:
    """Encode and decode values against the schema, producing JSON-shaped trees."""

    def __init__(self, resolver: TypeResolver) -> None:
        self._resolver = resolver

    def terminal(self, type_ref: TypeRef | NamedType) -> Terminal:
        """Resolve named references and unwrap typerefs down to a concrete variant."""
        node: TypeRef | NamedType = type_ref
        seen: set[Identity] = set()
        while True:
            if isinstance(node, NamedTypeRef):
                node = self._resolver.resolve(node.identity)
            elif isinstance(node, TyperefType):
                if node.identity in seen:
                    raise SchemaError(f"Typeref '{node.identity}' refers back to itself")
                seen.add(node.identity)
                node = node.ref
            else:
                return node

    def encode_tree(self, type_ref: TypeRef | NamedType, value: Any) -> Any:
        """Encode *value* into a wire tree.

        Raises:
            EncodeError: If *value* does not satisfy the type.
        """
        t = self.terminal(type_ref)
        if isinstance(t, PrimitiveTypeRef):
            return self._encode_scalar(t.primitive, value)
        if isinstance(t, RecordType):
            return self._encode_record(t, value)
        if isinstance(t, UnionType):
            try:
                member = validate_single_member(t, value)
            except UnionMemberError as exc:
                raise EncodeError(str(exc)) from exc
            return {member: self.encode_tree(_member_type(t, member), value[member])}
        if isinstance(t, EnumType):
            if value == t.unknown_symbol:
                raise EncodeError(f"{t.identity}: the unknown-symbol fallback {value!r} cannot be encoded")
            if value not in t.symbols:
                raise EncodeError(f"{t.identity}: {value!r} is not a symbol of this enum")
            return self._encode_scalar(PrimitiveType.STRING, value)
        if isinstance(t, ArrayType):
            if not isinstance(value, (list, tuple)):
                raise EncodeError(f"Expected a list, got {type(value).__name__}")
            return [self.encode_tree(t.items, v) for v in value]
        if isinstance(t, MapType):
            if not isinstance(value, Mapping):
                raise EncodeError(f"Expected a mapping, got {type(value).__name__}")
            for k in value:
                if not isinstance(k, str):
                    raise EncodeError(f"Map keys must be strings, got {k!r}")
            return {k: self.encode_tree(t.values, v) for k, v in value.items()}
        if isinstance(t, FixedType):
            if not isinstance(value, bytes) or len(value) != t.size:
                raise EncodeError(f"{t.identity}: expected exactly {t.size} bytes, got {value!r}")
            return self._encode_scalar(PrimitiveType.BYTES, value)
        assert_never(t)

    def decode_tree(self, type_ref: TypeRef | NamedType, token: Any) -> Any:
        """Decode a wire tree into a value, populating declared defaults.

        Raises:
            DecodeError: If the token does not match the type.
        """
        t = self.terminal(type_ref)
        if isinstance(t, PrimitiveTypeRef):
            return self._decode_scalar(t.primitive, token)
        if isinstance(t, RecordType):
            return self._decode_record(t, token)
        if isinstance(t, UnionType):
            members = self._as_mapping(token, str(t.identity))
            try:
                member = validate_single_member(t, members)
            except UnionMemberError as exc:
                raise DecodeError(str(exc)) from exc
            return {member: self.decode_tree(_member_type(t, member), members[member])}
        if isinstance(t, EnumType):
            symbol = self._decode_scalar(PrimitiveType.STRING, token)
            if symbol in t.symbols:
                return symbol
            logger.debug("Unknown symbol %r for enum %s, using %r", symbol, t.identity, t.unknown_symbol)
            return t.unknown_symbol
        if isinstance(t, ArrayType):
            return [self.decode_tree(t.items, v) for v in self._as_sequence(token, "array")]
        if isinstance(t, MapType):
            return {k: self.decode_tree(t.values, v) for k, v in self._as_mapping(token, "map").items()}
        if isinstance(t, FixedType):
            data = self._decode_scalar(PrimitiveType.BYTES, token)
            if len(data) != t.size:
                raise DecodeError(f"{t.identity}: expected exactly {t.size} bytes, got {len(data)}")
            return data
        assert_never(t)

    def populate_defaults(self, type_ref: TypeRef | NamedType, value: Any) -> Any:
        """Return a copy of *value* where every missing field with a declared default is filled in.

        Nested records, union members, array elements and map values are
        populated bottom-up. The input is not modified.
        """
        t = self.terminal(type_ref)
        if isinstance(t, (PrimitiveTypeRef, EnumType, FixedType)):
            return value
        if isinstance(t, RecordType):
            if not isinstance(value, Mapping):
                return value
            result = dict(value)
            for f in t.fields:
                if value.get(f.name) is not None:
                    result[f.name] = self.populate_defaults(f.type, value[f.name])
                elif f.default is not None:
                    result[f.name] = self.default_value(f)
            return result
        if isinstance(t, UnionType):
            if not isinstance(value, Mapping):
                return value
            return {
                k: self.populate_defaults(m.type, v) if (m := t.member(k)) is not None and v is not None else v
                for k, v in value.items()
            }
        if isinstance(t, ArrayType):
            if not isinstance(value, list):
                return value
            return [self.populate_defaults(t.items, v) for v in value]
        if isinstance(t, MapType):
            if not isinstance(value, Mapping):
                return value
            return {k: self.populate_defaults(t.values, v) for k, v in value.items()}
        assert_never(t)

    def default_value(self, f: FieldDef) -> Any:
        """Decode the default literal of *f* into a fresh value."""
        if f.default is None:
            raise SchemaError(f"Field '{f.name}' has no default")
        return parse_default(self._resolver, f.type, f.default)

    # Scalar hooks: JSON-native scalars. Subclasses override these to change
    # the token shape without touching the per-variant rules.

    def _encode_primitive(self, p: PrimitiveType, value: Any) -> Any:
        return p.to_json(value)

    def _decode_primitive(self, p: PrimitiveType, token: Any) -> Any:
        return p.from_json(token)

    def _as_mapping(self, token: Any, what: str) -> Mapping[str, Any]:
        if not isinstance(token, Mapping):
            raise DecodeError(f"{what}: expected an object, got {type(token).__name__}")
        return token

    def _as_sequence(self, token: Any, what: str) -> list[Any]:
        if not isinstance(token, list):
            raise DecodeError(f"{what}: expected a list, got {type(token).__name__}")
        return token

    # Helpers

    def _encode_scalar(self, p: PrimitiveType, value: Any) -> Any:
        try:
            return self._encode_primitive(p, value)
        except ValueError as exc:
            raise EncodeError(f"Invalid {p.value} value {value!r}: {exc}") from exc

    def _decode_scalar(self, p: PrimitiveType, token: Any) -> Any:
        try:
            return self._decode_primitive(p, token)
        except ValueError as exc:
            raise DecodeError(f"Invalid {p.value} token {token!r}: {exc}") from exc

    def _encode_record(self, t: RecordType, value: Any) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise EncodeError(f"{t.identity}: expected a mapping, got {type(value).__name__}")
        known = {f.name for f in t.fields}
        unknown = sorted(k for k in value if k not in known)
        if unknown:
            raise EncodeError(f"{t.identity}: unknown field(s) {', '.join(unknown)}")
        result: dict[str, Any] = {}
        for f in t.fields:
            v = value.get(f.name)
            if v is None:
                # Unset optionals are omitted; defaulted fields are filled in by the reader.
                if f.optional or f.default is not None:
                    continue
                raise EncodeError(f"{t.identity}: missing required field '{f.name}'")
            try:
                result[f.name] = self.encode_tree(f.type, v)
            except EncodeError as exc:
                raise EncodeError(f"{t.identity}.{f.name}: {exc}") from exc
        return result

    def _decode_record(self, t: RecordType, token: Any) -> dict[str, Any]:
        fields = self._as_mapping(token, str(t.identity))
        result: dict[str, Any] = {}
        for f in t.fields:
            raw = fields.get(f.name)
            if raw is not None:
                try:
                    result[f.name] = self.decode_tree(f.type, raw)
                except DecodeError as exc:
                    raise DecodeError(f"{t.identity}.{f.name}: {exc}") from exc
            elif f.default is not None:
                result[f.name] = self.default_value(f)
            elif not f.optional:
                raise DecodeError(f"{t.identity}: missing required field '{f.name}'")
        return result


def parse_default(resolver: TypeResolver, type_ref: TypeRef, raw: str) -> Any:
    """Decode a JSON default literal against *type_ref*.

    Raises:
        SchemaError: If the literal is not valid for the type.
    """
    if isinstance(type_ref, PrimitiveTypeRef):
        return type_ref.primitive.parse_literal(raw)
    try:
        return Codec(resolver).decode_tree(type_ref, json.loads(raw))
    except (ValueError, DecodeError) as exc:
        raise SchemaError(f"Illegal default literal {raw!r}: {exc}") from exc


# ################
# Implementation
# ################


def _member_type(union: UnionType, name: str) -> TypeRef:
    member = union.member(name)
    assert member is not None
    return member.type
