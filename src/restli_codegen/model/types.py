# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type system representations for the restli-codegen schema model.

The model is a closed set of variants. Primitives come from a fixed
catalog; complex types are a discriminated union over the ``kind`` field so
that a schema graph produced by the front-end deserializes unambiguously.
"""

from __future__ import annotations

import base64
import json
import re
import struct
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from restli_codegen.model.identity import Identity

# ###############
# Public Interface
# ###############

UNKNOWN_ENUM_SYMBOL = "$UNKNOWN"


class SchemaError(Exception):
    """Raised when a schema definition is structurally invalid."""


class PrimitiveType(Enum):
    """Primitive types supported by the wire protocol."""

    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"

    @classmethod
    def parse(cls, name: str) -> PrimitiveType:
        """Look up a primitive by its schema name.

        Raises:
            SchemaError: If *name* is not in the catalog.
        """
        try:
            return cls(name)
        except ValueError:
            raise SchemaError(f"Unknown primitive type: {name!r}") from None

    def check(self, value: Any) -> None:
        """Raise ``ValueError`` if *value* is not a valid instance of this primitive."""
        _SCALARS[self].check(value)

    def to_json(self, value: Any) -> Any:
        self.check(value)
        return _SCALARS[self].to_json(value)

    def from_json(self, obj: Any) -> Any:
        value = _SCALARS[self].from_json(obj)
        self.check(value)
        return value

    def to_token(self, value: Any) -> str:
        self.check(value)
        return _SCALARS[self].to_token(value)

    def from_token(self, token: str) -> Any:
        value = _SCALARS[self].from_token(token)
        self.check(value)
        return value

    def parse_literal(self, raw: str) -> Any:
        """Parse a default-value literal (JSON text) embedded in the schema.

        Raises:
            SchemaError: If the literal is not valid JSON or not a valid value.
        """
        try:
            return self.from_json(json.loads(raw))
        except ValueError as exc:
            raise SchemaError(f"Illegal {self.value} literal {raw!r}: {exc}") from exc


class PrimitiveTypeRef(BaseModel):
    """Reference to a primitive type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["primitive"] = "primitive"
    primitive: PrimitiveType


class NamedTypeRef(BaseModel):
    """Reference to a named type by identity."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    identity: Identity


class ArrayType(BaseModel):
    """An anonymous array of a single element type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["array"] = "array"
    items: TypeRef


class MapType(BaseModel):
    """An anonymous map from string keys to a single value type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    values: TypeRef


# A type reference: a primitive, a named type, or an inline array/map.
TypeRef = Annotated[
    PrimitiveTypeRef | NamedTypeRef | ArrayType | MapType,
    _Field(discriminator="kind"),
]


class FieldDef(BaseModel):
    """A named field of a record."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef
    optional: bool = False
    default: str | None = None
    doc: str | None = None


class RecordType(BaseModel):
    """A record with an ordered set of named fields."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["record"] = "record"
    identity: Identity
    fields: list[FieldDef] = _Field(default_factory=list)
    doc: str | None = None


class UnionMember(BaseModel):
    """One member of a union; *name* is the key used on the wire."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef


class UnionType(BaseModel):
    """A flat union; exactly one member is populated at runtime."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["union"] = "union"
    identity: Identity
    members: list[UnionMember] = _Field(default_factory=list)
    doc: str | None = None

    def member(self, name: str) -> UnionMember | None:
        for m in self.members:
            if m.name == name:
                return m
        return None


class EnumType(BaseModel):
    """An enumeration of symbols.

    ``unknown_symbol`` is the designated fallback: decoding a symbol that is
    not in ``symbols`` yields it instead of failing, so that clients built
    against an older schema keep working when the server adds symbols.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["enum"] = "enum"
    identity: Identity
    symbols: list[str] = _Field(default_factory=list)
    unknown_symbol: str = UNKNOWN_ENUM_SYMBOL
    doc: str | None = None


class FixedType(BaseModel):
    """A fixed-width byte blob."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fixed"] = "fixed"
    identity: Identity
    size: int
    doc: str | None = None


class TyperefType(BaseModel):
    """A named alias for another type reference, with no representation of its own."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["typeref"] = "typeref"
    identity: Identity
    ref: TypeRef
    doc: str | None = None


# Every variant that carries an identity and lives in the type dictionary.
NamedType = Annotated[
    RecordType | UnionType | EnumType | FixedType | TyperefType,
    _Field(discriminator="kind"),
]


class TypeResolver(Protocol):
    """Anything that can map an identity to its named type definition."""

    def resolve(self, identity: Identity) -> NamedType: ...


def referenced_identities(node: TypeRef | NamedType) -> Iterator[Identity]:
    """Yield the identities of all named types directly referenced by *node*.

    Inline arrays and maps are traversed; named types are not followed.
    """
    if isinstance(node, NamedTypeRef):
        yield node.identity
    elif isinstance(node, ArrayType):
        yield from referenced_identities(node.items)
    elif isinstance(node, MapType):
        yield from referenced_identities(node.values)
    elif isinstance(node, RecordType):
        for f in node.fields:
            yield from referenced_identities(f.type)
    elif isinstance(node, UnionType):
        for m in node.members:
            yield from referenced_identities(m.type)
    elif isinstance(node, TyperefType):
        yield from referenced_identities(node.ref)


def primitive(p: PrimitiveType) -> PrimitiveTypeRef:
    """Shorthand for a primitive type reference."""
    return PrimitiveTypeRef(primitive=p)


def named(name: str, namespace: str) -> NamedTypeRef:
    """Shorthand for a named type reference."""
    return NamedTypeRef(identity=Identity(name=name, namespace=namespace))


# Resolve forward references for models that use TypeRef.
ArrayType.model_rebuild()
MapType.model_rebuild()
FieldDef.model_rebuild()
UnionMember.model_rebuild()
TyperefType.model_rebuild()


# ################
# Implementation
# ################


_INT_TOKEN = re.compile(r"-?\d+")
_FLOAT_TOKEN = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
# Spellings produced by repr() and by Java clients.
_FLOAT_SPECIALS = frozenset({"nan", "inf", "-inf", "NaN", "Infinity", "-Infinity"})


@dataclass(frozen=True)
class _ScalarSpec:
    check: Callable[[Any], None]
    to_json: Callable[[Any], Any]
    from_json: Callable[[Any], Any]
    to_token: Callable[[Any], str]
    from_token: Callable[[str], Any]


def _int_check(bits: int) -> Callable[[Any], None]:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1

    def check(value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"expected an integer, got {type(value).__name__}")
        if not low <= value <= high:
            raise ValueError(f"{value} is out of range for a {bits}-bit integer")

    return check


def _int_from_json(obj: Any) -> Any:
    if isinstance(obj, float) and obj.is_integer():
        return int(obj)
    return obj


def _int_from_token(token: str) -> int:
    if not _INT_TOKEN.fullmatch(token):
        raise ValueError(f"invalid integer token {token!r}")
    return int(token)


def _float_check(single: bool) -> Callable[[Any], None]:
    def check(value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"expected a number, got {type(value).__name__}")
        if single:
            try:
                struct.pack("<f", value)
            except OverflowError:
                raise ValueError(f"{value} is out of range for a 32-bit float") from None

    return check


def _float_from_json(obj: Any) -> Any:
    if isinstance(obj, bool) or not isinstance(obj, (int, float)):
        return obj
    return float(obj)


def _float_to_token(value: Any) -> str:
    return repr(float(value))


def _float_from_token(token: str) -> float:
    if not (_FLOAT_TOKEN.fullmatch(token) or token in _FLOAT_SPECIALS):
        raise ValueError(f"invalid floating point token {token!r}")
    return float(token)


def _bool_check(value: Any) -> None:
    if not isinstance(value, bool):
        raise ValueError(f"expected a boolean, got {type(value).__name__}")


def _bool_from_token(token: str) -> bool:
    if token == "true":
        return True
    if token == "false":
        return False
    raise ValueError(f"invalid boolean token {token!r}")


def _str_check(value: Any) -> None:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {type(value).__name__}")


def _bytes_check(value: Any) -> None:
    if not isinstance(value, bytes):
        raise ValueError(f"expected bytes, got {type(value).__name__}")


def _bytes_to_text(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _bytes_from_text(obj: Any) -> bytes:
    if not isinstance(obj, str):
        raise ValueError(f"expected base64 text, got {type(obj).__name__}")
    return base64.b64decode(obj, validate=True)


def _identity(value: Any) -> Any:
    return value


_SCALARS: dict[PrimitiveType, _ScalarSpec] = {
    PrimitiveType.INT: _ScalarSpec(_int_check(32), int, _int_from_json, str, _int_from_token),
    PrimitiveType.LONG: _ScalarSpec(_int_check(64), int, _int_from_json, str, _int_from_token),
    PrimitiveType.FLOAT: _ScalarSpec(_float_check(True), float, _float_from_json, _float_to_token, _float_from_token),
    PrimitiveType.DOUBLE: _ScalarSpec(_float_check(False), float, _float_from_json, _float_to_token, _float_from_token),
    PrimitiveType.BOOLEAN: _ScalarSpec(
        _bool_check, _identity, _identity, lambda v: "true" if v else "false", _bool_from_token
    ),
    PrimitiveType.STRING: _ScalarSpec(_str_check, _identity, _identity, _identity, _identity),
    PrimitiveType.BYTES: _ScalarSpec(_bytes_check, _bytes_to_text, _bytes_from_text, _bytes_to_text, _bytes_from_text),
}

# The catalog is closed: every primitive must carry a complete scalar spec.
assert set(_SCALARS) == set(PrimitiveType), "primitive catalog is missing a scalar spec"
