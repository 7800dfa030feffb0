# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema model for restli-codegen (identities, types, resources)."""

from restli_codegen.model.identity import (
    CONFLICT_RESOLUTION_MODULE,
    Identity,
    IdentityError,
    resolve_module_path,
    resolve_resource_module_path,
)
from restli_codegen.model.resources import (
    ActionSchema,
    Ancestor,
    CollectionKey,
    FinderSchema,
    Method,
    MethodKind,
    ParameterSchema,
    PathKey,
    Resource,
    ResourceKind,
    ResourceSchema,
    SchemaGraph,
)
from restli_codegen.model.types import (
    UNKNOWN_ENUM_SYMBOL,
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
    UnionMember,
    UnionType,
    named,
    primitive,
)

__all__ = [
    # Identities
    "CONFLICT_RESOLUTION_MODULE",
    "Identity",
    "IdentityError",
    "resolve_module_path",
    "resolve_resource_module_path",
    # Type system
    "UNKNOWN_ENUM_SYMBOL",
    "SchemaError",
    "PrimitiveType",
    "PrimitiveTypeRef",
    "NamedTypeRef",
    "ArrayType",
    "MapType",
    "TypeRef",
    "FieldDef",
    "RecordType",
    "UnionMember",
    "UnionType",
    "EnumType",
    "FixedType",
    "TyperefType",
    "NamedType",
    "TypeResolver",
    "named",
    "primitive",
    # Resources
    "ResourceKind",
    "MethodKind",
    "ParameterSchema",
    "FinderSchema",
    "ActionSchema",
    "CollectionKey",
    "ResourceSchema",
    "SchemaGraph",
    "PathKey",
    "Ancestor",
    "Method",
    "Resource",
]
