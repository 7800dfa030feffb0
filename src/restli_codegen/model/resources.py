# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Resource descriptors handed over by the front-end, and their compiled form."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from restli_codegen.model.identity import Identity
from restli_codegen.model.types import NamedType, SchemaError, TypeRef

# ###############
# Public Interface
# ###############


class ResourceKind(Enum):
    """The shape of a resource, as declared in its resource description."""

    COLLECTION = "collection"
    SIMPLE = "simple"
    ASSOCIATION = "association"
    ACTIONS = "actions"


class MethodKind(Enum):
    """Every method a resource can expose."""

    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    PARTIAL_UPDATE = "partial_update"
    DELETE = "delete"
    GET_ALL = "get_all"
    BATCH_GET = "batch_get"
    BATCH_CREATE = "batch_create"
    BATCH_UPDATE = "batch_update"
    BATCH_PARTIAL_UPDATE = "batch_partial_update"
    BATCH_DELETE = "batch_delete"
    FINDER = "finder"
    ACTION = "action"


class ParameterSchema(BaseModel):
    """A query or action parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef
    optional: bool = False
    default: str | None = None
    doc: str | None = None


class FinderSchema(BaseModel):
    """A named query over a collection."""

    name: str
    doc: str | None = None
    params: list[ParameterSchema] = _Field(default_factory=list)
    paging: bool = False


class ActionSchema(BaseModel):
    """A named RPC-style operation."""

    name: str
    doc: str | None = None
    params: list[ParameterSchema] = _Field(default_factory=list)
    returns: TypeRef | None = None


class CollectionKey(BaseModel):
    """The entity identifier of a collection.

    A key that carries ``params`` is a complex key, which the compiler
    does not support.
    """

    name: str
    type: TypeRef
    params: list[ParameterSchema] = _Field(default_factory=list)


class ResourceSchema(BaseModel):
    """A resource description as produced by the front-end."""

    name: str
    namespace: str
    doc: str | None = None
    kind: ResourceKind = ResourceKind.COLLECTION
    entity_type: TypeRef | None = None
    key: CollectionKey | None = None
    supports: list[MethodKind] = _Field(default_factory=list)
    finders: list[FinderSchema] = _Field(default_factory=list)
    actions: list[ActionSchema] = _Field(default_factory=list)
    entity_actions: list[ActionSchema] = _Field(default_factory=list)
    subresources: list[ResourceSchema] = _Field(default_factory=list)


class SchemaGraph(BaseModel):
    """The complete input of one compilation: named types plus root resources."""

    types: list[NamedType] = _Field(default_factory=list)
    resources: list[ResourceSchema] = _Field(default_factory=list)

    def type_dictionary(self) -> dict[Identity, NamedType]:
        """Index the named types by identity.

        Raises:
            SchemaError: If two types share an identity.
        """
        result: dict[Identity, NamedType] = {}
        for t in self.types:
            if t.identity in result:
                raise SchemaError(f"Duplicate type definition '{t.identity}'")
            result[t.identity] = t
        return result


class PathKey(BaseModel):
    """An entity-identifier placeholder contributed by a keyed collection."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef


class Ancestor(BaseModel):
    """One enclosing resource of a nested resource, outermost first."""

    model_config = ConfigDict(frozen=True)

    name: str
    key: PathKey | None = None


class Method(BaseModel):
    """A method bound to a compiled resource."""

    model_config = ConfigDict(frozen=True)

    kind: MethodKind
    name: str | None = None
    doc: str | None = None
    parameters: list[ParameterSchema] = _Field(default_factory=list)
    returns: TypeRef | None = None
    on_entity: bool = False
    paging: bool = False


class Resource(BaseModel):
    """A compiled resource: immutable once built."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    doc: str | None = None
    kind: ResourceKind
    entity_type: TypeRef | None = None
    key: PathKey | None = None
    ancestors: list[Ancestor] = _Field(default_factory=list)
    methods: list[Method] = _Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.identity.name

    def ancestor_keys(self) -> list[PathKey]:
        """Return the path keys required by the ancestor chain, outermost first."""
        return [a.key for a in self.ancestors if a.key is not None]


# Resolve forward references in self-referential models.
ResourceSchema.model_rebuild()
