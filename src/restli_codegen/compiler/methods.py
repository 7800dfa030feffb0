# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compile resource methods into request descriptors.

A :class:`MethodDescriptor` captures everything a generated request builder
and response decoder need: the HTTP verb, the protocol method name, the path
template with its key placeholders, the fixed and caller-supplied query
parameters, and the shapes of the request body and the response.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from restli_codegen.model.identity import Identity, to_snake_case
from restli_codegen.model.resources import Method, MethodKind, ParameterSchema, Resource
from restli_codegen.model.types import ArrayType, PrimitiveType, PrimitiveTypeRef, SchemaError, TypeRef

# ###############
# Public Interface
# ###############


class BodyKind(Enum):
    """Shape of a request body."""

    NONE = "none"
    ENTITY = "entity"
    PATCH = "patch"
    BATCH_ENTITIES = "batch_entities"
    BATCH_KEYED_ENTITIES = "batch_keyed_entities"
    BATCH_PATCHES = "batch_patches"
    ACTION_PARAMETERS = "action_parameters"


class ResponseKind(Enum):
    """Shape of a successful response."""

    NONE = "none"
    ENTITY = "entity"
    CREATED_ID = "created_id"
    COLLECTION = "collection"
    BATCH_ENTITIES = "batch_entities"
    BATCH_CREATED_IDS = "batch_created_ids"
    BATCH_STATUS = "batch_status"
    ACTION_VALUE = "action_value"


class LiteralSegment(BaseModel):
    """A fixed path segment (a resource name)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    text: str


class KeySegment(BaseModel):
    """An entity-key placeholder, filled with a structured-literal encoded key."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["key"] = "key"
    name: str
    type: TypeRef


PathSegment = Annotated[LiteralSegment | KeySegment, _Field(discriminator="kind")]


class PathTemplate(BaseModel):
    """Ordered path segments, outermost ancestor first."""

    model_config = ConfigDict(frozen=True)

    segments: list[PathSegment] = _Field(default_factory=list)

    def keys(self) -> list[KeySegment]:
        """Return the key placeholders in the order they appear."""
        return [s for s in self.segments if isinstance(s, KeySegment)]

    def render(self, encoded_keys: list[str]) -> str:
        """Fill the placeholders with already-encoded key text.

        Raises:
            ValueError: If the number of keys does not match the placeholders.
        """
        placeholders = self.keys()
        if len(encoded_keys) != len(placeholders):
            raise ValueError(f"Path '{self}' needs {len(placeholders)} key(s), got {len(encoded_keys)}")
        remaining = iter(encoded_keys)
        return "/".join(s.text if isinstance(s, LiteralSegment) else next(remaining) for s in self.segments)

    def __str__(self) -> str:
        return "/".join(s.text if isinstance(s, LiteralSegment) else "{" + s.name + "}" for s in self.segments)


class MethodDescriptor(BaseModel):
    """Everything needed to build a request for one method and decode its response.

    Attributes:
        resource: The resource the method belongs to.
        kind: The method kind.
        name: Finder or action name; ``None`` for the fixed rest methods.
        declaration_name: The name of the generated declaration.
        http_method: The HTTP verb.
        restli_method: Value of the protocol method header.
        path: The path template.
        fixed_query: Query pairs that are always sent (``q``, ``action``).
        parameters: Caller-supplied query parameters (finders, paging) or
            body parameters (actions).
        batch_key: Key type of the ``ids`` query parameter for batch methods.
        body: Shape of the request body.
        body_type: Entity type of the request body, if any.
        response: Shape of the response.
        response_type: Entity, key or action return type of the response.
    """

    model_config = ConfigDict(frozen=True)

    resource: Identity
    kind: MethodKind
    name: str | None = None
    declaration_name: str
    doc: str | None = None
    http_method: str
    restli_method: str
    path: PathTemplate
    fixed_query: list[tuple[str, str]] = _Field(default_factory=list)
    parameters: list[ParameterSchema] = _Field(default_factory=list)
    batch_key: TypeRef | None = None
    body: BodyKind = BodyKind.NONE
    body_type: TypeRef | None = None
    response: ResponseKind = ResponseKind.NONE
    response_type: TypeRef | None = None

    @property
    def ids_type(self) -> ArrayType | None:
        """Type of the ``ids`` query parameter of batch methods."""
        return ArrayType(items=self.batch_key) if self.batch_key is not None else None


def compile_method(resource: Resource, method: Method) -> MethodDescriptor:
    """Compile one method of *resource* into a :class:`MethodDescriptor`.

    Raises:
        SchemaError: If the resource lacks the entity type or key the method needs.
    """
    traits = _TRAITS[method.kind]
    ctx = f"{method.kind.value} on resource '{resource.identity}'"

    if method.kind == MethodKind.ACTION:
        if not method.name:
            raise SchemaError(f"{ctx}: actions must be named")
        return MethodDescriptor(
            resource=resource.identity,
            kind=method.kind,
            name=method.name,
            declaration_name=declaration_name(method),
            doc=method.doc,
            http_method=traits.http_method,
            restli_method=method.kind.value,
            path=path_template(resource, method.on_entity),
            fixed_query=[("action", method.name)],
            parameters=method.parameters,
            body=BodyKind.ACTION_PARAMETERS,
            response=ResponseKind.ACTION_VALUE if method.returns is not None else ResponseKind.NONE,
            response_type=method.returns,
        )

    if traits.needs_entity and resource.entity_type is None:
        raise SchemaError(f"{ctx}: the resource has no entity type")
    if traits.needs_key and resource.key is None:
        raise SchemaError(f"{ctx}: the resource has no key")

    fixed_query: list[tuple[str, str]] = []
    parameters = list(method.parameters)
    if method.kind == MethodKind.FINDER:
        if not method.name:
            raise SchemaError(f"{ctx}: finders must be named")
        fixed_query.append(("q", method.name))
    if method.kind == MethodKind.GET_ALL or (method.kind == MethodKind.FINDER and method.paging):
        parameters.extend(_PAGING_PARAMETERS)

    response_type: TypeRef | None = None
    if traits.response in (ResponseKind.ENTITY, ResponseKind.COLLECTION, ResponseKind.BATCH_ENTITIES):
        response_type = resource.entity_type
    elif traits.response in (ResponseKind.CREATED_ID, ResponseKind.BATCH_CREATED_IDS, ResponseKind.BATCH_STATUS):
        response_type = resource.key.type if resource.key is not None else None

    return MethodDescriptor(
        resource=resource.identity,
        kind=method.kind,
        name=method.name,
        declaration_name=declaration_name(method),
        doc=method.doc,
        http_method=traits.http_method,
        restli_method=method.kind.value,
        path=path_template(resource, method.on_entity),
        fixed_query=fixed_query,
        parameters=parameters,
        batch_key=resource.key.type if traits.batch and resource.key is not None else None,
        body=traits.body,
        body_type=resource.entity_type if traits.body != BodyKind.NONE else None,
        response=traits.response,
        response_type=response_type,
    )


def compile_resource(resource: Resource) -> list[MethodDescriptor]:
    """Compile every method of *resource*, in declaration order."""
    return [compile_method(resource, m) for m in resource.methods]


def path_template(resource: Resource, on_entity: bool) -> PathTemplate:
    """Build the path of *resource*: ancestors first, then the resource itself.

    The resource's own key placeholder is appended only for methods that
    target a single entity.
    """
    segments: list[LiteralSegment | KeySegment] = []
    for ancestor in resource.ancestors:
        segments.append(LiteralSegment(text=ancestor.name))
        if ancestor.key is not None:
            segments.append(KeySegment(name=ancestor.key.name, type=ancestor.key.type))
    segments.append(LiteralSegment(text=resource.name))
    if on_entity and resource.key is not None:
        segments.append(KeySegment(name=resource.key.name, type=resource.key.type))
    return PathTemplate(segments=segments)


def declaration_name(method: Method) -> str:
    """Name of the generated declaration for *method*.

    Rest methods use their kind (``get``, ``batch_update``), finders become
    ``find_by_<name>`` and actions ``do_<name>``; entity-level actions get an
    ``_on_entity`` suffix so they never clash with collection-level actions.
    """
    if method.kind == MethodKind.FINDER:
        return f"find_by_{to_snake_case(method.name or '')}"
    if method.kind == MethodKind.ACTION:
        suffix = "_on_entity" if method.on_entity else ""
        return f"do_{to_snake_case(method.name or '')}{suffix}"
    return method.kind.value


# ################
# Implementation
# ################


@dataclass(frozen=True)
class _Traits:
    http_method: str
    body: BodyKind
    response: ResponseKind
    needs_entity: bool = False
    needs_key: bool = False
    batch: bool = False


_TRAITS: dict[MethodKind, _Traits] = {
    MethodKind.GET: _Traits("GET", BodyKind.NONE, ResponseKind.ENTITY, needs_entity=True),
    MethodKind.CREATE: _Traits("POST", BodyKind.ENTITY, ResponseKind.CREATED_ID, needs_entity=True, needs_key=True),
    MethodKind.UPDATE: _Traits("PUT", BodyKind.ENTITY, ResponseKind.NONE, needs_entity=True),
    MethodKind.PARTIAL_UPDATE: _Traits("POST", BodyKind.PATCH, ResponseKind.NONE, needs_entity=True),
    MethodKind.DELETE: _Traits("DELETE", BodyKind.NONE, ResponseKind.NONE),
    MethodKind.GET_ALL: _Traits("GET", BodyKind.NONE, ResponseKind.COLLECTION, needs_entity=True),
    MethodKind.BATCH_GET: _Traits(
        "GET", BodyKind.NONE, ResponseKind.BATCH_ENTITIES, needs_entity=True, needs_key=True, batch=True
    ),
    MethodKind.BATCH_CREATE: _Traits(
        "POST", BodyKind.BATCH_ENTITIES, ResponseKind.BATCH_CREATED_IDS, needs_entity=True, needs_key=True
    ),
    MethodKind.BATCH_UPDATE: _Traits(
        "PUT", BodyKind.BATCH_KEYED_ENTITIES, ResponseKind.BATCH_STATUS, needs_entity=True, needs_key=True, batch=True
    ),
    MethodKind.BATCH_PARTIAL_UPDATE: _Traits(
        "POST", BodyKind.BATCH_PATCHES, ResponseKind.BATCH_STATUS, needs_entity=True, needs_key=True, batch=True
    ),
    MethodKind.BATCH_DELETE: _Traits("DELETE", BodyKind.NONE, ResponseKind.BATCH_STATUS, needs_key=True, batch=True),
    MethodKind.FINDER: _Traits("GET", BodyKind.NONE, ResponseKind.COLLECTION, needs_entity=True),
    MethodKind.ACTION: _Traits("POST", BodyKind.ACTION_PARAMETERS, ResponseKind.ACTION_VALUE),
}

assert set(_TRAITS) == set(MethodKind), "every method kind needs traits"

_PAGING_PARAMETERS = (
    ParameterSchema(name="start", type=PrimitiveTypeRef(primitive=PrimitiveType.INT), optional=True),
    ParameterSchema(name="count", type=PrimitiveTypeRef(primitive=PrimitiveType.INT), optional=True),
)
