# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Walks resource descriptions into compiled resources.

Each resource is compiled together with its ancestor chain: every
enclosing resource contributes a path segment and, if it is a keyed
collection, an entity-key placeholder. Resources whose entity key is
complex (structured key parameters) or compound (associations) are not
supported; they are skipped together with all of their sub-resources and
reported, while the rest of the tree keeps compiling.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from restli_codegen.compiler.registry import TypeRegistry, UnresolvedReferenceError
from restli_codegen.compiler.semantic_analysis import analyze_resource
from restli_codegen.model.identity import Identity
from restli_codegen.model.resources import (
    Ancestor,
    Method,
    MethodKind,
    PathKey,
    Resource,
    ResourceKind,
    ResourceSchema,
)
from restli_codegen.model.types import SchemaError, TypeRef, referenced_identities

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class UnsupportedResource:
    """A resource skipped because of its key shape, with the sub-resources skipped along with it.

    Attributes:
        identity: The resource that declares the unsupported key.
        reason: Human-readable description of the unsupported shape.
        skipped: Identities of every descendant that was skipped with it.
    """

    identity: Identity
    reason: str
    skipped: tuple[Identity, ...] = ()

    @property
    def message(self) -> str:
        suffix = f" and {len(self.skipped)} sub-resource(s)" if self.skipped else ""
        return f"{self.reason}. Skipping '{self.identity}'{suffix}."


@dataclass(frozen=True)
class ResourceFailure:
    """A resource whose compilation failed; nothing is emitted for it.

    Attributes:
        identity: The failed resource.
        message: Human-readable description of the failure.
    """

    identity: Identity
    message: str


@dataclass
class ResourceWalk:
    """Everything learned from walking the resource trees."""

    resources: list[Resource] = field(default_factory=list)
    unsupported: list[UnsupportedResource] = field(default_factory=list)
    failures: list[ResourceFailure] = field(default_factory=list)


def build_resources(roots: list[ResourceSchema], registry: TypeRegistry) -> ResourceWalk:
    """Compile every resource in *roots* and their sub-resources.

    Every type a resource references (entity, keys along the ancestor chain,
    parameters, return types) is resolved through *registry*; a resource
    whose references cannot be resolved becomes a :class:`ResourceFailure`.

    Args:
        roots: Top-level resource descriptions.
        registry: Resolver context for the compilation.

    Returns:
        A :class:`ResourceWalk` with resources in depth-first order.
    """
    walk = ResourceWalk()
    for schema in roots:
        _walk(schema, [schema.namespace], [], registry, walk)
    return walk


def resource_type_refs(resource: Resource) -> list[TypeRef]:
    """Return every type reference a compiled resource depends on."""
    refs: list[TypeRef] = [k.type for k in resource.ancestor_keys()]
    if resource.key is not None:
        refs.append(resource.key.type)
    if resource.entity_type is not None:
        refs.append(resource.entity_type)
    for method in resource.methods:
        refs.extend(p.type for p in method.parameters)
        if method.returns is not None:
            refs.append(method.returns)
    return refs


# ################
# Implementation
# ################


def _walk(
    schema: ResourceSchema,
    namespace_chain: list[str],
    ancestors: list[Ancestor],
    registry: TypeRegistry,
    walk: ResourceWalk,
) -> None:
    identity = Identity(name=schema.name, namespace=".".join(namespace_chain))
    child_chain = [*namespace_chain, schema.name]

    reason = _unsupported_key_reason(schema)
    if reason is not None:
        skipped = tuple(_descendants(schema, child_chain))
        unsupported = UnsupportedResource(identity=identity, reason=reason, skipped=skipped)
        logger.warning(unsupported.message)
        walk.unsupported.append(unsupported)
        return

    errors = analyze_resource(schema)
    if errors:
        walk.failures.append(ResourceFailure(identity, "; ".join(e.message for e in errors)))
        for descendant in _descendants(schema, child_chain):
            walk.failures.append(ResourceFailure(descendant, f"Enclosing resource '{identity}' is invalid"))
        return

    try:
        resource = _build_resource(schema, identity, ancestors, registry)
    except (UnresolvedReferenceError, SchemaError) as exc:
        walk.failures.append(ResourceFailure(identity, str(exc)))
    else:
        walk.resources.append(resource)

    own = Ancestor(name=schema.name, key=_path_key(schema))
    for sub in schema.subresources:
        _walk(sub, child_chain, [*ancestors, own], registry, walk)


def _unsupported_key_reason(schema: ResourceSchema) -> str | None:
    if schema.kind == ResourceKind.ASSOCIATION:
        return "Compound (association) key resources are not supported"
    if schema.key is not None and schema.key.params:
        return "Complex key resources are not supported"
    return None


def _descendants(schema: ResourceSchema, chain: list[str]) -> Iterator[Identity]:
    for sub in schema.subresources:
        yield Identity(name=sub.name, namespace=".".join(chain))
        yield from _descendants(sub, [*chain, sub.name])


def _path_key(schema: ResourceSchema) -> PathKey | None:
    if schema.kind != ResourceKind.COLLECTION or schema.key is None:
        return None
    return PathKey(name=schema.key.name, type=schema.key.type)


def _build_resource(
    schema: ResourceSchema,
    identity: Identity,
    ancestors: list[Ancestor],
    registry: TypeRegistry,
) -> Resource:
    keyed = schema.kind == ResourceKind.COLLECTION
    methods = [Method(kind=kind, on_entity=keyed and kind in _ENTITY_METHODS) for kind in schema.supports]
    methods.extend(
        Method(kind=MethodKind.FINDER, name=f.name, doc=f.doc, parameters=f.params, paging=f.paging)
        for f in schema.finders
    )
    methods.extend(
        Method(kind=MethodKind.ACTION, name=a.name, doc=a.doc, parameters=a.params, returns=a.returns)
        for a in schema.actions
    )
    methods.extend(
        Method(kind=MethodKind.ACTION, name=a.name, doc=a.doc, parameters=a.params, returns=a.returns, on_entity=True)
        for a in schema.entity_actions
    )
    resource = Resource(
        identity=identity,
        doc=schema.doc,
        kind=schema.kind,
        entity_type=schema.entity_type,
        key=_path_key(schema),
        ancestors=ancestors,
        methods=methods,
    )
    for ref in resource_type_refs(resource):
        for referenced in referenced_identities(ref):
            registry.resolve(referenced)
    return resource


_ENTITY_METHODS = frozenset({MethodKind.GET, MethodKind.UPDATE, MethodKind.PARTIAL_UPDATE, MethodKind.DELETE})
