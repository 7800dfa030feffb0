# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""End-to-end compilation of a schema graph into declaration units.

The pipeline runs in three phases:

1. **Walk** the resource trees. Every type a resource references is
   resolved through a fresh :class:`~restli_codegen.compiler.registry.TypeRegistry`;
   unsupported key shapes and unresolvable references are collected instead
   of aborting the run.
2. **Settle** the registry. Cycle detection is closed over everything that
   was resolved, which fixes the module path of every type. No declaration
   is emitted before this point.
3. **Emit** one unit per method and per type reachable from a compiled
   resource, then merge the units. Conflicting duplicates abort the whole
   compilation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from restli_codegen.compiler.declarations import (
    DeclarationConflictError,
    DeclarationUnit,
    merge,
    method_unit,
    module_index,
    type_unit,
)
from restli_codegen.compiler.methods import MethodDescriptor, compile_resource
from restli_codegen.compiler.registry import TypeRegistry
from restli_codegen.compiler.resources import (
    ResourceFailure,
    UnsupportedResource,
    build_resources,
    resource_type_refs,
)
from restli_codegen.model.identity import Identity, IdentityError
from restli_codegen.model.resources import Resource, SchemaGraph
from restli_codegen.model.types import NamedType, SchemaError, referenced_identities

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when the compiler encounters any unrecoverable error.

    Covers duplicate type definitions, invalid identities, conflicting
    declarations, and per-resource failures in strict mode.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


@dataclass
class CompilationResult:
    """The outcome of one compilation.

    Attributes:
        declarations: Merged declaration units, sorted by module path and name.
        modules: Sorted, distinct module paths of the declarations.
        unsupported: Resources skipped because of their key shape.
        failures: Resources that could not be compiled.
    """

    declarations: list[DeclarationUnit] = field(default_factory=list)
    modules: list[str] = field(default_factory=list)
    unsupported: list[UnsupportedResource] = field(default_factory=list)
    failures: list[ResourceFailure] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.failures)


def compile_schema(graph: SchemaGraph, *, prefix: str = "", strict: bool = False) -> CompilationResult:
    """Compile *graph* into merged declaration units.

    Args:
        graph: The schema graph produced by the front-end.
        prefix: Module-path prefix prepended to every module path.
        strict: Treat any per-resource failure as fatal.

    Returns:
        A :class:`CompilationResult`. Unsupported resources and (outside
        strict mode) failed resources are reported in it; nothing is emitted
        for them.

    Raises:
        CompilerError: On duplicate type definitions, invalid identities,
            conflicting declarations, or per-resource failures in strict mode.
    """
    try:
        types = graph.type_dictionary()
    except SchemaError as exc:
        raise CompilerError(str(exc)) from exc

    registry = TypeRegistry(types, prefix=prefix)
    walk = build_resources(graph.resources, registry)

    failures = list(walk.failures)
    compiled: list[tuple[Resource, list[MethodDescriptor]]] = []
    for resource in walk.resources:
        try:
            compiled.append((resource, compile_resource(resource)))
        except SchemaError as exc:
            failures.append(ResourceFailure(resource.identity, str(exc)))

    if strict and failures:
        lines = "\n".join(f"  {f.identity}: {f.message}" for f in failures)
        raise CompilerError(f"Failed to compile {len(failures)} resource(s):\n{lines}")

    cyclic = registry.settle()
    logger.debug("Registry settled: %d resolved type(s), %d cyclic", len(list(registry.resolved())), len(cyclic))

    units: list[DeclarationUnit] = []
    try:
        for resource, descriptors in compiled:
            units.extend(method_unit(d, registry) for d in descriptors)
            units.extend(type_unit(t, registry) for t in _type_closure(resource, registry))
        declarations = merge(units)
    except (DeclarationConflictError, IdentityError) as exc:
        raise CompilerError(str(exc)) from exc

    return CompilationResult(
        declarations=declarations,
        modules=module_index(declarations),
        unsupported=list(walk.unsupported),
        failures=failures,
    )


# ################
# Implementation
# ################


def _type_closure(resource: Resource, registry: TypeRegistry) -> Iterator[NamedType]:
    """Yield every named type reachable from *resource*, each once."""
    pending: list[Identity] = [i for ref in resource_type_refs(resource) for i in referenced_identities(ref)]
    seen: set[Identity] = set()
    while pending:
        identity = pending.pop()
        if identity in seen:
            continue
        seen.add(identity)
        yield registry.resolve(identity)
        pending.extend(registry.references(identity))
