# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Memoized type resolution and reference-cycle detection.

The :class:`TypeRegistry` is the resolver context for one compilation. It
maps identities to their definitions lazily, following references as it
goes, and records every reference in an arena graph (a list of identities
plus index-based adjacency lists).

Cycles are found in two steps. While resolving, a reference to an identity
that is still on the active resolution stack marks every identity from that
point to the top of the stack as cyclic. :meth:`TypeRegistry.settle` then
closes the marking over the whole arena (strongly connected components), so
a cycle that runs through an identity resolved earlier is marked as well.
Cyclic identities are relocated to the conflict-resolution module, and
module paths are only handed out once the registry is settled.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping

from restli_codegen.compiler.semantic_analysis import analyze, analyze_references
from restli_codegen.model.identity import Identity, resolve_module_path
from restli_codegen.model.types import NamedType, SchemaError, referenced_identities

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class UnresolvedReferenceError(Exception):
    """Raised when an identity is not present in the type dictionary."""

    def __init__(self, identity: Identity, referenced_by: Identity | None = None) -> None:
        self.identity = identity
        self.referenced_by = referenced_by
        message = f"Type '{identity}' is not defined"
        if referenced_by is not None:
            message += f" (referenced by '{referenced_by}')"
        super().__init__(message)


class TypeRegistry:
    """Resolver context holding the memoization table and the active resolution stack.

    Args:
        types: The type dictionary produced by the front-end.
        prefix: Module-path prefix prepended to every module path.
    """

    def __init__(self, types: Mapping[Identity, NamedType], *, prefix: str = "") -> None:
        self.prefix = prefix
        self._types = dict(types)
        self._lock = threading.RLock()
        # Arena: node i is self._nodes[i]; self._edges[i] lists the nodes it references.
        self._nodes: list[Identity] = []
        self._index: dict[Identity, int] = {}
        self._edges: list[list[int]] = []
        self._resolved: dict[Identity, NamedType] = {}
        self._stack: list[int] = []
        self._cyclic: set[Identity] = set()
        self._settled = False

    def resolve(self, identity: Identity) -> NamedType:
        """Return the definition for *identity*, resolving its references on first use.

        The same definition object is returned on every call. If any
        reference in the transitive closure cannot be resolved, nothing
        resolved during this call is kept, so every later caller fails the
        same way.

        Raises:
            UnresolvedReferenceError: If the identity or one of its
                transitive references is not defined.
            SchemaError: If a definition in the closure is malformed.
        """
        with self._lock:
            found = self._resolved.get(identity)
            if found is not None:
                return found
            if self._settled:
                raise RuntimeError(f"Cannot resolve '{identity}': the registry is already settled")
            resolved_before = set(self._resolved)
            cyclic_before = set(self._cyclic)
            try:
                return self._resolve(identity, None)
            except (UnresolvedReferenceError, SchemaError):
                for added in set(self._resolved) - resolved_before:
                    del self._resolved[added]
                self._cyclic = cyclic_before
                raise

    def settle(self) -> frozenset[Identity]:
        """Finish cycle detection over everything resolved so far and freeze the result.

        Returns:
            The final set of cyclic identities.
        """
        with self._lock:
            if not self._settled:
                for component in self._strongly_connected_components():
                    if len(component) > 1 or component[0] in self._edges[component[0]]:
                        self._cyclic.update(self._nodes[n] for n in component)
                self._settled = True
                if self._cyclic:
                    logger.debug("Relocating cyclic types: %s", ", ".join(sorted(map(str, self._cyclic))))
            return frozenset(self._cyclic)

    @property
    def settled(self) -> bool:
        return self._settled

    def is_cyclic(self, identity: Identity) -> bool:
        """Return True if *identity* takes part in a reference cycle (settles the registry)."""
        return identity in self.settle()

    def module_path(self, identity: Identity) -> str:
        """Return the final module path of *identity* (settles the registry)."""
        return resolve_module_path(identity, self.settle(), self.prefix)

    def resolved(self) -> Iterator[NamedType]:
        """Yield every resolved definition, ordered by qualified name."""
        with self._lock:
            definitions = sorted(self._resolved.values(), key=lambda d: d.identity.qualified_name)
        yield from definitions

    def references(self, identity: Identity) -> list[Identity]:
        """Return the identities directly referenced by a resolved *identity*."""
        with self._lock:
            return [self._nodes[n] for n in self._edges[self._index[identity]]]

    def __contains__(self, identity: object) -> bool:
        return identity in self._resolved

    # ################
    # Implementation
    # ################

    def _node(self, identity: Identity) -> int:
        index = self._index.get(identity)
        if index is None:
            index = len(self._nodes)
            self._nodes.append(identity)
            self._edges.append([])
            self._index[identity] = index
        return index

    def _resolve(self, identity: Identity, referrer: Identity | None) -> NamedType:
        node = self._node(identity)
        if node in self._stack:
            self._mark_cycle(node)
            return self._types[identity]

        definition = self._types.get(identity)
        if definition is None:
            raise UnresolvedReferenceError(identity, referrer)
        errors = analyze(definition)
        if errors:
            raise SchemaError("\n".join(e.message for e in errors))

        self._stack.append(node)
        try:
            for ref in referenced_identities(definition):
                target = self._node(ref)
                if target not in self._edges[node]:
                    self._edges[node].append(target)
                if ref not in self._resolved:
                    self._resolve(ref, identity)
        finally:
            self._stack.pop()

        errors = analyze_references(definition, _Lookup(self._types))
        if errors:
            raise SchemaError("\n".join(e.message for e in errors))
        self._resolved[identity] = definition
        return definition

    def _mark_cycle(self, node: int) -> None:
        start = self._stack.index(node)
        members = [self._nodes[n] for n in self._stack[start:]]
        logger.debug("Reference cycle: %s", " -> ".join(str(m) for m in members + members[:1]))
        self._cyclic.update(members)

    def _strongly_connected_components(self) -> list[list[int]]:
        """Tarjan's algorithm over the resolved part of the arena."""
        resolved = {self._index[i] for i in self._resolved}
        order: dict[int, int] = {}
        low: dict[int, int] = {}
        stack: list[int] = []
        on_stack: set[int] = set()
        components: list[list[int]] = []

        def _visit(v: int) -> None:
            order[v] = low[v] = len(order)
            stack.append(v)
            on_stack.add(v)
            for w in self._edges[v]:
                if w not in resolved:
                    continue
                if w not in order:
                    _visit(w)
                    low[v] = min(low[v], low[w])
                elif w in on_stack:
                    low[v] = min(low[v], order[w])
            if low[v] == order[v]:
                component: list[int] = []
                while True:
                    w = stack.pop()
                    on_stack.discard(w)
                    component.append(w)
                    if w == v:
                        break
                components.append(component)

        for v in sorted(resolved):
            if v not in order:
                _visit(v)
        return components


class _Lookup:
    """Plain dictionary lookup, used where cycle bookkeeping must not run."""

    def __init__(self, types: Mapping[Identity, NamedType]) -> None:
        self._types = types

    def resolve(self, identity: Identity) -> NamedType:
        definition = self._types.get(identity)
        if definition is None:
            raise UnresolvedReferenceError(identity)
        return definition
