# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declaration units handed to the emission backend, and their deduplication.

Every declaration is keyed by ``(module_path, name)``. The same type is
usually reached from several resources, so the same unit is produced more
than once; :func:`merge` collapses structurally equal duplicates and refuses
to pick between two different contents for the same key.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from restli_codegen.compiler.methods import MethodDescriptor
from restli_codegen.compiler.registry import TypeRegistry
from restli_codegen.model.identity import Identity, resolve_resource_module_path
from restli_codegen.model.types import NamedType

# ###############
# Public Interface
# ###############


class DeclarationKind(Enum):
    TYPE = "type"
    METHOD = "method"


class DeclarationUnit(BaseModel):
    """One declaration in one module.

    Attributes:
        module_path: Dotted module path that holds the declaration.
        name: Declaration name, unique within the module.
        kind: Whether this is a type or a method declaration.
        content: JSON-compatible body consumed by the emission backend.
    """

    model_config = ConfigDict(frozen=True)

    module_path: str
    name: str
    kind: DeclarationKind
    content: dict[str, Any]

    @property
    def key(self) -> tuple[str, str]:
        return (self.module_path, self.name)


class DeclarationConflictError(Exception):
    """Raised when two different declarations share a module path and name."""

    def __init__(self, existing: DeclarationUnit, duplicate: DeclarationUnit) -> None:
        self.existing = existing
        self.duplicate = duplicate
        module_path, name = existing.key
        super().__init__(
            f"Conflicting declarations of '{name}' in module '{module_path}':\n"
            f"{_render(existing)}\n\n-----------\n\n{_render(duplicate)}"
        )


def type_unit(definition: NamedType, registry: TypeRegistry) -> DeclarationUnit:
    """Build the declaration unit of a resolved named type.

    Named references inside the definition are rendered as
    ``{"kind": "named", "module": ..., "name": ...}`` using their final
    module paths, so the registry is settled as a side effect.
    """
    module_path = registry.module_path(definition.identity)
    imports: set[str] = set()
    body = _rewrite_references(definition.model_dump(mode="json", exclude={"identity"}), registry, imports)
    imports.discard(module_path)
    return DeclarationUnit(
        module_path=module_path,
        name=definition.identity.name,
        kind=DeclarationKind.TYPE,
        content={
            "qualified_name": definition.identity.qualified_name,
            "definition": body,
            "imports": sorted(imports),
        },
    )


def method_unit(descriptor: MethodDescriptor, registry: TypeRegistry) -> DeclarationUnit:
    """Build the declaration unit of a compiled method, placed in its resource's module."""
    module_path = resolve_resource_module_path(descriptor.resource, registry.prefix)
    imports: set[str] = set()
    body = _rewrite_references(descriptor.model_dump(mode="json", exclude={"resource"}), registry, imports)
    imports.discard(module_path)
    return DeclarationUnit(
        module_path=module_path,
        name=descriptor.declaration_name,
        kind=DeclarationKind.METHOD,
        content={
            "resource": descriptor.resource.qualified_name,
            "descriptor": body,
            "imports": sorted(imports),
        },
    )


def merge(units: Iterable[DeclarationUnit]) -> list[DeclarationUnit]:
    """Deduplicate *units* by ``(module_path, name)``, sorted by that key.

    Raises:
        DeclarationConflictError: If two units share a key but differ.
    """
    by_key: dict[tuple[str, str], DeclarationUnit] = {}
    for unit in units:
        existing = by_key.get(unit.key)
        if existing is None:
            by_key[unit.key] = unit
        elif existing != unit:
            raise DeclarationConflictError(existing, unit)
    return [by_key[k] for k in sorted(by_key)]


def module_index(units: Iterable[DeclarationUnit]) -> list[str]:
    """Return the sorted, distinct module paths of *units*."""
    return sorted({u.module_path for u in units})


# ################
# Implementation
# ################


def _rewrite_references(tree: Any, registry: TypeRegistry, imports: set[str]) -> Any:
    if isinstance(tree, dict):
        if tree.get("kind") == "named" and "identity" in tree:
            identity = Identity.model_validate(tree["identity"])
            module_path = registry.module_path(identity)
            imports.add(module_path)
            return {"kind": "named", "module": module_path, "name": identity.name}
        return {k: _rewrite_references(v, registry, imports) for k, v in tree.items()}
    if isinstance(tree, list):
        return [_rewrite_references(v, registry, imports) for v in tree]
    return tree


def _render(unit: DeclarationUnit) -> str:
    return json.dumps(unit.model_dump(mode="json"), indent=2, sort_keys=True)
