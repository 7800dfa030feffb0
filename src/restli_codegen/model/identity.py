# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Canonical identities for named schema types and resources, and their module paths."""

from __future__ import annotations

import keyword
import re
from collections.abc import Collection

from pydantic import BaseModel, ConfigDict

# ###############
# Public Interface
# ###############

CONFLICT_RESOLUTION_MODULE = "conflictResolution"


class IdentityError(Exception):
    """Raised when an identity cannot be mapped to a module path."""


class Identity(BaseModel):
    """The (name, namespace) pair that uniquely names a type or resource."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def __str__(self) -> str:
        return self.qualified_name


def resolve_module_path(
    identity: Identity,
    cyclic: Collection[Identity] = frozenset(),
    prefix: str = "",
) -> str:
    """Return the dotted module path that holds the declaration for *identity*.

    Namespace segments become module-path segments. Identities that take
    part in a reference cycle are placed in the reserved
    ``conflictResolution`` module instead. *prefix* is prepended to every
    path.

    Raises:
        IdentityError: If the identity has an empty name or namespace.
    """
    _check_identity(identity)
    if identity in cyclic:
        return _join(prefix, CONFLICT_RESOLUTION_MODULE)
    return _join(prefix, namespace_to_module_path(identity.namespace))


def resolve_resource_module_path(identity: Identity, prefix: str = "") -> str:
    """Return the module path of a resource: its namespace followed by its own name."""
    _check_identity(identity)
    return _join(prefix, namespace_to_module_path(identity.namespace), _segment(to_snake_case(identity.name)))


def namespace_to_module_path(namespace: str) -> str:
    """Convert a dotted schema namespace into a dotted, importable module path."""
    return ".".join(_segment(part) for part in namespace.split("."))


def to_snake_case(name: str) -> str:
    """Convert a camelCase or PascalCase name to snake_case."""
    name = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    name = _LOWER_UPPER.sub(r"\1_\2", name)
    return name.replace("-", "_").lower()


# ################
# Implementation
# ################

_CAMEL_BOUNDARY = re.compile(r"(.)([A-Z][a-z]+)")
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")


def _check_identity(identity: Identity) -> None:
    if not identity.namespace:
        raise IdentityError(f"Identity '{identity.name}' has no namespace")
    if not identity.name:
        raise IdentityError(f"Identity in namespace '{identity.namespace}' has no name")


def _segment(part: str) -> str:
    """Escape a single path segment that would not be a valid module name."""
    if not part:
        raise IdentityError("Empty segment in namespace")
    if keyword.iskeyword(part):
        return part + "_"
    return part


def _join(*parts: str) -> str:
    return ".".join(p for p in parts if p)
