# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for memoized type resolution and cycle detection."""

import threading

import pytest

from restli_codegen.compiler.registry import TypeRegistry, UnresolvedReferenceError
from restli_codegen.model import (
    ArrayType,
    EnumType,
    FieldDef,
    Identity,
    NamedType,
    PrimitiveType,
    RecordType,
    SchemaError,
    UnionMember,
    UnionType,
    named,
    primitive,
)

# ###############
# Test Helpers
# ###############

NS = "com.example"


def _id(name: str, namespace: str = NS) -> Identity:
    return Identity(name=name, namespace=namespace)


def _record(name: str, *refs: str, namespace: str = NS) -> RecordType:
    """A record with one optional field per referenced type name (``ns:Name`` or ``Name``)."""
    fields = []
    for i, ref in enumerate(refs):
        ref_ns, _, ref_name = ref.rpartition(":")
        fields.append(FieldDef(name=f"f{i}", type=named(ref_name, ref_ns or NS), optional=True))
    return RecordType(identity=_id(name, namespace), fields=fields)


def _registry(*types: NamedType, prefix: str = "") -> TypeRegistry:
    return TypeRegistry({t.identity: t for t in types}, prefix=prefix)


# ###############
# Memoization
# ###############


class TestResolution:
    def test_resolve_returns_identical_object(self) -> None:
        team = _record("Team")
        registry = _registry(team)
        first = registry.resolve(team.identity)
        second = registry.resolve(team.identity)
        assert first is second
        assert first is team

    def test_transitive_references_are_resolved(self) -> None:
        registry = _registry(_record("Org", "Team"), _record("Team", "Member"), _record("Member"))
        registry.resolve(_id("Org"))
        assert _id("Team") in registry
        assert _id("Member") in registry
        assert [t.identity.name for t in registry.resolved()] == ["Member", "Org", "Team"]

    def test_references_are_recorded(self) -> None:
        registry = _registry(_record("Org", "Team", "Member"), _record("Team"), _record("Member"))
        registry.resolve(_id("Org"))
        assert registry.references(_id("Org")) == [_id("Team"), _id("Member")]

    def test_missing_identity(self) -> None:
        with pytest.raises(UnresolvedReferenceError, match="not defined"):
            _registry().resolve(_id("Ghost"))

    def test_missing_transitive_reference_names_the_referrer(self) -> None:
        registry = _registry(_record("Org", "Team"), _record("Team", "Ghost"))
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            registry.resolve(_id("Org"))
        assert exc_info.value.identity == _id("Ghost")
        assert exc_info.value.referenced_by == _id("Team")

    def test_failed_resolution_is_not_memoized(self) -> None:
        registry = _registry(_record("Org", "Team"), _record("Team", "Ghost"))
        for _ in range(2):
            with pytest.raises(UnresolvedReferenceError):
                registry.resolve(_id("Org"))
        assert _id("Team") not in registry
        assert _id("Org") not in registry

    def test_failure_does_not_affect_independent_types(self) -> None:
        registry = _registry(_record("Org", "Ghost"), _record("Team"))
        with pytest.raises(UnresolvedReferenceError):
            registry.resolve(_id("Org"))
        assert registry.resolve(_id("Team")).identity == _id("Team")

    def test_structural_errors_are_reported(self) -> None:
        enum = EnumType(identity=_id("Color"), symbols=["RED", "RED"])
        with pytest.raises(SchemaError, match="Duplicate symbol"):
            _registry(enum).resolve(enum.identity)

    def test_nested_union_is_rejected(self) -> None:
        inner = UnionType(identity=_id("Inner"), members=[UnionMember(name="a", type=primitive(PrimitiveType.INT))])
        outer = UnionType(identity=_id("Outer"), members=[UnionMember(name="inner", type=named("Inner", NS))])
        with pytest.raises(SchemaError, match="nested union"):
            _registry(inner, outer).resolve(outer.identity)

    def test_concurrent_callers_share_the_result(self) -> None:
        registry = _registry(_record("Org", "Team"), _record("Team", "Org"))
        results: list[NamedType] = []

        def _worker() -> None:
            results.append(registry.resolve(_id("Org")))

        threads = [threading.Thread(target=_worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(results) == 8
        assert all(r is results[0] for r in results)


# ###############
# Cycle Detection
# ###############


class TestCycles:
    def test_mutual_reference_is_relocated(self) -> None:
        a = _record("A", "other.ns:B")
        b = _record("B", "A", namespace="other.ns")
        unrelated = _record("C", "A")
        registry = _registry(a, b, unrelated)
        registry.resolve(unrelated.identity)

        assert registry.module_path(a.identity) == "conflictResolution"
        assert registry.module_path(b.identity) == "conflictResolution"
        assert registry.module_path(unrelated.identity) == NS

    def test_self_reference_is_relocated(self) -> None:
        node = _record("Node", "Node")
        registry = _registry(node)
        registry.resolve(node.identity)
        assert registry.is_cyclic(node.identity)

    def test_cycle_through_array_is_detected(self) -> None:
        tree = RecordType(
            identity=_id("Tree"),
            fields=[FieldDef(name="children", type=ArrayType(items=named("Leaf", NS)))],
        )
        leaf = _record("Leaf", "Tree")
        registry = _registry(tree, leaf)
        registry.resolve(tree.identity)
        assert registry.settle() == frozenset({tree.identity, leaf.identity})

    def test_cycle_closed_through_already_resolved_type(self) -> None:
        # A -> D -> C -> A is found on the stack. B is reached afterwards and
        # only points at the finished C, so A -> B -> C -> A is found by settling.
        a = _record("A", "D", "B")
        b = _record("B", "C")
        c = _record("C", "A")
        d = _record("D", "C")
        registry = _registry(a, b, c, d)
        registry.resolve(a.identity)
        assert registry.settle() == frozenset({a.identity, b.identity, c.identity, d.identity})
        assert registry.module_path(b.identity) == "conflictResolution"

    def test_acyclic_chain_is_not_relocated(self) -> None:
        registry = _registry(_record("A", "B"), _record("B", "C"), _record("C"))
        registry.resolve(_id("A"))
        assert registry.settle() == frozenset()

    def test_prefix_applies_to_relocated_and_regular_paths(self) -> None:
        registry = _registry(_record("A", "A"), _record("B"), prefix="gen")
        registry.resolve(_id("A"))
        registry.resolve(_id("B"))
        assert registry.module_path(_id("A")) == "gen.conflictResolution"
        assert registry.module_path(_id("B")) == "gen.com.example"

    def test_resolving_new_identity_after_settle_fails(self) -> None:
        registry = _registry(_record("A"), _record("B"))
        registry.resolve(_id("A"))
        registry.settle()
        assert registry.settled
        assert registry.resolve(_id("A")).identity == _id("A")
        with pytest.raises(RuntimeError, match="settled"):
            registry.resolve(_id("B"))

    def test_failed_chain_does_not_leave_cycle_marks(self) -> None:
        a = _record("A", "B", "Ghost")
        b = _record("B", "A")
        registry = _registry(a, b)
        with pytest.raises(UnresolvedReferenceError):
            registry.resolve(a.identity)
        assert registry.settle() == frozenset()
