# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for walking resource descriptions into compiled resources."""

import logging

import pytest

from restli_codegen.compiler.registry import TypeRegistry
from restli_codegen.compiler.resources import build_resources, resource_type_refs
from restli_codegen.model import (
    ActionSchema,
    CollectionKey,
    FieldDef,
    FinderSchema,
    Identity,
    MethodKind,
    ParameterSchema,
    PrimitiveType,
    RecordType,
    ResourceKind,
    ResourceSchema,
    named,
    primitive,
)

# ###############
# Test Helpers
# ###############

NS = "com.example"
LONG = primitive(PrimitiveType.LONG)
STRING = primitive(PrimitiveType.STRING)


def _entity(name: str) -> RecordType:
    return RecordType(identity=Identity(name=name, namespace=NS), fields=[FieldDef(name="id", type=LONG)])


ENTITIES = [_entity("Org"), _entity("Team"), _entity("Member"), _entity("Settings")]


def _registry() -> TypeRegistry:
    return TypeRegistry({t.identity: t for t in ENTITIES})


def _collection(name: str, entity: str, *subresources: ResourceSchema, **kwargs: object) -> ResourceSchema:
    return ResourceSchema(
        name=name,
        namespace=NS,
        entity_type=named(entity, NS),
        key=CollectionKey(name="id", type=LONG),
        subresources=list(subresources),
        **kwargs,
    )


def _org_tree() -> ResourceSchema:
    members = _collection("members", "Member", supports=[MethodKind.GET, MethodKind.GET_ALL])
    teams = _collection("teams", "Team", members)
    return _collection("orgs", "Org", teams, supports=[MethodKind.CREATE])


# ###############
# Nesting
# ###############


class TestNesting:
    def test_depth_first_order(self) -> None:
        walk = build_resources([_org_tree()], _registry())
        assert [r.name for r in walk.resources] == ["orgs", "teams", "members"]
        assert walk.unsupported == []
        assert walk.failures == []

    def test_nested_identity_namespace_includes_ancestors(self) -> None:
        walk = build_resources([_org_tree()], _registry())
        assert walk.resources[2].identity == Identity(name="members", namespace="com.example.orgs.teams")

    def test_ancestor_chain_carries_keys(self) -> None:
        members = build_resources([_org_tree()], _registry()).resources[2]
        assert [a.name for a in members.ancestors] == ["orgs", "teams"]
        assert [k.name for k in members.ancestor_keys()] == ["id", "id"]

    def test_simple_ancestor_contributes_no_key(self) -> None:
        settings = ResourceSchema(
            name="settings",
            namespace=NS,
            kind=ResourceKind.SIMPLE,
            entity_type=named("Settings", NS),
            supports=[MethodKind.GET],
            subresources=[_collection("members", "Member", supports=[MethodKind.GET])],
        )
        members = build_resources([settings], _registry()).resources[1]
        assert [a.name for a in members.ancestors] == ["settings"]
        assert members.ancestor_keys() == []

    def test_entity_methods_on_collections_target_an_entity(self) -> None:
        org = _collection(
            "orgs",
            "Org",
            supports=[MethodKind.GET, MethodKind.GET_ALL, MethodKind.DELETE],
            actions=[ActionSchema(name="purge")],
            entity_actions=[ActionSchema(name="archive")],
        )
        methods = build_resources([org], _registry()).resources[0].methods
        assert [(m.kind, m.name, m.on_entity) for m in methods] == [
            (MethodKind.GET, None, True),
            (MethodKind.GET_ALL, None, False),
            (MethodKind.DELETE, None, True),
            (MethodKind.ACTION, "purge", False),
            (MethodKind.ACTION, "archive", True),
        ]

    def test_simple_resource_methods_do_not_target_an_entity(self) -> None:
        settings = ResourceSchema(
            name="settings",
            namespace=NS,
            kind=ResourceKind.SIMPLE,
            entity_type=named("Settings", NS),
            supports=[MethodKind.GET],
        )
        resource = build_resources([settings], _registry()).resources[0]
        assert resource.key is None
        assert not resource.methods[0].on_entity

    def test_finders_keep_paging_and_parameters(self) -> None:
        org = _collection(
            "orgs",
            "Org",
            finders=[FinderSchema(name="byName", params=[ParameterSchema(name="name", type=STRING)], paging=True)],
        )
        finder = build_resources([org], _registry()).resources[0].methods[0]
        assert finder.kind == MethodKind.FINDER
        assert finder.paging
        assert [p.name for p in finder.parameters] == ["name"]


# ###############
# Unsupported Keys
# ###############


class TestUnsupportedKeys:
    def test_complex_key_is_skipped_with_descendants(self, caplog: pytest.LogCaptureFixture) -> None:
        members = _collection("members", "Member")
        teams = ResourceSchema(
            name="teams",
            namespace=NS,
            entity_type=named("Team", NS),
            key=CollectionKey(name="id", type=LONG, params=[ParameterSchema(name="version", type=LONG)]),
            subresources=[members],
        )
        orgs = _collection("orgs", "Org", teams)
        with caplog.at_level(logging.WARNING):
            walk = build_resources([orgs], _registry())

        assert [r.name for r in walk.resources] == ["orgs"]
        [unsupported] = walk.unsupported
        assert unsupported.identity == Identity(name="teams", namespace="com.example.orgs")
        assert unsupported.skipped == (Identity(name="members", namespace="com.example.orgs.teams"),)
        assert unsupported.message == (
            "Complex key resources are not supported. Skipping 'com.example.orgs.teams' and 1 sub-resource(s)."
        )
        assert "Skipping 'com.example.orgs.teams'" in caplog.text

    def test_association_is_skipped(self) -> None:
        assoc = ResourceSchema(name="follows", namespace=NS, kind=ResourceKind.ASSOCIATION)
        walk = build_resources([assoc, _collection("orgs", "Org")], _registry())
        assert [r.name for r in walk.resources] == ["orgs"]
        assert walk.unsupported[0].message == (
            "Compound (association) key resources are not supported. Skipping 'com.example.follows'."
        )


# ###############
# Failures
# ###############


class TestFailures:
    def test_unresolved_entity_fails_only_that_resource(self) -> None:
        ghosts = _collection("ghosts", "Ghost", _collection("members", "Member"))
        walk = build_resources([ghosts, _collection("orgs", "Org")], _registry())
        assert [r.name for r in walk.resources] == ["members", "orgs"]
        [failure] = walk.failures
        assert failure.identity == Identity(name="ghosts", namespace=NS)
        assert "com.example.Ghost" in failure.message

    def test_structural_errors_fail_the_subtree(self) -> None:
        broken = _collection("orgs", "Org", _collection("teams", "Team"), supports=[MethodKind.GET, MethodKind.GET])
        walk = build_resources([broken], _registry())
        assert walk.resources == []
        assert [f.identity.name for f in walk.failures] == ["orgs", "teams"]
        assert walk.failures[1].message == "Enclosing resource 'com.example.orgs' is invalid"

    def test_unresolved_action_return_type(self) -> None:
        org = _collection("orgs", "Org", actions=[ActionSchema(name="stats", returns=named("Stats", NS))])
        walk = build_resources([org], _registry())
        assert walk.resources == []
        assert len(walk.failures) == 1


class TestResourceTypeRefs:
    def test_all_references_are_collected(self) -> None:
        org = _collection(
            "orgs",
            "Org",
            actions=[ActionSchema(name="rename", params=[ParameterSchema(name="to", type=STRING)], returns=LONG)],
        )
        resource = build_resources([org], _registry()).resources[0]
        assert resource_type_refs(resource) == [LONG, named("Org", NS), STRING, LONG]
