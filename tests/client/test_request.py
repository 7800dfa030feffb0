# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for request construction and response decoding."""

from __future__ import annotations

import json

import pytest

from restli_codegen.client import BatchResult, CollectionPage, Response, ResponseError, build_request, decode_response
from restli_codegen.client.request import ID_HEADER, METHOD_HEADER, PROTOCOL_VERSION_HEADER
from restli_codegen.compiler.methods import MethodDescriptor, compile_method
from restli_codegen.compiler.registry import TypeRegistry
from restli_codegen.model import (
    Ancestor,
    FieldDef,
    Identity,
    Method,
    MethodKind,
    ParameterSchema,
    PathKey,
    PrimitiveType,
    RecordType,
    Resource,
    ResourceKind,
    named,
    primitive,
)
from restli_codegen.wire import DecodeError, EncodeError

# ###############
# Test Helpers
# ###############

NS = "com.example"
LONG = primitive(PrimitiveType.LONG)
INT = primitive(PrimitiveType.INT)
STRING = primitive(PrimitiveType.STRING)

MEMBER = RecordType(
    identity=Identity(name="Member", namespace=NS),
    fields=[
        FieldDef(name="id", type=LONG),
        FieldDef(name="name", type=STRING),
        FieldDef(name="nickname", type=STRING, optional=True),
    ],
)
REGISTRY = TypeRegistry({MEMBER.identity: MEMBER})

ANN = {"id": 1, "name": "Ann"}
BO = {"id": 2, "name": "Bo"}

MEMBERS = Resource(
    identity=Identity(name="members", namespace=NS),
    kind=ResourceKind.COLLECTION,
    entity_type=named("Member", NS),
    key=PathKey(name="id", type=LONG),
)
# String-keyed collection nested under members/{id}.
HANDLES = Resource(
    identity=Identity(name="handles", namespace="com.example.members"),
    kind=ResourceKind.COLLECTION,
    entity_type=named("Member", NS),
    key=PathKey(name="handle", type=STRING),
    ancestors=[Ancestor(name="members", key=PathKey(name="id", type=LONG))],
)


def _members(kind: MethodKind, **kwargs: object) -> MethodDescriptor:
    kwargs.setdefault("on_entity", kind in (MethodKind.GET, MethodKind.UPDATE, MethodKind.PARTIAL_UPDATE))
    return compile_method(MEMBERS, Method(kind=kind, **kwargs))


def _handles(kind: MethodKind) -> MethodDescriptor:
    return compile_method(HANDLES, Method(kind=kind, on_entity=kind == MethodKind.GET))


def _ok(body: object = None, status: int = 200) -> Response:
    return Response(status=status, body=None if body is None else json.dumps(body))


# ###############
# Paths and Headers
# ###############


class TestPathsAndHeaders:
    def test_get(self) -> None:
        request = build_request(_members(MethodKind.GET), REGISTRY, path_keys=[7])
        assert request.method == "GET"
        assert request.path == "members/7"
        assert request.query == []
        assert request.body is None
        assert request.headers == {PROTOCOL_VERSION_HEADER: "2.0.0", METHOD_HEADER: "get"}

    def test_url(self) -> None:
        request = build_request(_members(MethodKind.FINDER, name="search"), REGISTRY)
        assert request.url("https://api.example.com/") == "https://api.example.com/members?q=search"

    def test_nested_keys_use_full_encoding(self) -> None:
        request = build_request(_handles(MethodKind.GET), REGISTRY, path_keys=[3, "a b/c"])
        assert request.path == "members/3/handles/a%20b%2Fc"

    def test_wrong_number_of_path_keys(self) -> None:
        with pytest.raises(EncodeError, match="needs 2 key"):
            build_request(_handles(MethodKind.GET), REGISTRY, path_keys=[3])

    def test_invalid_path_key(self) -> None:
        with pytest.raises(EncodeError):
            build_request(_members(MethodKind.GET), REGISTRY, path_keys=["seven"])


# ###############
# Bodies
# ###############


class TestBodies:
    def test_create(self) -> None:
        request = build_request(_members(MethodKind.CREATE), REGISTRY, body=ANN)
        assert request.method == "POST"
        assert request.path == "members"
        assert json.loads(request.body) == ANN
        assert request.headers["Content-Type"] == "application/json"

    def test_update(self) -> None:
        request = build_request(_members(MethodKind.UPDATE), REGISTRY, path_keys=[1], body=ANN)
        assert request.method == "PUT"
        assert request.path == "members/1"

    def test_missing_body(self) -> None:
        with pytest.raises(EncodeError, match="body is required"):
            build_request(_members(MethodKind.CREATE), REGISTRY)

    def test_unexpected_body(self) -> None:
        with pytest.raises(EncodeError, match="does not take a body"):
            build_request(_members(MethodKind.GET), REGISTRY, path_keys=[1], body=ANN)

    def test_partial_update_is_a_set_patch(self) -> None:
        request = build_request(_members(MethodKind.PARTIAL_UPDATE), REGISTRY, path_keys=[1], body={"name": "Cy"})
        assert request.method == "POST"
        assert request.headers[METHOD_HEADER] == "partial_update"
        assert json.loads(request.body) == {"patch": {"$set": {"name": "Cy"}}}

    def test_partial_update_rejects_unknown_fields(self) -> None:
        with pytest.raises(EncodeError, match="unknown field"):
            build_request(_members(MethodKind.PARTIAL_UPDATE), REGISTRY, path_keys=[1], body={"age": 3})

    def test_invalid_entity(self) -> None:
        with pytest.raises(EncodeError):
            build_request(_members(MethodKind.CREATE), REGISTRY, body={"id": 1})


# ###############
# Batch Methods
# ###############


class TestBatchRequests:
    def test_batch_get_ids(self) -> None:
        request = build_request(_members(MethodKind.BATCH_GET), REGISTRY, ids=[1, 2])
        assert request.query == [("ids", "List(1,2)")]
        assert request.url() == "/members?ids=List(1,2)"

    def test_batch_get_requires_ids(self) -> None:
        with pytest.raises(EncodeError, match="at least one id"):
            build_request(_members(MethodKind.BATCH_GET), REGISTRY)

    def test_ids_on_single_method(self) -> None:
        with pytest.raises(EncodeError, match="does not take ids"):
            build_request(_members(MethodKind.GET), REGISTRY, path_keys=[1], ids=[1])

    def test_batch_create(self) -> None:
        request = build_request(_members(MethodKind.BATCH_CREATE), REGISTRY, body=[ANN, BO])
        assert json.loads(request.body) == {"elements": [ANN, BO]}
        assert request.query == []

    def test_batch_create_requires_a_list(self) -> None:
        with pytest.raises(EncodeError, match="list of entities"):
            build_request(_members(MethodKind.BATCH_CREATE), REGISTRY, body=ANN)

    def test_batch_update_keys_come_from_the_body(self) -> None:
        body = {"a b": ANN, "x/y": BO}
        request = build_request(_handles(MethodKind.BATCH_UPDATE), REGISTRY, path_keys=[3], body=body)
        assert request.path == "members/3/handles"
        assert request.query == [("ids", "List(a%20b,x%2Fy)")]
        assert json.loads(request.body) == {"entities": {"a%20b": ANN, "x/y": BO}}

    def test_batch_update_rejects_separate_ids(self) -> None:
        with pytest.raises(EncodeError, match="taken from the body"):
            build_request(_members(MethodKind.BATCH_UPDATE), REGISTRY, body={1: ANN}, ids=[1])

    def test_batch_partial_update(self) -> None:
        request = build_request(_members(MethodKind.BATCH_PARTIAL_UPDATE), REGISTRY, body={1: {"nickname": "A"}})
        assert json.loads(request.body) == {"entities": {"1": {"patch": {"$set": {"nickname": "A"}}}}}

    def test_batch_delete(self) -> None:
        request = build_request(_members(MethodKind.BATCH_DELETE), REGISTRY, ids=[5])
        assert request.method == "DELETE"
        assert request.query == [("ids", "List(5)")]
        assert request.body is None


# ###############
# Finders and Actions
# ###############


class TestFindersAndActions:
    def test_finder_query(self) -> None:
        descriptor = _members(
            MethodKind.FINDER,
            name="byName",
            parameters=[ParameterSchema(name="name", type=STRING)],
            paging=True,
        )
        request = build_request(descriptor, REGISTRY, params={"name": "Ann Lee", "start": 0, "count": 10})
        assert request.query == [("q", "byName"), ("name", "Ann%20Lee"), ("start", "0"), ("count", "10")]

    def test_missing_required_parameter(self) -> None:
        descriptor = _members(MethodKind.FINDER, name="byName", parameters=[ParameterSchema(name="name", type=STRING)])
        with pytest.raises(EncodeError, match="missing required parameter 'name'"):
            build_request(descriptor, REGISTRY)

    def test_parameter_with_default_may_be_omitted(self) -> None:
        parameter = ParameterSchema(name="limit", type=INT, default="5")
        descriptor = _members(MethodKind.FINDER, name="top", parameters=[parameter])
        assert build_request(descriptor, REGISTRY).query == [("q", "top")]

    def test_unknown_parameter(self) -> None:
        with pytest.raises(EncodeError, match="unknown parameter"):
            build_request(_members(MethodKind.GET_ALL), REGISTRY, params={"page": 2})

    def test_action_parameters_are_a_json_body(self) -> None:
        descriptor = _members(
            MethodKind.ACTION,
            name="promote",
            parameters=[ParameterSchema(name="level", type=INT)],
            returns=INT,
            on_entity=True,
        )
        request = build_request(descriptor, REGISTRY, path_keys=[4], params={"level": 2})
        assert request.method == "POST"
        assert request.path == "members/4"
        assert request.query == [("action", "promote")]
        assert request.body == '{"level":2}'
        assert request.headers[METHOD_HEADER] == "action"

    def test_action_without_parameters_sends_empty_object(self) -> None:
        assert build_request(_members(MethodKind.ACTION, name="purge"), REGISTRY).body == "{}"

    def test_action_rejects_body(self) -> None:
        with pytest.raises(EncodeError, match="pass action parameters as params"):
            build_request(_members(MethodKind.ACTION, name="purge"), REGISTRY, body={"x": 1})


# ###############
# Responses
# ###############


class TestDecodeResponse:
    def test_entity_with_unknown_fields(self) -> None:
        response = _ok({"id": 1, "name": "Ann", "extra": True})
        assert decode_response(_members(MethodKind.GET), REGISTRY, response) == ANN

    def test_no_response_value(self) -> None:
        assert decode_response(_members(MethodKind.DELETE), REGISTRY, Response(status=204)) is None

    def test_created_id_uses_reduced_encoding(self) -> None:
        response = Response(status=201, headers={"x-restli-id": "a%20b/c"})
        assert decode_response(_handles(MethodKind.CREATE), REGISTRY, response) == "a b/c"

    def test_created_id_header_is_required(self) -> None:
        with pytest.raises(DecodeError, match=ID_HEADER):
            decode_response(_members(MethodKind.CREATE), REGISTRY, Response(status=201))

    def test_collection(self) -> None:
        response = _ok({"elements": [ANN, BO], "paging": {"start": 0, "count": 2, "total": 5}})
        page = decode_response(_members(MethodKind.GET_ALL), REGISTRY, response)
        assert page == CollectionPage(elements=[ANN, BO], start=0, count=2, total=5)

    def test_collection_without_paging(self) -> None:
        page = decode_response(_members(MethodKind.FINDER, name="all"), REGISTRY, _ok({"elements": []}))
        assert page == CollectionPage(elements=[])

    def test_collection_paging_must_be_an_object(self) -> None:
        with pytest.raises(DecodeError, match="'paging' must be an object"):
            decode_response(_members(MethodKind.GET_ALL), REGISTRY, _ok({"elements": [], "paging": "x"}))

    def test_batch_get(self) -> None:
        response = _ok({"results": {"1": ANN, "2": BO}, "errors": {"3": {"status": 404}}})
        result = decode_response(_members(MethodKind.BATCH_GET), REGISTRY, response)
        assert result == BatchResult(results={1: ANN, 2: BO}, errors={3: {"status": 404}})

    def test_batch_keys_use_reduced_encoding(self) -> None:
        response = _ok({"results": {"x/y": {"status": 204}}})
        result = decode_response(_handles(MethodKind.BATCH_UPDATE), REGISTRY, response)
        assert result.results == {"x/y": 204}

    def test_batch_delete_status(self) -> None:
        response = _ok({"results": {"1": {"status": 204}}})
        assert decode_response(_members(MethodKind.BATCH_DELETE), REGISTRY, response) == BatchResult({1: 204})

    def test_batch_create_ids(self) -> None:
        response = _ok({"elements": [{"id": 10, "status": 201}, {"status": 400}, {"id": 11, "status": 201}]})
        assert decode_response(_members(MethodKind.BATCH_CREATE), REGISTRY, response) == [10, 11]

    def test_batch_create_elements_must_be_objects(self) -> None:
        with pytest.raises(DecodeError, match="batch create element must be an object"):
            decode_response(_members(MethodKind.BATCH_CREATE), REGISTRY, _ok({"elements": [5]}))

    def test_action_value(self) -> None:
        descriptor = _members(MethodKind.ACTION, name="count", returns=INT)
        assert decode_response(descriptor, REGISTRY, _ok({"value": 42})) == 42

    def test_action_without_value(self) -> None:
        descriptor = _members(MethodKind.ACTION, name="count", returns=INT)
        with pytest.raises(DecodeError, match="no value"):
            decode_response(descriptor, REGISTRY, _ok({}))

    def test_missing_body(self) -> None:
        with pytest.raises(DecodeError, match="no body"):
            decode_response(_members(MethodKind.GET), REGISTRY, Response(status=200))

    def test_mismatched_entity(self) -> None:
        with pytest.raises(DecodeError):
            decode_response(_members(MethodKind.GET), REGISTRY, _ok({"id": "x", "name": "Ann"}))


class TestErrorResponses:
    def test_error_message_from_body(self) -> None:
        with pytest.raises(ResponseError, match="HTTP 404: Member 9 not found") as exc_info:
            decode_response(_members(MethodKind.GET), REGISTRY, _ok({"message": "Member 9 not found"}, status=404))
        assert exc_info.value.status == 404

    def test_non_json_error_body(self) -> None:
        response = Response(status=500, body="<html>oops</html>")
        with pytest.raises(ResponseError, match="HTTP 500: request failed"):
            decode_response(_members(MethodKind.GET), REGISTRY, response)
