# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Turn a compiled method plus caller values into a request, and decode responses.

No transport is involved: :func:`build_request` produces a :class:`Request`
describing the verb, path, query, headers and body, and
:func:`decode_response` turns a :class:`Response` received by whatever HTTP
client the caller uses back into values.

Path keys and query values use the full structured-literal encoding. The
created-entity id header and the keys of batch responses use the reduced
encoding. Bodies are JSON documents.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from restli_codegen.compiler.methods import BodyKind, MethodDescriptor, ResponseKind
from restli_codegen.model.resources import ParameterSchema
from restli_codegen.model.types import RecordType, TypeRef, TypeResolver
from restli_codegen.wire.document import DocumentCodec, dumps, loads
from restli_codegen.wire.errors import DecodeError, EncodeError
from restli_codegen.wire.literal import LiteralCodec

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

PROTOCOL_VERSION = "2.0.0"
PROTOCOL_VERSION_HEADER = "X-RestLi-Protocol-Version"
METHOD_HEADER = "X-RestLi-Method"
ID_HEADER = "X-RestLi-Id"


@dataclass(frozen=True)
class Request:
    """A fully encoded request.

    Attributes:
        method: HTTP verb.
        path: Encoded path, without a leading slash.
        query: Encoded ``(name, value)`` pairs, in order.
        headers: Request headers.
        body: JSON body text, if any.
    """

    method: str
    path: str
    query: list[tuple[str, str]] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None

    def url(self, base: str = "") -> str:
        """Join *base*, the path and the query string into a URL."""
        url = f"{base.rstrip('/')}/{self.path}"
        if self.query:
            url += "?" + "&".join(f"{quote(k, safe='')}={v}" for k, v in self.query)
        return url


@dataclass(frozen=True)
class Response:
    """A response as received from the transport."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | bytes | None = None


@dataclass(frozen=True)
class CollectionPage:
    """Elements returned by a finder or get-all, with the paging metadata if present."""

    elements: list[Any]
    start: int | None = None
    count: int | None = None
    total: int | None = None


@dataclass(frozen=True)
class BatchResult:
    """Per-key results of a batch method.

    Attributes:
        results: Decoded entities (batch get) or status codes, by key.
        errors: Error bodies by key, for keys that failed.
    """

    results: dict[Any, Any] = field(default_factory=dict)
    errors: dict[Any, Any] = field(default_factory=dict)


class ResponseError(Exception):
    """Raised for responses with an error status."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        super().__init__(f"HTTP {status}: {message}")


def build_request(
    descriptor: MethodDescriptor,
    resolver: TypeResolver,
    path_keys: Sequence[Any] = (),
    params: Mapping[str, Any] | None = None,
    body: Any = None,
    ids: Sequence[Any] | None = None,
) -> Request:
    """Encode a call to *descriptor*.

    Args:
        descriptor: The compiled method.
        resolver: Resolves the named types the method refers to.
        path_keys: One value per key placeholder in the path, outermost first.
        params: Query parameters (finders, get-all) or action parameters.
        body: The entity (create, update), the changed fields (partial
            update), a list of entities (batch create), or a mapping from key
            to entity or changed fields (batch update, batch partial update).
        ids: Keys for batch get and batch delete.

    Raises:
        EncodeError: If a value does not match its declared type, a required
            value is missing, or an unexpected value is supplied.
    """
    full = LiteralCodec(resolver)
    reduced = LiteralCodec(resolver, reduced=True)
    document = DocumentCodec(resolver)
    params = dict(params or {})

    placeholders = descriptor.path.keys()
    if len(path_keys) != len(placeholders):
        raise EncodeError(f"Path '{descriptor.path}' needs {len(placeholders)} key(s), got {len(path_keys)}")
    path = descriptor.path.render([full.encode(p.type, v) for p, v in zip(placeholders, path_keys, strict=True)])

    query = list(descriptor.fixed_query)
    if descriptor.body in (BodyKind.BATCH_KEYED_ENTITIES, BodyKind.BATCH_PATCHES):
        if ids is not None:
            raise EncodeError(f"{descriptor.declaration_name}: keys are taken from the body, not from ids")
        ids = list(_require_mapping(descriptor, body))
    if descriptor.ids_type is not None:
        if not ids:
            raise EncodeError(f"{descriptor.declaration_name}: at least one id is required")
        query.append(("ids", full.encode(descriptor.ids_type, list(ids))))
    elif ids is not None:
        raise EncodeError(f"{descriptor.declaration_name} does not take ids")

    text: str | None = None
    if descriptor.body == BodyKind.ACTION_PARAMETERS:
        if body is not None:
            raise EncodeError(f"{descriptor.declaration_name}: pass action parameters as params")
        text = dumps(_encode_parameters(descriptor, params, lambda p, v: document.encode_tree(p.type, v)))
    else:
        query.extend(_encode_parameters(descriptor, params, lambda p, v: full.encode(p.type, v)).items())
        text = _encode_body(descriptor, document, reduced, body)

    headers = {
        PROTOCOL_VERSION_HEADER: PROTOCOL_VERSION,
        METHOD_HEADER: descriptor.restli_method,
    }
    if text is not None:
        headers["Content-Type"] = "application/json"
    return Request(method=descriptor.http_method, path=path, query=query, headers=headers, body=text)


def decode_response(descriptor: MethodDescriptor, resolver: TypeResolver, response: Response) -> Any:
    """Decode the response of a call to *descriptor*.

    Returns:
        ``None`` for methods without a response value; the entity for get;
        the new key for create; a :class:`CollectionPage` for finders and
        get-all; a :class:`BatchResult` for batch get, update, partial update
        and delete; the list of new keys for batch create; the return value
        of an action.

    Raises:
        ResponseError: If the status signals an error.
        DecodeError: If the response does not match the declared types.
    """
    if response.status >= 400:
        raise ResponseError(response.status, _error_message(response))

    document = DocumentCodec(resolver)
    reduced = LiteralCodec(resolver, reduced=True)
    kind = descriptor.response
    value_type = descriptor.response_type

    if kind == ResponseKind.NONE:
        return None
    assert value_type is not None, f"{descriptor.declaration_name} has no response type"
    if kind == ResponseKind.CREATED_ID:
        header = _header(response.headers, ID_HEADER)
        if header is None:
            raise DecodeError(f"{descriptor.declaration_name}: response has no {ID_HEADER} header")
        return reduced.decode(value_type, header)

    tree = _body(response)
    if kind == ResponseKind.ENTITY:
        return document.decode_tree(value_type, tree)
    if kind == ResponseKind.ACTION_VALUE:
        if "value" not in tree:
            raise DecodeError(f"{descriptor.declaration_name}: action response has no value")
        return document.decode_tree(value_type, tree["value"])
    if kind == ResponseKind.COLLECTION:
        paging = _mapping(tree, "paging")
        return CollectionPage(
            elements=[document.decode_tree(value_type, e) for e in _list(tree, "elements")],
            start=paging.get("start"),
            count=paging.get("count"),
            total=paging.get("total"),
        )
    if kind == ResponseKind.BATCH_CREATED_IDS:
        ids: list[Any] = []
        for e in _list(tree, "elements"):
            if not isinstance(e, Mapping):
                raise DecodeError(f"{descriptor.declaration_name}: batch create element must be an object")
            if "id" in e:
                ids.append(document.decode_tree(value_type, e["id"]))
        return ids
    if kind in (ResponseKind.BATCH_ENTITIES, ResponseKind.BATCH_STATUS):
        # Batch results are keyed by entity key; only batch get carries entities.
        key_type = descriptor.batch_key
        assert key_type is not None
        results: dict[Any, Any] = {}
        for token, item in _mapping(tree, "results").items():
            key = reduced.decode(key_type, token)
            if kind == ResponseKind.BATCH_ENTITIES:
                results[key] = document.decode_tree(value_type, item)
            else:
                results[key] = item.get("status") if isinstance(item, Mapping) else item
        errors = {reduced.decode(key_type, token): item for token, item in _mapping(tree, "errors").items()}
        return BatchResult(results=results, errors=errors)
    raise AssertionError(f"Unhandled response kind {kind}")


# ################
# Implementation
# ################


def _encode_parameters(
    descriptor: MethodDescriptor,
    params: Mapping[str, Any],
    encode: Callable[[ParameterSchema, Any], Any],
) -> dict[str, Any]:
    declared = {p.name: p for p in descriptor.parameters}
    unknown = sorted(set(params) - set(declared))
    if unknown:
        raise EncodeError(f"{descriptor.declaration_name}: unknown parameter(s) {', '.join(unknown)}")
    result: dict[str, Any] = {}
    for p in descriptor.parameters:
        value = params.get(p.name)
        if value is None:
            if not _may_omit(p):
                raise EncodeError(f"{descriptor.declaration_name}: missing required parameter '{p.name}'")
            continue
        try:
            result[p.name] = encode(p, value)
        except EncodeError as exc:
            raise EncodeError(f"{descriptor.declaration_name}: parameter '{p.name}': {exc}") from exc
    return result


def _may_omit(p: ParameterSchema) -> bool:
    return p.optional or p.default is not None


def _encode_body(
    descriptor: MethodDescriptor,
    document: DocumentCodec,
    reduced: LiteralCodec,
    body: Any,
) -> str | None:
    kind = descriptor.body
    if kind == BodyKind.NONE:
        if body is not None:
            raise EncodeError(f"{descriptor.declaration_name} does not take a body")
        return None
    entity_type = descriptor.body_type
    assert entity_type is not None
    if body is None:
        raise EncodeError(f"{descriptor.declaration_name}: a body is required")
    if kind == BodyKind.ENTITY:
        return document.encode(entity_type, body)
    if kind == BodyKind.PATCH:
        return dumps(_patch(document, entity_type, body))
    if kind == BodyKind.BATCH_ENTITIES:
        if not isinstance(body, (list, tuple)):
            raise EncodeError(f"{descriptor.declaration_name}: expected a list of entities")
        return dumps({"elements": [document.encode_tree(entity_type, e) for e in body]})
    key_type = descriptor.batch_key
    assert key_type is not None
    entities = _require_mapping(descriptor, body)
    if kind == BodyKind.BATCH_KEYED_ENTITIES:
        encoded = {reduced.encode(key_type, k): document.encode_tree(entity_type, v) for k, v in entities.items()}
        return dumps({"entities": encoded})
    if kind == BodyKind.BATCH_PATCHES:
        encoded = {reduced.encode(key_type, k): _patch(document, entity_type, v) for k, v in entities.items()}
        return dumps({"entities": encoded})
    raise AssertionError(f"Unhandled body kind {kind}")


def _patch(document: DocumentCodec, entity_type: TypeRef, changes: Any) -> dict[str, Any]:
    """Encode a set-only patch: ``{"patch": {"$set": {field: value}}}``."""
    record = document.terminal(entity_type)
    if not isinstance(record, RecordType):
        raise EncodeError(f"Partial updates need a record entity, got {record.kind}")
    if not isinstance(changes, Mapping):
        raise EncodeError(f"{record.identity}: expected a mapping of changed fields")
    fields = {f.name: f for f in record.fields}
    unknown = sorted(k for k in changes if k not in fields)
    if unknown:
        raise EncodeError(f"{record.identity}: unknown field(s) {', '.join(unknown)}")
    changed = {k: document.encode_tree(fields[k].type, v) for k, v in changes.items() if v is not None}
    return {"patch": {"$set": changed}}


def _require_mapping(descriptor: MethodDescriptor, body: Any) -> Mapping[Any, Any]:
    if not isinstance(body, Mapping) or not body:
        raise EncodeError(f"{descriptor.declaration_name}: expected a non-empty mapping from key to entity")
    return body


def _header(headers: Mapping[str, str], name: str) -> str | None:
    for k, v in headers.items():
        if k.lower() == name.lower():
            return v
    return None


def _body(response: Response) -> dict[str, Any]:
    if response.body is None or response.body in ("", b""):
        raise DecodeError("Response has no body")
    tree = loads(response.body)
    if not isinstance(tree, dict):
        raise DecodeError(f"Expected a JSON object, got {type(tree).__name__}")
    return tree


def _list(tree: Mapping[str, Any], name: str) -> list[Any]:
    value = tree.get(name, [])
    if not isinstance(value, list):
        raise DecodeError(f"'{name}' must be a list")
    return value


def _mapping(tree: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = tree.get(name, {})
    if not isinstance(value, Mapping):
        raise DecodeError(f"'{name}' must be an object")
    return value


def _error_message(response: Response) -> str:
    if response.body:
        try:
            tree = loads(response.body)
        except DecodeError:
            logger.debug("Error response body is not JSON")
        else:
            if isinstance(tree, dict) and isinstance(tree.get("message"), str):
                return tree["message"]
    return "request failed"
