# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""JSON document encoding used for request and response bodies."""

from __future__ import annotations

import json
from typing import Any

from restli_codegen.model.types import NamedType, TypeRef
from restli_codegen.wire.codec import Codec
from restli_codegen.wire.errors import DecodeError

# ###############
# Public Interface
# ###############


class DocumentCodec(Codec):
    """Encode values as JSON text.

    Unset optional fields are omitted rather than written as ``null``, and
    ``bytes``/fixed values are written as standard base64 strings.
    """

    def encode(self, type_ref: TypeRef | NamedType, value: Any) -> str:
        return dumps(self.encode_tree(type_ref, value))

    def decode(self, type_ref: TypeRef | NamedType, text: str | bytes) -> Any:
        return self.decode_tree(type_ref, loads(text))


def dumps(tree: Any) -> str:
    """Serialize a wire tree to compact JSON, preserving field order."""
    return json.dumps(tree, separators=(",", ":"), ensure_ascii=False)


def loads(text: str | bytes) -> Any:
    """Parse JSON text into a wire tree.

    Raises:
        DecodeError: If the text is not valid JSON or nests too deeply.
    """
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise DecodeError(f"Malformed JSON document: {exc}") from exc
