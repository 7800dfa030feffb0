# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structured-literal encoding used in URL paths, query strings and headers.

Syntax (full variant)::

    scalar   escaped text; the empty string is written ''
    array    List(item,item,...)
    record   (key:value,key:value,...)      also used for maps and unions

The reduced variant drops the ``List`` tag, so arrays are written
``(item,item)``, and only escapes the structural characters. Decoding is
driven by the expected type, which disambiguates the bracket shapes.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, unquote

from restli_codegen.model.types import NamedType, PrimitiveType, TypeRef, TypeResolver
from restli_codegen.wire.codec import Codec
from restli_codegen.wire.errors import DecodeError

# ###############
# Public Interface
# ###############

LIST_TAG = "List"
EMPTY_STRING = "''"

# Characters escaped by the reduced encoder, on top of whitespace.
REDUCED_RESERVED = frozenset("%(),:'")


class LiteralCodec(Codec):
    """Structured-literal codec.

    Args:
        resolver: Resolves named type references.
        reduced: Use the reduced variant (no ``List`` tags, minimal escaping).
    """

    def __init__(self, resolver: TypeResolver, *, reduced: bool = False) -> None:
        super().__init__(resolver)
        self.reduced = reduced

    def encode(self, type_ref: TypeRef | NamedType, value: Any) -> str:
        """Encode *value* as a structured literal."""
        return self.render(self.encode_tree(type_ref, value))

    def decode(self, type_ref: TypeRef | NamedType, text: str) -> Any:
        """Decode a structured literal produced by :meth:`encode`."""
        return self.decode_tree(type_ref, self.parse(text))

    def escape(self, text: str) -> str:
        """Percent-escape a scalar according to the active variant."""
        if not text:
            return EMPTY_STRING
        if not self.reduced:
            return quote(text, safe="")
        return "".join(quote(c, safe="") if c in REDUCED_RESERVED or c.isspace() else c for c in text)

    def render(self, tree: Any) -> str:
        """Render a wire tree as literal text."""
        if isinstance(tree, str):
            return self.escape(tree)
        if isinstance(tree, list):
            tag = "" if self.reduced else LIST_TAG
            return tag + "(" + ",".join(self.render(v) for v in tree) + ")"
        if isinstance(tree, dict):
            return "(" + ",".join(f"{self.escape(k)}:{self.render(v)}" for k, v in tree.items()) + ")"
        raise TypeError(f"Cannot render {type(tree).__name__} as a structured literal")

    def parse(self, text: str) -> Any:
        """Parse literal text into a wire tree of strings, lists and dicts.

        Raises:
            DecodeError: If the text is malformed.
        """
        parser = _Parser(text, self.reduced)
        tree = parser.value()
        if parser.pos != len(text):
            raise DecodeError(f"Unexpected trailing input at offset {parser.pos} in {text!r}")
        return tree

    def _encode_primitive(self, p: PrimitiveType, value: Any) -> Any:
        return p.to_token(value)

    def _decode_primitive(self, p: PrimitiveType, token: Any) -> Any:
        if not isinstance(token, str):
            raise DecodeError(f"Expected a scalar {p.value}, got a composite value")
        return p.from_token(token)

    def _as_sequence(self, token: Any, what: str) -> list[Any]:
        # In the reduced variant "()" is both an empty array and an empty record.
        if self.reduced and token == {}:
            return []
        return super()._as_sequence(token, what)


# ################
# Implementation
# ################

_DELIMITERS = frozenset("(),:")


class _Parser:
    """Recursive-descent parser over literal text."""

    def __init__(self, text: str, reduced: bool) -> None:
        self.text = text
        self.pos = 0
        self.reduced = reduced

    def value(self) -> Any:
        if not self.reduced and self.text.startswith(LIST_TAG + "(", self.pos):
            self.pos += len(LIST_TAG) + 1
            return self._items(first=None)
        if self._peek() == "(":
            self.pos += 1
            if self.reduced:
                return self._reduced_composite()
            return self._fields(first_key=None)
        return self._scalar()

    def _reduced_composite(self) -> Any:
        if self._peek() == ")":
            self.pos += 1
            return {}
        first = self.value()
        if isinstance(first, str) and self._peek() == ":":
            return self._fields(first_key=first)
        return self._items(first=first)

    def _items(self, first: Any) -> list[Any]:
        items: list[Any] = []
        if first is None:
            if self._peek() == ")":
                self.pos += 1
                return items
            first = self.value()
        items.append(first)
        while self._peek() == ",":
            self.pos += 1
            items.append(self.value())
        self._expect(")")
        return items

    def _fields(self, first_key: str | None) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if first_key is None:
            if self._peek() == ")":
                self.pos += 1
                return fields
            first_key = self._scalar()
        key = first_key
        while True:
            self._expect(":")
            if key in fields:
                raise DecodeError(f"Duplicate key {key!r} in {self.text!r}")
            fields[key] = self.value()
            if self._peek() != ",":
                break
            self.pos += 1
            key = self._scalar()
        self._expect(")")
        return fields

    def _scalar(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _DELIMITERS:
            self.pos += 1
        raw = self.text[start : self.pos]
        if not raw:
            raise DecodeError(f"Expected a value at offset {start} in {self.text!r}")
        if raw == EMPTY_STRING:
            return ""
        try:
            return unquote(raw, errors="strict")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Invalid escape sequence in {raw!r}: {exc}") from exc

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            found = self._peek() or "end of input"
            raise DecodeError(f"Expected {char!r} at offset {self.pos} in {self.text!r}, found {found!r}")
        self.pos += 1
