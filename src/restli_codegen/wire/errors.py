# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised by the wire codecs."""

# ###############
# Public Interface
# ###############


class CodecError(Exception):
    """Base class for wire-level encoding and decoding failures."""


class EncodeError(CodecError):
    """Raised when a value does not satisfy its type and cannot be encoded."""


class DecodeError(CodecError):
    """Raised when a token is malformed or does not match the expected type.

    A failed decode never yields a partially populated value.
    """


class UnionMemberError(ValueError):
    """Raised when a union value does not have exactly one populated member."""
