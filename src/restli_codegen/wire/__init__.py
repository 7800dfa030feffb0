# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Wire codecs: structured-literal encoding for URLs and JSON for bodies."""

from restli_codegen.wire.codec import Codec, parse_default, validate_single_member
from restli_codegen.wire.document import DocumentCodec
from restli_codegen.wire.errors import CodecError, DecodeError, EncodeError, UnionMemberError
from restli_codegen.wire.literal import LiteralCodec

__all__ = [
    "Codec",
    "CodecError",
    "DecodeError",
    "DocumentCodec",
    "EncodeError",
    "LiteralCodec",
    "UnionMemberError",
    "parse_default",
    "validate_single_member",
]
