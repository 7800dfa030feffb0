# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Request construction and response decoding for compiled methods."""

from restli_codegen.client.request import (
    BatchResult,
    CollectionPage,
    Request,
    Response,
    ResponseError,
    build_request,
    decode_response,
)

__all__ = [
    "BatchResult",
    "CollectionPage",
    "Request",
    "Response",
    "ResponseError",
    "build_request",
    "decode_response",
]
