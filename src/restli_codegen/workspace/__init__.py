# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Configuration for restli-codegen."""

from restli_codegen.workspace.config import (
    CONFIG_FILE_NAME,
    DEFAULT_OUTPUT,
    CompilerConfig,
    ConfigError,
    load_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_OUTPUT",
    "CompilerConfig",
    "ConfigError",
    "load_config",
]
