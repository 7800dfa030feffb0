# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the restli-codegen configuration file."""

from __future__ import annotations

import keyword
from dataclasses import dataclass
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = "restli-codegen.yaml"
DEFAULT_OUTPUT = "restli-bindings.json"


class ConfigError(Exception):
    """Raised when a configuration file is invalid or cannot be loaded."""


@dataclass
class CompilerConfig:
    """The parsed compiler configuration.

    Attributes:
        package_prefix: Dotted module-path prefix prepended to every module
            path (empty for none).
        output: Path of the compiled declaration set, relative to the
            directory the compiler runs in.
        strict: Abort the compilation if any resource fails to compile.
    """

    package_prefix: str = ""
    output: str = DEFAULT_OUTPUT
    strict: bool = False


def load_config(path: Path) -> CompilerConfig:
    """Load and parse a configuration file.

    Args:
        path: Path to the ``restli-codegen.yaml`` file.

    Returns:
        A CompilerConfig instance populated from the file.

    Raises:
        ConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}") from None
    except OSError as exc:
        raise ConfigError(f"Cannot read config file: {exc}") from exc

    return _parse_config(text, source_label=str(path))


# ################
# Implementation
# ################

_KNOWN_KEYS = frozenset({"package-prefix", "output", "strict"})


def _parse_config(text: str, source_label: str = "<string>") -> CompilerConfig:
    """Parse configuration YAML text into a CompilerConfig.

    An empty document yields the defaults.

    Raises:
        ConfigError: If the YAML is invalid, a key is unknown, or a value has
            the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return CompilerConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{source_label}: config must be a YAML mapping")

    unknown = sorted(str(k) for k in data if k not in _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"{source_label}: unknown field(s) {', '.join(unknown)}")

    config = CompilerConfig()
    if "package-prefix" in data:
        config.package_prefix = _require_string(data, "package-prefix", source_label)
        _check_prefix(config.package_prefix, source_label)
    if "output" in data:
        config.output = _require_string(data, "output", source_label)
        if not config.output:
            raise ConfigError(f"{source_label}: 'output' must not be empty")
    if "strict" in data:
        strict = data["strict"]
        if not isinstance(strict, bool):
            raise ConfigError(f"{source_label}: 'strict' must be a boolean")
        config.strict = strict
    return config


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Return the string value under *key*, raising ConfigError if it has another type."""
    value = mapping[key]
    if not isinstance(value, str):
        raise ConfigError(f"{source_label}: '{key}' must be a string")
    return value


def _check_prefix(prefix: str, source_label: str) -> None:
    if not prefix:
        return
    for part in prefix.split("."):
        if not part.isidentifier() or keyword.iskeyword(part):
            raise ConfigError(f"{source_label}: 'package-prefix' segment {part!r} is not a valid module name")
