# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Reading schema graphs and writing compiled declaration sets.

Both artifacts are JSON documents carrying a format version under ``"v"`` so
that schema changes on either side of the boundary can be detected.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from restli_codegen.compiler.build import CompilationResult
from restli_codegen.compiler.declarations import DeclarationUnit
from restli_codegen.model.resources import SchemaGraph

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"


def deserialize_schema(data: str) -> SchemaGraph:
    """Deserialize a schema graph produced by the front-end.

    Args:
        data: JSON string of the form ``{"v": "1", "types": [...], "resources": [...]}``.

    Returns:
        The validated :class:`SchemaGraph`.

    Raises:
        ValueError: If the JSON is malformed, the format version is not
            recognised, or the content does not match the schema model.
    """
    obj = json.loads(data)
    _check_version(obj)
    return SchemaGraph.model_validate({k: v for k, v in obj.items() if k != "v"})


def serialize_schema(graph: SchemaGraph) -> str:
    """Serialize a schema graph in the input format (used by fixtures and tooling)."""
    return json.dumps({"v": ARTIFACT_FORMAT_VERSION, **graph.model_dump(mode="json")}, separators=(",", ":"))


def read_schema(path: Path) -> SchemaGraph:
    """Read and deserialize a schema graph from *path*."""
    return deserialize_schema(path.read_text(encoding="utf-8"))


def serialize_result(result: CompilationResult) -> str:
    """Serialize a compilation result to a JSON string."""
    return json.dumps(_result_to_dict(result), indent=2, ensure_ascii=False)


def deserialize_declarations(data: str) -> list[DeclarationUnit]:
    """Read back the declaration units of a serialized compilation result.

    Raises:
        ValueError: If the format version is not recognised.
    """
    obj = json.loads(data)
    _check_version(obj)
    return [
        DeclarationUnit(module_path=d["module"], name=d["name"], kind=d["kind"], content=d["content"])
        for d in obj.get("declarations", [])
    ]


def write_result(result: CompilationResult, path: Path) -> None:
    """Write a compilation result to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_result(result), encoding="utf-8")


# ################
# Implementation
# ################


def _check_version(obj: Any) -> None:
    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
    version = obj.get("v")
    if version != ARTIFACT_FORMAT_VERSION:
        raise ValueError(f"Unsupported artifact format version: {version!r}")


def _result_to_dict(result: CompilationResult) -> dict[str, Any]:
    return {
        "v": ARTIFACT_FORMAT_VERSION,
        "modules": result.modules,
        "declarations": [
            {"module": d.module_path, "name": d.name, "kind": d.kind.value, "content": d.content}
            for d in result.declarations
        ],
        "unsupported": [
            {
                "resource": str(u.identity),
                "reason": u.reason,
                "skipped": [str(s) for s in u.skipped],
            }
            for u in result.unsupported
        ],
        "failures": [{"resource": str(f.identity), "message": f.message} for f in result.failures],
    }
