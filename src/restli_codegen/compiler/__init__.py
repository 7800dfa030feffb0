# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline: type resolution, resource compilation and declaration merging."""

from restli_codegen.compiler.artifact import (
    ARTIFACT_FORMAT_VERSION,
    deserialize_declarations,
    deserialize_schema,
    read_schema,
    serialize_result,
    serialize_schema,
    write_result,
)
from restli_codegen.compiler.build import CompilationResult, CompilerError, compile_schema
from restli_codegen.compiler.declarations import (
    DeclarationConflictError,
    DeclarationKind,
    DeclarationUnit,
    merge,
    module_index,
)
from restli_codegen.compiler.methods import (
    BodyKind,
    MethodDescriptor,
    PathTemplate,
    ResponseKind,
    compile_method,
    compile_resource,
)
from restli_codegen.compiler.registry import TypeRegistry, UnresolvedReferenceError
from restli_codegen.compiler.resources import ResourceFailure, ResourceWalk, UnsupportedResource, build_resources
from restli_codegen.compiler.semantic_analysis import SemanticError, analyze, analyze_resource

__all__ = [
    "analyze",
    "analyze_resource",
    "SemanticError",
    "TypeRegistry",
    "UnresolvedReferenceError",
    "build_resources",
    "ResourceWalk",
    "ResourceFailure",
    "UnsupportedResource",
    "compile_method",
    "compile_resource",
    "MethodDescriptor",
    "PathTemplate",
    "BodyKind",
    "ResponseKind",
    "DeclarationUnit",
    "DeclarationKind",
    "DeclarationConflictError",
    "merge",
    "module_index",
    "compile_schema",
    "CompilationResult",
    "CompilerError",
    "ARTIFACT_FORMAT_VERSION",
    "deserialize_schema",
    "serialize_schema",
    "read_schema",
    "serialize_result",
    "deserialize_declarations",
    "write_result",
]
