# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compilation database loading, lookup and compile-command resolution."""

from clanglex.database.compilation_database import (
    COMPILATION_DATABASE_NAME,
    CompilationDatabase,
    ConstructionError,
    canonical_path_key,
    default_case_sensitivity,
)
from clanglex.database.resolve import find_compilation_database, insert_flags, resolve_compile_command

__all__ = [
    "COMPILATION_DATABASE_NAME",
    "CompilationDatabase",
    "ConstructionError",
    "canonical_path_key",
    "default_case_sensitivity",
    "find_compilation_database",
    "insert_flags",
    "resolve_compile_command",
]
