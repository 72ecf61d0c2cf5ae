# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compilation-database lookup and classified lexical tokens for C-family sources."""

from clanglex.database import CompilationDatabase, ConstructionError, resolve_compile_command
from clanglex.model import CompileCommand, FileLocation, Token, TokenType
from clanglex.tokenizer import CancellationError, InvocationError, tokenize, tokenize_command

__all__ = [
    "CancellationError",
    "CompilationDatabase",
    "CompileCommand",
    "ConstructionError",
    "FileLocation",
    "InvocationError",
    "Token",
    "TokenType",
    "resolve_compile_command",
    "tokenize",
    "tokenize_command",
]
