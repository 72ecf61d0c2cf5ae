# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Value types shared by the compilation database and the tokenizer."""

from clanglex.model.command import CompileCommand
from clanglex.model.tokens import FileLocation, Token, TokenType

__all__ = [
    "CompileCommand",
    "FileLocation",
    "Token",
    "TokenType",
]
