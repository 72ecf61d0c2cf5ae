# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Raw lexing through a language frontend and classification into tokens."""

from clanglex.tokenizer.classify import classify
from clanglex.tokenizer.frontend import (
    InvocationError,
    LexicalFrontend,
    LexResult,
    LibclangFrontend,
    RawToken,
    RawTokenKind,
)
from clanglex.tokenizer.pipeline import PLACEHOLDER_EXECUTABLE, CancellationError, tokenize, tokenize_command

__all__ = [
    "PLACEHOLDER_EXECUTABLE",
    "CancellationError",
    "InvocationError",
    "LexResult",
    "LexicalFrontend",
    "LibclangFrontend",
    "RawToken",
    "RawTokenKind",
    "classify",
    "tokenize",
    "tokenize_command",
]
