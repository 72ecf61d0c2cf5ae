# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""LSP semantic token output."""

from clanglex.lsp.semantic_tokens import (
    PositionEncoding,
    SemanticTokenAbsolute,
    SemanticTokenType,
    combine_tokens,
    decode_relative,
    encode_relative,
    semantic_token_type,
    translate_tokens,
)

__all__ = [
    "PositionEncoding",
    "SemanticTokenAbsolute",
    "SemanticTokenType",
    "combine_tokens",
    "decode_relative",
    "encode_relative",
    "semantic_token_type",
    "translate_tokens",
]
