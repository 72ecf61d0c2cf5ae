# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Translation of classified tokens into LSP semantic tokens.

Token columns count UTF-8 bytes while LSP positions count code units of the
negotiated position encoding. LSP semantic tokens cannot span lines, so a
multi-line token becomes one semantic token per physical line.

Tokens decoded from a language server's response can be merged with the
lexical ones through :func:`combine_tokens`, the server's tokens taking
precedence where the two overlap.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from clanglex.model.tokens import Token, TokenType

# ###############
# Public Interface
# ###############


class SemanticTokenType(enum.Enum):
    """The LSP semantic token types clanglex produces."""

    COMMENT = "comment"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    STRING = "string"
    NUMBER = "number"
    MACRO = "macro"


class PositionEncoding(enum.Enum):
    """LSP ``PositionEncodingKind`` values."""

    UTF8 = "utf-8"
    UTF16 = "utf-16"
    UTF32 = "utf-32"


@dataclass(frozen=True)
class SemanticTokenAbsolute:
    """A single-line semantic token with absolute, zero-based coordinates.

    Attributes:
        line: Zero-based line.
        start_char: Zero-based start, in code units of the position encoding.
        length: Length in code units of the position encoding.
        type: LSP semantic token type name.
        modifiers: Bit set of LSP token modifiers.
    """

    line: int
    start_char: int
    length: int
    type: str
    modifiers: int = 0


def semantic_token_type(token_type: TokenType) -> SemanticTokenType | None:
    """Return the LSP type for *token_type*, or ``None`` when it has none."""
    return _SEMANTIC_TYPES.get(token_type)


def translate_tokens(
    tokens: Iterable[Token],
    source: bytes,
    encoding: PositionEncoding = PositionEncoding.UTF16,
) -> list[SemanticTokenAbsolute]:
    """Convert tokens of *source* into per-line LSP semantic tokens.

    Tokens without an LSP type are dropped, as are empty line segments of
    multi-line tokens.
    """
    lines = [line.removesuffix(b"\r") for line in source.split(b"\n")]
    result: list[SemanticTokenAbsolute] = []
    for token in tokens:
        semantic_type = semantic_token_type(token.type)
        if semantic_type is None:
            continue
        start, end = token.start_location, token.end_location
        for line_number in range(start.line, end.line + 1):
            line = lines[line_number - 1]
            first = start.column - 1 if line_number == start.line else 0
            last = _next_character(line, end.column - 1) if line_number == end.line else len(line)
            length = _code_units(line[first:last], encoding)
            if length == 0:
                continue
            result.append(
                SemanticTokenAbsolute(
                    line=line_number - 1,
                    start_char=_code_units(line[:first], encoding),
                    length=length,
                    type=semantic_type.value,
                )
            )
    return result


def encode_relative(tokens: Iterable[SemanticTokenAbsolute], legend: Sequence[str]) -> list[int]:
    """Encode tokens as an LSP ``SemanticTokens.data`` array.

    Args:
        tokens: Tokens in any order; they are sorted by position.
        legend: Token type names, in the order announced to the client.

    Raises:
        ValueError: If a token's type is missing from *legend*.
    """
    type_indices = {name: index for index, name in enumerate(legend)}
    data: list[int] = []
    previous_line = 0
    previous_char = 0
    for token in sorted(tokens, key=lambda tok: (tok.line, tok.start_char)):
        if token.type not in type_indices:
            raise ValueError(f"Token type {token.type!r} is not in the legend")
        delta_line = token.line - previous_line
        delta_char = token.start_char - previous_char if delta_line == 0 else token.start_char
        data.extend((delta_line, delta_char, token.length, type_indices[token.type], token.modifiers))
        previous_line = token.line
        previous_char = token.start_char
    return data


def decode_relative(data: Sequence[int], legend: Sequence[str]) -> list[SemanticTokenAbsolute]:
    """Decode an LSP ``SemanticTokens.data`` array into absolute tokens.

    Raises:
        ValueError: If *data* is not a multiple of five integers or refers to
            a type index outside *legend*.
    """
    if len(data) % 5:
        raise ValueError(f"Semantic token data must hold groups of 5 integers, got {len(data)}")
    result: list[SemanticTokenAbsolute] = []
    line = 0
    char = 0
    for head in range(0, len(data), 5):
        delta_line, delta_char, length, type_index, modifiers = data[head : head + 5]
        if not 0 <= type_index < len(legend):
            raise ValueError(f"Token type index {type_index} is outside the legend")
        line += delta_line
        char = char + delta_char if delta_line == 0 else delta_char
        result.append(SemanticTokenAbsolute(line, char, length, legend[type_index], modifiers))
    return result


def combine_tokens(
    semantic: Iterable[SemanticTokenAbsolute],
    lexical: Iterable[SemanticTokenAbsolute],
) -> list[SemanticTokenAbsolute]:
    """Merge a language server's semantic tokens with lexical tokens.

    Both inputs are walked in position order. Semantic tokens always win: a
    lexical token that overlaps one is dropped. Zero-length tokens overlap
    nothing and are kept. Tokens left over once either side is exhausted are
    appended, semantic ones first.
    """
    semantic_tokens = sorted(semantic, key=_position)
    lexical_tokens = sorted(lexical, key=_position)
    result: list[SemanticTokenAbsolute] = []
    sem = lex = 0
    while sem < len(semantic_tokens) and lex < len(lexical_tokens):
        semantic_head = semantic_tokens[sem]
        lexical_head = lexical_tokens[lex]
        if _position(lexical_head) == _position(semantic_head):
            if lexical_head.length == 0:
                result.append(lexical_head)
                lex += 1
            elif semantic_head.length == 0:
                result.append(semantic_head)
                sem += 1
            else:
                lex += 1
        elif _position(lexical_head) < _position(semantic_head):
            if not _overlaps(lexical_head, semantic_head):
                result.append(lexical_head)
            lex += 1
        elif _overlaps(semantic_head, lexical_head):
            lex += 1
        else:
            result.append(semantic_head)
            sem += 1
    result.extend(semantic_tokens[sem:])
    result.extend(lexical_tokens[lex:])
    return result


# ################
# Implementation
# ################

_SEMANTIC_TYPES: dict[TokenType, SemanticTokenType] = {
    TokenType.COMMENT: SemanticTokenType.COMMENT,
    TokenType.KEYWORD: SemanticTokenType.KEYWORD,
    TokenType.OPERATOR: SemanticTokenType.OPERATOR,
    TokenType.LITERAL_STRING: SemanticTokenType.STRING,
    TokenType.LITERAL_CHARACTER: SemanticTokenType.NUMBER,
    TokenType.LITERAL_NUMERIC: SemanticTokenType.NUMBER,
    TokenType.PREPROCESSING_DIRECTIVE: SemanticTokenType.MACRO,
    TokenType.INCLUSION_DIRECTIVE: SemanticTokenType.MACRO,
    TokenType.MACRO_DEFINITION: SemanticTokenType.MACRO,
}


def _position(token: SemanticTokenAbsolute) -> tuple[int, int]:
    return token.line, token.start_char


def _overlaps(first: SemanticTokenAbsolute, second: SemanticTokenAbsolute) -> bool:
    """Return True if *first*, which starts before *second*, reaches into it."""
    return first.line == second.line and first.start_char + first.length > second.start_char


def _next_character(line: bytes, index: int) -> int:
    """Return the byte offset just past the UTF-8 character starting at *index*."""
    index += 1
    while index < len(line) and line[index] & 0xC0 == 0x80:
        index += 1
    return min(index, len(line))


def _code_units(chunk: bytes, encoding: PositionEncoding) -> int:
    if encoding is PositionEncoding.UTF8:
        return len(chunk)
    text = chunk.decode("utf-8", errors="replace")
    if encoding is PositionEncoding.UTF16:
        return len(text.encode("utf-16-le")) // 2
    return len(text)
