# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Classification of a raw lexical stream into domain tokens.

The frontend reports only primitive categories (punctuation, keyword,
identifier, literal, comment). This module refines them:

* literals are split into string, character and numeric literals;
* punctuation is an operator only if it is a known punctuator;
* a ``#`` that begins a logical line opens a preprocessing directive, and every
  primitive token of that logical line is merged into one directive token whose
  type depends on the directive keyword.

A logical line continues across a newline preceded by a backslash (trailing
horizontal whitespace between the two is tolerated, as clang does). Block
comments count as whitespace: a newline inside one neither ends a directive
nor starts a new logical line.

Comments at the very end of a directive are not part of it: they are emitted
as separate comment tokens and the directive ends at the last character of its
last non-comment token. Comments followed by further directive content are
absorbed into the directive token.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Callable, Sequence

from clanglex.model.tokens import FileLocation, Token, TokenType
from clanglex.tokenizer.frontend import RawToken, RawTokenKind

# ###############
# Public Interface
# ###############


def classify(
    source: bytes,
    raw_tokens: Sequence[RawToken],
    checkpoint: Callable[[], None] | None = None,
) -> list[Token]:
    """Classify the raw tokens of *source*.

    Args:
        source: The bytes of the lexed file; offsets in *raw_tokens* index it.
        raw_tokens: Gapless (modulo whitespace) primitive tokens.
        checkpoint: Called periodically; raising from it aborts classification.

    Returns:
        Tokens in strictly ascending order that never overlap and together
        cover every non-whitespace byte of *source*.
    """
    return _Classifier(source, raw_tokens, checkpoint).run()


# ################
# Implementation
# ################

# fmt: off
_PUNCTUATORS = frozenset(
    {
        "{", "}", "[", "]", "(", ")", ";", ":", ",", "?", "...", "::",
        ".", ".*", "->", "->*", "~", "!", "+", "-", "*", "/", "%", "^", "&", "|",
        "=", "+=", "-=", "*=", "/=", "%=", "^=", "&=", "|=",
        "==", "!=", "<", ">", "<=", ">=", "<=>", "&&", "||",
        "<<", ">>", "<<=", ">>=", "++", "--",
        "#", "##", "<:", ":>", "<%", "%>", "%:", "%:%:", "@",
    }
)
# fmt: on

_HASH_SPELLINGS = frozenset({"#", "%:"})
_INCLUSION_KEYWORDS = frozenset({"include", "include_next", "import"})
_DEFINITION_KEYWORD = "define"

_LITERAL_PREFIX = re.compile(r"(?:u8|u|U|L)?R?")
_HORIZONTAL_WHITESPACE = b" \t\f\v\r"
_BACKSLASH = ord("\\")

_CHECKPOINT_INTERVAL = 256


class _LineTable:
    """Maps byte offsets of a source buffer to one-based locations."""

    def __init__(self, source: bytes) -> None:
        self._source = source
        self._line_starts = [0] + [match.end() for match in re.finditer(b"\n", source)]

    def location(self, offset: int) -> FileLocation:
        line = bisect.bisect_right(self._line_starts, offset)
        return FileLocation(line=line, column=offset - self._line_starts[line - 1] + 1)

    def last_character(self, start: int, end: int) -> FileLocation:
        """Return the location of the first byte of the last character in [start, end)."""
        offset = end - 1
        while offset > start and self._source[offset] & 0xC0 == 0x80:
            offset -= 1
        return self.location(offset)


class _Classifier:
    def __init__(
        self,
        source: bytes,
        raw_tokens: Sequence[RawToken],
        checkpoint: Callable[[], None] | None,
    ) -> None:
        self._source = source
        self._tokens = sorted((tok for tok in raw_tokens if tok.end > tok.start), key=lambda tok: tok.start)
        self._checkpoint = checkpoint
        self._lines = _LineTable(source)

    def run(self) -> list[Token]:
        result: list[Token] = []
        index = 0
        next_checkpoint = 0
        while index < len(self._tokens):
            if self._checkpoint is not None and index >= next_checkpoint:
                self._checkpoint()
                next_checkpoint = index + _CHECKPOINT_INTERVAL
            token = self._tokens[index]
            if self._opens_directive(index):
                index = self._emit_directive(index, result)
            else:
                result.append(self._single(token, _default_type(token)))
                index += 1
        return result

    # ------------------------------------------------------------------
    # Directive detection
    # ------------------------------------------------------------------

    def _opens_directive(self, index: int) -> bool:
        """Return True for a ``#`` that is the first non-comment token of its logical line."""
        token = self._tokens[index]
        if token.kind is not RawTokenKind.PUNCTUATION or token.spelling not in _HASH_SPELLINGS:
            return False
        gap_end = token.start
        for previous_index in range(index - 1, -1, -1):
            previous = self._tokens[previous_index]
            if _has_line_break(self._source, previous.end, gap_end):
                return True
            if previous.kind is not RawTokenKind.COMMENT:
                return False
            gap_end = previous.start
        return True

    def _emit_directive(self, index: int, result: list[Token]) -> int:
        """Append the directive starting at *index* and return the index after it."""
        region_end = _logical_line_end(self._source, self._tokens[index].start)
        stop = index
        while stop < len(self._tokens) and self._tokens[stop].start < region_end:
            if self._tokens[stop].end > region_end:
                region_end = _logical_line_end(self._source, self._tokens[stop].end)
            stop += 1

        members = self._tokens[index:stop]
        body_length = len(members)
        while body_length > 1 and members[body_length - 1].kind is RawTokenKind.COMMENT:
            body_length -= 1
        body = members[:body_length]

        result.append(
            Token(
                start_location=self._lines.location(body[0].start),
                end_location=self._lines.last_character(body[-1].start, body[-1].end),
                type=_directive_type(body),
            )
        )
        for comment in members[body_length:]:
            result.append(self._single(comment, TokenType.COMMENT))
        return stop

    def _single(self, token: RawToken, token_type: TokenType) -> Token:
        return Token(
            start_location=self._lines.location(token.start),
            end_location=self._lines.last_character(token.start, token.end),
            type=token_type,
        )


def _default_type(token: RawToken) -> TokenType:
    if token.kind is RawTokenKind.COMMENT:
        return TokenType.COMMENT
    if token.kind is RawTokenKind.KEYWORD:
        return TokenType.KEYWORD
    if token.kind is RawTokenKind.PUNCTUATION:
        return TokenType.OPERATOR if token.spelling in _PUNCTUATORS else TokenType.UNKNOWN
    if token.kind is RawTokenKind.LITERAL:
        return _literal_type(token.spelling)
    return TokenType.UNKNOWN


def _literal_type(spelling: str) -> TokenType:
    """Tell string, character and numeric literals apart by their spelling."""
    if not spelling:
        return TokenType.UNKNOWN
    if spelling[0].isdigit() or spelling[0] == ".":
        return TokenType.LITERAL_NUMERIC
    prefix = _LITERAL_PREFIX.match(spelling)
    quote = spelling[prefix.end() : prefix.end() + 1] if prefix else ""
    if quote == '"':
        return TokenType.LITERAL_STRING
    if quote == "'":
        return TokenType.LITERAL_CHARACTER
    return TokenType.UNKNOWN


def _directive_type(body: Sequence[RawToken]) -> TokenType:
    """Pick the directive type from the first non-comment token after ``#``."""
    keyword = next((tok for tok in body[1:] if tok.kind is not RawTokenKind.COMMENT), None)
    if keyword is None or keyword.kind not in (RawTokenKind.IDENTIFIER, RawTokenKind.KEYWORD):
        return TokenType.PREPROCESSING_DIRECTIVE
    if keyword.spelling in _INCLUSION_KEYWORDS:
        return TokenType.INCLUSION_DIRECTIVE
    if keyword.spelling == _DEFINITION_KEYWORD:
        return TokenType.MACRO_DEFINITION
    return TokenType.PREPROCESSING_DIRECTIVE


def _is_escaped_newline(source: bytes, newline: int) -> bool:
    """Return True if the newline at *newline* is a backslash line continuation."""
    offset = newline - 1
    while offset >= 0 and source[offset] in _HORIZONTAL_WHITESPACE:
        offset -= 1
    return offset >= 0 and source[offset] == _BACKSLASH


def _has_line_break(source: bytes, start: int, end: int) -> bool:
    """Return True if [start, end) contains a newline that ends a logical line."""
    newline = source.find(b"\n", start, end)
    while newline >= 0:
        if not _is_escaped_newline(source, newline):
            return True
        newline = source.find(b"\n", newline + 1, end)
    return False


def _logical_line_end(source: bytes, offset: int) -> int:
    """Return the offset of the newline ending the logical line at *offset*, or the buffer length."""
    while True:
        newline = source.find(b"\n", offset)
        if newline < 0:
            return len(source)
        if not _is_escaped_newline(source, newline):
            return newline
        offset = newline + 1
