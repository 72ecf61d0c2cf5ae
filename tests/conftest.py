# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: a small regex lexer standing in for libclang."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from clanglex.tokenizer import InvocationError, LexResult, RawToken, RawTokenKind

# ###############
# Fake frontend
# ###############

_C_KEYWORDS = frozenset(
    """auto break case char const continue default do double else enum extern float for goto if inline int long
    register restrict return short signed sizeof static struct switch typedef union unsigned void volatile while
    _Bool""".split()
)

_PATTERN = re.compile(
    rb"(?P<comment>//(?:\\\n|[^\n])*|/\*.*?\*/)"
    rb"|(?P<literal>(?:u8|u|U|L)?\"(?:\\.|[^\"\\\n])*\"|(?:u8|u|U|L)?'(?:\\.|[^'\\\n])*'"
    rb"|\.?[0-9](?:[eEpP][+-]|['.0-9A-Za-z_])*)"
    rb"|(?P<identifier>[A-Za-z_][A-Za-z0-9_]*)"
    rb"|(?P<punctuation>%:%:|\.\.\.|<<=|>>=|<=>|->\*|::|->|\+\+|--|<<|>>|<=|>=|==|!=|&&|\|\||\+=|-=|\*=|/="
    rb"|%=|&=|\|=|\^=|##|<:|:>|<%|%>|%:|[{}\[\]();:?.~!+\-*/%^&|=<>,#@])"
    rb"|(?P<whitespace>\s+|\\[ \t]*\r?\n)"
    rb"|(?P<other>[\xc0-\xff][\x80-\xbf]*|.)",
    re.DOTALL,
)


def raw_lex(source: bytes) -> tuple[RawToken, ...]:
    """Split C source into raw tokens the way libclang's raw lexer reports them."""
    tokens: list[RawToken] = []
    for match in _PATTERN.finditer(source):
        group = match.lastgroup
        if group == "whitespace":
            continue
        spelling = match.group().decode("utf-8")
        if group == "comment":
            kind = RawTokenKind.COMMENT
        elif group == "literal":
            kind = RawTokenKind.LITERAL
        elif group == "identifier":
            kind = RawTokenKind.KEYWORD if spelling in _C_KEYWORDS else RawTokenKind.IDENTIFIER
        else:
            kind = RawTokenKind.PUNCTUATION
        tokens.append(RawToken(kind=kind, spelling=spelling, start=match.start(), end=match.end()))
    return tuple(tokens)


class FakeFrontend:
    """Reads the last argument as the source file and lexes it with :func:`raw_lex`.

    Every call is recorded in ``calls`` as ``(argv, working_directory)``.
    Arguments starting with ``--reject`` make the call fail like a rejected
    command line.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], Path | None]] = []

    def lex(self, argv: Sequence[str], working_directory: Path | None) -> LexResult:
        self.calls.append((list(argv), working_directory))
        rejected = [arg for arg in argv if arg.startswith("--reject")]
        if rejected:
            raise InvocationError(f"unknown argument: '{rejected[0]}'", [f"unknown argument: '{rejected[0]}'"])
        path = Path(argv[-1])
        if not path.is_absolute() and working_directory is not None:
            path = working_directory / path
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise InvocationError(f"Cannot read source file '{path}': {exc}") from exc
        return LexResult(source=source, tokens=raw_lex(source))


@pytest.fixture
def fake_frontend() -> FakeFrontend:
    return FakeFrontend()


@pytest.fixture
def lex() -> Callable[[bytes], tuple[RawToken, ...]]:
    """The fake raw lexer as a fixture."""
    return raw_lex
