# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Positions and classified lexical tokens."""

from __future__ import annotations

import enum
from dataclasses import dataclass

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """Classification of a token or coalesced directive region."""

    UNKNOWN = "unknown"
    COMMENT = "comment"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    LITERAL_STRING = "literalString"
    LITERAL_CHARACTER = "literalCharacter"
    LITERAL_NUMERIC = "literalNumeric"
    PREPROCESSING_DIRECTIVE = "preprocessingDirective"
    INCLUSION_DIRECTIVE = "inclusionDirective"
    MACRO_DEFINITION = "macroDefinition"


@dataclass(frozen=True, order=True)
class FileLocation:
    """A one-based position in a source file.

    Attributes:
        line: 1-based line number.
        column: 1-based column, counted in UTF-8 bytes.
    """

    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 1 or self.column < 1:
            raise ValueError(f"File locations are one-based, got line {self.line}, column {self.column}")

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class Token:
    """A classified, contiguous span of source text.

    Attributes:
        start_location: Position of the first character.
        end_location: Position of the last character (inclusive).
        type: The classification of the span.
    """

    start_location: FileLocation
    end_location: FileLocation
    type: TokenType

    def __post_init__(self) -> None:
        if self.end_location < self.start_location:
            raise ValueError(f"Token ends at {self.end_location} before it starts at {self.start_location}")

    def to_dict(self) -> dict[str, object]:
        """Return the token as a JSON-compatible mapping."""
        return {
            "startLocation": self.start_location.to_dict(),
            "endLocation": self.end_location.to_dict(),
            "type": self.type.value,
        }
