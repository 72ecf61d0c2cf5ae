# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the shared value types."""

from pathlib import Path

import pytest

from clanglex.model import CompileCommand, FileLocation, Token, TokenType

# ###############
# FileLocation
# ###############


class TestFileLocation:
    def test_orders_by_line_then_column(self) -> None:
        assert FileLocation(1, 9) < FileLocation(2, 1)
        assert FileLocation(3, 2) < FileLocation(3, 10)
        assert FileLocation(4, 4) == FileLocation(4, 4)

    def test_sorting_uses_total_order(self) -> None:
        locations = [FileLocation(2, 1), FileLocation(1, 5), FileLocation(1, 2)]
        assert sorted(locations) == [FileLocation(1, 2), FileLocation(1, 5), FileLocation(2, 1)]

    @pytest.mark.parametrize(("line", "column"), [(0, 1), (1, 0), (-3, 4)])
    def test_rejects_non_positive_coordinates(self, line: int, column: int) -> None:
        with pytest.raises(ValueError, match="one-based"):
            FileLocation(line, column)

    def test_is_immutable(self) -> None:
        location = FileLocation(1, 1)
        with pytest.raises(AttributeError):
            location.line = 2  # type: ignore[misc]


# ###############
# Token
# ###############


class TestToken:
    def test_single_character_token(self) -> None:
        token = Token(FileLocation(1, 1), FileLocation(1, 1), TokenType.OPERATOR)
        assert token.start_location == token.end_location

    def test_rejects_end_before_start(self) -> None:
        with pytest.raises(ValueError):
            Token(FileLocation(2, 1), FileLocation(1, 8), TokenType.COMMENT)

    def test_to_dict_uses_wire_field_names(self) -> None:
        token = Token(FileLocation(1, 1), FileLocation(1, 18), TokenType.INCLUSION_DIRECTIVE)
        assert token.to_dict() == {
            "startLocation": {"line": 1, "column": 1},
            "endLocation": {"line": 1, "column": 18},
            "type": "inclusionDirective",
        }

    def test_token_type_has_ten_members(self) -> None:
        assert [member.name for member in TokenType] == [
            "UNKNOWN",
            "COMMENT",
            "KEYWORD",
            "OPERATOR",
            "LITERAL_STRING",
            "LITERAL_CHARACTER",
            "LITERAL_NUMERIC",
            "PREPROCESSING_DIRECTIVE",
            "INCLUSION_DIRECTIVE",
            "MACRO_DEFINITION",
        ]


# ###############
# CompileCommand
# ###############


class TestCompileCommand:
    def test_exposes_executable_and_flags(self) -> None:
        command = CompileCommand(("/usr/bin/cc", "-c", "a.c"), Path("/src"), Path("/src/a.c"))
        assert command.executable == "/usr/bin/cc"
        assert command.flags == ("-c", "a.c")

    def test_rejects_empty_argv(self) -> None:
        with pytest.raises(ValueError):
            CompileCommand((), Path("/src"), Path("/src/a.c"))

    def test_equal_commands_compare_equal_and_hash_alike(self) -> None:
        first = CompileCommand(("cc", "a.c"), Path("/src"), Path("/src/a.c"))
        second = CompileCommand(("cc", "a.c"), Path("/src"), Path("/src/a.c"))
        assert first == second
        assert hash(first) == hash(second)
