# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the tokenize entry points, failure handling and cancellation."""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from clanglex.model import CompileCommand, TokenType
from clanglex.tokenizer import (
    PLACEHOLDER_EXECUTABLE,
    CancellationError,
    InvocationError,
    LexResult,
    tokenize,
    tokenize_command,
)

_SOURCE = "#include <stdio.h>\n#define MAX 10\nint main(void) { return MAX; } // done\n"

# ###############
# Helpers
# ###############


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "main.c"
    path.write_text(_SOURCE, encoding="utf-8")
    return path


class _BlockingFrontend:
    """Blocks inside ``lex`` until released."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def lex(self, argv: Sequence[str], working_directory: Path | None) -> LexResult:
        self.entered.set()
        self.release.wait(timeout=10)
        return LexResult(source=b"int x;", tokens=())


class _CancellingFrontend:
    """Delegates to another frontend, then cancels before returning."""

    def __init__(self, inner, cancel: threading.Event) -> None:
        self._inner = inner
        self._cancel = cancel

    def lex(self, argv: Sequence[str], working_directory: Path | None) -> LexResult:
        result = self._inner.lex(argv, working_directory)
        self._cancel.set()
        return result


# ###############
# Entry points
# ###############


class TestEntryPoints:
    def test_flags_only_gets_placeholder_executable(self, fake_frontend, source_file: Path) -> None:
        tokenize(["-c", str(source_file)], False, frontend=fake_frontend)

        argv, working_directory = fake_frontend.calls[0]
        assert argv == [PLACEHOLDER_EXECUTABLE, "-c", str(source_file)]
        assert working_directory is None

    def test_full_argv_is_passed_unchanged(self, fake_frontend, source_file: Path) -> None:
        tokenize(["/usr/bin/cc", "-c", str(source_file)], True, frontend=fake_frontend)

        assert fake_frontend.calls[0][0] == ["/usr/bin/cc", "-c", str(source_file)]

    def test_is_full_equivalence(self, fake_frontend, source_file: Path) -> None:
        flags = ["-DX=1", str(source_file)]

        partial = tokenize(flags, False, frontend=fake_frontend)
        full = tokenize([PLACEHOLDER_EXECUTABLE, *flags], True, frontend=fake_frontend)

        assert partial == full
        assert fake_frontend.calls[0] == fake_frontend.calls[1]

    def test_command_uses_its_working_directory(self, fake_frontend, source_file: Path) -> None:
        command = CompileCommand(("cc", "-c", "main.c"), source_file.parent, source_file)

        tokens = tokenize_command(command, frontend=fake_frontend)

        assert fake_frontend.calls[0] == (["cc", "-c", "main.c"], source_file.parent)
        assert tokens == tokenize(
            list(command.argv), True, working_directory=command.working_directory, frontend=fake_frontend
        )

    def test_produces_classified_tokens(self, fake_frontend, source_file: Path) -> None:
        tokens = tokenize([str(source_file)], False, frontend=fake_frontend)

        assert tokens[0].type == TokenType.INCLUSION_DIRECTIVE
        assert tokens[1].type == TokenType.MACRO_DEFINITION
        assert tokens[-1].type == TokenType.COMMENT
        assert [token.to_dict()["type"] for token in tokens[:2]] == ["inclusionDirective", "macroDefinition"]

    def test_results_are_not_cached(self, fake_frontend, source_file: Path) -> None:
        first = tokenize([str(source_file)], False, frontend=fake_frontend)
        source_file.write_text("int x;\n", encoding="utf-8")
        second = tokenize([str(source_file)], False, frontend=fake_frontend)

        assert first != second
        assert len(fake_frontend.calls) == 2

    def test_concurrent_calls_agree(self, fake_frontend, source_file: Path) -> None:
        expected = tokenize([str(source_file)], False, frontend=fake_frontend)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: tokenize([str(source_file)], False, frontend=fake_frontend), range(8)))

        assert all(result == expected for result in results)


# ###############
# Failures
# ###############


class TestFailures:
    def test_empty_full_argv(self, fake_frontend) -> None:
        with pytest.raises(InvocationError, match="empty"):
            tokenize([], True, frontend=fake_frontend)
        assert fake_frontend.calls == []

    def test_rejected_arguments(self, fake_frontend, source_file: Path) -> None:
        with pytest.raises(InvocationError) as exc_info:
            tokenize(["--reject-me", str(source_file)], False, frontend=fake_frontend)

        assert exc_info.value.diagnostics == ("unknown argument: '--reject-me'",)

    def test_missing_source(self, fake_frontend, tmp_path: Path) -> None:
        with pytest.raises(InvocationError, match="Cannot read"):
            tokenize([str(tmp_path / "absent.c")], False, frontend=fake_frontend)

    def test_rejected_arguments_with_cancel_event(self, fake_frontend, source_file: Path) -> None:
        with pytest.raises(InvocationError):
            tokenize(["--reject", str(source_file)], False, cancel=threading.Event(), frontend=fake_frontend)


# ###############
# Cancellation
# ###############


class TestCancellation:
    def test_cancelled_before_start(self, fake_frontend, source_file: Path) -> None:
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(CancellationError):
            tokenize([str(source_file)], False, cancel=cancel, frontend=fake_frontend)
        assert fake_frontend.calls == []

    def test_unset_event_completes_normally(self, fake_frontend, source_file: Path) -> None:
        tokens = tokenize([str(source_file)], False, cancel=threading.Event(), frontend=fake_frontend)

        assert tokens == tokenize([str(source_file)], False, frontend=fake_frontend)

    def test_cancel_aborts_a_blocked_frontend_promptly(self, source_file: Path) -> None:
        frontend = _BlockingFrontend()
        cancel = threading.Event()
        timer = threading.Timer(0.1, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(CancellationError):
                tokenize([str(source_file)], False, cancel=cancel, frontend=frontend)
            assert time.monotonic() - started < 5
            assert frontend.entered.is_set()
        finally:
            frontend.release.set()
            timer.cancel()

    def test_cancel_after_lexing_returns_no_tokens(self, fake_frontend, source_file: Path) -> None:
        cancel = threading.Event()
        frontend = _CancellingFrontend(fake_frontend, cancel)

        with pytest.raises(CancellationError):
            tokenize([str(source_file)], False, cancel=cancel, frontend=frontend)

    def test_abandoned_calls_do_not_delay_new_ones(self, fake_frontend, source_file: Path) -> None:
        blocked = [_BlockingFrontend() for _ in range(40)]
        try:
            for frontend in blocked:
                # Cancelled as soon as the frontend starts, which leaves it blocked.
                with pytest.raises(CancellationError):
                    tokenize([str(source_file)], False, cancel=frontend.entered, frontend=frontend)

            started = time.monotonic()
            tokens = tokenize([str(source_file)], False, cancel=threading.Event(), frontend=fake_frontend)

            assert time.monotonic() - started < 5
            assert tokens == tokenize([str(source_file)], False, frontend=fake_frontend)
        finally:
            for frontend in blocked:
                frontend.release.set()
