# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tokenization entry points.

Both entry points normalize their input to a full command line plus a working
directory and share one implementation. Results are never cached.

Cancellation is cooperative: callers pass a :class:`threading.Event`. With an
event, the frontend runs on a dedicated daemon thread while the caller waits on
both; setting the event raises :class:`CancellationError` promptly and the
thread's eventual result is discarded. libclang cannot be interrupted, so a
cancelled call keeps its thread until the frontend returns. Each call gets its
own thread, so abandoned calls never delay new ones. Classification checks the
event as it goes.
"""

from __future__ import annotations

import concurrent.futures
import logging
import shlex
import threading
from collections.abc import Sequence
from functools import partial
from pathlib import Path

from clanglex.model.command import CompileCommand
from clanglex.model.tokens import Token
from clanglex.tokenizer.classify import classify
from clanglex.tokenizer.frontend import InvocationError, LexicalFrontend, LexResult, LibclangFrontend

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

PLACEHOLDER_EXECUTABLE = "clang"


class CancellationError(Exception):
    """Raised when tokenization is cancelled before it completes."""


def tokenize(
    argv: Sequence[str],
    is_full: bool,
    *,
    working_directory: Path | None = None,
    cancel: threading.Event | None = None,
    frontend: LexicalFrontend | None = None,
) -> list[Token]:
    """Tokenize the source file named in a compiler command line.

    Args:
        argv: The command line. With *is_full* false it holds only compiler
            flags and :data:`PLACEHOLDER_EXECUTABLE` is prepended.
        is_full: Whether ``argv[0]`` is the compiler executable.
        working_directory: Directory the command runs in; defaults to the
            process working directory.
        cancel: Event that aborts the call once set.
        frontend: Frontend to lex with; defaults to :class:`LibclangFrontend`.

    Returns:
        Classified tokens in ascending, non-overlapping order.

    Raises:
        InvocationError: If the frontend rejects the command line, cannot read
            the source file, or fails.
        CancellationError: If *cancel* is set before the call completes.
    """
    full_argv = list(argv) if is_full else [PLACEHOLDER_EXECUTABLE, *argv]
    return _tokenize(full_argv, working_directory, cancel, frontend)


def tokenize_command(
    command: CompileCommand,
    *,
    cancel: threading.Event | None = None,
    frontend: LexicalFrontend | None = None,
) -> list[Token]:
    """Tokenize using a compile command's argv and working directory.

    Equivalent to ``tokenize(command.argv, True, working_directory=command.working_directory)``.
    """
    return _tokenize(list(command.argv), command.working_directory, cancel, frontend)


# ################
# Implementation
# ################

_CANCEL_POLL_SECONDS = 0.05


def _tokenize(
    argv: list[str],
    working_directory: Path | None,
    cancel: threading.Event | None,
    frontend: LexicalFrontend | None,
) -> list[Token]:
    if not argv:
        raise InvocationError("Cannot invoke the frontend with an empty command line")
    _raise_if_cancelled(cancel)

    frontend = frontend or LibclangFrontend()
    logger.debug("Lexing %s (cwd: %s)", shlex.join(argv), working_directory or ".")
    lexed = _run_frontend(frontend, argv, working_directory, cancel)

    checkpoint = partial(_raise_if_cancelled, cancel) if cancel is not None else None
    tokens = classify(lexed.source, lexed.tokens, checkpoint)
    _raise_if_cancelled(cancel)
    return tokens


def _run_frontend(
    frontend: LexicalFrontend,
    argv: list[str],
    working_directory: Path | None,
    cancel: threading.Event | None,
) -> LexResult:
    if cancel is None:
        return frontend.lex(argv, working_directory)

    future: concurrent.futures.Future[LexResult] = concurrent.futures.Future()
    worker = threading.Thread(
        target=_lex_into,
        args=(future, frontend, argv, working_directory),
        name="clanglex-frontend",
        daemon=True,
    )
    worker.start()
    while True:
        done, _ = concurrent.futures.wait([future], timeout=_CANCEL_POLL_SECONDS)
        if cancel.is_set():
            future.cancel()
            raise CancellationError("Tokenization was cancelled")
        if done:
            return future.result()


def _lex_into(
    future: concurrent.futures.Future[LexResult],
    frontend: LexicalFrontend,
    argv: list[str],
    working_directory: Path | None,
) -> None:
    if not future.set_running_or_notify_cancel():
        return
    try:
        future.set_result(frontend.lex(argv, working_directory))
    except BaseException as exc:
        future.set_exception(exc)


def _raise_if_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise CancellationError("Tokenization was cancelled")
