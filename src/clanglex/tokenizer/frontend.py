# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Raw lexical frontends.

A frontend turns a compiler command line into the bytes of the main source
file plus the flat stream of primitive tokens the language lexer sees in it,
without macro expansion. The default frontend is libclang.

libclang translation units and indices are not shared between threads:
:class:`LibclangFrontend` creates a fresh index for every call, so one
frontend instance may be used concurrently.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from clang import cindex

from clanglex.config import ToolConfig

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class RawTokenKind(enum.Enum):
    """Primitive token categories reported by the frontend lexer."""

    PUNCTUATION = "punctuation"
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    COMMENT = "comment"


@dataclass(frozen=True)
class RawToken:
    """A primitive lexical unit.

    Attributes:
        kind: The lexer's category for the unit.
        spelling: The source text of the unit.
        start: Byte offset of the first byte.
        end: Byte offset one past the last byte.
    """

    kind: RawTokenKind
    spelling: str
    start: int
    end: int


@dataclass(frozen=True)
class LexResult:
    """The main file's contents and its primitive tokens in source order."""

    source: bytes
    tokens: tuple[RawToken, ...]


class InvocationError(Exception):
    """Raised when the frontend rejects a command line, cannot read the source, or fails.

    Attributes:
        diagnostics: Messages reported by the frontend, if any.
    """

    def __init__(self, message: str, diagnostics: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.diagnostics = tuple(diagnostics)


class LexicalFrontend(Protocol):
    """Anything that can raw-lex the main file of a command line."""

    def lex(self, argv: Sequence[str], working_directory: Path | None) -> LexResult:
        """Lex the source file named in *argv*.

        Args:
            argv: Full command line; ``argv[0]`` is the compiler executable.
            working_directory: Directory relative paths resolve against, or
                ``None`` for the process working directory.

        Raises:
            InvocationError: If the command line or source cannot be processed.
        """
        ...


class LibclangFrontend:
    """Raw-lexes with libclang through the ``clang.cindex`` bindings.

    The main file is read once and handed to libclang as an unsaved file, so
    token offsets always index the returned bytes. Token spellings are decoded
    from those bytes with replacement characters; sources need not be UTF-8.

    Args:
        library_file: Path to the libclang shared library. Only honoured if
            libclang has not been loaded yet in this process.
    """

    def __init__(self, library_file: str | None = None) -> None:
        self._library_file = library_file

    @classmethod
    def from_config(cls, config: ToolConfig) -> LibclangFrontend:
        """Create a frontend that loads the library named in *config*, if any."""
        return cls(library_file=config.libclang_file)

    @property
    def library_file(self) -> str | None:
        return self._library_file

    def lex(self, argv: Sequence[str], working_directory: Path | None) -> LexResult:
        if not argv:
            raise InvocationError("Cannot invoke the frontend with an empty command line")
        _configure_library(self._library_file)

        args = [*_driver_mode_flags(argv), *argv[1:]]
        if working_directory is not None:
            args = ["-working-directory", str(working_directory), *args]

        # The bytes handed to libclang are the bytes the offsets refer to.
        main_file = _main_input(argv, working_directory)
        source = _read_source(main_file) if main_file is not None else b""
        unsaved_files = [(str(main_file), source)] if main_file is not None else []

        try:
            index = cindex.Index.create()
            translation_unit = index.parse(
                None,
                args=args,
                unsaved_files=unsaved_files,
                options=cindex.TranslationUnit.PARSE_SKIP_FUNCTION_BODIES,
            )
        except cindex.TranslationUnitLoadError as exc:
            raise InvocationError(f"libclang could not process the command line: {exc}") from exc
        except cindex.LibclangError as exc:
            raise InvocationError(f"libclang is unavailable: {exc}") from exc

        _check_command_line_diagnostics(translation_unit)

        parsed_file = _resolve(translation_unit.spelling, working_directory)
        if main_file is None or not _same_file(parsed_file, main_file):
            logger.debug("Main file %s was not recognized on the command line; reparsing", parsed_file)
            main_file = parsed_file
            source = _read_source(main_file)
            try:
                translation_unit.reparse(unsaved_files=[(str(main_file), source)])
            except cindex.TranslationUnitLoadError as exc:
                raise InvocationError(f"libclang could not reparse '{main_file}': {exc}") from exc

        if not source:
            return LexResult(source=source, tokens=())

        extent = translation_unit.get_extent(translation_unit.spelling, (0, len(source)))
        tokens = tuple(
            RawToken(
                kind=_TOKEN_KINDS[token.kind.name],
                spelling=source[token.extent.start.offset : token.extent.end.offset].decode("utf-8", errors="replace"),
                start=token.extent.start.offset,
                end=token.extent.end.offset,
            )
            for token in translation_unit.get_tokens(extent=extent)
        )
        logger.debug("libclang produced %d raw token(s) for %s", len(tokens), main_file)
        return LexResult(source=source, tokens=tokens)


# ################
# Implementation
# ################

_TOKEN_KINDS: dict[str, RawTokenKind] = {
    "PUNCTUATION": RawTokenKind.PUNCTUATION,
    "KEYWORD": RawTokenKind.KEYWORD,
    "IDENTIFIER": RawTokenKind.IDENTIFIER,
    "LITERAL": RawTokenKind.LITERAL,
    "COMMENT": RawTokenKind.COMMENT,
}

_CXX_DRIVER = re.compile(r"\+\+(-[0-9.]+)?$")
_CL_DRIVER = re.compile(r"^(clang-)?cl$")

_library_lock = threading.Lock()


def _configure_library(library_file: str | None) -> None:
    """Point the bindings at *library_file* unless libclang is already loaded."""
    if library_file is None:
        return
    with _library_lock:
        if not cindex.Config.loaded:
            cindex.Config.set_library_file(library_file)


def _driver_mode_flags(argv: Sequence[str]) -> list[str]:
    """Infer the clang driver mode libclang would otherwise take from argv[0]."""
    if any(arg.startswith("--driver-mode=") for arg in argv[1:]):
        return []
    name = os.path.basename(argv[0]).lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    if _CL_DRIVER.match(name):
        return ["--driver-mode=cl"]
    if _CXX_DRIVER.search(name):
        return ["--driver-mode=g++"]
    return []


def _check_command_line_diagnostics(translation_unit: cindex.TranslationUnit) -> None:
    """Raise for errors that concern the command line rather than the source text."""
    messages = [
        diagnostic.spelling
        for diagnostic in translation_unit.diagnostics
        if diagnostic.severity >= cindex.Diagnostic.Error and diagnostic.location.file is None
    ]
    if messages:
        raise InvocationError(f"libclang rejected the command line: {messages[0]}", messages)


def _resolve(file_name: str, working_directory: Path | None) -> Path:
    path = Path(file_name)
    if path.is_absolute() or working_directory is None:
        return path
    return working_directory / path


def _same_file(first: Path, second: Path) -> bool:
    return os.path.realpath(first) == os.path.realpath(second)


def _read_source(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise InvocationError(f"Cannot read source file '{path}': {exc}", [str(exc)]) from exc


# fmt: off
_SOURCE_SUFFIXES = frozenset(
    {".c", ".i", ".cc", ".cp", ".cpp", ".cxx", ".c++", ".ii", ".m", ".mi", ".mm", ".mii", ".cu",
     ".h", ".hh", ".hpp", ".hxx", ".h++", ".inl"}
)

# Options whose value is the following argument and may look like a file name.
_SEPARATE_VALUE_OPTIONS = frozenset(
    {
        "-o", "-x", "-include", "-imacros", "-include-pch", "-MF", "-MT", "-MQ", "-I", "-isystem", "-iquote",
        "-idirafter", "-iprefix", "-iwithprefix", "-D", "-U", "-Xclang", "-Xpreprocessor", "-Xassembler",
        "-Xlinker", "-isysroot", "--sysroot", "-target", "-arch", "-working-directory",
    }
)
# fmt: on


def _main_input(argv: Sequence[str], working_directory: Path | None) -> Path | None:
    """Return the absolute path of the source file named in *argv*, if it can be recognized.

    Every argument after ``--`` is an input; before it, an argument is taken
    as the input when it is not an option, not the value of an option, and
    has a C-family source suffix. ``cl``-style command lines, whose options
    may also start with ``/``, are not inspected.
    """
    if "--driver-mode=cl" in [*_driver_mode_flags(argv), *argv[1:]]:
        return None
    candidate: str | None = None
    previous = ""
    after_separator = False
    for arg in argv[1:]:
        if after_separator:
            candidate = arg
        elif arg == "--":
            after_separator = True
        elif (
            not arg.startswith("-")
            and previous not in _SEPARATE_VALUE_OPTIONS
            and os.path.splitext(arg)[1].lower() in _SOURCE_SUFFIXES
        ):
            candidate = arg
        previous = arg
    if candidate is None:
        return None
    path = Path(candidate)
    if not path.is_absolute() and working_directory is not None:
        path = working_directory / path
    return Path(os.path.abspath(path))
