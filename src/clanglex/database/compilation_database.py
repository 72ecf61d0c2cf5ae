# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Loader and index for ``compile_commands.json`` compilation databases.

A database is read once, validated as a whole and indexed by the canonical
path of every record's source file. Construction is all-or-nothing: a single
malformed record makes the whole load fail with :class:`ConstructionError`.
Lookups never fail; a file without build information yields an empty list.

Paths are canonicalized with :func:`os.path.realpath` so that symbolic links
and ``..`` segments resolve to one key. On case-insensitive file systems the
key is additionally case-folded. The default follows the platform convention
(Windows and macOS are case-insensitive) and can be overridden per database.
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, model_validator

from clanglex.model.command import CompileCommand

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

COMPILATION_DATABASE_NAME = "compile_commands.json"


class ConstructionError(Exception):
    """Raised when a compilation database is missing, unreadable, or invalid."""


def default_case_sensitivity() -> bool:
    """Return whether paths are compared case-sensitively on this platform."""
    return not (sys.platform.startswith("win") or sys.platform == "darwin")


def canonical_path_key(path: str | os.PathLike[str], *, case_sensitive: bool) -> str:
    """Return the index key for *path*.

    The path is made absolute against the process working directory, symbolic
    links are resolved, and the result is case-folded when *case_sensitive*
    is false.
    """
    resolved = os.path.realpath(os.fspath(path))
    return resolved if case_sensitive else resolved.casefold()


class CompilationDatabase:
    """An immutable, indexed snapshot of a ``compile_commands.json`` file.

    Args:
        directory: Directory containing ``compile_commands.json``.
        case_sensitive: Whether path lookups distinguish case. ``None`` selects
            the platform convention.

    Raises:
        ConstructionError: If the file is absent, unreadable, not a JSON array
            of valid records, or any record is malformed.
    """

    def __init__(self, directory: str | os.PathLike[str], *, case_sensitive: bool | None = None) -> None:
        self._directory = Path(os.path.abspath(os.fspath(directory)))
        self._case_sensitive = default_case_sensitivity() if case_sensitive is None else case_sensitive

        database_file = self._directory / COMPILATION_DATABASE_NAME
        records = _load_records(database_file)

        commands: list[CompileCommand] = []
        index: dict[str, list[CompileCommand]] = {}
        for position, record in enumerate(records):
            command = _to_compile_command(record, self._directory, f"{database_file}[{position}]")
            commands.append(command)
            key = canonical_path_key(command.source_file, case_sensitive=self._case_sensitive)
            index.setdefault(key, []).append(command)

        self._commands: tuple[CompileCommand, ...] = tuple(commands)
        self._index: dict[str, tuple[CompileCommand, ...]] = {key: tuple(value) for key, value in index.items()}
        logger.debug(
            "Loaded %d compile command(s) for %d file(s) from %s",
            len(self._commands),
            len(self._index),
            database_file,
        )

    @property
    def directory(self) -> Path:
        """The directory the database was loaded from."""
        return self._directory

    @property
    def case_sensitive(self) -> bool:
        return self._case_sensitive

    @property
    def files(self) -> list[Path]:
        """Source files with at least one command, in order of first appearance."""
        return [entries[0].source_file for entries in self._index.values()]

    def all_commands(self) -> list[CompileCommand]:
        """Return every compile command in record order."""
        return list(self._commands)

    def lookup(self, path: str | os.PathLike[str]) -> list[CompileCommand]:
        """Return the compile commands for *path*, in record order.

        Matching is exact equality of canonical paths. Several commands may
        build the same file; all of them are returned. An unknown file yields
        an empty list.
        """
        key = canonical_path_key(path, case_sensitive=self._case_sensitive)
        return list(self._index.get(key, ()))

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self) -> str:
        return f"CompilationDatabase({str(self._directory)!r}, commands={len(self._commands)})"


# ################
# Implementation
# ################


class _CompileCommandRecord(BaseModel):
    """One element of the ``compile_commands.json`` array."""

    model_config = ConfigDict(extra="ignore", strict=True, frozen=True)

    directory: str
    file: str
    command: str | None = None
    arguments: list[str] | None = None

    @model_validator(mode="after")
    def _exactly_one_command_form(self) -> _CompileCommandRecord:
        if (self.command is None) == (self.arguments is None):
            raise ValueError("record must contain exactly one of 'command' or 'arguments'")
        return self


_RECORDS_ADAPTER = TypeAdapter(list[_CompileCommandRecord])


def _load_records(database_file: Path) -> list[_CompileCommandRecord]:
    """Read and validate the whole record array."""
    try:
        raw = database_file.read_bytes()
    except FileNotFoundError:
        raise ConstructionError(f"Compilation database not found: {database_file}") from None
    except OSError as exc:
        raise ConstructionError(f"Cannot read compilation database '{database_file}': {exc}") from exc

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ConstructionError(f"Compilation database '{database_file}' is not valid UTF-8: {exc}") from exc

    try:
        return _RECORDS_ADAPTER.validate_json(text)
    except ValidationError as exc:
        raise ConstructionError(f"Invalid compilation database '{database_file}': {exc}") from exc


def _split_command(command: str, location: str) -> list[str]:
    """Split a shell-escaped command line into argv using POSIX quoting rules."""
    try:
        return shlex.split(command, posix=True)
    except ValueError as exc:
        raise ConstructionError(f"{location}: cannot split 'command': {exc}") from exc


def _to_compile_command(record: _CompileCommandRecord, database_directory: Path, location: str) -> CompileCommand:
    if record.arguments is not None:
        argv = list(record.arguments)
    else:
        argv = _split_command(record.command or "", location)
    if not argv:
        raise ConstructionError(f"{location}: command line is empty")

    working_directory = Path(os.path.normpath(database_directory / record.directory))
    source_file = Path(os.path.realpath(working_directory / record.file))
    return CompileCommand(argv=tuple(argv), working_directory=working_directory, source_file=source_file)
