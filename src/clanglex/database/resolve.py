# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Locate a compilation database and pick the command for a source file.

The search order matches clangd: an explicit build directory first, then the
current working directory, then every ancestor of the source file from the
nearest outward. When no database knows the file, a command is synthesized
from the tool configuration so that tokenization still has language flags.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from clanglex.config import ToolConfig, find_tool_config
from clanglex.database.compilation_database import COMPILATION_DATABASE_NAME, CompilationDatabase
from clanglex.model.command import CompileCommand

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

ARGUMENT_SEPARATOR = "--"


def find_compilation_database(
    source_file: str | os.PathLike[str],
    build_directory: str | os.PathLike[str] | None = None,
    *,
    cwd: str | os.PathLike[str] | None = None,
) -> CompilationDatabase | None:
    """Find and load the compilation database responsible for *source_file*.

    Args:
        source_file: The file whose build information is wanted.
        build_directory: Directory to try before any other.
        cwd: Directory used in place of the process working directory.

    Returns:
        The first database found, or ``None`` when no candidate directory
        contains a ``compile_commands.json`` file.

    Raises:
        ConstructionError: If the first database found is malformed.
    """
    for directory in _candidate_directories(source_file, build_directory, cwd):
        if (directory / COMPILATION_DATABASE_NAME).is_file():
            logger.debug("Using compilation database in %s", directory)
            return CompilationDatabase(directory)
    return None


def resolve_compile_command(
    source_file: str | os.PathLike[str],
    build_directory: str | os.PathLike[str] | None = None,
    config: ToolConfig | None = None,
) -> CompileCommand:
    """Return the command to use when tokenizing *source_file*.

    The first database command wins; a warning is logged when the database
    lists several. Without a matching record, the command is
    ``[compiler, *fallback_flags, "--", source_file]``. The configured extra
    flags are added to either form with :func:`insert_flags`.

    Without an explicit *config*, the nearest ``.clanglex.yaml`` above the
    source file is used, or the defaults when there is none.

    Raises:
        ConstructionError: If the database found for the file is malformed.
        ConfigError: If the discovered configuration file is invalid.
    """
    source = Path(os.path.abspath(os.fspath(source_file)))
    if config is None:
        config = find_tool_config(source) or ToolConfig()
    if build_directory is None and config.build_directory is not None:
        build_directory = config.build_directory

    command: CompileCommand | None = None

    database = find_compilation_database(source, build_directory)
    if database is not None:
        commands = database.lookup(source)
        if len(commands) > 1:
            logger.warning(
                "Compilation database %s contains %d commands for %s; using the first one",
                database.directory,
                len(commands),
                source,
            )
        if commands:
            command = commands[0]

    if command is None:
        logger.debug("No compile command recorded for %s; using fallback flags", source)
        command = CompileCommand(
            argv=(config.compiler, *config.fallback_flags, ARGUMENT_SEPARATOR, str(source)),
            working_directory=source.parent,
            source_file=source,
        )

    return insert_flags(command, config.extra_flags)


def insert_flags(command: CompileCommand, flags: list[str]) -> CompileCommand:
    """Return *command* with *flags* inserted before the first ``--`` separator.

    Flags are appended when the command has no separator.
    """
    if not flags:
        return command
    argv = list(command.argv)
    end = argv.index(ARGUMENT_SEPARATOR) if ARGUMENT_SEPARATOR in argv else len(argv)
    argv[end:end] = flags
    return replace(command, argv=tuple(argv))


# ################
# Implementation
# ################


def _candidate_directories(
    source_file: str | os.PathLike[str],
    build_directory: str | os.PathLike[str] | None,
    cwd: str | os.PathLike[str] | None,
) -> list[Path]:
    candidates: list[Path] = []
    if build_directory is not None:
        candidates.append(Path(os.path.abspath(os.fspath(build_directory))))
    candidates.append(Path(os.path.abspath(os.fspath(cwd))) if cwd is not None else Path.cwd())
    candidates.extend(Path(os.path.abspath(os.fspath(source_file))).parents)

    seen: set[Path] = set()
    unique: list[Path] = []
    for directory in candidates:
        if directory not in seen:
            seen.add(directory)
            unique.append(directory)
    return unique
