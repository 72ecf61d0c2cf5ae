# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""The build invocation used to compile a single source file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class CompileCommand:
    """A normalized compiler invocation.

    Attributes:
        argv: Full command line; ``argv[0]`` is the compiler executable.
        working_directory: Absolute directory the command runs in.
        source_file: Absolute path of the file being compiled.
    """

    argv: tuple[str, ...]
    working_directory: Path
    source_file: Path

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("A compile command needs at least the compiler executable")

    @property
    def executable(self) -> str:
        return self.argv[0]

    @property
    def flags(self) -> tuple[str, ...]:
        """Everything after the executable."""
        return self.argv[1:]
