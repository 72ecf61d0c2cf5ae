#!/usr/bin/env python3
# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run all CI checks locally: libclang probe, format, lint, type check, tests, and build."""

import pathlib
import subprocess
import sys
import time

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: list[tuple[str, list[str]]] = [
    ("libclang probe", ["uv", "run", "python", "-c", "from clang import cindex; cindex.Index.create()"]),
    ("Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"]),
    ("Lint", ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"]),
    ("Type check", ["uv", "run", "ty", "check", "src/"]),
    ("Tests", ["uv", "run", "pytest", "--cov=clanglex", "--cov-report=term-missing"]),
    ("Build", ["uv", "build"]),
]


def main() -> int:
    """Run every CI step, print a summary, and return the process exit code."""
    root = pathlib.Path(__file__).parent.parent
    results = [_run_step(name, cmd, root) for name, cmd in STEPS]
    _print_banner("Summary")
    for name, passed, elapsed in results:
        colour = chalk.green if passed else chalk.red
        print(colour(f"  {'PASS' if passed else 'FAIL'}  {name} ({elapsed:.1f}s)"))
    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################


def _print_banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}")
    print(chalk.blue(title))
    print(sep)


def _run_step(name: str, cmd: list[str], root: pathlib.Path) -> tuple[str, bool, float]:
    _print_banner(name)
    start = time.monotonic()
    proc = subprocess.run(cmd, cwd=root)
    return name, proc.returncode == 0, time.monotonic() - start


if __name__ == "__main__":
    sys.exit(main())
