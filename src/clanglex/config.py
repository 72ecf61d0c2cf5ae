# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the clanglex tool configuration file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".clanglex.yaml"


class ConfigError(Exception):
    """Raised when a tool configuration file is invalid or cannot be loaded."""


@dataclass
class ToolConfig:
    """Settings used when resolving compile commands and loading libclang.

    Attributes:
        compiler: Compiler executable for synthesized fallback commands.
        extra_flags: Flags inserted into every resolved command, before ``--``.
        fallback_flags: Flags used when no compilation database knows the file.
        build_directory: Directory searched first for ``compile_commands.json``.
            When loaded from a file, a relative value is resolved against the
            directory containing that file.
        libclang_file: Explicit path to the libclang shared library.
    """

    compiler: str = "clang"
    extra_flags: list[str] = field(default_factory=list)
    fallback_flags: list[str] = field(default_factory=list)
    build_directory: str | None = None
    libclang_file: str | None = None


def load_tool_config(path: Path) -> ToolConfig:
    """Load and parse a clanglex configuration file.

    Args:
        path: Path to the `.clanglex.yaml` file.

    Returns:
        A ToolConfig instance populated from the file. An empty file yields the defaults.
        A relative ``build-directory`` is made absolute against the file's directory.

    Raises:
        ConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}") from None
    except OSError as exc:
        raise ConfigError(f"Cannot read config file: {exc}") from exc

    config = _parse_tool_config(text, source_label=str(path))
    if config.build_directory is not None:
        config.build_directory = os.path.normpath(path.parent.absolute() / config.build_directory)
    return config


def find_tool_config(source_file: str | os.PathLike[str]) -> ToolConfig | None:
    """Load the nearest configuration file above *source_file*.

    Every directory containing *source_file* is searched, nearest first, for
    a file named :data:`CONFIG_FILE_NAME`.

    Returns:
        The loaded configuration, or ``None`` when no directory has one.

    Raises:
        ConfigError: If the nearest configuration file is invalid.
    """
    for directory in Path(os.path.abspath(os.fspath(source_file))).parents:
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            logger.debug("Using tool configuration %s", candidate)
            return load_tool_config(candidate)
    return None


# ################
# Implementation
# ################

_KNOWN_KEYS = frozenset({"compiler", "extra-flags", "fallback-flags", "build-directory", "libclang-file"})


def _parse_tool_config(text: str, source_label: str = "<string>") -> ToolConfig:
    """Parse configuration YAML text into a ToolConfig.

    Raises:
        ConfigError: If the YAML is invalid or a field has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return ToolConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{source_label}: configuration must be a YAML mapping")

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"{source_label}: unknown field(s) {', '.join(repr(k) for k in unknown)}")

    config = ToolConfig()
    if "compiler" in data:
        config.compiler = _require_string(data, "compiler", source_label)
    if "extra-flags" in data:
        config.extra_flags = _require_string_list(data, "extra-flags", source_label)
    if "fallback-flags" in data:
        config.fallback_flags = _require_string_list(data, "fallback-flags", source_label)
    if "build-directory" in data:
        config.build_directory = _require_string(data, "build-directory", source_label)
    if "libclang-file" in data:
        config.libclang_file = _require_string(data, "libclang-file", source_label)
    return config


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    value = mapping[key]
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{source_label}: '{key}' must be a non-empty string")
    return value


def _require_string_list(mapping: dict[str, object], key: str, source_label: str) -> list[str]:
    value = mapping[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{source_label}: '{key}' must be a list of strings")
    return list(value)
