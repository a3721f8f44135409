# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Read the Ruby version a project pins in its version files."""

from __future__ import annotations

import re
import tomllib
from pathlib import Path
from typing import Final

from .constants import MISE_TOML_FILE, RUBY_VERSION_FILE, TOOL_VERSIONS_FILE
from .errors import ConfigurationError

_TOOL_VERSIONS_LINE: Final[re.Pattern[str]] = re.compile(r"^ruby\s+([^#]+)(?:#.*)?$")
VERSION_FILES: Final[tuple[str, ...]] = (RUBY_VERSION_FILE, TOOL_VERSIONS_FILE, MISE_TOML_FILE)


def _from_ruby_version(path: Path) -> str:
    return path.read_text(encoding="utf-8").strip()


def _from_tool_versions(path: Path) -> str:
    for line in path.read_text(encoding="utf-8").splitlines():
        match = _TOOL_VERSIONS_LINE.match(line.strip())
        if match:
            return match.group(1).strip()
    raise ConfigurationError(f"No ruby entry found in {path.name}")


def _from_mise_toml(path: Path) -> str:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Could not parse {path.name}: {exc}") from exc
    tools = data.get("tools")
    ruby = tools.get("ruby") if isinstance(tools, dict) else None
    if isinstance(ruby, list) and ruby:
        ruby = ruby[0]
    if isinstance(ruby, dict):
        ruby = ruby.get("version")
    if not isinstance(ruby, str) or not ruby.strip():
        raise ConfigurationError(f"No tools.ruby entry found in {path.name}")
    return ruby.strip()


_READERS = {
    RUBY_VERSION_FILE: _from_ruby_version,
    TOOL_VERSIONS_FILE: _from_tool_versions,
    MISE_TOML_FILE: _from_mise_toml,
}


def find_version_file(root: Path) -> Path | None:
    """Return the first project version file present under ``root``."""

    for name in VERSION_FILES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def read_project_version(root: Path) -> tuple[str, Path]:
    """Return the version pinned by the project under ``root`` and its source file.

    Files are consulted in order: ``.ruby-version``, ``.tool-versions`` and
    ``mise.toml``.

    Raises:
        ConfigurationError: If no version file exists or it names no Ruby version.
    """

    path = find_version_file(root)
    if path is None:
        raise ConfigurationError(
            "input ruby-version needs to be specified if no .ruby-version, .tool-versions or mise.toml file exists",
        )
    version = _READERS[path.name](path)
    if not version:
        raise ConfigurationError(f"{path.name} is empty")
    return version, path


__all__ = ["VERSION_FILES", "find_version_file", "read_project_version"]
