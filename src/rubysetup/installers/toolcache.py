# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Hosted tool cache layout shared by every installer."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Final

from ..constants import DEFAULT_ENGINE, TOOL_CACHE_COMPLETE_SUFFIX, TOOL_CACHE_ENGINE_NAMES
from ..platforms import Platform
from ..versions import is_head_version

# Runner images published by GitHub; anything else is treated as self-hosted.
GITHUB_HOSTED_PLATFORMS: Final[frozenset[str]] = frozenset(
    {
        "ubuntu-22.04-x64",
        "ubuntu-22.04-arm64",
        "ubuntu-24.04-x64",
        "ubuntu-24.04-arm64",
        "macos-13-x64",
        "macos-14-arm64",
        "macos-15-x64",
        "macos-15-arm64",
        "macos-26-arm64",
        "windows-2019-x64",
        "windows-2022-x64",
        "windows-2025-x64",
        "windows-11-arm64",
    },
)


def self_hosted_reason(platform: Platform, environ: Mapping[str, str], *, forced: bool = False) -> str | None:
    """Return why the runner counts as self-hosted, or ``None`` for hosted runners."""

    if forced:
        return "the self-hosted input was set"
    if environ.get("RUNNER_ENVIRONMENT") == "self-hosted":
        return "RUNNER_ENVIRONMENT=self-hosted"
    if platform.id not in GITHUB_HOSTED_PLATFORMS:
        return f"the platform {platform.id} does not match a GitHub-hosted runner image"
    return None


def should_use_tool_cache(engine: str, version: str, *, self_hosted: bool) -> bool:
    """Return ``True`` when the runtime belongs in ``RUNNER_TOOL_CACHE``.

    Stable CRuby releases are preinstalled there on hosted runners; self-hosted
    runners keep every runtime there so it survives between jobs.
    """

    return (engine == DEFAULT_ENGINE and not is_head_version(version)) or self_hosted


def tool_cache_prefix(root: Path, engine: str, version: str, arch: str) -> Path:
    """Return ``<root>/<Engine>/<version>/<arch>``."""

    return root / TOOL_CACHE_ENGINE_NAMES.get(engine, engine) / version / arch


def complete_marker(prefix: Path) -> Path:
    """Return the marker file written next to a fully extracted prefix."""

    return prefix.with_name(f"{prefix.name}{TOOL_CACHE_COMPLETE_SUFFIX}")


def find_in_tool_cache(root: Path | None, engine: str, version: str, arch: str) -> Path | None:
    """Return the tool cache prefix when it is present and marked complete."""

    if root is None:
        return None
    prefix = tool_cache_prefix(root, engine, version, arch)
    if prefix.is_dir() and complete_marker(prefix).is_file():
        return prefix
    return None


def mark_complete(prefix: Path) -> Path:
    """Create the completion marker for ``prefix`` and return it."""

    marker = complete_marker(prefix)
    marker.touch()
    return marker


def self_hosted_instructions(platform: Platform, engine: str, version: str, prefix: Path, reason: str) -> str:
    """Return the message explaining how to provision Ruby on a self-hosted runner."""

    definition = version if engine == DEFAULT_ENGINE else f"{engine}-{version}"
    return (
        f"The current runner ({platform.id}) was detected as self-hosted because {reason}.\n"
        "In such a case, you should install Ruby in the $RUNNER_TOOL_CACHE yourself, "
        "for example using https://github.com/rbenv/ruby-build\n"
        f"$ ruby-build {definition} {prefix}\n"
        "Once that completes successfully, mark it as complete with:\n"
        f"$ touch {complete_marker(prefix)}\n"
        "It is your responsibility to ensure installing Ruby like that is not done in parallel.\n"
    )


__all__ = [
    "GITHUB_HOSTED_PLATFORMS",
    "complete_marker",
    "find_in_tool_cache",
    "mark_complete",
    "self_hosted_instructions",
    "self_hosted_reason",
    "should_use_tool_cache",
    "tool_cache_prefix",
]
