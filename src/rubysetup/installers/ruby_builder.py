# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installer for ruby-builder archives used on Linux, macOS and for non-CRuby engines."""

from __future__ import annotations

from pathlib import Path

from ..constants import (
    DEV_BUILDER_URL_TEMPLATE,
    RUBIES_DIRNAME,
    RUBY_BUILDER_RELEASES_URL,
    SUPPORTED_ARCHES,
    TRUFFLERUBY_GRAALVM,
)
from ..errors import UnsupportedCombinationError
from ..platforms import Platform
from ..resolver import ResolvedVersion
from .base import RuntimeInstaller
from .download import extract_tarball


def builder_platform(platform: Platform) -> str:
    """Return the platform suffix ruby-builder uses in archive names.

    Raises:
        UnsupportedCombinationError: For platforms without prebuilt archives.
    """

    if platform.arch not in SUPPORTED_ARCHES:
        raise UnsupportedCombinationError(f"Unknown download URL for platform {platform.id}")
    if platform.is_windows:
        return f"windows-{platform.arch}"
    if platform.is_macos:
        return f"darwin-{platform.arch}"
    if platform.is_ubuntu:
        return platform.id
    raise UnsupportedCombinationError(f"Unknown download URL for platform {platform.id}")


def dev_builder_repo(engine: str) -> str:
    """Return the repository publishing nightly head builds of ``engine``."""

    if engine == TRUFFLERUBY_GRAALVM:
        return "truffleruby-dev-builder"
    return f"{engine}-dev-builder"


def ruby_builder_url(platform: Platform, resolved: ResolvedVersion) -> str:
    """Return the release or nightly archive URL for ``resolved`` on ``platform``."""

    suffix = builder_platform(platform)
    name = f"{resolved.engine}-{resolved.version}"
    if resolved.is_head:
        base = DEV_BUILDER_URL_TEMPLATE.format(repo=dev_builder_repo(resolved.engine))
        return f"{base}/{name}-{suffix}.tar.gz"
    return f"{RUBY_BUILDER_RELEASES_URL}/download/{name}/{name}-{suffix}.tar.gz"


class RubyBuilderInstaller(RuntimeInstaller):
    """Install ``.tar.gz`` builds published by ruby-builder and the dev-builders."""

    def download_url(self, resolved: ResolvedVersion) -> str:
        return ruby_builder_url(self._facts.platform(), resolved)

    def _default_prefix(self, resolved: ResolvedVersion) -> Path:
        platform = self._facts.platform()
        if platform.is_windows:
            drive = self._facts.environ.get("SystemDrive", "C:")
            return Path(f"{drive}\\") / f"{resolved.engine}-{resolved.version}"
        return self._facts.home / RUBIES_DIRNAME / f"{resolved.engine}-{resolved.version}"

    def _extract(self, archive: Path, prefix: Path) -> None:
        extract_tarball(archive, prefix)


__all__ = ["RubyBuilderInstaller", "builder_platform", "dev_builder_repo", "ruby_builder_url"]
