# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Locate the project's Gemfile and read its lock file."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import ConfigurationError

_BUNDLED_WITH: Final[str] = "BUNDLED WITH"
_PINNED_VERSION: Final[re.Pattern[str]] = re.compile(r"^\d+")


@dataclass(frozen=True, slots=True)
class GemfileSet:
    """Gemfile and the lock file Bundler pairs with it.

    ``lockfile`` is the path Bundler would use; it may not exist yet.
    """

    gemfile: Path
    lockfile: Path

    @property
    def has_lockfile(self) -> bool:
        return self.lockfile.is_file()


def detect_gemfiles(environ: Mapping[str, str], root: Path) -> GemfileSet | None:
    """Return the Gemfile used under ``root`` or ``None`` when the project has none.

    ``BUNDLE_GEMFILE`` takes precedence, then ``Gemfile``, then ``gems.rb``.

    Raises:
        ConfigurationError: If ``BUNDLE_GEMFILE`` names a missing file.
    """

    override = environ.get("BUNDLE_GEMFILE", "")
    gemfile = root / (override or "Gemfile")
    if gemfile.is_file():
        return GemfileSet(gemfile=gemfile, lockfile=gemfile.with_name(f"{gemfile.name}.lock"))
    if override:
        raise ConfigurationError(f"$BUNDLE_GEMFILE is set to {override} but does not exist")
    gems_rb = root / "gems.rb"
    if gems_rb.is_file():
        return GemfileSet(gemfile=gems_rb, lockfile=root / "gems.locked")
    return None


def read_lockfile(path: Path) -> bytes:
    """Return the raw bytes of the lock file at ``path``."""

    return path.read_bytes()


def read_bundled_with(contents: bytes) -> str | None:
    """Return the Bundler version recorded under ``BUNDLED WITH``.

    The section is only honoured when the following line starts with a digit.
    """

    lines = contents.decode("utf-8", errors="replace").splitlines()
    for index, line in enumerate(lines):
        if line.strip() != _BUNDLED_WITH:
            continue
        if index + 1 < len(lines):
            candidate = lines[index + 1].strip()
            if _PINNED_VERSION.match(candidate):
                return candidate
        return None
    return None


def lockfile_digest(contents: bytes) -> str:
    """Return the SHA-256 hex digest of ``contents``."""

    return hashlib.sha256(contents).hexdigest()


__all__ = ["GemfileSet", "detect_gemfiles", "lockfile_digest", "read_bundled_with", "read_lockfile"]
