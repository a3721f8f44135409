# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installer for RubyInstaller ``.7z`` archives on hosted Windows runners."""

from __future__ import annotations

import posixpath
import shutil
from pathlib import Path

from ..catalog import VersionCatalog
from ..environment import EnvironmentFacts
from ..errors import ConfigurationError
from ..logging import SetupLogger
from ..process_utils import CommandRunner
from ..resolver import ResolvedVersion
from .base import RuntimeInstaller
from .download import Downloader

_ARCHIVE_SUFFIX = ".7z"


def archive_base(url: str) -> str:
    """Return the archive name without its ``.7z`` suffix.

    Raises:
        ConfigurationError: If ``url`` does not point at a ``.7z`` archive.
    """

    if not url.endswith(_ARCHIVE_SUFFIX):
        raise ConfigurationError(f"URL should end in .7z: {url}")
    return posixpath.basename(url)[: -len(_ARCHIVE_SUFFIX)]


class WindowsInstaller(RuntimeInstaller):
    """Install CRuby from RubyInstaller archives.

    Archives are unpacked with ``7z`` into ``RUNNER_TEMP`` and then moved to the
    prefix. The documentation tree is skipped to save extraction time.
    """

    def __init__(
        self,
        *,
        catalog: VersionCatalog,
        facts: EnvironmentFacts,
        downloader: Downloader,
        runner: CommandRunner,
        self_hosted_reason: str | None = None,
        logger: SetupLogger | None = None,
    ) -> None:
        super().__init__(
            facts=facts,
            downloader=downloader,
            runner=runner,
            self_hosted_reason=self_hosted_reason,
            logger=logger,
        )
        self._catalog = catalog

    def download_url(self, resolved: ResolvedVersion) -> str:
        return self._catalog.windows_url(resolved.version, self._facts.platform().arch)

    def _default_prefix(self, resolved: ResolvedVersion) -> Path:
        drive = self._facts.environ.get("SystemDrive", "C:")
        return Path(f"{drive}\\") / archive_base(self.download_url(resolved))

    def _extract(self, archive: Path, prefix: Path) -> None:
        base = archive_base(archive.name)
        extract_root = self._facts.runner_temp or archive.parent
        self._runner.run(
            ["7z", "x", str(archive), "-bd", f"-xr!{base}\\share\\doc", f"-o{extract_root}"],
            capture_output=True,
        )
        prefix.parent.mkdir(parents=True, exist_ok=True)
        if prefix.exists():
            shutil.rmtree(prefix)
        shutil.move(str(extract_root / base), str(prefix))


__all__ = ["WindowsInstaller", "archive_base"]
