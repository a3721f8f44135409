# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runtime installers and the helper choosing between them."""

from __future__ import annotations

from ..catalog import VersionCatalog
from ..environment import EnvironmentFacts
from ..logging import SetupLogger
from ..process_utils import CommandRunner
from ..resolver import ResolvedVersion
from .base import InstalledRuntime, RuntimeInstaller
from .download import DownloadError, Downloader, HttpDownloader
from .ruby_builder import RubyBuilderInstaller
from .windows import WindowsInstaller


def select_installer(
    catalog: VersionCatalog,
    resolved: ResolvedVersion,
    *,
    facts: EnvironmentFacts,
    downloader: Downloader,
    runner: CommandRunner,
    self_hosted_reason: str | None = None,
    logger: SetupLogger | None = None,
) -> RuntimeInstaller:
    """Return the installer serving ``resolved`` on the runner's platform."""

    if catalog.uses_windows_builds(facts.platform(), resolved.engine):
        return WindowsInstaller(
            catalog=catalog,
            facts=facts,
            downloader=downloader,
            runner=runner,
            self_hosted_reason=self_hosted_reason,
            logger=logger,
        )
    return RubyBuilderInstaller(
        facts=facts,
        downloader=downloader,
        runner=runner,
        self_hosted_reason=self_hosted_reason,
        logger=logger,
    )


__all__ = [
    "DownloadError",
    "Downloader",
    "HttpDownloader",
    "InstalledRuntime",
    "RubyBuilderInstaller",
    "RuntimeInstaller",
    "WindowsInstaller",
    "select_installer",
]
