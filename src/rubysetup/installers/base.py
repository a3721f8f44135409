# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installer abstraction shared by the prebuilt archive sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..environment import EnvironmentFacts
from ..errors import ConfigurationError, UnsupportedCombinationError
from ..logging import SetupLogger, measure
from ..process_utils import CommandRunner
from ..resolver import ResolvedVersion
from .download import DownloadError, Downloader, temporary_archive_path
from .toolcache import (
    find_in_tool_cache,
    mark_complete,
    self_hosted_instructions,
    should_use_tool_cache,
    tool_cache_prefix,
)


@dataclass(frozen=True, slots=True)
class InstalledRuntime:
    """Where a runtime lives once installed.

    Attributes:
        prefix: Root directory of the runtime.
        bin_dirs: Directories to prepend to ``PATH``.
        from_tool_cache: ``True`` when an existing tool cache entry was reused.
    """

    prefix: Path
    bin_dirs: tuple[Path, ...]
    from_tool_cache: bool = False


class RuntimeInstaller(ABC):
    """Strategy object placing a resolved runtime on disk.

    Subclasses decide the non tool cache prefix and how an archive is fetched
    and unpacked; prefix selection, self-hosted handling and completion
    markers are shared.
    """

    def __init__(
        self,
        *,
        facts: EnvironmentFacts,
        downloader: Downloader,
        runner: CommandRunner,
        self_hosted_reason: str | None = None,
        logger: SetupLogger | None = None,
    ) -> None:
        self._facts = facts
        self._downloader = downloader
        self._runner = runner
        self._self_hosted_reason = self_hosted_reason
        self._logger = logger or SetupLogger()

    @property
    def self_hosted(self) -> bool:
        return self._self_hosted_reason is not None

    def install(self, resolved: ResolvedVersion) -> InstalledRuntime:
        """Install ``resolved`` unless a complete copy already exists.

        Raises:
            ConfigurationError: On self-hosted runners missing the runtime in the tool cache.
            UnsupportedCombinationError: If no archive exists for the platform.
            InstallStepError: If download or extraction fails.
        """

        platform = self._facts.platform()
        use_tool_cache = should_use_tool_cache(resolved.engine, resolved.version, self_hosted=self.self_hosted)
        tool_cache = self._facts.tool_cache

        if use_tool_cache and tool_cache is not None:
            cached = find_in_tool_cache(tool_cache, resolved.engine, resolved.version, platform.arch)
            if cached is not None:
                self._logger.info(f"Using {resolved} from the tool cache at {cached}")
                return InstalledRuntime(prefix=cached, bin_dirs=self._bin_dirs(cached), from_tool_cache=True)
            prefix = tool_cache_prefix(tool_cache, resolved.engine, resolved.version, platform.arch)
            if self._self_hosted_reason is not None:
                raise ConfigurationError(
                    self_hosted_instructions(platform, resolved.engine, resolved.version, prefix, self._self_hosted_reason),
                )
        elif use_tool_cache and self.self_hosted:
            raise ConfigurationError("RUNNER_TOOL_CACHE must be set on self-hosted runners")
        else:
            prefix = self._default_prefix(resolved)

        url = self.download_url(resolved)
        with measure("Downloading Ruby", self._logger):
            self._logger.info(url)
            archive = self._download(url, resolved)
        with measure("Extracting  Ruby", self._logger):
            self._extract(archive, prefix)

        if use_tool_cache and tool_cache is not None:
            mark_complete(prefix)
        return InstalledRuntime(prefix=prefix, bin_dirs=self._bin_dirs(prefix))

    def _download(self, url: str, resolved: ResolvedVersion) -> Path:
        destination = self._archive_destination(url)
        try:
            return self._downloader.fetch(url, destination)
        except DownloadError as exc:
            if exc.status == 404:
                platform = self._facts.platform()
                raise UnsupportedCombinationError(
                    f"Unavailable version {resolved.version} for {resolved.engine} on {platform}\n"
                    f"  Cause: {exc}",
                ) from exc
            raise

    def _archive_destination(self, url: str) -> Path:
        return temporary_archive_path(self._facts.runner_temp, url.rsplit("/", 1)[-1])

    @staticmethod
    def _bin_dirs(prefix: Path) -> tuple[Path, ...]:
        return (prefix / "bin",)

    @abstractmethod
    def download_url(self, resolved: ResolvedVersion) -> str:
        """Return the archive URL for ``resolved``."""

        raise NotImplementedError

    @abstractmethod
    def _default_prefix(self, resolved: ResolvedVersion) -> Path:
        raise NotImplementedError

    @abstractmethod
    def _extract(self, archive: Path, prefix: Path) -> None:
        raise NotImplementedError


__all__ = ["InstalledRuntime", "RuntimeInstaller"]
