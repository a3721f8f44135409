# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``bundle`` invocations used to configure and install project gems."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from .constants import BUNDLE_CACHE_PATH, MAX_BUNDLE_JOBS
from .errors import InstallStepError
from .logging import SetupLogger
from .process_utils import CommandRunner

_NUMERIC_START: Final[re.Pattern[str]] = re.compile(r"^\d+")


def bundle_jobs(cpu_count: int | None = None) -> int:
    """Return the ``--jobs`` value for ``bundle install``, capped at 8."""

    available = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return max(1, min(available, MAX_BUNDLE_JOBS))


def config_set_args(bundler_version: str, key: str, value: str) -> list[str]:
    """Return ``bundle config`` arguments in the syntax ``bundler_version`` understands."""

    if bundler_version.startswith("1"):
        return ["bundle", "config", "--local", key, value]
    return ["bundle", "config", "set", "--local", key, value]


class BundleSteps:
    """Run ``bundle`` subcommands in the project's working directory.

    ``bundle config`` and ``bundle lock`` pin ``BUNDLER_VERSION`` when a
    numbered Bundler was chosen, since without a lock file Bundler would pick
    the newest installed version.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        working_directory: Path,
        bundler_version: str,
        environ: Mapping[str, str] | None = None,
        logger: SetupLogger | None = None,
    ) -> None:
        self._runner = runner
        self._cwd = working_directory
        self._bundler_version = bundler_version
        self._environ = dict(environ if environ is not None else os.environ)
        self._logger = logger or SetupLogger()

    @property
    def cache_path(self) -> Path:
        """Absolute ``vendor/bundle`` directory gems are installed into."""

        return self._cwd / BUNDLE_CACHE_PATH

    def _pinned_env(self) -> dict[str, str] | None:
        if not _NUMERIC_START.match(self._bundler_version):
            return None
        self._logger.info(
            f'Setting BUNDLER_VERSION={self._bundler_version} for "bundle config|lock" commands '
            f"below to ensure Bundler {self._bundler_version} is used",
        )
        return {**self._environ, "BUNDLER_VERSION": self._bundler_version}

    def configure(self, lockfile: Path) -> None:
        """Point Bundler at :attr:`cache_path` and freeze or generate the lock file."""

        env = self._pinned_env()
        self._runner.run(config_set_args(self._bundler_version, "path", str(self.cache_path)), env=env, cwd=self._cwd)
        if lockfile.is_file():
            self._runner.run(config_set_args(self._bundler_version, "deployment", "true"), env=env, cwd=self._cwd)
        else:
            # The generated lock file feeds the cache key.
            self._runner.run(["bundle", "lock"], env=env, cwd=self._cwd)

    def install(self) -> None:
        """Run ``bundle install`` with parallel jobs."""

        self._runner.run(["bundle", "install", "--jobs", str(bundle_jobs())], cwd=self._cwd)

    def clean(self) -> None:
        """Remove gems no longer referenced by the lock file."""

        self._runner.run(["bundle", "clean"], cwd=self._cwd)

    def check(self) -> bool:
        """Return ``True`` when every locked gem is already installed."""

        try:
            self._runner.run(["bundle", "check"], cwd=self._cwd, capture_output=True)
        except InstallStepError:
            return False
        return True


__all__ = ["BundleSteps", "bundle_jobs", "config_set_args"]
