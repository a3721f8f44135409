# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Restore, install and save state machine around ``bundle install``."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from ..constants import NO_SAVE_EVENTS
from ..logging import SetupLogger
from .backend import BackendStatus, CacheBackend, guard_backend_call, is_exact_key_match


@dataclass(frozen=True, slots=True)
class InstallOutcome:
    """Summary of one coordinated install.

    Attributes:
        from_cache: ``True`` when any cache entry was restored.
        cleaned: ``True`` when stale gems from a partial hit were removed.
        saved: ``True`` when the installed gems were stored under the full key.
        verified: ``True`` when an exact hit passed the consistency check.
        restored_key: Key of the restored entry, if any.
    """

    from_cache: bool = False
    cleaned: bool = False
    saved: bool = False
    verified: bool = False
    restored_key: str | None = None


class CacheCoordinator:
    """Drive a cache backend around the dependency install step.

    The install step always runs, since it is idempotent and reports the
    installed gems. Only keys that were not restored exactly are saved, which
    keeps every backend entry write-once.
    """

    def __init__(
        self,
        backend: CacheBackend,
        *,
        paths: Sequence[str],
        install_step: Callable[[], None],
        cleanup_step: Callable[[], None],
        verify_step: Callable[[], bool] | None = None,
        event_name: str = "",
        logger: SetupLogger | None = None,
    ) -> None:
        self._backend = backend
        self._paths = tuple(paths)
        self._install_step = install_step
        self._cleanup_step = cleanup_step
        self._verify_step = verify_step
        self._event_name = event_name
        self._logger = logger or SetupLogger()

    def install(self, lock_file: Path | None, full_key: str | None, restore_prefix: str | None) -> InstallOutcome:
        """Install dependencies, reusing and refreshing the cache.

        Args:
            lock_file: Lock file of the project or ``None`` when there is none.
            full_key: Exact key for the current lock file contents.
            restore_prefix: Prefix shared by keys of older lock file revisions.

        Returns:
            InstallOutcome: What the run did with the cache.

        Raises:
            CacheValidationError: If the backend rejects the key or paths.
            InstallStepError: If the install or cleanup step fails.
        """

        if lock_file is None or full_key is None or restore_prefix is None:
            self._install_step()
            return InstallOutcome()

        restored = guard_backend_call(
            lambda: self._backend.restore(self._paths, full_key, [restore_prefix]),
            action="restoring",
            logger=self._logger,
        )
        restored_key = restored.value if restored.ok else None
        exact = is_exact_key_match(full_key, restored_key)
        if restored_key is not None:
            self._logger.info(f"Found cache for key: {restored_key}")

        verified = False
        if exact and self._verify_step is not None:
            verified = self._verify_step()
            if not verified:
                self._logger.warn("Cached gems are inconsistent with the lock file, running a full install")

        self._install_step()

        if exact:
            return InstallOutcome(from_cache=True, verified=verified, restored_key=restored_key)

        if self._event_name in NO_SAVE_EVENTS:
            self._logger.info(f"Skipping cache cleanup and save for {self._event_name} event")
            return InstallOutcome(from_cache=restored_key is not None, restored_key=restored_key)

        cleaned = False
        if restored_key is not None:
            self._cleanup_step()
            cleaned = True

        self._logger.info(f"Saving cache with key: {full_key}")
        saved = guard_backend_call(
            lambda: self._backend.save(self._paths, full_key),
            action="saving",
            logger=self._logger,
        )
        return InstallOutcome(
            from_cache=restored_key is not None,
            cleaned=cleaned,
            saved=saved.status is BackendStatus.OK,
            restored_key=restored_key,
        )


__all__ = ["CacheCoordinator", "InstallOutcome"]
