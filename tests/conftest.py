# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures and fake collaborators."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from subprocess import CompletedProcess

import pytest

from rubysetup.catalog import VersionCatalog, load_catalog
from rubysetup.errors import CacheBackendError, InstallStepError
from rubysetup.logging import SetupLogger
from rubysetup.platforms import Platform


def completed(args: Sequence[str], *, stdout: str = "", returncode: int = 0) -> CompletedProcess[str]:
    return CompletedProcess(args=list(args), returncode=returncode, stdout=stdout, stderr="")


@dataclass
class RecordedCall:
    args: list[str]
    env: Mapping[str, str] | None
    cwd: Path | None
    capture_output: bool


@dataclass
class RecordingRunner:
    """Command runner recording every call and answering from canned output."""

    outputs: dict[tuple[str, ...], str] = field(default_factory=dict)
    failures: set[tuple[str, ...]] = field(default_factory=set)
    calls: list[RecordedCall] = field(default_factory=list)

    def run(self, args, *, env=None, cwd=None, capture_output=False):  # noqa: ANN001
        argv = [str(arg) for arg in args]
        self.calls.append(RecordedCall(args=argv, env=env, cwd=cwd, capture_output=capture_output))
        for prefix in self.failures:
            if tuple(argv[: len(prefix)]) == prefix:
                raise InstallStepError(argv, 1, "", "failed")
        for prefix, stdout in self.outputs.items():
            if tuple(argv[: len(prefix)]) == prefix:
                return completed(argv, stdout=stdout)
        return completed(argv)

    @property
    def commands(self) -> list[list[str]]:
        return [call.args for call in self.calls]


@dataclass
class InMemoryCacheBackend:
    """Cache backend keeping entries in insertion order."""

    entries: list[str] = field(default_factory=list)
    restore_error: CacheBackendError | None = None
    save_error: CacheBackendError | None = None
    restores: list[tuple[tuple[str, ...], str, tuple[str, ...]]] = field(default_factory=list)
    saves: list[tuple[tuple[str, ...], str]] = field(default_factory=list)

    def restore(self, paths, key, restore_keys):  # noqa: ANN001
        self.restores.append((tuple(paths), key, tuple(restore_keys)))
        if self.restore_error is not None:
            raise self.restore_error
        if key in self.entries:
            return key
        for prefix in restore_keys:
            for entry in reversed(self.entries):
                if entry.startswith(prefix):
                    return entry
        return None

    def save(self, paths, key):  # noqa: ANN001
        self.saves.append((tuple(paths), key))
        if self.save_error is not None:
            raise self.save_error
        self.entries.append(key)


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def cache_backend() -> InMemoryCacheBackend:
    return InMemoryCacheBackend()


@pytest.fixture
def quiet_logger() -> SetupLogger:
    return SetupLogger(use_emoji=False, use_color=False)


@pytest.fixture
def catalog() -> VersionCatalog:
    return load_catalog()


@pytest.fixture
def ubuntu() -> Platform:
    return Platform(name="ubuntu-24.04", arch="x64")


@pytest.fixture
def windows() -> Platform:
    return Platform(name="windows-2022", arch="x64")
