# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy raised by the setup pipeline.

Every fatal failure derives from :class:`SetupError` so the CLI can report it
once and exit. Cache backend errors are split into the three classes the
coordinator distinguishes: validation problems are fatal, reserve conflicts are
informational and every other backend failure degrades to a cache miss.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class SetupError(RuntimeError):
    """Base class for failures that abort a setup run."""


class ConfigurationError(SetupError):
    """Raised when inputs or project files cannot be interpreted."""


class UnknownEngineError(SetupError):
    """Raised when the catalog has no versions for the requested engine."""

    def __init__(self, engine: str, platform_name: str) -> None:
        super().__init__(f"Unknown engine {engine} on {platform_name}")
        self.engine = engine
        self.platform_name = platform_name


class UnknownVersionError(SetupError):
    """Raised when neither an exact nor a prefix match exists."""

    def __init__(self, engine: str, version: str, platform_name: str, available: Iterable[str]) -> None:
        self.engine = engine
        self.version = version
        self.platform_name = platform_name
        self.available = tuple(available)
        super().__init__(
            f"Unknown version {version} for {engine} on {platform_name}\n"
            f"  available versions for {engine} on {platform_name}: {', '.join(self.available)}\n"
            "  Make sure the rubysetup release you run is up to date.",
        )


class UnsupportedCombinationError(SetupError):
    """Raised for platform, engine and version combinations known not to work."""


class MalformedAuxVersionInputError(SetupError):
    """Raised when a Bundler or RubyGems version input cannot be parsed as a version."""

    def __init__(self, raw: str, tool: str = "bundler") -> None:
        super().__init__(f"Cannot parse {tool} input: {raw}")
        self.raw = raw
        self.tool = tool


class CacheBackendError(RuntimeError):
    """Base class for errors reported by a cache backend."""


class CacheValidationError(CacheBackendError, SetupError):
    """Raised when the backend rejects the key or path shape."""


class CacheReserveConflictError(CacheBackendError):
    """Raised when another run already reserved the target key."""


class CacheBackendTransientError(CacheBackendError):
    """Raised for any other backend failure; treated as a cache miss."""


class InstallStepError(SetupError):
    """Raised when an install command exits with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


__all__ = [
    "CacheBackendError",
    "CacheBackendTransientError",
    "CacheReserveConflictError",
    "CacheValidationError",
    "ConfigurationError",
    "InstallStepError",
    "MalformedAuxVersionInputError",
    "SetupError",
    "UnknownEngineError",
    "UnknownVersionError",
    "UnsupportedCombinationError",
]
