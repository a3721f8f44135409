# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog aggregate models describing the prebuilt Ruby builds."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ..constants import DEFAULT_ENGINE
from ..errors import SetupError
from ..platforms import Platform


class CatalogIntegrityError(SetupError):
    """Raised when catalog data violates its ordering or uniqueness invariants."""


@runtime_checkable
class Catalog(Protocol):
    """Source of the versions installable for a platform and engine."""

    def available_versions(self, platform: Platform, engine: str) -> tuple[str, ...] | None:
        """Return versions ordered oldest to newest, or ``None`` for unknown engines."""

        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class VersionCatalog:
    """Materialised version data paired with a deterministic checksum.

    ``builder`` lists the ruby-builder releases per engine (used on Linux,
    macOS, and for every non-CRuby engine). ``windows`` maps RubyInstaller
    versions to per-architecture archive URLs and only serves CRuby on hosted
    Windows runners.
    """

    builder: Mapping[str, tuple[str, ...]]
    windows: Mapping[str, Mapping[str, str]]
    checksum: str
    self_hosted: bool = False
    _windows_order: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate that no engine lists a version twice."""

        for engine, versions in self.builder.items():
            seen: set[str] = set()
            for version in versions:
                if version in seen:
                    raise CatalogIntegrityError(
                        f"Duplicate version '{version}' detected for engine '{engine}'",
                    )
                seen.add(version)
        object.__setattr__(self, "_windows_order", tuple(self.windows))

    def uses_windows_builds(self, platform: Platform, engine: str) -> bool:
        """Return ``True`` when RubyInstaller archives serve ``engine`` on ``platform``."""

        return platform.is_windows and engine == DEFAULT_ENGINE and not self.self_hosted

    def available_versions(self, platform: Platform, engine: str) -> tuple[str, ...] | None:
        """Return the versions available for ``engine`` on ``platform``.

        Args:
            platform: Platform the run executes on.
            engine: Engine name requested by the user.

        Returns:
            tuple[str, ...] | None: Ordered versions, or ``None`` when the
            engine is unknown for ``platform``.
        """

        if self.uses_windows_builds(platform, engine):
            return tuple(version for version in self._windows_order if platform.arch in self.windows[version])
        versions = self.builder.get(engine)
        return tuple(versions) if versions is not None else None

    def windows_url(self, version: str, arch: str) -> str:
        """Return the RubyInstaller archive URL for ``version`` on ``arch``.

        Raises:
            CatalogIntegrityError: If no archive exists for the combination.
        """

        try:
            return self.windows[version][arch]
        except KeyError as exc:
            raise CatalogIntegrityError(f"No RubyInstaller archive for {version} on {arch}") from exc

    def with_self_hosted(self, self_hosted: bool) -> VersionCatalog:
        """Return a copy of the catalog bound to the runner hosting mode."""

        return VersionCatalog(
            builder=self.builder,
            windows=self.windows,
            checksum=self.checksum,
            self_hosted=self_hosted,
        )


__all__ = ["Catalog", "CatalogIntegrityError", "VersionCatalog"]
