# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn a loose ``engine-version`` specifier into an exact catalog entry."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .catalog import Catalog
from .constants import DEFAULT_ENGINE, PROJECT_DEFAULT_SENTINEL
from .errors import ConfigurationError, UnknownEngineError, UnknownVersionError
from .platforms import Platform
from .policy.platform_rules import check_supported
from .versions import is_head_version, is_stable_version, starts_with_number


class SpecKind(str, Enum):
    """Enumerate the shapes a raw version input can take."""

    PROJECT_DEFAULT = "project-default"
    LITERAL = "literal"
    HEAD = "head"
    ENGINE = "engine"
    COMPOUND = "compound"


@dataclass(frozen=True, slots=True)
class VersionSpec:
    """Parsed form of the user's ``ruby-version`` input."""

    raw: str
    kind: SpecKind
    engine: str
    version: str

    @classmethod
    def parse(cls, raw: str) -> VersionSpec:
        """Split ``raw`` into engine and version fragment.

        Args:
            raw: Input such as ``3.3``, ``head``, ``jruby``, ``truffleruby-24``
                or the ``default`` sentinel.

        Returns:
            VersionSpec: Parsed specifier; an empty version means "latest stable".
        """

        value = raw.strip()
        if value == PROJECT_DEFAULT_SENTINEL:
            return cls(raw=value, kind=SpecKind.PROJECT_DEFAULT, engine="", version="")
        if is_head_version(value):
            return cls(raw=value, kind=SpecKind.HEAD, engine=DEFAULT_ENGINE, version=value)
        if starts_with_number(value):
            return cls(raw=value, kind=SpecKind.LITERAL, engine=DEFAULT_ENGINE, version=value)
        if "-" not in value:
            return cls(raw=value, kind=SpecKind.ENGINE, engine=value, version="")
        engine, version = value.split("-", 1)
        return cls(raw=value, kind=SpecKind.COMPOUND, engine=engine, version=version)


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """Canonical engine and version guaranteed to exist in the catalog."""

    engine: str
    version: str

    @property
    def is_head(self) -> bool:
        return is_head_version(self.version)

    def __str__(self) -> str:
        return f"{self.engine}-{self.version}"


def match_version(engine: str, requested: str, versions: tuple[str, ...]) -> str | None:
    """Return the catalog entry selected for ``requested`` or ``None``.

    Exact matches win. Otherwise the newest stable version starting with
    ``requested`` is chosen, then the newest non-head version. Head builds are
    only ever selected by exact name.
    """

    if requested in versions:
        return requested
    newest_first = tuple(reversed(versions))
    for candidate in newest_first:
        if is_stable_version(engine, candidate) and candidate.startswith(requested):
            return candidate
    for candidate in newest_first:
        if not is_head_version(candidate) and candidate.startswith(requested):
            return candidate
    return None


def resolve(spec: VersionSpec | str, platform: Platform, catalog: Catalog) -> ResolvedVersion:
    """Resolve ``spec`` against the versions ``catalog`` offers on ``platform``.

    Raises:
        ConfigurationError: If ``spec`` is the undereferenced project sentinel.
        UnknownEngineError: If the engine has no builds on ``platform``.
        UnknownVersionError: If no version matches; lists all candidates.
        UnsupportedCombinationError: If the match is a known-broken combination.
    """

    parsed = VersionSpec.parse(spec) if isinstance(spec, str) else spec
    if parsed.kind is SpecKind.PROJECT_DEFAULT:
        raise ConfigurationError("The project version sentinel must be read from a version file before resolving")

    versions = catalog.available_versions(platform, parsed.engine)
    if versions is None:
        raise UnknownEngineError(parsed.engine, platform.name)

    found = match_version(parsed.engine, parsed.version, versions)
    if found is None:
        raise UnknownVersionError(parsed.engine, parsed.version, platform.name, versions)

    resolved = ResolvedVersion(engine=parsed.engine, version=found)
    check_supported(platform, resolved.engine, resolved.version)
    return resolved


__all__ = ["ResolvedVersion", "SpecKind", "VersionSpec", "match_version", "resolve"]
