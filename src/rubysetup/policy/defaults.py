# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Facts about the Bundler each engine release ships and the Ruby it targets."""

from __future__ import annotations

from ..constants import DEFAULT_ENGINE, JRUBY, TRUFFLERUBY
from ..versions import float_version

# JRuby releases mapped to the CRuby language version they implement.
_JRUBY_TARGETS: tuple[tuple[float, float], ...] = (
    (10.0, 3.4),
    (9.4, 3.1),
    (9.3, 2.6),
    (9.2, 2.5),
    (9.1, 2.3),
)
_UNKNOWN_ENGINE_TARGET = 9.9


def _is_truffleruby(engine: str) -> bool:
    return engine.startswith(TRUFFLERUBY)


def is_bundler1_default(engine: str, version: str) -> bool:
    """Return ``True`` when the runtime ships Bundler 1 as a default gem."""

    value = float_version(version)
    if engine == DEFAULT_ENGINE:
        return 2.6 <= value < 2.7
    if _is_truffleruby(engine):
        return value < 21.0
    if engine == JRUBY:
        return 9.2 <= value < 9.3
    return False


def is_bundler2_plus_default(engine: str, version: str) -> bool:
    """Return ``True`` when the runtime ships Bundler 2 or newer."""

    value = float_version(version)
    if engine == DEFAULT_ENGINE:
        return value >= 2.7
    if _is_truffleruby(engine):
        return value >= 21.0
    if engine == JRUBY:
        return value >= 9.3
    return False


def is_bundler2dot2_plus_default(engine: str, version: str) -> bool:
    """Return ``True`` when the runtime ships Bundler 2.2 or newer."""

    value = float_version(version)
    if engine == DEFAULT_ENGINE:
        return value >= 3.0
    if _is_truffleruby(engine):
        return value >= 22.0
    if engine == JRUBY:
        return value >= 9.3
    return False


def is_bundler4_plus_default(engine: str, version: str) -> bool:
    """Return ``True`` when the runtime ships Bundler 4 or newer."""

    value = float_version(version)
    if engine == DEFAULT_ENGINE:
        return value >= 4.0
    if _is_truffleruby(engine):
        return value >= 34.0
    if engine == JRUBY:
        return value >= 10.1
    return False


def has_bundler_default_gem(engine: str, version: str) -> bool:
    """Return ``True`` when any Bundler ships as a default gem."""

    return is_bundler1_default(engine, version) or is_bundler2_plus_default(engine, version)


def target_ruby_version(engine: str, version: str) -> float:
    """Return the CRuby ``major.minor`` the runtime is compatible with.

    Head builds of every engine resolve to the newest known target.
    """

    value = float_version(version)
    if engine == DEFAULT_ENGINE:
        return value
    if engine == JRUBY:
        for minimum, target in _JRUBY_TARGETS:
            if value >= minimum:
                return target
        return 2.2
    if _is_truffleruby(engine):
        if value < 21.0:
            return 2.6
        if value < 22.0:
            return 2.7
        if value < 33.0:
            return 3.1
        return 3.2
    return _UNKNOWN_ENGINE_TARGET


__all__ = [
    "has_bundler_default_gem",
    "is_bundler1_default",
    "is_bundler2_plus_default",
    "is_bundler2dot2_plus_default",
    "is_bundler4_plus_default",
    "target_ruby_version",
]
