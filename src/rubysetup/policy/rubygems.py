# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Plan the RubyGems update requested through the ``rubygems`` input."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

from packaging.version import InvalidVersion, Version

from ..constants import DEFAULT_ENGINE
from ..errors import MalformedAuxVersionInputError
from ..versions import float_version, is_head_version
from .rules import CompatibilityRule, RuleTable

RUBYGEMS_DEFAULT: Final[str] = "default"
RUBYGEMS_LATEST: Final[str] = "latest"
_COERCE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\d+(?:\.\d+){0,2}")

Command = tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RubygemsPlan:
    """Commands needed to bring RubyGems to the requested version.

    An empty ``commands`` tuple means the runtime keeps its bundled RubyGems.
    """

    commands: tuple[Command, ...] = field(default=())
    reason: str = ""

    @property
    def updates(self) -> bool:
        return bool(self.commands)


def _update_system(pin: str | None = None) -> tuple[Command, ...]:
    if pin is None:
        return (("gem", "update", "--system"),)
    return (("gem", "update", "--system", pin),)


_LEGACY_UPDATE: Final[tuple[Command, ...]] = (
    ("gem", "install", "rubygems-update", "-v", "2.7.11", "--no-document"),
    ("update_rubygems",),
)

# Newest RubyGems each CRuby line still supports, newest Ruby first.
CRUBY_LATEST: RuleTable[float, tuple[Command, ...]] = RuleTable(
    name="cruby-latest-rubygems",
    rules=(
        CompatibilityRule("ruby-3.2+", lambda v: v >= 3.2, _update_system(), "Updating to the latest RubyGems"),
        CompatibilityRule("ruby-3.1", lambda v: v >= 3.1, _update_system("3.6.9"), "RubyGems 3.6.9 is the last release supporting Ruby 3.1"),
        CompatibilityRule("ruby-3.0", lambda v: v >= 3.0, _update_system("3.5.23"), "RubyGems 3.5.23 is the last release supporting Ruby 3.0"),
        CompatibilityRule("ruby-2.6", lambda v: v >= 2.6, _update_system("3.4.22"), "RubyGems 3.4.22 is the last release supporting Ruby 2.6 and 2.7"),
        CompatibilityRule("ruby-2.3", lambda v: v >= 2.3, _update_system("3.3.27"), "RubyGems 3.3.27 is the last release supporting Ruby 2.3 to 2.5"),
        CompatibilityRule("ruby-1.9", lambda v: v >= 1.9, _LEGACY_UPDATE, "RubyGems 2.7.11 is the last release supporting Ruby 1.9 to 2.2"),
    ),
)


def coerce_version(output: str) -> Version | None:
    """Return the first ``major[.minor[.patch]]`` group of ``output`` as a :class:`Version`."""

    match = _COERCE_PATTERN.search(output)
    if match is None:
        return None
    return Version(match.group(0))


def _latest_plan(engine: str, version: str) -> RubygemsPlan:
    if engine != DEFAULT_ENGINE:
        return RubygemsPlan(commands=_update_system(), reason=f"Updating RubyGems for {engine}-{version}")
    if is_head_version(version):
        return RubygemsPlan(reason="Ruby master builds use included RubyGems")
    commands, rule = CRUBY_LATEST.apply(float_version(version), ())
    if rule is None:
        return RubygemsPlan(reason=f"Cannot update RubyGems for Ruby version {version}")
    return RubygemsPlan(commands=commands, reason=rule.reason)


def rubygems_update_command(request: str, engine: str, version: str, current: str | None = None) -> RubygemsPlan:
    """Return the RubyGems update plan for ``request``.

    Args:
        request: ``default``, ``latest`` or an explicit RubyGems version.
        engine: Resolved engine name.
        version: Resolved engine version.
        current: Output of ``gem --version``; only consulted for explicit versions.

    Returns:
        RubygemsPlan: Commands to run, possibly none, and why.

    Raises:
        MalformedAuxVersionInputError: If an explicit version is not a valid version.
    """

    value = request.strip()
    if value == RUBYGEMS_DEFAULT:
        return RubygemsPlan(reason="Using the RubyGems bundled with the runtime")
    if value == RUBYGEMS_LATEST:
        return _latest_plan(engine, version)

    try:
        wanted = Version(value)
    except InvalidVersion as exc:
        raise MalformedAuxVersionInputError(value, tool="rubygems") from exc

    installed = coerce_version(current or "")
    if installed is not None and wanted <= installed:
        return RubygemsPlan(
            reason=(
                f"Skipping RubyGems update because the given version ({value}) "
                f"is not newer than the default version ({installed})"
            ),
        )
    return RubygemsPlan(commands=_update_system(value), reason=f"Updating RubyGems to {value}")


__all__ = [
    "CRUBY_LATEST",
    "RUBYGEMS_DEFAULT",
    "RUBYGEMS_LATEST",
    "RubygemsPlan",
    "coerce_version",
    "rubygems_update_command",
]
