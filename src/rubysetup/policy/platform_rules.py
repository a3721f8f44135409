# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Known platform, engine and version combinations that cannot work."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import DEFAULT_ENGINE
from ..errors import UnsupportedCombinationError
from ..platforms import Platform
from ..versions import float_version, starts_with_number
from .rules import CompatibilityRule, RuleTable


@dataclass(frozen=True, slots=True)
class PlatformSubject:
    """Facts inspected by the exclusion rules."""

    platform: Platform
    engine: str
    version: str

    def cruby_below(self, threshold: float) -> bool:
        """Return ``True`` for numbered CRuby releases older than ``threshold``."""

        return (
            self.engine == DEFAULT_ENGINE
            and starts_with_number(self.version)
            and float_version(self.version) < threshold
        )


EXCLUSIONS: RuleTable[PlatformSubject, str] = RuleTable(
    name="platform-exclusions",
    rules=(
        CompatibilityRule(
            name="cruby-macos-arm64",
            predicate=lambda s: s.platform.is_macos and s.platform.arch == "arm64" and s.cruby_below(2.6),
            consequence=(
                "CRuby < 2.6 does not support macos-arm64.\n"
                "  Either use a newer Ruby version or use a macOS image running on amd64, e.g., macos-13."
            ),
            reason="old CRuby releases fail to compile on macOS arm64",
        ),
        CompatibilityRule(
            name="cruby-windows-arm64",
            predicate=lambda s: s.platform.is_windows and s.platform.arch == "arm64" and s.cruby_below(3.4),
            consequence=(
                "CRuby < 3.4 has no windows-arm64 build.\n"
                "  Either use Ruby 3.4 or newer or use a Windows image running on x64."
            ),
            reason="RubyInstaller only publishes arm64 builds for Ruby 3.4+",
        ),
    ),
)


def check_supported(platform: Platform, engine: str, version: str) -> None:
    """Fail fast on combinations listed in :data:`EXCLUSIONS`.

    Raises:
        UnsupportedCombinationError: With remediation text when a rule matches.
    """

    rule = EXCLUSIONS.first_match(PlatformSubject(platform=platform, engine=engine, version=version))
    if rule is not None:
        raise UnsupportedCombinationError(rule.consequence)


__all__ = ["EXCLUSIONS", "PlatformSubject", "check_supported"]
