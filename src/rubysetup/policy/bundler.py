# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Decide which Bundler version to install for a resolved Ruby.

The decision starts from the user's request, expands the symbolic requests
(``Gemfile.lock``, ``default``, ``latest``) into a concrete version, and then
passes it through the override tables in :data:`BUNDLER_OVERRIDES`. Each table
is first-match-wins; later tables refine the output of earlier ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from ..constants import DEFAULT_ENGINE, JRUBY
from ..errors import MalformedAuxVersionInputError
from ..versions import count_version_parts, float_version, is_stable_version
from . import defaults
from .rules import CompatibilityRule, RuleTable

UNKNOWN_BUNDLER: Final[str] = "unknown"
_VALID_BUNDLER: Final[re.Pattern[str]] = re.compile(r"^\d+(?:\.\d+){0,2}")
_RUBY_23_EARLY: Final[re.Pattern[str]] = re.compile(r"^2\.3\.[01]")


class BundlerRequestKind(str, Enum):
    """Enumerate the shapes of the ``bundler`` input."""

    DEFAULT = "default"
    LATEST = "latest"
    LOCKFILE = "Gemfile.lock"
    NONE = "none"
    EXPLICIT = "explicit"


@dataclass(frozen=True, slots=True)
class BundlerRequest:
    """Parsed ``bundler`` input; only :attr:`BundlerRequestKind.EXPLICIT` carries a version."""

    kind: BundlerRequestKind
    version: str | None = None

    @classmethod
    def parse(cls, raw: str) -> BundlerRequest:
        """Return the request encoded by ``raw``."""

        value = raw.strip()
        for kind in (
            BundlerRequestKind.DEFAULT,
            BundlerRequestKind.LATEST,
            BundlerRequestKind.LOCKFILE,
            BundlerRequestKind.NONE,
        ):
            if value == kind.value:
                return cls(kind=kind)
        return cls(kind=BundlerRequestKind.EXPLICIT, version=value)


@dataclass(frozen=True, slots=True)
class BundlerContext:
    """Run facts that influence the Bundler decision.

    Attributes:
        windows: ``True`` on Windows runners.
        rubygems_updated: ``True`` when a RubyGems update ran earlier, which
            already installs a matching Bundler.
        pinned_version: Version read from the lock file's ``BUNDLED WITH`` section.
    """

    windows: bool = False
    rubygems_updated: bool = False
    pinned_version: str | None = None


@dataclass(frozen=True, slots=True)
class BundlerDecision:
    """Outcome of the Bundler policy."""

    version: str
    install: bool
    constraint: str | None = None
    reasons: tuple[str, ...] = field(default=())

    def install_command(self, gem: str) -> list[str]:
        """Return the ``gem install`` invocation for this decision."""

        if not self.install or self.constraint is None:
            raise ValueError("Bundler decision does not require an install step")
        return [gem, "install", "bundler", "-v", self.constraint]


@dataclass(frozen=True, slots=True)
class BundlerSubject:
    """Facts inspected by the Bundler override rules."""

    engine: str
    ruby_version: str
    target: float
    bundler: str

    @property
    def bundler_float(self) -> float:
        return float_version(self.bundler)


def is_valid_bundler_version(version: str) -> bool:
    """Return ``True`` for 1 to 3 part numeric versions that are not ``.dev`` builds."""

    return _VALID_BUNDLER.match(version) is not None and not version.endswith(".dev")


def bundler_constraint(version: str) -> str:
    """Return an exact constraint for full versions, otherwise a pessimistic one."""

    if count_version_parts(version) >= 3:
        return version
    return f"~> {version}.0"


BUNDLER4_FLOOR: RuleTable[BundlerSubject, str] = RuleTable(
    name="bundler4-floor",
    rules=(
        CompatibilityRule(
            name="bundler4-needs-ruby-3.2",
            predicate=lambda s: s.bundler_float >= 4 and s.target < 3.2,
            consequence="2",
            reason="Bundler 4 requires Ruby 3.2+, using Bundler 2 instead on Ruby < 3.2",
        ),
    ),
)

BUNDLER1_FALLBACK: RuleTable[BundlerSubject, str] = RuleTable(
    name="bundler1-fallback",
    rules=(
        CompatibilityRule(
            name="ruby-2.2-and-older",
            predicate=lambda s: s.bundler_float >= 2 and s.engine == DEFAULT_ENGINE and s.target <= 2.2,
            consequence="1",
            reason="Bundler 2+ requires Ruby 2.3+, using Bundler 1 on Ruby <= 2.2",
        ),
        CompatibilityRule(
            name="ruby-2.3.0-2.3.1",
            predicate=lambda s: (
                s.bundler_float >= 2 and s.engine == DEFAULT_ENGINE and _RUBY_23_EARLY.match(s.ruby_version) is not None
            ),
            consequence="1",
            reason="Ruby 2.3.0 and 2.3.1 have shipped with an old rubygems that only works with Bundler 1",
        ),
        CompatibilityRule(
            name="jruby-9.1",
            predicate=lambda s: s.bundler_float >= 2 and s.engine == JRUBY and s.ruby_version.startswith("9.1"),
            consequence="1",
            reason="JRuby 9.1 has a bug with Bundler 2+, using Bundler 1 instead on JRuby 9.1",
        ),
    ),
)

BUNDLER2_MINOR_PINS: RuleTable[BundlerSubject, str] = RuleTable(
    name="bundler2-minor-pins",
    rules=(
        CompatibilityRule(
            name="ruby-2.3-2.5",
            predicate=lambda s: s.bundler == "2" and s.target <= 2.5,
            consequence="2.3",
            reason="Ruby 2.3.2 - 2.5 only works with Bundler 2.3",
        ),
        CompatibilityRule(
            name="ruby-2.6-2.7",
            predicate=lambda s: s.bundler == "2" and s.target <= 2.7,
            consequence="2.4",
            reason="Ruby 2.6-2.7 only works with Bundler 2.4",
        ),
    ),
)

BUNDLER_OVERRIDES: Final[tuple[RuleTable[BundlerSubject, str], ...]] = (
    BUNDLER4_FLOOR,
    BUNDLER1_FALLBACK,
    BUNDLER2_MINOR_PINS,
)


def latest_bundler_major(target: float) -> str:
    """Return the newest Bundler major usable on a Ruby targeting ``target``."""

    return "2" if target < 3.2 else "4"


def resolve_bundler(
    engine: str,
    version: str,
    request: BundlerRequest,
    context: BundlerContext | None = None,
) -> BundlerDecision:
    """Return the Bundler version and install step for ``engine``/``version``.

    Args:
        engine: Resolved engine name.
        version: Resolved engine version.
        request: Parsed ``bundler`` input.
        context: Run facts; defaults to a non-Windows run without a RubyGems update.

    Returns:
        BundlerDecision: Chosen version, whether to install it and the reasons
        collected from every rule that fired.

    Raises:
        MalformedAuxVersionInputError: If the requested version cannot be parsed.
    """

    facts = context or BundlerContext()
    reasons: list[str] = []
    kind = request.kind
    requested = request.version or ""

    if kind is BundlerRequestKind.NONE:
        return BundlerDecision(version=UNKNOWN_BUNDLER, install=False, reasons=("Bundler installation disabled",))

    if facts.rubygems_updated and kind in (BundlerRequestKind.DEFAULT, BundlerRequestKind.LOCKFILE):
        return BundlerDecision(
            version=UNKNOWN_BUNDLER,
            install=False,
            reasons=("Using the Bundler installed by updating RubyGems",),
        )

    if kind is BundlerRequestKind.LOCKFILE:
        pinned = facts.pinned_version
        if pinned and is_valid_bundler_version(pinned):
            requested = pinned
            kind = BundlerRequestKind.EXPLICIT
            reasons.append(f"Using Bundler {requested} from the lock file BUNDLED WITH {requested}")
        else:
            if pinned:
                reasons.append(
                    f"Could not parse BUNDLED WITH version as a valid Bundler release, ignoring it: {pinned}",
                )
            kind = BundlerRequestKind.DEFAULT

    if kind is BundlerRequestKind.DEFAULT:
        if defaults.is_bundler2dot2_plus_default(engine, version):
            if facts.windows and engine == DEFAULT_ENGINE and (is_stable_version(engine, version) or version == "head"):
                reasons.append(
                    f"Installing latest Bundler for {engine}-{version} on Windows because bin/bundle does not work in bash otherwise",
                )
                kind = BundlerRequestKind.LATEST
            else:
                shipped = "4" if defaults.is_bundler4_plus_default(engine, version) else "2"
                reasons.append(f"Using Bundler shipped with {engine}-{version}")
                return BundlerDecision(version=shipped, install=False, reasons=tuple(reasons))
        elif defaults.has_bundler_default_gem(engine, version):
            reasons.append(
                f"Using latest Bundler for {engine}-{version} because the default Bundler gem is too old for that Ruby version",
            )
            kind = BundlerRequestKind.LATEST
        else:
            kind = BundlerRequestKind.LATEST

    target = defaults.target_ruby_version(engine, version)
    if kind is BundlerRequestKind.LATEST:
        requested = latest_bundler_major(target)

    if not is_valid_bundler_version(requested):
        raise MalformedAuxVersionInputError(requested)

    for table in BUNDLER_OVERRIDES:
        subject = BundlerSubject(engine=engine, ruby_version=version, target=target, bundler=requested)
        requested, rule = table.apply(subject, requested)
        if rule is not None:
            reasons.append(rule.reason)

    return BundlerDecision(
        version=requested,
        install=True,
        constraint=bundler_constraint(requested),
        reasons=tuple(reasons),
    )


__all__ = [
    "BUNDLER_OVERRIDES",
    "BundlerContext",
    "BundlerDecision",
    "BundlerRequest",
    "BundlerRequestKind",
    "UNKNOWN_BUNDLER",
    "bundler_constraint",
    "is_valid_bundler_version",
    "latest_bundler_major",
    "resolve_bundler",
]
