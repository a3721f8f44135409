# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Compatibility policy deciding Bundler, RubyGems and platform support."""

from __future__ import annotations

from .bundler import (
    BUNDLER_OVERRIDES,
    UNKNOWN_BUNDLER,
    BundlerContext,
    BundlerDecision,
    BundlerRequest,
    BundlerRequestKind,
    bundler_constraint,
    is_valid_bundler_version,
    resolve_bundler,
)
from .platform_rules import EXCLUSIONS, check_supported
from .rubygems import RUBYGEMS_DEFAULT, RUBYGEMS_LATEST, RubygemsPlan, rubygems_update_command
from .rules import CompatibilityRule, RuleTable

__all__ = [
    "BUNDLER_OVERRIDES",
    "BundlerContext",
    "BundlerDecision",
    "BundlerRequest",
    "BundlerRequestKind",
    "CompatibilityRule",
    "EXCLUSIONS",
    "RUBYGEMS_DEFAULT",
    "RUBYGEMS_LATEST",
    "RuleTable",
    "RubygemsPlan",
    "UNKNOWN_BUNDLER",
    "bundler_constraint",
    "check_supported",
    "is_valid_bundler_version",
    "resolve_bundler",
    "rubygems_update_command",
]
