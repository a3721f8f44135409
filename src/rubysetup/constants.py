# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Constants shared across resolution, policy, caching and installation."""

from __future__ import annotations

from typing import Final

DEFAULT_ENGINE: Final[str] = "ruby"
JRUBY: Final[str] = "jruby"
TRUFFLERUBY: Final[str] = "truffleruby"
TRUFFLERUBY_GRAALVM: Final[str] = "truffleruby+graalvm"

HEAD_VERSIONS: Final[frozenset[str]] = frozenset({"head", "debug", "mingw", "mswin", "ucrt", "asan", "asan-release"})
HEAD_FLOAT_VERSION: Final[float] = 999.999

PROJECT_DEFAULT_SENTINEL: Final[str] = "default"
RUBY_VERSION_FILE: Final[str] = ".ruby-version"
TOOL_VERSIONS_FILE: Final[str] = ".tool-versions"
MISE_TOML_FILE: Final[str] = "mise.toml"

CACHE_KEY_PREFIX: Final[str] = "rubysetup-bundler-cache"
CACHE_KEY_NAMESPACE: Final[str] = "v6"
DEFAULT_CACHE_VERSION: Final[str] = "0"
BUNDLE_CACHE_PATH: Final[str] = "vendor/bundle"
NO_SAVE_EVENTS: Final[frozenset[str]] = frozenset({"merge_group"})
MAX_BUNDLE_JOBS: Final[int] = 8

RUBIES_DIRNAME: Final[str] = ".rubies"
TOOL_CACHE_COMPLETE_SUFFIX: Final[str] = ".complete"
TOOL_CACHE_ENGINE_NAMES: Final[dict[str, str]] = {
    DEFAULT_ENGINE: "Ruby",
    JRUBY: "JRuby",
    TRUFFLERUBY: "TruffleRuby",
    TRUFFLERUBY_GRAALVM: "TruffleRubyGraalVM",
}

RUBY_BUILDER_RELEASES_URL: Final[str] = "https://github.com/ruby/ruby-builder/releases"
DEV_BUILDER_URL_TEMPLATE: Final[str] = "https://github.com/ruby/{repo}/releases/latest/download"
SUPPORTED_ARCHES: Final[frozenset[str]] = frozenset({"x64", "arm64"})

GEMRC_FILENAME: Final[str] = ".gemrc"

__all__ = [
    "BUNDLE_CACHE_PATH",
    "CACHE_KEY_NAMESPACE",
    "CACHE_KEY_PREFIX",
    "DEFAULT_CACHE_VERSION",
    "DEFAULT_ENGINE",
    "DEV_BUILDER_URL_TEMPLATE",
    "GEMRC_FILENAME",
    "HEAD_FLOAT_VERSION",
    "HEAD_VERSIONS",
    "JRUBY",
    "MAX_BUNDLE_JOBS",
    "MISE_TOML_FILE",
    "NO_SAVE_EVENTS",
    "PROJECT_DEFAULT_SENTINEL",
    "RUBIES_DIRNAME",
    "RUBY_BUILDER_RELEASES_URL",
    "RUBY_VERSION_FILE",
    "SUPPORTED_ARCHES",
    "TOOL_CACHE_COMPLETE_SUFFIX",
    "TOOL_CACHE_ENGINE_NAMES",
    "TOOL_VERSIONS_FILE",
    "TRUFFLERUBY",
    "TRUFFLERUBY_GRAALVM",
]
