# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build the content-addressed keys under which installed gems are cached.

Field order inside the key is part of the contract: restoring relies on the
base key being a stable prefix of every full key written for the same
platform, runtime and bundle scoping.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import CACHE_KEY_NAMESPACE, CACHE_KEY_PREFIX, DEFAULT_CACHE_VERSION, JRUBY
from ..process_utils import CommandRunner, capture_stdout
from ..versions import is_head_version

ABI_COMMAND: tuple[str, ...] = ("ruby", "-e", "print RbConfig::CONFIG['ruby_version']")


@dataclass(frozen=True, slots=True)
class KeyFacts:
    """Every input that scopes a gem cache entry.

    Attributes:
        platform_id: Opaque ``name-arch`` platform identifier.
        engine: Resolved engine.
        version: Resolved engine version.
        working_directory: Directory ``bundle install`` runs in.
        bundle_with: Value of ``BUNDLE_WITH``.
        bundle_without: Value of ``BUNDLE_WITHOUT``.
        bundle_only: Value of ``BUNDLE_ONLY``.
        lockfile: Lock file path as the user refers to it.
        cache_version: User supplied cache generation, ``"0"`` by default.
        abi: ABI string of the installed runtime; only used for head builds.
    """

    platform_id: str
    engine: str
    version: str
    working_directory: str
    bundle_with: str
    bundle_without: str
    bundle_only: str
    lockfile: str
    cache_version: str = DEFAULT_CACHE_VERSION
    abi: str | None = None


def needs_abi(engine: str, version: str) -> bool:
    """Return ``True`` when the key must carry the runtime ABI.

    Head builds change ABI without changing their version string, except on
    JRuby where gems are not compiled against the runtime.
    """

    return is_head_version(version) and engine != JRUBY


def detect_abi(runner: CommandRunner) -> str:
    """Return ``RbConfig::CONFIG['ruby_version']`` of the Ruby on ``PATH``."""

    return capture_stdout(runner, ABI_COMMAND)


def build_base_key(facts: KeyFacts) -> str:
    """Return the base key shared by every lock file revision.

    Raises:
        ValueError: If a head build needs an ABI and ``facts.abi`` is missing.
    """

    key = (
        f"{CACHE_KEY_PREFIX}-{CACHE_KEY_NAMESPACE}-{facts.platform_id}-{facts.engine}-{facts.version}"
        f"-wd-{facts.working_directory}"
        f"-with-{facts.bundle_with}-without-{facts.bundle_without}-only-{facts.bundle_only}"
    )
    if facts.cache_version != DEFAULT_CACHE_VERSION:
        key += f"-v-{facts.cache_version}"
    if needs_abi(facts.engine, facts.version):
        if not facts.abi:
            raise ValueError(f"ABI is required to build the cache key for {facts.engine}-{facts.version}")
        key += f"-ABI-{facts.abi}"
    return f"{key}-{facts.lockfile}"


def build_full_key(base: str, digest: str) -> str:
    """Return the exact key for the lock file whose SHA-256 is ``digest``."""

    return f"{base}-{digest}"


def restore_prefix(base: str) -> str:
    """Return the prefix matching every full key derived from ``base``."""

    return f"{base}-"


__all__ = [
    "ABI_COMMAND",
    "KeyFacts",
    "build_base_key",
    "build_full_key",
    "detect_abi",
    "needs_abi",
    "restore_prefix",
]
