# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Gem cache keys, backends and the install coordinator."""

from __future__ import annotations

from .backend import BackendOutcome, BackendStatus, CacheBackend, guard_backend_call, is_exact_key_match
from .coordinator import CacheCoordinator, InstallOutcome
from .keys import KeyFacts, build_base_key, build_full_key, detect_abi, needs_abi, restore_prefix
from .local import LocalDirectoryCacheBackend

__all__ = [
    "BackendOutcome",
    "BackendStatus",
    "CacheBackend",
    "CacheCoordinator",
    "InstallOutcome",
    "KeyFacts",
    "LocalDirectoryCacheBackend",
    "build_base_key",
    "build_full_key",
    "detect_abi",
    "guard_backend_call",
    "is_exact_key_match",
    "needs_abi",
    "restore_prefix",
]
