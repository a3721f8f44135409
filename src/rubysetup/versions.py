# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Version classification and the float approximation used by policy rules.

Policy thresholds compare ``major.minor`` floats, so ``2.3.0`` and ``2.3.9``
both become ``2.3``. Rules that need patch precision match string prefixes
instead; both strategies are kept side by side on purpose.
"""

from __future__ import annotations

import re
from typing import Final

from .constants import HEAD_FLOAT_VERSION, HEAD_VERSIONS, TRUFFLERUBY

_FLOAT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(?:\.\d+)?")
_STABLE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(\.\d+)*(-p\d+)?$")
_TRUFFLERUBY_STABLE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(\.\d+)*$")
_NUMERIC_START: Final[re.Pattern[str]] = re.compile(r"^\d+")
_DIGIT_GROUPS: Final[re.Pattern[str]] = re.compile(r"\d+")


def is_head_version(version: str) -> bool:
    """Return ``True`` when ``version`` names a rolling development build."""

    return version in HEAD_VERSIONS


def is_stable_version(engine: str, version: str) -> bool:
    """Return ``True`` when ``version`` is a release eligible for prefix matching.

    Args:
        engine: Engine whose release naming applies.
        version: Candidate version string from the catalog.

    Returns:
        bool: ``True`` for dotted numeric releases (CRuby patch levels such as
        ``1.9.3-p551`` included); TruffleRuby variants accept digits only.
    """

    if engine.startswith(TRUFFLERUBY):
        return _TRUFFLERUBY_STABLE_PATTERN.match(version) is not None
    return _STABLE_PATTERN.match(version) is not None


def starts_with_number(version: str) -> bool:
    """Return ``True`` when ``version`` starts with a digit."""

    return _NUMERIC_START.match(version) is not None


def float_version(version: str) -> float:
    """Return the ``major.minor`` float approximation of ``version``.

    Head builds map to a very large value so every ``>=`` threshold holds and
    every ``<=`` threshold fails for them.

    Raises:
        ValueError: If ``version`` neither starts with a number nor is a head build.
    """

    match = _FLOAT_PATTERN.match(version)
    if match:
        return float(match.group(0))
    if is_head_version(version):
        return HEAD_FLOAT_VERSION
    raise ValueError(f"Could not convert version {version} to a float")


def count_version_parts(version: str) -> int:
    """Return the number of numeric groups in ``version``."""

    return len(_DIGIT_GROUPS.findall(version))


__all__ = [
    "count_version_parts",
    "float_version",
    "is_head_version",
    "is_stable_version",
    "starts_with_number",
]
