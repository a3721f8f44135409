# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Install prebuilt Ruby runtimes on CI runners and cache project gems."""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("rubysetup")
except metadata.PackageNotFoundError:  # pragma: no cover - source checkout
    __version__ = "0.0.0"

__all__ = ["__version__"]
