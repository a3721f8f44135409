# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Version catalog of prebuilt Ruby engines."""

from __future__ import annotations

from .loader import build_catalog, compute_catalog_checksum, load_catalog
from .models import Catalog, CatalogIntegrityError, VersionCatalog

__all__ = [
    "Catalog",
    "CatalogIntegrityError",
    "VersionCatalog",
    "build_catalog",
    "compute_catalog_checksum",
    "load_catalog",
]
