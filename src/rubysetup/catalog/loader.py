# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Load the packaged version catalog."""

from __future__ import annotations

import hashlib
import json
from functools import cache
from importlib import resources
from typing import Final

from pydantic import TypeAdapter, ValidationError

from .models import CatalogIntegrityError, VersionCatalog

BUILDER_VERSIONS_FILE: Final[str] = "ruby-builder-versions.json"
WINDOWS_VERSIONS_FILE: Final[str] = "windows-versions.json"

_BUILDER_ADAPTER: Final[TypeAdapter[dict[str, list[str]]]] = TypeAdapter(dict[str, list[str]])
_WINDOWS_ADAPTER: Final[TypeAdapter[dict[str, dict[str, str]]]] = TypeAdapter(dict[str, dict[str, str]])


def compute_catalog_checksum(*documents: object) -> str:
    """Return a SHA-256 digest over the canonical JSON form of ``documents``."""

    digest = hashlib.sha256()
    for document in documents:
        digest.update(json.dumps(document, sort_keys=True, separators=(",", ":")).encode("utf-8"))
    return digest.hexdigest()


def _read_document(name: str) -> str:
    return resources.files("rubysetup.catalog").joinpath("data", name).read_text(encoding="utf-8")


def build_catalog(builder_payload: str, windows_payload: str) -> VersionCatalog:
    """Validate raw JSON payloads and materialise a :class:`VersionCatalog`.

    Raises:
        CatalogIntegrityError: If either document fails structural validation.
    """

    try:
        builder = _BUILDER_ADAPTER.validate_json(builder_payload)
        windows = _WINDOWS_ADAPTER.validate_json(windows_payload)
    except ValidationError as exc:
        raise CatalogIntegrityError(f"Invalid version catalog: {exc}") from exc
    return VersionCatalog(
        builder={engine: tuple(versions) for engine, versions in builder.items()},
        windows=windows,
        checksum=compute_catalog_checksum(builder, windows),
    )


@cache
def load_catalog() -> VersionCatalog:
    """Return the packaged catalog; the data is read once per process."""

    return build_catalog(_read_document(BUILDER_VERSIONS_FILE), _read_document(WINDOWS_VERSIONS_FILE))


__all__ = ["build_catalog", "compute_catalog_checksum", "load_catalog"]
