# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Regenerate the packaged catalog documents.

The Windows catalog is rebuilt from the RubyInstaller downloads feed, while
new ruby-builder releases are inserted into the per-engine lists. Both
documents are rendered in the compact layout shipped with the package and
validated through :func:`~rubysetup.catalog.loader.build_catalog` before they
are written.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Final

import requests
import yaml
from packaging.specifiers import SpecifierSet
from packaging.version import Version
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .loader import BUILDER_VERSIONS_FILE, WINDOWS_VERSIONS_FILE, build_catalog
from .models import CatalogIntegrityError

RUBYINSTALLER_DOWNLOADS_URL: Final[str] = (
    "https://raw.githubusercontent.com/oneclick/rubyinstaller.org-website/master/_data/downloads.yaml"
)
RUBYINSTALLER_ARCHIVE_TYPE: Final[str] = "rubyinstaller7z"
FEED_TIMEOUT: Final[int] = 60

# Oldest RubyInstaller releases still published as usable 7z archives.
WINDOWS_VERSION_REQUIREMENTS: Final[tuple[SpecifierSet, ...]] = (
    SpecifierSet("~=2.0.0"),
    SpecifierSet("~=2.1.9"),
    SpecifierSet(">=2.2.6"),
)

NIGHTLY_WINDOWS_BUILDS: Final[dict[str, dict[str, str]]] = {
    "head": {
        "arm64": "https://github.com/oneclick/rubyinstaller2/releases/download/rubyinstaller-head/rubyinstaller-head-arm.7z",
        "x64": "https://github.com/oneclick/rubyinstaller2/releases/download/rubyinstaller-head/rubyinstaller-head-x64.7z",
    },
    "mingw": {"x64": "https://github.com/MSP-Greg/ruby-loco/releases/download/ruby-master/ruby-mingw.7z"},
    "mswin": {"x64": "https://github.com/MSP-Greg/ruby-loco/releases/download/ruby-master/ruby-mswin.7z"},
    "ucrt": {"x64": "https://github.com/MSP-Greg/ruby-loco/releases/download/ruby-master/ruby-ucrt.7z"},
}

# Versions of one release series share this prefix and one catalog line.
RELEASE_SERIES: Final[dict[str, re.Pattern[str]]] = {
    "ruby": re.compile(r"^\d+\.\d+\."),
    "jruby": re.compile(r"^\d+\.\d+\."),
    "truffleruby": re.compile(r"^\d+\."),
    "truffleruby+graalvm": re.compile(r"^\d+\."),
}

_RUBY_VERSION_RE: Final[re.Pattern[str]] = re.compile(r"Ruby (\d+\.\d+\.\d+)")
_ARCH_RE: Final[re.Pattern[str]] = re.compile(r"\((x64|arm)\)")
_ARCH_NAMES: Final[dict[str, str]] = {"x64": "x64", "arm": "arm64"}


class DownloadEntry(BaseModel):
    """One row of the RubyInstaller downloads feed."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    href: str = ""
    filetype: str = ""


_FEED_ADAPTER: Final[TypeAdapter[list[DownloadEntry]]] = TypeAdapter(list[DownloadEntry])


def fetch_downloads_feed(url: str = RUBYINSTALLER_DOWNLOADS_URL, *, timeout: int = FEED_TIMEOUT) -> str:
    """Return the raw downloads feed published by RubyInstaller.

    Raises:
        CatalogIntegrityError: If the feed cannot be retrieved.
    """

    try:
        with requests.Session() as session:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
            return response.text
    except requests.RequestException as exc:
        raise CatalogIntegrityError(f"Failed to fetch {url}: {exc}") from exc


def parse_downloads(payload: str) -> list[DownloadEntry]:
    """Parse the YAML downloads feed into typed entries.

    Raises:
        CatalogIntegrityError: If the payload is not a list of download records.
    """

    try:
        document = yaml.safe_load(payload)
    except yaml.YAMLError as exc:
        raise CatalogIntegrityError(f"Invalid downloads feed: {exc}") from exc
    try:
        return _FEED_ADAPTER.validate_python(document)
    except ValidationError as exc:
        raise CatalogIntegrityError(f"Invalid downloads feed: {exc}") from exc


def _supported_windows_version(version: str) -> bool:
    parsed = Version(version)
    return any(parsed in requirement for requirement in WINDOWS_VERSION_REQUIREMENTS)


def windows_versions_from_downloads(entries: Iterable[DownloadEntry]) -> dict[str, dict[str, str]]:
    """Build the Windows catalog document from downloads feed entries.

    The feed lists builds newest first, so the first archive seen for a
    version and architecture is the one kept. Nightly builds are appended
    after the releases.

    Raises:
        CatalogIntegrityError: If the builds of a version are not listed newest first.
    """

    builds: dict[str, dict[str, list[DownloadEntry]]] = {}
    for entry in entries:
        if entry.filetype != RUBYINSTALLER_ARCHIVE_TYPE:
            continue
        version_match = _RUBY_VERSION_RE.search(entry.name)
        arch_match = _ARCH_RE.search(entry.name)
        if version_match is None or arch_match is None:
            continue
        arch = _ARCH_NAMES[arch_match.group(1)]
        builds.setdefault(version_match.group(1), {}).setdefault(arch, []).append(entry)

    releases: dict[str, dict[str, str]] = {}
    for version in sorted(builds, key=Version):
        if not _supported_windows_version(version):
            continue
        archives: dict[str, str] = {}
        for arch in sorted(builds[version]):
            candidates = builds[version][arch]
            names = [candidate.name for candidate in candidates]
            if names != sorted(names, reverse=True):
                raise CatalogIntegrityError(f"Downloads for Ruby {version} ({arch}) are not listed newest first")
            archives[arch] = candidates[0].href
        releases[version] = archives
    return releases | {version: dict(archives) for version, archives in NIGHTLY_WINDOWS_BUILDS.items()}


def add_builder_versions(
    builder: Mapping[str, Sequence[str]],
    additions: Iterable[str],
) -> dict[str, list[str]]:
    """Return ``builder`` with each ``engine-version`` in ``additions`` inserted.

    A release joins the end of its series when the series is already listed.
    Otherwise it goes after the last numbered release of its engine, ahead of
    ``head`` and the other nightly tokens. Versions already listed are left
    alone.

    Raises:
        CatalogIntegrityError: If an addition names an unknown engine or a malformed version.
    """

    updated = {engine: list(versions) for engine, versions in builder.items()}
    for addition in additions:
        engine, _, version = addition.strip().partition("-")
        series = RELEASE_SERIES.get(engine)
        if series is None or engine not in updated:
            raise CatalogIntegrityError(f"Unknown engine in {addition!r}")
        if not series.match(version):
            raise CatalogIntegrityError(f"Malformed {engine} release {version!r}")
        versions = updated[engine]
        if version in versions:
            continue
        key = _series_key(engine, version)
        same_series = [index for index, known in enumerate(versions) if _series_key(engine, known) == key]
        if same_series:
            position = same_series[-1] + 1
        else:
            position = len(versions)
            while position > 0 and not versions[position - 1][:1].isdigit():
                position -= 1
        versions.insert(position, version)
    return updated


def _series_key(engine: str, version: str) -> str | None:
    series = RELEASE_SERIES.get(engine)
    match = series.match(version) if series is not None else None
    return match.group(0) if match is not None else None


def render_builder_versions(builder: Mapping[str, Sequence[str]]) -> str:
    """Render the ruby-builder document with one line per release series."""

    blocks = []
    for engine, versions in builder.items():
        lines: list[list[str]] = []
        previous: str | None = None
        for version in versions:
            key = _series_key(engine, version)
            if lines and key is not None and key == previous:
                lines[-1].append(json.dumps(version))
            else:
                lines.append([json.dumps(version)])
            previous = key
        body = ",\n".join("    " + ", ".join(line) for line in lines)
        blocks.append(f"  {json.dumps(engine)}: [\n{body}\n  ]")
    return "{\n" + ",\n".join(blocks) + "\n}\n"


def render_windows_versions(windows: Mapping[str, Mapping[str, str]]) -> str:
    """Render the Windows document, keeping single-architecture entries on one line."""

    entries = []
    for version, archives in windows.items():
        if len(archives) == 1:
            ((arch, url),) = archives.items()
            entries.append(f"  {json.dumps(version)}: {{{json.dumps(arch)}: {json.dumps(url)}}}")
            continue
        inner = ",\n".join(f"    {json.dumps(arch)}: {json.dumps(url)}" for arch, url in sorted(archives.items()))
        entries.append(f"  {json.dumps(version)}: {{\n{inner}\n  }}")
    return "{\n" + ",\n".join(entries) + "\n}\n"


def write_catalog(data_dir: Path, *, builder: str | None = None, windows: str | None = None) -> None:
    """Validate the rendered documents together and write the changed ones to ``data_dir``.

    Raises:
        CatalogIntegrityError: If the combined catalog fails validation.
    """

    builder_path = data_dir / BUILDER_VERSIONS_FILE
    windows_path = data_dir / WINDOWS_VERSIONS_FILE
    builder_text = builder if builder is not None else builder_path.read_text(encoding="utf-8")
    windows_text = windows if windows is not None else windows_path.read_text(encoding="utf-8")
    build_catalog(builder_text, windows_text)
    if builder is not None:
        builder_path.write_text(builder, encoding="utf-8")
    if windows is not None:
        windows_path.write_text(windows, encoding="utf-8")


def default_data_dir() -> Path:
    """Return the source directory holding the packaged catalog documents."""

    return Path(__file__).resolve().parent / "data"


__all__ = [
    "NIGHTLY_WINDOWS_BUILDS",
    "RUBYINSTALLER_DOWNLOADS_URL",
    "DownloadEntry",
    "add_builder_versions",
    "default_data_dir",
    "fetch_downloads_feed",
    "parse_downloads",
    "render_builder_versions",
    "render_windows_versions",
    "windows_versions_from_downloads",
    "write_catalog",
]
