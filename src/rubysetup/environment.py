# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runner facts and the variables exported for later workflow steps."""

from __future__ import annotations

import os
import re
import uuid
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from .constants import DEFAULT_ENGINE, GEMRC_FILENAME
from .logging import SetupLogger
from .platforms import Platform
from .versions import float_version, starts_with_number

_RUBY_PATH_ENTRY: Final[re.Pattern[str]] = re.compile(r"\bruby\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class BundleScoping:
    """Bundler group selection that changes which gems get installed."""

    with_groups: str = ""
    without_groups: str = ""
    only_groups: str = ""


@dataclass(frozen=True, slots=True)
class EnvironmentFacts:
    """Snapshot of the runner environment taken once per run.

    Attributes:
        host: Platform of the runner.
        working_directory: Directory the project lives in.
        environ: Process environment the facts were read from.
    """

    host: Platform
    working_directory: Path
    environ: Mapping[str, str] = field(default_factory=dict)

    def platform(self) -> Platform:
        return self.host

    def scoping(self) -> BundleScoping:
        """Return the ``BUNDLE_WITH``/``BUNDLE_WITHOUT``/``BUNDLE_ONLY`` values."""

        return BundleScoping(
            with_groups=self.environ.get("BUNDLE_WITH", ""),
            without_groups=self.environ.get("BUNDLE_WITHOUT", ""),
            only_groups=self.environ.get("BUNDLE_ONLY", ""),
        )

    @property
    def event_name(self) -> str:
        return self.environ.get("GITHUB_EVENT_NAME", "")

    @property
    def tool_cache(self) -> Path | None:
        value = self.environ.get("RUNNER_TOOL_CACHE")
        return Path(value) if value else None

    @property
    def runner_temp(self) -> Path | None:
        value = self.environ.get("RUNNER_TEMP")
        return Path(value) if value else None

    @property
    def home(self) -> Path:
        value = self.environ.get("HOME") or self.environ.get("USERPROFILE")
        return Path(value) if value else Path.home()

    @property
    def path_variable(self) -> str:
        return "Path" if self.host.is_windows else "PATH"


@runtime_checkable
class EnvironmentExporter(Protocol):
    """Publishes variables, PATH entries and outputs to later workflow steps."""

    def export_variable(self, name: str, value: str) -> None:
        raise NotImplementedError

    def add_path(self, entry: str) -> None:
        raise NotImplementedError

    def set_output(self, name: str, value: str) -> None:
        raise NotImplementedError


def _format_command_file_entry(name: str, value: str) -> str:
    if "\n" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


class GitHubActionsExporter:
    """Exporter writing the GitHub Actions ``GITHUB_ENV``/``GITHUB_PATH``/``GITHUB_OUTPUT`` files.

    Every change is mirrored into ``environ`` so commands run later in this
    process see it too. Files that are not configured are skipped, which is
    the case when running outside of Actions.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def _append(self, variable: str, text: str) -> None:
        target = self._environ.get(variable)
        if not target:
            return
        with Path(target).open("a", encoding="utf-8") as handle:
            handle.write(text)

    def export_variable(self, name: str, value: str) -> None:
        self._environ[name] = value
        self._append("GITHUB_ENV", _format_command_file_entry(name, value))

    def add_path(self, entry: str) -> None:
        current = self._environ.get("PATH", "")
        self._environ["PATH"] = f"{entry}{os.pathsep}{current}" if current else entry
        self._append("GITHUB_PATH", f"{entry}\n")

    def set_output(self, name: str, value: str) -> None:
        self._append("GITHUB_OUTPUT", _format_command_file_entry(name, value))


@dataclass(slots=True)
class InMemoryExporter:
    """Exporter recording everything in memory."""

    variables: dict[str, str] = field(default_factory=dict)
    paths: list[str] = field(default_factory=list)
    outputs: dict[str, str] = field(default_factory=dict)

    def export_variable(self, name: str, value: str) -> None:
        self.variables[name] = value

    def add_path(self, entry: str) -> None:
        self.paths.append(entry)

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value


@dataclass(frozen=True, slots=True)
class PathPlan:
    """PATH rewrite: entries dropped, the cleaned value and the entries to prepend."""

    removed: tuple[str, ...]
    cleaned: str
    added: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return bool(self.removed)


def plan_path_update(current: str, new_entries: Sequence[str], *, separator: str = os.pathsep) -> PathPlan:
    """Return how PATH must change so ``new_entries`` provide the only Ruby.

    Entries mentioning ``ruby`` as a word are removed to avoid picking up a
    preinstalled Ruby.
    """

    original = [entry for entry in current.split(separator) if entry] if current else []
    kept = [entry for entry in original if not _RUBY_PATH_ENTRY.search(entry)]
    removed = tuple(entry for entry in original if entry not in kept)
    return PathPlan(removed=removed, cleaned=separator.join(kept), added=tuple(new_entries))


def apply_path_update(
    plan: PathPlan,
    exporter: EnvironmentExporter,
    *,
    variable: str = "PATH",
    separator: str = os.pathsep,
    logger: SetupLogger | None = None,
) -> None:
    """Export ``plan`` through ``exporter``."""

    log = logger or SetupLogger()
    if plan.changed:
        log.info(f"Entries removed from {variable} to avoid conflicts with default Ruby:")
        for entry in plan.removed:
            log.info(f"  {entry}")
        exporter.export_variable(variable, plan.cleaned)
    log.info(f"Entries added to {variable} to use selected Ruby:")
    for entry in plan.added:
        log.info(f"  {entry}")
    exporter.add_path(separator.join(plan.added))


def gemrc_contents(engine: str, version: str) -> str:
    """Return the ``.gemrc`` that disables documentation generation."""

    if engine == DEFAULT_ENGINE and starts_with_number(version) and float_version(version) < 2.0:
        return "install: --no-rdoc --no-ri\nupdate: --no-rdoc --no-ri\n"
    return "gem: --no-document\n"


def write_gemrc(home: Path, engine: str, version: str) -> Path | None:
    """Create ``~/.gemrc`` unless the user already has one.

    Returns:
        Path | None: The written file, or ``None`` when an existing file was kept.
    """

    gemrc = home / GEMRC_FILENAME
    if gemrc.exists():
        return None
    gemrc.write_text(gemrc_contents(engine, version), encoding="utf-8")
    return gemrc


def windows_preinstall_variables(environ: Mapping[str, str]) -> dict[str, str]:
    """Return the variables Windows runners need before Ruby is installed.

    ``TMPDIR`` moves Ruby's temp files to the runner temp disk, ``HOME``
    matches the native profile for bash, and ``MSYS2_PATH_TYPE`` keeps the
    Windows PATH inside MSYS2 shells.
    """

    variables: dict[str, str] = {}
    if environ.get("RUNNER_TEMP"):
        variables["TMPDIR"] = environ["RUNNER_TEMP"]
    if environ.get("HOMEDRIVE") or environ.get("HOMEPATH"):
        variables["HOME"] = f"{environ.get('HOMEDRIVE', '')}{environ.get('HOMEPATH', '')}"
    variables["MSYS2_PATH_TYPE"] = "inherit"
    return variables


__all__ = [
    "BundleScoping",
    "EnvironmentExporter",
    "EnvironmentFacts",
    "GitHubActionsExporter",
    "InMemoryExporter",
    "PathPlan",
    "apply_path_update",
    "gemrc_contents",
    "plan_path_update",
    "windows_preinstall_variables",
    "write_gemrc",
]
