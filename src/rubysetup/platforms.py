# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Host platform identification used to index the catalog and namespace cache keys."""

from __future__ import annotations

import platform as _platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import ConfigurationError

ARCH_ALIASES: Final[dict[str, str]] = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

# Windows Server/client build numbers mapped to the runner image year.
WINDOWS_SERVER_BUILDS: Final[tuple[tuple[int, str], ...]] = (
    (26100, "2025"),
    (20348, "2022"),
    (17763, "2019"),
)
WINDOWS_CLIENT_BUILDS: Final[tuple[tuple[int, str], ...]] = ((22000, "11"),)

_LSB_RELEASE: Final[Path] = Path("/etc/lsb-release")
_OS_RELEASE: Final[Path] = Path("/etc/os-release")


@dataclass(frozen=True, slots=True)
class Platform:
    """Operating system image name plus CPU architecture.

    Attributes:
        name: Runner image name such as ``ubuntu-24.04``, ``macos-14`` or ``windows-2022``.
        arch: Normalised architecture, ``x64`` or ``arm64``.
    """

    name: str
    arch: str

    @property
    def id(self) -> str:
        """Return the opaque ``name-arch`` key used in cache keys."""

        return f"{self.name}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.name.startswith("windows-")

    @property
    def is_macos(self) -> bool:
        return self.name.startswith("macos-")

    @property
    def is_ubuntu(self) -> bool:
        return self.name.startswith("ubuntu-")

    def __str__(self) -> str:
        return self.name


def normalize_arch(machine: str) -> str:
    """Return the catalog architecture name for ``machine``."""

    arch = ARCH_ALIASES.get(machine.lower())
    if arch is None:
        raise ConfigurationError(f"Unsupported architecture: {machine}")
    return arch


def _ubuntu_version() -> str:
    if _LSB_RELEASE.is_file():
        match = re.search(r"^DISTRIB_RELEASE=(\d+\.\d+)$", _LSB_RELEASE.read_text(encoding="utf-8"), re.MULTILINE)
        if match:
            return match.group(1)
    if _OS_RELEASE.is_file():
        match = re.search(r'^VERSION_ID="?(\d+\.\d+)"?$', _OS_RELEASE.read_text(encoding="utf-8"), re.MULTILINE)
        if match:
            return match.group(1)
    raise ConfigurationError("Could not find Ubuntu version")


def _windows_release(version: str, edition: str | None = None) -> str:
    """Map a Windows build number to a runner image release.

    Client and server releases share build numbers, so the edition decides
    which table applies. A missing edition is treated as a server image.
    """

    parts = version.split(".")
    build = int(parts[2]) if len(parts) >= 3 and parts[2].isdigit() else 0
    builds = WINDOWS_SERVER_BUILDS
    if edition and "server" not in edition.lower():
        builds = WINDOWS_CLIENT_BUILDS
    for minimum, name in builds:
        if build >= minimum:
            return name
    raise ConfigurationError(f"Unknown Windows version {version}")


def detect_platform() -> Platform:
    """Return the :class:`Platform` of the running host.

    Raises:
        ConfigurationError: If the operating system is not a supported runner image.
    """

    system = _platform.system().lower()
    arch = normalize_arch(_platform.machine())
    if system == "linux":
        return Platform(name=f"ubuntu-{_ubuntu_version()}", arch=arch)
    if system == "darwin":
        major = _platform.mac_ver()[0].split(".")[0]
        return Platform(name=f"macos-{major}", arch=arch)
    if system == "windows":
        return Platform(name=f"windows-{_windows_release(_platform.version(), _platform.win32_edition())}", arch=arch)
    raise ConfigurationError(f"Unknown platform {system}")


__all__ = ["Platform", "detect_platform", "normalize_arch"]
