# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Fetch prebuilt archives and unpack them into an install prefix."""

from __future__ import annotations

import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

import requests

from ..errors import InstallStepError, SetupError

DOWNLOAD_TIMEOUT: Final[int] = 300
_CHUNK_SIZE: Final[int] = 1024 * 1024


class DownloadError(SetupError):
    """Raised when an archive cannot be fetched."""

    def __init__(self, url: str, status: int | None, message: str) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


@runtime_checkable
class Downloader(Protocol):
    """Transfers ``url`` into a local file."""

    def fetch(self, url: str, destination: Path) -> Path:
        """Download ``url`` to ``destination`` and return it.

        Raises:
            DownloadError: If the transfer fails.
        """

        raise NotImplementedError


class HttpDownloader:
    """:class:`Downloader` streaming responses with ``requests``.

    An injected ``session`` stays owned by the caller. Without one, each
    transfer opens a session and closes it when the download finishes.
    """

    def __init__(self, *, timeout: int = DOWNLOAD_TIMEOUT, session: requests.Session | None = None) -> None:
        self._timeout = timeout
        self._session = session

    def fetch(self, url: str, destination: Path) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if self._session is not None:
            return self._stream(self._session, url, destination)
        with requests.Session() as session:
            return self._stream(session, url, destination)

    def _stream(self, session: requests.Session, url: str, destination: Path) -> Path:
        try:
            with session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                with destination.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                        handle.write(chunk)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise DownloadError(url, status, f"Unexpected HTTP response: {status} for {url}") from exc
        except requests.RequestException as exc:
            raise DownloadError(url, None, f"Failed to download {url}: {exc}") from exc
        return destination


def extract_tarball(archive: Path, prefix: Path) -> None:
    """Unpack a ``.tar.gz`` whose single top-level directory becomes ``prefix``.

    Raises:
        InstallStepError: If the archive is corrupt or has no single root directory.
    """

    prefix.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=prefix.parent) as staging:
        try:
            with tarfile.open(archive, "r:gz") as handle:
                handle.extractall(staging, filter="data")
        except (OSError, tarfile.TarError) as exc:
            raise InstallStepError(["tar", "-xz", "-f", str(archive)], 1, None, str(exc)) from exc
        roots = list(Path(staging).iterdir())
        if len(roots) != 1 or not roots[0].is_dir():
            raise InstallStepError(
                ["tar", "-xz", "-f", str(archive)],
                1,
                None,
                f"expected a single top-level directory, found {len(roots)} entries",
            )
        if prefix.exists():
            shutil.rmtree(prefix)
        shutil.move(str(roots[0]), str(prefix))


def temporary_archive_path(runner_temp: Path | None, name: str) -> Path:
    """Return where a downloaded archive named ``name`` should be written."""

    base = runner_temp or Path(tempfile.gettempdir())
    return base / name


__all__ = [
    "DownloadError",
    "Downloader",
    "HttpDownloader",
    "extract_tarball",
    "temporary_archive_path",
]
