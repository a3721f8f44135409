# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cache backend storing gzip tarballs in a local directory.

Useful on self-hosted runners with a persistent disk, and as the reference
behaviour the test-suite exercises.
"""

from __future__ import annotations

import hashlib
import shutil
import tarfile
import tempfile
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import CacheBackendTransientError, CacheReserveConflictError, CacheValidationError

INDEX_FILENAME: Final[str] = "index.json"
MAX_KEY_LENGTH: Final[int] = 512


class CacheIndexEntry(BaseModel):
    """Archived entry recorded in the index."""

    model_config = ConfigDict(frozen=True)

    key: str
    archive: str
    created_ns: int


class CacheIndex(BaseModel):
    """Serialised index of every entry in the cache directory."""

    entries: list[CacheIndexEntry] = Field(default_factory=list)

    def find(self, key: str) -> CacheIndexEntry | None:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def newest_with_prefix(self, prefix: str) -> CacheIndexEntry | None:
        matches = [entry for entry in self.entries if entry.key.startswith(prefix)]
        if not matches:
            return None
        return max(matches, key=lambda entry: entry.created_ns)


def validate_key(key: str) -> None:
    """Reject keys the hosted cache service would also reject.

    Raises:
        CacheValidationError: If ``key`` is empty, too long or contains a comma.
    """

    if not key:
        raise CacheValidationError("Key Validation Error: key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise CacheValidationError(f"Key Validation Error: {key} cannot be larger than {MAX_KEY_LENGTH} characters.")
    if "," in key:
        raise CacheValidationError(f"Key Validation Error: {key} cannot contain commas.")


def _validate_paths(paths: Sequence[str]) -> None:
    if not paths:
        raise CacheValidationError("Path Validation Error: At least one directory or file path is required")


class LocalDirectoryCacheBackend:
    """:class:`~rubysetup.cache.backend.CacheBackend` writing into ``root``.

    Each saved path is stored inside the archive under its position in the
    ``paths`` sequence, so restoring needs the same sequence of paths.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def restore(self, paths: Sequence[str], key: str, restore_keys: Sequence[str]) -> str | None:
        _validate_paths(paths)
        for candidate in (key, *restore_keys):
            validate_key(candidate)
        index = self._load_index()
        entry = index.find(key)
        if entry is None:
            for prefix in restore_keys:
                entry = index.newest_with_prefix(prefix)
                if entry is not None:
                    break
        if entry is None:
            return None
        self._extract(self._root / entry.archive, paths)
        return entry.key

    def save(self, paths: Sequence[str], key: str) -> None:
        _validate_paths(paths)
        validate_key(key)
        index = self._load_index()
        if index.find(key) is not None:
            raise CacheReserveConflictError(
                f"Unable to reserve cache with key {key}, another job may be creating this cache.",
            )
        missing = [path for path in paths if not Path(path).exists()]
        if missing:
            raise CacheBackendTransientError(f"Path(s) do not exist, hence no cache is being saved: {', '.join(missing)}")

        archive_path = self._root / f"{hashlib.sha256(key.encode('utf-8')).hexdigest()}.tar.gz"
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            self._publish(archive_path, lambda partial: self._write_archive(partial, paths))
        except (OSError, tarfile.TarError) as exc:
            raise CacheBackendTransientError(f"Failed to write cache archive: {exc}") from exc

        index.entries.append(CacheIndexEntry(key=key, archive=archive_path.name, created_ns=time.time_ns()))
        try:
            self._write_index(index)
        except CacheBackendTransientError:
            archive_path.unlink(missing_ok=True)
            raise

    def _publish(self, target: Path, write: Callable[[Path], None]) -> None:
        """Write ``target`` through a ``.partial`` sibling that is renamed into place."""

        with tempfile.NamedTemporaryFile(dir=self._root, suffix=".partial", delete=False) as handle:
            partial = Path(handle.name)
        try:
            write(partial)
            partial.replace(target)
        finally:
            partial.unlink(missing_ok=True)

    @staticmethod
    def _write_archive(destination: Path, paths: Sequence[str]) -> None:
        with tarfile.open(destination, "w:gz") as archive:
            for position, path in enumerate(paths):
                archive.add(path, arcname=str(position))

    def _extract(self, archive_path: Path, paths: Sequence[str]) -> None:
        try:
            with tempfile.TemporaryDirectory(dir=self._root) as staging:
                with tarfile.open(archive_path, "r:gz") as archive:
                    archive.extractall(staging, filter="data")
                for position, path in enumerate(paths):
                    source = Path(staging) / str(position)
                    if not source.exists():
                        continue
                    target = Path(path)
                    if target.is_dir():
                        shutil.rmtree(target)
                    elif target.exists():
                        target.unlink()
                    target.parent.mkdir(parents=True, exist_ok=True)
                    shutil.move(str(source), str(target))
        except (OSError, tarfile.TarError) as exc:
            raise CacheBackendTransientError(f"Failed to extract cache archive {archive_path.name}: {exc}") from exc

    def _load_index(self) -> CacheIndex:
        path = self._root / INDEX_FILENAME
        if not path.is_file():
            return CacheIndex()
        try:
            return CacheIndex.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise CacheBackendTransientError(f"Cache index {path} is unreadable: {exc}") from exc

    def _write_index(self, index: CacheIndex) -> None:
        path = self._root / INDEX_FILENAME
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            self._publish(path, lambda partial: partial.write_text(index.model_dump_json(indent=2), encoding="utf-8"))
        except OSError as exc:
            raise CacheBackendTransientError(f"Failed to update cache index {path}: {exc}") from exc


__all__ = ["CacheIndex", "CacheIndexEntry", "LocalDirectoryCacheBackend", "validate_key"]
