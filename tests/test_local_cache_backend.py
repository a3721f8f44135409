# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the directory-backed gem cache."""

from __future__ import annotations

import tarfile
from pathlib import Path

import pytest

from rubysetup.cache import LocalDirectoryCacheBackend
from rubysetup.cache.local import INDEX_FILENAME, CacheIndex, validate_key
from rubysetup.errors import CacheBackendTransientError, CacheReserveConflictError, CacheValidationError


def _bundle_dir(root: Path, marker: str) -> Path:
    bundle = root / "vendor" / "bundle"
    gem = bundle / "ruby" / "3.3.0" / "gems" / "rake-13.2.1"
    gem.mkdir(parents=True, exist_ok=True)
    (gem / "VERSION").write_text(marker, encoding="utf-8")
    return bundle


def test_save_then_restore_replaces_directory(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    bundle = _bundle_dir(tmp_path / "project", "cached")
    backend.save([str(bundle)], "key-a")

    (bundle / "ruby" / "3.3.0" / "gems" / "rake-13.2.1" / "VERSION").write_text("local", encoding="utf-8")
    (bundle / "stale").write_text("x", encoding="utf-8")

    assert backend.restore([str(bundle)], "key-a", []) == "key-a"
    assert (bundle / "ruby" / "3.3.0" / "gems" / "rake-13.2.1" / "VERSION").read_text(encoding="utf-8") == "cached"
    assert not (bundle / "stale").exists()


def test_restore_miss_returns_none(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")

    assert backend.restore([str(tmp_path / "vendor")], "key-a", ["key-"]) is None


def test_prefix_restore_picks_newest_entry(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    bundle = _bundle_dir(tmp_path / "project", "first")
    backend.save([str(bundle)], "base-111")
    _bundle_dir(tmp_path / "project", "second")
    backend.save([str(bundle)], "base-222")

    assert backend.restore([str(bundle)], "base-333", ["base-"]) == "base-222"
    assert (bundle / "ruby" / "3.3.0" / "gems" / "rake-13.2.1" / "VERSION").read_text(encoding="utf-8") == "second"


def test_index_records_entries(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    bundle = _bundle_dir(tmp_path / "project", "x")
    backend.save([str(bundle)], "key-a")

    index = CacheIndex.model_validate_json((backend.root / INDEX_FILENAME).read_text(encoding="utf-8"))

    assert [entry.key for entry in index.entries] == ["key-a"]
    assert (backend.root / index.entries[0].archive).is_file()


def test_duplicate_save_is_a_reserve_conflict(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    bundle = _bundle_dir(tmp_path / "project", "x")
    backend.save([str(bundle)], "key-a")

    with pytest.raises(CacheReserveConflictError):
        backend.save([str(bundle)], "key-a")


def test_saving_missing_path_is_transient(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")

    with pytest.raises(CacheBackendTransientError):
        backend.save([str(tmp_path / "missing")], "key-a")


def test_corrupt_index_is_transient(tmp_path: Path) -> None:
    root = tmp_path / "cache"
    root.mkdir()
    (root / INDEX_FILENAME).write_text("{not json", encoding="utf-8")

    with pytest.raises(CacheBackendTransientError):
        LocalDirectoryCacheBackend(root).restore(["vendor"], "key-a", [])


@pytest.mark.parametrize("key", ["", "a,b", "k" * 513])
def test_invalid_keys_are_rejected(key: str) -> None:
    with pytest.raises(CacheValidationError):
        validate_key(key)


def test_empty_paths_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(CacheValidationError):
        LocalDirectoryCacheBackend(tmp_path).save([], "key-a")


def test_failed_archive_write_leaves_no_partial_files(monkeypatch, tmp_path: Path) -> None:  # noqa: ANN001
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    bundle = _bundle_dir(tmp_path / "project", "x")

    def broken_add(self, name, arcname=None, **kwargs) -> None:  # noqa: ANN001
        raise tarfile.TarError("device full")

    monkeypatch.setattr(tarfile.TarFile, "add", broken_add)

    with pytest.raises(CacheBackendTransientError, match="device full"):
        backend.save([str(bundle)], "key-a")

    assert list(backend.root.iterdir()) == []


def test_failed_index_write_keeps_previous_index(monkeypatch, tmp_path: Path) -> None:  # noqa: ANN001
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    bundle = _bundle_dir(tmp_path / "project", "x")
    backend.save([str(bundle)], "key-a")
    before = (backend.root / INDEX_FILENAME).read_text(encoding="utf-8")
    original_replace = Path.replace

    def replace(self: Path, target):  # noqa: ANN001, ANN202
        if Path(target).name == INDEX_FILENAME:
            raise OSError("read-only file system")
        return original_replace(self, target)

    monkeypatch.setattr(Path, "replace", replace)

    with pytest.raises(CacheBackendTransientError, match="read-only file system"):
        backend.save([str(bundle)], "key-b")

    assert (backend.root / INDEX_FILENAME).read_text(encoding="utf-8") == before
    assert list(backend.root.glob("*.partial")) == []
    assert len(list(backend.root.glob("*.tar.gz"))) == 1


def test_successful_save_leaves_only_archive_and_index(tmp_path: Path) -> None:
    backend = LocalDirectoryCacheBackend(tmp_path / "cache")
    backend.save([str(_bundle_dir(tmp_path / "project", "x"))], "key-a")

    names = sorted(path.name for path in backend.root.iterdir())

    assert len(names) == 2
    assert INDEX_FILENAME in names
    assert not any(name.endswith(".partial") for name in names)
