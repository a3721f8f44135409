# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for Gemfile detection and lock file parsing."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from rubysetup.cache.keys import build_full_key, restore_prefix
from rubysetup.errors import ConfigurationError
from rubysetup.lockfile import GemfileSet, detect_gemfiles, lockfile_digest, read_bundled_with

LOCK = b"""GEM
  remote: https://rubygems.org/
  specs:
    rake (13.2.1)

PLATFORMS
  x86_64-linux

DEPENDENCIES
  rake

BUNDLED WITH
   2.5.23
"""


def test_detects_gemfile(tmp_path: Path) -> None:
    (tmp_path / "Gemfile").write_text("source 'https://rubygems.org'\n", encoding="utf-8")

    found = detect_gemfiles({}, tmp_path)

    assert found == GemfileSet(gemfile=tmp_path / "Gemfile", lockfile=tmp_path / "Gemfile.lock")
    assert not found.has_lockfile


def test_bundle_gemfile_override(tmp_path: Path) -> None:
    (tmp_path / "gemfiles").mkdir()
    (tmp_path / "gemfiles" / "rails7.gemfile").write_text("", encoding="utf-8")

    found = detect_gemfiles({"BUNDLE_GEMFILE": "gemfiles/rails7.gemfile"}, tmp_path)

    assert found is not None
    assert found.lockfile == tmp_path / "gemfiles" / "rails7.gemfile.lock"


def test_missing_bundle_gemfile_is_an_error(tmp_path: Path) -> None:
    (tmp_path / "Gemfile").write_text("", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="BUNDLE_GEMFILE"):
        detect_gemfiles({"BUNDLE_GEMFILE": "nope.gemfile"}, tmp_path)


def test_gems_rb(tmp_path: Path) -> None:
    (tmp_path / "gems.rb").write_text("", encoding="utf-8")
    (tmp_path / "gems.locked").write_bytes(LOCK)

    found = detect_gemfiles({}, tmp_path)

    assert found is not None
    assert found.lockfile.name == "gems.locked"
    assert found.has_lockfile


def test_no_gemfile(tmp_path: Path) -> None:
    assert detect_gemfiles({}, tmp_path) is None


def test_bundled_with() -> None:
    assert read_bundled_with(LOCK) == "2.5.23"
    assert read_bundled_with(LOCK.replace(b"BUNDLED WITH\n   2.5.23\n", b"")) is None
    assert read_bundled_with(b"BUNDLED WITH\n") is None
    assert read_bundled_with(b"BUNDLED WITH\r\n   garbage\r\n") is None
    assert read_bundled_with(b"BUNDLED WITH\n   2.6.0.dev\n") == "2.6.0.dev"


def test_digest_is_sha256() -> None:
    assert lockfile_digest(LOCK) == hashlib.sha256(LOCK).hexdigest()
    assert lockfile_digest(LOCK) != lockfile_digest(LOCK + b"\n")


def test_lockfile_change_keeps_restore_prefix() -> None:
    base = "setup-ruby-bundle-v1-ubuntu-24.04-x64-ruby-3.3.9-wd-/work-with--without--only--Gemfile.lock"
    edited = LOCK.replace(b"2.5.23", b"2.5.24")
    before = build_full_key(base, lockfile_digest(LOCK))
    after = build_full_key(base, lockfile_digest(edited))
    assert before != after
    assert before[:-64] == after[:-64] == restore_prefix(base)
    assert before.startswith(restore_prefix(base))
