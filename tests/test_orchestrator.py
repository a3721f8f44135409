# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end tests of a setup run against in-memory collaborators."""

from __future__ import annotations

import hashlib
import io
import tarfile
from pathlib import Path

import pytest

from rubysetup.catalog import load_catalog
from rubysetup.config import SetupOptions
from rubysetup.environment import InMemoryExporter
from rubysetup.errors import ConfigurationError, UnknownVersionError
from rubysetup.logging import SetupLogger
from rubysetup.orchestrator import SetupServices, install_runtime
from rubysetup.platforms import Platform

LOCKFILE = """GEM
  remote: https://rubygems.org/
  specs:
    rake (13.2.1)

PLATFORMS
  x86_64-linux

DEPENDENCIES
  rake

BUNDLED WITH
   2.5.10
"""


class TarballDownloader:
    def __init__(self) -> None:
        self.urls: list[str] = []

    def fetch(self, url: str, destination: Path) -> Path:
        self.urls.append(url)
        destination.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(destination, "w:gz") as archive:
            info = tarfile.TarInfo("ruby/bin/ruby")
            info.size = 0
            archive.addfile(info, io.BytesIO(b""))
        return destination


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / ".ruby-version").write_text("3.3\n", encoding="utf-8")
    (root / "Gemfile").write_text('source "https://rubygems.org"\ngem "rake"\n', encoding="utf-8")
    (root / "Gemfile.lock").write_text(LOCKFILE, encoding="utf-8")
    return root


@pytest.fixture
def environ(tmp_path: Path) -> dict[str, str]:
    home = tmp_path / "home"
    home.mkdir()
    return {
        "HOME": str(home),
        "RUNNER_TOOL_CACHE": str(tmp_path / "toolcache"),
        "RUNNER_TEMP": str(tmp_path / "temp"),
        "PATH": "/usr/local/bin:/opt/hostedtoolcache/Ruby/3.2.0/x64/bin:/usr/bin",
        "BUNDLE_WITHOUT": "development",
    }


def make_services(runner, cache_backend, logger, environ, platform: Platform) -> SetupServices:  # noqa: ANN001
    return SetupServices(
        runner=runner,
        downloader=TarballDownloader(),
        exporter=InMemoryExporter(),
        environ=environ,
        logger=logger,
        platform=platform,
        cache_backend=cache_backend,
    )


def test_installs_ruby_bundler_and_caches_gems(
    tmp_path: Path,
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    services = make_services(runner, cache_backend, quiet_logger, environ, ubuntu)
    options = SetupOptions(working_directory=project, bundler_cache=True)

    result = install_runtime(options, services)

    prefix = tmp_path / "toolcache" / "Ruby" / "3.3.9" / "x64"
    assert result.prefix == prefix
    assert (result.engine, result.version, result.bundler_version) == ("ruby", "3.3.9", "2.5.10")
    assert (tmp_path / "home" / ".gemrc").read_text(encoding="utf-8") == "gem: --no-document\n"

    exporter = services.exporter
    assert exporter.variables["PATH"] == "/usr/local/bin:/usr/bin"
    assert exporter.paths == [str(prefix / "bin")]
    assert exporter.outputs == {"ruby-prefix": str(prefix)}

    commands = runner.commands
    assert commands[0] == ["ruby", "--version"]
    assert ["gem", "install", "bundler", "-v", "2.5.10"] in commands
    assert ["bundle", "config", "set", "--local", "deployment", "true"] in commands
    assert commands[-1][:2] == ["bundle", "install"]

    digest = hashlib.sha256(LOCKFILE.encode("utf-8")).hexdigest()
    expected_key = (
        f"rubysetup-bundler-cache-v6-ubuntu-24.04-x64-ruby-3.3.9-wd-{project.resolve()}"
        f"-with--without-development-only--Gemfile.lock-{digest}"
    )
    assert cache_backend.saves == [((str(project.resolve() / "vendor" / "bundle"),), expected_key)]
    assert result.cache_outcome is not None and result.cache_outcome.saved


def test_second_run_restores_exact_entry(
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    options = SetupOptions(working_directory=project, bundler_cache=True)
    install_runtime(options, make_services(runner, cache_backend, quiet_logger, environ, ubuntu))

    services = make_services(runner, cache_backend, quiet_logger, environ, ubuntu)
    result = install_runtime(options, services)

    assert services.downloader.urls == []
    assert result.cache_outcome is not None
    assert result.cache_outcome.from_cache and not result.cache_outcome.saved
    assert len(cache_backend.saves) == 1


def test_head_builds_add_abi_to_cache_key(
    tmp_path: Path,
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    (project / "Gemfile.lock").write_text(LOCKFILE.split("BUNDLED WITH")[0], encoding="utf-8")
    runner.outputs[("ruby", "-e")] = "3.5.0+1"
    options = SetupOptions(ruby_version="head", working_directory=project, bundler_cache=True)

    result = install_runtime(options, make_services(runner, cache_backend, quiet_logger, environ, ubuntu))

    assert result.prefix == tmp_path / "home" / ".rubies" / "ruby-head"
    assert result.bundler_version == "4"
    assert not any(command[:2] == ["gem", "install"] for command in runner.commands)
    assert "-ABI-3.5.0+1-Gemfile.lock-" in cache_backend.saves[0][1]


def test_development_bundler_pin_falls_back_to_shipped_bundler(
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    (project / "Gemfile.lock").write_text(LOCKFILE.replace("2.5.10", "2.6.0.dev"), encoding="utf-8")
    options = SetupOptions(working_directory=project, bundler_cache=True)

    result = install_runtime(options, make_services(runner, cache_backend, quiet_logger, environ, ubuntu))

    assert result.bundler_version == "2"
    assert not any(command[:3] == ["gem", "install", "bundler"] for command in runner.commands)
    assert runner.commands[-1][:2] == ["bundle", "install"]


def test_bundle_install_skipped_without_gemfile(
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    (project / "Gemfile").unlink()
    (project / "Gemfile.lock").unlink()
    options = SetupOptions(ruby_version="3.4", bundler="none", working_directory=project)

    result = install_runtime(options, make_services(runner, cache_backend, quiet_logger, environ, ubuntu))

    assert result.version == "3.4.6"
    assert result.bundler_version == "unknown"
    assert result.cache_outcome is None
    assert runner.commands == [["ruby", "--version"]]


def test_rubygems_update_runs_before_bundler(
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    options = SetupOptions(ruby_version="3.1", rubygems="latest", working_directory=project)

    result = install_runtime(options, make_services(runner, cache_backend, quiet_logger, environ, ubuntu))

    assert ["gem", "update", "--system", "3.6.9"] in runner.commands
    assert result.bundler_version == "unknown"
    assert not any(command[:3] == ["gem", "install", "bundler"] for command in runner.commands)


def test_missing_version_file_is_a_configuration_error(
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    (project / ".ruby-version").unlink()

    with pytest.raises(ConfigurationError, match="ruby-version needs to be specified"):
        install_runtime(
            SetupOptions(working_directory=project),
            make_services(runner, cache_backend, quiet_logger, environ, ubuntu),
        )


def test_unknown_version_installs_nothing(
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
    quiet_logger,  # noqa: ANN001
) -> None:
    services = make_services(runner, cache_backend, quiet_logger, environ, ubuntu)

    with pytest.raises(UnknownVersionError):
        install_runtime(SetupOptions(ruby_version="2.9", working_directory=project), services)
    assert services.downloader.urls == []
    assert services.exporter.paths == []
    assert runner.commands == []


def test_debug_logging_reports_catalog_checksum(
    capsys,  # noqa: ANN001
    project: Path,
    environ: dict[str, str],
    ubuntu: Platform,
    runner,  # noqa: ANN001
    cache_backend,  # noqa: ANN001
) -> None:
    logger = SetupLogger(use_emoji=False, use_color=False, debug_enabled=True)
    options = SetupOptions(bundler="none", working_directory=project)

    install_runtime(options, make_services(runner, cache_backend, logger, environ, ubuntu))

    assert f"catalog={load_catalog().checksum} self_hosted=False" in capsys.readouterr().out
