# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``rubysetup`` command line."""

from __future__ import annotations

import json
import os
from pathlib import Path

import typer

from .catalog.loader import BUILDER_VERSIONS_FILE, WINDOWS_VERSIONS_FILE
from .catalog.maintenance import (
    add_builder_versions,
    default_data_dir,
    fetch_downloads_feed,
    parse_downloads,
    render_builder_versions,
    render_windows_versions,
    windows_versions_from_downloads,
    write_catalog,
)
from .config import load_options
from .errors import InstallStepError, SetupError
from .logging import SetupLogger, fail, ok
from .orchestrator import SetupServices, install_runtime

app = typer.Typer(help="Install a prebuilt Ruby and cache its gems.", no_args_is_help=True)


@app.callback()
def main() -> None:
    """Install a prebuilt Ruby and cache its gems."""


@app.command("install")
def install_command(
    ruby_version: str | None = typer.Option(
        None,
        "--ruby-version",
        help="Engine and version to install, e.g. 3.3, jruby, truffleruby-24 or default.",
    ),
    rubygems: str | None = typer.Option(None, "--rubygems", help="default, latest or a RubyGems version."),
    bundler: str | None = typer.Option(
        None,
        "--bundler",
        help="Gemfile.lock, default, latest, none or a Bundler version.",
    ),
    bundler_cache: bool | None = typer.Option(
        None,
        "--bundler-cache/--no-bundler-cache",
        help="Run bundle install and cache the installed gems.",
    ),
    working_directory: Path | None = typer.Option(
        None,
        "--working-directory",
        "-C",
        help="Directory containing the project's Gemfile and version files.",
    ),
    cache_version: str | None = typer.Option(None, "--cache-version", help="Change to invalidate the gem cache."),
    cache_dir: Path | None = typer.Option(None, "--cache-dir", help="Directory holding cached gem archives."),
    self_hosted: bool | None = typer.Option(
        None,
        "--self-hosted/--github-hosted",
        help="Treat the runner as self-hosted and keep runtimes in the tool cache.",
    ),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
    debug: bool = typer.Option(False, "--debug", help="Print debug diagnostics."),
) -> None:
    """Install Ruby, Bundler and optionally the project's gems."""

    logger = SetupLogger(use_emoji=emoji, debug_enabled=debug)
    try:
        options = load_options(
            os.environ,
            ruby_version=ruby_version,
            rubygems=rubygems,
            bundler=bundler,
            bundler_cache=bundler_cache,
            working_directory=working_directory,
            cache_version=cache_version,
            cache_dir=cache_dir,
            self_hosted=self_hosted,
        )
        result = install_runtime(options, SetupServices(logger=logger))
    except InstallStepError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=exc.returncode or 1) from exc
    except (SetupError, FileNotFoundError) as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=1) from exc

    ok(f"Installed {result.engine}-{result.version} at {result.prefix}", use_emoji=emoji)
    raise typer.Exit(code=0)


catalog_app = typer.Typer(help="Maintain the packaged version catalog.", no_args_is_help=True)

DATA_DIR_OPTION = typer.Option(
    None,
    "--data-dir",
    help="Directory holding the catalog JSON documents. Defaults to the package data.",
)


@catalog_app.command("windows")
def catalog_windows_command(
    feed: Path | None = typer.Option(
        None,
        "--feed",
        help="Read the RubyInstaller downloads YAML from this file instead of fetching it.",
    ),
    data_dir: Path | None = DATA_DIR_OPTION,
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """Regenerate the Windows catalog from the RubyInstaller downloads feed."""

    target = data_dir or default_data_dir()
    try:
        payload = feed.read_text(encoding="utf-8") if feed is not None else fetch_downloads_feed()
        windows = windows_versions_from_downloads(parse_downloads(payload))
        write_catalog(target, windows=render_windows_versions(windows))
    except (SetupError, OSError) as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=1) from exc
    ok(f"Wrote {len(windows)} Windows entries to {target / WINDOWS_VERSIONS_FILE}", use_emoji=emoji)


@catalog_app.command("add")
def catalog_add_command(
    versions: list[str] = typer.Argument(
        ...,
        help="Releases as engine-version, e.g. ruby-3.4.7 or jruby-10.0.3.0. Commas separate several in one argument.",
    ),
    data_dir: Path | None = DATA_DIR_OPTION,
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """Add new ruby-builder releases to the catalog."""

    target = data_dir or default_data_dir()
    additions = [item.strip() for value in versions for item in value.split(",") if item.strip()]
    try:
        path = target / BUILDER_VERSIONS_FILE
        builder = json.loads(path.read_text(encoding="utf-8"))
        updated = add_builder_versions(builder, additions)
        write_catalog(target, builder=render_builder_versions(updated))
    except (SetupError, OSError, json.JSONDecodeError) as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=1) from exc
    ok(f"Added {', '.join(additions)} to {path}", use_emoji=emoji)


app.add_typer(catalog_app, name="catalog")


__all__ = ["app", "catalog_add_command", "catalog_app", "catalog_windows_command", "install_command"]
