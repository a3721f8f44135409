# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end setup: resolve, install, configure and optionally bundle install."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .bundle import BundleSteps
from .cache import (
    CacheBackend,
    CacheCoordinator,
    InstallOutcome,
    KeyFacts,
    LocalDirectoryCacheBackend,
    build_base_key,
    build_full_key,
    detect_abi,
    needs_abi,
    restore_prefix,
)
from .catalog import VersionCatalog, load_catalog
from .config import SetupOptions
from .constants import PROJECT_DEFAULT_SENTINEL
from .environment import (
    EnvironmentExporter,
    EnvironmentFacts,
    GitHubActionsExporter,
    apply_path_update,
    plan_path_update,
    windows_preinstall_variables,
    write_gemrc,
)
from .installers import Downloader, HttpDownloader, InstalledRuntime, select_installer
from .installers.toolcache import self_hosted_reason
from .lockfile import GemfileSet, detect_gemfiles, lockfile_digest, read_bundled_with, read_lockfile
from .logging import SetupLogger, measure
from .platforms import Platform, detect_platform
from .policy import (
    UNKNOWN_BUNDLER,
    BundlerContext,
    BundlerRequest,
    BundlerRequestKind,
    RUBYGEMS_DEFAULT,
    RUBYGEMS_LATEST,
    resolve_bundler,
    rubygems_update_command,
)
from .process_utils import CommandRunner, SubprocessRunner, capture_stdout
from .resolver import ResolvedVersion, VersionSpec, resolve
from .version_files import read_project_version

DEFAULT_CACHE_DIRNAME = ".cache/rubysetup"


@dataclass(slots=True)
class SetupServices:
    """Collaborators used by :func:`install_runtime`; tests swap in fakes."""

    runner: CommandRunner = field(default_factory=SubprocessRunner)
    downloader: Downloader = field(default_factory=HttpDownloader)
    exporter: EnvironmentExporter = field(default_factory=GitHubActionsExporter)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    logger: SetupLogger = field(default_factory=SetupLogger)
    catalog: VersionCatalog | None = None
    platform: Platform | None = None
    cache_backend: CacheBackend | None = None
    platform_detector: Callable[[], Platform] = detect_platform


@dataclass(frozen=True, slots=True)
class SetupResult:
    """What a setup run installed."""

    prefix: Path
    engine: str
    version: str
    bundler_version: str
    cache_outcome: InstallOutcome | None = None


def _resolve_input(options: SetupOptions, working_directory: Path, logger: SetupLogger) -> str:
    if options.ruby_version != PROJECT_DEFAULT_SENTINEL:
        return options.ruby_version
    version, source = read_project_version(working_directory)
    logger.info(f"Using {version} as input from file {source.name}")
    return version


def _lockfile_label(lockfile: Path, working_directory: Path) -> str:
    try:
        return str(lockfile.relative_to(working_directory))
    except ValueError:
        return str(lockfile)


def _update_rubygems(options: SetupOptions, resolved: ResolvedVersion, services: SetupServices) -> None:
    current = None
    if options.rubygems not in (RUBYGEMS_DEFAULT, RUBYGEMS_LATEST):
        current = capture_stdout(services.runner, ["gem", "--version"])
    plan = rubygems_update_command(options.rubygems, resolved.engine, resolved.version, current)
    services.logger.info(plan.reason)
    for command in plan.commands:
        services.runner.run(list(command))


def _install_bundler(
    options: SetupOptions,
    resolved: ResolvedVersion,
    gemfiles: GemfileSet | None,
    platform: Platform,
    services: SetupServices,
) -> str:
    request = BundlerRequest.parse(options.bundler)
    pinned = None
    if request.kind is BundlerRequestKind.LOCKFILE and gemfiles is not None and gemfiles.has_lockfile:
        pinned = read_bundled_with(read_lockfile(gemfiles.lockfile))
    context = BundlerContext(
        windows=platform.is_windows,
        rubygems_updated=options.rubygems != RUBYGEMS_DEFAULT,
        pinned_version=pinned,
    )
    decision = resolve_bundler(resolved.engine, resolved.version, request, context)
    for reason in decision.reasons:
        services.logger.info(reason)
    if decision.install:
        services.runner.run(decision.install_command("gem"))
    return decision.version


def _bundle_install(
    options: SetupOptions,
    resolved: ResolvedVersion,
    gemfiles: GemfileSet,
    bundler_version: str,
    facts: EnvironmentFacts,
    services: SetupServices,
) -> InstallOutcome:
    steps = BundleSteps(
        services.runner,
        working_directory=facts.working_directory,
        bundler_version=bundler_version,
        environ=services.environ,
        logger=services.logger,
    )
    steps.configure(gemfiles.lockfile)

    backend = services.cache_backend or LocalDirectoryCacheBackend(
        options.cache_dir or facts.home / DEFAULT_CACHE_DIRNAME,
    )
    coordinator = CacheCoordinator(
        backend,
        paths=[str(steps.cache_path)],
        install_step=steps.install,
        cleanup_step=steps.clean,
        verify_step=steps.check,
        event_name=facts.event_name,
        logger=services.logger,
    )
    if not gemfiles.has_lockfile:
        services.logger.warn(f"{gemfiles.lockfile.name} was not generated, installing without cache")
        return coordinator.install(None, None, None)

    scoping = facts.scoping()
    key_facts = KeyFacts(
        platform_id=facts.platform().id,
        engine=resolved.engine,
        version=resolved.version,
        working_directory=str(facts.working_directory),
        bundle_with=scoping.with_groups,
        bundle_without=scoping.without_groups,
        bundle_only=scoping.only_groups,
        lockfile=_lockfile_label(gemfiles.lockfile, facts.working_directory),
        cache_version=options.cache_version,
        abi=detect_abi(services.runner) if needs_abi(resolved.engine, resolved.version) else None,
    )
    base = build_base_key(key_facts)
    full_key = build_full_key(base, lockfile_digest(read_lockfile(gemfiles.lockfile)))
    services.logger.info(f"Cache key: {full_key}")
    return coordinator.install(gemfiles.lockfile, full_key, restore_prefix(base))


def install_runtime(options: SetupOptions, services: SetupServices | None = None) -> SetupResult:
    """Install the requested Ruby and prepare the project's gems.

    Args:
        options: Validated run options.
        services: Collaborators; defaults talk to the real system.

    Returns:
        SetupResult: Installed prefix, versions and the gem cache outcome.

    Raises:
        SetupError: For any fatal failure; nothing is exported for later steps
        beyond what was already applied when it occurred.
    """

    svc = services or SetupServices()
    logger = svc.logger
    platform = svc.platform or svc.platform_detector()
    working_directory = options.working_directory.resolve()
    facts = EnvironmentFacts(host=platform, working_directory=working_directory, environ=svc.environ)

    raw = _resolve_input(options, working_directory, logger)
    hosted_reason = self_hosted_reason(platform, svc.environ, forced=options.self_hosted)
    catalog = (svc.catalog or load_catalog()).with_self_hosted(hosted_reason is not None)
    resolved = resolve(VersionSpec.parse(raw), platform, catalog)
    logger.debug(f"engine={resolved.engine} version={resolved.version} platform={platform.id}")
    logger.debug(f"catalog={catalog.checksum} self_hosted={catalog.self_hosted}")

    write_gemrc(facts.home, resolved.engine, resolved.version)
    if platform.is_windows:
        for name, value in windows_preinstall_variables(svc.environ).items():
            svc.exporter.export_variable(name, value)

    installer = select_installer(
        catalog,
        resolved,
        facts=facts,
        downloader=svc.downloader,
        runner=svc.runner,
        self_hosted_reason=hosted_reason,
        logger=logger,
    )
    installed: InstalledRuntime = installer.install(resolved)

    with measure(f"Modifying {facts.path_variable}", logger):
        plan = plan_path_update(svc.environ.get(facts.path_variable, ""), [str(path) for path in installed.bin_dirs])
        apply_path_update(plan, svc.exporter, variable=facts.path_variable, logger=logger)
    if platform.is_windows and options.windows_toolchain != "none":
        logger.warn("Installing the Windows build toolchain is not supported, native gems need a toolchain on the runner")

    with measure("Print Ruby version", logger):
        svc.runner.run(["ruby", "--version"])

    if options.rubygems != RUBYGEMS_DEFAULT:
        with measure("Updating RubyGems", logger):
            _update_rubygems(options, resolved, svc)

    gemfiles = detect_gemfiles(svc.environ, working_directory)
    bundler_version = UNKNOWN_BUNDLER
    if options.bundler != "none":
        with measure("Installing Bundler", logger):
            bundler_version = _install_bundler(options, resolved, gemfiles, platform, svc)

    outcome: InstallOutcome | None = None
    if options.bundler_cache:
        if gemfiles is None:
            logger.info('Could not determine gemfile path, skipping "bundle install" and caching')
        else:
            with measure("bundle install", logger):
                outcome = _bundle_install(options, resolved, gemfiles, bundler_version, facts, svc)

    svc.exporter.set_output("ruby-prefix", str(installed.prefix))
    return SetupResult(
        prefix=installed.prefix,
        engine=resolved.engine,
        version=resolved.version,
        bundler_version=bundler_version,
        cache_outcome=outcome,
    )


__all__ = ["SetupResult", "SetupServices", "install_runtime"]
