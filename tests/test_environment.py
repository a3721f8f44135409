# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for runner facts, exporters, PATH handling and ``.gemrc``."""

from __future__ import annotations

from pathlib import Path

from rubysetup.environment import (
    EnvironmentFacts,
    GitHubActionsExporter,
    InMemoryExporter,
    apply_path_update,
    gemrc_contents,
    plan_path_update,
    windows_preinstall_variables,
    write_gemrc,
)
from rubysetup.platforms import Platform


def test_plan_path_update_drops_ruby_entries() -> None:
    current = "/opt/hostedtoolcache/Ruby/3.2.0/x64/bin:/usr/local/bin:/opt/rubyish/bin:/usr/bin"

    plan = plan_path_update(current, ["/home/runner/.rubies/ruby-3.3.9/bin"], separator=":")

    assert plan.removed == ("/opt/hostedtoolcache/Ruby/3.2.0/x64/bin",)
    assert plan.cleaned == "/usr/local/bin:/opt/rubyish/bin:/usr/bin"
    assert plan.changed


def test_plan_path_update_keeps_unrelated_paths() -> None:
    plan = plan_path_update("/usr/bin:/opt/rubyish/bin", ["/x/bin"], separator=":")

    assert not plan.changed
    assert plan.added == ("/x/bin",)


def test_apply_path_update_exports_cleaned_path(quiet_logger) -> None:  # noqa: ANN001
    exporter = InMemoryExporter()
    plan = plan_path_update("/usr/lib/ruby/bin:/usr/bin", ["/a/bin", "/b/bin"], separator=":")

    apply_path_update(plan, exporter, variable="PATH", separator=":", logger=quiet_logger)

    assert exporter.variables == {"PATH": "/usr/bin"}
    assert exporter.paths == ["/a/bin:/b/bin"]


def test_apply_path_update_without_removals_only_prepends(quiet_logger) -> None:  # noqa: ANN001
    exporter = InMemoryExporter()

    apply_path_update(plan_path_update("/usr/bin", ["/a/bin"], separator=":"), exporter, separator=":", logger=quiet_logger)

    assert exporter.variables == {}
    assert exporter.paths == ["/a/bin"]


def test_github_exporter_writes_command_files(tmp_path: Path) -> None:
    env_file = tmp_path / "env"
    path_file = tmp_path / "path"
    output_file = tmp_path / "output"
    environ = {
        "GITHUB_ENV": str(env_file),
        "GITHUB_PATH": str(path_file),
        "GITHUB_OUTPUT": str(output_file),
        "PATH": "/usr/bin",
    }
    exporter = GitHubActionsExporter(environ)

    exporter.export_variable("BUNDLE_GEMFILE", "/app/Gemfile")
    exporter.add_path("/rubies/bin")
    exporter.set_output("ruby-prefix", "/rubies")

    assert env_file.read_text(encoding="utf-8") == "BUNDLE_GEMFILE=/app/Gemfile\n"
    assert path_file.read_text(encoding="utf-8") == "/rubies/bin\n"
    assert output_file.read_text(encoding="utf-8") == "ruby-prefix=/rubies\n"
    assert environ["BUNDLE_GEMFILE"] == "/app/Gemfile"
    assert environ["PATH"].startswith("/rubies/bin")


def test_github_exporter_uses_delimiter_for_multiline_values(tmp_path: Path) -> None:
    env_file = tmp_path / "env"
    exporter = GitHubActionsExporter({"GITHUB_ENV": str(env_file)})

    exporter.export_variable("NOTES", "one\ntwo")

    lines = env_file.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("NOTES<<ghadelimiter_")
    assert lines[1:3] == ["one", "two"]
    assert lines[3] == lines[0].split("<<", 1)[1]


def test_github_exporter_without_files_only_updates_environ() -> None:
    environ: dict[str, str] = {}

    GitHubActionsExporter(environ).export_variable("TMPDIR", "/tmp/runner")

    assert environ == {"TMPDIR": "/tmp/runner"}


def test_gemrc_contents_by_version() -> None:
    assert gemrc_contents("ruby", "1.9.3") == "install: --no-rdoc --no-ri\nupdate: --no-rdoc --no-ri\n"
    assert gemrc_contents("ruby", "3.3.9") == "gem: --no-document\n"
    assert gemrc_contents("ruby", "head") == "gem: --no-document\n"
    assert gemrc_contents("jruby", "9.4.8.0") == "gem: --no-document\n"


def test_write_gemrc_keeps_existing_file(tmp_path: Path) -> None:
    (tmp_path / ".gemrc").write_text("custom\n", encoding="utf-8")

    assert write_gemrc(tmp_path, "ruby", "3.3.9") is None
    assert (tmp_path / ".gemrc").read_text(encoding="utf-8") == "custom\n"


def test_write_gemrc_creates_file(tmp_path: Path) -> None:
    written = write_gemrc(tmp_path, "ruby", "3.3.9")

    assert written == tmp_path / ".gemrc"
    assert written.read_text(encoding="utf-8") == "gem: --no-document\n"


def test_windows_preinstall_variables() -> None:
    variables = windows_preinstall_variables(
        {"RUNNER_TEMP": "D:\\a\\_temp", "HOMEDRIVE": "C:", "HOMEPATH": "\\Users\\runneradmin"},
    )

    assert variables == {
        "TMPDIR": "D:\\a\\_temp",
        "HOME": "C:\\Users\\runneradmin",
        "MSYS2_PATH_TYPE": "inherit",
    }


def test_environment_facts_scoping_and_paths(tmp_path: Path, windows: Platform) -> None:
    facts = EnvironmentFacts(
        host=windows,
        working_directory=tmp_path,
        environ={
            "BUNDLE_WITHOUT": "development:test",
            "GITHUB_EVENT_NAME": "merge_group",
            "RUNNER_TOOL_CACHE": "C:\\hostedtoolcache\\windows",
            "HOME": str(tmp_path),
        },
    )

    assert facts.scoping().without_groups == "development:test"
    assert facts.scoping().with_groups == ""
    assert facts.event_name == "merge_group"
    assert facts.tool_cache == Path("C:\\hostedtoolcache\\windows")
    assert facts.runner_temp is None
    assert facts.home == tmp_path
    assert facts.path_variable == "Path"
