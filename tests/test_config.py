# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests covering run option loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from rubysetup.config import SetupOptions, input_name, load_options
from rubysetup.errors import ConfigurationError


def test_defaults() -> None:
    options = load_options({})

    assert options == SetupOptions()
    assert options.ruby_version == "default"
    assert options.bundler == "Gemfile.lock"
    assert options.rubygems == "default"
    assert options.bundler_cache is False
    assert options.cache_version == "0"


def test_input_name() -> None:
    assert input_name("ruby_version") == "INPUT_RUBY-VERSION"
    assert input_name("bundler_cache") == "INPUT_BUNDLER-CACHE"


def test_reads_action_inputs() -> None:
    options = load_options(
        {
            "INPUT_RUBY-VERSION": " 3.3 ",
            "INPUT_BUNDLER-CACHE": "true",
            "INPUT_WORKING-DIRECTORY": "app",
            "INPUT_CACHE-VERSION": "2",
            "INPUT_SELF-HOSTED": "false",
        },
    )

    assert options.ruby_version == "3.3"
    assert options.bundler_cache is True
    assert options.working_directory == Path("app")
    assert options.cache_version == "2"
    assert options.self_hosted is False


def test_blank_inputs_fall_back_to_defaults() -> None:
    assert load_options({"INPUT_BUNDLER": "   "}).bundler == "Gemfile.lock"


def test_overrides_win_and_none_is_ignored() -> None:
    options = load_options({"INPUT_RUBY-VERSION": "3.2"}, ruby_version="jruby", bundler=None)

    assert options.ruby_version == "jruby"
    assert options.bundler == "Gemfile.lock"


def test_bundler_cache_requires_bundler() -> None:
    with pytest.raises(ConfigurationError, match="requires installing Bundler"):
        load_options({"INPUT_BUNDLER": "none", "INPUT_BUNDLER-CACHE": "true"})


@pytest.mark.parametrize(
    "environ",
    [
        {"INPUT_BUNDLER-CACHE": "sometimes"},
        {"INPUT_WINDOWS-TOOLCHAIN": "msys2"},
    ],
)
def test_invalid_inputs_raise_configuration_error(environ: dict[str, str]) -> None:
    with pytest.raises(ConfigurationError, match="Invalid inputs"):
        load_options(environ)


def test_assignment_is_validated() -> None:
    options = SetupOptions()

    with pytest.raises(ValueError):
        options.ruby_version = "  "
