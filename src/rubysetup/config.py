# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run options read from action inputs and overridden by CLI flags."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import DEFAULT_CACHE_VERSION, PROJECT_DEFAULT_SENTINEL
from .errors import ConfigurationError

INPUT_PREFIX = "INPUT_"


class SetupOptions(BaseModel):
    """Inputs controlling one setup run."""

    model_config = ConfigDict(validate_assignment=True)

    ruby_version: str = PROJECT_DEFAULT_SENTINEL
    rubygems: str = "default"
    bundler: str = "Gemfile.lock"
    bundler_cache: bool = False
    working_directory: Path = Field(default_factory=lambda: Path("."))
    cache_version: str = DEFAULT_CACHE_VERSION
    cache_dir: Path | None = None
    self_hosted: bool = False
    windows_toolchain: Literal["default", "none"] = "default"

    @field_validator("ruby_version", "rubygems", "bundler", "cache_version")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("value must not be empty")
        return stripped

    @model_validator(mode="after")
    def _check_cache_needs_bundler(self) -> SetupOptions:
        if self.bundler_cache and self.bundler == "none":
            raise ValueError("bundler-cache: true requires installing Bundler, but bundler is none")
        return self


def input_name(field_name: str) -> str:
    """Return the environment variable GitHub Actions uses for ``field_name``."""

    return f"{INPUT_PREFIX}{field_name.replace('_', '-').upper()}"


def load_options(environ: Mapping[str, str], **overrides: object) -> SetupOptions:
    """Build :class:`SetupOptions` from ``INPUT_*`` variables plus explicit overrides.

    Empty inputs fall back to defaults; ``None`` overrides are ignored.

    Raises:
        ConfigurationError: If an input fails validation.
    """

    values: dict[str, object] = {}
    for name in SetupOptions.model_fields:
        raw = environ.get(input_name(name), "").strip()
        if raw:
            values[name] = raw
    values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return SetupOptions.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid inputs: {exc}") from exc


__all__ = ["INPUT_PREFIX", "SetupOptions", "input_name", "load_options"]
