# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution used by install steps."""

from __future__ import annotations

import shutil

# Bandit: subprocess usage is intentional; install steps run argument lists
# through a controlled wrapper without ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .errors import InstallStepError

if TYPE_CHECKING:
    from subprocess import CompletedProcess as _CompletedProcess  # nosec B404


def _normalize_args(args: Sequence[str]) -> list[str]:
    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    capture_output: bool = False,
    timeout: float | None = None,
) -> _CompletedProcess[str]:
    """Execute *args* after normalising the executable path.

    Raises:
        InstallStepError: If ``check`` is set and the command exits non-zero.
    """

    normalized = _normalize_args(args)
    try:
        completed: _CompletedProcess[str] = subprocess.run(  # nosec B603
            normalized,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            check=False,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        timeout_msg = f"Command timed out after {timeout:.1f}s" if timeout is not None else "Command timed out"
        completed = subprocess.CompletedProcess(args=normalized, returncode=124, stdout="", stderr=timeout_msg)

    if check and completed.returncode != 0:
        raise InstallStepError(
            list(args),
            completed.returncode,
            completed.stdout if isinstance(completed.stdout, str) else None,
            completed.stderr if isinstance(completed.stderr, str) else None,
        )
    return completed


@runtime_checkable
class CommandRunner(Protocol):
    """Execute install steps; implementations raise :class:`InstallStepError` on failure."""

    def run(
        self,
        args: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> _CompletedProcess[str]:
        """Run ``args`` and return the completed process."""

        raise NotImplementedError


class SubprocessRunner:
    """Default :class:`CommandRunner` backed by :func:`run_command`."""

    def run(
        self,
        args: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> _CompletedProcess[str]:
        """Run ``args`` with ``check`` enabled."""

        return run_command(args, env=env, cwd=cwd, capture_output=capture_output, check=True)


def capture_stdout(runner: CommandRunner, args: Sequence[str], *, env: Mapping[str, str] | None = None) -> str:
    """Return the stripped standard output of ``args``."""

    completed = runner.run(args, env=env, capture_output=True)
    return (completed.stdout or "").strip()


__all__ = ["CommandRunner", "SubprocessRunner", "capture_stdout", "run_command"]
