# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cache backend protocol and the error policy applied to every backend call."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeVar, runtime_checkable

from ..errors import CacheBackendError, CacheReserveConflictError, CacheValidationError
from ..logging import SetupLogger

ResultT = TypeVar("ResultT")


@runtime_checkable
class CacheBackend(Protocol):
    """Key/value store for archived directories.

    Entries are immutable once saved; a second save of an existing key raises
    :class:`CacheReserveConflictError`.
    """

    def restore(self, paths: Sequence[str], key: str, restore_keys: Sequence[str]) -> str | None:
        """Restore ``paths`` and return the matched key, or ``None`` on a miss.

        ``key`` is tried exactly first; each entry of ``restore_keys`` is then
        treated as a prefix and the newest matching entry wins.
        """

        raise NotImplementedError

    def save(self, paths: Sequence[str], key: str) -> None:
        """Archive ``paths`` under ``key``."""

        raise NotImplementedError


class BackendStatus(str, Enum):
    """How a guarded backend call ended."""

    OK = "ok"
    CONFLICT = "conflict"
    DEGRADED = "degraded"


@dataclass(frozen=True, slots=True)
class BackendOutcome(Generic[ResultT]):
    """Result of a guarded backend call; ``value`` is ``None`` unless ``status`` is OK."""

    status: BackendStatus
    value: ResultT | None = None

    @property
    def ok(self) -> bool:
        return self.status is BackendStatus.OK


def guard_backend_call(
    call: Callable[[], ResultT],
    *,
    action: str,
    logger: SetupLogger,
) -> BackendOutcome[ResultT]:
    """Run ``call`` and classify backend failures.

    Validation failures propagate because they indicate a bug in key or path
    construction. Reserve conflicts are reported as information since another
    job already stored the same entry. Every other backend failure is logged
    as a warning and treated as a miss.

    Args:
        call: Zero-argument callable invoking the backend.
        action: Verb used in log messages, e.g. ``restoring``.
        logger: Logger receiving the diagnostics.

    Returns:
        BackendOutcome: Status and, on success, the call's return value.

    Raises:
        CacheValidationError: Re-raised unchanged.
    """

    try:
        return BackendOutcome(status=BackendStatus.OK, value=call())
    except CacheValidationError:
        raise
    except CacheReserveConflictError as exc:
        logger.info(str(exc))
        return BackendOutcome(status=BackendStatus.CONFLICT)
    except CacheBackendError as exc:
        logger.warn(f"There was an error {action} the cache: {exc}")
        return BackendOutcome(status=BackendStatus.DEGRADED)


def is_exact_key_match(full_key: str, restored_key: str | None) -> bool:
    """Return ``True`` when ``restored_key`` is ``full_key`` ignoring case."""

    return restored_key is not None and restored_key.lower() == full_key.lower()


__all__ = [
    "BackendOutcome",
    "BackendStatus",
    "CacheBackend",
    "guard_backend_call",
    "is_exact_key_match",
]
