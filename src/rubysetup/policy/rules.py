# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Ordered predicate tables evaluated with first-match-wins semantics.

A :class:`RuleTable` never backtracks: the first rule whose predicate holds
decides the table's consequence. Policies chain several tables so a later,
more specific table can refine what an earlier one produced.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

SubjectT = TypeVar("SubjectT")
ValueT = TypeVar("ValueT")


@dataclass(frozen=True, slots=True)
class CompatibilityRule(Generic[SubjectT, ValueT]):
    """A named predicate paired with the value it forces and a diagnostic reason.

    Attributes:
        name: Stable identifier used in logs and tests.
        predicate: Callable deciding whether the rule applies to a subject.
        consequence: Value produced when the rule matches.
        reason: Human-readable explanation logged when the rule fires.
    """

    name: str
    predicate: Callable[[SubjectT], bool]
    consequence: ValueT
    reason: str

    def matches(self, subject: SubjectT) -> bool:
        """Return ``True`` when the rule applies to ``subject``."""

        return self.predicate(subject)


@dataclass(frozen=True, slots=True)
class RuleTable(Generic[SubjectT, ValueT]):
    """Immutable ordered collection of :class:`CompatibilityRule` entries."""

    name: str
    rules: tuple[CompatibilityRule[SubjectT, ValueT], ...]

    def first_match(self, subject: SubjectT) -> CompatibilityRule[SubjectT, ValueT] | None:
        """Return the first rule matching ``subject`` or ``None``."""

        for rule in self.rules:
            if rule.matches(subject):
                return rule
        return None

    def apply(self, subject: SubjectT, current: ValueT) -> tuple[ValueT, CompatibilityRule[SubjectT, ValueT] | None]:
        """Return the matching rule's consequence, or ``current`` when nothing matches.

        Args:
            subject: Facts the predicates inspect.
            current: Value carried over from earlier tables.

        Returns:
            tuple: The resulting value and the rule that produced it, if any.
        """

        rule = self.first_match(subject)
        if rule is None:
            return current, None
        return rule.consequence, rule


def rule_names(rules: Iterable[CompatibilityRule[SubjectT, ValueT]]) -> tuple[str, ...]:
    """Return the names of ``rules`` in evaluation order."""

    return tuple(rule.name for rule in rules)


__all__ = ["CompatibilityRule", "RuleTable", "rule_names"]
