"""Immutable rule registry built once per run from the standards directory."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from standards_audit.engine.standards import parse_all_standards

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from standards_audit.engine.types import ParsedStandard, Rule, Severity, Standard

logger = logging.getLogger(__name__)


class DuplicateRuleError(ValueError):
    """Raised when two rules share an ID."""


@dataclass(frozen=True)
class RuleStatistics:
    total_rules: int
    rules_by_standard: dict[str, int] = field(default_factory=dict)
    rules_by_severity: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleRegistry:
    """Ordered, ID-unique collection of rules.

    Build with :meth:`from_rules`, :meth:`from_standards` or
    :meth:`from_directory`; the registry never changes afterwards.
    """

    rules: tuple[Rule, ...] = ()
    _by_id: dict[str, Rule] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_rules(cls, rules: Iterable[Rule]) -> RuleRegistry:
        ordered = tuple(rules)
        by_id: dict[str, Rule] = {}
        for rule in ordered:
            if rule.id in by_id:
                msg = f"Duplicate rule ID: {rule.id}"
                raise DuplicateRuleError(msg)
            by_id[rule.id] = rule
        return cls(rules=ordered, _by_id=by_id)

    @classmethod
    def from_standards(cls, standards: Iterable[ParsedStandard]) -> RuleRegistry:
        return cls.from_rules(rule for parsed in standards for rule in parsed.rules)

    @classmethod
    def from_directory(cls, standards_dir: Path) -> RuleRegistry:
        """Parse every standards document under *standards_dir*.

        Raises
        ------
        StandardsError
            When the directory is missing.
        DuplicateRuleError
            When two documents produce the same rule ID.
        """
        registry = cls.from_standards(parse_all_standards(standards_dir))
        logger.info("Loaded %d rules from %s", len(registry), standards_dir)
        return registry

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    # --- lookup ---

    def get(self, rule_id: str) -> Rule | None:
        return self._by_id.get(rule_id)

    def by_standard(self, standard: Standard) -> list[Rule]:
        return [r for r in self.rules if r.standard is standard]

    def by_severity(self, severity: Severity) -> list[Rule]:
        return [r for r in self.rules if r.severity is severity]

    def filter(
        self,
        *,
        min_severity: Severity | None = None,
        standards: Iterable[Standard] | None = None,
    ) -> list[Rule]:
        """Rules at or above *min_severity*, restricted to *standards* when given."""
        allowed = frozenset(standards) if standards is not None else None
        selected: list[Rule] = []
        for rule in self.rules:
            if min_severity is not None and rule.severity.rank < min_severity.rank:
                continue
            if allowed is not None and rule.standard not in allowed:
                continue
            selected.append(rule)
        return selected

    def statistics(self) -> RuleStatistics:
        by_standard = Counter(r.standard.value for r in self.rules)
        by_severity = Counter(r.severity.value for r in self.rules)
        return RuleStatistics(
            total_rules=len(self.rules),
            rules_by_standard=dict(sorted(by_standard.items())),
            rules_by_severity=dict(by_severity),
        )
