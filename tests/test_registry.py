"""Tests for standards_audit.engine.registry — immutable rule registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from standards_audit.engine.registry import DuplicateRuleError, RuleRegistry
from standards_audit.engine.standards import StandardsError
from standards_audit.engine.types import Severity, Standard

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from standards_audit.engine.types import Rule

    RuleFactory = Callable[..., Rule]


class TestRuleRegistry:
    def test_duplicate_ids_rejected(self, make_rule: RuleFactory) -> None:
        with pytest.raises(DuplicateRuleError, match="tes-001"):
            RuleRegistry.from_rules([make_rule("tes-001"), make_rule("tes-001")])

    def test_lookup(self, make_rule: RuleFactory) -> None:
        rule = make_rule("tes-007")
        registry = RuleRegistry.from_rules([rule])
        assert registry.get("tes-007") is rule
        assert registry.get("tes-999") is None
        assert "tes-007" in registry
        assert len(registry) == 1

    def test_by_standard_and_severity(self, make_rule: RuleFactory) -> None:
        registry = RuleRegistry.from_rules([
            make_rule("tes-001", severity=Severity.ERROR),
            make_rule("sec-001", standard=Standard.SECURITY, severity=Severity.INFO),
        ])
        assert [r.id for r in registry.by_standard(Standard.SECURITY)] == ["sec-001"]
        assert [r.id for r in registry.by_severity(Severity.ERROR)] == ["tes-001"]

    def test_filter_min_severity(self, make_rule: RuleFactory) -> None:
        registry = RuleRegistry.from_rules([
            make_rule("tes-001", severity=Severity.ERROR),
            make_rule("tes-002", severity=Severity.WARNING),
            make_rule("tes-003", severity=Severity.INFO),
        ])
        selected = registry.filter(min_severity=Severity.WARNING)
        assert [r.id for r in selected] == ["tes-001", "tes-002"]

    def test_filter_standards(self, make_rule: RuleFactory) -> None:
        registry = RuleRegistry.from_rules([
            make_rule("tes-001"),
            make_rule("sec-001", standard=Standard.SECURITY),
        ])
        selected = registry.filter(standards=[Standard.SECURITY])
        assert [r.id for r in selected] == ["sec-001"]

    def test_statistics(self, make_rule: RuleFactory) -> None:
        registry = RuleRegistry.from_rules([
            make_rule("tes-001", severity=Severity.ERROR),
            make_rule("tes-002", severity=Severity.ERROR),
            make_rule("sec-001", standard=Standard.SECURITY, severity=Severity.INFO),
        ])
        stats = registry.statistics()
        assert stats.total_rules == 3
        assert stats.rules_by_standard == {"security": 1, "testing": 2}
        assert stats.rules_by_severity == {"error": 2, "info": 1}

    def test_from_directory(self, standards_dir: Path) -> None:
        registry = RuleRegistry.from_directory(standards_dir)
        ids = [r.id for r in registry]
        assert len(ids) == len(set(ids))
        assert registry.get("typ-001") is not None
        assert registry.get("nex-001") is not None

    def test_from_directory_missing(self, tmp_path: Path) -> None:
        with pytest.raises(StandardsError):
            RuleRegistry.from_directory(tmp_path / "nope")
