"""Tests for standards_audit.engine.validator — scoring, ordering, aggregation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from standards_audit.engine.scanner import default_scan_config, scan_codebase
from standards_audit.engine.types import AuditResult, FileAuditResult, Severity, Standard, Violation
from standards_audit.engine.validator import (
    ValidationOptions,
    count_by_severity,
    count_by_standard,
    file_compliance_score,
    generate_summary,
    get_lowest_compliance,
    group_violations_by_file,
    overall_compliance_score,
    round_half_up,
    sort_violations,
    standard_for_rule_id,
    validate_files,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from standards_audit.engine.types import Rule

    RuleFactory = Callable[..., Rule]


def _v(
    rule_id: str = "typ-001",
    file_path: str = "lib/a.ts",
    line: int = 1,
    severity: Severity = Severity.WARNING,
) -> Violation:
    return Violation(
        rule_id=rule_id,
        file_path=file_path,
        line=line,
        column=1,
        severity=severity,
        message=f"{rule_id} message",
    )


def _file_result(path: str, score: int, violations: tuple[Violation, ...] = ()) -> FileAuditResult:
    return FileAuditResult(file_path=path, violations=violations, line_count=10, compliance_score=score)


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    lib = tmp_path / "lib"
    lib.mkdir()
    (lib / "a.ts").write_text("var a = 1;\nvar b = 2;\nconst c = 3;\nconst d = 4;\n")
    (lib / "b.ts").write_text("const ok = true;\n")
    (lib / "empty.ts").write_text("")
    return tmp_path


class TestScoring:
    def test_round_half_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4) == 2

    def test_file_score(self) -> None:
        violations = [_v(severity=Severity.ERROR), _v(severity=Severity.INFO)]
        # weight 4 over 8 lines -> 50
        assert file_compliance_score(violations, 8) == 50

    def test_file_score_clamped(self) -> None:
        violations = [_v(severity=Severity.ERROR)] * 5
        assert file_compliance_score(violations, 2) == 0

    def test_empty_file(self) -> None:
        assert file_compliance_score([_v()], 0) == 100

    def test_overall(self) -> None:
        assert overall_compliance_score([_file_result("a", 50), _file_result("b", 75)]) == 63
        assert overall_compliance_score([]) == 100


class TestOrdering:
    def test_sort_severity_file_line(self) -> None:
        unsorted = [
            _v(file_path="b.ts", line=1, severity=Severity.INFO),
            _v(file_path="b.ts", line=5, severity=Severity.ERROR),
            _v(file_path="a.ts", line=9, severity=Severity.ERROR),
            _v(file_path="a.ts", line=2, severity=Severity.ERROR),
            _v(file_path="a.ts", line=1, severity=Severity.WARNING),
        ]
        ordered = sort_violations(unsorted)
        assert [(v.severity, v.file_path, v.line) for v in ordered] == [
            (Severity.ERROR, "a.ts", 2),
            (Severity.ERROR, "a.ts", 9),
            (Severity.ERROR, "b.ts", 5),
            (Severity.WARNING, "a.ts", 1),
            (Severity.INFO, "b.ts", 1),
        ]
        assert ordered is not unsorted

    def test_standard_for_rule_id(self) -> None:
        assert standard_for_rule_id("con-004") == "react-convex"
        assert standard_for_rule_id("xyz-001") == "xyz"

    def test_tallies(self) -> None:
        violations = [_v("typ-001"), _v("typ-002", severity=Severity.ERROR), _v("sec-001")]
        assert count_by_standard(violations) == {"typescript": 2, "security": 1}
        assert count_by_severity(violations) == {"error": 1, "warning": 2, "info": 0}
        assert count_by_severity([]) == {"error": 0, "warning": 0, "info": 0}


class TestValidateFiles:
    def test_aggregates(self, project: Path, make_rule: RuleFactory) -> None:
        rule = make_rule(pattern=r"\bvar\s", severity=Severity.ERROR)
        files = scan_codebase(default_scan_config(project)).files
        result = validate_files(files, [rule])

        assert result.total_files == 3
        assert result.total_violations == 2
        scores = {f.file_path: f.compliance_score for f in result.file_results}
        # weight 6 over 4 lines
        assert scores == {"lib/a.ts": 0, "lib/b.ts": 100, "lib/empty.ts": 100}
        assert result.compliance_score == 67
        assert result.violations_by_standard == {"testing": 2}
        assert result.violations_by_severity == {"error": 2, "warning": 0, "info": 0}

    def test_cap_applied_after_sort(self, project: Path, make_rule: RuleFactory) -> None:
        info = make_rule("tes-001", pattern=r"const", severity=Severity.INFO)
        error = make_rule("tes-002", pattern=r"\bvar\s", severity=Severity.ERROR)
        files = scan_codebase(default_scan_config(project)).files
        result = validate_files(files, [info, error], ValidationOptions(max_violations=2))

        assert result.total_violations == 2
        assert all(v.severity is Severity.ERROR for v in result.violations)
        assert result.violations_by_severity["info"] == 0

    def test_min_severity_and_standards(self, project: Path, make_rule: RuleFactory) -> None:
        rules = [
            make_rule("tes-001", pattern=r"const", severity=Severity.INFO),
            make_rule("sec-001", pattern=r"\bvar\s", standard=Standard.SECURITY, severity=Severity.ERROR),
        ]
        files = scan_codebase(default_scan_config(project)).files

        by_severity = validate_files(files, rules, ValidationOptions(min_severity=Severity.WARNING))
        assert {v.rule_id for v in by_severity.violations} == {"sec-001"}

        by_standard = validate_files(files, rules, ValidationOptions(standards=(Standard.TESTING,)))
        assert {v.rule_id for v in by_standard.violations} == {"tes-001"}

    def test_unreadable_file_skipped(self, project: Path, make_rule: RuleFactory) -> None:
        (project / "lib" / "bad.ts").write_bytes(b"const s = '\xff\xfe';\n")
        files = scan_codebase(default_scan_config(project)).files
        result = validate_files(files, [make_rule(pattern=r"var")])
        assert result.total_files == 3
        assert "lib/bad.ts" not in {f.file_path for f in result.file_results}

    def test_no_files(self, make_rule: RuleFactory) -> None:
        result = validate_files([], [make_rule()])
        assert result.total_files == 0
        assert result.compliance_score == 100
        assert result.violations == ()


class TestSummaries:
    def test_generate_summary(self) -> None:
        violations = (_v("typ-001"), _v("typ-001", line=2), _v("sec-001", severity=Severity.ERROR))
        result = AuditResult(
            total_files=2,
            total_violations=3,
            compliance_score=80,
            violations_by_severity=count_by_severity(violations),
            violations=violations,
            file_results=(
                _file_result("lib/a.ts", 60, violations),
                _file_result("lib/b.ts", 100),
            ),
        )
        summary = generate_summary(result)
        assert (summary.error_count, summary.warning_count, summary.info_count) == (1, 2, 0)
        assert summary.top_violations[0].rule_id == "typ-001"
        assert summary.top_violations[0].count == 2
        assert summary.top_violators[0].file == "lib/a.ts"

    def test_lowest_compliance(self) -> None:
        results = [_file_result("a", 90), _file_result("b", 10), _file_result("c", 50)]
        assert [f.file_path for f in get_lowest_compliance(results, limit=2)] == ["b", "c"]

    def test_group_by_file(self, tmp_path: Path) -> None:
        violations = (_v(file_path="lib/b.ts"), _v(file_path="lib/a.ts", line=3), _v(file_path="lib/a.ts"))
        result = AuditResult(total_files=2, total_violations=3, compliance_score=0, violations=violations)
        grouped = group_violations_by_file(result, tmp_path)
        root = tmp_path.resolve()
        assert list(grouped) == [root / "lib" / "a.ts", root / "lib" / "b.ts"]
        assert [v.line for v in grouped[root / "lib" / "a.ts"]] == [1, 3]
