"""Tests for standards_audit.reports — formatters and saved results."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from standards_audit.engine.types import AuditResult, FileAuditResult, Severity, Violation
from standards_audit.fixes.types import AutoFixReport, BackupInfo, FixError
from standards_audit.reports import (
    format_fix_report,
    format_json,
    format_markdown,
    format_rich,
    load_result,
    save_result,
)

if TYPE_CHECKING:
    from pathlib import Path


def _violation(severity: Severity = Severity.ERROR, line: int = 4) -> Violation:
    return Violation(
        rule_id="typ-006",
        file_path="lib/api.ts",
        line=line,
        column=14,
        severity=severity,
        message='Avoid using "any" type - use specific types instead',
        code_snippet="const x: any = 5;",
        fix_suggestion="Replace any with a concrete type or unknown",
        rule_name="no-any-type",
    )


@pytest.fixture()
def result() -> AuditResult:
    violations = (_violation(), _violation(Severity.WARNING, line=9))
    return AuditResult(
        total_files=2,
        total_violations=2,
        compliance_score=87,
        violations_by_standard={"typescript": 2},
        violations_by_severity={"error": 1, "warning": 1, "info": 0},
        violations=violations,
        file_results=(
            FileAuditResult(file_path="lib/api.ts", violations=violations, line_count=20, compliance_score=75),
            FileAuditResult(file_path="lib/ok.ts", violations=(), line_count=3, compliance_score=100),
        ),
        execution_time_ms=230.0,
    )


@pytest.fixture()
def empty_result() -> AuditResult:
    return AuditResult(
        total_files=0,
        total_violations=0,
        compliance_score=100,
        violations_by_severity={"error": 0, "warning": 0, "info": 0},
    )


class TestFormatRich:
    def test_violations(self, result: AuditResult) -> None:
        text = format_rich(result)
        assert "Files: 2 audited" in text
        assert "Compliance: 87/100" in text
        assert "✗ typ-006 no-any-type" in text
        assert "! typ-006 no-any-type" in text
        assert "  lib/api.ts:4:14" in text
        assert "  fix: Replace any with a concrete type or unknown" in text
        assert text.endswith("2 violations found (1 error, 1 warning, 0 info) in 0.2s")

    def test_clean(self, empty_result: AuditResult) -> None:
        assert format_rich(empty_result).endswith("No violations found in 0.0s")


class TestFormatJson:
    def test_structure(self, result: AuditResult) -> None:
        data = json.loads(format_json(result))
        assert data["summary"]["compliance_score"] == 87
        assert data["summary"]["violations_by_severity"] == {"error": 1, "warning": 1, "info": 0}
        assert data["violations"][0]["severity"] == "error"
        assert data["violations"][0]["rule_name"] == "no-any-type"
        assert [f["file_path"] for f in data["files"]] == ["lib/api.ts", "lib/ok.ts"]


class TestFormatMarkdown:
    def test_sections(self, result: AuditResult) -> None:
        text = format_markdown(result)
        assert text.startswith("# Standards Audit Report")
        assert "| Compliance | 87/100 |" in text
        assert "| Errors | 1 |" in text
        assert "## By Standard" in text
        assert "| typescript | 2 |" in text
        assert "| typ-006 | 2 |" in text
        assert "| `lib/api.ts` | 2 | 75 |" in text
        assert "- **error** `lib/api.ts:4` typ-006" in text

    def test_clean(self, empty_result: AuditResult) -> None:
        text = format_markdown(empty_result)
        assert "## Violations" not in text
        assert "## By Standard" not in text


class TestSavedResults:
    def test_save_and_load(self, result: AuditResult, tmp_path: Path) -> None:
        path = save_result(result, tmp_path / "reports" / "latest.json")
        assert load_result(path) == result

    def test_load_rejects_other_json(self, tmp_path: Path) -> None:
        path = tmp_path / "other.json"
        path.write_text('{"name": "package"}')
        with pytest.raises(ValueError, match="Not an audit result"):
            load_result(path)

    def test_load_rejects_garbage(self, tmp_path: Path) -> None:
        path = tmp_path / "garbage.json"
        path.write_text("not json")
        with pytest.raises(ValueError, match="Not an audit result"):
            load_result(path)


class TestFormatFixReport:
    def test_applied(self) -> None:
        report = AutoFixReport(
            total_violations=4,
            fixed_count=3,
            failed_count=1,
            skipped_count=0,
            success_rate=0.75,
            files_modified=("/p/components/Counter.tsx",),
            backups=(BackupInfo("2026-01-18T09:30:00+00:00", "/p/components/Counter.tsx", "/p/.backup/o", "ab"),),
            errors=(FixError("/p/lib/a.ts", "type check failed - rollback applied"),),
            manifest_path="/p/.backup/s1/manifest.json",
        )
        text = format_fix_report(report)
        assert text.startswith("Auto-fix complete")
        assert "Success rate: 75%" in text
        assert "Modified 1 files:" in text
        assert "  /p/lib/a.ts: type check failed - rollback applied" in text
        assert text.endswith("Backup manifest: /p/.backup/s1/manifest.json")

    def test_dry_run(self) -> None:
        report = AutoFixReport(
            total_violations=1,
            fixed_count=1,
            failed_count=0,
            skipped_count=0,
            success_rate=1.0,
            files_modified=("/p/a.ts",),
            dry_run=True,
        )
        text = format_fix_report(report)
        assert text.startswith("Dry run: no files written")
        assert "Would modify 1 files:" in text
        assert "Backup manifest" not in text
