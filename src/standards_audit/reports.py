"""Report formatting and persistence for audit and fix results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from standards_audit.engine.types import AuditResult, FileAuditResult, Severity, Violation
from standards_audit.engine.validator import generate_summary

if TYPE_CHECKING:
    from standards_audit.fixes.types import AutoFixReport

_SEVERITY_MARKS = {
    Severity.ERROR: "✗",
    Severity.WARNING: "!",
    Severity.INFO: "i",
}


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def violation_to_dict(v: Violation) -> dict[str, Any]:
    return {
        "rule_id": v.rule_id,
        "rule_name": v.rule_name,
        "file_path": v.file_path,
        "line": v.line,
        "column": v.column,
        "severity": v.severity.value,
        "message": v.message,
        "code_snippet": v.code_snippet,
        "fix_suggestion": v.fix_suggestion,
    }


def violation_from_dict(data: dict[str, Any]) -> Violation:
    return Violation(
        rule_id=data["rule_id"],
        file_path=data["file_path"],
        line=int(data["line"]),
        column=int(data["column"]),
        severity=Severity(data["severity"]),
        message=data["message"],
        code_snippet=data.get("code_snippet", ""),
        fix_suggestion=data.get("fix_suggestion"),
        rule_name=data.get("rule_name", ""),
    )


def result_to_dict(result: AuditResult) -> dict[str, Any]:
    return {
        "summary": {
            "total_files": result.total_files,
            "total_violations": result.total_violations,
            "compliance_score": result.compliance_score,
            "violations_by_standard": dict(result.violations_by_standard),
            "violations_by_severity": dict(result.violations_by_severity),
            "execution_time_ms": result.execution_time_ms,
        },
        "violations": [violation_to_dict(v) for v in result.violations],
        "files": [
            {
                "file_path": f.file_path,
                "line_count": f.line_count,
                "compliance_score": f.compliance_score,
                "violations": [violation_to_dict(v) for v in f.violations],
            }
            for f in result.file_results
        ],
    }


def result_from_dict(data: dict[str, Any]) -> AuditResult:
    summary = data["summary"]
    return AuditResult(
        total_files=int(summary["total_files"]),
        total_violations=int(summary["total_violations"]),
        compliance_score=int(summary["compliance_score"]),
        violations_by_standard=dict(summary.get("violations_by_standard", {})),
        violations_by_severity=dict(summary.get("violations_by_severity", {})),
        violations=tuple(violation_from_dict(v) for v in data.get("violations", [])),
        file_results=tuple(
            FileAuditResult(
                file_path=f["file_path"],
                violations=tuple(violation_from_dict(v) for v in f.get("violations", [])),
                line_count=int(f["line_count"]),
                compliance_score=int(f["compliance_score"]),
            )
            for f in data.get("files", [])
        ),
        execution_time_ms=float(summary.get("execution_time_ms", 0.0)),
    )


def save_result(result: AuditResult, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_json(result) + "\n", encoding="utf-8")
    return path


def load_result(path: Path) -> AuditResult:
    """Load a result written by :func:`save_result`.

    Raises ``ValueError`` when the file is not a saved audit result.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return result_from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        msg = f"Not an audit result: {path} ({exc})"
        raise ValueError(msg) from exc


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: AuditResult) -> str:
    """Format an AuditResult as human-readable text.

    Example output::

        Files: 12 audited
        Compliance: 87/100

        ✗ typ-012 no-any-type
          Avoid using "any" type - use specific types instead
          lib/api.ts:4:14

        1 violation found (1 error, 0 warning, 0 info) in 0.2s
    """
    lines: list[str] = [
        f"Files: {result.total_files} audited",
        f"Compliance: {result.compliance_score}/100",
        "",
    ]

    for v in result.violations:
        label = f"{v.rule_id} {v.rule_name}".rstrip()
        lines.append(f"{_SEVERITY_MARKS[v.severity]} {label}")
        lines.append(f"  {v.message}")
        lines.append(f"  {v.file_path}:{v.line}:{v.column}")
        if v.fix_suggestion:
            lines.append(f"  fix: {v.fix_suggestion}")
        lines.append("")

    counts = result.violations_by_severity
    breakdown = ", ".join(f"{counts.get(s.value, 0)} {s.value}" for s in Severity)
    elapsed = f"{result.execution_time_ms / 1000:.1f}s"
    if result.violations:
        noun = "violation" if result.total_violations == 1 else "violations"
        lines.append(f"{result.total_violations} {noun} found ({breakdown}) in {elapsed}")
    else:
        lines.append(f"No violations found in {elapsed}")
    return "\n".join(lines)


def format_json(result: AuditResult) -> str:
    return json.dumps(result_to_dict(result), indent=2)


def format_markdown(result: AuditResult) -> str:
    summary = generate_summary(result)
    lines: list[str] = [
        "# Standards Audit Report",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|---|---|",
        f"| Files | {summary.total_files} |",
        f"| Violations | {summary.total_violations} |",
        f"| Compliance | {summary.compliance_score}/100 |",
        f"| Errors | {summary.error_count} |",
        f"| Warnings | {summary.warning_count} |",
        f"| Info | {summary.info_count} |",
        "",
    ]

    if result.violations_by_standard:
        lines += ["## By Standard", "", "| Standard | Violations |", "|---|---|"]
        for name, count in sorted(result.violations_by_standard.items()):
            lines.append(f"| {name} | {count} |")
        lines.append("")

    if summary.top_violations:
        lines += ["## Top Rules", "", "| Rule | Count | Message |", "|---|---|---|"]
        for item in summary.top_violations:
            lines.append(f"| {item.rule_id} | {item.count} | {item.message} |")
        lines.append("")

    if summary.top_violators:
        lines += ["## Top Files", "", "| File | Violations | Score |", "|---|---|---|"]
        for item in summary.top_violators:
            lines.append(f"| `{item.file}` | {item.violations} | {item.score} |")
        lines.append("")

    if result.violations:
        lines += ["## Violations", ""]
        for v in result.violations:
            lines.append(f"- **{v.severity.value}** `{v.file_path}:{v.line}` {v.rule_id}: {v.message}")
        lines.append("")

    return "\n".join(lines)


def format_fix_report(report: AutoFixReport) -> str:
    header = "Dry run: no files written" if report.dry_run else "Auto-fix complete"
    lines: list[str] = [
        header,
        f"Violations: {report.total_violations}",
        f"Fixed: {report.fixed_count}",
        f"Failed: {report.failed_count}",
        f"Skipped: {report.skipped_count}",
        f"Success rate: {report.success_rate:.0%}",
    ]
    if report.files_modified:
        verb = "Would modify" if report.dry_run else "Modified"
        lines.append("")
        lines.append(f"{verb} {len(report.files_modified)} files:")
        lines.extend(f"  {path}" for path in report.files_modified)
    if report.errors:
        lines.append("")
        lines.append("Errors:")
        lines.extend(f"  {e.file}: {e.error}" for e in report.errors)
    if report.manifest_path:
        lines.append("")
        lines.append(f"Backup manifest: {report.manifest_path}")
    return "\n".join(lines)
