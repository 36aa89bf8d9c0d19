"""Validator: run rules over scanned files and aggregate an audit result."""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from standards_audit.engine.matchers import match_rule
from standards_audit.engine.registry import RuleRegistry
from standards_audit.engine.syntax import parse_source
from standards_audit.engine.types import AuditResult, FileAuditResult, Severity, Standard

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from standards_audit.engine.scanner import ScannedFile
    from standards_audit.engine.typecheck import TypeCheckContext
    from standards_audit.engine.types import Rule, Violation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOptions:
    min_severity: Severity | None = None
    standards: tuple[Standard, ...] = ()  # empty: all standards
    max_violations: int | None = None
    type_check: TypeCheckContext | None = None


@dataclass(frozen=True)
class RuleCount:
    rule_id: str
    count: int
    message: str


@dataclass(frozen=True)
class FileSummary:
    file: str
    violations: int
    score: int


@dataclass(frozen=True)
class AuditSummary:
    total_files: int
    total_violations: int
    compliance_score: int
    error_count: int
    warning_count: int
    info_count: int
    top_violations: tuple[RuleCount, ...]
    top_violators: tuple[FileSummary, ...]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def file_compliance_score(violations: Iterable[Violation], line_count: int) -> int:
    """``100 - 100 * weight / lines``, clamped at 0; 100 for an empty file."""
    if line_count == 0:
        return 100
    weight = sum(v.severity.rank for v in violations)
    return round_half_up(max(0.0, 100 - 100 * weight / line_count))


def overall_compliance_score(file_results: Sequence[FileAuditResult]) -> int:
    """Unweighted mean of per-file scores; 100 when there are no files."""
    if not file_results:
        return 100
    return round_half_up(sum(f.compliance_score for f in file_results) / len(file_results))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_file(
    file: ScannedFile,
    rules: Iterable[Rule],
    *,
    type_check: TypeCheckContext | None = None,
) -> FileAuditResult:
    """Read, parse and match every rule against a single file."""
    text = Path(file.absolute_path).read_text(encoding="utf-8")
    parsed = parse_source(text, Path(file.absolute_path), type_check=type_check)

    violations: list[Violation] = []
    for rule in rules:
        violations.extend(match_rule(rule, parsed, text, file_path=file.relative_path))

    line_count = len(text.splitlines())
    return FileAuditResult(
        file_path=file.relative_path,
        violations=tuple(violations),
        line_count=line_count,
        compliance_score=file_compliance_score(violations, line_count),
    )


def select_rules(rules: Iterable[Rule], options: ValidationOptions) -> list[Rule]:
    return RuleRegistry.from_rules(rules).filter(
        min_severity=options.min_severity,
        standards=options.standards or None,
    )


def validate_files(
    files: Iterable[ScannedFile],
    rules: Iterable[Rule],
    options: ValidationOptions | None = None,
) -> AuditResult:
    """Validate *files* and aggregate into an :class:`AuditResult`.

    Files that cannot be read or parsed are logged and left out of
    ``total_files``.  Violations are sorted canonically before the
    ``max_violations`` cap is applied; tallies cover the capped list.
    """
    options = options or ValidationOptions()
    t0 = time.monotonic()
    selected = select_rules(rules, options)

    file_results: list[FileAuditResult] = []
    all_violations: list[Violation] = []
    for file in files:
        try:
            result = validate_file(file, selected, type_check=options.type_check)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.warning("Skipping %s: %s", file.relative_path, exc)
            continue
        file_results.append(result)
        all_violations.extend(result.violations)

    violations = sort_violations(all_violations)
    if options.max_violations is not None and len(violations) > options.max_violations:
        logger.info("Capping %d violations at %d", len(violations), options.max_violations)
        violations = violations[: options.max_violations]

    elapsed_ms = (time.monotonic() - t0) * 1000
    return AuditResult(
        total_files=len(file_results),
        total_violations=len(violations),
        compliance_score=overall_compliance_score(file_results),
        violations_by_standard=count_by_standard(violations),
        violations_by_severity=count_by_severity(violations),
        violations=tuple(violations),
        file_results=tuple(file_results),
        execution_time_ms=elapsed_ms,
    )


# ---------------------------------------------------------------------------
# Ordering and tallies
# ---------------------------------------------------------------------------


def sort_violations(violations: Iterable[Violation]) -> list[Violation]:
    """New list ordered by severity (error first), then file path, then line."""
    return sorted(violations, key=lambda v: (-v.severity.rank, v.file_path, v.line))


def standard_for_rule_id(rule_id: str) -> str:
    prefix = rule_id.split("-", 1)[0]
    standard = Standard.from_prefix(prefix)
    return standard.value if standard is not None else prefix


def count_by_standard(violations: Iterable[Violation]) -> dict[str, int]:
    return dict(Counter(standard_for_rule_id(v.rule_id) for v in violations))


def count_by_severity(violations: Iterable[Violation]) -> dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for v in violations:
        counts[v.severity.value] += 1
    return counts


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def get_top_violators(file_results: Iterable[FileAuditResult], limit: int = 10) -> list[FileAuditResult]:
    return sorted(file_results, key=lambda f: len(f.violations), reverse=True)[:limit]


def get_lowest_compliance(file_results: Iterable[FileAuditResult], limit: int = 10) -> list[FileAuditResult]:
    return sorted(file_results, key=lambda f: f.compliance_score)[:limit]


def generate_summary(result: AuditResult, limit: int = 10) -> AuditSummary:
    counts: Counter[str] = Counter()
    messages: dict[str, str] = {}
    for v in result.violations:
        counts[v.rule_id] += 1
        messages.setdefault(v.rule_id, v.message)

    top_rules = tuple(
        RuleCount(rule_id=rule_id, count=count, message=messages[rule_id])
        for rule_id, count in counts.most_common(limit)
    )
    top_files = tuple(
        FileSummary(file=f.file_path, violations=len(f.violations), score=f.compliance_score)
        for f in get_top_violators(result.file_results, limit)
    )
    by_severity = result.violations_by_severity
    return AuditSummary(
        total_files=result.total_files,
        total_violations=result.total_violations,
        compliance_score=result.compliance_score,
        error_count=by_severity.get("error", 0),
        warning_count=by_severity.get("warning", 0),
        info_count=by_severity.get("info", 0),
        top_violations=top_rules,
        top_violators=top_files,
    )


def group_violations_by_file(result: AuditResult, project_root: Path) -> dict[Path, list[Violation]]:
    """Map absolute file paths to their violations, in canonical order."""
    root = Path(project_root).resolve()
    grouped: dict[Path, list[Violation]] = {}
    for v in sort_violations(result.violations):
        grouped.setdefault(root / v.file_path, []).append(v)
    return grouped
