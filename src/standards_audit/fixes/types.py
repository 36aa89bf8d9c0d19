"""Value types and the fixer base class for the auto-fix subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from standards_audit.engine.types import Violation


@dataclass(frozen=True)
class FixResult:
    """Outcome of one fixer on one violation.

    ``applied`` and ``error`` are mutually exclusive; neither set means the
    fixer looked and found nothing to change.
    """

    fixed: str
    applied: bool = False
    error: str | None = None


@dataclass(frozen=True)
class BackupInfo:
    timestamp: str  # ISO 8601, UTC
    original_path: str
    backup_path: str
    hash: str  # sha256 hex of the original bytes


@dataclass(frozen=True)
class FixError:
    file: str
    error: str


@dataclass(frozen=True)
class AutoFixReport:
    total_violations: int
    fixed_count: int
    failed_count: int
    skipped_count: int
    success_rate: float  # fixed_count / total_violations, 0.0 when there are none
    files_modified: tuple[str, ...] = ()
    backups: tuple[BackupInfo, ...] = ()
    errors: tuple[FixError, ...] = ()
    dry_run: bool = False
    manifest_path: str | None = None


@dataclass
class AutoFixReportBuilder:
    """Mutable accumulator for a fix session; :meth:`build` freezes it."""

    total_violations: int = 0
    fixed_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    files_modified: list[str] = field(default_factory=list)
    errors: list[FixError] = field(default_factory=list)

    def add_error(self, file: str, error: str) -> None:
        self.errors.append(FixError(file=file, error=error))

    def build(
        self,
        *,
        backups: tuple[BackupInfo, ...] = (),
        dry_run: bool = False,
        manifest_path: str | None = None,
    ) -> AutoFixReport:
        rate = self.fixed_count / self.total_violations if self.total_violations else 0.0
        return AutoFixReport(
            total_violations=self.total_violations,
            fixed_count=self.fixed_count,
            failed_count=self.failed_count,
            skipped_count=self.skipped_count,
            success_rate=rate,
            files_modified=tuple(self.files_modified),
            backups=backups,
            errors=tuple(self.errors),
            dry_run=dry_run,
            manifest_path=manifest_path,
        )


class AutoFixer:
    """Base class for a text transform that claims and rewrites violations.

    Subclasses set ``name``, ``rule_id`` and ``description`` and implement
    :meth:`can_fix` and :meth:`fix`.  ``rule_id`` is the slug fragment the
    fixer recognises in ``Violation.rule_name``.
    """

    name: str = ""
    rule_id: str = ""
    description: str = ""

    def can_fix(self, violation: Violation, source: str) -> bool:
        raise NotImplementedError

    def fix(self, violation: Violation, source: str) -> FixResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
