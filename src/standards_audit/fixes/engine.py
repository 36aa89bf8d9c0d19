"""Auto-fix engine: backup → fix → write → verify → commit or roll back, per file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from standards_audit.engine.typecheck import verify_file
from standards_audit.engine.validator import sort_violations
from standards_audit.fixes.backup import BackupError
from standards_audit.fixes.fixers import default_fixers
from standards_audit.fixes.types import AutoFixReportBuilder

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from standards_audit.engine.types import Violation
    from standards_audit.fixes.backup import BackupManager
    from standards_audit.fixes.types import AutoFixer, AutoFixReport

    Verifier = Callable[[Path], bool]

logger = logging.getLogger(__name__)

ROLLBACK_ERROR = "type check failed - rollback applied"


class AutoFixEngine:
    """Apply fixers to files under backup supervision.

    Each file goes through ``backup → mutate → write → verify`` and is either
    committed or restored from its backup.  With ``dry_run`` the fixers run
    in memory only: nothing is backed up, written or verified.
    """

    def __init__(
        self,
        backup_manager: BackupManager | None,
        *,
        fixers: Iterable[AutoFixer] | None = None,
        verifier: Verifier | None = None,
        dry_run: bool = False,
    ) -> None:
        if backup_manager is None and not dry_run:
            msg = "a backup manager is required unless dry_run is set"
            raise ValueError(msg)
        self.backup_manager = backup_manager
        self.fixers: list[AutoFixer] = list(fixers) if fixers is not None else default_fixers()
        self.verifier: Verifier = verifier or verify_file
        self.dry_run = dry_run
        self._report = AutoFixReportBuilder()

    def _apply_fixers(self, file_key: str, violations: Iterable[Violation], source: str) -> tuple[str, int]:
        """Offer each violation to the first fixer that claims it; returns (text, applied count)."""
        text = source
        applied = 0
        for violation in sort_violations(violations):
            fixer = next((f for f in self.fixers if f.can_fix(violation, text)), None)
            if fixer is None:
                continue
            try:
                result = fixer.fix(violation, text)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Fixer %s raised on %s: %s", fixer.name, file_key, exc)
                self._report.failed_count += 1
                self._report.add_error(file_key, f"{fixer.name}: {exc}")
                continue
            if result.error:
                self._report.failed_count += 1
                self._report.add_error(file_key, f"{fixer.name}: {result.error}")
            elif result.applied:
                text = result.fixed
                applied += 1
                self._report.fixed_count += 1
            else:
                self._report.skipped_count += 1
        return text, applied

    def fix_file(self, path: Path, violations: Iterable[Violation]) -> bool:
        """Fix one file; ``True`` when it was changed and the change was kept."""
        path = Path(path)
        items = list(violations)
        file_key = str(path)
        self._report.total_violations += len(items)

        if not self.dry_run:
            assert self.backup_manager is not None
            self.backup_manager.backup(path)

        source = path.read_bytes().decode("utf-8")
        fixed, applied = self._apply_fixers(file_key, items, source)
        if applied == 0:
            return False

        if self.dry_run:
            self._report.files_modified.append(file_key)
            return True

        path.write_bytes(fixed.encode("utf-8"))
        if not self.verifier(path):
            assert self.backup_manager is not None
            self._report.fixed_count -= applied
            self.backup_manager.restore(path)
            logger.info("Rolled back %s after failed verification", path)
            self._report.failed_count += 1
            self._report.add_error(file_key, ROLLBACK_ERROR)
            return False

        self._report.files_modified.append(file_key)
        return True

    def fix_all(self, violations_by_file: Mapping[Path, Iterable[Violation]]) -> AutoFixReport:
        """Fix every file in turn and return the frozen session report.

        A file that cannot be read, backed up or written is recorded as a
        failure and the session moves on.  The manifest is saved even when
        a file raises something unexpected, so earlier changes stay
        restorable.
        """
        self._report = AutoFixReportBuilder()
        manifest_path: str | None = None
        backups = ()
        try:
            for path, violations in violations_by_file.items():
                try:
                    self.fix_file(path, violations)
                except (OSError, UnicodeDecodeError, BackupError) as exc:
                    logger.warning("Could not fix %s: %s", path, exc)
                    self._report.failed_count += 1
                    self._report.add_error(str(path), str(exc))
        finally:
            if not self.dry_run:
                assert self.backup_manager is not None
                manifest_path = str(self.backup_manager.save_manifest())
                backups = tuple(self.backup_manager.backups)

        report = self._report.build(backups=backups, dry_run=self.dry_run, manifest_path=manifest_path)
        logger.info(
            "Fixed %d of %d violations (%d failed, %d skipped) in %d files",
            report.fixed_count,
            report.total_violations,
            report.failed_count,
            report.skipped_count,
            len(report.files_modified),
        )
        return report

    def rollback_all(self) -> int:
        """Restore every file backed up in this session."""
        if self.backup_manager is None:
            return 0
        return self.backup_manager.restore_all()
