"""Auto-fix subsystem: fixers, fix engine and content-addressed backups."""

from standards_audit.fixes.backup import (
    BackupError,
    BackupManager,
    load_manifest,
    new_session_id,
    restore_from_manifest,
)
from standards_audit.fixes.engine import AutoFixEngine
from standards_audit.fixes.fixers import default_fixers
from standards_audit.fixes.types import (
    AutoFixer,
    AutoFixReport,
    BackupInfo,
    FixError,
    FixResult,
)

__all__ = [
    "AutoFixEngine",
    "AutoFixReport",
    "AutoFixer",
    "BackupError",
    "BackupInfo",
    "BackupManager",
    "FixError",
    "FixResult",
    "default_fixers",
    "load_manifest",
    "new_session_id",
    "restore_from_manifest",
]
