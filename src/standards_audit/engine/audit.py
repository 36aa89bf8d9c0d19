"""Audit facade: config → registry → scan → validate."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from standards_audit.config import load_config
from standards_audit.engine.registry import RuleRegistry
from standards_audit.engine.scanner import scan_codebase
from standards_audit.engine.standards import StandardsError
from standards_audit.engine.typecheck import run_type_check
from standards_audit.engine.validator import ValidationOptions, validate_files

if TYPE_CHECKING:
    from standards_audit.config import AuditConfig
    from standards_audit.engine.types import AuditResult

logger = logging.getLogger(__name__)


class AuditError(Exception):
    """Fatal audit failure (e.g. missing standards directory)."""


def load_registry(project_root: Path, config: AuditConfig) -> RuleRegistry:
    standards_dir = config.resolve(project_root, config.standards_dir)
    try:
        return RuleRegistry.from_directory(standards_dir)
    except StandardsError as exc:
        raise AuditError(str(exc)) from exc


def run_audit(
    project_root: Path,
    *,
    config: AuditConfig | None = None,
    registry: RuleRegistry | None = None,
) -> AuditResult:
    """Audit *project_root* end to end.

    Parameters
    ----------
    project_root:
        Root of the code base to audit.
    config:
        Settings; read from ``.audit/config.yml`` when omitted.
    registry:
        Rules to apply; built from the configured standards directory when
        omitted.

    Raises
    ------
    AuditError
        When the standards directory cannot be read.
    """
    root = Path(project_root).resolve()
    config = config or load_config(root)
    if registry is None:
        registry = load_registry(root, config)

    type_check = None
    if config.type_check:
        type_check = run_type_check(root, config.typecheck_command, config.typecheck_timeout)

    scan = scan_codebase(config.scan_config(root))
    options = ValidationOptions(
        min_severity=config.min_severity,
        standards=config.standards,
        max_violations=config.max_violations,
        type_check=type_check,
    )
    result = validate_files(scan.files, registry.rules, options)
    logger.info(
        "Audited %d files: %d violations, score %d",
        result.total_files,
        result.total_violations,
        result.compliance_score,
    )
    return result
