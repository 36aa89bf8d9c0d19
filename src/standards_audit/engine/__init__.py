"""Audit engine: standards parser, rule registry, scanner, syntax analyzer, matcher, validator.

Note: ``standards_audit.engine.audit`` is not re-exported here because it
depends on ``standards_audit.config``, which itself imports engine modules.
Import it directly::

    from standards_audit.engine.audit import run_audit
"""

from standards_audit.engine.matchers import STANDARD_CHECKERS, match_rule
from standards_audit.engine.registry import DuplicateRuleError, RuleRegistry, RuleStatistics
from standards_audit.engine.scanner import (
    ScanConfig,
    ScannedFile,
    ScanResult,
    default_scan_config,
    filter_files,
    get_file_statistics,
    group_files_by_directory,
    scan_codebase,
)
from standards_audit.engine.standards import (
    StandardsError,
    parse_all_standards,
    parse_standard_file,
)
from standards_audit.engine.syntax import ParsedFile, UnsupportedLanguageError, parse_file
from standards_audit.engine.types import (
    AstMatcher,
    AstMatcherKind,
    AuditResult,
    FileAuditResult,
    ParsedStandard,
    Rule,
    RuleExamples,
    Severity,
    Standard,
    Violation,
)
from standards_audit.engine.validator import (
    ValidationOptions,
    generate_summary,
    get_lowest_compliance,
    get_top_violators,
    group_violations_by_file,
    sort_violations,
    validate_file,
    validate_files,
)

__all__ = [
    "STANDARD_CHECKERS",
    "AstMatcher",
    "AstMatcherKind",
    "AuditResult",
    "DuplicateRuleError",
    "FileAuditResult",
    "ParsedFile",
    "ParsedStandard",
    "Rule",
    "RuleExamples",
    "RuleRegistry",
    "RuleStatistics",
    "ScanConfig",
    "ScanResult",
    "ScannedFile",
    "Severity",
    "Standard",
    "StandardsError",
    "UnsupportedLanguageError",
    "ValidationOptions",
    "Violation",
    "default_scan_config",
    "filter_files",
    "generate_summary",
    "get_file_statistics",
    "get_lowest_compliance",
    "get_top_violators",
    "group_files_by_directory",
    "group_violations_by_file",
    "match_rule",
    "parse_all_standards",
    "parse_file",
    "parse_standard_file",
    "scan_codebase",
    "sort_violations",
    "validate_file",
    "validate_files",
]
