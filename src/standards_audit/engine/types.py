"""Core value types shared by the audit engine: standards, rules, violations, results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import re
    from collections.abc import Callable

    from tree_sitter import Node as TSNode

    NodePredicate = Callable[[TSNode], bool]


class Standard(enum.Enum):
    """A coding standard backed by one markdown document."""

    TYPESCRIPT = "typescript"
    REACT = "react"
    NEXTJS = "nextjs"
    SECURITY = "security"
    TESTING = "testing"
    FORMS = "forms"
    TAILWIND = "tailwind"
    REACT_CONVEX = "react-convex"
    SHADCN_UI = "shadcn-ui"

    @property
    def prefix(self) -> str:
        """Three-letter rule ID prefix, unique across all standards."""
        return _STANDARD_PREFIXES[self]

    @classmethod
    def from_prefix(cls, prefix: str) -> Standard | None:
        for standard, value in _STANDARD_PREFIXES.items():
            if value == prefix:
                return standard
        return None


_STANDARD_PREFIXES: dict[Standard, str] = {
    Standard.TYPESCRIPT: "typ",
    Standard.REACT: "rea",
    Standard.NEXTJS: "nex",
    Standard.SECURITY: "sec",
    Standard.TESTING: "tes",
    Standard.FORMS: "for",
    Standard.TAILWIND: "tai",
    Standard.REACT_CONVEX: "con",
    Standard.SHADCN_UI: "sha",
}


class Severity(enum.Enum):
    """Violation severity, ordered error > warning > info."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Sort rank and score weight: error=3, warning=2, info=1."""
        return _SEVERITY_RANKS[self]


_SEVERITY_RANKS: dict[Severity, int] = {
    Severity.ERROR: 3,
    Severity.WARNING: 2,
    Severity.INFO: 1,
}


class AstMatcherKind(enum.Enum):
    """Built-in syntax-tree matchers plus a custom-predicate escape hatch."""

    ANY_TYPE = "any-type"
    VAR_DECLARATION = "var-declaration"
    DEFAULT_EXPORT = "default-export"
    CLASS_COMPONENT = "class-component"
    DEBUG_CALL = "debug-call"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AstMatcher:
    """A node predicate attached to a rule.

    Built-in kinds are resolved to predicates by
    :mod:`standards_audit.engine.matchers`; ``CUSTOM`` carries its own.
    """

    kind: AstMatcherKind
    predicate: NodePredicate | None = None

    def __post_init__(self) -> None:
        if self.kind is AstMatcherKind.CUSTOM and self.predicate is None:
            msg = "custom AST matcher requires a predicate"
            raise ValueError(msg)
        if self.kind is not AstMatcherKind.CUSTOM and self.predicate is not None:
            msg = f"built-in AST matcher '{self.kind.value}' does not take a predicate"
            raise ValueError(msg)

    @classmethod
    def builtin(cls, kind: AstMatcherKind) -> AstMatcher:
        return cls(kind=kind)

    @classmethod
    def custom(cls, predicate: NodePredicate) -> AstMatcher:
        return cls(kind=AstMatcherKind.CUSTOM, predicate=predicate)


@dataclass(frozen=True)
class RuleExamples:
    """Canonical before/after snippet for a rule."""

    incorrect: str
    correct: str


@dataclass(frozen=True)
class Rule:
    """A single checkable policy compiled from a standards document."""

    id: str  # "<prefix>-<NNN>", e.g. "typ-001"
    name: str  # slug derived from the source heading or catalogue entry
    standard: Standard
    severity: Severity
    message: str
    examples: RuleExamples
    pattern: re.Pattern[str] | None = None  # single-line regex
    ast_matcher: AstMatcher | None = None
    fix_template: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedStandard:
    """Extraction result of one standards markdown document."""

    standard: Standard
    file_path: str
    rules: tuple[Rule, ...]
    raw_content: str


@dataclass(frozen=True)
class Violation:
    """One concrete, located instance of a rule being broken."""

    rule_id: str
    file_path: str  # relative to the project root
    line: int  # 1-based
    column: int  # 1-based
    severity: Severity
    message: str
    code_snippet: str = ""
    fix_suggestion: str | None = None
    rule_name: str = ""


@dataclass(frozen=True)
class FileAuditResult:
    """Violations and compliance score for a single file."""

    file_path: str
    violations: tuple[Violation, ...]
    line_count: int
    compliance_score: int


@dataclass(frozen=True)
class AuditResult:
    """Whole-run aggregate; the hand-off object for reports and auto-fix."""

    total_files: int
    total_violations: int
    compliance_score: int
    violations_by_standard: dict[str, int] = field(default_factory=dict)
    violations_by_severity: dict[str, int] = field(default_factory=dict)
    violations: tuple[Violation, ...] = ()
    file_results: tuple[FileAuditResult, ...] = ()
    execution_time_ms: float = 0.0
