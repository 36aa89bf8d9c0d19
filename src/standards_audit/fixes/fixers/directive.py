"""Insert a ``"use client"`` directive into files that call hooks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from standards_audit.fixes.types import AutoFixer, FixResult

if TYPE_CHECKING:
    from standards_audit.engine.types import Violation

DIRECTIVE_LINE = '"use client";'

_HOOK_CALL_RE = re.compile(r"\buse[A-Z]\w*\s*\(")
_DIRECTIVE_RE = re.compile(r"""^(['"])use (client|server)\1""")


def _is_comment_or_blank(stripped: str) -> bool:
    return not stripped or stripped.startswith(("//", "/*", "*"))


def first_code_line(lines: list[str]) -> int:
    """Index of the first line that is not blank or a comment (0 when there is none)."""
    for i, line in enumerate(lines):
        if not _is_comment_or_blank(line.strip()):
            return i
    return 0


def has_directive(source: str) -> bool:
    lines = source.split("\n")
    idx = first_code_line(lines)
    return bool(lines) and bool(_DIRECTIVE_RE.match(lines[idx].strip()))


class UseClientDirectiveFixer(AutoFixer):
    name = 'Add "use client" directive'
    rule_id = "use-client"
    description = "Adds a use client directive to components that call React hooks"

    def can_fix(self, violation: Violation, source: str) -> bool:
        claimed = (
            "use-client" in violation.rule_name
            or "directive" in violation.rule_name
            or "use client" in violation.message.lower()
        )
        if not claimed or has_directive(source):
            return False
        return bool(_HOOK_CALL_RE.search(source))

    def fix(self, violation: Violation, source: str) -> FixResult:
        if has_directive(source):
            return FixResult(fixed=source)
        lines = source.split("\n")
        idx = first_code_line(lines)
        lines[idx:idx] = [DIRECTIVE_LINE, ""]
        return FixResult(fixed="\n".join(lines), applied=True)
