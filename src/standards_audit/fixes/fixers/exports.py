"""Rewrite default exports as named exports."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from standards_audit.fixes.types import AutoFixer, FixResult

if TYPE_CHECKING:
    from standards_audit.engine.types import Violation

_INLINE_DEFAULT_RE = re.compile(r"export\s+default\s+((?:async\s+)?function|class)\s+(\w+)")
_TRAILING_DEFAULT_RE = re.compile(r"^export\s+default\s+(\w+)[ \t]*;?[ \t]*(?:\n|$)", re.MULTILINE)


def _declaration_re(name: str) -> re.Pattern[str]:
    return re.compile(rf"^([ \t]*)(const|let|var)\s+({re.escape(name)}\s*[=:])", re.MULTILINE)


def _function_re(name: str) -> re.Pattern[str]:
    return re.compile(rf"^([ \t]*)((?:async\s+)?function\s+{re.escape(name)}\s*[(<])", re.MULTILINE)


def _rewrite_trailing(source: str) -> str:
    match = _TRAILING_DEFAULT_RE.search(source)
    if match is None:
        return source
    name = match.group(1)
    without = source[: match.start()] + source[match.end() :]

    decl = _declaration_re(name)
    if decl.search(without):
        return decl.sub(r"\1export \2 \3", without, count=1)
    func = _function_re(name)
    if func.search(without):
        return func.sub(r"\1export \2", without, count=1)
    return source


class ExportStyleFixer(AutoFixer):
    name = "Convert default to named exports"
    rule_id = "default-export"
    description = "Converts default exports to named exports"

    def can_fix(self, violation: Violation, source: str) -> bool:
        claimed = "export" in violation.rule_name or "export" in violation.message.lower()
        if not claimed:
            return False
        return self._rewrite(source) != source

    def fix(self, violation: Violation, source: str) -> FixResult:
        fixed = self._rewrite(source)
        return FixResult(fixed=fixed, applied=fixed != source)

    @staticmethod
    def _rewrite(source: str) -> str:
        fixed = _INLINE_DEFAULT_RE.sub(r"export \1 \2", source)
        return _rewrite_trailing(fixed)
