"""Add ``void`` return types to simple functions that never return a value."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from standards_audit.fixes.types import AutoFixer, FixResult

if TYPE_CHECKING:
    from standards_audit.engine.types import Violation

MANUAL_FIX_ERROR = "Complex type inference required - manual fix needed"

_RETURNS_FETCH_RE = re.compile(r"function\s+(\w+)\s*\([^)]*\)\s*\{[^}]*return\s+fetch\w*")
_FUNCTION_RE = re.compile(r"(async\s+)?function\s+(\w+)\s*\(([^)]*)\)\s*\{([^}]*)\}")
_ARROW_RE = re.compile(r"const\s+(\w+)\s*=\s*(async\s+)?\(([^)]*)\)\s*=>\s*\{([^}]*)\}")


def _void_type(is_async: bool) -> str:
    return "Promise<void>" if is_async else "void"


def _annotate_function(match: re.Match[str]) -> str:
    is_async, name, params, body = match.groups()
    if "return" in body:
        return match.group(0)
    prefix = is_async or ""
    return f"{prefix}function {name}({params}): {_void_type(bool(is_async))} {{{body}}}"


def _annotate_arrow(match: re.Match[str]) -> str:
    name, is_async, params, body = match.groups()
    if "return" in body:
        return match.group(0)
    prefix = is_async or ""
    return f"const {name} = {prefix}({params}): {_void_type(bool(is_async))} => {{{body}}}"


class ReturnTypeFixer(AutoFixer):
    name = "Add TypeScript return types"
    rule_id = "return-type"
    description = "Adds explicit void return types to functions (simple cases only)"

    def can_fix(self, violation: Violation, source: str) -> bool:
        return "return-type" in violation.rule_name or "return type" in violation.message.lower()

    def fix(self, violation: Violation, source: str) -> FixResult:
        if _RETURNS_FETCH_RE.search(source):
            return FixResult(fixed=source, error=MANUAL_FIX_ERROR)
        fixed = _FUNCTION_RE.sub(_annotate_function, source)
        fixed = _ARROW_RE.sub(_annotate_arrow, fixed)
        return FixResult(fixed=fixed, applied=fixed != source)
