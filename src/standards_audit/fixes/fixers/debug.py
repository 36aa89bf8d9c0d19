"""Comment out console debugging calls (never deletes them)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from standards_audit.fixes.types import AutoFixer, FixResult

if TYPE_CHECKING:
    from standards_audit.engine.types import Violation

_CALL_START_RE = re.compile(r"console\.(?:log|warn|error|debug|info)\(")
_QUOTES = "'\"`"


def _call_end(line: str, open_idx: int) -> int | None:
    """Index just past the parenthesis closing the one at *open_idx*.

    Quoted strings are skipped.  ``None`` when the call does not close on
    this line.
    """
    depth = 0
    quote = ""
    i = open_idx
    while i < len(line):
        ch = line[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = ""
        elif ch in _QUOTES:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return None


def _call_spans(line: str) -> list[tuple[int, int]] | None:
    """Spans of the console calls on *line*, or ``None`` if one is left open."""
    spans: list[tuple[int, int]] = []
    for match in _CALL_START_RE.finditer(line):
        start = match.start()
        if spans and start < spans[-1][1]:
            continue
        prefix = line[:start]
        # a call after a line comment is already inert
        if "//" in prefix:
            break
        if prefix.endswith("/* "):
            continue
        end = _call_end(line, match.end() - 1)
        if end is None:
            return None
        if line.startswith(";", end):
            end += 1
        spans.append((start, end))
    return spans


def _comment_line(line: str) -> str:
    stripped = line.lstrip()
    if stripped.startswith(("//", "/*", "*")):
        return line

    spans = _call_spans(line)
    if not spans:
        return line

    if len(spans) == 1:
        start, end = spans[0]
        if not line[:start].strip() and not line[end:].strip():
            return f"{line[:start]}// {line[start:end]}"

    if any("*/" in line[start:end] for start, end in spans):
        return line

    out: list[str] = []
    pos = 0
    for start, end in spans:
        out.append(line[pos:start])
        out.append(f"/* {line[start:end]} */")
        pos = end
    out.append(line[pos:])
    return "".join(out)


def comment_out_console(source: str) -> str:
    """Comment out every console call that opens and closes on one line.

    Whole-line calls get ``//``; calls sharing a line with other code are
    wrapped in ``/* */``.  A call spanning lines is left alone.
    """
    return "\n".join(_comment_line(line) for line in source.split("\n"))


class DebugStatementFixer(AutoFixer):
    name = "Comment out console statements"
    rule_id = "no-console"
    description = "Comments out console.log/debug/info/warn/error calls"

    def can_fix(self, violation: Violation, source: str) -> bool:
        claimed = "console" in violation.rule_name or "console" in violation.message.lower()
        return claimed and bool(_CALL_START_RE.search(source))

    def fix(self, violation: Violation, source: str) -> FixResult:
        fixed = comment_out_console(source)
        return FixResult(fixed=fixed, applied=fixed != source)
