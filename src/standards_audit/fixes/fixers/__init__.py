"""Built-in fixers, in the priority order the engine offers violations to them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from standards_audit.fixes.fixers.debug import DebugStatementFixer
from standards_audit.fixes.fixers.directive import UseClientDirectiveFixer
from standards_audit.fixes.fixers.exports import ExportStyleFixer
from standards_audit.fixes.fixers.return_types import ReturnTypeFixer

if TYPE_CHECKING:
    from standards_audit.fixes.types import AutoFixer


def default_fixers() -> list[AutoFixer]:
    return [
        UseClientDirectiveFixer(),
        ExportStyleFixer(),
        DebugStatementFixer(),
        ReturnTypeFixer(),
    ]


__all__ = [
    "DebugStatementFixer",
    "ExportStyleFixer",
    "ReturnTypeFixer",
    "UseClientDirectiveFixer",
    "default_fixers",
]
