"""Shared test fixtures for standards-audit."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest

from standards_audit.engine.types import AstMatcher, Rule, RuleExamples, Severity, Standard

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

TYPESCRIPT_DOC = """\
# TypeScript Standards

Project-wide TypeScript conventions.

## No var declarations

Block scoping must be used; never declare with var.

❌ Bad:
```ts
var x = 1
```

✅ Good:
```ts
const x = 1
```
"""

NEXTJS_DOC = """\
# Next.js Standards

## Client components

Components that use hooks need a client directive.
"""

SECURITY_DOC = """\
# Security Standards

## Never call eval

❌ Wrong:
```ts
eval(userInput)
```

✅ Correct:
```ts
JSON.parse(userInput)
```
"""


def write_standards(standards_dir: Path, docs: dict[str, str]) -> Path:
    standards_dir.mkdir(parents=True, exist_ok=True)
    for name, content in docs.items():
        (standards_dir / name).write_text(content, encoding="utf-8")
    return standards_dir


def _build_rule(
    rule_id: str = "tes-001",
    *,
    name: str = "test-rule",
    standard: Standard = Standard.TESTING,
    severity: Severity = Severity.WARNING,
    pattern: str | None = None,
    ast_matcher: AstMatcher | None = None,
    message: str = "test message",
) -> Rule:
    return Rule(
        id=rule_id,
        name=name,
        standard=standard,
        severity=severity,
        message=message,
        examples=RuleExamples(incorrect="bad", correct="good"),
        pattern=re.compile(pattern) if pattern is not None else None,
        ast_matcher=ast_matcher,
    )


@pytest.fixture()
def make_rule() -> Callable[..., Rule]:
    """Factory for ad-hoc rules (defaults to the testing standard)."""
    return _build_rule


@pytest.fixture()
def standards_dir(tmp_path: Path) -> Path:
    """A standards directory with typescript, nextjs and security documents."""
    return write_standards(
        tmp_path / "standards",
        {
            "typescript.md": TYPESCRIPT_DOC,
            "nextjs.md": NEXTJS_DOC,
            "security.md": SECURITY_DOC,
            "README.md": "# Standards index\n",
        },
    )


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """A minimal Next.js-style project with standards under ``.factory/standards``."""
    project = tmp_path / "project"
    write_standards(
        project / ".factory" / "standards",
        {
            "typescript.md": TYPESCRIPT_DOC,
            "nextjs.md": NEXTJS_DOC,
            "security.md": SECURITY_DOC,
        },
    )
    (project / "components").mkdir(parents=True)
    (project / "lib").mkdir()
    return project
