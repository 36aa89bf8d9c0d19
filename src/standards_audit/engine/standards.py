"""Standards parser: compile markdown standards documents into rules."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from standards_audit.engine.types import (
    AstMatcher,
    AstMatcherKind,
    ParsedStandard,
    Rule,
    RuleExamples,
    Severity,
    Standard,
)

logger = logging.getLogger(__name__)

# Documents in the standards directory that never define a standard.
_SKIPPED_DOCUMENTS = frozenset({"readme.md", "index.md"})

# Regex for H2 headings.
_H2_RE = re.compile(r"^## (.+)$", re.MULTILINE)

_FENCE = "```"

# Marker line preceding a fenced block.  Incorrect is checked first so that
# "incorrect" is never mistaken for "correct".
_INCORRECT_MARKER_RE = re.compile(r"❌|\b(avoid|wrong|bad|incorrect|don'?t)\b", re.IGNORECASE)
_CORRECT_MARKER_RE = re.compile(r"✅|\b(correct|good|prefer|better)\b", re.IGNORECASE)

# Severity keywords, checked in order: (pattern, severity).
_SEVERITY_KEYWORDS: list[tuple[re.Pattern[str], Severity]] = [
    (re.compile(r"security|vulnerab|must|never|critical", re.IGNORECASE), Severity.ERROR),
    (re.compile(r"should|recommend", re.IGNORECASE), Severity.WARNING),
    (re.compile(r"consider|optional", re.IGNORECASE), Severity.INFO),
]

# Fragments of an incorrect example that map to a detector regex: (fragment, pattern).
_EXAMPLE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r":\s*any\b"), r":\s*any\s*[=;,)]"),
    (re.compile(r"export\s+default"), r"export\s+default"),
    (re.compile(r"console\.log"), r"console\.(log|debug|info)"),
    (re.compile(r"\bvar\s"), r"\bvar\s+\w+"),
    (re.compile(r"@ts-ignore"), r"@ts-ignore"),
    (re.compile(r"\beval\s*\("), r"\beval\s*\("),
    (re.compile(r"dangerouslySetInnerHTML"), r"dangerouslySetInnerHTML"),
    (
        re.compile(r"class\s+\w+\s+extends\s+(React\.)?Component\b"),
        r"class\s+\w+\s+extends\s+(React\.)?Component\b",
    ),
]

# Fallback when no regex is recognised: (fragment, matcher kind).
_EXAMPLE_AST_MATCHERS: list[tuple[re.Pattern[str], AstMatcherKind]] = [
    (re.compile(r"\bas\s+any\b|<any>"), AstMatcherKind.ANY_TYPE),
    (re.compile(r"extends\s+(React\.)?PureComponent\b"), AstMatcherKind.CLASS_COMPONENT),
]

MAX_NAME_LENGTH = 50


class StandardsError(Exception):
    """Raised when the standards directory cannot be read at all."""


@dataclass(frozen=True)
class CatalogueEntry:
    """A directly authored rule contributed by a standard."""

    name: str
    message: str
    severity: Severity
    pattern: re.Pattern[str] | None = None  # None: detected by the standard's checker only
    fix_template: str | None = None


# Fixed pattern rules per standard, appended after example-derived rules.
PATTERN_CATALOGUE: dict[Standard, tuple[CatalogueEntry, ...]] = {
    Standard.TYPESCRIPT: (
        CatalogueEntry(
            "no-any-type",
            'Avoid using "any" type - use specific types instead',
            Severity.ERROR,
            re.compile(r":\s*any\s*[=;,)]"),
            "Replace any with a concrete type or unknown",
        ),
        CatalogueEntry(
            "no-ts-ignore",
            "Avoid using @ts-ignore or @ts-nocheck - fix type errors instead",
            Severity.ERROR,
            re.compile(r"@ts-ignore|@ts-nocheck"),
        ),
        CatalogueEntry(
            "no-default-export",
            "Use named exports instead of default exports",
            Severity.WARNING,
            re.compile(r"export\s+default\s+(function|class|const)"),
            "Use named export instead: export function ComponentName()",
        ),
        CatalogueEntry(
            "no-type-errors",
            "Type checker reported an error",
            Severity.ERROR,
        ),
        CatalogueEntry(
            "explicit-return-type",
            "Exported functions should declare an explicit return type",
            Severity.INFO,
            re.compile(r"^export\s+(async\s+)?function\s+\w+\s*\([^)]*\)\s*\{"),
            "Add an explicit return type annotation",
        ),
    ),
    Standard.REACT: (
        CatalogueEntry(
            "usestate-null-init",
            "useState with null may indicate missing type - consider undefined or proper type",
            Severity.WARNING,
            re.compile(r"useState\s*<.*>\s*\(\s*null\s*\)"),
        ),
        CatalogueEntry(
            "no-class-components",
            "Use functional components instead of class components",
            Severity.ERROR,
            re.compile(r"class\s+\w+\s+extends\s+(React\.)?Component"),
            "Convert to functional component with hooks",
        ),
    ),
    Standard.NEXTJS: (
        CatalogueEntry(
            "no-console",
            "Remove console statements in production code",
            Severity.WARNING,
            re.compile(r"console\.(log|debug|info|warn|error)"),
            "Remove the console call or route it through a logger",
        ),
        CatalogueEntry(
            "missing-use-client-directive",
            'Components using hooks need a "use client" directive',
            Severity.ERROR,
        ),
        CatalogueEntry(
            "page-server-component",
            "Page components should be Server Components by default",
            Severity.ERROR,
        ),
    ),
    Standard.SECURITY: (
        CatalogueEntry(
            "dangerous-inner-html",
            "Avoid dangerouslySetInnerHTML - potential XSS vulnerability",
            Severity.ERROR,
            re.compile(r"dangerouslySetInnerHTML"),
        ),
        CatalogueEntry(
            "no-eval",
            "Never use eval() - severe security risk",
            Severity.ERROR,
            re.compile(r"\beval\s*\("),
        ),
        CatalogueEntry(
            "hardcoded-secrets",
            "Never hardcode secrets - use environment variables",
            Severity.ERROR,
            re.compile(r"(password|apiKey|secret|token)\s*=\s*['\"][^'\"]+['\"]", re.IGNORECASE),
        ),
    ),
}


@dataclass
class _ExamplePair:
    incorrect: str
    correct: str
    description: str


# ---------------------------------------------------------------------------
# Directory / file entry points
# ---------------------------------------------------------------------------


def infer_standard(filename: str) -> Standard | None:
    """Map a standards filename (e.g. ``react-convex.md``) to a :class:`Standard`."""
    stem = filename.lower()
    if stem.endswith(".md"):
        stem = stem[: -len(".md")]
    try:
        return Standard(stem)
    except ValueError:
        return None


def parse_all_standards(standards_dir: Path) -> list[ParsedStandard]:
    """Parse every recognised standards document in *standards_dir*.

    Files that do not map to a :class:`Standard` are skipped.

    Raises
    ------
    StandardsError
        When *standards_dir* does not exist or is not a directory.
    """
    standards_dir = Path(standards_dir)
    if not standards_dir.is_dir():
        msg = f"Standards directory not found: {standards_dir}"
        raise StandardsError(msg)

    results: list[ParsedStandard] = []
    for md_path in sorted(standards_dir.glob("*.md")):
        if md_path.name.lower() in _SKIPPED_DOCUMENTS:
            continue
        standard = infer_standard(md_path.name)
        if standard is None:
            logger.debug("Skipping %s: no matching standard", md_path.name)
            continue
        results.append(parse_standard_file(md_path, standard))

    return results


def parse_standard_file(file_path: Path, standard: Standard) -> ParsedStandard:
    """Parse a single standards document into a :class:`ParsedStandard`."""
    content = Path(file_path).read_text(encoding="utf-8")
    rules = extract_rules(content, standard)
    logger.debug("Parsed %d rules from %s", len(rules), file_path)
    return ParsedStandard(
        standard=standard,
        file_path=str(file_path),
        rules=tuple(rules),
        raw_content=content,
    )


# ---------------------------------------------------------------------------
# Markdown extraction
# ---------------------------------------------------------------------------


def split_sections(content: str) -> list[tuple[str, str]]:
    """Split markdown into ``(heading, body)`` pairs on H2 headings.

    Text before the first H2 is dropped.
    """
    splits = _H2_RE.split(content)
    sections: list[tuple[str, str]] = []
    for i in range(1, len(splits), 2):
        heading = splits[i].strip()
        body = splits[i + 1] if i + 1 < len(splits) else ""
        sections.append((heading, body))
    return sections


def extract_rules(content: str, standard: Standard) -> list[Rule]:
    """Compile example-derived rules followed by the standard's pattern catalogue.

    A single counter runs through the whole document so IDs stay unique
    within the standard.
    """
    rules: list[Rule] = []
    counter = 1

    for heading, body in split_sections(content):
        for pair in extract_example_pairs(body):
            rules.append(_rule_from_example(standard, counter, heading, pair))
            counter += 1

    for entry in PATTERN_CATALOGUE.get(standard, ()):
        rules.append(
            Rule(
                id=make_rule_id(standard, counter),
                name=entry.name,
                standard=standard,
                severity=entry.severity,
                message=entry.message,
                examples=RuleExamples(
                    incorrect="Pattern-based detection",
                    correct="See standard documentation",
                ),
                pattern=entry.pattern,
                fix_template=entry.fix_template,
                tags=("catalogue",),
            )
        )
        counter += 1

    return rules


def _marker_kind(line: str) -> str | None:
    """Classify the line preceding a fence as ``"incorrect"``, ``"correct"`` or ``None``."""
    if _INCORRECT_MARKER_RE.search(line):
        return "incorrect"
    if _CORRECT_MARKER_RE.search(line):
        return "correct"
    return None


def extract_example_pairs(section: str) -> list[_ExamplePair]:
    """Scan a section for incorrect-then-correct fenced block pairs.

    Blocks without a marker line are ignored.  An incorrect block with no
    following correct block (or a correct block with no preceding incorrect
    block) yields nothing.
    """
    pairs: list[_ExamplePair] = []
    lines = section.split("\n")

    description = ""
    pending_incorrect: str | None = None
    in_block = False
    block_kind: str | None = None
    block_lines: list[str] = []

    for i, line in enumerate(lines):
        stripped = line.strip()

        if stripped.startswith(_FENCE):
            if in_block:
                in_block = False
                code = "\n".join(block_lines).strip()
                if block_kind == "incorrect":
                    pending_incorrect = code
                elif block_kind == "correct" and pending_incorrect is not None:
                    pairs.append(_ExamplePair(pending_incorrect, code, description))
                    pending_incorrect = None
                    description = ""
                block_lines = []
            else:
                in_block = True
                prev = lines[i - 1] if i > 0 else ""
                block_kind = _marker_kind(prev)
            continue

        if in_block:
            block_lines.append(line)
            continue

        is_prose = (
            stripped
            and not stripped.startswith("//")
            and not stripped.startswith("#")
            and _marker_kind(stripped) is None
        )
        if is_prose and not description:
            description = stripped

    return pairs


def make_rule_id(standard: Standard, counter: int) -> str:
    return f"{standard.prefix}-{counter:03d}"


def slugify(heading: str) -> str:
    """Lower-case, strip punctuation, hyphenate whitespace, truncate."""
    slug = re.sub(r"[^a-z0-9\s]", "", heading.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return slug[:MAX_NAME_LENGTH]


def infer_severity(heading: str, description: str) -> Severity:
    text = f"{heading}\n{description}"
    for pattern, severity in _SEVERITY_KEYWORDS:
        if pattern.search(text):
            return severity
    return Severity.WARNING


def derive_pattern(incorrect: str) -> re.Pattern[str] | None:
    """Best-effort detector regex for an incorrect example, or ``None``."""
    for fragment, pattern in _EXAMPLE_PATTERNS:
        if fragment.search(incorrect):
            return re.compile(pattern)
    return None


def derive_ast_matcher(incorrect: str) -> AstMatcher | None:
    for fragment, kind in _EXAMPLE_AST_MATCHERS:
        if fragment.search(incorrect):
            return AstMatcher.builtin(kind)
    return None


def _rule_from_example(
    standard: Standard, counter: int, heading: str, pair: _ExamplePair
) -> Rule:
    pattern = derive_pattern(pair.incorrect)
    ast_matcher = derive_ast_matcher(pair.incorrect) if pattern is None else None
    return Rule(
        id=make_rule_id(standard, counter),
        name=slugify(heading),
        standard=standard,
        severity=infer_severity(heading, pair.description),
        message=pair.description or heading,
        examples=RuleExamples(incorrect=pair.incorrect, correct=pair.correct),
        pattern=pattern,
        ast_matcher=ast_matcher,
    )
