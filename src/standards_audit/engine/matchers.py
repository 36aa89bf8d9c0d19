"""Rule matcher: regex channel plus syntax-tree channel, unioned per rule."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import PurePath
from typing import TYPE_CHECKING

from standards_audit.engine.syntax import iter_nodes, node_column, node_line, node_text
from standards_audit.engine.types import AstMatcherKind, Standard, Violation

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Node as TSNode

    from standards_audit.engine.syntax import ParsedFile
    from standards_audit.engine.types import AstMatcher, NodePredicate, Rule

    StandardChecker = Callable[[Rule, ParsedFile, str], list[Violation]]

logger = logging.getLogger(__name__)

_DEBUG_METHODS = frozenset({"log", "debug", "info", "warn", "error"})
_MAX_NODE_SNIPPET = 100


# ---------------------------------------------------------------------------
# Snippets
# ---------------------------------------------------------------------------


def snippet_around(lines: list[str], line: int) -> str:
    """Three-line context: one line before and one after the 1-based *line*."""
    if not lines:
        return ""
    idx = max(0, min(line - 1, len(lines) - 1))
    start = max(0, idx - 1)
    end = min(len(lines) - 1, idx + 1)
    return "\n".join(lines[start : end + 1])


def _violation(
    rule: Rule,
    file_path: str,
    line: int,
    column: int = 1,
    *,
    message: str | None = None,
    fix_suggestion: str | None = None,
    code_snippet: str = "",
) -> Violation:
    return Violation(
        rule_id=rule.id,
        file_path=file_path,
        line=line,
        column=column,
        severity=rule.severity,
        message=message or rule.message,
        code_snippet=code_snippet,
        fix_suggestion=fix_suggestion or rule.fix_template,
        rule_name=rule.name,
    )


# ---------------------------------------------------------------------------
# Regex channel
# ---------------------------------------------------------------------------


def match_pattern(rule: Rule, lines: list[str], file_path: str) -> list[Violation]:
    """Test ``rule.pattern`` against every line; one violation per matching line."""
    if rule.pattern is None:
        return []
    violations: list[Violation] = []
    for i, line in enumerate(lines):
        match = rule.pattern.search(line)
        if match is None:
            continue
        violations.append(
            _violation(
                rule,
                file_path,
                i + 1,
                match.start() + 1,
                code_snippet=snippet_around(lines, i + 1),
            )
        )
    return violations


# ---------------------------------------------------------------------------
# Per-standard checkers
# ---------------------------------------------------------------------------


def check_typescript(rule: Rule, parsed: ParsedFile, file_path: str) -> list[Violation]:
    violations: list[Violation] = []

    if "default-export" in rule.name:
        for exp in parsed.exports:
            if exp.kind != "default":
                continue
            message = rule.message
            if exp.anonymous:
                message = f"Anonymous default export - {rule.message}"
            violations.append(
                _violation(
                    rule,
                    file_path,
                    exp.line,
                    exp.column,
                    message=message,
                    fix_suggestion="Use named export instead: export function ComponentName()",
                )
            )

    if "any-type" in rule.name:
        for ann in parsed.any_annotations:
            if ann.context != "parameter":
                continue
            violations.append(
                _violation(
                    rule,
                    file_path,
                    ann.line,
                    ann.column,
                    message=f'Parameter "{ann.name}" is typed as any - {rule.message}',
                )
            )

    if "ts-ignore" in rule.name:
        for sup in parsed.suppressions:
            violations.append(
                _violation(
                    rule,
                    file_path,
                    sup.line,
                    sup.column,
                    message=f"@{sup.directive} suppresses type checking - {rule.message}",
                )
            )

    if "type-error" in rule.name:
        for diag in parsed.type_errors:
            violations.append(
                _violation(
                    rule,
                    file_path,
                    diag.line,
                    diag.column,
                    message=f"{diag.code}: {diag.message}",
                )
            )

    return violations


def check_react(rule: Rule, parsed: ParsedFile, file_path: str) -> list[Violation]:
    violations: list[Violation] = []

    if "class-component" in rule.name:
        for component in parsed.class_components:
            violations.append(
                _violation(
                    rule,
                    file_path,
                    component.line,
                    message=f'Class component "{component.name}" - {rule.message}',
                    fix_suggestion="Convert to functional component with hooks",
                )
            )

    if ("use-client" in rule.name or "hook" in rule.name) and parsed.hooks and not parsed.has_use_client:
        first = parsed.hooks[0]
        violations.append(
            _violation(
                rule,
                file_path,
                1,
                message=f'Component uses hooks ({first.name}) but missing "use client" directive',
                fix_suggestion='Add "use client" at the top of the file',
            )
        )

    if "usestate" in rule.name or "server-data" in rule.name:
        state_hooks = [h for h in parsed.hooks if h.name == "useState"]
        if state_hooks and parsed.has_use_client and not parsed.imports_module("convex/react"):
            for hook in state_hooks:
                violations.append(
                    _violation(
                        rule,
                        file_path,
                        hook.line,
                        hook.column,
                        message="Consider using Convex useQuery for server data instead of useState",
                        fix_suggestion="Replace useState with useQuery from convex/react",
                    )
                )

    return violations


def check_nextjs(rule: Rule, parsed: ParsedFile, file_path: str) -> list[Violation]:
    violations: list[Violation] = []

    if "use-client" in rule.name or "directive" in rule.name:
        if parsed.hooks and not parsed.has_use_client and not parsed.has_use_server:
            violations.append(
                _violation(
                    rule,
                    file_path,
                    1,
                    message='Missing "use client" directive - this component uses hooks',
                    fix_suggestion='Add "use client"; at the top of the file',
                )
            )

    if "server-component" in rule.name:
        if PurePath(file_path).name == "page.tsx" and parsed.has_use_client:
            violations.append(
                _violation(
                    rule,
                    file_path,
                    1,
                    fix_suggestion='Remove "use client" and move client logic to separate components',
                )
            )

    return violations


STANDARD_CHECKERS: dict[Standard, StandardChecker] = {
    Standard.TYPESCRIPT: check_typescript,
    Standard.REACT: check_react,
    Standard.NEXTJS: check_nextjs,
}


# ---------------------------------------------------------------------------
# Built-in node predicates
# ---------------------------------------------------------------------------


def _is_any_type(node: TSNode) -> bool:
    return node.type == "predefined_type" and node_text(node) == "any"


def _is_var_declaration(node: TSNode) -> bool:
    return node.type == "variable_declaration"


def _is_default_export(node: TSNode) -> bool:
    return node.type == "export_statement" and any(c.type == "default" for c in node.children)


def _is_class_component(node: TSNode) -> bool:
    if node.type not in ("class_declaration", "abstract_class_declaration"):
        return False
    heritage = next((c for c in node.children if c.type == "class_heritage"), None)
    return heritage is not None and "Component" in node_text(heritage)


def _is_debug_call(node: TSNode) -> bool:
    if node.type != "call_expression":
        return False
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return False
    obj = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    return node_text(obj) == "console" and node_text(prop) in _DEBUG_METHODS


BUILTIN_PREDICATES: dict[AstMatcherKind, NodePredicate] = {
    AstMatcherKind.ANY_TYPE: _is_any_type,
    AstMatcherKind.VAR_DECLARATION: _is_var_declaration,
    AstMatcherKind.DEFAULT_EXPORT: _is_default_export,
    AstMatcherKind.CLASS_COMPONENT: _is_class_component,
    AstMatcherKind.DEBUG_CALL: _is_debug_call,
}


def resolve_predicate(matcher: AstMatcher) -> NodePredicate:
    if matcher.kind is AstMatcherKind.CUSTOM:
        assert matcher.predicate is not None  # enforced by AstMatcher
        return matcher.predicate
    return BUILTIN_PREDICATES[matcher.kind]


def match_ast(rule: Rule, parsed: ParsedFile, file_path: str) -> list[Violation]:
    """Evaluate the rule's node predicate at every node of the tree.

    A predicate that raises is skipped for that node only.
    """
    if rule.ast_matcher is None:
        return []
    predicate = resolve_predicate(rule.ast_matcher)
    data = parsed.source.encode("utf-8")
    violations: list[Violation] = []
    for node in iter_nodes(parsed.tree.root_node):
        try:
            hit = predicate(node)
        except Exception:  # noqa: BLE001
            logger.debug("Predicate for %s failed at %s", rule.id, node.type, exc_info=True)
            continue
        if hit:
            violations.append(
                _violation(
                    rule,
                    file_path,
                    node_line(node),
                    node_column(node, data),
                    code_snippet=node_text(node)[:_MAX_NODE_SNIPPET],
                )
            )
    return violations


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def match_syntax(rule: Rule, parsed: ParsedFile, file_path: str) -> list[Violation]:
    """Run the standard's checker and the rule's AST matcher.

    AST hits on a line the checker already reported are dropped.
    """
    checker = STANDARD_CHECKERS.get(rule.standard)
    violations = checker(rule, parsed, file_path) if checker is not None else []
    checked_lines = {v.line for v in violations}
    violations.extend(v for v in match_ast(rule, parsed, file_path) if v.line not in checked_lines)
    return violations


def match_rule(
    rule: Rule,
    parsed_file: ParsedFile,
    text: str,
    *,
    file_path: str | None = None,
) -> list[Violation]:
    """All violations of *rule* in one file.

    Syntax-channel hits on a line the regex channel already reported are
    dropped, so each location is reported once per rule.
    """
    path = file_path if file_path is not None else str(parsed_file.file_path)
    lines = text.splitlines()

    violations = match_pattern(rule, lines, path)
    regex_lines = {v.line for v in violations}

    for v in match_syntax(rule, parsed_file, path):
        if v.line in regex_lines:
            continue
        if not v.code_snippet:
            v = dataclasses.replace(v, code_snippet=snippet_around(lines, v.line))
        violations.append(v)

    return violations
