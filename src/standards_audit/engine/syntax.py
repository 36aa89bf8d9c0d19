"""Syntax analyzer: tree-sitter parsing and fact extraction for TypeScript/TSX."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from tree_sitter import Node as TSNode
    from tree_sitter import Tree

    from standards_audit.engine.typecheck import TypeCheckContext, TypeCheckDiagnostic


class UnsupportedLanguageError(ValueError):
    """Raised when a file extension has no grammar."""


# ---- Language loaders ----


def _load_typescript() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_typescript())


def _load_tsx() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_tsx())


_EXTENSION_LOADERS: dict[str, Callable[[], Language]] = {
    ".ts": _load_typescript,
    ".mts": _load_typescript,
    ".cts": _load_typescript,
    ".tsx": _load_tsx,
}

_LANG_CACHE: dict[str, Language] = {}


def get_language(extension: str) -> Language:
    """Grammar for *extension*, loaded once and cached.

    Raises
    ------
    UnsupportedLanguageError
        When no grammar is registered for the extension.
    """
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]
    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        msg = f"No grammar for extension '{extension}'"
        raise UnsupportedLanguageError(msg)
    language = loader()
    _LANG_CACHE[extension] = language
    return language


def supported_extensions() -> frozenset[str]:
    return frozenset(_EXTENSION_LOADERS)


def clear_cache() -> None:
    """Clear the grammar cache (useful for testing)."""
    _LANG_CACHE.clear()


# ---- Extracted facts ----

REACT_HOOKS: frozenset[str] = frozenset({
    "useState",
    "useEffect",
    "useContext",
    "useReducer",
    "useCallback",
    "useMemo",
    "useRef",
    "useImperativeHandle",
    "useLayoutEffect",
    "useDebugValue",
    "useDeferredValue",
    "useTransition",
    "useId",
    "useSyncExternalStore",
    "useInsertionEffect",
})

CONVEX_HOOKS: frozenset[str] = frozenset({
    "useQuery",
    "useMutation",
    "useAction",
    "useConvex",
    "useConvexAuth",
})

FRAMEWORK_FACTORIES: frozenset[str] = frozenset({
    "query",
    "mutation",
    "action",
    "internalQuery",
    "internalMutation",
    "internalAction",
})

_HOOK_NAME_RE = re.compile(r"^use[A-Z]")
_SUPPRESSION_RE = re.compile(r"@ts-(ignore|nocheck)\b")

_FUNCTION_VALUE_TYPES = frozenset({"arrow_function", "function_expression", "function"})
_JSX_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})
_CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})


@dataclass(frozen=True)
class ImportInfo:
    module: str
    named: tuple[str, ...] = ()
    default: str | None = None
    namespace: str | None = None
    line: int = 0


@dataclass(frozen=True)
class ExportInfo:
    kind: str  # "named" | "default" | "namespace"
    name: str
    line: int
    column: int = 1
    anonymous: bool = False


@dataclass(frozen=True)
class HookUsage:
    name: str
    line: int
    column: int
    is_custom: bool


@dataclass(frozen=True)
class ComponentInfo:
    name: str
    is_functional: bool
    is_class: bool
    line: int


@dataclass(frozen=True)
class FrameworkFunctionInfo:
    kind: str  # factory callee, e.g. "query" or "internalMutation"
    name: str
    line: int


@dataclass(frozen=True)
class FunctionInfo:
    name: str
    is_async: bool
    is_exported: bool
    param_count: int
    line: int


@dataclass(frozen=True)
class AnyAnnotation:
    """An explicit ``any`` type and where it appears."""

    line: int
    column: int
    context: str  # "parameter" | "variable" | "return" | "property" | "assertion" | "other"
    name: str = ""


@dataclass(frozen=True)
class Suppression:
    directive: str  # "ts-ignore" | "ts-nocheck"
    line: int
    column: int


@dataclass(frozen=True)
class ParsedFile:
    """Facts extracted from one source file by a single traversal."""

    file_path: Path
    source: str
    tree: Tree
    has_use_client: bool = False
    has_use_server: bool = False
    imports: tuple[ImportInfo, ...] = ()
    exports: tuple[ExportInfo, ...] = ()
    hooks: tuple[HookUsage, ...] = ()
    components: tuple[ComponentInfo, ...] = ()
    framework_functions: tuple[FrameworkFunctionInfo, ...] = ()
    functions: tuple[FunctionInfo, ...] = ()
    any_annotations: tuple[AnyAnnotation, ...] = ()
    suppressions: tuple[Suppression, ...] = ()
    type_errors: tuple[TypeCheckDiagnostic, ...] = ()

    @property
    def class_components(self) -> list[ComponentInfo]:
        return [c for c in self.components if c.is_class]

    def imports_module(self, module: str) -> bool:
        return any(i.module == module for i in self.imports)


@dataclass
class _Facts:
    source: bytes = b""
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[ExportInfo] = field(default_factory=list)
    hooks: list[HookUsage] = field(default_factory=list)
    components: list[ComponentInfo] = field(default_factory=list)
    framework_functions: list[FrameworkFunctionInfo] = field(default_factory=list)
    functions: list[FunctionInfo] = field(default_factory=list)
    any_annotations: list[AnyAnnotation] = field(default_factory=list)
    suppressions: list[Suppression] = field(default_factory=list)


# ---- Node helpers ----


def node_text(node: TSNode | None) -> str:
    if node is None or not node.text:
        return ""
    return node.text.decode("utf-8")


def node_line(node: TSNode) -> int:
    """1-based line of the node's first character."""
    return node.start_point.row + 1


def node_column(node: TSNode, source: bytes | None = None) -> int:
    """1-based character column of the node's first character.

    Tree-sitter reports byte columns; with *source* the line prefix is
    decoded so non-ASCII text counts one column per character.
    """
    if source is None:
        return node.start_point.column + 1
    line_start = source.rfind(b"\n", 0, node.start_byte) + 1
    return len(source[line_start : node.start_byte].decode("utf-8", errors="replace")) + 1


def iter_nodes(root: TSNode) -> Iterator[TSNode]:
    """Pre-order traversal with an explicit stack."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def contains_jsx(node: TSNode | None) -> bool:
    if node is None:
        return False
    return any(n.type in _JSX_TYPES for n in iter_nodes(node))


def _has_child_type(node: TSNode, child_type: str) -> bool:
    return any(c.type == child_type for c in node.children)


def _string_value(node: TSNode | None) -> str:
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _is_upper(name: str) -> bool:
    return bool(name) and name[0].isupper()


# ---- Parsing ----


def parse_source(
    source: str,
    file_path: Path,
    *,
    type_check: TypeCheckContext | None = None,
) -> ParsedFile:
    """Parse already-read *source* using the grammar chosen by *file_path*'s suffix."""
    file_path = Path(file_path)
    language = get_language(file_path.suffix)
    parser = Parser(language)
    data = source.encode("utf-8")
    tree = parser.parse(data)
    root = tree.root_node

    has_client, has_server = _detect_directive(root)
    facts = _Facts(source=data)
    for node in iter_nodes(root):
        _visit(node, facts)

    type_errors: tuple[TypeCheckDiagnostic, ...] = ()
    if type_check is not None:
        type_errors = tuple(type_check.for_file(file_path))

    return ParsedFile(
        file_path=file_path,
        source=source,
        tree=tree,
        has_use_client=has_client,
        has_use_server=has_server,
        imports=tuple(facts.imports),
        exports=tuple(facts.exports),
        hooks=tuple(facts.hooks),
        components=tuple(facts.components),
        framework_functions=tuple(facts.framework_functions),
        functions=tuple(facts.functions),
        any_annotations=tuple(facts.any_annotations),
        suppressions=tuple(facts.suppressions),
        type_errors=type_errors,
    )


def parse_file(path: Path, *, type_check: TypeCheckContext | None = None) -> ParsedFile:
    """Read and parse a TypeScript or TSX file.

    Raises
    ------
    UnsupportedLanguageError
        For extensions other than the TypeScript family.
    """
    path = Path(path)
    get_language(path.suffix)
    source = path.read_text(encoding="utf-8")
    return parse_source(source, path, type_check=type_check)


def _detect_directive(root: TSNode) -> tuple[bool, bool]:
    """Check the first non-comment statement for a ``"use client"`` / ``"use server"`` string."""
    for child in root.children:
        if child.type in ("comment", "hash_bang_line"):
            continue
        if child.type != "expression_statement":
            return False, False
        expr = child.named_children[0] if child.named_children else None
        if expr is None or expr.type != "string":
            return False, False
        text = node_text(expr)
        return "use client" in text, "use server" in text
    return False, False


def _visit(node: TSNode, facts: _Facts) -> None:
    kind = node.type
    if kind == "import_statement":
        info = _import_info(node)
        if info is not None:
            facts.imports.append(info)
    elif kind == "export_statement":
        facts.exports.extend(_export_infos(node, facts.source))
    elif kind in ("function_declaration", "generator_function_declaration"):
        _record_function(node, facts)
    elif kind == "variable_declarator":
        _record_declarator(node, facts)
    elif kind == "call_expression":
        hook = _hook_usage(node, facts.source)
        if hook is not None:
            facts.hooks.append(hook)
    elif kind in _CLASS_TYPES:
        _record_class(node, facts)
    elif kind == "type_annotation":
        annotation = _any_annotation(node, facts.source)
        if annotation is not None:
            facts.any_annotations.append(annotation)
    elif kind == "as_expression":
        target = node.named_children[-1] if node.named_children else None
        if target is not None and target.type == "predefined_type" and node_text(target) == "any":
            facts.any_annotations.append(
                AnyAnnotation(line=node_line(target), column=node_column(target, facts.source), context="assertion")
            )
    elif kind == "comment":
        for match in _SUPPRESSION_RE.finditer(node_text(node)):
            facts.suppressions.append(
                Suppression(
                    directive=f"ts-{match.group(1)}",
                    line=node_line(node),
                    column=node_column(node, facts.source) + match.start(),
                )
            )


def _import_info(node: TSNode) -> ImportInfo | None:
    source = node.child_by_field_name("source")
    if source is None:
        return None

    named: list[str] = []
    default: str | None = None
    namespace: str | None = None
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                default = node_text(part)
            elif part.type == "namespace_import":
                ident = next((c for c in part.named_children if c.type == "identifier"), None)
                namespace = node_text(ident) or None
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    named.append(node_text(local))

    return ImportInfo(
        module=_string_value(source),
        named=tuple(named),
        default=default,
        namespace=namespace,
        line=node_line(node),
    )


def _export_infos(node: TSNode, source: bytes) -> list[ExportInfo]:
    line = node_line(node)
    column = node_column(node, source)
    declaration = node.child_by_field_name("declaration")
    value = node.child_by_field_name("value")

    is_default = _has_child_type(node, "default")
    is_assignment = _has_child_type(node, "=")
    if is_default or is_assignment:
        target = declaration or value
        if target is None and is_assignment:
            target = next((c for c in node.named_children if c.type != "comment"), None)
        name = ""
        if target is not None:
            if target.type == "identifier":
                name = node_text(target)
            else:
                name = node_text(target.child_by_field_name("name"))
        return [
            ExportInfo(
                kind="default",
                name=name or "default",
                line=line,
                column=column,
                anonymous=not name,
            )
        ]

    if declaration is not None:
        if declaration.type in ("lexical_declaration", "variable_declaration"):
            return [
                ExportInfo(
                    kind="named",
                    name=node_text(d.child_by_field_name("name")),
                    line=node_line(d),
                    column=node_column(d, source),
                )
                for d in declaration.named_children
                if d.type == "variable_declarator"
            ]
        name_node = declaration.child_by_field_name("name")
        if name_node is not None:
            return [ExportInfo(kind="named", name=node_text(name_node), line=line, column=column)]
        return []

    infos: list[ExportInfo] = []
    for child in node.named_children:
        if child.type == "export_clause":
            for spec in child.named_children:
                if spec.type != "export_specifier":
                    continue
                exported = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                infos.append(
                    ExportInfo(kind="named", name=node_text(exported), line=line, column=column)
                )
        elif child.type == "namespace_export":
            alias = next((c for c in child.named_children if c.type != "comment"), None)
            infos.append(
                ExportInfo(kind="namespace", name=node_text(alias) or "*", line=line, column=column)
            )
    if not infos and _has_child_type(node, "*"):
        infos.append(ExportInfo(kind="namespace", name="*", line=line, column=column))
    return infos


def _record_function(node: TSNode, facts: _Facts) -> None:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return
    name = node_text(name_node)
    params = node.child_by_field_name("parameters")
    param_count = 0
    if params is not None:
        param_count = sum(1 for p in params.named_children if p.type != "comment")
    parent = node.parent
    facts.functions.append(
        FunctionInfo(
            name=name,
            is_async=_has_child_type(node, "async"),
            is_exported=parent is not None and parent.type == "export_statement",
            param_count=param_count,
            line=node_line(node),
        )
    )
    if _is_upper(name) and contains_jsx(node.child_by_field_name("body")):
        facts.components.append(
            ComponentInfo(name=name, is_functional=True, is_class=False, line=node_line(node))
        )


def _record_declarator(node: TSNode, facts: _Facts) -> None:
    name_node = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name_node is None or value is None:
        return
    name = node_text(name_node)

    if value.type in _FUNCTION_VALUE_TYPES and name_node.type == "identifier" and _is_upper(name):
        facts.components.append(
            ComponentInfo(name=name, is_functional=True, is_class=False, line=node_line(node))
        )
    elif value.type == "call_expression":
        callee = value.child_by_field_name("function")
        if callee is not None and callee.type == "identifier":
            callee_name = node_text(callee)
            if callee_name in FRAMEWORK_FACTORIES:
                facts.framework_functions.append(
                    FrameworkFunctionInfo(kind=callee_name, name=name, line=node_line(node))
                )


def _hook_usage(node: TSNode, source: bytes) -> HookUsage | None:
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "identifier":
        return None
    name = node_text(callee)
    if not _HOOK_NAME_RE.match(name):
        return None
    return HookUsage(
        name=name,
        line=node_line(node),
        column=node_column(node, source),
        is_custom=name not in REACT_HOOKS and name not in CONVEX_HOOKS,
    )


def _record_class(node: TSNode, facts: _Facts) -> None:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return
    heritage = next((c for c in node.children if c.type == "class_heritage"), None)
    if heritage is None or "Component" not in node_text(heritage):
        return
    facts.components.append(
        ComponentInfo(name=node_text(name_node), is_functional=False, is_class=True, line=node_line(node))
    )


def _any_annotation(node: TSNode, source: bytes) -> AnyAnnotation | None:
    target = next((c for c in node.named_children if c.type != "comment"), None)
    if target is None or target.type != "predefined_type" or node_text(target) != "any":
        return None

    parent = node.parent
    context = "other"
    name = ""
    if parent is not None:
        if parent.type in _PARAMETER_TYPES:
            context = "parameter"
            name = node_text(parent.child_by_field_name("pattern"))
        elif parent.type == "variable_declarator":
            context = "variable"
            name = node_text(parent.child_by_field_name("name"))
        elif parent.child_by_field_name("return_type") == node:
            context = "return"
            name = node_text(parent.child_by_field_name("name"))
        elif parent.type in ("public_field_definition", "property_signature"):
            context = "property"
            name = node_text(parent.child_by_field_name("name"))
    return AnyAnnotation(line=node_line(target), column=node_column(target, source), context=context, name=name)
