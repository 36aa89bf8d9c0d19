"""standards-audit CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from standards_audit import __version__
from standards_audit.engine.types import Severity, Standard

if TYPE_CHECKING:
    from collections.abc import Callable

    from standards_audit.config import AuditConfig
    from standards_audit.engine.types import AuditResult

    F = Callable[..., object]

_STANDARD_CHOICES = [s.value for s in Standard]
_SEVERITY_CHOICES = [s.value for s in Severity]
_FORMAT_CHOICES = ["rich", "json", "markdown"]

LATEST_RESULT = "latest.json"


def _project_option(fn: F) -> F:
    return click.option(
        "--project",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
        help="Project root (default: current directory).",
    )(fn)


def _standard_option(fn: F) -> F:
    return click.option(
        "--standard",
        "standards",
        type=click.Choice(_STANDARD_CHOICES),
        multiple=True,
        help="Only apply rules from this standard (repeatable).",
    )(fn)


def _severity_option(fn: F) -> F:
    return click.option(
        "--severity",
        type=click.Choice(_SEVERITY_CHOICES),
        default=None,
        help="Minimum rule severity to apply.",
    )(fn)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="standards-audit")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """standards-audit - audit a TypeScript code base against markdown coding standards."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


def _load_config(project_root: Path, **overrides: object) -> AuditConfig:
    """Read the project config and apply CLI overrides; exits 2 on a config error."""
    from standards_audit.config import ConfigError, load_config

    try:
        return load_config(project_root).with_overrides(**overrides)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


def _audit(project_root: Path, config: AuditConfig) -> AuditResult:
    from standards_audit.engine.audit import AuditError, run_audit
    from standards_audit.engine.registry import DuplicateRuleError

    try:
        return run_audit(project_root, config=config)
    except (AuditError, DuplicateRuleError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


def _overrides(
    standards: tuple[str, ...],
    severity: str | None,
    max_violations: int | None = None,
    type_check: bool | None = None,
) -> dict[str, object]:
    return {
        "standards": tuple(Standard(s) for s in standards) or None,
        "min_severity": Severity(severity) if severity else None,
        "max_violations": max_violations,
        "type_check": type_check or None,
    }


@main.command()
@_project_option
@_standard_option
@_severity_option
@click.option("--max-violations", type=click.IntRange(min=1), default=None, help="Cap on reported violations.")
@click.option("--format", "fmt", type=click.Choice(_FORMAT_CHOICES), default="rich", help="Output format.")
@click.option("--type-check", is_flag=True, default=False, help="Run the TypeScript compiler first.")
@click.option("--strict", is_flag=True, default=False, help="Exit 1 if violations found.")
def run(
    *,
    project: Path | None,
    standards: tuple[str, ...],
    severity: str | None,
    max_violations: int | None,
    fmt: str,
    type_check: bool,
    strict: bool,
) -> None:
    """Audit the project against its coding standards.

    Exit codes: 0 = clean or violations without --strict,
    1 = violations with --strict, 2 = configuration or standards error.
    """
    from standards_audit.reports import format_json, format_markdown, format_rich, save_result

    project_root = (project or Path.cwd()).resolve()
    config = _load_config(project_root, **_overrides(standards, severity, max_violations, type_check))
    result = _audit(project_root, config)

    save_result(result, config.resolve(project_root, config.report_dir) / LATEST_RESULT)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "markdown": format_markdown,
    }
    click.echo(formatters[fmt](result))

    if strict and result.violations:
        sys.exit(1)


@main.command()
@_project_option
@_standard_option
@_severity_option
@click.option("--dry-run", is_flag=True, default=False, help="Show what would change without writing.")
@click.option(
    "--no-backup",
    is_flag=True,
    default=False,
    help="Keep backups in a temporary directory that is discarded afterwards.",
)
@click.option("--no-verify", is_flag=True, default=False, help="Skip the type check after fixing a file.")
@click.option("--session-id", default=None, help="Backup session ID (default: timestamp).")
def fix(
    *,
    project: Path | None,
    standards: tuple[str, ...],
    severity: str | None,
    dry_run: bool,
    no_backup: bool,
    no_verify: bool,
    session_id: str | None,
) -> None:
    """Audit the project, then apply automatic fixes with backup and rollback."""
    import dataclasses
    import functools
    import tempfile

    from standards_audit.engine.typecheck import verify_file
    from standards_audit.engine.validator import group_violations_by_file
    from standards_audit.fixes.backup import BackupManager, new_session_id
    from standards_audit.fixes.engine import AutoFixEngine
    from standards_audit.reports import format_fix_report

    project_root = (project or Path.cwd()).resolve()
    config = _load_config(project_root, **_overrides(standards, severity))
    result = _audit(project_root, config)
    grouped = group_violations_by_file(result, project_root)

    if no_verify:
        verifier = _accept
    else:
        verifier = functools.partial(
            verify_file,
            command=config.typecheck_command,
            timeout=config.typecheck_timeout,
            cwd=project_root,
        )

    sid = session_id or new_session_id()
    if dry_run:
        engine = AutoFixEngine(None, dry_run=True)
        report = engine.fix_all(grouped)
    elif no_backup:
        with tempfile.TemporaryDirectory(prefix="standards-audit-") as tmp:
            manager = BackupManager(Path(tmp), sid)
            engine = AutoFixEngine(manager, verifier=verifier)
            report = dataclasses.replace(engine.fix_all(grouped), manifest_path=None)
    else:
        manager = BackupManager(config.resolve(project_root, config.backup_dir), sid)
        engine = AutoFixEngine(manager, verifier=verifier)
        report = engine.fix_all(grouped)

    click.echo(format_fix_report(report))


def _accept(path: Path) -> bool:
    return True


@main.command()
@_project_option
@click.option(
    "--input",
    "input_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Saved audit result (default: latest result in the report directory).",
)
@click.option("--format", "fmt", type=click.Choice(_FORMAT_CHOICES), default="markdown", help="Output format.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout.",
)
def report(*, project: Path | None, input_path: Path | None, fmt: str, output: Path | None) -> None:
    """Render a saved audit result."""
    from standards_audit.reports import format_json, format_markdown, format_rich, load_result

    project_root = (project or Path.cwd()).resolve()
    if input_path is None:
        config = _load_config(project_root)
        input_path = config.resolve(project_root, config.report_dir) / LATEST_RESULT
        if not input_path.is_file():
            click.echo(f"Error: no saved result at {input_path}; run an audit first.", err=True)
            sys.exit(2)

    try:
        result = load_result(input_path)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "markdown": format_markdown,
    }
    text = formatters[fmt](result)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Report written to {output}")
    else:
        click.echo(text)


@main.command()
@_project_option
@_standard_option
@click.option("--all", "show_all", is_flag=True, default=False, help="List every rule.")
def rules(*, project: Path | None, standards: tuple[str, ...], show_all: bool) -> None:
    """Show rule statistics for the configured standards."""
    from rich.console import Console
    from rich.table import Table

    from standards_audit.engine.audit import AuditError, load_registry
    from standards_audit.engine.registry import DuplicateRuleError, RuleRegistry

    project_root = (project or Path.cwd()).resolve()
    config = _load_config(project_root)
    try:
        registry = load_registry(project_root, config)
    except (AuditError, DuplicateRuleError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if standards:
        registry = RuleRegistry.from_rules(registry.filter(standards=[Standard(s) for s in standards]))

    console = Console()
    table = Table(title=f"Rules ({len(registry)})")
    table.add_column("Standard", style="cyan")
    for sev in Severity:
        table.add_column(sev.value, justify="right")
    table.add_column("total", justify="right", style="bold")

    for std in Standard:
        subset = registry.by_standard(std)
        if not subset:
            continue
        counts = [sum(1 for r in subset if r.severity is sev) for sev in Severity]
        table.add_row(std.value, *(str(c) for c in counts), str(len(subset)))
    console.print(table)

    if show_all:
        detail = Table(show_header=True, box=None, padding=(0, 1))
        detail.add_column("ID", style="cyan")
        detail.add_column("Name")
        detail.add_column("Severity")
        detail.add_column("Detector")
        for rule in registry:
            detectors = []
            if rule.pattern is not None:
                detectors.append("regex")
            if rule.ast_matcher is not None:
                detectors.append(f"ast:{rule.ast_matcher.kind.value}")
            detail.add_row(rule.id, rule.name, rule.severity.value, ", ".join(detectors) or "-")
        console.print()
        console.print(detail)


@main.command()
@click.option(
    "--manifest",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="manifest.json of the fix session to restore.",
)
def rollback(*, manifest: Path) -> None:
    """Restore every file of a fix session from its backups."""
    from standards_audit.fixes.backup import BackupError, restore_from_manifest

    try:
        restored = restore_from_manifest(manifest)
    except BackupError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Restored {len(restored)} files")
    for info in restored:
        click.echo(f"  {info.original_path}")
