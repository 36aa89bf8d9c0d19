"""Bridge to the TypeScript compiler: project-wide diagnostics and per-file verification."""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TYPECHECK_COMMAND = "npx --no-install tsc"
DEFAULT_TYPECHECK_TIMEOUT = 120

_TSC_FLAGS = ["--noEmit", "--pretty", "false"]

# e.g. "app/page.tsx(12,5): error TS2322: Type 'string' is not assignable ..."
_DIAGNOSTIC_RE = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<col>\d+)\): "
    r"(?P<category>error|warning) (?P<code>TS\d+): (?P<message>.*)$"
)


@dataclass(frozen=True)
class TypeCheckDiagnostic:
    file_path: Path
    line: int
    column: int
    category: str  # "error" | "warning"
    code: str  # e.g. "TS2322"
    message: str


@dataclass(frozen=True)
class TypeCheckContext:
    """Diagnostics from one compiler run, keyed by resolved file path."""

    diagnostics: dict[Path, tuple[TypeCheckDiagnostic, ...]] = field(default_factory=dict)
    succeeded: bool = True

    def for_file(self, path: Path) -> tuple[TypeCheckDiagnostic, ...]:
        return self.diagnostics.get(Path(path).resolve(), ())

    @property
    def total(self) -> int:
        return sum(len(d) for d in self.diagnostics.values())


def parse_diagnostics(output: str, project_root: Path) -> list[TypeCheckDiagnostic]:
    """Parse ``--pretty false`` compiler output; lines that do not match are ignored."""
    root = Path(project_root)
    diagnostics: list[TypeCheckDiagnostic] = []
    for raw in output.splitlines():
        match = _DIAGNOSTIC_RE.match(raw.strip())
        if not match:
            continue
        file_path = Path(match.group("file"))
        if not file_path.is_absolute():
            file_path = root / file_path
        diagnostics.append(
            TypeCheckDiagnostic(
                file_path=file_path.resolve(),
                line=int(match.group("line")),
                column=int(match.group("col")),
                category=match.group("category"),
                code=match.group("code"),
                message=match.group("message"),
            )
        )
    return diagnostics


def _run(args: list[str], cwd: Path, timeout: int) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(  # noqa: S603
            args,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        logger.warning("Type checker not found: %s", args[0])
        return None
    except subprocess.TimeoutExpired:
        logger.warning("Type checker timed out after %ss", timeout)
        return None


def run_type_check(
    project_root: Path,
    command: str = DEFAULT_TYPECHECK_COMMAND,
    timeout: int = DEFAULT_TYPECHECK_TIMEOUT,
) -> TypeCheckContext:
    """Type-check the whole project and group diagnostics by file.

    A missing compiler or a timeout yields an empty, unsuccessful context.
    """
    root = Path(project_root).resolve()
    result = _run([*shlex.split(command), *_TSC_FLAGS], root, timeout)
    if result is None:
        return TypeCheckContext(succeeded=False)

    grouped: dict[Path, list[TypeCheckDiagnostic]] = defaultdict(list)
    for diag in parse_diagnostics(result.stdout + result.stderr, root):
        grouped[diag.file_path].append(diag)

    logger.info("Type check reported %d diagnostics", sum(len(v) for v in grouped.values()))
    return TypeCheckContext(
        diagnostics={path: tuple(diags) for path, diags in grouped.items()},
        succeeded=result.returncode == 0,
    )


def verify_file(
    path: Path,
    command: str = DEFAULT_TYPECHECK_COMMAND,
    timeout: int = DEFAULT_TYPECHECK_TIMEOUT,
    *,
    cwd: Path | None = None,
) -> bool:
    """Return ``True`` when the compiler accepts *path*.

    A missing compiler or a timeout counts as a failed verification.
    """
    path = Path(path)
    workdir = Path(cwd) if cwd is not None else path.parent
    result = _run([*shlex.split(command), *_TSC_FLAGS, str(path)], workdir, timeout)
    if result is None:
        return False
    if result.returncode != 0:
        logger.warning("Type check failed for %s", path)
        return False
    return True
