"""Tests for standards_audit.engine.typecheck — compiler bridge."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest

from standards_audit.engine import typecheck
from standards_audit.engine.typecheck import (
    TypeCheckContext,
    parse_diagnostics,
    run_type_check,
    verify_file,
)

TSC_OUTPUT = """\
app/page.tsx(12,5): error TS2322: Type 'string' is not assignable to type 'number'.
lib/utils.ts(3,1): warning TS6133: 'x' is declared but its value is never read.
Found 2 errors.
app/page.tsx(20,9): error TS2304: Cannot find name 'foo'.
"""


class _FakeRun:
    """Stands in for subprocess.run and records each call."""

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[dict[str, Any]] = []

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append({"args": args, **kwargs})
        return subprocess.CompletedProcess(args, self.returncode, stdout=self.stdout, stderr=self.stderr)


class TestParseDiagnostics:
    def test_parses_matching_lines(self, tmp_path: Path) -> None:
        diags = parse_diagnostics(TSC_OUTPUT, tmp_path)
        assert len(diags) == 3
        first = diags[0]
        assert first.file_path == (tmp_path / "app" / "page.tsx").resolve()
        assert (first.line, first.column) == (12, 5)
        assert first.category == "error"
        assert first.code == "TS2322"
        assert first.message.startswith("Type 'string'")
        assert diags[1].category == "warning"

    def test_ignores_noise(self, tmp_path: Path) -> None:
        assert parse_diagnostics("Found 0 errors.\n\n", tmp_path) == []


class TestRunTypeCheck:
    def test_groups_by_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = _FakeRun(returncode=2, stdout=TSC_OUTPUT)
        monkeypatch.setattr(typecheck.subprocess, "run", fake)

        context = run_type_check(tmp_path, command="tsc", timeout=5)
        assert not context.succeeded
        assert context.total == 3
        page = context.for_file(tmp_path / "app" / "page.tsx")
        assert [d.line for d in page] == [12, 20]
        assert fake.calls[0]["args"] == ["tsc", "--noEmit", "--pretty", "false"]
        assert fake.calls[0]["timeout"] == 5

    def test_clean_run(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typecheck.subprocess, "run", _FakeRun())
        context = run_type_check(tmp_path, command="tsc")
        assert context.succeeded
        assert context.total == 0

    def test_missing_binary(self, tmp_path: Path) -> None:
        context = run_type_check(tmp_path, command="definitely-not-a-real-tsc-binary")
        assert not context.succeeded
        assert context.diagnostics == {}

    def test_timeout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def slow(args: list[str], **kwargs: Any) -> None:
            raise subprocess.TimeoutExpired(args, kwargs["timeout"])

        monkeypatch.setattr(typecheck.subprocess, "run", slow)
        assert not run_type_check(tmp_path, command="tsc", timeout=1).succeeded


class TestVerifyFile:
    def test_accepts_on_zero_exit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "a.ts"
        target.write_text("export const a = 1;\n")
        fake = _FakeRun()
        monkeypatch.setattr(typecheck.subprocess, "run", fake)

        assert verify_file(target, command="tsc")
        assert fake.calls[0]["args"][-1] == str(target)
        assert fake.calls[0]["cwd"] == str(tmp_path)

    def test_rejects_on_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typecheck.subprocess, "run", _FakeRun(returncode=1))
        assert not verify_file(tmp_path / "a.ts", command="tsc")

    def test_missing_binary_fails(self, tmp_path: Path) -> None:
        assert not verify_file(tmp_path / "a.ts", command="definitely-not-a-real-tsc-binary")


class TestContext:
    def test_for_unknown_file(self, tmp_path: Path) -> None:
        assert TypeCheckContext().for_file(tmp_path / "x.ts") == ()
