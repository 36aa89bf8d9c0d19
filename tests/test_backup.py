"""Tests for standards_audit.fixes.backup — content-addressed backups and restore."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest

from standards_audit.fixes.backup import (
    MANIFEST_NAME,
    BackupError,
    BackupManager,
    load_manifest,
    new_session_id,
    restore_from_manifest,
    sha256_bytes,
    sha256_file,
)

if TYPE_CHECKING:
    from pathlib import Path

FIXED_NOW = datetime(2026, 1, 18, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture()
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "src" / "a.ts"
    path.parent.mkdir()
    path.write_bytes(b"export const a = 1;\r\n")
    return path


@pytest.fixture()
def manager(tmp_path: Path) -> BackupManager:
    return BackupManager(tmp_path / "backups", "session-1", clock=lambda: FIXED_NOW)


class TestSessionId:
    def test_format(self) -> None:
        assert new_session_id(FIXED_NOW) == "20260118T093000000000Z"

    def test_default_clock(self) -> None:
        assert len(new_session_id()) == len("20260118T093000000000Z")


class TestBackup:
    def test_object_layout(self, manager: BackupManager, source_file: Path) -> None:
        info = manager.backup(source_file)
        digest = sha256_bytes(b"export const a = 1;\r\n")
        assert info.hash == digest
        assert info.original_path == str(source_file.resolve())
        assert info.backup_path == str(manager.session_dir / "objects" / digest[:2] / digest)
        assert info.timestamp == "2026-01-18T09:30:00+00:00"

    def test_identical_content_stored_once(self, manager: BackupManager, tmp_path: Path) -> None:
        a = tmp_path / "a.ts"
        b = tmp_path / "b.ts"
        a.write_text("same\n")
        b.write_text("same\n")
        first = manager.backup(a)
        second = manager.backup(b)
        assert first.backup_path == second.backup_path
        assert len(manager.backups) == 2

    def test_repeat_backup_keeps_first_record(self, manager: BackupManager, source_file: Path) -> None:
        first = manager.backup(source_file)
        source_file.write_text("changed\n")
        again = manager.backup(source_file)
        assert again == first
        assert len(manager.backups) == 1

    def test_missing_file(self, manager: BackupManager, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            manager.backup(tmp_path / "missing.ts")


class TestRestore:
    def test_restores_exact_bytes(self, manager: BackupManager, source_file: Path) -> None:
        info = manager.backup(source_file)
        source_file.write_bytes(b"mangled")
        restored = manager.restore(source_file)
        assert restored == info
        assert source_file.read_bytes() == b"export const a = 1;\r\n"
        assert sha256_file(source_file) == info.hash

    def test_no_backup(self, manager: BackupManager, source_file: Path) -> None:
        with pytest.raises(BackupError, match="No backup"):
            manager.restore(source_file)

    def test_corrupt_object(self, manager: BackupManager, source_file: Path) -> None:
        info = manager.backup(source_file)
        (manager.session_dir / "objects" / info.hash[:2] / info.hash).write_bytes(b"tampered")
        assert not manager.verify(source_file)
        with pytest.raises(BackupError, match="corrupt"):
            manager.restore(source_file)

    def test_missing_object(self, manager: BackupManager, source_file: Path) -> None:
        info = manager.backup(source_file)
        (manager.session_dir / "objects" / info.hash[:2] / info.hash).unlink()
        with pytest.raises(BackupError, match="missing"):
            manager.restore(source_file)

    def test_restore_all(self, manager: BackupManager, tmp_path: Path) -> None:
        files = []
        for name in ("a.ts", "b.ts"):
            path = tmp_path / name
            path.write_text(f"// {name}\n")
            manager.backup(path)
            path.write_text("broken\n")
            files.append(path)
        assert manager.restore_all() == 2
        assert [p.read_text() for p in files] == ["// a.ts\n", "// b.ts\n"]

    def test_verify(self, manager: BackupManager, source_file: Path, tmp_path: Path) -> None:
        manager.backup(source_file)
        assert manager.verify(source_file)
        assert not manager.verify(tmp_path / "other.ts")


class TestManifest:
    def test_save_and_load(self, manager: BackupManager, source_file: Path) -> None:
        info = manager.backup(source_file)
        path = manager.save_manifest()
        assert path == manager.session_dir / MANIFEST_NAME
        assert json.loads(path.read_text())[0]["hash"] == info.hash
        assert load_manifest(path) == [info]

    def test_restore_from_manifest(self, manager: BackupManager, source_file: Path) -> None:
        manager.backup(source_file)
        path = manager.save_manifest()
        source_file.write_text("broken\n")
        entries = restore_from_manifest(path)
        assert len(entries) == 1
        assert source_file.read_bytes() == b"export const a = 1;\r\n"

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(BackupError):
            load_manifest(tmp_path / "nope.json")

    def test_malformed_manifest(self, tmp_path: Path) -> None:
        path = tmp_path / MANIFEST_NAME
        path.write_text('{"not": "a list"}')
        with pytest.raises(BackupError, match="not a list"):
            load_manifest(path)
        path.write_text('[{"unexpected": 1}]')
        with pytest.raises(BackupError, match="Malformed"):
            load_manifest(path)

    def test_discard(self, manager: BackupManager, source_file: Path) -> None:
        manager.backup(source_file)
        manager.save_manifest()
        manager.discard()
        assert not manager.session_dir.exists()
