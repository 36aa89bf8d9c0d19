"""Content-addressed backups for fix sessions, with hash-verified restore."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import tempfile
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from standards_audit.fixes.types import BackupInfo

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
OBJECTS_DIR = "objects"


class BackupError(Exception):
    """Raised for a missing backup or a hash mismatch."""


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def new_session_id(now: datetime | None = None) -> str:
    """Timestamp-based session ID, e.g. ``20260118T093000123456Z``."""
    now = now or _utcnow()
    return now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path) -> str:
    return sha256_bytes(Path(path).read_bytes())


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        Path(tmp).replace(path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class BackupManager:
    """Back up files before modification and restore them byte for byte.

    Objects are stored once per content hash under
    ``<backup_root>/<session_id>/objects/<hash[:2]>/<hash>``.
    """

    def __init__(
        self,
        backup_root: Path,
        session_id: str,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.backup_root = Path(backup_root)
        self.session_id = session_id
        self.session_dir = self.backup_root / session_id
        self._clock = clock or _utcnow
        self._manifest: list[BackupInfo] = []

    @property
    def backups(self) -> list[BackupInfo]:
        return list(self._manifest)

    @property
    def manifest_path(self) -> Path:
        return self.session_dir / MANIFEST_NAME

    def _object_path(self, digest: str) -> Path:
        return self.session_dir / OBJECTS_DIR / digest[:2] / digest

    def _find(self, path: Path) -> BackupInfo | None:
        key = str(Path(path).resolve())
        # first backup of a file holds its pre-session content
        for info in self._manifest:
            if info.original_path == key:
                return info
        return None

    def backup(self, path: Path) -> BackupInfo:
        """Store the current bytes of *path* and record it in the manifest.

        A file already backed up in this session keeps its first record.
        """
        path = Path(path).resolve()
        existing = self._find(path)
        if existing is not None:
            return existing

        data = path.read_bytes()
        digest = sha256_bytes(data)
        obj = self._object_path(digest)
        if not obj.exists():
            _atomic_write(obj, data)

        info = BackupInfo(
            timestamp=self._clock().astimezone(timezone.utc).isoformat(),
            original_path=str(path),
            backup_path=str(obj),
            hash=digest,
        )
        self._manifest.append(info)
        logger.debug("Backed up %s -> %s", path, obj)
        return info

    def restore(self, path: Path) -> BackupInfo:
        """Copy the backup of *path* back in place.

        Raises
        ------
        BackupError
            When no backup exists, the stored object is corrupt, or the
            restored file does not match the recorded hash.
        """
        info = self._find(Path(path))
        if info is None:
            msg = f"No backup recorded for {path}"
            raise BackupError(msg)
        _restore_info(info)
        logger.info("Restored %s from backup", info.original_path)
        return info

    def restore_all(self) -> int:
        restored = 0
        for info in self._manifest:
            _restore_info(info)
            restored += 1
        logger.info("Restored %d files from session %s", restored, self.session_id)
        return restored

    def verify(self, path: Path) -> bool:
        """``True`` when the stored object for *path* still matches its hash."""
        info = self._find(Path(path))
        if info is None:
            return False
        obj = Path(info.backup_path)
        return obj.is_file() and sha256_file(obj) == info.hash

    def save_manifest(self) -> Path:
        self.session_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([asdict(info) for info in self._manifest], indent=2)
        _atomic_write(self.manifest_path, payload.encode("utf-8"))
        return self.manifest_path

    def discard(self) -> None:
        """Delete the session directory."""
        shutil.rmtree(self.session_dir, ignore_errors=True)


def _restore_info(info: BackupInfo) -> None:
    obj = Path(info.backup_path)
    if not obj.is_file():
        msg = f"Backup object missing for {info.original_path}: {obj}"
        raise BackupError(msg)
    data = obj.read_bytes()
    if sha256_bytes(data) != info.hash:
        msg = f"Backup object corrupt for {info.original_path}"
        raise BackupError(msg)

    target = Path(info.original_path)
    _atomic_write(target, data)
    if sha256_file(target) != info.hash:
        msg = f"Restored file does not match backup hash: {target}"
        raise BackupError(msg)


def load_manifest(path: Path) -> list[BackupInfo]:
    """Read a ``manifest.json`` written by :meth:`BackupManager.save_manifest`.

    Raises
    ------
    BackupError
        When the manifest is missing or malformed.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read backup manifest {path}: {exc}"
        raise BackupError(msg) from exc
    if not isinstance(data, list):
        msg = f"Backup manifest {path} is not a list"
        raise BackupError(msg)
    try:
        return [BackupInfo(**entry) for entry in data]
    except TypeError as exc:
        msg = f"Malformed entry in backup manifest {path}: {exc}"
        raise BackupError(msg) from exc


def restore_from_manifest(path: Path) -> list[BackupInfo]:
    """Restore every file listed in a saved manifest; returns the restored entries."""
    entries = load_manifest(path)
    for info in entries:
        _restore_info(info)
        logger.info("Restored %s", info.original_path)
    return entries
