"""File scanner: enumerate auditable source files under a project root."""

from __future__ import annotations

import logging
import os
import re
import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_DIRS: tuple[str, ...] = (
    "app",
    "components",
    "convex",
    "lib",
    "hooks",
    "providers",
)

DEFAULT_EXCLUDE_DIRS: frozenset[str] = frozenset({
    "node_modules",
    ".next",
    ".git",
    "dist",
    "build",
    "coverage",
    "out",
    "_generated",
    ".convex",
    ".turbo",
})

DEFAULT_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx"})


@dataclass(frozen=True)
class ScanConfig:
    """Where and what to scan."""

    root: Path
    include_dirs: tuple[str, ...] = DEFAULT_INCLUDE_DIRS
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS
    extensions: frozenset[str] = DEFAULT_EXTENSIONS


@dataclass(frozen=True)
class ScannedFile:
    absolute_path: Path
    relative_path: str  # POSIX-style, relative to the scan root
    extension: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class ScanResult:
    files: tuple[ScannedFile, ...]
    total_files: int
    total_size: int
    scan_time_ms: float


@dataclass(frozen=True)
class FileStatistics:
    total_files: int
    total_size: int
    by_extension: dict[str, int]
    average_size: int


def default_scan_config(root: Path) -> ScanConfig:
    return ScanConfig(root=Path(root))


def scan_codebase(config: ScanConfig) -> ScanResult:
    """Walk each included directory and collect files with an allowed extension.

    Symlinked directories and files are never followed or reported, which
    keeps the walk inside the root and free of cycles.  Children are visited
    in sorted order so results are deterministic.
    """
    t0 = time.monotonic()
    root = Path(config.root).resolve()
    files: list[ScannedFile] = []

    for include in config.include_dirs:
        start = root / include
        if start.is_symlink() or not start.is_dir():
            logger.debug("Skipping include dir %s: missing or symlinked", include)
            continue

        for dirpath, dirnames, filenames in os.walk(start, followlinks=False):
            current = Path(dirpath)
            kept: list[str] = []
            for name in sorted(dirnames):
                if name in config.exclude_dirs:
                    continue
                if (current / name).is_symlink():
                    logger.debug("Skipping symlinked dir %s", current / name)
                    continue
                kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                path = current / name
                ext = path.suffix
                if ext not in config.extensions:
                    continue
                if path.is_symlink():
                    logger.debug("Skipping symlinked file %s", path)
                    continue
                try:
                    stat = path.stat()
                except OSError as exc:
                    logger.warning("Cannot stat %s: %s", path, exc)
                    continue
                files.append(
                    ScannedFile(
                        absolute_path=path,
                        relative_path=path.relative_to(root).as_posix(),
                        extension=ext,
                        size=stat.st_size,
                        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )

    elapsed_ms = (time.monotonic() - t0) * 1000
    logger.info("Scanned %d files under %s", len(files), root)
    return ScanResult(
        files=tuple(files),
        total_files=len(files),
        total_size=sum(f.size for f in files),
        scan_time_ms=elapsed_ms,
    )


def filter_files(files: Iterable[ScannedFile], pattern: str | re.Pattern[str]) -> list[ScannedFile]:
    """Keep files whose relative path matches *pattern* (searched, not anchored)."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [f for f in files if regex.search(f.relative_path)]


def group_files_by_directory(files: Iterable[ScannedFile]) -> dict[str, list[ScannedFile]]:
    groups: dict[str, list[ScannedFile]] = defaultdict(list)
    for f in files:
        parent = Path(f.relative_path).parent.as_posix()
        groups[parent].append(f)
    return dict(groups)


def get_file_statistics(files: Iterable[ScannedFile]) -> FileStatistics:
    items = list(files)
    by_extension: dict[str, int] = defaultdict(int)
    for f in items:
        by_extension[f.extension] += 1
    total_size = sum(f.size for f in items)
    return FileStatistics(
        total_files=len(items),
        total_size=total_size,
        by_extension=dict(by_extension),
        average_size=round(total_size / len(items)) if items else 0,
    )
