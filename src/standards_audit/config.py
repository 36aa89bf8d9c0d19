"""Project configuration: ``.audit/config.yml`` with built-in defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from standards_audit.engine.scanner import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXTENSIONS,
    DEFAULT_INCLUDE_DIRS,
    ScanConfig,
)
from standards_audit.engine.typecheck import DEFAULT_TYPECHECK_COMMAND, DEFAULT_TYPECHECK_TIMEOUT
from standards_audit.engine.types import Severity, Standard

logger = logging.getLogger(__name__)

CONFIG_DIR = ".audit"
CONFIG_FILE = "config.yml"


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


@dataclass(frozen=True)
class AuditConfig:
    """Effective settings for one project."""

    standards_dir: str = ".factory/standards"
    include_dirs: tuple[str, ...] = DEFAULT_INCLUDE_DIRS
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS
    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    standards: tuple[Standard, ...] = ()  # empty: all standards
    min_severity: Severity | None = None
    max_violations: int | None = None
    type_check: bool = False
    typecheck_command: str = DEFAULT_TYPECHECK_COMMAND
    typecheck_timeout: int = DEFAULT_TYPECHECK_TIMEOUT
    backup_dir: str = ".backup"
    report_dir: str = ".audit-reports"

    def scan_config(self, project_root: Path) -> ScanConfig:
        return ScanConfig(
            root=Path(project_root),
            include_dirs=self.include_dirs,
            exclude_dirs=self.exclude_dirs,
            extensions=self.extensions,
        )

    def resolve(self, project_root: Path, relative: str) -> Path:
        path = Path(relative)
        return path if path.is_absolute() else Path(project_root) / path

    def with_overrides(self, **changes: Any) -> AuditConfig:
        """Copy with non-``None`` overrides applied (CLI flags)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def parse_severity(name: str) -> Severity:
    try:
        return Severity(str(name).lower())
    except ValueError:
        msg = f"Unknown severity '{name}' (expected one of: error, warning, info)"
        raise ConfigError(msg) from None


def parse_standard(name: str) -> Standard:
    try:
        return Standard(str(name).lower())
    except ValueError:
        valid = ", ".join(s.value for s in Standard)
        msg = f"Unknown standard '{name}' (expected one of: {valid})"
        raise ConfigError(msg) from None


def _str_list(data: dict[str, Any], key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        msg = f"'{key}' must be a list"
        raise ConfigError(msg)
    return [str(v) for v in value]


def _extensions(values: list[str]) -> frozenset[str]:
    return frozenset(v if v.startswith(".") else f".{v}" for v in values)


def config_from_dict(data: dict[str, Any]) -> AuditConfig:
    """Build an :class:`AuditConfig` from a parsed mapping; unknown keys are ignored.

    Raises
    ------
    ConfigError
        On an unknown severity or standard name, or a malformed value.
    """
    kwargs: dict[str, Any] = {}

    for key in ("standards_dir", "typecheck_command", "backup_dir", "report_dir"):
        if data.get(key) is not None:
            kwargs[key] = str(data[key])

    include = _str_list(data, "include_dirs")
    if include is not None:
        kwargs["include_dirs"] = tuple(include)
    exclude = _str_list(data, "exclude_dirs")
    if exclude is not None:
        kwargs["exclude_dirs"] = frozenset(exclude)
    extensions = _str_list(data, "extensions")
    if extensions is not None:
        kwargs["extensions"] = _extensions(extensions)
    standards = _str_list(data, "standards")
    if standards is not None:
        kwargs["standards"] = tuple(parse_standard(s) for s in standards)

    if data.get("min_severity") is not None:
        kwargs["min_severity"] = parse_severity(data["min_severity"])

    for key in ("max_violations", "typecheck_timeout"):
        if data.get(key) is None:
            continue
        try:
            number = int(data[key])
        except (TypeError, ValueError):
            msg = f"'{key}' must be an integer"
            raise ConfigError(msg) from None
        if number <= 0:
            msg = f"'{key}' must be positive"
            raise ConfigError(msg)
        kwargs[key] = number

    if data.get("type_check") is not None:
        kwargs["type_check"] = bool(data["type_check"])

    return AuditConfig(**kwargs)


def load_config(project_root: Path) -> AuditConfig:
    """Read ``<project_root>/.audit/config.yml``.

    A missing, unreadable or non-mapping file falls back to defaults.
    """
    config_path = Path(project_root) / CONFIG_DIR / CONFIG_FILE
    if not config_path.is_file():
        return AuditConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using defaults", config_path)
        return AuditConfig()

    if not isinstance(data, dict):
        logger.warning("%s is not a mapping, using defaults", config_path)
        return AuditConfig()

    return config_from_dict(data)
