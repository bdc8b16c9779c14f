"""Run configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

KERN_LOG_ENV = "DISK_TRIAGE_KERN_LOG"
RETENTION_DAYS_ENV = "DISK_TRIAGE_RETENTION_DAYS"
SMART_DIR_ENV = "DISK_TRIAGE_SMART_DIR"
VERBOSE_ENV = "DISK_TRIAGE_VERBOSE"
LOG_LEVEL_ENV = "DISK_TRIAGE_LOG_LEVEL"

MAX_RETENTION_DAYS = 366

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class TriageSettings:
    kern_log: Path = Path("/var/log/kern.log")
    retention_days: int = 7
    smart_dir: Path = Path("/var/lib/smartmontools")
    verbose: bool = False
    encoding: str = "utf-8"
    decode_errors: str = "replace"


def clamp_retention_days(days: int) -> int:
    """Reject a negative window and cap it at MAX_RETENTION_DAYS."""
    if days < 0:
        raise ValueError("days must be >= 0")
    return min(days, MAX_RETENTION_DAYS)


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _env_bool(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    norm = raw.strip().lower()
    if norm in _TRUE:
        return True
    if norm in _FALSE:
        return False
    raise ValueError(f"{name} must be one of: 1, 0, true, false, yes, no, on, off")


def resolve_settings(settings: TriageSettings | None = None) -> TriageSettings:
    """Return settings with environment overrides applied."""
    if settings is None:
        settings = TriageSettings()

    overrides: dict[str, object] = {}
    kern_log = os.getenv(KERN_LOG_ENV)
    if kern_log:
        overrides["kern_log"] = Path(kern_log)
    smart_dir = os.getenv(SMART_DIR_ENV)
    if smart_dir:
        overrides["smart_dir"] = Path(smart_dir)
    days = _env_int(RETENTION_DAYS_ENV)
    if days is not None:
        overrides["retention_days"] = clamp_retention_days(days)
    verbose = _env_bool(VERBOSE_ENV)
    if verbose is not None:
        overrides["verbose"] = verbose

    if not overrides:
        return settings
    return replace(settings, **overrides)
