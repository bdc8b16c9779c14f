"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from mcp_disk_triage_server.core.devices import resolve_devices
from mcp_disk_triage_server.core.models import DiskIdentity
from mcp_disk_triage_server.core.pipeline import run_triage
from mcp_disk_triage_server.core.schemas import run_to_model
from mcp_disk_triage_server.core.settings import TriageSettings, clamp_retention_days, resolve_settings


def _build_settings(
    *,
    kern_log: str | None,
    days: int | None,
    smart_dir: str | None,
    verbose: bool | None,
) -> TriageSettings:
    """Apply explicit arguments on top of env-resolved settings."""
    settings = resolve_settings()
    overrides: dict[str, Any] = {}
    if kern_log is not None:
        overrides["kern_log"] = Path(kern_log).expanduser()
    if smart_dir is not None:
        overrides["smart_dir"] = Path(smart_dir).expanduser()
    if days is not None:
        overrides["retention_days"] = clamp_retention_days(days)
    if verbose is not None:
        overrides["verbose"] = verbose
    return replace(settings, **overrides)


def _parse_identities(identities: Sequence[Mapping[str, Any]] | None) -> list[DiskIdentity]:
    if not identities:
        return []
    return [DiskIdentity.from_mapping(item) for item in identities]


def triage_disks_impl(
    *,
    kern_log: str | None = None,
    days: int | None = None,
    smart_dir: str | None = None,
    devices: Sequence[str] | None = None,
    identities: Sequence[Mapping[str, Any]] | None = None,
    verbose: bool | None = None,
    include_raw: bool = False,
) -> dict[str, Any]:
    """Implementation for the `triage_disks` MCP tool.

    Notes
    -----
    - Explicit arguments override DISK_TRIAGE_* environment settings.
    - devices are resolved through symlinks (e.g. /dev/disk/by-id/...) to
      kernel names; without devices every disk found in the logs is reported.
    - identities are collector mappings (device, model, serial, wwn, ...).
    """
    settings = _build_settings(kern_log=kern_log, days=days, smart_dir=smart_dir, verbose=verbose)
    selected = list(resolve_devices(devices)) if devices else None
    run = run_triage(settings, devices=selected, identities=_parse_identities(identities))
    return run_to_model(run, include_raw=include_raw).model_dump(mode="json")
