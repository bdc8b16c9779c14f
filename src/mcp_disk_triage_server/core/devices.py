"""Device selection and collaborator identity handling."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path

from .models import DiskErrorRecord, DiskIdentity
from .smart.smartctl import attach_smartctl_status

_PARTITION_RE = re.compile(r"^(?P<disk>sd[a-z]+)\d+$")


def canonical_name(name: str) -> str:
    """Strip a partition suffix from a SCSI disk name (sdh1 -> sdh)."""
    m = _PARTITION_RE.match(name)
    return m.group("disk") if m else name


def resolve_device(path: str | Path) -> str:
    """Resolve a device path (e.g. a /dev/disk/by-id symlink) to its kernel name."""
    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(f"Device not found: {p}")
    return canonical_name(Path(os.path.realpath(p)).name)


def resolve_devices(paths: Iterable[str | Path]) -> tuple[str, ...]:
    """Resolve several device paths, keeping first-seen order without duplicates."""
    out: dict[str, None] = {}
    for path in paths:
        out.setdefault(resolve_device(path), None)
    return tuple(out)


def apply_identity(record: DiskErrorRecord, identity: DiskIdentity) -> None:
    """Copy collaborator facts onto a record."""
    if identity.device != record.device:
        raise ValueError(
            f"identity for {identity.device!r} cannot be applied to record {record.device!r}"
        )
    record.identity = identity
    record.set_host(identity.host)
    record.smart_attributes.update(identity.attributes)
    attach_smartctl_status(record, identity.smartctl_exit_code)
