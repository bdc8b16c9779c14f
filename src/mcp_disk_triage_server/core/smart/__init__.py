"""SMART attribute history and smartctl status handling."""

from __future__ import annotations

from .attributes import (
    ATA_ATTRIBUTES,
    SCSI_ATTRIBUTES,
    VENDOR_ATTRIBUTES,
    history_candidates,
    locate_history,
    sanitize,
)
from .history import SmartHistoryMerger, SmartSnapshot, iter_snapshots, parse_history_row
from .smartctl import attach_smartctl_status, decode_smartctl_status

__all__ = [
    "ATA_ATTRIBUTES",
    "SCSI_ATTRIBUTES",
    "SmartHistoryMerger",
    "SmartSnapshot",
    "VENDOR_ATTRIBUTES",
    "attach_smartctl_status",
    "decode_smartctl_status",
    "history_candidates",
    "iter_snapshots",
    "locate_history",
    "parse_history_row",
    "sanitize",
]
