"""Vendor SMART attribute table and attribute-history file lookup."""

from __future__ import annotations

import re
from pathlib import Path

# ATA attributes are keyed by their decimal id, SCSI counters by the
# names smartd writes into its attribute log.
ATA_ATTRIBUTES: dict[str, str] = {
    "5": "Reallocated_Sector_Ct",
    "187": "Reported_Uncorrect",
    "188": "Command_Timeout",
    "197": "Current_Pending_Sector",
    "198": "Offline_Uncorrectable",
    "199": "UDMA_CRC_Error_Count",
}

SCSI_ATTRIBUTES: dict[str, str] = {
    "read-total-unc-errors": "Read uncorrected errors",
    "write-total-unc-errors": "Write uncorrected errors",
    "verify-total-unc-errors": "Verify uncorrected errors",
    "non-medium-errors-count": "Non-medium errors",
    "read-corr-by-ecc-fast": "Read errors corrected by ECC (fast)",
    "read-total-err-corrected": "Read errors corrected",
}

VENDOR_ATTRIBUTES: dict[str, str] = {**ATA_ATTRIBUTES, **SCSI_ATTRIBUTES}

HISTORY_PROTOCOLS = ("ata", "scsi")
_SEPARATORS = ("-", "_")
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")
_SPACE_RE = re.compile(r"\s+")


def sanitize(text: str, *, filler: str = "_") -> str:
    """Turn a model or serial string into a file-name fragment."""
    out = _SPACE_RE.sub(filler, text.strip())
    out = _UNSAFE_RE.sub("", out)
    if filler == "_":
        out = out.replace("-", "_")
    return out


def history_candidates(smart_dir: str | Path, model: str, serial: str) -> list[Path]:
    """Every conventional attribute-log path for a disk, in lookup order."""
    base = Path(smart_dir)
    seen: set[str] = set()
    out: list[Path] = []
    for joiner in _SEPARATORS:
        for filler in ("_", "-"):
            stem = f"{sanitize(model, filler=filler)}{joiner}{sanitize(serial, filler=filler)}"
            for proto in HISTORY_PROTOCOLS:
                name = f"attrlog.{stem}.{proto}.csv"
                if name in seen:
                    continue
                seen.add(name)
                out.append(base / name)
    return out


def locate_history(smart_dir: str | Path, model: str, serial: str) -> Path | None:
    """Return the first existing attribute-log file for a disk."""
    for path in history_candidates(smart_dir, model, serial):
        if path.is_file():
            return path
    return None
