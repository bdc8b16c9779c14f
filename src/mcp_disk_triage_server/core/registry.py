"""Per-run registry of disk error records."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .models import DiskErrorRecord

logger = logging.getLogger(__name__)


class DiskErrorRegistry:
    """Owns every DiskErrorRecord of a run, keyed by device name.

    Records are created on first reference and never removed. Iteration
    follows first-reference order.
    """

    def __init__(self) -> None:
        self._records: dict[str, DiskErrorRecord] = {}

    def get_or_create(self, device: str, *, host: str | None = None) -> DiskErrorRecord:
        """Return the record for ``device``, creating it on first use."""
        if not device:
            raise ValueError("device must be a non-empty string")
        record = self._records.get(device)
        if record is None:
            record = DiskErrorRecord(device=device)
            self._records[device] = record
            logger.debug("Created record for %s", device)
        record.set_host(host)
        return record

    def get(self, device: str | None) -> DiskErrorRecord | None:
        if device is None:
            return None
        return self._records.get(device)

    def devices(self) -> list[str]:
        return list(self._records)

    def __contains__(self, device: object) -> bool:
        return device in self._records

    def __iter__(self) -> Iterator[DiskErrorRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)
