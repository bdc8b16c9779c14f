r"""SMART attribute history merging.

Turns the periodic attribute samples smartd writes to its attribute log
into a sparse change-log on the disk's record.

Row format::

    2025-01-05 10:15:42;\t5;100;0;\t197;100;8;\t...      (ATA: id;normalized;raw)
    2025-01-05 10:15:42;\tread-total-unc-errors;3;\t...   (SCSI: name;value)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..models import DiskErrorRecord, SmartChangeEvent, SmartHistory
from .attributes import VENDOR_ATTRIBUTES, locate_history

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True, slots=True)
class SmartSnapshot:
    """One timestamped row of the attribute log."""

    timestamp: datetime
    values: dict[str, int]


def _pairs(chunks: list[list[str]]) -> Iterator[tuple[str, str]]:
    for parts in chunks:
        if len(parts) in (2, 3):
            yield parts[0], parts[-1]


def parse_history_row(line: str) -> SmartSnapshot | None:
    """Parse one attribute-log row, or return None if it is malformed.

    Tab characters separate attribute groups; inside a group the first
    field is the key and the last one the value. Rows without tabs are read
    as flat ``key;value`` pairs.
    """
    line = line.strip()
    if not line:
        return None

    head, _, rest = line.partition(";")
    try:
        ts = datetime.strptime(head.strip(), TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        logger.debug("Skipping attribute row with bad timestamp: %r", head)
        return None

    if "\t" in rest:
        chunks = [
            [p.strip() for p in group.split(";") if p.strip()]
            for group in rest.split("\t")
        ]
    else:
        flat = [p.strip() for p in rest.split(";") if p.strip()]
        chunks = [flat[i : i + 2] for i in range(0, len(flat), 2)]

    values: dict[str, int] = {}
    for key, raw in _pairs(chunks):
        try:
            values[key] = int(raw)
        except ValueError:
            logger.debug("Skipping non-numeric attribute %s=%r", key, raw)
    return SmartSnapshot(timestamp=ts, values=values)


def iter_snapshots(lines: Iterable[str]) -> Iterator[SmartSnapshot]:
    for line in lines:
        snap = parse_history_row(line)
        if snap is not None:
            yield snap


class SmartHistoryMerger:
    """Reduce attribute samples to change events on a DiskErrorRecord.

    Every tracked counter starts from a zero baseline: a sample only counts
    as a change when it differs from the last value seen for that key, and
    the first sample of a counter is a change unless it is zero.
    """

    def __init__(
        self,
        attributes: Mapping[str, str] = VENDOR_ATTRIBUTES,
        *,
        encoding: str = "utf-8",
    ) -> None:
        self.attributes = attributes
        self.encoding = encoding

    def merge(
        self,
        record: DiskErrorRecord,
        snapshots: Iterable[SmartSnapshot],
    ) -> list[SmartChangeEvent]:
        """Merge snapshots (in file order) into ``record``; return the change events.

        Every change lands in ``record.smart_history``. Only the first one is
        also added to ``record.error_events``, and only when the record has no
        events yet. The full change-log is ``smart_history.changes`` (and the
        returned list).
        """
        last: dict[str, int] = {}
        events: list[SmartChangeEvent] = []
        changes: list[tuple[datetime, dict[str, int]]] = []
        start: datetime | None = None
        end: datetime | None = None

        for snap in snapshots:
            if start is None:
                start = snap.timestamp
            end = snap.timestamp

            changed: dict[str, int] = {}
            for key, value in snap.values.items():
                if key not in self.attributes:
                    continue
                if value != last.get(key, 0):
                    changed[key] = value
                    events.append(
                        SmartChangeEvent(timestamp=snap.timestamp, attribute_key=key, attribute_value=value)
                    )
                last[key] = value
            if changed:
                changes.append((snap.timestamp, changed))

        if start is None or end is None:
            return events

        record.smart_history = SmartHistory(start_time=start, end_time=end, changes=changes)
        record.smart_attributes.update(last)
        if events and not record.error_events:
            record.add_event(events[0])
        return events

    def merge_file(self, record: DiskErrorRecord, path: str | Path) -> list[SmartChangeEvent]:
        """Merge an attribute-log file; an unreadable file leaves the record as is."""
        path = Path(path)
        try:
            with path.open(encoding=self.encoding, errors="replace") as f:
                snapshots = list(iter_snapshots(f))
        except OSError as exc:
            logger.warning("Cannot read SMART history %s: %s", path, exc)
            return []
        return self.merge(record, snapshots)

    def merge_for_disk(
        self,
        record: DiskErrorRecord,
        smart_dir: str | Path,
        *,
        model: str,
        serial: str,
    ) -> list[SmartChangeEvent]:
        """Locate the attribute log of a disk by model/serial and merge it."""
        path = locate_history(smart_dir, model, serial)
        if path is None:
            logger.warning(
                "No SMART history for %s (model=%s serial=%s) under %s",
                record.device,
                model,
                serial,
                smart_dir,
            )
            return []
        logger.debug("Merging SMART history %s into %s", path, record.device)
        return self.merge_file(record, path)
