"""Kernel log line header (syslog prefix + printk uptime stamp)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

_HEADER_RE = re.compile(
    r"^(?P<ts>[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})\s+"
    r"(?P<host>\S+)\s+"
    r"kernel:\s+"
    r"\[\s*(?P<uptime>\d+\.\d+)\]\s?"
    r"(?P<msg>.*)$"
)


@dataclass(frozen=True, slots=True)
class KernelLine:
    """A kernel log line split into its header fields and message."""

    timestamp: datetime | None
    host: str
    uptime: float
    message: str
    raw: str


def infer_timestamp(ts_str: str, *, now: datetime | None = None) -> datetime | None:
    """Parse a year-less syslog timestamp into UTC.

    The year is taken from ``now``; a result more than a day in the future
    belongs to the previous year.
    """
    now = now or datetime.now(UTC)
    try:
        ts = datetime.strptime(f"{now.year} {ts_str}", "%Y %b %d %H:%M:%S")
    except ValueError:
        ts = None

    if ts is not None:
        ts = ts.replace(tzinfo=UTC)
        if ts <= now + timedelta(days=1):
            return ts

    try:
        ts = datetime.strptime(f"{now.year - 1} {ts_str}", "%Y %b %d %H:%M:%S")
    except ValueError:
        return None
    return ts.replace(tzinfo=UTC)


def parse_kernel_line(line: str, *, now: datetime | None = None) -> KernelLine | None:
    """Return the header fields of a kernel line, or None if it is not one."""
    m = _HEADER_RE.match(line)
    if not m:
        return None
    return KernelLine(
        timestamp=infer_timestamp(m.group("ts"), now=now),
        host=m.group("host"),
        uptime=float(m.group("uptime")),
        message=m.group("msg").strip(),
        raw=line,
    )
