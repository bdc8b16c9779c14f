"""Selection of rotated kernel log segments within a retention window.

A segment is one file of a logrotate family (``kern.log``, ``kern.log.1``,
``kern.log.2.gz``, ``kern.log-20250101.gz``...). Segments are returned
oldest first so a single parser pass sees the lines in chronological order.
"""

from __future__ import annotations

import gzip
import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

logger = logging.getLogger(__name__)


@contextmanager
def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log segment for text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
    else:
        f = path.open(encoding=encoding, errors=decode_errors)
    try:
        yield f
    finally:
        f.close()


@dataclass(frozen=True, slots=True)
class LogSegment:
    """One rotated log file selected for scanning."""

    path: Path
    modified: datetime
    rotation: int  # 0 for the live file; larger means older

    @property
    def compressed(self) -> bool:
        return self.path.suffix.lower() == ".gz"

    def iter_lines(
        self,
        *,
        encoding: str = "utf-8",
        decode_errors: str = "replace",
    ) -> Iterator[str]:
        """Yield decompressed lines without their line terminators.

        Raises OSError (including gzip.BadGzipFile) or EOFError when the file
        cannot be opened or decompressed.
        """
        with _open_text(self.path, encoding=encoding, decode_errors=decode_errors) as f:
            for line in f:
                yield line.rstrip("\r\n")


def _family_re(name: str) -> re.Pattern[str]:
    return re.compile(
        rf"^{re.escape(name)}"
        r"(?:(?P<sep>[.-])(?P<suffix>\d+))?"
        r"(?P<gz>\.gz)?$"
    )


def _rotation_rank(sep: str | None, suffix: str | None) -> int:
    """Rank of a segment inside its family; used only to break mtime ties."""
    if suffix is None:
        return 0
    if sep == ".":
        return int(suffix)
    # Date-stamped rotation (kern.log-YYYYMMDD): older than the live file.
    return 1


def select_segments(
    base_path: str | Path,
    retention_days: int,
    *,
    now: datetime | None = None,
) -> list[LogSegment]:
    """Return the family of ``base_path`` modified within ``retention_days``.

    A segment whose last modification predates the window cannot hold any
    entry inside it and is left out. The result is ordered oldest first.
    """
    if retention_days < 0:
        raise ValueError("retention_days must be >= 0")

    base = Path(base_path)
    directory = base.parent
    if not directory.is_dir():
        logger.warning("Log directory not found: %s", directory)
        return []

    now = now or datetime.now(UTC)
    cutoff = now - timedelta(days=retention_days)
    family = _family_re(base.name)

    selected: list[LogSegment] = []
    for candidate in directory.iterdir():
        m = family.match(candidate.name)
        if not m:
            continue
        try:
            if not candidate.is_file():
                continue
            mtime = datetime.fromtimestamp(candidate.stat().st_mtime, tz=UTC)
        except OSError as exc:
            logger.warning("Skipping log segment %s: %s", candidate, exc)
            continue

        if mtime < cutoff:
            logger.debug("Segment %s is older than the retention window", candidate)
            continue

        selected.append(
            LogSegment(
                path=candidate,
                modified=mtime,
                rotation=_rotation_rank(m.group("sep"), m.group("suffix")),
            )
        )

    selected.sort(key=lambda s: (s.modified, -s.rotation, s.path.name))
    logger.debug("Selected segments: %s", [s.path.name for s in selected])
    return selected
