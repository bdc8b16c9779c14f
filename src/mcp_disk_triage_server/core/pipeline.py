"""Run orchestration.

Scans the selected kernel log segments oldest first into one registry, then
merges SMART attribute history and collaborator facts per identified disk.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Iterable, Sequence
from contextlib import closing
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path

from .devices import apply_identity, canonical_name
from .kernel_log import DeviceIdentityError, KernelLogParser
from .models import DiskErrorRecord, DiskIdentity
from .registry import DiskErrorRegistry
from .segments import LogSegment, select_segments
from .settings import TriageSettings, resolve_settings
from .smart import SmartHistoryMerger

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SegmentIssue:
    """A log segment that was skipped or only partly processed."""

    path: Path
    reason: str


@dataclass(slots=True)
class TriageRun:
    """Outcome of one run: the registry plus per-segment bookkeeping."""

    registry: DiskErrorRegistry
    processed: list[Path] = field(default_factory=list)
    skipped: list[SegmentIssue] = field(default_factory=list)
    aborted: list[SegmentIssue] = field(default_factory=list)
    selected_devices: tuple[str, ...] | None = None

    def records(self) -> list[DiskErrorRecord]:
        """Records to report: the selected devices, or every device seen."""
        if self.selected_devices is None:
            return list(self.registry)
        return [r for r in self.registry if r.device in self.selected_devices]


def scan_segments(
    segments: Iterable[LogSegment],
    registry: DiskErrorRegistry,
    *,
    now: datetime | None = None,
    verbose: bool = False,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> TriageRun:
    """Parse each segment to completion before starting the next one.

    An unreadable segment is skipped; an identity violation stops the
    segment it occurs in. Neither stops the run.
    """
    run = TriageRun(registry=registry)
    parser = KernelLogParser(registry, now=now, verbose=verbose)

    for segment in segments:
        try:
            with closing(segment.iter_lines(encoding=encoding, decode_errors=decode_errors)) as lines:
                parser.parse_lines(lines, source=str(segment.path))
        except DeviceIdentityError as exc:
            logger.error("Aborting %s: %s", segment.path, exc)
            run.aborted.append(SegmentIssue(path=segment.path, reason=str(exc)))
            continue
        except (OSError, EOFError) as exc:
            logger.warning("Skipping unreadable log segment %s: %s", segment.path, exc)
            run.skipped.append(SegmentIssue(path=segment.path, reason=str(exc)))
            continue
        run.processed.append(segment.path)

    return run


def _normalize_identity(identity: DiskIdentity) -> DiskIdentity:
    device = canonical_name(Path(identity.device).name)
    if device == identity.device:
        return identity
    return replace(identity, device=device)


def merge_identities(
    registry: DiskErrorRegistry,
    identities: Iterable[DiskIdentity],
    *,
    smart_dir: str | Path,
    selected: Sequence[str] | None = None,
    host: str | None = None,
    encoding: str = "utf-8",
) -> None:
    """Attach collaborator facts and SMART history to each identified disk."""
    merger = SmartHistoryMerger(encoding=encoding)
    for identity in identities:
        identity = _normalize_identity(identity)
        if selected is not None and identity.device not in selected:
            logger.debug("Ignoring identity for unselected device %s", identity.device)
            continue

        record = registry.get_or_create(identity.device, host=identity.host or host)
        apply_identity(record, identity)

        if identity.model and identity.serial:
            merger.merge_for_disk(record, smart_dir, model=identity.model, serial=identity.serial)
        else:
            logger.warning("No model/serial for %s; SMART history not merged", identity.device)


def run_triage(
    settings: TriageSettings | None = None,
    *,
    devices: Sequence[str] | None = None,
    identities: Iterable[DiskIdentity] = (),
    now: datetime | None = None,
) -> TriageRun:
    """Run the whole pipeline and return the populated registry.

    ``devices`` are canonical kernel names (see ``resolve_devices``); when
    given, only those disks are reported.
    """
    if settings is None:
        settings = resolve_settings()
    registry = DiskErrorRegistry()

    segments = select_segments(settings.kern_log, settings.retention_days, now=now)
    if not segments:
        logger.warning(
            "No kernel log segments for %s within %d days",
            settings.kern_log,
            settings.retention_days,
        )

    run = scan_segments(
        segments,
        registry,
        now=now,
        verbose=settings.verbose,
        encoding=settings.encoding,
        decode_errors=settings.decode_errors,
    )

    host = socket.gethostname()
    selected = tuple(devices) if devices else None
    if selected is not None:
        for device in selected:
            registry.get_or_create(device, host=host)
    run.selected_devices = selected

    merge_identities(
        registry,
        identities,
        smart_dir=settings.smart_dir,
        selected=selected,
        host=host,
        encoding=settings.encoding,
    )

    logger.info(
        "Scanned %d segment(s), %d disk(s) with records",
        len(run.processed),
        len(run.records()),
    )
    return run
