"""Stateful kernel log parser.

Folds a stream of kernel log lines into DiskErrorRecord updates. The fold
state is an explicit ParserContext: the most recent controller index, SCSI
target and device name, plus the raw lines buffered since the last commit.

Commits clear the buffer only. ``sas_index``, ``target`` and ``devname``
stay in the context until a newer originator/identification line replaces
them, so a later sequence without its own identification lines inherits
them. When several disks fail back to back this can attach a stale
controller index to the wrong sequence, or raise DeviceIdentityError for a
sequence that never named a device of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from ..models import BlockErrorEvent, DiskErrorRecord, ErrorEvent, SectorErrorEvent
from ..registry import DiskErrorRegistry
from .classify import (
    TERMINATING_KINDS,
    BlockIoError,
    KnownNoise,
    LineKind,
    Originator,
    TargetIdentification,
    Unrecognized,
    classify,
)
from .header import KernelLine, parse_kernel_line

logger = logging.getLogger(__name__)


class DeviceIdentityError(ValueError):
    """A terminating line names a different disk than the active context."""

    def __init__(self, expected: str, found: str, *, line_no: int | None = None) -> None:
        self.expected = expected
        self.found = found
        self.line_no = line_no
        where = f" at line {line_no}" if line_no is not None else ""
        super().__init__(
            f"device identity violation{where}: context names {expected!r}, line names {found!r}"
        )


class ParserState(str, Enum):
    SCANNING = "scanning"
    BUFFERING = "buffering"


@dataclass(frozen=True, slots=True)
class ParserContext:
    """Transient fold state of one parser pass.

    Buffered lines are held as a chain of ``(previous, line)`` pairs, newest
    first, so buffering a line shares the lines before it instead of
    copying them. ``buffer`` rebuilds them in arrival order.
    """

    sas_index: str | None = None
    target: str | None = None
    devname: str | None = None
    pending: tuple | None = field(default=None, compare=False, repr=False)
    size: int = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParserContext):
            return NotImplemented
        return (self.sas_index, self.target, self.devname, self.buffer) == (
            other.sas_index,
            other.target,
            other.devname,
            other.buffer,
        )

    @property
    def state(self) -> ParserState:
        return ParserState.BUFFERING if self.size else ParserState.SCANNING

    @property
    def buffer(self) -> tuple[str, ...]:
        lines: list[str] = []
        node = self.pending
        while node is not None:
            node, line = node
            lines.append(line)
        lines.reverse()
        return tuple(lines)

    def buffered(self, line: str) -> ParserContext:
        return replace(self, pending=(self.pending, line), size=self.size + 1)

    def cleared(self) -> ParserContext:
        return replace(self, pending=None, size=0)


class KernelLogParser:
    """Single-pass line-driven state machine over kernel log lines."""

    def __init__(
        self,
        registry: DiskErrorRegistry,
        *,
        now: datetime | None = None,
        verbose: bool = False,
    ) -> None:
        self.registry = registry
        self.now = now
        self.verbose = verbose

    def parse_lines(self, lines: Iterable[str], *, source: str = "<stream>") -> ParserContext:
        """Consume a whole stream and flush any trailing sequence.

        Raises DeviceIdentityError on an identity violation; records
        committed before the violation are kept.
        """
        ctx = ParserContext()
        for line_no, line in enumerate(lines, start=1):
            ctx = self.step(ctx, line, line_no=line_no)
        ctx = self.finish(ctx)
        logger.debug("Finished %s", source)
        return ctx

    def step(self, ctx: ParserContext, line: str, *, line_no: int | None = None) -> ParserContext:
        """Advance the fold by one line."""
        parsed = parse_kernel_line(line, now=self.now)
        if parsed is None:
            return ctx

        kind = classify(parsed.message)

        if isinstance(kind, Originator):
            return replace(ctx, sas_index=kind.sas_index).buffered(line)
        if isinstance(kind, TargetIdentification):
            return replace(ctx, target=kind.target, devname=kind.devname).buffered(line)
        if isinstance(kind, TERMINATING_KINDS):
            return self._commit(ctx, parsed, kind, line_no=line_no)
        if isinstance(kind, KnownNoise):
            return ctx
        if isinstance(kind, Unrecognized):
            if self.verbose:
                logger.warning("Unrecognized kernel line %s: %s", line_no, parsed.message)
            return ctx
        # Sense, hex payload and CDB lines leave the context fields alone.
        return ctx.buffered(line)

    def finish(self, ctx: ParserContext) -> ParserContext:
        """Attach a trailing unterminated sequence to the associated record."""
        if not ctx.size:
            return ctx
        lines = ctx.buffer
        record = self.registry.get(ctx.devname)
        if record is None:
            logger.debug("Discarding %d unterminated lines", len(lines))
            return ctx.cleared()
        record.add_raw_lines(lines)
        logger.debug("Flushed %d trailing lines into %s", len(lines), record.device)
        return ctx.cleared()

    def _commit(
        self,
        ctx: ParserContext,
        parsed: KernelLine,
        kind: LineKind,
        *,
        line_no: int | None,
    ) -> ParserContext:
        devname = kind.devname
        if ctx.devname is not None and ctx.devname != devname:
            raise DeviceIdentityError(ctx.devname, devname, line_no=line_no)

        event: ErrorEvent
        if isinstance(kind, BlockIoError):
            event = BlockErrorEvent(
                block_index=kind.partition,
                logical_block=kind.logical_block,
                sas_index=ctx.sas_index,
            )
        else:
            event = SectorErrorEvent(
                timestamp=parsed.timestamp,
                error_type=kind.error_type,
                sector=kind.sector,
                sas_index=ctx.sas_index,
            )

        record = self.registry.get_or_create(devname, host=parsed.host)
        self._apply(record, ctx, event, ctx.buffer + (parsed.raw,))
        logger.debug("Committed %s for %s", type(event).__name__, devname)
        return ctx.cleared()

    @staticmethod
    def _apply(
        record: DiskErrorRecord,
        ctx: ParserContext,
        event: ErrorEvent,
        lines: tuple[str, ...],
    ) -> None:
        record.sas_index = ctx.sas_index
        if ctx.target is not None:
            record.target = ctx.target
        record.add_event(event)
        record.add_raw_lines(lines)
