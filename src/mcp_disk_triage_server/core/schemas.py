"""JSON export models for a triage run.

These are the shapes handed to report composers (and to MCP clients).
"""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .models import BlockErrorEvent, DiskErrorRecord, ErrorEvent, SectorErrorEvent, SmartChangeEvent
from .pipeline import TriageRun


class ErrorEventModel(BaseModel):
    kind: Literal["block", "sector", "smart"] = Field(
        description="block: buffer I/O error; sector: medium/I-O error; smart: attribute change."
    )
    timestamp: datetime | None = Field(default=None, description="When the event was logged or sampled.")
    block_index: int | None = Field(default=None, description="Partition index of a block error.")
    logical_block: int | None = None
    error_type: Literal["critical-medium-error", "io-error"] | None = None
    sector: int | None = None
    sas_index: str | None = Field(default=None, description="Controller index seen before the error.")
    attribute_key: str | None = None
    attribute_value: int | None = None


class SmartChangeModel(BaseModel):
    timestamp: datetime
    attributes: dict[str, int]


class SmartHistoryModel(BaseModel):
    start_time: datetime
    end_time: datetime
    changes: list[SmartChangeModel] = Field(default_factory=list)


class SmartctlStatusModel(BaseModel):
    exit_code: int
    flags: list[str] = Field(default_factory=list, description="Names of the exit status bits set.")


class DiskRecordModel(BaseModel):
    device: str
    host: str | None = None
    target: str | None = Field(default=None, description="SCSI address host:channel:id:lun.")
    sas_index: str | None = None
    model: str | None = None
    serial: str | None = None
    wwn: str | None = None
    location: dict[str, str] = Field(default_factory=dict, description="controller/enclosure/slot.")
    mount_points: list[str] = Field(default_factory=list)
    earliest_error: datetime | None = None
    error_events: list[ErrorEventModel] = Field(default_factory=list)
    smart_attributes: dict[str, int] = Field(default_factory=dict)
    smart_history: SmartHistoryModel | None = None
    smartctl_status: SmartctlStatusModel | None = None
    raw_log_lines: list[str] | None = None


class SegmentIssueModel(BaseModel):
    path: str
    reason: str


class TriageRunModel(BaseModel):
    count: int
    disks: list[DiskRecordModel] = Field(default_factory=list)
    processed_segments: list[str] = Field(default_factory=list)
    skipped_segments: list[SegmentIssueModel] = Field(default_factory=list)
    aborted_segments: list[SegmentIssueModel] = Field(default_factory=list)


def event_to_model(event: ErrorEvent) -> ErrorEventModel:
    if isinstance(event, BlockErrorEvent):
        return ErrorEventModel(
            kind="block",
            block_index=event.block_index,
            logical_block=event.logical_block,
            sas_index=event.sas_index,
        )
    if isinstance(event, SectorErrorEvent):
        return ErrorEventModel(
            kind="sector",
            timestamp=event.timestamp,
            error_type=event.error_type.value,
            sector=event.sector,
            sas_index=event.sas_index,
        )
    if isinstance(event, SmartChangeEvent):
        return ErrorEventModel(
            kind="smart",
            timestamp=event.timestamp,
            attribute_key=event.attribute_key,
            attribute_value=event.attribute_value,
        )
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


def record_to_model(record: DiskErrorRecord, *, include_raw: bool = False) -> DiskRecordModel:
    identity = record.identity
    location: dict[str, str] = {}
    if identity is not None:
        for key in ("controller", "enclosure", "slot"):
            value = getattr(identity, key)
            if value is not None:
                location[key] = value

    history = None
    if record.smart_history is not None:
        history = SmartHistoryModel(
            start_time=record.smart_history.start_time,
            end_time=record.smart_history.end_time,
            changes=[
                SmartChangeModel(timestamp=ts, attributes=dict(changed))
                for ts, changed in record.smart_history.changes
            ],
        )

    status = None
    if record.smartctl_status is not None:
        st = record.smartctl_status
        status = SmartctlStatusModel(
            exit_code=st.exit_code,
            flags=[
                f.name
                for f in fields(st)
                if f.name != "exit_code" and getattr(st, f.name)
            ],
        )

    return DiskRecordModel(
        device=record.device,
        host=record.host,
        target=record.target,
        sas_index=record.sas_index,
        model=identity.model if identity else None,
        serial=identity.serial if identity else None,
        wwn=identity.wwn if identity else None,
        location=location,
        mount_points=list(identity.mount_points) if identity else [],
        earliest_error=record.earliest_error,
        error_events=[event_to_model(e) for e in record.error_events],
        smart_attributes=dict(record.smart_attributes),
        smart_history=history,
        smartctl_status=status,
        raw_log_lines=list(record.raw_log_lines) if include_raw else None,
    )


def run_to_model(run: TriageRun, *, include_raw: bool = False) -> TriageRunModel:
    disks = [record_to_model(r, include_raw=include_raw) for r in run.records()]
    return TriageRunModel(
        count=len(disks),
        disks=disks,
        processed_segments=[str(p) for p in run.processed],
        skipped_segments=[SegmentIssueModel(path=str(i.path), reason=i.reason) for i in run.skipped],
        aborted_segments=[SegmentIssueModel(path=str(i.path), reason=i.reason) for i in run.aborted],
    )
