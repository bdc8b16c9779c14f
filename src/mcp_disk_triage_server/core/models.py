"""Core data models for disk error triage."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Sector-level failure classes reported by the block layer."""

    CRITICAL_MEDIUM_ERROR = "critical-medium-error"
    IO_ERROR = "io-error"

    @classmethod
    def from_tag(cls, tag: str) -> ErrorType:
        """Map the kernel's free-text tag ("critical medium error", "I/O error")."""
        norm = tag.strip().lower()
        if norm == "critical medium error":
            return cls.CRITICAL_MEDIUM_ERROR
        if norm == "i/o error":
            return cls.IO_ERROR
        raise ValueError(f"Unknown error tag: {tag!r}")


@dataclass(frozen=True, slots=True)
class BlockErrorEvent:
    """Buffer I/O error against a logical block of a (partition of a) disk."""

    block_index: int | None  # partition index, None for the whole disk
    logical_block: int
    sas_index: str | None = None


@dataclass(frozen=True, slots=True)
class SectorErrorEvent:
    """Critical medium error or I/O error against an absolute sector."""

    timestamp: datetime | None
    error_type: ErrorType
    sector: int
    sas_index: str | None = None


@dataclass(frozen=True, slots=True)
class SmartChangeEvent:
    """A vendor SMART attribute changing value between two samples."""

    timestamp: datetime
    attribute_key: str
    attribute_value: int


ErrorEvent = BlockErrorEvent | SectorErrorEvent | SmartChangeEvent


@dataclass(slots=True)
class SmartHistory:
    """Sparse SMART change-log plus the bounds of the sampled period."""

    start_time: datetime
    end_time: datetime
    changes: list[tuple[datetime, dict[str, int]]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SmartctlStatus:
    """smartctl exit status decoded into its documented bits."""

    exit_code: int
    command_line_error: bool = False
    device_open_failed: bool = False
    smart_command_failed: bool = False
    disk_failing: bool = False
    prefail_attributes_below_threshold: bool = False
    attributes_below_threshold_in_past: bool = False
    error_log_has_errors: bool = False
    self_test_log_has_errors: bool = False

    @property
    def healthy(self) -> bool:
        return self.exit_code == 0


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class DiskIdentity:
    """Already-parsed facts about one disk, as handed over by collectors."""

    device: str
    host: str | None = None
    model: str | None = None
    serial: str | None = None
    wwn: str | None = None
    controller: str | None = None
    enclosure: str | None = None
    slot: str | None = None
    mount_points: tuple[str, ...] = ()
    attributes: Mapping[str, int] = field(default_factory=dict)
    smartctl_exit_code: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DiskIdentity:
        """Build an identity from a collector mapping.

        Only ``device`` is required. ``mount_points`` may be a sequence or a
        comma-separated string; ``attributes`` values are coerced to int.
        """
        device = _opt_str(data.get("device"))
        if device is None:
            raise ValueError("identity mapping requires a 'device' key")

        mounts = data.get("mount_points") or ()
        if isinstance(mounts, str):
            mounts = [m for m in (s.strip() for s in mounts.split(",")) if m]
        elif not isinstance(mounts, Sequence):
            raise ValueError("mount_points must be a list or a comma-separated string")

        attrs: dict[str, int] = {}
        for key, value in (data.get("attributes") or {}).items():
            try:
                attrs[str(key)] = int(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"attribute {key!r} is not numeric: {value!r}") from exc

        exit_code = data.get("smartctl_exit_code")
        return cls(
            device=device,
            host=_opt_str(data.get("host")),
            model=_opt_str(data.get("model")),
            serial=_opt_str(data.get("serial")),
            wwn=_opt_str(data.get("wwn")),
            controller=_opt_str(data.get("controller")),
            enclosure=_opt_str(data.get("enclosure")),
            slot=_opt_str(data.get("slot")),
            mount_points=tuple(str(m) for m in mounts),
            attributes=attrs,
            smartctl_exit_code=None if exit_code is None else int(exit_code),
        )


@dataclass(slots=True)
class DiskErrorRecord:
    """Everything gathered about one physical device during a run."""

    device: str
    host: str | None = None
    target: str | None = None
    sas_index: str | None = None
    error_events: list[ErrorEvent] = field(default_factory=list)
    raw_log_lines: list[str] = field(default_factory=list)
    smart_attributes: dict[str, int] = field(default_factory=dict)
    smart_history: SmartHistory | None = None
    identity: DiskIdentity | None = None
    smartctl_status: SmartctlStatus | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "device" and getattr(self, "device", None) is not None:
            raise AttributeError("device is immutable once set")
        object.__setattr__(self, name, value)

    def set_host(self, host: str | None) -> None:
        """First writer wins."""
        if self.host is None and host:
            self.host = host

    def add_event(self, event: ErrorEvent) -> None:
        self.error_events.append(event)

    def add_raw_lines(self, lines: Sequence[str]) -> None:
        self.raw_log_lines.extend(lines)

    @property
    def earliest_error(self) -> datetime | None:
        """Timestamp of the first timestamped event, in recorded order."""
        for event in self.error_events:
            ts = getattr(event, "timestamp", None)
            if ts is not None:
                return ts
        return None
