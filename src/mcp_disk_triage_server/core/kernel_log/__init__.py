"""Kernel log parsing: line header, classification and the stateful parser."""

from __future__ import annotations

from .classify import (
    BlockIoError,
    CommandDescriptor,
    HexPayload,
    KnownNoise,
    LineKind,
    Originator,
    SectorError,
    SenseClassification,
    TargetIdentification,
    Unrecognized,
    classify,
)
from .header import KernelLine, infer_timestamp, parse_kernel_line
from .parser import DeviceIdentityError, KernelLogParser, ParserContext, ParserState

__all__ = [
    "BlockIoError",
    "CommandDescriptor",
    "DeviceIdentityError",
    "HexPayload",
    "KernelLine",
    "KernelLogParser",
    "KnownNoise",
    "LineKind",
    "Originator",
    "ParserContext",
    "ParserState",
    "SectorError",
    "SenseClassification",
    "TargetIdentification",
    "Unrecognized",
    "classify",
    "infer_timestamp",
    "parse_kernel_line",
]
