"""Kernel message classification.

Every message maps to exactly one line kind. Rules are evaluated in the
order of ``_RULES`` and the first match wins:

1. controller originator      (mpt2sas0: log_info(...): originator(...))
2. target identification      (sd 0:0:7:0: [sdh] Unhandled sense code)
3. sense classification       (Sense Key, Result: hostbyte=, Add. Sense, ...)
4. hex payload                (72 03 11 00 ...)
5. command descriptor block   (CDB: Read(16) 88 00 ...)
6. block I/O error            (Buffer I/O error on device sdh1, logical block N)
7. sector error               (critical medium error, dev sdh, sector N)
8. known noise                (netfilter, plain sd lines, filesystem mounts)
9. unrecognized
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from ..models import ErrorType


@dataclass(frozen=True, slots=True)
class Originator:
    controller: str
    sas_index: str
    log_info: str | None = None


@dataclass(frozen=True, slots=True)
class TargetIdentification:
    target: str
    devname: str


@dataclass(frozen=True, slots=True)
class SenseClassification:
    detail: str


@dataclass(frozen=True, slots=True)
class HexPayload:
    pass


@dataclass(frozen=True, slots=True)
class CommandDescriptor:
    opcode: str
    payload: str


@dataclass(frozen=True, slots=True)
class BlockIoError:
    devname: str
    partition: int | None
    logical_block: int


@dataclass(frozen=True, slots=True)
class SectorError:
    error_type: ErrorType
    devname: str
    sector: int


@dataclass(frozen=True, slots=True)
class KnownNoise:
    pass


@dataclass(frozen=True, slots=True)
class Unrecognized:
    pass


LineKind = (
    Originator
    | TargetIdentification
    | SenseClassification
    | HexPayload
    | CommandDescriptor
    | BlockIoError
    | SectorError
    | KnownNoise
    | Unrecognized
)

# Kinds that end an error sequence and commit the buffer.
TERMINATING_KINDS = (BlockIoError, SectorError)

_ORIGINATOR_RE = re.compile(
    r"^(?P<ctrl>mpt\d*sas(?:_cm)?(?P<idx>\d+)):\s+"
    r"log_info\((?P<code>0x[0-9a-fA-F]+)\):\s+originator\("
)
_TARGET_RE = re.compile(
    r"^sd (?P<target>\d+:\d+:\d+:\d+): \[(?P<dev>[^\]\s]+)\]\s+"
    r"(?:tag#\d+\s+)?"
    r"(?:Unhandled (?:sense|error) code|FAILED Result:)"
)
_SENSE_RE = re.compile(
    r"(?P<detail>Sense Key\s*:.*|Result: hostbyte=.*|Descriptor sense data.*"
    r"|Add\. Sense:.*|Info fld=.*|Vendor Specific.*)"
)
_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2}\s+)*[0-9a-fA-F]{2}$")
_CDB_RE = re.compile(
    r"CDB:\s*(?P<op>[A-Za-z][A-Za-z ]*\(\d+\)|opcode=0x[0-9a-fA-F]+)\s*:?\s*"
    r"(?P<payload>(?:[0-9a-fA-F]{2}\s*)+)$"
)
_BLOCK_RE = re.compile(
    r"Buffer I/O error on (?:device|dev) (?P<name>[^,\s]+), "
    r"logical block (?P<block>\d+)"
)
_SCSI_PARTITION_RE = re.compile(r"^(?P<disk>sd[a-z]+)(?P<part>\d*)$")
_SECTOR_RE = re.compile(
    r"(?P<tag>critical medium error|I/O error), dev (?P<dev>[^,\s]+), sector (?P<sector>\d+)"
)
_NOISE_RE = re.compile(
    r"\[UFW |\bIN=\S* OUT=|iptables|nf_conntrack|netfilter"
    r"|^sd \d+:\d+:\d+:\d+:"
    r"|^sd[a-z]+: sd[a-z]+\d"
    r"|EXT[234]-fs \(|XFS \(|mounted filesystem"
)


def _originator(m: re.Match[str]) -> LineKind:
    return Originator(controller=m.group("ctrl"), sas_index=m.group("idx"), log_info=m.group("code"))


def _target(m: re.Match[str]) -> LineKind:
    return TargetIdentification(target=m.group("target"), devname=m.group("dev"))


def _sense(m: re.Match[str]) -> LineKind:
    return SenseClassification(detail=m.group("detail").strip())


def _hex(m: re.Match[str]) -> LineKind:
    return HexPayload()


def _cdb(m: re.Match[str]) -> LineKind:
    return CommandDescriptor(opcode=m.group("op").strip(), payload=" ".join(m.group("payload").split()))


def _block(m: re.Match[str]) -> LineKind:
    # Only sdX names carry a trailing partition number; loop0, md127 and
    # nvme0n1p1 are kept whole.
    name = m.group("name")
    scsi = _SCSI_PARTITION_RE.match(name)
    if scsi:
        devname, part = scsi.group("disk"), scsi.group("part")
    else:
        devname, part = name, ""
    return BlockIoError(
        devname=devname,
        partition=int(part) if part else None,
        logical_block=int(m.group("block")),
    )


def _sector(m: re.Match[str]) -> LineKind:
    return SectorError(
        error_type=ErrorType.from_tag(m.group("tag")),
        devname=m.group("dev"),
        sector=int(m.group("sector")),
    )


def _noise(m: re.Match[str]) -> LineKind:
    return KnownNoise()


_RULES: tuple[tuple[Callable[[str], re.Match[str] | None], Callable[[re.Match[str]], LineKind]], ...] = (
    (_ORIGINATOR_RE.search, _originator),
    (_TARGET_RE.search, _target),
    (_SENSE_RE.search, _sense),
    (_HEX_RE.match, _hex),
    (_CDB_RE.search, _cdb),
    (_BLOCK_RE.search, _block),
    (_SECTOR_RE.search, _sector),
    (_NOISE_RE.search, _noise),
)


def classify(message: str) -> LineKind:
    """Classify a kernel message (header already stripped)."""
    text = message.strip()
    for match, build in _RULES:
        m = match(text)
        if m:
            return build(m)
    return Unrecognized()
