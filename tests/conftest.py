from __future__ import annotations

import gzip
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

NOW = datetime(2025, 1, 10, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def kline() -> Callable[..., str]:
    def _line(
        message: str,
        *,
        ts: str = "Jan  5 10:15:40",
        host: str = "stor01",
        uptime: str = "812345.100001",
    ) -> str:
        return f"{ts} {host} kernel: [{uptime}] {message}"

    return _line


@pytest.fixture
def medium_error_sequence(kline) -> list[str]:
    return [
        kline("mpt2sas0: log_info(0x31080000): originator(PL), code(0x08), sub_code(0x0000)"),
        kline("sd 0:0:7:0: [sdh] Unhandled sense code"),
        kline("sd 0:0:7:0: [sdh]  Result: hostbyte=DID_OK driverbyte=DRIVER_SENSE"),
        kline("sd 0:0:7:0: [sdh]  Sense Key : Medium Error [current] [descriptor]"),
        kline("Descriptor sense data with sense descriptors (in hex):"),
        kline("        72 03 11 00 00 00 00 34 00 0a 80 00 00 00 00 00"),
        kline("sd 0:0:7:0: [sdh]  Add. Sense: Unrecovered read error"),
        kline("sd 0:0:7:0: [sdh] CDB: Read(16): 88 00 00 00 00 01 7a ba 8f 98 00 00 00 08 00 00"),
        kline("end_request: critical medium error, dev sdh, sector 6353827720"),
    ]


@pytest.fixture
def write_lines() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        if path.suffix == ".gz":
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.write("".join(line + "\n" for line in lines))
        else:
            path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")

    return _write


@pytest.fixture
def set_age() -> Callable[[Path, float], None]:
    """Set a file's mtime to ``days`` before NOW."""

    def _set(path: Path, days: float) -> None:
        ts = (NOW - timedelta(days=days)).timestamp()
        os.utime(path, (ts, ts))

    return _set
