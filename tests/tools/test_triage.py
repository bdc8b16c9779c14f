from __future__ import annotations

from pathlib import Path

import pytest

from mcp_disk_triage_server.core.pipeline import TriageRun
from mcp_disk_triage_server.core.registry import DiskErrorRegistry
from mcp_disk_triage_server.core.settings import (
    KERN_LOG_ENV,
    MAX_RETENTION_DAYS,
    RETENTION_DAYS_ENV,
    SMART_DIR_ENV,
    VERBOSE_ENV,
    TriageSettings,
)
from mcp_disk_triage_server.tools import triage as triage_module
from mcp_disk_triage_server.tools.triage import triage_disks_impl


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in (KERN_LOG_ENV, RETENTION_DAYS_ENV, SMART_DIR_ENV, VERBOSE_ENV):
        monkeypatch.delenv(name, raising=False)


def _write_log(path: Path, kline, medium_error_sequence) -> None:
    lines = medium_error_sequence + [
        kline("[UFW BLOCK] IN=eth0 OUT= MAC=00:00 SRC=10.0.0.1 DST=10.0.0.2"),
        kline("sd 2:0:1:0: [sdj] Unhandled error code"),
        kline("end_request: I/O error, dev sdj, sector 2048"),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_triage_disks_impl_reports_every_disk(tmp_path: Path, kline, medium_error_sequence) -> None:
    log = tmp_path / "kern.log"
    _write_log(log, kline, medium_error_sequence)

    out = triage_disks_impl(kern_log=str(log), days=7, smart_dir=str(tmp_path))

    assert out["count"] == 2
    sdh, sdj = out["disks"]
    assert sdh["device"] == "sdh"
    assert sdh["sas_index"] == "0"
    assert sdh["error_events"][0]["error_type"] == "critical-medium-error"
    assert sdh["error_events"][0]["sector"] == 6353827720
    assert sdh["raw_log_lines"] is None
    assert sdj["target"] == "2:0:1:0"
    assert out["processed_segments"] == [str(log)]


def test_triage_disks_impl_selected_device_and_raw(tmp_path: Path, kline, medium_error_sequence) -> None:
    log = tmp_path / "kern.log"
    _write_log(log, kline, medium_error_sequence)
    dev = tmp_path / "sdj"
    dev.touch()
    link = tmp_path / "wwn-0x5000c500deadbeef"
    link.symlink_to(dev)

    out = triage_disks_impl(
        kern_log=str(log),
        smart_dir=str(tmp_path),
        devices=[str(link)],
        include_raw=True,
    )

    assert [d["device"] for d in out["disks"]] == ["sdj"]
    raw = out["disks"][0]["raw_log_lines"]
    assert len(raw) == 2
    assert raw[-1].endswith("end_request: I/O error, dev sdj, sector 2048")


def test_triage_disks_impl_identities(tmp_path: Path, kline, medium_error_sequence) -> None:
    log = tmp_path / "kern.log"
    _write_log(log, kline, medium_error_sequence)

    out = triage_disks_impl(
        kern_log=str(log),
        smart_dir=str(tmp_path),
        identities=[
            {"device": "sdh", "model": "HGST HUS726040", "serial": "K4K1ABCD", "slot": "7", "smartctl_exit_code": 0}
        ],
    )

    sdh = out["disks"][0]
    assert sdh["model"] == "HGST HUS726040"
    assert sdh["location"] == {"slot": "7"}
    assert sdh["smartctl_status"] == {"exit_code": 0, "flags": []}
    assert sdh["smart_history"] is None


def test_triage_disks_impl_missing_log_dir(tmp_path: Path) -> None:
    out = triage_disks_impl(kern_log=str(tmp_path / "nope" / "kern.log"), smart_dir=str(tmp_path))
    assert out["count"] == 0
    assert out["disks"] == []


def test_triage_disks_impl_rejects_negative_days(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        triage_disks_impl(kern_log=str(tmp_path / "kern.log"), days=-1)


def test_triage_disks_impl_missing_device(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        triage_disks_impl(kern_log=str(tmp_path / "kern.log"), devices=[str(tmp_path / "sdz")])


def test_triage_disks_impl_caps_days(tmp_path: Path, monkeypatch) -> None:
    seen: list[TriageSettings] = []

    def fake_run_triage(settings, **kwargs):
        seen.append(settings)
        return TriageRun(registry=DiskErrorRegistry())

    monkeypatch.setattr(triage_module, "run_triage", fake_run_triage)
    out = triage_disks_impl(kern_log=str(tmp_path / "kern.log"), days=5000)

    assert out["count"] == 0
    assert seen[0].retention_days == MAX_RETENTION_DAYS
