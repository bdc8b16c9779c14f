from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from mcp_disk_triage_server.core.models import (
    DiskErrorRecord,
    SectorErrorEvent,
    ErrorType,
    SmartChangeEvent,
)
from mcp_disk_triage_server.core.smart import (
    SmartHistoryMerger,
    SmartSnapshot,
    history_candidates,
    locate_history,
    parse_history_row,
    sanitize,
)

T1 = datetime(2025, 1, 1, 0, 0, 0, tzinfo=UTC)
T2 = datetime(2025, 1, 2, 0, 0, 0, tzinfo=UTC)
T3 = datetime(2025, 1, 3, 0, 0, 0, tzinfo=UTC)


def test_parse_ata_row_uses_raw_value() -> None:
    snap = parse_history_row("2025-01-01 00:00:00;\t5;100;0;\t197;100;8;\t9;97;2811;\n")
    assert snap == SmartSnapshot(timestamp=T1, values={"5": 0, "197": 8, "9": 2811})


def test_parse_scsi_row() -> None:
    snap = parse_history_row("2025-01-02 00:00:00;\tread-total-unc-errors;3;\tnon-medium-errors-count;12;")
    assert snap is not None
    assert snap.timestamp == T2
    assert snap.values == {"read-total-unc-errors": 3, "non-medium-errors-count": 12}


def test_parse_row_without_tabs_reads_pairs() -> None:
    snap = parse_history_row("2025-01-02 00:00:00;read-total-unc-errors;3;grown-defects;1;")
    assert snap is not None
    assert snap.values == {"read-total-unc-errors": 3, "grown-defects": 1}


def test_parse_row_skips_malformed() -> None:
    assert parse_history_row("") is None
    assert parse_history_row("yesterday;\t5;100;0;") is None
    snap = parse_history_row("2025-01-01 00:00:00;\t5;100;n/a;\t197;100;2;")
    assert snap is not None
    assert snap.values == {"197": 2}


def test_merge_emits_only_changes() -> None:
    record = DiskErrorRecord(device="sdh")
    snapshots = [
        SmartSnapshot(timestamp=T1, values={"5": 0}),
        SmartSnapshot(timestamp=T2, values={"5": 0}),
        SmartSnapshot(timestamp=T3, values={"5": 3}),
    ]

    events = SmartHistoryMerger().merge(record, snapshots)

    assert events == [SmartChangeEvent(timestamp=T3, attribute_key="5", attribute_value=3)]
    assert record.smart_history is not None
    assert record.smart_history.start_time == T1
    assert record.smart_history.end_time == T3
    assert record.smart_history.changes == [(T3, {"5": 3})]
    assert record.smart_attributes["5"] == 3


def test_merge_first_nonzero_sample_is_a_change() -> None:
    record = DiskErrorRecord(device="sdh")
    snapshots = [
        SmartSnapshot(timestamp=T1, values={"197": 8, "9": 100}),
        SmartSnapshot(timestamp=T2, values={"197": 8, "9": 124}),
        SmartSnapshot(timestamp=T3, values={"197": 0}),
    ]

    events = SmartHistoryMerger().merge(record, snapshots)

    # "9" (power-on hours) is not a tracked attribute.
    assert [(e.timestamp, e.attribute_key, e.attribute_value) for e in events] == [
        (T1, "197", 8),
        (T3, "197", 0),
    ]
    assert "9" not in record.smart_attributes


def test_smart_change_becomes_earliest_error_when_no_log_events() -> None:
    record = DiskErrorRecord(device="sdh")
    SmartHistoryMerger().merge(record, [SmartSnapshot(timestamp=T2, values={"5": 1})])

    assert record.error_events == [SmartChangeEvent(timestamp=T2, attribute_key="5", attribute_value=1)]
    assert record.earliest_error == T2


def test_smart_change_not_added_when_log_events_exist() -> None:
    record = DiskErrorRecord(device="sdh")
    log_event = SectorErrorEvent(timestamp=T3, error_type=ErrorType.IO_ERROR, sector=9)
    record.add_event(log_event)

    SmartHistoryMerger().merge(record, [SmartSnapshot(timestamp=T1, values={"5": 1})])

    assert record.error_events == [log_event]
    assert record.earliest_error == T3
    assert record.smart_history is not None


def test_merge_without_snapshots_leaves_history_absent() -> None:
    record = DiskErrorRecord(device="sdh")
    assert SmartHistoryMerger().merge(record, []) == []
    assert record.smart_history is None


def test_sanitize_variants() -> None:
    assert sanitize("WDC WD40EFRX-68N32N0") == "WDC_WD40EFRX_68N32N0"
    assert sanitize("WDC WD40EFRX-68N32N0", filler="-") == "WDC-WD40EFRX-68N32N0"
    assert sanitize(" ST4000/NM0033* ") == "ST4000NM0033"


def test_history_candidates_order(tmp_path: Path) -> None:
    names = [p.name for p in history_candidates(tmp_path, "HGST HUS726040", "K4K1ABCD")]
    assert names[:4] == [
        "attrlog.HGST_HUS726040-K4K1ABCD.ata.csv",
        "attrlog.HGST_HUS726040-K4K1ABCD.scsi.csv",
        "attrlog.HGST-HUS726040-K4K1ABCD.ata.csv",
        "attrlog.HGST-HUS726040-K4K1ABCD.scsi.csv",
    ]
    assert "attrlog.HGST_HUS726040_K4K1ABCD.ata.csv" in names
    assert len(names) == len(set(names))


def test_merge_for_disk_locates_scsi_history(tmp_path: Path) -> None:
    path = tmp_path / "attrlog.SEAGATE_ST4000NM0023-Z1Z0ABCD.scsi.csv"
    path.write_text(
        "2025-01-01 00:00:00;\tread-total-unc-errors;0;\n"
        "2025-01-02 00:00:00;\tread-total-unc-errors;2;\n",
        encoding="utf-8",
    )
    assert locate_history(tmp_path, "SEAGATE ST4000NM0023", "Z1Z0ABCD") == path

    record = DiskErrorRecord(device="sdk")
    events = SmartHistoryMerger().merge_for_disk(
        record, tmp_path, model="SEAGATE ST4000NM0023", serial="Z1Z0ABCD"
    )
    assert [(e.timestamp, e.attribute_value) for e in events] == [(T2, 2)]
    assert record.earliest_error == T2


def test_missing_history_warns_and_leaves_record(tmp_path: Path, caplog) -> None:
    record = DiskErrorRecord(device="sdk")
    with caplog.at_level(logging.WARNING):
        events = SmartHistoryMerger().merge_for_disk(record, tmp_path, model="X", serial="Y")
    assert events == []
    assert record.smart_history is None
    assert "No SMART history" in caplog.text


def test_unreadable_history_warns(tmp_path: Path, caplog) -> None:
    record = DiskErrorRecord(device="sdk")
    with caplog.at_level(logging.WARNING):
        events = SmartHistoryMerger().merge_file(record, tmp_path / "missing.csv")
    assert events == []
    assert record.smart_history is None
    assert "Cannot read SMART history" in caplog.text
