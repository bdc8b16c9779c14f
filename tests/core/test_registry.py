from __future__ import annotations

import pytest

from mcp_disk_triage_server.core.models import BlockErrorEvent
from mcp_disk_triage_server.core.registry import DiskErrorRegistry


def test_get_or_create_returns_same_instance() -> None:
    registry = DiskErrorRegistry()
    a = registry.get_or_create("sdh", host="stor01")
    b = registry.get_or_create("sdh", host="other")
    assert a is b
    assert a.host == "stor01"
    assert len(registry) == 1


def test_host_set_when_absent() -> None:
    registry = DiskErrorRegistry()
    record = registry.get_or_create("sdh")
    assert record.host is None
    registry.get_or_create("sdh", host="stor02")
    assert record.host == "stor02"


def test_device_is_immutable() -> None:
    record = DiskErrorRegistry().get_or_create("sdh")
    with pytest.raises(AttributeError):
        record.device = "sdi"
    assert record.device == "sdh"


def test_empty_device_rejected() -> None:
    with pytest.raises(ValueError):
        DiskErrorRegistry().get_or_create("")


def test_iteration_follows_first_reference_and_appends_are_monotonic() -> None:
    registry = DiskErrorRegistry()
    registry.get_or_create("sdc")
    registry.get_or_create("sda")
    record = registry.get_or_create("sdc")
    record.add_event(BlockErrorEvent(block_index=None, logical_block=1))
    record.add_event(BlockErrorEvent(block_index=None, logical_block=2))
    record.add_raw_lines(["a", "b"])
    record.add_raw_lines(["c"])

    assert [r.device for r in registry] == ["sdc", "sda"]
    assert [e.logical_block for e in record.error_events] == [1, 2]
    assert record.raw_log_lines == ["a", "b", "c"]
    assert registry.get("sdz") is None
    assert registry.get(None) is None
