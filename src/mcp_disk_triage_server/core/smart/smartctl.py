"""smartctl exit status decoding.

smartctl reports health through the bits of its exit status (see the
"RETURN VALUES" section of smartctl(8)).
"""

from __future__ import annotations

import logging

from ..models import DiskErrorRecord, SmartctlStatus

logger = logging.getLogger(__name__)

_BITS = (
    "command_line_error",
    "device_open_failed",
    "smart_command_failed",
    "disk_failing",
    "prefail_attributes_below_threshold",
    "attributes_below_threshold_in_past",
    "error_log_has_errors",
    "self_test_log_has_errors",
)


def decode_smartctl_status(exit_code: int) -> SmartctlStatus | None:
    """Decode a smartctl exit status into flags.

    Negative codes mean the process was killed by a signal and carry no
    documented meaning; those return None.
    """
    if exit_code < 0 or exit_code > 0xFF:
        logger.warning("smartctl exited abnormally (status %s); no health flags decoded", exit_code)
        return None
    flags = {name: bool(exit_code & (1 << bit)) for bit, name in enumerate(_BITS)}
    return SmartctlStatus(exit_code=exit_code, **flags)


def attach_smartctl_status(record: DiskErrorRecord, exit_code: int | None) -> None:
    if exit_code is None:
        return
    status = decode_smartctl_status(exit_code)
    if status is not None:
        record.smartctl_status = status
