"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (triage the disks of this host)
- Resources: addressable data blobs (attribute table, export schema, sample log)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_disk_triage_server.server.disk_server
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_disk_triage_server.core.settings import LOG_LEVEL_ENV
from mcp_disk_triage_server.prompts.registry import register_prompts
from mcp_disk_triage_server.resources.registry import register_resources
from mcp_disk_triage_server.tools.triage import triage_disks_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("disk-triage", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def triage_disks(
    kern_log: str | None = None,
    days: int | None = None,
    smart_dir: str | None = None,
    devices: Sequence[str] | None = None,
    identities: Sequence[dict[str, Any]] | None = None,
    verbose: bool | None = None,
    include_raw: bool = False,
) -> dict[str, Any]:
    """Correlate kernel disk errors and SMART history into per-disk records.

    Parameters
    ----------
    kern_log:
        Base kernel log path (default /var/log/kern.log). Rotated and .gz
        siblings are picked up automatically.
    days:
        Retention window in days; older segments are not read.
    smart_dir:
        Directory holding smartd attribute logs (default /var/lib/smartmontools).
    devices:
        Device paths to report (e.g. /dev/sdh, /dev/disk/by-id/...). When
        omitted, every disk found in the logs is reported.
    identities:
        Collector facts per disk: {"device", "model", "serial", "wwn",
        "controller", "enclosure", "slot", "mount_points", "attributes",
        "smartctl_exit_code"}. Model and serial enable SMART history merging.
    verbose:
        Log unrecognized kernel lines as warnings.
    include_raw:
        Whether to include the supporting raw kernel lines per disk.

    Returns
    -------
    dict:
        {"count": int, "disks": list[dict], "processed_segments": [...],
         "skipped_segments": [...], "aborted_segments": [...]}
    """
    return await asyncio.to_thread(
        triage_disks_impl,
        kern_log=kern_log,
        days=days,
        smart_dir=smart_dir,
        devices=devices,
        identities=identities,
        verbose=verbose,
        include_raw=include_raw,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
