"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_disk_triage_server.core.schemas import TriageRunModel
from mcp_disk_triage_server.core.settings import (
    KERN_LOG_ENV,
    RETENTION_DAYS_ENV,
    SMART_DIR_ENV,
    resolve_settings,
)
from mcp_disk_triage_server.core.smart import ATA_ATTRIBUTES, SCSI_ATTRIBUTES

SAMPLE_KERNEL_LOG = (
    "Jan  5 10:15:40 stor01 kernel: [812345.100001] mpt2sas0: log_info(0x31080000): "
    "originator(PL), code(0x08), sub_code(0x0000)\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100002] sd 0:0:7:0: [sdh] Unhandled sense code\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100003] sd 0:0:7:0: [sdh]  "
    "Result: hostbyte=DID_OK driverbyte=DRIVER_SENSE\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100004] sd 0:0:7:0: [sdh]  "
    "Sense Key : Medium Error [current] [descriptor]\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100005] Descriptor sense data with sense "
    "descriptors (in hex):\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100006]         72 03 11 00 00 00 00 34 "
    "00 0a 80 00 00 00 00 00\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100007] sd 0:0:7:0: [sdh]  "
    "Add. Sense: Unrecovered read error\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100008] sd 0:0:7:0: [sdh] CDB: Read(16): "
    "88 00 00 00 00 01 7a ba 8f 98 00 00 00 08 00 00\n"
    "Jan  5 10:15:40 stor01 kernel: [812345.100009] end_request: critical medium error, "
    "dev sdh, sector 6353827720\n"
)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://disk-triage/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs and the active settings."""
        settings = resolve_settings()
        return (
            "Resources:\n"
            "- app://disk-triage/help\n"
            "- app://disk-triage/config/smart-attributes\n"
            "- app://disk-triage/schemas/triage-run\n"
            "- app://disk-triage/examples/kernel-log\n"
            f"\nKernel log: {settings.kern_log} ({KERN_LOG_ENV})\n"
            f"Retention: {settings.retention_days} days ({RETENTION_DAYS_ENV})\n"
            f"SMART history: {settings.smart_dir} ({SMART_DIR_ENV})\n"
        )

    @mcp.resource("app://disk-triage/examples/kernel-log")
    def sample_log() -> str:
        """Return a tiny medium-error sequence for demos and tests."""
        return SAMPLE_KERNEL_LOG

    @mcp.resource("app://disk-triage/config/smart-attributes")
    def smart_attributes() -> dict[str, dict[str, str]]:
        """Return the vendor SMART attributes tracked in attribute history."""
        return {"ata": dict(ATA_ATTRIBUTES), "scsi": dict(SCSI_ATTRIBUTES)}

    @mcp.resource("app://disk-triage/schemas/triage-run")
    def triage_run_schema() -> dict[str, Any]:
        """Return the JSON schema of triage_disks results."""
        return TriageRunModel.model_json_schema()
