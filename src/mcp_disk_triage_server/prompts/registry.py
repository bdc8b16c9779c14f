"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP


def _format_devices(devices: Sequence[str] | str | None) -> str:
    """Return devices as a JSON array literal for prompt display."""
    if devices is None:
        return "[]"
    if isinstance(devices, str):
        items = [s.strip() for s in devices.split(",") if s.strip()]
    else:
        items = [str(s).strip() for s in devices if str(s).strip()]
    if not items:
        return "[]"
    quoted = ", ".join(f'"{item}"' for item in items)
    return f"[{quoted}]"


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def triage_failing_disks(
        devices: Sequence[str] | str | None = None,
        days: int = 7,
        kern_log: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt for a failing-disk incident summary."""
        call_lines = [f"- days: {days}", f"- devices: {_format_devices(devices)}"]
        if kern_log is not None:
            call_lines.append(f"- kern_log: {kern_log}")
        call_lines.append("- include_raw: true")
        call_block = "\n".join(call_lines)
        return [
            {
                "role": "system",
                "content": (
                    "You are a storage operations assistant triaging failing disks. "
                    "Base every statement on tool output. Do not invent sectors, serials "
                    "or controller locations; if the evidence is insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Triage the disks of this host using triage_disks. Follow this workflow:\n"
                    "- Always call triage_disks first with the parameters below.\n"
                    "- Devices must be a list of strings (JSON array). An empty list means "
                    "report every disk found in the kernel logs.\n"
                    "- Mention aborted_segments explicitly: they mark log files whose "
                    "error sequences could not be attributed to a single disk.\n"
                    "- If no disks are returned, state that clearly and suggest widening days.\n\n"
                    "Call triage_disks with:\n"
                    f"{call_block}\n\n"
                    "Return this structure per disk:\n"
                    "1) Disk (device, model, serial, WWN, location if known)\n"
                    "2) Earliest error and error count by kind (block/sector/smart)\n"
                    "3) Evidence (2-5 quoted raw kernel lines)\n"
                    "4) SMART trend (changed attributes between start_time and end_time)\n"
                    "5) Recommendation (replace / monitor / check cabling or HBA)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "For the tracked SMART attributes, see:",
                    },
                    {"type": "resource", "uri": "app://disk-triage/config/smart-attributes"},
                ],
            },
        ]
