"""Module entrypoint.

Allows:
    python -m mcp_disk_triage_server
"""

from __future__ import annotations

from mcp_disk_triage_server.server.disk_server import main

if __name__ == "__main__":
    main()
