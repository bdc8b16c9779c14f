from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from mcp_disk_triage_server.core.devices import resolve_devices
from mcp_disk_triage_server.core.models import DiskErrorRecord, DiskIdentity
from mcp_disk_triage_server.core.pipeline import run_triage
from mcp_disk_triage_server.core.schemas import run_to_model
from mcp_disk_triage_server.core.settings import LOG_LEVEL_ENV, clamp_retention_days, resolve_settings


def _non_negative(s: str) -> int:
    try:
        value = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError("days must be an integer") from e
    if value < 0:
        raise argparse.ArgumentTypeError("days must be >= 0")
    return value


def _load_identities(path: str | None) -> list[DiskIdentity]:
    """Read collector mappings (a JSON list of objects) from a file."""
    if path is None:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("identity file must contain a JSON list")
    return [DiskIdentity.from_mapping(item) for item in data]


def _summary_line(record: DiskErrorRecord) -> str:
    earliest = record.earliest_error.isoformat() if record.earliest_error else "-"
    identity = record.identity
    model = identity.model if identity and identity.model else "-"
    serial = identity.serial if identity and identity.serial else "-"
    return (
        f"{record.device} host={record.host or '-'} target={record.target or '-'} "
        f"sas={record.sas_index or '-'} model={model} serial={serial} "
        f"events={len(record.error_events)} earliest={earliest}"
    )


def main() -> None:
    p = argparse.ArgumentParser(description="Correlate kernel disk errors and SMART history per disk.")
    p.add_argument("--kern-log", default=None, help="Base kernel log path (default: /var/log/kern.log)")
    p.add_argument("--days", type=_non_negative, default=None, help="Retention window in days (default: 7)")
    p.add_argument("--smart-dir", default=None, help="smartd attribute log directory")
    p.add_argument(
        "--device",
        dest="devices",
        action="append",
        default=None,
        help="Device path to report (repeatable). Default: every disk found in the logs",
    )
    p.add_argument("--identity", default=None, help="JSON file with collector facts per disk")
    p.add_argument("--verbose", action="store_true", default=None, help="Warn about unrecognized kernel lines")
    p.add_argument("--json", dest="as_json", action="store_true", help="Print the JSON export")
    p.add_argument("--raw", dest="include_raw", action="store_true", help="Include raw kernel lines (JSON only)")

    args = p.parse_args()

    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = resolve_settings()
        if args.kern_log is not None:
            settings = replace(settings, kern_log=Path(args.kern_log))
        if args.days is not None:
            settings = replace(settings, retention_days=clamp_retention_days(args.days))
        if args.smart_dir is not None:
            settings = replace(settings, smart_dir=Path(args.smart_dir))
        if args.verbose:
            settings = replace(settings, verbose=True)

        devices = list(resolve_devices(args.devices)) if args.devices else None
        identities = _load_identities(args.identity)
        run = run_triage(settings, devices=devices, identities=identities)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (ValueError, argparse.ArgumentTypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    if args.as_json:
        print(run_to_model(run, include_raw=args.include_raw).model_dump_json(indent=2))
        return

    records = run.records()
    for record in records:
        print(_summary_line(record))
    for issue in run.aborted:
        print(f"aborted {issue.path}: {issue.reason}")
    for issue in run.skipped:
        print(f"skipped {issue.path}: {issue.reason}")

    print(f"\nFound {len(records)} disk(s) with records.")


if __name__ == "__main__":
    main()
