"""Offline replay of a saved-list HTML snapshot.

Runs the extraction pipeline over a page captured with ``run --snapshot``.
Clicks and back navigation are inert offline, so only coordinates embedded in
card metadata or links are recovered; the rest get search links.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .config_validation import validate_runtime_config
from .logging_utils import _scraper_event
from .run import export_from_document
from .snapshot_document import SnapshotDocument
from .telemetry import RunTelemetry
from .utils import log_line


@dataclass
class ReplayConfig:
    snapshot_path: Path
    dry_run: bool = True
    location: str = "https://www.google.com/maps/placelists/list/replay"
    safety_cap: Optional[int] = None


def run_replay(config_obj: ReplayConfig) -> Dict[str, Any]:
    validate_runtime_config("replay")
    _scraper_event(
        "replay",
        phase="start",
        snapshot=str(config_obj.snapshot_path),
        dry_run=config_obj.dry_run,
    )

    document = SnapshotDocument.from_path(config_obj.snapshot_path, location=config_obj.location)
    result = export_from_document(
        document,
        telemetry=RunTelemetry("replay"),
        safety_cap=config_obj.safety_cap,
        persist=not config_obj.dry_run,
    )

    summary: Dict[str, Any] = {
        "list_title": result.list_title,
        "records": len(result.records),
        "with_coordinates": sum(1 for record in result.records if record.has_coordinates),
        "scanned": result.scanned,
        "places": [record.to_dict() for record in result.records],
    }
    log_line(
        f"[REPLAY] {summary['records']} place(s), {summary['with_coordinates']} with coordinates"
    )
    _scraper_event(
        "replay",
        phase="end",
        snapshot=str(config_obj.snapshot_path),
        records=summary["records"],
    )
    return summary


if __name__ == "__main__":
    import argparse
    import json

    parser = argparse.ArgumentParser(description="Replay a saved-list snapshot offline.")
    parser.add_argument("snapshot", help="Path to an HTML snapshot of the saved list")
    parser.add_argument("--save", action="store_true", default=False, help="Store the export")
    parser.add_argument("--safety-cap", type=int, default=None)
    args = parser.parse_args()

    cfg = ReplayConfig(
        snapshot_path=Path(args.snapshot), dry_run=not args.save, safety_cap=args.safety_cap
    )
    print(json.dumps(run_replay(cfg), ensure_ascii=False, indent=2))
