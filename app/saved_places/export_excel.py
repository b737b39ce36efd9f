"""Excel export of the stored place list and the latest run's scan log."""

from __future__ import annotations

import json
import os
import re
from typing import Optional

import pandas as pd

from . import config
from .storage import StoredExport, load_export

MAX_EXPORTS = int(os.environ.get("EXPORTS_KEEP_MAX", "5"))

# Names the My Maps import step refuses.
INVALID_PLACE_NAMES = ("שיתוף", "הערה", "Share", "Note", "Dropped pin")
DECIMAL_NAME_RE = re.compile(r"^\d+\.\d+$")


def is_importable(name: str) -> bool:
    return len(name) > 2 and name not in INVALID_PLACE_NAMES and not DECIMAL_NAME_RE.match(name)


def _latest_run_json_path() -> Optional[str]:
    """Return the most recent run telemetry JSON path, if any."""

    runs_dir = str(config.RUNS_DIR)
    if not os.path.isdir(runs_dir):
        return None

    runs = sorted(
        os.path.join(runs_dir, path) for path in os.listdir(runs_dir) if path.endswith(".json")
    )
    return runs[-1] if runs else None


def prune_old_exports() -> None:
    exports_dir = str(config.EXPORTS_DIR)
    files = sorted(
        os.path.join(exports_dir, p) for p in os.listdir(exports_dir) if p.endswith(".xlsx")
    )
    while len(files) > MAX_EXPORTS:
        old = files.pop(0)
        try:
            os.remove(old)
        except OSError:
            continue


def export_places_to_excel(
    dest_path: Optional[str] = None, *, stored: Optional[StoredExport] = None
) -> str:
    """Create a workbook from the stored export (and latest scan log, if any)."""

    stored = stored or load_export()
    if stored is None:
        raise FileNotFoundError("No exported places available; run an export first")

    everything = pd.DataFrame(
        [place.to_dict() for place in stored.places],
        columns=["name", "link", "latitude", "longitude"],
    )
    df = everything[everything["name"].map(is_importable).astype(bool)].copy()
    located = df[df["latitude"].notna()].copy()
    missing = df[df["latitude"].isna()].copy()
    summary = pd.DataFrame(
        [
            {"metric": "list_name", "value": stored.list_name},
            {"metric": "exported_at", "value": stored.exported_at},
            {"metric": "places", "value": len(df)},
            {"metric": "not_importable", "value": len(everything) - len(df)},
            {"metric": "with_coordinates", "value": len(located)},
            {"metric": "missing_coordinates", "value": len(missing)},
        ]
    )

    scan_log = pd.DataFrame()
    run_path = _latest_run_json_path()
    if run_path:
        with open(run_path, "r", encoding="utf-8") as handle:
            scan_log = pd.DataFrame(json.load(handle).get("entries", []))

    os.makedirs(config.EXPORTS_DIR, exist_ok=True)
    if not dest_path:
        stamp = (stored.exported_at or "undated").replace(":", "").replace("-", "")
        dest_path = os.path.join(str(config.EXPORTS_DIR), f"places_{stamp}.xlsx")

    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Places")
        located.to_excel(writer, index=False, sheet_name="With_Coordinates")
        missing.to_excel(writer, index=False, sheet_name="Missing_Coordinates")
        summary.to_excel(writer, index=False, sheet_name="Summary")
        if not scan_log.empty:
            scan_log.to_excel(writer, index=False, sheet_name="Scan_Log")

    prune_old_exports()
    return dest_path


__all__ = ["export_places_to_excel", "is_importable", "prune_old_exports"]
