"""Persist the exported place list for later pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .models import PlaceRecord
from .utils import load_json_file, log_line, save_json_file


@dataclass
class StoredExport:
    places: List[PlaceRecord]
    list_name: str
    exported_at: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "places": [place.to_dict() for place in self.places],
            "list_name": self.list_name,
            "exported_at": self.exported_at,
        }


def _export_path(path: Optional[Path]) -> Path:
    return Path(path) if path is not None else config.EXPORT_FILE


def save_export(
    records: Sequence[PlaceRecord],
    list_name: str,
    *,
    exported_at: Optional[datetime] = None,
    path: Optional[Path] = None,
) -> StoredExport:
    """Write the run's records as one document, replacing any previous export."""

    stamp = (exported_at or datetime.now(timezone.utc)).isoformat(timespec="seconds")
    stored = StoredExport(places=list(records), list_name=list_name, exported_at=stamp)
    target = _export_path(path)
    save_json_file(target, stored.to_dict())
    log_line(f"[EXPORT] Saved {len(stored.places)} place(s) from {list_name!r} -> {target}")
    return stored


def load_export(path: Optional[Path] = None) -> Optional[StoredExport]:
    """Load the stored export, or ``None`` when nothing usable is stored."""

    data = load_json_file(_export_path(path))
    if not isinstance(data, dict):
        return None

    places: List[PlaceRecord] = []
    for item in data.get("places") or []:
        if not isinstance(item, dict):
            continue
        try:
            places.append(PlaceRecord.from_dict(item))
        except (TypeError, ValueError) as exc:
            log_line(f"[EXPORT][WARN] Dropping malformed stored place {item!r}: {exc}")
    return StoredExport(
        places=places,
        list_name=str(data.get("list_name") or config.DEFAULT_LIST_TITLE),
        exported_at=data.get("exported_at"),
    )


def clear_export(path: Optional[Path] = None) -> bool:
    """Remove the stored export; return ``True`` if a file was deleted."""

    try:
        _export_path(path).unlink()
    except FileNotFoundError:
        return False
    log_line("[EXPORT] Cleared stored places")
    return True


__all__ = ["StoredExport", "clear_export", "load_export", "save_export"]
