"""Per-run scan log for export runs."""

from __future__ import annotations

import json
import os
import time
import uuid
from collections import Counter
from typing import Any, Dict, List, Optional

from . import config


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


class RunTelemetry:
    """Collect one entry per scanned list position.

    Entries keep the item's status (``accepted``, ``skipped``, ``failed``),
    its reason code and the coordinate strategy that produced the record.
    ``finalize`` writes them to ``run_<id>.json`` under the runs directory,
    which the Excel export reads back as its scan log.
    """

    def __init__(self, source: str, runs_dir: Optional[str] = None) -> None:
        self.run_id = f"{_ts()}_{uuid.uuid4().hex[:8]}"
        self.source = source
        self.runs_dir = runs_dir or str(config.RUNS_DIR)
        self.started_at = time.time()
        self.entries: List[Dict[str, Any]] = []
        self.statuses: Counter = Counter()
        self.strategies: Counter = Counter()
        self.path: Optional[str] = None

    def add(self, status: str, reason: str, meta: Dict[str, Any]) -> None:
        entry = {"status": status, "reason": reason or None, **meta}
        self.entries.append(entry)
        self.statuses[status] += 1
        if status == "accepted":
            self.strategies[meta.get("strategy") or "search_link"] += 1

    def summary(self) -> Dict[str, int]:
        counts = {f"count_{status}": total for status, total in sorted(self.statuses.items())}
        counts.update(
            {f"via_{strategy}": total for strategy, total in sorted(self.strategies.items())}
        )
        return counts

    def finalize(self, extra: Optional[Dict[str, Any]] = None) -> str:
        payload = {
            "run_id": self.run_id,
            "source": self.source,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "summary": self.summary(),
            "entries": self.entries,
            **(extra or {}),
        }
        os.makedirs(self.runs_dir, exist_ok=True)
        self.path = os.path.join(self.runs_dir, f"run_{self.run_id}.json")
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        return self.path


__all__ = ["RunTelemetry"]
