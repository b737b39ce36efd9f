"""Export the places of a Google Maps saved list.

Workflow:

- Open the saved list in a persistent Chromium profile (sign in once).
- Scroll the sidebar until the virtualized list stops growing.
- Walk the list one card at a time, filter interface noise, and recover
  coordinates from card metadata, card links, or by clicking the card and
  reading the place URL before navigating back.
- Store the records as a single export document for later stages.
"""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from . import config
from .config_validation import validate_runtime_config
from .document import StructuredDocument
from .export_excel import export_places_to_excel
from .extraction import ExtractionResult, extract
from .logging_utils import _scraper_event
from .playwright_document import open_saved_list
from .scroll_loader import load_all
from .selectors_saved_list import SAVED_LIST_SELECTORS
from .session import ExtractionSession
from .storage import save_export
from .telemetry import RunTelemetry
from .utils import ensure_dirs, log_line, setup_run_logger


def _log_empty_run_hints() -> None:
    log_line("[EXPORT][WARN] No usable places found. Try the following:")
    log_line("[EXPORT][WARN] 1. Make sure the URL opens a Google Maps saved list")
    log_line("[EXPORT][WARN] 2. Make sure the browser profile is signed in")
    log_line("[EXPORT][WARN] 3. Make sure the list has places in it")


def _save_snapshot(document: StructuredDocument, snapshot_path: Path) -> None:
    content = getattr(document, "content", None)
    if not callable(content):
        return
    try:
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        snapshot_path.write_text(content(), encoding="utf-8")
        log_line(f"[EXPORT] Saved page snapshot -> {snapshot_path}")
    except Exception as exc:  # noqa: BLE001
        log_line(f"[EXPORT][WARN] Failed to save page snapshot: {exc}")


def snapshot_target(value: Optional[str]) -> Optional[Path]:
    """Resolve ``--snapshot``: absent, bare flag, or an explicit path.

    The bare flag picks a timestamped file under ``config.SNAPSHOTS_DIR``.
    """

    if value is None:
        return None
    if value:
        return Path(value)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return config.SNAPSHOTS_DIR / f"list_{stamp}.html"


def export_from_document(
    document: StructuredDocument,
    *,
    telemetry: Optional[RunTelemetry] = None,
    safety_cap: Optional[int] = None,
    max_scrolls: Optional[int] = None,
    persist: bool = True,
    snapshot_path: Optional[Path] = None,
) -> ExtractionResult:
    """Run the full pipeline (scroll, extract, persist) on an open list."""

    scroll = load_all(document, max_scrolls, selectors=SAVED_LIST_SELECTORS)
    if snapshot_path is not None:
        _save_snapshot(document, snapshot_path)

    session = ExtractionSession.start(document, safety_cap=safety_cap)
    log_line(f"[EXPORT] List name: {session.list_title!r}")

    result = extract(session, telemetry=telemetry)

    if not result.records:
        _log_empty_run_hints()
    elif persist:
        save_export(result.records, result.list_title)

    if telemetry is not None:
        telemetry.finalize(
            {
                "list_title": result.list_title,
                "records": len(result.records),
                "scanned": result.scanned,
                "aborted": result.aborted,
                "abort_reason": result.abort_reason,
                "scroll_attempts": scroll.attempts,
                "scroll_container_found": scroll.container_found,
            }
        )
    return result


def run_export(
    list_url: str,
    *,
    headless: Optional[bool] = None,
    safety_cap: Optional[int] = None,
    max_scrolls: Optional[int] = None,
    persist: bool = True,
    snapshot_path: Optional[Path] = None,
) -> ExtractionResult:
    """Open ``list_url`` in Playwright and export its places."""

    if not config.is_maps_url(list_url):
        raise ValueError(f"Not a Google Maps URL: {list_url[:50]}")

    ensure_dirs()
    setup_run_logger()
    _scraper_event("export", phase="start", url=list_url, safety_cap=safety_cap)

    telemetry = RunTelemetry("live")
    with open_saved_list(
        list_url,
        headless=headless,
        ready_selectors=SAVED_LIST_SELECTORS.scroll_container,
    ) as document:
        result = export_from_document(
            document,
            telemetry=telemetry,
            safety_cap=safety_cap,
            max_scrolls=max_scrolls,
            persist=persist,
            snapshot_path=snapshot_path,
        )

    log_line(
        f"[EXPORT] Exported {len(result.records)} place(s) from {result.list_title!r}"
        + (f" (stopped early: {result.abort_reason})" if result.aborted else "")
    )
    return result


def _cli_entrypoint(argv: Optional[List[str]] = None) -> int:  # pragma: no cover
    parser = argparse.ArgumentParser(description="Export a Google Maps saved list")
    parser.add_argument("url", help="URL of the saved list in Google Maps")
    parser.add_argument("--headless", action="store_true", default=None)
    parser.add_argument("--safety-cap", type=int, default=None)
    parser.add_argument("--max-scrolls", type=int, default=None)
    parser.add_argument(
        "--snapshot",
        nargs="?",
        const="",
        default=None,
        help="Save the loaded list HTML for offline replay (default: under SNAPSHOTS_DIR)",
    )
    parser.add_argument("--no-save", action="store_true", help="Do not store the export")
    parser.add_argument("--excel", action="store_true", help="Also write an Excel workbook")
    args = parser.parse_args(argv)

    ensure_dirs()
    validate_runtime_config("cli")

    try:
        result = run_export(
            args.url,
            headless=args.headless,
            safety_cap=args.safety_cap,
            max_scrolls=args.max_scrolls,
            persist=not args.no_save,
            snapshot_path=snapshot_target(args.snapshot),
        )
    except ValueError as exc:
        parser.error(str(exc))

    if args.excel and result.records and not args.no_save:
        log_line(f"[EXPORT] Workbook -> {export_places_to_excel()}")
    return 0 if result.records else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(_cli_entrypoint())

__all__ = ["export_from_document", "run_export", "snapshot_target", "_cli_entrypoint"]
