from __future__ import annotations

"""Extraction loop: one pass per list position up to the safety cap."""

import urllib.parse
from dataclasses import dataclass, field
from typing import List, Optional

from . import config
from .coordinates import CoordinateResolution, CoordinateResolver
from .discovery import current_items, hydrate_candidate
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .models import PlaceCandidate, PlaceRecord
from .naming import label_of, noise_reason
from .recovery import reestablish_list_view
from .session import ExtractionSession
from .telemetry import RunTelemetry
from .utils import log_line


@dataclass
class ItemOutcome:
    position: int
    status: str
    label: Optional[str] = None
    reason: Optional[str] = None
    strategy: Optional[str] = None


@dataclass
class ExtractionResult:
    records: List[PlaceRecord]
    list_title: str
    scanned: int = 0
    aborted: bool = False
    abort_reason: Optional[str] = None
    outcomes: List[ItemOutcome] = field(default_factory=list)


def search_link(name: str, *, suffix: Optional[str] = None) -> str:
    """Text-search fallback link for a place without coordinates."""

    suffix = config.FALLBACK_SEARCH_SUFFIX if suffix is None else suffix
    return config.SEARCH_URL_BASE + urllib.parse.quote(name + suffix, safe="!~*'()")


def _is_deep_link(link: Optional[str]) -> bool:
    return bool(link) and link.lower().startswith(("http://", "https://"))


def build_link(candidate: PlaceCandidate, name: str, coords: CoordinateResolution) -> str:
    """Pick the record link: deep link, else replay action, else search.

    Without coordinates a replay action is useless downstream, so anything
    short of a real deep link becomes a search link.
    """

    link: Optional[str] = None
    if candidate.action:
        link = f"javascript:{candidate.action.split(';')[0]}"
    if candidate.link:
        link = candidate.link
    if not coords.found and not _is_deep_link(link):
        link = search_link(name)
    return link or search_link(name)


def _record_outcome(
    result: ExtractionResult,
    telemetry: Optional[RunTelemetry],
    outcome: ItemOutcome,
) -> None:
    result.outcomes.append(outcome)
    if telemetry is not None:
        telemetry.add(
            outcome.status,
            outcome.reason or "",
            {"position": outcome.position, "label": outcome.label, "strategy": outcome.strategy},
        )


def _list_view_restored(session: ExtractionSession) -> bool:
    try:
        return reestablish_list_view(session)
    except Exception as exc:  # noqa: BLE001
        log_line(f"[EXTRACT][ERROR] List view check failed: {exc}")
        return False


def extract(
    session: ExtractionSession,
    *,
    resolver: Optional[CoordinateResolver] = None,
    telemetry: Optional[RunTelemetry] = None,
    item_delay: Optional[float] = None,
) -> ExtractionResult:
    """Return the best available ordered record sequence; never raises.

    The candidate list is re-read on every iteration because it is
    virtualized and changes after each probe. The position counter advances
    on every scanned item, accepted or not, so ``session.safety_cap`` bounds
    list-scan attempts rather than accepted places.
    """

    document = session.document
    resolver = resolver or CoordinateResolver(document, selectors=session.selectors)
    item_delay = config.PER_ITEM_DELAY_SECONDS if item_delay is None else item_delay
    result = ExtractionResult(records=[], list_title=session.list_title)

    log_line(f"[EXTRACT] Starting coordinate extraction for list {session.list_title!r}")
    position = 0
    while position < session.safety_cap and not session.aborted:
        if not _list_view_restored(session):
            log_line(
                f"[EXTRACT][WARN] No longer on saved list page. Stopping. "
                f"Expected: {session.list_title!r}"
            )
            session.abort(ErrorCode.SESSION_LOST)
            break

        try:
            candidates = current_items(
                document,
                selectors=session.selectors,
                hydrate=False,
                diagnostics=position == 0,
            )
        except Exception as exc:  # noqa: BLE001
            log_line(f"[EXTRACT][ERROR] Discovery failed at position {position}: {exc}")
            session.abort(ErrorCode.INTERNAL)
            break

        if not candidates:
            log_line("[EXTRACT] No more place cards found. Processing complete.")
            break
        if position >= len(candidates):
            log_line("[EXTRACT] All available places have been processed.")
            break

        session.processed += 1
        label: Optional[str] = None
        try:
            candidate = hydrate_candidate(candidates[position], selectors=session.selectors)
            label = label_of(candidate, selectors=session.selectors).label
            rejected = noise_reason(label)
            if rejected:
                log_line(f"[NAME] Skipping UI element/invalid: {label!r} ({rejected})")
                _record_outcome(
                    result,
                    telemetry,
                    ItemOutcome(position, "skipped", label, f"{ErrorCode.NOISE_LABEL}:{rejected}"),
                )
                position += 1
                continue

            log_line(
                f"[EXTRACT] Processing place {len(result.records) + 1}: {label} "
                f"(card {position + 1}/{len(candidates)})"
            )
            coords = resolver.resolve(candidate, label)
        except Exception as exc:  # noqa: BLE001
            log_line(f"[EXTRACT][WARN] Item at position {position} failed: {exc}")
            _record_outcome(result, telemetry, ItemOutcome(position, "failed", label, ErrorCode.INTERNAL))
            position += 1
            continue

        if coords.lost:
            log_line(f"[EXTRACT][WARN] Recovery exhausted after probing {label!r}")
        if not _list_view_restored(session):
            log_line(
                f"[EXTRACT][ERROR] Could not recover saved list page. "
                f"Stopping at place {len(result.records) + 1}."
            )
            _record_outcome(
                result, telemetry, ItemOutcome(position, "failed", label, ErrorCode.SESSION_LOST)
            )
            session.abort(ErrorCode.SESSION_LOST)
            break

        name = label.strip()
        record = PlaceRecord(
            name=name,
            link=build_link(candidate, name, coords),
            latitude=coords.latitude if coords.found else None,
            longitude=coords.longitude if coords.found else None,
        )
        result.records.append(record)
        _record_outcome(
            result,
            telemetry,
            ItemOutcome(position, "accepted", name, coords.reason, coords.strategy),
        )
        log_line(f"[EXTRACT] Place {len(result.records)}: {record.to_dict()}")

        position += 1
        document.wait(item_delay)

    result.scanned = position
    result.aborted = session.aborted
    result.abort_reason = session.abort_reason
    _scraper_event(
        "extract",
        phase="end",
        list_title=session.list_title,
        records=len(result.records),
        scanned=result.scanned,
        aborted=result.aborted,
        abort_reason=result.abort_reason,
    )
    return result


__all__ = ["ExtractionResult", "ItemOutcome", "build_link", "extract", "search_link"]
