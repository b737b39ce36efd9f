from __future__ import annotations

"""Drive the virtualized sidebar until it stops growing."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from . import config
from .document import DocumentElement, StructuredDocument
from .locators import resolve_role
from .logging_utils import _scraper_event
from .retry_policy import poll_until
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors
from .utils import log_line, short_text

# Generic fallback: any sizeable element that scrolls.
FALLBACK_SCAN_SELECTOR = "div, section"
FALLBACK_MIN_CLIENT_HEIGHT = 200
FALLBACK_MIN_SCROLL_HEIGHT = 300


@dataclass
class ScrollSummary:
    container_found: bool
    selector: Optional[str] = None
    attempts: int = 0
    final_height: int = 0
    stalled: bool = False


def _is_sizeable_scroller(element: DocumentElement) -> bool:
    scroll_height = element.scroll_height()
    client_height = element.client_height()
    return (
        scroll_height > client_height
        and client_height > FALLBACK_MIN_CLIENT_HEIGHT
        and scroll_height > FALLBACK_MIN_SCROLL_HEIGHT
    )


def _scrollable_elements(document: StructuredDocument, limit: int = 5) -> List[Dict[str, Any]]:
    found: List[Dict[str, Any]] = []
    for element in document.query_all(FALLBACK_SCAN_SELECTOR):
        if element.scroll_height() <= element.client_height():
            continue
        found.append(
            {
                "class": short_text(element.attribute("class"), 40),
                "scroll_height": element.scroll_height(),
                "client_height": element.client_height(),
            }
        )
        if len(found) >= limit:
            break
    return found


def find_scroll_container(
    document: StructuredDocument, *, selectors: SavedListSelectors = SAVED_LIST_SELECTORS
) -> tuple[Optional[DocumentElement], Optional[str]]:
    """Return the sidebar scroll container and the query that located it."""

    resolution = resolve_role(document, "scroll_container", selectors=selectors)
    if resolution.found:
        return resolution.element, resolution.selector

    for element in document.query_all(FALLBACK_SCAN_SELECTOR):
        if _is_sizeable_scroller(element):
            return element, FALLBACK_SCAN_SELECTOR
    return None, None


def load_all(
    document: StructuredDocument,
    max_attempts: Optional[int] = None,
    *,
    settle_seconds: Optional[float] = None,
    selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
) -> ScrollSummary:
    """Scroll the sidebar to its end until its height stops changing.

    A missing container is a no-op: extraction proceeds on whatever is
    already rendered.
    """

    max_attempts = config.SCROLL_MAX_ATTEMPTS if max_attempts is None else max_attempts
    settle_seconds = config.SCROLL_SETTLE_SECONDS if settle_seconds is None else settle_seconds

    container, selector = find_scroll_container(document, selectors=selectors)
    if container is None:
        log_line("[SCROLL][WARN] Sidebar not found; make sure a saved list is open.")
        _scraper_event(
            "scroll",
            phase="load_all",
            kind="container_not_found",
            scrollable=_scrollable_elements(document),
        )
        return ScrollSummary(container_found=False)

    log_line(f"[SCROLL] Found scrollable sidebar using selector: {selector}")
    # Seeded with 0: the first scroll never counts as a stall.
    heights = [0]

    def _stalled() -> bool:
        height = container.scroll_height()
        log_line(f"[SCROLL] Scroll attempt {len(heights)}, height: {height}")
        unchanged = height == heights[-1]
        heights.append(height)
        return unchanged

    outcome = poll_until(
        _stalled,
        settle_seconds,
        max_attempts,
        wait=document.wait,
        action=container.scroll_to_end,
        label="scroll_load",
    )
    if outcome.satisfied:
        log_line("[SCROLL] No more new content loaded.")
    else:
        log_line(f"[SCROLL][WARN] Stopped after {outcome.attempts} attempts; list may be partial.")

    summary = ScrollSummary(
        container_found=True,
        selector=selector,
        attempts=outcome.attempts,
        final_height=heights[-1],
        stalled=outcome.satisfied,
    )
    _scraper_event(
        "scroll",
        phase="load_all",
        selector=selector,
        attempts=summary.attempts,
        final_height=summary.final_height,
        stalled=summary.stalled,
    )
    return summary


__all__ = ["ScrollSummary", "find_scroll_container", "load_all"]
