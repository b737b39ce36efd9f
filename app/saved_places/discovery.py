from __future__ import annotations

"""Re-resolve the saved list's place cards from the live document."""

from typing import List, Optional

from .document import DocumentElement, StructuredDocument, first_match, safe_text
from .locators import resolve_role
from .logging_utils import _scraper_event
from .models import PlaceCandidate
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors
from .utils import log_line, short_text

MIN_CARD_TEXT_LENGTH = 3


def _action_of(element: DocumentElement, selectors: SavedListSelectors) -> Optional[str]:
    own = element.attribute(selectors.action_attribute)
    if own:
        return own
    host = element.closest(selectors.action_host)
    return host.attribute(selectors.action_attribute) if host is not None else None


def _qualifies(element: DocumentElement, selectors: SavedListSelectors) -> bool:
    if len(safe_text(element)) <= MIN_CARD_TEXT_LENGTH:
        return False
    return bool(_action_of(element, selectors))


def _link_of(element: DocumentElement, selectors: SavedListSelectors) -> Optional[str]:
    for selector in selectors.coordinate_link:
        anchor = first_match(element, selector) or element.closest(selector)
        if anchor is not None:
            href = (anchor.attribute("href") or "").strip()
            if href:
                return href
    return None


def _metadata_of(element: DocumentElement, selectors: SavedListSelectors) -> Optional[str]:
    for selector in selectors.metadata:
        host = first_match(element, selector)
        if host is not None:
            return host.attribute(selectors.metadata_attribute)
    return element.attribute(selectors.metadata_attribute)


def hydrate_candidate(
    candidate: PlaceCandidate, *, selectors: SavedListSelectors = SAVED_LIST_SELECTORS
) -> PlaceCandidate:
    """Read the auxiliary link and inline metadata payload of ``candidate``."""

    candidate.link = _link_of(candidate.handle, selectors)
    candidate.metadata = _metadata_of(candidate.handle, selectors)
    return candidate


def _log_discovery_diagnostics(document: StructuredDocument) -> None:
    actions = [
        short_text(element.attribute("jsaction"), 50)
        for element in document.query_all("[jsaction]")[:3]
    ]
    _scraper_event(
        "discover",
        phase="diagnostics",
        buttons_with_jsaction=len(document.query_all("button[jsaction]")),
        rating_elements=len(document.query_all('[aria-label*="star"], [class*="rating"]')),
        sample_jsactions=actions,
    )


def current_items(
    document: StructuredDocument,
    *,
    selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
    hydrate: bool = True,
    diagnostics: bool = False,
) -> List[PlaceCandidate]:
    """Return the place cards currently rendered, in document order.

    Never cache the result across interactions: handles go stale when the
    list re-renders, and the item at a given index may change. With
    ``hydrate=False`` only text and action are read; call
    ``hydrate_candidate`` for the one item about to be processed.
    """

    resolution = resolve_role(
        document,
        "list_item",
        selectors=selectors,
        predicate=lambda element: _qualifies(element, selectors),
    )
    if not resolution.found:
        log_line("[DISCOVER] No place cards found.")
        if diagnostics:
            _log_discovery_diagnostics(document)
        return []

    candidates = [
        PlaceCandidate(
            handle=element,
            ordinal=index + 1,
            text=safe_text(element),
            action=_action_of(element, selectors),
        )
        for index, element in enumerate(resolution.elements)
    ]
    if hydrate:
        for candidate in candidates:
            hydrate_candidate(candidate, selectors=selectors)
    if diagnostics:
        log_line(
            f"[DISCOVER] {len(candidates)} potential place cards found using selector: "
            f"{resolution.selector}"
        )
    return candidates


__all__ = ["current_items", "hydrate_candidate"]
