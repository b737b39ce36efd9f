from __future__ import annotations

"""Selector strategy table for the Google Maps saved-list sidebar."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SavedListSelectors:
    """Ordered CSS queries per UI role.

    Maps ships obfuscated class names that change between releases, so each
    role lists the most structural queries (``jsaction``/``role`` hooks)
    first and the brittle class-name fallbacks last. The first query whose
    match passes the role predicate wins.
    """

    scroll_container: Tuple[str, ...] = (
        '[jsaction*="pane.scroll"]',
        '[role="region"]',
        '[data-value="Saved"]',
        ".widget-pane-content",
        ".section-scrollbox",
        '[class*="scrollbox"]',
        '[class*="pane"]',
    )
    list_item: Tuple[str, ...] = (
        'button[jsaction*="pane.wfvdle"]',
        'button[jsaction*="pane."]',
        '[jsaction*="pane."] button',
        "button[jsaction][jslog]",
        'div[role="button"][jsaction]',
        'button:has(img):has([class*="font"])',
        'div[role="button"]:has(img)',
        'button:has([class*="rating"]), button:has([aria-label*="star"])',
        'button:has([dir="ltr"])',
        ".Nv2PK.THOPZb.CpccDe",
        "[data-value]",
        '[jsaction*="place"]',
    )
    heading: Tuple[str, ...] = (
        '[class*="headline"] span[dir="ltr"]',
        '[class*="title"] span[dir="ltr"]',
        'span[dir="ltr"]:not([aria-label*="star"]):not([aria-label*="כוכב"])',
        '[class*="font"][class*="large"] span[dir="ltr"]',
        '[class*="font"][class*="medium"] span[dir="ltr"]',
    )
    # Broad scan used when no heading query yields a usable label.
    label_scan: str = "span, div"
    coordinate_link: Tuple[str, ...] = ("a[href]",)
    list_title: Tuple[str, ...] = (
        "h1.fontTitleLarge",
        'h1[class*="fontTitle"]',
        'h1[class*="Title"]',
        ".title, .heading, h1, h2",
        '[class*="title"]',
    )
    metadata: Tuple[str, ...] = ("[jslog]",)
    metadata_attribute: str = "jslog"
    action_attribute: str = "jsaction"
    action_host: str = "[jsaction]"
    clickable: Tuple[str, ...] = ("button",)


SAVED_LIST_SELECTORS = SavedListSelectors()

ROLES: Tuple[str, ...] = (
    "scroll_container",
    "list_item",
    "heading",
    "coordinate_link",
    "list_title",
    "metadata",
    "clickable",
)


def queries_for(role: str, selectors: SavedListSelectors = SAVED_LIST_SELECTORS) -> Tuple[str, ...]:
    """Return the ordered queries for ``role``; unknown roles have none."""

    if role not in ROLES:
        return ()
    return getattr(selectors, role)


__all__ = [
    "SavedListSelectors",
    "SAVED_LIST_SELECTORS",
    "ROLES",
    "queries_for",
]
