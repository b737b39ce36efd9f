from __future__ import annotations

"""Role resolution over the selector strategy table."""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .document import DocumentElement, StructuredDocument, safe_text
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors, queries_for

Predicate = Callable[[DocumentElement], bool]

NUMERIC_RE = re.compile(r"^\d+$")
RATING_RE = re.compile(r"^\d+\.\d+$")

# Exact strings the sidebar renders inside card headings next to the name.
HEADING_CHROME = frozenset({"הערה", "שיתוף", "Note", "Share", "Dropped pin"})
_STAR_WORDS = ("star", "כוכב")


def is_heading_text(text: str) -> bool:
    """Return ``True`` when ``text`` is plausible as a place heading."""

    text = (text or "").strip()
    if not 2 < len(text) < 100:
        return False
    if NUMERIC_RE.match(text) or RATING_RE.match(text):
        return False
    if text in HEADING_CHROME:
        return False
    if "(" in text:
        # Review counts render as "(1,234)".
        return False
    return not any(word in text for word in _STAR_WORDS)


def _scrolls(element: DocumentElement) -> bool:
    return element.scroll_height() > element.client_height()


def _has_text(element: DocumentElement) -> bool:
    return bool(safe_text(element))


ROLE_PREDICATES: Dict[str, Predicate] = {
    "scroll_container": _scrolls,
    "heading": lambda element: is_heading_text(safe_text(element)),
    "list_title": _has_text,
}


@dataclass
class RoleResolution:
    role: str
    found: bool
    selector: Optional[str] = None
    elements: List[DocumentElement] = field(default_factory=list)

    @property
    def element(self) -> Optional[DocumentElement]:
        return self.elements[0] if self.elements else None


def resolve_role(
    root: StructuredDocument | DocumentElement,
    role: str,
    *,
    selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
    predicate: Optional[Predicate] = None,
) -> RoleResolution:
    """Try each query for ``role`` in order; first query with a valid match wins.

    ``predicate`` overrides the role's default validity check. A role with no
    winning query resolves to ``found=False``; that is a normal outcome.
    """

    check = predicate or ROLE_PREDICATES.get(role)
    for selector in queries_for(role, selectors):
        matches = root.query_all(selector)
        if not matches:
            continue
        valid = [element for element in matches if check is None or check(element)]
        if valid:
            return RoleResolution(role=role, found=True, selector=selector, elements=valid)
    return RoleResolution(role=role, found=False)


def read_list_title(
    document: StructuredDocument, *, selectors: SavedListSelectors = SAVED_LIST_SELECTORS
) -> Optional[str]:
    """Return the visible list title, or ``None`` when no title role resolves."""

    resolution = resolve_role(document, "list_title", selectors=selectors)
    if not resolution.found:
        return None
    return safe_text(resolution.element) or None


__all__ = [
    "HEADING_CHROME",
    "NUMERIC_RE",
    "RATING_RE",
    "ROLE_PREDICATES",
    "RoleResolution",
    "is_heading_text",
    "read_list_title",
    "resolve_role",
]
