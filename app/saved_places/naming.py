from __future__ import annotations

"""Place label extraction and interface-noise filtering."""

import re
from dataclasses import dataclass
from typing import Optional

from .document import safe_text
from .locators import HEADING_CHROME, NUMERIC_RE, RATING_RE, resolve_role
from .models import PlaceCandidate
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors

PLACEHOLDER_PREFIX = "Unnamed Place"
MIN_LABEL_LENGTH = 3
MAX_SCAN_LABEL_LENGTH = 100

# Interface chrome the sidebar and the place panel render as text. Matched by
# case-sensitive substring containment against the stripped label.
UI_NOISE = (
    # Hebrew
    "הערה",
    "שיתוף",
    "הוספה של הערה",
    "הוספת הערה",
    "מקום",
    "עריכה",
    "מחיקה",
    "לצפייה בתמונות",
    "סקירה כללית",
    "כרטיסים",
    "ביקורות",
    "מידע כללי",
    "מסלול",
    "נשמר",
    "שליחה לטלפון",
    "בקרבת מקום",
    "לייק",
    "כתיבת ביקורת",
    "עוד שאלות",
    "הוספת תמונות",
    # English
    "Note",
    "Share",
    "Add a note",
    "Add note",
    "Dropped pin",
    "Pin",
    "Place",
    "Location",
    "Edit",
    "Delete",
    "View photos",
    "Overview",
    "Tickets",
    "Reviews",
    "About",
    "Directions",
    "Saved",
    "Send to phone",
    "Nearby",
    "Like",
    "Write a review",
    "More questions",
    "Add photos",
)

TIMESTAMP_RE = re.compile(r"^\d+:\d+$")
PHONE_RES = (re.compile(r"^\+\d+"), re.compile(r"^\d{1,4}\s\d+"))


@dataclass
class LabelResult:
    label: str
    source: str
    selector: Optional[str] = None


def placeholder_label(ordinal: int) -> str:
    return f"{PLACEHOLDER_PREFIX} {ordinal}"


def _scan_text_ok(text: str) -> bool:
    return (
        MIN_LABEL_LENGTH - 1 < len(text) < MAX_SCAN_LABEL_LENGTH
        and "(" not in text
        and not RATING_RE.match(text)
        and text not in HEADING_CHROME
    )


def label_of(
    candidate: PlaceCandidate, *, selectors: SavedListSelectors = SAVED_LIST_SELECTORS
) -> LabelResult:
    """Derive a human-readable label for ``candidate``.

    Heading queries first, then a broad scan of text-bearing descendants,
    then a positional placeholder (which ``is_noise`` always rejects).
    """

    heading = resolve_role(candidate.handle, "heading", selectors=selectors)
    if heading.found:
        return LabelResult(safe_text(heading.element), "heading", heading.selector)

    for element in candidate.handle.query_all(selectors.label_scan):
        text = safe_text(element)
        if text and _scan_text_ok(text):
            return LabelResult(text, "scan", selectors.label_scan)

    return LabelResult(placeholder_label(candidate.ordinal), "placeholder")


def noise_reason(label: str) -> Optional[str]:
    """Return why ``label`` is interface noise, or ``None`` for a usable name."""

    text = (label or "").strip()
    if len(text) < MIN_LABEL_LENGTH:
        return "too_short"
    if text.startswith(PLACEHOLDER_PREFIX):
        return "placeholder"
    if NUMERIC_RE.match(text):
        return "numeric"
    if RATING_RE.match(text):
        return "rating"
    if TIMESTAMP_RE.match(text):
        return "timestamp"
    if any(pattern.match(text) for pattern in PHONE_RES):
        return "phone"
    for chrome in UI_NOISE:
        if chrome in text:
            return f"ui:{chrome}"
    return None


def is_noise(label: str) -> bool:
    return noise_reason(label) is not None


__all__ = [
    "LabelResult",
    "PLACEHOLDER_PREFIX",
    "UI_NOISE",
    "is_noise",
    "label_of",
    "noise_reason",
    "placeholder_label",
]
