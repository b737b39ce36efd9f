from __future__ import annotations

"""Structural query interface the extraction core runs against.

The core never talks to Playwright or BeautifulSoup directly. It receives a
``StructuredDocument`` and only uses the operations below, so every query may
come back empty and every command may turn out to have no visible effect.
"""

from typing import List, Optional, Protocol


class DocumentElement(Protocol):
    def query_all(self, selector: str) -> List["DocumentElement"]:
        """Return descendants matching ``selector`` in document order."""

    def closest(self, selector: str) -> Optional["DocumentElement"]:
        """Return the element itself or its nearest ancestor matching ``selector``."""

    def text(self) -> str:
        """Return the rendered text of the element (may be empty)."""

    def attribute(self, name: str) -> Optional[str]:
        ...

    def scroll_height(self) -> int:
        ...

    def client_height(self) -> int:
        ...

    def scroll_to_end(self) -> None:
        ...

    def click(self) -> None:
        ...


class StructuredDocument(Protocol):
    def query_all(self, selector: str) -> List[DocumentElement]:
        ...

    def location(self) -> str:
        """Return the current location reference (page URL)."""

    def go_back(self) -> None:
        """Issue a single history "back" command."""

    def wait(self, seconds: float) -> None:
        """Suspend for a fixed settle interval."""


def first_match(
    root: StructuredDocument | DocumentElement, selector: str
) -> Optional[DocumentElement]:
    """Return the first element under ``root`` matching ``selector``, if any."""

    found = root.query_all(selector)
    return found[0] if found else None


def safe_text(element: Optional[DocumentElement]) -> str:
    """Return stripped element text, or an empty string when unavailable."""

    if element is None:
        return ""
    try:
        return (element.text() or "").strip()
    except Exception:  # noqa: BLE001
        return ""


__all__ = ["DocumentElement", "StructuredDocument", "first_match", "safe_text"]
