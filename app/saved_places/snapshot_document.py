"""Offline ``StructuredDocument`` over a saved HTML page.

Used by the replay harness and by tests. Queries run through BeautifulSoup's
CSS support; commands (scroll, click, back) have no effect and the location
never changes, so only the side-effect-free coordinate strategies can succeed.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from .utils import log_line


class SnapshotElement:
    def __init__(self, tag: Tag) -> None:
        self.tag = tag

    def query_all(self, selector: str) -> List["SnapshotElement"]:
        try:
            return [SnapshotElement(t) for t in self.tag.select(selector)]
        except SelectorSyntaxError:
            return []

    def closest(self, selector: str) -> Optional["SnapshotElement"]:
        try:
            found = self.tag.css.closest(selector)
        except SelectorSyntaxError:
            return None
        return SnapshotElement(found) if found is not None else None

    def text(self) -> str:
        return " ".join(self.tag.stripped_strings)

    def attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def scroll_height(self) -> int:
        return 0

    def client_height(self) -> int:
        return 0

    def scroll_to_end(self) -> None:
        return None

    def click(self) -> None:
        return None


class SnapshotDocument:
    def __init__(self, html: str, *, location: str = "about:blank") -> None:
        self.soup = BeautifulSoup(html, "html5lib")
        self._location = location
        self.waited_seconds = 0.0

    @classmethod
    def from_path(cls, path: Path, *, location: str = "about:blank") -> "SnapshotDocument":
        return cls(Path(path).read_text(encoding="utf-8", errors="ignore"), location=location)

    def query_all(self, selector: str) -> List[SnapshotElement]:
        try:
            return [SnapshotElement(t) for t in self.soup.select(selector)]
        except SelectorSyntaxError as exc:
            log_line(f"[DOC][WARN] Unsupported selector {selector!r}: {exc}")
            return []

    def location(self) -> str:
        return self._location

    def go_back(self) -> None:
        return None

    def wait(self, seconds: float) -> None:
        # Nothing renders asynchronously in a snapshot; only account for time.
        self.waited_seconds += max(0.0, seconds or 0.0)


__all__ = ["SnapshotDocument", "SnapshotElement"]
