"""Run-scoped and probe-scoped navigation state.

Nothing here is global: the session and recovery snapshots are passed into
every operation that reads or mutates the page's navigation state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import config
from .document import StructuredDocument
from .locators import read_list_title
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors


@dataclass(frozen=True)
class ListViewIdentity:
    location: str
    title: Optional[str]

    def shows_list(self, expected: "ListViewIdentity") -> bool:
        """Return ``True`` when the visible title still names ``expected``'s list."""

        if not expected.title:
            return True
        return bool(self.title) and expected.title in self.title

    def matches(self, expected: "ListViewIdentity") -> bool:
        """Strict check: same location and the expected list title visible."""

        return self.location == expected.location and self.shows_list(expected)


def capture_identity(
    document: StructuredDocument, *, selectors: SavedListSelectors = SAVED_LIST_SELECTORS
) -> ListViewIdentity:
    return ListViewIdentity(
        location=document.location(),
        title=read_list_title(document, selectors=selectors),
    )


@dataclass
class NavigationRecoveryState:
    """Pre-navigation snapshot held for one coordinate probe."""

    snapshot: ListViewIdentity

    @classmethod
    def capture(
        cls,
        document: StructuredDocument,
        *,
        selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
    ) -> "NavigationRecoveryState":
        return cls(snapshot=capture_identity(document, selectors=selectors))


@dataclass
class ExtractionSession:
    document: StructuredDocument
    identity: ListViewIdentity
    safety_cap: int = config.EXTRACT_SAFETY_CAP
    selectors: SavedListSelectors = SAVED_LIST_SELECTORS
    processed: int = 0
    aborted: bool = False
    abort_reason: Optional[str] = None

    @classmethod
    def start(
        cls,
        document: StructuredDocument,
        *,
        safety_cap: Optional[int] = None,
        selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
    ) -> "ExtractionSession":
        identity = capture_identity(document, selectors=selectors)
        return cls(
            document=document,
            identity=identity,
            safety_cap=config.EXTRACT_SAFETY_CAP if safety_cap is None else safety_cap,
            selectors=selectors,
        )

    @property
    def list_title(self) -> str:
        return self.identity.title or config.DEFAULT_LIST_TITLE

    def on_list_view(self) -> bool:
        """Independent check that the saved list is still the visible view."""

        return capture_identity(self.document, selectors=self.selectors).shows_list(self.identity)

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason


__all__ = [
    "ExtractionSession",
    "ListViewIdentity",
    "NavigationRecoveryState",
    "capture_identity",
]
