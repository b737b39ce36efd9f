from __future__ import annotations

"""Recover a place's latitude/longitude from a saved-list card.

Three strategies, cheapest first:

- ``metadata``: base64 payload inside the card's ``jslog`` attribute.
- ``link``: coordinate conventions inside the card's ``href``.
- ``navigation``: click the card, wait for the tab URL to change, read the
  coordinates from the new URL, then navigate back.

Only ``navigation`` touches page state, and it always hands over to the
recovery supervisor once the URL has changed.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import config
from .document import StructuredDocument, first_match
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .models import PlaceCandidate
from .recovery import NavigationRecoverySupervisor, RecoveryOutcome
from .retry_policy import poll_until
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors
from .session import NavigationRecoveryState
from .utils import log_line, short_text

# Priority order matters: "!3d/!4d" is the place pin, "@" is the viewport centre.
COORDINATE_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("data_3d4d", re.compile(r"!3d(-?\d+\.\d+)!4d(-?\d+\.\d+)")),
    ("at_sign", re.compile(r"@(-?\d+\.\d+),(-?\d+\.\d+)")),
    ("ll_param", re.compile(r"ll=(-?\d+\.\d+),(-?\d+\.\d+)")),
    ("center_param", re.compile(r"center=(-?\d+\.\d+),(-?\d+\.\d+)")),
)
METADATA_BLOB_RE = re.compile(r"metadata:(\[.*?\])")
DECIMAL_PAIR_RE = re.compile(r"(-?\d+\.\d+),(-?\d+\.\d+)")

STRATEGIES: Tuple[str, ...] = ("metadata", "link", "navigation")


@dataclass
class CoordinateMatch:
    latitude: float
    longitude: float
    convention: str


@dataclass
class CoordinateResolution:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    strategy: Optional[str] = None
    convention: Optional[str] = None
    reason: Optional[str] = None
    navigated: bool = False
    recovery: Optional[RecoveryOutcome] = None
    attempted: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def lost(self) -> bool:
        return self.recovery is not None and not self.recovery.recovered


def _in_range(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def _pair(match: "re.Match[str]", convention: str) -> Optional[CoordinateMatch]:
    latitude, longitude = float(match.group(1)), float(match.group(2))
    if not _in_range(latitude, longitude):
        return None
    return CoordinateMatch(latitude, longitude, convention)


def match_coordinates(text: Optional[str]) -> Optional[CoordinateMatch]:
    """Match the known URL conventions against ``text``; first hit wins."""

    if not text:
        return None
    for convention, pattern in COORDINATE_PATTERNS:
        match = pattern.search(text)
        if match:
            found = _pair(match, convention)
            if found is not None:
                return found
    return None


def decode_metadata(raw: Optional[str]) -> Optional[str]:
    """Decode the base64 blob of a ``jslog`` ``metadata:[...]`` entry."""

    if not raw or "metadata" not in raw:
        return None
    blob = METADATA_BLOB_RE.search(raw)
    if not blob:
        return None
    # The array wraps a single quoted string: ["<base64>"].
    encoded = blob.group(1)[2:-2]
    if not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded + "=" * (-len(encoded) % 4))
    except (binascii.Error, ValueError):
        return None
    return decoded.decode("utf-8", errors="ignore")


def coordinates_from_metadata(raw: Optional[str]) -> Optional[CoordinateMatch]:
    decoded = decode_metadata(raw)
    if not decoded:
        return None
    match = DECIMAL_PAIR_RE.search(decoded)
    return _pair(match, "metadata_pair") if match else None


class CoordinateResolver:
    def __init__(
        self,
        document: StructuredDocument,
        *,
        selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
        supervisor: Optional[NavigationRecoverySupervisor] = None,
        poll_interval: Optional[float] = None,
        poll_attempts: Optional[int] = None,
    ) -> None:
        self.document = document
        self.selectors = selectors
        self.supervisor = supervisor or NavigationRecoverySupervisor(document, selectors=selectors)
        self.poll_interval = (
            config.CLICK_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        )
        self.poll_attempts = (
            config.CLICK_POLL_MAX_ATTEMPTS if poll_attempts is None else poll_attempts
        )

    def resolve(self, candidate: PlaceCandidate, label: str) -> CoordinateResolution:
        """Return coordinates for ``candidate`` or an absent pair; never raises."""

        attempted: List[str] = []
        result = CoordinateResolution(reason=ErrorCode.NOT_FOUND)
        for strategy in STRATEGIES:
            attempted.append(strategy)
            try:
                result = getattr(self, f"_from_{strategy}")(candidate, label)
            except Exception as exc:  # noqa: BLE001
                log_line(f"[COORDS][WARN] {strategy} strategy failed for {label}: {exc}")
                result = CoordinateResolution(reason=ErrorCode.INTERNAL)
            if result.found:
                break

        result.attempted = attempted
        if result.found:
            log_line(
                f"[COORDS] Found coordinates via {result.strategy} for {label}: "
                f"{result.latitude}, {result.longitude}"
            )
        else:
            log_line(f"[COORDS] No coordinates found for {label}")
        _scraper_event(
            "coords",
            phase="resolve",
            place=label,
            found=result.found,
            strategy=result.strategy,
            convention=result.convention,
            reason=result.reason,
            attempted=attempted,
            navigated=result.navigated,
        )
        return result

    def _found(self, match: CoordinateMatch, strategy: str) -> CoordinateResolution:
        return CoordinateResolution(
            latitude=match.latitude,
            longitude=match.longitude,
            strategy=strategy,
            convention=match.convention,
        )

    def _from_metadata(self, candidate: PlaceCandidate, label: str) -> CoordinateResolution:
        match = coordinates_from_metadata(candidate.metadata)
        if match is None:
            return CoordinateResolution(reason=ErrorCode.NOT_FOUND)
        return self._found(match, "metadata")

    def _from_link(self, candidate: PlaceCandidate, label: str) -> CoordinateResolution:
        match = match_coordinates(candidate.link)
        if match is None:
            return CoordinateResolution(reason=ErrorCode.NOT_FOUND)
        return self._found(match, "link")

    def _clickable(self, candidate: PlaceCandidate):
        for selector in self.selectors.clickable:
            element = first_match(candidate.handle, selector)
            if element is not None:
                return element
        return candidate.handle

    def _from_navigation(self, candidate: PlaceCandidate, label: str) -> CoordinateResolution:
        recovery_state = NavigationRecoveryState.capture(self.document, selectors=self.selectors)
        original_location = recovery_state.snapshot.location

        log_line(f"[COORDS] Clicking {label} to get coordinates...")
        self._clickable(candidate).click()

        changed = poll_until(
            lambda: self.document.location() != original_location,
            self.poll_interval,
            self.poll_attempts,
            wait=self.document.wait,
            label="await_location_change",
        )
        if not changed.satisfied:
            log_line(f"[COORDS][WARN] URL did not change after clicking {label}")
            return CoordinateResolution(reason=ErrorCode.NAVIGATION_DIVERGED)

        new_location = self.document.location()
        log_line(f"[COORDS] URL changed for {label}: {short_text(new_location, 120)}")
        match: Optional[CoordinateMatch] = None
        try:
            match = match_coordinates(new_location)
        finally:
            recovery = self.supervisor.recover(recovery_state, label=label)

        if match is None:
            result = CoordinateResolution(reason=ErrorCode.NOT_FOUND)
        else:
            result = self._found(match, "navigation")
        result.navigated = True
        result.recovery = recovery
        if not recovery.recovered:
            result.reason = recovery.reason
        return result


__all__ = [
    "COORDINATE_PATTERNS",
    "CoordinateMatch",
    "CoordinateResolution",
    "CoordinateResolver",
    "STRATEGIES",
    "coordinates_from_metadata",
    "decode_metadata",
    "match_coordinates",
]
