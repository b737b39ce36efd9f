from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest
from bs4 import BeautifulSoup

from app.saved_places import config
from app.saved_places.coordinates import CoordinateResolver
from app.saved_places.error_codes import ErrorCode
from app.saved_places.extraction import extract
from app.saved_places.selectors_saved_list import SAVED_LIST_SELECTORS
from app.saved_places.session import ExtractionSession
from app.saved_places.snapshot_document import SnapshotDocument, SnapshotElement
from app.saved_places.telemetry import RunTelemetry

LIST_URL = "https://www.google.com/maps/placelists/list/AbC123"
BLANK_PAGE = "<html><body></body></html>"

# base64 of "0x89c2588f046ee661:0x2cd1ee37f3e4e57d 40.7128,-74.0060 Lower Manhattan"
NYC_METADATA = (
    "MHg4OWMyNTg4ZjA0NmVlNjYxOjB4MmNkMWVlMzdmM2U0ZTU3ZCA0MC43MTI4LC03NC4wMDYwIExvd2VyIE1hbmhhdHRhbg=="
)


class FakeElement(SnapshotElement):
    """Snapshot element whose clicks and scrolls reach the owning document."""

    def __init__(self, tag, document: "FakeMapsDocument") -> None:
        super().__init__(tag)
        self.document = document

    def query_all(self, selector: str) -> List["FakeElement"]:
        return [FakeElement(found.tag, self.document) for found in super().query_all(selector)]

    def closest(self, selector: str) -> Optional["FakeElement"]:
        found = super().closest(selector)
        return FakeElement(found.tag, self.document) if found is not None else None

    def scroll_height(self) -> int:
        return int(self.tag.get("data-scroll-height", 0))

    def client_height(self) -> int:
        return int(self.tag.get("data-client-height", 0))

    def scroll_to_end(self) -> None:
        self.document.scrolls += 1

    def click(self) -> None:
        self.document.clicks.append(self.text())
        if self.tag.has_attr("data-navigate"):
            host = self.tag
        else:
            host = self.tag.find_parent(attrs={"data-navigate": True})
        if host is not None:
            self.document.navigate(host["data-navigate"])


class FakeMapsDocument(SnapshotDocument):
    """In-memory Maps tab with history.

    ``pages`` maps locations to HTML. Elements carrying ``data-navigate``
    open that location when clicked. ``back_succeeds_on`` is the number of
    back commands needed per departure before history actually moves
    (``None``: back never works).
    """

    def __init__(
        self,
        list_html: str,
        *,
        pages: Optional[Dict[str, str]] = None,
        back_succeeds_on: Optional[int] = 1,
        location: str = LIST_URL,
    ) -> None:
        super().__init__(list_html, location=location)
        self.pages = {location: list_html, **(pages or {})}
        self.history: List[str] = []
        self.back_succeeds_on = back_succeeds_on
        self.back_calls = 0
        self.clicks: List[str] = []
        self.scrolls = 0
        self._pending_backs = 0

    def _load(self, location: str) -> None:
        self._location = location
        self.soup = BeautifulSoup(self.pages.get(location, BLANK_PAGE), "html5lib")

    def navigate(self, location: str) -> None:
        self.history.append(self._location)
        self._pending_backs = 0
        self._load(location)

    def query_all(self, selector: str) -> List[FakeElement]:
        return [FakeElement(found.tag, self) for found in super().query_all(selector)]

    def go_back(self) -> None:
        self.back_calls += 1
        if not self.history or self.back_succeeds_on is None:
            return
        self._pending_backs += 1
        if self._pending_backs >= self.back_succeeds_on:
            self._pending_backs = 0
            self._load(self.history.pop())


def card(
    name: str,
    *,
    navigate: Optional[str] = None,
    href: Optional[str] = None,
    metadata: Optional[str] = None,
) -> str:
    attrs = ['jsaction="pane.wfvdle.click; keydown:pane.wfvdle.keydown"']
    if navigate:
        attrs.append(f'data-navigate="{navigate}"')
    if metadata:
        attrs.append(f"jslog='track:click; metadata:[\"{metadata}\"]'")
    anchor = f'<a href="{href}"></a>' if href else ""
    return (
        f"<button {' '.join(attrs)}>"
        f'<div class="headline"><span dir="ltr">{name}</span></div>'
        f"{anchor}</button>"
    )


def list_page(*cards: str, title: str = "Trip to NYC") -> str:
    return (
        '<html><body><div role="main">'
        f'<h1 class="fontTitleLarge">{title}</h1>'
        f'<div role="region">{"".join(cards)}</div>'
        "</div></body></html>"
    )


def place_page(name: str) -> str:
    return f'<html><body><h1 class="fontTitleLarge">{name}</h1></body></html>'


def test_extract_keeps_only_real_places() -> None:
    place_url = (
        "https://www.google.com/maps/place/Central+Park/@40.78,-73.97,15z"
        "/data=!3m1!4b1!4m6!3m5!8m2!3d40.7828647!4d-73.9653551"
    )
    document = FakeMapsDocument(
        list_page(card("Central Park", navigate=place_url), card("שיתוף"), card("3.14")),
        pages={place_url: place_page("Central Park")},
    )

    result = extract(ExtractionSession.start(document))

    assert [record.name for record in result.records] == ["Central Park"]
    record = result.records[0]
    assert (record.latitude, record.longitude) == (40.7828647, -73.9653551)
    assert record.link == "javascript:pane.wfvdle.click"
    assert [outcome.status for outcome in result.outcomes] == ["accepted", "skipped", "skipped"]
    assert result.outcomes[1].reason == f"{ErrorCode.NOISE_LABEL}:placeholder"
    assert result.scanned == 3
    assert result.aborted is False
    assert result.list_title == "Trip to NYC"
    assert document.location() == LIST_URL


def test_link_coordinates_need_no_navigation() -> None:
    href = "https://www.google.com/maps/place/Statue+of+Liberty/@40.7128,-74.0060,17z"
    document = FakeMapsDocument(list_page(card("Statue of Liberty", href=href)))

    result = extract(ExtractionSession.start(document))

    assert len(result.records) == 1
    record = result.records[0]
    assert record.latitude == 40.7128
    assert record.longitude == -74.0060
    assert record.link == href
    assert document.clicks == []
    assert document.back_calls == 0
    assert result.outcomes[0].strategy == "link"


def test_unchanged_location_falls_back_to_search_link(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "FALLBACK_SEARCH_SUFFIX", "")
    document = FakeMapsDocument(list_page(card("Quiet Corner")))

    result = extract(ExtractionSession.start(document))

    assert len(result.records) == 1
    record = result.records[0]
    assert record.latitude is None and record.longitude is None
    assert record.link == "https://www.google.com/maps/search/Quiet%20Corner"
    assert document.clicks == ["Quiet Corner"]
    assert document.back_calls == 0
    assert result.outcomes[0].reason == ErrorCode.NAVIGATION_DIVERGED


class CountingResolver(CoordinateResolver):
    def __init__(self, *args, **kwargs) -> None:  # noqa: ANN002, ANN003
        super().__init__(*args, **kwargs)
        self.calls: List[str] = []

    def _from_metadata(self, candidate, label):  # noqa: ANN001
        self.calls.append("metadata")
        return super()._from_metadata(candidate, label)

    def _from_link(self, candidate, label):  # noqa: ANN001
        self.calls.append("link")
        return super()._from_link(candidate, label)

    def _from_navigation(self, candidate, label):  # noqa: ANN001
        self.calls.append("navigation")
        return super()._from_navigation(candidate, label)


def test_metadata_hit_skips_later_strategies() -> None:
    document = FakeMapsDocument(
        list_page(
            card(
                "Lower Manhattan",
                metadata=NYC_METADATA,
                href="https://www.google.com/maps/place/x/@1.5,2.5,10z",
                navigate="https://www.google.com/maps/place/x",
            )
        )
    )
    resolver = CountingResolver(document)

    result = extract(ExtractionSession.start(document), resolver=resolver)

    assert resolver.calls == ["metadata"]
    assert document.clicks == []
    assert result.records[0].latitude == 40.7128
    assert result.records[0].longitude == -74.0060


def test_recovery_on_third_back_keeps_going() -> None:
    first = "https://www.google.com/maps/place/Bryant+Park/data=!3d40.7536!4d-73.9832"
    second = "https://www.google.com/maps/place/Eiffel+Tower/data=!3d48.8584!4d2.2945"
    document = FakeMapsDocument(
        list_page(card("Bryant Park", navigate=first), card("Eiffel Tower", navigate=second)),
        pages={first: place_page("Bryant Park"), second: place_page("Eiffel Tower")},
        back_succeeds_on=3,
    )

    result = extract(ExtractionSession.start(document))

    assert [record.name for record in result.records] == ["Bryant Park", "Eiffel Tower"]
    assert result.records[1].latitude == 48.8584
    assert document.back_calls == 6
    assert result.aborted is False


def test_lost_session_stops_with_prior_records() -> None:
    place_url = "https://www.google.com/maps/place/Bryant+Park/data=!3d40.7536!4d-73.9832"
    document = FakeMapsDocument(
        list_page(
            card(
                "Statue of Liberty",
                href="https://www.google.com/maps/place/s/@40.6892,-74.0445,17z",
            ),
            card("Bryant Park", navigate=place_url),
            card("Brooklyn Bridge", href="https://www.google.com/maps/place/b/@40.7061,-73.9969,17z"),
        ),
        pages={place_url: place_page("Bryant Park")},
        back_succeeds_on=None,
    )

    result = extract(ExtractionSession.start(document))

    assert [record.name for record in result.records] == ["Statue of Liberty"]
    assert result.aborted is True
    assert result.abort_reason == ErrorCode.SESSION_LOST
    assert result.outcomes[-1].status == "failed"
    assert result.outcomes[-1].label == "Bryant Park"
    # Supervisor budget, then the re-establishment budget.
    assert document.back_calls == config.BACK_MAX_ATTEMPTS + config.REESTABLISH_MAX_ATTEMPTS


class RecordingResolver(CoordinateResolver):
    def __init__(self, *args, **kwargs) -> None:  # noqa: ANN002, ANN003
        super().__init__(*args, **kwargs)
        self.resolutions = []

    def resolve(self, candidate, label):  # noqa: ANN001
        resolution = super().resolve(candidate, label)
        self.resolutions.append(resolution)
        return resolution


def test_lost_item_does_not_end_the_run_when_list_comes_back() -> None:
    place_url = "https://www.google.com/maps/place/Bryant+Park/data=!3d40.7536!4d-73.9832"
    document = FakeMapsDocument(
        list_page(
            card("Bryant Park", navigate=place_url),
            card("Brooklyn Bridge", href="https://www.google.com/maps/place/b/@40.7061,-73.9969,17z"),
        ),
        pages={place_url: place_page("Bryant Park")},
        # One press more than the supervisor's budget; re-establishment finishes the job.
        back_succeeds_on=config.BACK_MAX_ATTEMPTS + 1,
    )
    resolver = RecordingResolver(document)

    result = extract(ExtractionSession.start(document), resolver=resolver)

    assert resolver.resolutions[0].lost is True
    assert result.outcomes[0].reason == ErrorCode.RECOVERY_EXHAUSTED
    assert result.aborted is False
    assert [record.name for record in result.records] == ["Bryant Park", "Brooklyn Bridge"]
    assert result.records[0].latitude == 40.7536
    assert result.records[1].longitude == -73.9969
    assert document.back_calls == config.BACK_MAX_ATTEMPTS + 1
    assert document.location() == LIST_URL


class ClosingDocument(FakeMapsDocument):
    """Tab that closes during the delay after the first place."""

    closed = False

    def wait(self, seconds: float) -> None:
        super().wait(seconds)
        if seconds == 0.25:
            self.closed = True

    def query_all(self, selector: str) -> List[FakeElement]:
        if self.closed:
            raise RuntimeError("Target closed")
        return super().query_all(selector)


def test_closed_tab_keeps_collected_records() -> None:
    document = ClosingDocument(
        list_page(
            card("Statue of Liberty", href="https://www.google.com/maps/place/s/@40.6892,-74.0445,17z"),
            card("Brooklyn Bridge", href="https://www.google.com/maps/place/b/@40.7061,-73.9969,17z"),
        )
    )

    result = extract(ExtractionSession.start(document), item_delay=0.25)

    assert [record.name for record in result.records] == ["Statue of Liberty"]
    assert result.aborted is True
    assert result.abort_reason == ErrorCode.SESSION_LOST
    assert result.scanned == 1


def test_safety_cap_bounds_scanned_positions() -> None:
    cards = [
        card(f"Gallery {index}", href=f"https://www.google.com/maps/place/g/@48.85{index},2.29{index},17z")
        for index in range(8)
    ]
    document = FakeMapsDocument(list_page(*cards))

    result = extract(ExtractionSession.start(document, safety_cap=3))

    assert result.scanned == 3
    assert [record.name for record in result.records] == ["Gallery 0", "Gallery 1", "Gallery 2"]


def test_empty_list_returns_no_records() -> None:
    document = FakeMapsDocument(list_page())

    result = extract(ExtractionSession.start(document))

    assert result.records == []
    assert result.scanned == 0
    assert result.aborted is False


def test_every_record_has_paired_coordinates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "CLICK_POLL_MAX_ATTEMPTS", 2)
    document = FakeMapsDocument(
        list_page(
            card("Lower Manhattan", metadata=NYC_METADATA),
            card("Quiet Corner"),
            card("Statue of Liberty", href="https://www.google.com/maps/place/s/@40.6892,-74.0445,17z"),
        )
    )

    result = extract(ExtractionSession.start(document))

    assert len(result.records) == 3
    for record in result.records:
        assert (record.latitude is None) == (record.longitude is None)
        assert record.link


def test_telemetry_receives_one_entry_per_scanned_item(tmp_path: Path) -> None:
    document = FakeMapsDocument(
        list_page(card("Lower Manhattan", metadata=NYC_METADATA), card("Share"))
    )
    telemetry = RunTelemetry("tests", runs_dir=str(tmp_path / "runs"))

    extract(ExtractionSession.start(document), telemetry=telemetry)

    assert [entry["status"] for entry in telemetry.entries] == ["accepted", "skipped"]
    assert telemetry.summary()["via_metadata"] == 1


class EndlessListDocument(FakeMapsDocument):
    """Renders one more card every time the place cards are queried."""

    renders = 0

    def query_all(self, selector: str) -> List[FakeElement]:
        if selector == SAVED_LIST_SELECTORS.list_item[0]:
            self.renders += 1
            fragment = BeautifulSoup(
                card(
                    f"Gallery {self.renders}",
                    href=f"https://www.google.com/maps/place/g/@48.2{self.renders},16.3,17z",
                ),
                "html.parser",
            )
            self.soup.select_one('[role="region"]').append(fragment.button)
        return super().query_all(selector)


def test_never_stabilizing_list_stops_at_safety_cap() -> None:
    document = EndlessListDocument(
        list_page(card("Gallery 0", href="https://www.google.com/maps/place/g/@48.2,16.3,17z"))
    )

    result = extract(ExtractionSession.start(document, safety_cap=4))

    assert result.scanned == 4
    assert len(result.records) == 4
    assert document.renders == 4
