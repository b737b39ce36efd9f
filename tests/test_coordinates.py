from __future__ import annotations

import pytest

from app.saved_places import coordinates, logging_utils
from app.saved_places.coordinates import (
    CoordinateResolver,
    coordinates_from_metadata,
    decode_metadata,
    match_coordinates,
)
from app.saved_places.error_codes import ErrorCode
from app.saved_places.models import PlaceCandidate
from tests.test_extraction import NYC_METADATA, FakeMapsDocument, card, list_page

# base64 of "abc 48.8584,2.2945"
PARIS_METADATA = "YWJjIDQ4Ljg1ODQsMi4yOTQ1"


@pytest.mark.parametrize(
    "text, expected",
    [
        (
            "https://www.google.com/maps/place/x/data=!4m6!3m5!3d48.8584!4d2.2945",
            (48.8584, 2.2945, "data_3d4d"),
        ),
        (
            "https://www.google.com/maps/place/x/@40.7128,-74.0060,17z",
            (40.7128, -74.006, "at_sign"),
        ),
        ("https://maps.google.com/?ll=51.5074,-0.1278&z=12", (51.5074, -0.1278, "ll_param")),
        ("https://maps.google.com/?center=-33.8688,151.2093", (-33.8688, 151.2093, "center_param")),
    ],
)
def test_match_coordinates_conventions(text: str, expected: tuple) -> None:
    match = match_coordinates(text)

    assert match is not None
    assert (match.latitude, match.longitude, match.convention) == expected


def test_pin_pattern_beats_viewport_centre() -> None:
    url = "https://www.google.com/maps/place/x/@40.70,-74.00,15z/data=!3d40.7128!4d-74.0060"

    match = match_coordinates(url)

    assert match.convention == "data_3d4d"
    assert match.latitude == 40.7128


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "https://www.google.com/maps/search/Central+Park",
        "https://www.google.com/maps/place/x/@95.1,10.0,15z",
        "https://www.google.com/maps/place/x/@45,10,15z",
    ],
)
def test_match_coordinates_rejects(text) -> None:  # noqa: ANN001
    assert match_coordinates(text) is None


def test_decode_metadata_strips_array_and_pads() -> None:
    assert decode_metadata(f'track:click; metadata:["{PARIS_METADATA}"]') == "abc 48.8584,2.2945"
    unpadded = NYC_METADATA.rstrip("=")
    assert "40.7128,-74.0060" in decode_metadata(f'metadata:["{unpadded}"]')


@pytest.mark.parametrize("raw", [None, "", "track:click", 'metadata:[""]'])
def test_decode_metadata_without_payload(raw) -> None:  # noqa: ANN001
    assert decode_metadata(raw) is None


def test_coordinates_from_metadata() -> None:
    match = coordinates_from_metadata(f'metadata:["{NYC_METADATA}"]')

    assert (match.latitude, match.longitude) == (40.7128, -74.006)


def test_resolver_survives_failing_strategy(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[tuple[str, dict]] = []
    monkeypatch.setattr(
        coordinates, "_scraper_event", lambda label, **fields: events.append((label, fields))
    )

    class BrokenMetadataResolver(CoordinateResolver):
        def _from_metadata(self, candidate, label):  # noqa: ANN001
            raise RuntimeError("detached")

    document = FakeMapsDocument(list_page(card("Cafe Sacher")))
    candidate = PlaceCandidate(
        handle=document.query_all("button")[0],
        ordinal=1,
        text="Cafe Sacher",
        link="https://www.google.com/maps/place/c/@48.2038,16.3699,17z",
    )

    result = BrokenMetadataResolver(document).resolve(candidate, "Cafe Sacher")

    assert result.found
    assert result.strategy == "link"
    assert result.attempted == ["metadata", "link"]
    assert events[-1][0] == "coords"
    assert events[-1][1]["found"] is True


def test_navigation_diverged_leaves_page_alone() -> None:
    document = FakeMapsDocument(list_page(card("Cafe Sacher")))
    candidate = PlaceCandidate(handle=document.query_all("button")[0], ordinal=1, text="Cafe Sacher")

    result = CoordinateResolver(document, poll_interval=0.5, poll_attempts=3).resolve(
        candidate, "Cafe Sacher"
    )

    assert not result.found
    assert result.reason == ErrorCode.NAVIGATION_DIVERGED
    assert result.recovery is None
    assert result.attempted == ["metadata", "link", "navigation"]
    assert document.back_calls == 0
    assert document.waited_seconds == 1.5


def test_navigation_without_coordinates_still_recovers() -> None:
    place_url = "https://www.google.com/maps/place/Cafe+Sacher"
    document = FakeMapsDocument(
        list_page(card("Cafe Sacher", navigate=place_url)),
        pages={place_url: "<html><body><h1>Cafe Sacher</h1></body></html>"},
    )
    candidate = PlaceCandidate(handle=document.query_all("button")[0], ordinal=1, text="Cafe Sacher")

    result = CoordinateResolver(document, poll_interval=0, poll_attempts=2).resolve(
        candidate, "Cafe Sacher"
    )

    assert not result.found
    assert result.navigated
    assert result.reason == ErrorCode.NOT_FOUND
    assert result.recovery.recovered


def test_resolve_logs_through_real_event_sink(monkeypatch: pytest.MonkeyPatch) -> None:
    lines: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lines.append)
    document = FakeMapsDocument(list_page(card("Cafe Central")))
    candidate = PlaceCandidate(
        handle=document.query_all("button")[0],
        ordinal=1,
        text="Cafe Central",
        link="https://www.google.com/maps/place/c/@48.2104,16.3655,17z",
    )

    result = CoordinateResolver(document).resolve(candidate, "Cafe Central")

    assert (result.latitude, result.longitude) == (48.2104, 16.3655)
    coords_lines = [line for line in lines if line.startswith("[SCRAPER][COORDS]")]
    assert coords_lines
    assert "place='Cafe Central'" in coords_lines[-1]
    assert "found=True" in coords_lines[-1]
