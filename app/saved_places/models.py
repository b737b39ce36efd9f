"""Data model shared by the extraction components."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .document import DocumentElement


@dataclass
class PlaceCandidate:
    """One list item found in the current discovery pass.

    ``handle`` is only valid until the next interaction with the page; the
    list is virtualized and re-renders after navigation.
    """

    handle: DocumentElement
    ordinal: int
    text: str
    link: Optional[str] = None
    metadata: Optional[str] = None
    action: Optional[str] = None


@dataclass(frozen=True)
class PlaceRecord:
    name: str
    link: Optional[str]
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def __post_init__(self) -> None:
        if not (self.name or "").strip():
            raise ValueError("PlaceRecord.name must be a non-empty string")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must both be present or both absent")

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "link": self.link,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PlaceRecord":
        """Rebuild a record, ignoring enrichment fields added downstream."""

        latitude = payload.get("latitude")
        longitude = payload.get("longitude")
        return cls(
            name=str(payload.get("name") or ""),
            link=payload.get("link"),
            latitude=float(latitude) if latitude is not None else None,
            longitude=float(longitude) if longitude is not None else None,
        )


__all__ = ["PlaceCandidate", "PlaceRecord"]
