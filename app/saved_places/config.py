"""Configuration constants for the saved places exporter."""
from __future__ import annotations

import os
from pathlib import Path

DATA_DIR: Path = Path(os.getenv("SAVED_PLACES_DATA_DIR", "/app/data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
EXPORT_FILE: Path = DATA_DIR / "exported_places.json"
RUNS_DIR: Path = DATA_DIR / "runs"
EXPORTS_DIR: Path = DATA_DIR / "exports"
SNAPSHOTS_DIR: Path = DATA_DIR / "snapshots"
# Persistent Chromium profile so the Google session survives between runs.
BROWSER_PROFILE_DIR: Path = Path(
    os.getenv("SAVED_PLACES_PROFILE_DIR", str(DATA_DIR / "browser_profile"))
)

DEFAULT_LIST_TITLE: str = "Saved Places"
SEARCH_URL_BASE: str = "https://www.google.com/maps/search/"
# Appended to the place name in fallback search links (e.g. " Austria").
FALLBACK_SEARCH_SUFFIX: str = os.getenv("SAVED_PLACES_SEARCH_SUFFIX", "")

# Scroll loader
SCROLL_MAX_ATTEMPTS: int = int(os.getenv("SCROLL_MAX_ATTEMPTS", "20"))
SCROLL_SETTLE_SECONDS: float = float(os.getenv("SCROLL_SETTLE_SECONDS", "1.5"))

# Click-and-observe probe
CLICK_POLL_INTERVAL_SECONDS: float = float(os.getenv("CLICK_POLL_INTERVAL_SECONDS", "0.2"))
CLICK_POLL_MAX_ATTEMPTS: int = int(os.getenv("CLICK_POLL_MAX_ATTEMPTS", "20"))

# Navigation recovery
BACK_SETTLE_SECONDS: float = float(os.getenv("BACK_SETTLE_SECONDS", "1.2"))
BACK_MAX_ATTEMPTS: int = int(os.getenv("BACK_MAX_ATTEMPTS", "5"))
REESTABLISH_SETTLE_SECONDS: float = float(os.getenv("REESTABLISH_SETTLE_SECONDS", "1.5"))
REESTABLISH_MAX_ATTEMPTS: int = int(os.getenv("REESTABLISH_MAX_ATTEMPTS", "3"))

# Extraction loop
EXTRACT_SAFETY_CAP: int = int(os.getenv("EXTRACT_SAFETY_CAP", "50"))
PER_ITEM_DELAY_SECONDS: float = float(os.getenv("PER_ITEM_DELAY_SECONDS", "0.3"))


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


# Playwright timeouts (seconds)
PLAYWRIGHT_NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "SAVED_PLACES_NAV_TIMEOUT_SECONDS", 30
)
# Wait for the list sidebar to render after the initial page load.
PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "SAVED_PLACES_SELECTOR_TIMEOUT_SECONDS", 20
)
# Click-level timeout remains in milliseconds to match Playwright API expectations.
PLAYWRIGHT_CLICK_TIMEOUT_MS: int = int(os.getenv("PLAYWRIGHT_CLICK_TIMEOUT_MS", "2000"))

HEADLESS: bool = os.getenv("SAVED_PLACES_HEADLESS", "false").strip().lower() not in {
    "0",
    "false",
}

USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_MAPS_URL_MARKERS = ("maps.google.com", "google.com/maps", "maps.google.")


def is_maps_url(url: str) -> bool:
    """Return ``True`` when ``url`` points at a Google Maps page."""

    value = str(url or "").strip().lower()
    return any(marker in value for marker in _MAPS_URL_MARKERS)
