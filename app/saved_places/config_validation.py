from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["cli", "replay", "tests"]

# Knobs that may be clamped rather than rejected, with their floor.
_CLAMPED_FIELDS = (
    ("SCROLL_SETTLE_SECONDS", 0.0),
    ("CLICK_POLL_INTERVAL_SECONDS", 0.0),
    ("BACK_SETTLE_SECONDS", 0.0),
    ("REESTABLISH_SETTLE_SECONDS", 0.0),
    ("PER_ITEM_DELAY_SECONDS", 0.0),
)

_POSITIVE_FIELDS = (
    "SCROLL_MAX_ATTEMPTS",
    "CLICK_POLL_MAX_ATTEMPTS",
    "BACK_MAX_ATTEMPTS",
    "REESTABLISH_MAX_ATTEMPTS",
    "EXTRACT_SAFETY_CAP",
    "PLAYWRIGHT_NAV_TIMEOUT_SECONDS",
    "PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS",
)


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Negative settle intervals are clamped to zero and logged.
    """

    for field_name in _POSITIVE_FIELDS:
        if getattr(config, field_name) <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_bound",
            )

    for field_name, floor in _CLAMPED_FIELDS:
        value = getattr(config, field_name)
        if value < floor:
            _scraper_event(
                "state",
                phase="config",
                context="runtime_validation",
                kind="config_adjustment",
                field=field_name,
                value=value,
                adjusted=floor,
                entrypoint=entrypoint,
            )
            log_line(f"[CONFIG] {field_name} < {floor}; clamping to {floor}.")
            setattr(config, field_name, floor)


__all__ = ["validate_runtime_config", "Entrypoint"]
