from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .logging_utils import _scraper_event


@dataclass
class PollOutcome:
    satisfied: bool
    attempts: int


def poll_until(
    condition: Callable[[], bool],
    interval: float,
    max_attempts: int,
    *,
    wait: Callable[[float], None],
    action: Optional[Callable[[], None]] = None,
    label: str = "poll",
) -> PollOutcome:
    """Bounded retry-with-interval combinator.

    Each attempt runs ``action`` (if any), waits ``interval`` seconds, then
    evaluates ``condition``. Stops at the first satisfied check or after
    ``max_attempts`` attempts; reaching the cap is reported, never raised.
    """

    attempts = 0
    while attempts < max(0, max_attempts):
        attempts += 1
        if action is not None:
            action()
        wait(interval)
        if condition():
            _scraper_event(
                "state",
                phase="retry_decision",
                kind="satisfied",
                poll=label,
                attempt=attempts,
                max_attempts=max_attempts,
            )
            return PollOutcome(satisfied=True, attempts=attempts)

    _scraper_event(
        "state",
        phase="retry_decision",
        kind="capped",
        poll=label,
        attempt=attempts,
        max_attempts=max_attempts,
        will_retry=False,
    )
    return PollOutcome(satisfied=False, attempts=attempts)


__all__ = ["PollOutcome", "poll_until"]
