from __future__ import annotations

"""Return the tab to the saved list after a click-and-observe probe."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from . import config
from .document import StructuredDocument
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .retry_policy import poll_until
from .selectors_saved_list import SAVED_LIST_SELECTORS, SavedListSelectors
from .session import ExtractionSession, NavigationRecoveryState, capture_identity
from .utils import log_line


class RecoveryState(str, Enum):
    DEPARTED = "departed"
    VERIFYING = "verifying"
    RECOVERED = "recovered"
    LOST = "lost"


@dataclass
class RecoveryOutcome:
    state: RecoveryState
    attempts: int
    transitions: List[RecoveryState] = field(default_factory=list)

    @property
    def recovered(self) -> bool:
        return self.state is RecoveryState.RECOVERED

    @property
    def reason(self) -> Optional[str]:
        return None if self.recovered else ErrorCode.RECOVERY_EXHAUSTED


class NavigationRecoverySupervisor:
    """Drive bounded "back" retries until the list view identity matches.

    ``DEPARTED -> VERIFYING`` issues one back command and waits the settle
    interval; ``VERIFYING -> RECOVERED`` on an identity match;
    ``VERIFYING -> DEPARTED`` to retry while budget remains; ``LOST`` once
    the budget is spent. ``LOST`` fails the current item only.
    """

    def __init__(
        self,
        document: StructuredDocument,
        *,
        max_attempts: Optional[int] = None,
        settle_seconds: Optional[float] = None,
        selectors: SavedListSelectors = SAVED_LIST_SELECTORS,
    ) -> None:
        self.document = document
        self.max_attempts = config.BACK_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.settle_seconds = (
            config.BACK_SETTLE_SECONDS if settle_seconds is None else settle_seconds
        )
        self.selectors = selectors

    def recover(self, state: NavigationRecoveryState, *, label: str = "") -> RecoveryOutcome:
        transitions: List[RecoveryState] = [RecoveryState.DEPARTED]

        def _go_back() -> None:
            if transitions[-1] is RecoveryState.VERIFYING:
                transitions.append(RecoveryState.DEPARTED)
            self.document.go_back()
            transitions.append(RecoveryState.VERIFYING)

        def _returned() -> bool:
            current = capture_identity(self.document, selectors=self.selectors)
            return current.matches(state.snapshot)

        log_line(f"[RECOVERY] Navigating back from {label or 'place'}")
        outcome = poll_until(
            _returned,
            self.settle_seconds,
            self.max_attempts,
            wait=self.document.wait,
            action=_go_back,
            label="navigate_back",
        )

        if outcome.satisfied:
            transitions.append(RecoveryState.RECOVERED)
            log_line(f"[RECOVERY] Returned to list after {outcome.attempts} attempt(s)")
        else:
            transitions.append(RecoveryState.LOST)
            log_line(
                f"[RECOVERY][WARN] Could not navigate back to list from {label or 'place'} "
                f"after {outcome.attempts} attempts"
            )

        result = RecoveryOutcome(
            state=transitions[-1], attempts=outcome.attempts, transitions=transitions
        )
        _scraper_event(
            "recovery",
            phase="navigate_back",
            target=label,
            state=result.state.value,
            attempts=result.attempts,
        )
        return result


def reestablish_list_view(
    session: ExtractionSession,
    *,
    max_attempts: Optional[int] = None,
    settle_seconds: Optional[float] = None,
) -> bool:
    """Supplementary recovery once the list view is found missing.

    Issues up to ``max_attempts`` back commands, checking only that the list
    title is visible again. Returns ``False`` when the session is lost.
    """

    if session.on_list_view():
        return True

    max_attempts = config.REESTABLISH_MAX_ATTEMPTS if max_attempts is None else max_attempts
    settle_seconds = (
        config.REESTABLISH_SETTLE_SECONDS if settle_seconds is None else settle_seconds
    )
    log_line(f"[RECOVERY][WARN] Lost saved list page {session.list_title!r}; attempting to recover")
    outcome = poll_until(
        session.on_list_view,
        settle_seconds,
        max_attempts,
        wait=session.document.wait,
        action=session.document.go_back,
        label="reestablish_list",
    )
    _scraper_event(
        "recovery",
        phase="reestablish",
        list_title=session.list_title,
        recovered=outcome.satisfied,
        attempts=outcome.attempts,
    )
    if outcome.satisfied:
        log_line(f"[RECOVERY] Recovered saved list page after {outcome.attempts} attempt(s)")
    return outcome.satisfied


__all__ = [
    "NavigationRecoverySupervisor",
    "RecoveryOutcome",
    "RecoveryState",
    "reestablish_list_view",
]
