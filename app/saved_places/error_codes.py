from __future__ import annotations

"""Centralised reason codes for extraction outcomes.

These codes appear in structured logs, in run telemetry entries and on
resolution results so a run can explain why a place was skipped, why its
coordinates are missing, or why the run stopped early. None of them is raised
to the caller of the extraction loop.
"""


class ErrorCode:
    NOT_FOUND = "not_found"
    NOISE_LABEL = "noise_label"
    NAVIGATION_DIVERGED = "navigation_diverged"
    RECOVERY_EXHAUSTED = "recovery_exhausted"
    SESSION_LOST = "session_lost"
    INTERNAL = "internal_error"


__all__ = ["ErrorCode"]
