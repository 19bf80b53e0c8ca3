"""Remaining time and completion of the active work/break interval."""
from dataclasses import dataclass
from typing import Optional

from pomolight.core.status import SessionPhase
from pomolight.utils.time_conversions import SECOND

MINUTE = 60 * SECOND
# One-second minutes for accelerated debug runs.
DEBUG_MINUTE = SECOND

TIMED_PHASES = (SessionPhase.WORK, SessionPhase.BREAK)


@dataclass(frozen=True)
class Progress:
    remaining_millis: int
    completion_fraction: float

    @property
    def finished(self) -> bool:
        return self.completion_fraction <= 0


def phase_duration(phase: SessionPhase, context) -> float:
    """Configured length of ``phase`` in minutes (0 for untimed phases)."""
    if phase == SessionPhase.WORK:
        return context.work_duration
    if phase == SessionPhase.BREAK:
        return context.break_duration
    return 0


def compute_progress(phase: SessionPhase, context, now: int, minute: int = MINUTE) -> Optional[Progress]:
    """
    Derive progress purely from absolute timestamps.

    Returns None outside work/break and when the context carries no start
    time. ``completion_fraction`` runs from 1 at the start of the interval
    down to 0 once the configured duration has elapsed.
    """
    if phase not in TIMED_PHASES or context.start_time is None:
        return None

    duration_millis = phase_duration(phase, context) * minute
    elapsed = now - context.start_time
    remaining = int(duration_millis - elapsed)
    if duration_millis <= 0:
        return Progress(remaining_millis=remaining, completion_fraction=0.0)

    fraction = 1 - elapsed / duration_millis
    return Progress(remaining_millis=remaining, completion_fraction=min(max(fraction, 0.0), 1.0))
