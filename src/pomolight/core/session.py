from dataclasses import dataclass
from typing import Callable, List, Optional

from pomolight.core.machine import StateMachine
from pomolight.core.progress import MINUTE, TIMED_PHASES, Progress, compute_progress
from pomolight.core.status import SessionEvent, SessionPhase
from pomolight.utils.logging_handler import setup_logger

logger = setup_logger(__name__, console=False)

SESSION_TRANSITIONS = {
    SessionPhase.IDLE: {
        SessionEvent.WORK: SessionPhase.WORK,
        SessionEvent.BREAK: SessionPhase.BREAK,
        SessionEvent.EXIT: SessionPhase.EXIT,
    },
    SessionPhase.WORK: {
        SessionEvent.FINISHED: SessionPhase.WORK_FINISHED,
        SessionEvent.STOP: SessionPhase.IDLE,
    },
    SessionPhase.WORK_FINISHED: {
        SessionEvent.BREAK: SessionPhase.BREAK,
        SessionEvent.STOP: SessionPhase.IDLE,
    },
    SessionPhase.BREAK: {
        SessionEvent.FINISHED: SessionPhase.BREAK_FINISHED,
        SessionEvent.STOP: SessionPhase.IDLE,
    },
    SessionPhase.BREAK_FINISHED: {
        SessionEvent.WORK: SessionPhase.WORK,
        SessionEvent.STOP: SessionPhase.IDLE,
    },
    SessionPhase.EXIT: {},
}

# Raised by the tick, never offered to the user.
INTERNAL_EVENTS = (SessionEvent.FINISHED,)


@dataclass
class SessionContext:
    work_duration: float = 25
    break_duration: float = 5
    start_time: Optional[int] = None


class PomodoroSession:
    """
    Work/break cycle driven by user commands and by the 1 Hz tick.

    Entering work or break stamps ``context.start_time`` unless one is already
    present, so a resumed interval keeps its elapsed time. Leaving either phase
    clears it.
    """

    def __init__(
        self,
        now: Callable[[], int],
        context: Optional[SessionContext] = None,
        minute: int = MINUTE,
    ):
        self.context = context or SessionContext()
        self._now = now
        self.minute = minute
        self.machine = StateMachine(
            "session",
            SessionPhase.IDLE,
            SESSION_TRANSITIONS,
            entry_actions={phase: self._set_start_time for phase in TIMED_PHASES},
            exit_actions={phase: self._clear_start_time for phase in TIMED_PHASES},
            final_states=(SessionPhase.EXIT,),
        )
        self.on_transition = self.machine.on_transition

    @property
    def phase(self) -> SessionPhase:
        return self.machine.state

    @property
    def done(self) -> bool:
        return self.machine.done

    def send(self, event: SessionEvent) -> bool:
        return self.machine.send(event)

    def commands(self) -> List[SessionEvent]:
        """User-selectable events for the current phase."""
        return [event for event in self.machine.allowed_events() if event not in INTERNAL_EVENTS]

    def progress(self, now: int) -> Optional[Progress]:
        return compute_progress(self.phase, self.context, now, self.minute)

    def tick(self, now: int) -> bool:
        """Raise FINISHED when the running interval has fully elapsed."""
        progress = self.progress(now)
        if progress is not None and progress.finished:
            return self.send(SessionEvent.FINISHED)
        return False

    def resume(self, phase: SessionPhase, start_time: Optional[int]) -> bool:
        """
        Re-enter a persisted work/break interval.

        Anything other than a timed phase with a start time is ignored and the
        session stays idle.
        """
        if phase not in TIMED_PHASES or start_time is None:
            logger.info(f"Not resuming persisted phase {phase.value}; starting idle.")
            return False
        self.context.start_time = start_time
        self.machine.restore(phase)
        logger.info(f"Resumed {phase.value} started at {start_time}")
        return True

    def _set_start_time(self) -> None:
        if self.context.start_time is None:
            self.context.start_time = self._now()

    def _clear_start_time(self) -> None:
        self.context.start_time = None
