"""Glue between the session, the meeting scheduler, the light and the state file."""
from typing import List, Optional

from pomolight.config import Settings
from pomolight.core.clock import Clock
from pomolight.core.lights import LightController
from pomolight.core.meetings import MeetingScheduler
from pomolight.core.persistence import DebouncedWriter, MeetingSnapshot, PersistedState, SessionSnapshot
from pomolight.core.progress import DEBUG_MINUTE, MINUTE, TIMED_PHASES
from pomolight.core.session import SESSION_TRANSITIONS, PomodoroSession, SessionContext
from pomolight.core.status import MeetingEvent, MeetingPhase, SessionEvent
from pomolight.ports.menu_port import MenuOption
from pomolight.utils.logging_handler import setup_logger
from pomolight.utils.time_conversions import format_millis, format_time

logger = setup_logger(__name__, console=False)

CONFIG_MEETINGS = "configMeetings"
DISMISS_MEETING = "dismissMeeting"
ADD_MEETING = "addMeeting"
REMOVE_MEETING = "removeMeeting"
DONE_MEETINGS = "doneMeetings"

SESSION_TOKENS = {event.value.lower(): event for event in SessionEvent}

MEETING_TOKENS = {
    CONFIG_MEETINGS: MeetingEvent.CONFIG_MEETINGS,
    DISMISS_MEETING: MeetingEvent.STOP,
    DONE_MEETINGS: MeetingEvent.STOP,
}


class PomodoroApp:
    def __init__(
        self,
        clock: Clock,
        session: PomodoroSession,
        scheduler: MeetingScheduler,
        lights: LightController,
        writer: Optional[DebouncedWriter] = None,
    ):
        self.clock = clock
        self.session = session
        self.scheduler = scheduler
        self.lights = lights
        self.writer = writer

        session.on_transition.add_listener(self._on_change)
        scheduler.on_transition.add_listener(self._on_change)
        scheduler.on_meetings_changed.add_listener(self._on_change)

    @classmethod
    def from_state(
        cls,
        state: PersistedState,
        clock: Clock,
        lights: LightController,
        settings: Settings,
        writer: Optional[DebouncedWriter] = None,
    ) -> "PomodoroApp":
        """
        Rebuild the app from a loaded snapshot.

        A running work/break interval is re-entered with its original start
        time and durations. Any other persisted phase starts idle with the
        configured durations. The meeting machine always starts idle.
        """
        saved = state.session
        resuming = saved.phase in TIMED_PHASES and saved.start_time is not None
        if resuming:
            context = SessionContext(saved.work_duration, saved.break_duration)
        else:
            context = SessionContext(settings.work_duration, settings.break_duration)
        minute = DEBUG_MINUTE if settings.debug else MINUTE
        session = PomodoroSession(clock.now_millis, context, minute)
        session.resume(saved.phase, saved.start_time)

        scheduler = MeetingScheduler(
            clock,
            meetings=state.meetings,
            daily_meetings=settings.daily_meetings,
            ignore_before=state.meeting.ignore_before,
        )
        return cls(clock, session, scheduler, lights, writer)

    @property
    def done(self) -> bool:
        return self.session.done

    def snapshot(self) -> PersistedState:
        context = self.session.context
        return PersistedState(
            meetings=tuple(self.scheduler.meetings),
            session=SessionSnapshot(
                phase=self.session.phase,
                work_duration=context.work_duration,
                break_duration=context.break_duration,
                start_time=context.start_time,
            ),
            meeting=MeetingSnapshot(
                phase=self.scheduler.phase,
                ignore_before=self.scheduler.ignore_before,
            ),
        )

    def commands(self) -> List[MenuOption]:
        """Menu options legal right now."""
        if self.done:
            return []
        if self.scheduler.phase == MeetingPhase.CONFIG_MEETINGS:
            options = [MenuOption(ADD_MEETING, "Add meeting")]
            if self.scheduler.meetings:
                options.append(MenuOption(REMOVE_MEETING, "Remove meeting"))
            options.append(MenuOption(DONE_MEETINGS, "Done with meetings"))
            return options

        options = []
        if self.scheduler.phase == MeetingPhase.MEETING:
            options.append(MenuOption(DISMISS_MEETING, "Dismiss meeting"))
        for event in self.session.commands():
            target = SESSION_TRANSITIONS[self.session.phase][event]
            options.append(MenuOption(event.value.lower(), f"Go to {target.value}"))
        if MeetingEvent.CONFIG_MEETINGS in self.scheduler.commands():
            options.append(MenuOption(CONFIG_MEETINGS, "Configure meetings"))
        return options

    async def handle_command(self, token: str) -> bool:
        """Apply a menu token. Returns False for tokens that are not legal now."""
        if token not in {option.token for option in self.commands()}:
            logger.debug(f"Ignoring command {token!r}")
            return False
        if token in SESSION_TOKENS:
            accepted = self.session.send(SESSION_TOKENS[token])
        elif token in MEETING_TOKENS:
            accepted = self.scheduler.send(MEETING_TOKENS[token])
        else:
            # add/remove need input; the caller drives them.
            return True
        await self.sync_lights()
        return accepted

    def add_meeting(self, text: str) -> int:
        return self.scheduler.add_meeting(text, self.clock.now_millis())

    def remove_meeting(self, timestamp: int) -> None:
        self.scheduler.remove_meeting(timestamp)

    async def tick(self, now: Optional[int] = None) -> None:
        now = self.clock.now_millis() if now is None else now
        self.session.tick(now)
        self.scheduler.check(now)
        await self.sync_lights()

    async def sync_lights(self) -> None:
        if self.done:
            await self.lights.release()
        else:
            await self.lights.apply(self.session.phase, self.scheduler.phase)

    async def shutdown(self) -> None:
        """Turn the light off and flush the pending state write."""
        await self.lights.release()
        if self.writer is not None:
            await self.writer.close()

    def status_line(self, now: Optional[int] = None) -> str:
        """One-line summary for the menu header, e.g. ``work 14:59 | next meeting 10:30``."""
        now = self.clock.now_millis() if now is None else now
        parts = [self.session.phase.value]
        progress = self.session.progress(now)
        if progress is not None:
            parts[0] += " " + format_millis(progress.remaining_millis, self.session.minute)
        if self.scheduler.phase == MeetingPhase.MEETING:
            parts.append("MEETING NOW")
        elif self.scheduler.meetings:
            upcoming = self.clock.to_datetime(self.scheduler.meetings[0])
            parts.append(f"next meeting {format_time(upcoming)}")
        return " | ".join(parts)

    def _on_change(self, **_) -> None:
        if self.writer is not None:
            self.writer.stage(self.snapshot())
