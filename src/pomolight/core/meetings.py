"""
Meeting reminders.

Runs beside the pomodoro session: a one-off meeting list typed in as HHMM
for today, plus optional recurring daily meetings. A due meeting moves the
scheduler into ``meeting`` until the user dismisses it.
"""
from typing import Iterable, List, Optional, Tuple

from pomolight.core.clock import Clock
from pomolight.core.machine import StateMachine
from pomolight.core.status import MeetingEvent, MeetingPhase
from pomolight.utils import Event
from pomolight.utils import custom_exception as ce
from pomolight.utils.logging_handler import setup_logger
from pomolight.utils.time_conversions import format_time

logger = setup_logger(__name__, console=False)

MEETING_TRANSITIONS = {
    MeetingPhase.IDLE: {
        MeetingEvent.CONFIG_MEETINGS: MeetingPhase.CONFIG_MEETINGS,
        MeetingEvent.MEETING: MeetingPhase.MEETING,
    },
    MeetingPhase.CONFIG_MEETINGS: {
        MeetingEvent.STOP: MeetingPhase.IDLE,
    },
    MeetingPhase.MEETING: {
        MeetingEvent.STOP: MeetingPhase.IDLE,
    },
}


def parse_meeting_time(text: str) -> Tuple[int, int]:
    """
    Parse an HHMM string such as ``"0930"`` into ``(hour, minute)``.

    Raises:
        InvalidFormat: text is not an integer.
        InvalidHour: hour outside 0-23.
        InvalidMinute: minute outside 0-59.
    """
    try:
        value = int(str(text).strip())
    except ValueError:
        raise ce.InvalidFormat(text)
    hour, minute = divmod(value, 100)
    if not 0 <= hour <= 23:
        raise ce.InvalidHour(text)
    if not 0 <= minute <= 59:
        raise ce.InvalidMinute(text)
    return hour, minute


class MeetingScheduler:
    def __init__(
        self,
        clock: Clock,
        meetings: Iterable[int] = (),
        daily_meetings: Iterable[str] = (),
        ignore_before: Optional[int] = None,
    ):
        self.clock = clock
        self._meetings: List[int] = sorted(meetings)
        self.daily_meetings = self._parse_daily(daily_meetings)
        # Daily meetings at or before this never fire; moved forward when one
        # fires and on dismissal.
        self.ignore_before = clock.now_millis() if ignore_before is None else ignore_before
        self.machine = StateMachine(
            "meetings",
            MeetingPhase.IDLE,
            MEETING_TRANSITIONS,
            exit_actions={MeetingPhase.MEETING: self._record_dismissal},
        )
        self.on_transition = self.machine.on_transition
        self.on_meetings_changed = Event()

    @property
    def phase(self) -> MeetingPhase:
        return self.machine.state

    @property
    def meetings(self) -> List[int]:
        return list(self._meetings)

    def commands(self) -> List[MeetingEvent]:
        return [event for event in self.machine.allowed_events() if event != MeetingEvent.MEETING]

    def send(self, event: MeetingEvent) -> bool:
        return self.machine.send(event)

    def add_meeting(self, text: str, now: Optional[int] = None) -> int:
        """Schedule a meeting today at ``text`` (HHMM). Returns its timestamp."""
        now = self.clock.now_millis() if now is None else now
        hour, minute = parse_meeting_time(text)
        timestamp = self.clock.today_at(hour, minute, now)
        if timestamp <= now:
            raise ce.InThePast(text)
        self._meetings.append(timestamp)
        self._meetings.sort()
        logger.info(f"Meeting added at {format_time(self.clock.to_datetime(timestamp))}")
        self.on_meetings_changed.emit(meetings=self.meetings)
        return timestamp

    def remove_meeting(self, timestamp: int) -> None:
        remaining = [meeting for meeting in self._meetings if meeting != timestamp]
        if len(remaining) == len(self._meetings):
            return
        self._meetings = remaining
        logger.info(f"Meeting at {format_time(self.clock.to_datetime(timestamp))} removed")
        self.on_meetings_changed.emit(meetings=self.meetings)

    def check(self, now: int) -> bool:
        """
        Run the due-check for this tick. Returns True when a meeting started.

        Elapsed list entries are consumed so they fire once. Nothing is
        consumed while the user is editing the list.
        """
        if self.phase == MeetingPhase.CONFIG_MEETINGS:
            return False

        due = self._consume_due(now)
        if self._daily_due(now):
            # Consumed like list entries: a restart must not fire it again.
            self.ignore_before = now
            due = True
        if not due or self.phase != MeetingPhase.IDLE:
            return False
        return self.send(MeetingEvent.MEETING)

    def _consume_due(self, now: int) -> bool:
        pending = [meeting for meeting in self._meetings if meeting > now]
        if len(pending) == len(self._meetings):
            return False
        self._meetings = pending
        self.on_meetings_changed.emit(meetings=self.meetings)
        return True

    def _daily_due(self, now: int) -> bool:
        for hour, minute in self.daily_meetings:
            occurrence = self.clock.today_at(hour, minute, now)
            if self.ignore_before < occurrence <= now:
                return True
        return False

    def _record_dismissal(self) -> None:
        self.ignore_before = self.clock.now_millis()

    @staticmethod
    def _parse_daily(entries: Iterable[str]) -> Tuple[Tuple[int, int], ...]:
        parsed = []
        for entry in entries:
            try:
                parsed.append(parse_meeting_time(entry))
            except ce.MeetingInputError as e:
                logger.error(f"Ignoring daily meeting {entry!r}: {e}")
        return tuple(parsed)
