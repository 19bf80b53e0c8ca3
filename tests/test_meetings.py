import pytest

from pomolight.core.meetings import MeetingScheduler, parse_meeting_time
from pomolight.core.status import MeetingEvent, MeetingPhase
from pomolight.utils import custom_exception as ce

from conftest import MINUTE_MS, NINE_AM, FakeClock, utc_millis


@pytest.fixture
def scheduler(clock: FakeClock) -> MeetingScheduler:
    return MeetingScheduler(clock)


def test_parse_meeting_time():
    assert parse_meeting_time("0913") == (9, 13)
    assert parse_meeting_time(" 2359 ") == (23, 59)
    assert parse_meeting_time("5") == (0, 5)


@pytest.mark.parametrize(
    "text,error",
    [
        ("abc", ce.InvalidFormat),
        ("", ce.InvalidFormat),
        ("9.30", ce.InvalidFormat),
        ("2500", ce.InvalidHour),
        ("-100", ce.InvalidHour),
        ("1060", ce.InvalidMinute),
    ],
)
def test_rejected_input(scheduler, text, error):
    with pytest.raises(error):
        scheduler.add_meeting(text)
    assert scheduler.meetings == []


def test_add_meeting_later_today(scheduler):
    timestamp = scheduler.add_meeting("0913")
    assert timestamp == utc_millis(2020, 2, 1, 9, 13)
    assert scheduler.meetings == [timestamp]


def test_add_meeting_in_the_past(scheduler):
    with pytest.raises(ce.InThePast):
        scheduler.add_meeting("0859")
    with pytest.raises(ce.InThePast):
        scheduler.add_meeting("0900")


def test_meetings_kept_sorted(scheduler):
    scheduler.add_meeting("1500")
    scheduler.add_meeting("0930")
    scheduler.add_meeting("1200")
    scheduler.add_meeting("0930")
    assert scheduler.meetings == sorted(scheduler.meetings)
    assert len(scheduler.meetings) == 4


def test_input_errors_carry_a_message(scheduler):
    with pytest.raises(ce.MeetingInputError) as info:
        scheduler.add_meeting("2500")
    assert "Hour" in str(info.value)
    assert info.value.value == "2500"


def test_remove_meeting_removes_duplicates(scheduler):
    first = scheduler.add_meeting("1000")
    scheduler.add_meeting("1000")
    other = scheduler.add_meeting("1100")
    scheduler.remove_meeting(first)
    assert scheduler.meetings == [other]
    scheduler.remove_meeting(12345)
    assert scheduler.meetings == [other]


def test_check_is_idempotent_when_nothing_due(scheduler, clock):
    scheduler.add_meeting("1000")
    before = scheduler.meetings
    changes = []
    scheduler.on_meetings_changed.add_listener(lambda **kw: changes.append(kw))
    for _ in range(3):
        assert scheduler.check(clock.now) is False
    assert scheduler.meetings == before
    assert scheduler.phase == MeetingPhase.IDLE
    assert changes == []


def test_due_meeting_is_consumed_once(scheduler, clock):
    scheduler.add_meeting("0930")
    later = scheduler.add_meeting("1000")
    clock.advance(minutes=30)
    assert scheduler.check(clock.now) is True
    assert scheduler.phase == MeetingPhase.MEETING
    assert scheduler.meetings == [later]

    assert scheduler.send(MeetingEvent.STOP)
    assert scheduler.phase == MeetingPhase.IDLE
    assert scheduler.check(clock.now) is False


def test_meetings_missed_together_fire_once(scheduler, clock):
    scheduler.add_meeting("0905")
    scheduler.add_meeting("0910")
    clock.advance(minutes=15)
    assert scheduler.check(clock.now) is True
    assert scheduler.meetings == []
    scheduler.send(MeetingEvent.STOP)
    assert scheduler.check(clock.now) is False


def test_due_meeting_waits_while_configuring(scheduler, clock):
    scheduler.add_meeting("0905")
    scheduler.send(MeetingEvent.CONFIG_MEETINGS)
    clock.advance(minutes=10)
    assert scheduler.check(clock.now) is False
    assert len(scheduler.meetings) == 1
    scheduler.send(MeetingEvent.STOP)
    assert scheduler.check(clock.now) is True
    assert scheduler.phase == MeetingPhase.MEETING


def test_commands_per_phase(scheduler, clock):
    assert scheduler.commands() == [MeetingEvent.CONFIG_MEETINGS]
    scheduler.send(MeetingEvent.CONFIG_MEETINGS)
    assert scheduler.commands() == [MeetingEvent.STOP]
    assert scheduler.send(MeetingEvent.CONFIG_MEETINGS) is False


def test_daily_meeting_fires_and_dismissal_suppresses_it():
    clock = FakeClock(now=NINE_AM)
    scheduler = MeetingScheduler(clock, daily_meetings=["0930", "bogus"])
    assert scheduler.daily_meetings == ((9, 30),)

    clock.advance(minutes=29)
    assert scheduler.check(clock.now) is False
    clock.advance(minutes=1)
    assert scheduler.check(clock.now) is True
    assert scheduler.phase == MeetingPhase.MEETING
    assert scheduler.ignore_before == clock.now

    clock.advance(minutes=20)
    scheduler.send(MeetingEvent.STOP)
    assert scheduler.ignore_before == clock.now
    clock.advance(minutes=1)
    assert scheduler.check(clock.now) is False


def test_daily_meeting_does_not_fire_retroactively_on_first_start():
    clock = FakeClock(now=utc_millis(2020, 2, 1, 15, 0))
    scheduler = MeetingScheduler(clock, daily_meetings=["0930"])
    assert scheduler.check(clock.now) is False


def test_daily_meeting_fires_next_day_after_dismissal():
    clock = FakeClock(now=NINE_AM)
    dismissed = utc_millis(2020, 1, 31, 10, 0)
    scheduler = MeetingScheduler(clock, daily_meetings=["0930"], ignore_before=dismissed)
    clock.advance(minutes=30)
    assert scheduler.check(clock.now) is True


def test_loaded_meetings_are_sorted(clock):
    scheduler = MeetingScheduler(clock, meetings=[NINE_AM + 2 * MINUTE_MS, NINE_AM + MINUTE_MS])
    assert scheduler.meetings == [NINE_AM + MINUTE_MS, NINE_AM + 2 * MINUTE_MS]
