from datetime import datetime, timezone

from pomolight.core.clock import Clock

from conftest import utc_millis


def test_today_at_in_utc():
    clock = Clock("UTC")
    reference = utc_millis(2020, 2, 1, 9, 0)
    assert clock.today_at(9, 13, reference) == utc_millis(2020, 2, 1, 9, 13)
    assert clock.today_at(0, 0, reference) == utc_millis(2020, 2, 1)


def test_today_at_follows_local_calendar_day():
    clock = Clock("America/New_York")
    # 03:00 UTC on Feb 2 is still Feb 1 in New York (UTC-5).
    reference = utc_millis(2020, 2, 2, 3, 0)
    assert clock.today_at(22, 0, reference) == utc_millis(2020, 2, 2, 3, 0)


def test_today_at_handles_daylight_saving():
    clock = Clock("Europe/Berlin")
    reference = utc_millis(2020, 7, 1, 6, 0)
    # 09:30 CEST is 07:30 UTC.
    assert clock.today_at(9, 30, reference) == utc_millis(2020, 7, 1, 7, 30)


def test_to_datetime_is_aware():
    clock = Clock("UTC")
    dt = clock.to_datetime(utc_millis(2020, 2, 1, 9, 5))
    assert dt == datetime(2020, 2, 1, 9, 5, tzinfo=timezone.utc)


def test_unknown_timezone_falls_back_to_local():
    clock = Clock("Mars/Olympus_Mons")
    assert clock.tz is None
    assert clock.to_datetime(0).tzinfo is not None


def test_now_millis_is_epoch_millis():
    assert Clock().now_millis() > utc_millis(2020, 1, 1)
