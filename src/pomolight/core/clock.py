import datetime
import time
from typing import Optional

import pytz

from pomolight.utils.logging_handler import setup_logger

logger = setup_logger(__name__, console=False)


class Clock:
    """
    Wall-clock source for the tick loop.

    Timestamps are epoch milliseconds. Calendar questions ("today at 09:30")
    are answered in ``timezone_str`` when given, otherwise in the system's
    local time zone.
    """

    def __init__(self, timezone_str: Optional[str] = None):
        self.tz = None
        if timezone_str:
            try:
                self.tz = pytz.timezone(timezone_str)
            except pytz.exceptions.UnknownTimeZoneError:
                logger.warning(f"Unknown timezone '{timezone_str}'. Using local time.")

    def now_millis(self) -> int:
        """Returns the current time as epoch milliseconds."""
        return int(time.time() * 1000)

    def to_datetime(self, millis: int) -> datetime.datetime:
        """Returns an aware datetime for ``millis`` in the clock's time zone."""
        seconds = millis / 1000
        if self.tz is not None:
            return datetime.datetime.fromtimestamp(seconds, self.tz)
        return datetime.datetime.fromtimestamp(seconds).astimezone()

    def today_at(self, hour: int, minute: int, reference_millis: int) -> int:
        """Epoch millis for hour:minute:00.000 on the calendar day of ``reference_millis``."""
        reference = self.to_datetime(reference_millis)
        naive = datetime.datetime(reference.year, reference.month, reference.day, hour, minute)
        if self.tz is not None:
            aware = self.tz.localize(naive)
        else:
            aware = naive.astimezone()
        return round(aware.timestamp() * 1000)
