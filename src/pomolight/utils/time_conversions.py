from datetime import datetime

SECOND = 1000


def format_millis(millis: int, minute: int = 60 * SECOND) -> str:
    """
    Formats a remaining duration as MM:SS.

    ``minute`` is the length of a minute in milliseconds, so accelerated runs
    (one-second minutes) still render whole "minutes". Negative values, which
    show up for a tick or two after a phase runs out, render as 00:00.
    """
    millis = max(int(millis), 0)
    minutes = millis // minute
    seconds = (millis % minute) // SECOND
    return f"{minutes:02}:{seconds:02}"

def format_time(dt: datetime) -> str:
    """Formats a datetime as HH:MM."""
    return f"{dt.hour:02}:{dt.minute:02}"
