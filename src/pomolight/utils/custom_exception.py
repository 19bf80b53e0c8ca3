class PomolightError(Exception):
    """Base class for every recoverable pomolight error."""
    pass


class MeetingInputError(PomolightError):
    """A meeting time typed by the user was rejected."""

    message = "Invalid meeting time."

    def __init__(self, value: str = "", message: str | None = None):
        self.value = value
        super().__init__(message or self.message)


class InvalidFormat(MeetingInputError):
    """Exception raised when a meeting time is not a number like 0930."""
    message = "Meeting time must be a number in HHMM format."


class InvalidHour(MeetingInputError):
    """Exception raised when the hour part is outside 0-23."""
    message = "Hour must be between 00 and 23."


class InvalidMinute(MeetingInputError):
    """Exception raised when the minute part is outside 0-59."""
    message = "Minute must be between 00 and 59."


class InThePast(MeetingInputError):
    """Exception raised when the meeting time already passed today."""
    message = "Meeting time is in the past."


class PersistenceReadError(PomolightError):
    """Exception raised when the state file exists but cannot be used."""
    pass


class PersistenceWriteError(PomolightError):
    """Exception raised when the state file cannot be written."""
    pass


class DeviceDisconnected(PomolightError):
    """Exception raised when the notification light is not reachable."""
    pass
