"""Pomodoro timer with meeting reminders and a notification light."""

__version__ = "0.1.0"
