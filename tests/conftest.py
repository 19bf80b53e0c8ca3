"""Shared fixtures: a controllable UTC clock and fake light/menu ports."""
import os
import tempfile
from datetime import datetime, timezone

# Logs and default state go to a throwaway home, set before pomolight is imported.
os.environ.setdefault("POMOLIGHT_HOME", tempfile.mkdtemp(prefix="pomolight-tests-"))

import pytest

from pomolight.core.clock import Clock
from pomolight.ports.light_port import LightPort
from pomolight.ports.menu_port import MenuPort
from pomolight.utils import custom_exception as ce

MINUTE_MS = 60_000


def utc_millis(year, month, day, hour=0, minute=0, second=0) -> int:
    return int(datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc).timestamp() * 1000)


NINE_AM = utc_millis(2020, 2, 1, 9, 0)


class FakeClock(Clock):
    def __init__(self, now: int = NINE_AM, timezone_str: str = "UTC"):
        super().__init__(timezone_str)
        self.now = now

    def now_millis(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, millis: int = 0) -> int:
        self.now += int(minutes * MINUTE_MS) + millis
        return self.now


class RecordingLight(LightPort):
    def __init__(self):
        self.calls = []

    async def set_solid(self, color):
        self.calls.append(("solid", color))

    async def set_pulsing(self, color, rate_ms):
        self.calls.append(("pulse", color, rate_ms))

    async def off(self):
        self.calls.append(("off",))


class UnpluggedLight(LightPort):
    def __init__(self):
        self.attempts = 0

    async def set_solid(self, color):
        self.attempts += 1
        raise ce.DeviceDisconnected("unplugged")

    async def set_pulsing(self, color, rate_ms):
        self.attempts += 1
        raise ce.DeviceDisconnected("unplugged")

    async def off(self):
        self.attempts += 1
        raise ce.DeviceDisconnected("unplugged")


class ScriptedMenu(MenuPort):
    """Answers prompts from a script; a callable answer picks from the offered tokens."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.shown = []
        self.offered = []

    async def choose(self, options, header="", color=None):
        offered = [option.token for option in options]
        self.offered.append(offered)
        answer = self._next()
        if callable(answer):
            return answer(offered)
        return answer

    async def ask(self, prompt):
        return self._next() or ""

    def show(self, text):
        self.shown.append(text)

    def _next(self):
        if not self.answers:
            raise AssertionError("menu script exhausted")
        return self.answers.pop(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def light() -> RecordingLight:
    return RecordingLight()
