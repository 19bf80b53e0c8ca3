import asyncio

import pytest

from pomolight.core.lights import (
    HEADER_COLORS,
    SESSION_LIGHTS,
    LightController,
    LightIntent,
    light_for,
)
from pomolight.core.status import MeetingPhase, SessionPhase

from conftest import RecordingLight, UnpluggedLight


@pytest.mark.parametrize(
    "phase,intent",
    [
        (SessionPhase.IDLE, LightIntent("pulse", "orange")),
        (SessionPhase.WORK, LightIntent("solid", "red")),
        (SessionPhase.WORK_FINISHED, LightIntent("pulse", "red")),
        (SessionPhase.BREAK, LightIntent("solid", "green")),
        (SessionPhase.BREAK_FINISHED, LightIntent("pulse", "green")),
    ],
)
def test_session_light_table(phase, intent):
    assert SESSION_LIGHTS[phase] == intent
    assert light_for(phase, MeetingPhase.IDLE) == intent


def test_meeting_outranks_session():
    assert light_for(SessionPhase.WORK, MeetingPhase.MEETING) == LightIntent("pulse", "blue")
    assert light_for(SessionPhase.WORK, MeetingPhase.CONFIG_MEETINGS) == LightIntent("solid", "red")


def test_exit_is_dark():
    assert light_for(SessionPhase.EXIT, MeetingPhase.IDLE) is None


def test_header_colors_point_at_next_activity():
    assert HEADER_COLORS[SessionPhase.WORK_FINISHED] == "green"
    assert HEADER_COLORS[SessionPhase.BREAK_FINISHED] == "red"


def test_previous_effect_released_before_next(light: RecordingLight):
    controller = LightController(light, pulse_rate_ms=500)

    async def scenario():
        await controller.apply(SessionPhase.IDLE, MeetingPhase.IDLE)
        await controller.apply(SessionPhase.IDLE, MeetingPhase.IDLE)
        await controller.apply(SessionPhase.WORK, MeetingPhase.IDLE)
        await controller.apply(SessionPhase.WORK, MeetingPhase.MEETING)
        await controller.release()

    asyncio.run(scenario())
    assert light.calls == [
        ("pulse", "orange", 500),
        ("off",),
        ("solid", "red"),
        ("off",),
        ("pulse", "blue", 500),
        ("off",),
    ]
    assert controller.active is None


def test_release_without_effect_does_nothing(light: RecordingLight):
    asyncio.run(LightController(light).release())
    assert light.calls == []


def test_disconnected_device_is_not_fatal():
    light = UnpluggedLight()
    controller = LightController(light)

    async def scenario():
        await controller.apply(SessionPhase.WORK, MeetingPhase.IDLE)
        # Not recorded as applied, so the next call retries.
        await controller.apply(SessionPhase.WORK, MeetingPhase.IDLE)
        await controller.release()

    asyncio.run(scenario())
    assert light.attempts == 2
    assert controller.active is None
