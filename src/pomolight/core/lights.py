import asyncio
from dataclasses import dataclass
from typing import Optional, Tuple

from pomolight.core.status import MeetingPhase, SessionPhase
from pomolight.ports.light_port import LightPort
from pomolight.utils import custom_exception as ce
from pomolight.utils.logging_handler import setup_logger

logger = setup_logger(__name__, console=False)

SOLID = "solid"
PULSE = "pulse"

WORK_COLOR = "red"
BREAK_COLOR = "green"
IDLE_COLOR = "orange"
MEETING_COLOR = "blue"


@dataclass(frozen=True)
class LightIntent:
    mode: str
    color: str


SESSION_LIGHTS = {
    SessionPhase.IDLE: LightIntent(PULSE, IDLE_COLOR),
    SessionPhase.WORK: LightIntent(SOLID, WORK_COLOR),
    SessionPhase.WORK_FINISHED: LightIntent(PULSE, WORK_COLOR),
    SessionPhase.BREAK: LightIntent(SOLID, BREAK_COLOR),
    SessionPhase.BREAK_FINISHED: LightIntent(PULSE, BREAK_COLOR),
}

MEETING_LIGHTS = {
    MeetingPhase.MEETING: LightIntent(PULSE, MEETING_COLOR),
}

# Terminal header colours: the colour of what comes next once a phase is over.
HEADER_COLORS = {
    SessionPhase.IDLE: IDLE_COLOR,
    SessionPhase.WORK: WORK_COLOR,
    SessionPhase.WORK_FINISHED: BREAK_COLOR,
    SessionPhase.BREAK: BREAK_COLOR,
    SessionPhase.BREAK_FINISHED: WORK_COLOR,
}


def light_for(session_phase: SessionPhase, meeting_phase: MeetingPhase) -> Optional[LightIntent]:
    """An active meeting outranks the session colour. None means dark."""
    return MEETING_LIGHTS.get(meeting_phase) or SESSION_LIGHTS.get(session_phase)


class LightController:
    """
    Owns the light effect bound to the current pair of phases.

    Every phase change releases the previous effect with ``off()`` before the
    next one is started. While the device is unreachable effects are dropped
    and retried on the next change.
    """

    def __init__(self, light: LightPort, pulse_rate_ms: int = 500):
        self.light = light
        self.pulse_rate_ms = pulse_rate_ms
        self.active: Optional[LightIntent] = None
        self._phases: Optional[Tuple[SessionPhase, MeetingPhase]] = None
        self._lock = asyncio.Lock()

    async def apply(self, session_phase: SessionPhase, meeting_phase: MeetingPhase) -> None:
        async with self._lock:
            phases = (session_phase, meeting_phase)
            if phases == self._phases:
                return
            intent = light_for(session_phase, meeting_phase)
            try:
                await self._release()
                if intent is not None:
                    await self._acquire(intent)
            except ce.DeviceDisconnected as e:
                logger.warning(f"Light unavailable, skipping {intent}: {e}")
                return
            self._phases = phases

    async def release(self) -> None:
        async with self._lock:
            try:
                await self._release()
            except ce.DeviceDisconnected as e:
                logger.warning(f"Light unavailable while turning off: {e}")
            self._phases = None

    async def _acquire(self, intent: LightIntent) -> None:
        if intent.mode == SOLID:
            await self.light.set_solid(intent.color)
        else:
            await self.light.set_pulsing(intent.color, self.pulse_rate_ms)
        self.active = intent

    async def _release(self) -> None:
        if self.active is None:
            return
        self.active = None
        await self.light.off()
