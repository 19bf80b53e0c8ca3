from pomolight.ports.light_port import LightPort
from pomolight.utils.logging_handler import setup_logger

light_logger = setup_logger("light", console=False)


class DummyLight(LightPort):
    """Light that only logs what it would show (``--no-device``)."""

    def __init__(self):
        self.calls = []

    async def set_solid(self, color: str) -> None:
        self.calls.append(("solid", color))
        light_logger.info(f"[dummy] solid {color}")

    async def set_pulsing(self, color: str, rate_ms: int) -> None:
        self.calls.append(("pulse", color, rate_ms))
        light_logger.info(f"[dummy] pulse {color} every {rate_ms}ms")

    async def off(self) -> None:
        self.calls.append(("off",))
        light_logger.info("[dummy] off")
