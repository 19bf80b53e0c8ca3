from abc import ABC, abstractmethod


class LightPort(ABC):
    """Port for the notification light. Adapters raise DeviceDisconnected when unreachable."""

    @abstractmethod
    async def set_solid(self, color: str) -> None:
        """Light up steadily in ``color``."""
        pass

    @abstractmethod
    async def set_pulsing(self, color: str, rate_ms: int) -> None:
        """Blink ``color`` every ``rate_ms`` milliseconds."""
        pass

    @abstractmethod
    async def off(self) -> None:
        """Turn the light off."""
        pass
