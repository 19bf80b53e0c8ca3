"""Runtime settings, read from the environment (and a ``.env`` file)."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import dotenv

from pomolight.utils import BASE_DIR

ENV_PREFIX = "POMOLIGHT_"

DEFAULT_WORK_DURATION = 25
DEFAULT_BREAK_DURATION = 5
DEBUG_WORK_DURATION = 5
DEFAULT_PULSE_RATE_MS = 500
DEFAULT_DEBOUNCE_SECONDS = 0.2


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_flag(name: str) -> bool:
    return (_env(name, "") or "").lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    work_duration: float = DEFAULT_WORK_DURATION
    break_duration: float = DEFAULT_BREAK_DURATION
    debug: bool = False
    state_path: Path = field(default_factory=lambda: BASE_DIR / "state.json")
    daily_meetings: Tuple[str, ...] = ()
    timezone: Optional[str] = None
    pulse_rate_ms: int = DEFAULT_PULSE_RATE_MS
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    esp32_host: Optional[str] = None
    strict: bool = False
    no_device: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from ``POMOLIGHT_*`` variables after loading ``.env``."""
        dotenv.load_dotenv(env_file or dotenv.find_dotenv(usecwd=True))
        debug = _env_flag("DEBUG")
        default_work = DEBUG_WORK_DURATION if debug else DEFAULT_WORK_DURATION
        daily = _env("DAILY_MEETINGS", "") or ""
        return cls(
            work_duration=_env_number("WORK_DURATION", default_work),
            break_duration=_env_number("BREAK_DURATION", DEFAULT_BREAK_DURATION),
            debug=debug,
            state_path=Path(_env("STATE_PATH", str(BASE_DIR / "state.json"))).expanduser(),
            daily_meetings=tuple(item.strip() for item in daily.split(",") if item.strip()),
            timezone=_env("TIMEZONE"),
            pulse_rate_ms=int(_env_number("PULSE_RATE_MS", DEFAULT_PULSE_RATE_MS)),
            debounce_seconds=_env_number("DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS),
            esp32_host=_env("ESP32_HOST"),
            strict=_env_flag("STRICT"),
            no_device=_env_flag("NO_DEVICE"),
        )
