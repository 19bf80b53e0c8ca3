import os
from pathlib import Path

BASE_DIR = Path(os.getenv("POMOLIGHT_HOME", Path.home() / ".pomolight")).expanduser()

from pomolight.utils.logging_handler import setup_logger  # noqa: E402
from pomolight.utils.event import Event  # noqa: E402

__all__ = ["BASE_DIR", "setup_logger", "Event"]
