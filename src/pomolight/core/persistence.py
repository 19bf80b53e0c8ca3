"""
Persisted session state.

The state file is a single JSON object::

    {"meetings": [1600000000000],
     "sessionPhase": {"phase": "work",
                      "context": {"workDuration": 25, "breakDuration": 5,
                                  "startTime": 1599999000000}},
     "meetingPhase": {"phase": "idle", "ignoreBefore": null}}

Snapshots are frozen dataclasses; build a new one rather than mutating.
Writes go through ``DebouncedWriter`` so bursts of changes cost one write.
"""
import asyncio
import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pomolight.core.status import MeetingPhase, SessionPhase
from pomolight.utils import custom_exception as ce
from pomolight.utils.logging_handler import setup_logger

logger = setup_logger(__name__, console=False)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected a timestamp, got {value!r}")
    return int(value)


def _duration(value: Any, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValueError(f"Expected a duration in minutes, got {value!r}")
    return value


@dataclass(frozen=True)
class SessionSnapshot:
    """Session phase plus the context needed to resume it.

    Attributes:
        phase: Session phase at the time of the snapshot
        work_duration: Work interval in minutes
        break_duration: Break interval in minutes
        start_time: Epoch millis the running interval began (None when not running)
    """

    phase: SessionPhase = SessionPhase.IDLE
    work_duration: float = 25
    break_duration: float = 5
    start_time: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "context": {
                "workDuration": self.work_duration,
                "breakDuration": self.break_duration,
                "startTime": self.start_time,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSnapshot":
        context = data.get("context") or {}
        return cls(
            phase=SessionPhase(data.get("phase", SessionPhase.IDLE.value)),
            work_duration=_duration(context.get("workDuration"), 25),
            break_duration=_duration(context.get("breakDuration"), 5),
            start_time=_optional_int(context.get("startTime")),
        )


@dataclass(frozen=True)
class MeetingSnapshot:
    """Meeting phase and the dismissal watermark for daily meetings."""

    phase: MeetingPhase = MeetingPhase.IDLE
    ignore_before: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"phase": self.phase.value, "ignoreBefore": self.ignore_before}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeetingSnapshot":
        return cls(
            phase=MeetingPhase(data.get("phase", MeetingPhase.IDLE.value)),
            ignore_before=_optional_int(data.get("ignoreBefore")),
        )


@dataclass(frozen=True)
class PersistedState:
    """Everything written to the state file.

    Attributes:
        meetings: Pending meeting timestamps (epoch millis), ascending
        session: Session snapshot
        meeting: Meeting scheduler snapshot
    """

    meetings: Tuple[int, ...] = field(default_factory=tuple)
    session: SessionSnapshot = field(default_factory=SessionSnapshot)
    meeting: MeetingSnapshot = field(default_factory=MeetingSnapshot)

    def __post_init__(self) -> None:
        """Store meetings as a sorted tuple."""
        object.__setattr__(self, "meetings", tuple(sorted(self.meetings)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meetings": list(self.meetings),
            "sessionPhase": self.session.to_dict(),
            "meetingPhase": self.meeting.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedState":
        """Rebuild a state; raises ValueError/TypeError on malformed input."""
        meetings = data.get("meetings") or []
        if not isinstance(meetings, list):
            raise ValueError("meetings must be a list")
        return cls(
            meetings=tuple(_optional_int(meeting) for meeting in meetings if meeting is not None),
            session=SessionSnapshot.from_dict(data.get("sessionPhase") or {}),
            meeting=MeetingSnapshot.from_dict(data.get("meetingPhase") or {}),
        )


def load_state(path: Path | str, strict: bool = False) -> PersistedState:
    """
    Read the state file.

    A missing file yields the default state. An unreadable or malformed file
    is logged and also yields the default state, unless ``strict`` is set, in
    which case PersistenceReadError is raised.
    """
    target = Path(path)
    if not target.exists():
        return PersistedState()
    try:
        with target.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError("State data must be a JSON object")
        return PersistedState.from_dict(data)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        error = ce.PersistenceReadError(f"Invalid state file {target}: {exc}")
        if strict:
            raise error from exc
        logger.error(f"{error}; starting from defaults")
        return PersistedState()


def save_state(path: Path | str, state: PersistedState) -> Path:
    """Write ``state`` atomically (temp file + rename)."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=str(target.parent),
            prefix=".tmp_state_",
            suffix=target.suffix or ".json",
            text=True,
        )
    except OSError as exc:
        raise ce.PersistenceWriteError(f"Cannot write state file {target}: {exc}") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(state.to_dict(), handle, indent=2, sort_keys=True)
            handle.write("\n")
        os.replace(temp_path, target)
    except OSError as exc:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise ce.PersistenceWriteError(f"Cannot write state file {target}: {exc}") from exc
    return target


class DebouncedWriter:
    """
    Coalesces state snapshots into one write per quiet period.

    ``stage`` never blocks: it keeps the newest snapshot and re-arms a timer on
    the running loop. The write itself runs in the default executor, one at a
    time, so an older snapshot can never land on disk after a newer one. A
    failed write is retried after ``retry_delay`` seconds, doubling up to
    ``max_retry_delay``.
    """

    def __init__(
        self,
        path: Path | str,
        delay: float = 0.2,
        retry_delay: float = 1.0,
        max_retry_delay: float = 60.0,
    ):
        self.path = Path(path)
        self.delay = delay
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self.writes = 0
        self._pending: Optional[PersistedState] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._flushing: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._backoff = retry_delay
        self._closed = False

    @property
    def pending(self) -> Optional[PersistedState]:
        return self._pending

    def stage(self, state: PersistedState) -> None:
        self._pending = state
        self._arm(self.delay)

    def _arm(self, delay: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._flushing = asyncio.create_task(self.flush())

    async def flush(self) -> bool:
        """Write the pending snapshot now. Returns False when the write failed."""
        async with self._lock:
            state = self._pending
            if state is None:
                return True
            self._pending = None
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, save_state, self.path, state)
            except ce.PersistenceWriteError as e:
                if self._pending is None:
                    self._pending = state
                if not self._closed:
                    logger.error(f"State not saved, retrying in {self._backoff:g}s: {e}")
                    if self._timer is None:
                        self._arm(self._backoff)
                    self._backoff = min(self._backoff * 2, self.max_retry_delay)
                else:
                    logger.error(f"State not saved: {e}")
                return False
            self._backoff = self.retry_delay
            self.writes += 1
            logger.debug(f"State saved to {self.path}")
            return True

    async def close(self) -> bool:
        """Cancel the timer and flush whatever is still pending."""
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._flushing is not None and not self._flushing.done():
            await self._flushing
        return await self.flush()
