"""
Table-driven state machine.

Transitions and entry/exit actions are plain dictionaries; ``StateMachine``
only interprets them, so the tables can be checked without any device or
clock attached.
"""
from typing import Callable, Hashable, Iterable, List, Mapping, Optional

from pomolight.utils import Event
from pomolight.utils.logging_handler import setup_logger

logger = setup_logger(__name__, console=False)

Action = Callable[[], None]
TransitionTable = Mapping[Hashable, Mapping[Hashable, Hashable]]


class StateMachine:
    """Interprets a (state x event -> target) table plus entry/exit actions."""

    def __init__(
        self,
        name: str,
        initial,
        transitions: TransitionTable,
        entry_actions: Optional[Mapping[Hashable, Action]] = None,
        exit_actions: Optional[Mapping[Hashable, Action]] = None,
        final_states: Iterable = (),
    ):
        self.name = name
        self._state = initial
        self._transitions = transitions
        self._entry_actions = dict(entry_actions or {})
        self._exit_actions = dict(exit_actions or {})
        self._final_states = frozenset(final_states)
        self.on_transition = Event()

    @property
    def state(self):
        return self._state

    @property
    def done(self) -> bool:
        return self._state in self._final_states

    def allowed_events(self) -> List:
        """Events accepted in the current state, in table order."""
        if self.done:
            return []
        return list(self._transitions.get(self._state, {}))

    def can(self, event) -> bool:
        return event in self.allowed_events()

    def send(self, event) -> bool:
        """Apply ``event``. Illegal events leave the state untouched and return False."""
        if not self.can(event):
            logger.debug(f"[{self.name}] rejected {_label(event)} in {_label(self._state)}")
            return False
        target = self._transitions[self._state][event]
        self._move(target, event)
        return True

    def restore(self, state) -> None:
        """Enter ``state`` directly, running its entry action (used when resuming)."""
        self._move(state, None)

    def _move(self, target, event) -> None:
        previous = self._state
        exit_action = self._exit_actions.get(previous)
        if exit_action:
            exit_action()
        self._state = target
        entry_action = self._entry_actions.get(target)
        if entry_action:
            entry_action()
        logger.info(f"[{self.name}] {_label(previous)} --{_label(event)}--> {_label(target)}")
        self.on_transition.emit(previous=previous, current=target, event=event)


def _label(value) -> str:
    if value is None:
        return "restore"
    return getattr(value, "value", str(value))

