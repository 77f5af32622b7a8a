"""A small state machine engine driven by selector events.

States are identified by consecutive integers starting at 0 (typically
members of an ``IntEnum``). Each state may react to arrival and departure,
and to read, write and block events; an event handler returns the id of
the next state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .selector import SelectorKey

TransitionHook = Optional[Callable[[int, SelectorKey], None]]
EventHandler = Optional[Callable[[SelectorKey], int]]


@dataclass(frozen=True)
class StateDefinition:
    """One state of a state machine and its callbacks."""

    state: int
    on_arrival: TransitionHook = None
    on_departure: TransitionHook = None
    on_read_ready: EventHandler = None
    on_write_ready: EventHandler = None
    on_block_ready: EventHandler = None


class StateMachine:
    """Runs a table of ``StateDefinition`` in response to selector events.

    ``states`` must be ordered so that ``states[i].state == i``. The machine
    enters ``initial`` lazily, on the first event it handles.
    """

    def __init__(self, states: Sequence[StateDefinition], initial: int = 0) -> None:
        self.states = tuple(states)
        if not self.states:
            raise ValueError("a state machine needs at least one state")
        for index, definition in enumerate(self.states):
            if definition.state != index:
                raise ValueError(
                    f"state at position {index} has id {definition.state}; "
                    "states must be consecutive and in order"
                )
        self.initial = int(initial)
        if not 0 <= self.initial < self.max_state:
            raise ValueError(f"invalid initial state: {initial}")
        self.current: Optional[StateDefinition] = None

    @property
    def max_state(self) -> int:
        """The highest state id."""
        return len(self.states) - 1

    def state(self) -> int:
        """The id of the current state, or of the initial one before any event."""
        if self.current is None:
            return self.initial
        return self.current.state

    def _handle_first(self, key: SelectorKey) -> StateDefinition:
        if self.current is None:
            self.current = self.states[self.initial]
            if self.current.on_arrival is not None:
                self.current.on_arrival(self.current.state, key)
        return self.current

    def _jump(self, next_state: int, key: SelectorKey) -> None:
        if not 0 <= next_state <= self.max_state:
            raise ValueError(f"transition to unknown state: {next_state}")
        target = self.states[next_state]
        if self.current is target:
            return
        if self.current is not None and self.current.on_departure is not None:
            self.current.on_departure(self.current.state, key)
        self.current = target
        if target.on_arrival is not None:
            target.on_arrival(target.state, key)

    def _dispatch(self, key: SelectorKey, attribute: str, event: str) -> int:
        current = self._handle_first(key)
        handler = getattr(current, attribute)
        if handler is None:
            raise RuntimeError(f"state {current.state} has no {event} handler")
        next_state = int(handler(key))
        self._jump(next_state, key)
        return next_state

    def handle_read(self, key: SelectorKey) -> int:
        """Handle a read event. Returns the id of the new state."""
        return self._dispatch(key, "on_read_ready", "read")

    def handle_write(self, key: SelectorKey) -> int:
        """Handle a write event. Returns the id of the new state."""
        return self._dispatch(key, "on_write_ready", "write")

    def handle_block(self, key: SelectorKey) -> int:
        """Handle the completion of blocking work. Returns the id of the new state."""
        return self._dispatch(key, "on_block_ready", "block")

    def handle_close(self, key: SelectorKey) -> None:
        """Handle a close event: leave the current state, if one was entered."""
        if self.current is not None and self.current.on_departure is not None:
            self.current.on_departure(self.current.state, key)