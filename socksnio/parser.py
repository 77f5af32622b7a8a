"""A small table-driven engine for byte parsers and lexers.

States and transitions are described by the caller. Each transition has a
condition, a destination state and one or two actions that build the events
returned to the caller for each byte fed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

ANY = 1 << 9
"""Value for ``Transition.when`` that always matches."""


@dataclass
class ParserEvent:
    """An event produced by the parser for a fed byte."""

    type: int
    data: bytes = b""
    next: Optional["ParserEvent"] = None

    @property
    def n(self) -> int:
        """Number of bytes associated with the event."""
        return len(self.data)


Action = Callable[[int], ParserEvent]


@dataclass(frozen=True)
class Transition:
    """A transition between states.

    ``when`` is either a byte value (0..255), ``ANY``, or a character class
    mask above 0xFF that is tested against the byte's class.
    """

    when: int
    dest: int
    act1: Action
    act2: Optional[Action] = None

    def matches(self, c: int, char_class: int) -> bool:
        if self.when <= 0xFF:
            return c == self.when
        if self.when == ANY:
            return True
        return bool(char_class & self.when)


@dataclass(frozen=True)
class ParserDefinition:
    """Full description of a parser: the transitions of every state."""

    states: Sequence[Sequence[Transition]]
    start_state: int = 0

    @property
    def states_count(self) -> int:
        return len(self.states)


_NO_CLASSES = (0,) * 256


def no_classes() -> Sequence[int]:
    """A character classification with no classes, for parsers that need none."""
    return _NO_CLASSES


class Parser:
    """Runs a ``ParserDefinition`` one byte at a time."""

    def __init__(
        self,
        definition: ParserDefinition,
        classes: Optional[Sequence[int]] = None,
    ) -> None:
        self.definition = definition
        self.classes = no_classes() if classes is None else classes
        if len(self.classes) < 256:
            raise ValueError("classes must describe all 256 byte values")
        if not 0 <= definition.start_state < definition.states_count:
            raise ValueError("start state is not defined")
        self.state = definition.start_state

    def reset(self) -> None:
        """Go back to the start state."""
        self.state = self.definition.start_state

    def feed(self, c: int) -> Optional[ParserEvent]:
        """Feed one byte and return the resulting event.

        Returns ``None`` if no transition of the current state matched, in
        which case the state does not change.
        """
        if not 0 <= c <= 0xFF:
            raise ValueError(f"not a byte value: {c}")
        char_class = self.classes[c]
        for transition in self.definition.states[self.state]:
            if transition.matches(c, char_class):
                event = transition.act1(c)
                event.next = None
                if transition.act2 is not None:
                    second = transition.act2(c)
                    second.next = None
                    event.next = second
                self.state = transition.dest
                return event
        return None