"""Factories for commonly used parser definitions."""

from __future__ import annotations

from enum import IntEnum
from typing import Union

from .parser import ANY, ParserDefinition, ParserEvent, Transition


class StringCmpEvent(IntEnum):
    """Events produced by a case-insensitive string comparison parser."""

    MAYEQ = 0
    """The input so far may still be equal."""
    EQ = 1
    """The input is equal."""
    NEQ = 2
    """The input can no longer be equal."""


_EVENT_NAMES = {
    StringCmpEvent.MAYEQ: "wait(c)",
    StringCmpEvent.EQ: "eq(c)",
    StringCmpEvent.NEQ: "neq(c)",
}


def strcmpi_event_name(event_type: int) -> str:
    """A short description of a string comparison event."""
    return _EVENT_NAMES[StringCmpEvent(event_type)]


def _emitter(event_type: StringCmpEvent):
    def action(c: int) -> ParserEvent:
        return ParserEvent(int(event_type), bytes([c]))

    return action


_may_eq = _emitter(StringCmpEvent.MAYEQ)
_eq = _emitter(StringCmpEvent.EQ)
_neq = _emitter(StringCmpEvent.NEQ)


def strcmpi(text: Union[str, bytes]) -> ParserDefinition:
    """Build a parser that checks, ignoring ASCII case, that its input spells ``text``.

    Receiving ``StringCmpEvent.NEQ`` means the input does not match.
    """
    raw = text.encode("latin-1") if isinstance(text, str) else bytes(text)
    n = len(raw)
    st_eq = n
    st_neq = n + 1

    states = []
    for i, ch in enumerate(raw):
        last = i + 1 == n
        dest = st_eq if last else i + 1
        action = _eq if last else _may_eq
        single = bytes([ch])
        states.append((
            Transition(when=single.lower()[0], dest=dest, act1=action),
            Transition(when=single.upper()[0], dest=dest, act1=action),
            Transition(when=ANY, dest=st_neq, act1=_neq),
        ))
    states.append((Transition(when=ANY, dest=st_neq, act1=_neq),))
    states.append((Transition(when=ANY, dest=st_neq, act1=_neq),))

    return ParserDefinition(states=tuple(states), start_state=0)