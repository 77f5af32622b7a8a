from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

import pytest

from socksnio.selector import SelectorKey
from socksnio.stm import StateDefinition, StateMachine


class S(IntEnum):
    A = 0
    B = 1
    C = 2


@dataclass
class Data:
    arrived: List[bool] = field(default_factory=lambda: [False] * 3)
    departed: List[bool] = field(default_factory=lambda: [False] * 3)
    i: int = 0


def _on_arrival(state, key):
    key.data.arrived[state] = True


def _on_departure(state, key):
    key.data.departed[state] = True


def _on_read_ready(key):
    d = key.data
    if d.i < S.C:
        d.i += 1
        return d.i
    return S.C


def _on_write_ready(key):
    return _on_read_ready(key)


def _table():
    return [
        StateDefinition(
            state=s,
            on_arrival=_on_arrival,
            on_departure=_on_departure,
            on_read_ready=_on_read_ready,
            on_write_ready=_on_write_ready,
        )
        for s in S
    ]


def _key(data=None):
    return SelectorKey(None, 0, data if data is not None else Data())


def test_state_machine_walk():
    stm = StateMachine(_table(), S.A)
    data = Data()
    key = _key(data)

    assert stm.state() == S.A
    assert data.arrived == [False, False, False]
    assert stm.current is None

    assert stm.handle_read(key) == S.B
    assert stm.state() == S.B
    assert data.arrived == [True, True, False]
    assert data.departed == [True, False, False]

    assert stm.handle_write(key) == S.C
    assert stm.state() == S.C
    assert data.arrived == [True, True, True]
    assert data.departed == [True, True, False]

    assert stm.handle_read(key) == S.C
    assert stm.state() == S.C
    assert data.arrived == [True, True, True]
    assert data.departed == [True, True, False]

    stm.handle_close(key)
    assert data.departed == [True, True, True]


def test_staying_in_state_does_not_rearrive():
    arrivals = []
    table = [
        StateDefinition(0, on_arrival=lambda s, k: arrivals.append(s),
                        on_read_ready=lambda k: 0),
        StateDefinition(1),
    ]
    stm = StateMachine(table)
    key = _key()
    stm.handle_read(key)
    stm.handle_read(key)
    assert arrivals == [0]
    assert stm.state() == 0


def test_close_before_any_event_does_nothing():
    stm = StateMachine(_table(), S.A)
    data = Data()
    stm.handle_close(_key(data))
    assert data.departed == [False, False, False]
    assert stm.current is None


def test_block_handler_transitions():
    table = [
        StateDefinition(0, on_block_ready=lambda k: 1),
        StateDefinition(1),
    ]
    stm = StateMachine(table)
    assert stm.handle_block(_key()) == 1
    assert stm.state() == 1


def test_missing_handler_raises():
    table = [StateDefinition(0), StateDefinition(1)]
    stm = StateMachine(table)
    with pytest.raises(RuntimeError):
        stm.handle_write(_key())


def test_transition_to_unknown_state_raises():
    table = [StateDefinition(0, on_read_ready=lambda k: 5), StateDefinition(1)]
    stm = StateMachine(table)
    with pytest.raises(ValueError):
        stm.handle_read(_key())


def test_unordered_states_rejected():
    table = [StateDefinition(1), StateDefinition(0)]
    with pytest.raises(ValueError):
        StateMachine(table)


@pytest.mark.parametrize("initial", [-1, 2, 3])
def test_invalid_initial_rejected(initial):
    with pytest.raises(ValueError):
        StateMachine(_table(), initial)


def test_empty_table_rejected():
    with pytest.raises(ValueError):
        StateMachine([])


def test_max_state():
    assert StateMachine(_table(), S.B).max_state == 2