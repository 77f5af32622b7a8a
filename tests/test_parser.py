import pytest

from socksnio.parser import (
    ANY,
    Parser,
    ParserDefinition,
    ParserEvent,
    Transition,
    no_classes,
)

S0, S1 = 0, 1
FOO, BAR = 0, 1


def foo(c):
    return ParserEvent(FOO, bytes([c]))


def bar(c):
    return ParserEvent(BAR, bytes([c]))


ST_S0 = (
    Transition(when=ord("F"), dest=S0, act1=foo),
    Transition(when=ord("f"), dest=S0, act1=foo),
    Transition(when=ANY, dest=S1, act1=bar),
)
ST_S1 = (
    Transition(when=ord("F"), dest=S0, act1=foo),
    Transition(when=ord("f"), dest=S0, act1=foo),
    Transition(when=ANY, dest=S1, act1=bar),
)

DEFINITION = ParserDefinition(states=(ST_S0, ST_S1), start_state=S0)


def assert_event(event_type, c, event):
    assert event.next is None
    assert event.n == 1
    assert event.type == event_type
    assert event.data[0] == ord(c)


def test_basic():
    parser = Parser(DEFINITION, no_classes())
    assert_event(FOO, "f", parser.feed(ord("f")))
    assert_event(FOO, "F", parser.feed(ord("F")))
    assert_event(BAR, "B", parser.feed(ord("B")))
    assert_event(BAR, "b", parser.feed(ord("b")))


def test_state_follows_transitions_and_reset():
    parser = Parser(DEFINITION)
    parser.feed(ord("x"))
    assert parser.state == S1
    parser.reset()
    assert parser.state == S0


def test_second_action_is_chained():
    definition = ParserDefinition(
        states=((Transition(when=ANY, dest=0, act1=foo, act2=bar),),)
    )
    parser = Parser(definition)
    event = parser.feed(ord("q"))
    assert event.type == FOO
    assert event.next is not None
    assert event.next.type == BAR
    assert event.next.data == b"q"
    assert event.next.next is None


def test_no_match_returns_none_and_keeps_state():
    definition = ParserDefinition(
        states=((Transition(when=ord("a"), dest=1, act1=foo),), (Transition(when=ANY, dest=1, act1=bar),))
    )
    parser = Parser(definition)
    assert parser.feed(ord("z")) is None
    assert parser.state == 0


def test_character_classes():
    digit = 1 << 10
    classes = [0] * 256
    for ch in b"0123456789":
        classes[ch] = digit
    definition = ParserDefinition(
        states=((Transition(when=digit, dest=0, act1=foo), Transition(when=ANY, dest=0, act1=bar)),)
    )
    parser = Parser(definition, classes)
    assert parser.feed(ord("7")).type == FOO
    assert parser.feed(ord("x")).type == BAR


def test_no_classes_covers_all_bytes():
    classes = no_classes()
    assert len(classes) == 256
    assert set(classes) == {0}


def test_feed_rejects_non_byte():
    parser = Parser(DEFINITION)
    with pytest.raises(ValueError):
        parser.feed(256)


def test_short_classes_rejected():
    with pytest.raises(ValueError):
        Parser(DEFINITION, [0] * 255)