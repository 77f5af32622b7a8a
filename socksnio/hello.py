"""Parser and serializer for the SOCKSv5 method-selection ("hello") message.

The client opens with::

    +----+----------+----------+
    |VER | NMETHODS | METHODS  |
    +----+----------+----------+
    | 1  |    1     | 1 to 255 |
    +----+----------+----------+
"""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Optional

from .buffer import Buffer

SOCKS_VERSION = 0x05
METHOD_NO_AUTHENTICATION_REQUIRED = 0x00
METHOD_NO_ACCEPTABLE_METHODS = 0xFF


class HelloState(IntEnum):
    """States of the hello parser."""

    VERSION = 0
    NMETHODS = 1
    METHODS = 2
    DONE = 3
    ERROR_UNSUPPORTED_VERSION = 4


def is_done(state: HelloState) -> bool:
    """True if parsing has finished, successfully or not."""
    return state in (HelloState.DONE, HelloState.ERROR_UNSUPPORTED_VERSION)


def is_error(state: HelloState) -> bool:
    """True if parsing finished because of an error."""
    return state == HelloState.ERROR_UNSUPPORTED_VERSION


class HelloParser:
    """Byte-at-a-time parser of the hello message.

    ``on_authentication_method`` is called with every method the client offers.
    """

    def __init__(
        self, on_authentication_method: Optional[Callable[[int], None]] = None
    ) -> None:
        self.on_authentication_method = on_authentication_method
        self.state = HelloState.VERSION
        self.remaining = 0

    def reset(self) -> None:
        """Prepare the parser for a new message."""
        self.state = HelloState.VERSION
        self.remaining = 0

    def feed(self, byte: int) -> HelloState:
        """Feed one byte and return the new state."""
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"not a byte value: {byte}")
        if self.state == HelloState.VERSION:
            if byte == SOCKS_VERSION:
                self.state = HelloState.NMETHODS
            else:
                self.state = HelloState.ERROR_UNSUPPORTED_VERSION
        elif self.state == HelloState.NMETHODS:
            self.remaining = byte
            self.state = HelloState.METHODS if byte > 0 else HelloState.DONE
        elif self.state == HelloState.METHODS:
            if self.on_authentication_method is not None:
                self.on_authentication_method(byte)
            self.remaining -= 1
            if self.remaining <= 0:
                self.state = HelloState.DONE
        return self.state

    def consume(self, buffer: Buffer) -> HelloState:
        """Feed bytes from ``buffer`` until the message is complete or the buffer is empty."""
        while buffer.can_read():
            if is_done(self.feed(buffer.read_byte())):
                break
        return self.state

    def error(self) -> str:
        """A description of the error state, or an empty string."""
        if self.state == HelloState.ERROR_UNSUPPORTED_VERSION:
            return "unsupported version"
        return ""


def marshall(buffer: Buffer, method: int) -> int:
    """Write the hello reply selecting ``method``. Returns the number of bytes written."""
    if len(buffer.writable()) < 2:
        raise ValueError("not enough space in buffer for the hello reply")
    buffer.write(bytes([SOCKS_VERSION, method]))
    return 2