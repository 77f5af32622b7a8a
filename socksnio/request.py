"""Parser and serializer for the SOCKSv5 request message.

::

    +----+-----+-------+------+----------+----------+
    |VER | CMD |  RSV  | ATYP | DST.ADDR | DST.PORT |
    +----+-----+-------+------+----------+----------+
    | 1  |  1  | X'00' |  1   | Variable |    2     |
    +----+-----+-------+------+----------+----------+
"""

from __future__ import annotations

import errno
import ipaddress
import socket
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

from .buffer import Buffer

SOCKS_VERSION = 0x05


class RequestCommand(IntEnum):
    CONNECT = 0x01
    BIND = 0x02
    ASSOCIATE = 0x03


class AddressType(IntEnum):
    IPV4 = 0x01
    DOMAIN = 0x03
    IPV6 = 0x04


class ResponseStatus(IntEnum):
    SUCCEEDED = 0x00
    GENERAL_SOCKS_SERVER_FAILURE = 0x01
    CONNECTION_NOT_ALLOWED_BY_RULESET = 0x02
    NETWORK_UNREACHABLE = 0x03
    HOST_UNREACHABLE = 0x04
    CONNECTION_REFUSED = 0x05
    TTL_EXPIRED = 0x06
    COMMAND_NOT_SUPPORTED = 0x07
    ADDRESS_TYPE_NOT_SUPPORTED = 0x08


class RequestState(IntEnum):
    """States of the request parser; from DONE on parsing is finished, from ERROR on it failed."""

    VERSION = 0
    CMD = 1
    RSV = 2
    ATYP = 3
    DSTADDR_FQDN = 4
    DSTADDR = 5
    DSTPORT = 6
    DONE = 7
    ERROR = 8
    ERROR_UNSUPPORTED_VERSION = 9
    ERROR_UNSUPPORTED_ATYP = 10


class ResolveError(Exception):
    """A request's destination could not be turned into a socket address."""

    def __init__(self, status: ResponseStatus, message: str) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class Request:
    """A parsed request. ``dest_addr`` holds the raw address bytes, ``dest_port`` the port."""

    cmd: int = 0
    dest_addr_type: int = 0
    dest_addr: bytes = b""
    dest_port: int = 0

    @property
    def host(self) -> str:
        """The destination address as text."""
        if self.dest_addr_type == AddressType.IPV4:
            return str(ipaddress.IPv4Address(self.dest_addr))
        if self.dest_addr_type == AddressType.IPV6:
            return str(ipaddress.IPv6Address(self.dest_addr))
        if self.dest_addr_type == AddressType.DOMAIN:
            return self.dest_addr.split(b"\0", 1)[0].decode("latin-1")
        raise ValueError(f"unsupported address type: {self.dest_addr_type}")


def is_done(state: RequestState) -> bool:
    """True if parsing has finished, successfully or not."""
    return state >= RequestState.DONE


def is_error(state: RequestState) -> bool:
    """True if parsing finished because of an error."""
    return state >= RequestState.ERROR


class RequestParser:
    """Byte-at-a-time parser of the request message, filling in ``request``."""

    def __init__(self, request: Optional[Request] = None) -> None:
        self.request = request if request is not None else Request()
        self.reset()

    def reset(self) -> None:
        """Prepare the parser for a new message and clear the request."""
        self.state = RequestState.VERSION
        self._remaining = 0
        self._collected = bytearray()
        self.request.cmd = 0
        self.request.dest_addr_type = 0
        self.request.dest_addr = b""
        self.request.dest_port = 0

    def _expect(self, count: int) -> None:
        self._remaining = count
        self._collected = bytearray()

    def feed(self, byte: int) -> RequestState:
        """Feed one byte and return the new state."""
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"not a byte value: {byte}")
        state = self.state
        request = self.request
        if state == RequestState.VERSION:
            self.state = (
                RequestState.CMD
                if byte == SOCKS_VERSION
                else RequestState.ERROR_UNSUPPORTED_VERSION
            )
        elif state == RequestState.CMD:
            request.cmd = byte
            self.state = RequestState.RSV
        elif state == RequestState.RSV:
            self.state = RequestState.ATYP
        elif state == RequestState.ATYP:
            request.dest_addr_type = byte
            request.dest_addr = b""
            if byte == AddressType.IPV4:
                self._expect(4)
                self.state = RequestState.DSTADDR
            elif byte == AddressType.IPV6:
                self._expect(16)
                self.state = RequestState.DSTADDR
            elif byte == AddressType.DOMAIN:
                self.state = RequestState.DSTADDR_FQDN
            else:
                self.state = RequestState.ERROR_UNSUPPORTED_ATYP
        elif state == RequestState.DSTADDR_FQDN:
            self._expect(byte)
            self.state = RequestState.DSTADDR
        elif state == RequestState.DSTADDR:
            self._collected.append(byte)
            if len(self._collected) >= self._remaining:
                request.dest_addr = bytes(self._collected)
                request.dest_port = 0
                self._expect(2)
                self.state = RequestState.DSTPORT
        elif state == RequestState.DSTPORT:
            self._collected.append(byte)
            request.dest_port = (request.dest_port << 8) | byte
            if len(self._collected) >= self._remaining:
                self.state = RequestState.DONE
        return self.state

    def consume(self, buffer: Buffer) -> RequestState:
        """Feed bytes from ``buffer`` until the message is complete or the buffer is empty."""
        while buffer.can_read():
            if is_done(self.feed(buffer.read_byte())):
                break
        return self.state


def marshall(buffer: Buffer, status: int) -> int:
    """Write a reply with ``status`` and an all-zero IPv4 bind address. Returns bytes written."""
    if len(buffer.writable()) < 10:
        raise ValueError("not enough space in buffer for the request reply")
    reply = bytes([SOCKS_VERSION, status, 0x00, AddressType.IPV4]) + bytes(6)
    buffer.write(reply)
    return 10


_ERRNO_STATUS = {
    0: ResponseStatus.SUCCEEDED,
    errno.ECONNREFUSED: ResponseStatus.CONNECTION_REFUSED,
    errno.EHOSTUNREACH: ResponseStatus.HOST_UNREACHABLE,
    errno.ENETUNREACH: ResponseStatus.NETWORK_UNREACHABLE,
    errno.ETIMEDOUT: ResponseStatus.TTL_EXPIRED,
}


def errno_to_socks(error_number: int) -> ResponseStatus:
    """Map an errno value to the reply status reported to the client."""
    return _ERRNO_STATUS.get(error_number, ResponseStatus.GENERAL_SOCKS_SERVER_FAILURE)


def resolve(request: Request) -> Tuple[int, tuple]:
    """Turn the request's destination into ``(family, sockaddr)`` ready for ``connect``.

    Domain names are resolved to an IPv4 address. Raises ``ResolveError``.
    """
    if request.dest_addr_type == AddressType.DOMAIN:
        try:
            host = socket.gethostbyname(request.host)
        except (OSError, UnicodeError) as exc:
            raise ResolveError(
                ResponseStatus.GENERAL_SOCKS_SERVER_FAILURE,
                f"cannot resolve {request.host!r}",
            ) from exc
        return socket.AF_INET, (host, request.dest_port)
    if request.dest_addr_type == AddressType.IPV4:
        return socket.AF_INET, (request.host, request.dest_port)
    if request.dest_addr_type == AddressType.IPV6:
        return socket.AF_INET6, (request.host, request.dest_port, 0, 0)
    raise ResolveError(
        ResponseStatus.ADDRESS_TYPE_NOT_SUPPORTED,
        f"unsupported address type: {request.dest_addr_type}",
    )