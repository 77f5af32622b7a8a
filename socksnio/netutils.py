"""Small networking helpers."""

from __future__ import annotations

import ipaddress
import socket
from typing import Optional, Tuple, Union

from .buffer import Buffer

SOCKADDR_TO_HUMAN_MIN = 46 + 5 + 1
"""Size that fits any address described by ``sockaddr_to_human``."""

_SEND_FLAGS = getattr(socket, "MSG_NOSIGNAL", 0)
_COPY_CHUNK = 4096

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def _parse_address(address) -> Optional[Tuple[IPAddress, int]]:
    if not isinstance(address, tuple) or len(address) < 2:
        return None
    host, port = address[0], address[1]
    if not isinstance(host, str):
        return None
    try:
        ip = ipaddress.ip_address(host.split("%", 1)[0])
    except ValueError:
        return None
    return ip, int(port)


def sockaddr_to_human(address, size: int = SOCKADDR_TO_HUMAN_MIN) -> str:
    """Describe a socket address as ``host:port``, in at most ``size - 1`` characters.

    ``address`` is a socket address tuple or ``None``. When the host alone does
    not fit, it is replaced by ``unknown ip``; addresses that are not IP
    addresses are described as ``unknown``.
    """
    if size < 1:
        raise ValueError("size must be at least 1")
    limit = size - 1
    if address is None:
        return "null"[:limit]
    parsed = _parse_address(address)
    if parsed is None:
        return "unknown:"[:limit]
    ip, port = parsed
    host = str(ip)
    if len(host) + 1 > size:
        host = "unknown ip"
    return f"{host}:{port}"[:limit]


def sock_blocking_write(sock: socket.socket, buffer: Buffer) -> int:
    """Send every pending byte of ``buffer`` on ``sock``. Returns the number sent.

    Socket errors propagate as ``OSError``.
    """
    total = 0
    while buffer.can_read():
        sent = sock.send(buffer.readable(), _SEND_FLAGS)
        if sent <= 0:
            break
        buffer.advance_read(sent)
        total += sent
    return total


def sock_blocking_copy(source: socket.socket, dest: socket.socket) -> int:
    """Copy everything received on ``source`` to ``dest`` until the stream ends.

    A failure to receive ends the copy; a failure to send raises ``OSError``.
    Returns the number of bytes copied.
    """
    total = 0
    while True:
        try:
            chunk = source.recv(_COPY_CHUNK)
        except OSError:
            break
        if not chunk:
            break
        dest.sendall(chunk, _SEND_FLAGS)
        total += len(chunk)
    return total