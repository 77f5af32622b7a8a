import socket

import pytest

from socksnio.buffer import Buffer
from socksnio.netutils import sock_blocking_copy, sock_blocking_write, sockaddr_to_human

IPV4 = ("1.2.3.4", 9090)
IPV6 = ("ffff:ffff:ffff:ffff:ffff:ffff:ffff:ffff", 9090, 0, 0)
FULL6 = "ffff:ffff:ffff:ffff:ffff:ffff:ffff:ffff"


@pytest.mark.parametrize(
    "size, expected",
    [
        (50, "1.2.3.4:9090"),
        (5, "unkn"),
        (8, "1.2.3.4"),
        (9, "1.2.3.4:"),
        (10, "1.2.3.4:9"),
        (11, "1.2.3.4:90"),
        (12, "1.2.3.4:909"),
        (13, "1.2.3.4:9090"),
    ],
)
def test_sockaddr_to_human_ipv4(size, expected):
    assert sockaddr_to_human(IPV4, size) == expected


@pytest.mark.parametrize(
    "size, expected",
    [
        (10, "unknown i"),
        (39, "unknown ip:9090"),
        (40, FULL6),
        (41, FULL6 + ":"),
        (42, FULL6 + ":9"),
        (43, FULL6 + ":90"),
        (44, FULL6 + ":909"),
        (45, FULL6 + ":9090"),
    ],
)
def test_sockaddr_to_human_ipv6(size, expected):
    assert sockaddr_to_human(IPV6, size) == expected


def test_sockaddr_to_human_default_size():
    assert sockaddr_to_human(IPV6) == FULL6 + ":9090"


def test_sockaddr_to_human_null_and_unknown():
    assert sockaddr_to_human(None) == "null"
    assert sockaddr_to_human("/tmp/socket") == "unknown:"


def test_sockaddr_to_human_rejects_zero_size():
    with pytest.raises(ValueError):
        sockaddr_to_human(IPV4, 0)


def test_sock_blocking_write():
    left, right = socket.socketpair()
    try:
        buf = Buffer(16)
        buf.write(b"hello")
        assert sock_blocking_write(left, buf) == 5
        assert len(buf) == 0
        assert right.recv(16) == b"hello"
    finally:
        left.close()
        right.close()


def test_sock_blocking_write_error():
    left, right = socket.socketpair()
    right.close()
    left.close()
    buf = Buffer(4)
    buf.write(b"data")
    with pytest.raises(OSError):
        sock_blocking_write(left, buf)


def test_sock_blocking_copy():
    src_in, src_out = socket.socketpair()
    dst_in, dst_out = socket.socketpair()
    payload = bytes(range(256)) * 40
    try:
        src_in.sendall(payload)
        src_in.shutdown(socket.SHUT_WR)
        assert sock_blocking_copy(src_out, dst_in) == len(payload)
        dst_in.shutdown(socket.SHUT_WR)
        received = bytearray()
        while True:
            chunk = dst_out.recv(65536)
            if not chunk:
                break
            received += chunk
        assert bytes(received) == payload
    finally:
        for sock in (src_in, src_out, dst_in, dst_out):
            sock.close()