"""An I/O multiplexer that dispatches readiness events to per-descriptor handlers.

A selector lets a single thread serve many non-blocking file descriptors.
For each descriptor the caller registers a handler with callbacks and an
interest (read, write, both or none). Work that must block can run in
another thread, which calls ``notify_block`` when it is done; the
descriptor's ``handle_block`` callback then runs on the selector's thread
during the next iteration.
"""

from __future__ import annotations

import errno
import os
import select as _select
import socket
import sys
import threading
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Any, Callable, List, Optional

ITEMS_MAX_SIZE = 1024
"""Largest number of descriptors a selector can handle (the limit of select(2))."""

ERROR_DEFAULT_MSG = "something failed"


class SelectorStatus(IntEnum):
    """Outcome codes of selector operations."""

    SUCCESS = 0
    ENOMEM = 1
    MAXFD = 2
    IARGS = 3
    FDINUSE = 4
    IO = 5


_MESSAGES = {
    SelectorStatus.SUCCESS: "Success",
    SelectorStatus.ENOMEM: "Not enough memory",
    SelectorStatus.MAXFD: "Can't handle any more file descriptors",
    SelectorStatus.IARGS: "Illegal argument",
    SelectorStatus.IO: "I/O error",
}


def selector_error(status: int) -> str:
    """A human readable description of a status."""
    try:
        return _MESSAGES.get(SelectorStatus(status), ERROR_DEFAULT_MSG)
    except ValueError:
        return ERROR_DEFAULT_MSG


class SelectorError(Exception):
    """A selector operation failed; ``status`` tells why."""

    def __init__(self, status: SelectorStatus, detail: str = "") -> None:
        message = selector_error(status)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status = SelectorStatus(status)


class Interest(IntFlag):
    """What a descriptor is interested in. Flags may be combined with ``|``."""

    NOOP = 0
    READ = 1 << 0
    WRITE = 1 << 2


@dataclass
class SelectorKey:
    """Argument passed to every handler callback."""

    selector: Optional["Selector"]
    fd: int
    data: Any = None


Callback = Optional[Callable[[SelectorKey], None]]


@dataclass(frozen=True)
class FdHandler:
    """Callbacks for the events of a descriptor. ``handle_close`` runs on unregistration."""

    handle_read: Callback = None
    handle_write: Callback = None
    handle_block: Callback = None
    handle_close: Callback = None


@dataclass
class Registration:
    """A registered descriptor."""

    fd: int
    handler: FdHandler
    interest: Interest
    data: Any = None


def next_capacity(n: int) -> int:
    """Capacity to grow to so that ``n`` fits, with some slack to avoid frequent growth."""
    capacity = 1 << n.bit_length()
    if capacity > ITEMS_MAX_SIZE:
        capacity = ITEMS_MAX_SIZE
    return capacity + 1


def _invalid_fd(fd: int) -> bool:
    return fd < 0 or fd >= ITEMS_MAX_SIZE


class Selector:
    """Multiplexes registered descriptors and dispatches their events.

    ``timeout`` is the longest time in seconds that ``select`` blocks;
    ``None`` waits until an event arrives.
    """

    def __init__(self, initial_elements: int = 0, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self._items: List[Optional[Registration]] = []
        self._max_fd = 0
        self._jobs: List[int] = []
        self._jobs_lock = threading.Lock()
        self._wake_r: Optional[socket.socket] = None
        self._wake_w: Optional[socket.socket] = None
        self.ensure_capacity(initial_elements)
        self._wake_r, self._wake_w = socket.socketpair()
        self._wake_r.setblocking(False)
        self._wake_w.setblocking(False)

    @property
    def capacity(self) -> int:
        """Number of descriptor slots currently allocated."""
        return len(self._items)

    @property
    def max_fd(self) -> int:
        """The highest registered descriptor, or 0 when none is registered."""
        return self._max_fd

    def __contains__(self, fd: object) -> bool:
        return (
            isinstance(fd, int)
            and 0 <= fd < len(self._items)
            and self._items[fd] is not None
        )

    def __getitem__(self, fd: int) -> Registration:
        if fd not in self:
            raise KeyError(fd)
        item = self._items[fd]
        assert item is not None
        return item

    def ensure_capacity(self, n: int) -> None:
        """Make sure descriptor ``n`` fits. Raises ``SelectorError`` (MAXFD) beyond the limit."""
        if n < len(self._items):
            return
        if n > ITEMS_MAX_SIZE:
            raise SelectorError(SelectorStatus.MAXFD, f"cannot handle descriptor {n}")
        new_size = next_capacity(n)
        self._items.extend([None] * (new_size - len(self._items)))

    def _item(self, fd: int) -> Registration:
        if _invalid_fd(fd):
            raise SelectorError(SelectorStatus.IARGS, f"invalid descriptor {fd}")
        item = self._items[fd] if fd < len(self._items) else None
        if item is None:
            raise SelectorError(SelectorStatus.IARGS, f"descriptor {fd} is not registered")
        return item

    def register(
        self,
        fd: int,
        handler: FdHandler,
        interest: Interest = Interest.NOOP,
        data: Any = None,
    ) -> None:
        """Register ``fd`` with its handler, initial interest and attached data."""
        if _invalid_fd(fd) or handler is None:
            raise SelectorError(SelectorStatus.IARGS, f"cannot register descriptor {fd}")
        if fd >= len(self._items):
            self.ensure_capacity(fd)
        if self._items[fd] is not None:
            raise SelectorError(SelectorStatus.FDINUSE, f"descriptor {fd} is in use")
        self._items[fd] = Registration(fd, handler, Interest(interest), data)
        if fd > self._max_fd:
            self._max_fd = fd

    def unregister(self, fd: int) -> None:
        """Remove ``fd``, calling its ``handle_close`` callback first."""
        item = self._item(fd)
        if item.handler.handle_close is not None:
            item.handler.handle_close(SelectorKey(self, item.fd, item.data))
        self._items[fd] = None
        self._max_fd = max(
            (i.fd for i in self._items[: self._max_fd + 1] if i is not None),
            default=0,
        )

    def set_interest(self, fd: int, interest: Interest) -> None:
        """Change what ``fd`` is interested in."""
        self._item(fd).interest = Interest(interest)

    def notify_block(self, fd: int) -> None:
        """Signal, from any thread, that blocking work for ``fd`` has finished."""
        with self._jobs_lock:
            self._jobs.append(fd)
        wake = self._wake_w
        if wake is not None:
            try:
                wake.send(b"\0")
            except (BlockingIOError, OSError):
                pass

    def select(self) -> None:
        """Wait for events, at most ``timeout`` seconds, and dispatch them."""
        reads = [
            item.fd
            for item in self._items[: self._max_fd + 1]
            if item is not None and item.interest & Interest.READ
        ]
        writes = [
            item.fd
            for item in self._items[: self._max_fd + 1]
            if item is not None and item.interest & Interest.WRITE
        ]
        if self._wake_r is not None:
            reads.append(self._wake_r.fileno())
        try:
            ready_r, ready_w, _ = _select.select(reads, writes, [], self.timeout)
        except InterruptedError:
            ready_r, ready_w = [], []
        except OSError as exc:
            if exc.errno == errno.EAGAIN:
                ready_r, ready_w = [], []
            else:
                if exc.errno == errno.EBADF:
                    self._report_bad_descriptors(reads + writes)
                raise SelectorError(SelectorStatus.IO, str(exc)) from exc
        except ValueError as exc:
            raise SelectorError(SelectorStatus.IO, str(exc)) from exc
        else:
            self._handle_iteration(set(ready_r), set(ready_w))
        self._handle_block_notifications()

    @staticmethod
    def _report_bad_descriptors(fds: List[int]) -> None:
        for fd in sorted(set(fds)):
            try:
                os.fstat(fd)
            except OSError:
                print(f"Bad descriptor detected: {fd}", file=sys.stderr)

    def _handle_iteration(self, ready_r: set, ready_w: set) -> None:
        for fd in range(self._max_fd + 1):
            if fd >= len(self._items):
                break
            item = self._items[fd]
            if item is None:
                continue
            key = SelectorKey(self, item.fd, item.data)
            if fd in ready_r and item.interest & Interest.READ:
                if item.handler.handle_read is None:
                    raise RuntimeError("read event arrived but there is no read handler")
                item.handler.handle_read(key)
            if self._items[fd] is not item:
                continue
            if fd in ready_w and item.interest & Interest.WRITE:
                if item.handler.handle_write is None:
                    raise RuntimeError("write event arrived but there is no write handler")
                item.handler.handle_write(key)

    def _drain_wakeups(self) -> None:
        if self._wake_r is None:
            return
        while True:
            try:
                if not self._wake_r.recv(4096):
                    return
            except (BlockingIOError, InterruptedError):
                return
            except OSError:
                return

    def _handle_block_notifications(self) -> None:
        self._drain_wakeups()
        with self._jobs_lock:
            jobs, self._jobs = self._jobs, []
        # Most recent notifications are delivered first.
        for fd in reversed(jobs):
            if fd not in self:
                continue
            item = self._items[fd]
            assert item is not None
            if item.handler.handle_block is not None:
                item.handler.handle_block(SelectorKey(self, item.fd, item.data))

    def close(self) -> None:
        """Unregister every descriptor and release the selector's resources."""
        for fd, item in enumerate(self._items):
            if item is not None:
                self.unregister(fd)
        with self._jobs_lock:
            self._jobs.clear()
        self._items = []
        self._max_fd = 0
        for sock in (self._wake_r, self._wake_w):
            if sock is not None:
                sock.close()
        self._wake_r = None
        self._wake_w = None

    def __enter__(self) -> "Selector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def set_interest_key(key: Optional[SelectorKey], interest: Interest) -> None:
    """Change the interest of the descriptor a key refers to."""
    if key is None or key.selector is None or _invalid_fd(key.fd):
        raise SelectorError(SelectorStatus.IARGS, "invalid selector key")
    key.selector.set_interest(key.fd, interest)


def fd_set_nio(fd: int) -> None:
    """Put ``fd`` in non-blocking mode. Raises ``OSError`` on failure."""
    os.set_blocking(fd, False)