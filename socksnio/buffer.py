"""Fixed-capacity byte buffer with separate read and write positions."""

from __future__ import annotations


class Buffer:
    """A byte buffer that keeps a read offset and a write offset.

    Invariant: ``0 <= read_offset <= write_offset <= capacity``.
    Bytes between the read and write offsets are pending to be read;
    bytes after the write offset are free to be written.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._data = bytearray(capacity)
        self._read = 0
        self._write = 0

    @property
    def capacity(self) -> int:
        """Total number of bytes the buffer can hold."""
        return len(self._data)

    def __len__(self) -> int:
        """Number of bytes pending to be read."""
        return self._write - self._read

    def __repr__(self) -> str:
        return (
            f"Buffer(capacity={self.capacity}, read={self._read}, "
            f"write={self._write})"
        )

    def reset(self) -> None:
        """Move both offsets back to the start, discarding pending bytes."""
        self._read = 0
        self._write = 0

    def can_read(self) -> bool:
        """True if there are bytes pending to be read."""
        return self._write > self._read

    def can_write(self) -> bool:
        """True if there is room to write at least one byte."""
        return len(self._data) > self._write

    @property
    def read_offset(self) -> int:
        """Position of the next byte to read."""
        return self._read

    @property
    def write_offset(self) -> int:
        """Position where the next byte will be written."""
        return self._write

    def writable(self) -> memoryview:
        """A writable view over the free space; call ``advance_write`` after filling it."""
        return memoryview(self._data)[self._write:]

    def advance_write(self, count: int) -> None:
        """Mark ``count`` bytes of the free space as written. Negative counts are ignored."""
        if count < 0:
            return
        if self._write + count > len(self._data):
            raise ValueError("cannot advance write offset past the buffer's capacity")
        self._write += count

    def readable(self) -> memoryview:
        """A view over the bytes pending to be read; call ``advance_read`` after consuming them."""
        return memoryview(self._data)[self._read:self._write]

    def advance_read(self, count: int) -> None:
        """Mark ``count`` pending bytes as read. Negative counts are ignored.

        When every pending byte has been read the buffer compacts itself.
        """
        if count < 0:
            return
        if self._read + count > self._write:
            raise ValueError("cannot advance read offset past the write offset")
        self._read += count
        if self._read == self._write:
            self.compact()

    def read_byte(self) -> int:
        """Read one byte, or return 0 if nothing is pending."""
        if not self.can_read():
            return 0
        value = self._data[self._read]
        self.advance_read(1)
        return value

    def write_byte(self, value: int) -> bool:
        """Write one byte if there is room. Returns whether it was written."""
        if not self.can_write():
            return False
        self._data[self._write] = value
        self.advance_write(1)
        return True

    def write(self, data: bytes) -> int:
        """Write as many bytes of ``data`` as fit. Returns how many were written."""
        count = min(len(data), len(self._data) - self._write)
        self._data[self._write:self._write + count] = data[:count]
        self._write += count
        return count

    def compact(self) -> None:
        """Move pending bytes to the start of the buffer, freeing space at the end."""
        if self._read == 0:
            return
        if self._read == self._write:
            self._read = 0
            self._write = 0
            return
        pending = self._write - self._read
        self._data[0:pending] = self._data[self._read:self._write]
        self._read = 0
        self._write = pending