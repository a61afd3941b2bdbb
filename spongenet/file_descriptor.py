"""Reference-counted file descriptor handles that track EOF and I/O counts."""

from __future__ import annotations

import os
import sys
from typing import Any, Optional

from .buffer import BufferViewList
from .util import system_call

_MAX_READ = 1024 * 1024


class _FDWrapper:
    """The shared state of one kernel file descriptor; closes it when dropped."""

    __slots__ = ("fd", "eof", "closed", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        system_call("close", os.close, self.fd)
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finaliser
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor, shared by all its duplicates.

    The descriptor is closed explicitly with close() or when the last handle
    is dropped. Reads and writes are counted, and EOF is recorded.
    """

    def __init__(self, fd: int) -> None:
        self._internal = _FDWrapper(fd)

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def read(self, limit: Optional[int] = None) -> bytes:
        """Read up to ``limit`` bytes (at most 1 MiB at a time); fewer may come back."""
        size = _MAX_READ if limit is None else min(_MAX_READ, limit)
        if size < 0:
            raise ValueError("read limit must not be negative")
        data = system_call("read", os.read, self.fileno(), size)
        if size > 0 and not data:
            self._internal.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        self._register_read()
        return data

    def write(self, data: Any, write_all: bool = True) -> int:
        """Write bytes, a str, a Buffer or a BufferList; return the number of bytes written.

        With ``write_all`` the call repeats until everything has been written.
        """
        if isinstance(data, BufferViewList):
            data = b"".join(bytes(view) for view in data.as_iovecs())
        buffer = BufferViewList(data)
        total = 0
        while True:
            written = system_call("writev", os.writev, self.fileno(), buffer.as_iovecs())
            if written == 0 and len(buffer) != 0:
                raise RuntimeError("write returned 0 given non-empty input buffer")
            if written > len(buffer):
                raise RuntimeError("write wrote more than length of input buffer")
            self._register_write()
            buffer.remove_prefix(written)
            total += written
            if not (write_all and len(buffer)):
                return total

    def close(self) -> None:
        """Close the underlying descriptor (for every duplicate)."""
        self._internal.close()

    def duplicate(self) -> "FileDescriptor":
        """Another handle on the same descriptor and state."""
        twin = FileDescriptor.__new__(type(self))
        twin._internal = self._internal
        return twin

    def set_blocking(self, blocking: bool) -> None:
        """Switch between blocking (True) and non-blocking (False) mode."""
        system_call("fcntl", os.set_blocking, self.fileno(), blocking)

    def fileno(self) -> int:
        """The descriptor number."""
        return self._internal.fd

    @property
    def eof(self) -> bool:
        """True once a read has returned end of file."""
        return self._internal.eof

    @property
    def closed(self) -> bool:
        """True once the descriptor has been closed."""
        return self._internal.closed

    @property
    def read_count(self) -> int:
        """How many times the descriptor has been read."""
        return self._internal.read_count

    @property
    def write_count(self) -> int:
        """How many times the descriptor has been written."""
        return self._internal.write_count

    def __enter__(self) -> "FileDescriptor":
        return self

    def __exit__(self, *args: Any) -> None:
        if not self.closed:
            self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fd={self.fileno()}, closed={self.closed})"