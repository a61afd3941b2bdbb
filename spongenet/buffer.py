"""Read-only byte strings that can cheaply discard bytes from the front."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, List, Optional, Tuple, Union


class Buffer:
    """An immutable byte string whose front can be discarded without copying."""

    __slots__ = ("_storage", "_offset")

    def __init__(self, data: Any = b"") -> None:
        self._storage = bytes(data)
        self._offset = 0

    def view(self) -> memoryview:
        """A zero-copy view of the remaining bytes."""
        return memoryview(self._storage)[self._offset:]

    def __bytes__(self) -> bytes:
        return self._storage[self._offset:]

    def copy(self) -> bytes:
        """The remaining bytes as a new bytes object."""
        return bytes(self)

    def __getitem__(self, index: Union[int, slice]) -> Union[int, bytes]:
        if isinstance(index, slice):
            return bytes(self.view()[index])
        return self.view()[index]

    def __len__(self) -> int:
        return len(self._storage) - self._offset

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes; raises IndexError if fewer remain."""
        if n < 0:
            raise ValueError("Buffer.remove_prefix: negative length")
        if n > len(self):
            raise IndexError("Buffer.remove_prefix")
        self._offset += n
        if self._offset == len(self._storage):
            self._storage = b""
            self._offset = 0

    def __copy__(self) -> "Buffer":
        clone = Buffer.__new__(Buffer)
        clone._storage = self._storage
        clone._offset = self._offset
        return clone

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Buffer):
            return bytes(self) == bytes(other)
        if isinstance(other, (bytes, bytearray, memoryview)):
            return bytes(self) == bytes(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Buffer({bytes(self)!r})"


class BufferList:
    """A discontiguous byte string made of Buffers, e.g. headers prepended to a payload."""

    def __init__(self, data: Any = None) -> None:
        self._buffers: Deque[Buffer] = deque()
        if data is None:
            return
        if isinstance(data, BufferList):
            self.append(data)
        elif isinstance(data, Buffer):
            self._buffers.append(data.__copy__())
        else:
            self._buffers.append(Buffer(data))

    def buffers(self) -> Tuple[Buffer, ...]:
        """The Buffers that make up this list, in order."""
        return tuple(buf.__copy__() for buf in self._buffers)

    def append(self, other: Any) -> None:
        """Append the Buffers of another BufferList (or anything a BufferList accepts)."""
        if not isinstance(other, BufferList):
            other = BufferList(other)
        self._buffers.extend(buf.__copy__() for buf in other._buffers)

    def to_buffer(self) -> Buffer:
        """Return the single contiguous Buffer; raises ValueError if there are several."""
        if not self._buffers:
            return Buffer()
        if len(self._buffers) == 1:
            return self._buffers[0].__copy__()
        raise ValueError(
            "BufferList: please use concatenate() to combine a multi-Buffer BufferList into one Buffer"
        )

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes across Buffers; raises IndexError if too few."""
        while n > 0:
            if not self._buffers:
                raise IndexError("BufferList.remove_prefix")
            front = self._buffers[0]
            if n < len(front):
                front.remove_prefix(n)
                n = 0
            else:
                n -= len(front)
                self._buffers.popleft()

    def __len__(self) -> int:
        return sum(len(buf) for buf in self._buffers)

    def concatenate(self) -> bytes:
        """All bytes joined into one new bytes object."""
        return b"".join(bytes(buf) for buf in self._buffers)

    def __repr__(self) -> str:
        return f"BufferList({list(self._buffers)!r})"


class BufferViewList:
    """A non-owning view of a discontiguous byte string, for scatter/gather writes."""

    def __init__(self, data: Any) -> None:
        self._views: Deque[memoryview] = deque()
        if isinstance(data, BufferList):
            self._views.extend(buf.view() for buf in data.buffers())
        elif isinstance(data, Buffer):
            self._views.append(data.view())
        elif isinstance(data, str):
            self._views.append(memoryview(data.encode()))
        else:
            self._views.append(memoryview(data).cast("B"))

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes; raises IndexError if too few remain."""
        while n > 0:
            if not self._views:
                raise IndexError("BufferViewList.remove_prefix")
            front = self._views[0]
            if n < len(front):
                self._views[0] = front[n:]
                n = 0
            else:
                n -= len(front)
                self._views.popleft()

    def __len__(self) -> int:
        return sum(len(view) for view in self._views)

    def as_iovecs(self) -> List[memoryview]:
        """The views as a list, suitable for os.writev or socket.sendmsg."""
        return list(self._views)


def _optional_len(value: Optional[Any]) -> int:
    return 0 if value is None else len(value)