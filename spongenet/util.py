"""Error types, system-call checking, random seeding, timing, checksums and hexdumps."""

from __future__ import annotations

import os
import random
import sys
import time
from typing import Any, Callable, Optional, TextIO

_PROGRAM_START_NS = time.monotonic_ns()
_MT19937_STATE_BYTES = 624 * 4


class TaggedError(RuntimeError):
    """An error carrying an error code and the name of what was being attempted."""

    def __init__(self, attempt: str, code: int, message: str) -> None:
        super().__init__(f"{attempt}: {message}")
        self.attempt = attempt
        self.code = code


class UnixError(TaggedError):
    """A failed system call, described by its name and errno value."""

    def __init__(self, attempt: str, error: int) -> None:
        super().__init__(attempt, error, os.strerror(error))


def system_call(attempt: str, function: Callable[..., Any], *args: Any, errno_mask: int = 0) -> Any:
    """Call ``function(*args)``, turning an OSError into a UnixError named after ``attempt``.

    If the failure's errno equals a non-zero ``errno_mask`` (e.g. ``EAGAIN`` on a
    non-blocking descriptor), None is returned instead of raising.
    """
    try:
        return function(*args)
    except OSError as exc:
        code = exc.errno if exc.errno is not None else 0
        if errno_mask and code == errno_mask:
            return None
        raise UnixError(attempt, code) from exc


def get_random_generator() -> random.Random:
    """Return a Mersenne Twister generator seeded with a full state's worth of entropy."""
    seed = int.from_bytes(os.urandom(_MT19937_STATE_BYTES), "big")
    return random.Random(seed)


def timestamp_ms() -> int:
    """Milliseconds elapsed since the program started (monotonic clock)."""
    return (time.monotonic_ns() - _PROGRAM_START_NS) // 1_000_000


class InternetChecksum:
    """The Internet checksum, usable to compute or to verify a checksum.

    Summing a datagram that already holds a correct checksum yields a value of 0.
    The value is returned in host order.
    """

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._parity = False

    def add(self, data: Any) -> None:
        """Add a run of bytes to the sum, continuing any odd byte left over before."""
        raw = bytes(data)
        even = sum(raw[0::2])
        odd = sum(raw[1::2])
        if self._parity:
            self._sum += even + (odd << 8)
        else:
            self._sum += (even << 8) + odd
        self._sum &= 0xFFFFFFFF
        if len(raw) % 2:
            self._parity = not self._parity

    def value(self) -> int:
        """The one's-complement of the folded 16-bit sum."""
        ret = self._sum
        while ret > 0xFFFF:
            ret = (ret >> 16) + (ret & 0xFFFF)
        return ~ret & 0xFFFF


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def format_hexdump(data: Any, indent: int = 0) -> str:
    """Render bytes as a hexdump: offset, grouped hex, and printable characters."""
    raw = bytes(data)
    if not raw:
        return "    " + " " + "\n\n"
    pad = " " * indent
    lines = []
    for offset in range(0, len(raw), 16):
        chunk = raw[offset:offset + 16]
        hexed = chunk.hex()
        groups = " ".join(hexed[i:i + 4] for i in range(0, len(hexed), 4))
        chars = "".join(_printable(b) for b in chunk)
        rem = 16 - len(chunk)
        gap = " " * (2 * rem + rem // 2 + 4)
        lines.append(f"{pad}{offset:08x}:    {groups}{gap}{chars}\n")
    return "".join(lines) + "\n"


def hexdump(data: Any, indent: int = 0, file: Optional[TextIO] = None) -> None:
    """Write a hexdump of ``data`` to ``file`` (standard output by default)."""
    out = file if file is not None else sys.stdout
    out.write(format_hexdump(data, indent))
    out.flush()