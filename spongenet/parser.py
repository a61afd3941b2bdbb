"""Big-endian integer parsing and serialisation for network headers."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any

from .buffer import Buffer


class ParseResult(Enum):
    """The result of parsing or unparsing a datagram, segment, frame or message."""

    NO_ERROR = 0
    BAD_CHECKSUM = 1
    PACKET_TOO_SHORT = 2
    WRONG_IP_VERSION = 3
    HEADER_TOO_SHORT = 4
    TRUNCATED_PACKET = 5
    UNSUPPORTED = 6


_NAMES = {
    ParseResult.NO_ERROR: "NoError",
    ParseResult.BAD_CHECKSUM: "BadChecksum",
    ParseResult.PACKET_TOO_SHORT: "PacketTooShort",
    ParseResult.WRONG_IP_VERSION: "WrongIPVersion",
    ParseResult.HEADER_TOO_SHORT: "HeaderTooShort",
    ParseResult.TRUNCATED_PACKET: "TruncatedPacket",
    ParseResult.UNSUPPORTED: "Unsupported",
}


def as_string(result: ParseResult) -> str:
    """A short name for a ParseResult."""
    return _NAMES[result]


class NetParser:
    """Reads network-byte-order integers from the front of a Buffer.

    Once a read fails, ``result`` records the error and further reads return 0.
    """

    def __init__(self, buffer: Any) -> None:
        self._buffer = copy.copy(buffer) if isinstance(buffer, Buffer) else Buffer(buffer)
        self.result = ParseResult.NO_ERROR

    def buffer(self) -> Buffer:
        """The bytes not yet consumed."""
        return copy.copy(self._buffer)

    def error(self) -> bool:
        """True if an error has been recorded."""
        return self.result is not ParseResult.NO_ERROR

    def _check_size(self, size: int) -> None:
        if size > len(self._buffer):
            self.result = ParseResult.PACKET_TOO_SHORT

    def _parse_int(self, size: int) -> int:
        self._check_size(size)
        if self.error():
            return 0
        value = int.from_bytes(self._buffer.view()[:size], "big")
        self._buffer.remove_prefix(size)
        return value

    def u32(self) -> int:
        """Parse a 32-bit big-endian integer."""
        return self._parse_int(4)

    def u16(self) -> int:
        """Parse a 16-bit big-endian integer."""
        return self._parse_int(2)

    def u8(self) -> int:
        """Parse an 8-bit integer."""
        return self._parse_int(1)

    def remove_prefix(self, n: int) -> None:
        """Skip ``n`` bytes, recording an error if too few remain."""
        self._check_size(n)
        if self.error():
            return
        self._buffer.remove_prefix(n)


def pack_u32(value: int) -> bytes:
    """A 32-bit integer in network byte order (higher bits are dropped)."""
    return (value & 0xFFFFFFFF).to_bytes(4, "big")


def pack_u16(value: int) -> bytes:
    """A 16-bit integer in network byte order (higher bits are dropped)."""
    return (value & 0xFFFF).to_bytes(2, "big")


def pack_u8(value: int) -> bytes:
    """An 8-bit integer (higher bits are dropped)."""
    return (value & 0xFF).to_bytes(1, "big")