"""Buffers, network-byte-order parsing, checksums, addresses, file descriptors, sockets, TUN/TAP devices and a poll-based event loop."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "buffer",
    "eventloop",
    "file_descriptor",
    "parser",
    "sockets",
    "tun",
    "util",
]