"""Network sockets built on counted, shared file descriptors."""

from __future__ import annotations

import socket
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from .address import Address
from .buffer import BufferViewList
from .file_descriptor import FileDescriptor
from .util import system_call


def _as_views(payload: Any) -> BufferViewList:
    return payload if isinstance(payload, BufferViewList) else BufferViewList(payload)


class Socket(FileDescriptor):
    """A network socket; normally used through UDPSocket or TCPSocket."""

    def __init__(self, domain: int, sock_type: int, fd: Optional[FileDescriptor] = None) -> None:
        if fd is None:
            sock = system_call("socket", socket.socket, domain, sock_type)
            super().__init__(sock.detach())
            return
        # take over the handle shared by ``fd``
        self._internal = fd._internal
        with self._socket_object() as sock:
            if hasattr(socket, "SO_DOMAIN"):
                actual_domain = system_call(
                    "getsockopt", sock.getsockopt, socket.SOL_SOCKET, socket.SO_DOMAIN
                )
            else:
                actual_domain = int(sock.family)
            if actual_domain != domain:
                raise ValueError("socket domain mismatch")
            actual_type = system_call("getsockopt", sock.getsockopt, socket.SOL_SOCKET, socket.SO_TYPE)
            if actual_type != sock_type:
                raise ValueError("socket type mismatch")

    @contextmanager
    def _socket_object(self) -> Iterator[socket.socket]:
        """A temporary socket object over this descriptor that never closes it."""
        fd_num = self.fileno()
        sock = system_call("socket", lambda: socket.socket(fileno=fd_num))
        try:
            yield sock
        finally:
            sock.detach()

    def _setsockopt(self, level: int, option: int, value: Any) -> None:
        with self._socket_object() as sock:
            system_call("setsockopt", sock.setsockopt, level, option, value)

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._socket_object() as sock:
            system_call("bind", sock.bind, address.sockaddr())

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with self._socket_object() as sock:
            system_call("connect", sock.connect, address.sockaddr())

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._socket_object() as sock:
            system_call("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address this socket is bound to."""
        with self._socket_object() as sock:
            sockaddr = system_call("getsockname", sock.getsockname)
            return Address.from_sockaddr(int(sock.family), sockaddr)

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        with self._socket_object() as sock:
            sockaddr = system_call("getpeername", sock.getpeername)
            return Address.from_sockaddr(int(sock.family), sockaddr)

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner (SO_REUSEADDR)."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


@dataclass
class ReceivedDatagram:
    """A received datagram and the address it came from."""

    source_address: Address
    payload: bytes


class UDPSocket(Socket):
    """An IPv4 UDP socket."""

    def __init__(self, fd: Optional[FileDescriptor] = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM, fd)

    def recv(self, mtu: int = 65536) -> ReceivedDatagram:
        """Receive one datagram; raises RuntimeError if it is larger than ``mtu``."""
        with self._socket_object() as sock:
            family = int(sock.family)
            payload, _ancdata, flags, source = system_call("recvfrom", sock.recvmsg, mtu)
        if flags & socket.MSG_TRUNC:
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return ReceivedDatagram(Address.from_sockaddr(family, source), payload)

    def _sendmsg(self, payload: Any, destination: Optional[Address]) -> None:
        views = _as_views(payload)
        with self._socket_object() as sock:
            if destination is None:
                sent = system_call("sendmsg", sock.sendmsg, views.as_iovecs())
            else:
                sent = system_call(
                    "sendmsg", sock.sendmsg, views.as_iovecs(), [], 0, destination.sockaddr()
                )
        if sent != len(views):
            raise RuntimeError("datagram payload too big for sendmsg()")
        self._register_write()

    def sendto(self, destination: Address, payload: Any) -> None:
        """Send a datagram to ``destination``."""
        self._sendmsg(payload, destination)

    def send(self, payload: Any) -> None:
        """Send a datagram to the connected address."""
        self._sendmsg(payload, None)


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self, fd: Optional[FileDescriptor] = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM, fd)

    def listen(self, backlog: int = 16) -> None:
        """Start listening for incoming connections."""
        with self._socket_object() as sock:
            system_call("listen", sock.listen, backlog)

    def accept(self) -> "TCPSocket":
        """Wait for and return the next incoming connection."""
        self._register_read()
        with self._socket_object() as sock:
            conn, _peer = system_call("accept", sock.accept)
        return TCPSocket(FileDescriptor(conn.detach()))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket over an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd)