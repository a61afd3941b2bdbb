"""IPv4 socket addresses and name resolution."""

from __future__ import annotations

import socket
from typing import Any, Tuple

from .util import TaggedError

_MAX_PORT = 0xFFFF
_MAX_IPV4 = 0xFFFFFFFF


def _lookup(node: str, service: str, flags: int) -> Tuple[int, Any]:
    """Resolve ``node``/``service`` to the first IPv4 (family, sockaddr) pair."""
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        code = exc.errno if exc.errno is not None else 0
        message = exc.strerror if exc.strerror is not None else str(exc)
        raise TaggedError(f"getaddrinfo({node}, {service})", code, message) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _type, _proto, _canonname, sockaddr = results[0]
    return int(family), sockaddr


def _normalise(family: int, sockaddr: Any) -> Any:
    if family in (socket.AF_INET, socket.AF_INET6):
        if not isinstance(sockaddr, (tuple, list)):
            raise ValueError("invalid sockaddr for an internet address family")
        sockaddr = tuple(sockaddr)
        expected = 2 if family == socket.AF_INET else 4
        if len(sockaddr) != expected:
            raise ValueError("invalid sockaddr size")
    return sockaddr


class Address:
    """A socket address, normally IPv4 with a port.

    Build one from a dotted quad and port, by resolving a host and service,
    from a raw socket address, or from a numeric IPv4 address.
    """

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        if not 0 <= port <= _MAX_PORT:
            raise ValueError(f"port out of range: {port}")
        family, sockaddr = _lookup(
            ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        )
        self._family = family
        self._sockaddr = _normalise(family, sockaddr)

    @classmethod
    def _build(cls, family: int, sockaddr: Any) -> "Address":
        address = cls.__new__(cls)
        address._family = int(family)
        address._sockaddr = _normalise(int(family), sockaddr)
        return address

    @classmethod
    def resolve(cls, hostname: str, service: str) -> "Address":
        """Resolve a host name and service name (e.g. "http") to an IPv4 address."""
        family, sockaddr = _lookup(hostname, service, socket.AI_ALL)
        return cls._build(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> "Address":
        """Wrap a raw socket address as returned by the socket module."""
        return cls._build(family, sockaddr)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> "Address":
        """An address (port 0) from a 32-bit IPv4 address in host order."""
        if not 0 <= ip_address <= _MAX_IPV4:
            raise ValueError(f"IPv4 address out of range: {ip_address}")
        dotted = socket.inet_ntoa(ip_address.to_bytes(4, "big"))
        return cls._build(socket.AF_INET, (dotted, 0))

    @property
    def family(self) -> int:
        """The address family (e.g. AF_INET)."""
        return self._family

    def ip_port(self) -> Tuple[str, int]:
        """The numeric IP address string and the port."""
        if self._family in (socket.AF_INET, socket.AF_INET6):
            return str(self._sockaddr[0]), int(self._sockaddr[1])
        raise TaggedError("getnameinfo", socket.EAI_FAMILY, "address family not supported")

    @property
    def ip(self) -> str:
        """The numeric IP address string, e.g. "18.243.0.1"."""
        return self.ip_port()[0]

    @property
    def port(self) -> int:
        """The port number."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as a 32-bit integer in host order."""
        if self._family != socket.AF_INET:
            raise ValueError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self._sockaddr[0]), "big")

    def sockaddr(self) -> Any:
        """The raw address, suitable for socket.bind, connect or sendto."""
        return self._sockaddr

    def __str__(self) -> str:
        ip, port = self.ip_port()
        return f"{ip}:{port}"

    def __repr__(self) -> str:
        return f"Address.from_sockaddr({self._family!r}, {self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))