import errno
import os
import socket

import pytest

from spongenet.address import Address
from spongenet.buffer import BufferList
from spongenet.file_descriptor import FileDescriptor
from spongenet.sockets import LocalStreamSocket, ReceivedDatagram, TCPSocket, UDPSocket
from spongenet.util import UnixError


def _bound_udp():
    sock = UDPSocket()
    sock.bind(Address("127.0.0.1", 0))
    return sock


def test_udp_bind_assigns_port():
    with _bound_udp() as sock:
        local = sock.local_address()
        assert local.ip == "127.0.0.1"
        assert 0 < local.port <= 0xFFFF


def test_udp_sendto_and_recv():
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.sendto(receiver.local_address(), b"hello")
        datagram = receiver.recv()
        assert isinstance(datagram, ReceivedDatagram)
        assert datagram.payload == b"hello"
        assert datagram.source_address == sender.local_address()
        assert sender.write_count == 1
        assert receiver.read_count == 1


def test_udp_sendto_bufferlist_payload():
    with _bound_udp() as receiver, _bound_udp() as sender:
        payload = BufferList(b"head")
        payload.append(BufferList(b"body"))
        sender.sendto(receiver.local_address(), payload)
        assert receiver.recv().payload == b"headbody"


def test_udp_connected_send():
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.connect(receiver.local_address())
        assert sender.peer_address() == receiver.local_address()
        sender.send(b"abc")
        assert receiver.recv().payload == b"abc"


def test_udp_send_without_connect_fails():
    with UDPSocket() as sender:
        with pytest.raises(UnixError) as info:
            sender.send(b"abc")
        assert info.value.attempt == "sendmsg"


def test_udp_oversized_datagram_raises():
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.sendto(receiver.local_address(), b"z" * 100)
        with pytest.raises(RuntimeError, match="oversized"):
            receiver.recv(10)
        assert receiver.read_count == 0


def _tcp_pair():
    server = TCPSocket()
    server.set_reuseaddr()
    server.bind(Address("127.0.0.1", 0))
    server.listen()
    client = TCPSocket()
    client.connect(server.local_address())
    conn = server.accept()
    return server, client, conn


def test_tcp_connect_accept_and_transfer():
    server, client, conn = _tcp_pair()
    with server, client, conn:
        assert conn.peer_address() == client.local_address()
        assert client.peer_address() == server.local_address()
        assert server.read_count == 1
        client.write(b"ping")
        assert conn.read(4) == b"ping"
        conn.write(b"pong")
        assert client.read(4) == b"pong"


def test_tcp_shutdown_write_gives_peer_eof():
    server, client, conn = _tcp_pair()
    with server, client, conn:
        client.shutdown(socket.SHUT_WR)
        assert client.write_count == 1
        assert client.read_count == 0
        assert conn.read() == b""
        assert conn.eof is True


def test_tcp_shutdown_invalid_how():
    server, client, conn = _tcp_pair()
    with server, client, conn:
        with pytest.raises(UnixError) as info:
            client.shutdown(99)
        assert info.value.code == errno.EINVAL


def test_set_reuseaddr_sets_option():
    with TCPSocket() as sock:
        with socket.socket(fileno=os.dup(sock.fileno())) as probe:
            before = probe.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR)
            sock.set_reuseaddr()
            after = probe.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR)
        assert before == 0
        assert after == 1


def test_local_stream_socket_from_socketpair():
    left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    a = LocalStreamSocket(FileDescriptor(left.detach()))
    b = LocalStreamSocket(FileDescriptor(right.detach()))
    with a, b:
        a.write(b"local")
        assert b.read(5) == b"local"


def test_local_stream_socket_rejects_wrong_domain():
    fd = FileDescriptor(socket.socket(socket.AF_INET, socket.SOCK_STREAM).detach())
    with fd:
        with pytest.raises(ValueError, match="domain mismatch"):
            LocalStreamSocket(fd)


def test_local_stream_socket_rejects_wrong_type():
    left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
    right.close()
    fd = FileDescriptor(left.detach())
    with fd:
        with pytest.raises(ValueError, match="type mismatch"):
            LocalStreamSocket(fd)


def test_udp_socket_rejects_tcp_descriptor():
    fd = FileDescriptor(socket.socket(socket.AF_INET, socket.SOCK_STREAM).detach())
    with fd:
        with pytest.raises(ValueError, match="type mismatch"):
            UDPSocket(fd)


def test_udp_socket_adopts_udp_descriptor():
    fd = FileDescriptor(socket.socket(socket.AF_INET, socket.SOCK_DGRAM).detach())
    sock = UDPSocket(fd)
    with sock:
        assert sock.fileno() == fd.fileno()
    assert fd.closed is True