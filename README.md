# spongenet

Building blocks for user-space networking on Linux:

- buffers that drop bytes from the front without copying,
- parsing and packing of integers in network byte order,
- the Internet checksum and a hexdump helper,
- IPv4 socket addresses and name resolution,
- file descriptors that count their reads and writes and record end of file,
- UDP, TCP and Unix-domain stream sockets built on those descriptors,
- access to existing persistent TUN and TAP devices,
- a level-triggered event loop on top of `select.poll`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `spongenet.util` | `InternetChecksum`, `system_call`, `TaggedError`, `UnixError`, `timestamp_ms`, `get_random_generator`, `format_hexdump`, `hexdump` |
| `spongenet.buffer` | `Buffer`, `BufferList`, `BufferViewList` |
| `spongenet.parser` | `NetParser`, `ParseResult`, `as_string`, `pack_u32`, `pack_u16`, `pack_u8` |
| `spongenet.address` | `Address` |
| `spongenet.file_descriptor` | `FileDescriptor` |
| `spongenet.tun` | `TunTapFD`, `TunFD`, `TapFD`, `build_ifreq` |
| `spongenet.eventloop` | `EventLoop`, `Direction`, `EventLoopResult` |
| `spongenet.sockets` | `Socket`, `UDPSocket`, `TCPSocket`, `LocalStreamSocket`, `ReceivedDatagram` |

### util

- `InternetChecksum(initial_sum=0)`: `add(data)` adds bytes (an odd trailing
  byte carries over to the next call), `value()` returns the 16-bit checksum.
  Summing data that already holds a correct checksum gives 0.
- `system_call(attempt, function, *args, errno_mask=0)` calls `function(*args)`
  and turns an `OSError` into a `UnixError` whose message starts with
  `attempt`. If the errno equals a non-zero `errno_mask`, it returns `None`
  instead. `UnixError` is a `TaggedError`, which carries `attempt` and `code`.
- `timestamp_ms()` gives the milliseconds since the module was loaded, from a
  monotonic clock.
- `get_random_generator()` returns a `random.Random` seeded from `os.urandom`.
- `format_hexdump(data, indent=0)` renders bytes as offset, grouped hex and
  printable characters; `hexdump(data, indent=0, file=None)` writes that to
  `file` or standard output.

### buffer

- `Buffer(data)` holds immutable bytes; `remove_prefix(n)` discards from the
  front (raising `IndexError` if too few remain), `view()` gives a memoryview,
  `copy()` and `bytes(buf)` give the remaining bytes; indexing and `len()` work.
- `BufferList` is a sequence of Buffers: `append`, `remove_prefix`,
  `concatenate()`, `buffers()`, and `to_buffer()`, which raises `ValueError`
  when there is more than one Buffer.
- `BufferViewList` is a list of memoryviews for scatter/gather writes;
  `as_iovecs()` is suitable for `os.writev` and `socket.sendmsg`.

### parser

`NetParser(buffer)` reads `u32()`, `u16()` and `u8()` in big-endian order and
skips bytes with `remove_prefix(n)`. When too few bytes remain, `result` is set
to `ParseResult.PACKET_TOO_SHORT`, `error()` becomes true and further reads
return 0. `as_string(result)` names a `ParseResult`. `pack_u32`, `pack_u16` and
`pack_u8` serialise integers, dropping higher bits.

### address

`Address(ip, port=0)` takes a numeric IPv4 address; `Address.resolve(host,
service)` performs a lookup; `Address.from_sockaddr(family, sockaddr)` and
`Address.from_ipv4_numeric(n)` build from raw values. An address offers
`ip_port()`, the `ip`, `port` and `family` properties, `ipv4_numeric()`,
`sockaddr()`, `str()` (`"ip:port"`), equality and hashing. Lookup failures
raise `TaggedError`.

### file_descriptor

`FileDescriptor(fd)` takes ownership of a descriptor number. `read(limit=None)`
reads at most 1 MiB at a time and sets `eof` when a read returns nothing;
`write(data, write_all=True)` accepts bytes, str, `Buffer`, `BufferList` or
`BufferViewList` and returns the number of bytes written. `duplicate()` returns
another handle on the same descriptor and counters; the descriptor is closed
by `close()`, by leaving a `with` block, or when the last handle is dropped.
`read_count`, `write_count`, `eof`, `closed`, `fileno()` and
`set_blocking(blocking)` are available.

### sockets

`UDPSocket()` and `TCPSocket()` create IPv4 sockets; passing an existing
`FileDescriptor` instead checks its domain and type and raises `ValueError` on
a mismatch. All sockets offer `bind`, `connect`, `shutdown`, `local_address`,
`peer_address` and `set_reuseaddr`. `UDPSocket` adds `recv(mtu=65536)`, which
returns a `ReceivedDatagram` and raises `RuntimeError` for an oversized
datagram, plus `sendto(destination, payload)` and `send(payload)`.
`TCPSocket` adds `listen(backlog=16)` and `accept()`. `LocalStreamSocket(fd)`
wraps a Unix-domain stream socket.

### tun

`TunFD(name)` and `TapFD(name)` open an existing persistent device through
`/dev/net/tun`; `build_ifreq(devname, is_tun)` builds the request structure.
The device must already exist and be usable by the current user, for example
after `ip tuntap add mode tun user <you> name tun144` has been run as root.

### eventloop

`EventLoop.add_rule(fd, direction, callback, interest=None, cancel=None)`
registers a callback for `Direction.IN` or `Direction.OUT`.
`wait_next_event(timeout_ms)` polls once and returns an `EventLoopResult`:
`SUCCESS`, `TIMEOUT`, or `EXIT` when no rule is interested, all rules are gone
or the poll was interrupted. Rules are dropped, with `cancel` called, when
their descriptor is closed, reaches EOF for reading, or only hangs up. A
callback that neither reads nor writes its descriptor while its interest still
holds raises `RuntimeError` (busy wait).

## Examples

Compute an Internet checksum:

```python
from spongenet.util import InternetChecksum

checksum = InternetChecksum()
checksum.add(b"\x45\x00\x00\x1c")
print(hex(checksum.value()))
```

Parse integers in network byte order:

```python
from spongenet.buffer import Buffer
from spongenet.parser import NetParser, pack_u16, pack_u32

parser = NetParser(Buffer(pack_u16(0x1234) + pack_u32(7)))
assert parser.u16() == 0x1234
assert parser.u32() == 7
assert not parser.error()
```

Work with addresses:

```python
from spongenet.address import Address

address = Address("127.0.0.1", 8080)
print(address)                  # 127.0.0.1:8080
print(address.ipv4_numeric())   # 2130706433
```

Send a datagram over loopback:

```python
from spongenet.address import Address
from spongenet.sockets import UDPSocket

receiver = UDPSocket()
receiver.bind(Address("127.0.0.1", 0))
sender = UDPSocket()
sender.sendto(receiver.local_address(), b"hello")
datagram = receiver.recv()
print(datagram.payload)
```

Wait on file descriptors with the event loop:

```python
import os
from spongenet.eventloop import Direction, EventLoop
from spongenet.file_descriptor import FileDescriptor

read_end, write_end = os.pipe()
reader = FileDescriptor(read_end)
os.write(write_end, b"ping")

loop = EventLoop()
loop.add_rule(reader, Direction.IN, lambda: print(reader.read()))
loop.wait_next_event(100)
```

## What this package does not do

It is a library only: it has no command-line program. It does not implement
TCP itself; `TCPSocket` uses the operating system's TCP. It does not create or
configure TUN/TAP devices, only attaches to ones that already exist. The event
loop relies on `select.poll` and the TUN/TAP code on Linux ioctls, so those
parts work only on Linux.