"""File descriptors for existing persistent Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from .file_descriptor import FileDescriptor
from .util import system_call

CLONEDEV = "/dev/net/tun"

IFNAMSIZ = 16
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
TUNSETIFF = 0x400454CA

# struct ifreq: a 16-byte name followed by a 24-byte union whose first member is the flags
_IFREQ = struct.Struct(f"{IFNAMSIZ}sH22x")


def build_ifreq(devname: str, is_tun: bool) -> bytes:
    """The ``struct ifreq`` that attaches to ``devname`` with no packet info.

    The name is cut to IFNAMSIZ - 1 bytes so that it stays NUL-terminated.
    """
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    name = devname.encode()[: IFNAMSIZ - 1]
    return _IFREQ.pack(name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor on an existing persistent TUN (IP) or TAP (Ethernet) device.

    The device must already exist, e.g. made with ``ip tuntap add``.
    """

    def __init__(self, devname: str, is_tun: bool) -> None:
        fd = system_call("open", os.open, CLONEDEV, os.O_RDWR)
        super().__init__(fd)
        try:
            system_call("ioctl", fcntl.ioctl, fd, TUNSETIFF, build_ifreq(devname, is_tun))
        except BaseException:
            self.close()
            raise


class TunFD(TunTapFD):
    """A descriptor on a TUN device, which carries IP datagrams."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor on a TAP device, which carries Ethernet frames."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)