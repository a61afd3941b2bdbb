import errno
import os
from unittest import mock

import pytest

from spongenet.tun import IFF_NO_PI, IFF_TAP, IFF_TUN, TapFD, TunFD, TunTapFD, build_ifreq
from spongenet.util import UnixError


def test_ifreq_size_and_name():
    request = build_ifreq("tun144", True)
    assert len(request) == 40
    assert request[:16] == b"tun144" + b"\0" * 10


def test_ifreq_tun_flags():
    request = build_ifreq("tun144", True)
    assert int.from_bytes(request[16:18], "little") == IFF_TUN | IFF_NO_PI


def test_ifreq_tap_flags():
    request = build_ifreq("tap10", False)
    assert int.from_bytes(request[16:18], "little") == IFF_TAP | IFF_NO_PI


def test_ifreq_long_name_is_terminated():
    request = build_ifreq("x" * 30, True)
    assert request[:15] == b"x" * 15
    assert request[15] == 0


def test_open_failure_is_reported():
    denied = PermissionError(errno.EACCES, "Permission denied")
    with mock.patch("os.open", side_effect=denied):
        with pytest.raises(UnixError) as info:
            TunFD("tun144")
    assert info.value.attempt == "open"
    assert info.value.code == errno.EACCES


def test_ioctl_failure_closes_descriptor():
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    with mock.patch("os.open", return_value=read_fd):
        with pytest.raises(UnixError) as info:
            TapFD("tap10")
    assert info.value.attempt == "ioctl"
    with pytest.raises(OSError):
        os.fstat(read_fd)


def test_tuntap_direct_open_failure():
    missing = FileNotFoundError(errno.ENOENT, "No such file or directory")
    with mock.patch("os.open", side_effect=missing):
        with pytest.raises(UnixError) as info:
            TunTapFD("tun0", True)
    assert info.value.code == errno.ENOENT