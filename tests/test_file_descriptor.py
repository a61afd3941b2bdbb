import errno
import gc
import os

import pytest

from spongenet.buffer import BufferList, BufferViewList
from spongenet.file_descriptor import FileDescriptor
from spongenet.util import UnixError


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader = FileDescriptor(read_fd)
    writer = FileDescriptor(write_fd)
    yield reader, writer
    for handle in (reader, writer):
        if not handle.closed:
            handle.close()


def test_write_then_read(pipe):
    reader, writer = pipe
    assert writer.write(b"hello") == 5
    assert reader.read() == b"hello"
    assert reader.read_count == 1
    assert writer.write_count == 1


def test_write_str(pipe):
    reader, writer = pipe
    assert writer.write("cat") == 3
    assert reader.read() == b"cat"


def test_read_limit(pipe):
    reader, writer = pipe
    writer.write(b"abcdef")
    assert reader.read(3) == b"abc"
    assert reader.read(10) == b"def"


def test_eof_after_writer_closes(pipe):
    reader, writer = pipe
    writer.write(b"x")
    writer.close()
    assert reader.read() == b"x"
    assert not reader.eof
    assert reader.read() == b""
    assert reader.eof


def test_zero_limit_read_does_not_set_eof(pipe):
    reader, writer = pipe
    writer.close()
    assert reader.read(0) == b""
    assert not reader.eof


def test_write_buffer_list(pipe):
    reader, writer = pipe
    payload = BufferList(b"head")
    payload.append(BufferList(b"-body"))
    assert writer.write(payload) == 9
    assert reader.read() == b"head-body"


def test_write_buffer_view_list_is_not_consumed(pipe):
    reader, writer = pipe
    views = BufferViewList(b"abc")
    assert writer.write(views) == 3
    assert len(views) == 3
    assert reader.read() == b"abc"


def test_write_without_write_all(pipe):
    reader, writer = pipe
    written = writer.write(b"partial", write_all=False)
    assert 0 < written <= 7
    assert reader.read() == b"partial"[:written]


def test_duplicate_shares_state(pipe):
    reader, writer = pipe
    twin = reader.duplicate()
    writer.write(b"z")
    assert twin.read() == b"z"
    assert reader.read_count == 1
    assert twin.fileno() == reader.fileno()
    twin.close()
    assert reader.closed
    assert reader.eof


def test_invalid_fd_number():
    with pytest.raises(ValueError):
        FileDescriptor(-1)


def test_double_close_raises(pipe):
    reader, _ = pipe
    reader.close()
    with pytest.raises(UnixError) as info:
        reader.close()
    assert info.value.attempt == "close"
    assert info.value.code == errno.EBADF


def test_nonblocking_read_on_empty_pipe(pipe):
    reader, _ = pipe
    reader.set_blocking(False)
    with pytest.raises(UnixError) as info:
        reader.read()
    assert info.value.attempt == "read"
    assert info.value.code == errno.EAGAIN


def test_set_blocking_round_trip(pipe):
    reader, _ = pipe
    reader.set_blocking(False)
    assert os.get_blocking(reader.fileno()) is False
    reader.set_blocking(True)
    assert os.get_blocking(reader.fileno()) is True


def test_write_to_closed_reader_end_fails(pipe):
    reader, writer = pipe
    writer.close()
    with pytest.raises(UnixError) as info:
        writer.write(b"data")
    assert info.value.attempt == "writev"


def test_context_manager_closes():
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    with FileDescriptor(read_fd) as handle:
        assert not handle.closed
    assert handle.closed
    with pytest.raises(OSError):
        os.fstat(read_fd)


def test_dropping_last_handle_closes():
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    handle = FileDescriptor(read_fd)
    twin = handle.duplicate()
    del handle
    gc.collect()
    assert os.fstat(read_fd) is not None and not twin.closed
    del twin
    gc.collect()
    with pytest.raises(OSError):
        os.fstat(read_fd)