from __future__ import annotations

import io
import os

import pytest

from src.teeline.config import OpenMode
from src.teeline.errors import SinkOpenError, SinkWriteError
from src.teeline.sinks import FileSink, Sink, StdoutSink, is_pipe_like, open_target, path_is_pipe_like


# This test checks that truncate mode replaces old content entirely.
def test_file_sink__truncate_discards_previous_content(tmp_path):
    p = tmp_path / "out.txt"
    p.write_bytes(b"old content that is longer\n")

    sink = open_target(str(p), OpenMode.TRUNCATE)
    sink.write_all(b"new\n")
    sink.close()

    assert p.read_bytes() == b"new\n"
    print("\n.✅test_file_sink__truncate_discards_previous_content passed")


# This test checks that append mode keeps old bytes and adds new ones after them.
def test_file_sink__append_keeps_previous_content(tmp_path):
    p = tmp_path / "out.txt"
    p.write_bytes(b"first\n")

    sink = open_target(str(p), OpenMode.APPEND)
    sink.write_all(b"second\n")
    sink.close()

    assert p.read_bytes() == b"first\nsecond\n"


def test_file_sink__creates_missing_file(tmp_path):
    p = tmp_path / "fresh.txt"
    sink = FileSink(str(p)).open()
    sink.write_all(b"")
    sink.close()
    assert p.exists()
    assert p.read_bytes() == b""


def test_file_sink__directory_cannot_be_opened(tmp_path):
    with pytest.raises(SinkOpenError) as ei:
        open_target(str(tmp_path), OpenMode.TRUNCATE)
    assert ei.value.target == str(tmp_path)
    assert isinstance(ei.value.cause, OSError)


def test_file_sink__missing_parent_cannot_be_opened(tmp_path):
    with pytest.raises(SinkOpenError):
        open_target(str(tmp_path / "no" / "such" / "dir.txt"), OpenMode.APPEND)


def test_file_sink__regular_file_is_not_pipe_like(tmp_path):
    sink = open_target(str(tmp_path / "x.txt"), OpenMode.TRUNCATE)
    try:
        assert sink.pipe_like is False
    finally:
        sink.close()


def test_is_pipe_like__pipe_and_memory_streams():
    r, w = os.pipe()
    with os.fdopen(r, "rb") as reader, os.fdopen(w, "wb") as writer:
        assert is_pipe_like(writer) is True
        assert is_pipe_like(reader) is True
    assert is_pipe_like(io.BytesIO()) is False
    assert is_pipe_like(object()) is False


def test_stdout_sink__writes_and_stays_open():
    buf = io.BytesIO()
    sink = StdoutSink(buf).open()
    sink.write_all(b"\x1b[31mraw\x1b[0m")
    sink.close()
    assert not buf.closed
    assert buf.getvalue() == b"\x1b[31mraw\x1b[0m"
    assert sink.pipe_like is False


class _Dribble(io.RawIOBase):
    """Accepts at most two bytes per write call."""

    def __init__(self) -> None:
        self.data = bytearray()

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        chunk = bytes(b[:2])
        self.data.extend(chunk)
        return len(chunk)


class _Broken(io.RawIOBase):
    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        raise BrokenPipeError(32, "Broken pipe")


def test_write_all__retries_partial_writes():
    raw = _Dribble()
    sink = StdoutSink(raw).open()
    sink.write_all(b"hello world")
    assert bytes(raw.data) == b"hello world"


def test_write_all__wraps_os_errors():
    sink = StdoutSink(_Broken()).open()
    with pytest.raises(SinkWriteError) as ei:
        sink.write_all(b"x")
    assert "Broken pipe" in str(ei.value)
    assert ei.value.target == "standard output"


def test_sink__unopened_sink_refuses_use(tmp_path):
    sink = FileSink(str(tmp_path / "x"))
    with pytest.raises(RuntimeError):
        sink.write_all(b"x")
    with pytest.raises(RuntimeError):
        _ = sink.pipe_like


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")
def test_path_is_pipe_like__fifo_regular_and_missing(tmp_path):
    fifo = tmp_path / "p.fifo"
    os.mkfifo(fifo)
    regular = tmp_path / "r.txt"
    regular.write_bytes(b"")

    assert path_is_pipe_like(str(fifo)) is True
    assert path_is_pipe_like(str(regular)) is False
    assert path_is_pipe_like(str(tmp_path)) is False
    assert path_is_pipe_like(str(tmp_path / "missing")) is False


def test_sink__base_class_is_abstract():
    with pytest.raises(TypeError):
        Sink()  # type: ignore[abstract]

    class _NoClose(Sink):
        def _acquire(self):
            return io.BytesIO()

    with pytest.raises(TypeError):
        _NoClose()  # type: ignore[abstract]
