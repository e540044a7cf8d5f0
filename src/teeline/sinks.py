from __future__ import annotations

import abc
import errno
import os
import stat
import sys
from typing import BinaryIO, Final, Optional

from .config import OpenMode
from .errors import SinkOpenError, SinkWriteError

"""
Sinks:
  - StdoutSink(stream)       process standard output, never fails to open
  - FileSink(path, mode)     truncate (wb) or append (ab), created if absent
Each sink: open() -> write_all(data) -> close(). pipe_like is fixed at open().
No logging here; the fan-out writer and the policy evaluator report failures.
"""

STDOUT_LABEL: Final[str] = "standard output"

_FILE_MODES: Final = {OpenMode.TRUNCATE: "wb", OpenMode.APPEND: "ab"}


# This function classifies a stream: FIFO, socket or terminal count as pipe-like.
def is_pipe_like(stream: object) -> bool:
    try:
        fd = stream.fileno()  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        # in-memory streams have no descriptor
        return False
    try:
        mode = os.fstat(fd).st_mode
    except OSError:
        return False
    if stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode):
        return True
    return os.isatty(fd)


# Same classification for a path that could not be opened. Terminals need an
# open descriptor to be recognized, so only FIFOs and sockets count here.
def path_is_pipe_like(path: str) -> bool:
    try:
        mode = os.stat(path).st_mode
    except (OSError, ValueError):
        return False
    return stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode)


def _write_fully(stream: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        n = stream.write(view)
        if not n:
            raise OSError(errno.EIO, "short write")
        view = view[n:]
    stream.flush()


class Sink(abc.ABC):
    """A single destination receiving one full copy of the output.

    Subclasses provide _acquire (hand back the open stream) and close.
    """

    label: str = ""

    def __init__(self) -> None:
        self._stream: Optional[BinaryIO] = None
        self._pipe_like: Optional[bool] = None

    @property
    def pipe_like(self) -> bool:
        if self._pipe_like is None:
            raise RuntimeError(f"{self.label}: sink not opened")
        return self._pipe_like

    @abc.abstractmethod
    def _acquire(self) -> BinaryIO: ...

    def open(self) -> "Sink":
        self._stream = self._acquire()
        self._pipe_like = is_pipe_like(self._stream)
        return self

    def write_all(self, data: bytes) -> None:
        if self._stream is None:
            raise RuntimeError(f"{self.label}: sink not opened")
        try:
            _write_fully(self._stream, data)
        except (OSError, ValueError) as e:
            raise SinkWriteError(self.label, e) from e

    @abc.abstractmethod
    def close(self) -> None: ...


class StdoutSink(Sink):
    def __init__(self, stream: Optional[BinaryIO] = None) -> None:
        super().__init__()
        self.label = STDOUT_LABEL
        self._given = stream

    def _acquire(self) -> BinaryIO:
        return self._given if self._given is not None else sys.stdout.buffer

    def close(self) -> None:
        # stdout belongs to the process: flush, never close
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.flush()
        except (OSError, ValueError) as e:
            raise SinkWriteError(self.label, e) from e


class FileSink(Sink):
    def __init__(self, path: str, mode: OpenMode = OpenMode.TRUNCATE) -> None:
        super().__init__()
        self.label = path
        self.path = path
        self.mode = mode

    def _acquire(self) -> BinaryIO:
        try:
            # unbuffered: write() reports partial writes, which _write_fully retries
            return open(self.path, _FILE_MODES[self.mode], buffering=0)
        except OSError as e:
            raise SinkOpenError(self.path, e) from e

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except OSError as e:
            raise SinkWriteError(self.label, e) from e


# This function builds the sink for one configured target path.
def open_target(path: str, mode: OpenMode) -> Sink:
    return FileSink(path, mode).open()
