"""Error taxonomy for a tee run."""

from __future__ import annotations

from typing import Optional


class TeeError(RuntimeError):
    """Base class for every error raised by teeline."""


class InputReadError(TeeError):
    """Raised when the input stream cannot be read to completion."""


class SinkError(TeeError):
    """A single sink failed. Carries the target label and the underlying cause."""

    verb = "cannot write"

    def __init__(self, target: str, cause: Optional[BaseException] = None) -> None:
        self.target = target
        self.cause = cause
        reason = _describe(cause)
        super().__init__(f"{target}: {self.verb}: {reason}" if reason else f"{target}: {self.verb}")


class SinkOpenError(SinkError):
    """Raised when a target could not be created or opened for writing."""

    verb = "cannot open"


class SinkWriteError(SinkError):
    """Raised when an opened target failed during or after the write."""


def _describe(cause: Optional[BaseException]) -> str:
    if cause is None:
        return ""
    if isinstance(cause, OSError) and cause.strerror:
        return cause.strerror
    return str(cause)
