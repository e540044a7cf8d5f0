"""Scoped suppression of SIGINT for the duration of a run."""

from __future__ import annotations

import signal
import threading
from types import TracebackType
from typing import Any, Optional, Type

from .log import get_logger

_LOG = get_logger(__name__)


class InterruptGuard:
    """
    Context manager: while active, SIGINT is ignored; on exit the previous
    handler is restored, whatever happened inside the block.

    Disabled guards leave the platform default untouched. Signal handlers can
    only be installed from the main thread; elsewhere the guard stays inactive.
    """

    def __init__(self, enabled: bool = True, signum: int = signal.SIGINT) -> None:
        self.enabled = enabled
        self.signum = signum
        self.active = False
        self._previous: Any = None

    def __enter__(self) -> "InterruptGuard":
        if not self.enabled:
            return self
        if threading.current_thread() is not threading.main_thread():
            _LOG.warning("cannot ignore interrupts outside the main thread")
            return self
        self._previous = signal.signal(self.signum, signal.SIG_IGN)
        self.active = True
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if not self.active:
            return
        previous = self._previous
        if previous is None:
            # handler was not installed from Python
            previous = signal.SIG_DFL
        signal.signal(self.signum, previous)
        self.active = False
        self._previous = None
