from __future__ import annotations

import sys
from typing import BinaryIO, Optional

from .config import RunConfig
from .errors import InputReadError
from .fanout import ExecutorFactory, Opener, default_executor, fan_out
from .guard import InterruptGuard
from .log import get_logger
from .policy import RunResult, evaluate
from .sinks import open_target
from .transform import Transformer, get_transformer

"""
Run driver
  guard on -> read all input -> transform once -> fan out -> evaluate -> guard off
InputReadError is fatal whatever the error mode: nothing is written.
"""

_LOG = get_logger(__name__)


# This function reads the whole input stream into memory.
def read_input(stream: BinaryIO) -> bytes:
    try:
        return stream.read()
    except (OSError, ValueError) as e:
        raise InputReadError(f"cannot read input: {e}") from e


def run(
    cfg: RunConfig,
    *,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    transformer: Optional[Transformer] = None,
    opener: Opener = open_target,
    executor_factory: ExecutorFactory = default_executor,
) -> RunResult:
    """
    Execute one tee run and return its aggregated result.

    Raises:
        InputReadError: if the input could not be read
    """
    transform = transformer or get_transformer(cfg.strip_escapes)
    with InterruptGuard(cfg.ignore_interrupts):
        original = read_input(stdin if stdin is not None else sys.stdin.buffer)
        transformed = transform(original)
        _LOG.debug("read %d bytes, fanning out to %d target(s)", len(original), len(cfg.targets))
        outcomes = fan_out(
            cfg,
            original,
            transformed,
            stdout=stdout,
            opener=opener,
            executor_factory=executor_factory,
        )
        return evaluate(cfg.error_mode, outcomes)
