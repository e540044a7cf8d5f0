from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Executor, Future, ThreadPoolExecutor, wait
from functools import partial
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple

from .config import OpenMode, RunConfig
from .errors import SinkError
from .log import get_logger
from .policy import WriteOutcome, is_abort_worthy
from .sinks import STDOUT_LABEL, Sink, StdoutSink, open_target, path_is_pipe_like

"""
Fan-out writer
- One task per sink (standard output first, then every target in order)
- Standard output gets the original bytes, targets get the transformed bytes
- Tasks run on a thread pool; the only sync point is the join over all tasks
- A failing sink never stops the others; under an aborting mode, tasks that
  have not started yet are cancelled, running ones are left to finish
"""

_LOG = get_logger(__name__)

Opener = Callable[[str, OpenMode], Sink]
ExecutorFactory = Callable[[int], Executor]


# This function runs one sink from open to close and reports how it went.
def _write_one(label: str, acquire: Callable[[], Sink], data: bytes) -> WriteOutcome:
    try:
        sink = acquire()
    except SinkError as e:
        # nothing was opened, so classify by what sits at the path
        return WriteOutcome(target=label, pipe_like=path_is_pipe_like(label), error=e)

    error: Optional[SinkError] = None
    try:
        sink.write_all(data)
    except SinkError as e:
        error = e
    try:
        sink.close()
    except SinkError as e:
        # a failed close after a good write still loses data
        if error is None:
            error = e
    return WriteOutcome(target=label, pipe_like=sink.pipe_like, error=error)


def default_executor(max_workers: int) -> Executor:
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="teeline")


def fan_out(
    cfg: RunConfig,
    original: bytes,
    transformed: bytes,
    *,
    stdout: Optional[BinaryIO] = None,
    opener: Opener = open_target,
    executor_factory: ExecutorFactory = default_executor,
) -> List[WriteOutcome]:
    """
    Write ``original`` to standard output and ``transformed`` to every target,
    concurrently. Returns one outcome per attempted sink, in sink order.
    Sinks cancelled before they started have no outcome.
    """
    jobs: List[Tuple[str, Callable[[], Sink], bytes]] = [
        (STDOUT_LABEL, StdoutSink(stdout).open, original),
    ]
    for path in cfg.targets:
        jobs.append((path, partial(opener, path, cfg.open_mode), transformed))

    workers = cfg.max_workers or len(jobs)
    results: Dict[int, WriteOutcome] = {}

    pool = executor_factory(workers)
    try:
        pending: Dict[Future, int] = {
            pool.submit(_write_one, label, acquire, data): i
            for i, (label, acquire, data) in enumerate(jobs)
        }
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = pending.pop(fut)
                if fut.cancelled():
                    continue
                outcome = fut.result()
                results[idx] = outcome
                if is_abort_worthy(cfg.error_mode, outcome):
                    _cancel_not_started(pending)
    except BaseException:
        # interrupted: do not join workers that may be blocked on a sink
        pool.shutdown(wait=False, cancel_futures=True)
        raise
    pool.shutdown(wait=True)

    return [results[i] for i in sorted(results)]


def _cancel_not_started(pending: Dict[Future, int]) -> None:
    for fut in list(pending):
        if fut.cancel():
            _LOG.debug("skipping sink #%d after abort-worthy failure", pending[fut])
            del pending[fut]
