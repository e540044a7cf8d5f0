from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Final, Iterable, List, Optional, Tuple

from .config import ErrorMode
from .errors import SinkError
from .log import get_logger

"""
Error policy

For every failed sink two independent questions, answered from a fixed table
keyed by (mode, pipe_like):
  - diagnose?  print one line to STDERR
  - abort?     run result becomes FAILED_FAST (non-zero exit)
The fold over outcomes is order-insensitive: abort is OR-ed per outcome.
"""

_LOG = get_logger(__name__)


@dataclass(frozen=True)
class Decision:
    diagnose: bool
    abort: bool


# (mode, pipe_like) -> Decision
POLICY_TABLE: Final[Dict[Tuple[ErrorMode, bool], Decision]] = {
    (ErrorMode.WARN, False): Decision(diagnose=True, abort=False),
    (ErrorMode.WARN, True): Decision(diagnose=True, abort=False),
    (ErrorMode.WARN_NOPIPE, False): Decision(diagnose=True, abort=False),
    (ErrorMode.WARN_NOPIPE, True): Decision(diagnose=False, abort=False),
    (ErrorMode.EXIT, False): Decision(diagnose=True, abort=True),
    (ErrorMode.EXIT, True): Decision(diagnose=True, abort=True),
    (ErrorMode.EXIT_NOPIPE, False): Decision(diagnose=True, abort=True),
    (ErrorMode.EXIT_NOPIPE, True): Decision(diagnose=False, abort=False),
}


def decide(mode: ErrorMode, pipe_like: bool) -> Decision:
    return POLICY_TABLE[(ErrorMode(mode), bool(pipe_like))]


@dataclass(frozen=True)
class WriteOutcome:
    """Result of one sink's write attempt. ``error is None`` means success."""

    target: str
    pipe_like: bool = False
    error: Optional[SinkError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# This function checks whether one outcome aborts the run under the given mode.
def is_abort_worthy(mode: ErrorMode, outcome: WriteOutcome) -> bool:
    return not outcome.ok and decide(mode, outcome.pipe_like).abort


class RunStatus(str, Enum):
    COMPLETED = "completed"
    FAILED_FAST = "failed-fast"


@dataclass(frozen=True)
class RunResult:
    status: RunStatus
    outcomes: Tuple[WriteOutcome, ...] = ()
    diagnosed: Tuple[WriteOutcome, ...] = ()
    first_failure: Optional[WriteOutcome] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.status is RunStatus.COMPLETED else 1


def evaluate(mode: ErrorMode, outcomes: Iterable[WriteOutcome]) -> RunResult:
    """
    Fold all outcomes into one RunResult.

    Diagnosed failures are logged to STDERR, one line per failing sink.
    ``first_failure`` is the first abort-worthy outcome in the order given.
    """
    all_outcomes = tuple(outcomes)
    diagnosed: List[WriteOutcome] = []
    first_failure: Optional[WriteOutcome] = None

    for outcome in all_outcomes:
        if outcome.ok:
            continue
        decision = decide(mode, outcome.pipe_like)
        if decision.diagnose:
            diagnosed.append(outcome)
            _LOG.error("%s", outcome.error)
        if decision.abort and first_failure is None:
            first_failure = outcome

    status = RunStatus.FAILED_FAST if first_failure is not None else RunStatus.COMPLETED
    return RunResult(
        status=status,
        outcomes=all_outcomes,
        diagnosed=tuple(diagnosed),
        first_failure=first_failure,
    )
