from __future__ import annotations

import os
import signal
import threading

import pytest

from src.teeline.guard import InterruptGuard


# This test checks SIGINT is ignored inside the guard and restored afterwards.
def test_guard__ignores_sigint_then_restores():
    before = signal.getsignal(signal.SIGINT)
    with InterruptGuard(True) as g:
        assert g.active
        assert signal.getsignal(signal.SIGINT) is signal.SIG_IGN
        os.kill(os.getpid(), signal.SIGINT)  # must not interrupt the test
    assert signal.getsignal(signal.SIGINT) is before
    assert not g.active
    print("\n.✅test_guard__ignores_sigint_then_restores passed")


def test_guard__restores_even_when_block_raises():
    before = signal.getsignal(signal.SIGINT)
    with pytest.raises(ValueError):
        with InterruptGuard(True):
            raise ValueError("boom")
    assert signal.getsignal(signal.SIGINT) is before


def test_guard__disabled_leaves_handler_alone():
    before = signal.getsignal(signal.SIGINT)
    with InterruptGuard(False) as g:
        assert not g.active
        assert signal.getsignal(signal.SIGINT) is before
    assert signal.getsignal(signal.SIGINT) is before


def test_guard__inactive_outside_main_thread():
    seen = {}

    def _worker():
        with InterruptGuard(True) as g:
            seen["active"] = g.active

    t = threading.Thread(target=_worker)
    t.start()
    t.join()
    assert seen["active"] is False
