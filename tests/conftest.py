import os
import readline
import signal
import time

import pytest

from smallsh.job_control import ShellState, terminate_jobs

HANDLED_SIGNALS = (signal.SIGCHLD, signal.SIGINT, signal.SIGTSTP)


@pytest.fixture(autouse=True)
def restore_signals():
    """Put back whatever dispositions the shell code installed."""
    saved = {signum: signal.getsignal(signum) for signum in HANDLED_SIGNALS}
    yield
    for signum, handler in saved.items():
        if handler is not None:
            signal.signal(signum, handler)


@pytest.fixture(autouse=True)
def isolated_history(tmp_path, monkeypatch):
    """Keep readline history out of the real home directory."""
    monkeypatch.setattr("smallsh.history.HISTORY_FILE", str(tmp_path / "history"))
    readline.clear_history()
    yield tmp_path / "history"
    readline.clear_history()


@pytest.fixture
def state():
    shell_state = ShellState()
    yield shell_state
    pids = shell_state.jobs.pids()
    terminate_jobs(shell_state)
    for pid in pids:
        try:
            os.waitpid(pid, 0)
        except ChildProcessError:
            pass


@pytest.fixture
def wait_for():
    """Poll a predicate, letting signal handlers run between checks."""

    def _wait(predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return predicate()

    return _wait
