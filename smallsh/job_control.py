import os
import signal
from contextlib import contextmanager

import psutil

from smallsh.config import JOB_CAPACITY, PROMPT, QUEUE_CAPACITY
from smallsh.log import get_logger

log = get_logger(__name__)

# Never a valid pid for a child
NO_JOB = 0

ENTER_FG_ONLY = "\nEntering foreground-only mode (& is now ignored)\n"
EXIT_FG_ONLY = "\nExiting foreground-only mode\n"


def describe_status(status):
    """Turn a raw waitpid status into 'exit value N' / 'terminated by signal N'."""
    if os.WIFSIGNALED(status):
        return f"terminated by signal {os.WTERMSIG(status)}"
    return f"exit value {os.WEXITSTATUS(status)}"


def format_done(pid, status):
    return f"background pid {pid} is done: {describe_status(status)}"


@contextmanager
def blocked_signals(*signums):
    """Hold delivery of signums for the duration of the block."""
    old_mask = signal.pthread_sigmask(signal.SIG_BLOCK, signums)
    try:
        yield
    finally:
        signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)


class JobTable:
    """Fixed-capacity set of background pids.

    Slots are allocated once; the reap handler only ever overwrites a slot
    with NO_JOB, so it never has to resize anything.
    """

    def __init__(self, capacity=JOB_CAPACITY):
        self.capacity = capacity
        self._slots = [NO_JOB] * capacity

    def add(self, pid):
        """Store pid in the first free slot. Returns the slot, or None when full."""
        for i in range(self.capacity):
            if self._slots[i] == NO_JOB:
                self._slots[i] = pid
                return i
        return None

    def remove(self, pid):
        for i in range(self.capacity):
            if self._slots[i] == pid:
                self._slots[i] = NO_JOB
                return True
        return False

    def pids(self):
        return [pid for pid in self._slots if pid != NO_JOB]

    def clear(self):
        for i in range(self.capacity):
            self._slots[i] = NO_JOB

    def __contains__(self, pid):
        return pid != NO_JOB and pid in self._slots

    def __len__(self):
        return self.capacity - self._slots.count(NO_JOB)


class NotificationQueue:
    """Bounded FIFO of reaped (pid, status) records.

    Single producer (the SIGCHLD handler) and single consumer (the prompt
    loop). The producer only advances ``_tail`` and ``dropped``; the
    consumer only advances ``_head`` and ``_dropped_seen``. Python handlers
    run between bytecodes, so neither side may read-modify-write a field
    the other side writes. When the ring is full the newest record is
    dropped.
    """

    def __init__(self, capacity=QUEUE_CAPACITY):
        self.capacity = capacity
        self._pids = [NO_JOB] * capacity
        self._statuses = [0] * capacity
        # Monotonic counters; slot index is counter % capacity
        self._head = 0
        self._tail = 0
        self.dropped = 0
        self._dropped_seen = 0

    def append(self, pid, status):
        tail = self._tail
        if tail - self._head >= self.capacity:
            self.dropped += 1
            return False
        slot = tail % self.capacity
        self._pids[slot] = pid
        self._statuses[slot] = status
        # Publish only after the slot is filled
        self._tail = tail + 1
        return True

    def drain(self):
        """Empty the queue and return its messages, oldest first."""
        records = []
        head = self._head
        while head != self._tail:
            slot = head % self.capacity
            records.append((self._pids[slot], self._statuses[slot]))
            head += 1
            self._head = head

        dropped = self.dropped
        if dropped != self._dropped_seen:
            log.warning("notification queue full, %d message(s) dropped",
                        dropped - self._dropped_seen)
            self._dropped_seen = dropped
        return [format_done(pid, status) for pid, status in records]

    def __len__(self):
        return self._tail - self._head


class ShellState:
    """Everything the prompt loop, the launcher and the signal handlers share."""

    def __init__(self, job_capacity=JOB_CAPACITY, queue_capacity=QUEUE_CAPACITY):
        self.jobs = JobTable(job_capacity)
        self.notifications = NotificationQueue(queue_capacity)
        self.foreground_only = False
        self.last_status = "exit value 0"
        # Set while the launcher blocks on a foreground child
        self.foreground_pid = NO_JOB
        self.foreground_status = None
        self.reaper_installed = False

    def reap(self, signum, frame):
        """SIGCHLD handler: collect every terminated child."""
        while True:
            try:
                pid, status = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                break
            if pid == 0:
                break
            if pid == self.foreground_pid:
                # Hand it back to the launcher's blocking wait
                self.foreground_status = status
                continue
            self.notifications.append(pid, status)
            self.jobs.remove(pid)

    def toggle_foreground_only(self, signum, frame):
        """SIGTSTP handler."""
        self.foreground_only = not self.foreground_only
        message = ENTER_FG_ONLY if self.foreground_only else EXIT_FG_ONLY
        os.write(1, (message + PROMPT).encode())


def install_reaper(state):
    """Install the SIGCHLD handler once."""
    if state.reaper_installed:
        return
    signal.signal(signal.SIGCHLD, state.reap)
    state.reaper_installed = True


def init_signal_handlers(state):
    """Shell-process dispositions: ignore SIGINT, toggle mode on SIGTSTP, reap on SIGCHLD."""
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    signal.signal(signal.SIGTSTP, state.toggle_foreground_only)
    install_reaper(state)


def print_notifications(state):
    """Drain the notification queue to stdout."""
    for message in state.notifications.drain():
        print(message, flush=True)


def terminate_jobs(state):
    """Best-effort SIGTERM to every tracked job. Does not wait."""
    for pid in state.jobs.pids():
        try:
            os.kill(pid, signal.SIGTERM)
            log.info("sent SIGTERM to background job %d", pid)
        except ProcessLookupError:
            pass
        except PermissionError as e:
            log.warning("could not terminate job %d: %s", pid, e)
    state.jobs.clear()


def show_jobs(state):
    """List tracked background jobs with their live process state."""
    pids = state.jobs.pids()
    if not pids:
        print("No background jobs.")
        return

    print(f"{'PID':<8} {'Command'}")
    print("-" * 40)
    for pid in pids:
        try:
            p = psutil.Process(pid)
            cmdline = " ".join(p.cmdline()) or p.name()
            print(f"{pid:<8} {cmdline}  [{p.status()}]")
        except psutil.NoSuchProcess:
            print(f"{pid:<8} ?  [terminated]")
        except psutil.AccessDenied:
            print(f"{pid:<8} ?  [unknown]")
