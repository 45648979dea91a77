import os
import signal
import sys

from smallsh.job_control import NO_JOB, blocked_signals, describe_status, install_reaper
from smallsh.log import get_logger

log = get_logger(__name__)

OUTPUT_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
OUTPUT_MODE = 0o644


class RedirectError(Exception):
    """A redirection target could not be opened or attached."""


def _attach(path, flags, target_fd, direction):
    try:
        fd = os.open(path, flags, OUTPUT_MODE)
    except OSError:
        raise RedirectError(f"cannot open {path} for {direction}") from None
    try:
        os.dup2(fd, target_fd)
    except OSError:
        raise RedirectError(f"cannot redirect {direction} to {path}") from None
    if fd != target_fd:
        os.close(fd)


def redirect_io(input_path=None, output_path=None):
    """Point stdin/stdout of the current process at the given files."""
    if input_path is not None:
        _attach(input_path, os.O_RDONLY, 0, "input")
    if output_path is not None:
        _attach(output_path, OUTPUT_FLAGS, 1, "output")


def _run_child(cmd):
    """Child side of the fork. Never returns."""
    try:
        signal.pthread_sigmask(signal.SIG_UNBLOCK, {signal.SIGCHLD})
        signal.signal(signal.SIGINT, signal.SIG_IGN if cmd.background else signal.SIG_DFL)
        signal.signal(signal.SIGTSTP, signal.SIG_IGN)
        signal.signal(signal.SIGCHLD, signal.SIG_DFL)

        redirect_io(cmd.input_path, cmd.output_path)
        os.execvp(cmd.program, cmd.arguments)
    except RedirectError as e:
        print(e, flush=True)
    except OSError as e:
        print(f"{cmd.program}: {e.strerror}", file=sys.stderr, flush=True)
    finally:
        os._exit(1)


def wait_foreground(pid, state):
    """Block until the foreground child pid finishes. Returns its raw status."""
    try:
        _, status = os.waitpid(pid, 0)
    except ChildProcessError:
        # The SIGCHLD handler got there first
        status = state.foreground_status
    finally:
        state.foreground_pid = NO_JOB
    state.foreground_status = None
    return status


def launch(cmd, state):
    """
    Fork and exec cmd.
    Returns the child's pid, or None when fork failed.
    """
    sys.stdout.flush()
    sys.stderr.flush()

    with blocked_signals(signal.SIGCHLD):
        try:
            pid = os.fork()
        except OSError as e:
            print(f"smallsh: fork failed: {e}", file=sys.stderr, flush=True)
            state.last_status = "exit value 1"
            return None

        if pid == 0:
            _run_child(cmd)

        log.debug("forked %d for %s", pid, cmd.arguments)
        if cmd.background:
            if state.jobs.add(pid) is None:
                log.warning("job table full, pid %d is not tracked", pid)
            install_reaper(state)
        else:
            state.foreground_pid = pid

    if cmd.background:
        print(f"background pid is {pid}", flush=True)
        return pid

    status = wait_foreground(pid, state)
    if status is None:
        log.error("lost exit status of foreground pid %d", pid)
        state.last_status = "exit value 1"
        return pid

    if os.WIFSIGNALED(status):
        print(f"terminated by signal {os.WTERMSIG(status)}", flush=True)
    state.last_status = describe_status(status)
    return pid
