import os
import sys
from enum import Enum

from smallsh.config import SHUTDOWN_EXIT_CODE
from smallsh.history import save_history, show_history
from smallsh.job_control import print_notifications, show_jobs, terminate_jobs
from smallsh.log import get_logger

log = get_logger(__name__)


class Builtin(Enum):
    """Commands the shell runs itself instead of forking."""

    EXIT = "exit"
    STATUS = "status"
    CD = "cd"
    JOBS = "jobs"
    HISTORY = "history"
    HELP = "help"

    @classmethod
    def lookup(cls, program):
        try:
            return cls(program)
        except ValueError:
            return None


def builtin_help():
    """Print help message"""
    print("""smallsh help:
 Built-in commands:
  cd [dir]      : change directory (default $HOME)
  status        : show how the last foreground command ended
  jobs          : list background jobs
  history       : show command history
  exit          : stop background jobs and leave the shell
  help          : print this help

Features:
  Redirection using < and >
  Background with a trailing & (ignored in foreground-only mode, Ctrl+Z toggles)
  $$ expands to the shell's pid
""")


def builtin_cd(args):
    """Change directory. Failures are reported and otherwise ignored."""
    path = args[0] if args else os.environ.get("HOME", os.path.expanduser("~"))
    try:
        os.chdir(os.path.expanduser(path))
    except OSError as e:
        print(f"cd: {e}", file=sys.stderr)


def builtin_status(state):
    print(state.last_status, flush=True)


def shutdown(state):
    """Flush pending notifications, SIGTERM every tracked job and exit with code 3."""
    print_notifications(state)
    terminate_jobs(state)
    save_history()
    log.info("shutting down")
    sys.stdout.flush()
    sys.exit(SHUTDOWN_EXIT_CODE)


def execute_builtin(builtin, cmd, state):
    """Run a built-in. None of them touches last status."""
    args = cmd.arguments[1:]

    if builtin is Builtin.EXIT:
        shutdown(state)
    elif builtin is Builtin.STATUS:
        builtin_status(state)
    elif builtin is Builtin.CD:
        builtin_cd(args)
    elif builtin is Builtin.JOBS:
        show_jobs(state)
    elif builtin is Builtin.HISTORY:
        show_history()
    elif builtin is Builtin.HELP:
        builtin_help()
