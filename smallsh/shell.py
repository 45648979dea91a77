import sys

from smallsh.builtin import Builtin, execute_builtin
from smallsh.config import MAX_LINE, PROMPT
from smallsh.executor import launch
from smallsh.history import init_readline, load_history, read_line, save_history, too_long
from smallsh.job_control import (
    ShellState,
    init_signal_handlers,
    print_notifications,
    terminate_jobs,
)
from smallsh.log import setup_logging
from smallsh.parser import parse_command


def run_command(cmd, state):
    builtin = Builtin.lookup(cmd.program)
    if builtin is not None:
        execute_builtin(builtin, cmd, state)
    else:
        launch(cmd, state)


def run_line(line, state):
    """Parse and run one input line. Returns False if nothing was run."""
    if line is None:
        return False
    if too_long(line):
        print(f"smallsh: line too long (limit {MAX_LINE - 1} bytes)", file=sys.stderr)
        return False

    cmd = parse_command(line, state.foreground_only)
    if cmd is None:
        return False

    run_command(cmd, state)
    return True


def main_loop(state=None):
    """
    Read-parse-run until end of input.
    Returns 0 at end of input; the exit built-in leaves through SystemExit.
    """
    if state is None:
        state = ShellState()

    init_signal_handlers(state)
    init_readline()
    load_history()

    try:
        while True:
            print_notifications(state)
            try:
                line = read_line(PROMPT)
            except EOFError:
                print()
                break
            run_line(line, state)
    finally:
        save_history()

    print_notifications(state)
    terminate_jobs(state)
    return 0


def main():
    setup_logging()
    sys.exit(main_loop())


if __name__ == "__main__":
    main()
