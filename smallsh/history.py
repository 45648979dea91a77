import os
import readline
import sys

from smallsh import config
from smallsh.config import MAX_LINE, PROMPT
from smallsh.log import get_logger

log = get_logger(__name__)

HISTORY_FILE = config.HISTORY_FILE


def init_readline():
    """Set up line editing the way a Linux terminal behaves"""
    if not sys.stdin.isatty():
        log.debug("stdin is not a terminal, line editing disabled")
        return

    try:
        readline.parse_and_bind("\\e[A: previous-history")
        readline.parse_and_bind("\\e[B: next-history")

        # Ctrl+Left/Right to jump between words
        readline.parse_and_bind("\\e[1;5D: backward-word")
        readline.parse_and_bind("\\e[1;5C: forward-word")

        readline.parse_and_bind("set editing-mode emacs")
    except (OSError, ValueError) as e:
        print(f"Warning: Could not configure readline: {e}", file=sys.stderr)


def load_history(path=None):
    """Read the history file, keeping at most MAX_HISTORY entries."""
    path = path or HISTORY_FILE
    readline.set_history_length(config.MAX_HISTORY)
    if not os.path.exists(path):
        return
    try:
        readline.read_history_file(path)
    except OSError as e:
        print(f"Warning: Could not load history: {e}", file=sys.stderr)


def save_history(path=None):
    path = path or HISTORY_FILE
    try:
        readline.set_history_length(config.MAX_HISTORY)
        readline.write_history_file(path)
    except OSError as e:
        print(f"Warning: Could not save history: {e}", file=sys.stderr)


def show_history():
    hlen = readline.get_current_history_length()
    for i in range(1, hlen + 1):
        print(f"{i}\t{readline.get_history_item(i)}")


def too_long(line):
    """Lines are limited in bytes, not characters."""
    return len(line.encode()) >= MAX_LINE


def _drop_last_entry(line):
    last = readline.get_current_history_length()
    if last and readline.get_history_item(last) == line:
        readline.remove_history_item(last - 1)


def read_line(prompt=PROMPT):
    """
    Read one line of input. Raises EOFError at end of stream.
    Over-long lines are reported and returned as None; they never
    reach the history.
    """
    interactive = sys.stdin.isatty()
    line = input(prompt)

    if too_long(line):
        if interactive:
            # readline already recorded it
            _drop_last_entry(line)
        print(f"smallsh: line too long (limit {MAX_LINE - 1} bytes)", file=sys.stderr)
        return None

    # input() only feeds readline's history when it is talking to a terminal
    if not interactive and line.strip():
        readline.add_history(line)
    return line
