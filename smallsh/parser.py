import os
from dataclasses import dataclass, field
from typing import List, Optional

from smallsh.config import MAX_ARGS, NULL_DEVICE

PID_MARKER = "$$"
DELIMITERS = " \n"


@dataclass
class Command:
    """One parsed command line.

    ``arguments`` always starts with ``program`` so it can be handed to
    ``os.execvp`` unchanged.
    """

    program: str
    arguments: List[str] = field(default_factory=list)
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    background: bool = False

    def __post_init__(self):
        if not self.program:
            raise ValueError("program must not be empty")
        if not self.arguments:
            self.arguments = [self.program]


def is_ignored(line):
    """Blank lines and comments never produce a command."""
    stripped = line.lstrip()
    return not stripped or stripped.startswith("#")


def tokenize(line):
    """Yield whitespace-delimited tokens (space and newline only)."""
    if is_ignored(line):
        return
    for tok in line.replace("\n", " ").split(" "):
        if tok:
            yield tok


def expand(token, pid=None):
    """Replace every ``$$`` in token with the shell's pid."""
    if PID_MARKER not in token:
        return token
    if pid is None:
        pid = os.getpid()
    return token.replace(PID_MARKER, str(pid))


def parse_command(line, foreground_only=False, pid=None):
    """
    Build a Command from a raw line.
    Returns None for blank and comment lines.
    """
    tokens = tokenize(line)
    first = next(tokens, None)
    if first is None:
        return None

    cmd = Command(program=expand(first, pid))
    for tok in tokens:
        # Only a trailing standalone & counts
        cmd.background = False

        if tok == "<":
            path = next(tokens, None)
            if path is not None:
                cmd.input_path = expand(path, pid)
        elif tok == ">":
            path = next(tokens, None)
            if path is not None:
                cmd.output_path = expand(path, pid)
        elif tok == "&":
            cmd.background = True
        elif len(cmd.arguments) <= MAX_ARGS:
            cmd.arguments.append(expand(tok, pid))

    if foreground_only:
        cmd.background = False

    if cmd.background:
        if cmd.input_path is None:
            cmd.input_path = NULL_DEVICE
        if cmd.output_path is None:
            cmd.output_path = NULL_DEVICE

    return cmd
