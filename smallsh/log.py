"""Logging setup for smallsh.

User-facing diagnostics are printed directly; this logger only carries
internal tracing (forks, reaps, overflow of the fixed tables).
"""

import logging
import sys

from smallsh.config import LOG_LEVEL

ROOT_NAME = "smallsh"


class ShellFormatter(logging.Formatter):
    """Prefix records with pid so child-side records can be told apart."""

    def __init__(self):
        super().__init__("[%(process)d] %(levelname)s %(name)s: %(message)s")


def setup_logging(level=None):
    root = logging.getLogger(ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ShellFormatter())
        root.addHandler(handler)
    root.setLevel(level or LOG_LEVEL)
    return root


def get_logger(name):
    """Return a child of the smallsh logger, e.g. ``smallsh.executor``."""
    if name.startswith(ROOT_NAME + "."):
        name = name[len(ROOT_NAME) + 1:]
    return logging.getLogger(f"{ROOT_NAME}.{name}")
