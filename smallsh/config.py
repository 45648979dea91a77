import os

HISTORY_FILE = os.path.expanduser(
    os.getenv("SMALLSH_HISTORY_FILE", "~/.smallsh_history")
)
MAX_HISTORY = int(os.getenv("SMALLSH_MAX_HISTORY", "1000"))

PROMPT = ": "

# Input limits
MAX_LINE = 2048
MAX_ARGS = 512

# Fixed-size tables shared with the signal handlers
JOB_CAPACITY = 200
QUEUE_CAPACITY = 50

NULL_DEVICE = os.devnull
SHUTDOWN_EXIT_CODE = 3

LOG_LEVEL = os.getenv("SMALLSH_LOG_LEVEL", "WARNING").upper()
