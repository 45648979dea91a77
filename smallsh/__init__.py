"""smallsh - a small job-control shell."""

__version__ = "1.0.0"
