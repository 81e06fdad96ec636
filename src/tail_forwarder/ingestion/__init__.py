"""Reading tail events exported to files."""

from .reader import open_tail_export, read_tail_events

__all__ = ["open_tail_export", "read_tail_events"]
