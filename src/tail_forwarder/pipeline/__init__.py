"""Dispatch pipeline: tail events in, Coralogix deliveries out."""

from .dispatcher import (
    ExecutionContext,
    build_records,
    dispatch,
    forward_tail_events,
    setup_logging,
)

__all__ = [
    "ExecutionContext",
    "build_records",
    "dispatch",
    "forward_tail_events",
    "setup_logging",
]
