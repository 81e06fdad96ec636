"""
Batch splitting for delivery.

Bounds the size of each POST body by splitting incoming tail events
into fixed-size chunks.
"""

from typing import Sequence, TypeVar

from ..config.constants import DEFAULT_CHUNK_SIZE
from ..exceptions import InvalidChunkSizeError

T = TypeVar("T")


def split_into_chunks(
    events: Sequence[T], chunk_size: int = DEFAULT_CHUNK_SIZE
) -> list[list[T]]:
    """
    Split events into consecutive chunks, preserving order.

    The last chunk may be shorter. An empty input yields no chunks.

    Args:
        events: Items to split
        chunk_size: Maximum items per chunk (must be > 0)

    Returns:
        List of chunks

    Raises:
        InvalidChunkSizeError: If chunk_size is not a positive integer

    Examples:
        >>> [len(c) for c in split_into_chunks(list(range(250)), 100)]
        [100, 100, 50]
        >>> split_into_chunks([], 100)
        []
    """
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise InvalidChunkSizeError(chunk_size)

    events = list(events)
    return [events[i : i + chunk_size] for i in range(0, len(events), chunk_size)]
