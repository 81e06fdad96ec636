"""
Tail event dispatch.

Entry point for one incoming batch of Cloudflare tail events:
- Validates the Coralogix configuration
- Splits the batch into chunks
- Builds one log record per console log, exception and fetch request
- Schedules one delivery per non-empty chunk without waiting for it

Deliveries run concurrently in the background. The ExecutionContext keeps
them alive until they settle, so the caller can return early and drain
the context later (the equivalent of a worker's waitUntil).
"""

import asyncio
import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Awaitable, Optional, Sequence, Union

import httpx

from ..config.constants import CATEGORY_CONSOLE, CATEGORY_EXCEPTION, CATEGORY_FETCH
from ..config.settings import Settings, get_settings
from ..delivery.batching import split_into_chunks
from ..delivery.sink import DeliveryResult, deliver_records
from ..exceptions import InvalidChunkSizeError
from ..normalization.fields import FieldResolver, RandomSampler
from ..normalization.log_record import CanonicalLogRecord, LogNormalizer

logger = logging.getLogger(__name__)


def setup_logging(
    level: Union[int, str] = logging.INFO, log_file: Optional[Path] = None
) -> None:
    """
    Configure logging for scripts.

    Args:
        level: Log level (logging.DEBUG or a name such as "DEBUG")
        log_file: Optional file to write logs to, in addition to stderr
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


class ExecutionContext:
    """
    Registry of background deliveries scheduled by dispatch().

    Holds a strong reference to every scheduled task until it settles.
    No cancellation is exposed.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()
        self._results: list[DeliveryResult] = []

    @property
    def pending(self) -> int:
        """Number of deliveries that have not settled yet."""
        return len(self._pending)

    def wait_until(self, awaitable: Awaitable[DeliveryResult]) -> asyncio.Task:
        """
        Schedule an awaitable in the background and keep it alive.

        Must be called from within a running event loop.
        """
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._settle)
        return task

    def _settle(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.error("Background delivery was cancelled")
            self._results.append(
                DeliveryResult(success=False, transport_error="CancelledError")
            )
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background delivery raised unexpectedly: {exc!r}")
            self._results.append(
                DeliveryResult(
                    success=False, transport_error=f"{type(exc).__name__}: {exc}"
                )
            )
            return
        self._results.append(task.result())

    async def drain(self) -> list[DeliveryResult]:
        """
        Wait for every scheduled delivery to settle.

        Returns:
            Results of all deliveries settled so far, in completion order
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        return list(self._results)


def _has_fetch_event(tail_event: Mapping[str, Any]) -> bool:
    # Scheduled and queue events carry an `event` without a request
    fetch_event = tail_event.get("event")
    return isinstance(fetch_event, Mapping) and bool(fetch_event.get("request"))


def build_records(
    tail_event: Mapping[str, Any], normalizer: LogNormalizer
) -> list[CanonicalLogRecord]:
    """
    Build all log records for one tail event.

    One record per console log, one per exception, and one for the fetch
    sub-event when present. Console records come first, then exceptions,
    then the fetch record.
    """
    records = []

    for log in tail_event.get("logs") or []:
        records.append(normalizer.normalize(log, tail_event, CATEGORY_CONSOLE))

    for exception in tail_event.get("exceptions") or []:
        records.append(normalizer.normalize(exception, tail_event, CATEGORY_EXCEPTION))

    if _has_fetch_event(tail_event):
        records.append(
            normalizer.normalize(tail_event["event"], tail_event, CATEGORY_FETCH)
        )

    return records


async def dispatch(
    tail_events: Sequence[Mapping[str, Any]],
    settings: Settings,
    ctx: ExecutionContext,
    client: Optional[httpx.AsyncClient] = None,
    normalizer: Optional[LogNormalizer] = None,
) -> None:
    """
    Normalize a batch of tail events and schedule delivery to Coralogix.

    Returns as soon as all deliveries are scheduled; await ctx.drain()
    to wait for them. Never raises for configuration or delivery problems:
    everything is reported through logging.

    Args:
        tail_events: Incoming tail events
        settings: Forwarder settings
        ctx: Registry that keeps scheduled deliveries alive
        client: Shared async HTTP client (per-delivery clients if None)
        normalizer: Record builder (built from settings if None)
    """
    missing = settings.missing_required()
    if missing:
        logger.error(
            f"Missing required configuration: {', '.join(missing)}. "
            f"Dropping {len(tail_events)} tail events."
        )
        return

    if normalizer is None:
        normalizer = LogNormalizer(
            settings,
            resolver=FieldResolver(RandomSampler(settings.diagnostic_sample_rate)),
        )

    try:
        chunks = split_into_chunks(tail_events, settings.batch_size)
    except InvalidChunkSizeError as e:
        logger.error(f"Invalid batch_size configuration: {e}")
        return

    scheduled = 0

    for index, chunk in enumerate(chunks):
        records = []
        for tail_event in chunk:
            if not isinstance(tail_event, Mapping):
                logger.warning(
                    f"Skipping tail event of type {type(tail_event).__name__}"
                )
                continue
            records.extend(build_records(tail_event, normalizer))

        if not records:
            logger.debug(f"Chunk {index + 1}/{len(chunks)} produced no records")
            continue

        ctx.wait_until(deliver_records(records, settings, client=client))
        scheduled += 1

    logger.debug(
        f"Dispatched {len(tail_events)} tail events: "
        f"{scheduled}/{len(chunks)} chunk deliveries scheduled"
    )


def forward_tail_events(
    tail_events: Sequence[Mapping[str, Any]],
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[DeliveryResult]:
    """
    Dispatch a batch and block until every delivery has settled.

    Convenience wrapper for scripts; must not be called from a running
    event loop.

    Args:
        tail_events: Incoming tail events
        settings: Forwarder settings (loaded via get_settings() if None)
        transport: Optional httpx transport (e.g. httpx.MockTransport)

    Returns:
        One DeliveryResult per scheduled chunk
    """
    if settings is None:
        settings = get_settings()

    async def _run() -> list[DeliveryResult]:
        ctx = ExecutionContext()
        async with httpx.AsyncClient(
            transport=transport, timeout=settings.request_timeout_seconds
        ) as client:
            await dispatch(tail_events, settings, ctx, client=client)
            return await ctx.drain()

    return asyncio.run(_run())
