"""
Tail event normalization.

Turns the console logs, exceptions and fetch requests of Cloudflare
Workers tail events into Coralogix log records.

Usage:
    from tail_forwarder.normalization import LogNormalizer

    normalizer = LogNormalizer(settings)
    record = normalizer.normalize(log_entry, tail_event, "console")
    payload = record.to_dict()
"""

from .fields import (
    CounterSampler,
    DiagnosticSampler,
    FieldResolver,
    FixedSampler,
    RandomSampler,
    is_missing,
)
from .http_record import convert_fetch_event, drop_absent
from .log_record import (
    CanonicalLogRecord,
    LogNormalizer,
    format_console_message,
    normalize_log,
    resolve_thread_id,
    to_json,
)

__all__ = [
    # Field resolution
    "FieldResolver",
    "DiagnosticSampler",
    "RandomSampler",
    "CounterSampler",
    "FixedSampler",
    "is_missing",
    # CDN record conversion
    "convert_fetch_event",
    "drop_absent",
    # Log records
    "CanonicalLogRecord",
    "LogNormalizer",
    "normalize_log",
    "format_console_message",
    "resolve_thread_id",
    "to_json",
]
