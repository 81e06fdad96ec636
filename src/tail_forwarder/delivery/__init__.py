"""Batching and delivery of log records to Coralogix."""

from .batching import split_into_chunks
from .sink import DeliveryResult, build_request_headers, deliver_records, serialize_records

__all__ = [
    "split_into_chunks",
    "DeliveryResult",
    "deliver_records",
    "build_request_headers",
    "serialize_records",
]
