"""Utility functions for the tail forwarder."""

from .http_utils import (
    fold_header_name,
    fold_headers,
    get_header,
    is_success_status,
    parse_status_code,
    severity_from_status,
)

__all__ = [
    # Header utilities
    "fold_header_name",
    "fold_headers",
    "get_header",
    # Status utilities
    "parse_status_code",
    "severity_from_status",
    "is_success_status",
]
