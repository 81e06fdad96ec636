"""
HTTP utility functions.

Helpers for processing HTTP headers and status codes from
Cloudflare tail events.
"""

from collections.abc import Mapping
from typing import Any, Optional

from ..config.constants import SEVERITY_ERROR, SEVERITY_INFO, SEVERITY_WARNING


def fold_header_name(name: str) -> str:
    """
    Fold a header name: lower-case, hyphens replaced with underscores.

    Examples:
        >>> fold_header_name("X-Forwarded-For")
        'x_forwarded_for'
        >>> fold_header_name("cf-cache-status")
        'cf_cache_status'
    """
    return str(name).lower().replace("-", "_")


def fold_headers(headers: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Fold every key of a header mapping.

    Values are passed through unchanged. If two keys fold to the same
    name, the one iterated last wins.

    Args:
        headers: Header mapping (may be None)

    Returns:
        New dictionary with folded keys
    """
    if not headers:
        return {}
    return {fold_header_name(key): value for key, value in headers.items()}


def get_header(headers: Optional[Mapping[str, Any]], name: str) -> Any:
    """
    Case-insensitive header lookup.

    An exact key match is preferred; otherwise the first key that matches
    ignoring case is used.

    Args:
        headers: Header mapping (may be None)
        name: Header name, e.g. 'cf-ray'

    Returns:
        Header value, or None if absent
    """
    if not headers:
        return None
    if name in headers:
        return headers[name]

    wanted = name.lower()
    for key, value in headers.items():
        if str(key).lower() == wanted:
            return value
    return None


def parse_status_code(status: Any) -> Optional[int]:
    """
    Parse an HTTP status into an int.

    Accepts ints and numeric strings ("404"). Booleans are rejected.

    Returns:
        Status code, or None if absent or not numeric
    """
    if status is None or isinstance(status, bool):
        return None
    try:
        return int(status)
    except (TypeError, ValueError):
        return None


def severity_from_status(status: Any) -> Optional[int]:
    """
    Map an HTTP response status to a Coralogix severity.

    Mapping:
        - >= 500: 5 (Error)
        - >= 400: 4 (Warning)
        - otherwise: 3 (Info)

    Args:
        status: Status code (int or numeric string)

    Returns:
        Severity, or None if status is absent or unparsable

    Examples:
        >>> severity_from_status(404)
        4
        >>> severity_from_status("503")
        5
        >>> severity_from_status(None)
    """
    code = parse_status_code(status)
    if code is None:
        return None

    if code >= 500:
        return SEVERITY_ERROR
    elif code >= 400:
        return SEVERITY_WARNING
    return SEVERITY_INFO


def is_success_status(status_code: Optional[int]) -> bool:
    """
    Check if status code indicates success (2xx).

    Args:
        status_code: HTTP status code

    Returns:
        True if status is in 2xx range
    """
    return status_code is not None and 200 <= status_code < 300
