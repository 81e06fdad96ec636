"""
Tail event item to Coralogix log record normalization.

Each console log, exception and fetch request carried by a Cloudflare
tail event becomes one flat Coralogix "Singles API" record.

Field Mapping:
    Source                          -> Coralogix Field
    item.timestamp (or now)         -> timestamp (epoch ms)
    settings.application_name       -> applicationName (default 'cloudflare-tail')
    scriptName / settings.subsystem -> subsystemName
    scriptName                      -> computerName (no fallback)
    cf-ray / cf.ray / rayId / script-> threadId
    level / exception / status      -> severity
"""

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..config.constants import (
    CATEGORIES,
    CATEGORY_CONSOLE,
    CATEGORY_EXCEPTION,
    CATEGORY_FETCH,
    DEFAULT_APPLICATION_NAME,
    DEFAULT_SEVERITY,
    FETCH_CONVERSION_FAILED_TEXT,
    SEVERITY_ERROR,
    SEVERITY_MAP,
    WORKER_CLASS_NAME,
)
from ..config.settings import Settings
from ..exceptions import ConversionError
from ..utils.http_utils import get_header, severity_from_status
from .fields import FieldResolver
from .http_record import convert_fetch_event, drop_absent

logger = logging.getLogger(__name__)


def to_json(value: Any) -> str:
    """Serialize to compact JSON (no spaces after separators)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _as_mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


@dataclass
class CanonicalLogRecord:
    """
    Coralogix Singles API log record.

    Attributes are snake_case; to_dict() produces the camelCase wire names.
    None means the value could not be resolved from the tail event; such
    fields are omitted from the wire payload.
    """

    timestamp: float
    category: str
    application_name: str = DEFAULT_APPLICATION_NAME
    subsystem_name: Optional[str] = None
    computer_name: Optional[str] = None
    severity: int = DEFAULT_SEVERITY
    text: str = ""
    class_name: Optional[str] = WORKER_CLASS_NAME
    method_name: Optional[str] = None
    thread_id: Optional[str] = None

    WIRE_NAMES = {
        "timestamp": "timestamp",
        "application_name": "applicationName",
        "subsystem_name": "subsystemName",
        "computer_name": "computerName",
        "severity": "severity",
        "text": "text",
        "category": "category",
        "class_name": "className",
        "method_name": "methodName",
        "thread_id": "threadId",
    }

    def to_dict(self) -> dict:
        """
        Convert to the wire representation.

        Returns:
            Dictionary keyed by Coralogix field names, absent fields omitted
        """
        result = {}
        for attr, wire_name in self.WIRE_NAMES.items():
            value = getattr(self, attr)
            if value is not None:
                result[wire_name] = value
        return result


def _format_console_item(item: Any) -> str:
    if item is None or isinstance(item, (Mapping, list, tuple, bool)):
        return to_json(item)
    if isinstance(item, float) and item.is_integer():
        return str(int(item))
    return str(item)


def format_console_message(message: Any) -> str:
    """
    Format a console.log argument list into a single string.

    Structured values are JSON-encoded, scalars are stringified, and the
    parts are joined with a single space.

    Examples:
        >>> format_console_message(["a", {"b": 1}])
        'a {"b":1}'
        >>> format_console_message("plain")
        'plain'
    """
    if isinstance(message, (list, tuple)):
        return " ".join(_format_console_item(item) for item in message)
    if message is None:
        return ""
    return _format_console_item(message)


_UNRESOLVED = object()


def resolve_thread_id(
    tail_event: Mapping[str, Any],
    resolver: FieldResolver,
    script_name: Any = _UNRESOLVED,
) -> Any:
    """
    Resolve the correlation id used as threadId.

    Lookup order, first present value wins:
        1. cf-ray header of the fetch request
        2. ray field of the request's cf object
        3. rayId of the tail event
        4. scriptName of the tail event

    Args:
        tail_event: Owning tail event
        resolver: Field resolver used to report misses
        script_name: scriptName already resolved by the caller (possibly None);
                     looked up through the resolver if not given

    Returns:
        Correlation id, or None if no source has one
    """
    request = _as_mapping(_as_mapping(tail_event.get("event")).get("request"))
    candidates = (
        (lambda: get_header(_as_mapping(request.get("headers")), "cf-ray"),
         "cf-ray header", "request headers"),
        (lambda: _as_mapping(request.get("cf")).get("ray"), "cf.ray", "cf object"),
        (lambda: tail_event.get("rayId"), "rayId", "event"),
    )

    for lookup, field_name, context in candidates:
        value = resolver.resolve(lookup(), field_name, context)
        if value is not None:
            return value

    if script_name is _UNRESOLVED:
        script_name = resolver.resolve(
            tail_event.get("scriptName"), "scriptName", "event"
        )
    if script_name is not None:
        return script_name

    logger.debug("CF-Ray ID not found in any expected location")
    return None


class LogNormalizer:
    """
    Builds CanonicalLogRecords from tail event items.

    Usage:
        normalizer = LogNormalizer(settings)
        for log in tail_event.get("logs") or []:
            record = normalizer.normalize(log, tail_event, "console")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Optional[FieldResolver] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize normalizer.

        Args:
            settings: Provides application/subsystem name defaults
            resolver: Field resolver (creates a randomly sampled one if None)
            clock: Returns current epoch milliseconds (for tests)
        """
        self.settings = settings or Settings()
        self.resolver = resolver or FieldResolver()
        self.clock = clock or _now_ms

    def normalize(
        self,
        item: Mapping[str, Any],
        tail_event: Mapping[str, Any],
        category: str,
    ) -> CanonicalLogRecord:
        """
        Normalize one item of a tail event.

        Args:
            item: Console log entry, exception entry, or the fetch sub-event
            tail_event: Owning tail event
            category: 'console', 'exception' or 'fetch'

        Returns:
            CanonicalLogRecord

        Raises:
            ValueError: If category is not one of the supported categories
        """
        if category not in CATEGORIES:
            raise ValueError(
                f"Unknown category: '{category}'. Must be one of: {', '.join(CATEGORIES)}"
            )

        item = _as_mapping(item)
        timestamp = item.get("timestamp")
        if timestamp is None:
            timestamp = self.clock()

        script_name = self.resolver.resolve(
            tail_event.get("scriptName"), "scriptName", "event"
        )

        record = CanonicalLogRecord(
            timestamp=timestamp,
            category=category,
            application_name=self.settings.application_name or DEFAULT_APPLICATION_NAME,
            subsystem_name=script_name or self.settings.subsystem_name,
            computer_name=script_name,
            thread_id=resolve_thread_id(tail_event, self.resolver, script_name),
        )

        if category == CATEGORY_CONSOLE:
            self._apply_console(record, item)
        elif category == CATEGORY_EXCEPTION:
            self._apply_exception(record, item)
        else:
            self._apply_fetch(record, tail_event)

        return record

    def _apply_console(self, record: CanonicalLogRecord, item: Mapping) -> None:
        level = item.get("level")
        severity = SEVERITY_MAP.get(level) if isinstance(level, str) else None
        record.severity = severity or DEFAULT_SEVERITY
        record.text = format_console_message(item.get("message"))
        record.method_name = level

    def _apply_exception(self, record: CanonicalLogRecord, item: Mapping) -> None:
        record.severity = SEVERITY_ERROR
        record.text = to_json(
            drop_absent(
                {
                    "name": item.get("name"),
                    "message": item.get("message"),
                    "timestamp": item.get("timestamp"),
                }
            )
        )
        # No masking: a nameless exception has no className
        record.class_name = self.resolver.resolve(
            item.get("name"), "name", "exception"
        )
        record.method_name = CATEGORY_EXCEPTION

    def _apply_fetch(self, record: CanonicalLogRecord, tail_event: Mapping) -> None:
        try:
            cdn_record = convert_fetch_event(tail_event)
        except ConversionError as e:
            logger.warning(f"Failed to convert tail event to CDN format: {e}")
            record.text = FETCH_CONVERSION_FAILED_TEXT
            return

        record.text = to_json(drop_absent(cdn_record))
        record.method_name = CATEGORY_FETCH

        severity = severity_from_status(cdn_record["response"]["status"])
        if severity is not None:
            record.severity = severity


def normalize_log(
    item: Mapping[str, Any],
    tail_event: Mapping[str, Any],
    settings: Optional[Settings] = None,
    category: str = CATEGORY_CONSOLE,
) -> CanonicalLogRecord:
    """Normalize a single item with a default LogNormalizer."""
    return LogNormalizer(settings).normalize(item, tail_event, category)
