"""
Coralogix Singles API delivery.

Posts one chunk of log records per request. Delivery is best-effort and
at-most-once: failures are logged and reported in the result, never
raised and never retried.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from ..config.settings import Settings
from ..normalization.log_record import CanonicalLogRecord
from ..utils.http_utils import is_success_status

logger = logging.getLogger(__name__)

# Response bodies are truncated in results and logs
MAX_ERROR_BODY_CHARS = 1000


@dataclass
class DeliveryResult:
    """Result of delivering one chunk of records."""

    success: bool
    records_sent: int = 0
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    body: Optional[str] = None
    transport_error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "records_sent": self.records_sent,
            "status_code": self.status_code,
            "status_text": self.status_text,
            "body": self.body,
            "transport_error": self.transport_error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


def build_request_headers(api_key: str) -> dict[str, str]:
    """Headers for a Singles API request."""
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }


def serialize_records(records: Sequence[CanonicalLogRecord]) -> bytes:
    """Serialize records as a single JSON array body."""
    return json.dumps(
        [record.to_dict() for record in records], ensure_ascii=False, default=str
    ).encode("utf-8")


async def deliver_records(
    records: Sequence[CanonicalLogRecord],
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> DeliveryResult:
    """
    POST a chunk of records to the configured Coralogix endpoint.

    Args:
        records: Non-empty ordered sequence of log records
        settings: Provides endpoint, API key and request timeout
        client: Shared async client (a short-lived one is opened if None)

    Returns:
        DeliveryResult describing success, HTTP failure, or transport failure
    """
    body = serialize_records(records)
    headers = build_request_headers(settings.coralogix_api_key)
    start = time.monotonic()

    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.request_timeout_seconds
            ) as own_client:
                response = await own_client.post(
                    settings.coralogix_endpoint, content=body, headers=headers
                )
        else:
            response = await client.post(
                settings.coralogix_endpoint,
                content=body,
                headers=headers,
                timeout=settings.request_timeout_seconds,
            )
    # Request building fails with InvalidURL or ValueError (UnicodeEncodeError
    # for a non-ASCII API key) before anything is sent
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        duration = time.monotonic() - start
        logger.error(f"Error sending {len(records)} logs to Coralogix: {e!r}")
        return DeliveryResult(
            success=False,
            transport_error=f"{type(e).__name__}: {e}",
            duration_seconds=duration,
        )

    duration = time.monotonic() - start

    if not is_success_status(response.status_code):
        error_text = response.text[:MAX_ERROR_BODY_CHARS]
        logger.error(
            f"Failed to send logs to Coralogix: "
            f"{response.status_code} {response.reason_phrase} {error_text}"
        )
        return DeliveryResult(
            success=False,
            status_code=response.status_code,
            status_text=response.reason_phrase,
            body=error_text,
            duration_seconds=duration,
        )

    logger.info(f"Successfully sent {len(records)} logs to Coralogix")
    return DeliveryResult(
        success=True,
        records_sent=len(records),
        status_code=response.status_code,
        status_text=response.reason_phrase,
        duration_seconds=duration,
    )
