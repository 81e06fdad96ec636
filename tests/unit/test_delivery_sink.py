"""
Unit tests for Coralogix Singles API delivery.
"""

import asyncio
import json
import logging

import httpx

from tail_forwarder.delivery.sink import (
    MAX_ERROR_BODY_CHARS,
    DeliveryResult,
    build_request_headers,
    deliver_records,
    serialize_records,
)
from tail_forwarder.normalization.log_record import CanonicalLogRecord


def _records(count: int = 2) -> list[CanonicalLogRecord]:
    return [
        CanonicalLogRecord(
            timestamp=1000 + i,
            category="console",
            subsystem_name="api-worker",
            text=f"message {i}",
            method_name="log",
        )
        for i in range(count)
    ]


def _deliver(records, settings, handler) -> DeliveryResult:
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await deliver_records(records, settings, client=client)

    return asyncio.run(run())


class TestRequestShape:
    """Tests for request headers and body."""

    def test_headers(self):
        assert build_request_headers("abc") == {
            "Content-Type": "application/json",
            "Authorization": "Bearer abc",
        }

    def test_serialize_records(self):
        body = json.loads(serialize_records(_records(2)))

        assert isinstance(body, list)
        assert [r["text"] for r in body] == ["message 0", "message 1"]
        assert body[0]["subsystemName"] == "api-worker"
        assert "threadId" not in body[0]

    def test_post_sent_to_endpoint(self, settings):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={})

        _deliver(_records(3), settings, handler)

        assert len(captured) == 1
        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == settings.coralogix_endpoint
        assert request.headers["authorization"] == "Bearer test-key"
        assert request.headers["content-type"] == "application/json"
        assert len(json.loads(request.content)) == 3


class TestDeliveryResults:
    """Tests for success, HTTP failure and transport failure outcomes."""

    def test_success(self, settings, caplog):
        with caplog.at_level(logging.INFO, logger="tail_forwarder.delivery.sink"):
            result = _deliver(
                _records(2), settings, lambda request: httpx.Response(200, json={})
            )

        assert result.success is True
        assert result.records_sent == 2
        assert result.status_code == 200
        assert result.transport_error is None
        assert "Successfully sent 2 logs to Coralogix" in caplog.text

    def test_http_failure(self, settings, caplog):
        with caplog.at_level(logging.ERROR, logger="tail_forwarder.delivery.sink"):
            result = _deliver(
                _records(2),
                settings,
                lambda request: httpx.Response(403, text="invalid key"),
            )

        assert result.success is False
        assert result.records_sent == 0
        assert result.status_code == 403
        assert result.status_text == "Forbidden"
        assert result.body == "invalid key"
        assert "Failed to send logs to Coralogix: 403 Forbidden invalid key" in caplog.text

    def test_server_error_body_truncated(self, settings):
        result = _deliver(
            _records(1), settings, lambda request: httpx.Response(500, text="x" * 5000)
        )

        assert result.success is False
        assert result.status_code == 500
        assert len(result.body) == MAX_ERROR_BODY_CHARS

    def test_transport_failure(self, settings, caplog):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with caplog.at_level(logging.ERROR, logger="tail_forwarder.delivery.sink"):
            result = _deliver(_records(2), settings, handler)

        assert result.success is False
        assert result.status_code is None
        assert result.transport_error == "ConnectError: connection refused"
        assert "Error sending 2 logs to Coralogix" in caplog.text

    def test_timeout_is_transport_failure(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = _deliver(_records(1), settings, handler)

        assert result.success is False
        assert result.transport_error.startswith("ReadTimeout")

    def test_unencodable_api_key_is_transport_failure(self, settings, caplog):
        settings.coralogix_api_key = "k\u00e9y"
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(200, json={})

        with caplog.at_level(logging.ERROR, logger="tail_forwarder.delivery.sink"):
            result = _deliver(_records(2), settings, handler)

        assert sent == []
        assert result.success is False
        assert result.records_sent == 0
        assert result.transport_error.startswith("UnicodeEncodeError")
        assert "Error sending 2 logs to Coralogix" in caplog.text

    def test_result_to_dict(self):
        result = DeliveryResult(success=True, records_sent=5, duration_seconds=0.12345)
        data = result.to_dict()

        assert data["success"] is True
        assert data["records_sent"] == 5
        assert data["duration_seconds"] == 0.123
