"""
Shared fixtures for integration tests.

Provides:
- Deterministic tail event generators
- A recording mock transport standing in for the Coralogix endpoint
- Settings and CLI module fixtures
"""

import importlib.util
import json
import random
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

from tail_forwarder.config.settings import Settings, clear_settings_cache

ENDPOINT = "https://ingress.eu2.coralogix.com/logs/v1/singles"
SCRIPT_PATH = Path(__file__).parent.parent.parent / "scripts" / "forward_tail_events.py"

# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

COLOS = [
    ("AMS", "Amsterdam", "NL", "EU"),
    ("FRA", "Frankfurt", "DE", "EU"),
    ("IAD", "Ashburn", "US", "NA"),
    ("NRT", "Tokyo", "JP", "AS"),
]


def generate_fetch_event(
    index: int = 0,
    status: int = 200,
    script_name: str = "api-worker",
    seed: int = 42,
) -> dict:
    """
    Generate one fetch tail event.

    Args:
        index: Used to derive a unique ray id and path
        status: Response status code
        script_name: Worker name
        seed: Random seed for reproducibility (default: 42)

    Returns:
        Tail event dictionary
    """
    rng = random.Random(seed + index)
    colo, city, country, continent = rng.choice(COLOS)
    ray_id = f"{rng.getrandbits(64):016x}-{colo}"

    return {
        "scriptName": script_name,
        "outcome": "ok",
        "eventTimestamp": 1_700_000_000_000 + index,
        "wallTime": rng.randint(1, 500),
        "event": {
            "request": {
                "method": rng.choice(["GET", "POST"]),
                "url": f"https://shop.example.com/items/{index}?ref=tail",
                "headers": {
                    "host": "shop.example.com",
                    "cf-ray": ray_id,
                    "cf-connecting-ip": f"198.51.100.{index % 250 + 1}",
                },
                "cf": {
                    "httpProtocol": "HTTP/2",
                    "asn": 64500 + index % 10,
                    "asOrganization": "Example ISP",
                    "city": city,
                    "country": country,
                    "continent": continent,
                    "colo": colo,
                    "latitude": str(rng.uniform(-60, 60)),
                    "longitude": str(rng.uniform(-150, 150)),
                },
            },
            "response": {
                "status": status,
                "headers": {"cf-cache-status": rng.choice(["HIT", "MISS"])},
            },
        },
        "logs": [],
        "exceptions": [],
    }


def generate_console_events(num_events: int, script_prefix: str = "worker") -> list[dict]:
    """
    Generate tail events that each carry exactly one console log.

    Scheduled (non-fetch) events: each yields one record.
    """
    return [
        {
            "scriptName": f"{script_prefix}-{i}",
            "eventTimestamp": 1_700_000_000_000 + i,
            "event": {"cron": "*/5 * * * *", "scheduledTime": 1_700_000_000_000},
            "logs": [
                {"level": "log", "message": [f"tick {i}"], "timestamp": 1_700_000_000_000 + i}
            ],
            "exceptions": [],
        }
        for i in range(num_events)
    ]


# =============================================================================
# TRANSPORT FIXTURES
# =============================================================================


class RecordingTransport(httpx.MockTransport):
    """
    Mock Coralogix endpoint that records every request.

    Args:
        status_for: Optional callable mapping the decoded record list of a
                    request to the status code to answer with (default 200)
    """

    def __init__(self, status_for: Optional[Callable[[list], int]] = None):
        self.requests: list[httpx.Request] = []
        self._status_for = status_for or (lambda records: 200)
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self._status_for(json.loads(request.content))
        return httpx.Response(status, json={} if status < 400 else {"error": "rejected"})

    @property
    def bodies(self) -> list[list[dict]]:
        """Decoded JSON bodies of all recorded requests."""
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def settings() -> Settings:
    """Fully configured settings."""
    return Settings(
        coralogix_api_key="integration-key",
        coralogix_endpoint=ENDPOINT,
        application_name="edge-platform",
    )


@pytest.fixture
def cli(monkeypatch):
    """
    The forward_tail_events script loaded as a module.

    Logging setup is disabled so that pytest's log capture stays in place,
    and settings are never read from the developer's environment.
    """
    spec = importlib.util.spec_from_file_location("forward_tail_events_cli", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    monkeypatch.setattr(module, "setup_logging", lambda **kwargs: None)
    for name in (
        "CORALOGIX_API_KEY",
        "CORALOGIX_ENDPOINT",
        "CORALOGIX_REGION",
        "APPLICATION_NAME",
        "SUBSYSTEM_NAME",
        "TAIL_BATCH_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(SCRIPT_PATH.parent)
    clear_settings_cache()
    yield module
    clear_settings_cache()


@pytest.fixture
def make_fetch_event() -> Callable[..., dict]:
    return generate_fetch_event


@pytest.fixture
def make_console_events() -> Callable[..., list[dict]]:
    return generate_console_events


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    return RecordingTransport
