"""
Pytest configuration and shared fixtures for unit tests.
"""

import copy

import pytest

from tail_forwarder.config.settings import Settings
from tail_forwarder.normalization.fields import FieldResolver, FixedSampler

FIXED_NOW_MS = 1_700_000_000_000

FETCH_TAIL_EVENT = {
    "scriptName": "api-worker",
    "outcome": "ok",
    "eventTimestamp": 1_699_999_999_000,
    "wallTime": 42,
    "event": {
        "request": {
            "method": "GET",
            "url": "https://example.com/products/list?page=2&sort=asc",
            "headers": {
                "host": "example.com",
                "cf-ray": "8a1b2c3d4e5f6789-AMS",
                "cf-connecting-ip": "203.0.113.7",
                "User-Agent": "curl/8.4.0",
            },
            "cf": {
                "httpProtocol": "HTTP/2",
                "asOrganization": "Example ISP",
                "asn": 64500,
                "city": "Amsterdam",
                "country": "NL",
                "continent": "EU",
                "postalCode": "1012",
                "latitude": "52.37403",
                "longitude": "4.88969",
                "colo": "AMS",
                "regionCode": "NH",
            },
        },
        "response": {
            "status": 200,
            "headers": {
                "Content-Type": "application/json",
                "CF-Cache-Status": "HIT",
            },
        },
    },
    "logs": [],
    "exceptions": [],
}


@pytest.fixture
def fetch_tail_event() -> dict:
    """A complete fetch tail event (deep copy, safe to mutate)."""
    return copy.deepcopy(FETCH_TAIL_EVENT)


@pytest.fixture
def settings() -> Settings:
    """Fully configured settings."""
    return Settings(
        coralogix_api_key="test-key",
        coralogix_endpoint="https://ingress.eu2.coralogix.com/logs/v1/singles",
        application_name="my-app",
        subsystem_name="default-subsystem",
    )


@pytest.fixture
def quiet_resolver() -> FieldResolver:
    """Resolver that never logs misses."""
    return FieldResolver(FixedSampler(False))


@pytest.fixture
def fixed_clock():
    """Clock returning a constant epoch-millisecond value."""
    return lambda: FIXED_NOW_MS
