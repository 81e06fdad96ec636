"""
Field resolution with explicit absence.

Values that are missing from a tail event are surfaced as None rather
than masked with placeholder strings like "unknown". Misses are reported
through a sampled diagnostic so that a noisy upstream worker cannot
flood the logs.
"""

import logging
import random
from typing import Any, Optional, Protocol

from ..config.constants import DEFAULT_DIAGNOSTIC_SAMPLE_RATE

logger = logging.getLogger(__name__)


class DiagnosticSampler(Protocol):
    """Decides whether a single missing-field diagnostic is logged."""

    def should_log(self) -> bool: ...


class RandomSampler:
    """
    Log a random fraction of misses.

    Args:
        rate: Probability (0-1) that a miss is logged
        rng: Random number generator; pass a seeded random.Random for
             reproducible sampling
    """

    def __init__(self, rate: float = DEFAULT_DIAGNOSTIC_SAMPLE_RATE, rng=None):
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"rate must be 0-1, got {rate}")
        self.rate = rate
        self._rng = rng or random.Random()

    def should_log(self) -> bool:
        return self._rng.random() < self.rate


class CounterSampler:
    """
    Log every Nth miss, starting with the first one.

    Deterministic: with every=10, misses 1, 11, 21, ... are logged.
    """

    def __init__(self, every: int = 10):
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        self.every = every
        self._count = 0

    def should_log(self) -> bool:
        emit = self._count % self.every == 0
        self._count += 1
        return emit


class FixedSampler:
    """Always or never log misses."""

    def __init__(self, enabled: bool):
        self.enabled = enabled

    def should_log(self) -> bool:
        return self.enabled


def is_missing(value: Any) -> bool:
    """Check if a value counts as missing (None or empty string)."""
    return value is None or value == ""


class FieldResolver:
    """
    Resolve raw event values, reporting misses through a sampled diagnostic.

    Present-but-falsy values such as 0 and False are returned unchanged;
    only None and "" count as missing.

    Usage:
        resolver = FieldResolver(CounterSampler(every=10))
        ray = resolver.resolve(headers.get("cf-ray"), "cf-ray header", "request headers")
    """

    def __init__(self, sampler: Optional[DiagnosticSampler] = None):
        self.sampler = sampler if sampler is not None else RandomSampler()
        self.misses = 0

    def resolve(self, value: Any, field_name: str, context: str = "") -> Any:
        """
        Return value unchanged, or None if it is missing.

        Args:
            value: Raw value from the event
            field_name: Name used in the diagnostic message
            context: Where the value was looked up (optional)

        Returns:
            The value, or None when missing
        """
        if not is_missing(value):
            return value

        self.misses += 1
        if self.sampler.should_log():
            if context:
                logger.warning("Missing %s in %s", field_name, context)
            else:
                logger.warning("Missing %s", field_name)
        return None
