"""
Application settings and configuration management.

Supports loading from:
1. SOPS-encrypted YAML files (config.enc.yaml)
2. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from .constants import (
    CORALOGIX_REGION_DOMAINS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DIAGNOSTIC_SAMPLE_RATE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    SINGLES_API_PATH,
)

logger = logging.getLogger(__name__)


def resolve_endpoint(region: Optional[str]) -> str:
    """
    Build the Coralogix Singles API endpoint for a region.

    Args:
        region: Coralogix region code (e.g., 'EU1', 'us2'); case-insensitive

    Returns:
        Endpoint URL, or empty string if region is empty or unknown
    """
    if not region:
        return ""

    domain = CORALOGIX_REGION_DOMAINS.get(region.strip().upper())
    if domain is None:
        logger.warning(
            f"Unknown Coralogix region '{region}'. "
            f"Known regions: {', '.join(sorted(CORALOGIX_REGION_DOMAINS))}"
        )
        return ""
    return f"https://ingress.{domain}{SINGLES_API_PATH}"


def _safe_int(raw: Any, default: int) -> int:
    """Parse an int, using default on error."""
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _safe_float(raw: Any, default: float) -> float:
    """Parse a float, using default on error."""
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """Settings for the tail event forwarder."""

    # Coralogix Settings
    coralogix_api_key: str = ""
    coralogix_endpoint: str = ""

    # Naming defaults (applicationName / subsystemName)
    application_name: Optional[str] = None
    subsystem_name: Optional[str] = None

    # Forwarder behaviour
    batch_size: int = DEFAULT_CHUNK_SIZE
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    diagnostic_sample_rate: float = DEFAULT_DIAGNOSTIC_SAMPLE_RATE

    def missing_required(self) -> list[str]:
        """Return names of required settings that are not configured."""
        missing = []
        if not self.coralogix_api_key:
            missing.append("coralogix.api_key")
        if not self.coralogix_endpoint:
            missing.append("coralogix.endpoint")
        return missing

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = [f"{name} is required" for name in self.missing_required()]

        if self.batch_size < 1:
            errors.append(f"batch_size must be >= 1, got {self.batch_size}")
        if self.request_timeout_seconds <= 0:
            errors.append(
                f"request_timeout_seconds must be > 0, "
                f"got {self.request_timeout_seconds}"
            )
        if not 0.0 <= self.diagnostic_sample_rate <= 1.0:
            errors.append(
                f"diagnostic_sample_rate must be 0-1, "
                f"got {self.diagnostic_sample_rate}"
            )

        return errors

    def require(self) -> "Settings":
        """
        Ensure required settings are present.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: If the endpoint or API key is missing
        """
        missing = self.missing_required()
        if missing:
            from ..exceptions import ConfigurationError

            raise ConfigurationError(
                "Missing required Coralogix configuration", missing=missing
            )
        return self

    def to_dict(self) -> dict:
        """Convert to dictionary for display. The API key is masked."""
        return {
            "coralogix_api_key": "***" if self.coralogix_api_key else "",
            "coralogix_endpoint": self.coralogix_endpoint,
            "application_name": self.application_name,
            "subsystem_name": self.subsystem_name,
            "batch_size": self.batch_size,
            "request_timeout_seconds": self.request_timeout_seconds,
            "diagnostic_sample_rate": self.diagnostic_sample_rate,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from SOPS)."""
        cx = config.get("coralogix") or {}
        app = config.get("application") or {}
        fwd = config.get("forwarder") or {}

        endpoint = cx.get("endpoint") or resolve_endpoint(cx.get("region"))

        return cls(
            coralogix_api_key=cx.get("api_key", ""),
            coralogix_endpoint=endpoint,
            application_name=app.get("name") or None,
            subsystem_name=app.get("subsystem") or None,
            batch_size=_safe_int(fwd.get("batch_size"), DEFAULT_CHUNK_SIZE),
            request_timeout_seconds=_safe_float(
                fwd.get("request_timeout_seconds"), DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            diagnostic_sample_rate=_safe_float(
                fwd.get("diagnostic_sample_rate"), DEFAULT_DIAGNOSTIC_SAMPLE_RATE
            ),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        endpoint = os.environ.get("CORALOGIX_ENDPOINT") or resolve_endpoint(
            os.environ.get("CORALOGIX_REGION")
        )

        return cls(
            coralogix_api_key=os.environ.get("CORALOGIX_API_KEY", ""),
            coralogix_endpoint=endpoint,
            application_name=os.environ.get("APPLICATION_NAME") or None,
            subsystem_name=os.environ.get("SUBSYSTEM_NAME") or None,
            batch_size=_safe_int(
                os.environ.get("TAIL_BATCH_SIZE"), DEFAULT_CHUNK_SIZE
            ),
            request_timeout_seconds=_safe_float(
                os.environ.get("TAIL_REQUEST_TIMEOUT"),
                DEFAULT_REQUEST_TIMEOUT_SECONDS,
            ),
            diagnostic_sample_rate=_safe_float(
                os.environ.get("TAIL_DIAGNOSTIC_SAMPLE_RATE"),
                DEFAULT_DIAGNOSTIC_SAMPLE_RATE,
            ),
        )


# Default config file path
DEFAULT_CONFIG_PATH = Path("config.enc.yaml")


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from SOPS-encrypted config file if available, otherwise from env vars.

    Args:
        config_path: Optional path to SOPS-encrypted config file

    Returns:
        Settings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            from .sops_loader import decrypt_sops_file

            config = decrypt_sops_file(path)
            return Settings.from_dict(config)
        except (RuntimeError, FileNotFoundError) as e:
            logger.warning(f"Failed to load SOPS config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
