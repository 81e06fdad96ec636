"""Configuration module."""

from .constants import (
    CORALOGIX_REGION_DOMAINS,
    DEFAULT_APPLICATION_NAME,
    DEFAULT_CHUNK_SIZE,
    SEVERITY_MAP,
    WORKER_CLASS_NAME,
)
from .settings import Settings, clear_settings_cache, get_settings, resolve_endpoint
from .sops_loader import (
    check_sops_installed,
    decrypt_sops_file,
    env_config,
    load_config,
    sops_version,
)

__all__ = [
    # Record defaults
    "SEVERITY_MAP",
    "DEFAULT_APPLICATION_NAME",
    "WORKER_CLASS_NAME",
    # Delivery
    "DEFAULT_CHUNK_SIZE",
    "CORALOGIX_REGION_DOMAINS",
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "resolve_endpoint",
    # Config loading
    "load_config",
    "decrypt_sops_file",
    "env_config",
    "check_sops_installed",
    "sops_version",
]
