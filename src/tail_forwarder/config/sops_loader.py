"""
SOPS-encrypted configuration loader.

The Coralogix Send-Your-Data key is kept in `config.enc.yaml`, encrypted
with SOPS. Layout of the decrypted document:

    coralogix:
      api_key: cxtp_...
      endpoint: https://ingress.eu2.coralogix.com/logs/v1/singles   # or
      region: EU2
    application:
      name: cloudflare-tail
      subsystem: workers
    forwarder:
      batch_size: 100
      request_timeout_seconds: 10
      diagnostic_sample_rate: 0.1
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Optional, Union

import yaml

logger = logging.getLogger(__name__)

SOPS_BINARY = "sops"

SOPS_INSTALL_HINT = (
    "SOPS not installed. Install with: brew install sops (macOS) "
    "or download from https://github.com/getsops/sops/releases"
)


def _run_sops(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [SOPS_BINARY, *args],
        capture_output=True,
        text=True,
        check=True,
    )


def decrypt_sops_file(file_path: Union[str, Path]) -> dict[str, Any]:
    """
    Decrypt a SOPS-encrypted YAML file.

    Args:
        file_path: Path to the encrypted file

    Returns:
        Decrypted configuration (empty dict if the document is empty)

    Raises:
        FileNotFoundError: If file doesn't exist
        RuntimeError: If SOPS is missing or fails, or the plaintext is not
                      a YAML mapping
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Encrypted config file not found: {path}")

    try:
        plaintext = _run_sops("-d", str(path)).stdout
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"SOPS decryption failed: {e.stderr}") from e
    except FileNotFoundError as e:
        raise RuntimeError(SOPS_INSTALL_HINT) from e

    try:
        config = yaml.safe_load(plaintext)
    except yaml.YAMLError as e:
        raise RuntimeError(f"Decrypted config is not valid YAML: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise RuntimeError(
            f"Decrypted config must be a mapping, got {type(config).__name__}"
        )
    return config


def env_config() -> dict[str, Any]:
    """Build the decrypted-document layout from environment variables."""
    return {
        "coralogix": {
            "api_key": os.environ.get("CORALOGIX_API_KEY", ""),
            "endpoint": os.environ.get("CORALOGIX_ENDPOINT", ""),
            "region": os.environ.get("CORALOGIX_REGION", ""),
        },
        "application": {
            "name": os.environ.get("APPLICATION_NAME", ""),
            "subsystem": os.environ.get("SUBSYSTEM_NAME", ""),
        },
        "forwarder": {
            "batch_size": os.environ.get("TAIL_BATCH_SIZE"),
            "request_timeout_seconds": os.environ.get("TAIL_REQUEST_TIMEOUT"),
            "diagnostic_sample_rate": os.environ.get("TAIL_DIAGNOSTIC_SAMPLE_RATE"),
        },
    }


def load_config(
    encrypted_path: Optional[Path] = None,
    fallback_to_env: bool = True,
) -> dict[str, Any]:
    """
    Load the forwarder configuration document.

    The encrypted file wins when it exists and decrypts; otherwise the
    same layout is built from environment variables.

    Args:
        encrypted_path: Path to SOPS-encrypted config file
        fallback_to_env: Whether to fall back to environment variables

    Returns:
        Configuration dictionary (empty if nothing could be loaded)

    Raises:
        RuntimeError: If decryption fails and fallback_to_env is False
    """
    if encrypted_path is not None and encrypted_path.exists():
        try:
            return decrypt_sops_file(encrypted_path)
        except RuntimeError as e:
            if not fallback_to_env:
                raise
            logger.warning(f"Cannot decrypt {encrypted_path}, using env vars: {e}")

    return env_config() if fallback_to_env else {}


def sops_version() -> Optional[str]:
    """Return the installed SOPS version line, or None if unavailable."""
    try:
        output = _run_sops("--version").stdout
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return output.strip().splitlines()[0] if output.strip() else ""


def check_sops_installed() -> bool:
    """Check if SOPS is installed and accessible."""
    return sops_version() is not None
