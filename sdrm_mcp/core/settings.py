# =============================================================================
# core/settings.py  -  Process configuration
# =============================================================================
#
# Everything comes from environment variables (optionally via a .env file):
#
#   SDRM_API_KEY   required   bearer credential for the platform
#   SDRM_BASE_URL  optional   override of https://api.sdrm.io
#   SDRM_TIMEOUT   optional   per-request timeout in seconds (default 30)
# =============================================================================

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from sdrm_mcp.core.errors import ConfigurationError
from sdrm_mcp.core.models import DEFAULT_BASE_URL

API_KEY_URL = "https://sdrm.io/api-keys"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ``.  When omitted,
            a ``.env`` file in the working directory is loaded first.

    Raises:
        ConfigurationError: SDRM_API_KEY is unset or SDRM_TIMEOUT is not a
            positive number.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    api_key = environ.get("SDRM_API_KEY", "").strip()
    if not api_key:
        raise ConfigurationError(
            "SDRM_API_KEY environment variable is required.\n"
            f"Get your API key at {API_KEY_URL}"
        )

    base_url = environ.get("SDRM_BASE_URL", "").strip() or DEFAULT_BASE_URL

    raw_timeout = environ.get("SDRM_TIMEOUT", "").strip()
    timeout = DEFAULT_TIMEOUT_SECONDS
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigurationError(f"SDRM_TIMEOUT must be a number, got {raw_timeout!r}") from None
        if timeout <= 0:
            raise ConfigurationError(f"SDRM_TIMEOUT must be positive, got {raw_timeout!r}")

    return Settings(api_key=api_key, base_url=base_url.rstrip("/"), timeout=timeout)
