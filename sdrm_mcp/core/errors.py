# =============================================================================
# core/errors.py  -  Exception hierarchy
# =============================================================================
#
#   SdrmError (base)
#   ├── TransportError      network-level failure (connect, DNS, timeout)
#   ├── RequestError        platform answered with a non-2xx status
#   ├── CorpusFetchError    the documentation corpus could not be read
#   ├── ConfigurationError  missing or malformed process configuration
#   └── ParameterError      a tool parameter failed validation
#
# Core modules raise these.  The tool layer catches everything at its
# boundary and reports it to the agent as a failed tool result.
# =============================================================================

import json
from typing import Optional


class SdrmError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TransportError(SdrmError):
    """The request never produced an HTTP response."""


class RequestError(SdrmError):
    """The platform returned a status outside 200-299.

    Attributes:
        status_code: HTTP status of the response.
        message: Resolved error text (``message`` key, then ``error`` key,
            then the raw body).
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.message}"


class CorpusFetchError(SdrmError):
    """The documentation corpus could not be retrieved."""


class ConfigurationError(SdrmError):
    """Required configuration is missing or invalid."""


class ParameterError(SdrmError):
    """A tool parameter is missing or out of range."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


def resolve_error_message(payload: object, raw_text: str) -> str:
    """Pick the human-readable message out of an error body.

    Prefers a ``message`` key, then an ``error`` key, then falls back to the
    raw response text.  Non-object payloads always fall back to the text.
    """
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value: Optional[object] = payload.get(key)
            if value is not None:
                return value if isinstance(value, str) else json.dumps(value)
    return raw_text
