# =============================================================================
# core/models.py  -  Data Models
# =============================================================================
#
# The shapes that flow between the gateway, the docs engine and the tool
# layer.  Request/response payloads for the remote platform are NOT modelled
# here: the platform owns them and we forward them verbatim.
# =============================================================================

from dataclasses import dataclass
from typing import Any, Union

DEFAULT_BASE_URL = "https://api.sdrm.io"

# A decoded response body: whatever JSON produced, or the raw text when the
# body was not JSON.
Payload = Union[dict[str, Any], list[Any], str, int, float, bool, None]


# -----------------------------------------------------------------------------
# Endpoint - where the gateway talks to, and with which credential
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Endpoint:
    """Immutable base URL + bearer credential pair."""

    base_url: str
    credential: str

    def __post_init__(self) -> None:
        # Paths are always appended with a leading "/".
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))


# -----------------------------------------------------------------------------
# DocSection / RankedMatch - documentation retrieval
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class DocSection:
    """One divider-bounded chunk of the documentation corpus."""

    title: str                         # First "#" or "##" heading, else "Overview"
    body: str                          # Verbatim chunk text, heading included


@dataclass(frozen=True)
class RankedMatch:
    """A section paired with its query score (always > 0 once ranked)."""

    section: DocSection
    score: int
