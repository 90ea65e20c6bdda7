# =============================================================================
# core/params.py  -  Typed tool parameters
# =============================================================================
#
# One dataclass per request payload the tools send.  Each one:
#   - validate()  raises ParameterError on the first bad field
#   - to_body()   builds the JSON body (unset optional fields omitted)
#   - to_query()  builds query parameters (None values omitted)
#
# Enumerations such as tier, level or mode are opaque to us: we check that
# the value is one the platform advertises and forward it verbatim.
# =============================================================================

from dataclasses import dataclass
from typing import Any, Literal, Optional, get_args
from urllib.parse import urlparse

from sdrm_mcp.core.errors import ParameterError

AlgorithmCategory = Literal["open", "proprietary"]
MediaType = Literal["image", "video", "audio", "text", "pdf", "gif"]
ProtectionLevel = Literal["standard", "maximum"]
DetectionTier = Literal["exact", "quick", "perceptual", "compositional", "full"]
MembershipMethod = Literal["pattern", "statistical", "combined"]
RegistrationMode = Literal["register", "search_ready", "standard", "maximum"]

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100


# -----------------------------------------------------------------------------
# Field checks
# -----------------------------------------------------------------------------
def require_text(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ParameterError(field, "must not be empty")
    return value


def check_url(field: str, value: Optional[str]) -> None:
    if value is None:
        return
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ParameterError(field, f"must be an absolute http(s) URL, got {value!r}")


def check_choice(field: str, value: Optional[str], choices: Any) -> None:
    allowed = get_args(choices)
    if value is not None and value not in allowed:
        raise ParameterError(field, f"must be one of {', '.join(allowed)}, got {value!r}")


def check_page_size(field: str, value: Optional[int]) -> None:
    if value is not None and not MIN_PAGE_SIZE <= value <= MAX_PAGE_SIZE:
        raise ParameterError(field, f"must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}, got {value}")


def check_non_empty_list(field: str, values: Optional[list[str]]) -> None:
    if not values:
        raise ParameterError(field, "must contain at least one entry")
    for value in values:
        require_text(field, value)


def compact(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop unset (None or empty) entries from a payload."""
    return {key: value for key, value in fields.items() if value is not None and value != "" and value != []}


# -----------------------------------------------------------------------------
# Media input shared by most processing tools
# -----------------------------------------------------------------------------
@dataclass(kw_only=True)
class MediaInput:
    """Where the media comes from: a public URL or inline base64."""

    media_url: Optional[str] = None
    media: Optional[str] = None

    def validate(self) -> "MediaInput":
        check_url("media_url", self.media_url)
        return self

    def to_body(self) -> dict[str, Any]:
        return compact({"media_url": self.media_url, "media": self.media})


@dataclass(kw_only=True)
class AlgorithmFilter:
    category: Optional[AlgorithmCategory] = None
    media_type: Optional[MediaType] = None

    def validate(self) -> "AlgorithmFilter":
        check_choice("category", self.category, AlgorithmCategory)
        check_choice("media_type", self.media_type, MediaType)
        return self

    def to_query(self) -> dict[str, Optional[str]]:
        return {"category": self.category, "media_type": self.media_type}


@dataclass(kw_only=True)
class RunAlgorithmRequest(MediaInput):
    algorithms: list[str]
    text: Optional[str] = None
    mime: Optional[str] = None
    tags: Optional[list[str]] = None
    webhook_url: Optional[str] = None
    c2pa_wrap: Optional[bool] = None
    filename: Optional[str] = None

    def validate(self) -> "RunAlgorithmRequest":
        check_non_empty_list("algorithms", self.algorithms)
        super().validate()
        check_url("webhook_url", self.webhook_url)
        return self

    def to_body(self) -> dict[str, Any]:
        body = {"algorithms": list(self.algorithms), **super().to_body()}
        body.update(compact({
            "text": self.text,
            "mime": self.mime,
            "tags": self.tags,
            "webhook_url": self.webhook_url,
        }))
        # False is meaningful here: it turns C2PA signing off.
        if self.c2pa_wrap is not None:
            body["c2pa_wrap"] = self.c2pa_wrap
        body.update(compact({"filename": self.filename}))
        return body


@dataclass(kw_only=True)
class ProtectRequest(MediaInput):
    text: Optional[str] = None
    mime: Optional[str] = None
    level: Optional[ProtectionLevel] = None
    tags: Optional[list[str]] = None
    webhook_url: Optional[str] = None
    filename: Optional[str] = None

    def validate(self) -> "ProtectRequest":
        super().validate()
        check_choice("level", self.level, ProtectionLevel)
        check_url("webhook_url", self.webhook_url)
        return self

    def to_body(self) -> dict[str, Any]:
        return {
            **super().to_body(),
            **compact({
                "text": self.text,
                "mime": self.mime,
                "level": self.level,
                "tags": self.tags,
                "webhook_url": self.webhook_url,
                "filename": self.filename,
            }),
        }


@dataclass(kw_only=True)
class EmbedRequest(MediaInput):
    algorithms: list[str]
    text: Optional[str] = None
    mime: Optional[str] = None

    def validate(self) -> "EmbedRequest":
        check_non_empty_list("algorithms", self.algorithms)
        super().validate()
        return self

    def to_body(self) -> dict[str, Any]:
        return {
            "algorithms": list(self.algorithms),
            **super().to_body(),
            **compact({"text": self.text, "mime": self.mime}),
        }


@dataclass(kw_only=True)
class SearchRequest(MediaInput):
    type: Optional[DetectionTier] = None
    tags: Optional[list[str]] = None
    limit: Optional[int] = None

    def validate(self) -> "SearchRequest":
        super().validate()
        check_choice("type", self.type, DetectionTier)
        check_page_size("limit", self.limit)
        return self

    def to_body(self) -> dict[str, Any]:
        body = {**super().to_body(), **compact({"type": self.type})}
        if self.tags:
            body["scope"] = {"tags": list(self.tags)}
        return body

    def to_query(self) -> dict[str, Optional[str]]:
        return {"limit": str(self.limit) if self.limit else None}


@dataclass(kw_only=True)
class FingerprintRequest(MediaInput):
    tags: Optional[list[str]] = None
    tier: Optional[DetectionTier] = None

    def validate(self) -> "FingerprintRequest":
        super().validate()
        check_choice("tier", self.tier, DetectionTier)
        return self

    def to_body(self) -> dict[str, Any]:
        return {**super().to_body(), **compact({"tags": self.tags, "tier": self.tier})}


@dataclass(kw_only=True)
class MembershipRequest:
    content_ids: list[str]
    suspect_model: str
    method: Optional[MembershipMethod] = None
    tags: Optional[list[str]] = None

    def validate(self) -> "MembershipRequest":
        check_non_empty_list("content_ids", self.content_ids)
        require_text("suspect_model", self.suspect_model)
        check_choice("method", self.method, MembershipMethod)
        return self

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"content_ids": list(self.content_ids), "suspect_model": self.suspect_model}
        body.update(compact({"method": self.method, "tags": self.tags}))
        return body


@dataclass(kw_only=True)
class RegisterRequest(MediaInput):
    mode: Optional[RegistrationMode] = None
    expires_at: Optional[str] = None
    tags: Optional[list[str]] = None

    def validate(self) -> "RegisterRequest":
        super().validate()
        check_choice("mode", self.mode, RegistrationMode)
        return self

    def to_body(self) -> dict[str, Any]:
        return {
            **super().to_body(),
            **compact({"mode": self.mode, "expires_at": self.expires_at, "tags": self.tags}),
        }


@dataclass(kw_only=True)
class PageRequest:
    cursor: Optional[str] = None
    limit: Optional[int] = None

    def validate(self) -> "PageRequest":
        check_page_size("limit", self.limit)
        return self

    def to_query(self) -> dict[str, Optional[str]]:
        return {"cursor": self.cursor, "limit": str(self.limit) if self.limit is not None else None}


@dataclass(kw_only=True)
class BillingQuery:
    account_id: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    type: Optional[str] = None
    tags: Optional[str] = None

    def validate(self) -> "BillingQuery":
        require_text("account_id", self.account_id)
        return self

    def to_query(self) -> dict[str, Optional[str]]:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "type": self.type,
            "tags": self.tags,
        }
