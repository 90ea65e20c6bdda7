# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the Sidearm platform as MCP tools.  Each tool is a thin
#   wrapper: it validates parameters (core/params.py), makes one call
#   through the GatewayClient (core/gateway.py) and renders the answer as
#   text for the agent.  search_docs is the exception: it runs the local
#   documentation search in core/docs.py.
#
# HOW IT WORKS (the flow):
#   1. build_server() creates the FastMCP instance and an SdrmTools bound
#      to its GatewayClient, then walks TOOLS, an explicit name -> handler
#      mapping, registering each handler once.  Two servers built in one
#      process never share a gateway.
#   2. Every handler is wrapped by _guarded(), the tool boundary: it logs
#      the call, and converts ANY exception into a ToolError whose text is
#      "Error: <message>".  FastMCP reports that to the agent as a result
#      with isError=true, so no failure ever escapes to the process.
#   3. Handlers return plain text: pretty JSON for data reads, short
#      summaries for job submissions.
#
# RUNNING THIS SERVER:
#   python main.py            (or the "sdrm-mcp" console script)
#   Needs SDRM_API_KEY in the environment or a .env file.
# =============================================================================

import functools
import inspect
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from types import MethodType
from typing import Any, Optional
from urllib.parse import quote

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from sdrm_mcp import __version__
from sdrm_mcp.core import docs
from sdrm_mcp.core.errors import ConfigurationError
from sdrm_mcp.core.gateway import GatewayClient
from sdrm_mcp.core.models import Payload
from sdrm_mcp.core.params import (
    AlgorithmCategory,
    AlgorithmFilter,
    BillingQuery,
    DetectionTier,
    EmbedRequest,
    FingerprintRequest,
    MediaType,
    MembershipMethod,
    MembershipRequest,
    PageRequest,
    ProtectionLevel,
    ProtectRequest,
    RegisterRequest,
    RegistrationMode,
    RunAlgorithmRequest,
    SearchRequest,
    check_url,
    require_text,
)
from sdrm_mcp.core.settings import load_settings
from sdrm_mcp.tools.instructions import get_server_instructions

SERVER_NAME = "sdrm"
RUNNING_JOB_STATES = ("queued", "processing")
EMBEDDINGS_HINT = (
    "Use check_job with this job_id to retrieve the vectors once complete. "
    "The result will contain an embeddings array with "
    "{ algorithm, vector, dimension, metric } entries."
)

ToolHandler = Callable[..., Awaitable[str]]

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT carries the MCP protocol, so every log line goes to STDERR.
#   CYAN   incoming tool calls
#   YELLOW intermediate status
#   GREEN  responses
#   RED    failures
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_RESET = "\033[0m"

_LOG_PREVIEW_CHARS = 300

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params: Any) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if k not in ("media", "text"))
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log a preview of the tool response in GREEN, then return it."""
    preview = text if len(text) <= _LOG_PREVIEW_CHARS else text[:_LOG_PREVIEW_CHARS] + "…"
    logging.info(f"{_GREEN}  ← {tool_name} response: {preview!r}{_RESET}")
    return text


def _log_failure(tool_name: str, exc: Exception) -> None:
    logging.error(f"{_RED}  ✗ {tool_name} failed: {exc}{_RESET}")


# =============================================================================
# Rendering helpers
# =============================================================================
def _as_text(result: Payload) -> str:
    """Pretty JSON for structured results; raw text passes through."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2)


def _field(result: Payload, key: str) -> Any:
    return result.get(key) if isinstance(result, dict) else None


def _present(value: Any) -> bool:
    """Empty objects and lists count as present; None, False, 0 and "" do not."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float, str)):
        return value != 0 and value != ""
    return True


def _job_created(
    title: str,
    result: Payload,
    *extra_lines: str,
    hint: str = "Use check_job with this job_id to poll for results.",
) -> str:
    lines = [f"{title}\n", f"Job ID: {_field(result, 'job_id')}", *extra_lines]
    status_url = _field(result, "status_url")
    if status_url:
        lines.append(f"Status URL: {status_url}")
    lines.append(f"\n{hint}")
    return "\n".join(lines)


def _segment(identifier: str) -> str:
    """Percent-encode an identifier for use as one path segment."""
    return quote(identifier, safe="")


# =============================================================================
# Tool handlers
# =============================================================================
class SdrmTools:
    """The Sidearm tool handlers, bound to one GatewayClient.

    build_server() creates one instance per server, so every registered
    tool talks to the platform through that server's own gateway.
    """

    def __init__(self, api: GatewayClient):
        self._api = api

    # -------------------------------------------------------------------------
    # DISCOVERY
    # -------------------------------------------------------------------------
    async def list_algorithms(
        self,
        category: Optional[AlgorithmCategory] = None,
        media_type: Optional[MediaType] = None,
    ) -> str:
        """List available algorithms for media protection, watermarking, and AI content disruption.

        WHEN TO CALL THIS: Before run_algorithm or extract_embeddings, to
        discover valid algorithm IDs.

        Args:
            category: Filter by category: "open" (research algorithms) or
                "proprietary" (Sidearm bundles).
            media_type: Filter by supported media type (image, video, audio,
                text, pdf, gif).

        Returns:
            JSON with algorithm IDs, names, supported media types, and descriptions.
        """
        query = AlgorithmFilter(category=category, media_type=media_type).validate()
        return _as_text(await self._api.get("/api/v1/algorithms", query.to_query()))

    async def search_docs(self, query: Optional[str] = None) -> str:
        """Search the Sidearm API documentation.

        Returns relevant sections from the full developer reference covering
        endpoints, request/response formats, authentication, SDKs, algorithms,
        and usage examples.  Use this to look up how to call an endpoint,
        understand a concept, or find example code.

        Args:
            query: What to look for, e.g. "authenticate", "protect media",
                "detect AI", "Node SDK", "watermark".  Omit it to get the
                overview and an index of available topics.

        Returns:
            Up to 5 matching documentation sections, best match first.
        """
        excerpt = await docs.search_docs(self._api, query)
        _log_status(f"docs answer is {len(excerpt)} chars")
        return excerpt

    # -------------------------------------------------------------------------
    # PROTECTION (asynchronous jobs)
    # -------------------------------------------------------------------------
    async def run_algorithm(
        self,
        algorithms: list[str],
        media_url: Optional[str] = None,
        media: Optional[str] = None,
        text: Optional[str] = None,
        mime: Optional[str] = None,
        tags: Optional[list[str]] = None,
        webhook_url: Optional[str] = None,
        c2pa_wrap: Optional[bool] = None,
        filename: Optional[str] = None,
    ) -> str:
        """Run one or more named algorithms on media.  Requires credits.

        Provide algorithm IDs (from list_algorithms) and either a public
        media_url or base64-encoded media.  For text, use the text param.

        Args:
            algorithms: Algorithm IDs to run, e.g. ["nightshade", "glaze"].
            media_url: Public URL of the media file to process.
            media: Base64-encoded media content (alternative to media_url).
            text: Plain text content (for text algorithms like spectra, textmark).
            mime: MIME type of the media, e.g. image/png, audio/wav.
            tags: Tags for organizing and filtering.
            webhook_url: URL to receive a POST when the job completes.
            c2pa_wrap: Wrap output in C2PA provenance signing (default: true).
            filename: Original filename for human-readable output naming.

        Returns:
            A job_id.  Use check_job to poll for results.
        """
        request = RunAlgorithmRequest(
            algorithms=algorithms, media_url=media_url, media=media, text=text, mime=mime,
            tags=tags, webhook_url=webhook_url, c2pa_wrap=c2pa_wrap, filename=filename,
        ).validate()
        result = await self._api.post("/api/v1/run", request.to_body())
        return _job_created("Job created successfully.", result)

    async def protect_media(
        self,
        media_url: Optional[str] = None,
        media: Optional[str] = None,
        text: Optional[str] = None,
        mime: Optional[str] = None,
        level: Optional[ProtectionLevel] = None,
        tags: Optional[list[str]] = None,
        webhook_url: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> str:
        """Protect media using a curated preset level.

        Automatically selects the best combination of algorithms for the media
        type.  Simpler than run_algorithm: just pick standard or maximum.
        Provide a public media_url, base64 media, or text content.

        Args:
            media_url: Public URL of the media file to protect.
            media: Base64-encoded media content (alternative to media_url).
            text: Plain text content to protect.
            mime: MIME type, e.g. image/png, audio/wav, text/plain.
            level: "standard" (fast, good protection) or "maximum" (slower,
                strongest protection).  Default: standard.
            tags: Tags for organizing and filtering.
            webhook_url: URL to receive a POST when the job completes.
            filename: Original filename for human-readable output naming.

        Returns:
            A job_id.  Use check_job to poll for results.
        """
        request = ProtectRequest(
            media_url=media_url, media=media, text=text, mime=mime, level=level,
            tags=tags, webhook_url=webhook_url, filename=filename,
        ).validate()
        result = await self._api.post("/api/v1/protect", request.to_body())
        return _job_created("Protection job created.", result)

    async def extract_embeddings(
        self,
        algorithms: list[str],
        media_url: Optional[str] = None,
        media: Optional[str] = None,
        text: Optional[str] = None,
        mime: Optional[str] = None,
    ) -> str:
        """Extract raw embedding vectors from media using named embedding algorithms.

        Vectors are suitable for similarity search, clustering, or ML pipelines.

        Args:
            algorithms: Embedding algorithm IDs, e.g. ["dinov2", "clip"] for
                images, ["chromaprint", "clap"] for audio,
                ["sentence-transformers"] for text.  Use list_algorithms to
                find IDs with extractable=true.
            media_url: Public URL of the media file to process.
            media: Base64-encoded media content (alternative to media_url).
            text: Plain text content (for sentence-transformers).
            mime: MIME type of the media, e.g. image/png, audio/wav.

        Returns:
            A job_id.  Use check_job to retrieve the vectors once complete; the
            result holds an embeddings array of {algorithm, vector, dimension,
            metric} entries.
        """
        request = EmbedRequest(
            algorithms=algorithms, media_url=media_url, media=media, text=text, mime=mime,
        ).validate()
        result = await self._api.post("/api/v1/embed", request.to_body())
        used = _field(result, "algorithms") or request.algorithms
        return _job_created(
            "Embedding extraction job created.",
            result,
            f"Algorithms: {', '.join(used)}",
            hint=EMBEDDINGS_HINT,
        )

    # -------------------------------------------------------------------------
    # JOBS
    # -------------------------------------------------------------------------
    async def check_job(self, job_id: str) -> str:
        """Check the status of an asynchronous job.

        Works for jobs from run_algorithm, protect_media, extract_embeddings and
        detect_membership.

        Args:
            job_id: The job ID returned by a previous tool call.

        Returns:
            Status (queued, processing, completed, failed), progress percentage,
            and result data including download URLs when complete.
        """
        require_text("job_id", job_id)
        job = await self._api.get(f"/api/v1/jobs/{_segment(job_id)}")
        if not isinstance(job, dict):
            return _as_text(job)

        status = job.get("status")
        _log_status(f"job {job_id} is {status}")
        lines = [f"Status: {status}"]
        if job.get("progress") is not None:
            lines.append(f"Progress: {job['progress']}%")
        if job.get("created_at"):
            lines.append(f"Created: {job['created_at']}")
        if job.get("completed_at"):
            lines.append(f"Completed: {job['completed_at']}")
        if job.get("error"):
            lines.append(f"\nError: {job['error']}")
        if _present(job.get("result")):
            lines.append(f"\nResult:\n{json.dumps(job['result'], indent=2)}")
        if status in RUNNING_JOB_STATES:
            lines.append("\nJob is still running. Call check_job again in a few seconds.")
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # SEARCH & DETECTION (immediate results)
    # -------------------------------------------------------------------------
    async def search_media(
        self,
        media_url: Optional[str] = None,
        media: Optional[str] = None,
        type: Optional[DetectionTier] = None,
        tags: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> str:
        """Search for similar or matching media across the indexed library.

        Tiers: exact (hash match), quick (perceptual hash), perceptual (visual
        similarity), compositional (scene structure), full (all tiers).

        Args:
            media_url: Public URL of the media to search for.
            media: Base64-encoded media content to search for.
            type: Search tier, trading depth for speed.  Default: perceptual.
            tags: Restrict search to media with these tags.
            limit: Maximum results to return (1-100, default 20).

        Returns:
            JSON list of matches.
        """
        request = SearchRequest(media_url=media_url, media=media, type=type, tags=tags, limit=limit).validate()
        return _as_text(await self._api.post("/api/v1/search", request.to_body(), request.to_query()))

    async def detect_fingerprint(
        self,
        media_url: Optional[str] = None,
        media: Optional[str] = None,
        tags: Optional[list[str]] = None,
        tier: Optional[DetectionTier] = None,
    ) -> str:
        """Detect whether media has been previously registered or seen, using fingerprint matching.

        Compares against your indexed library at the requested depth:
        exact, quick, perceptual, compositional, or full.

        Args:
            media_url: Public URL of the media to check.
            media: Base64-encoded media content to check.
            tags: Tags to scope the detection to.
            tier: Detection depth.  Default: quick.

        Returns:
            JSON detection results.
        """
        request = FingerprintRequest(media_url=media_url, media=media, tags=tags, tier=tier).validate()
        return _as_text(await self._api.post("/api/v1/detect", request.to_body()))

    async def detect_membership(
        self,
        content_ids: list[str],
        suspect_model: str,
        method: Optional[MembershipMethod] = None,
        tags: Optional[list[str]] = None,
    ) -> str:
        """Run membership inference: was your protected content used to train a suspect AI model?

        Args:
            content_ids: UUIDs of your registered media to test.
            suspect_model: Identifier or name of the suspect AI model.
            method: "pattern" (watermark detection), "statistical"
                (distribution analysis) or "combined".  Default: combined.
            tags: Tags for organizing and filtering.

        Returns:
            A job_id.  Use check_job to poll for results.
        """
        request = MembershipRequest(
            content_ids=content_ids, suspect_model=suspect_model, method=method, tags=tags,
        ).validate()
        result = await self._api.post("/api/v1/detect/membership", request.to_body())
        return _job_created("Membership inference job created.", result)

    async def identify_media(self, media_url: str) -> str:
        """Identify a media asset by its embedded Sidearm fingerprint and extract its C2PA chain.

        Answers "have I seen this before?" and "where did this come from?" in
        one call.

        Args:
            media_url: Publicly accessible URL of the media to identify.

        Returns:
            JSON with the Sidearm media_id (null if not registered to your
            account) and the ordered C2PA provenance chain.
        """
        require_text("media_url", media_url)
        check_url("media_url", media_url)
        return _as_text(await self._api.post("/api/v1/media/identify", {"media_url": media_url}))

    # -------------------------------------------------------------------------
    # MEDIA MANAGEMENT
    # -------------------------------------------------------------------------
    async def register_media(
        self,
        media_url: Optional[str] = None,
        media: Optional[str] = None,
        mode: Optional[RegistrationMode] = None,
        expires_at: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> str:
        """Register and protect media on the Sidearm platform.

        Modes: register (provenance signing only), search_ready (register +
        vector indexing), standard (search_ready + watermarks + AI-training
        poison), maximum (standard + style cloaking + adversarial hardening).

        Args:
            media_url: Public URL of the media to register.
            media: Base64-encoded media content to register.
            mode: Protection level.  Default: standard.
            expires_at: ISO 8601 datetime when this registration expires.
            tags: Tags for organizing and filtering.

        Returns:
            JSON of the created media object.
        """
        request = RegisterRequest(
            media_url=media_url, media=media, mode=mode, expires_at=expires_at, tags=tags,
        ).validate()
        return _as_text(await self._api.post("/api/v1/media", request.to_body()))

    async def list_media(self, cursor: Optional[str] = None, limit: Optional[int] = None) -> str:
        """List media assets registered to your account.

        Args:
            cursor: Pagination cursor from a previous response.
            limit: Results per page (1-100, default 20).

        Returns:
            JSON page with media IDs, types, status, tags, protection details,
            and the cursor for the next page.
        """
        page = PageRequest(cursor=cursor, limit=limit).validate()
        return _as_text(await self._api.get("/api/v1/media", page.to_query()))

    async def get_media(self, media_id: str) -> str:
        """Get metadata, protection status, applied algorithms, tags and storage info for one media asset.

        Args:
            media_id: UUID of the media asset.
        """
        require_text("media_id", media_id)
        return _as_text(await self._api.get(f"/api/v1/media/{_segment(media_id)}"))

    async def update_media(self, media_id: str, original_media_url: str) -> str:
        """Update a registered media asset's original media URL (e.g. after re-hosting the file).

        Args:
            media_id: UUID of the media asset to update.
            original_media_url: New URL for the original (unprotected) media file.
        """
        require_text("media_id", media_id)
        require_text("original_media_url", original_media_url)
        check_url("original_media_url", original_media_url)
        result = await self._api.patch(
            f"/api/v1/media/{_segment(media_id)}",
            {"original_media_url": original_media_url},
        )
        return _as_text(result)

    async def delete_media(self, media_id: str) -> str:
        """Permanently delete a registered media asset.

        Removes storage files, vector embeddings, and all associated metadata.
        This action cannot be undone.

        Args:
            media_id: UUID of the media asset to delete.
        """
        require_text("media_id", media_id)
        await self._api.delete(f"/api/v1/media/{_segment(media_id)}")
        return f"Media {media_id} deleted successfully."

    async def get_rights(self, media_id: str) -> str:
        """Get rights and licensing information for a registered media asset.

        Returns C2PA content credentials, Schema.org structured data, IPTC
        rights metadata, and TDM-AI protocol declarations.

        Args:
            media_id: UUID of the media asset.
        """
        require_text("media_id", media_id)
        return _as_text(await self._api.get(f"/api/v1/rights/{_segment(media_id)}"))

    async def get_provenance(self, media_id: str) -> str:
        """Get the full provenance chain for a media asset.

        Includes every protection algorithm applied (versions, timings,
        metadata), the C2PA manifest, membership inference results, and every
        search where this media appeared as a match.

        Args:
            media_id: UUID of the media asset.
        """
        require_text("media_id", media_id)
        return _as_text(await self._api.get(f"/api/v1/media/{_segment(media_id)}/provenance"))

    # -------------------------------------------------------------------------
    # BILLING
    # -------------------------------------------------------------------------
    async def get_billing(
        self,
        account_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        type: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> str:
        """Get billing and usage events for your account.

        Returns credit consumption, API call history, and a link to the Stripe
        customer portal.

        Args:
            account_id: Your account UUID.
            start_date: Only events from this ISO 8601 date (inclusive).
            end_date: Only events until this ISO 8601 date (inclusive).
            type: Filter by event type.
            tags: Comma-separated tags to filter by.
        """
        query = BillingQuery(
            account_id=account_id, start_date=start_date, end_date=end_date, type=type, tags=tags,
        ).validate()
        return _as_text(await self._api.get(f"/api/v1/billing/{_segment(account_id)}", query.to_query()))


# =============================================================================
# Tool registry
# =============================================================================
TOOLS: dict[str, ToolHandler] = {
    handler.__name__: handler
    for handler in (
        # Discovery
        SdrmTools.list_algorithms,
        SdrmTools.search_docs,
        # Protection
        SdrmTools.run_algorithm,
        SdrmTools.protect_media,
        SdrmTools.extract_embeddings,
        # Jobs
        SdrmTools.check_job,
        # Search & detection
        SdrmTools.search_media,
        SdrmTools.detect_fingerprint,
        SdrmTools.detect_membership,
        SdrmTools.identify_media,
        # Media management
        SdrmTools.register_media,
        SdrmTools.list_media,
        SdrmTools.get_media,
        SdrmTools.update_media,
        SdrmTools.delete_media,
        SdrmTools.get_rights,
        SdrmTools.get_provenance,
        # Billing
        SdrmTools.get_billing,
    )
}


def _guarded(tool_name: str, handler: ToolHandler) -> ToolHandler:
    """Wrap a handler so every failure becomes a ToolError("Error: ...")."""
    signature = inspect.signature(handler)

    @functools.wraps(handler)
    async def run(*args: Any, **kwargs: Any) -> str:
        try:
            _log_request(tool_name, **signature.bind_partial(*args, **kwargs).arguments)
            text = await handler(*args, **kwargs)
        except Exception as exc:
            _log_failure(tool_name, exc)
            raise ToolError(f"Error: {exc}") from exc
        return _log_response(tool_name, text)

    return run


def build_server(api: GatewayClient) -> FastMCP:
    """Create the FastMCP server with every tool in TOOLS bound to ``api``."""
    tools = SdrmTools(api)
    server = FastMCP(
        SERVER_NAME,
        instructions=get_server_instructions(api.base_url),
        version=__version__,
    )
    for name, handler in TOOLS.items():
        server.tool(_guarded(name, MethodType(handler, tools)), name=name)
    logging.info(f"Registered {len(TOOLS)} tools against {api.base_url}")
    return server


# =============================================================================
# Server entry point
# =============================================================================
def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(1)

    server = build_server(GatewayClient.from_settings(settings))
    server.run()


if __name__ == "__main__":
    main()
