# =============================================================================
# core/gateway.py  -  Gateway Client for the Sidearm platform
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every network call in the project goes through GatewayClient.  It:
#     1. Joins an API-relative path onto the configured base URL
#     2. Drops query parameters whose value is None
#     3. Injects "Authorization: Bearer <key>" and "Accept: application/json"
#     4. Serializes request bodies as JSON
#     5. Decodes responses (JSON when possible, raw text otherwise)
#     6. Turns non-2xx responses into RequestError and network failures
#        into TransportError
#
#   Each call opens its own httpx.AsyncClient.  The client holds nothing but
#   its Endpoint, so concurrent calls never share state.  No retries, no
#   caching: a failed call is reported once and the caller decides.
# =============================================================================

import json
import logging
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from sdrm_mcp.core.errors import RequestError, TransportError, resolve_error_message
from sdrm_mcp.core.models import DEFAULT_BASE_URL, Endpoint, Payload
from sdrm_mcp.core.settings import DEFAULT_TIMEOUT_SECONDS, Settings

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"

QueryParams = Mapping[str, Optional[str]]


class GatewayClient:
    """Authenticated JSON client bound to one platform endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._endpoint = Endpoint(base_url=base_url or DEFAULT_BASE_URL, credential=api_key)
        self._timeout = timeout
        # Tests inject an httpx.MockTransport here.
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "GatewayClient":
        return cls(settings.api_key, settings.base_url, timeout=settings.timeout, **kwargs)

    @property
    def base_url(self) -> str:
        return self._endpoint.base_url

    def url_for(self, path: str) -> str:
        """Absolute URL for an API-relative path."""
        return f"{self._endpoint.base_url}{path}"

    # -------------------------------------------------------------------------
    # Public verbs
    # -------------------------------------------------------------------------
    async def get(self, path: str, params: Optional[QueryParams] = None) -> Payload:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Any, params: Optional[QueryParams] = None) -> Payload:
        return await self._request("POST", path, params=params, body=body)

    async def patch(self, path: str, body: Any) -> Payload:
        return await self._request("PATCH", path, body=body)

    async def delete(self, path: str) -> Payload:
        return await self._request("DELETE", path)

    async def fetch_text(self, path: str) -> str:
        """Anonymous GET returning the raw body text.

        No credential is sent.  Used for public resources such as the
        documentation corpus.

        Raises:
            RequestError: Non-2xx status.
            TransportError: The request could not be completed.
        """
        response = await self._send("GET", self.url_for(path), headers={})
        if not response.is_success:
            raise RequestError(response.status_code, response.text)
        return response.text

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        body: Any = None,
    ) -> Payload:
        headers: dict[str, str] = {}
        content: Optional[bytes] = None
        if body is not None:
            headers["Content-Type"] = JSON_MIME
            content = json.dumps(body).encode("utf-8")

        # Auth and content negotiation always win over method headers.
        headers["Authorization"] = f"Bearer {self._endpoint.credential}"
        headers["Accept"] = JSON_MIME

        query = {key: value for key, value in (params or {}).items() if value is not None}
        response = await self._send(
            method,
            self.url_for(path),
            headers=headers,
            params=query or None,
            content=content,
        )
        return self._interpret(response)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        params: Optional[dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        logger.debug("%s %s params=%s", method, url, params)
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
            ) as client:
                return await client.request(method, url, headers=headers, params=params, content=content)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

    @staticmethod
    def _interpret(response: httpx.Response) -> Payload:
        """Decode a response or raise RequestError for a failed status."""
        text = response.text
        try:
            payload = json.loads(text)
        except ValueError:
            if not response.is_success:
                logger.warning("HTTP %s from %s", response.status_code, response.request.url)
                raise RequestError(response.status_code, text) from None
            return text

        if not response.is_success:
            logger.warning("HTTP %s from %s", response.status_code, response.request.url)
            raise RequestError(response.status_code, resolve_error_message(payload, text))
        return payload
