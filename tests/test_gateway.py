"""Tests for gateway.py: request construction, auth, decoding, error mapping."""

import httpx
import pytest

from sdrm_mcp.core.errors import RequestError, TransportError
from sdrm_mcp.core.gateway import GatewayClient
from sdrm_mcp.core.models import DEFAULT_BASE_URL
from sdrm_mcp.core.settings import Settings


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_default_base_url(self, api_key):
        assert GatewayClient(api_key).base_url == DEFAULT_BASE_URL

    def test_trailing_slash_is_stripped(self, api_key):
        api = GatewayClient(api_key, "https://example.test/")
        assert api.base_url == "https://example.test"
        assert api.url_for("/api/v1/media") == "https://example.test/api/v1/media"

    def test_from_settings(self, api_key, base_url):
        api = GatewayClient.from_settings(Settings(api_key=api_key, base_url=base_url, timeout=5.0))
        assert api.base_url == base_url


# ---------------------------------------------------------------------------
# Outgoing requests
# ---------------------------------------------------------------------------

class TestRequests:
    @pytest.mark.asyncio
    async def test_get_sends_auth_and_accept(self, json_gateway, recorder, api_key, base_url):
        await json_gateway({"ok": True}).get("/api/v1/media")
        request = recorder.last
        assert request.method == "GET"
        assert str(request.url) == f"{base_url}/api/v1/media"
        assert request.headers["Authorization"] == f"Bearer {api_key}"
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_none_query_values_are_omitted(self, json_gateway, recorder):
        await json_gateway({}).get("/api/v1/media", {"cursor": None, "limit": "10"})
        params = recorder.last.url.params
        assert params.get("limit") == "10"
        assert "cursor" not in params

    @pytest.mark.asyncio
    async def test_all_none_query_leaves_url_bare(self, json_gateway, recorder):
        await json_gateway({}).get("/api/v1/algorithms", {"category": None})
        assert recorder.last.url.query == b""

    @pytest.mark.asyncio
    async def test_post_serializes_json_body(self, json_gateway, recorder, api_key):
        await json_gateway({"job_id": "j1"}).post("/api/v1/protect", {"media_url": "https://x.test/a.png"})
        request = recorder.last
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert recorder.json_body() == {"media_url": "https://x.test/a.png"}
        assert request.headers["Authorization"] == f"Bearer {api_key}"

    @pytest.mark.asyncio
    async def test_post_with_query_params(self, json_gateway, recorder):
        await json_gateway([]).post("/api/v1/search", {}, {"limit": "5"})
        assert recorder.last.url.params["limit"] == "5"

    @pytest.mark.asyncio
    async def test_patch_and_delete_methods(self, json_gateway, recorder):
        api = json_gateway({})
        await api.patch("/api/v1/media/m1", {"original_media_url": "https://x.test"})
        await api.delete("/api/v1/media/m1")
        assert [r.method for r in recorder.requests] == ["PATCH", "DELETE"]
        assert recorder.requests[1].content == b""
        assert "Content-Type" not in recorder.requests[1].headers

    @pytest.mark.asyncio
    async def test_fetch_text_is_anonymous(self, make_gateway, recorder):
        api = make_gateway(lambda request: httpx.Response(200, text="# Docs"))
        assert await api.fetch_text("/llms-full.txt") == "# Docs"
        assert "Authorization" not in recorder.last.headers


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------

class TestResponses:
    @pytest.mark.asyncio
    async def test_structured_body_returned_unchanged(self, json_gateway):
        payload = {"id": "m1", "tags": ["a", "b"], "nested": {"n": 1, "z": None}}
        assert await json_gateway(payload).get("/api/v1/media/m1") == payload

    @pytest.mark.asyncio
    async def test_non_json_success_returns_raw_text(self, make_gateway):
        api = make_gateway(lambda request: httpx.Response(200, text="plain ok"))
        assert await api.get("/health") == "plain ok"

    @pytest.mark.asyncio
    async def test_empty_success_body_returns_empty_text(self, make_gateway):
        api = make_gateway(lambda request: httpx.Response(204))
        assert await api.delete("/api/v1/media/m1") == ""

    @pytest.mark.asyncio
    async def test_error_prefers_message_key(self, json_gateway):
        api = json_gateway({"message": "bad input", "error": "validation"}, status_code=400)
        with pytest.raises(RequestError) as info:
            await api.get("/api/v1/media")
        assert info.value.status_code == 400
        assert info.value.message == "bad input"
        assert str(info.value) == "HTTP 400: bad input"

    @pytest.mark.asyncio
    async def test_error_falls_back_to_error_key(self, json_gateway):
        with pytest.raises(RequestError) as info:
            await json_gateway({"error": "not found"}, status_code=404).get("/api/v1/media/x")
        assert info.value.message == "not found"
        assert "not found" in str(info.value)

    @pytest.mark.asyncio
    async def test_structured_error_value_is_rendered_as_json(self, json_gateway):
        api = json_gateway({"error": {"code": 1, "reason": "quota"}}, status_code=402)
        with pytest.raises(RequestError) as info:
            await api.get("/api/v1/billing/acc-1")
        assert info.value.message == '{"code": 1, "reason": "quota"}'

    @pytest.mark.asyncio
    async def test_error_falls_back_to_raw_json_text(self, make_gateway):
        body = '{"detail": "nope"}'
        api = make_gateway(lambda request: httpx.Response(422, text=body))
        with pytest.raises(RequestError) as info:
            await api.get("/api/v1/media")
        assert info.value.message == body

    @pytest.mark.asyncio
    async def test_error_with_json_list_body_uses_text(self, make_gateway):
        api = make_gateway(lambda request: httpx.Response(400, text='["bad"]'))
        with pytest.raises(RequestError) as info:
            await api.get("/api/v1/media")
        assert info.value.message == '["bad"]'

    @pytest.mark.asyncio
    async def test_error_with_non_json_body_uses_text(self, make_gateway):
        api = make_gateway(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(RequestError) as info:
            await api.post("/api/v1/run", {"algorithms": ["glaze"]})
        assert info.value.status_code == 502
        assert info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_fetch_text_failure_raises_request_error(self, make_gateway):
        api = make_gateway(lambda request: httpx.Response(404, text="missing"))
        with pytest.raises(RequestError) as info:
            await api.fetch_text("/llms-full.txt")
        assert info.value.status_code == 404


# ---------------------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------------------

class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_connect_error_becomes_transport_error(self, make_gateway):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as info:
            await make_gateway(refuse).get("/api/v1/media")
        assert "connection refused" in str(info.value)
        assert not isinstance(info.value, RequestError)

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self, make_gateway):
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            await make_gateway(stall).get("/api/v1/jobs/j1")

    @pytest.mark.asyncio
    async def test_failures_are_not_retried(self, make_gateway, recorder):
        api = make_gateway(lambda request: httpx.Response(503, json={"error": "down"}))
        with pytest.raises(RequestError):
            await api.get("/api/v1/media")
        assert len(recorder.requests) == 1
