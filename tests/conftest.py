"""Shared pytest fixtures for sdrm_mcp unit tests."""

import json
from collections.abc import Callable

import httpx
import pytest

from sdrm_mcp.core.gateway import GatewayClient
from sdrm_mcp.tools.mcp_server import SdrmTools

_BASE_URL = "https://api.test.sdrm.io"
_API_KEY = "sk_test_123"

_SAMPLE_CORPUS = (
    "# Sidearm API\n"
    "Welcome to the Sidearm developer reference.\n"
    "\n---\n"
    "## Authentication\n"
    "Send your API key as a bearer token in the Authorization header.\n"
    "\n---\n"
    "## Protect media\n"
    "POST /api/v1/protect with a media_url. Protection levels: standard, maximum.\n"
    "Protect images, audio and video.\n"
)


class Recorder:
    """Captures every request a MockTransport sees."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def json_body(self, index: int = -1) -> object:
        return json.loads(self.requests[index].content)


@pytest.fixture()
def base_url() -> str:
    return _BASE_URL


@pytest.fixture()
def api_key() -> str:
    return _API_KEY


@pytest.fixture()
def corpus_url(base_url) -> str:
    return f"{base_url}/llms-full.txt"


@pytest.fixture()
def sample_corpus() -> str:
    """Three-section llms-full.txt: Sidearm API, Authentication, Protect media."""
    return _SAMPLE_CORPUS


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def make_gateway(recorder, api_key, base_url) -> Callable[..., GatewayClient]:
    """Factory: GatewayClient whose transport answers with ``handler``."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        *,
        url: str = base_url,
        key: str = api_key,
    ) -> GatewayClient:
        def _record(request: httpx.Request) -> httpx.Response:
            recorder.requests.append(request)
            return handler(request)

        return GatewayClient(key, url, transport=httpx.MockTransport(_record))

    return _make


@pytest.fixture()
def json_gateway(make_gateway) -> Callable[..., GatewayClient]:
    """Factory: gateway answering every request with one JSON payload."""

    def _make(payload: object, status_code: int = 200) -> GatewayClient:
        return make_gateway(lambda request: httpx.Response(status_code, json=payload))

    return _make


@pytest.fixture()
def make_tools() -> Callable[[GatewayClient], SdrmTools]:
    """Factory: tool handlers bound to one gateway."""
    return SdrmTools
