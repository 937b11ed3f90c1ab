import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

# Keep imports predictable in local runs
sys.path.append(str(Path(__file__).resolve().parent.parent))
os.environ.setdefault("ENV_MODE", "development")

import httpx
import pytest
from fastapi.testclient import TestClient

from foodmaps.core.exceptions import UpstreamFailure
from foodmaps.main import app
from foodmaps.services.maps import get_maps_provider
from foodmaps.services.maps.base import BaseMapsProvider, MapImage
from foodmaps.services.maps.here import HereMapsProvider
from foodmaps.services.maps.mock import PLACEHOLDER_PNG

TEST_API_KEY = "test-here-key-0123456789"

ROUTE_PAYLOAD = {
    "routes": [
        {
            "id": "r1",
            "sections": [
                {"id": "s1", "summary": {"length": 1500, "duration": 61}},
            ],
        }
    ]
}

GEOCODE_PAYLOAD = {
    "items": [
        {
            "title": "12 Admiralty Way, Lekki, Lagos",
            "address": {
                "label": "12 Admiralty Way, Lekki, Lagos, Nigeria",
                "city": "Lagos",
                "countryCode": "NGA",
            },
        }
    ]
}


class StubMapsProvider(BaseMapsProvider):
    """In-memory provider that records every upstream operation."""

    def __init__(
        self,
        configured: bool = True,
        route_payload: Any = None,
        geocode_payload: Any = None,
        image: bytes = PLACEHOLDER_PNG,
        fail: bool = False,
    ):
        self.configured = configured
        self.route_payload = ROUTE_PAYLOAD if route_payload is None else route_payload
        self.geocode_payload = GEOCODE_PAYLOAD if geocode_payload is None else geocode_payload
        self.image = image
        self.fail = fail
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return "stub"

    @property
    def is_configured(self) -> bool:
        return self.configured

    def build_route_url(self, request):
        return "stub://route"

    def build_static_url(self, request):
        return "stub://static"

    def build_tile_url(self, request):
        return "stub://tile"

    def build_geocode_url(self, request):
        return "stub://geocode"

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise UpstreamFailure(f"stub {operation} error", upstream_status=502, reason="Bad Gateway")

    async def fetch_route(self, request):
        self._call("route")
        return self.route_payload

    async def fetch_static_map(self, request):
        self._call("static")
        return MapImage(content=self.image, upstream_content_type="image/png")

    async def fetch_tile(self, request):
        self._call("tile")
        return MapImage(content=self.image, upstream_content_type="image/png")

    async def reverse_geocode(self, request):
        self._call("geocode")
        return self.geocode_payload

    async def health_check(self) -> bool:
        return self.configured


class RecordingTransport:
    """httpx.MockTransport handler that records requests and answers from a callable."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def here_ok(request: httpx.Request) -> httpx.Response:
    """Answer like HERE: JSON for routing/geocoding, PNG for images."""
    host = request.url.host
    if host.startswith("router."):
        return httpx.Response(200, json=ROUTE_PAYLOAD)
    if host.startswith("revgeocode."):
        return httpx.Response(200, json=GEOCODE_PAYLOAD)
    return httpx.Response(200, content=PLACEHOLDER_PNG, headers={"content-type": "image/png"})


@pytest.fixture
def stub_provider() -> StubMapsProvider:
    return StubMapsProvider()


@pytest.fixture
def make_client():
    """Build a TestClient whose maps provider is replaced by the given one."""

    def _make(provider: BaseMapsProvider) -> TestClient:
        app.dependency_overrides[get_maps_provider] = lambda: provider
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, stub_provider) -> TestClient:
    return make_client(stub_provider)


@pytest.fixture
def here_transport() -> RecordingTransport:
    return RecordingTransport(here_ok)


@pytest.fixture
def here_provider(here_transport) -> HereMapsProvider:
    return HereMapsProvider(api_key=TEST_API_KEY, timeout=2.0, transport=here_transport.transport())


def make_here_provider(transport: RecordingTransport, api_key: Optional[str] = TEST_API_KEY) -> HereMapsProvider:
    return HereMapsProvider(api_key=api_key, timeout=2.0, transport=transport.transport())
