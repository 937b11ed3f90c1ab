import httpx
import pytest
from fastapi.testclient import TestClient

from tests.conftest import (
    TEST_API_KEY,
    RecordingTransport,
    StubMapsProvider,
    here_ok,
    make_here_provider,
)
from foodmaps.core.config import get_settings
from foodmaps.main import app
from foodmaps.services.maps import reset_maps_provider


ROUTE_BODY = {"startLat": 6.5244, "startLng": 3.3792, "endLat": 6.4281, "endLng": 3.4219}


def _assert_cached_png(resp):
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.headers["cache-control"] == "public, max-age=86400"


# -----------------------------------------------------------------------------
# /maps/init
# -----------------------------------------------------------------------------

def test_init_defaults_zoom(client, stub_provider):
    resp = client.post("/maps/init", json={"center": {"lat": 6.5, "lng": 3.3}})
    assert resp.status_code == 200
    data = resp.json()
    assert data["center"] == {"lat": 6.5, "lng": 3.3}
    assert data["zoom"] == 14
    assert isinstance(data["timestamp"], int)
    assert data["timestamp"] > 0
    assert stub_provider.calls == []


def test_init_rejects_missing_center(client):
    resp = client.post("/maps/init", json={"zoom": 12})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid center coordinates"}


def test_init_unreadable_body(client):
    resp = client.post("/maps/init", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400


# -----------------------------------------------------------------------------
# /maps/route
# -----------------------------------------------------------------------------

def test_route_returns_distance_and_duration(client, stub_provider):
    resp = client.post("/maps/route", json=ROUTE_BODY)
    assert resp.status_code == 200
    assert resp.json() == {"distance": "1.5", "duration": "2"}
    assert stub_provider.calls == ["route"]


@pytest.mark.parametrize("field", ["startLat", "startLng", "endLat", "endLng"])
def test_route_missing_coordinate_makes_no_outbound_call(make_client, field):
    transport = RecordingTransport(here_ok)
    client = make_client(make_here_provider(transport))

    body = {k: v for k, v in ROUTE_BODY.items() if k != field}
    resp = client.post("/maps/route", json=body)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing route coordinates"
    assert transport.requests == []


def test_route_without_key_is_configuration_error(make_client):
    transport = RecordingTransport(here_ok)
    client = make_client(make_here_provider(transport, api_key=None))

    resp = client.post("/maps/route", json=ROUTE_BODY)

    assert resp.status_code == 500
    assert resp.json()["error"] == "Maps API key not configured"
    assert transport.requests == []


def test_route_upstream_failure_is_generic_500(make_client):
    transport = RecordingTransport(lambda request: httpx.Response(401, text=f"bad key {TEST_API_KEY}"))
    client = make_client(make_here_provider(transport))

    resp = client.post("/maps/route", json=ROUTE_BODY)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to calculate route"}
    assert TEST_API_KEY not in resp.text
    assert len(transport.requests) == 1


def test_route_malformed_payload_degrades_to_unknown(make_client):
    client = make_client(StubMapsProvider(route_payload={"notices": []}))

    resp = client.post("/maps/route", json=ROUTE_BODY)

    assert resp.status_code == 200
    assert resp.json() == {"distance": "Unknown", "duration": "Unknown"}


def test_route_oversized_coordinate_is_400(client, stub_provider):
    resp = client.post("/maps/route", json=dict(ROUTE_BODY, startLat=10 ** 400))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid route coordinates"
    assert stub_provider.calls == []


def test_init_oversized_coordinate_is_400(client):
    resp = client.post("/maps/init", json={"center": {"lat": 10 ** 400, "lng": 3.3}})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid center coordinates"


@pytest.mark.parametrize("duration", [float("inf"), float("nan")])
def test_route_non_finite_summary_degrades_to_unknown(make_client, duration):
    payload = {"routes": [{"sections": [{"summary": {"length": 1500, "duration": duration}}]}]}
    client = make_client(StubMapsProvider(route_payload=payload))

    resp = client.post("/maps/route", json=ROUTE_BODY)

    assert resp.status_code == 200
    assert resp.json() == {"distance": "Unknown", "duration": "Unknown"}


def test_route_through_here_provider(make_client):
    transport = RecordingTransport(here_ok)
    client = make_client(make_here_provider(transport))

    resp = client.post("/maps/route", json=ROUTE_BODY)

    assert resp.status_code == 200
    assert resp.json() == {"distance": "1.5", "duration": "2"}
    assert len(transport.requests) == 1
    sent = transport.requests[0].url
    assert sent.params["transportMode"] == "car"
    assert TEST_API_KEY not in resp.text


# -----------------------------------------------------------------------------
# /maps/static
# -----------------------------------------------------------------------------

def test_static_returns_cached_png(client, stub_provider):
    resp = client.get("/maps/static", params={"lat": "6.5", "lng": "3.3"})
    _assert_cached_png(resp)
    assert resp.content == stub_provider.image
    assert stub_provider.calls == ["static"]


def test_static_missing_coordinates_is_400(client, stub_provider):
    resp = client.get("/maps/static", params={"lat": "6.5"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing coordinates"
    assert stub_provider.calls == []


def test_static_without_key_redirects_to_placeholder(make_client):
    transport = RecordingTransport(here_ok)
    client = make_client(make_here_provider(transport, api_key=None))

    resp = client.get(
        "/maps/static",
        params={"lat": "6.5", "lng": "3.3", "width": "320", "height": "240"},
        follow_redirects=False,
    )

    assert 300 <= resp.status_code < 400
    location = httpx.URL(resp.headers["location"])
    assert location.path == "/placeholder.svg"
    assert location.params["width"] == "320"
    assert location.params["height"] == "240"
    assert location.params["text"] == "Map Unavailable"
    assert transport.requests == []


def test_static_upstream_failure_redirects(make_client):
    client = make_client(StubMapsProvider(fail=True))

    resp = client.get("/maps/static", params={"lat": "6.5", "lng": "3.3"}, follow_redirects=False)

    assert resp.status_code == 307
    assert "placeholder.svg" in resp.headers["location"]
    assert TEST_API_KEY not in resp.headers["location"]


def test_static_redirect_target_renders(make_client):
    client = make_client(StubMapsProvider(fail=True))

    resp = client.get("/maps/static", params={"lat": "6.5", "lng": "3.3"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert "Map Unavailable" in resp.text


# -----------------------------------------------------------------------------
# /maps/tile
# -----------------------------------------------------------------------------

def test_tile_returns_cached_png(make_client):
    transport = RecordingTransport(here_ok)
    client = make_client(make_here_provider(transport))

    resp = client.get("/maps/tile", params={"x": "1", "y": "2", "z": "3"})

    _assert_cached_png(resp)
    assert transport.requests[0].url.path.endswith("/3/1/2/256/png8")


def test_tile_missing_coordinates_is_400(client, stub_provider):
    resp = client.get("/maps/tile", params={"x": "1", "y": "2"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing tile coordinates"
    assert stub_provider.calls == []


def test_tile_without_key_is_500(make_client):
    client = make_client(StubMapsProvider(configured=False))

    resp = client.get("/maps/tile", params={"x": "0", "y": "0", "z": "0"})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Maps API key not configured"


def test_tile_upstream_failure_is_json_error(make_client):
    client = make_client(StubMapsProvider(fail=True))

    resp = client.get("/maps/tile", params={"x": "0", "y": "0", "z": "0"})

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to fetch map tile"}


# -----------------------------------------------------------------------------
# /maps/geocode, /health
# -----------------------------------------------------------------------------

def test_geocode_returns_first_address(client):
    resp = client.get("/maps/geocode", params={"lat": "6.43", "lng": "3.42"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["label"] == "12 Admiralty Way, Lekki, Lagos, Nigeria"
    assert data["address"]["city"] == "Lagos"


def test_geocode_upstream_failure(make_client):
    client = make_client(StubMapsProvider(fail=True))
    resp = client.get("/maps/geocode", params={"lat": "6.43", "lng": "3.42"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to reverse geocode"


def test_health_reports_provider(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "operational"
    assert data["maps_service"] == "stub"
    assert data["maps_configured"] is True


def test_health_degraded_without_key(make_client):
    client = make_client(StubMapsProvider(configured=False))
    assert client.get("/health").json()["status"] == "degraded"


# -----------------------------------------------------------------------------
# default configuration
# -----------------------------------------------------------------------------

@pytest.fixture
def unconfigured_client(monkeypatch):
    """The app as deployed with no ENV_MODE and no HERE_API_KEY."""
    monkeypatch.delenv("ENV_MODE", raising=False)
    monkeypatch.delenv("HERE_API_KEY", raising=False)
    get_settings.cache_clear()
    reset_maps_provider()
    yield TestClient(app)
    get_settings.cache_clear()
    reset_maps_provider()


def test_default_settings_use_here_provider(unconfigured_client):
    data = unconfigured_client.get("/health").json()
    assert data["maps_service"] == "here"
    assert data["maps_configured"] is False


def test_default_settings_without_key_fail_fast(unconfigured_client):
    route = unconfigured_client.post("/maps/route", json=ROUTE_BODY)
    tile = unconfigured_client.get("/maps/tile", params={"x": "0", "y": "0", "z": "0"})
    static = unconfigured_client.get(
        "/maps/static", params={"lat": "6.5", "lng": "3.3"}, follow_redirects=False
    )

    assert route.status_code == 500
    assert route.json()["error"] == "Maps API key not configured"
    assert tile.status_code == 500
    assert tile.json()["error"] == "Maps API key not configured"
    assert 300 <= static.status_code < 400
    assert "placeholder.svg" in static.headers["location"]
