"""
HERE Maps Provider Implementation

Production implementation over the HERE REST APIs.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - HERE_API_KEY must be set in environment
    - Routing v8, Map Image v1.6, Map Tile v2.1 and Geocoding & Search v7
      must be enabled for the key

All calls go through one httpx.AsyncClient with an explicit timeout.
Failures are never retried; a single non-2xx answer or transport error
surfaces as UpstreamFailure.
"""

import logging
import re
from typing import Any, Optional

import httpx

from foodmaps.core.exceptions import UpstreamFailure
from foodmaps.schemas import (
    GeocodeRequest,
    RouteRequest,
    StaticMapRequest,
    TileRequest,
)
from foodmaps.services.maps.base import BaseMapsProvider, MapImage

logger = logging.getLogger(__name__)

_API_KEY_PATTERN = re.compile(r"(apiKey=)[^&]+")


def redact_url(url: str) -> str:
    """Hide the apiKey query value so a URL can be logged."""
    return _API_KEY_PATTERN.sub(r"\1***", url)


class HereMapsProvider(BaseMapsProvider):
    """
    Production HERE Maps provider.

    Integrates with HERE for:
        - Car routing (distance/duration summary)
        - Static map rendering
        - Base map tiles
        - Reverse geocoding

    Example:
        >>> provider = HereMapsProvider(api_key="...")
        >>> payload = await provider.fetch_route(route_request)
        >>> payload["routes"][0]["sections"][0]["summary"]
        {'length': 1500, 'duration': 61, ...}
    """

    ROUTING_URL = "https://router.hereapi.com/v8/routes"
    STATIC_URL = "https://image.maps.ls.hereapi.com/mia/1.6/mapview"
    TILE_URL = (
        "https://1.base.maps.ls.hereapi.com/maptile/2.1/maptile/newest/normal.day/"
        "{z}/{x}/{y}/256/png8"
    )
    GEOCODE_URL = "https://revgeocode.search.hereapi.com/v1/revgeocode"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            api_key: HERE API key; None leaves the provider unconfigured
            timeout: Seconds before any single call is abandoned
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._api_key = api_key
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

        if api_key:
            logger.info(f"HereMapsProvider initialized (timeout={timeout}s)")
        else:
            logger.warning("HereMapsProvider initialized without HERE_API_KEY")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "here"

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    # -------------------------------------------------------------------------
    # URL builders
    # -------------------------------------------------------------------------

    def _url(self, base: str, params: Optional[dict[str, Any]] = None) -> str:
        query = dict(params or {})
        query["apiKey"] = self._api_key
        return str(httpx.URL(base, params=query))

    def build_route_url(self, request: RouteRequest) -> str:
        return self._url(self.ROUTING_URL, {
            "transportMode": "car",
            "origin": request.origin,
            "destination": request.destination,
            "return": "polyline,summary",
        })

    def build_static_url(self, request: StaticMapRequest) -> str:
        return self._url(self.STATIC_URL, {
            "lat": request.lat,
            "lon": request.lng,
            "zoom": request.zoom,
            "w": request.width,
            "h": request.height,
        })

    def build_tile_url(self, request: TileRequest) -> str:
        return self._url(self.TILE_URL.format(z=request.z, x=request.x, y=request.y))

    def build_geocode_url(self, request: GeocodeRequest) -> str:
        return self._url(self.GEOCODE_URL, {"at": f"{request.lat},{request.lng}"})

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _get(self, url: str, operation: str) -> httpx.Response:
        """
        Perform one GET against HERE.

        Raises:
            UpstreamFailure: On timeout, transport error or non-2xx status
        """
        logger.debug(f"HERE: {operation} - GET {redact_url(url)}")

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException:
            raise UpstreamFailure(f"HERE {operation} timed out", reason="timeout")
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"HERE {operation} unreachable", reason=type(e).__name__)

        if not response.is_success:
            raise UpstreamFailure(
                f"HERE {operation} error",
                upstream_status=response.status_code,
                reason=response.reason_phrase,
            )

        return response

    async def _get_json(self, url: str, operation: str) -> Any:
        response = await self._get(url, operation)
        try:
            return response.json()
        except ValueError:
            raise UpstreamFailure(f"HERE {operation} returned invalid JSON")

    async def _get_image(self, url: str, operation: str) -> MapImage:
        response = await self._get(url, operation)
        return MapImage(
            content=response.content,
            upstream_content_type=response.headers.get("content-type"),
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def fetch_route(self, request: RouteRequest) -> dict[str, Any]:
        self.ensure_configured()
        return await self._get_json(self.build_route_url(request), "routing")

    async def fetch_static_map(self, request: StaticMapRequest) -> MapImage:
        self.ensure_configured()
        return await self._get_image(self.build_static_url(request), "static map")

    async def fetch_tile(self, request: TileRequest) -> MapImage:
        self.ensure_configured()
        return await self._get_image(self.build_tile_url(request), "map tile")

    async def reverse_geocode(self, request: GeocodeRequest) -> dict[str, Any]:
        self.ensure_configured()
        return await self._get_json(self.build_geocode_url(request), "reverse geocoding")

    async def health_check(self) -> bool:
        """
        Report whether HERE can be called.

        Only checks configuration; polling HERE on every health probe
        would spend quota.
        """
        if not self.is_configured:
            logger.error("HERE: Health check failed - HERE_API_KEY not configured")
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
