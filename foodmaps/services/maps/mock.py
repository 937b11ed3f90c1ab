"""
Mock Maps Provider Implementation

Simulates the HERE APIs without making real calls.
Used in development mode (ENV_MODE=development) for local work on the
map components.

Behavior:
    - Needs no API key
    - Routes use straight-line (haversine) distance with a road factor
      and an average city speed, returned in HERE's payload shape
    - Static maps and tiles are a 1x1 transparent PNG
    - Simulates network latency and a random failure rate for testing
      error handling
"""

import asyncio
import base64
import math
import random
import logging
from typing import Any

from foodmaps.core.exceptions import UpstreamFailure
from foodmaps.schemas import (
    GeocodeRequest,
    RouteRequest,
    StaticMapRequest,
    TileRequest,
)
from foodmaps.services.maps.base import BaseMapsProvider, MapImage

logger = logging.getLogger(__name__)

PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

EARTH_RADIUS_M = 6_371_000


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two WGS84 points, in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


class MockMapsProvider(BaseMapsProvider):
    """
    Mock implementation of the maps provider.

    Attributes:
        failure_rate: Probability of simulated provider failure (0.0-1.0)
        min_latency: Minimum response time in seconds
        max_latency: Maximum response time in seconds

    Example:
        >>> provider = MockMapsProvider(failure_rate=0.0)
        >>> payload = await provider.fetch_route(route_request)
        >>> payload["routes"][0]["sections"][0]["summary"]["length"]
        1834
    """

    # Streets are rarely straight lines
    ROAD_FACTOR = 1.3
    # Average urban driving speed, metres per second (~30 km/h)
    CITY_SPEED_MPS = 30_000 / 3600

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.05,
        max_latency: float = 0.2,
    ):
        """
        Initialize the mock maps provider.

        Args:
            failure_rate: Probability of provider failure (default: 5%)
            min_latency: Minimum response time in seconds
            max_latency: Maximum response time in seconds
        """
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        logger.info(f"MockMapsProvider initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @property
    def is_configured(self) -> bool:
        return True

    async def _simulate_call(self, operation: str) -> None:
        """Sleep for a random latency, then maybe fail like a real provider."""
        await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

        if random.random() < self.failure_rate:
            logger.debug(f"Mock: Simulated {operation} failure")
            raise UpstreamFailure(
                f"Mock {operation} error",
                upstream_status=503,
                reason="Service Unavailable",
            )

    # -------------------------------------------------------------------------
    # URL builders
    # -------------------------------------------------------------------------

    def build_route_url(self, request: RouteRequest) -> str:
        return f"mock://routes?origin={request.origin}&destination={request.destination}"

    def build_static_url(self, request: StaticMapRequest) -> str:
        return (
            f"mock://mapview?lat={request.lat}&lon={request.lng}"
            f"&zoom={request.zoom}&w={request.width}&h={request.height}"
        )

    def build_tile_url(self, request: TileRequest) -> str:
        return f"mock://maptile/{request.z}/{request.x}/{request.y}"

    def build_geocode_url(self, request: GeocodeRequest) -> str:
        return f"mock://revgeocode?at={request.lat},{request.lng}"

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def fetch_route(self, request: RouteRequest) -> dict[str, Any]:
        await self._simulate_call("routing")

        straight = haversine_meters(
            request.start_lat, request.start_lng, request.end_lat, request.end_lng
        )
        length = round(straight * self.ROAD_FACTOR)
        duration = round(length / self.CITY_SPEED_MPS)

        logger.debug(f"Mock: Route {request.origin} -> {request.destination} = {length}m/{duration}s")

        return {
            "routes": [
                {
                    "id": "mock-route",
                    "sections": [
                        {
                            "id": "mock-section",
                            "type": "vehicle",
                            "summary": {"length": length, "duration": duration},
                            "transport": {"mode": "car"},
                        }
                    ],
                }
            ]
        }

    async def fetch_static_map(self, request: StaticMapRequest) -> MapImage:
        await self._simulate_call("static map")
        return MapImage(content=PLACEHOLDER_PNG, upstream_content_type="image/png")

    async def fetch_tile(self, request: TileRequest) -> MapImage:
        await self._simulate_call("map tile")
        return MapImage(content=PLACEHOLDER_PNG, upstream_content_type="image/png")

    async def reverse_geocode(self, request: GeocodeRequest) -> dict[str, Any]:
        await self._simulate_call("reverse geocoding")
        label = f"Mock Street {abs(int(request.lat * 1000)) % 200 + 1}, Lagos, Nigeria"
        return {
            "items": [
                {
                    "title": label,
                    "resultType": "street",
                    "address": {
                        "label": label,
                        "countryCode": "NGA",
                        "countryName": "Nigeria",
                        "city": "Lagos",
                        "street": "Mock Street",
                    },
                    "position": {"lat": request.lat, "lng": request.lng},
                }
            ]
        }

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Maps health check passed")
        return True
