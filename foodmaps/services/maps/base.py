"""
Maps Provider Abstract Base Class

Defines the interface contract for every mapping provider the proxy can
front. All provider-specific URL construction lives behind the build_*_url
methods, so the API key touches exactly one component and a different
provider can be substituted without touching the endpoints.

Implementations:
    - HereMapsProvider: production, HERE Routing/Map Image/Map Tile/Geocoding
    - MockMapsProvider: development, no key and no network
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from foodmaps.core.exceptions import ConfigurationError
from foodmaps.schemas import (
    GeocodeRequest,
    RouteRequest,
    StaticMapRequest,
    TileRequest,
)


@dataclass
class RouteResult:
    """
    Route summary as shown to the client.

    Attributes:
        distance: Kilometres with one decimal, or "Unknown"
        duration: Whole minutes rounded up, or "Unknown"
    """
    distance: str
    duration: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"distance": self.distance, "duration": self.duration}


@dataclass
class MapImage:
    """
    Image bytes fetched from the provider.

    Attributes:
        content: Raw image bytes, passed through unchanged
        upstream_content_type: Content type reported by the provider
    """
    content: bytes
    upstream_content_type: Optional[str] = None


class BaseMapsProvider(ABC):
    """
    Abstract base class for mapping providers.

    Every fetch_* method raises UpstreamFailure when the provider answers
    with a non-2xx status or cannot be reached, and ConfigurationError when
    a key is required but absent. Validation has already happened by the
    time these methods are called.

    Example:
        >>> provider = get_maps_provider()
        >>> provider.ensure_configured()
        >>> payload = await provider.fetch_route(route_request)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the maps provider.

        Returns:
            str: Provider name (e.g., "mock", "here")
        """
        pass

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider has the credentials it needs."""
        pass

    def ensure_configured(self) -> None:
        """
        Fail fast when credentials are missing.

        Raises:
            ConfigurationError: If the provider API key is absent
        """
        if not self.is_configured:
            raise ConfigurationError()

    # -------------------------------------------------------------------------
    # URL builders
    # -------------------------------------------------------------------------

    @abstractmethod
    def build_route_url(self, request: RouteRequest) -> str:
        """Build the provider routing URL (car, polyline + summary)."""
        pass

    @abstractmethod
    def build_static_url(self, request: StaticMapRequest) -> str:
        """Build the provider URL for a rendered map centred on a point."""
        pass

    @abstractmethod
    def build_tile_url(self, request: TileRequest) -> str:
        """Build the provider URL for one (z, x, y) tile."""
        pass

    @abstractmethod
    def build_geocode_url(self, request: GeocodeRequest) -> str:
        """Build the provider reverse-geocoding URL."""
        pass

    # -------------------------------------------------------------------------
    # Upstream operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_route(self, request: RouteRequest) -> dict[str, Any]:
        """
        Calculate a car route between two points.

        Returns:
            The provider's JSON payload, expected to contain
            routes[0].sections[0].summary.{length,duration}
        """
        pass

    @abstractmethod
    async def fetch_static_map(self, request: StaticMapRequest) -> MapImage:
        """Fetch a rendered static map image."""
        pass

    @abstractmethod
    async def fetch_tile(self, request: TileRequest) -> MapImage:
        """Fetch a single map tile image."""
        pass

    @abstractmethod
    async def reverse_geocode(self, request: GeocodeRequest) -> dict[str, Any]:
        """
        Look up the address at a coordinate.

        Returns:
            The provider's JSON payload, expected to contain items[0].address
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify the provider is usable.

        Returns:
            bool: True if service is operational
        """
        pass

    async def aclose(self) -> None:
        """Release network resources. Called at application shutdown."""
        return None
