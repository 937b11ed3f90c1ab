"""
Maps Provider Factory

Provides a single entry point for obtaining a maps provider instance.
Automatically selects the mock or HERE provider based on ENV_MODE.

Usage:
    from foodmaps.services.maps import get_maps_provider

    provider = get_maps_provider()
    provider.ensure_configured()
    payload = await provider.fetch_route(route_request)
"""

import logging
from functools import lru_cache

from foodmaps.core.config import get_api_key, get_settings
from foodmaps.services.maps.base import (
    BaseMapsProvider,
    MapImage,
    RouteResult,
)
from foodmaps.services.maps.mock import MockMapsProvider
from foodmaps.services.maps.here import HereMapsProvider

logger = logging.getLogger(__name__)


@lru_cache()
def get_maps_provider() -> BaseMapsProvider:
    """
    Get the configured maps provider instance.

    Returns MockMapsProvider in development and HereMapsProvider in
    staging/production. A missing HERE key does not stop the provider
    from being built; key-dependent operations fail with
    ConfigurationError instead.

    Returns:
        BaseMapsProvider: Configured maps provider instance
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Maps Provider: Using MockMapsProvider (development mode)")
        return MockMapsProvider(
            failure_rate=settings.mock_failure_rate,
            min_latency=0.05,
            max_latency=0.2,
        )
    else:
        logger.info(
            f"Maps Provider: Using HereMapsProvider "
            f"({settings.env_mode.value} mode)"
        )
        return HereMapsProvider(
            api_key=get_api_key(),
            timeout=settings.maps_request_timeout,
        )


def reset_maps_provider() -> None:
    """
    Clear the cached provider instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_maps_provider.cache_clear()
    logger.debug("Maps provider cache cleared")


__all__ = [
    "get_maps_provider",
    "reset_maps_provider",
    "BaseMapsProvider",
    "MapImage",
    "RouteResult",
    "MockMapsProvider",
    "HereMapsProvider",
]
