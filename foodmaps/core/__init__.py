"""
Core module initialization.
Exports configuration, the key store accessor and error kinds.
"""

from foodmaps.core.config import get_settings, get_api_key, Settings, EnvironmentMode
from foodmaps.core.exceptions import (
    MapsError,
    InvalidRequest,
    ConfigurationError,
    UpstreamFailure,
    PartialDataError,
)

__all__ = [
    "get_settings",
    "get_api_key",
    "Settings",
    "EnvironmentMode",
    "MapsError",
    "InvalidRequest",
    "ConfigurationError",
    "UpstreamFailure",
    "PartialDataError",
]
