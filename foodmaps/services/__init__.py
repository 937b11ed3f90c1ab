"""
                        Services Module

Contains the maps provider integration with the hybrid architecture
pattern: a Mock implementation for development and a Real (HERE)
implementation for staging and production.

Services:
    - maps: provider interface, validation and response transformation
"""

from foodmaps.services.maps import get_maps_provider

__all__ = ["get_maps_provider"]
