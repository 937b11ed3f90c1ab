"""
Pydantic Schemas for Maps Proxy Requests and Responses

Request models are produced by the validators in
foodmaps.services.maps.validation (which own the 400 error messages);
response models shape what the browser receives. No schema ever carries
the provider API key.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, Union
from datetime import datetime


Number = Union[int, float]


# =============================================================================
# SHARED
# =============================================================================

class LatLng(BaseModel):
    """A WGS84 coordinate pair."""
    lat: Number = Field(..., examples=[6.5244])
    lng: Number = Field(..., examples=[3.3792])


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class MapInitRequest(BaseModel):
    """Body of POST /maps/init."""
    center: LatLng
    zoom: Optional[Number] = Field(None, examples=[14])


class RouteRequest(BaseModel):
    """Body of POST /maps/route (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True)

    start_lat: float = Field(..., alias="startLat", examples=[6.5244])
    start_lng: float = Field(..., alias="startLng", examples=[3.3792])
    end_lat: float = Field(..., alias="endLat", examples=[6.4281])
    end_lng: float = Field(..., alias="endLng", examples=[3.4219])

    @property
    def origin(self) -> str:
        return f"{self.start_lat},{self.start_lng}"

    @property
    def destination(self) -> str:
        return f"{self.end_lat},{self.end_lng}"


class StaticMapRequest(BaseModel):
    """Query of GET /maps/static."""
    lat: float
    lng: float
    zoom: int = 14
    width: int = 600
    height: int = 400


class TileRequest(BaseModel):
    """Query of GET /maps/tile (slippy-map addressing)."""
    x: int
    y: int
    z: int


class GeocodeRequest(BaseModel):
    """Query of GET /maps/geocode."""
    lat: float
    lng: float


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MapInitResponse(BaseModel):
    """Map bootstrap data; deliberately contains no credentials."""
    center: LatLng
    zoom: Number
    timestamp: int = Field(..., description="Unix epoch milliseconds")


class RouteResponse(BaseModel):
    """Route summary reduced to what the directions page shows."""
    distance: str = Field(..., examples=["1.5"], description="Kilometres, one decimal, or 'Unknown'")
    duration: str = Field(..., examples=["2"], description="Minutes rounded up, or 'Unknown'")


class GeocodeResponse(BaseModel):
    """Reverse geocoding result."""
    address: Optional[dict[str, Any]] = None
    label: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    environment: str
    maps_service: str
    maps_configured: bool
    timestamp: datetime
