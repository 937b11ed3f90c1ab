"""
Maps Request Validation

Pure predicates that decide whether a request may proceed to the provider.
They never mutate their input and never touch the network; each returns a
ValidationResult carrying either the parsed request model or the client-safe
error message.

Two notions of "missing" apply:
    - JSON bodies (init, route): any falsy value is missing (None, "", 0).
    - Query strings (static, tile, geocode): only absent or empty is missing,
      so "0" is a valid tile index.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from foodmaps.core.exceptions import InvalidRequest
from foodmaps.schemas import (
    GeocodeRequest,
    LatLng,
    MapInitRequest,
    RouteRequest,
    StaticMapRequest,
    TileRequest,
)


DEFAULT_ZOOM = 14
DEFAULT_STATIC_WIDTH = 600
DEFAULT_STATIC_HEIGHT = 400

MAX_ZOOM = 20
MAX_IMAGE_SIZE = 2048

ROUTE_FIELDS = ("startLat", "startLng", "endLat", "endLng")


@dataclass
class ValidationResult:
    """
    Outcome of validating one request.

    Attributes:
        is_valid: Whether the request may proceed
        value: Parsed request model when valid
        error_message: Client-safe description when invalid
        error_code: Machine-readable error code when invalid
    """
    is_valid: bool
    value: Any = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(is_valid=True, value=value)

    @classmethod
    def fail(cls, message: str, code: str) -> "ValidationResult":
        return cls(is_valid=False, error_message=message, error_code=code)

    def unwrap(self) -> Any:
        """Return the parsed value or raise InvalidRequest."""
        if not self.is_valid:
            raise InvalidRequest(self.error_message or "Invalid request")
        return self.value


# =============================================================================
# PARSING HELPERS
# =============================================================================

def _as_number(value: Any) -> Optional[float]:
    """Parse a JSON number or numeric string; None if not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> Optional[int]:
    """Parse a whole number from a query string or JSON number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _keep_int(number: float):
    """Keep integral JSON numbers as ints so 14 is echoed as 14, not 14.0."""
    return int(number) if number.is_integer() else number


def _valid_lat(lat: float) -> bool:
    return -90.0 <= lat <= 90.0


def _valid_lng(lng: float) -> bool:
    return -180.0 <= lng <= 180.0


def _query_missing(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


# =============================================================================
# VALIDATORS
# =============================================================================

def validate_init_request(body: Any) -> ValidationResult:
    """Validate the body of POST /maps/init; zoom falls back to 14."""
    center = body.get("center") if isinstance(body, Mapping) else None
    if not isinstance(center, Mapping) or not center.get("lat") or not center.get("lng"):
        return ValidationResult.fail("Invalid center coordinates", "invalid_center")

    lat = _as_number(center["lat"])
    lng = _as_number(center["lng"])
    if lat is None or lng is None or not _valid_lat(lat) or not _valid_lng(lng):
        return ValidationResult.fail("Invalid center coordinates", "invalid_center")

    zoom: Any = DEFAULT_ZOOM
    if body.get("zoom"):
        parsed = _as_number(body["zoom"])
        if parsed is None or not 0 <= parsed <= MAX_ZOOM:
            return ValidationResult.fail("Invalid zoom level", "invalid_zoom")
        zoom = _keep_int(parsed)

    return ValidationResult.ok(
        MapInitRequest(center=LatLng(lat=_keep_int(lat), lng=_keep_int(lng)), zoom=zoom)
    )


def validate_route_request(body: Any) -> ValidationResult:
    """
    Validate the body of POST /maps/route.

    All four coordinates must be present and truthy, then numeric and
    within WGS84 range.
    """
    if not isinstance(body, Mapping) or any(not body.get(name) for name in ROUTE_FIELDS):
        return ValidationResult.fail("Missing route coordinates", "missing_coordinates")

    parsed = {name: _as_number(body[name]) for name in ROUTE_FIELDS}
    if any(value is None for value in parsed.values()):
        return ValidationResult.fail("Invalid route coordinates", "invalid_coordinates")

    if not (
        _valid_lat(parsed["startLat"]) and _valid_lng(parsed["startLng"])
        and _valid_lat(parsed["endLat"]) and _valid_lng(parsed["endLng"])
    ):
        return ValidationResult.fail("Invalid route coordinates", "invalid_coordinates")

    return ValidationResult.ok(RouteRequest(**parsed))


def _validate_point(query: Mapping[str, Optional[str]]) -> ValidationResult:
    if _query_missing(query.get("lat")) or _query_missing(query.get("lng")):
        return ValidationResult.fail("Missing coordinates", "missing_coordinates")

    lat = _as_number(query["lat"])
    lng = _as_number(query["lng"])
    if lat is None or lng is None or not _valid_lat(lat) or not _valid_lng(lng):
        return ValidationResult.fail("Invalid coordinates", "invalid_coordinates")

    return ValidationResult.ok((lat, lng))


def validate_static_request(
    query: Mapping[str, Optional[str]],
    default_zoom: int = DEFAULT_ZOOM,
    default_width: int = DEFAULT_STATIC_WIDTH,
    default_height: int = DEFAULT_STATIC_HEIGHT,
) -> ValidationResult:
    """Validate the query of GET /maps/static."""
    point = _validate_point(query)
    if not point.is_valid:
        return point
    lat, lng = point.value

    sizes = {}
    for name, default in (("zoom", default_zoom), ("width", default_width), ("height", default_height)):
        raw = query.get(name)
        if _query_missing(raw):
            sizes[name] = default
            continue
        value = _as_int(raw)
        if value is None or value <= 0:
            return ValidationResult.fail("Invalid map dimensions", "invalid_dimensions")
        sizes[name] = value

    if sizes["zoom"] > MAX_ZOOM or sizes["width"] > MAX_IMAGE_SIZE or sizes["height"] > MAX_IMAGE_SIZE:
        return ValidationResult.fail("Invalid map dimensions", "invalid_dimensions")

    return ValidationResult.ok(StaticMapRequest(lat=lat, lng=lng, **sizes))


def validate_tile_request(query: Mapping[str, Optional[str]]) -> ValidationResult:
    """
    Validate the query of GET /maps/tile.

    z must be a zoom level the provider serves, and x/y must address a
    tile that exists at that zoom (0 <= x, y < 2**z).
    """
    if any(_query_missing(query.get(name)) for name in ("x", "y", "z")):
        return ValidationResult.fail("Missing tile coordinates", "missing_coordinates")

    x, y, z = (_as_int(query[name]) for name in ("x", "y", "z"))
    if x is None or y is None or z is None or not 0 <= z <= MAX_ZOOM:
        return ValidationResult.fail("Invalid tile coordinates", "invalid_coordinates")

    limit = 2 ** z
    if not (0 <= x < limit and 0 <= y < limit):
        return ValidationResult.fail("Invalid tile coordinates", "invalid_coordinates")

    return ValidationResult.ok(TileRequest(x=x, y=y, z=z))


def validate_geocode_request(query: Mapping[str, Optional[str]]) -> ValidationResult:
    """Validate the query of GET /maps/geocode."""
    point = _validate_point(query)
    if not point.is_valid:
        return point
    lat, lng = point.value
    return ValidationResult.ok(GeocodeRequest(lat=lat, lng=lng))
