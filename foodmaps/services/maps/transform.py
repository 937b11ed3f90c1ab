"""
Maps Response Transformation

Reduces provider payloads to the minimal shape the browser needs and
enforces the unit conventions: kilometres with one decimal, minutes
rounded up.
"""

import logging
import math
from typing import Any, Optional

from foodmaps.core.exceptions import PartialDataError
from foodmaps.services.maps.base import RouteResult

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
IMAGE_CONTENT_TYPE = "image/png"


def format_distance(meters: float) -> str:
    """1500 -> "1.5" (kilometres, one decimal place)."""
    return f"{meters / 1000:.1f}"


def format_duration(seconds: float) -> str:
    """61 -> "2". Rounded up so an ETA never understates travel time."""
    return str(math.ceil(seconds / 60))


def extract_route_summary(payload: Any) -> tuple[float, float]:
    """
    Pull (length in metres, duration in seconds) out of a routing payload.

    Raises:
        PartialDataError: If routes[0].sections[0].summary is missing
            or does not hold numeric length/duration values
    """
    try:
        summary = payload["routes"][0]["sections"][0]["summary"]
        length = summary["length"]
        duration = summary["duration"]
    except (KeyError, IndexError, TypeError) as e:
        raise PartialDataError(f"Route payload missing summary: {e!r}")

    for value in (length, duration):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PartialDataError(f"Route summary has non-numeric value: {value!r}")
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise PartialDataError(f"Route summary has non-finite value: {value!r}")

    return float(length), float(duration)


def summarize_route(payload: Any) -> RouteResult:
    """
    Turn a routing payload into the client's {distance, duration}.

    An unexpected payload shape degrades to "Unknown" for both fields
    instead of failing the request.
    """
    try:
        length, duration = extract_route_summary(payload)
    except PartialDataError as e:
        logger.warning(f"Route summary unavailable, returning '{UNKNOWN}': {e}")
        return RouteResult(distance=UNKNOWN, duration=UNKNOWN)

    return RouteResult(
        distance=format_distance(length),
        duration=format_duration(duration),
    )


def image_headers(cache_control: str) -> dict[str, str]:
    """Headers attached uniformly to proxied static maps and tiles."""
    return {
        "Content-Type": IMAGE_CONTENT_TYPE,
        "Cache-Control": cache_control,
    }


def extract_address(payload: Any) -> tuple[Optional[dict[str, Any]], Optional[str]]:
    """
    Keep only items[0].address from a reverse-geocoding payload.

    Returns:
        (address, label); both None when the provider found nothing
    """
    try:
        address = payload["items"][0]["address"]
    except (KeyError, IndexError, TypeError):
        return None, None

    if not isinstance(address, dict):
        return None, None

    label = address.get("label")
    return address, label if isinstance(label, str) else None
