"""
FastAPI Application Entry Point

Food Discovery Maps Proxy
Mediates every browser request for mapping functionality so the
provider's secret API key never reaches the client.

Endpoints:
    - POST /maps/init: Map bootstrap data (no upstream call)
    - POST /maps/route: Car route distance/duration
    - GET /maps/static: Static map image (placeholder redirect on failure)
    - GET /maps/tile: Single map tile image
    - GET /maps/geocode: Reverse geocoding
    - GET /placeholder.svg: Fallback image for static maps
    - GET /health: System health check
"""

import html
import logging
import time
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager
from urllib.parse import urlencode, urljoin

from fastapi import FastAPI, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from foodmaps.core.config import get_settings, setup_logging
from foodmaps.core.exceptions import MapsError
from foodmaps.schemas import (
    ErrorResponse,
    GeocodeResponse,
    HealthResponse,
    MapInitResponse,
    RouteResponse,
    StaticMapRequest,
)
from foodmaps.services.maps import BaseMapsProvider, get_maps_provider
from foodmaps.services.maps.transform import (
    extract_address,
    image_headers,
    summarize_route,
)
from foodmaps.services.maps.validation import (
    validate_geocode_request,
    validate_init_request,
    validate_route_request,
    validate_static_request,
    validate_tile_request,
)

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    provider = get_maps_provider()
    logger.info(f"✅ Maps Provider: {provider.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await provider.aclose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Server-side proxy for map initialization, routing, static maps, "
        "tiles and reverse geocoding. The provider API key stays on the server."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

async def read_json_body(request: Request) -> Any:
    """Parse the request body; an unreadable body counts as an empty one."""
    try:
        return await request.json()
    except ValueError:
        logger.warning(f"Unreadable JSON body on {request.url.path}")
        return None


def placeholder_url(request: Request, width: int, height: int) -> str:
    """Absolute URL of the placeholder image shown when a static map fails."""
    query = urlencode({"height": height, "width": width, "text": "Map Unavailable"})
    return urljoin(str(request.base_url), f"{settings.placeholder_path}?{query}")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🗺️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    provider: BaseMapsProvider = Depends(get_maps_provider),
) -> HealthResponse:
    """Verify the maps provider is usable."""
    healthy = await provider.health_check()

    return HealthResponse(
        status="operational" if healthy else "degraded",
        environment=settings.env_mode.value,
        maps_service=provider.provider_name,
        maps_configured=provider.is_configured,
        timestamp=datetime.now(),
    )


# =============================================================================
# MAPS ENDPOINTS
# =============================================================================

@app.post(
    "/maps/init",
    response_model=MapInitResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Maps"],
    summary="Initialize Map",
)
async def init_map(request: Request) -> MapInitResponse:
    """
    Return map bootstrap data without exposing the API key.

    Zoom defaults to 14; no upstream call is made.
    """
    body = await read_json_body(request)
    init_request = validate_init_request(body).unwrap()

    return MapInitResponse(
        center=init_request.center,
        zoom=init_request.zoom,
        timestamp=int(time.time() * 1000),
    )


@app.post(
    "/maps/route",
    response_model=RouteResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Maps"],
    summary="Calculate Route",
)
async def calculate_route(
    request: Request,
    provider: BaseMapsProvider = Depends(get_maps_provider),
) -> RouteResponse:
    """
    Calculate a car route and return only distance (km) and duration (min).

    A provider payload without a route summary yields "Unknown" for both.
    """
    body = await read_json_body(request)
    route_request = validate_route_request(body).unwrap()
    provider.ensure_configured()

    try:
        payload = await provider.fetch_route(route_request)
    except Exception as e:
        logger.error(f"Error calculating route: {e}")
        raise MapsError("Failed to calculate route")

    result = summarize_route(payload)
    logger.info(
        f"Route {route_request.origin} -> {route_request.destination}: "
        f"{result.distance} km, {result.duration} min"
    )
    return RouteResponse(**result.to_dict())


@app.get(
    "/maps/static",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}},
        307: {"description": "Redirect to the placeholder image"},
        400: {"model": ErrorResponse},
    },
    tags=["Maps"],
    summary="Static Map Image",
)
async def static_map(
    request: Request,
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    zoom: Optional[str] = Query(None),
    width: Optional[str] = Query(None),
    height: Optional[str] = Query(None),
    provider: BaseMapsProvider = Depends(get_maps_provider),
) -> Response:
    """
    Render a static map centred on a coordinate.

    Used as an <img> source, so any failure after validation (including a
    missing API key) redirects to a placeholder image instead of returning
    a JSON error.
    """
    static_request: StaticMapRequest = validate_static_request(
        {"lat": lat, "lng": lng, "zoom": zoom, "width": width, "height": height},
        default_zoom=settings.default_zoom,
        default_width=settings.default_static_width,
        default_height=settings.default_static_height,
    ).unwrap()

    try:
        provider.ensure_configured()
        image = await provider.fetch_static_map(static_request)
    except Exception as e:
        logger.error(f"Error generating static map: {e}")
        return RedirectResponse(
            placeholder_url(request, static_request.width, static_request.height)
        )

    return Response(
        content=image.content,
        headers=image_headers(settings.image_cache_control),
    )


@app.get(
    "/maps/tile",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    tags=["Maps"],
    summary="Map Tile Image",
)
async def map_tile(
    x: Optional[str] = Query(None),
    y: Optional[str] = Query(None),
    z: Optional[str] = Query(None),
    provider: BaseMapsProvider = Depends(get_maps_provider),
) -> Response:
    """Proxy one slippy-map tile; failures are reported as JSON errors."""
    tile_request = validate_tile_request({"x": x, "y": y, "z": z}).unwrap()
    provider.ensure_configured()

    try:
        image = await provider.fetch_tile(tile_request)
    except Exception as e:
        logger.error(f"Error fetching map tile {tile_request.z}/{tile_request.x}/{tile_request.y}: {e}")
        raise MapsError("Failed to fetch map tile")

    return Response(
        content=image.content,
        headers=image_headers(settings.image_cache_control),
    )


@app.get(
    "/maps/geocode",
    response_model=GeocodeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Maps"],
    summary="Reverse Geocode",
)
async def reverse_geocode(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    provider: BaseMapsProvider = Depends(get_maps_provider),
) -> GeocodeResponse:
    """Return the address closest to a coordinate."""
    geocode_request = validate_geocode_request({"lat": lat, "lng": lng}).unwrap()
    provider.ensure_configured()

    try:
        payload = await provider.reverse_geocode(geocode_request)
    except Exception as e:
        logger.error(f"Error reverse geocoding: {e}")
        raise MapsError("Failed to reverse geocode")

    address, label = extract_address(payload)
    return GeocodeResponse(address=address, label=label)


@app.get(
    "/placeholder.svg",
    response_class=Response,
    responses={200: {"content": {"image/svg+xml": {}}}},
    tags=["Maps"],
    summary="Placeholder Image",
)
async def placeholder_image(
    width: int = Query(600, ge=1, le=2048),
    height: int = Query(400, ge=1, le=2048),
    text: str = Query("Map Unavailable", max_length=100),
) -> Response:
    """Grey box with a caption, shown where a static map could not render."""
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        f'<rect width="100%" height="100%" fill="#e5e7eb"/>'
        f'<text x="50%" y="50%" fill="#6b7280" font-family="sans-serif" font-size="16" '
        f'text-anchor="middle" dominant-baseline="middle">{html.escape(text)}</text>'
        f'</svg>'
    )
    return Response(
        content=svg,
        media_type="image/svg+xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(MapsError)
async def maps_error_handler(request: Request, exc: MapsError) -> JSONResponse:
    """Render proxy errors with their client-safe message only."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(exclude_none=True),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            detail=str(exc) if settings.debug else "An unexpected error occurred",
        ).model_dump(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "foodmaps.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
