"""HTTP API — planetary hours, planetary positions and dignity lookups.

Endpoints:
  GET /api/planetary-hours          — 24 hours for a civil date and location
  GET /api/planetary-hours/current  — The hour containing now
  GET /api/positions                — Ecliptic positions at an instant
  GET /api/dignity                  — Essential dignity of a planet in a sign
  GET /api/health                   — Health check
"""

import logging
from collections.abc import Callable
from datetime import datetime

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pytz import utc

from planetaryhours import dignities
from planetaryhours.cache import TTLCache
from planetaryhours.config import Settings, load_settings
from planetaryhours.ephemeris import Ephemeris, SkyfieldEphemeris
from planetaryhours.errors import InvalidInputError, PolarDayOrNightError
from planetaryhours.hours import PlanetaryHourScheduler
from planetaryhours.models import GeoQuery, Planet, ZodiacSign, validate_coordinates
from planetaryhours.positions import PositionsService
from planetaryhours.timeutil import civil_date_at, parse_instant, resolve_zone, zone_for_location

logger = logging.getLogger(__name__)

SHORT_CACHE = "public, max-age=30, s-maxage=60, stale-while-revalidate=300"
LONG_CACHE = "public, max-age=3600, s-maxage=86400, stale-while-revalidate=604800"


class ApiError(BaseModel):
    error: str
    kind: str


def _location(lat: str | None, lon: str | None) -> tuple[float, float]:
    if lat is None or lon is None:
        raise InvalidInputError("Query parameters lat and lon are required")
    return validate_coordinates(lat, lon)


def _zone_id(tz: str | None, latitude: float, longitude: float) -> str:
    if tz is None or not tz.strip():
        return zone_for_location(latitude, longitude)
    return tz.strip()


def create_app(
    settings: Settings | None = None,
    ephemeris: Ephemeris | None = None,
    now: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        ephemeris: Astronomical backend; a skyfield ephemeris is loaded from
            ``settings`` when omitted.
        now: Clock override returning an aware datetime.

    Returns:
        The configured application. Scheduler and positions service, each
        with its own TTL cache, live for the lifetime of the app.
    """
    settings = settings or load_settings()
    ephemeris = ephemeris or SkyfieldEphemeris.from_settings(settings)
    clock = now or (lambda: datetime.now(utc))

    scheduler = PlanetaryHourScheduler(
        ephemeris,
        cache=TTLCache(settings.cache_size),
        cache_ttl=settings.cache_ttl,
        today_ttl=settings.today_ttl,
        now=clock,
    )
    positions = PositionsService(
        ephemeris,
        cache=TTLCache(settings.cache_size),
        instant_ttl=settings.positions_ttl,
        now_ttl=settings.today_ttl,
        now=clock,
    )

    app = FastAPI(
        title="Planetary Hours API",
        version="1.0.0",
        description="Chaldean planetary hours, planetary positions and essential dignities",
    )

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(request: Request, exc: InvalidInputError):
        logger.info("Rejected %s: %s", request.url.path, exc)
        payload = ApiError(error=str(exc), kind="invalid_input")
        return JSONResponse(status_code=400, content=payload.model_dump())

    @app.exception_handler(PolarDayOrNightError)
    async def _polar(request: Request, exc: PolarDayOrNightError):
        logger.info("No sun events for %s: %s", request.url.path, exc)
        payload = ApiError(error=str(exc), kind="polar")
        return JSONResponse(status_code=422, content=payload.model_dump())

    @app.exception_handler(RequestValidationError)
    async def _validation(request: Request, exc: RequestValidationError):
        payload = ApiError(error=f"Invalid request: {exc.errors()}", kind="invalid_input")
        return JSONResponse(status_code=400, content=payload.model_dump())

    errors = {400: {"model": ApiError}, 422: {"model": ApiError}}

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/planetary-hours", responses=errors)
    def planetary_hours(
        response: Response,
        lat: str | None = None,
        lon: str | None = None,
        date: str | None = None,
        tz: str | None = None,
    ) -> dict:
        latitude, longitude = _location(lat, lon)
        zone_id = _zone_id(tz, latitude, longitude)
        moment = clock()
        civil_date = date or civil_date_at(moment, resolve_zone(zone_id))
        query = GeoQuery.create(latitude, longitude, civil_date, zone_id)

        schedule = scheduler.schedule(query)
        response.headers["Cache-Control"] = (
            SHORT_CACHE if scheduler.is_today(query) else LONG_CACHE
        )
        return schedule.to_dict(now=moment)

    @app.get("/api/planetary-hours/current", responses=errors)
    def current_planetary_hour(
        response: Response,
        lat: str | None = None,
        lon: str | None = None,
        tz: str | None = None,
    ) -> dict:
        latitude, longitude = _location(lat, lon)
        zone_id = _zone_id(tz, latitude, longitude)
        moment = clock()
        schedule, hour = scheduler.current_hour(latitude, longitude, zone_id, now=moment)
        response.headers["Cache-Control"] = SHORT_CACHE
        return {
            "date": schedule.query.civil_date.isoformat(),
            "timezone": schedule.query.timezone,
            "dayRuler": schedule.day_ruler.value,
            "hour": hour.to_dict(now=moment),
        }

    @app.get("/api/positions", responses=errors)
    def planetary_positions(
        response: Response,
        timestamp: str | None = None,
        lat: str | None = None,
        lon: str | None = None,
    ) -> dict:
        instant = parse_instant(timestamp) if timestamp else None
        latitude = longitude = None
        if lat is not None or lon is not None:
            latitude, longitude = _location(lat, lon)
        result = positions.snapshot(instant, latitude, longitude)
        response.headers["Cache-Control"] = SHORT_CACHE if instant is None else LONG_CACHE
        return result.to_dict()

    @app.get("/api/dignity", responses=errors)
    def dignity(response: Response, planet: str, sign: str) -> dict:
        reading = dignities.describe(Planet.parse(planet), ZodiacSign.parse(sign))
        response.headers["Cache-Control"] = LONG_CACHE
        return reading.to_dict()

    return app
