"""Command line entry point. Prints JSON results on stdout."""

import argparse
import json
import logging
import sys
from datetime import datetime

from pytz import utc

from planetaryhours import dignities
from planetaryhours.config import Settings, configure_logging, load_settings
from planetaryhours.ephemeris import Ephemeris, SkyfieldEphemeris
from planetaryhours.errors import InvalidInputError, PlanetaryHoursError
from planetaryhours.hours import PlanetaryHourScheduler
from planetaryhours.models import GeoQuery, Planet, ZodiacSign, validate_coordinates
from planetaryhours.positions import PositionsService
from planetaryhours.timeutil import civil_date_at, parse_instant, resolve_zone, zone_for_location

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planetary-hours",
        description="Planetary hours, planetary positions and essential dignities.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _location(p: argparse.ArgumentParser, required: bool = True) -> None:
        p.add_argument("--lat", type=float, required=required, help="Latitude in degrees")
        p.add_argument("--lon", type=float, required=required, help="Longitude in degrees")

    hours = sub.add_parser("hours", help="24 planetary hours of a civil date")
    _location(hours)
    hours.add_argument("--date", help="YYYY-MM-DD, default today in the zone")
    hours.add_argument("--tz", help="IANA zone id, default looked up from the location")

    current = sub.add_parser("current", help="Planetary hour containing now")
    _location(current)
    current.add_argument("--tz", help="IANA zone id, default looked up from the location")
    current.add_argument("--at", help="ISO-8601 instant to use instead of now")

    positions = sub.add_parser("positions", help="Ecliptic positions at an instant")
    _location(positions, required=False)
    positions.add_argument("--at", help="ISO-8601 instant, default now")

    dignity = sub.add_parser("dignity", help="Essential dignity of a planet in a sign")
    dignity.add_argument("planet")
    dignity.add_argument("sign")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")
    return parser


def _location_and_zone(args: argparse.Namespace) -> tuple[float, float, str]:
    latitude, longitude = validate_coordinates(args.lat, args.lon)
    return latitude, longitude, args.tz or zone_for_location(latitude, longitude)


def _run(args: argparse.Namespace, settings: Settings, ephemeris: Ephemeris | None) -> object:
    if args.command == "dignity":
        return dignities.describe(Planet.parse(args.planet), ZodiacSign.parse(args.sign)).to_dict()

    ephemeris = ephemeris or SkyfieldEphemeris.from_settings(settings)
    now = datetime.now(utc)

    if args.command == "hours":
        latitude, longitude, zone_id = _location_and_zone(args)
        day = args.date or civil_date_at(now, resolve_zone(zone_id))
        query = GeoQuery.create(latitude, longitude, day, zone_id)
        return PlanetaryHourScheduler(ephemeris).schedule(query).to_dict(now=now)

    if args.command == "current":
        latitude, longitude, zone_id = _location_and_zone(args)
        moment = parse_instant(args.at) if args.at else now
        schedule, hour = PlanetaryHourScheduler(ephemeris).current_hour(
            latitude, longitude, zone_id, now=moment
        )
        return {
            "date": schedule.query.civil_date.isoformat(),
            "timezone": schedule.query.timezone,
            "dayRuler": schedule.day_ruler.value,
            "hour": hour.to_dict(now=moment),
        }

    if args.command == "positions":
        moment = parse_instant(args.at) if args.at else now
        return PositionsService(ephemeris).compute(moment, args.lat, args.lon).to_dict()

    raise ValueError(f"Unknown command: {args.command}")


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    import uvicorn

    from planetaryhours.api import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Serving on %s:%d", host, port)
    uvicorn.run(create_app(settings), host=host, port=port)


def main(argv: list[str] | None = None, ephemeris: Ephemeris | None = None) -> int:
    """Run one command.

    Returns:
        0 on success, 2 when the input was rejected, 1 when the computation
        failed.
    """
    args = _build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(settings)

    if args.command == "serve":
        _serve(args, settings)
        return 0

    try:
        result = _run(args, settings, ephemeris)
    except InvalidInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except PlanetaryHoursError as e:
        logger.error("Computation failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
