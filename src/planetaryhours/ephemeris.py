"""Ephemeris adapter — skyfield rise/set search, ecliptic longitudes and sidereal time.

Everything astronomical that the scheduler and the positions service need goes
through the small ``Ephemeris`` protocol below, so tests can swap in a fake.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from pytz import utc
from skyfield import almanac
from skyfield.api import Loader, wgs84
from skyfield.errors import EphemerisRangeError as SkyfieldRangeError
from skyfield.framelib import ecliptic_frame

from planetaryhours.config import Settings
from planetaryhours.errors import EphemerisError, EphemerisRangeError
from planetaryhours.models import Planet
from planetaryhours.timeutil import normalize_360, to_utc

logger = logging.getLogger(__name__)

# Refraction (34') plus solar semi-diameter (16') below the geometric horizon
SUN_HORIZON_DEG = -0.8333

_SKYFIELD_NAMES: dict[Planet, str] = {
    Planet.SUN: "sun",
    Planet.MOON: "moon",
    Planet.MERCURY: "mercury",
    Planet.VENUS: "venus",
    Planet.MARS: "mars",
    # DE421 only carries barycenters for the outer systems
    Planet.JUPITER: "jupiter barycenter",
    Planet.SATURN: "saturn barycenter",
    Planet.URANUS: "uranus barycenter",
    Planet.NEPTUNE: "neptune barycenter",
    Planet.PLUTO: "pluto barycenter",
}


class Ephemeris(Protocol):
    """Astronomical primitives consumed by the scheduler and positions service."""

    def sunrises(
        self, latitude: float, longitude: float, start: datetime, end: datetime
    ) -> list[datetime]:
        """UTC instants of every real sunrise in [start, end], ascending."""
        ...

    def sunsets(
        self, latitude: float, longitude: float, start: datetime, end: datetime
    ) -> list[datetime]:
        """UTC instants of every real sunset in [start, end], ascending."""
        ...

    def ecliptic_longitude(self, body: Planet, moment: datetime) -> float:
        """Geocentric apparent ecliptic longitude of date, degrees [0, 360)."""
        ...

    def sidereal_time(self, moment: datetime) -> float:
        """Greenwich apparent sidereal time in hours."""
        ...

    def julian_date_tt(self, moment: datetime) -> float:
        """Terrestrial Time Julian date."""
        ...


class SkyfieldEphemeris:
    """``Ephemeris`` backed by skyfield and a JPL kernel (DE421 by default).

    Construct once per process and inject it; loading the kernel is the
    expensive part. All methods are read-only and safe to share across threads.
    """

    def __init__(self, loader: Loader, kernel: str = "de421.bsp") -> None:
        try:
            self._eph = loader(kernel)
        except OSError as e:
            raise EphemerisError(f"Could not load ephemeris kernel {kernel}: {e}") from e
        self._ts = loader.timescale()
        self._earth = self._eph["earth"]
        self._sun = self._eph["sun"]
        self._bodies = {p: self._eph[name] for p, name in _SKYFIELD_NAMES.items()}
        logger.info("Loaded ephemeris kernel %s", kernel)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SkyfieldEphemeris":
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return cls(Loader(str(settings.data_dir), verbose=False), settings.ephemeris)

    def _time(self, moment: datetime):
        return self._ts.from_datetime(to_utc(moment))

    def _events(
        self,
        finder: Callable,
        latitude: float,
        longitude: float,
        start: datetime,
        end: datetime,
    ) -> list[datetime]:
        observer = self._earth + wgs84.latlon(
            latitude_degrees=latitude, longitude_degrees=longitude
        )
        try:
            times, crossed = finder(
                observer,
                self._sun,
                self._time(start),
                self._time(end),
                horizon_degrees=SUN_HORIZON_DEG,
            )
        except SkyfieldRangeError as e:
            raise EphemerisRangeError(str(e)) from e
        # crossed=False marks a closest approach that never reached the horizon
        return [t.utc_datetime().astimezone(utc) for t, ok in zip(times, crossed) if ok]

    def sunrises(
        self, latitude: float, longitude: float, start: datetime, end: datetime
    ) -> list[datetime]:
        return self._events(almanac.find_risings, latitude, longitude, start, end)

    def sunsets(
        self, latitude: float, longitude: float, start: datetime, end: datetime
    ) -> list[datetime]:
        return self._events(almanac.find_settings, latitude, longitude, start, end)

    def ecliptic_longitude(self, body: Planet, moment: datetime) -> float:
        try:
            apparent = self._earth.at(self._time(moment)).observe(self._bodies[body]).apparent()
        except SkyfieldRangeError as e:
            raise EphemerisRangeError(str(e)) from e
        _, lon, _ = apparent.frame_latlon(ecliptic_frame)
        return normalize_360(float(lon.degrees))

    def sidereal_time(self, moment: datetime) -> float:
        return float(self._time(moment).gast)

    def julian_date_tt(self, moment: datetime) -> float:
        return float(self._time(moment).tt)
