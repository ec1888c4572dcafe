"""Positions service — ecliptic longitudes, signs, retrograde flags and whole-sign houses."""

import logging
import math
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from pytz import utc

from planetaryhours.cache import TTLCache, round_coord
from planetaryhours.ephemeris import Ephemeris
from planetaryhours.errors import InvalidInputError
from planetaryhours.models import (
    TRACKED_BODIES,
    Planet,
    PlanetaryPosition,
    Positions,
    validate_coordinates,
)
from planetaryhours.timeutil import iso_utc, julian_centuries, normalize_180, normalize_360, to_utc
from planetaryhours.zodiac import sign_of, whole_sign_house

logger = logging.getLogger(__name__)

# Backward step of the finite-difference retrograde test. Much shorter than
# any retrograde arc, but the sign of the difference is unreliable within a
# few hours of a station.
RETROGRADE_WINDOW = timedelta(hours=6)

# The luminaries never move retrograde and are not sampled
NEVER_RETROGRADE = frozenset({Planet.SUN, Planet.MOON})


def mean_obliquity(jd_tt: float) -> float:
    """Mean obliquity of the ecliptic in degrees (linear IAU term)."""
    return 23.439291 - 0.0130042 * julian_centuries(jd_tt)


def ascendant_longitude(
    sidereal_hours: float, jd_tt: float, latitude: float, longitude: float
) -> float:
    """Simplified ascendant ecliptic longitude, degrees [0, 360).

    Args:
        sidereal_hours: Greenwich apparent sidereal time in hours.
        jd_tt: Terrestrial Time Julian date of the instant.
        latitude: Observer latitude in degrees.
        longitude: Observer longitude in degrees, east positive.

    Returns:
        ``atan2(sin(LST)·cos(ε) + tan(φ)·sin(ε), cos(LST))`` in degrees. Used
        only to anchor whole-sign houses, not as a chart-grade ascendant.
    """
    eps = math.radians(mean_obliquity(jd_tt))
    phi = math.radians(latitude)
    theta = math.radians(normalize_360(sidereal_hours * 15.0 + longitude))
    y = math.sin(theta) * math.cos(eps) + math.tan(phi) * math.sin(eps)
    x = math.cos(theta)
    return normalize_360(math.degrees(math.atan2(y, x)))


class PositionsService:
    """Computes ``Positions`` snapshots from an injected ``Ephemeris``."""

    def __init__(
        self,
        ephemeris: Ephemeris,
        cache: TTLCache[tuple, Positions] | None = None,
        instant_ttl: float = 7 * 24 * 60 * 60,
        now_ttl: float = 30.0,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._ephemeris = ephemeris
        self._cache = cache
        self._instant_ttl = instant_ttl
        self._now_ttl = now_ttl
        self._now = now or (lambda: datetime.now(utc))

    def longitude(self, body: Planet, moment: datetime) -> float:
        return normalize_360(self._ephemeris.ecliptic_longitude(body, moment))

    def is_retrograde(self, body: Planet, moment: datetime) -> bool:
        """True when the longitude decreased over the preceding six hours."""
        if body in NEVER_RETROGRADE:
            return False
        now_lon = self.longitude(body, moment)
        prev_lon = self.longitude(body, moment - RETROGRADE_WINDOW)
        return normalize_180(now_lon - prev_lon) < 0

    def ascendant(self, moment: datetime, latitude: float, longitude: float) -> float:
        return ascendant_longitude(
            self._ephemeris.sidereal_time(moment),
            self._ephemeris.julian_date_tt(moment),
            latitude,
            longitude,
        )

    def compute(
        self,
        moment: datetime,
        latitude: float | None = None,
        longitude: float | None = None,
        bodies: Iterable[Planet] = TRACKED_BODIES,
    ) -> Positions:
        """Positions of ``bodies`` at ``moment``, uncached.

        Houses are assigned only when both ``latitude`` and ``longitude`` are
        given.

        Raises:
            InvalidInputError: If only one coordinate is given or either is
                out of range.
        """
        moment = to_utc(moment)
        asc: float | None = None
        if latitude is not None or longitude is not None:
            if latitude is None or longitude is None:
                raise InvalidInputError("Both latitude and longitude are required for houses")
            latitude, longitude = validate_coordinates(latitude, longitude)
            asc = self.ascendant(moment, latitude, longitude)

        positions = []
        for body in bodies:
            lon = self.longitude(body, moment)
            sign, degree = sign_of(lon)
            positions.append(
                PlanetaryPosition(
                    planet=body,
                    longitude=lon,
                    sign=sign,
                    degree_in_sign=degree,
                    is_retrograde=self.is_retrograde(body, moment),
                    house=None if asc is None else whole_sign_house(lon, asc),
                )
            )
        return Positions(instant_utc=moment, positions=tuple(positions), ascendant=asc)

    def snapshot(
        self,
        moment: datetime | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Positions:
        """Positions at ``moment`` (default now), served from the cache when possible.

        A request without ``moment`` is cached under "now" for a short time,
        explicit instants for much longer.
        """
        is_now = moment is None
        moment = to_utc(self._now()) if is_now else to_utc(moment)
        if self._cache is None:
            return self.compute(moment, latitude, longitude)

        location = (
            None
            if latitude is None or longitude is None
            else (round_coord(latitude), round_coord(longitude))
        )
        key = ("now" if is_now else iso_utc(moment), location)
        self._cache.prune()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = self.compute(moment, latitude, longitude)
        self._cache.set(key, result, self._now_ttl if is_now else self._instant_ttl)
        logger.debug("Cached positions for %s", key[0])
        return result
