"""Data model definitions — planets, signs, queries and computed results."""

import math
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum

from planetaryhours import timeutil
from planetaryhours.errors import InvalidInputError


class Planet(str, Enum):
    """Tracked bodies. Only the seven classical ones rule hours."""

    SUN = "sun"
    MOON = "moon"
    MERCURY = "mercury"
    VENUS = "venus"
    MARS = "mars"
    JUPITER = "jupiter"
    SATURN = "saturn"
    URANUS = "uranus"
    NEPTUNE = "neptune"
    PLUTO = "pluto"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def symbol(self) -> str:
        return _PLANET_SYMBOLS[self]

    @property
    def is_classical(self) -> bool:
        return self in CLASSICAL_PLANETS

    @classmethod
    def parse(cls, value: str) -> "Planet":
        """Case-insensitive lookup. Raises InvalidInputError on unknown ids."""
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError) as e:
            raise InvalidInputError(f"Unknown planet: {value!r}") from e


_PLANET_SYMBOLS: dict[Planet, str] = {
    Planet.SUN: "☉",
    Planet.MOON: "☽",
    Planet.MERCURY: "☿",
    Planet.VENUS: "♀",
    Planet.MARS: "♂",
    Planet.JUPITER: "♃",
    Planet.SATURN: "♄",
    Planet.URANUS: "♅",
    Planet.NEPTUNE: "♆",
    Planet.PLUTO: "♇",
}

CLASSICAL_PLANETS: tuple[Planet, ...] = (
    Planet.SUN,
    Planet.MOON,
    Planet.MERCURY,
    Planet.VENUS,
    Planet.MARS,
    Planet.JUPITER,
    Planet.SATURN,
)

# Output order of the positions query
TRACKED_BODIES: tuple[Planet, ...] = CLASSICAL_PLANETS + (
    Planet.URANUS,
    Planet.NEPTUNE,
    Planet.PLUTO,
)

CHALDEAN_ORDER: tuple[Planet, ...] = (
    Planet.SATURN,
    Planet.JUPITER,
    Planet.MARS,
    Planet.SUN,
    Planet.VENUS,
    Planet.MERCURY,
    Planet.MOON,
)

# Index 0=Sunday .. 6=Saturday
WEEKDAY_RULERS: tuple[Planet, ...] = (
    Planet.SUN,
    Planet.MOON,
    Planet.MARS,
    Planet.MERCURY,
    Planet.JUPITER,
    Planet.VENUS,
    Planet.SATURN,
)


class ZodiacSign(str, Enum):
    """Tropical signs, 30° each starting at 0° Aries."""

    ARIES = "Aries"
    TAURUS = "Taurus"
    GEMINI = "Gemini"
    CANCER = "Cancer"
    LEO = "Leo"
    VIRGO = "Virgo"
    LIBRA = "Libra"
    SCORPIO = "Scorpio"
    SAGITTARIUS = "Sagittarius"
    CAPRICORN = "Capricorn"
    AQUARIUS = "Aquarius"
    PISCES = "Pisces"

    @property
    def ordinal(self) -> int:
        return _SIGN_ORDER.index(self)

    @classmethod
    def parse(cls, value: str) -> "ZodiacSign":
        """Case-insensitive lookup. Raises InvalidInputError on unknown names."""
        try:
            return cls(value.strip().capitalize())
        except (AttributeError, ValueError) as e:
            raise InvalidInputError(f"Unknown zodiac sign: {value!r}") from e


_SIGN_ORDER: tuple[ZodiacSign, ...] = tuple(ZodiacSign)


class Dignity(str, Enum):
    """Essential dignity of a planet in a sign."""

    DOMICILE = "Domicile"
    EXALTATION = "Exaltation"
    DETRIMENT = "Detriment"
    FALL = "Fall"
    PEREGRINE = "Peregrine"


@dataclass(frozen=True)
class GeoQuery:
    """Validated location + civil date + zone. Input to the scheduler."""

    latitude: float  # Decimal degrees, north positive
    longitude: float  # Decimal degrees, east positive
    civil_date: date  # A date in `timezone`, not an instant
    timezone: str  # IANA zone id ("America/Denver")
    defaulted: bool = False  # True when lenient parsing replaced bad coordinates

    @property
    def zone(self) -> tzinfo:
        return timeutil.resolve_zone(self.timezone)

    @classmethod
    def create(
        cls,
        latitude: float,
        longitude: float,
        civil_date: date | str,
        timezone: str,
        lenient: bool = False,
    ) -> "GeoQuery":
        """Validate raw values and build a GeoQuery.

        Args:
            latitude: Degrees in [-90, 90].
            longitude: Degrees in [-180, 180].
            civil_date: A date or a "YYYY-MM-DD" string.
            timezone: IANA zone id.
            lenient: Replace invalid coordinates with 0,0 and mark the query
                as defaulted instead of raising.

        Returns:
            A GeoQuery whose fields are known to be usable.

        Raises:
            InvalidInputError: On a malformed date, an unknown zone, or bad
                coordinates when ``lenient`` is False.
        """
        defaulted = False
        try:
            lat, lon = validate_coordinates(latitude, longitude)
        except InvalidInputError:
            if not lenient:
                raise
            lat, lon, defaulted = 0.0, 0.0, True

        if isinstance(civil_date, str):
            civil_date = timeutil.parse_civil_date(civil_date)
        timeutil.resolve_zone(timezone)
        return cls(
            latitude=lat,
            longitude=lon,
            civil_date=civil_date,
            timezone=timezone.strip(),
            defaulted=defaulted,
        )


def validate_coordinates(latitude: float, longitude: float) -> tuple[float, float]:
    """Return (lat, lon) as floats or raise InvalidInputError."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(
            f"Latitude/longitude must be numbers: {latitude!r}, {longitude!r}"
        ) from e
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise InvalidInputError(f"Latitude out of range [-90, 90]: {latitude!r}")
    if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
        raise InvalidInputError(f"Longitude out of range [-180, 180]: {longitude!r}")
    return lat, lon


@dataclass(frozen=True)
class SunEvents:
    """Sunrise, sunset and the following sunrise bounding one planetary day."""

    sunrise_utc: datetime
    sunset_utc: datetime
    next_sunrise_utc: datetime

    @property
    def day_minutes(self) -> float:
        return (self.sunset_utc - self.sunrise_utc).total_seconds() / 60.0

    @property
    def night_minutes(self) -> float:
        return (self.next_sunrise_utc - self.sunset_utc).total_seconds() / 60.0


@dataclass(frozen=True)
class PlanetaryHourInterval:
    """One of the 24 unequal hours. Start inclusive, end exclusive."""

    index: int  # 1..24; 1-12 day, 13-24 night
    ruler: Planet
    is_day: bool
    start_utc: datetime
    end_utc: datetime
    start_local: datetime  # Same instant as start_utc, in the query zone
    end_local: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start_utc <= timeutil.to_utc(moment) < self.end_utc

    def to_dict(self, now: datetime | None = None) -> dict[str, object]:
        """JSON payload. ``isCurrent`` is only present when ``now`` is given."""
        payload: dict[str, object] = {
            "index": self.index,
            "ruler": self.ruler.value,
            "isDay": self.is_day,
            "startUtc": timeutil.iso_utc(self.start_utc),
            "endUtc": timeutil.iso_utc(self.end_utc),
            "startLocal": timeutil.iso_local(self.start_local, self.start_local.tzinfo),
            "endLocal": timeutil.iso_local(self.end_local, self.end_local.tzinfo),
        }
        if now is not None:
            payload["isCurrent"] = self.contains(now)
        return payload


@dataclass(frozen=True)
class PlanetaryHours:
    """The full schedule for one civil day at one location."""

    query: GeoQuery
    sun_events: SunEvents
    day_ruler: Planet
    hours: tuple[PlanetaryHourInterval, ...]

    @property
    def start_utc(self) -> datetime:
        return self.hours[0].start_utc

    @property
    def end_utc(self) -> datetime:
        return self.hours[-1].end_utc

    def relative_day(self, moment: datetime) -> int:
        """-1 if ``moment`` precedes this schedule, +1 if at/after its end, else 0.

        A long-lived caller holding a schedule re-queries the neighbouring
        civil day whenever this stops returning 0.
        """
        moment = timeutil.to_utc(moment)
        if moment < self.start_utc:
            return -1
        if moment >= self.end_utc:
            return 1
        return 0

    def hour_at(self, moment: datetime) -> PlanetaryHourInterval | None:
        """The interval containing ``moment``, or None outside this schedule."""
        if self.relative_day(moment) != 0:
            return None
        moment = timeutil.to_utc(moment)
        lo, hi = 0, len(self.hours) - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            hour = self.hours[mid]
            if moment < hour.start_utc:
                hi = mid - 1
            elif moment >= hour.end_utc:
                lo = mid + 1
            else:
                return hour
        return None

    def to_dict(self, now: datetime | None = None) -> dict[str, object]:
        """Response payload of the planetary-hours query."""
        return {
            "date": self.query.civil_date.isoformat(),
            "timezone": self.query.timezone,
            "latitude": self.query.latitude,
            "longitude": self.query.longitude,
            "sunriseUtc": timeutil.iso_utc(self.sun_events.sunrise_utc),
            "sunsetUtc": timeutil.iso_utc(self.sun_events.sunset_utc),
            "nextSunriseUtc": timeutil.iso_utc(self.sun_events.next_sunrise_utc),
            "dayRuler": self.day_ruler.value,
            "hours": [h.to_dict(now) for h in self.hours],
        }


@dataclass(frozen=True)
class PlanetaryPosition:
    """Geocentric apparent ecliptic position of one body at one instant."""

    planet: Planet
    longitude: float  # [0, 360), true ecliptic and equinox of date
    sign: ZodiacSign
    degree_in_sign: float  # [0, 30)
    is_retrograde: bool
    house: int | None = None  # Whole-sign house 1..12 when a location was given

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "planet": self.planet.value,
            "longitude": self.longitude,
            "sign": self.sign.value,
            "degreeInSign": self.degree_in_sign,
            "isRetrograde": self.is_retrograde,
        }
        if self.house is not None:
            payload["house"] = self.house
        payload["name"] = self.planet.display_name
        payload["symbol"] = self.planet.symbol
        return payload


@dataclass(frozen=True)
class Positions:
    """Result of the positions query."""

    instant_utc: datetime
    positions: tuple[PlanetaryPosition, ...]
    ascendant: float | None = None  # Ecliptic longitude, only with a location

    def get(self, planet: Planet) -> PlanetaryPosition:
        for position in self.positions:
            if position.planet is planet:
                return position
        raise KeyError(planet)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "instantUtc": timeutil.iso_utc(self.instant_utc),
            "positions": [p.to_dict() for p in self.positions],
        }
        if self.ascendant is not None:
            payload["ascendant"] = self.ascendant
        return payload
