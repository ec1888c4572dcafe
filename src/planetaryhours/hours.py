"""Planetary hour scheduler — sun events, Chaldean rulers and the 24 unequal hours."""

import dataclasses
import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, tzinfo

from pytz import utc

from planetaryhours.cache import TTLCache, round_coord
from planetaryhours.ephemeris import Ephemeris
from planetaryhours.errors import (
    ComputationInconsistencyError,
    DayBoundaryRecursionError,
    PolarDayOrNightError,
)
from planetaryhours.models import (
    CHALDEAN_ORDER,
    WEEKDAY_RULERS,
    GeoQuery,
    Planet,
    PlanetaryHourInterval,
    PlanetaryHours,
    SunEvents,
)
from planetaryhours.timeutil import (
    civil_date_at,
    local_noon,
    resolve_zone,
    to_utc,
    weekday_index,
)

logger = logging.getLogger(__name__)

# Search windows around the local-noon anchor
SUNRISE_LOOKBACK = timedelta(days=2)
SUNSET_LOOKAHEAD = timedelta(days=2)
NEXT_SUNRISE_LOOKAHEAD = timedelta(days=3)
MAX_DAY_LENGTH = timedelta(hours=24)

HOURS_PER_HALF = 12

CacheKey = tuple[str, str, float, float]


def day_ruler_for(day: date) -> Planet:
    """Planet ruling the weekday of a civil date (Sunday=Sun .. Saturday=Saturn)."""
    return WEEKDAY_RULERS[weekday_index(day)]


def hour_ruler(day_ruler: Planet, hour_number: int) -> Planet:
    """Ruler of planetary hour ``hour_number`` (1..24) on a day ruled by ``day_ruler``.

    The first hour belongs to the day ruler; each following hour advances one
    step through the Chaldean order.

    Raises:
        ValueError: If ``hour_number`` is outside 1..24 or ``day_ruler`` is
            not one of the seven classical planets.
    """
    if not 1 <= hour_number <= 2 * HOURS_PER_HALF:
        raise ValueError(f"Hour number out of range 1..24: {hour_number}")
    start = CHALDEAN_ORDER.index(day_ruler)
    return CHALDEAN_ORDER[(start + hour_number - 1) % len(CHALDEAN_ORDER)]


def find_sun_events(
    ephemeris: Ephemeris, latitude: float, longitude: float, anchor: datetime
) -> SunEvents:
    """Locate the sunrise before ``anchor`` and the sunset and sunrise after it.

    Args:
        ephemeris: Rise/set provider.
        latitude: Observer latitude in degrees.
        longitude: Observer longitude in degrees.
        anchor: Local noon of the civil day, as an aware datetime.

    Returns:
        SunEvents for the planetary day containing ``anchor``.

    Raises:
        PolarDayOrNightError: When any of the three events is missing from
            its search window, or when sunrise and sunset are a full
            day or more apart.
        ComputationInconsistencyError: When the events are out of order.
    """
    anchor = to_utc(anchor)

    def _missing(what: str) -> PolarDayOrNightError:
        return PolarDayOrNightError(
            f"No {what} found near {anchor.isoformat()} at "
            f"lat={latitude}, lon={longitude} (polar day or night)",
            latitude,
            longitude,
        )

    rises = ephemeris.sunrises(latitude, longitude, anchor - SUNRISE_LOOKBACK, anchor)
    if not rises:
        raise _missing("sunrise")
    sunrise = rises[-1]

    sets = [
        s
        for s in ephemeris.sunsets(latitude, longitude, anchor, anchor + SUNSET_LOOKAHEAD)
        if s > sunrise
    ]
    if not sets:
        raise _missing("sunset")
    sunset = sets[0]
    if sunset - sunrise >= MAX_DAY_LENGTH:
        # Last rise before noon came on an earlier civil day
        raise PolarDayOrNightError(
            f"Sun above the horizon from {sunrise.isoformat()} to {sunset.isoformat()} "
            f"at lat={latitude}, lon={longitude} (polar day)",
            latitude,
            longitude,
        )

    later = [
        r
        for r in ephemeris.sunrises(
            latitude, longitude, anchor, anchor + NEXT_SUNRISE_LOOKAHEAD
        )
        if r > sunset
    ]
    if not later:
        raise _missing("next sunrise")
    next_sunrise = later[0]

    events = SunEvents(
        sunrise_utc=to_utc(sunrise),
        sunset_utc=to_utc(sunset),
        next_sunrise_utc=to_utc(next_sunrise),
    )
    if not (events.day_minutes > 0 and events.night_minutes > 0):
        raise ComputationInconsistencyError(
            f"Sun events out of order: {events.sunrise_utc} / "
            f"{events.sunset_utc} / {events.next_sunrise_utc}"
        )
    return events


def build_hours(
    events: SunEvents, day_ruler: Planet, zone: tzinfo
) -> tuple[PlanetaryHourInterval, ...]:
    """Partition [sunrise, next sunrise) into 12 day and 12 night hours.

    Hour 12 ends exactly at sunset and hour 24 exactly at the next sunrise,
    so floating point drift never opens a gap at either boundary.
    """
    day_hour_minutes = events.day_minutes / HOURS_PER_HALF
    night_hour_minutes = events.night_minutes / HOURS_PER_HALF

    hours: list[PlanetaryHourInterval] = []
    for i in range(2 * HOURS_PER_HALF):
        is_day = i < HOURS_PER_HALF
        if is_day:
            base, step, n = events.sunrise_utc, day_hour_minutes, i
            boundary = events.sunset_utc
        else:
            base, step, n = events.sunset_utc, night_hour_minutes, i - HOURS_PER_HALF
            boundary = events.next_sunrise_utc
        start = base + timedelta(minutes=n * step)
        if n == HOURS_PER_HALF - 1:
            end = boundary
        else:
            end = base + timedelta(minutes=(n + 1) * step)
        hours.append(
            PlanetaryHourInterval(
                index=i + 1,
                ruler=hour_ruler(day_ruler, i + 1),
                is_day=is_day,
                start_utc=start,
                end_utc=end,
                start_local=start.astimezone(zone),
                end_local=end.astimezone(zone),
            )
        )

    for prev, nxt in zip(hours, hours[1:]):
        if prev.end_utc != nxt.start_utc or prev.end_utc <= prev.start_utc:
            raise ComputationInconsistencyError(
                f"Planetary hours {prev.index} and {nxt.index} are not contiguous"
            )
    return tuple(hours)


class PlanetaryHourScheduler:
    """Computes planetary hour schedules for a location, zone and civil date.

    Stateless apart from the optional TTL cache. The cache stores schedules
    only; "is current" is always derived from the clock at read time.
    """

    def __init__(
        self,
        ephemeris: Ephemeris,
        cache: TTLCache[CacheKey, PlanetaryHours] | None = None,
        cache_ttl: float = 24 * 60 * 60,
        today_ttl: float = 30.0,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._ephemeris = ephemeris
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._today_ttl = today_ttl
        self._now = now or (lambda: datetime.now(utc))

    def now(self) -> datetime:
        return to_utc(self._now())

    def sun_events(self, query: GeoQuery) -> SunEvents:
        anchor = local_noon(query.civil_date, query.zone)
        return find_sun_events(self._ephemeris, query.latitude, query.longitude, anchor)

    def compute(self, query: GeoQuery) -> PlanetaryHours:
        """Build the schedule for ``query`` without touching the cache."""
        zone = query.zone
        events = self.sun_events(query)
        day_ruler = day_ruler_for(query.civil_date)
        hours = build_hours(events, day_ruler, zone)
        logger.debug(
            "Computed planetary hours for %s %s (%.4f, %.4f): ruler=%s",
            query.civil_date,
            query.timezone,
            query.latitude,
            query.longitude,
            day_ruler.value,
        )
        return PlanetaryHours(query=query, sun_events=events, day_ruler=day_ruler, hours=hours)

    def is_today(self, query: GeoQuery) -> bool:
        return civil_date_at(self.now(), query.zone) == query.civil_date

    def schedule(self, query: GeoQuery) -> PlanetaryHours:
        """Schedule for ``query``, served from the cache when possible."""
        if self._cache is None:
            return self.compute(query)

        key: CacheKey = (
            query.civil_date.isoformat(),
            query.timezone,
            round_coord(query.latitude),
            round_coord(query.longitude),
        )
        self._cache.prune()
        cached = self._cache.get(key)
        if cached is not None:
            return dataclasses.replace(cached, query=query)

        result = self.compute(query)
        ttl = self._today_ttl if self.is_today(query) else self._cache_ttl
        self._cache.set(key, result, ttl)
        return result

    def current_hour(
        self,
        latitude: float,
        longitude: float,
        timezone: str,
        now: datetime | None = None,
        civil_date: date | None = None,
    ) -> tuple[PlanetaryHours, PlanetaryHourInterval]:
        """Find the planetary hour containing ``now``.

        Starts from ``civil_date`` (default: the date of ``now`` in the zone).
        Before sunrise the previous civil day is used, at or after the next
        sunrise the following one. At most one such correction is made.

        Returns:
            The schedule that contains ``now`` and the matching interval.

        Raises:
            InvalidInputError: On bad coordinates or zone.
            PolarDayOrNightError: When sun events cannot be found.
            DayBoundaryRecursionError: When the corrected day still does not
                contain ``now``.
        """
        moment = to_utc(now) if now is not None else self.now()
        day = civil_date or civil_date_at(moment, resolve_zone(timezone))
        query = GeoQuery.create(latitude, longitude, day, timezone)

        result = self.schedule(query)
        step = result.relative_day(moment)
        if step != 0:
            shifted = query.civil_date + timedelta(days=step)
            logger.info(
                "%s is outside the planetary day of %s; using %s",
                moment.isoformat(),
                query.civil_date,
                shifted,
            )
            result = self.schedule(dataclasses.replace(query, civil_date=shifted))
            if result.relative_day(moment) != 0:
                raise DayBoundaryRecursionError(
                    f"{moment.isoformat()} is not covered by the planetary days of "
                    f"{query.civil_date} or {shifted}"
                )

        hour = result.hour_at(moment)
        if hour is None:
            raise ComputationInconsistencyError(
                f"No planetary hour contains {moment.isoformat()}"
            )
        return result, hour
