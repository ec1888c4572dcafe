"""Angle normalisation and time zone aware calendar helpers."""

import math
from datetime import date, datetime, time, tzinfo

from pytz import UnknownTimeZoneError, timezone, utc
from timezonefinder import TimezoneFinder

from planetaryhours.errors import InvalidInputError

J2000_JD = 2451545.0
DAYS_PER_CENTURY = 36525.0

_tf: TimezoneFinder | None = None


def normalize_360(deg: float) -> float:
    """Reduce an angle to [0, 360)."""
    x = math.fmod(deg, 360.0)
    if x < 0:
        x += 360.0
    # fmod of a tiny negative number can round up to exactly 360.0
    return 0.0 if x >= 360.0 else x


def normalize_180(deg: float) -> float:
    """Reduce an angle to (-180, 180]."""
    x = normalize_360(deg)
    return x - 360.0 if x > 180.0 else x


def julian_centuries(jd_tt: float) -> float:
    """Julian centuries of TT elapsed since J2000.0."""
    return (jd_tt - J2000_JD) / DAYS_PER_CENTURY


def resolve_zone(zone_id: str) -> tzinfo:
    """Return the pytz zone for an IANA id.

    Raises:
        InvalidInputError: If the id is empty or unknown.
    """
    if not zone_id or not zone_id.strip():
        raise InvalidInputError("Time zone id is required")
    try:
        return timezone(zone_id.strip())
    except UnknownTimeZoneError as e:
        raise InvalidInputError(f"Unknown time zone: {zone_id}") from e


def zone_for_location(latitude: float, longitude: float) -> str:
    """Look up the IANA zone containing a coordinate.

    Raises:
        InvalidInputError: If the coordinates are out of range or no zone
            covers the point.
    """
    global _tf
    if _tf is None:
        _tf = TimezoneFinder()
    try:
        zone_id = _tf.timezone_at(lat=latitude, lng=longitude)
    except ValueError as e:
        raise InvalidInputError(f"Invalid coordinates for timezone lookup: {e}") from e
    if zone_id is None:
        raise InvalidInputError(
            f"Timezone not found: lat={latitude}, lng={longitude}"
        )
    return zone_id


def parse_civil_date(value: str) -> date:
    """Parse a "YYYY-MM-DD" string.

    Raises:
        InvalidInputError: On any other format or an impossible date.
    """
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError) as e:
        raise InvalidInputError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from e


def _localize(day: date, at: time, zone: tzinfo) -> datetime:
    naive = datetime.combine(day, at)
    localize = getattr(zone, "localize", None)
    if localize is None:
        return naive.replace(tzinfo=zone)
    # Times inside a DST gap are shifted forward by normalize()
    return zone.normalize(localize(naive, is_dst=False))  # type: ignore[attr-defined]


def civil_day_start(day: date, zone: tzinfo) -> datetime:
    """Local midnight of ``day`` in ``zone`` as an aware datetime."""
    return _localize(day, time(0, 0), zone)


def local_noon(day: date, zone: tzinfo) -> datetime:
    """Local noon of ``day`` in ``zone``. Anchor for the rise/set search."""
    return _localize(day, time(12, 0), zone)


def civil_date_at(moment: datetime, zone: tzinfo) -> date:
    """The calendar date in ``zone`` at an instant."""
    return to_utc(moment).astimezone(zone).date()


def weekday_index(day: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def to_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if moment.tzinfo is None:
        return utc.localize(moment)
    return moment.astimezone(utc)


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant or epoch milliseconds. "Z" and naive values mean UTC.

    Raises:
        InvalidInputError: If the string is not ISO-8601.
    """
    text = value.strip()
    if text.isdigit():
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(int(text) / 1000.0, tz=utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidInputError(f"Timestamp out of range: {value!r}") from e
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise InvalidInputError(f"Invalid ISO-8601 timestamp: {value!r}") from e


def iso_utc(moment: datetime) -> str:
    """UTC ISO string with millisecond precision and a "Z" suffix."""
    text = to_utc(moment).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def iso_local(moment: datetime, zone: tzinfo) -> str:
    """Zone-local ISO string with millisecond precision and UTC offset."""
    return to_utc(moment).astimezone(zone).isoformat(timespec="milliseconds")
