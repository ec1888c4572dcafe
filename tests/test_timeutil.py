from datetime import date, datetime

import pytest
from pytz import timezone, utc

from planetaryhours import timeutil
from planetaryhours.errors import InvalidInputError


@pytest.mark.parametrize(
    "deg, expected",
    [(0.0, 0.0), (360.0, 0.0), (-30.0, 330.0), (725.5, 5.5), (-720.0, 0.0)],
)
def test_normalize_360(deg, expected):
    assert timeutil.normalize_360(deg) == pytest.approx(expected)


def test_normalize_360_never_returns_360():
    assert timeutil.normalize_360(-1e-18) < 360.0


@pytest.mark.parametrize(
    "deg, expected",
    [(180.0, 180.0), (-180.0, 180.0), (190.0, -170.0), (-0.3, -0.3), (359.7, -0.3)],
)
def test_normalize_180(deg, expected):
    assert timeutil.normalize_180(deg) == pytest.approx(expected)


def test_normalize_180_stays_in_range_over_sweep():
    for i in range(-1440, 1441):
        deg = i * 0.75
        x = timeutil.normalize_180(deg)
        assert -180.0 < x <= 180.0
        assert timeutil.normalize_360(x) == pytest.approx(timeutil.normalize_360(deg), abs=1e-9)


def test_julian_centuries_at_j2000():
    assert timeutil.julian_centuries(2451545.0) == 0.0
    assert timeutil.julian_centuries(2451545.0 + 36525.0) == pytest.approx(1.0)


def test_resolve_zone_rejects_unknown_and_empty():
    assert timeutil.resolve_zone(" America/Denver ").zone == "America/Denver"
    with pytest.raises(InvalidInputError):
        timeutil.resolve_zone("Mars/Olympus_Mons")
    with pytest.raises(InvalidInputError):
        timeutil.resolve_zone("  ")


def test_zone_for_location():
    assert timeutil.zone_for_location(40.7608, -111.891) == "America/Denver"


def test_zone_for_location_rejects_out_of_range_coordinates():
    with pytest.raises(InvalidInputError):
        timeutil.zone_for_location(95.0, 0.0)
    with pytest.raises(InvalidInputError):
        timeutil.zone_for_location(float("nan"), 0.0)


@pytest.mark.parametrize("value", ["2025-13-01", "2025/01/01", "yesterday", "2025-02-30"])
def test_parse_civil_date_rejects(value):
    with pytest.raises(InvalidInputError):
        timeutil.parse_civil_date(value)


def test_local_noon_follows_dst():
    denver = timezone("America/Denver")
    winter = timeutil.local_noon(date(2025, 1, 1), denver)
    summer = timeutil.local_noon(date(2025, 7, 1), denver)
    assert timeutil.to_utc(winter).hour == 19
    assert timeutil.to_utc(summer).hour == 18


def test_civil_day_start_in_dst_gap_is_shifted_forward():
    # Santiago skips 00:00-01:00 when DST starts
    santiago = timezone("America/Santiago")
    start = timeutil.civil_day_start(date(2024, 9, 8), santiago)
    assert start.date() == date(2024, 9, 8)
    assert start.hour == 1


def test_civil_date_at_uses_the_zone():
    moment = datetime(2025, 1, 2, 3, 0, tzinfo=utc)
    assert timeutil.civil_date_at(moment, timezone("America/Denver")) == date(2025, 1, 1)
    assert timeutil.civil_date_at(moment, utc) == date(2025, 1, 2)


def test_weekday_index_sunday_is_zero():
    assert timeutil.weekday_index(date(2025, 1, 5)) == 0
    assert timeutil.weekday_index(date(2025, 1, 1)) == 3
    assert timeutil.weekday_index(date(2025, 1, 4)) == 6


def test_parse_instant_variants():
    expected = datetime(2025, 1, 1, 0, 0, tzinfo=utc)
    assert timeutil.parse_instant("2025-01-01T00:00:00Z") == expected
    assert timeutil.parse_instant("2025-01-01T00:00:00.000Z") == expected
    assert timeutil.parse_instant("2025-01-01T00:00:00") == expected
    assert timeutil.parse_instant("2024-12-31T17:00:00-07:00") == expected
    assert timeutil.parse_instant("1735689600000") == expected


def test_parse_instant_rejects_garbage():
    with pytest.raises(InvalidInputError):
        timeutil.parse_instant("not a time")


def test_iso_utc_has_millis_and_z():
    moment = datetime(2025, 1, 1, 14, 51, 47, 271000, tzinfo=utc)
    assert timeutil.iso_utc(moment) == "2025-01-01T14:51:47.271Z"


def test_iso_local_keeps_offset():
    moment = datetime(2025, 1, 1, 14, 51, 47, tzinfo=utc)
    text = timeutil.iso_local(moment, timezone("America/Denver"))
    assert text == "2025-01-01T07:51:47.000-07:00"
