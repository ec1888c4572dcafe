from datetime import date, datetime, time, timedelta

import pytest
from pytz import utc

from planetaryhours.models import Planet

J2000 = datetime(2000, 1, 1, 12, 0, tzinfo=utc)


class FakeEphemeris:
    """Deterministic stand-in for SkyfieldEphemeris.

    Sunrise and sunset happen at the same UTC time of day every day. Each
    body moves linearly from ``bases[body]`` at ``epoch`` by ``rates[body]``
    degrees per day.
    """

    def __init__(
        self,
        sunrise: time = time(6, 0),
        sunset: time = time(18, 0),
        polar: bool = False,
        epoch: datetime = datetime(2024, 1, 7, 0, 0, tzinfo=utc),
        bases: dict[Planet, float] | None = None,
        rates: dict[Planet, float] | None = None,
        sidereal_hours: float = 0.0,
    ):
        self.sunrise = sunrise
        self.sunset = sunset
        self.polar = polar
        self.epoch = epoch
        self.bases = bases or {p: 30.0 * i + 5.0 for i, p in enumerate(Planet)}
        self.rates = rates or {p: 1.0 for p in Planet}
        self.sidereal_hours = sidereal_hours
        self.rise_set_calls = 0
        self.longitude_calls: list[Planet] = []

    def _daily(self, at: time, start: datetime, end: datetime) -> list[datetime]:
        self.rise_set_calls += 1
        if self.polar:
            return []
        day: date = start.astimezone(utc).date() - timedelta(days=1)
        out = []
        while day <= end.astimezone(utc).date() + timedelta(days=1):
            moment = datetime.combine(day, at, tzinfo=utc)
            if start <= moment <= end:
                out.append(moment)
            day += timedelta(days=1)
        return out

    def sunrises(self, latitude, longitude, start, end):
        return self._daily(self.sunrise, start, end)

    def sunsets(self, latitude, longitude, start, end):
        return self._daily(self.sunset, start, end)

    def ecliptic_longitude(self, body, moment):
        self.longitude_calls.append(body)
        days = (moment - self.epoch).total_seconds() / 86400.0
        return (self.bases[body] + self.rates[body] * days) % 360.0

    def sidereal_time(self, moment):
        return self.sidereal_hours

    def julian_date_tt(self, moment):
        return 2451545.0 + (moment - J2000).total_seconds() / 86400.0


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fake_ephemeris():
    return FakeEphemeris()


@pytest.fixture
def clock():
    return ManualClock()
