from datetime import datetime, time

import pytest
from conftest import FakeEphemeris
from fastapi.testclient import TestClient
from pytz import utc

from planetaryhours.api import LONG_CACHE, SHORT_CACHE, create_app
from planetaryhours.config import Settings

NOW = datetime(2024, 1, 7, 10, 0, tzinfo=utc)


def _client(ephemeris=None, now=NOW):
    app = create_app(
        settings=Settings(),
        ephemeris=ephemeris or FakeEphemeris(),
        now=lambda: now,
    )
    return TestClient(app)


@pytest.fixture
def client():
    return _client()


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_planetary_hours_today(client):
    res = client.get(
        "/api/planetary-hours",
        params={"date": "2024-01-07", "tz": "UTC", "lat": "51.5", "lon": "0"},
    )
    assert res.status_code == 200
    assert res.headers["cache-control"] == SHORT_CACHE
    body = res.json()
    assert body["date"] == "2024-01-07"
    assert body["timezone"] == "UTC"
    assert body["dayRuler"] == "sun"
    assert body["sunriseUtc"] == "2024-01-07T06:00:00.000Z"
    assert body["nextSunriseUtc"] == "2024-01-08T06:00:00.000Z"
    assert len(body["hours"]) == 24
    current = [h["index"] for h in body["hours"] if h["isCurrent"]]
    assert current == [5]


def test_planetary_hours_other_day_gets_long_cache(client):
    res = client.get(
        "/api/planetary-hours",
        params={"date": "2024-01-01", "tz": "UTC", "lat": "51.5", "lon": "0"},
    )
    assert res.status_code == 200
    assert res.headers["cache-control"] == LONG_CACHE
    assert res.json()["dayRuler"] == "moon"
    assert not any(h["isCurrent"] for h in res.json()["hours"])


def test_planetary_hours_defaults_date_to_today(client):
    res = client.get("/api/planetary-hours", params={"tz": "UTC", "lat": "51.5", "lon": "0"})
    assert res.status_code == 200
    assert res.json()["date"] == "2024-01-07"


def test_planetary_hours_resolves_zone_from_location():
    client = _client(FakeEphemeris(sunrise=time(14, 0), sunset=time(0, 30)))
    res = client.get(
        "/api/planetary-hours",
        params={"date": "2025-01-01", "lat": "40.7608", "lon": "-111.891"},
    )
    assert res.status_code == 200
    assert res.json()["timezone"] == "America/Denver"


@pytest.mark.parametrize(
    "params",
    [
        {"tz": "UTC", "lon": "0"},
        {"tz": "UTC", "lat": "abc", "lon": "0"},
        {"tz": "UTC", "lat": "91", "lon": "0"},
        {"tz": "UTC", "lat": "0", "lon": "-180.5"},
        {"tz": "Not/AZone", "lat": "0", "lon": "0"},
        {"tz": "UTC", "lat": "0", "lon": "0", "date": "07/01/2024"},
    ],
)
def test_planetary_hours_rejects_bad_input(client, params):
    res = client.get("/api/planetary-hours", params=params)
    assert res.status_code == 400
    assert res.json()["kind"] == "invalid_input"


def test_polar_day_maps_to_422():
    client = _client(FakeEphemeris(polar=True))
    res = client.get(
        "/api/planetary-hours",
        params={"date": "2024-06-21", "tz": "Arctic/Longyearbyen", "lat": "78.2", "lon": "15.6"},
    )
    assert res.status_code == 422
    assert res.json()["kind"] == "polar"


def test_current_hour():
    client = _client(now=datetime(2024, 1, 7, 3, 0, tzinfo=utc))
    res = client.get("/api/planetary-hours/current", params={"tz": "UTC", "lat": "51.5", "lon": "0"})
    assert res.status_code == 200
    assert res.headers["cache-control"] == SHORT_CACHE
    body = res.json()
    assert body["date"] == "2024-01-06"
    assert body["dayRuler"] == "saturn"
    assert body["hour"]["index"] == 22
    assert body["hour"]["isCurrent"] is True


def test_positions_now(client):
    res = client.get("/api/positions")
    assert res.status_code == 200
    assert res.headers["cache-control"] == SHORT_CACHE
    body = res.json()
    assert body["instantUtc"] == "2024-01-07T10:00:00.000Z"
    assert [p["planet"] for p in body["positions"]] == [
        "sun",
        "moon",
        "mercury",
        "venus",
        "mars",
        "jupiter",
        "saturn",
        "uranus",
        "neptune",
        "pluto",
    ]
    assert "ascendant" not in body


def test_positions_at_instant_with_houses(client):
    res = client.get(
        "/api/positions",
        params={"timestamp": "2025-01-01T00:00:00Z", "lat": "0", "lon": "0"},
    )
    assert res.status_code == 200
    assert res.headers["cache-control"] == LONG_CACHE
    body = res.json()
    assert body["instantUtc"] == "2025-01-01T00:00:00.000Z"
    assert "ascendant" in body
    assert all(1 <= p["house"] <= 12 for p in body["positions"])


@pytest.mark.parametrize(
    "params",
    [{"timestamp": "yesterday"}, {"lat": "10"}, {"lat": "10", "lon": "200"}],
)
def test_positions_rejects_bad_input(client, params):
    res = client.get("/api/positions", params=params)
    assert res.status_code == 400


def test_dignity(client):
    res = client.get("/api/dignity", params={"planet": "Saturn", "sign": "libra"})
    assert res.status_code == 200
    assert res.json() == {
        "planet": "saturn",
        "sign": "Libra",
        "status": "Exaltation",
        "description": "saturn is exalted in Libra",
        "dignity": {
            "name": "Exaltation",
            "description": "A planet in the sign of its exaltation",
            "effect": "The planet is elevated and empowered",
        },
    }


@pytest.mark.parametrize(
    "params",
    [{"planet": "vulcan", "sign": "Libra"}, {"planet": "mars", "sign": "Ophiuchus"}, {"planet": "mars"}],
)
def test_dignity_rejects_bad_input(client, params):
    res = client.get("/api/dignity", params=params)
    assert res.status_code == 400
