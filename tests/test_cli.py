import json

from conftest import FakeEphemeris

from planetaryhours import cli


def test_dignity_command(capsys):
    assert cli.main(["dignity", "venus", "pisces"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["status"] == "Exaltation"


def test_hours_command(capsys):
    code = cli.main(
        ["hours", "--lat", "51.5", "--lon", "0", "--date", "2024-01-07", "--tz", "UTC"],
        ephemeris=FakeEphemeris(),
    )
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["dayRuler"] == "sun"
    assert len(out["hours"]) == 24


def test_current_command_at_fixed_instant(capsys):
    code = cli.main(
        ["current", "--lat", "51.5", "--lon", "0", "--tz", "UTC", "--at", "2024-01-07T03:00:00Z"],
        ephemeris=FakeEphemeris(),
    )
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["date"] == "2024-01-06"
    assert out["hour"]["index"] == 22


def test_positions_command(capsys):
    code = cli.main(["positions", "--at", "2024-01-07T00:00:00Z"], ephemeris=FakeEphemeris())
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert len(out["positions"]) == 10


def test_invalid_input_exits_2(capsys):
    code = cli.main(
        ["hours", "--lat", "95", "--lon", "0", "--tz", "UTC"],
        ephemeris=FakeEphemeris(),
    )
    assert code == 2
    assert "Latitude" in capsys.readouterr().err


def test_polar_exits_1(capsys):
    code = cli.main(
        ["hours", "--lat", "78.2", "--lon", "15.6", "--date", "2024-06-21", "--tz", "UTC"],
        ephemeris=FakeEphemeris(polar=True),
    )
    assert code == 1
    assert "polar" in capsys.readouterr().err


def test_out_of_range_latitude_without_zone_exits_2(capsys):
    code = cli.main(
        ["hours", "--lat", "95", "--lon", "0", "--date", "2024-01-07"],
        ephemeris=FakeEphemeris(),
    )
    assert code == 2
    assert "Latitude" in capsys.readouterr().err


def test_nan_latitude_without_zone_exits_2(capsys):
    code = cli.main(["current", "--lat", "nan", "--lon", "0"], ephemeris=FakeEphemeris())
    assert code == 2
    assert "Latitude" in capsys.readouterr().err
