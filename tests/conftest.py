from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from exceptions import ExternalCalculatorError
from zodiac import SIGN_ABBREVIATIONS, SIGN_NAMES

BODY_OUTPUT = """\
Sun            ,22 le 53'51.2332
Moon           , 2 cp 21' 3.2731
Mercury        ,10 vi  5'12.0000
Venus          ,28 cn 14'30.5000
Mars           , 7 sa 40' 0.0000
Jupiter        ,15 ta 22'10.0000
Saturn         , 3 aq 11'45.0000
Uranus         ,19 cp 59'59.0000
Neptune        , 4 cp  2'20.0000
Pluto          ,16 sc 30' 5.0000
true Node      ,15 ar  0' 0.0000
mean Apogee    , 8 pi 12'33.0000
Chiron         ,21 cn 45'10.0000
Ceres          , 1 li  0' 0.0000
Pallas         ,12 ge 34'56.0000
Juno           ,25 sa 11'11.0000
Vesta          , 9 le  9' 9.0000
"""

HOUSE_OUTPUT = """\
warning: SwissEph file 'seas_18.se1' not found in PATH; using Moshier eph.
Sun            ,22 le 53'51.2332
house  1       ,13 cn 39'52.5152
house  2       , 4 le 10' 0.0000
house  3       ,27 le 45'12.0000
house  4       ,22 vi 15'30.0000
house  5       , 1 sc  2' 3.0000
house  6       ,10 sa 20'30.0000
house  7       ,13 cp 39'52.5152
house  8       , 4 aq 10' 0.0000
house  9       ,27 aq 45'12.0000
house 10       ,22 pi 15'30.0000
house 11       , 1 ta  2' 3.0000
house 12       ,10 ge 20'30.0000
Ascendant      ,13 cn 39'52.5152
MC             ,22 pi 15'30.0000
ARMC           ,21 pi 40' 0.0000
Vertex         , 5 sa 20'10.0000
equat. Asc.    ,11 cn  0' 0.0000
"""

SUN = 120 + 22 + 53 / 60 + 51.2332 / 3600
MOON = 270 + 2 + 21 / 60 + 3.2731 / 3600
ASCENDANT = 90 + 13 + 39 / 60 + 52.5152 / 3600
MIDHEAVEN = 330 + 22 + 15 / 60 + 30 / 3600


def format_position(longitude: float) -> str:
    """Render a longitude the way swetest -fZ does."""
    units = round(longitude * 3600 * 10000) % (360 * 3600 * 10000)
    sign_index, rest = divmod(units, 30 * 3600 * 10000)
    degrees, rest = divmod(rest, 3600 * 10000)
    minutes, seconds = divmod(rest, 60 * 10000)
    return f"{degrees:2d} {SIGN_ABBREVIATIONS[sign_index]} {minutes:2d}'{seconds / 10000:7.4f}"


def sign_offset(name: str) -> int:
    """Starting longitude of a sign given its full name."""
    return SIGN_NAMES.index(name) * 30


def moment_from_args(args) -> datetime:
    date = next(a[2:] for a in args if a.startswith('-b'))
    time = next(a[3:] for a in args if a.startswith('-ut'))
    return datetime.strptime(f"{date} {time}", "%d.%m.%Y %H:%M:%S").replace(tzinfo=timezone.utc)


def is_house_request(args) -> bool:
    return any(a.startswith('-house') for a in args)


class FakeCalculator:
    """Serves canned swetest output and records every call."""

    def __init__(self, body_output=BODY_OUTPUT, house_output=HOUSE_OUTPUT, fail_on=None, fail_after=None):
        self.body_output = body_output
        self.house_output = house_output
        self.fail_on = fail_on
        self.fail_after = fail_after
        self.calls = []

    def invoke(self, args):
        self.calls.append(list(args))
        kind = 'houses' if is_house_request(args) else 'planets'
        if self.fail_on in (kind, 'all') or (self.fail_after is not None and len(self.calls) > self.fail_after):
            raise ExternalCalculatorError("swetest exited with code 1", reason="error: date beyond ephemeris range")
        return self.house_output if kind == 'houses' else self.body_output


class MovingSunCalculator(FakeCalculator):
    """Canned output except for the Sun, which moves at a constant rate."""

    EPOCH = datetime(2000, 1, 1, 12, tzinfo=timezone.utc)
    EPOCH_LONGITUDE = 280.46
    RATE = 0.9856  # degrees per day

    def sun_at(self, moment: datetime) -> float:
        days = (moment - self.EPOCH).total_seconds() / 86400
        return (self.EPOCH_LONGITUDE + self.RATE * days) % 360

    def invoke(self, args):
        text = super().invoke(args)
        if is_house_request(args):
            return text
        sun_line = f"Sun            ,{format_position(self.sun_at(moment_from_args(args)))}\n"
        if '-p0' in args:
            return sun_line
        return sun_line + "".join(line + "\n" for line in text.splitlines() if not line.startswith('Sun '))


@pytest.fixture
def calculator():
    return FakeCalculator()


@pytest.fixture
def client():
    from main import app
    from routers import get_calculator

    fake = FakeCalculator()
    app.dependency_overrides[get_calculator] = lambda: fake
    with TestClient(app) as test_client:
        test_client.calculator = fake
        yield test_client
    app.dependency_overrides.clear()
