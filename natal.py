"""
Chart assembly from swetest output.

A chart needs two swetest runs for the same UTC moment: one for the bodies
(planets, node, Lilith, asteroids) and one for the Placidus house cusps and
angles at the birth location. Points swetest does not print (South Node,
Part of Fortune, Descendant, IC) are derived here from the parsed ones.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import pytz

from exceptions import ExternalCalculatorError, InvalidCoordinatesError, InvalidTimestampError
from positions import ANGLE, HOUSE, PLANET, parse_lines
from swetest import SUN_ONLY, CalculatorInvoker, SwetestRunner, body_args, house_args
from zodiac import ChartPoint, normalize_degrees, point_at

logger = logging.getLogger(__name__)


class ChartConfig:
    """Naming tables shared by chart calculations."""

    CLASSICAL_PLANETS = (
        'Sun', 'Moon', 'Mercury', 'Venus', 'Mars',
        'Jupiter', 'Saturn', 'Uranus', 'Neptune', 'Pluto',
    )

    # swetest label -> public name; labels not listed pass through
    BODY_NAMES = {
        'true Node': 'North Node',
        'mean Node': 'North Node',
        'mean Apogee': 'Lilith',
    }

    # Higher wins when two labels map to the same public name
    BODY_PRECEDENCE = {
        'true Node': 2,
        'mean Node': 1,
    }

    ANGLE_NAMES = {
        'MC': 'Midheaven',
    }


@dataclass(frozen=True)
class Chart:
    """A calculated chart. Maps are read-only."""
    planets: Mapping[str, ChartPoint]
    houses: Mapping[int, ChartPoint]
    chart_points: Mapping[str, ChartPoint]
    additional_points: Mapping[str, ChartPoint]
    datetime: str
    coordinates: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        for name in ('planets', 'houses', 'chart_points', 'additional_points', 'coordinates'):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def to_dict(self) -> Dict:
        return {
            'planets': {name: p.to_dict() for name, p in self.planets.items()},
            'houses': {num: p.to_dict() for num, p in self.houses.items()},
            'chart_points': {name: p.to_dict() for name, p in self.chart_points.items()},
            'additional_points': {name: p.to_dict() for name, p in self.additional_points.items()},
            'datetime': self.datetime,
            'coordinates': dict(self.coordinates),
        }


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 string into an aware UTC datetime.

    A trailing ``Z`` is accepted and naive values are taken as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimestampError("datetime is required and must be a non-empty string")

    text = value.strip()
    if text[-1] in 'zZ':
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=pytz.UTC)
        # Offsets near year 1 or 9999 can push the instant out of range
        return dt.astimezone(pytz.UTC)
    except (ValueError, OverflowError):
        raise InvalidTimestampError(
            f"Invalid datetime format: {value!r}. Use ISO8601 format like 1985-04-12T23:20:50Z"
        )


class ChartAssembler:
    """Builds Charts from the output of a calculator."""

    def __init__(self, calculator: Optional[CalculatorInvoker] = None):
        self.calculator = calculator or SwetestRunner()

    def assemble(self, datetime_iso: str, latitude: float, longitude: float) -> Chart:
        moment = parse_timestamp(datetime_iso)
        if not -90 <= latitude <= 90:
            raise InvalidCoordinatesError(f"Latitude must be between -90 and 90, got {latitude}")
        if not -180 <= longitude <= 180:
            raise InvalidCoordinatesError(f"Longitude must be between -180 and 180, got {longitude}")

        body_output = self._run(body_args(moment), 'planets')
        house_output = self._run(house_args(moment, latitude, longitude), 'houses')

        planets = self.parse_bodies(body_output)
        if not planets:
            raise ExternalCalculatorError(
                "swetest returned no planet positions",
                reason=body_output.strip()[:500] or "empty output",
            )

        houses, chart_points = self.parse_houses(house_output)
        if not houses and not chart_points:
            raise ExternalCalculatorError(
                "swetest returned no house cusps or angles",
                reason=house_output.strip()[:500] or "empty output",
            )

        additional_points = self.derive_points(planets, chart_points)

        return Chart(
            planets=planets,
            houses=houses,
            chart_points=chart_points,
            additional_points=additional_points,
            datetime=datetime_iso,
            coordinates={'latitude': latitude, 'longitude': longitude},
        )

    def _run(self, args, what: str) -> str:
        try:
            return self.calculator.invoke(args)
        except ExternalCalculatorError as e:
            raise ExternalCalculatorError(
                f"Failed to execute swetest for {what}: {e}", reason=e.reason
            ) from e

    @staticmethod
    def parse_bodies(text: str) -> Dict[str, ChartPoint]:
        planets: Dict[str, ChartPoint] = {}
        ranks: Dict[str, int] = {}

        for parsed in parse_lines(text, PLANET):
            name = ChartConfig.BODY_NAMES.get(parsed.label, parsed.label)
            rank = ChartConfig.BODY_PRECEDENCE.get(parsed.label, 0)
            if name in planets and ranks[name] > rank:
                logger.debug("Ignoring %s, %s already set from a preferred line", parsed.label, name)
                continue
            planets[name] = parsed.point
            ranks[name] = rank
        return planets

    @staticmethod
    def parse_houses(text: str):
        """Split house output into (houses 1-12, chart angles)."""
        houses: Dict[int, ChartPoint] = {}
        chart_points: Dict[str, ChartPoint] = {}

        for parsed in parse_lines(text, HOUSE):
            if 1 <= parsed.key <= 12:
                houses[parsed.key] = parsed.point

        for parsed in parse_lines(text, ANGLE):
            chart_points[ChartConfig.ANGLE_NAMES.get(parsed.key, parsed.key)] = parsed.point

        return houses, chart_points

    @staticmethod
    def derive_points(planets: Dict[str, ChartPoint], chart_points: Dict[str, ChartPoint]) -> Dict[str, ChartPoint]:
        """Add Descendant and IC to ``chart_points``; return the additional points."""
        additional: Dict[str, ChartPoint] = {}

        if 'North Node' in planets:
            additional['South Node'] = point_at(planets['North Node'].longitude + 180)

        if 'Ascendant' in chart_points and 'Sun' in planets and 'Moon' in planets:
            additional['Part of Fortune'] = point_at(normalize_degrees(
                chart_points['Ascendant'].longitude
                + planets['Moon'].longitude
                - planets['Sun'].longitude
            ))

        if 'Ascendant' in chart_points:
            chart_points['Descendant'] = point_at(chart_points['Ascendant'].longitude + 180)

        if 'Midheaven' in chart_points:
            chart_points['IC'] = point_at(chart_points['Midheaven'].longitude + 180)

        return additional


def sun_longitude(calculator: CalculatorInvoker, moment: datetime) -> float:
    """Longitude of the Sun at ``moment`` (aware UTC) from a Sun-only run."""
    planets = ChartAssembler.parse_bodies(calculator.invoke(body_args(moment, SUN_ONLY)))
    if 'Sun' not in planets:
        raise ExternalCalculatorError("swetest returned no Sun position")
    return planets['Sun'].longitude


# Convenience functions
def calculate_chart(datetime_iso: str,
                    latitude: float,
                    longitude: float,
                    calculator: Optional[CalculatorInvoker] = None) -> Chart:
    return ChartAssembler(calculator).assemble(datetime_iso, latitude, longitude)
