"""
The four chart operations exposed by the API.

Each one is a single, stateless computation built from chart assembly and
aspect detection. Charts are assembled one after another; the first failure
propagates and the remaining charts are not calculated.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

import pytz

from exceptions import ExternalCalculatorError
from natal import ChartAssembler, parse_timestamp, sun_longitude
from swetest import CalculatorInvoker
from synastry import synastry_aspects
from zodiac import signed_angular_distance

logger = logging.getLogger(__name__)

MEAN_SOLAR_MOTION = 0.98564736  # degrees per day
SOLAR_RETURN_TOLERANCE = 1e-4  # degrees, about 9 seconds of time
SOLAR_RETURN_MAX_ITERATIONS = 8
RETURN_YEAR_RANGE = (1900, 2100)


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


def _iso(dt: datetime) -> str:
    return dt.astimezone(pytz.UTC).strftime('%Y-%m-%dT%H:%M:%SZ')


def calculate_planetary_positions(datetime_iso: str,
                                  latitude: float,
                                  longitude: float,
                                  calculator: Optional[CalculatorInvoker] = None) -> Dict:
    """Chart for a single moment and place."""
    return ChartAssembler(calculator).assemble(datetime_iso, latitude, longitude).to_dict()


def calculate_transits(birth_datetime: str,
                       latitude: float,
                       longitude: float,
                       calculator: Optional[CalculatorInvoker] = None,
                       now: Optional[datetime] = None) -> Dict:
    """Natal chart, the sky at ``now`` for the same place, and transit aspects."""
    assembler = ChartAssembler(calculator)
    calculation_time = now or _utcnow()

    natal = assembler.assemble(birth_datetime, latitude, longitude)
    current = assembler.assemble(_iso(calculation_time), latitude, longitude)

    # transiting planets as person 1, natal planets as person 2
    aspects = synastry_aspects(current.planets, natal.planets)

    return {
        'natal_chart': natal.to_dict(),
        'current_transits': current.to_dict(),
        'transit_aspects': [a.to_dict() for a in aspects],
        'calculation_time': calculation_time.isoformat(),
    }


def find_solar_return(calculator: CalculatorInvoker,
                      natal_sun: float,
                      birth_moment: datetime,
                      return_year: int) -> Tuple[datetime, float]:
    """
    Find the moment in ``return_year`` when the Sun is back at ``natal_sun``.

    Starts at the birthday anniversary and corrects by the mean solar motion
    until the Sun is within tolerance. Returns ``(moment, sun longitude)``.
    """
    try:
        moment = birth_moment.replace(year=return_year)
    except ValueError:
        # Feb 29 birth in a common year
        moment = birth_moment.replace(year=return_year, day=28)
    moment = moment.replace(microsecond=0)

    sun = sun_longitude(calculator, moment)
    for _ in range(SOLAR_RETURN_MAX_ITERATIONS):
        diff = signed_angular_distance(sun, natal_sun)
        if abs(diff) < SOLAR_RETURN_TOLERANCE:
            break
        step = round(diff / MEAN_SOLAR_MOTION * 86400)
        if step == 0:
            break
        moment += timedelta(seconds=step)
        sun = sun_longitude(calculator, moment)
    else:
        logger.warning("Solar return search for %s stopped %.6f° short", return_year,
                       abs(signed_angular_distance(sun, natal_sun)))

    return moment, sun


def calculate_solar_revolution(birth_datetime: str,
                               birth_latitude: float,
                               birth_longitude: float,
                               return_year: int,
                               return_latitude: Optional[float] = None,
                               return_longitude: Optional[float] = None,
                               calculator: Optional[CalculatorInvoker] = None) -> Dict:
    """Natal chart and the solar return chart for ``return_year``.

    The return chart is cast for the return location, which defaults to the
    birth location.
    """
    low, high = RETURN_YEAR_RANGE
    if not low <= return_year <= high:
        raise ValueError(f"return_year must be between {low} and {high}")

    if return_latitude is None:
        return_latitude = birth_latitude
    if return_longitude is None:
        return_longitude = birth_longitude

    assembler = ChartAssembler(calculator)
    calculation_time = _utcnow()

    natal = assembler.assemble(birth_datetime, birth_latitude, birth_longitude)
    if 'Sun' not in natal.planets:
        raise ExternalCalculatorError("swetest returned no Sun position")
    natal_sun = natal.planets['Sun'].longitude

    return_moment, return_sun = find_solar_return(
        assembler.calculator, natal_sun, parse_timestamp(birth_datetime), return_year
    )
    solar_return = assembler.assemble(_iso(return_moment), return_latitude, return_longitude)

    return {
        'natal_chart': natal.to_dict(),
        'solar_return_chart': solar_return.to_dict(),
        'natal_sun_longitude': natal_sun,
        'return_sun_longitude': return_sun,
        'return_datetime': _iso(return_moment),
        'calculation_time': calculation_time.isoformat(),
    }


def calculate_synastry(person1_datetime: str,
                       person1_latitude: float,
                       person1_longitude: float,
                       person2_datetime: str,
                       person2_latitude: float,
                       person2_longitude: float,
                       calculator: Optional[CalculatorInvoker] = None) -> Dict:
    """Both charts and the aspects between their planets."""
    assembler = ChartAssembler(calculator)
    calculation_time = _utcnow()

    person1 = assembler.assemble(person1_datetime, person1_latitude, person1_longitude)
    person2 = assembler.assemble(person2_datetime, person2_latitude, person2_longitude)
    aspects = synastry_aspects(person1.planets, person2.planets)

    return {
        'person1_chart': person1.to_dict(),
        'person2_chart': person2.to_dict(),
        'synastry_aspects': [a.to_dict() for a in aspects],
        'calculation_time': calculation_time.isoformat(),
    }
