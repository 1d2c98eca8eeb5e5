"""
Zodiac sign table and angle helpers.

Signs are keyed by the two-letter abbreviations swetest prints in its
zodiacal position format (``22 le 53'51.2332``).
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Optional, Tuple


@dataclass(frozen=True)
class SignOffset:
    """A zodiac sign and the ecliptic longitude where it begins."""
    name: str
    offset: int


@dataclass(frozen=True)
class ChartPoint:
    """A position on the ecliptic.

    ``degree`` is the degree within ``sign``, rounded to 2 decimals for
    display. ``longitude`` is kept at full precision.
    """
    longitude: float
    sign: str
    degree: float

    def to_dict(self) -> dict:
        return {'longitude': self.longitude, 'sign': self.sign, 'degree': self.degree}


SIGN_NAMES = (
    'Aries', 'Taurus', 'Gemini', 'Cancer', 'Leo', 'Virgo',
    'Libra', 'Scorpio', 'Sagittarius', 'Capricorn', 'Aquarius', 'Pisces',
)

SIGN_ABBREVIATIONS = ('ar', 'ta', 'ge', 'cn', 'le', 'vi', 'li', 'sc', 'sa', 'cp', 'aq', 'pi')

SIGNS = MappingProxyType({
    abbr: SignOffset(name, index * 30)
    for index, (abbr, name) in enumerate(zip(SIGN_ABBREVIATIONS, SIGN_NAMES))
})


def lookup_sign(abbr: str) -> Optional[SignOffset]:
    """Return the sign for a two-letter abbreviation (case-insensitive)."""
    return SIGNS.get(abbr.strip().lower())


def normalize_degrees(deg: float) -> float:
    """Normalize degrees to 0-360 range."""
    deg = deg % 360
    # -1e-15 % 360 == 360.0
    return 0.0 if deg >= 360 else deg


def angular_distance(pos1: float, pos2: float) -> float:
    """
    Calculate the shortest angular distance between two positions.
    Always returns a positive value 0-180.
    """
    diff = abs(normalize_degrees(pos1) - normalize_degrees(pos2))
    return min(diff, 360 - diff)


def signed_angular_distance(from_pos: float, to_pos: float) -> float:
    """
    Calculate signed angular distance from one position to another.
    Positive = to_pos is ahead (counterclockwise) of from_pos.
    Returns value in range (-180, 180].
    """
    diff = normalize_degrees(to_pos) - normalize_degrees(from_pos)
    if diff > 180:
        diff -= 360
    elif diff <= -180:
        diff += 360
    return diff


def round_half_away(value: float, places: int = 2) -> float:
    """Round like ``Math.round`` on displayed values: halves go away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def sign_for(longitude: float) -> Tuple[str, float]:
    """Return ``(sign name, degree within sign)`` for an ecliptic longitude."""
    longitude = normalize_degrees(longitude)
    return SIGN_NAMES[int(longitude // 30) % 12], longitude % 30


def point_at(longitude: float) -> ChartPoint:
    """Build a ChartPoint whose sign and degree are derived from the longitude."""
    longitude = normalize_degrees(longitude)
    sign, degree = sign_for(longitude)
    return ChartPoint(longitude=longitude, sign=sign, degree=round_half_away(degree))
