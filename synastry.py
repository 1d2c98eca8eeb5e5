"""Aspects between the planets of two charts."""

from dataclasses import dataclass
from typing import Dict, List, Mapping

from natal import ChartConfig
from zodiac import ChartPoint, angular_distance, round_half_away


@dataclass(frozen=True)
class AspectDefinition:
    """An aspect and the largest deviation from its angle that still counts."""
    angle: float
    name: str
    symbol: str
    orb: float


@dataclass(frozen=True)
class Aspect:
    """An aspect between a planet of person 1 and a planet of person 2."""
    person1_planet: str
    person2_planet: str
    aspect_type: str
    orb: float
    exact_angle: float
    person1_position: ChartPoint
    person2_position: ChartPoint

    def to_dict(self) -> Dict:
        return {
            'person1_planet': self.person1_planet,
            'person2_planet': self.person2_planet,
            'aspect_type': self.aspect_type,
            'orb': self.orb,
            'exact_angle': self.exact_angle,
            'person1_position': self.person1_position.to_dict(),
            'person2_position': self.person2_position.to_dict(),
        }


ASPECTS = (
    AspectDefinition(0, 'conjunction', '☌', 8),
    AspectDefinition(30, 'semisextile', '⚺', 3),
    AspectDefinition(60, 'sextile', '⚹', 6),
    AspectDefinition(90, 'square', '□', 8),
    AspectDefinition(120, 'trine', '△', 8),
    AspectDefinition(150, 'quincunx', '⚻', 3),
    AspectDefinition(180, 'opposition', '☍', 8),
)


def synastry_aspects(planets_a: Mapping[str, ChartPoint],
                     planets_b: Mapping[str, ChartPoint]) -> List[Aspect]:
    """
    Find every aspect between the classical planets of two charts.

    Every planet of A is compared with every planet of B, same-named pairs
    included. Nodes, Lilith and asteroids are ignored. The result is sorted
    by orb, tightest first; equal orbs keep enumeration order.
    """
    found = []
    names_a = [name for name in ChartConfig.CLASSICAL_PLANETS if name in planets_a]
    names_b = [name for name in ChartConfig.CLASSICAL_PLANETS if name in planets_b]

    for name1 in names_a:
        pos1 = planets_a[name1]
        for name2 in names_b:
            pos2 = planets_b[name2]
            sep = angular_distance(pos1.longitude, pos2.longitude)

            for aspect_def in ASPECTS:
                orb = abs(sep - aspect_def.angle)
                if orb <= aspect_def.orb:
                    found.append((orb, Aspect(
                        person1_planet=name1,
                        person2_planet=name2,
                        aspect_type=aspect_def.name,
                        orb=round_half_away(orb),
                        exact_angle=round_half_away(sep),
                        person1_position=pos1,
                        person2_position=pos2,
                    )))

    found.sort(key=lambda item: item[0])
    return [aspect for _, aspect in found]
