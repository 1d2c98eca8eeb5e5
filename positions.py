"""
Parser for swetest position lines.

swetest run with ``-fPZ -g,`` prints one body, house cusp or angle per line::

    Sun            ,22 le 53'51.2332
    Moon           , 2 cp 21' 3.2731
    house  1       ,13 cn 39'52.5152
    Ascendant      ,13 cn 39'52.5152

All three share the position grammar after the comma and differ only in how
the label before it is read. A ``LineClassifier`` decides whether a label is
acceptable and which key it maps to; ``parse_line`` does the rest.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Hashable, Iterator, Optional

from zodiac import ChartPoint, lookup_sign, round_half_away

logger = logging.getLogger(__name__)

POSITION_RE = re.compile(r"^(\d+)\s+([a-z]{2})\s+(\d+)'\s*([\d.]+)$", re.IGNORECASE)
HOUSE_LABEL_RE = re.compile(r"^house\s+(\d+)")

ANGLE_LABELS = ('Ascendant', 'MC', 'ARMC', 'Vertex')
IGNORED_MARKERS = ('error:', 'warning:')


@dataclass(frozen=True)
class ParsedLine:
    """A position line after classification and parsing."""
    label: str
    key: Hashable
    point: ChartPoint


@dataclass(frozen=True)
class LineClassifier:
    """Reads the label field of a line.

    ``match`` returns the key for an accepted label, or None to skip the line
    before the position field is looked at.
    """
    name: str
    match: Callable[[str], Optional[Hashable]]


def _planet_key(label: str) -> Optional[str]:
    return label or None


def _house_key(label: str) -> Optional[int]:
    m = HOUSE_LABEL_RE.match(label)
    return int(m.group(1)) if m else None


def _angle_key(label: str) -> Optional[str]:
    return label if label in ANGLE_LABELS else None


PLANET = LineClassifier('planet', _planet_key)
HOUSE = LineClassifier('house', _house_key)
ANGLE = LineClassifier('angle', _angle_key)


def parse_position(text: str) -> Optional[ChartPoint]:
    """Parse ``<deg> <sign> <min>'<sec>`` into a ChartPoint, or None."""
    m = POSITION_RE.match(text.strip())
    if not m:
        return None

    degrees = int(m.group(1))
    minutes = int(m.group(3))
    try:
        seconds = float(m.group(4))
    except ValueError:
        # "1.2.3" passes the character class
        return None

    if degrees >= 30 or minutes >= 60 or seconds >= 60:
        return None

    sign = lookup_sign(m.group(2))
    if sign is None:
        return None

    within_sign = degrees + minutes / 60 + seconds / 3600
    return ChartPoint(
        longitude=sign.offset + within_sign,
        sign=sign.name,
        degree=round_half_away(within_sign),
    )


def parse_line(line: str, classifier: LineClassifier = PLANET) -> Optional[ParsedLine]:
    """Parse one comma-delimited line with the given label classifier."""
    parts = line.strip().split(',')
    if len(parts) < 2:
        return None

    label = parts[0].strip()
    key = classifier.match(label)
    if key is None:
        return None

    point = parse_position(parts[1])
    if point is None:
        return None
    return ParsedLine(label=label, key=key, point=point)


def is_data_line(line: str) -> bool:
    """False for blank lines and swetest error/warning lines."""
    return bool(line.strip()) and not any(marker in line for marker in IGNORED_MARKERS)


def parse_lines(text: str, classifier: LineClassifier = PLANET) -> Iterator[ParsedLine]:
    """Yield every parseable data line of a swetest output block, in order."""
    for line in text.splitlines():
        if not is_data_line(line):
            continue
        parsed = parse_line(line, classifier)
        if parsed is None:
            logger.debug("Skipping %s line: %r", classifier.name, line)
            continue
        yield parsed
