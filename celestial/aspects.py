"""Pairwise aspect detection between chart bodies."""

from dataclasses import dataclass
from typing import List, Mapping, Union

from .utils import angular_separation


@dataclass(frozen=True)
class AspectDefinition:
    """Definition of an astrological aspect with a fixed orb."""
    name: str
    angle: float
    orb: float
    symbol: str
    nature: str  # major, soft or hard


ASPECTS = (
    AspectDefinition('conjunction', 0, 8, '☌', 'major'),
    AspectDefinition('sextile', 60, 6, '⚹', 'soft'),
    AspectDefinition('square', 90, 8, '□', 'hard'),
    AspectDefinition('trine', 120, 8, '△', 'soft'),
    AspectDefinition('opposition', 180, 8, '☍', 'hard'),
)


@dataclass(frozen=True)
class Aspect:
    body_a: str
    body_b: str
    aspect_type: str
    exact_angle: float
    orb: float
    nature: str
    symbol: str

    def to_dict(self) -> dict:
        return {
            'planet1': self.body_a,
            'planet2': self.body_b,
            'aspect': self.aspect_type,
            'angle': self.exact_angle,
            'orb': self.orb,
            'nature': self.nature,
            'symbol': self.symbol,
        }


def _longitude(value) -> float:
    return value if isinstance(value, (int, float)) else value.longitude


def find_aspects(positions: Mapping[str, Union[float, object]]) -> List[Aspect]:
    """
    Find every aspect between pairs of bodies.

    ``positions`` maps body names to longitudes (or objects with a
    ``longitude`` attribute) in chart order. Pairs are visited in that order
    with i < j, and a pair that falls inside more than one orb window yields
    one record per matching aspect.
    """
    names = list(positions.keys())
    aspects = []

    for i, name1 in enumerate(names):
        for name2 in names[i + 1:]:
            sep = angular_separation(_longitude(positions[name1]), _longitude(positions[name2]))

            for aspect_def in ASPECTS:
                orb = abs(sep - aspect_def.angle)
                if orb <= aspect_def.orb:
                    aspects.append(Aspect(
                        body_a=str(getattr(name1, 'value', name1)),
                        body_b=str(getattr(name2, 'value', name2)),
                        aspect_type=aspect_def.name,
                        exact_angle=aspect_def.angle,
                        orb=round(orb, 1),
                        nature=aspect_def.nature,
                        symbol=aspect_def.symbol,
                    ))
    return aspects
