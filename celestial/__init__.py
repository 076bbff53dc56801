"""Natal chart engine: planetary positions, ascendant, houses and aspects."""

from .ephemeris import Body, SwissEphemeris, is_retrograde, longitude_of
from .houses import HouseSystem, ascendant, calculate_houses
from .aspects import find_aspects
from .natal import NatalChart, Position, compute_natal_chart

__all__ = [
    "Body",
    "HouseSystem",
    "NatalChart",
    "Position",
    "SwissEphemeris",
    "ascendant",
    "calculate_houses",
    "compute_natal_chart",
    "find_aspects",
    "is_retrograde",
    "longitude_of",
]
