"""
Ascendant and house cusp calculation.

House systems are strategies held in a registry. ``equal`` and
``whole-sign`` are computed locally from the ascendant and never fail; the
quadrant systems are delegated to ``swe.houses_ex``. Whenever a strategy is
missing or fails, the calculator falls back to equal houses so a chart is
always produced.
"""

import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, NamedTuple, Optional, Sequence, Tuple, Union

import swisseph as swe

from .ephemeris import SwissEphemeris, default_provider
from .exceptions import HouseCalculationError
from .utils import normalize_angle

logger = logging.getLogger(__name__)

# The tangent term degenerates at the poles.
MAX_ABS_LATITUDE = 89.9


class HouseSystem(str, Enum):
    EQUAL = "equal"
    WHOLE_SIGN = "whole-sign"
    PLACIDUS = "placidus"
    KOCH = "koch"
    PORPHYRY = "porphyry"
    REGIOMONTANUS = "regiomontanus"
    CAMPANUS = "campanus"
    TOPOCENTRIC = "topocentric"
    ALCABITIUS = "alcabitius"
    MORINUS = "morinus"


SWE_HOUSE_CODES = {
    HouseSystem.PLACIDUS: b'P',
    HouseSystem.KOCH: b'K',
    HouseSystem.PORPHYRY: b'O',
    HouseSystem.REGIOMONTANUS: b'R',
    HouseSystem.CAMPANUS: b'C',
    HouseSystem.TOPOCENTRIC: b'T',
    HouseSystem.ALCABITIUS: b'B',
    HouseSystem.MORINUS: b'M',
}

# Systems whose cusps are undefined inside the polar circles.
POLAR_SENSITIVE = frozenset({HouseSystem.PLACIDUS, HouseSystem.KOCH})


class HouseResult(NamedTuple):
    cusps: Tuple[float, ...]
    system: HouseSystem


def ascendant(jd: float, latitude: float, longitude: float,
              provider: Optional[SwissEphemeris] = None) -> float:
    """
    Ecliptic longitude of the eastern horizon point.

    GMST comes from ``swe.sidtime`` (hours), the local sidereal time adds the
    observer's east longitude, and the true obliquity is taken for the same
    instant. Latitude is clamped to ±89.9°.
    """
    provider = provider or default_provider()
    latitude = max(-MAX_ABS_LATITUDE, min(MAX_ABS_LATITUDE, latitude))

    gmst = swe.sidtime(jd) * 15.0
    lst = normalize_angle(gmst + longitude)
    obliquity = provider.true_obliquity(jd)

    lat_rad = math.radians(latitude)
    lst_rad = math.radians(lst)
    obl_rad = math.radians(obliquity)

    asc_rad = math.atan2(
        -math.cos(lst_rad),
        math.sin(lst_rad) * math.sin(lat_rad) + math.tan(obl_rad) * math.cos(lat_rad)
    )
    return normalize_angle(math.degrees(asc_rad))


def house_of(longitude: float, asc: float) -> int:
    """House number using equal 30° sectors counted from the ascendant."""
    return int(normalize_angle(longitude - asc) // 30) % 12 + 1


def house_from_cusps(longitude: float, cusps: Sequence[float]) -> int:
    """House number using the actual cusp boundaries."""
    planet_long = normalize_angle(longitude)

    for i in range(12):
        cusp_start = normalize_angle(cusps[i])
        cusp_end = normalize_angle(cusps[(i + 1) % 12])

        if cusp_start < cusp_end:
            if cusp_start <= planet_long < cusp_end:
                return i + 1
        elif cusp_start > cusp_end:  # House spans 0°
            if planet_long >= cusp_start or planet_long < cusp_end:
                return i + 1
    return 1


class HouseSystemStrategy(ABC):
    """Produces 12 house cusps for one house system."""

    @abstractmethod
    def cusps(self, asc: float, latitude: float, longitude: float, jd: float) -> Tuple[float, ...]:
        ...


class EqualHouses(HouseSystemStrategy):
    def cusps(self, asc, latitude=0.0, longitude=0.0, jd=0.0):
        return tuple(normalize_angle(asc + 30 * i) for i in range(12))


class WholeSignHouses(HouseSystemStrategy):
    def cusps(self, asc, latitude=0.0, longitude=0.0, jd=0.0):
        asc_sign = int(normalize_angle(asc) // 30)
        return tuple(30.0 * ((asc_sign + i) % 12) for i in range(12))


class SwissEphHouses(HouseSystemStrategy):
    """Quadrant and other precise house systems from the Swiss Ephemeris."""

    def __init__(self, system: HouseSystem, provider: Optional[SwissEphemeris] = None):
        if system not in SWE_HOUSE_CODES:
            raise ValueError(f"No Swiss Ephemeris code for house system {system.value}")
        self.system = system
        self.code = SWE_HOUSE_CODES[system]
        self.provider = provider

    def cusps(self, asc, latitude, longitude, jd):
        if self.system in POLAR_SENSITIVE:
            obliquity = (self.provider or default_provider()).true_obliquity(jd)
            if abs(latitude) >= 90.0 - obliquity:
                raise HouseCalculationError(
                    f"{self.system.value} houses are undefined at latitude {latitude}"
                )
        try:
            cusps_raw, _ascmc = swe.houses_ex(jd, latitude, longitude, self.code)
        except swe.Error as e:
            raise HouseCalculationError(f"swe.houses_ex failed: {e}") from e

        # Older pyswisseph releases return 13 values with an unused slot 0.
        cusps = [normalize_angle(c) for c in cusps_raw[-12:]]
        if len(cusps) != 12 or not all(math.isfinite(c) for c in cusps):
            raise HouseCalculationError(f"Unexpected cusps from swe.houses_ex: {cusps_raw!r}")
        return tuple(cusps)


def default_strategies(provider: Optional[SwissEphemeris] = None) -> Dict[HouseSystem, HouseSystemStrategy]:
    strategies: Dict[HouseSystem, HouseSystemStrategy] = {
        HouseSystem.EQUAL: EqualHouses(),
        HouseSystem.WHOLE_SIGN: WholeSignHouses(),
    }
    for system in SWE_HOUSE_CODES:
        strategies[system] = SwissEphHouses(system, provider)
    return strategies


class HouseCalculator:
    """Selects a house strategy by name and degrades to equal houses."""

    def __init__(self, strategies: Optional[Dict[HouseSystem, HouseSystemStrategy]] = None):
        self.strategies = dict(default_strategies() if strategies is None else strategies)
        self._fallback = EqualHouses()

    @property
    def available(self) -> Tuple[HouseSystem, ...]:
        return tuple(s for s in HouseSystem if s in self.strategies)

    def calculate(self, asc: float, system: Union[HouseSystem, str] = HouseSystem.EQUAL,
                  latitude: float = 0.0, longitude: float = 0.0, jd: float = 0.0) -> HouseResult:
        try:
            requested = HouseSystem(system)
        except ValueError:
            logger.warning("Unknown house system %r, using equal houses", system)
            return HouseResult(self._fallback.cusps(asc), HouseSystem.EQUAL)

        strategy = self.strategies.get(requested)
        if strategy is None:
            logger.warning("House system %s unavailable, using equal houses", requested.value)
            return HouseResult(self._fallback.cusps(asc), HouseSystem.EQUAL)

        try:
            cusps = strategy.cusps(asc, latitude, longitude, jd)
        except Exception as e:
            logger.warning("House system %s failed (%s), using equal houses", requested.value, e)
            return HouseResult(self._fallback.cusps(asc), HouseSystem.EQUAL)
        return HouseResult(tuple(cusps), requested)


_default_calculator: Optional[HouseCalculator] = None


def calculate_houses(asc: float, system: Union[HouseSystem, str] = HouseSystem.EQUAL,
                     latitude: float = 0.0, longitude: float = 0.0, jd: float = 0.0) -> Tuple[float, ...]:
    """Twelve house cusps for ``system``; equal houses if it cannot be computed."""
    global _default_calculator
    if _default_calculator is None:
        _default_calculator = HouseCalculator()
    return _default_calculator.calculate(asc, system, latitude, longitude, jd).cusps
