"""
Ecliptic positions of the ten chart bodies using the Swiss Ephemeris.

The Moshier analytic model is used unless a directory holding Swiss
Ephemeris ``.se1`` data files is configured.
"""

import logging
import os
from enum import Enum
from typing import Optional, Union

import swisseph as swe

from .exceptions import InvalidInputError, UnknownBodyError
from .utils import normalize_angle, signed_delta

logger = logging.getLogger(__name__)


class Body(str, Enum):
    SUN = "Sun"
    MOON = "Moon"
    MERCURY = "Mercury"
    VENUS = "Venus"
    MARS = "Mars"
    JUPITER = "Jupiter"
    SATURN = "Saturn"
    URANUS = "Uranus"
    NEPTUNE = "Neptune"
    PLUTO = "Pluto"


BODIES = tuple(Body)

SWE_IDS = {
    Body.SUN: swe.SUN,
    Body.MOON: swe.MOON,
    Body.MERCURY: swe.MERCURY,
    Body.VENUS: swe.VENUS,
    Body.MARS: swe.MARS,
    Body.JUPITER: swe.JUPITER,
    Body.SATURN: swe.SATURN,
    Body.URANUS: swe.URANUS,
    Body.NEPTUNE: swe.NEPTUNE,
    Body.PLUTO: swe.PLUTO,
}

# Apparent motion of the luminaries never reverses at day granularity.
ALWAYS_PROGRADE = frozenset({Body.SUN, Body.MOON})

RETROGRADE_SAMPLE_DAYS = 1.0

# Julian days (UT) covered by the Moshier model, roughly 3000 BC to AD 3000.
SUPPORTED_JD_RANGE = (625000.5, 2818000.5)


def to_body(body: Union[Body, str]) -> Body:
    """Coerce a body name to :class:`Body`, raising ``UnknownBodyError``."""
    if isinstance(body, Body):
        return body
    try:
        return Body(body)
    except ValueError:
        raise UnknownBodyError(f"Unknown body: {body!r}")


class SwissEphemeris:
    """Ephemeris provider backed by ``pyswisseph``."""

    def __init__(self, ephemeris_path: Optional[str] = None):
        self.ephemeris_path = None
        self._use_moshier = True

        if ephemeris_path and os.path.isdir(ephemeris_path):
            files = os.listdir(ephemeris_path)
            if any(f.endswith('.se1') for f in files):
                swe.set_ephe_path(ephemeris_path)
                self.ephemeris_path = ephemeris_path
                self._use_moshier = False
            else:
                logger.warning("No .se1 files in %s, using Moshier ephemeris", ephemeris_path)

    @property
    def flags(self) -> int:
        return swe.FLG_MOSEPH if self._use_moshier else swe.FLG_SWIEPH

    def check_range(self, jd: float) -> None:
        """Raise ``InvalidInputError`` when ``jd`` is outside the supported dates."""
        start, end = SUPPORTED_JD_RANGE
        if not start <= jd <= end:
            raise InvalidInputError(
                f"Date outside supported ephemeris range (JD {start} to {end}): JD {jd:.2f}"
            )

    def longitude_of(self, body: Union[Body, str], jd: float) -> float:
        """Geocentric tropical ecliptic longitude of ``body`` at Julian day ``jd`` (UT)."""
        planet_id = SWE_IDS[to_body(body)]
        result, _ = swe.calc_ut(jd, planet_id, self.flags)
        return normalize_angle(result[0])

    def is_retrograde(self, body: Union[Body, str], jd: float) -> bool:
        """
        Detect apparent retrograde motion by sampling the longitude one day apart.

        Sampling failures report the body as direct; retrograde status is a
        refinement and must not fail the chart.
        """
        body = to_body(body)
        if body in ALWAYS_PROGRADE:
            return False
        try:
            lon0 = self.longitude_of(body, jd)
            lon1 = self.longitude_of(body, jd + RETROGRADE_SAMPLE_DAYS)
        except (swe.Error, ValueError) as e:
            logger.debug("Retrograde sampling failed for %s at JD %s: %s", body.value, jd, e)
            return False
        return signed_delta(lon0, lon1) < 0

    def true_obliquity(self, jd: float) -> float:
        """True obliquity of the ecliptic in degrees."""
        result, _ = swe.calc_ut(jd, swe.ECL_NUT, self.flags)
        return result[0]


_default_provider: Optional[SwissEphemeris] = None


def default_provider() -> SwissEphemeris:
    global _default_provider
    if _default_provider is None:
        _default_provider = SwissEphemeris()
    return _default_provider


def longitude_of(body: Union[Body, str], jd: float) -> float:
    return default_provider().longitude_of(body, jd)


def is_retrograde(body: Union[Body, str], jd: float) -> bool:
    return default_provider().is_retrograde(body, jd)
