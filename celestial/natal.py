"""
Natal chart assembly.

Combines the ephemeris, ascendant, house and aspect calculators into one
immutable :class:`NatalChart`. Any change of input means building a new
chart; nothing is updated in place.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from .aspects import Aspect, find_aspects
from .ephemeris import BODIES, Body, SwissEphemeris, default_provider, to_body
from .exceptions import InvalidInputError
from .houses import (
    HouseCalculator,
    HouseSystem,
    ascendant,
    default_strategies,
    house_from_cusps,
    house_of,
)
from .utils import (
    degree_in_sign,
    julian_day,
    normalize_angle,
    parse_instant,
    sign_index,
    sign_name,
    to_utc,
    validate_coordinates,
)

logger = logging.getLogger(__name__)

HOUSE_ASSIGNMENT_SECTOR = 'sector'
HOUSE_ASSIGNMENT_CUSPS = 'cusps'


@dataclass(frozen=True)
class Position:
    body: Body
    longitude: float
    sign_index: int
    degree: float
    house: int
    retrograde: bool

    @property
    def sign(self) -> str:
        return sign_name(self.sign_index)

    @property
    def formatted(self) -> str:
        deg_int = int(self.degree)
        minutes = int(round((self.degree - deg_int) * 60))
        if minutes == 60:
            deg_int, minutes = deg_int + 1, 0
        return f"{deg_int}°{minutes:02d}' {self.sign}"

    def to_dict(self) -> Dict:
        return {
            'planet': self.body.value,
            'longitude': self.longitude,
            'sign': self.sign,
            'sign_num': self.sign_index,
            'degree': self.degree,
            'house': self.house,
            'retrograde': self.retrograde,
            'formatted': self.formatted,
        }


@dataclass(frozen=True)
class NatalChart:
    """Calculated natal chart. Immutable once built."""
    positions: Mapping[Body, Position]
    ascendant: float
    houses: Tuple[float, ...]
    aspects: Tuple[Aspect, ...]
    birth: Optional[datetime] = None
    latitude: float = 0.0
    longitude: float = 0.0
    house_system: str = HouseSystem.EQUAL.value
    house_system_used: str = HouseSystem.EQUAL.value
    source: str = 'local'
    metadata: Mapping = field(default_factory=lambda: MappingProxyType({}))

    @property
    def sun_sign(self) -> str:
        return self.positions[Body.SUN].sign

    @property
    def moon_sign(self) -> str:
        return self.positions[Body.MOON].sign

    @property
    def rising_sign(self) -> str:
        return sign_name(sign_index(self.ascendant))

    def to_dict(self) -> Dict:
        return {
            'metadata': {
                'birth_date': self.birth.isoformat() if self.birth else None,
                'latitude': self.latitude,
                'longitude': self.longitude,
                'house_system': self.house_system,
                'house_system_used': self.house_system_used,
                'source': self.source,
                **self.metadata,
            },
            'sun_sign': self.sun_sign,
            'moon_sign': self.moon_sign,
            'rising_sign': self.rising_sign,
            'ascendant': self.ascendant,
            'houses': list(self.houses),
            'positions': {body.value: p.to_dict() for body, p in self.positions.items()},
            'aspects': [a.to_dict() for a in self.aspects],
        }

    def format_text(self) -> str:
        lines = []
        lines.append("=" * 60)
        lines.append("NATAL CHART")
        lines.append("=" * 60)
        if self.birth:
            lines.append(f"Birth:          {self.birth.strftime('%Y-%m-%d %H:%M')}")
        lines.append(f"Location:       {abs(self.latitude):.4f}°{'N' if self.latitude >= 0 else 'S'}, "
                     f"{abs(self.longitude):.4f}°{'E' if self.longitude >= 0 else 'W'}")
        lines.append(f"House System:   {self.house_system_used}")
        lines.append(f"Sun / Moon / Rising: {self.sun_sign} / {self.moon_sign} / {self.rising_sign}")
        lines.append("")

        lines.append("PLANETARY POSITIONS")
        lines.append("-" * 60)
        lines.append(f"{'Planet':<10} {'Position':<18} {'House':<7} {'Motion'}")
        lines.append("-" * 60)
        for p in self.positions.values():
            motion = "R" if p.retrograde else "D"
            lines.append(f"{p.body.value:<10} {p.formatted:<18} {p.house:<7} {motion}")

        lines.append("")
        lines.append("ASPECTS")
        lines.append("-" * 60)
        if self.aspects:
            for asp in self.aspects:
                lines.append(f"  {asp.body_a:<10} {asp.symbol} {asp.body_b:<10} "
                             f"{asp.aspect_type:<12} orb {asp.orb:4.1f}°")
        else:
            lines.append("  No aspects within orb")

        return "\n".join(lines)


def _assign_house(longitude: float, asc: float, cusps: Tuple[float, ...], assignment: str) -> int:
    if assignment == HOUSE_ASSIGNMENT_CUSPS:
        return house_from_cusps(longitude, cusps)
    return house_of(longitude, asc)


def _build_positions(raw: Mapping[Body, Tuple[float, bool]], asc: float,
                     cusps: Tuple[float, ...], assignment: str) -> Mapping[Body, Position]:
    positions = {}
    for body, (lon, retro) in raw.items():
        lon = normalize_angle(lon)
        positions[body] = Position(
            body=body,
            longitude=lon,
            sign_index=sign_index(lon),
            degree=degree_in_sign(lon),
            house=_assign_house(lon, asc, cusps, assignment),
            retrograde=retro,
        )
    return MappingProxyType(positions)


def compute_natal_chart(birth_date: Union[str, date],
                        birth_time: Optional[Union[str, time]] = None,
                        latitude: Optional[float] = 0.0,
                        longitude: Optional[float] = 0.0,
                        house_system: Union[HouseSystem, str] = HouseSystem.EQUAL,
                        *,
                        timezone: Optional[str] = None,
                        ephemeris: Optional[SwissEphemeris] = None,
                        houses: Optional[HouseCalculator] = None,
                        house_assignment: str = HOUSE_ASSIGNMENT_SECTOR) -> NatalChart:
    """
    Calculate a natal chart for a birth date, time and place.

    Missing time defaults to 12:00 and a missing location to (0, 0). The
    birth time is used as given unless ``timezone`` names an IANA zone to
    convert from.
    """
    latitude = 0.0 if latitude is None else latitude
    longitude = 0.0 if longitude is None else longitude
    validate_coordinates(latitude, longitude)
    if house_assignment not in (HOUSE_ASSIGNMENT_SECTOR, HOUSE_ASSIGNMENT_CUSPS):
        raise InvalidInputError(f"Unknown house assignment: {house_assignment!r}")

    ephemeris = ephemeris or default_provider()
    houses = houses or HouseCalculator(default_strategies(ephemeris))

    birth = parse_instant(birth_date, birth_time)
    jd = julian_day(to_utc(birth, timezone))
    ephemeris.check_range(jd)

    raw = {}
    for body in BODIES:
        raw[body] = (ephemeris.longitude_of(body, jd), ephemeris.is_retrograde(body, jd))

    asc = ascendant(jd, latitude, longitude, ephemeris)
    result = houses.calculate(asc, house_system, latitude, longitude, jd)
    positions = _build_positions(raw, asc, result.cusps, house_assignment)

    logger.debug("Computed natal chart for %s at (%s, %s) with %s houses",
                 birth.isoformat(), latitude, longitude, result.system.value)

    return NatalChart(
        positions=positions,
        ascendant=asc,
        houses=result.cusps,
        aspects=tuple(find_aspects(positions)),
        birth=birth,
        latitude=latitude,
        longitude=longitude,
        house_system=getattr(house_system, 'value', house_system),
        house_system_used=result.system.value,
        metadata=MappingProxyType({'julian_day': jd, 'timezone': timezone or 'naive'}),
    )


def _remote_longitude(value) -> Tuple[float, bool]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value), False
    if isinstance(value, Mapping):
        lon = value.get('longitude', 0)
        if not isinstance(lon, (int, float)) or isinstance(lon, bool):
            raise InvalidInputError(f"Invalid longitude in remote position: {value!r}")
        return float(lon), bool(value.get('retrograde', False))
    raise InvalidInputError(f"Invalid remote position: {value!r}")


def chart_from_payload(payload: Mapping,
                       latitude: float = 0.0,
                       longitude: float = 0.0,
                       house_system: Union[HouseSystem, str] = HouseSystem.EQUAL,
                       birth: Optional[datetime] = None,
                       house_assignment: str = HOUSE_ASSIGNMENT_SECTOR) -> NatalChart:
    """
    Build a chart from positions computed elsewhere.

    ``payload`` carries ``positions`` (body name to a longitude or to a
    mapping with ``longitude`` and ``retrograde``), ``ascendant`` and
    optionally ``houses``. Signs, houses and aspects are derived locally.
    """
    try:
        asc = normalize_angle(float(payload['ascendant']))
        remote_positions = payload['positions']
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidInputError(f"Remote chart is missing positions or ascendant: {e}")
    if not isinstance(remote_positions, Mapping):
        raise InvalidInputError(f"Remote positions must be a mapping, got {type(remote_positions).__name__}")

    raw = {}
    for name, value in remote_positions.items():
        raw[to_body(name)] = _remote_longitude(value)
    missing = [b.value for b in BODIES if b not in raw]
    if missing:
        raise InvalidInputError(f"Remote chart is missing bodies: {', '.join(missing)}")
    raw = {body: raw[body] for body in BODIES}

    cusps_in = payload.get('houses')
    if isinstance(cusps_in, (list, tuple)) and len(cusps_in) >= 12:
        try:
            cusps = tuple(normalize_angle(float(c)) for c in cusps_in[:12])
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid house cusps in remote chart: {e}")
        used = getattr(house_system, 'value', house_system)
    else:
        cusps = HouseCalculator({}).calculate(asc).cusps
        used = HouseSystem.EQUAL.value

    positions = _build_positions(raw, asc, cusps, house_assignment)
    return NatalChart(
        positions=positions,
        ascendant=asc,
        houses=cusps,
        aspects=tuple(find_aspects(positions)),
        birth=birth,
        latitude=latitude,
        longitude=longitude,
        house_system=getattr(house_system, 'value', house_system),
        house_system_used=used,
        source='remote',
    )


if __name__ == "__main__":
    chart = compute_natal_chart('1990-06-15', '14:30', 40.7128, -74.0060, 'placidus')
    print(chart.format_text())
