"""Angle arithmetic and birth-time helpers shared by the chart engine."""

from datetime import date, datetime, time
from typing import Optional, Union

import pytz
import swisseph as swe

from .exceptions import InvalidInputError


ZODIAC_SIGNS = (
    'Aries', 'Taurus', 'Gemini', 'Cancer', 'Leo', 'Virgo',
    'Libra', 'Scorpio', 'Sagittarius', 'Capricorn', 'Aquarius', 'Pisces',
)

DEFAULT_BIRTH_TIME = '12:00'


def normalize_angle(deg: float) -> float:
    """Normalize degrees to the half-open range [0, 360)."""
    a = deg % 360.0
    # tiny negatives such as -1e-20 % 360 round up to 360.0
    if a >= 360.0:
        a = 0.0
    return a


def angular_separation(pos1: float, pos2: float) -> float:
    """
    Shortest angular distance between two longitudes.
    Always returns a value in [0, 180].
    """
    diff = abs(normalize_angle(pos1) - normalize_angle(pos2))
    return min(diff, 360.0 - diff)


def signed_delta(from_pos: float, to_pos: float) -> float:
    """
    Signed angular progress from one longitude to another.
    Positive = to_pos is ahead of from_pos. Inputs must already lie in
    [0, 360); the result lies in [-180, 180].
    """
    diff = to_pos - from_pos
    if diff > 180:
        diff -= 360
    elif diff < -180:
        diff += 360
    return diff


def sign_index(longitude: float) -> int:
    return int(normalize_angle(longitude) // 30) % 12


def degree_in_sign(longitude: float) -> float:
    lon = normalize_angle(longitude)
    return round(lon - sign_index(lon) * 30, 2)


def sign_name(index: int) -> str:
    return ZODIAC_SIGNS[index % 12]


def _parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"Birth date is required, got {value!r}")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidInputError(f"Invalid birth date: {value!r} (expected YYYY-MM-DD)")


def _parse_time(value: Optional[Union[str, time]]) -> time:
    if value is None or (isinstance(value, str) and not value.strip()):
        value = DEFAULT_BIRTH_TIME
    if isinstance(value, time):
        return value
    parts = value.strip().split(':')
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise InvalidInputError(f"Invalid birth time: {value!r} (expected HH:MM)")
    try:
        return time(*(int(p) for p in parts))
    except ValueError:
        raise InvalidInputError(f"Invalid birth time: {value!r} (expected HH:MM)")


def parse_instant(birth_date: Union[str, date],
                  birth_time: Optional[Union[str, time]] = None) -> datetime:
    """Combine a birth date and an optional ``HH:MM`` time into a naive datetime.

    A missing time defaults to noon. No timezone conversion happens here: the
    result is handed to the ephemeris as if it were already universal time.
    """
    return datetime.combine(_parse_date(birth_date), _parse_time(birth_time))


def to_utc(dt: datetime, timezone: Optional[Union[str, pytz.tzinfo.BaseTzInfo]] = None) -> datetime:
    """Convert a local birth time to naive UTC when a timezone is given.

    Without a timezone the instant is returned untouched.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(pytz.UTC).replace(tzinfo=None)
    if timezone is None:
        return dt
    if isinstance(timezone, str):
        try:
            tz = pytz.timezone(timezone)
        except pytz.exceptions.UnknownTimeZoneError:
            raise InvalidInputError(f"Unknown timezone: {timezone}")
    else:
        tz = timezone
    try:
        local_dt = tz.localize(dt, is_dst=None)
    except pytz.exceptions.AmbiguousTimeError:
        local_dt = tz.localize(dt, is_dst=False)
    except pytz.exceptions.NonExistentTimeError:
        local_dt = tz.localize(dt, is_dst=True)
    return local_dt.astimezone(pytz.UTC).replace(tzinfo=None)


def julian_day(dt: datetime) -> float:
    hour_decimal = dt.hour + dt.minute / 60.0 + dt.second / 3600.0 + dt.microsecond / 3600000000.0
    return swe.julday(dt.year, dt.month, dt.day, hour_decimal)


def validate_coordinates(latitude: float, longitude: float) -> None:
    if latitude is None or longitude is None:
        raise InvalidInputError("Latitude and longitude are required")
    if not -90 <= latitude <= 90:
        raise InvalidInputError(f"Latitude must be between -90 and 90, got {latitude}")
    if not -180 <= longitude <= 180:
        raise InvalidInputError(f"Longitude must be between -180 and 180, got {longitude}")
