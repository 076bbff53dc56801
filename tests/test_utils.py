from datetime import date, datetime

import pytest

from celestial.exceptions import InvalidInputError
from celestial.utils import (
    angular_separation,
    degree_in_sign,
    julian_day,
    normalize_angle,
    parse_instant,
    sign_index,
    sign_name,
    signed_delta,
    to_utc,
    validate_coordinates,
)


@pytest.mark.parametrize("value", [-720.5, -360, -0.25, 0, 45.5, 359.999, 360, 725.25, 1e6])
def test_normalize_angle_stays_in_range(value):
    result = normalize_angle(value)
    assert 0 <= result < 360


@pytest.mark.parametrize("k", [-3, -1, 1, 2, 10])
def test_normalize_angle_is_periodic(k):
    assert normalize_angle(123.25 + 360 * k) == pytest.approx(normalize_angle(123.25))


def test_normalize_angle_handles_negatives():
    assert normalize_angle(-30) == 330
    assert normalize_angle(-1e-20) == 0.0


def test_angular_separation_is_symmetric_and_bounded():
    pairs = [(0, 180), (10, 350), (359, 1), (200, 20), (45.5, 300.25)]
    for a, b in pairs:
        sep = angular_separation(a, b)
        assert 0 <= sep <= 180
        assert sep == angular_separation(b, a)
    assert angular_separation(10, 350) == 20
    assert angular_separation(359, 1) == 2


def test_signed_delta_corrects_wraparound():
    assert signed_delta(359.5, 0.5) == pytest.approx(1.0)
    assert signed_delta(0.5, 359.5) == pytest.approx(-1.0)
    assert signed_delta(100, 90) == -10


def test_sign_and_degree():
    assert sign_index(0) == 0
    assert sign_index(35) == 1
    assert sign_index(359.99) == 11
    assert sign_name(sign_index(280.37)) == "Capricorn"
    assert degree_in_sign(280.3712) == 10.37


def test_parse_instant_defaults_to_noon():
    assert parse_instant("2000-01-01") == datetime(2000, 1, 1, 12, 0)
    assert parse_instant(date(2000, 1, 1), "") == datetime(2000, 1, 1, 12, 0)
    assert parse_instant("1990-06-15", "14:30") == datetime(1990, 6, 15, 14, 30)


@pytest.mark.parametrize("birth_date, birth_time", [
    ("2000-13-01", "12:00"),
    ("not a date", None),
    ("", None),
    ("2000-01-01", "25:00"),
    ("2000-01-01", "noon"),
    ("2000-01-01", "12"),
])
def test_parse_instant_rejects_malformed_input(birth_date, birth_time):
    with pytest.raises(InvalidInputError):
        parse_instant(birth_date, birth_time)


def test_to_utc_without_timezone_keeps_naive_time():
    dt = datetime(1990, 6, 15, 14, 30)
    assert to_utc(dt) == dt


def test_to_utc_converts_local_time():
    dt = datetime(1990, 6, 15, 14, 30)
    assert to_utc(dt, "America/New_York") == datetime(1990, 6, 15, 18, 30)


def test_to_utc_rejects_unknown_timezone():
    with pytest.raises(InvalidInputError):
        to_utc(datetime(2000, 1, 1), "Mars/Olympus_Mons")


def test_julian_day_of_j2000():
    assert julian_day(datetime(2000, 1, 1, 12, 0)) == pytest.approx(2451545.0)


@pytest.mark.parametrize("lat, lon", [(91, 0), (-90.5, 0), (0, 181), (0, -180.1)])
def test_validate_coordinates_rejects_out_of_range(lat, lon):
    with pytest.raises(InvalidInputError):
        validate_coordinates(lat, lon)
