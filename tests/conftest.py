import pytest

from celestial.config import Settings
from celestial.ephemeris import SwissEphemeris
from celestial.service import ChartService
from celestial.utils import julian_day, parse_instant


@pytest.fixture
def settings():
    return Settings(_env_file=None, EPHEMERIS_API_URL=None, DEFAULT_HOUSE_SYSTEM="equal")


@pytest.fixture
def ephemeris():
    return SwissEphemeris()


@pytest.fixture
def service(settings, ephemeris):
    return ChartService(settings, ephemeris=ephemeris)


@pytest.fixture
def j2000():
    # 2000-01-01 12:00
    return julian_day(parse_instant("2000-01-01", "12:00"))
