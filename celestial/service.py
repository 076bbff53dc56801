"""
Chart orchestration: optional remote ephemeris first, local engine otherwise.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple, Union

from .config import Settings, get_settings
from .ephemeris import SwissEphemeris
from .geocode import LocationResolver, resolve_location
from .houses import HouseCalculator, default_strategies
from .natal import NatalChart, chart_from_payload, compute_natal_chart
from .remote import RemoteEphemerisClient
from .utils import DEFAULT_BIRTH_TIME, julian_day, parse_instant, to_utc, validate_coordinates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartRequest:
    birth_date: Union[str, date]
    birth_time: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place: Optional[str] = None
    house_system: Optional[str] = None
    timezone: Optional[str] = None


class ChartService:
    """Computes natal charts; every call is independent and stateless."""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 ephemeris: Optional[SwissEphemeris] = None,
                 houses: Optional[HouseCalculator] = None,
                 resolver: Optional[LocationResolver] = None,
                 remote: Optional[RemoteEphemerisClient] = None):
        self.settings = settings or get_settings()
        self.ephemeris = ephemeris or SwissEphemeris(self.settings.EPHEMERIS_PATH)
        self.houses = houses or HouseCalculator(default_strategies(self.ephemeris))
        self.resolver = resolver
        if remote is None and self.settings.EPHEMERIS_API_URL:
            remote = RemoteEphemerisClient(
                self.settings.EPHEMERIS_API_URL,
                self.settings.EPHEMERIS_API_KEY,
                timeout=self.settings.REMOTE_TIMEOUT,
            )
        self.remote = remote

    def _location(self, request: ChartRequest):
        if request.latitude is not None and request.longitude is not None:
            return request.latitude, request.longitude
        return resolve_location(self.resolver, request.place)

    def compute_local(self, request: ChartRequest,
                      location: Optional[Tuple[float, float]] = None) -> NatalChart:
        latitude, longitude = location if location is not None else self._location(request)
        return compute_natal_chart(
            request.birth_date,
            request.birth_time,
            latitude,
            longitude,
            request.house_system or self.settings.DEFAULT_HOUSE_SYSTEM,
            timezone=request.timezone,
            ephemeris=self.ephemeris,
            houses=self.houses,
            house_assignment=self.settings.HOUSE_ASSIGNMENT,
        )

    async def compute(self, request: ChartRequest) -> NatalChart:
        """
        Compute a chart, trying the remote service first when one is configured.

        Invalid input fails before any remote call. Remote failures of any
        kind fall through to the local engine.
        """
        latitude, longitude = self._location(request)
        validate_coordinates(latitude, longitude)
        birth = parse_instant(request.birth_date, request.birth_time)
        self.ephemeris.check_range(julian_day(to_utc(birth, request.timezone)))
        house_system = request.house_system or self.settings.DEFAULT_HOUSE_SYSTEM

        if self.remote is not None:
            try:
                payload = await self.remote.fetch_natal_chart(
                    birth.date().isoformat(),
                    request.birth_time or DEFAULT_BIRTH_TIME,
                    latitude,
                    longitude,
                    house_system,
                )
                return chart_from_payload(
                    payload, latitude, longitude, house_system, birth,
                    house_assignment=self.settings.HOUSE_ASSIGNMENT,
                )
            except Exception as e:
                logger.warning("Ephemeris API failed, falling back to local ephemeris: %s", e)

        return self.compute_local(request, (latitude, longitude))


class ChartSession:
    """
    Holds the current chart for one set of birth data.

    Each computation takes a generation token; a result that finishes after
    a newer computation started is discarded instead of applied.
    """

    def __init__(self, service: ChartService):
        self.service = service
        self.chart: Optional[NatalChart] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> int:
        self._generation += 1
        return self._generation

    async def update(self, request: ChartRequest) -> Optional[NatalChart]:
        token = self.invalidate()
        chart = await self.service.compute(request)
        if token != self._generation:
            logger.debug("Discarding stale chart (generation %d, current %d)", token, self._generation)
            return None
        self.chart = chart
        return chart
