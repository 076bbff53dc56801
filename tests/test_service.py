import asyncio
import json

import httpx
import pytest

from celestial.config import Settings
from celestial.exceptions import InvalidInputError, RemoteEphemerisError
from celestial.geocode import StaticLocationResolver, resolve_location
from celestial.remote import RemoteEphemerisClient
from celestial.service import ChartRequest, ChartService, ChartSession

API_URL = "https://ephemeris.example/api/natal"

REMOTE_CHART = {
    "positions": {
        "Sun": 280.4, "Moon": 223.3, "Mercury": 271.9, "Venus": 241.6, "Mars": 327.9,
        "Jupiter": 25.3, "Saturn": 40.4, "Uranus": 314.8, "Neptune": 303.2, "Pluto": 251.5,
    },
    "ascendant": 12.0,
}


def remote_client(handler, api_key=None):
    return RemoteEphemerisClient(API_URL, api_key, transport=httpx.MockTransport(handler))


def test_location_resolver():
    resolver = StaticLocationResolver({"London, UK": (51.5074, -0.1278)})
    assert resolver.resolve("  london,   uk ") == (51.5074, -0.1278)
    assert resolver.resolve("Atlantis") is None
    assert resolve_location(resolver, "Atlantis") == (0.0, 0.0)
    assert resolve_location(None, "London, UK") == (0.0, 0.0)


@pytest.mark.asyncio
async def test_remote_client_posts_birth_data():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"data": REMOTE_CHART})

    payload = await remote_client(handler, api_key="secret").fetch_natal_chart(
        "2000-01-01", "12:00", 0.0, 0.0, "equal"
    )
    assert payload == REMOTE_CHART
    assert seen["body"] == {
        "birthDate": "2000-01-01",
        "birthTime": "12:00",
        "latitude": 0.0,
        "longitude": 0.0,
        "houseSystem": "equal",
    }
    assert seen["auth"] == "Bearer secret"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(503, text="down"),
    httpx.Response(200, json={"unexpected": True}),
    httpx.Response(200, text="not json"),
])
async def test_remote_client_errors(response):
    client = remote_client(lambda request: response)
    with pytest.raises(RemoteEphemerisError):
        await client.fetch_natal_chart("2000-01-01", "12:00", 0.0, 0.0, "equal")


@pytest.mark.asyncio
async def test_remote_client_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RemoteEphemerisError):
        await remote_client(handler).fetch_natal_chart("2000-01-01", "12:00", 0.0, 0.0, "equal")


@pytest.mark.asyncio
async def test_service_uses_remote_chart(settings, ephemeris):
    service = ChartService(settings, ephemeris=ephemeris,
                           remote=remote_client(lambda r: httpx.Response(200, json=REMOTE_CHART)))
    chart = await service.compute(ChartRequest(birth_date="2000-01-01"))
    assert chart.source == "remote"
    assert chart.ascendant == 12.0
    assert chart.sun_sign == "Capricorn"


@pytest.mark.asyncio
async def test_service_falls_back_to_local_on_remote_failure(settings, ephemeris, service):
    failing = ChartService(settings, ephemeris=ephemeris,
                           remote=remote_client(lambda r: httpx.Response(500, text="boom")))
    request = ChartRequest(birth_date="2000-01-01", birth_time="12:00", latitude=0, longitude=0)
    chart = await failing.compute(request)
    assert chart.source == "local"
    assert chart.to_dict() == (await service.compute(request)).to_dict()


@pytest.mark.asyncio
async def test_service_falls_back_on_unusable_remote_positions(settings, ephemeris):
    bad = dict(REMOTE_CHART, positions={"Sun": "east"})
    service = ChartService(settings, ephemeris=ephemeris,
                           remote=remote_client(lambda r: httpx.Response(200, json=bad)))
    chart = await service.compute(ChartRequest(birth_date="2000-01-01"))
    assert chart.source == "local"


@pytest.mark.asyncio
async def test_invalid_input_fails_before_remote_call(settings, ephemeris):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=REMOTE_CHART)

    service = ChartService(settings, ephemeris=ephemeris, remote=remote_client(handler))
    with pytest.raises(InvalidInputError):
        await service.compute(ChartRequest(birth_date="2000-01-01", latitude=123, longitude=0))
    assert calls == []


@pytest.mark.asyncio
async def test_service_resolves_place(settings, ephemeris):
    resolver = StaticLocationResolver({"Lagos": (6.5244, 3.3792)})
    service = ChartService(settings, ephemeris=ephemeris, resolver=resolver)
    chart = await service.compute(ChartRequest(birth_date="1990-06-15", place="Lagos"))
    assert (chart.latitude, chart.longitude) == (6.5244, 3.3792)
    unknown = await service.compute(ChartRequest(birth_date="1990-06-15", place="Atlantis"))
    assert (unknown.latitude, unknown.longitude) == (0.0, 0.0)


@pytest.mark.asyncio
async def test_service_uses_configured_default_house_system(ephemeris):
    settings = Settings(_env_file=None, DEFAULT_HOUSE_SYSTEM="whole-sign")
    chart = await ChartService(settings, ephemeris=ephemeris).compute(ChartRequest(birth_date="2000-01-01"))
    assert chart.house_system_used == "whole-sign"
    assert all(c % 30 == 0 for c in chart.houses)


class GatedService:
    """Completes each computation only when its gate is opened."""

    def __init__(self):
        self.gates = {}

    async def compute(self, request):
        gate = self.gates.setdefault(request.birth_date, asyncio.Event())
        await gate.wait()
        return request.birth_date


@pytest.mark.asyncio
async def test_session_discards_stale_results():
    service = GatedService()
    session = ChartSession(service)

    old = asyncio.create_task(session.update(ChartRequest(birth_date="1990-01-01")))
    await asyncio.sleep(0)
    new = asyncio.create_task(session.update(ChartRequest(birth_date="1991-01-01")))
    await asyncio.sleep(0)

    service.gates["1991-01-01"].set()
    assert await new == "1991-01-01"
    service.gates["1990-01-01"].set()
    assert await old is None
    assert session.chart == "1991-01-01"
    assert session.generation == 2


@pytest.mark.asyncio
async def test_session_applies_current_result(service):
    session = ChartSession(service)
    chart = await session.update(ChartRequest(birth_date="2000-01-01"))
    assert chart is session.chart
    assert chart.sun_sign == "Capricorn"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"positions": [1, 2, 3], "ascendant": 12},
    dict(REMOTE_CHART, houses=["x"] * 12),
    dict(REMOTE_CHART, houses=[None] * 12),
])
async def test_service_falls_back_on_malformed_remote_chart(settings, ephemeris, body):
    service = ChartService(settings, ephemeris=ephemeris,
                           remote=remote_client(lambda r: httpx.Response(200, json=body)))
    chart = await service.compute(ChartRequest(birth_date="2000-01-01"))
    assert chart.source == "local"
    assert chart.sun_sign == "Capricorn"


class BrokenRemote:
    async def fetch_natal_chart(self, *args):
        raise RuntimeError("client bug")


@pytest.mark.asyncio
async def test_service_falls_back_on_unexpected_remote_error(settings, ephemeris):
    service = ChartService(settings, ephemeris=ephemeris, remote=BrokenRemote())
    chart = await service.compute(ChartRequest(birth_date="2000-01-01"))
    assert chart.source == "local"


@pytest.mark.asyncio
async def test_out_of_range_date_fails_before_remote_call(settings, ephemeris):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=REMOTE_CHART)

    service = ChartService(settings, ephemeris=ephemeris, remote=remote_client(handler))
    with pytest.raises(InvalidInputError):
        await service.compute(ChartRequest(birth_date="5000-01-01"))
    assert calls == []


class CountingResolver(StaticLocationResolver):
    def __init__(self, places):
        super().__init__(places)
        self.calls = 0

    def resolve(self, place):
        self.calls += 1
        return super().resolve(place)


@pytest.mark.asyncio
async def test_service_resolves_place_once_per_chart(settings, ephemeris):
    resolver = CountingResolver({"Lagos": (6.5244, 3.3792)})
    service = ChartService(settings, ephemeris=ephemeris, resolver=resolver)
    await service.compute(ChartRequest(birth_date="1990-06-15", place="Lagos"))
    assert resolver.calls == 1
