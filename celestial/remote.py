"""Client for an optional hosted ephemeris service returning natal chart data."""

import logging
from typing import Any, Dict, Optional

import httpx

from .exceptions import RemoteEphemerisError

logger = logging.getLogger(__name__)


class RemoteEphemerisClient:
    """
    POSTs birth data to a remote ephemeris service.

    Accepted response shapes are ``{"positions": {...}, "ascendant": ...}``
    and the same object wrapped in ``{"data": {...}}``.
    """

    def __init__(self, api_url: str, api_key: Optional[str] = None,
                 timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not api_url:
            raise ValueError("No API URL provided")
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch_natal_chart(self, birth_date: str, birth_time: str,
                                latitude: float, longitude: float,
                                house_system: str) -> Dict[str, Any]:
        body = {
            "birthDate": birth_date,
            "birthTime": birth_time,
            "latitude": latitude,
            "longitude": longitude,
            "houseSystem": house_system,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise RemoteEphemerisError(f"Ephemeris API request failed: {e}") from e

        if response.is_error:
            raise RemoteEphemerisError(f"Ephemeris API error: {response.status_code} {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteEphemerisError("Ephemeris API returned invalid JSON") from e

        if isinstance(payload, dict):
            if payload.get("positions") and payload.get("ascendant") is not None:
                return payload
            data = payload.get("data")
            if isinstance(data, dict) and data.get("positions"):
                return data

        raise RemoteEphemerisError("Unexpected ephemeris API response shape")
