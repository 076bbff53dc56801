"""Location resolution interface used before chart computation."""

from typing import Mapping, Optional, Protocol, Tuple

Coordinates = Tuple[float, float]

DEFAULT_LOCATION: Coordinates = (0.0, 0.0)


class LocationResolver(Protocol):
    def resolve(self, query: str) -> Optional[Coordinates]:
        """Return (latitude, longitude) for a place name, or None."""
        ...


class StaticLocationResolver:
    """Resolves place names from an in-memory table, ignoring case."""

    def __init__(self, places: Optional[Mapping[str, Coordinates]] = None):
        self._places = {self._key(k): (float(v[0]), float(v[1])) for k, v in (places or {}).items()}

    @staticmethod
    def _key(query: str) -> str:
        return " ".join(query.lower().split())

    def resolve(self, query: str) -> Optional[Coordinates]:
        if not query:
            return None
        return self._places.get(self._key(query))


def resolve_location(resolver: Optional[LocationResolver], query: Optional[str]) -> Coordinates:
    # An unresolved place never blocks the chart.
    if resolver is None or not query:
        return DEFAULT_LOCATION
    return resolver.resolve(query) or DEFAULT_LOCATION
