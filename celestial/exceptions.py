"""Custom exceptions for the Celestial Self chart engine."""


class CelestialError(Exception):
    """Base exception for all engine and API errors."""
    pass


class InvalidInputError(CelestialError):
    """Raised when a date, time or coordinate value is malformed."""
    pass


class UnknownBodyError(CelestialError):
    """Raised when a body identifier is not one of the ten supported bodies."""
    pass


class HouseCalculationError(CelestialError):
    """Raised by a house strategy that cannot produce cusps.

    Never reaches callers of ``calculate_houses``; it triggers the
    equal-house fallback.
    """
    pass


class RemoteEphemerisError(CelestialError):
    """Raised when the remote ephemeris service fails or answers badly."""
    pass


class ChartCalculationError(CelestialError):
    """Raised when chart calculation fails unexpectedly."""
    pass
