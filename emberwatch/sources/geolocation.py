"""
Geolocation providers — where is the viewer?

The browser owns the real Geolocation API, so on the server a provider is
either a fix the browser already reported, a fixed position from config, or
a failure. The controller treats a missing provider (None) the same as one
that raises GeolocationUnavailable: it silently falls back to the default
viewpoint.
"""

from abc import ABC, abstractmethod
from typing import Optional

from emberwatch.models.hotspot import Coordinate


class GeolocationUnavailable(Exception):
    """The host could not (or would not) provide a position."""


class GeolocationProvider(ABC):
    """Base interface. Subclasses return a Coordinate or raise GeolocationUnavailable."""

    @abstractmethod
    async def get_current_position(self) -> Coordinate:
        ...


class FixedPositionProvider(GeolocationProvider):
    """Yields a known position — a browser-reported fix or a configured one."""

    def __init__(self, coordinate: Coordinate) -> None:
        self.coordinate = coordinate

    async def get_current_position(self) -> Coordinate:
        return self.coordinate


class FailedPositionProvider(GeolocationProvider):
    """Always fails; carries the reason reported by the host, if any."""

    def __init__(self, reason: Optional[str] = None) -> None:
        self.reason = reason or "position unavailable"

    async def get_current_position(self) -> Coordinate:
        raise GeolocationUnavailable(self.reason)


def provider_from_report(
    lat: Optional[float],
    lng: Optional[float],
    error: Optional[str] = None,
) -> GeolocationProvider:
    """Turn a browser geolocation report into a provider."""
    if lat is not None and lng is not None and not error:
        return FixedPositionProvider(Coordinate(lat=lat, lng=lng))
    return FailedPositionProvider(error)
