from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from ..config import settings
from ..errors import LocationUnavailable
from .business_record_service import Coordinates

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    async def get_current_coordinates(self) -> Coordinates: ...


def _finite_coordinates(lat: float, lng: float) -> Coordinates:
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise LocationUnavailable("Location coordinates must be finite numbers")
    return Coordinates(lat=lat, lng=lng)


class StaticLocationProvider:
    """Answers with a fixed position, or reports the location as unsupported.

    For in-process callers (scripts, tests, embedding applications) that already
    know the position; HTTP requests use RequestLocationProvider.
    """

    def __init__(self, coords: Coordinates | None) -> None:
        self._coords = coords

    async def get_current_coordinates(self) -> Coordinates:
        if self._coords is None:
            raise LocationUnavailable("Location is not supported in this environment")
        return self._coords


class RequestLocationProvider:
    """Reads the caller's position from `lat`/`lng` or a `lat,lng` location string."""

    def __init__(self, location: str | None = None, lat: float | None = None, lng: float | None = None) -> None:
        self.location = location
        self.lat = lat
        self.lng = lng

    async def get_current_coordinates(self) -> Coordinates:
        if self.lat is not None and self.lng is not None:
            return _finite_coordinates(float(self.lat), float(self.lng))

        if self.location:
            try:
                lat_raw, lng_raw = self.location.split(",", maxsplit=1)
                lat, lng = float(lat_raw.strip()), float(lng_raw.strip())
            except (TypeError, ValueError):
                raise LocationUnavailable("Location must be formatted as 'lat,lng'") from None
            return _finite_coordinates(lat, lng)

        raise LocationUnavailable("No coordinates supplied with the request")


@dataclass(frozen=True)
class _CachedFix:
    coords: Coordinates
    obtained_at: float


class LocationService:
    def __init__(
        self,
        timeout_seconds: float = settings.location_timeout_seconds,
        max_age_seconds: float = settings.location_max_age_seconds,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._fixes: dict[str, _CachedFix] = {}

    def _cached(self, cache_key: str | None) -> Coordinates | None:
        if cache_key is None:
            return None
        fix = self._fixes.get(cache_key)
        if fix is None:
            return None
        if self._clock() - fix.obtained_at > self.max_age_seconds:
            del self._fixes[cache_key]
            return None
        return fix.coords

    def _remember(self, cache_key: str | None, coords: Coordinates) -> None:
        if cache_key is None:
            return
        now = self._clock()
        stale = [key for key, fix in self._fixes.items() if now - fix.obtained_at > self.max_age_seconds]
        for key in stale:
            del self._fixes[key]
        self._fixes[cache_key] = _CachedFix(coords=coords, obtained_at=now)

    async def request_current_location(self, provider: LocationProvider, cache_key: str | None = None) -> Coordinates:
        """Ask the provider for a position fix.

        A fix younger than `max_age_seconds` recorded under `cache_key` is reused
        without asking again. Denial, timeout and unsupported providers all raise
        LocationUnavailable; nothing is retried.
        """
        cached = self._cached(cache_key)
        if cached is not None:
            return cached

        try:
            coords = await asyncio.wait_for(provider.get_current_coordinates(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            raise LocationUnavailable(
                f"Location request timed out after {self.timeout_seconds:g}s"
            ) from None

        self._remember(cache_key, coords)
        return coords

    async def resolve_or_none(self, provider: LocationProvider, cache_key: str | None = None) -> Coordinates | None:
        try:
            return await self.request_current_location(provider, cache_key=cache_key)
        except LocationUnavailable as exc:
            logger.info("Continuing without user location: %s", exc)
            return None

    def clear(self) -> None:
        self._fixes.clear()


location_service = LocationService()


async def request_current_location(provider: LocationProvider, cache_key: str | None = None) -> Coordinates:
    """Library entry point backed by the shared `location_service`.

    Pass a stable `cache_key` (a device or session id) to reuse a recent fix.
    The HTTP routes pass none because every request carries its own position.
    """
    return await location_service.request_current_location(provider, cache_key=cache_key)
