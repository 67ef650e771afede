"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Wed Feb 04 2026
# SPDX-License-Identifier: MIT
"""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from starlette.requests import HTTPConnection

from smartplate.config import settings

logger = logging.getLogger(__name__)


class LocationErrorCode(str, enum.Enum):
    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


LOCATION_ERROR_MESSAGES = {
    LocationErrorCode.UNSUPPORTED: "Geolocation is not supported",
    LocationErrorCode.PERMISSION_DENIED: "Location permission denied",
    LocationErrorCode.POSITION_UNAVAILABLE: "Location unavailable",
    LocationErrorCode.TIMEOUT: "Location request timed out",
}


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


class PositionError(Exception):
    def __init__(self, code: LocationErrorCode):
        super().__init__(LOCATION_ERROR_MESSAGES[code])
        self.code = code


class PositionProvider(Protocol):
    async def get_current_position(self, enable_high_accuracy: bool) -> Position:
        ...


class StaticPositionProvider:
    """
    Serves a fixed, configured position. Without one it reports the position as unavailable.
    """

    def __init__(self, latitude: Optional[float], longitude: Optional[float], accuracy: Optional[float] = None):
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy = accuracy

    async def get_current_position(self, enable_high_accuracy: bool) -> Position:
        if self.latitude is None or self.longitude is None:
            raise PositionError(LocationErrorCode.POSITION_UNAVAILABLE)
        return Position(self.latitude, self.longitude, self.accuracy)


class LocationService:
    """
    Single-shot position acquisition with a loading flag, an error taxonomy and reuse of
    a recent fix.

    A fix younger than `maximum_age` seconds is returned without asking the provider again.
    A provider that does not answer within `timeout` seconds yields a TIMEOUT error.
    """

    def __init__(
        self,
        provider: Optional[PositionProvider],
        timeout: float = settings.geolocation_timeout_seconds,
        maximum_age: float = settings.geolocation_maximum_age_seconds,
        auto_fetch: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.timeout = timeout
        self.maximum_age = maximum_age
        self.auto_fetch = auto_fetch
        self._clock = clock
        self._fetched_at: Optional[float] = None
        self.location: Optional[Position] = None
        self.error: Optional[str] = None
        self.error_code: Optional[LocationErrorCode] = None
        self.loading = False

    async def start(self) -> None:
        if self.auto_fetch:
            await self.refresh()

    def _fresh_fix(self) -> Optional[Position]:
        if self.location is None or self._fetched_at is None:
            return None
        if self._clock() - self._fetched_at > self.maximum_age:
            return None
        return self.location

    def _fail(self, code: LocationErrorCode) -> None:
        self.error_code = code
        self.error = LOCATION_ERROR_MESSAGES[code]
        logger.info("Location acquisition failed: %s", self.error)

    async def refresh(self) -> Optional[Position]:
        if self.provider is None:
            self._fail(LocationErrorCode.UNSUPPORTED)
            return None

        cached = self._fresh_fix()
        if cached is not None:
            return cached

        self.loading = True
        self.error = None
        self.error_code = None
        try:
            position = await asyncio.wait_for(
                self.provider.get_current_position(enable_high_accuracy=True), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self._fail(LocationErrorCode.TIMEOUT)
            return None
        except PositionError as e:
            self._fail(e.code)
            return None
        finally:
            self.loading = False

        self.location = position
        self._fetched_at = self._clock()
        return position


def default_location_service() -> LocationService:
    provider = StaticPositionProvider(settings.default_latitude, settings.default_longitude)
    return LocationService(provider, auto_fetch=False)


def get_location_service(connection: HTTPConnection) -> LocationService:
    """
    Returns the location service installed by the application lifespan. It is shared
    across requests so that a recent fix is reused.
    """
    service = getattr(connection.app.state, "location_service", None)
    if service is None:
        raise RuntimeError("LocationService must be used within the application lifespan")
    return service
