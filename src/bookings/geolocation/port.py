"""Geolocation port — where the driver's device currently is."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def as_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


class GeolocationPort(ABC):
    """Abstract interface for device position providers."""

    @abstractmethod
    def current_position(self) -> GeoPoint | None:
        """Read the current position; may block while the device acquires a fix.

        Returns:
            The position, or None if the device has no fix.
        """
        ...
