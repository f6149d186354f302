"""Fake geolocation — fixed position with configurable delay and failure."""

import time

from bookings.geolocation.port import GeoPoint, GeolocationPort


class FakeGeolocation(GeolocationPort):
    """Always reports the configured position (Johannesburg by default)."""

    def __init__(self):
        self.position: GeoPoint | None = GeoPoint(latitude=-26.2041, longitude=28.0473)
        self.delay_seconds = 0.0
        self.failure_reason: str | None = None

    def configure(
        self,
        position: GeoPoint | None = None,
        delay_seconds: float = 0.0,
        failure_reason: str | None = None,
    ):
        """Configure the fake position provider for testing."""
        self.position = position
        self.delay_seconds = delay_seconds
        self.failure_reason = failure_reason

    def current_position(self) -> GeoPoint | None:
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.failure_reason:
            raise OSError(self.failure_reason)
        return self.position
