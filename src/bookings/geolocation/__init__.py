"""Geolocation abstraction — bounded-time position reads for evidence tagging."""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import structlog

from bookings.geolocation.port import GeoPoint, GeolocationPort
from bookings.settings import get_settings

logger = structlog.get_logger(__name__)

_geolocation_instance = None


def get_geolocation():
    """Return the configured geolocation adapter (singleton).

    Uses FakeGeolocation by default. Configure via the GEOLOCATION_ADAPTER
    environment variable.
    """
    global _geolocation_instance
    if _geolocation_instance is None:
        adapter = get_settings().geolocation_adapter
        if adapter == "fake":
            from bookings.geolocation.fake_adapter import FakeGeolocation

            _geolocation_instance = FakeGeolocation()
        else:
            raise ValueError(f"Unknown geolocation adapter: {adapter}")
    return _geolocation_instance


def reset_geolocation():
    """Reset the geolocation singleton (useful for testing)."""
    global _geolocation_instance
    _geolocation_instance = None


def read_location(provider: GeolocationPort, timeout: float) -> GeoPoint | None:
    """Read the position, giving up after ``timeout`` seconds.

    A slow or failing provider never blocks a transition: the location is
    simply omitted.
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(provider.current_position)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        logger.warning("Geolocation read timed out", timeout_seconds=timeout)
        return None
    except Exception:
        logger.exception("Geolocation unavailable")
        return None
    finally:
        executor.shutdown(wait=False)
