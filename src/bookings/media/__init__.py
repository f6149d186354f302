"""Media store abstraction — pluggable storage for evidence attachments."""

from bookings.settings import get_settings

_media_instance = None


def get_media_store():
    """Return the configured media store adapter (singleton).

    Uses FakeMediaStore by default. Configure via the MEDIA_ADAPTER
    environment variable.
    """
    global _media_instance
    if _media_instance is None:
        adapter = get_settings().media_adapter
        if adapter == "fake":
            from bookings.media.fake_adapter import FakeMediaStore

            _media_instance = FakeMediaStore()
        else:
            raise ValueError(f"Unknown media adapter: {adapter}")
    return _media_instance


def reset_media_store():
    """Reset the media store singleton (useful for testing)."""
    global _media_instance
    _media_instance = None
