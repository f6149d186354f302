"""Local store abstraction — durable device storage for state and the offline queue."""

from bookings.settings import get_settings

_store_instance = None


def get_local_store():
    """Return the configured local store adapter (singleton).

    Uses MemoryLocalStore by default. Configure via the LOCAL_STORE_ADAPTER
    and LOCAL_STORE_PATH environment variables.
    """
    global _store_instance
    if _store_instance is None:
        settings = get_settings()
        if settings.local_store_adapter == "memory":
            from bookings.storage.memory_adapter import MemoryLocalStore

            _store_instance = MemoryLocalStore()
        elif settings.local_store_adapter == "file":
            from bookings.storage.file_adapter import FileLocalStore

            _store_instance = FileLocalStore(settings.local_store_path)
        else:
            raise ValueError(f"Unknown local store adapter: {settings.local_store_adapter}")
    return _store_instance


def reset_local_store():
    """Reset the local store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
