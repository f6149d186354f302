"""Application state — the process-wide context shared by the API and drivers."""

from bookings.media import get_media_store
from bookings.storage import get_local_store

_context_instance = None


def get_app_context():
    """Return the loaded application context (singleton).

    Built on first use from the configured local store and media store, so
    state persisted by a previous run is restored. Needs an active bookings
    domain context.
    """
    global _context_instance
    if _context_instance is None:
        from bookings.state.context import AppContext

        _context_instance = AppContext(get_local_store(), media=get_media_store()).load()
    return _context_instance


def reset_app_context():
    """Forget the application context (useful for testing)."""
    global _context_instance
    _context_instance = None
