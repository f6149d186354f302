"""Process settings for the bookings context, read from the environment."""

import os
from dataclasses import dataclass

_settings = None


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    markup_percent: float = 10.0
    delivery_pin_required: bool = True
    replay_delay_seconds: float = 0.5
    geolocation_timeout_seconds: float = 5.0
    local_store_adapter: str = "memory"
    local_store_path: str = ".freightconnect"
    media_adapter: str = "fake"
    geolocation_adapter: str = "fake"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            markup_percent=float(os.environ.get("PLATFORM_MARKUP_PERCENT", "10")),
            delivery_pin_required=_env_bool("DELIVERY_PIN_REQUIRED", True),
            replay_delay_seconds=int(os.environ.get("OFFLINE_REPLAY_DELAY_MS", "500")) / 1000,
            geolocation_timeout_seconds=int(os.environ.get("GEOLOCATION_TIMEOUT_MS", "5000")) / 1000,
            local_store_adapter=os.environ.get("LOCAL_STORE_ADAPTER", "memory"),
            local_store_path=os.environ.get("LOCAL_STORE_PATH", ".freightconnect"),
            media_adapter=os.environ.get("MEDIA_ADAPTER", "fake"),
            geolocation_adapter=os.environ.get("GEOLOCATION_ADAPTER", "fake"),
        )


def get_settings() -> Settings:
    """Return the process settings (loaded once from the environment)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings():
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
