"""Local store port — durable text key-value storage on the operator's device."""

from abc import ABC, abstractmethod


class LocalStorePort(ABC):
    """Abstract interface for local store adapters."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the text stored under ``key``, or None if absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; removing an absent key is not an error."""
        ...
