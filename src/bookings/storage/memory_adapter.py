"""In-memory local store — survives only as long as the process."""

from bookings.storage.port import LocalStorePort


class MemoryLocalStore(LocalStorePort):
    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)
