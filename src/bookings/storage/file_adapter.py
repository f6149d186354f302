"""File-backed local store — one UTF-8 file per key under a directory.

Writes go to a temporary file first and are renamed into place, so a crash
mid-write leaves the previous value intact.
"""

import os
import re
from pathlib import Path

from bookings.storage.port import LocalStorePort

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class FileLocalStore(LocalStorePort):
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
