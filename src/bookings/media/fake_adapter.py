"""Fake media store — in-memory, content-addressed storage for tests and demos."""

import hashlib

from bookings.media.attachment import Attachment
from bookings.media.port import MediaStorePort


class FakeMediaStore(MediaStorePort):
    """Keeps uploads in memory under ``media://sha256/<digest>/<filename>``."""

    def __init__(self):
        self.objects: dict[str, Attachment] = {}
        self.should_succeed = True
        self.failure_reason = "Media store unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Media store unavailable"):
        """Configure the fake media store behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def upload(self, attachment: Attachment) -> str:
        if not self.should_succeed:
            raise OSError(self.failure_reason)
        digest = hashlib.sha256(attachment.content).hexdigest()
        reference = f"media://sha256/{digest}/{attachment.filename}"
        self.objects[reference] = attachment
        return reference

    def fetch(self, reference: str) -> Attachment:
        return self.objects[reference]
