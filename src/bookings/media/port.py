"""Media store port — abstract interface for evidence file storage.

The booking store uploads attachments here and records only the returned
reference on the booking.
"""

from abc import ABC, abstractmethod

from bookings.media.attachment import Attachment


class MediaStorePort(ABC):
    """Abstract interface for media store adapters."""

    @abstractmethod
    def upload(self, attachment: Attachment) -> str:
        """Store the attachment.

        Returns:
            A stable reference that can be recorded on a booking.
        """
        ...

    @abstractmethod
    def fetch(self, reference: str) -> Attachment:
        """Return the attachment stored under ``reference``.

        Raises:
            KeyError if nothing is stored under the reference.
        """
        ...
