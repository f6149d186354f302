"""Booking collection — command and handler.

Records the load photo, seal details and pickup location.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking
from bookings.booking.policy import SEAL_NUMBER_MAX_LENGTH
from bookings.domain import bookings


@bookings.command(part_of="Booking")
class ConfirmCollection:
    """Confirm the load was collected."""

    booking_id = Identifier(required=True)
    photo = Text()  # media reference
    sealed = Boolean()
    seal_number = String(max_length=SEAL_NUMBER_MAX_LENGTH)
    latitude = Float()
    longitude = Float()


@bookings.command_handler(part_of=Booking)
class CollectionHandler:
    @handle(ConfirmCollection)
    def confirm_collection(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.confirm_collection(
            photo=command.photo,
            sealed=command.sealed,
            seal_number=command.seal_number,
            latitude=command.latitude,
            longitude=command.longitude,
        )
        repo.add(booking)
