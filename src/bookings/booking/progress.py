"""Booking progress — acceptance and evidence-free status moves.

Covers Pending → Accepted, Accepted → Arrived_At_Pickup,
Collected → In_Transit and In_Transit → Arrived_At_Delivery. Any other
target is rejected by the transition policy.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking
from bookings.booking.policy import BookingStatus
from bookings.domain import bookings


@bookings.command(part_of="Booking")
class AcceptBooking:
    """Carrier accepts a pending booking."""

    booking_id = Identifier(required=True)


@bookings.command(part_of="Booking")
class UpdateBookingStatus:
    """Move a booking to the next status when no evidence is required."""

    booking_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@bookings.command_handler(part_of=Booking)
class BookingProgressHandler:
    @handle(AcceptBooking)
    def accept_booking(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.accept()
        repo.add(booking)

    @handle(UpdateBookingStatus)
    def update_status(self, command):
        try:
            target = BookingStatus(command.status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown booking status {command.status}"]}) from None

        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.advance(target)
        repo.add(booking)
