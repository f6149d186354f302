"""Booking delivery — commands and handler.

Records hand-over by the driver and verification by the shipper, which
releases the escrowed payment.
"""

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking
from bookings.booking.policy import DELIVERY_PIN_LENGTH
from bookings.domain import bookings


@bookings.command(part_of="Booking")
class CompleteDelivery:
    """Record proof of delivery for a booking at its delivery point."""

    booking_id = Identifier(required=True)
    proof_of_delivery = Text()  # media reference
    offload_photo = Text()  # media reference
    signature = Text()
    delivery_pin = String(max_length=DELIVERY_PIN_LENGTH)
    latitude = Float()
    longitude = Float()


@bookings.command(part_of="Booking")
class VerifyDelivery:
    """Shipper verifies the proof of delivery."""

    booking_id = Identifier(required=True)
    verified_by = String(required=True, max_length=100)


@bookings.command_handler(part_of=Booking)
class DeliveryHandler:
    @handle(CompleteDelivery)
    def complete_delivery(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.complete_delivery(
            proof_of_delivery=command.proof_of_delivery,
            offload_photo=command.offload_photo,
            signature=command.signature,
            delivery_pin=command.delivery_pin,
            latitude=command.latitude,
            longitude=command.longitude,
        )
        repo.add(booking)

    @handle(VerifyDelivery)
    def verify_delivery(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.verify_delivery(command.verified_by)
        repo.add(booking)
