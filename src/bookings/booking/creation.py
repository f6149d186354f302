"""Booking creation — command and handler."""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking
from bookings.booking.policy import DELIVERY_PIN_LENGTH
from bookings.domain import bookings


@bookings.command(part_of="Booking")
class CreateBooking:
    """Open a booking for a booked listing or an accepted quote."""

    shipper_id = Identifier(required=True)
    shipper_name = String(max_length=200)
    carrier_id = Identifier(required=True)
    carrier_name = String(max_length=200)
    origin = String(required=True, max_length=200)
    destination = String(required=True, max_length=200)
    pickup_date = String(max_length=10)  # ISO date
    base_rate = Float(required=True, min_value=0)
    price = Float(required=True, min_value=0)
    delivery_pin = String(max_length=DELIVERY_PIN_LENGTH)
    listing_id = Identifier()
    quote_request_id = Identifier()


@bookings.command_handler(part_of=Booking)
class CreateBookingHandler:
    @handle(CreateBooking)
    def create_booking(self, command):
        booking = Booking.create(
            shipper_id=command.shipper_id,
            shipper_name=command.shipper_name,
            carrier_id=command.carrier_id,
            carrier_name=command.carrier_name,
            origin=command.origin,
            destination=command.destination,
            pickup_date=command.pickup_date or None,
            base_rate=command.base_rate,
            price=command.price,
            delivery_pin=command.delivery_pin or None,
            listing_id=command.listing_id,
            quote_request_id=command.quote_request_id,
        )
        current_domain.repository_for(Booking).add(booking)
        return str(booking.id)
