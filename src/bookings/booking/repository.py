"""Repository for the Booking aggregate."""

from bookings.booking.booking import Booking
from bookings.domain import bookings


@bookings.repository(part_of=Booking)
class BookingRepository:
    """Participant-scoped lookups on top of the standard CRUD operations."""

    def for_carrier(self, carrier_id: str) -> list[Booking]:
        return self._dao.query.filter(carrier_id=carrier_id).limit(None).all().items

    def for_shipper(self, shipper_id: str) -> list[Booking]:
        return self._dao.query.filter(shipper_id=shipper_id).limit(None).all().items

    def everything(self) -> list[Booking]:
        return self._dao.query.limit(None).all().items
