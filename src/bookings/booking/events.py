"""Booking domain events — immutable facts about booking lifecycle changes.

All events are past tense, versioned, and carry enough data for the
notification feed and any downstream consumer.
"""

from protean.fields import Boolean, Date, DateTime, Float, Identifier, String

from bookings.domain import bookings


@bookings.event(part_of="Booking")
class BookingCreated:
    """A booking was opened for a booked listing or an accepted quote."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    shipper_name = String()
    carrier_id = Identifier(required=True)
    carrier_name = String()
    origin = String(required=True)
    destination = String(required=True)
    pickup_date = Date()
    price = Float(required=True)
    created_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class BookingAccepted:
    """The carrier accepted the booking."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    accepted_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class ArrivedAtPickup:
    """The driver reached the collection point."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    arrived_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class CollectionConfirmed:
    """The load was photographed, optionally sealed, and taken on board."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    sealed = Boolean(default=False)
    seal_number = String()
    latitude = Float()
    longitude = Float()
    collected_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class TransitStarted:
    """The truck left the collection point."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    departed_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class ArrivedAtDelivery:
    """The driver reached the delivery point or hub."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    arrived_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class DeliveryCompleted:
    """The load was handed over with proof of delivery."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    pin_verified = Boolean(default=False)
    latitude = Float()
    longitude = Float()
    delivered_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class DeliveryVerified:
    """The shipper verified delivery and the escrowed payment was released."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    verified_by = String(required=True)
    amount = Float(required=True)
    payment_status = String(required=True)
    verified_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class DisputeOpened:
    """A party raised a dispute; the booking is frozen and payment held."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    reason = String(required=True, max_length=1000)
    raised_by = String(required=True)
    previous_status = String(required=True)
    opened_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class DisputeEvidenceAdded:
    """A party attached evidence to an open dispute."""

    __version__ = 1

    booking_id = Identifier(required=True)
    uploaded_by = String(required=True)
    uploader_name = String()
    file_name = String(required=True)
    file_type = String(required=True)
    uploaded_at = DateTime(required=True)


@bookings.event(part_of="Booking")
class DisputeResolved:
    """An admin resolved the dispute, releasing or refunding the payment."""

    __version__ = 1

    booking_id = Identifier(required=True)
    waybill_number = String(required=True)
    shipper_id = Identifier(required=True)
    carrier_id = Identifier(required=True)
    outcome = String(required=True)
    payment_status = String(required=True)
    resolved_by = String(required=True)
    resolved_at = DateTime(required=True)
