"""Tests for Booking domain events — each lifecycle method raises the correct event."""

import pytest
from bookings.booking.booking import Booking
from bookings.booking.events import (
    ArrivedAtDelivery,
    ArrivedAtPickup,
    BookingAccepted,
    BookingCreated,
    CollectionConfirmed,
    DeliveryCompleted,
    DeliveryVerified,
    TransitStarted,
)
from protean.exceptions import ValidationError


def _make_booking():
    return Booking.create(
        shipper_id="s1",
        carrier_id="c1",
        origin="Cape Town",
        destination="Johannesburg",
        price=13750.0,
        base_rate=12500.0,
        delivery_pin="482913",
    )


def test_create_raises_booking_created():
    booking = _make_booking()
    assert len(booking._events) == 1
    event = booking._events[0]
    assert isinstance(event, BookingCreated)
    assert event.booking_id == str(booking.id)
    assert event.waybill_number == booking.waybill_number
    assert event.price == 13750.0


def test_accept_raises_booking_accepted():
    booking = _make_booking()
    booking._events.clear()
    booking.accept()
    assert isinstance(booking._events[0], BookingAccepted)
    assert booking._events[0].carrier_id == "c1"


def test_full_lifecycle_event_sequence():
    booking = _make_booking()
    booking._events.clear()

    booking.accept()
    booking.mark_arrived_at_pickup()
    booking.confirm_collection(photo="media://load.png", sealed=True, seal_number="SEAL-001")
    booking.start_transit()
    booking.mark_arrived_at_delivery()
    booking.complete_delivery(
        proof_of_delivery="media://pod.pdf",
        offload_photo="media://offload.png",
        delivery_pin="482913",
    )
    booking.verify_delivery("s1")

    assert [type(e) for e in booking._events] == [
        BookingAccepted,
        ArrivedAtPickup,
        CollectionConfirmed,
        TransitStarted,
        ArrivedAtDelivery,
        DeliveryCompleted,
        DeliveryVerified,
    ]


def test_collection_event_carries_seal():
    booking = _make_booking()
    booking.accept()
    booking.mark_arrived_at_pickup()
    booking._events.clear()
    booking.confirm_collection(photo="media://load.png", sealed=True, seal_number="SEAL-001")

    event = booking._events[0]
    assert isinstance(event, CollectionConfirmed)
    assert event.sealed is True
    assert event.seal_number == "SEAL-001"


def test_verification_event_carries_released_amount():
    booking = _make_booking()
    booking.accept()
    booking.mark_arrived_at_pickup()
    booking.confirm_collection(photo="media://load.png", sealed=False)
    booking.start_transit()
    booking.mark_arrived_at_delivery()
    booking.complete_delivery(
        proof_of_delivery="media://pod.pdf",
        offload_photo="media://offload.png",
        delivery_pin="482913",
    )
    booking._events.clear()
    booking.verify_delivery("s1")

    event = booking._events[0]
    assert isinstance(event, DeliveryVerified)
    assert event.amount == 13750.0
    assert event.payment_status == "Released"
    assert event.verified_by == "s1"


def test_rejected_transition_raises_no_event():
    booking = _make_booking()
    booking._events.clear()
    with pytest.raises(ValidationError):
        booking.start_transit()
    assert booking._events == []
