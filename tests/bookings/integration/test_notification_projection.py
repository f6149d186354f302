"""Integration tests for the notification feed — verify the projector writes audience-scoped entries."""

from bookings.booking.booking import UserRole
from bookings.booking.policy import BookingStatus
from bookings.media.attachment import Attachment
from bookings.projections.notification_feed import BookingNotification, notifications_for
from bookings.store import BookingStore
from protean import current_domain


def _entries(booking_id):
    return current_domain.repository_for(BookingNotification)._dao.query.filter(booking_id=booking_id).all().items


def _texts(role, entity_id, booking_id):
    return [n["text"] for n in notifications_for(role, entity_id) if n["booking_id"] == booking_id]


class TestNotificationFeed:
    def test_creation_is_announced_to_both_parties(self, booking_at, shipper_id, carrier_id):
        booking_id = booking_at(BookingStatus.PENDING)
        waybill = BookingStore().snapshot(booking_id)["waybill_number"]

        assert _texts(UserRole.SHIPPER, shipper_id, booking_id) == [
            f"New booking {waybill}: Cape Town to Johannesburg"
        ]
        assert len(_texts(UserRole.CARRIER, carrier_id, booking_id)) == 1

    def test_one_entry_per_lifecycle_event(self, booking_at):
        booking_id = booking_at(BookingStatus.COMPLETED)
        # created, accepted, arrived, collected, in transit, arrived, delivered, verified
        assert len(_entries(booking_id)) == 8

    def test_delivery_notifies_carrier_to_await_verification(self, booking_at, carrier_id):
        booking_id = booking_at(BookingStatus.DELIVERED)
        waybill = BookingStore().snapshot(booking_id)["waybill_number"]

        texts = _texts(UserRole.CARRIER, carrier_id, booking_id)
        assert texts[0] == f"Job {waybill} delivered. Waiting for shipper POD verification."

    def test_progress_steps_are_shipper_only(self, booking_at, shipper_id, carrier_id):
        booking_id = booking_at(BookingStatus.IN_TRANSIT)

        assert any("is in transit" in text for text in _texts(UserRole.SHIPPER, shipper_id, booking_id))
        assert not any("is in transit" in text for text in _texts(UserRole.CARRIER, carrier_id, booking_id))

    def test_dispute_evidence_visible_to_admin_only(self, booking_at, shipper_id, carrier_id):
        booking_id = booking_at(BookingStatus.DISPUTED)
        BookingStore().add_dispute_evidence(
            booking_id, UserRole.SHIPPER, Attachment(filename="damage.jpg", content=b"\xff\xd8\xff")
        )

        def mentions_evidence(texts):
            return any("damage.jpg" in text for text in texts)

        assert mentions_evidence(_texts(UserRole.ADMIN, None, booking_id))
        assert not mentions_evidence(_texts(UserRole.SHIPPER, shipper_id, booking_id))
        assert not mentions_evidence(_texts(UserRole.CARRIER, carrier_id, booking_id))

    def test_feed_is_newest_first(self, booking_at, shipper_id):
        booking_at(BookingStatus.ARRIVED_AT_PICKUP)
        stamps = [n["created_at"] for n in notifications_for(UserRole.SHIPPER, shipper_id)]
        assert stamps == sorted(stamps, reverse=True)
