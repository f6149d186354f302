"""Notification feed — human-readable booking updates, scoped to their audience."""

from uuid import uuid4

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking, UserRole
from bookings.booking.events import (
    ArrivedAtDelivery,
    ArrivedAtPickup,
    BookingAccepted,
    BookingCreated,
    CollectionConfirmed,
    DeliveryCompleted,
    DeliveryVerified,
    DisputeEvidenceAdded,
    DisputeOpened,
    DisputeResolved,
    TransitStarted,
)
from bookings.domain import bookings


@bookings.projection
class BookingNotification:
    notification_id = Identifier(identifier=True, required=True)
    booking_id = Identifier(required=True)
    shipper_id = Identifier()
    carrier_id = Identifier()
    shipper_visible = Boolean(default=False)
    carrier_visible = Boolean(default=False)
    text = String(required=True, max_length=1000)
    created_at = DateTime(required=True)


@bookings.projector(projector_for=BookingNotification, aggregates=[Booking])
class BookingNotificationProjector:
    def _post(self, event, text, at, shipper=False, carrier=False):
        current_domain.repository_for(BookingNotification).add(
            BookingNotification(
                notification_id=str(uuid4()),
                booking_id=event.booking_id,
                shipper_id=getattr(event, "shipper_id", None),
                carrier_id=getattr(event, "carrier_id", None),
                shipper_visible=shipper,
                carrier_visible=carrier,
                text=text,
                created_at=at,
            )
        )

    @on(BookingCreated)
    def on_booking_created(self, event):
        self._post(
            event,
            f"New booking {event.waybill_number}: {event.origin} to {event.destination}",
            event.created_at,
            shipper=True,
            carrier=True,
        )

    @on(BookingAccepted)
    def on_booking_accepted(self, event):
        self._post(event, f"Booking {event.waybill_number} accepted by the carrier", event.accepted_at, shipper=True)

    @on(ArrivedAtPickup)
    def on_arrived_at_pickup(self, event):
        self._post(event, f"Driver arrived at pickup for {event.waybill_number}", event.arrived_at, shipper=True)

    @on(CollectionConfirmed)
    def on_collection_confirmed(self, event):
        text = f"Load collected for {event.waybill_number}"
        if event.sealed:
            text += f" (sealed, seal {event.seal_number})"
        self._post(event, text, event.collected_at, shipper=True)

    @on(TransitStarted)
    def on_transit_started(self, event):
        self._post(event, f"{event.waybill_number} is in transit", event.departed_at, shipper=True)

    @on(ArrivedAtDelivery)
    def on_arrived_at_delivery(self, event):
        self._post(event, f"Driver arrived at delivery for {event.waybill_number}", event.arrived_at, shipper=True)

    @on(DeliveryCompleted)
    def on_delivery_completed(self, event):
        self._post(
            event,
            f"Job {event.waybill_number} delivered. Waiting for shipper POD verification.",
            event.delivered_at,
            shipper=True,
            carrier=True,
        )

    @on(DeliveryVerified)
    def on_delivery_verified(self, event):
        self._post(
            event,
            f"Delivery of {event.waybill_number} verified; R {event.amount:,.2f} released from escrow",
            event.verified_at,
            shipper=True,
            carrier=True,
        )

    @on(DisputeOpened)
    def on_dispute_opened(self, event):
        self._post(
            event,
            f"Dispute opened on {event.waybill_number} by {event.raised_by}: {event.reason}",
            event.opened_at,
            shipper=True,
            carrier=True,
        )

    @on(DisputeEvidenceAdded)
    def on_dispute_evidence_added(self, event):
        # Evidence is reviewed by admins only
        self._post(
            event,
            f"{event.uploaded_by} added evidence {event.file_name} to the dispute on booking {event.booking_id}",
            event.uploaded_at,
        )

    @on(DisputeResolved)
    def on_dispute_resolved(self, event):
        self._post(
            event,
            f"Dispute on {event.waybill_number} resolved ({event.outcome}); payment {event.payment_status}",
            event.resolved_at,
            shipper=True,
            carrier=True,
        )


def notifications_for(role: UserRole, entity_id: str | None = None) -> list[dict]:
    """Notifications visible to a participant, newest first. Admins see all."""
    dao = current_domain.repository_for(BookingNotification)._dao
    if role == UserRole.SHIPPER:
        records = dao.query.filter(shipper_id=entity_id, shipper_visible=True).limit(None).all().items
    elif role == UserRole.CARRIER:
        records = dao.query.filter(carrier_id=entity_id, carrier_visible=True).limit(None).all().items
    else:
        records = dao.query.limit(None).all().items

    records = sorted(records, key=lambda r: r.created_at, reverse=True)
    return [
        {
            "id": str(r.notification_id),
            "booking_id": str(r.booking_id),
            "text": r.text,
            "created_at": r.created_at.isoformat(),
        }
        for r in records
    ]
