"""Booking state store — the single source of truth for booking records.

Callers refer to bookings by id only and receive plain snapshots back. Every
mutation goes through a Protean command processed synchronously, so the
transition policy on the aggregate decides and nothing is written when it
rejects.
"""

from collections.abc import Callable
from typing import Protocol

import structlog
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking, UserRole, generate_delivery_pin
from bookings.booking.collection import ConfirmCollection
from bookings.booking.creation import CreateBooking
from bookings.booking.delivery import CompleteDelivery, VerifyDelivery
from bookings.booking.disputes import AddDisputeEvidence, OpenDispute, ResolveDispute
from bookings.booking.policy import BookingStatus
from bookings.booking.progress import AcceptBooking, UpdateBookingStatus
from bookings.lifecycle import MutationResult, Transition
from bookings.media import get_media_store
from bookings.media.attachment import Attachment
from bookings.media.port import MediaStorePort
from bookings.projections.notification_feed import notifications_for
from bookings.settings import get_settings

logger = structlog.get_logger(__name__)

# Statuses a driver no longer (or not yet) works on
_DRIVER_HIDDEN = {
    BookingStatus.PENDING.value,
    BookingStatus.COMPLETED.value,
    BookingStatus.DISPUTED.value,
}


class PlatformRules(Protocol):
    markup_percent: float
    delivery_pin_required: bool


def price_with_markup(base_rate: float, markup_percent: float) -> float:
    """Shipper-facing price for a carrier's base rate."""
    return round(base_rate * (1 + markup_percent / 100), 2)


class BookingStore:
    def __init__(
        self,
        media: MediaStorePort | None = None,
        on_change: Callable[[], None] | None = None,
        platform: Callable[[], PlatformRules] | None = None,
    ):
        self._media = media
        self._on_change = on_change
        self._platform = platform

    @property
    def media(self) -> MediaStorePort:
        return self._media or get_media_store()

    @property
    def platform(self) -> PlatformRules:
        """Markup and delivery-PIN rules for new bookings."""
        return self._platform() if self._platform else get_settings()

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get(self, role: UserRole, entity_id: str | None = None) -> list[dict]:
        """Bookings visible to a participant.

        Carriers get their active jobs (no pending, completed or disputed
        bookings), shippers get all their bookings, admins get everything.
        """
        repo = current_domain.repository_for(Booking)
        if role == UserRole.CARRIER:
            records = [b for b in repo.for_carrier(entity_id) if b.status not in _DRIVER_HIDDEN]
        elif role == UserRole.SHIPPER:
            records = repo.for_shipper(entity_id)
        else:
            records = repo.everything()
        return [b.to_snapshot() for b in _ordered(records)]

    def snapshot(self, booking_id: str) -> dict:
        return current_domain.repository_for(Booking).get(booking_id).to_snapshot()

    def snapshots_for_carrier(self, carrier_id: str) -> list[dict]:
        """Every booking of a carrier regardless of status."""
        records = current_domain.repository_for(Booking).for_carrier(carrier_id)
        return [b.to_snapshot() for b in _ordered(records)]

    def all(self) -> list[dict]:
        return [b.to_snapshot() for b in _ordered(current_domain.repository_for(Booking).everything())]

    def notifications(self, role: UserRole, entity_id: str | None = None) -> list[dict]:
        return notifications_for(role, entity_id)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create(
        self,
        shipper_id: str,
        carrier_id: str,
        origin: str,
        destination: str,
        base_rate: float,
        price: float | None = None,
        pickup_date: str | None = None,
        shipper_name: str | None = None,
        carrier_name: str | None = None,
        listing_id: str | None = None,
        quote_request_id: str | None = None,
        delivery_pin: str | None = None,
    ) -> str:
        """Open a booking; price defaults to the base rate plus the platform markup."""
        rules = self.platform
        if price is None:
            price = price_with_markup(base_rate, rules.markup_percent)
        if delivery_pin is None and rules.delivery_pin_required:
            delivery_pin = generate_delivery_pin()
        booking_id = current_domain.process(
            CreateBooking(
                shipper_id=shipper_id,
                shipper_name=shipper_name,
                carrier_id=carrier_id,
                carrier_name=carrier_name,
                origin=origin,
                destination=destination,
                pickup_date=pickup_date,
                base_rate=base_rate,
                price=price,
                delivery_pin=delivery_pin,
                listing_id=listing_id,
                quote_request_id=quote_request_id,
            ),
            asynchronous=False,
        )
        logger.info("Booking created", booking_id=booking_id, shipper_id=shipper_id, carrier_id=carrier_id)
        self._changed()
        return booking_id

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def apply(self, booking_id: str, transition: Transition) -> MutationResult:
        """Apply a transition and return the confirmed booking.

        Raises protean ValidationError when the transition policy rejects the
        request and ObjectNotFoundError for an unknown booking.
        """
        current_domain.process(self._command_for(booking_id, transition), asynchronous=False)
        snapshot = self.snapshot(booking_id)
        logger.info("Booking transition confirmed", booking_id=booking_id, status=snapshot["status"])
        self._changed()
        return MutationResult.confirmed(snapshot)

    def _command_for(self, booking_id: str, transition: Transition):
        target = transition.target
        location = transition.location
        latitude = location.latitude if location else None
        longitude = location.longitude if location else None

        if target == BookingStatus.ACCEPTED:
            return AcceptBooking(booking_id=booking_id)
        if target == BookingStatus.COLLECTED:
            return ConfirmCollection(
                booking_id=booking_id,
                photo=self._upload(transition.photo),
                sealed=transition.sealed,
                seal_number=transition.seal_number,
                latitude=latitude,
                longitude=longitude,
            )
        if target == BookingStatus.DELIVERED:
            return CompleteDelivery(
                booking_id=booking_id,
                proof_of_delivery=self._upload(transition.proof_of_delivery),
                offload_photo=self._upload(transition.offload_photo),
                signature=transition.signature,
                delivery_pin=transition.delivery_pin,
                latitude=latitude,
                longitude=longitude,
            )
        if target == BookingStatus.COMPLETED:
            return VerifyDelivery(booking_id=booking_id, verified_by=transition.verified_by)
        return UpdateBookingStatus(booking_id=booking_id, status=target.value)

    def _upload(self, attachment: Attachment | None) -> str | None:
        if attachment is None:
            return None
        return self.media.upload(attachment)

    # -------------------------------------------------------------------
    # Disputes
    # -------------------------------------------------------------------
    def open_dispute(self, booking_id: str, reason: str, raised_by: UserRole) -> dict:
        current_domain.process(
            OpenDispute(booking_id=booking_id, reason=reason, raised_by=raised_by.value),
            asynchronous=False,
        )
        logger.warning("Dispute opened", booking_id=booking_id, raised_by=raised_by.value)
        self._changed()
        return self.snapshot(booking_id)

    def add_dispute_evidence(
        self,
        booking_id: str,
        uploaded_by: UserRole,
        attachment: Attachment,
        uploader_name: str | None = None,
    ) -> dict:
        current_domain.process(
            AddDisputeEvidence(
                booking_id=booking_id,
                uploaded_by=uploaded_by.value,
                uploader_name=uploader_name,
                file_name=attachment.filename,
                file_ref=self.media.upload(attachment),
                file_type="image" if attachment.is_image else "document",
            ),
            asynchronous=False,
        )
        self._changed()
        return self.snapshot(booking_id)

    def resolve_dispute(self, booking_id: str, outcome: str, resolved_by: str) -> dict:
        current_domain.process(
            ResolveDispute(booking_id=booking_id, outcome=outcome, resolved_by=resolved_by),
            asynchronous=False,
        )
        logger.info("Dispute resolved", booking_id=booking_id, outcome=outcome)
        self._changed()
        return self.snapshot(booking_id)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


def _ordered(records) -> list:
    return sorted(records, key=lambda b: (b.created_at is None, b.created_at, str(b.id)))
