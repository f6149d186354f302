"""Transition requests and mutation results shared by the store and the driver workflow."""

from dataclasses import dataclass, replace
from enum import Enum

from bookings.booking.policy import BookingStatus
from bookings.geolocation.port import GeoPoint
from bookings.media.attachment import Attachment


@dataclass(frozen=True)
class Transition:
    """A requested status change plus whatever evidence the operator captured."""

    target: BookingStatus
    photo: Attachment | None = None
    sealed: bool | None = None
    seal_number: str | None = None
    proof_of_delivery: Attachment | None = None
    offload_photo: Attachment | None = None
    signature: str | None = None
    delivery_pin: str | None = None
    location: GeoPoint | None = None
    verified_by: str | None = None

    @classmethod
    def status_update(cls, target: BookingStatus) -> "Transition":
        return cls(target=target)

    @classmethod
    def collection(
        cls,
        photo: Attachment | None,
        sealed: bool | None,
        seal_number: str | None = None,
        location: GeoPoint | None = None,
    ) -> "Transition":
        return cls(
            target=BookingStatus.COLLECTED,
            photo=photo,
            sealed=sealed,
            seal_number=seal_number,
            location=location,
        )

    @classmethod
    def delivery(
        cls,
        proof_of_delivery: Attachment | None,
        offload_photo: Attachment | None,
        signature: str | None = None,
        delivery_pin: str | None = None,
        location: GeoPoint | None = None,
    ) -> "Transition":
        return cls(
            target=BookingStatus.DELIVERED,
            proof_of_delivery=proof_of_delivery,
            offload_photo=offload_photo,
            signature=signature,
            delivery_pin=delivery_pin,
            location=location,
        )

    @classmethod
    def verification(cls, verified_by: str) -> "Transition":
        return cls(target=BookingStatus.COMPLETED, verified_by=verified_by)

    @property
    def needs_location(self) -> bool:
        return self.target in (BookingStatus.COLLECTED, BookingStatus.DELIVERED) and self.location is None

    def with_location(self, location: GeoPoint | None) -> "Transition":
        return replace(self, location=location)


class MutationKind(Enum):
    CONFIRMED = "Confirmed"
    PROVISIONAL = "Provisional"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation: confirmed by the store, or provisional and queued."""

    kind: MutationKind
    booking_id: str
    status: str
    snapshot: dict | None = None
    action_id: str | None = None

    @classmethod
    def confirmed(cls, snapshot: dict) -> "MutationResult":
        return cls(
            kind=MutationKind.CONFIRMED,
            booking_id=snapshot["id"],
            status=snapshot["status"],
            snapshot=snapshot,
        )

    @classmethod
    def provisional(cls, booking_id: str, status: str, action_id: str) -> "MutationResult":
        return cls(
            kind=MutationKind.PROVISIONAL,
            booking_id=booking_id,
            status=status,
            action_id=action_id,
        )

    @property
    def is_confirmed(self) -> bool:
        return self.kind == MutationKind.CONFIRMED
