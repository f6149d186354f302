"""Booking aggregate (CQRS) — the core of the bookings domain.

A Booking is one shipment contract between a shipper and a carrier. Every
forward move goes through ``advance()``, which asks the status transition
policy for a decision and writes exactly the changes the policy prescribes.
Bookings are never deleted; they end Completed or Disputed.

State Machine:
    PENDING → ACCEPTED → ARRIVED_AT_PICKUP → COLLECTED → IN_TRANSIT
        → ARRIVED_AT_DELIVERY → DELIVERED → COMPLETED
    {any non-terminal} → DISPUTED
"""

import secrets
from datetime import UTC, date, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    String,
    Text,
    ValueObject,
)

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
from bookings.booking.policy import (
    DELIVERY_PIN_LENGTH,
    SEAL_NUMBER_MAX_LENGTH,
    BookingStatus,
    Evidence,
    PaymentStatus,
    changes_for,
    evaluate,
    is_terminal,
)
from bookings.domain import bookings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class UserRole(Enum):
    SHIPPER = "shipper"
    CARRIER = "carrier"
    ADMIN = "admin"


class DisputeState(Enum):
    OPEN = "Open"
    RESOLVED = "Resolved"


class DisputeOutcome(Enum):
    RELEASE = "Release"  # pay the carrier
    REFUND = "Refund"  # refund the shipper


class EvidenceFileType(Enum):
    IMAGE = "image"
    DOCUMENT = "document"


_OUTCOME_PAYMENT = {
    DisputeOutcome.RELEASE: PaymentStatus.RELEASED,
    DisputeOutcome.REFUND: PaymentStatus.REFUNDED,
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@bookings.value_object(part_of="Booking")
class CollectionProof:
    """Evidence captured when the load was taken on board."""

    photo = Text()
    sealed = Boolean(default=False)
    seal_number = String(max_length=SEAL_NUMBER_MAX_LENGTH)
    latitude = Float()
    longitude = Float()
    collected_at = DateTime()


@bookings.value_object(part_of="Booking")
class DeliveryProof:
    """Evidence captured at hand-over."""

    proof_of_delivery = Text()
    offload_photo = Text()
    signature = Text()
    pin_verified = Boolean(default=False)
    latitude = Float()
    longitude = Float()
    delivered_at = DateTime()


@bookings.value_object(part_of="Booking")
class DisputeInfo:
    """The dispute raised against this booking, if any."""

    reason = String(max_length=1000)
    raised_by = String(max_length=50)
    status = String(max_length=50, choices=DisputeState)
    outcome = String(max_length=50, choices=DisputeOutcome)
    resolved_by = String(max_length=100)
    opened_at = DateTime()
    resolved_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@bookings.entity(part_of="Booking")
class DisputeEvidence:
    """A file one of the parties submitted in support of a dispute."""

    uploaded_by = String(required=True, max_length=50, choices=UserRole)
    uploader_name = String(max_length=200)
    file_name = String(required=True, max_length=255)
    file_ref = Text(required=True)
    file_type = String(max_length=50, choices=EvidenceFileType, default=EvidenceFileType.DOCUMENT.value)
    uploaded_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@bookings.aggregate
class Booking:
    waybill_number = String(required=True, max_length=50)
    listing_id = Identifier()
    quote_request_id = Identifier()
    shipper_id = Identifier(required=True)
    shipper_name = String(max_length=200)
    carrier_id = Identifier(required=True)
    carrier_name = String(max_length=200)
    origin = String(required=True, max_length=200)
    destination = String(required=True, max_length=200)
    pickup_date = Date()
    status = String(
        choices=BookingStatus,
        default=BookingStatus.PENDING.value,
    )
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.ESCROW.value,
    )
    base_rate = Float(min_value=0)
    price = Float(required=True, min_value=0)
    delivery_pin = String(max_length=DELIVERY_PIN_LENGTH)
    collection = ValueObject(CollectionProof)
    delivery = ValueObject(DeliveryProof)
    verified_by = String(max_length=100)
    verified_at = DateTime()
    dispute = ValueObject(DisputeInfo)
    evidence_files = HasMany(DisputeEvidence)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        shipper_id: str,
        carrier_id: str,
        origin: str,
        destination: str,
        price: float,
        base_rate: float | None = None,
        pickup_date: date | str | None = None,
        shipper_name: str | None = None,
        carrier_name: str | None = None,
        delivery_pin: str | None = None,
        listing_id: str | None = None,
        quote_request_id: str | None = None,
    ):
        """Open a booking in PENDING with the payment held in escrow."""
        if isinstance(pickup_date, str):
            pickup_date = date.fromisoformat(pickup_date)
        now = datetime.now(UTC)
        booking = cls(
            waybill_number=generate_waybill_number(),
            listing_id=listing_id,
            quote_request_id=quote_request_id,
            shipper_id=shipper_id,
            shipper_name=shipper_name or "",
            carrier_id=carrier_id,
            carrier_name=carrier_name or "",
            origin=origin,
            destination=destination,
            pickup_date=pickup_date,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.ESCROW.value,
            base_rate=base_rate if base_rate is not None else price,
            price=price,
            delivery_pin=delivery_pin,
            created_at=now,
            updated_at=now,
        )
        booking.raise_(
            BookingCreated(
                booking_id=str(booking.id),
                waybill_number=booking.waybill_number,
                shipper_id=shipper_id,
                shipper_name=booking.shipper_name,
                carrier_id=carrier_id,
                carrier_name=booking.carrier_name,
                origin=origin,
                destination=destination,
                pickup_date=pickup_date,
                price=price,
                created_at=now,
            )
        )
        return booking

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def advance(self, target: BookingStatus, evidence: Evidence | None = None) -> None:
        """Move to ``target`` if the transition policy accepts it.

        Raises ValidationError and leaves the booking untouched otherwise.
        """
        decision = evaluate(BookingStatus(self.status), target, evidence, self.delivery_pin)
        if not decision.accepted:
            raise ValidationError({decision.field: [decision.reason]})

        changes = changes_for(target, evidence, datetime.now(UTC), self.delivery_pin)
        for key, value in changes.items():
            if key == "collection":
                self.collection = CollectionProof(**value)
            elif key == "delivery":
                self.delivery = DeliveryProof(**value)
            else:
                setattr(self, key, value)
        self.raise_(self._event_for(target))

    def accept(self) -> None:
        """Carrier accepts the booking."""
        self.advance(BookingStatus.ACCEPTED)

    def mark_arrived_at_pickup(self) -> None:
        self.advance(BookingStatus.ARRIVED_AT_PICKUP)

    def confirm_collection(
        self,
        photo: str | None,
        sealed: bool | None,
        seal_number: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> None:
        """Record the load photo and seal details and mark the booking COLLECTED."""
        self.advance(
            BookingStatus.COLLECTED,
            Evidence(
                photo=photo,
                sealed=sealed,
                seal_number=seal_number,
                latitude=latitude,
                longitude=longitude,
            ),
        )

    def start_transit(self) -> None:
        self.advance(BookingStatus.IN_TRANSIT)

    def mark_arrived_at_delivery(self) -> None:
        self.advance(BookingStatus.ARRIVED_AT_DELIVERY)

    def complete_delivery(
        self,
        proof_of_delivery: str | None,
        offload_photo: str | None,
        signature: str | None = None,
        delivery_pin: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> None:
        """Record hand-over evidence and mark the booking DELIVERED."""
        self.advance(
            BookingStatus.DELIVERED,
            Evidence(
                proof_of_delivery=proof_of_delivery,
                offload_photo=offload_photo,
                signature=signature,
                delivery_pin=delivery_pin,
                latitude=latitude,
                longitude=longitude,
            ),
        )

    def verify_delivery(self, verified_by: str) -> None:
        """Shipper verifies proof of delivery; releases the escrowed payment."""
        self.advance(BookingStatus.COMPLETED, Evidence(verified_by=verified_by))

    def _event_for(self, target: BookingStatus):
        common = {
            "booking_id": str(self.id),
            "waybill_number": self.waybill_number,
            "shipper_id": str(self.shipper_id),
            "carrier_id": str(self.carrier_id),
        }
        at = self.updated_at
        if target == BookingStatus.ACCEPTED:
            return BookingAccepted(**common, accepted_at=at)
        if target == BookingStatus.ARRIVED_AT_PICKUP:
            return ArrivedAtPickup(**common, arrived_at=at)
        if target == BookingStatus.COLLECTED:
            return CollectionConfirmed(
                **common,
                sealed=self.collection.sealed,
                seal_number=self.collection.seal_number,
                latitude=self.collection.latitude,
                longitude=self.collection.longitude,
                collected_at=at,
            )
        if target == BookingStatus.IN_TRANSIT:
            return TransitStarted(**common, departed_at=at)
        if target == BookingStatus.ARRIVED_AT_DELIVERY:
            return ArrivedAtDelivery(**common, arrived_at=at)
        if target == BookingStatus.DELIVERED:
            return DeliveryCompleted(
                **common,
                pin_verified=self.delivery.pin_verified,
                latitude=self.delivery.latitude,
                longitude=self.delivery.longitude,
                delivered_at=at,
            )
        return DeliveryVerified(
            **common,
            verified_by=self.verified_by,
            amount=self.price,
            payment_status=self.payment_status,
            verified_at=at,
        )

    # -------------------------------------------------------------------
    # Disputes
    # -------------------------------------------------------------------
    def open_dispute(self, reason: str, raised_by: str) -> None:
        """Freeze the booking in DISPUTED and hold the payment."""
        current = BookingStatus(self.status)
        if is_terminal(current):
            raise ValidationError({"status": [f"Cannot dispute a booking that is {current.value}"]})
        if not (reason or "").strip():
            raise ValidationError({"reason": ["A dispute reason is required"]})

        now = datetime.now(UTC)
        self.status = BookingStatus.DISPUTED.value
        self.payment_status = PaymentStatus.HOLD.value
        self.dispute = DisputeInfo(
            reason=reason,
            raised_by=raised_by,
            status=DisputeState.OPEN.value,
            opened_at=now,
        )
        self.updated_at = now
        self.raise_(
            DisputeOpened(
                booking_id=str(self.id),
                waybill_number=self.waybill_number,
                shipper_id=str(self.shipper_id),
                carrier_id=str(self.carrier_id),
                reason=reason,
                raised_by=raised_by,
                previous_status=current.value,
                opened_at=now,
            )
        )

    def attach_dispute_evidence(
        self,
        uploaded_by: str,
        file_name: str,
        file_ref: str,
        file_type: str = EvidenceFileType.DOCUMENT.value,
        uploader_name: str | None = None,
    ) -> None:
        """Attach a supporting file to the open dispute."""
        if not self.dispute or self.dispute.status != DisputeState.OPEN.value:
            raise ValidationError({"dispute": ["Evidence can only be added to an open dispute"]})

        now = datetime.now(UTC)
        self.add_evidence_files(
            DisputeEvidence(
                uploaded_by=uploaded_by,
                uploader_name=uploader_name or "",
                file_name=file_name,
                file_ref=file_ref,
                file_type=file_type,
                uploaded_at=now,
            )
        )
        self.updated_at = now
        self.raise_(
            DisputeEvidenceAdded(
                booking_id=str(self.id),
                uploaded_by=uploaded_by,
                uploader_name=uploader_name or "",
                file_name=file_name,
                file_type=file_type,
                uploaded_at=now,
            )
        )

    def resolve_dispute(self, outcome: str, resolved_by: str) -> None:
        """Close the dispute; the booking stays DISPUTED, the payment moves on."""
        if not self.dispute or self.dispute.status != DisputeState.OPEN.value:
            raise ValidationError({"dispute": ["There is no open dispute to resolve"]})
        try:
            resolution = DisputeOutcome(outcome)
        except ValueError:
            raise ValidationError({"outcome": [f"Unknown dispute outcome {outcome}"]}) from None

        now = datetime.now(UTC)
        self.payment_status = _OUTCOME_PAYMENT[resolution].value
        self.dispute = DisputeInfo(
            reason=self.dispute.reason,
            raised_by=self.dispute.raised_by,
            status=DisputeState.RESOLVED.value,
            outcome=resolution.value,
            resolved_by=resolved_by,
            opened_at=self.dispute.opened_at,
            resolved_at=now,
        )
        self.updated_at = now
        self.raise_(
            DisputeResolved(
                booking_id=str(self.id),
                waybill_number=self.waybill_number,
                shipper_id=str(self.shipper_id),
                carrier_id=str(self.carrier_id),
                outcome=resolution.value,
                payment_status=self.payment_status,
                resolved_by=resolved_by,
                resolved_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------
    def to_snapshot(self) -> dict:
        """Plain, JSON-friendly copy of this booking (the read model drivers see)."""
        return {
            "id": str(self.id),
            "waybill_number": self.waybill_number,
            "listing_id": _str_or_none(self.listing_id),
            "quote_request_id": _str_or_none(self.quote_request_id),
            "shipper_id": str(self.shipper_id),
            "shipper_name": self.shipper_name,
            "carrier_id": str(self.carrier_id),
            "carrier_name": self.carrier_name,
            "origin": self.origin,
            "destination": self.destination,
            "pickup_date": _iso(self.pickup_date),
            "status": self.status,
            "payment_status": self.payment_status,
            "base_rate": self.base_rate,
            "price": self.price,
            "delivery_pin": self.delivery_pin,
            "collection": _vo_dict(self.collection, _COLLECTION_FIELDS),
            "delivery": _vo_dict(self.delivery, _DELIVERY_FIELDS),
            "verified_by": self.verified_by,
            "verified_at": _iso(self.verified_at),
            "dispute": _vo_dict(self.dispute, _DISPUTE_FIELDS),
            "evidence_files": [
                {
                    "uploaded_by": e.uploaded_by,
                    "uploader_name": e.uploader_name,
                    "file_name": e.file_name,
                    "file_ref": e.file_ref,
                    "file_type": e.file_type,
                    "uploaded_at": _iso(e.uploaded_at),
                }
                for e in (self.evidence_files or [])
            ],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict):
        """Rebuild a booking from ``to_snapshot()`` output without raising events."""
        booking = cls(
            id=snapshot["id"],
            waybill_number=snapshot["waybill_number"],
            listing_id=snapshot.get("listing_id"),
            quote_request_id=snapshot.get("quote_request_id"),
            shipper_id=snapshot["shipper_id"],
            shipper_name=snapshot.get("shipper_name") or "",
            carrier_id=snapshot["carrier_id"],
            carrier_name=snapshot.get("carrier_name") or "",
            origin=snapshot["origin"],
            destination=snapshot["destination"],
            pickup_date=_parse_date(snapshot.get("pickup_date")),
            status=snapshot.get("status", BookingStatus.PENDING.value),
            payment_status=snapshot.get("payment_status", PaymentStatus.ESCROW.value),
            base_rate=snapshot.get("base_rate"),
            price=snapshot["price"],
            delivery_pin=snapshot.get("delivery_pin"),
            verified_by=snapshot.get("verified_by"),
            verified_at=_parse_datetime(snapshot.get("verified_at")),
            created_at=_parse_datetime(snapshot.get("created_at")),
            updated_at=_parse_datetime(snapshot.get("updated_at")),
        )
        if snapshot.get("collection"):
            booking.collection = CollectionProof(**_parse_vo(snapshot["collection"], ("collected_at",)))
        if snapshot.get("delivery"):
            booking.delivery = DeliveryProof(**_parse_vo(snapshot["delivery"], ("delivered_at",)))
        if snapshot.get("dispute"):
            booking.dispute = DisputeInfo(**_parse_vo(snapshot["dispute"], ("opened_at", "resolved_at")))
        for item in snapshot.get("evidence_files") or []:
            booking.add_evidence_files(DisputeEvidence(**_parse_vo(item, ("uploaded_at",))))
        return booking


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
_COLLECTION_FIELDS = ("photo", "sealed", "seal_number", "latitude", "longitude", "collected_at")
_DELIVERY_FIELDS = (
    "proof_of_delivery",
    "offload_photo",
    "signature",
    "pin_verified",
    "latitude",
    "longitude",
    "delivered_at",
)
_DISPUTE_FIELDS = ("reason", "raised_by", "status", "outcome", "resolved_by", "opened_at", "resolved_at")


def generate_waybill_number() -> str:
    return f"WB-{secrets.randbelow(10**7):07d}"


def generate_delivery_pin() -> str:
    return f"{secrets.randbelow(10**6):06d}"


def _iso(value):
    return value.isoformat() if value is not None else None


def _str_or_none(value):
    return str(value) if value is not None else None


def _vo_dict(vo, fields) -> dict | None:
    if vo is None:
        return None
    out = {}
    for name in fields:
        value = getattr(vo, name)
        out[name] = _iso(value) if isinstance(value, (date, datetime)) else value
    return out


def _parse_date(value):
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _parse_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _parse_vo(data: dict, datetime_fields: tuple) -> dict:
    parsed = dict(data)
    for name in datetime_fields:
        parsed[name] = _parse_datetime(parsed.get(name))
    return parsed
