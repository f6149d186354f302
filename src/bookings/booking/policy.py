"""Status transition policy — which booking transitions are legal and what they write.

The policy is a pure function of (current status, requested status, evidence).
It is shared by the Booking aggregate (authoritative writes) and by the
driver's optimistic projection (provisional writes), so both produce the same
field changes for the same accepted transition.

Lifecycle:
    PENDING → ACCEPTED → ARRIVED_AT_PICKUP → COLLECTED → IN_TRANSIT
        → ARRIVED_AT_DELIVERY → DELIVERED → COMPLETED
    any non-terminal → DISPUTED (dispute-open only, never through evaluate)
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class BookingStatus(Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    ARRIVED_AT_PICKUP = "Arrived_At_Pickup"
    COLLECTED = "Collected"
    IN_TRANSIT = "In_Transit"
    ARRIVED_AT_DELIVERY = "Arrived_At_Delivery"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    DISPUTED = "Disputed"


class PaymentStatus(Enum):
    ESCROW = "Escrow"
    RELEASED = "Released"
    HOLD = "Hold"
    REFUNDED = "Refunded"


_SUCCESSORS = {
    BookingStatus.PENDING: BookingStatus.ACCEPTED,
    BookingStatus.ACCEPTED: BookingStatus.ARRIVED_AT_PICKUP,
    BookingStatus.ARRIVED_AT_PICKUP: BookingStatus.COLLECTED,
    BookingStatus.COLLECTED: BookingStatus.IN_TRANSIT,
    BookingStatus.IN_TRANSIT: BookingStatus.ARRIVED_AT_DELIVERY,
    BookingStatus.ARRIVED_AT_DELIVERY: BookingStatus.DELIVERED,
    BookingStatus.DELIVERED: BookingStatus.COMPLETED,
}

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.DISPUTED})

# Field limits shared by the commands and the offline checks
DELIVERY_PIN_LENGTH = 6
SEAL_NUMBER_MAX_LENGTH = 100


def successor_of(status: BookingStatus) -> BookingStatus | None:
    """The only status a booking in ``status`` may move to, or None if terminal."""
    return _SUCCESSORS.get(status)


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


# ---------------------------------------------------------------------------
# Evidence and decisions
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Evidence:
    """Side data submitted with a transition.

    Attachment fields hold references (media store references for confirmed
    writes, offline placeholders for provisional ones); the policy only
    checks that they are present.
    """

    photo: str | None = None
    sealed: bool | None = None
    seal_number: str | None = None
    proof_of_delivery: str | None = None
    offload_photo: str | None = None
    signature: str | None = None
    delivery_pin: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    verified_by: str | None = None


@dataclass(frozen=True)
class Decision:
    accepted: bool
    reason: str = ""
    field: str = "status"

    @classmethod
    def accept(cls) -> "Decision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str, field: str = "status") -> "Decision":
        return cls(accepted=False, reason=reason, field=field)


def evaluate(
    current: BookingStatus,
    requested: BookingStatus,
    evidence: Evidence | None = None,
    expected_pin: str | None = None,
) -> Decision:
    """Decide whether ``current → requested`` may be recorded with ``evidence``."""
    evidence = evidence or Evidence()

    if is_terminal(current):
        return Decision.reject(f"Booking is already {current.value}")
    if requested == BookingStatus.DISPUTED:
        return Decision.reject("Disputes are opened through the dispute process")
    if successor_of(current) != requested:
        return Decision.reject(f"Cannot transition from {current.value} to {requested.value}")

    if requested == BookingStatus.COLLECTED:
        return _evaluate_collection(evidence)
    if requested == BookingStatus.DELIVERED:
        return _evaluate_delivery(evidence, expected_pin)
    if requested == BookingStatus.COMPLETED and not evidence.verified_by:
        return Decision.reject("Shipper verification is required to complete a booking", "verified_by")
    return Decision.accept()


def _evaluate_collection(evidence: Evidence) -> Decision:
    if evidence.seal_number and len(evidence.seal_number) > SEAL_NUMBER_MAX_LENGTH:
        return Decision.reject(f"Seal number is longer than {SEAL_NUMBER_MAX_LENGTH} characters", "seal_number")
    if not evidence.photo:
        return Decision.reject("A load photo is required to confirm collection", "photo")
    if evidence.sealed is None:
        return Decision.reject("State whether the truck was sealed", "sealed")
    if evidence.sealed and not (evidence.seal_number or "").strip():
        return Decision.reject("A seal number is required for a sealed truck", "seal_number")
    return Decision.accept()


def _is_pin(value: str) -> bool:
    return len(value) == DELIVERY_PIN_LENGTH and value.isdigit()


def _evaluate_delivery(evidence: Evidence, expected_pin: str | None) -> Decision:
    if evidence.delivery_pin and not _is_pin(evidence.delivery_pin):
        return Decision.reject(f"A delivery PIN is {DELIVERY_PIN_LENGTH} digits", "delivery_pin")
    if expected_pin:
        if evidence.delivery_pin != expected_pin:
            return Decision.reject("Incorrect delivery PIN", "delivery_pin")
    elif not evidence.signature:
        return Decision.reject("A receiver signature is required", "signature")
    if not evidence.offload_photo:
        return Decision.reject("An offload photo is required", "offload_photo")
    if not evidence.proof_of_delivery:
        return Decision.reject("Proof of delivery is required", "proof_of_delivery")
    return Decision.accept()


# ---------------------------------------------------------------------------
# Field changes of an accepted transition
# ---------------------------------------------------------------------------
def changes_for(requested: BookingStatus, evidence: Evidence | None, at: datetime, expected_pin: str | None = None) -> dict:
    """Field changes written when ``requested`` is accepted at time ``at``."""
    evidence = evidence or Evidence()
    changes = {"status": requested.value, "updated_at": at}

    if requested == BookingStatus.COLLECTED:
        changes["collection"] = {
            "photo": evidence.photo,
            "sealed": bool(evidence.sealed),
            "seal_number": evidence.seal_number if evidence.sealed else None,
            "latitude": evidence.latitude,
            "longitude": evidence.longitude,
            "collected_at": at,
        }
    elif requested == BookingStatus.DELIVERED:
        changes["delivery"] = {
            "proof_of_delivery": evidence.proof_of_delivery,
            "offload_photo": evidence.offload_photo,
            "signature": evidence.signature,
            "pin_verified": bool(expected_pin),
            "latitude": evidence.latitude,
            "longitude": evidence.longitude,
            "delivered_at": at,
        }
    elif requested == BookingStatus.COMPLETED:
        changes["payment_status"] = PaymentStatus.RELEASED.value
        changes["verified_by"] = evidence.verified_by
        changes["verified_at"] = at

    return changes
