"""Tests for the status transition policy — pure decisions and field changes."""

from datetime import UTC, datetime

import pytest
from bookings.booking.policy import (
    SEAL_NUMBER_MAX_LENGTH,
    TERMINAL_STATUSES,
    BookingStatus,
    Evidence,
    PaymentStatus,
    changes_for,
    evaluate,
    is_terminal,
    successor_of,
)

_LIFECYCLE = [
    BookingStatus.PENDING,
    BookingStatus.ACCEPTED,
    BookingStatus.ARRIVED_AT_PICKUP,
    BookingStatus.COLLECTED,
    BookingStatus.IN_TRANSIT,
    BookingStatus.ARRIVED_AT_DELIVERY,
    BookingStatus.DELIVERED,
    BookingStatus.COMPLETED,
]

_COLLECTION = Evidence(photo="media://load.png", sealed=True, seal_number="SEAL-001")
_DELIVERY = Evidence(
    proof_of_delivery="media://pod.pdf",
    offload_photo="media://offload.png",
    delivery_pin="482913",
)


def _evidence_for(target):
    if target == BookingStatus.COLLECTED:
        return _COLLECTION
    if target == BookingStatus.DELIVERED:
        return _DELIVERY
    if target == BookingStatus.COMPLETED:
        return Evidence(verified_by="s1")
    return None


class TestSuccessors:
    def test_each_status_has_exactly_the_next_lifecycle_status(self):
        for current, following in zip(_LIFECYCLE, _LIFECYCLE[1:], strict=False):
            assert successor_of(current) == following

    def test_terminal_statuses_have_no_successor(self):
        assert successor_of(BookingStatus.COMPLETED) is None
        assert successor_of(BookingStatus.DISPUTED) is None

    def test_terminal_set(self):
        assert TERMINAL_STATUSES == {BookingStatus.COMPLETED, BookingStatus.DISPUTED}
        assert is_terminal(BookingStatus.COMPLETED)
        assert not is_terminal(BookingStatus.DELIVERED)


class TestSuccessorOnly:
    @pytest.mark.parametrize("current", _LIFECYCLE[:-1])
    def test_immediate_successor_is_accepted(self, current):
        target = successor_of(current)
        decision = evaluate(current, target, _evidence_for(target), expected_pin="482913")
        assert decision.accepted, decision.reason

    @pytest.mark.parametrize("current", _LIFECYCLE)
    def test_every_other_target_is_rejected(self, current):
        allowed = successor_of(current)
        for target in BookingStatus:
            if target == allowed:
                continue
            decision = evaluate(current, target, _evidence_for(target), expected_pin="482913")
            assert not decision.accepted, f"{current.value} -> {target.value} should be rejected"

    def test_skipping_a_step_is_rejected(self):
        decision = evaluate(BookingStatus.ACCEPTED, BookingStatus.IN_TRANSIT)
        assert not decision.accepted
        assert "Cannot transition from Accepted to In_Transit" in decision.reason

    def test_going_back_is_rejected(self):
        decision = evaluate(BookingStatus.IN_TRANSIT, BookingStatus.COLLECTED, _COLLECTION)
        assert not decision.accepted

    def test_disputed_is_never_reached_through_evaluate(self):
        decision = evaluate(BookingStatus.IN_TRANSIT, BookingStatus.DISPUTED)
        assert not decision.accepted
        assert "dispute" in decision.reason.lower()

    def test_terminal_booking_cannot_move(self):
        decision = evaluate(BookingStatus.DISPUTED, BookingStatus.COMPLETED, Evidence(verified_by="s1"))
        assert not decision.accepted
        assert decision.reason == "Booking is already Disputed"


class TestCollectionEvidence:
    def test_collection_without_evidence_is_rejected(self):
        decision = evaluate(BookingStatus.ARRIVED_AT_PICKUP, BookingStatus.COLLECTED)
        assert not decision.accepted
        assert decision.field == "photo"

    def test_collection_needs_seal_flag(self):
        decision = evaluate(
            BookingStatus.ARRIVED_AT_PICKUP,
            BookingStatus.COLLECTED,
            Evidence(photo="media://load.png"),
        )
        assert not decision.accepted
        assert decision.field == "sealed"

    def test_sealed_truck_needs_seal_number(self):
        decision = evaluate(
            BookingStatus.ARRIVED_AT_PICKUP,
            BookingStatus.COLLECTED,
            Evidence(photo="media://load.png", sealed=True, seal_number="  "),
        )
        assert not decision.accepted
        assert decision.field == "seal_number"

    def test_unsealed_truck_needs_no_seal_number(self):
        decision = evaluate(
            BookingStatus.ARRIVED_AT_PICKUP,
            BookingStatus.COLLECTED,
            Evidence(photo="media://load.png", sealed=False),
        )
        assert decision.accepted

    def test_overlong_seal_number_is_rejected(self):
        decision = evaluate(
            BookingStatus.ARRIVED_AT_PICKUP,
            BookingStatus.COLLECTED,
            Evidence(photo="media://load.png", sealed=True, seal_number="S" * (SEAL_NUMBER_MAX_LENGTH + 1)),
        )
        assert not decision.accepted
        assert decision.field == "seal_number"


class TestDeliveryEvidence:
    def test_wrong_pin_is_rejected(self):
        evidence = Evidence(
            proof_of_delivery="media://pod.pdf",
            offload_photo="media://offload.png",
            delivery_pin="000000",
        )
        decision = evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence, "482913")
        assert not decision.accepted
        assert decision.field == "delivery_pin"
        assert decision.reason == "Incorrect delivery PIN"

    def test_signature_does_not_replace_a_required_pin(self):
        evidence = Evidence(
            proof_of_delivery="media://pod.pdf",
            offload_photo="media://offload.png",
            signature="J. Receiver",
        )
        decision = evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence, "482913")
        assert not decision.accepted

    def test_signature_required_without_pin(self):
        evidence = Evidence(proof_of_delivery="media://pod.pdf", offload_photo="media://offload.png")
        decision = evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence)
        assert not decision.accepted
        assert decision.field == "signature"

    def test_offload_photo_required(self):
        evidence = Evidence(proof_of_delivery="media://pod.pdf", delivery_pin="482913")
        decision = evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence, "482913")
        assert not decision.accepted
        assert decision.field == "offload_photo"

    def test_proof_of_delivery_required(self):
        evidence = Evidence(offload_photo="media://offload.png", delivery_pin="482913")
        decision = evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence, "482913")
        assert not decision.accepted
        assert decision.field == "proof_of_delivery"

    def test_complete_evidence_with_signature_is_accepted(self):
        evidence = Evidence(
            proof_of_delivery="media://pod.pdf",
            offload_photo="media://offload.png",
            signature="J. Receiver",
        )
        assert evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence).accepted


    def test_malformed_pin_is_rejected_even_without_an_expected_pin(self):
        evidence = Evidence(
            proof_of_delivery="media://pod.pdf",
            offload_photo="media://offload.png",
            signature="J. Receiver",
            delivery_pin="1234567",
        )
        decision = evaluate(BookingStatus.ARRIVED_AT_DELIVERY, BookingStatus.DELIVERED, evidence)
        assert not decision.accepted
        assert decision.field == "delivery_pin"


class TestVerification:
    def test_completion_requires_verifier(self):
        decision = evaluate(BookingStatus.DELIVERED, BookingStatus.COMPLETED)
        assert not decision.accepted
        assert decision.field == "verified_by"


class TestChangesFor:
    AT = datetime(2024, 6, 1, 9, 15, tzinfo=UTC)

    def test_plain_status_change(self):
        changes = changes_for(BookingStatus.IN_TRANSIT, None, self.AT)
        assert changes == {"status": "In_Transit", "updated_at": self.AT}

    def test_collection_changes_carry_seal_details(self):
        evidence = Evidence(photo="media://load.png", sealed=True, seal_number="SEAL-001", latitude=-33.9, longitude=18.4)
        changes = changes_for(BookingStatus.COLLECTED, evidence, self.AT)
        assert changes["status"] == "Collected"
        assert changes["collection"] == {
            "photo": "media://load.png",
            "sealed": True,
            "seal_number": "SEAL-001",
            "latitude": -33.9,
            "longitude": 18.4,
            "collected_at": self.AT,
        }

    def test_seal_number_dropped_for_unsealed_truck(self):
        evidence = Evidence(photo="media://load.png", sealed=False, seal_number="SEAL-IGNORED")
        changes = changes_for(BookingStatus.COLLECTED, evidence, self.AT)
        assert changes["collection"]["seal_number"] is None

    def test_delivery_changes_record_pin_verification(self):
        changes = changes_for(BookingStatus.DELIVERED, _DELIVERY, self.AT, expected_pin="482913")
        assert changes["delivery"]["pin_verified"] is True
        assert changes["delivery"]["delivered_at"] == self.AT

    def test_completion_releases_payment(self):
        changes = changes_for(BookingStatus.COMPLETED, Evidence(verified_by="s1"), self.AT)
        assert changes["payment_status"] == PaymentStatus.RELEASED.value
        assert changes["verified_by"] == "s1"
        assert changes["verified_at"] == self.AT
