"""Booking disputes — commands and handler.

A dispute is opened by either party (or an admin), collects evidence while
open, and is resolved by an admin into a release or a refund.
"""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from bookings.booking.booking import Booking
from bookings.domain import bookings


@bookings.command(part_of="Booking")
class OpenDispute:
    booking_id = Identifier(required=True)
    reason = String(required=True, max_length=1000)
    raised_by = String(required=True, max_length=50)


@bookings.command(part_of="Booking")
class AddDisputeEvidence:
    booking_id = Identifier(required=True)
    uploaded_by = String(required=True, max_length=50)
    uploader_name = String(max_length=200)
    file_name = String(required=True, max_length=255)
    file_ref = Text(required=True)
    file_type = String(max_length=50)


@bookings.command(part_of="Booking")
class ResolveDispute:
    booking_id = Identifier(required=True)
    outcome = String(required=True, max_length=50)
    resolved_by = String(required=True, max_length=100)


@bookings.command_handler(part_of=Booking)
class DisputeHandler:
    @handle(OpenDispute)
    def open_dispute(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.open_dispute(reason=command.reason, raised_by=command.raised_by)
        repo.add(booking)

    @handle(AddDisputeEvidence)
    def add_evidence(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.attach_dispute_evidence(
            uploaded_by=command.uploaded_by,
            uploader_name=command.uploader_name,
            file_name=command.file_name,
            file_ref=command.file_ref,
            file_type=command.file_type or "document",
        )
        repo.add(booking)

    @handle(ResolveDispute)
    def resolve_dispute(self, command):
        repo = current_domain.repository_for(Booking)
        booking = repo.get(command.booking_id)
        booking.resolve_dispute(outcome=command.outcome, resolved_by=command.resolved_by)
        repo.add(booking)
