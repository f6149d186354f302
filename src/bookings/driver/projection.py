"""Optimistic view — authoritative bookings with queued offline actions applied.

The projection is a pure function: it never touches the store or the queue,
and projecting the same inputs twice yields the same view. Each queued action
goes through the same transition policy as an authoritative write, at the
time the action was captured. Attachments are not uploaded yet, so they show
up as ``offline://<action-id>/<field>`` placeholders.
"""

import copy
from datetime import UTC, date, datetime

from bookings.booking.policy import BookingStatus, Decision, Evidence, changes_for, evaluate
from bookings.driver.queue import ActionType, OfflineAction

_ATTACHMENT_FIELDS = {
    ActionType.COLLECTION: ("photo",),
    ActionType.DELIVERY: ("proof_of_delivery", "offload_photo"),
}


def offline_reference(action_id: str, field: str) -> str:
    return f"offline://{action_id}/{field}"


def requested_status(action: OfflineAction) -> BookingStatus:
    if action.type == ActionType.COLLECTION:
        return BookingStatus.COLLECTED
    if action.type == ActionType.DELIVERY:
        return BookingStatus.DELIVERED
    return BookingStatus(action.payload.get("status"))


def evidence_for(action: OfflineAction) -> Evidence:
    payload = action.payload
    refs = {
        field: offline_reference(action.id, field) if payload.get(field) else None
        for field in _ATTACHMENT_FIELDS.get(action.type, ())
    }
    location = payload.get("location") or {}
    return Evidence(
        photo=refs.get("photo"),
        sealed=payload.get("sealed"),
        seal_number=payload.get("seal_number"),
        proof_of_delivery=refs.get("proof_of_delivery"),
        offload_photo=refs.get("offload_photo"),
        signature=payload.get("signature"),
        delivery_pin=payload.get("delivery_pin"),
        latitude=location.get("latitude"),
        longitude=location.get("longitude"),
    )


def captured_at(action: OfflineAction) -> datetime:
    return datetime.fromtimestamp(action.timestamp / 1000, UTC)


def evaluate_action(snapshot: dict, action: OfflineAction) -> Decision:
    """Policy decision for applying ``action`` on top of ``snapshot``."""
    try:
        target = requested_status(action)
    except ValueError:
        return Decision.reject(f"Unknown status {action.payload.get('status')}")
    return evaluate(
        BookingStatus(snapshot["status"]),
        target,
        evidence_for(action),
        snapshot.get("delivery_pin"),
    )


def apply_action(snapshot: dict, action: OfflineAction) -> dict:
    """Return a copy of ``snapshot`` with the action's changes written in.

    The caller is expected to have checked ``evaluate_action`` first.
    """
    changes = changes_for(
        requested_status(action),
        evidence_for(action),
        captured_at(action),
        snapshot.get("delivery_pin"),
    )
    projected = copy.deepcopy(snapshot)
    for key, value in changes.items():
        projected[key] = _jsonable(value)
    return projected


def project(authoritative: list[dict], actions: list[OfflineAction]) -> list[dict]:
    """Merge queued actions over the authoritative bookings, in queue order.

    Actions for bookings outside ``authoritative`` and actions the policy
    rejects at their point in the sequence are skipped.
    """
    view = {b["id"]: copy.deepcopy(b) for b in authoritative}
    for action in actions:
        current = view.get(action.booking_id)
        if current is None:
            continue
        if evaluate_action(current, action).accepted:
            view[action.booking_id] = apply_action(current, action)
    return [view[b["id"]] for b in authoritative]


def _jsonable(value):
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
