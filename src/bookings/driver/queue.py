"""Offline action queue — durable, append-ordered record of driver mutations.

Actions are persisted to the local store on every change so they survive a
restart. Attachments travel inside the payload as base64 ``data:`` URLs next
to their file names; they are rebuilt byte-for-byte when the action is
replayed.
"""

import time
from enum import Enum
from typing import Any
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from bookings.booking.policy import BookingStatus
from bookings.geolocation.port import GeoPoint
from bookings.lifecycle import Transition
from bookings.media.attachment import Attachment, decode_attachment, encode_attachment
from bookings.storage.port import LocalStorePort

logger = structlog.get_logger(__name__)

QUEUE_KEY = "driver_offline_queue"


class ActionType(Enum):
    STATUS_UPDATE = "STATUS_UPDATE"
    COLLECTION = "COLLECTION"
    DELIVERY = "DELIVERY"


class LocationPayload(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class StatusUpdatePayload(BaseModel):
    booking_id: str = Field(..., min_length=1)
    status: BookingStatus


class CollectionPayload(BaseModel):
    booking_id: str = Field(..., min_length=1)
    photo: str | None = None
    photo_name: str | None = None
    sealed: bool | None = None
    seal_number: str | None = None
    location: LocationPayload | None = None


class DeliveryPayload(BaseModel):
    booking_id: str = Field(..., min_length=1)
    proof_of_delivery: str | None = None
    proof_of_delivery_name: str | None = None
    offload_photo: str | None = None
    offload_photo_name: str | None = None
    signature: str | None = None
    delivery_pin: str | None = None
    location: LocationPayload | None = None


_PAYLOADS: dict[ActionType, type[BaseModel]] = {
    ActionType.STATUS_UPDATE: StatusUpdatePayload,
    ActionType.COLLECTION: CollectionPayload,
    ActionType.DELIVERY: DeliveryPayload,
}


class OfflineAction(BaseModel):
    """One mutation captured while offline.

    The payload keeps its plain-dict wire shape; it is checked against the
    model for the action type whenever an action is built or loaded.
    """

    id: str = Field(..., min_length=1)
    type: ActionType
    payload: dict[str, Any]
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds at capture time")

    @model_validator(mode="after")
    def _check_payload(self) -> "OfflineAction":
        try:
            _PAYLOADS[self.type].model_validate(self.payload)
        except PydanticValidationError as exc:
            raise ValueError(f"Malformed {self.type.value} payload: {exc}") from exc
        return self

    @property
    def booking_id(self) -> str:
        return self.payload["booking_id"]


_ACTIONS = TypeAdapter(list[OfflineAction])
_ENTRIES = TypeAdapter(list[dict[str, Any]])


def now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Transition <-> action conversion
# ---------------------------------------------------------------------------
def action_from_transition(booking_id: str, transition: Transition, timestamp: int | None = None) -> OfflineAction:
    """Encode a transition (attachments included) as a queueable action."""
    timestamp = now_ms() if timestamp is None else timestamp
    payload: dict[str, Any] = {"booking_id": booking_id}

    if transition.target == BookingStatus.COLLECTED:
        action_type = ActionType.COLLECTION
        _put_attachment(payload, "photo", transition.photo)
        payload["sealed"] = transition.sealed
        payload["seal_number"] = transition.seal_number
        payload["location"] = transition.location.as_dict() if transition.location else None
    elif transition.target == BookingStatus.DELIVERED:
        action_type = ActionType.DELIVERY
        _put_attachment(payload, "proof_of_delivery", transition.proof_of_delivery)
        _put_attachment(payload, "offload_photo", transition.offload_photo)
        payload["signature"] = transition.signature
        payload["delivery_pin"] = transition.delivery_pin
        payload["location"] = transition.location.as_dict() if transition.location else None
    else:
        action_type = ActionType.STATUS_UPDATE
        payload["status"] = transition.target.value

    return OfflineAction(
        id=f"{timestamp}-{uuid4().hex[:6]}",
        type=action_type,
        payload=payload,
        timestamp=timestamp,
    )


def transition_from_action(action: OfflineAction) -> Transition:
    """Rebuild the transition an action was captured from.

    Raises ValueError when the payload is malformed or an attachment cannot
    be decoded.
    """
    payload = _PAYLOADS[action.type].model_validate(action.payload)

    if isinstance(payload, CollectionPayload):
        return Transition.collection(
            photo=_get_attachment(payload.photo, payload.photo_name, "photo"),
            sealed=payload.sealed,
            seal_number=payload.seal_number,
            location=_location(payload.location),
        )
    if isinstance(payload, DeliveryPayload):
        return Transition.delivery(
            proof_of_delivery=_get_attachment(
                payload.proof_of_delivery, payload.proof_of_delivery_name, "proof_of_delivery"
            ),
            offload_photo=_get_attachment(payload.offload_photo, payload.offload_photo_name, "offload_photo"),
            signature=payload.signature,
            delivery_pin=payload.delivery_pin,
            location=_location(payload.location),
        )
    return Transition.status_update(payload.status)


def _put_attachment(payload: dict, field: str, attachment: Attachment | None) -> None:
    if attachment is None:
        payload[field] = None
        payload[f"{field}_name"] = None
        return
    payload[field] = encode_attachment(attachment)
    payload[f"{field}_name"] = attachment.filename


def _get_attachment(text: str | None, filename: str | None, field: str) -> Attachment | None:
    if text is None:
        return None
    return decode_attachment(text, filename or field)


def _location(data: LocationPayload | None) -> GeoPoint | None:
    if data is None:
        return None
    return GeoPoint(latitude=data.latitude, longitude=data.longitude)


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------
class OfflineActionQueue:
    """FIFO of offline actions mirrored to durable storage."""

    def __init__(self, local_store: LocalStorePort, key: str = QUEUE_KEY):
        self._store = local_store
        self._key = key
        self._actions: list[OfflineAction] = self._load()

    def __len__(self) -> int:
        return len(self._actions)

    def pending(self) -> list[OfflineAction]:
        """Queued actions in enqueue order."""
        return list(self._actions)

    def enqueue(self, action: OfflineAction) -> None:
        self._actions.append(action)
        self._persist()
        logger.info(
            "Offline action queued",
            action_id=action.id,
            action_type=action.type.value,
            booking_id=action.booking_id,
            queue_length=len(self._actions),
        )

    def discard(self, action_id: str) -> None:
        self._actions = [a for a in self._actions if a.id != action_id]
        self._persist()

    def clear(self) -> None:
        self._actions = []
        try:
            self._store.remove(self._key)
        except OSError as exc:
            logger.warning("Could not clear offline queue", key=self._key, error=str(exc))

    def _load(self) -> list[OfflineAction]:
        try:
            raw = self._store.get(self._key)
        except OSError as exc:
            logger.warning("Could not read offline queue", key=self._key, error=str(exc))
            return []
        if not raw:
            return []
        try:
            entries = _ENTRIES.validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("Discarding corrupt offline queue", key=self._key, error=str(exc))
            return []

        actions = []
        for position, entry in enumerate(entries):
            try:
                actions.append(OfflineAction.model_validate(entry))
            except PydanticValidationError as exc:
                logger.warning(
                    "Skipping malformed offline action",
                    key=self._key,
                    position=position,
                    action_id=entry.get("id"),
                    error=str(exc),
                )
        return actions

    def _persist(self) -> None:
        try:
            self._store.set(self._key, _ACTIONS.dump_json(self._actions).decode("utf-8"))
        except OSError as exc:
            logger.warning("Could not persist offline queue", key=self._key, error=str(exc))
