"""Driver workflow — online/offline routing of a carrier's job mutations.

While online, mutations go straight to the booking store. While offline they
are checked against the optimistic view, queued, and reported back as
provisional. When connectivity returns the queue is replayed one action at a
time in enqueue order; an action that fails on replay is logged and dropped so
the rest of the queue still drains.
"""

import time

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from bookings.booking.policy import BookingStatus
from bookings.driver.connectivity import ConnectivityMonitor
from bookings.driver.projection import evaluate_action, project
from bookings.driver.queue import OfflineActionQueue, action_from_transition, transition_from_action
from bookings.geolocation import get_geolocation, read_location
from bookings.geolocation.port import GeolocationPort
from bookings.lifecycle import MutationResult, Transition
from bookings.media.attachment import Attachment
from bookings.settings import Settings, get_settings
from bookings.store import BookingStore

logger = structlog.get_logger(__name__)

# Statuses that still belong on a driver's job list
_ACTIVE_STATUSES = {
    BookingStatus.ACCEPTED.value,
    BookingStatus.ARRIVED_AT_PICKUP.value,
    BookingStatus.COLLECTED.value,
    BookingStatus.IN_TRANSIT.value,
    BookingStatus.ARRIVED_AT_DELIVERY.value,
    BookingStatus.DELIVERED.value,
}


class DriverWorkflow:
    def __init__(
        self,
        store: BookingStore,
        carrier_id: str,
        queue: OfflineActionQueue,
        connectivity: ConnectivityMonitor,
        geolocation: GeolocationPort | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.carrier_id = carrier_id
        self.queue = queue
        self.connectivity = connectivity
        self._geolocation = geolocation
        self._settings = settings
        self.is_syncing = False
        connectivity.subscribe(self._connectivity_changed)

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def geolocation(self) -> GeolocationPort:
        return self._geolocation or get_geolocation()

    def start(self) -> int:
        """Drain anything left over from a previous session if already online."""
        if self.connectivity.is_online and len(self.queue):
            return self.sync()
        return 0

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def view(self) -> list[dict]:
        """The carrier's bookings with queued actions applied provisionally."""
        return project(self.store.snapshots_for_carrier(self.carrier_id), self.queue.pending())

    def active_jobs(self) -> list[dict]:
        return [b for b in self.view() if b["status"] in _ACTIVE_STATUSES]

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def submit(self, booking_id: str, transition: Transition) -> MutationResult:
        """Apply now if online, otherwise validate, queue and return a provisional result.

        Raises protean ValidationError when the transition is rejected, online
        or offline.
        """
        if transition.needs_location:
            location = read_location(self.geolocation, self.settings.geolocation_timeout_seconds)
            transition = transition.with_location(location)

        if self.connectivity.is_online:
            _own_booking(self.store.snapshots_for_carrier(self.carrier_id), booking_id)
            return self.store.apply(booking_id, transition)

        action = action_from_transition(booking_id, transition)
        current = _own_booking(self.view(), booking_id)
        decision = evaluate_action(current, action)
        if not decision.accepted:
            raise ValidationError({decision.field: [decision.reason]})

        self.queue.enqueue(action)
        return MutationResult.provisional(booking_id, transition.target.value, action.id)

    def update_status(self, booking_id: str, status: BookingStatus) -> MutationResult:
        return self.submit(booking_id, Transition.status_update(status))

    def confirm_collection(
        self,
        booking_id: str,
        photo: Attachment | None,
        sealed: bool | None,
        seal_number: str | None = None,
    ) -> MutationResult:
        return self.submit(booking_id, Transition.collection(photo, sealed, seal_number))

    def complete_delivery(
        self,
        booking_id: str,
        proof_of_delivery: Attachment | None,
        offload_photo: Attachment | None,
        signature: str | None = None,
        delivery_pin: str | None = None,
    ) -> MutationResult:
        return self.submit(
            booking_id,
            Transition.delivery(proof_of_delivery, offload_photo, signature, delivery_pin),
        )

    # -------------------------------------------------------------------
    # Replay
    # -------------------------------------------------------------------
    def sync(self) -> int:
        """Replay queued actions in order; returns how many were applied."""
        if self.is_syncing:
            return 0

        self.is_syncing = True
        replayed = 0
        pending = self.queue.pending()
        logger.info("Replaying offline actions", carrier_id=self.carrier_id, count=len(pending))
        try:
            for index, action in enumerate(pending):
                if index and self.settings.replay_delay_seconds:
                    time.sleep(self.settings.replay_delay_seconds)
                try:
                    self.store.apply(action.booking_id, transition_from_action(action))
                    replayed += 1
                except Exception:
                    logger.exception(
                        "Dropping offline action that failed on replay",
                        action_id=action.id,
                        action_type=action.type.value,
                        booking_id=action.payload.get("booking_id"),
                    )
                self.queue.discard(action.id)
            self.queue.clear()
        finally:
            self.is_syncing = False

        logger.info("Offline replay finished", carrier_id=self.carrier_id, replayed=replayed)
        return replayed

    def _connectivity_changed(self, online: bool) -> None:
        if online:
            self.sync()


def _own_booking(bookings: list[dict], booking_id: str) -> dict:
    current = next((b for b in bookings if b["id"] == booking_id), None)
    if current is None:
        raise ObjectNotFoundError(f"Booking with id {booking_id} does not exist for this carrier")
    return current
