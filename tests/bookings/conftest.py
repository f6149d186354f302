import base64
from uuid import uuid4

import pytest
from protean.integrations.pytest import DomainFixture

from bookings.booking.booking import UserRole
from bookings.booking.policy import BookingStatus, successor_of
from bookings.geolocation import reset_geolocation
from bookings.lifecycle import Transition
from bookings.media import reset_media_store
from bookings.media.attachment import Attachment
from bookings.settings import reset_settings
from bookings.state import reset_app_context
from bookings.storage import reset_local_store
from bookings.storage.memory_adapter import MemoryLocalStore
from bookings.store import BookingStore

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


@pytest.fixture(scope="session")
def bookings_bed():
    from bookings.domain import bookings

    bed = DomainFixture(bookings)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(bookings_bed):
    with bookings_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_adapters():
    """Fresh settings and adapter singletons for every test."""
    reset_settings()
    reset_media_store()
    reset_local_store()
    reset_geolocation()
    reset_app_context()
    yield
    reset_settings()
    reset_media_store()
    reset_local_store()
    reset_geolocation()
    reset_app_context()


class FailingLocalStore(MemoryLocalStore):
    """Memory store whose reads, writes or removals can be made to raise OSError."""

    def __init__(self):
        super().__init__()
        self.fail_get = False
        self.fail_set = False
        self.fail_remove = False

    def get(self, key: str) -> str | None:
        if self.fail_get:
            raise OSError("local store unreadable")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_set:
            raise OSError("local store full")
        super().set(key, value)

    def remove(self, key: str) -> None:
        if self.fail_remove:
            raise OSError("local store read-only")
        super().remove(key)


@pytest.fixture()
def local_store():
    return MemoryLocalStore()


@pytest.fixture()
def failing_store():
    return FailingLocalStore()


@pytest.fixture()
def load_photo():
    return Attachment(filename="load.png", content=PNG_BYTES, content_type="image/png")


@pytest.fixture()
def pod_document():
    return Attachment(filename="pod.pdf", content=b"%PDF-1.4 signed waybill", content_type="application/pdf")


@pytest.fixture()
def offload_photo():
    return Attachment(filename="offload.png", content=PNG_BYTES + b"\x00", content_type="image/png")


@pytest.fixture()
def carrier_id():
    return f"c-{uuid4().hex[:8]}"


@pytest.fixture()
def shipper_id():
    return f"s-{uuid4().hex[:8]}"


@pytest.fixture()
def booking_at(carrier_id, shipper_id, load_photo, pod_document, offload_photo):
    """Factory: create a booking through the store and walk it to ``status``."""

    def _make(status: BookingStatus, store: BookingStore | None = None, **overrides) -> str:
        store = store or BookingStore()
        fields = {
            "shipper_id": shipper_id,
            "shipper_name": "Acme Supplies",
            "carrier_id": carrier_id,
            "carrier_name": "Swift Logistics",
            "origin": "Cape Town",
            "destination": "Johannesburg",
            "pickup_date": "2024-06-01",
            "base_rate": 12500.0,
        }
        fields.update(overrides)
        booking_id = store.create(**fields)

        if status == BookingStatus.DISPUTED:
            store.open_dispute(booking_id, "Pallets arrived water damaged", UserRole.SHIPPER)
            return booking_id

        current = BookingStatus.PENDING
        while current != status:
            target = successor_of(current)
            if target == BookingStatus.COLLECTED:
                transition = Transition.collection(load_photo, sealed=False)
            elif target == BookingStatus.DELIVERED:
                pin = store.snapshot(booking_id)["delivery_pin"]
                transition = Transition.delivery(pod_document, offload_photo, signature="J. Receiver", delivery_pin=pin)
            elif target == BookingStatus.COMPLETED:
                transition = Transition.verification(fields["shipper_id"])
            else:
                transition = Transition.status_update(target)
            store.apply(booking_id, transition)
            current = target
        return booking_id

    return _make
