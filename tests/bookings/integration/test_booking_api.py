"""Integration tests for Booking API endpoints via TestClient."""

import json

import pytest
from bookings.api.routes import booking_router, notification_router
from bookings.media import get_media_store
from bookings.media.attachment import encode_attachment
from bookings.state.context import BOOKINGS_KEY
from bookings.storage import get_local_store
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(booking_router)
    app.include_router(notification_router)
    register_exception_handlers(app)
    return TestClient(app)


def _file(attachment):
    return {"filename": attachment.filename, "data_url": encode_attachment(attachment)}


def _create_booking(client, shipper_id, carrier_id, **overrides):
    payload = {
        "shipper_id": shipper_id,
        "carrier_id": carrier_id,
        "origin": "Cape Town",
        "destination": "Johannesburg",
        "base_rate": 12500.0,
        "pickup_date": "2024-06-01",
        "delivery_pin": "482913",
    }
    payload.update(overrides)
    response = client.post("/bookings", json=payload)
    assert response.status_code == 201
    return response.json()["booking_id"]


def _advance_to_arrived_at_delivery(client, booking_id, load_photo):
    client.put(f"/bookings/{booking_id}/accept")
    client.put(f"/bookings/{booking_id}/status", json={"status": "Arrived_At_Pickup"})
    client.put(f"/bookings/{booking_id}/collection", json={"photo": _file(load_photo), "sealed": False})
    client.put(f"/bookings/{booking_id}/status", json={"status": "In_Transit"})
    client.put(f"/bookings/{booking_id}/status", json={"status": "Arrived_At_Delivery"})


class TestCreateBookingAPI:
    def test_create_returns_201(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)

        response = client.get(f"/bookings/{booking_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Pending"
        assert body["payment_status"] == "Escrow"
        assert body["price"] == 13750.0
        assert body["waybill_number"].startswith("WB-")

    def test_missing_fields_rejected(self, client):
        response = client.post("/bookings", json={"origin": "Cape Town"})
        assert response.status_code == 422

    def test_unknown_booking_returns_404(self, client):
        response = client.get("/bookings/does-not-exist")
        assert response.status_code == 404

    def test_created_booking_is_persisted(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")

        persisted = {b["id"]: b for b in json.loads(get_local_store().get(BOOKINGS_KEY))}
        assert persisted[booking_id]["status"] == "Accepted"

    def test_seeded_bookings_are_served(self, client):
        response = client.get("/bookings/b1")
        assert response.json()["waybill_number"] == "WB-8374920"


class TestListBookingsAPI:
    def test_carrier_view_hides_pending(self, client, shipper_id, carrier_id):
        pending = _create_booking(client, shipper_id, carrier_id)
        accepted = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{accepted}/accept")

        response = client.get("/bookings", params={"role": "carrier", "entity_id": carrier_id})

        ids = {b["id"] for b in response.json()["bookings"]}
        assert accepted in ids
        assert pending not in ids

    def test_shipper_view(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        response = client.get("/bookings", params={"role": "shipper", "entity_id": shipper_id})
        assert [b["id"] for b in response.json()["bookings"]] == [booking_id]

    def test_unknown_role_rejected(self, client):
        response = client.get("/bookings", params={"role": "pilot"})
        assert response.status_code == 422


class TestLifecycleAPI:
    def test_skipping_a_step_returns_400(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")

        response = client.put(f"/bookings/{booking_id}/status", json={"status": "In_Transit"})

        assert response.status_code == 400
        assert client.get(f"/bookings/{booking_id}").json()["status"] == "Accepted"

    def test_unknown_status_returns_400(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        response = client.put(f"/bookings/{booking_id}/status", json={"status": "Teleported"})
        assert response.status_code == 400

    def test_collection_without_evidence_returns_400(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")
        client.put(f"/bookings/{booking_id}/status", json={"status": "Arrived_At_Pickup"})

        response = client.put(f"/bookings/{booking_id}/collection", json={})

        assert response.status_code == 400
        assert client.get(f"/bookings/{booking_id}").json()["collection"] is None

    def test_collection_stores_photo_and_seal(self, client, shipper_id, carrier_id, load_photo):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")
        client.put(f"/bookings/{booking_id}/status", json={"status": "Arrived_At_Pickup"})

        response = client.put(
            f"/bookings/{booking_id}/collection",
            json={
                "photo": _file(load_photo),
                "sealed": True,
                "seal_number": "SEAL-001",
                "location": {"latitude": -33.92, "longitude": 18.42},
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Collected"
        collection = client.get(f"/bookings/{booking_id}").json()["collection"]
        assert collection["seal_number"] == "SEAL-001"
        assert collection["latitude"] == -33.92
        assert get_media_store().fetch(collection["photo"]).content == load_photo.content

    def test_malformed_attachment_returns_400(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")
        client.put(f"/bookings/{booking_id}/status", json={"status": "Arrived_At_Pickup"})

        response = client.put(
            f"/bookings/{booking_id}/collection",
            json={"photo": {"filename": "load.png", "data_url": "not-a-data-url"}, "sealed": False},
        )
        assert response.status_code == 400

    def test_delivery_and_verification(self, client, shipper_id, carrier_id, load_photo, pod_document, offload_photo):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        _advance_to_arrived_at_delivery(client, booking_id, load_photo)

        response = client.put(
            f"/bookings/{booking_id}/delivery",
            json={
                "proof_of_delivery": _file(pod_document),
                "offload_photo": _file(offload_photo),
                "signature": "J. Receiver",
                "delivery_pin": "482913",
            },
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Delivered"

        response = client.put(f"/bookings/{booking_id}/verify", json={"verified_by": shipper_id})
        assert response.json() == {"booking_id": booking_id, "status": "Completed", "payment_status": "Released"}

    def test_wrong_pin_returns_400(self, client, shipper_id, carrier_id, load_photo, pod_document, offload_photo):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        _advance_to_arrived_at_delivery(client, booking_id, load_photo)

        response = client.put(
            f"/bookings/{booking_id}/delivery",
            json={
                "proof_of_delivery": _file(pod_document),
                "offload_photo": _file(offload_photo),
                "delivery_pin": "000000",
            },
        )
        assert response.status_code == 400
        assert client.get(f"/bookings/{booking_id}").json()["status"] == "Arrived_At_Delivery"


class TestDisputeAPI:
    def test_dispute_round_trip(self, client, shipper_id, carrier_id, pod_document):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")

        response = client.put(
            f"/bookings/{booking_id}/dispute",
            json={"reason": "Truck never arrived", "raised_by": "shipper"},
        )
        assert response.json()["status"] == "Disputed"
        assert response.json()["payment_status"] == "Hold"

        response = client.post(
            f"/bookings/{booking_id}/dispute/evidence",
            json={"uploaded_by": "shipper", "uploader_name": "Acme", "file": _file(pod_document)},
        )
        assert response.status_code == 201

        response = client.put(
            f"/bookings/{booking_id}/dispute/resolve",
            json={"outcome": "Refund", "resolved_by": "Owner Admin"},
        )
        assert response.json()["payment_status"] == "Refunded"

        booking = client.get(f"/bookings/{booking_id}").json()
        assert booking["evidence_files"][0]["file_type"] == "document"
        assert booking["dispute"]["status"] == "Resolved"

    def test_status_frozen_while_disputed(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")
        client.put(f"/bookings/{booking_id}/dispute", json={"reason": "Wrong truck", "raised_by": "carrier"})

        response = client.put(f"/bookings/{booking_id}/status", json={"status": "Arrived_At_Pickup"})
        assert response.status_code == 400


class TestNotificationAPI:
    def test_shipper_feed_mentions_acceptance(self, client, shipper_id, carrier_id):
        booking_id = _create_booking(client, shipper_id, carrier_id)
        client.put(f"/bookings/{booking_id}/accept")

        response = client.get("/notifications", params={"role": "shipper", "entity_id": shipper_id})

        assert response.status_code == 200
        notifications = response.json()["notifications"]
        assert notifications
        assert all(n["booking_id"] == booking_id for n in notifications)
