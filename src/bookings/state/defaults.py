"""Built-in data used when nothing usable is persisted yet."""

from bookings.state.models import CarrierProfile, Listing, VerificationStatus

SHIPPER_ID = "s1"
CARRIER_ID = "c1"


def default_carriers() -> list[CarrierProfile]:
    return [CarrierProfile(id=CARRIER_ID, name="Swift Logistics", verification=VerificationStatus.VERIFIED)]


def default_listings() -> list[Listing]:
    return [
        Listing(
            id="l1",
            carrier_id=CARRIER_ID,
            carrier_name="Swift Logistics",
            origin="Johannesburg",
            destination="Cape Town",
            date="2024-06-15",
            vehicle_type="Refrigerated",
            service_type="Door-to-Door",
            available_tons=15,
            available_pallets=20,
            base_rate=12000,
            price=13200,
        ),
        Listing(
            id="l2",
            carrier_id=CARRIER_ID,
            carrier_name="Swift Logistics",
            origin="Durban",
            destination="Pretoria",
            date="2024-06-18",
            vehicle_type="Flatbed",
            service_type="Depot-to-Depot",
            available_tons=28,
            base_rate=8500,
            price=9350,
        ),
    ]


def default_bookings() -> list[dict]:
    """Booking snapshots: one load on the road, one frozen by a dispute."""
    return [
        {
            "id": "b1",
            "waybill_number": "WB-8374920",
            "listing_id": "l10",
            "shipper_id": SHIPPER_ID,
            "shipper_name": "Acme Supplies",
            "carrier_id": CARRIER_ID,
            "carrier_name": "Swift Logistics",
            "origin": "Cape Town",
            "destination": "Johannesburg",
            "pickup_date": "2024-06-01",
            "status": "In_Transit",
            "payment_status": "Escrow",
            "base_rate": 12500,
            "price": 14000,
            "delivery_pin": "839201",
            "collection": {
                "photo": "media://seed/b1/load.jpg",
                "sealed": True,
                "seal_number": "SL-998877",
                "latitude": -33.9249,
                "longitude": 18.4241,
                "collected_at": "2024-06-01T09:15:00+00:00",
            },
            "created_at": "2024-05-30T08:00:00+00:00",
            "updated_at": "2024-06-01T09:15:00+00:00",
        },
        {
            "id": "b2",
            "waybill_number": "WB-1192834",
            "listing_id": "l11",
            "shipper_id": SHIPPER_ID,
            "shipper_name": "Acme Supplies",
            "carrier_id": CARRIER_ID,
            "carrier_name": "Swift Logistics",
            "origin": "Nelspruit",
            "destination": "Maputo",
            "pickup_date": "2024-05-28",
            "status": "Disputed",
            "payment_status": "Hold",
            "base_rate": 7500,
            "price": 8500,
            "delivery_pin": "445566",
            "dispute": {
                "reason": "Shipper claims 2 pallets arrived with water damage.",
                "raised_by": "shipper",
                "status": "Open",
                "opened_at": "2024-06-01T10:23:00+00:00",
            },
            "evidence_files": [
                {
                    "uploaded_by": "shipper",
                    "uploader_name": "Acme Supplies",
                    "file_name": "damaged_goods_01.jpg",
                    "file_ref": "media://seed/b2/damaged_goods_01.jpg",
                    "file_type": "image",
                    "uploaded_at": "2024-06-01T10:30:00+00:00",
                }
            ],
            "created_at": "2024-05-27T08:00:00+00:00",
            "updated_at": "2024-06-01T10:23:00+00:00",
        },
    ]
