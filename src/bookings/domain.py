"""Bookings bounded context — Shipment Contracts and Delivery Lifecycle.

Owns booking records from the moment a listing is booked or a quote is
accepted through collection, delivery, shipper verification and disputes.
Uses CQRS because the lifecycle is linear and driven by explicit operator
actions; the driver-side offline queue replays into the same commands.
"""

from protean.domain import Domain

bookings = Domain(name="bookings")
