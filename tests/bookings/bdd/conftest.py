"""Shared BDD fixtures and step definitions for the Bookings domain."""

import pytest
from bookings.booking.policy import BookingStatus
from bookings.store import BookingStore
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a booking in status "{status}"'), target_fixture="booking_id")
def booking_in_status(booking_at, status):
    return booking_at(BookingStatus(status), delivery_pin="482913")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the booking status is "{status}"'))
def booking_status_is(booking_id, status):
    assert BookingStore().snapshot(booking_id)["status"] == status


@then(parsers.cfparse('the payment status is "{payment_status}"'))
def payment_status_is(booking_id, payment_status):
    assert BookingStore().snapshot(booking_id)["payment_status"] == payment_status


@then("the booking action fails with a validation error")
def booking_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)
