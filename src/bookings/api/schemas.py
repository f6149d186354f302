"""Pydantic API schemas for the Bookings domain.

These are the external API contracts — separate from domain commands.
Attachments travel as base64 ``data:`` URLs together with their file name.
"""

from typing import Any

from pydantic import BaseModel, Field

from bookings.booking.booking import UserRole
from bookings.booking.policy import DELIVERY_PIN_LENGTH, SEAL_NUMBER_MAX_LENGTH
from bookings.state.models import AuditLogEntry, Listing, QuoteOffer, QuoteRequest


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class AttachmentRequest(BaseModel):
    filename: str = Field(..., max_length=255)
    data_url: str


class LocationRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class CreateBookingRequest(BaseModel):
    shipper_id: str
    carrier_id: str
    origin: str = Field(..., max_length=200)
    destination: str = Field(..., max_length=200)
    base_rate: float = Field(..., ge=0)
    price: float | None = Field(None, ge=0)
    pickup_date: str | None = Field(None, max_length=10)
    shipper_name: str | None = Field(None, max_length=200)
    carrier_name: str | None = Field(None, max_length=200)
    listing_id: str | None = None
    delivery_pin: str | None = Field(None, min_length=DELIVERY_PIN_LENGTH, max_length=DELIVERY_PIN_LENGTH)


class UpdateStatusRequest(BaseModel):
    status: str


class ConfirmCollectionRequest(BaseModel):
    photo: AttachmentRequest | None = None
    sealed: bool | None = None
    seal_number: str | None = Field(None, max_length=SEAL_NUMBER_MAX_LENGTH)
    location: LocationRequest | None = None


class CompleteDeliveryRequest(BaseModel):
    proof_of_delivery: AttachmentRequest | None = None
    offload_photo: AttachmentRequest | None = None
    signature: str | None = None
    delivery_pin: str | None = Field(None, max_length=DELIVERY_PIN_LENGTH)
    location: LocationRequest | None = None


class VerifyDeliveryRequest(BaseModel):
    verified_by: str


class OpenDisputeRequest(BaseModel):
    reason: str = Field(..., max_length=1000)
    raised_by: UserRole


class AddDisputeEvidenceRequest(BaseModel):
    uploaded_by: UserRole
    uploader_name: str | None = Field(None, max_length=200)
    file: AttachmentRequest


class ResolveDisputeRequest(BaseModel):
    outcome: str
    resolved_by: str


class PostListingRequest(BaseModel):
    carrier_id: str
    carrier_name: str = Field("", max_length=200)
    origin: str = Field(..., max_length=200)
    destination: str = Field(..., max_length=200)
    date: str = Field(..., max_length=10)
    base_rate: float = Field(..., ge=0)
    vehicle_type: str = ""
    service_type: str = "Door-to-Door"
    available_tons: float = Field(0, ge=0)
    available_pallets: int = Field(0, ge=0)


class BookListingRequest(BaseModel):
    shipper_id: str
    shipper_name: str = Field("", max_length=200)


class RequestQuoteRequest(BaseModel):
    shipper_id: str
    shipper_name: str = Field("", max_length=200)
    origin: str = Field(..., max_length=200)
    destination: str = Field(..., max_length=200)
    date: str = Field(..., max_length=10)
    vehicle_type: str = ""
    cargo_type: str = ""
    weight: float = Field(0, ge=0)


class SubmitOfferRequest(BaseModel):
    carrier_id: str
    carrier_name: str = Field("", max_length=200)
    amount: float = Field(..., ge=0)
    transit_time: str = ""
    message: str = Field("", max_length=1000)


class UpdatePlatformSettingsRequest(BaseModel):
    """Only the fields present are changed."""

    admin_name: str = "Owner Admin"
    markup_percent: float | None = Field(None, ge=0, le=100)
    delivery_pin_required: bool | None = None
    auto_release_hours: int | None = Field(None, ge=0)
    job_posting_enabled: bool | None = None
    registration_open: bool | None = None


class SwitchRoleRequest(BaseModel):
    role: UserRole


class CarrierVerificationRequest(BaseModel):
    name: str = Field("", max_length=200)


class VerifyCarrierRequest(BaseModel):
    admin_name: str = "Owner Admin"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class BookingIdResponse(BaseModel):
    booking_id: str


class BookingStatusResponse(BaseModel):
    booking_id: str
    status: str
    payment_status: str


class BookingListResponse(BaseModel):
    bookings: list[dict[str, Any]]


class NotificationResponse(BaseModel):
    id: str
    booking_id: str
    text: str
    created_at: str


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]


class ListingListResponse(BaseModel):
    listings: list[Listing]


class QuoteRequestListResponse(BaseModel):
    quote_requests: list[QuoteRequest]


class OfferListResponse(BaseModel):
    offers: list[QuoteOffer]


class AuditLogResponse(BaseModel):
    entries: list[AuditLogEntry]


class RoleResponse(BaseModel):
    role: UserRole
