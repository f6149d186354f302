"""FastAPI routes for the Bookings domain."""

from fastapi import APIRouter, HTTPException, Query
from protean.exceptions import ValidationError

from bookings.api.schemas import (
    AddDisputeEvidenceRequest,
    AttachmentRequest,
    AuditLogResponse,
    BookListingRequest,
    BookingIdResponse,
    BookingListResponse,
    BookingStatusResponse,
    CarrierVerificationRequest,
    CompleteDeliveryRequest,
    ConfirmCollectionRequest,
    CreateBookingRequest,
    ListingListResponse,
    LocationRequest,
    NotificationListResponse,
    OfferListResponse,
    OpenDisputeRequest,
    PostListingRequest,
    QuoteRequestListResponse,
    RequestQuoteRequest,
    ResolveDisputeRequest,
    RoleResponse,
    SubmitOfferRequest,
    SwitchRoleRequest,
    UpdatePlatformSettingsRequest,
    UpdateStatusRequest,
    VerifyCarrierRequest,
    VerifyDeliveryRequest,
)
from bookings.booking.booking import UserRole
from bookings.booking.policy import BookingStatus
from bookings.geolocation.port import GeoPoint
from bookings.lifecycle import Transition
from bookings.media.attachment import Attachment, decode_attachment
from bookings.state import get_app_context
from bookings.state.models import CarrierProfile, Listing, PlatformSettings, QuoteOffer, QuoteRequest
from bookings.store import BookingStore


def _bookings() -> BookingStore:
    return get_app_context().bookings


def _attachment(body: AttachmentRequest | None) -> Attachment | None:
    if body is None:
        return None
    try:
        return decode_attachment(body.data_url, body.filename)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid attachment {body.filename}: {exc}") from exc


def _location(body: LocationRequest | None) -> GeoPoint | None:
    if body is None:
        return None
    return GeoPoint(latitude=body.latitude, longitude=body.longitude)


def _status_response(snapshot: dict) -> BookingStatusResponse:
    return BookingStatusResponse(
        booking_id=snapshot["id"],
        status=snapshot["status"],
        payment_status=snapshot["payment_status"],
    )


# ---------------------------------------------------------------------------
# Booking Router
# ---------------------------------------------------------------------------
booking_router = APIRouter(prefix="/bookings", tags=["bookings"])


@booking_router.post("", status_code=201, response_model=BookingIdResponse)
async def create_booking(body: CreateBookingRequest) -> BookingIdResponse:
    """Open a booking; the price defaults to the base rate plus the platform markup."""
    booking_id = _bookings().create(**body.model_dump())
    return BookingIdResponse(booking_id=booking_id)


@booking_router.get("", response_model=BookingListResponse)
async def list_bookings(
    role: UserRole = Query(...),
    entity_id: str | None = Query(None),
) -> BookingListResponse:
    """Bookings visible to a participant (carriers see active jobs only)."""
    return BookingListResponse(bookings=_bookings().get(role, entity_id))


@booking_router.get("/{booking_id}")
async def get_booking(booking_id: str) -> dict:
    return _bookings().snapshot(booking_id)


@booking_router.put("/{booking_id}/accept", response_model=BookingStatusResponse)
async def accept_booking(booking_id: str) -> BookingStatusResponse:
    result = _bookings().apply(booking_id, Transition.status_update(BookingStatus.ACCEPTED))
    return _status_response(result.snapshot)


@booking_router.put("/{booking_id}/status", response_model=BookingStatusResponse)
async def update_status(booking_id: str, body: UpdateStatusRequest) -> BookingStatusResponse:
    """Advance through an evidence-free step (arrival, departure)."""
    try:
        target = BookingStatus(body.status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown booking status {body.status}"]}) from None
    result = _bookings().apply(booking_id, Transition.status_update(target))
    return _status_response(result.snapshot)


@booking_router.put("/{booking_id}/collection", response_model=BookingStatusResponse)
async def confirm_collection(booking_id: str, body: ConfirmCollectionRequest) -> BookingStatusResponse:
    transition = Transition.collection(
        photo=_attachment(body.photo),
        sealed=body.sealed,
        seal_number=body.seal_number,
        location=_location(body.location),
    )
    result = _bookings().apply(booking_id, transition)
    return _status_response(result.snapshot)


@booking_router.put("/{booking_id}/delivery", response_model=BookingStatusResponse)
async def complete_delivery(booking_id: str, body: CompleteDeliveryRequest) -> BookingStatusResponse:
    transition = Transition.delivery(
        proof_of_delivery=_attachment(body.proof_of_delivery),
        offload_photo=_attachment(body.offload_photo),
        signature=body.signature,
        delivery_pin=body.delivery_pin,
        location=_location(body.location),
    )
    result = _bookings().apply(booking_id, transition)
    return _status_response(result.snapshot)


@booking_router.put("/{booking_id}/verify", response_model=BookingStatusResponse)
async def verify_delivery(booking_id: str, body: VerifyDeliveryRequest) -> BookingStatusResponse:
    """Shipper verifies proof of delivery; releases the escrowed payment."""
    result = _bookings().apply(booking_id, Transition.verification(body.verified_by))
    return _status_response(result.snapshot)


@booking_router.put("/{booking_id}/dispute", response_model=BookingStatusResponse)
async def open_dispute(booking_id: str, body: OpenDisputeRequest) -> BookingStatusResponse:
    snapshot = _bookings().open_dispute(booking_id, body.reason, body.raised_by)
    return _status_response(snapshot)


@booking_router.post("/{booking_id}/dispute/evidence", status_code=201, response_model=BookingStatusResponse)
async def add_dispute_evidence(booking_id: str, body: AddDisputeEvidenceRequest) -> BookingStatusResponse:
    snapshot = _bookings().add_dispute_evidence(
        booking_id,
        uploaded_by=body.uploaded_by,
        attachment=_attachment(body.file),
        uploader_name=body.uploader_name,
    )
    return _status_response(snapshot)


@booking_router.put("/{booking_id}/dispute/resolve", response_model=BookingStatusResponse)
async def resolve_dispute(booking_id: str, body: ResolveDisputeRequest) -> BookingStatusResponse:
    snapshot = _bookings().resolve_dispute(booking_id, body.outcome, body.resolved_by)
    return _status_response(snapshot)


# ---------------------------------------------------------------------------
# Notification Router
# ---------------------------------------------------------------------------
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notification_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    role: UserRole = Query(...),
    entity_id: str | None = Query(None),
) -> NotificationListResponse:
    return NotificationListResponse(notifications=_bookings().notifications(role, entity_id))


# ---------------------------------------------------------------------------
# Listing Router
# ---------------------------------------------------------------------------
listing_router = APIRouter(prefix="/listings", tags=["listings"])


@listing_router.get("", response_model=ListingListResponse)
async def list_listings() -> ListingListResponse:
    return ListingListResponse(listings=get_app_context().state.listings)


@listing_router.post("", status_code=201, response_model=Listing)
async def post_listing(body: PostListingRequest) -> Listing:
    """A verified carrier publishes an empty leg."""
    return get_app_context().post_listing(**body.model_dump())


@listing_router.delete("/{listing_id}", status_code=204)
async def remove_listing(listing_id: str) -> None:
    get_app_context().remove_listing(listing_id)


@listing_router.post("/{listing_id}/book", status_code=201, response_model=BookingIdResponse)
async def book_listing(listing_id: str, body: BookListingRequest) -> BookingIdResponse:
    booking_id = get_app_context().book_listing(listing_id, body.shipper_id, body.shipper_name)
    return BookingIdResponse(booking_id=booking_id)


# ---------------------------------------------------------------------------
# Quote Router
# ---------------------------------------------------------------------------
quote_router = APIRouter(prefix="/quotes", tags=["quotes"])


@quote_router.get("", response_model=QuoteRequestListResponse)
async def list_quote_requests() -> QuoteRequestListResponse:
    return QuoteRequestListResponse(quote_requests=get_app_context().state.quote_requests)


@quote_router.post("", status_code=201, response_model=QuoteRequest)
async def request_quote(body: RequestQuoteRequest) -> QuoteRequest:
    return get_app_context().request_quote(**body.model_dump())


@quote_router.delete("/{quote_id}", status_code=204)
async def cancel_quote(quote_id: str) -> None:
    get_app_context().cancel_quote(quote_id)


@quote_router.get("/{quote_id}/offers", response_model=OfferListResponse)
async def list_offers(quote_id: str) -> OfferListResponse:
    return OfferListResponse(offers=get_app_context().offers_for(quote_id))


@quote_router.post("/{quote_id}/offers", status_code=201, response_model=QuoteOffer)
async def submit_offer(quote_id: str, body: SubmitOfferRequest) -> QuoteOffer:
    return get_app_context().submit_offer(quote_id, **body.model_dump())


@quote_router.put("/offers/{offer_id}/accept", response_model=BookingIdResponse)
async def accept_offer(offer_id: str) -> BookingIdResponse:
    """Shipper accepts an offer; the booking starts out Accepted."""
    return BookingIdResponse(booking_id=get_app_context().accept_offer(offer_id))


@quote_router.put("/offers/{offer_id}/decline", response_model=QuoteOffer)
async def decline_offer(offer_id: str) -> QuoteOffer:
    return get_app_context().decline_offer(offer_id)


# ---------------------------------------------------------------------------
# Platform Router
# ---------------------------------------------------------------------------
platform_router = APIRouter(prefix="/platform", tags=["platform"])


@platform_router.get("/settings", response_model=PlatformSettings)
async def get_platform_settings() -> PlatformSettings:
    return get_app_context().state.platform


@platform_router.put("/settings", response_model=PlatformSettings)
async def update_platform_settings(body: UpdatePlatformSettingsRequest) -> PlatformSettings:
    changes = body.model_dump(exclude_none=True, exclude={"admin_name"})
    return get_app_context().update_platform_settings(admin_name=body.admin_name, **changes)


@platform_router.get("/audit-log", response_model=AuditLogResponse)
async def get_audit_log() -> AuditLogResponse:
    return AuditLogResponse(entries=get_app_context().state.audit_log)


@platform_router.get("/role", response_model=RoleResponse)
async def get_role() -> RoleResponse:
    return RoleResponse(role=get_app_context().state.role)


@platform_router.put("/role", response_model=RoleResponse)
async def switch_role(body: SwitchRoleRequest) -> RoleResponse:
    context = get_app_context()
    context.switch_role(body.role)
    return RoleResponse(role=context.state.role)


@platform_router.post("/carriers/{carrier_id}/verification", status_code=201, response_model=CarrierProfile)
async def request_carrier_verification(carrier_id: str, body: CarrierVerificationRequest) -> CarrierProfile:
    return get_app_context().request_verification(carrier_id, body.name)


@platform_router.put("/carriers/{carrier_id}/verify", response_model=CarrierProfile)
async def verify_carrier(carrier_id: str, body: VerifyCarrierRequest) -> CarrierProfile:
    return get_app_context().verify_carrier(carrier_id, admin_name=body.admin_name)
