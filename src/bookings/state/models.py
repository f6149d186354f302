"""Application-state records that live outside the booking aggregate."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from bookings.booking.booking import UserRole
from bookings.settings import Settings, get_settings


def _now() -> str:
    return datetime.now(UTC).isoformat()


class QuoteStatus(Enum):
    OPEN = "Open"
    BOOKED = "Booked"
    CLOSED = "Closed"


class OfferStatus(Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"


class VerificationStatus(Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"


class PlatformSettings(BaseModel):
    """Operator-controlled platform rules; starts from the process settings."""

    model_config = ConfigDict(extra="forbid")

    markup_percent: float = Field(10.0, ge=0, le=100)
    delivery_pin_required: bool = True
    auto_release_hours: int = Field(24, ge=0)
    job_posting_enabled: bool = True
    registration_open: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlatformSettings":
        return cls(markup_percent=settings.markup_percent, delivery_pin_required=settings.delivery_pin_required)


class AuditLogEntry(BaseModel):
    """One administrative action, newest entries first in the log."""

    id: str
    admin_name: str
    action: str
    target_type: str
    target_id: str
    details: str = ""
    timestamp: str = Field(default_factory=_now)


class CarrierProfile(BaseModel):
    id: str
    name: str = ""
    verification: VerificationStatus = VerificationStatus.UNVERIFIED


class Listing(BaseModel):
    """An empty leg a carrier offers for booking."""

    id: str
    carrier_id: str
    carrier_name: str = ""
    origin: str = Field(..., max_length=200)
    destination: str = Field(..., max_length=200)
    date: str = Field(..., description="Departure date, ISO format")
    vehicle_type: str = ""
    service_type: str = "Door-to-Door"
    available_tons: float = Field(0, ge=0)
    available_pallets: int = Field(0, ge=0)
    base_rate: float = Field(..., ge=0)
    price: float = Field(..., ge=0)
    is_booked: bool = False


class QuoteRequest(BaseModel):
    """A shipper's request for carriers to quote on a load."""

    id: str
    shipper_id: str
    shipper_name: str = ""
    origin: str = Field(..., max_length=200)
    destination: str = Field(..., max_length=200)
    vehicle_type: str = ""
    cargo_type: str = ""
    weight: float = Field(0, ge=0)
    date: str
    status: QuoteStatus = QuoteStatus.OPEN
    created_at: str = Field(default_factory=_now)


class QuoteOffer(BaseModel):
    """A carrier's priced answer to a quote request."""

    id: str
    request_id: str
    carrier_id: str
    carrier_name: str = ""
    amount: float = Field(..., ge=0)
    transit_time: str = ""
    message: str = ""
    status: OfferStatus = OfferStatus.PENDING
    created_at: str = Field(default_factory=_now)


class AppState(BaseModel):
    role: UserRole = UserRole.ADMIN
    listings: list[Listing] = Field(default_factory=list)
    quote_requests: list[QuoteRequest] = Field(default_factory=list)
    offers: list[QuoteOffer] = Field(default_factory=list)
    carriers: list[CarrierProfile] = Field(default_factory=list)
    platform: PlatformSettings = Field(default_factory=lambda: PlatformSettings.from_settings(get_settings()))
    audit_log: list[AuditLogEntry] = Field(default_factory=list)
