"""Process-wide application context.

One ``AppContext`` owns the application state (active role, listings, quote
requests and offers, carrier verification, platform settings and the admin
audit log), the booking store and the durable local store behind them. Every
change goes through one of its methods and is written back to the local store
immediately. Loading never fails: a missing or unreadable key falls back to
the built-in defaults.

All methods expect an active bookings domain context.
"""

import json
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bookings.booking.booking import Booking, UserRole
from bookings.booking.policy import BookingStatus
from bookings.driver.connectivity import ConnectivityMonitor
from bookings.driver.queue import OfflineActionQueue
from bookings.driver.workflow import DriverWorkflow
from bookings.geolocation.port import GeolocationPort
from bookings.lifecycle import Transition
from bookings.media.port import MediaStorePort
from bookings.settings import get_settings
from bookings.state.defaults import default_bookings, default_carriers, default_listings
from bookings.state.models import (
    AppState,
    AuditLogEntry,
    CarrierProfile,
    Listing,
    OfferStatus,
    PlatformSettings,
    QuoteOffer,
    QuoteRequest,
    QuoteStatus,
    VerificationStatus,
)
from bookings.storage.port import LocalStorePort
from bookings.store import BookingStore, price_with_markup

logger = structlog.get_logger(__name__)

BOOKINGS_KEY = "fc_bookings"
LISTINGS_KEY = "fc_listings"
QUOTES_KEY = "fc_quote_requests"
OFFERS_KEY = "fc_quote_offers"
CARRIERS_KEY = "fc_carriers"
PLATFORM_KEY = "fc_platform_settings"
AUDIT_KEY = "fc_audit_log"
ROLE_KEY = "fc_role"

DEFAULT_ADMIN = "Owner Admin"

_LISTINGS = TypeAdapter(list[Listing])
_QUOTES = TypeAdapter(list[QuoteRequest])
_OFFERS = TypeAdapter(list[QuoteOffer])
_CARRIERS = TypeAdapter(list[CarrierProfile])
_PLATFORM = TypeAdapter(PlatformSettings)
_AUDIT = TypeAdapter(list[AuditLogEntry])


class AppContext:
    def __init__(self, local_store: LocalStorePort, media: MediaStorePort | None = None):
        self.local_store = local_store
        self.state = AppState()
        self.bookings = BookingStore(media=media, on_change=self.save, platform=lambda: self.state.platform)

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def load(self) -> "AppContext":
        self.state = AppState(
            role=self._load_role(),
            listings=self._load_value(LISTINGS_KEY, _LISTINGS, default_listings),
            quote_requests=self._load_value(QUOTES_KEY, _QUOTES, list),
            offers=self._load_value(OFFERS_KEY, _OFFERS, list),
            carriers=self._load_value(CARRIERS_KEY, _CARRIERS, default_carriers),
            platform=self._load_value(PLATFORM_KEY, _PLATFORM, lambda: PlatformSettings.from_settings(get_settings())),
            audit_log=self._load_value(AUDIT_KEY, _AUDIT, list),
        )
        self._load_bookings()
        return self

    def save(self) -> None:
        values = {
            ROLE_KEY: self.state.role.value,
            LISTINGS_KEY: _LISTINGS.dump_json(self.state.listings).decode("utf-8"),
            QUOTES_KEY: _QUOTES.dump_json(self.state.quote_requests).decode("utf-8"),
            OFFERS_KEY: _OFFERS.dump_json(self.state.offers).decode("utf-8"),
            CARRIERS_KEY: _CARRIERS.dump_json(self.state.carriers).decode("utf-8"),
            PLATFORM_KEY: _PLATFORM.dump_json(self.state.platform).decode("utf-8"),
            AUDIT_KEY: _AUDIT.dump_json(self.state.audit_log).decode("utf-8"),
            BOOKINGS_KEY: json.dumps(self.bookings.all()),
        }
        for key, value in values.items():
            try:
                self.local_store.set(key, value)
            except OSError as exc:
                logger.warning("Could not persist application state", key=key, error=str(exc))

    def _read(self, key: str) -> str | None:
        try:
            return self.local_store.get(key)
        except OSError as exc:
            logger.warning("Could not read application state", key=key, error=str(exc))
            return None

    def _load_role(self) -> UserRole:
        raw = self._read(ROLE_KEY)
        if raw is None:
            return UserRole.ADMIN
        try:
            return UserRole(raw)
        except ValueError:
            logger.warning("Unknown persisted role, using default", key=ROLE_KEY, value=raw)
            return UserRole.ADMIN

    def _load_value(self, key, adapter, default):
        raw = self._read(key)
        if raw is None:
            return default()
        try:
            return adapter.validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("Corrupt persisted state, using defaults", key=key, error=str(exc))
            return default()

    def _load_bookings(self) -> None:
        raw = self._read(BOOKINGS_KEY)
        records = None
        if raw is not None:
            try:
                records = [Booking.from_snapshot(s) for s in json.loads(raw)]
            except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as exc:
                logger.warning("Corrupt persisted bookings, using defaults", key=BOOKINGS_KEY, error=str(exc))
        if records is None:
            records = [Booking.from_snapshot(s) for s in default_bookings()]

        repo = current_domain.repository_for(Booking)
        for booking in records:
            try:
                repo.get(booking.id)
            except ObjectNotFoundError:
                repo.add(booking)

    # -------------------------------------------------------------------
    # Role
    # -------------------------------------------------------------------
    def switch_role(self, role: UserRole) -> None:
        self.state.role = role
        self.save()

    # -------------------------------------------------------------------
    # Platform settings and audit trail
    # -------------------------------------------------------------------
    def update_platform_settings(self, admin_name: str = DEFAULT_ADMIN, **changes) -> PlatformSettings:
        """Change platform rules and record who changed what in the audit log.

        New bookings and listings read the markup and delivery-PIN rule from
        here from then on; existing records keep their prices and PINs.
        """
        current = self.state.platform
        try:
            updated = PlatformSettings.model_validate({**current.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError(
                {str(error["loc"][0]) if error["loc"] else "settings": [error["msg"]] for error in exc.errors()}
            ) from exc

        changed = [
            f"{field}: {getattr(current, field)} -> {getattr(updated, field)}"
            for field in PlatformSettings.model_fields
            if getattr(current, field) != getattr(updated, field)
        ]
        self.state.platform = updated
        if changed:
            self._audit(admin_name, "Updated Platform Settings", "Settings", "global", "; ".join(changed))
        logger.info("Platform settings updated", admin_name=admin_name, changed=len(changed))
        self.save()
        return updated

    def _audit(self, admin_name: str, action: str, target_type: str, target_id: str, details: str = "") -> None:
        self.state.audit_log.insert(
            0,
            AuditLogEntry(
                id=f"log-{uuid4().hex[:8]}",
                admin_name=admin_name,
                action=action,
                target_type=target_type,
                target_id=target_id,
                details=details,
            ),
        )

    # -------------------------------------------------------------------
    # Carrier verification
    # -------------------------------------------------------------------
    def carrier_verification(self, carrier_id: str) -> VerificationStatus:
        profile = self._carrier(carrier_id)
        return profile.verification if profile else VerificationStatus.UNVERIFIED

    def request_verification(self, carrier_id: str, name: str = "") -> CarrierProfile:
        """A carrier submits its documents; verified carriers stay verified."""
        profile = self._carrier(carrier_id)
        if profile is None:
            profile = CarrierProfile(id=carrier_id, name=name)
            self.state.carriers.append(profile)
        if profile.verification != VerificationStatus.VERIFIED:
            profile.verification = VerificationStatus.PENDING
        self.save()
        return profile

    def verify_carrier(self, carrier_id: str, admin_name: str = DEFAULT_ADMIN) -> CarrierProfile:
        profile = self._carrier(carrier_id)
        if profile is None:
            raise ValidationError({"carrier_id": [f"Unknown carrier {carrier_id}"]})
        profile.verification = VerificationStatus.VERIFIED
        self._audit(admin_name, "Verified Carrier", "Carrier", carrier_id, profile.name)
        logger.info("Carrier verified", carrier_id=carrier_id, admin_name=admin_name)
        self.save()
        return profile

    def _carrier(self, carrier_id: str) -> CarrierProfile | None:
        return next((c for c in self.state.carriers if c.id == carrier_id), None)

    def _require_verified(self, carrier_id: str) -> None:
        if self.carrier_verification(carrier_id) != VerificationStatus.VERIFIED:
            raise ValidationError({"carrier_id": [f"Carrier {carrier_id} is not verified"]})

    def _require_job_posting(self) -> None:
        if not self.state.platform.job_posting_enabled:
            raise ValidationError({"settings": ["Job posting is currently disabled"]})

    # -------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------
    def post_listing(
        self,
        carrier_id: str,
        origin: str,
        destination: str,
        date: str,
        base_rate: float,
        carrier_name: str = "",
        **details,
    ) -> Listing:
        """Publish an empty leg; the shipper price carries the platform markup.

        Only verified carriers may post, and only while job posting is enabled.
        """
        self._require_job_posting()
        self._require_verified(carrier_id)
        listing = Listing(
            id=f"l-{uuid4().hex[:8]}",
            carrier_id=carrier_id,
            carrier_name=carrier_name,
            origin=origin,
            destination=destination,
            date=date,
            base_rate=base_rate,
            price=price_with_markup(base_rate, self.state.platform.markup_percent),
            **details,
        )
        self.state.listings.insert(0, listing)
        logger.info("Empty leg posted", listing_id=listing.id, origin=origin, destination=destination)
        self.save()
        return listing

    def remove_listing(self, listing_id: str) -> None:
        self.state.listings = [listing for listing in self.state.listings if listing.id != listing_id]
        self.save()

    def book_listing(self, listing_id: str, shipper_id: str, shipper_name: str = "") -> str:
        """Book an empty leg; returns the new (Pending) booking id."""
        listing = self._listing(listing_id)
        if listing.is_booked:
            raise ValidationError({"listing_id": [f"Listing {listing_id} is already booked"]})

        booking_id = self.bookings.create(
            shipper_id=shipper_id,
            shipper_name=shipper_name,
            carrier_id=listing.carrier_id,
            carrier_name=listing.carrier_name,
            origin=listing.origin,
            destination=listing.destination,
            pickup_date=listing.date,
            base_rate=listing.base_rate,
            price=listing.price,
            listing_id=listing.id,
        )
        listing.is_booked = True
        self.save()
        return booking_id

    def _listing(self, listing_id: str) -> Listing:
        for listing in self.state.listings:
            if listing.id == listing_id:
                return listing
        raise ValidationError({"listing_id": [f"Unknown listing {listing_id}"]})

    # -------------------------------------------------------------------
    # Quotes and offers
    # -------------------------------------------------------------------
    def request_quote(
        self,
        shipper_id: str,
        origin: str,
        destination: str,
        date: str,
        shipper_name: str = "",
        **details,
    ) -> QuoteRequest:
        self._require_job_posting()
        quote = QuoteRequest(
            id=f"q-{uuid4().hex[:8]}",
            shipper_id=shipper_id,
            shipper_name=shipper_name,
            origin=origin,
            destination=destination,
            date=date,
            **details,
        )
        self.state.quote_requests.insert(0, quote)
        self.save()
        return quote

    def cancel_quote(self, quote_id: str) -> None:
        """Withdraw a request together with the offers made on it."""
        self.state.quote_requests = [q for q in self.state.quote_requests if q.id != quote_id]
        self.state.offers = [o for o in self.state.offers if o.request_id != quote_id]
        self.save()

    def offers_for(self, quote_id: str) -> list[QuoteOffer]:
        return [o for o in self.state.offers if o.request_id == quote_id]

    def submit_offer(
        self,
        quote_id: str,
        carrier_id: str,
        amount: float,
        carrier_name: str = "",
        transit_time: str = "",
        message: str = "",
    ) -> QuoteOffer:
        """A verified carrier prices an open quote request."""
        self._require_verified(carrier_id)
        quote = self._open_quote(quote_id)
        offer = QuoteOffer(
            id=f"o-{uuid4().hex[:8]}",
            request_id=quote.id,
            carrier_id=carrier_id,
            carrier_name=carrier_name,
            amount=amount,
            transit_time=transit_time,
            message=message,
        )
        self.state.offers.append(offer)
        logger.info("Quote offer submitted", quote_id=quote.id, offer_id=offer.id, carrier_id=carrier_id)
        self.save()
        return offer

    def accept_offer(self, offer_id: str) -> str:
        """Accept a carrier's offer; the booking is created already Accepted.

        The other offers on the same request are declined and the request is
        marked booked.
        """
        offer = self._offer(offer_id)
        if offer.status != OfferStatus.PENDING:
            raise ValidationError({"offer_id": [f"Offer {offer_id} is {offer.status.value}"]})
        quote = self._open_quote(offer.request_id)

        booking_id = self.bookings.create(
            shipper_id=quote.shipper_id,
            shipper_name=quote.shipper_name,
            carrier_id=offer.carrier_id,
            carrier_name=offer.carrier_name,
            origin=quote.origin,
            destination=quote.destination,
            pickup_date=quote.date,
            base_rate=offer.amount,
            quote_request_id=quote.id,
        )
        self.bookings.apply(booking_id, Transition.status_update(BookingStatus.ACCEPTED))

        for other in self.offers_for(quote.id):
            other.status = OfferStatus.ACCEPTED if other.id == offer.id else OfferStatus.DECLINED
        quote.status = QuoteStatus.BOOKED
        logger.info("Quote offer accepted", quote_id=quote.id, offer_id=offer.id, booking_id=booking_id)
        self.save()
        return booking_id

    def decline_offer(self, offer_id: str) -> QuoteOffer:
        offer = self._offer(offer_id)
        if offer.status != OfferStatus.PENDING:
            raise ValidationError({"offer_id": [f"Offer {offer_id} is {offer.status.value}"]})
        offer.status = OfferStatus.DECLINED
        self.save()
        return offer

    def _open_quote(self, quote_id: str) -> QuoteRequest:
        quote = next((q for q in self.state.quote_requests if q.id == quote_id), None)
        if quote is None:
            raise ValidationError({"quote_id": [f"Unknown quote request {quote_id}"]})
        if quote.status != QuoteStatus.OPEN:
            raise ValidationError({"quote_id": [f"Quote request {quote_id} is {quote.status.value}"]})
        return quote

    def _offer(self, offer_id: str) -> QuoteOffer:
        offer = next((o for o in self.state.offers if o.id == offer_id), None)
        if offer is None:
            raise ValidationError({"offer_id": [f"Unknown offer {offer_id}"]})
        return offer

    # -------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------
    def driver(
        self,
        carrier_id: str,
        connectivity: ConnectivityMonitor | None = None,
        geolocation: GeolocationPort | None = None,
    ) -> DriverWorkflow:
        """A driver workflow sharing this context's store and durable queue."""
        workflow = DriverWorkflow(
            store=self.bookings,
            carrier_id=carrier_id,
            queue=OfflineActionQueue(self.local_store),
            connectivity=connectivity or ConnectivityMonitor(),
            geolocation=geolocation,
        )
        workflow.start()
        return workflow
