"""Bookings domain API package."""

from bookings.api.routes import booking_router, listing_router, notification_router, platform_router, quote_router

__all__ = ["booking_router", "listing_router", "notification_router", "platform_router", "quote_router"]
