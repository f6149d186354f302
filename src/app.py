"""FreightConnect FastAPI application.

Web server that processes booking commands synchronously via HTTP. Every
domain request runs inside the bookings domain context and goes through the
process-wide application context, so changes are persisted to the local store.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from bookings/domain.toml.
from bookings.domain import bookings  # noqa: E402
from bookings.state import get_app_context
from bookings.utils.logging import bind_context, clear_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

configure_logging()
bookings.init()

# Restore persisted state (or the built-in defaults) before serving requests
with bookings.domain_context():
    get_app_context()

_DOMAIN_PREFIXES = ("/bookings", "/notifications", "/listings", "/quotes", "/platform")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="FreightConnect API",
    description="Freight booking lifecycle — bookings, proof of delivery and disputes",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the bookings domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        bind_context(method=request.method, path=request.url.path)
        try:
            with bookings.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from bookings.api import (  # noqa: E402
    booking_router,
    listing_router,
    notification_router,
    platform_router,
    quote_router,
)

app.include_router(booking_router)
app.include_router(notification_router)
app.include_router(listing_router)
app.include_router(quote_router)
app.include_router(platform_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": bookings.name}})
