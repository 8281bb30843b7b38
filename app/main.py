"""
Wayfarer Experiences API - Main application entry point.

A marketplace for bookable experiences: travelers browse tours, pick a
package, date, start time and participants, then pay through Stripe;
businesses manage their tours and follow their bookings.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import get_settings
from app.api import (
    experiences,
    bookings,
    checkout,
    stripe_webhook,
    business,
    wishlist,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting %s...", settings.app_name)

    from app.services.booking_expiry_service import process_stale_checkouts

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        process_stale_checkouts,
        trigger=IntervalTrigger(minutes=15),
        id="stale_checkouts",
        name="Cancel unpaid checkouts past their TTL",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started, stale checkout expiry every 15 minutes")

    yield

    # Shutdown
    scheduler.shutdown(wait=False)
    logger.info("Shutting down %s...", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="""
    ## Wayfarer Experiences API

    - **Experiences**: catalog, packages, availability calendar, live quotes
    - **Booking widget**: server-side selection state (package, date, time, headcounts)
    - **Bookings & Checkout**: capacity-checked bookings paid through Stripe Checkout
    - **Business**: tour management and analytics

    ### Authentication
    Protected endpoints expect a Supabase access token as a Bearer token.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(experiences.router, prefix="/experiences", tags=["Experiences"])
app.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(stripe_webhook.router)  # No auth - Stripe-to-server notification
app.include_router(business.router, prefix="/business", tags=["Business"])
app.include_router(wishlist.router, prefix="/wishlist", tags=["Wishlist"])


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "stripe": "configured" if settings.stripe_secret_key else "stub",
    }
