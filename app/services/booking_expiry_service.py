"""
Stale checkout expiry.

Runs as a periodic scheduled job (APScheduler).
Stripe normally reports abandoned sessions through checkout.session.expired;
this job catches the ones whose webhook never arrived, so unpaid bookings
stop holding slot capacity.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, select

from app.config import get_settings
from app.database import async_session_maker
from app.models.booking import Booking
from app.services.booking_service import cancel_booking

logger = logging.getLogger(__name__)


async def process_stale_checkouts() -> int:
    """
    Cancel pending, unpaid bookings whose checkout started more than
    `pending_checkout_ttl_minutes` ago. Returns the number cancelled.

    Creates its own DB session (not a request-scoped dependency).
    Bookings created without a checkout session are left alone.
    """
    settings = get_settings()
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=settings.pending_checkout_ttl_minutes)

    async with async_session_maker() as db:
        result = await db.execute(
            select(Booking).where(
                and_(
                    Booking.status == "pending",
                    Booking.payment_status != "paid",
                    Booking.checkout_session_id.isnot(None),
                    Booking.created_at < cutoff,
                )
            )
        )
        bookings = result.scalars().all()

        if not bookings:
            logger.debug("No stale checkouts to expire.")
            return 0

        cancelled = sum(1 for booking in bookings if cancel_booking(booking))
        await db.commit()

    logger.info("Expired %d stale checkout(s) older than %s", cancelled, cutoff.isoformat())
    return cancelled
