"""
Checkout endpoint: creates a pending booking and a Stripe Checkout Session.

The booking is committed first (so the slot lock is released before the
Stripe round-trip), then the session id is stored on it. Payment
confirmation arrives through the Stripe webhook.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.api.bookings import BookingCreate, create_booking_from_request
from app.api.deps import CurrentUser, DbSession
from app.config import get_settings
from app.models.experience import Experience
from app.services.booking_service import cancel_booking
from app.services.stripe_service import StripeError, StripeService, get_stripe_service

logger = logging.getLogger(__name__)
router = APIRouter()


class CheckoutResponse(BaseModel):
    booking_id: uuid.UUID
    session_id: str
    checkout_url: Optional[str] = None
    status: str
    total_price: Decimal
    message: Optional[str] = None


@router.post("", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_checkout(
    data: BookingCreate,
    db: DbSession,
    user: CurrentUser,
    stripe: StripeService = Depends(get_stripe_service),
):
    settings = get_settings()

    booking = await create_booking_from_request(db, user, data)
    await db.commit()

    experience = await db.get(Experience, data.experience_id)
    title = experience.title if experience else "Experience"

    try:
        session = await stripe.create_checkout_session(
            amount=booking.total_price,
            currency=booking.currency,
            product_name=title,
            description=f"{booking.participants} participant(s) on {booking.booking_date.isoformat()} at {booking.booking_time}",
            success_url=f"{settings.public_base_url}/bookings/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.public_base_url}/experiences/{data.experience_id}?payment_cancelled=true",
            metadata={
                "booking_id": str(booking.id),
                "user_id": str(user.id),
                "experience_id": str(data.experience_id),
            },
            customer_email=booking.contact_email,
        )
    except (StripeError, httpx.HTTPError) as e:
        # Release the held places
        logger.warning("[Checkout] Payment session failed for booking %s: %s", booking.id, e)
        cancel_booking(booking)
        await db.commit()
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    booking.checkout_session_id = session["id"]
    await db.commit()

    logger.info("[Checkout] Session %s created for booking %s (%s)", session["id"], booking.id, session["status"])

    return CheckoutResponse(
        booking_id=booking.id,
        session_id=session["id"],
        checkout_url=session.get("url"),
        status=session["status"],
        total_price=booking.total_price,
        message=session.get("message"),
    )
