"""
Stripe webhook: receives payment notifications.

This endpoint is called by Stripe's servers after a Checkout Session
changes state. No authentication required (uses the Stripe-Signature
HMAC instead).

Handled events:
- checkout.session.completed: the booking becomes confirmed / paid
- checkout.session.expired: a still-unpaid booking is cancelled, freeing its places
Every other event is acknowledged and ignored.
"""

import json
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.booking import Booking
from app.services.booking_service import cancel_booking, confirm_payment
from app.services.stripe_service import StripeService, StripeSignatureError, get_stripe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/stripe", tags=["Stripe Webhooks"])


async def _find_booking(db: AsyncSession, session: dict) -> Optional[Booking]:
    """Locate the booking of a Checkout Session (metadata first, then session id)."""
    booking_id = (session.get("metadata") or {}).get("booking_id")
    if booking_id:
        try:
            booking = await db.get(Booking, uuid.UUID(booking_id))
        except ValueError:
            booking = None
        if booking:
            return booking

    session_id = session.get("id")
    if not session_id:
        return None
    result = await db.execute(select(Booking).where(Booking.checkout_session_id == session_id))
    return result.scalar_one_or_none()


@router.post("")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    stripe: StripeService = Depends(get_stripe_service),
):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        stripe.verify_webhook_signature(payload, signature)
    except StripeSignatureError as e:
        logger.warning("[Stripe webhook] Rejected payload: %s", e)
        return JSONResponse({"error": f"Webhook Error: {e}"}, status_code=400)

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        return JSONResponse({"error": "Webhook Error: invalid JSON"}, status_code=400)
    if not isinstance(event, dict):
        return JSONResponse({"error": "Webhook Error: event must be a JSON object"}, status_code=400)

    event_type = event.get("type", "")
    data = event.get("data")
    session = data.get("object") if isinstance(data, dict) else None
    if not isinstance(session, dict):
        session = {}
    logger.info("[Stripe webhook] Received %s (%s)", event_type, event.get("id"))

    if event_type == "checkout.session.completed":
        booking = await _find_booking(db, session)
        if booking is None:
            logger.warning("[Stripe webhook] No booking for session %s", session.get("id"))
        elif booking.status == "cancelled":
            logger.warning(
                "[Stripe webhook] Payment received for cancelled booking %s (payment %s)",
                booking.id,
                session.get("payment_intent"),
            )
        elif session.get("payment_status", "paid") != "paid":
            logger.info("[Stripe webhook] Session %s completed but not paid yet", session.get("id"))
        elif confirm_payment(booking, session.get("payment_intent")):
            await db.commit()
            logger.info("[Stripe webhook] Booking %s confirmed and paid", booking.id)

    elif event_type == "checkout.session.expired":
        booking = await _find_booking(db, session)
        if booking and booking.payment_status != "paid" and cancel_booking(booking):
            await db.commit()
            logger.info("[Stripe webhook] Booking %s cancelled (checkout expired)", booking.id)

    # Acknowledge receipt to Stripe
    return {"received": True}
