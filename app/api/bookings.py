"""
Booking endpoints for travelers.
Handles creation, listing, detail and cancellation of the current user's bookings.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.api.deps import CurrentUser, DbSession
from app.config import get_settings
from app.models.booking import Booking
from app.services.booking_service import BookingError, cancel_booking, create_booking

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================================
# Schemas
# ============================================================================

class BookingCreate(BaseModel):
    experience_id: uuid.UUID
    package_id: str
    booking_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    headcounts: Dict[str, int]
    contact_email: EmailStr
    contact_phone: Optional[str] = None
    special_requests: Optional[str] = None
    language: Optional[str] = None


class BookingResponse(BaseModel):
    id: uuid.UUID
    experience_id: Optional[uuid.UUID] = None
    experience_title: Optional[str] = None
    package_option_id: Optional[uuid.UUID] = None
    package_name: Optional[str] = None
    booking_date: date
    booking_time: Optional[str] = None
    participants: int
    headcounts: Optional[dict] = None
    language: Optional[str] = None
    total_price: Decimal
    currency: str
    status: str
    payment_status: str
    contact_email: str
    contact_phone: Optional[str] = None
    special_requests: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Helpers
# ============================================================================

def booking_to_response(booking: Booking) -> BookingResponse:
    """Convert a Booking (with its experience loaded) to BookingResponse."""
    response = BookingResponse.model_validate(booking)
    response.experience_title = booking.experience.title if booking.experience else None
    return response


async def get_user_booking_or_404(db, booking_id: uuid.UUID, user_id: uuid.UUID) -> Booking:
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id, Booking.user_id == user_id)
        .options(selectinload(Booking.experience))
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def create_booking_from_request(db, user, data: BookingCreate) -> Booking:
    """Shared by POST /bookings and POST /checkout. Translates domain errors to HTTP."""
    settings = get_settings()
    try:
        return await create_booking(
            db,
            user_id=user.id,
            experience_id=data.experience_id,
            package_id=data.package_id,
            booking_date=data.booking_date,
            start_time=data.start_time,
            headcounts=data.headcounts,
            contact_email=data.contact_email,
            contact_phone=data.contact_phone,
            special_requests=data.special_requests,
            language=data.language,
            currency=settings.stripe_currency,
            default_max_people=settings.default_max_participants,
            horizon_days=settings.availability_horizon_days,
        )
    except BookingError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)


# ============================================================================
# Endpoints
# ============================================================================

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    data: BookingCreate,
    db: DbSession,
    user: CurrentUser,
):
    """Create a pending booking. The total is computed server-side."""
    booking = await create_booking_from_request(db, user, data)
    await db.commit()
    booking = await get_user_booking_or_404(db, booking.id, user.id)
    return booking_to_response(booking)


@router.get("", response_model=List[BookingResponse])
async def list_my_bookings(db: DbSession, user: CurrentUser):
    """Bookings of the current user, latest booking date first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user.id)
        .options(selectinload(Booking.experience))
        .order_by(Booking.booking_date.desc(), Booking.created_at.desc())
    )
    return [booking_to_response(b) for b in result.scalars().all()]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: uuid.UUID, db: DbSession, user: CurrentUser):
    booking = await get_user_booking_or_404(db, booking_id, user.id)
    return booking_to_response(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_endpoint(booking_id: uuid.UUID, db: DbSession, user: CurrentUser):
    """Cancel a booking. Cancelling an already-cancelled booking is a no-op."""
    booking = await get_user_booking_or_404(db, booking_id, user.id)

    if cancel_booking(booking):
        await db.commit()
        logger.info("[Booking] Booking %s cancelled by user %s", booking.id, user.id)
        booking = await get_user_booking_or_404(db, booking_id, user.id)

    return booking_to_response(booking)
