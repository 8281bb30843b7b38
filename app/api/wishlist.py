"""
Wishlist endpoints - experiences saved by the current user.
"""

import uuid
from datetime import datetime
from typing import List

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from app.api.deps import CurrentUser, DbSession
from app.api.experiences import ExperienceResponse
from app.models.experience import Experience
from app.models.wishlist import WishlistItem

router = APIRouter()


class WishlistItemResponse(BaseModel):
    id: uuid.UUID
    experience_id: uuid.UUID
    created_at: datetime
    experience: ExperienceResponse

    model_config = ConfigDict(from_attributes=True)


@router.get("", response_model=List[WishlistItemResponse])
async def list_wishlist(db: DbSession, user: CurrentUser):
    result = await db.execute(
        select(WishlistItem)
        .where(WishlistItem.user_id == user.id)
        .options(selectinload(WishlistItem.experience))
        .order_by(WishlistItem.created_at.desc())
    )
    return [WishlistItemResponse.model_validate(w) for w in result.scalars().all()]


@router.post("/{experience_id}", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(experience_id: uuid.UUID, db: DbSession, user: CurrentUser):
    """Save an experience. Saving it twice is a no-op."""
    if not await db.get(Experience, experience_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found")

    existing = await db.execute(
        select(WishlistItem).where(
            WishlistItem.user_id == user.id,
            WishlistItem.experience_id == experience_id,
        )
    )
    if existing.scalar_one_or_none() is None:
        db.add(WishlistItem(user_id=user.id, experience_id=experience_id))
        await db.commit()

    return {"experience_id": str(experience_id), "in_wishlist": True}


@router.delete("/{experience_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_wishlist(experience_id: uuid.UUID, db: DbSession, user: CurrentUser):
    await db.execute(
        delete(WishlistItem).where(
            WishlistItem.user_id == user.id,
            WishlistItem.experience_id == experience_id,
        )
    )
    await db.commit()
