"""
WishlistItem model - an experience saved by a user.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import UUIDBase

if TYPE_CHECKING:
    from app.models.experience import Experience


class WishlistItem(UUIDBase):
    __tablename__ = "wishlists"
    __table_args__ = (
        UniqueConstraint("user_id", "experience_id", name="uq_wishlists_user_experience"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
    )

    experience: Mapped["Experience"] = relationship("Experience")

    def __repr__(self) -> str:
        return f"<WishlistItem(user={self.user_id}, experience={self.experience_id})>"
