"""
Profile model - application-side data for a Supabase auth user.
The id is the Supabase auth user UUID (the `sub` claim of its JWT).
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, Enum as SQLEnum, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    """A traveler or business account."""

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    role: Mapped[str] = mapped_column(
        SQLEnum("traveler", "business", name="profile_role_enum"),
        default="traveler",
    )
    # Only meaningful for business accounts
    business_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role}')>"

    @property
    def name(self) -> str:
        return self.full_name or self.email

    @property
    def is_business(self) -> bool:
        return self.role == "business"
