"""
SQLAlchemy models for the experiences marketplace.
"""

from app.models.base import Base, TimestampMixin, UUIDBase
from app.models.profile import Profile
from app.models.experience import Experience, Review
from app.models.package_option import PackageOption, PackageStartEndTime, PackageItineraryStep
from app.models.booking import Booking
from app.models.wishlist import WishlistItem

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDBase",
    "Profile",
    "Experience",
    "Review",
    "PackageOption",
    "PackageStartEndTime",
    "PackageItineraryStep",
    "Booking",
    "WishlistItem",
]
