"""
API routes package.
"""

from app.api import (
    experiences,
    bookings,
    checkout,
    stripe_webhook,
    business,
    wishlist,
)

__all__ = [
    "experiences",
    "bookings",
    "checkout",
    "stripe_webhook",
    "business",
    "wishlist",
]
