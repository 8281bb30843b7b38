"""
Stripe payment service.

Creates Checkout Sessions through the Stripe REST API and verifies webhook
signatures. While STRIPE_SECRET_KEY is empty, checkout returns a stub
session so the booking flow can be exercised without a Stripe account.

Configuration (in .env):
    STRIPE_SECRET_KEY       sk_test_... / sk_live_...
    STRIPE_WEBHOOK_SECRET   whsec_... (signing secret of the webhook endpoint)
    STRIPE_CURRENCY         ISO 4217 lowercase code (default "usd")
    PUBLIC_BASE_URL         front-end origin used for success/cancel redirects
"""

import hashlib
import hmac
import logging
import time
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)


class StripeError(Exception):
    """Raised when the Stripe API rejects a request."""
    pass


class StripeSignatureError(Exception):
    """Raised when a webhook payload does not carry a valid signature."""
    pass


def to_minor_units(amount: Decimal) -> int:
    """Stripe expects integer cents."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeService:
    """Stripe Checkout + webhook signature verification."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        api_base: Optional[str] = None,
        tolerance_seconds: Optional[int] = None,
        allow_unsigned: Optional[bool] = None,
    ):
        settings = get_settings()
        self.secret_key = settings.stripe_secret_key if secret_key is None else secret_key
        self.webhook_secret = settings.stripe_webhook_secret if webhook_secret is None else webhook_secret
        self.api_base = api_base or settings.stripe_api_base
        self.tolerance_seconds = (
            settings.stripe_webhook_tolerance_seconds if tolerance_seconds is None else tolerance_seconds
        )
        # Unsigned webhooks are only accepted in debug mode without a secret
        self.allow_unsigned = settings.debug if allow_unsigned is None else allow_unsigned

    @property
    def is_configured(self) -> bool:
        """Check if Stripe credentials are set."""
        return bool(self.secret_key)

    async def create_checkout_session(
        self,
        amount: Decimal,
        currency: str,
        product_name: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        customer_email: Optional[str] = None,
    ) -> dict:
        """
        Create a Checkout Session for a single line item of `amount`.

        Returns:
            dict with id, url and status ("open" or "stub")
        """
        if not self.is_configured:
            reference = metadata.get("booking_id", "unknown")
            return {
                "id": f"stub-{reference}-{datetime.now().strftime('%Y%m%d%H%M%S')}",
                "url": None,
                "status": "stub",
                "message": "Stripe is not configured: online payment unavailable",
            }

        form = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": currency,
            "line_items[0][price_data][unit_amount]": str(to_minor_units(amount)),
            "line_items[0][price_data][product_data][name]": product_name,
            "line_items[0][price_data][product_data][description]": description,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            form["customer_email"] = customer_email
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = value

        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.post(
                    f"{self.api_base}/checkout/sessions",
                    data=form,
                    auth=(self.secret_key, ""),
                )
        except httpx.HTTPError as e:
            logger.error("[Stripe] Checkout session request failed: %s", e)
            raise StripeError(f"Could not reach Stripe: {e}") from e

        if response.status_code >= 400:
            logger.error("[Stripe] Checkout session creation failed (%d): %s", response.status_code, response.text)
            raise StripeError(f"Stripe returned HTTP {response.status_code}")

        try:
            session = response.json()
            return {"id": session["id"], "url": session.get("url"), "status": session.get("status", "open")}
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("[Stripe] Unexpected checkout session payload: %s", response.text)
            raise StripeError("Unexpected response from Stripe") from e

    def verify_webhook_signature(
        self,
        payload: bytes,
        signature_header: Optional[str],
        now: Optional[int] = None,
    ) -> None:
        """
        Verify a `Stripe-Signature` header against the raw request body.

        The header looks like "t=1700000000,v1=<hex>,v1=<hex>"; the signed
        content is "{t}.{payload}" under HMAC-SHA256 with the endpoint secret.

        Raises:
            StripeSignatureError if the signature is missing, stale or wrong
        """
        if not self.webhook_secret:
            if self.allow_unsigned:
                logger.warning("[Stripe] Webhook secret not set: accepting unsigned payload")
                return
            raise StripeSignatureError("Webhook secret is not configured")

        if not signature_header:
            raise StripeSignatureError("Missing Stripe-Signature header")

        timestamp = None
        signatures = []
        for part in signature_header.split(","):
            key, _, value = part.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)

        if not timestamp or not signatures:
            raise StripeSignatureError("Malformed Stripe-Signature header")

        try:
            signed_at = int(timestamp)
        except ValueError:
            raise StripeSignatureError("Malformed signature timestamp")

        now = int(time.time()) if now is None else now
        if self.tolerance_seconds and abs(now - signed_at) > self.tolerance_seconds:
            raise StripeSignatureError("Signature timestamp outside tolerance")

        expected = self.compute_signature(payload, timestamp)
        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            raise StripeSignatureError("No matching signature")

    def compute_signature(self, payload: bytes, timestamp: str) -> str:
        signed = f"{timestamp}.".encode("utf-8") + payload
        return hmac.new(self.webhook_secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def get_stripe_service() -> StripeService:
    """FastAPI dependency (overridable in tests)."""
    return StripeService()
