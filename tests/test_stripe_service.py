from decimal import Decimal

import httpx
import pytest

from app.services.stripe_service import StripeError, StripeService, StripeSignatureError, to_minor_units

SECRET = "whsec_test_secret"
NOW = 1_760_000_000
PAYLOAD = b'{"id": "evt_1", "type": "checkout.session.completed"}'


@pytest.fixture
def stripe():
    return StripeService(secret_key="", webhook_secret=SECRET, tolerance_seconds=300, allow_unsigned=False)


def header(service, payload=PAYLOAD, timestamp=NOW):
    return f"t={timestamp},v1={service.compute_signature(payload, str(timestamp))}"


def test_valid_signature(stripe):
    stripe.verify_webhook_signature(PAYLOAD, header(stripe), now=NOW + 10)


def test_any_matching_v1_signature_is_accepted(stripe):
    signature = f"t={NOW},v1=deadbeef,v1={stripe.compute_signature(PAYLOAD, str(NOW))}"
    stripe.verify_webhook_signature(PAYLOAD, signature, now=NOW)


@pytest.mark.parametrize(
    "signature",
    [
        None,
        "",
        "garbage",
        f"t={NOW}",
        f"t=abc,v1=00",
        f"t={NOW},v1=00ff",
    ],
)
def test_rejected_signatures(stripe, signature):
    with pytest.raises(StripeSignatureError):
        stripe.verify_webhook_signature(PAYLOAD, signature, now=NOW)


def test_tampered_payload_is_rejected(stripe):
    with pytest.raises(StripeSignatureError):
        stripe.verify_webhook_signature(PAYLOAD + b" ", header(stripe), now=NOW)


def test_stale_timestamp_is_rejected(stripe):
    with pytest.raises(StripeSignatureError):
        stripe.verify_webhook_signature(PAYLOAD, header(stripe), now=NOW + 301)


def test_missing_secret():
    strict = StripeService(webhook_secret="", allow_unsigned=False)
    with pytest.raises(StripeSignatureError):
        strict.verify_webhook_signature(PAYLOAD, None)

    lenient = StripeService(webhook_secret="", allow_unsigned=True)
    lenient.verify_webhook_signature(PAYLOAD, None)


def test_minor_units():
    assert to_minor_units(Decimal("130.00")) == 13000
    assert to_minor_units(Decimal("19.995")) == 2000


async def test_checkout_is_stubbed_without_secret_key(stripe):
    session = await stripe.create_checkout_session(
        amount=Decimal("130.00"),
        currency="usd",
        product_name="Night Food Tour",
        description="3 participant(s)",
        success_url="http://localhost:3000/success",
        cancel_url="http://localhost:3000/cancel",
        metadata={"booking_id": "abc"},
    )

    assert not stripe.is_configured
    assert session["status"] == "stub"
    assert session["id"].startswith("stub-abc-")
    assert session["url"] is None


async def create_session(service):
    return await service.create_checkout_session(
        amount=Decimal("130.00"),
        currency="usd",
        product_name="Night Food Tour",
        description="3 participant(s)",
        success_url="http://localhost:3000/success",
        cancel_url="http://localhost:3000/cancel",
        metadata={"booking_id": "abc"},
        customer_email="traveler@example.com",
    )


@pytest.fixture
def live_stripe():
    return StripeService(secret_key="sk_test_123", webhook_secret=SECRET, api_base="https://stripe.test/v1")


def replace_post(monkeypatch, handler):
    async def post(self, url, **kwargs):
        return handler(url, **kwargs)

    monkeypatch.setattr(httpx.AsyncClient, "post", post)


async def test_checkout_session_created(live_stripe, monkeypatch):
    calls = []

    def handler(url, data, auth):
        calls.append((url, data, auth))
        return httpx.Response(200, json={"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1", "status": "open"})

    replace_post(monkeypatch, handler)

    session = await create_session(live_stripe)

    assert session == {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1", "status": "open"}
    url, data, auth = calls[0]
    assert url == "https://stripe.test/v1/checkout/sessions"
    assert auth == ("sk_test_123", "")
    assert data["line_items[0][price_data][unit_amount]"] == "13000"
    assert data["metadata[booking_id]"] == "abc"
    assert data["customer_email"] == "traveler@example.com"


async def test_network_failure_raises_stripe_error(live_stripe, monkeypatch):
    def handler(url, **kwargs):
        raise httpx.ConnectError("connection refused")

    replace_post(monkeypatch, handler)

    with pytest.raises(StripeError, match="Could not reach Stripe"):
        await create_session(live_stripe)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(402, json={"error": {"message": "card declined"}}),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"url": "https://checkout.stripe.test/x"}),
        httpx.Response(200, json=[]),
    ],
)
async def test_rejected_or_malformed_response_raises_stripe_error(live_stripe, monkeypatch, response):
    replace_post(monkeypatch, lambda url, **kwargs: response)

    with pytest.raises(StripeError):
        await create_session(live_stripe)
