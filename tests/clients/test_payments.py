"""
Tests for Stripe webhook signature verification.

Signatures are generated with the same scheme Stripe uses so the real SDK
verification runs.
"""

import hashlib
import hmac
import json
import time

import pytest
import stripe

from renewal_api.clients.payments import construct_webhook_event, get_stripe_api_key
from renewal_api.config import ConfigurationError, settings

SECRET = "whsec_test_secret"


def sign(payload: bytes, secret: str = SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class TestConstructWebhookEvent:

    def test_valid_signature_returns_event(self):
        payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed"}).encode()

        event = construct_webhook_event(payload, sign(payload), SECRET)

        assert event["type"] == "checkout.session.completed"

    def test_tampered_payload_is_rejected(self):
        payload = json.dumps({"id": "evt_1", "amount": 100}).encode()
        header = sign(payload)
        tampered = json.dumps({"id": "evt_1", "amount": 1}).encode()

        with pytest.raises(stripe.SignatureVerificationError):
            construct_webhook_event(tampered, header, SECRET)

    def test_wrong_secret_is_rejected(self):
        payload = b'{"id": "evt_1"}'

        with pytest.raises(stripe.SignatureVerificationError):
            construct_webhook_event(payload, sign(payload, secret="whsec_other"), SECRET)

    def test_missing_header_is_rejected(self):
        with pytest.raises(stripe.SignatureVerificationError):
            construct_webhook_event(b'{"id": "evt_1"}', None, SECRET)


def test_missing_secret_key_raises(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")

    with pytest.raises(ConfigurationError):
        get_stripe_api_key()
