"""
Stripe helpers.

Thin wrappers over the official SDK so services never touch global
``stripe.api_key`` state: every call passes the key explicitly. SDK calls are
blocking; services run them through ``run_in_threadpool``.
"""

import json
from typing import Any, Dict, Optional

import stripe

from renewal_api.config import ConfigurationError, settings


def get_stripe_api_key() -> str:
    if not settings.STRIPE_SECRET_KEY:
        raise ConfigurationError("Stripe configuration missing")
    return settings.STRIPE_SECRET_KEY


def create_customer(
    *,
    api_key: str,
    email: Optional[str],
    name: str,
    address: Optional[Dict[str, str]] = None,
    metadata: Optional[Dict[str, str]] = None,
) -> stripe.Customer:
    params: Dict[str, Any] = {"name": name}
    if email:
        params["email"] = email
    if address:
        params["address"] = address
    if metadata:
        params["metadata"] = metadata
    return stripe.Customer.create(api_key=api_key, **params)


def create_checkout_session(*, api_key: str, **params: Any) -> stripe.checkout.Session:
    return stripe.checkout.Session.create(api_key=api_key, **params)


def retrieve_payment_intent(*, api_key: str, payment_intent_id: str) -> stripe.PaymentIntent:
    return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=api_key)


def construct_webhook_event(payload: bytes, signature: Optional[str], secret: str) -> Dict[str, Any]:
    """
    Verify a webhook signature over the raw body and decode the event.

    Returns the event as plain JSON data.

    Raises:
        stripe.SignatureVerificationError: Missing, malformed or mismatched signature
        ValueError: Body is not valid JSON
    """
    body = payload.decode("utf-8")
    if not signature:
        raise stripe.SignatureVerificationError("No Stripe-Signature header", signature, http_body=body)
    stripe.WebhookSignature.verify_header(body, signature, secret)
    return json.loads(body)
