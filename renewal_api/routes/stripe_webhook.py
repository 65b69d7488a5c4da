"""
Stripe webhook endpoint.

The signature is checked against the raw request body, so this route reads
``request.body()`` instead of declaring a pydantic body.
"""

import logging
from typing import Optional

import stripe
from fastapi import APIRouter, Header, HTTPException, Request, status

from renewal_api.clients.payments import construct_webhook_event
from renewal_api.config import settings
from renewal_api.schemas.webhook import WebhookResponse
from renewal_api.services.webhook_service import CHECKOUT_COMPLETED, handle_checkout_completed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["webhooks"])


@router.post(
    "/stripe-webhook",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Receive Stripe events",
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
) -> WebhookResponse:
    """
    Verify and process a Stripe event.

    Only ``checkout.session.completed`` triggers work; every other verified
    event is acknowledged. Once the signature checks out the response is
    always 200, even if Notion or email fail afterwards.
    """
    if not settings.STRIPE_SECRET_KEY or not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("❌ Missing Stripe configuration")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Stripe configuration missing",
                "details": "STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET must be set",
            },
        )

    payload = await request.body()

    try:
        event = construct_webhook_event(payload, stripe_signature, settings.STRIPE_WEBHOOK_SECRET)
    except stripe.SignatureVerificationError as e:
        logger.error(f"❌ Webhook signature verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_signature",
                "details": f"Webhook Error: {e}",
            },
        )
    except ValueError as e:
        logger.error(f"❌ Webhook payload is not valid JSON: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_payload",
                "details": f"Webhook Error: {e}",
            },
        )

    event_type = event.get("type")
    logger.info(f"📨 Received Stripe webhook: {event_type}")

    if event_type == CHECKOUT_COMPLETED:
        session = (event.get("data") or {}).get("object") or {}
        await handle_checkout_completed(session)
        return WebhookResponse(received=True, session_id=session.get("id"))

    logger.info(f"ℹ️ Unhandled event type: {event_type}")
    return WebhookResponse(received=True, event_type=event_type)
