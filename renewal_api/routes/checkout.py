"""
Stripe checkout endpoint.

Flow:
1. POST /api/create-stripe-checkout - build line items, create the Stripe
   customer and checkout session, then link the session to the Notion page
2. The browser is redirected to ``checkoutUrl``; payment confirmation arrives
   later through POST /api/stripe-webhook
"""

import logging

import stripe
from fastapi import APIRouter, HTTPException, status

from renewal_api.config import ConfigurationError
from renewal_api.schemas.checkout import CheckoutRequest, CheckoutResponse
from renewal_api.services.checkout_service import create_checkout_session, save_session_to_notion

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])


@router.post(
    "/create-stripe-checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_200_OK,
    summary="Create a Stripe checkout session for a renewal",
    description="""
    Create a Stripe customer and checkout session for the renewal invoice.

    - Line items follow the billing display preference (single-item,
      membership-conference, individual-line-items)
    - The Notion token and invoice figures travel in the session metadata
    - The session id is saved to the organization's Notion page (best effort)
    """,
)
async def create_stripe_checkout(request: CheckoutRequest) -> CheckoutResponse:
    logger.info(f"🔄 Creating Stripe checkout for: {request.organization_data.name}")
    logger.info(f"💰 Invoice data: {request.invoice_data.model_dump(mode='json', by_alias=True)}")

    try:
        session = await create_checkout_session(request)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Stripe configuration missing",
                "details": str(e),
            },
        )
    except stripe.StripeError as e:
        logger.error(f"💥 Stripe rejected checkout creation: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to create Stripe checkout session",
                "details": e.user_message or str(e),
            },
        )
    except Exception as e:
        logger.error(f"💥 Error creating Stripe checkout: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to create Stripe checkout session",
                "details": str(e),
            },
        )

    # Best effort: the session already exists
    try:
        await save_session_to_notion(
            request.token,
            session.id,
            qbo_invoice_id=request.qbo_invoice_id,
            qbo_invoice_number=request.qbo_invoice_number,
        )
        logger.info("✅ Stripe session ID saved to Notion")
    except Exception as e:
        logger.error(f"⚠️ Failed to save session ID to Notion: {e}")

    return CheckoutResponse(
        success=True,
        message="Stripe checkout session created",
        session_id=session.id,
        checkout_url=session.url,
        qbo_invoice_id=request.qbo_invoice_id,
        qbo_invoice_number=request.qbo_invoice_number,
    )
