"""
Notification endpoints.

- POST /api/send-error-notification: the renewal form reports a submission
  that failed to reach Notion; the admin gets an email with action items
- GET /api/test-email: send a test email and show the outcome as a page
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse

from renewal_api.config import settings
from renewal_api.schemas.notifications import ErrorNotificationRequest, NotificationResponse
from renewal_api.services.mailer import build_sync_failure_email, send_email, send_error_notification
from renewal_api.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notifications"])


@router.post(
    "/send-error-notification",
    response_model=NotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Email the admin about a failed Notion sync",
)
async def send_error_notification_endpoint(request: ErrorNotificationRequest) -> NotificationResponse:
    logger.info("🚨 Sending error notification for sync failure")

    subject, body = build_sync_failure_email(
        request.error,
        details=request.details,
        organization_name=request.organization_name,
        timestamp=request.timestamp,
    )
    result = await send_error_notification(subject, body)

    if not result.success:
        logger.error(f"❌ Failed to send error notification: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "success": False,
                "error": "Failed to send notification",
                "details": result.error,
            },
        )

    logger.info("✅ Error notification sent successfully")
    return NotificationResponse(success=True, message="Error notification sent")


def _troubleshooting_hint(error_name: Optional[str], message: str) -> str:
    """Key of the troubleshooting section to show for a Resend failure."""
    lowered = message.lower()
    if error_name == "validation_error" and ("from" in lowered or "domain" in lowered):
        return "unverified_sender"
    if "testing emails" in lowered or "own email address" in lowered:
        return "test_mode"
    if error_name in ("missing_api_key", "invalid_api_key", "restricted_api_key") or "api key" in lowered:
        return "invalid_api_key"
    if error_name == "rate_limit_exceeded":
        return "rate_limited"
    return ""


@router.get(
    "/test-email",
    response_class=HTMLResponse,
    summary="Send a test email",
)
async def test_email(
    request: Request,
    to: Optional[str] = Query(None, description="Recipient (defaults to ERROR_NOTIFICATION_EMAIL)"),
) -> HTMLResponse:
    recipient = to or settings.ERROR_NOTIFICATION_EMAIL
    config = {
        "has_api_key": bool(settings.RESEND_API_KEY),
        "api_key_length": len(settings.RESEND_API_KEY),
        "sender": settings.RESEND_SENDER_EMAIL,
        "recipient": recipient,
    }
    logger.info(f"🧪 Testing email configuration: {config}")

    if not settings.RESEND_API_KEY:
        return templates.TemplateResponse(
            request,
            "email_missing_key.html",
            {"config": config},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    timestamp = datetime.now(timezone.utc).isoformat()
    result = await send_email(
        to=recipient,
        subject="[TEST] CSC Membership System - Email Test",
        body=(
            "This is a test email from the CSC Membership Renewal system.\n\n"
            "If you received this, Resend is configured correctly!\n\n"
            "Configuration:\n"
            f"- Sender: {settings.RESEND_SENDER_EMAIL}\n"
            f"- Timestamp: {timestamp}\n\n"
            "You can ignore this email."
        ),
    )

    if result.success:
        return templates.TemplateResponse(
            request,
            "email_success.html",
            {"config": config, "message_id": result.message_id},
        )

    logger.error(f"❌ Email test failed: {result.error}")
    return templates.TemplateResponse(
        request,
        "email_failure.html",
        {
            "config": config,
            "error": result.error or "Unknown error",
            "error_name": result.error_name or "Error",
            "hint": _troubleshooting_hint(result.error_name, result.error or ""),
        },
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
