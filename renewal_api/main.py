"""
FastAPI application entry point for the membership renewal integration API.

This module creates the FastAPI app instance and registers all routers.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from renewal_api.config import settings
from renewal_api.routes.checkout import router as checkout_router
from renewal_api.routes.health import router as health_router
from renewal_api.routes.notifications import router as notifications_router
from renewal_api.routes.quickbooks import router as quickbooks_router
from renewal_api.routes.stripe_webhook import router as stripe_webhook_router
from renewal_api.routes.vendor import router as vendor_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    Environment-based configuration:
    - ENVIRONMENT=production: Uses CORS_ALLOWED_ORIGINS env var
    - ENVIRONMENT=testing/development: Allows all origins for local dev

    The renewal and vendor forms are served from the membership site, so in
    production that origin must be listed explicitly.

    Returns:
        List of allowed origin URLs, or ["*"] for development.
    """
    if settings.is_production():
        if settings.CORS_ALLOWED_ORIGINS:
            origins = [origin.strip() for origin in settings.CORS_ALLOWED_ORIGINS.split(",")]
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
            return origins
        logger.warning(
            "CORS_ALLOWED_ORIGINS not set in production. "
            "No web origins allowed. Set CORS_ALLOWED_ORIGINS for the renewal site."
        )
        return []

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


# Create FastAPI app
app = FastAPI(
    title="CSC Membership Renewal API",
    description="Stripe, QuickBooks, Notion and email integrations for the membership renewal form",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


# Missing or malformed request fields are client errors: answer 400, not 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Log detailed validation errors for debugging.
    """
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({
            "error": "validation_error",
            "details": exc.errors(),
            "body": exc.body
        })
    )

# Configure CORS with environment-based origins
cors_origins = _get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(checkout_router)
app.include_router(stripe_webhook_router)
app.include_router(quickbooks_router)
app.include_router(vendor_router)
app.include_router(notifications_router)

logger.info("FastAPI app initialized successfully")
