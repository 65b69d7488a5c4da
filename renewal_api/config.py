"""
Configuration module for the membership renewal integration API.

Loads environment variables and reports missing settings.

Handlers read credentials from ``settings`` at request time, so a missing
credential surfaces as a 500 response on the endpoint that needs it instead
of preventing the whole app from starting.
"""
import logging
import os
from typing import Dict, List

from dotenv import load_dotenv

# Load .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _env(*names: str, default: str = "") -> str:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


class ConfigurationError(RuntimeError):
    """Raised when a credential an endpoint depends on is not configured."""


class Settings:
    """Application settings loaded from environment variables."""

    # Stripe (payments)
    STRIPE_SECRET_KEY: str = _env("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET: str = _env("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL: str = _env(
        "STRIPE_SUCCESS_URL",
        default="https://membershiprenewal.campusstores.ca/success",
    )
    STRIPE_CANCEL_URL: str = _env(
        "STRIPE_CANCEL_URL",
        default="https://membershiprenewal.campusstores.ca",
    )
    STRIPE_CURRENCY: str = _env("STRIPE_CURRENCY", default="cad")
    # automatic | exclusive | inclusive
    STRIPE_TAX_MODE: str = _env("STRIPE_TAX_MODE", default="automatic")

    # Stripe product ids; blank ids fall back to inline product data
    STRIPE_PRODUCT_MEMBERSHIP_XSMALL: str = _env("STRIPE_PRODUCT_MEMBERSHIP_XSMALL")
    STRIPE_PRODUCT_MEMBERSHIP_SMALL: str = _env("STRIPE_PRODUCT_MEMBERSHIP_SMALL")
    STRIPE_PRODUCT_MEMBERSHIP_MEDIUM: str = _env("STRIPE_PRODUCT_MEMBERSHIP_MEDIUM")
    STRIPE_PRODUCT_MEMBERSHIP_LARGE: str = _env("STRIPE_PRODUCT_MEMBERSHIP_LARGE")
    STRIPE_PRODUCT_MEMBERSHIP_XLARGE: str = _env("STRIPE_PRODUCT_MEMBERSHIP_XLARGE")
    STRIPE_PRODUCT_CONFERENCE: str = _env("STRIPE_PRODUCT_CONFERENCE")
    STRIPE_PRODUCT_COMBINED: str = _env("STRIPE_PRODUCT_COMBINED")

    # QuickBooks Online (accounting)
    QBO_CLIENT_ID: str = _env("QBO_CLIENT_ID")
    QBO_CLIENT_SECRET: str = _env("QBO_CLIENT_SECRET")
    QBO_ACCESS_TOKEN: str = _env("QBO_ACCESS_TOKEN")
    QBO_REFRESH_TOKEN: str = _env("QBO_REFRESH_TOKEN")
    QBO_COMPANY_ID: str = _env("QBO_COMPANY_ID")
    QBO_BASE_URL: str = _env("QBO_BASE_URL", default="https://quickbooks.api.intuit.com")
    QBO_ENVIRONMENT: str = _env("QBO_ENVIRONMENT", default="production")
    QBO_REDIRECT_URI: str = _env("QBO_REDIRECT_URI")
    QBO_MINOR_VERSION: str = _env("QBO_MINOR_VERSION", default="65")

    # Notion (workspace database)
    NOTION_API_KEY: str = _env("NOTION_API_KEY", "NOTION_TOKEN")
    NOTION_ORGANIZATIONS_DB_ID: str = _env("NOTION_ORGANIZATIONS_DB_ID")
    NOTION_SUBMISSIONS_DB_ID: str = _env(
        "NOTION_SUBMISSIONS_DB_ID",
        default="209a69bf0cfd80afa65dcf0575c9224f",
    )
    NOTION_MEMBER_TAG: str = _env("NOTION_MEMBER_TAG", default="25/26 Member")

    # Resend (email)
    RESEND_API_KEY: str = _env("RESEND_API_KEY")
    RESEND_SENDER_EMAIL: str = _env("RESEND_SENDER_EMAIL", default="noreply@campusstores.ca")
    RESEND_API_URL: str = _env("RESEND_API_URL", default="https://api.resend.com")
    ERROR_NOTIFICATION_EMAIL: str = _env(
        "ERROR_NOTIFICATION_EMAIL", default="google@campusstores.ca"
    )
    BOOKKEEPER_EMAIL: str = _env("BOOKKEEPER_EMAIL", default="google@campusstores.ca")

    # Application Settings
    PUBLIC_BASE_URL: str = _env(
        "PUBLIC_BASE_URL", default="https://membershiprenewal.campusstores.ca"
    )
    ENVIRONMENT: str = _env("ENVIRONMENT", default="development")
    CORS_ALLOWED_ORIGINS: str = _env("CORS_ALLOWED_ORIGINS")
    LOG_LEVEL: str = _env("LOG_LEVEL", default="INFO")
    HTTP_TIMEOUT_SECONDS: float = float(_env("HTTP_TIMEOUT_SECONDS", default="30"))

    @property
    def STRIPE_MEMBERSHIP_PRODUCTS(self) -> Dict[str, str]:
        """Stripe product id per institution size."""
        return {
            "XSmall": self.STRIPE_PRODUCT_MEMBERSHIP_XSMALL,
            "Small": self.STRIPE_PRODUCT_MEMBERSHIP_SMALL,
            "Medium": self.STRIPE_PRODUCT_MEMBERSHIP_MEDIUM,
            "Large": self.STRIPE_PRODUCT_MEMBERSHIP_LARGE,
            "XLarge": self.STRIPE_PRODUCT_MEMBERSHIP_XLARGE,
        }

    def missing_settings(self) -> List[str]:
        """
        List credentials that are not configured.

        Every integration is optional at startup; the list is only used to warn
        operators early.
        """
        expected = {
            "STRIPE_SECRET_KEY": self.STRIPE_SECRET_KEY,
            "STRIPE_WEBHOOK_SECRET": self.STRIPE_WEBHOOK_SECRET,
            "QBO_CLIENT_ID": self.QBO_CLIENT_ID,
            "QBO_CLIENT_SECRET": self.QBO_CLIENT_SECRET,
            "QBO_COMPANY_ID": self.QBO_COMPANY_ID,
            "NOTION_API_KEY": self.NOTION_API_KEY,
            "NOTION_ORGANIZATIONS_DB_ID": self.NOTION_ORGANIZATIONS_DB_ID,
            "RESEND_API_KEY": self.RESEND_API_KEY,
        }
        return [key for key, value in expected.items() if not value]

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"


# Create a singleton instance
settings = Settings()

# Skip the startup check during tests or when importing for introspection
if os.getenv("VALIDATE_CONFIG", "true").lower() == "true":
    _missing = settings.missing_settings()
    if _missing:
        logger.warning(
            f"Missing environment variables: {', '.join(_missing)}. "
            "Endpoints that depend on them will return configuration errors."
        )
