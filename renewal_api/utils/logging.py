"""
Logging utilities for the membership renewal integration API.

Provides standardized logger configuration.

SECURITY RULES:
- NEVER log API keys, webhook secrets, OAuth access or refresh tokens
- NEVER log raw webhook bodies (they carry customer details)
- Credential diagnostics log presence, length or a short preview only

Acceptable logging:
- High-level events (e.g., "Checkout session created", "Webhook received")
- Identifiers of external records (session ids, page ids, invoice numbers)
- Upstream status codes and sanitized error messages
"""

import logging
from typing import Optional

from renewal_api.config import settings


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger for the specified module.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level (defaults to LOG_LEVEL, then INFO)

    Returns:
        Configured logger instance

    Usage:
        >>> from renewal_api.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Checkout session created")
    """
    logger = logging.getLogger(name)

    if level is None:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)

    # Add handler if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
