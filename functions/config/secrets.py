"""Unified secret access for Estimate Inbox.

Secrets (Twilio credentials) come from the process environment, which
`config.settings` has already populated from `.env` when present.

Usage:
    from config.secrets import get_twilio_auth_token, get_secret

    token = get_twilio_auth_token()
    custom_secret = get_secret('MY_SECRET_NAME')
"""

import os
import logging
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)


def get_secret(secret_id: str) -> Optional[str]:
    """
    Get secret from the environment.

    Args:
        secret_id: The name of the secret (e.g., 'TWILIO_AUTH_TOKEN')

    Returns:
        The secret value, or None if not set or blank
    """
    value = (os.environ.get(secret_id) or "").strip()
    if value:
        logger.debug(f"Secret {secret_id} loaded from environment")
        return value
    logger.debug(f"Secret {secret_id} not found in environment variables")
    return None


# Cached secret accessors for commonly used secrets

@lru_cache(maxsize=1)
def get_twilio_account_sid() -> Optional[str]:
    """Get Twilio account SID from secrets."""
    return get_secret('TWILIO_ACCOUNT_SID')


@lru_cache(maxsize=1)
def get_twilio_auth_token() -> Optional[str]:
    """Get Twilio auth token from secrets."""
    return get_secret('TWILIO_AUTH_TOKEN')


def clear_secret_cache() -> None:
    """Clear cached secrets. Useful for testing or when secrets are rotated."""
    get_twilio_account_sid.cache_clear()
    get_twilio_auth_token.cache_clear()
