"""Estimate Inbox configuration.

This package contains:
- settings: Environment variables and configuration
- secrets: Secret access (Twilio credentials)
- errors: Custom exceptions and error codes

Import the settings singleton from its module
(`from config.settings import settings`) so tests can patch it there.
"""

from config.errors import EstimateInboxError
from config.secrets import get_secret, get_twilio_account_sid, get_twilio_auth_token

__all__ = [
    "EstimateInboxError",
    "get_secret",
    "get_twilio_account_sid",
    "get_twilio_auth_token",
]
