"""Estimate Inbox configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets (Twilio credentials) are read through the config.secrets module.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local configuration (data path, SMS recipient, etc.)
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


def _get_default_data_path() -> str:
    """Get default snapshot path based on environment mode.

    Serverless hosts only allow writes under /tmp.
    """
    if _env_flag("SERVERLESS") or os.getenv("VERCEL"):
        return "/tmp/estimates.json"
    return os.path.join("data", "estimates.json")


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Estimate store
    estimates_data_path: str = field(default_factory=lambda: os.getenv("ESTIMATES_DATA_PATH", _get_default_data_path()))
    store_lock_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("STORE_LOCK_TIMEOUT_SECONDS", "10")))

    # SMS notification (non-secrets)
    twilio_phone_number: Optional[str] = field(default_factory=lambda: os.getenv("TWILIO_PHONE_NUMBER"))
    notify_phone_number: Optional[str] = field(default_factory=lambda: os.getenv("NOTIFY_PHONE_NUMBER"))
    sms_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("SMS_TIMEOUT_SECONDS", "10")))

    # HTTP
    cors_allow_origin: str = field(default_factory=lambda: os.getenv("CORS_ALLOW_ORIGIN", "*"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8080")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: _env_flag("LOG_JSON"))

    @property
    def twilio_account_sid(self) -> Optional[str]:
        from config.secrets import get_twilio_account_sid
        return get_twilio_account_sid()

    @property
    def twilio_auth_token(self) -> Optional[str]:
        from config.secrets import get_twilio_auth_token
        return get_twilio_auth_token()

    @property
    def sms_enabled(self) -> bool:
        """SMS is sent only when every Twilio value and a recipient are configured."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_phone_number
            and self.notify_phone_number
        )

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.store_lock_timeout_seconds <= 0:
            raise ValueError("STORE_LOCK_TIMEOUT_SECONDS must be positive")
        if self.sms_timeout_seconds <= 0:
            raise ValueError("SMS_TIMEOUT_SECONDS must be positive")


# Singleton settings instance
settings = Settings()
