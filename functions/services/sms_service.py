"""SMS notification service for Estimate Inbox.

Sends a short text to the business owner when a new estimate request
arrives, through the Twilio REST API. Delivery is best effort: callers log
NotificationError and carry on.
"""

from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
import structlog

from config.errors import NotificationError
from models.estimate import EstimateRecord

logger = structlog.get_logger(__name__)


TWILIO_API_BASE_URL = "https://api.twilio.com/2010-04-01"
MAX_SMS_LENGTH = 1600


class _RetryableResponse(Exception):
    """Twilio answered 429 or 5xx."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


def format_estimate_message(record: EstimateRecord) -> str:
    """Build the SMS body for a new estimate request."""
    contact = record.contact
    profile = record.property_profile
    lines = [
        "New estimate request!",
        f"Name: {contact.full_name}",
    ]
    if contact.phone:
        lines.append(f"Phone: {contact.phone}")
    if contact.email:
        lines.append(f"Email: {contact.email}")
    lines.extend([
        f"Address: {contact.address}",
        f"Service: {record.service_category_label}",
        f"Rooms: {profile.room_count}, Bathrooms: {profile.bathroom_count}",
    ])
    if record.closet_areas:
        lines.append(f"Closets: {', '.join(record.closet_areas)}")
    if record.scheduling.preferred_date:
        when = record.scheduling.preferred_date
        if record.scheduling.preferred_time:
            when = f"{when} {record.scheduling.preferred_time}"
        lines.append(f"Preferred: {when}")
    if record.quote_total is not None:
        lines.append(f"Quote: ${record.quote_total}")
    lines.append(f"ID: {record.id}")
    return "\n".join(lines)[:MAX_SMS_LENGTH]


class SmsService:
    """Twilio SMS sender."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        to_number: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize SmsService.

        Args:
            account_sid: Twilio account SID.
            auth_token: Twilio auth token.
            from_number: Twilio sender number.
            to_number: Recipient (the business owner).
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.to_number = to_number
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE_URL}/Accounts/{self.account_sid}/Messages.json"

    async def notify_new_estimate(self, record: EstimateRecord) -> str:
        """Text the owner about a new estimate.

        Returns:
            Twilio message SID.

        Raises:
            NotificationError: If Twilio rejected the message or was unreachable.
        """
        return await self.send_message(format_estimate_message(record))

    async def send_message(self, body: str) -> str:
        """Send one SMS.

        Returns:
            Twilio message SID.

        Raises:
            NotificationError: On any delivery failure.
        """
        try:
            data = await self._post_message(body)
        except _RetryableResponse as e:
            logger.error("sms_send_failed", status_code=e.status_code, body=e.body[:200])
            raise NotificationError(
                message=f"Twilio returned HTTP {e.status_code}",
                details={"statusCode": e.status_code},
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error("sms_send_rejected", status_code=e.response.status_code, body=e.response.text[:200])
            raise NotificationError(
                message=f"Twilio rejected the message: HTTP {e.response.status_code}",
                details={"statusCode": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error("sms_send_failed", error=str(e))
            raise NotificationError(message=f"Twilio unreachable: {e}") from e

        if not isinstance(data, dict):
            logger.error("sms_send_unexpected_response", body_type=type(data).__name__)
            raise NotificationError(
                message="Twilio returned an unexpected response body",
                details={"bodyType": type(data).__name__},
            )
        sid = data.get("sid", "")
        logger.info("sms_sent", sid=sid, to=_mask_number(self.to_number))
        return sid

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((httpx.TransportError, _RetryableResponse)),
        reraise=True,
    )
    async def _post_message(self, body: str) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(
                self.messages_url,
                data={"To": self.to_number, "From": self.from_number, "Body": body},
                auth=(self.account_sid, self.auth_token),
            )
        if response.status_code == 429 or response.status_code >= 500:
            raise _RetryableResponse(response.status_code, response.text)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError:
            logger.warning("sms_response_not_json", status_code=response.status_code, body=response.text[:200])
            return None


def _mask_number(number: str) -> str:
    return f"***{number[-4:]}" if number and len(number) > 4 else "***"


def get_sms_service() -> Optional[SmsService]:
    """Build an SmsService from settings, or None when SMS is not configured."""
    from config.settings import settings

    if not settings.sms_enabled:
        logger.debug("sms_disabled", reason="twilio settings incomplete")
        return None
    return SmsService(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_phone_number,
        to_number=settings.notify_phone_number,
        timeout_seconds=settings.sms_timeout_seconds,
    )
