"""Intake service for Estimate Inbox.

Turns a raw "request an estimate" submission into a stored record:
validate, price, persist, then notify the owner.
"""

from typing import Any, Dict, Optional

import structlog

from config.errors import NotificationError
from models.estimate import EstimateRecord
from services.estimate_store import EstimateStore
from services.pricing_service import compute_quote
from services.sms_service import SmsService
from validators.submission_validator import parse_submission

logger = structlog.get_logger(__name__)


class IntakeService:
    """Accepts new estimate requests."""

    def __init__(self, store: EstimateStore, sms_service: Optional[SmsService] = None):
        """Initialize IntakeService.

        Args:
            store: Store the records are written to.
            sms_service: Optional notifier; no SMS is sent when None.
        """
        self.store = store
        self.sms_service = sms_service

    async def submit(self, data: Dict[str, Any]) -> EstimateRecord:
        """Validate, price and store a submission.

        Nothing is stored when validation fails. A failed notification is
        logged and does not affect the stored record.

        Args:
            data: Raw submission (API or web form field names).

        Returns:
            The stored record.

        Raises:
            ValidationError: If the submission is invalid.
            PersistenceError: If the record could not be stored.
        """
        submission = parse_submission(data)

        quote = compute_quote(
            service_category=submission.service_category,
            room_count=submission.room_count,
            bathroom_count=submission.bathroom_count,
            addon_areas=submission.addon_areas,
        )
        if submission.quote_total is not None and submission.quote_total != quote.total:
            logger.warning(
                "client_quote_mismatch",
                client_total=submission.quote_total,
                computed_total=quote.total,
            )

        record = await self.store.create(submission, quote=quote)
        logger.info("estimate_received", estimate_id=record.id, quote_total=record.quote_total)

        await self._notify(record)
        return record

    async def _notify(self, record: EstimateRecord) -> None:
        if self.sms_service is None:
            return
        try:
            await self.sms_service.notify_new_estimate(record)
        except NotificationError as e:
            logger.warning(
                "estimate_notification_failed",
                estimate_id=record.id,
                code=e.code,
                error=e.message,
            )
        except Exception as e:
            # The record is stored; notification never fails the submission
            logger.exception("estimate_notification_error", estimate_id=record.id, error=str(e))
