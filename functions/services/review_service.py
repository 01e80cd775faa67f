"""Review service for Estimate Inbox.

Operator-facing operations on the store for the admin view. Store results
of "no such id" become NotFoundError so the HTTP layer can answer 404.
"""

from typing import Any, Dict, Optional

import structlog

from config.errors import ErrorCode, NotFoundError, ValidationError
from services.estimate_store import EstimateStore

logger = structlog.get_logger(__name__)

ACTION_MARK_AS_READ = "markAsRead"
ACTION_MARK_ALL_AS_READ = "markAllAsRead"


class ReviewService:
    """Lists and triages stored estimate requests."""

    def __init__(self, store: EstimateStore):
        self.store = store

    async def list_estimates(self) -> Dict[str, Any]:
        """All estimates, most recent first, with the unread count.

        Returns:
            {"estimates": [...], "newCount": int, "total": int}
        """
        records, unread = await self.store.summary()
        return {
            "estimates": [record.to_api_dict() for record in records],
            "newCount": unread,
            "total": len(records),
        }

    async def get_estimate(self, estimate_id: str) -> Dict[str, Any]:
        record = await self.store.get(estimate_id)
        if record is None:
            raise NotFoundError(estimate_id)
        return record.to_api_dict()

    async def mark_as_read(self, estimate_id: str) -> None:
        if not await self.store.mark_as_read(estimate_id):
            raise NotFoundError(estimate_id)

    async def mark_all_as_read(self) -> int:
        return await self.store.mark_all_as_read()

    async def delete(self, estimate_id: str) -> None:
        if not await self.store.delete(estimate_id):
            logger.info("estimate_delete_missing", estimate_id=estimate_id)
            raise NotFoundError(estimate_id, details={"alreadyRemoved": True})

    async def apply_action(self, action: Optional[str], estimate_id: Optional[str] = None) -> Dict[str, Any]:
        """Dispatch an admin PATCH action.

        Raises:
            ValidationError: Unknown action, or markAsRead without an id.
            NotFoundError: markAsRead on a missing id.
        """
        if action == ACTION_MARK_AS_READ:
            if not estimate_id:
                raise ValidationError(
                    message="Missing id for markAsRead",
                    field="id",
                    code=ErrorCode.MISSING_FIELD,
                )
            await self.mark_as_read(estimate_id)
            return {"id": estimate_id}

        if action == ACTION_MARK_ALL_AS_READ:
            changed = await self.mark_all_as_read()
            return {"updated": changed}

        raise ValidationError(
            message="Invalid action",
            field="action",
            details={"allowed": [ACTION_MARK_AS_READ, ACTION_MARK_ALL_AS_READ]},
            code=ErrorCode.INVALID_ACTION,
        )
