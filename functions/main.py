"""HTTP entry points for Estimate Inbox.

Provides handlers for:
- Submitting a new estimate request (public form)
- Listing, marking read and deleting estimates (admin view)

Handlers take a Flask request and return a Flask response; serve_local.py
mounts them on routes.
"""

import asyncio
import json
from typing import Dict, Any, Optional
from datetime import datetime, date

import structlog
from flask import Request, Response

from config.errors import EstimateInboxError, ErrorCode, NotFoundError, PersistenceError, ValidationError
from services.estimate_store import get_estimate_store
from services.intake_service import IntakeService
from services.review_service import ReviewService
from services.sms_service import get_sms_service

logger = structlog.get_logger()

# ============================================================================
# Helper Functions
# ============================================================================


def success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build success response."""
    return {"success": True, **data}


def error_response(code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }


def get_request_json(req: Request) -> Dict[str, Any]:
    """Extract JSON from request body.

    Args:
        req: HTTP request object.

    Returns:
        Parsed JSON data.

    Raises:
        ValidationError: If JSON is invalid.
    """
    try:
        data = req.get_json(force=True, silent=False)
    except Exception as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {str(e)}",
            code=ErrorCode.INVALID_JSON
        )
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(
            message="Request body must be a JSON object",
            code=ErrorCode.INVALID_JSON
        )
    return data


def get_intake_service() -> IntakeService:
    """Build the intake service over the process-wide store."""
    return IntakeService(store=get_estimate_store(), sms_service=get_sms_service())


def get_review_service() -> ReviewService:
    """Build the review service over the process-wide store."""
    return ReviewService(store=get_estimate_store())


def _status_for(error: EstimateInboxError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, PersistenceError):
        # Retryable from the operator's point of view
        return 503
    return 500


def _error_json_response(error: EstimateInboxError) -> Response:
    return _json_response(
        error_response(error.code, error.message, error.details),
        status=_status_for(error)
    )


# ============================================================================
# Intake Entry Point
# ============================================================================


def submit_estimate(req: Request) -> Response:
    """Accept a "request an estimate" submission.

    Request body (API or web form field names):
    {
        "fullName": "Jane Doe",
        "phone": "(555) 123-4567",
        "email": "jane@example.com",
        "address": "123 Main St, Pleasanton, CA",
        "roomCount": 3,
        "bathroomCount": 1,
        "serviceCategory": "regular",
        "addonAreas": ["kitchen"],
        "preferredDate": "2025-03-01",
        "notes": "Gate code 1234"
    }

    Response:
    {
        "success": true,
        "message": "Estimate request submitted successfully",
        "id": "est_...",
        "quoteTotal": 240
    }
    """
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)
        record = asyncio.run(get_intake_service().submit(data))

        return _json_response(success_response({
            "message": "Estimate request submitted successfully",
            "id": record.id,
            "quoteTotal": record.quote_total,
            "quote": record.quote.model_dump(by_alias=True) if record.quote else None,
        }))

    except ValidationError as e:
        return _error_json_response(e)
    except EstimateInboxError as e:
        logger.error("submit_estimate_error", error=e.message, code=e.code)
        return _error_json_response(e)
    except Exception as e:
        logger.exception("submit_estimate_exception", error=str(e))
        return _json_response(
            error_response(ErrorCode.INTERNAL_ERROR, "Internal server error"),
            status=500
        )


# ============================================================================
# Review Entry Points
# ============================================================================


def estimates(req: Request) -> Response:
    """Admin collection endpoint; dispatches on HTTP method.

    GET    -> {"success": true, "estimates": [...], "newCount": n, "total": n}
    PATCH  -> body {"action": "markAsRead", "id": "..."} or {"action": "markAllAsRead"}
    DELETE -> query ?id=...
    """
    if req.method == "OPTIONS":
        return _cors_response()
    if req.method == "GET":
        return list_estimates(req)
    if req.method == "PATCH":
        return update_estimates(req)
    if req.method == "DELETE":
        return delete_estimate(req)
    return _json_response(
        error_response(ErrorCode.INVALID_ACTION, f"Method not allowed: {req.method}"),
        status=405
    )


def list_estimates(req: Request) -> Response:
    """Return every estimate, most recent first, with the unread count."""
    try:
        result = asyncio.run(get_review_service().list_estimates())
        return _json_response(success_response(result))

    except EstimateInboxError as e:
        logger.error("list_estimates_error", error=e.message, code=e.code)
        return _error_json_response(e)
    except Exception as e:
        logger.exception("list_estimates_exception", error=str(e))
        return _json_response(
            error_response(ErrorCode.INTERNAL_ERROR, "Failed to fetch estimates"),
            status=500
        )


def update_estimates(req: Request) -> Response:
    """Mark one estimate, or all of them, as read."""
    try:
        data = get_request_json(req)
        result = asyncio.run(
            get_review_service().apply_action(data.get("action"), data.get("id"))
        )
        return _json_response(success_response(result))

    except (ValidationError, NotFoundError) as e:
        return _error_json_response(e)
    except EstimateInboxError as e:
        logger.error("update_estimates_error", error=e.message, code=e.code)
        return _error_json_response(e)
    except Exception as e:
        logger.exception("update_estimates_exception", error=str(e))
        return _json_response(
            error_response(ErrorCode.INTERNAL_ERROR, "Failed to update estimate"),
            status=500
        )


def delete_estimate(req: Request) -> Response:
    """Delete one estimate permanently."""
    estimate_id: Optional[str] = req.args.get("id")
    if not estimate_id:
        return _json_response(
            error_response(ErrorCode.MISSING_FIELD, "ID is required", {"field": "id"}),
            status=400
        )

    try:
        asyncio.run(get_review_service().delete(estimate_id))
        return _json_response(success_response({"deleted": True}))

    except NotFoundError as e:
        return _error_json_response(e)
    except EstimateInboxError as e:
        logger.error("delete_estimate_error", error=e.message, code=e.code, estimate_id=estimate_id)
        return _error_json_response(e)
    except Exception as e:
        logger.exception("delete_estimate_exception", error=str(e), estimate_id=estimate_id)
        return _json_response(
            error_response(ErrorCode.INTERNAL_ERROR, "Failed to delete estimate"),
            status=500
        )


def _cors_headers() -> Dict[str, str]:
    from config.settings import settings

    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Methods": "GET, POST, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
        "Access-Control-Max-Age": "3600"
    }


def _cors_response() -> Response:
    """Return CORS preflight response."""
    return Response(
        "",
        status=204,
        headers=_cors_headers()
    )


def _json_response(data: dict, status: int = 200) -> Response:
    """Return JSON response with CORS headers."""

    def _json_default(o: Any):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return str(o)

    return Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=_cors_headers()
    )
