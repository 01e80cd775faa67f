"""Estimate submission parsing and validation.

Accepts either the API field names (roomCount, serviceCategory, addonAreas,
...) or the original web form's names (numberOfRooms, serviceType,
closetsKitchen, ...) and produces a typed EstimateSubmission.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
import structlog

from config.errors import ValidationError
from models.estimate import AddonArea, EstimateSubmission

logger = structlog.get_logger(__name__)

# Web form name -> API name
FORM_FIELD_ALIASES: Dict[str, str] = {
    "numberOfRooms": "roomCount",
    "numberOfBathrooms": "bathroomCount",
    "serviceType": "serviceCategory",
    "closetsOtherText": "otherAreaText",
    "additionalNotes": "notes",
}

# Web form checkbox -> add-on area
FORM_CLOSET_FLAGS: Dict[str, AddonArea] = {
    "closetsKitchen": AddonArea.KITCHEN,
    "closetsBedroom": AddonArea.BEDROOM,
    "closetsGarage": AddonArea.GARAGE,
    "closetsBasement": AddonArea.BASEMENT,
}


@dataclass
class ValidationResult:
    """Result of submission validation."""
    is_valid: bool = True
    errors: List[Dict[str, str]] = field(default_factory=list)
    parsed: Optional[EstimateSubmission] = None


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "on", "yes"}
    return bool(value)


def normalize_form_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map web form field names onto the API field names.

    API names win when both are present. The "other" text is dropped when
    its checkbox is explicitly unchecked.
    """
    normalized = dict(data)

    for form_name, api_name in FORM_FIELD_ALIASES.items():
        if form_name in normalized:
            value = normalized.pop(form_name)
            normalized.setdefault(api_name, value)

    flagged = [area.value for flag, area in FORM_CLOSET_FLAGS.items() if _truthy(normalized.pop(flag, False))]
    existing = normalized.get("addonAreas") or []
    if isinstance(existing, str):
        existing = [existing]
    # Anything else that is not a list is left for the model to reject
    if flagged and isinstance(existing, (list, tuple, set)):
        normalized["addonAreas"] = [*existing, *flagged]

    if "closetsOther" in normalized:
        other_checked = _truthy(normalized.pop("closetsOther"))
        if not other_checked:
            normalized.pop("otherAreaText", None)

    return normalized


def _format_errors(error: PydanticValidationError) -> List[Dict[str, str]]:
    errors = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "__root__")
        message = err.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": loc or "contact", "message": message})
    return errors


def validate_submission(data: Any) -> ValidationResult:
    """Validate a raw submission and return the result.

    Args:
        data: Raw dictionary from the request body.

    Returns:
        ValidationResult with is_valid, per-field errors and the parsed model.
    """
    if not isinstance(data, dict):
        return ValidationResult(
            is_valid=False,
            errors=[{"field": "body", "message": "submission must be a JSON object"}],
        )

    try:
        parsed = EstimateSubmission.model_validate(normalize_form_fields(data))
    except PydanticValidationError as e:
        errors = _format_errors(e)
        logger.warning("submission_validation_failed", errors=errors, keys=sorted(data.keys()))
        return ValidationResult(is_valid=False, errors=errors)

    return ValidationResult(is_valid=True, parsed=parsed)


def parse_submission(data: Any) -> EstimateSubmission:
    """Parse a raw submission into an EstimateSubmission.

    Raises:
        ValidationError: With the per-field errors in details["errors"].
    """
    result = validate_submission(data)
    if not result.is_valid:
        first = result.errors[0] if result.errors else {}
        raise ValidationError(
            message="Invalid form data",
            field=first.get("field"),
            details={"errors": result.errors},
        )
    return result.parsed
