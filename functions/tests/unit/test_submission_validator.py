"""Unit tests for submission parsing and validation."""

import pytest

from config.errors import ErrorCode, ValidationError
from models.estimate import AddonArea, ServiceCategory
from validators.submission_validator import (
    normalize_form_fields,
    parse_submission,
    validate_submission,
)


class TestNormalizeFormFields:
    """Tests for mapping web form names to API names."""

    def test_maps_form_names(self, form_submission_data):
        normalized = normalize_form_fields(form_submission_data)

        assert normalized["roomCount"] == "10+"
        assert normalized["bathroomCount"] == "6+"
        assert normalized["serviceCategory"] == "move"
        assert normalized["notes"] == "Move-out on Friday"
        assert normalized["addonAreas"] == ["kitchen", "garage"]
        assert normalized["otherAreaText"] == "Attic, Pantry"
        assert "closetsKitchen" not in normalized
        assert "closetsOther" not in normalized

    def test_api_names_win(self):
        normalized = normalize_form_fields({"roomCount": 4, "numberOfRooms": "2"})

        assert normalized["roomCount"] == 4

    def test_unchecked_other_drops_text(self):
        normalized = normalize_form_fields({"closetsOther": False, "closetsOtherText": "Attic"})

        assert "otherAreaText" not in normalized

    def test_does_not_mutate_input(self, form_submission_data):
        snapshot = dict(form_submission_data)

        normalize_form_fields(form_submission_data)

        assert form_submission_data == snapshot


class TestValidateSubmission:
    """Tests for validate_submission results."""

    def test_valid_form_payload(self, form_submission_data):
        result = validate_submission(form_submission_data)

        assert result.is_valid
        assert result.parsed.room_count == 10
        assert result.parsed.service_category == ServiceCategory.MOVE
        assert result.parsed.addon_areas == [AddonArea.KITCHEN, AddonArea.GARAGE]
        assert result.parsed.phone is None
        assert result.parsed.preferred_date is None

    def test_non_dict_body(self):
        result = validate_submission(["not", "a", "dict"])

        assert not result.is_valid
        assert result.errors[0]["field"] == "body"

    def test_reports_field_errors_by_api_name(self, regular_submission_data):
        regular_submission_data["fullName"] = ""
        regular_submission_data["serviceCategory"] = "windows"

        result = validate_submission(regular_submission_data)

        fields = {error["field"] for error in result.errors}
        assert not result.is_valid
        assert {"fullName", "serviceCategory"} <= fields

    def test_contact_error_is_reported(self, regular_submission_data):
        regular_submission_data.pop("phone")
        regular_submission_data.pop("email")

        result = validate_submission(regular_submission_data)

        assert result.errors == [{"field": "contact", "message": "at least one of phone or email is required"}]


class TestParseSubmission:

    def test_returns_model(self, regular_submission_data):
        submission = parse_submission(regular_submission_data)

        assert submission.full_name == "Maria Lopez"

    def test_raises_validation_error(self, regular_submission_data):
        regular_submission_data["address"] = ""

        with pytest.raises(ValidationError) as exc_info:
            parse_submission(regular_submission_data)

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.field == "address"
        assert exc_info.value.details["errors"][0]["field"] == "address"

    @pytest.mark.parametrize("value", [5, True, {"kitchen": True}])
    def test_scalar_addon_areas_is_a_validation_error(self, regular_submission_data, value):
        regular_submission_data["addonAreas"] = value

        with pytest.raises(ValidationError) as exc_info:
            parse_submission(regular_submission_data)

        assert exc_info.value.field == "addonAreas"

    def test_scalar_addon_areas_with_form_checkbox(self, form_submission_data):
        form_submission_data["addonAreas"] = 5

        with pytest.raises(ValidationError) as exc_info:
            parse_submission(form_submission_data)

        assert exc_info.value.field == "addonAreas"
