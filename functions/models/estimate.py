"""Estimate request models for Estimate Inbox.

Pydantic models for the inbound submission and for the record persisted in
the estimate snapshot. Keys are camelCase on the wire and on disk.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from models.quote import QuoteBreakdown


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PHONE_DIGITS = 10


class ServiceCategory(str, Enum):
    """Cleaning services offered. Closed set; pricing has a rate for each."""

    REGULAR = "regular"
    DEEP = "deep"
    MOVE = "move"
    CONSTRUCTION = "construction"
    OFFICE = "office"

    @property
    def label(self) -> str:
        return SERVICE_CATEGORY_LABELS[self]


SERVICE_CATEGORY_LABELS: Dict[ServiceCategory, str] = {
    ServiceCategory.REGULAR: "Regular Cleaning",
    ServiceCategory.DEEP: "Deep Cleaning",
    ServiceCategory.MOVE: "Move-in / Move-out",
    ServiceCategory.CONSTRUCTION: "Post-construction Cleaning",
    ServiceCategory.OFFICE: "Office Cleaning",
}


class AddonArea(str, Enum):
    """Closet/cabinet areas that carry a surcharge."""

    KITCHEN = "kitchen"
    BEDROOM = "bedroom"
    GARAGE = "garage"
    BASEMENT = "basement"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _canonical_addons(value: Any) -> Any:
    """De-duplicate add-on areas and order them like the AddonArea enum."""
    if value is None:
        return []
    if isinstance(value, (str, AddonArea)):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        raise ValueError("addonAreas must be a list")
    wanted = {AddonArea(str(getattr(v, "value", v)).strip().lower()) for v in value}
    return [area for area in AddonArea if area in wanted]


# =============================================================================
# INBOUND SUBMISSION
# =============================================================================


class EstimateSubmission(BaseModel):
    """Validated "request an estimate" input handed to the store.

    Contact rule: at least one of phone or email must be present.
    """

    full_name: str = Field(..., alias="fullName", min_length=2, description="Customer name")
    phone: Optional[str] = Field(default=None, description="Contact phone")
    email: Optional[str] = Field(default=None, description="Contact email")
    address: str = Field(..., min_length=5, description="Service address")

    room_count: int = Field(..., alias="roomCount", ge=1, le=100)
    bathroom_count: int = Field(..., alias="bathroomCount", ge=0, le=50)
    service_category: ServiceCategory = Field(..., alias="serviceCategory")
    addon_areas: List[AddonArea] = Field(default_factory=list, alias="addonAreas")
    other_area_text: Optional[str] = Field(default=None, alias="otherAreaText", max_length=200)

    preferred_date: Optional[str] = Field(default=None, alias="preferredDate")
    preferred_time: Optional[str] = Field(default=None, alias="preferredTime")
    notes: Optional[str] = Field(default=None, max_length=2000)

    quote_total: Optional[int] = Field(default=None, alias="quoteTotal", ge=0)

    class Config:
        populate_by_name = True
        str_strip_whitespace = True

    @field_validator(
        "phone", "email", "other_area_text", "preferred_date", "preferred_time", "notes",
        mode="before",
    )
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("room_count", "bathroom_count", mode="before")
    @classmethod
    def parse_count_option(cls, v: Any) -> Any:
        """Accept the form's "10+" / "6+" options as their lower bound."""
        if isinstance(v, str):
            v = v.strip().rstrip("+").strip()
        return v

    @field_validator("service_category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("addon_areas", mode="before")
    @classmethod
    def normalize_addons(cls, v: Any) -> Any:
        return _canonical_addons(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and sum(ch.isdigit() for ch in v) < MIN_PHONE_DIGITS:
            raise ValueError(f"phone must contain at least {MIN_PHONE_DIGITS} digits")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("email is not a valid address")
        return v

    @model_validator(mode="after")
    def require_contact_method(self) -> "EstimateSubmission":
        if not self.phone and not self.email:
            raise ValueError("at least one of phone or email is required")
        return self


# =============================================================================
# PERSISTED RECORD
# =============================================================================


class ContactInfo(BaseModel):
    """Who asked for the estimate and where the job is."""

    full_name: str = Field(..., alias="fullName")
    phone: Optional[str] = None
    email: Optional[str] = None
    address: str

    class Config:
        populate_by_name = True


class PropertyProfile(BaseModel):
    """Property attributes the quote is computed from."""

    room_count: int = Field(..., alias="roomCount", ge=0)
    bathroom_count: int = Field(..., alias="bathroomCount", ge=0)
    service_category: ServiceCategory = Field(..., alias="serviceCategory")
    addon_areas: List[AddonArea] = Field(default_factory=list, alias="addonAreas")
    other_area_text: Optional[str] = Field(default=None, alias="otherAreaText")

    class Config:
        populate_by_name = True

    @field_validator("addon_areas", mode="before")
    @classmethod
    def normalize_addons(cls, v: Any) -> Any:
        return _canonical_addons(v)


class Scheduling(BaseModel):
    preferred_date: Optional[str] = Field(default=None, alias="preferredDate")
    preferred_time: Optional[str] = Field(default=None, alias="preferredTime")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class EstimateRecord(BaseModel):
    """One stored estimate request with its read-state.

    `id` and `created_at` are assigned by the store and never change;
    `is_new` only ever goes from True to False.
    """

    id: str = Field(..., min_length=1, description="Store-assigned identifier")
    created_at: datetime = Field(..., alias="createdAt")
    is_new: bool = Field(default=True, alias="isNew")

    contact: ContactInfo
    property_profile: PropertyProfile = Field(..., alias="propertyProfile")
    scheduling: Scheduling = Field(default_factory=Scheduling)

    quote_total: Optional[int] = Field(default=None, alias="quoteTotal", ge=0)
    quote: Optional[QuoteBreakdown] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_submission(
        cls,
        submission: EstimateSubmission,
        estimate_id: str,
        created_at: datetime,
        quote: Optional[QuoteBreakdown] = None,
    ) -> "EstimateRecord":
        """Build a fresh (unread) record from validated input."""
        quote_total = quote.total if quote is not None else submission.quote_total
        return cls(
            id=estimate_id,
            created_at=created_at,
            is_new=True,
            contact=ContactInfo(
                full_name=submission.full_name,
                phone=submission.phone,
                email=submission.email,
                address=submission.address,
            ),
            property_profile=PropertyProfile(
                room_count=submission.room_count,
                bathroom_count=submission.bathroom_count,
                service_category=submission.service_category,
                addon_areas=list(submission.addon_areas),
                other_area_text=submission.other_area_text,
            ),
            scheduling=Scheduling(
                preferred_date=submission.preferred_date,
                preferred_time=submission.preferred_time,
                notes=submission.notes,
            ),
            quote_total=quote_total,
            quote=quote,
        )

    @property
    def service_category_label(self) -> str:
        return self.property_profile.service_category.label

    @property
    def closet_areas(self) -> List[str]:
        """Add-on areas as shown to the operator, free-text "other" last."""
        areas = [area.value.title() for area in self.property_profile.addon_areas]
        if self.property_profile.other_area_text:
            areas.append(self.property_profile.other_area_text)
        return areas

    def to_storage_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-compatible dict written to the snapshot."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def to_api_dict(self) -> Dict[str, Any]:
        """Storage dict plus the derived display fields used by the admin view."""
        data = self.to_storage_dict()
        data["serviceCategoryLabel"] = self.service_category_label
        data["closetAreas"] = self.closet_areas
        return data
