"""Quote models for Estimate Inbox.

Itemized price breakdown produced by the pricing engine. All amounts are
whole currency units.
"""

from typing import List

from pydantic import BaseModel, Field, model_validator


class QuoteLineItem(BaseModel):
    """Single display line of a quote."""

    code: str = Field(..., description="base | rooms | bathrooms | addon:<area>")
    description: str
    quantity: int = Field(..., ge=0)
    unit_price: int = Field(..., alias="unitPrice", ge=0)
    amount: int = Field(..., ge=0)

    class Config:
        populate_by_name = True


class QuoteBreakdown(BaseModel):
    """Itemized quote for one property profile.

    `rooms`, `bathrooms` and `addons` are line totals; `extra_rooms` and
    `bathroom_count` are the quantities they were computed from.
    """

    service_category: str = Field(..., alias="serviceCategory")
    base: int = Field(..., ge=0)
    rooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    addons: int = Field(..., ge=0)
    extra_rooms: int = Field(..., alias="extraRooms", ge=0)
    bathroom_count: int = Field(..., alias="bathroomCount", ge=0)
    total: int = Field(..., ge=0)
    line_items: List[QuoteLineItem] = Field(default_factory=list, alias="lineItems")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def validate_total(self) -> "QuoteBreakdown":
        """Ensure total equals the sum of its parts."""
        expected = self.base + self.rooms + self.bathrooms + self.addons
        if self.total != expected:
            raise ValueError(
                f"Quote total must equal base + rooms + bathrooms + addons, got: "
                f"total={self.total}, expected={expected}"
            )
        return self
