"""Pricing Service for Estimate Inbox.

Tiered cleaning quote: a base price per service category that covers a
number of rooms, plus per-room, per-bathroom and closet/cabinet add-on
charges. Pure computation, no I/O.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from models.estimate import AddonArea, PropertyProfile, ServiceCategory
from models.quote import QuoteBreakdown, QuoteLineItem


# =============================================================================
# RATE TABLES
# =============================================================================


@dataclass(frozen=True)
class CategoryRates:
    """Fixed rates for one service category (whole currency units)."""
    base: int
    included_rooms: int
    per_room: int
    per_bathroom: int  # 0 means bathrooms are covered by the base price


CATEGORY_RATES: Dict[ServiceCategory, CategoryRates] = {
    ServiceCategory.REGULAR: CategoryRates(base=150, included_rooms=2, per_room=20, per_bathroom=20),
    ServiceCategory.DEEP: CategoryRates(base=275, included_rooms=2, per_room=30, per_bathroom=35),
    ServiceCategory.MOVE: CategoryRates(base=325, included_rooms=2, per_room=35, per_bathroom=40),
    ServiceCategory.CONSTRUCTION: CategoryRates(base=400, included_rooms=2, per_room=45, per_bathroom=50),
    ServiceCategory.OFFICE: CategoryRates(base=200, included_rooms=2, per_room=25, per_bathroom=0),
}

ADDON_SURCHARGES: Dict[AddonArea, int] = {
    AddonArea.KITCHEN: 50,
    AddonArea.BEDROOM: 30,
    AddonArea.GARAGE: 40,
    AddonArea.BASEMENT: 45,
}


# =============================================================================
# QUOTE COMPUTATION
# =============================================================================


def compute_quote(
    service_category: ServiceCategory,
    room_count: int,
    bathroom_count: int,
    addon_areas: Optional[Iterable[AddonArea]] = None,
) -> QuoteBreakdown:
    """Compute the itemized quote for a property.

    Args:
        service_category: One of the fixed service categories.
        room_count: Total rooms; the first `included_rooms` are in the base.
        bathroom_count: Bathrooms, each charged at the category rate.
        addon_areas: Closet/cabinet areas; duplicates are charged once.
            Free-text "other" areas are not passed here and never priced.

    Returns:
        QuoteBreakdown with line totals, quantities and display line items.
    """
    category = ServiceCategory(service_category)
    rates = CATEGORY_RATES[category]
    areas = [area for area in AddonArea if area in set(addon_areas or ())]

    extra_rooms = max(0, room_count - rates.included_rooms)
    bathrooms = max(0, bathroom_count)

    room_line = extra_rooms * rates.per_room
    bathroom_line = bathrooms * rates.per_bathroom

    line_items: List[QuoteLineItem] = [
        QuoteLineItem(
            code="base",
            description=f"{category.label} (includes {rates.included_rooms} rooms)",
            quantity=1,
            unit_price=rates.base,
            amount=rates.base,
        ),
        QuoteLineItem(
            code="rooms",
            description="Additional rooms",
            quantity=extra_rooms,
            unit_price=rates.per_room,
            amount=room_line,
        ),
        QuoteLineItem(
            code="bathrooms",
            description="Bathrooms" if rates.per_bathroom else "Bathrooms (included)",
            quantity=bathrooms,
            unit_price=rates.per_bathroom,
            amount=bathroom_line,
        ),
    ]

    addon_line = 0
    for area in areas:
        surcharge = ADDON_SURCHARGES[area]
        addon_line += surcharge
        line_items.append(QuoteLineItem(
            code=f"addon:{area.value}",
            description=f"{area.value.title()} closets/cabinets",
            quantity=1,
            unit_price=surcharge,
            amount=surcharge,
        ))

    return QuoteBreakdown(
        service_category=category.value,
        base=rates.base,
        rooms=room_line,
        bathrooms=bathroom_line,
        addons=addon_line,
        extra_rooms=extra_rooms,
        bathroom_count=bathrooms,
        total=rates.base + room_line + bathroom_line + addon_line,
        line_items=line_items,
    )


def quote_for_profile(profile: PropertyProfile) -> QuoteBreakdown:
    """Compute the quote for a stored property profile."""
    return compute_quote(
        service_category=profile.service_category,
        room_count=profile.room_count,
        bathroom_count=profile.bathroom_count,
        addon_areas=profile.addon_areas,
    )
