"""
Category-name matching for parser suggestions.

Parsers suggest categories by *name*; the import stores category *ids*.
``match_category_id`` resolves a suggested name against the user's
available categories in three tiers:

    1. Exact, case-insensitive name match.
    2. Synonym table (e.g. "Restaurant" -> "Dining Out").
    3. Significant-word containment: any word of a category name with at
       least 4 characters contained in the suggestion.

Returns None when nothing matches; the caller decides the fallback.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

_MIN_WORD_LENGTH = 4
_WORD_SPLIT = re.compile(r"[ /]+")


@dataclass(frozen=True)
class CategoryInfo:
    """A category the user may assign."""

    category_id: UUID
    name: str
    description: str | None = None


def _synonyms(target: str, *names: str) -> dict[str, str]:
    return {n.lower(): target for n in names}


# Suggested name (lowercase) -> canonical category name
CATEGORY_SYNONYMS: dict[str, str] = {
    **_synonyms("Groceries", "Grocery", "Supermarket", "Food & Household", "Food"),
    **_synonyms("Rent/Mortgage", "Rent", "Mortgage", "Housing"),
    **_synonyms("Utilities", "Utility", "Electric", "Water", "Gas Bill", "Power"),
    **_synonyms(
        "Internet/Phone", "Internet", "Phone", "Mobile", "Cell Phone",
        "Telecom", "Telecommunications",
    ),
    **_synonyms(
        "Insurance", "Auto Insurance", "Health Insurance", "Home Insurance",
        "Life Insurance",
    ),
    **_synonyms(
        "Healthcare", "Health", "Medical", "Pharmacy", "Doctor", "Dental",
        "Hospital", "Copay", "Medicine",
    ),
    **_synonyms("Gas/Fuel", "Gas", "Fuel", "Gasoline", "Auto Fuel", "EV Charging"),
    **_synonyms(
        "Public Transit", "Transit", "Bus", "Train", "Subway", "Metro",
        "Transportation",
    ),
    **_synonyms("Parking", "Parking Fee", "Parking Garage"),
    **_synonyms(
        "Vehicle Maintenance", "Car Repair", "Auto Repair", "Car Maintenance",
        "Oil Change", "Tires", "Auto Service", "Car Service", "Auto Maintenance",
    ),
    **_synonyms("Rideshare/Taxi", "Rideshare", "Taxi", "Uber", "Lyft", "Cab", "Ride Share"),
    **_synonyms(
        "Dining Out", "Restaurant", "Restaurants", "Dining", "Dine Out",
        "Restaurant Dining", "Sit-Down Dining", "Food & Drink", "Eating Out", "Cafe",
    ),
    **_synonyms("Fast Food", "Quick Service", "Drive-Through", "Drive Thru", "Fast Casual"),
    **_synonyms(
        "Coffee/Tea", "Coffee", "Tea", "Coffee Shop", "Coffee Shops",
        "Cafe Coffee", "Beverage", "Beverages",
    ),
    **_synonyms(
        "Alcohol/Bars", "Alcohol", "Bars", "Bar", "Nightlife", "Liquor",
        "Wine", "Brewery", "Pub",
    ),
    **_synonyms("Clothing", "Clothes", "Apparel", "Fashion", "Shoes", "Accessories"),
    **_synonyms("Electronics", "Technology", "Tech", "Gadgets", "Computer", "Computers"),
    **_synonyms(
        "Home Goods", "Home", "Household", "Furniture", "Home Decor",
        "Home Improvement", "Household Items",
    ),
    **_synonyms(
        "Personal Care", "Beauty", "Cosmetics", "Grooming", "Haircut",
        "Toiletries", "Salon", "Spa",
    ),
    **_synonyms(
        "Subscriptions", "Subscription", "Streaming", "Membership", "Software",
        "Digital Services", "Online Services",
    ),
    **_synonyms(
        "Entertainment", "Movies", "Movie", "Concert", "Concerts", "Events",
        "Theater", "Theatre", "Amusement", "Recreation",
    ),
    **_synonyms("Hobbies", "Hobby", "Sports", "Crafts", "Arts & Crafts"),
    **_synonyms(
        "Fitness", "Gym", "Gym Membership", "Workout", "Exercise",
        "Sports Equipment", "Health & Fitness", "Health Club",
    ),
    **_synonyms(
        "Travel", "Flights", "Flight", "Hotel", "Hotels", "Vacation", "Airfare",
        "Lodging", "Accommodation", "Travel Expenses",
    ),
    **_synonyms(
        "Education", "Tuition", "School", "Books", "Course", "Courses",
        "Online Learning", "Training",
    ),
    **_synonyms(
        "Gifts/Donations", "Gifts", "Gift", "Donations", "Donation", "Charity",
        "Contributions",
    ),
    **_synonyms("Pet Care", "Pet", "Pets", "Veterinary", "Vet", "Pet Food", "Pet Supplies"),
    **_synonyms(
        "Taxes", "Tax", "Income Tax", "Property Tax", "Sales Tax", "State Tax",
        "Federal Tax", "Tax Payment", "Tax Preparation",
    ),
    **_synonyms("Miscellaneous", "Other", "General", "Uncategorized"),
}


def _by_name(name: str, categories: Sequence[CategoryInfo]) -> CategoryInfo | None:
    lowered = name.lower()
    for category in categories:
        if category.name.lower() == lowered:
            return category
    return None


def match_category_id(
    suggested_name: str | None,
    categories: Sequence[CategoryInfo],
) -> UUID | None:
    """Resolve a suggested category name to one of ``categories``."""
    if suggested_name is None or not suggested_name.strip():
        return None
    name = suggested_name.strip()

    # Tier 1: exact
    exact = _by_name(name, categories)
    if exact is not None:
        return exact.category_id

    # Tier 2: synonym
    mapped = CATEGORY_SYNONYMS.get(name.lower())
    if mapped is not None:
        synonym = _by_name(mapped, categories)
        if synonym is not None:
            return synonym.category_id

    # Tier 3: significant word contained in the suggestion
    normalized = name.upper()
    for category in categories:
        for word in _WORD_SPLIT.split(category.name.upper()):
            if len(word) >= _MIN_WORD_LENGTH and word in normalized:
                return category.category_id

    return None
