"""Deal records and the food-deal catalog filter."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from .prices import parse_price
from .shopping import normalize_store_name

# Deal categories that hold groceries
FOOD_CATEGORIES: tuple[str, ...] = (
    "Meat & Poultry",
    "Dairy & Eggs",
    "Dairy & Cheese",
    "Fruits & Vegetables",
    "Fresh Produce (Fruits & Vegetables)",
    "Pantry",
    "Pantry Items",
    "Organic",
    "Fish & Seafood",
    "Bakery & Bread",
    "Beverages",
    "Frozen Foods",
)

ORGANIC_CATEGORY = "Organic"
MEAT_CATEGORY = "Meat & Poultry"

# Name markers for organic products ("øko" covers "økologisk")
ORGANIC_MARKERS: tuple[str, ...] = ("øko", "organic")


@dataclass(frozen=True)
class Deal:
    """A discounted product listing from one store."""

    name: str
    amount_text: str
    price_text: str
    category: str
    store: str

    @cached_property
    def price(self) -> float:
        return parse_price(self.price_text)

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.store)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the catalog's CSV-style field names."""
        return {
            "Deal Name": self.name,
            "Amount": self.amount_text,
            "Price": self.price_text,
            "Category": self.category,
            "Store": self.store,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], store: str | None = None) -> "Deal":
        """Create from a CSV row (``Deal Name``, ``Amount``, ``Price``, ``Category``)."""
        return cls(
            name=(data.get("Deal Name") or data.get("name") or "").strip(),
            amount_text=(data.get("Amount") or data.get("amount") or "").strip(),
            price_text=(data.get("Price") or data.get("price") or "").strip(),
            category=(data.get("Category") or data.get("category") or "").strip(),
            store=(store or data.get("Store") or data.get("store") or "").strip(),
        )


@dataclass(frozen=True)
class Preferences:
    """Dietary and store preferences for a plan."""

    organic: bool = False
    less_meat: bool = False
    preferred_stores: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Preferences":
        """Create from request data (``organic``, ``lessMeat``, ``preferredStores``)."""
        data = data or {}
        stores = data.get("preferredStores", data.get("preferred_stores")) or ()
        if isinstance(stores, str):
            stores = [stores]
        return cls(
            organic=bool(data.get("organic", False)),
            less_meat=bool(data.get("lessMeat", data.get("less_meat", False))),
            preferred_stores=tuple(s for s in stores if s),
        )


def is_organic_deal(deal: Deal) -> bool:
    """Check if a deal is organic by category or name."""
    if deal.category == ORGANIC_CATEGORY:
        return True
    name_lower = deal.name.lower()
    return any(marker in name_lower for marker in ORGANIC_MARKERS)


def filter_deals(deals: Iterable[Deal], preferences: Preferences | None = None) -> list[Deal]:
    """
    Narrow a deal collection to food deals that fit the preferences.

    Filters are applied in order (food category, organic, less meat,
    preferred stores) and all must pass. Catalog order is kept.

    Args:
        deals: All loaded deals
        preferences: Optional preferences; None applies only the food filter

    Returns:
        Filtered deals, possibly empty
    """
    preferences = preferences or Preferences()

    result = [deal for deal in deals if deal.category in FOOD_CATEGORIES]

    if preferences.organic:
        result = [deal for deal in result if is_organic_deal(deal)]

    if preferences.less_meat:
        result = [deal for deal in result if deal.category != MEAT_CATEGORY]

    if preferences.preferred_stores:
        wanted = {normalize_store_name(store) for store in preferences.preferred_stores}
        result = [deal for deal in result if normalize_store_name(deal.store) in wanted]

    return result


def shopping_stores(stores: Iterable[str], preferences: Preferences | None = None) -> list[str]:
    """Stores a plan may send purchases to; preferred stores narrow the list."""
    stores = [store for store in stores if store]
    if preferences is None or not preferences.preferred_stores:
        return stores
    wanted = {normalize_store_name(store) for store in preferences.preferred_stores}
    return [store for store in stores if normalize_store_name(store) in wanted]


def list_stores(deals: Iterable[Deal]) -> list[str]:
    """Distinct store names in first-seen order."""
    stores: list[str] = []
    for deal in deals:
        if deal.store and deal.store not in stores:
            stores.append(deal.store)
    return stores


def store_statistics(deals: Iterable[Deal]) -> list[dict[str, Any]]:
    """Deal count and distinct category count per store."""
    deals = list(deals)
    stats = []
    for store in list_stores(deals):
        store_deals = [d for d in deals if d.store == store]
        stats.append(
            {
                "name": store,
                "deal_count": len(store_deals),
                "categories": len({d.category for d in store_deals}),
            }
        )
    return stats
