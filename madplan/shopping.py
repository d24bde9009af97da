"""Shopping list aggregation per store."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .matcher import DealInfo
    from .planner import MealPlanDay

logger = logging.getLogger(__name__)

UNASSIGNED_KEY = "almindelig"

# Shopping list sections, in display order
STORE_KEYS: tuple[str, ...] = ("coop", "rema", "lidl", "netto", "foetex", UNASSIGNED_KEY)

# Raw store names seen in deal data and requests -> section key
STORE_ALIASES: dict[str, str] = {
    "coop": "coop",
    "coop 365": "coop",
    "coop365": "coop",
    "rema": "rema",
    "rema 1000": "rema",
    "rema1000": "rema",
    "lidl": "lidl",
    "netto": "netto",
    "føtex": "foetex",
    "foetex": "foetex",
    "fotex": "foetex",
    "almindelig": UNASSIGNED_KEY,
}

STORE_DISPLAY_NAMES: dict[str, str] = {
    "coop": "Coop",
    "rema": "REMA 1000",
    "lidl": "Lidl",
    "netto": "Netto",
    "foetex": "Føtex",
    UNASSIGNED_KEY: "Almindelig",
}


def normalize_store_name(store: str | None) -> str:
    """Alias key for a known store, otherwise the lower-cased name."""
    name = " ".join((store or "").lower().split())
    return STORE_ALIASES.get(name, name)


def canonical_store_key(store: str | None) -> str:
    """Shopping list section for a store; unknown stores go to 'almindelig'."""
    key = normalize_store_name(store)
    return key if key in STORE_KEYS else UNASSIGNED_KEY


@dataclass
class ShoppingItem:
    """One line on the shopping list, merged across recipes."""

    item: str
    aggregated_price: float
    on_sale: bool
    occurrence_count: int = 1
    deal_info: DealInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "item": self.item,
            "price": self.aggregated_price,
            "onSale": self.on_sale,
            "occurrenceCount": self.occurrence_count,
        }
        if self.deal_info is not None:
            data["dealInfo"] = self.deal_info.to_dict()
        return data


ShoppingList = dict[str, list[ShoppingItem]]


def _normalize_item_name(name: str) -> str:
    return name.lower().strip()


def build_shopping_list(meal_plan_days: Iterable[MealPlanDay]) -> ShoppingList:
    """
    Merge the plan's ingredients into per-store shopping sections.

    Items are grouped by store section and normalized name. Duplicate
    items have their prices summed and occurrences counted; an item is on
    sale if any merged instance was. Empty sections are left out.

    Args:
        meal_plan_days: Days of a meal plan

    Returns:
        Mapping of section key to items, in STORE_KEYS order
    """
    sections: dict[str, dict[str, ShoppingItem]] = {key: {} for key in STORE_KEYS}

    for day in meal_plan_days:
        for ingredient in day.ingredients:
            section = sections[canonical_store_key(ingredient.store)]
            key = _normalize_item_name(ingredient.name)
            existing = section.get(key)

            if existing is None:
                section[key] = ShoppingItem(
                    item=ingredient.name,
                    aggregated_price=ingredient.price,
                    on_sale=ingredient.on_sale,
                    deal_info=ingredient.deal_info,
                )
                continue

            existing.aggregated_price += ingredient.price
            existing.occurrence_count += 1
            existing.on_sale = existing.on_sale or ingredient.on_sale
            if existing.deal_info is None:
                existing.deal_info = ingredient.deal_info

    shopping_list: ShoppingList = {}
    for store_key, items in sections.items():
        if not items:
            continue
        for item in items.values():
            item.aggregated_price = round(item.aggregated_price, 2)
        shopping_list[store_key] = list(items.values())

    logger.debug("Shopping list spans %d stores: %s", len(shopping_list), ", ".join(shopping_list))
    return shopping_list


def shopping_list_total(shopping_list: ShoppingList) -> float:
    """Sum of all aggregated prices."""
    return round(
        sum(item.aggregated_price for items in shopping_list.values() for item in items), 2
    )


def shopping_list_to_dict(shopping_list: ShoppingList) -> dict[str, list[dict[str, Any]]]:
    return {store: [item.to_dict() for item in items] for store, items in shopping_list.items()}
