"""Ingredient to deal matching logic."""

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rapidfuzz import fuzz

from .deals import Deal
from .distribution import StoreUsage, distribution_score, least_used_store, record_usage
from .prices import estimate_price
from .recipe_parser import Ingredient

logger = logging.getLogger(__name__)

# Pseudo-store for items that can be bought anywhere
UNASSIGNED_STORE = "Almindelig"

DISTRIBUTION_WEIGHT = 0.6
PRICE_WEIGHT = 0.4
# Price score for deals without a usable price
NEUTRAL_PRICE_SCORE = 0.0

# Shortest first word used for prefix matching; shorter words are too generic
MIN_PREFIX_LENGTH = 3

# Canonical ingredient keys -> deal name fragments that satisfy them.
# Danish keys carry English fragments as well, since deal feeds mix languages.
SYNONYMS: dict[str, list[str]] = {
    # Meat
    "oksekød": ["hakket", "okse", "oksekød", "beef"],
    "kylling": ["kylling", "filet", "kyllingebryst", "kyllingeinderfilet", "chicken"],
    "svinekød": ["svin", "hakket", "svinekød", "pork"],
    "bacon": ["bacon"],
    "chicken": ["chicken breast", "chicken fillet", "chicken thigh", "kylling"],
    "beef": ["ground beef", "minced beef", "beef", "oksekød"],
    "pork": ["pork", "svinekød"],
    # Fish
    "laks": ["laks", "røget laks", "salmon"],
    "torsk": ["torsk", "torskefilet", "cod"],
    "salmon": ["salmon", "laks"],
    # Dairy
    "mælk": ["mælk", "sødmælk", "minimælk", "letmælk", "milk"],
    "ost": ["ost", "mozzarella", "parmesan", "cheddar", "gouda"],
    "æg": ["æg", "eggs"],
    "smør": ["smør", "lurpak", "butter"],
    "fløde": ["fløde", "piskefløde", "madlavningsfløde", "cream"],
    "yoghurt": ["yoghurt", "græsk yoghurt", "skyr"],
    # Vegetables
    "løg": ["løg", "gule løg", "rødløg", "onion"],
    "tomat": ["tomat", "flåede tomater", "tomatpuré", "tomato"],
    "kartof": ["kartof", "nye kartofler", "potato"],
    "gulerod": ["gulerod", "gulerødder", "carrot"],
    "selleri": ["selleri"],
    # Dry goods
    "pasta": ["pasta", "spaghetti", "macaroni", "penne"],
    "ris": ["ris", "jasminris", "basmatris", "rice"],
    "mel": ["mel", "hvedemel"],
}


@dataclass(frozen=True)
class DealInfo:
    """Where a matched ingredient's price came from."""

    original_price_text: str
    deal_name: str
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalPrice": self.original_price_text,
            "dealName": self.deal_name,
            "category": self.category,
        }

    @classmethod
    def from_deal(cls, deal: Deal) -> "DealInfo":
        return cls(original_price_text=deal.price_text, deal_name=deal.name, category=deal.category)


@dataclass
class MatchedIngredient(Ingredient):
    """An ingredient with a price and a store to buy it at."""

    price: float = 0.0
    on_sale: bool = False
    store: str = UNASSIGNED_STORE
    deal_info: DealInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "item": self.name,
            "originalText": self.original_text,
            "quantityText": self.quantity_text,
            "price": self.price,
            "onSale": self.on_sale,
            "store": self.store,
        }
        if self.deal_info is not None:
            data["dealInfo"] = self.deal_info.to_dict()
        return data


def fuzzy_similarity(query: str, deal_name: str) -> float:
    """
    Similarity between an ingredient name and a deal name (0-100).

    Blends token set ratio (word order independent) with partial ratio
    (substring matches such as "tomat" in "flåede tomater").
    """
    query_lower = query.lower()
    name_lower = deal_name.lower()
    token_score = fuzz.token_set_ratio(query_lower, name_lower)
    partial_score = fuzz.partial_ratio(query_lower, name_lower)
    return token_score * 0.6 + partial_score * 0.4


def _first_word(text: str) -> str:
    words = text.split()
    return words[0] if words else ""


def synonym_match(
    ingredient_name: str,
    deal_name: str,
    synonyms: dict[str, list[str]] | None = None,
) -> bool:
    """
    Check the synonym table in both directions.

    Matches when the ingredient contains a key and the deal contains one of
    its fragments, or the deal contains a key and the ingredient contains
    one of its fragments.
    """
    table = SYNONYMS if synonyms is None else synonyms
    ingredient_lower = ingredient_name.lower()
    deal_lower = deal_name.lower()

    for key, fragments in table.items():
        if key in ingredient_lower and any(f in deal_lower for f in fragments):
            return True
        if key in deal_lower and any(f in ingredient_lower for f in fragments):
            return True

    return False


def deal_matches(
    ingredient_name: str,
    deal_name: str,
    synonyms: dict[str, list[str]] | None = None,
    fuzzy_threshold: int | None = None,
) -> bool:
    """
    Decide whether a deal can stand in for an ingredient.

    Tried in order: substring containment either way, first-word
    containment either way, the synonym table, and (only when a threshold
    is given) fuzzy similarity.
    """
    ingredient_lower = ingredient_name.lower().strip()
    deal_lower = deal_name.lower().strip()
    if not ingredient_lower or not deal_lower:
        return False

    if ingredient_lower in deal_lower or deal_lower in ingredient_lower:
        return True

    deal_first = _first_word(deal_lower)
    if len(deal_first) >= MIN_PREFIX_LENGTH and deal_first in ingredient_lower:
        return True
    ingredient_first = _first_word(ingredient_lower)
    if len(ingredient_first) >= MIN_PREFIX_LENGTH and ingredient_first in deal_lower:
        return True

    if synonym_match(ingredient_lower, deal_lower, synonyms):
        return True

    if fuzzy_threshold is not None:
        return fuzzy_similarity(ingredient_lower, deal_lower) >= fuzzy_threshold

    return False


def matching_deals(
    ingredient_name: str,
    deals: Sequence[Deal],
    synonyms: dict[str, list[str]] | None = None,
    fuzzy_threshold: int | None = None,
) -> list[Deal]:
    """All deals that match an ingredient, in catalog order."""
    return [
        deal
        for deal in deals
        if deal_matches(ingredient_name, deal.name, synonyms, fuzzy_threshold)
    ]


def score_deal(deal: Deal, store_usage: StoreUsage) -> float:
    """
    Weighted preference for a candidate deal.

    60% store distribution (favor stores used less so far) and 40% price
    (favor cheaper deals).
    """
    price = deal.price
    price_score = 1.0 / price if price > 0 else NEUTRAL_PRICE_SCORE
    return (
        DISTRIBUTION_WEIGHT * distribution_score(store_usage, deal.store)
        + PRICE_WEIGHT * price_score
    )


def select_best_deal(candidates: Sequence[Deal], store_usage: StoreUsage) -> Deal | None:
    """Highest scoring deal; the earliest one wins ties."""
    best: Deal | None = None
    best_score = float("-inf")
    for deal in candidates:
        score = score_deal(deal, store_usage)
        if score > best_score:
            best, best_score = deal, score
    return best


def assign_fallback_store(
    store_usage: StoreUsage,
    rng: random.Random,
    real_store_probability: float = 0.7,
) -> str:
    """
    Pick a store for an ingredient without a deal.

    With ``real_store_probability`` the least used store gets the item (and
    its count goes up); otherwise it goes to the pseudo-store.
    """
    store = least_used_store(store_usage)
    if store is not None and rng.random() < real_store_probability:
        record_usage(store_usage, store)
        return store
    return UNASSIGNED_STORE


def match_ingredient(
    ingredient: Ingredient,
    deals: Sequence[Deal],
    store_usage: StoreUsage,
    *,
    rng: random.Random | None = None,
    synonyms: dict[str, list[str]] | None = None,
    price_estimates: dict[str, float] | None = None,
    real_store_probability: float = 0.7,
    fuzzy_threshold: int | None = None,
) -> MatchedIngredient:
    """
    Find the best deal for one ingredient, or estimate its price.

    The chosen deal's store usage is bumped so later ingredients spread
    across stores. A matched deal whose price text parses to 0 counts as
    not on sale and gets an estimated price.

    Args:
        ingredient: Tokenized ingredient
        deals: Filtered food deals
        store_usage: Usage map for this matching pass (mutated)
        rng: Random source for the fallback store choice
        synonyms: Synonym table (defaults to SYNONYMS)
        price_estimates: Price estimate table (defaults to PRICE_ESTIMATES)
        real_store_probability: Chance an unmatched item goes to a real store
        fuzzy_threshold: Enables fuzzy matching at this similarity (0-100)

    Returns:
        MatchedIngredient with price, store and sale status
    """
    candidates = matching_deals(ingredient.name, deals, synonyms, fuzzy_threshold)
    best = select_best_deal(candidates, store_usage)

    if best is not None:
        record_usage(store_usage, best.store)
        price = best.price
        on_sale = price > 0
        if not on_sale:
            logger.warning(
                "Deal %r at %s has no usable price (%r), estimating",
                best.name,
                best.store,
                best.price_text,
            )
            price = estimate_price(ingredient.name, price_estimates)

        logger.debug("Matched %r -> %r at %s", ingredient.name, best.name, best.store)
        return MatchedIngredient(
            original_text=ingredient.original_text,
            name=ingredient.name,
            quantity_text=ingredient.quantity_text,
            price=price,
            on_sale=on_sale,
            store=best.store,
            deal_info=DealInfo.from_deal(best),
        )

    rng = rng if rng is not None else random.Random()
    store = assign_fallback_store(store_usage, rng, real_store_probability)
    logger.debug("No deal for %r, assigned to %s", ingredient.name, store)

    return MatchedIngredient(
        original_text=ingredient.original_text,
        name=ingredient.name,
        quantity_text=ingredient.quantity_text,
        price=estimate_price(ingredient.name, price_estimates),
        on_sale=False,
        store=store,
    )


def match_ingredients(
    ingredients: Sequence[Ingredient],
    deals: Sequence[Deal],
    store_usage: StoreUsage,
    *,
    rng: random.Random | None = None,
    synonyms: dict[str, list[str]] | None = None,
    price_estimates: dict[str, float] | None = None,
    real_store_probability: float = 0.7,
    fuzzy_threshold: int | None = None,
) -> list[MatchedIngredient]:
    """
    Match all ingredients of one recipe against the deals.

    All ingredients share ``store_usage``, so it should be fresh for each
    matching pass.
    """
    rng = rng if rng is not None else random.Random()
    return [
        match_ingredient(
            ingredient,
            deals,
            store_usage,
            rng=rng,
            synonyms=synonyms,
            price_estimates=price_estimates,
            real_store_probability=real_store_probability,
            fuzzy_threshold=fuzzy_threshold,
        )
        for ingredient in ingredients
    ]


def count_on_sale(ingredients: Sequence[MatchedIngredient]) -> int:
    return sum(1 for ing in ingredients if ing.on_sale)


def deal_ratio(ingredients: Sequence[MatchedIngredient]) -> float:
    """Share of ingredients bought on sale (0.0 for an empty list)."""
    if not ingredients:
        return 0.0
    return count_on_sale(ingredients) / len(ingredients)
