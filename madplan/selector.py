"""Recipe selection: variety across days and protein sources."""

from __future__ import annotations

import logging
import random
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from .config import DEFAULT_COST_CEILING

if TYPE_CHECKING:
    from .planner import ProcessedRecipe

logger = logging.getLogger(__name__)

# Checked in this order; the first category with a keyword hit wins
PROTEIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "chicken": ("kylling", "chicken", "høne", "kalkun"),
    "beef": ("oksekød", "okse", "beef", "kalv", "hakket kød"),
    "pork": ("svinekød", "svin", "pork", "bacon", "skinke", "flæsk", "medister", "pølse"),
    "fish": ("fisk", "laks", "torsk", "rejer", "tun", "sej", "rødspætte", "fish", "salmon"),
    "vegetarian": ("linser", "bønner", "kikærter", "tofu", "æg", "halloumi", "lentil"),
}
OTHER_CATEGORY = "other"


def main_protein_category(ingredient_names: Iterable[str]) -> str:
    """
    Coarse protein category of a recipe from its ingredient names.

    Categories are tried in PROTEIN_KEYWORDS order, so a recipe with both
    chicken and bacon counts as chicken.
    """
    names = [name.lower() for name in ingredient_names]
    for category, keywords in PROTEIN_KEYWORDS.items():
        if any(keyword in name for name in names for keyword in keywords):
            return category
    return OTHER_CATEGORY


def max_category_repeats(days: int) -> int:
    """How often one protein category may appear in a plan."""
    return 1 if days <= 5 else 2


def rank_recipes(
    processed: Iterable[ProcessedRecipe],
    cost_ceiling: float = DEFAULT_COST_CEILING,
) -> list[ProcessedRecipe]:
    """
    Drop recipes above the cost ceiling and sort the rest.

    Order: highest deal ratio, then most stores, then cheapest.
    """
    affordable = [recipe for recipe in processed if recipe.cost <= cost_ceiling]
    return sorted(
        affordable,
        key=lambda r: (-r.deal_ratio, -len(r.stores_used), r.cost),
    )


def select_recipes(
    processed: Sequence[ProcessedRecipe],
    days: int,
    rng: random.Random | None = None,
    *,
    cost_ceiling: float = DEFAULT_COST_CEILING,
) -> list[ProcessedRecipe]:
    """
    Choose one recipe per day.

    Ranked recipes are shuffled for variety, then taken in shuffled order
    while skipping repeats and protein categories that have hit their limit.
    If that leaves days empty, the ranked list is cycled in order.

    Args:
        processed: Costed recipes
        days: Number of days to fill
        rng: Random source for the shuffle
        cost_ceiling: Recipes costing more than this are left out

    Returns:
        Exactly ``days`` recipes

    Raises:
        ValueError: If there are no recipes to choose from
    """
    if not processed:
        raise ValueError("No recipes to select from")

    rng = rng if rng is not None else random.Random()

    ranked = rank_recipes(processed, cost_ceiling)
    if not ranked:
        logger.warning("All recipes exceed cost ceiling %.2f, ignoring it", cost_ceiling)
        ranked = list(processed)

    shuffled = list(ranked)
    rng.shuffle(shuffled)

    limit = max_category_repeats(days)
    selected: list[ProcessedRecipe] = []
    used_ids: set[str] = set()
    category_counts: Counter[str] = Counter()

    for recipe in shuffled:
        if len(selected) >= days:
            break

        recipe_id = recipe.recipe.id
        if recipe_id in used_ids:
            continue

        category = recipe.protein_category
        if category_counts[category] >= limit:
            continue

        selected.append(recipe)
        used_ids.add(recipe_id)
        category_counts[category] += 1

    if len(selected) < days:
        logger.debug("Only %d distinct recipes fit, repeating to fill %d days", len(selected), days)

    while len(selected) < days:
        selected.append(ranked[len(selected) % len(ranked)])

    return selected
