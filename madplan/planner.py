"""Meal planning: cost recipes against deals and assemble a plan."""

import logging
import numbers
import random
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .catalog import Catalog
from .config import PANTRY_FILE, PlannerSettings
from .deals import Deal, Preferences, filter_deals, shopping_stores
from .distribution import new_store_usage
from .matcher import (
    SYNONYMS,
    UNASSIGNED_STORE,
    MatchedIngredient,
    count_on_sale,
    deal_ratio,
    match_ingredients,
)
from .pantry import load_pantry_config
from .prices import PRICE_ESTIMATES
from .recipe_parser import Recipe, tokenize_ingredients
from .selector import main_protein_category, select_recipes
from .shopping import ShoppingList, build_shopping_list, shopping_list_to_dict

logger = logging.getLogger(__name__)


class PlanningError(Exception):
    """Exception raised when a meal plan cannot be generated."""

    pass


class InvalidInputError(PlanningError):
    """Family size, budget or day count is missing or not positive."""

    pass


class EmptyCatalogError(PlanningError):
    """No recipes are available to plan with."""

    pass


# Recipe title keyword -> hidden nutrition tip. The longest matching keyword wins.
STEALTH_UPGRADES: dict[str, str] = {
    "lasagne": "Skjult protein-boost: Bland 200g røde linser (kogt bløde) ind i kødsaucen. "
    "De bliver usynlige og øger protein med 30%.",
    "boller i karry": "Skjulte grøntsager: Fintrev gulerødderne og bland direkte i kødfasen. "
    "Giver saftighed og vitaminer.",
    "frikadeller": "Protein-power: Erstat 30% af kødet med kogte røde linser - usynlige og sundere.",
    "kylling i karry": "Grøntsags-boost: Tilsæt finthakket selleri og gulerødder til karrysovsen.",
    "carbonara": "Fiber-upgrade: Brug fuldkornspasta og tilsæt finhakket broccoli til cremesovsen.",
    "pasta": "Linse-trick: Bland kogte røde linser i kødsovsen - dobler proteinet uden "
    "smagsforskel.",
    "kyllingebryst": "Yoghurt-protein: Lav marinade med græsk yoghurt for ekstra protein og mørhed.",
    "sandwich": "Grønt boost: Tilsæt finhakket avocado eller spinat - øger vitaminer og fiber.",
    "suppe": "Protein-power: Tilsæt røde linser til suppen - de koger op og bliver usynlige.",
    "fisk": "Omega boost: Server med dampede broccoli-stilke for ekstra fiber og vitaminer.",
    "kød": "Saftighedsboost: Bland fintrevne gulerødder i kødet for vitaminer og naturlig sødme.",
}

DEFAULT_STEALTH_UPGRADE = (
    "Naturlig opgradering: Brug økologiske ingredienser når muligt for bedre smag og sundhed."
)

# Title keywords -> basic cooking steps, checked in order
INSTRUCTIONS: list[tuple[tuple[str, ...], list[str]]] = [
    (
        ("lasagne",),
        [
            "Steg kød og løg gyldne",
            "Tilsæt tomatprodukter og lad det simre",
            "Lag lasagne med kød, bechamel og ost",
            "Bag ved 180°C i 45 min",
        ],
    ),
    (
        ("karry",),
        [
            "Steg kød/kylling og løg",
            "Tilsæt karry og grøntsager",
            "Hæld væske i og lad det simre",
            "Server med ris",
        ],
    ),
    (
        ("frikadeller", "boller"),
        [
            "Bland alle ingredienser til en smidig masse",
            "Form til frikadeller/kødboller",
            "Steg gyldne på panden",
            "Server med kartofler og sovs",
        ],
    ),
    (
        ("carbonara",),
        [
            "Kog pasta al dente",
            "Steg bacon sprødt",
            "Bland æg, ost og fløde",
            "Vend det hele sammen og server",
        ],
    ),
    (
        ("sandwich", "smørrebrød"),
        [
            "Forbered alle ingredienser",
            "Smør brødet",
            "Læg pålæg pænt på",
            "Pynt og server",
        ],
    ),
    (
        ("suppe",),
        [
            "Sautér løg og grøntsager",
            "Tilsæt væske og bouillon",
            "Lad det simre til grøntsagerne er møre",
            "Smag til og server",
        ],
    ),
]

DEFAULT_INSTRUCTIONS = [
    "Forbered alle ingredienser",
    "Følg traditionel tilberedningsmetode",
    "Justér krydderier efter smag",
    "Server varmt",
]


@dataclass
class PlannerTables:
    """Keyword tables used while planning; override any of them for tests."""

    synonyms: dict[str, list[str]] = field(default_factory=lambda: dict(SYNONYMS))
    price_estimates: dict[str, float] = field(default_factory=lambda: dict(PRICE_ESTIMATES))
    stealth_upgrades: dict[str, str] = field(default_factory=lambda: dict(STEALTH_UPGRADES))


@dataclass
class ProcessedRecipe:
    """A recipe costed against the current deals."""

    recipe: Recipe
    matched_ingredients: list[MatchedIngredient]
    cost: float
    deal_ratio: float
    stores_used: frozenset[str]
    stealth_upgrade: str
    instructions: list[str] = field(default_factory=list)
    protein_category: str = "other"

    @property
    def deal_match_count(self) -> int:
        return count_on_sale(self.matched_ingredients)


@dataclass
class MealPlanDay:
    """One day of the plan."""

    day: int
    recipe_title: str
    servings: int
    ingredients: list[MatchedIngredient]
    cost: float
    deal_match_count: int
    stealth_upgrade: str
    stores_used: list[str]
    instructions: list[str] = field(default_factory=list)
    source: str = "Unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "recipe": self.recipe_title,
            "servings": self.servings,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "cost": self.cost,
            "dealMatches": self.deal_match_count,
            "stealthUpgrade": self.stealth_upgrade,
            "storesUsed": list(self.stores_used),
            "instructions": list(self.instructions),
            "source": self.source,
        }


@dataclass
class MealPlan:
    """A generated meal plan with its shopping list."""

    meal_plan_days: list[MealPlanDay]
    total_cost: float
    total_deal_matches: int
    total_ingredients: int
    shopping_list: ShoppingList
    savings: float
    stores_used: list[str]
    summary: str
    deal_percentage: int = 0
    family_size: int = 0
    budget: float = 0.0
    deal_count: int = 0
    generated_at: str = ""

    @property
    def days(self) -> int:
        return len(self.meal_plan_days)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape returned to callers."""
        return {
            "mealPlan": [day.to_dict() for day in self.meal_plan_days],
            "totalCost": self.total_cost,
            "totalDealMatches": self.total_deal_matches,
            "totalIngredients": self.total_ingredients,
            "shoppingList": shopping_list_to_dict(self.shopping_list),
            "savings": self.savings,
            "storesUsed": list(self.stores_used),
            "summary": self.summary,
            "dealPercentage": self.deal_percentage,
            "familySize": self.family_size,
            "budget": self.budget,
            "dealCount": self.deal_count,
            "generatedAt": self.generated_at,
        }


@dataclass
class Recommendation:
    """A recipe ranked by how much of it is on sale right now."""

    recipe: Recipe
    match_score: int
    matched_ingredients: int
    total_ingredients: int
    stores_used: int


def find_stealth_upgrade(title: str, upgrades: dict[str, str] | None = None) -> str:
    """Nutrition tip for the longest keyword found in the recipe title."""
    table = STEALTH_UPGRADES if upgrades is None else upgrades
    title_lower = title.lower()
    hits = [key for key in table if key in title_lower]
    if not hits:
        return DEFAULT_STEALTH_UPGRADE
    return table[max(hits, key=len)]


def basic_instructions(title: str) -> list[str]:
    """Generic cooking steps picked from the recipe title."""
    title_lower = title.lower()
    for keywords, steps in INSTRUCTIONS:
        if any(keyword in title_lower for keyword in keywords):
            return list(steps)
    return list(DEFAULT_INSTRUCTIONS)


def _is_positive_number(value: Any, integral: bool) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    if integral and not isinstance(value, numbers.Integral):
        return False
    return value > 0


def validate_request(family_size: Any, budget: Any, days: Any) -> None:
    """
    Check the plan request parameters.

    Raises:
        InvalidInputError: Naming every parameter that is missing or not positive
    """
    problems = []
    if not _is_positive_number(family_size, integral=True):
        problems.append(f"familySize must be a positive integer (got {family_size!r})")
    if not _is_positive_number(budget, integral=False):
        problems.append(f"budget must be a positive number (got {budget!r})")
    if not _is_positive_number(days, integral=True):
        problems.append(f"days must be a positive integer (got {days!r})")

    if problems:
        raise InvalidInputError("; ".join(problems))


def _ordered_stores(ingredients: Iterable[MatchedIngredient]) -> list[str]:
    stores: list[str] = []
    for ingredient in ingredients:
        if ingredient.store not in stores:
            stores.append(ingredient.store)
    return stores


def process_recipe(
    recipe: Recipe,
    deals: list[Deal],
    stores: Iterable[str],
    *,
    rng: random.Random,
    tables: PlannerTables | None = None,
    settings: PlannerSettings | None = None,
    pantry_items: Iterable[str] | None = None,
) -> ProcessedRecipe:
    """
    Tokenize, match and cost one recipe.

    Each recipe is its own matching pass with a fresh store usage map.
    """
    tables = tables or PlannerTables()
    settings = settings or PlannerSettings()

    ingredients = tokenize_ingredients(recipe.ingredients_text, pantry_items)
    store_usage = new_store_usage(stores)
    matched = match_ingredients(
        ingredients,
        deals,
        store_usage,
        rng=rng,
        synonyms=tables.synonyms,
        price_estimates=tables.price_estimates,
        real_store_probability=settings.real_store_probability,
        fuzzy_threshold=settings.fuzzy_threshold,
    )

    return ProcessedRecipe(
        recipe=recipe,
        matched_ingredients=matched,
        cost=round(sum(ing.price for ing in matched), 2),
        deal_ratio=deal_ratio(matched),
        stores_used=frozenset(ing.store for ing in matched),
        stealth_upgrade=find_stealth_upgrade(recipe.title, tables.stealth_upgrades),
        instructions=basic_instructions(recipe.title),
        protein_category=main_protein_category(ing.name for ing in matched),
    )


def _resolve_pantry(
    settings: PlannerSettings, pantry_items: Iterable[str] | None
) -> set[str] | None:
    if pantry_items is not None:
        return set(pantry_items)
    if settings.exclude_pantry:
        return set(load_pantry_config(PANTRY_FILE).all_pantry_items)
    return None


def process_recipes(
    catalog: Catalog,
    deals: list[Deal],
    *,
    rng: random.Random,
    tables: PlannerTables | None = None,
    settings: PlannerSettings | None = None,
    pantry_items: Iterable[str] | None = None,
    preferences: Preferences | None = None,
) -> list[ProcessedRecipe]:
    """Cost every usable recipe in the catalog."""
    stores = shopping_stores(catalog.stores, preferences)
    processed = []
    for recipe in catalog.recipes:
        if not recipe.title or not recipe.ingredients_text.strip():
            continue
        result = process_recipe(
            recipe,
            deals,
            stores,
            rng=rng,
            tables=tables,
            settings=settings,
            pantry_items=pantry_items,
        )
        if result.matched_ingredients:
            processed.append(result)
    return processed


def build_summary(days: int, deal_percentage: int, store_count: int) -> str:
    return (
        f"Smart {days}-dages madplan med {deal_percentage}% tilbuds-match fra "
        f"{store_count} butikskæder og skjulte sundhedsopgraderinger"
    )


def generate_plan(
    catalog: Catalog,
    family_size: int,
    budget: float,
    days: int,
    preferences: Preferences | dict[str, Any] | None = None,
    *,
    rng: random.Random | None = None,
    settings: PlannerSettings | None = None,
    tables: PlannerTables | None = None,
    pantry_items: Iterable[str] | None = None,
) -> MealPlan:
    """
    Generate a meal plan from the current deals and recipes.

    Args:
        catalog: Deal and recipe snapshot
        family_size: People to cook for
        budget: Budget in DKK
        days: Number of days to plan
        preferences: Preferences or request dict (organic, lessMeat, preferredStores)
        rng: Random source; defaults to one seeded from settings.seed
        settings: Planner settings (defaults are used when None)
        tables: Synonym, price estimate and stealth upgrade tables
        pantry_items: Staples to leave out of matching (None keeps everything
            unless settings.exclude_pantry is set)

    Returns:
        Fully populated MealPlan with exactly ``days`` days

    Raises:
        InvalidInputError: If family_size, budget or days is invalid
        EmptyCatalogError: If no recipe can be planned
    """
    validate_request(family_size, budget, days)

    settings = settings or PlannerSettings()
    tables = tables or PlannerTables()
    if isinstance(preferences, dict) or preferences is None:
        preferences = Preferences.from_dict(preferences)
    rng = rng if rng is not None else random.Random(settings.seed)

    deals = filter_deals(catalog.deals, preferences)
    logger.info(
        "Generating %d-day meal plan for %d people, budget %.2f kr, %d deals from %d stores",
        days,
        family_size,
        budget,
        len(deals),
        len(catalog.stores),
    )

    processed = process_recipes(
        catalog,
        deals,
        rng=rng,
        tables=tables,
        settings=settings,
        pantry_items=_resolve_pantry(settings, pantry_items),
        preferences=preferences,
    )
    if not processed:
        raise EmptyCatalogError("Cannot generate meal plan: no usable recipes in the catalog")

    selected = select_recipes(processed, days, rng, cost_ceiling=settings.cost_ceiling)

    meal_plan_days: list[MealPlanDay] = []
    all_stores: list[str] = []
    for day_number, choice in enumerate(selected, 1):
        stores = _ordered_stores(choice.matched_ingredients)
        for store in stores:
            if store not in all_stores:
                all_stores.append(store)

        meal_plan_days.append(
            MealPlanDay(
                day=day_number,
                recipe_title=choice.recipe.title,
                servings=family_size,
                ingredients=list(choice.matched_ingredients),
                cost=choice.cost,
                deal_match_count=choice.deal_match_count,
                stealth_upgrade=choice.stealth_upgrade,
                stores_used=stores,
                instructions=list(choice.instructions),
                source=choice.recipe.source,
            )
        )

    total_cost = round(sum(day.cost for day in meal_plan_days), 2)
    total_deal_matches = sum(day.deal_match_count for day in meal_plan_days)
    total_ingredients = sum(len(day.ingredients) for day in meal_plan_days)
    deal_percentage = (
        round(100 * total_deal_matches / total_ingredients) if total_ingredients else 0
    )

    plan = MealPlan(
        meal_plan_days=meal_plan_days,
        total_cost=total_cost,
        total_deal_matches=total_deal_matches,
        total_ingredients=total_ingredients,
        shopping_list=build_shopping_list(meal_plan_days),
        savings=round(budget - total_cost, 2),
        stores_used=all_stores,
        summary=build_summary(days, deal_percentage, len(all_stores)),
        deal_percentage=deal_percentage,
        family_size=family_size,
        budget=budget,
        deal_count=len(deals),
        generated_at=datetime.now().isoformat(),
    )

    logger.info(
        "Generated %d-day plan: %.2f kr, %d/%d ingredients on sale across %d stores",
        days,
        total_cost,
        total_deal_matches,
        total_ingredients,
        len(all_stores),
    )
    return plan


def recommend_recipes(
    catalog: Catalog,
    limit: int = 6,
    min_match_score: int = 40,
    preferences: Preferences | None = None,
    *,
    rng: random.Random | None = None,
    settings: PlannerSettings | None = None,
    tables: PlannerTables | None = None,
) -> list[Recommendation]:
    """
    Rank recipes by the share of their ingredients that are on sale.

    Args:
        catalog: Deal and recipe snapshot
        limit: Maximum recommendations
        min_match_score: Minimum percentage of ingredients on sale
        preferences: Optional deal preferences

    Returns:
        Recommendations, best first
    """
    settings = settings or PlannerSettings()
    rng = rng if rng is not None else random.Random(settings.seed)
    deals = filter_deals(catalog.deals, preferences)

    processed = process_recipes(
        catalog, deals, rng=rng, tables=tables, settings=settings, preferences=preferences
    )

    recommendations = []
    for item in processed:
        total = len(item.matched_ingredients)
        matched = item.deal_match_count
        score = round(100 * matched / total)
        if score < min_match_score:
            continue
        real_stores = {store for store in item.stores_used if store != UNASSIGNED_STORE}
        recommendations.append(
            Recommendation(
                recipe=item.recipe,
                match_score=score,
                matched_ingredients=matched,
                total_ingredients=total,
                stores_used=len(real_stores),
            )
        )

    recommendations.sort(key=lambda r: (-r.match_score, -r.stores_used))
    return recommendations[:limit]
