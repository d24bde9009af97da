"""madplan - Deal-driven meal plan generator for Danish grocery chains."""

__version__ = "1.0.0"

from .catalog import Catalog, CatalogError, CatalogHolder, load_catalog
from .deals import Deal, Preferences, filter_deals
from .matcher import MatchedIngredient, match_ingredient
from .planner import (
    EmptyCatalogError,
    InvalidInputError,
    MealPlan,
    MealPlanDay,
    PlanningError,
    generate_plan,
    recommend_recipes,
)
from .prices import parse_price
from .recipe_parser import Ingredient, Recipe, tokenize_ingredients

__all__ = [
    "Catalog",
    "CatalogError",
    "CatalogHolder",
    "load_catalog",
    "Deal",
    "Preferences",
    "filter_deals",
    "Ingredient",
    "Recipe",
    "tokenize_ingredients",
    "MatchedIngredient",
    "match_ingredient",
    "parse_price",
    "MealPlan",
    "MealPlanDay",
    "generate_plan",
    "recommend_recipes",
    "PlanningError",
    "InvalidInputError",
    "EmptyCatalogError",
]
