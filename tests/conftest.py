"""Shared fixtures for madplan tests."""

import random

import pytest

from madplan.catalog import Catalog, sample_deals, sample_recipes
from madplan.deals import Deal
from madplan.matcher import MatchedIngredient
from madplan.recipe_parser import Recipe


@pytest.fixture
def rng():
    """Seeded random source so matching and selection are reproducible."""
    return random.Random(1234)


@pytest.fixture
def sample_catalog() -> Catalog:
    """The built-in sample deals and recipes."""
    return Catalog.from_iterables(sample_deals(), sample_recipes())


@pytest.fixture
def mixed_deals() -> list[Deal]:
    """Deals across stores and categories, including non-food."""
    return [
        Deal("Hakket oksekød 8-12%", "500g", "45.00 kr.", "Meat & Poultry", "Coop"),
        Deal("Økologisk sødmælk", "1L", "12,95 kr.", "Organic", "Netto"),
        Deal("Gule løg", "1kg", "10.-", "Fruits & Vegetables", "REMA 1000"),
        Deal("Flåede tomater", "400g", "5.00", "Pantry", "Lidl"),
        Deal("Økologiske æg", "10 stk", "35.00", "Dairy & Eggs", "Føtex"),
        Deal("Opvasketabs", "40 stk", "49.00", "Household", "Netto"),
        Deal("Vaskepulver", "2kg", "69.00", "Cleaning", "Coop"),
    ]


@pytest.fixture
def empty_recipe_catalog() -> Catalog:
    """Deals but no recipes."""
    return Catalog.from_iterables(sample_deals(), [])


@pytest.fixture
def make_recipe():
    """Factory for small recipes."""

    def _make(title: str, ingredients: str, recipe_id: str | None = None) -> Recipe:
        return Recipe(
            id=recipe_id or title.lower().replace(" ", "_"),
            title=title,
            ingredients_text=ingredients,
            servings=4,
            source="Test",
        )

    return _make


@pytest.fixture
def make_matched():
    """Factory for matched ingredients."""

    def _make(
        name: str,
        price: float,
        store: str = "Coop",
        on_sale: bool = False,
    ) -> MatchedIngredient:
        return MatchedIngredient(
            original_text=name,
            name=name,
            price=price,
            on_sale=on_sale,
            store=store,
        )

    return _make
