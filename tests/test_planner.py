"""Tests for meal plan generation."""

import json
import random

import pytest

from madplan.catalog import Catalog, sample_deals
from madplan.config import PlannerSettings
from madplan.deals import Deal, Preferences
from madplan.matcher import UNASSIGNED_STORE
from madplan.planner import (
    DEFAULT_INSTRUCTIONS,
    DEFAULT_STEALTH_UPGRADE,
    STEALTH_UPGRADES,
    EmptyCatalogError,
    InvalidInputError,
    PlannerTables,
    PlanningError,
    basic_instructions,
    find_stealth_upgrade,
    generate_plan,
    process_recipe,
    recommend_recipes,
    validate_request,
)
from madplan.recipe_parser import Recipe


def plan_without_timestamp(plan) -> dict:
    data = plan.to_dict()
    data.pop("generatedAt")
    return data


# ============================================================================
# Stealth Upgrades and Instructions
# ============================================================================


class TestStealthUpgrade:
    """Tests for find_stealth_upgrade function."""

    def test_keyword_in_title(self):
        assert find_stealth_upgrade("Boller i karry") == STEALTH_UPGRADES["boller i karry"]

    def test_longest_keyword_wins(self):
        assert find_stealth_upgrade("Pasta carbonara") == STEALTH_UPGRADES["carbonara"]

    def test_case_insensitive(self):
        assert find_stealth_upgrade("TOMATSUPPE") == STEALTH_UPGRADES["suppe"]

    def test_fallback(self):
        assert find_stealth_upgrade("Pandekager") == DEFAULT_STEALTH_UPGRADE

    def test_custom_table(self):
        assert find_stealth_upgrade("Pandekager", {"pande": "tip"}) == "tip"


class TestBasicInstructions:
    """Tests for basic_instructions function."""

    def test_lasagne(self):
        assert basic_instructions("Lasagne")[-1] == "Bag ved 180°C i 45 min"

    def test_frikadeller(self):
        assert basic_instructions("Frikadeller med kartofler")[0] == (
            "Bland alle ingredienser til en smidig masse"
        )

    def test_fallback(self):
        assert basic_instructions("Pandekager") == DEFAULT_INSTRUCTIONS

    def test_returns_copy(self):
        steps = basic_instructions("Pandekager")
        steps.append("extra")
        assert basic_instructions("Pandekager") == DEFAULT_INSTRUCTIONS


# ============================================================================
# Validation
# ============================================================================


class TestValidateRequest:
    """Tests for validate_request function."""

    def test_valid(self):
        validate_request(4, 500, 7)
        validate_request(1, 99.5, 1)

    @pytest.mark.parametrize(
        "family_size,budget,days",
        [
            (0, 500, 7),
            (4, 0, 7),
            (4, 500, 0),
            (-1, 500, 7),
            (4, -10.0, 7),
            (None, 500, 7),
            ("4", 500, 7),
            (True, 500, 7),
            (4, 500, 2.5),
            (4, float("nan"), 7),
        ],
    )
    def test_invalid(self, family_size, budget, days):
        with pytest.raises(InvalidInputError):
            validate_request(family_size, budget, days)

    def test_message_names_every_problem(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_request(0, 0, 0)

        message = str(exc_info.value)
        assert "familySize" in message
        assert "budget" in message
        assert "days" in message

    def test_is_planning_error(self):
        assert issubclass(InvalidInputError, PlanningError)
        assert issubclass(EmptyCatalogError, PlanningError)


# ============================================================================
# Recipe Processing
# ============================================================================


class TestProcessRecipe:
    """Tests for process_recipe function."""

    def test_costs_recipe(self, make_recipe, rng):
        recipe = make_recipe("Kyllingebryst med salat", "Kyllingebryst, yoghurt")
        deals = sample_deals()

        processed = process_recipe(recipe, deals, ["Coop", "Netto", "Lidl"], rng=rng)

        # Netto kyllingebryst 29 + Lidl skyr 8
        assert processed.cost == 37.0
        assert processed.deal_ratio == 1.0
        assert processed.stores_used == frozenset({"Netto", "Lidl"})
        assert processed.protein_category == "chicken"
        assert processed.stealth_upgrade == STEALTH_UPGRADES["kyllingebryst"]

    def test_pantry_items_skipped(self, make_recipe, rng):
        recipe = make_recipe("Suppe", "løg, salt, peber")

        processed = process_recipe(recipe, [], [], rng=rng, pantry_items={"salt", "peber"})

        assert [i.name for i in processed.matched_ingredients] == ["løg"]

    def test_custom_tables(self, make_recipe, rng):
        recipe = make_recipe("Pandekager", "trøffel")
        tables = PlannerTables(price_estimates={"trøffel": 99.0}, stealth_upgrades={})

        processed = process_recipe(recipe, [], [], rng=rng, tables=tables)

        assert processed.cost == 99.0
        assert processed.stealth_upgrade == DEFAULT_STEALTH_UPGRADE


# ============================================================================
# generate_plan
# ============================================================================


class TestGeneratePlan:
    """Tests for generate_plan function."""

    def test_returns_requested_days(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 7, rng=rng)

        assert plan.days == 7
        assert [d.day for d in plan.meal_plan_days] == list(range(1, 8))

    def test_seven_days_from_three_recipes(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 7, rng=rng)

        titles = {d.recipe_title for d in plan.meal_plan_days}
        assert titles <= {r.title for r in sample_catalog.recipes}
        assert len(plan.meal_plan_days) == 7

    def test_servings_follow_family_size(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 3, 500, 2, rng=rng)
        assert all(d.servings == 3 for d in plan.meal_plan_days)

    def test_prices_non_negative(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 5, rng=rng)

        for day in plan.meal_plan_days:
            assert day.cost >= 0
            assert all(i.price >= 0 for i in day.ingredients)

    def test_totals(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 5, rng=rng)

        assert plan.total_cost == pytest.approx(sum(d.cost for d in plan.meal_plan_days))
        assert plan.total_ingredients == sum(len(d.ingredients) for d in plan.meal_plan_days)
        assert plan.total_deal_matches == sum(d.deal_match_count for d in plan.meal_plan_days)
        assert plan.savings == pytest.approx(500 - plan.total_cost)
        assert plan.deal_percentage == round(
            100 * plan.total_deal_matches / plan.total_ingredients
        )

    def test_stores_used_first_seen(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 5, rng=rng)

        expected: list[str] = []
        for day in plan.meal_plan_days:
            for ingredient in day.ingredients:
                if ingredient.store not in expected:
                    expected.append(ingredient.store)
        assert plan.stores_used == expected

    def test_summary(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 3, rng=rng)

        assert plan.summary == (
            f"Smart 3-dages madplan med {plan.deal_percentage}% tilbuds-match fra "
            f"{len(plan.stores_used)} butikskæder og skjulte sundhedsopgraderinger"
        )

    def test_shopping_list_matches_days(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 4, rng=rng)

        listed = sum(
            item.occurrence_count for items in plan.shopping_list.values() for item in items
        )
        assert listed == plan.total_ingredients
        assert all(items for items in plan.shopping_list.values())

    def test_same_seed_same_plan(self, sample_catalog):
        first = generate_plan(sample_catalog, 4, 500, 7, rng=random.Random(42))
        second = generate_plan(sample_catalog, 4, 500, 7, rng=random.Random(42))

        assert plan_without_timestamp(first) == plan_without_timestamp(second)

    def test_seed_from_settings(self, sample_catalog):
        settings = PlannerSettings(seed=7)

        first = generate_plan(sample_catalog, 4, 500, 7, settings=settings)
        second = generate_plan(sample_catalog, 4, 500, 7, settings=settings)

        assert plan_without_timestamp(first) == plan_without_timestamp(second)

    def test_preferences_dict(self, sample_catalog, rng):
        plan = generate_plan(
            sample_catalog, 4, 500, 3, {"preferredStores": ["Netto"]}, rng=rng
        )

        for day in plan.meal_plan_days:
            for ingredient in day.ingredients:
                if ingredient.on_sale:
                    assert ingredient.store == "Netto"
        assert plan.deal_count == 1

    def test_less_meat(self, sample_catalog, rng):
        plan = generate_plan(sample_catalog, 4, 500, 3, Preferences(less_meat=True), rng=rng)

        for day in plan.meal_plan_days:
            for ingredient in day.ingredients:
                if ingredient.deal_info is not None:
                    assert ingredient.deal_info.category != "Meat & Poultry"

    def test_no_deals_still_plans(self, rng):
        recipe = Recipe(id="r", title="Suppe", ingredients_text="løg, gulerod")
        catalog = Catalog.from_iterables([], [recipe])

        plan = generate_plan(catalog, 2, 100, 2, rng=rng)

        assert plan.total_deal_matches == 0
        assert plan.deal_percentage == 0
        assert all(i.store == UNASSIGNED_STORE for d in plan.meal_plan_days for i in d.ingredients)

    def test_preferred_stores_bound_every_purchase(self):
        deals = [
            Deal("Dansk kylling", "1 stk", "45.00", "Meat & Poultry", "Netto"),
            Deal("Iceberg salat", "1 stk", "8.00", "Fruits & Vegetables", "Lidl"),
            Deal("Citroner", "3 stk", "10.00", "Fruits & Vegetables", "Coop"),
        ]
        recipe = Recipe(
            id="kylling", title="Kylling", ingredients_text="kylling, salat, urter, citron, agurk"
        )
        catalog = Catalog.from_iterables(deals, [recipe])

        plan = generate_plan(
            catalog, 4, 500, 3, {"preferredStores": ["Netto"]}, rng=random.Random(1)
        )

        assert set(plan.stores_used) <= {"Netto", UNASSIGNED_STORE}
        for day in plan.meal_plan_days:
            assert {i.store for i in day.ingredients} <= {"Netto", UNASSIGNED_STORE}

    def test_no_preferred_stores_uses_all(self):
        deals = [
            Deal("Dansk kylling", "1 stk", "45.00", "Meat & Poultry", "Netto"),
            Deal("Citroner", "3 stk", "10.00", "Fruits & Vegetables", "Coop"),
        ]
        recipe = Recipe(id="kylling", title="Kylling", ingredients_text="kylling, citron")
        catalog = Catalog.from_iterables(deals, [recipe])

        plan = generate_plan(catalog, 4, 500, 1, rng=random.Random(1))

        assert {"Netto", "Coop"} <= set(plan.stores_used)

    def test_pantry_from_settings(self, rng, monkeypatch, tmp_path):
        pantry_file = tmp_path / "pantry.json"
        monkeypatch.setattr("madplan.planner.PANTRY_FILE", pantry_file)
        recipe = Recipe(id="r", title="Suppe", ingredients_text="løg, salt")
        catalog = Catalog.from_iterables([], [recipe])

        plan = generate_plan(
            catalog, 2, 100, 1, rng=rng, settings=PlannerSettings(exclude_pantry=True)
        )

        assert [i.name for i in plan.meal_plan_days[0].ingredients] == ["løg"]

    def test_pantry_from_settings_reads_user_items(self, rng, monkeypatch, tmp_path):
        pantry_file = tmp_path / "pantry.json"
        pantry_file.write_text(
            json.dumps({"user_items": ["kapers"], "excluded_defaults": ["salt"]}),
            encoding="utf-8",
        )
        monkeypatch.setattr("madplan.planner.PANTRY_FILE", pantry_file)
        recipe = Recipe(id="r", title="Suppe", ingredients_text="løg, salt, kapers")
        catalog = Catalog.from_iterables([], [recipe])

        plan = generate_plan(
            catalog, 2, 100, 1, rng=rng, settings=PlannerSettings(exclude_pantry=True)
        )

        assert [i.name for i in plan.meal_plan_days[0].ingredients] == ["løg", "salt"]

    def test_invalid_input(self, sample_catalog):
        with pytest.raises(InvalidInputError):
            generate_plan(sample_catalog, 0, 500, 7)

    def test_empty_catalog(self, empty_recipe_catalog):
        with pytest.raises(EmptyCatalogError):
            generate_plan(empty_recipe_catalog, 4, 500, 7)

    def test_recipes_without_ingredients_ignored(self):
        catalog = Catalog.from_iterables(
            sample_deals(), [Recipe(id="r", title="Tom", ingredients_text="  ")]
        )
        with pytest.raises(EmptyCatalogError):
            generate_plan(catalog, 4, 500, 7)

    def test_to_dict_keys(self, sample_catalog, rng):
        data = generate_plan(sample_catalog, 4, 500, 2, rng=rng).to_dict()

        assert set(data) >= {
            "mealPlan",
            "totalCost",
            "totalDealMatches",
            "totalIngredients",
            "shoppingList",
            "savings",
            "storesUsed",
            "summary",
        }
        day = data["mealPlan"][0]
        assert {"day", "recipe", "servings", "ingredients", "cost", "dealMatches"} <= set(day)


# ============================================================================
# Recommendations
# ============================================================================


class TestRecommendRecipes:
    """Tests for recommend_recipes function."""

    def test_filters_by_score(self, sample_catalog, rng):
        recommendations = recommend_recipes(sample_catalog, rng=rng)

        # Lasagne and kyllingebryst have half their ingredients on sale
        assert {r.recipe.title for r in recommendations} == {
            "Lasagne",
            "Kyllingebryst med salat",
        }
        assert all(r.match_score == 50 for r in recommendations)

    def test_limit(self, sample_catalog, rng):
        assert len(recommend_recipes(sample_catalog, limit=1, rng=rng)) == 1

    def test_zero_threshold_includes_all(self, sample_catalog, rng):
        recommendations = recommend_recipes(sample_catalog, min_match_score=0, rng=rng)
        assert len(recommendations) == 3
        assert recommendations[-1].recipe.title == "Boller i karry"

    def test_stores_exclude_unassigned(self, rng):
        deal = Deal("Gule løg", "1kg", "10", "Fruits & Vegetables", "Coop")
        recipe = Recipe(id="r", title="Løgsuppe", ingredients_text="løg, fløde")
        catalog = Catalog.from_iterables([deal], [recipe])

        recommendations = recommend_recipes(
            catalog, rng=rng, settings=PlannerSettings(real_store_probability=0.0)
        )

        assert recommendations[0].stores_used == 1
        assert recommendations[0].match_score == 50
