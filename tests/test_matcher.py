"""Tests for ingredient to deal matching."""

import random

import pytest

from madplan.deals import Deal
from madplan.distribution import new_store_usage
from madplan.matcher import (
    UNASSIGNED_STORE,
    DealInfo,
    MatchedIngredient,
    assign_fallback_store,
    deal_matches,
    deal_ratio,
    fuzzy_similarity,
    match_ingredient,
    match_ingredients,
    matching_deals,
    score_deal,
    select_best_deal,
    synonym_match,
)
from madplan.recipe_parser import Ingredient


def make_ingredient(name: str) -> Ingredient:
    return Ingredient(original_text=name, name=name)


def make_deal(name: str, price: str, store: str, category: str = "Pantry") -> Deal:
    return Deal(name=name, amount_text="", price_text=price, category=category, store=store)


# ============================================================================
# Deal Matching Tests
# ============================================================================


class TestDealMatches:
    """Tests for deal_matches function."""

    def test_substring_ingredient_in_deal(self):
        assert deal_matches("mozzarella", "Galbani mozzarella")

    def test_substring_deal_in_ingredient(self):
        assert deal_matches("hakket oksekød 8-12%", "hakket oksekød")

    def test_case_insensitive(self):
        assert deal_matches("Kyllingebryst", "DANSK KYLLINGEBRYST")

    def test_first_word_prefix(self):
        assert deal_matches("hakket kød", "Hakket oksekød 4-7%")

    def test_short_first_word_ignored(self):
        # "is" would otherwise hit "rispapir"
        assert not deal_matches("is vanilje", "Rispapir")

    def test_synonym_key_in_ingredient(self):
        assert deal_matches("kylling", "Chicken breast")

    def test_synonym_key_in_deal(self):
        assert deal_matches("chicken breast", "Dansk kylling")

    def test_no_match(self):
        assert not deal_matches("lasagneplader", "Luftig skyr")

    def test_empty_names(self):
        assert not deal_matches("", "Skyr")
        assert not deal_matches("skyr", "  ")

    def test_custom_synonym_table(self):
        table = {"aubergine": ["eggplant"]}
        assert deal_matches("aubergine", "Eggplant XL", synonyms=table)
        assert not deal_matches("kylling", "Chicken breast", synonyms=table)

    def test_fuzzy_off_by_default(self):
        assert not deal_matches("broccoli", "Brocoli")

    def test_fuzzy_when_enabled(self):
        assert deal_matches("broccoli", "Brocoli", fuzzy_threshold=60)


class TestSynonymMatch:
    """Tests for synonym_match function."""

    def test_forward(self):
        assert synonym_match("mælk", "Arla letmælk")

    def test_backward(self):
        assert synonym_match("hakket", "Oksekød 500g")

    def test_unrelated(self):
        assert not synonym_match("gulerod", "Skyr")


class TestFuzzySimilarity:
    """Tests for fuzzy_similarity function."""

    def test_identical(self):
        assert fuzzy_similarity("skyr", "Skyr") == 100.0

    def test_unrelated_is_low(self):
        assert fuzzy_similarity("skyr", "opvasketabs") < 60


class TestMatchingDeals:
    """Tests for matching_deals function."""

    def test_keeps_catalog_order(self):
        deals = [
            make_deal("Gule løg", "10", "Coop"),
            make_deal("Skyr", "8", "Lidl"),
            make_deal("Rødløg", "12", "Netto"),
        ]
        result = matching_deals("løg", deals)
        assert [d.store for d in result] == ["Coop", "Netto"]


# ============================================================================
# Scoring Tests
# ============================================================================


class TestScoring:
    """Tests for deal scoring and selection."""

    def test_score_weights(self):
        deal = make_deal("Løg", "5.00", "Coop")
        usage = new_store_usage(["Coop"])
        assert score_deal(deal, usage) == pytest.approx(0.6 * 1.0 + 0.4 * (1 / 5))

    def test_zero_price_scores_neutral(self):
        deal = make_deal("Løg", "Se pris", "Coop")
        assert score_deal(deal, {"Coop": 1}) == pytest.approx(0.3)

    def test_cheaper_wins_when_usage_equal(self):
        deals = [make_deal("Løg", "7.00", "Netto"), make_deal("Løg", "5.00", "Coop")]
        best = select_best_deal(deals, new_store_usage(["Coop", "Netto"]))
        assert best.store == "Coop"

    def test_less_used_store_wins(self):
        deals = [make_deal("Løg", "5.00", "Coop"), make_deal("Løg", "7.00", "Netto")]
        best = select_best_deal(deals, {"Coop": 1, "Netto": 0})
        assert best.store == "Netto"

    def test_tie_goes_to_first(self):
        deals = [make_deal("Løg", "5.00", "Coop"), make_deal("Løg", "5.00", "Netto")]
        best = select_best_deal(deals, new_store_usage(["Coop", "Netto"]))
        assert best.store == "Coop"

    def test_no_candidates(self):
        assert select_best_deal([], {}) is None


class TestFallbackStore:
    """Tests for assign_fallback_store function."""

    def test_real_store_when_probability_one(self):
        usage = {"Coop": 2, "Netto": 0}
        store = assign_fallback_store(usage, random.Random(1), real_store_probability=1.0)

        assert store == "Netto"
        assert usage["Netto"] == 1

    def test_unassigned_when_probability_zero(self):
        usage = {"Coop": 0}
        store = assign_fallback_store(usage, random.Random(1), real_store_probability=0.0)

        assert store == UNASSIGNED_STORE
        assert usage == {"Coop": 0}

    def test_unassigned_without_stores(self):
        assert assign_fallback_store({}, random.Random(1), 1.0) == UNASSIGNED_STORE


# ============================================================================
# match_ingredient Tests
# ============================================================================


class TestMatchIngredient:
    """Tests for match_ingredient function."""

    def test_chicken_breast_at_netto(self):
        deals = [make_deal("Chicken breast", "29.00", "Netto", "Meat & Poultry")]
        usage = new_store_usage(["Netto"])

        result = match_ingredient(make_ingredient("kylling"), deals, usage)

        assert result.price == 29.0
        assert result.on_sale is True
        assert result.store == "Netto"
        assert result.deal_info == DealInfo("29.00", "Chicken breast", "Meat & Poultry")

    def test_match_bumps_store_usage(self):
        deals = [make_deal("Skyr", "8.00", "Lidl")]
        usage = new_store_usage(["Lidl", "Coop"])

        match_ingredient(make_ingredient("skyr"), deals, usage)

        assert usage == {"Lidl": 1, "Coop": 0}

    def test_unmatched_is_estimated(self):
        usage = new_store_usage(["Coop"])
        result = match_ingredient(
            make_ingredient("lasagneplader"),
            [],
            usage,
            rng=random.Random(0),
            real_store_probability=0.0,
        )

        assert result.price == 20.0
        assert result.on_sale is False
        assert result.store == UNASSIGNED_STORE
        assert result.deal_info is None

    def test_zero_priced_match_is_estimated(self):
        deals = [make_deal("Hvedemel", "Se pris", "Coop")]
        usage = new_store_usage(["Coop"])

        result = match_ingredient(make_ingredient("hvedemel"), deals, usage)

        assert result.on_sale is False
        assert result.price == 8.0
        assert result.store == "Coop"
        assert result.deal_info is not None
        assert usage["Coop"] == 1

    def test_custom_price_estimates(self):
        result = match_ingredient(
            make_ingredient("trøffel"),
            [],
            {},
            rng=random.Random(0),
            price_estimates={"trøffel": 99.0},
        )
        assert result.price == 99.0

    def test_keeps_ingredient_text(self):
        ingredient = Ingredient(original_text="2 løg", name="løg", quantity_text="2")
        result = match_ingredient(ingredient, [], {}, rng=random.Random(0))

        assert result.original_text == "2 løg"
        assert result.quantity_text == "2"


class TestMatchIngredients:
    """Tests for match_ingredients and deal_ratio."""

    def test_spreads_across_stores(self):
        deals = [make_deal("Løg", "5.00", "Coop"), make_deal("Løg", "5.50", "Netto")]
        usage = new_store_usage(["Coop", "Netto"])
        ingredients = [make_ingredient("løg"), make_ingredient("løg")]

        result = match_ingredients(ingredients, deals, usage, rng=random.Random(0))

        assert [r.store for r in result] == ["Coop", "Netto"]
        assert usage == {"Coop": 1, "Netto": 1}

    def test_prices_never_negative(self, sample_catalog, rng):
        ingredients = [make_ingredient(n) for n in ("kylling", "salat", "mozzarella", "ris")]
        usage = new_store_usage(sample_catalog.stores)

        result = match_ingredients(ingredients, list(sample_catalog.deals), usage, rng=rng)

        assert all(r.price >= 0 for r in result)

    def test_deal_ratio(self):
        items = [
            MatchedIngredient(original_text="a", name="a", price=1.0, on_sale=True),
            MatchedIngredient(original_text="b", name="b", price=1.0, on_sale=False),
        ]
        assert deal_ratio(items) == 0.5
        assert deal_ratio([]) == 0.0

    def test_to_dict(self):
        item = MatchedIngredient(
            original_text="løg",
            name="løg",
            price=5.0,
            on_sale=True,
            store="Coop",
            deal_info=DealInfo("5.00", "Løg", "Pantry"),
        )
        data = item.to_dict()

        assert data["item"] == "løg"
        assert data["onSale"] is True
        assert data["dealInfo"]["dealName"] == "Løg"
