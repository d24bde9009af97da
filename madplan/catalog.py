"""Deal and recipe catalog snapshots loaded from CSV files."""

import csv
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .deals import Deal, list_stores
from .recipe_parser import Recipe

logger = logging.getLogger(__name__)

# Weekly deal exports, one file per chain
STORE_FILES: dict[str, str] = {
    "Coop": "TilbudCoop.csv",
    "Lidl": "TilbudLidl.csv",
    "Netto": "TilbudNetto.csv",
    "REMA 1000": "TilbudRema.csv",
    "Føtex": "TilbudFoetex.csv",
}

RECIPE_FILES: dict[str, str] = {
    "Arla": "arla_recipes.csv",
    "Valdemarsro": "valdemarsro_recipes.csv",
}


class CatalogError(Exception):
    """Exception raised when a catalog cannot be loaded."""

    pass


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of deals and recipes."""

    deals: tuple[Deal, ...] = field(default_factory=tuple)
    recipes: tuple[Recipe, ...] = field(default_factory=tuple)

    @property
    def stores(self) -> list[str]:
        """Stores that have deals, in first-seen order."""
        return list_stores(self.deals)

    @classmethod
    def from_iterables(cls, deals: Iterable[Deal], recipes: Iterable[Recipe]) -> "Catalog":
        return cls(deals=tuple(deals), recipes=tuple(recipes))


def sample_deals() -> list[Deal]:
    """Small built-in deal set for demos and tests."""
    return [
        Deal("Hakket oksekød 4-7%", "500g", "49.00 kr.", "Meat & Poultry", "Coop"),
        Deal("Galbani mozzarella", "125g", "16.00 kr.", "Dairy & Eggs", "Coop"),
        Deal("Økologiske gulerødder", "1kg", "10.-", "Organic", "REMA 1000"),
        Deal("Dansk kyllingebryst", "400g", "29.00 kr.", "Meat & Poultry", "Netto"),
        Deal("Luftig skyr", "150g", "8.00 kr.", "Dairy & Eggs", "Lidl"),
    ]


def sample_recipes() -> list[Recipe]:
    """Small built-in recipe set for demos and tests."""
    return [
        Recipe(
            id="lasagne",
            title="Lasagne",
            ingredients_text="Hakket oksekød, mozzarella, lasagneplader, tomatpuré",
            servings=4,
            source="Arla",
        ),
        Recipe(
            id="boller_i_karry",
            title="Boller i karry",
            ingredients_text="Hakket kød, løg, karry, mælk, ris",
            servings=4,
            source="Arla",
        ),
        Recipe(
            id="kyllingebryst_med_salat",
            title="Kyllingebryst med salat",
            ingredients_text="Kyllingebryst, salat, yoghurt, urter",
            servings=4,
            source="Valdemarsro",
        ),
    ]


def load_deals_csv(path: Path, store: str) -> list[Deal]:
    """Read one chain's deal CSV (Category, Deal Name, Amount, Price)."""
    with open(path, encoding="utf-8-sig", newline="") as f:
        rows = list(csv.DictReader(f))

    deals = [Deal.from_dict(row, store=store) for row in rows]
    return [deal for deal in deals if deal.name]


def load_recipes_csv(path: Path, source: str) -> list[Recipe]:
    """Read a recipe CSV (title, ingredients, persons/servings, optional id)."""
    with open(path, encoding="utf-8-sig", newline="") as f:
        rows = list(csv.DictReader(f))

    recipes = []
    for row in rows:
        row = {**row, "source": source}
        recipe = Recipe.from_dict(row)
        if recipe.title:
            recipes.append(recipe)
    return recipes


def load_catalog(data_dir: Path | None = None) -> Catalog:
    """
    Load all known deal and recipe files from a directory.

    Missing files are skipped. Without any deals or recipes the built-in
    samples are used, so a catalog is always usable for planning.

    Args:
        data_dir: Directory holding the CSV files (None uses samples only)

    Returns:
        New Catalog snapshot

    Raises:
        CatalogError: If data_dir is given but is not a directory
    """
    deals: list[Deal] = []
    recipes: list[Recipe] = []

    if data_dir is not None:
        if not data_dir.is_dir():
            raise CatalogError(f"Data directory not found: {data_dir}")

        for store, filename in STORE_FILES.items():
            path = data_dir / filename
            if not path.exists():
                logger.info("%s deal file %s not found, skipping", store, filename)
                continue
            try:
                store_deals = load_deals_csv(path, store)
            except (OSError, csv.Error, UnicodeDecodeError) as e:
                logger.warning("Failed to read %s: %s", path, e)
                continue
            logger.info("Loaded %d deals from %s", len(store_deals), store)
            deals.extend(store_deals)

        for source, filename in RECIPE_FILES.items():
            path = data_dir / filename
            if not path.exists():
                logger.info("%s recipe file %s not found, skipping", source, filename)
                continue
            try:
                source_recipes = load_recipes_csv(path, source)
            except (OSError, csv.Error, UnicodeDecodeError) as e:
                logger.warning("Failed to read %s: %s", path, e)
                continue
            logger.info("Loaded %d recipes from %s", len(source_recipes), source)
            recipes.extend(source_recipes)

    if not deals:
        logger.warning("No deal files found, using sample deals")
        deals = sample_deals()
    if not recipes:
        logger.warning("No recipe files found, using sample recipes")
        recipes = sample_recipes()

    catalog = Catalog.from_iterables(deals, recipes)
    logger.info(
        "Catalog ready with %d deals from %d stores and %d recipes",
        len(catalog.deals),
        len(catalog.stores),
        len(catalog.recipes),
    )
    return catalog


class CatalogHolder:
    """
    Holds the current catalog snapshot.

    Readers take one snapshot per request; ``reload`` builds a new snapshot
    and swaps it in, never touching the one readers hold.
    """

    def __init__(self, data_dir: Path | None = None, catalog: Catalog | None = None):
        self.data_dir = data_dir
        self._lock = threading.Lock()
        self._catalog = catalog if catalog is not None else load_catalog(data_dir)

    def snapshot(self) -> Catalog:
        return self._catalog

    def reload(self) -> Catalog:
        with self._lock:
            catalog = load_catalog(self.data_dir)
            self._catalog = catalog
        return catalog
