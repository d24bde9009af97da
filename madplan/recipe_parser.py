"""Recipe records and ingredient list tokenizing."""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .pantry import is_pantry_item


@dataclass
class Ingredient:
    """A single ingredient fragment from a recipe's ingredient text."""

    original_text: str  # Fragment exactly as written
    name: str
    quantity_text: str = ""  # e.g. "500 g", "2", "" when absent

    def __str__(self) -> str:
        if self.quantity_text:
            return f"{self.quantity_text} {self.name}"
        return self.name


@dataclass(frozen=True)
class Recipe:
    """A recipe from the external recipe catalog."""

    id: str
    title: str
    ingredients_text: str
    servings: int = 4
    source: str = "Unknown"
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert recipe to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "ingredients": self.ingredients_text,
            "servings": self.servings,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recipe":
        """Create recipe from a catalog row (CSV or JSON)."""
        title = (data.get("title") or "").strip()
        servings = parse_servings(data.get("persons") or data.get("servings"))
        return cls(
            id=(data.get("id") or "").strip() or slugify(title),
            title=title,
            ingredients_text=data.get("ingredients") or "",
            servings=servings,
            source=data.get("source") or "Unknown",
        )


# Units that may follow a leading quantity
UNITS = {
    # Weight
    "g",
    "gr",
    "gram",
    "kg",
    # Volume
    "ml",
    "cl",
    "dl",
    "l",
    "liter",
    # Danish kitchen units
    "stk",
    "styk",
    "spsk",
    "tsk",
    "knsp",
    "fed",
    "bundt",
    "dåse",
    "dåser",
    "pakke",
    "pk",
    "ps",
    "skiver",
}

# Leading quantity, optionally a range ("2-3") and a glued unit ("500g")
_QUANTITY_PATTERN = re.compile(
    r"^(?P<qty>\d+(?:[.,]\d+)?(?:\s*[-–]\s*\d+(?:[.,]\d+)?)?)"
    r"\s*(?P<unit>[a-zA-ZæøåÆØÅ]+\.?)?\s*(?P<rest>.*)$"
)

# Commas between digits are decimal commas ("1,5 dl")
_SPLIT_PATTERN = re.compile(r";|(?<!\d),|,(?!\d)")


def slugify(text: str) -> str:
    """Lower-case a title and join its words with underscores."""
    return re.sub(r"\s+", "_", text.strip().lower())


def parse_servings(value: Any, default: int = 4) -> int:
    """Read a servings count from catalog data like "4" or "4 personer"."""
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    match = re.search(r"(\d+)", str(value or ""))
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return default


def split_quantity(fragment: str) -> tuple[str, str]:
    """
    Separate a leading quantity from an ingredient fragment.

    Returns:
        Tuple of (quantity_text, name). quantity_text is "" when the
        fragment does not start with a number.
    """
    text = fragment.strip()
    match = _QUANTITY_PATTERN.match(text)
    if not match:
        return "", text

    qty = match.group("qty")
    unit = match.group("unit") or ""
    rest = match.group("rest").strip()

    if unit and unit.lower().rstrip(".") not in UNITS:
        # The letters belong to the name ("2 løg")
        rest = f"{unit} {rest}".strip()
        unit = ""

    if not rest:
        # Only a number, nothing to buy
        return "", text

    quantity_text = f"{qty} {unit}".strip() if unit else qty
    return quantity_text, rest


def _clean_name(name: str) -> str:
    name = re.sub(r"\([^)]*\)", "", name)  # drop notes in parentheses
    name = re.sub(r"\s+", " ", name)
    return name.strip().strip(".:-").strip()


def tokenize_ingredients(
    ingredients_text: str,
    pantry_items: Iterable[str] | None = None,
) -> list[Ingredient]:
    """
    Split a free-text ingredient list into ingredient records.

    Fragments are separated by commas and semicolons. Each fragment keeps
    its original text; a leading quantity (with optional unit) is split off
    from the name.

    Args:
        ingredients_text: e.g. "500 g hakket oksekød, 2 løg; mozzarella"
        pantry_items: Optional vocabulary of staples to leave out. None keeps
            every fragment.

    Returns:
        List of Ingredient objects in text order
    """
    if not ingredients_text:
        return []

    vocabulary = set(pantry_items) if pantry_items is not None else None
    ingredients: list[Ingredient] = []

    for fragment in _SPLIT_PATTERN.split(ingredients_text):
        original = fragment.strip()
        if not original:
            continue

        quantity_text, name = split_quantity(original)
        name = _clean_name(name) or original

        if vocabulary and is_pantry_item(name, vocabulary):
            continue

        ingredients.append(Ingredient(original_text=original, name=name, quantity_text=quantity_text))

    return ingredients
