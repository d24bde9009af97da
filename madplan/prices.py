"""Danish price text parsing and price estimation."""

import logging
import re

logger = logging.getLogger(__name__)

# Placeholders shops print instead of a price
UNAVAILABLE_PRICE_TEXTS: set[str] = {
    "se pris",
    "se prisen",
    "see price",
    "udsolgt",
    "sold out",
    "n/a",
    "na",
    "-",
    "–",
    "ukendt",
}

# Matches "49", "49.00", "49,95" and "1.299,95"
_PRICE_PATTERN = re.compile(r"\d{1,3}(?:\.\d{3})+,\d+|\d+(?:[.,]\d+)?")

DEFAULT_ESTIMATE = 15.0

# Rough per-item prices (DKK) for ingredients without a deal.
# First key contained in the ingredient name wins, so list specific keys first.
PRICE_ESTIMATES: dict[str, float] = {
    # Pasta & grains
    "lasagneplader": 20.0,
    "spaghetti": 15.0,
    "pasta": 15.0,
    "ris": 15.0,
    # Flour & basics
    "hvedemel": 8.0,
    "mel": 8.0,
    "salt": 5.0,
    "peber": 10.0,
    # Oils & fats
    "olie": 12.0,
    "smør": 25.0,
    "margarine": 20.0,
    # Dairy
    "madlavningsfløde": 18.0,
    "piskefløde": 22.0,
    "fløde": 18.0,
    "kokosmælk": 20.0,
    "mælk": 15.0,
    "yoghurt": 18.0,
    "skyr": 12.0,
    # Seasonings & stocks
    "hønsebouillon": 8.0,
    "bouillon": 8.0,
    "karry": 12.0,
    "rasp": 10.0,
    # Bread & bakery
    "hamburgerboller": 25.0,
    "brød": 20.0,
    # Produce
    "hvidløg": 5.0,
    "æble": 8.0,
    "citron": 8.0,
    "persille": 10.0,
    "dild": 10.0,
    "basilikum": 12.0,
    # Canned goods
    "flåede tomater": 12.0,
    "tomatpuré": 8.0,
    # Frozen
    "ærter": 10.0,
    "spinat": 15.0,
}


def _is_unavailable(text: str) -> bool:
    cleaned = text.strip().lower().rstrip(".")
    return cleaned in UNAVAILABLE_PRICE_TEXTS


def normalize_price_text(text: str | None) -> str:
    """
    Reduce a price string to its numeric token with a "." decimal point.

    Returns an empty string for placeholders and texts without a number.
    """
    if not text or not isinstance(text, str):
        return ""

    if _is_unavailable(text):
        return ""

    match = _PRICE_PATTERN.search(text)
    if not match:
        return ""

    token = match.group(0)
    if "," in token and "." in token:
        # Thousands separator followed by decimal comma
        token = token.replace(".", "")
    return token.replace(",", ".")


def parse_price(text: str | None) -> float:
    """
    Extract a price from a Danish price string.

    Handles formats like "49.00 kr.", "49,95 kr", "10.-" and "1.299,95".
    Placeholders such as "Se pris" yield 0.0, as does any text without
    a number. Never raises.

    Args:
        text: Raw price text from a deal listing

    Returns:
        Non-negative price, 0.0 when nothing usable was found
    """
    token = normalize_price_text(text)
    if not token:
        if text and isinstance(text, str) and text.strip() and not _is_unavailable(text):
            logger.warning("Could not parse price from %r", text)
        return 0.0

    try:
        value = float(token)
    except ValueError:
        logger.warning("Could not parse price from %r", text)
        return 0.0

    return max(value, 0.0)


def format_price(value: float) -> str:
    """Render a price in canonical form ("49.00")."""
    return f"{max(value, 0.0):.2f}"


def estimate_price(
    ingredient_name: str,
    estimates: dict[str, float] | None = None,
    fallback: float = DEFAULT_ESTIMATE,
) -> float:
    """
    Estimate the price of an ingredient that has no matching deal.

    Args:
        ingredient_name: Ingredient name (any case)
        estimates: Keyword to price table (defaults to PRICE_ESTIMATES)
        fallback: Price used when no keyword matches

    Returns:
        Estimated price in DKK
    """
    table = PRICE_ESTIMATES if estimates is None else estimates
    name_lower = ingredient_name.lower()

    for keyword, price in table.items():
        if keyword in name_lower:
            return price

    return fallback
