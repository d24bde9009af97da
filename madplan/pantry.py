"""Pantry management: staples that are assumed to be at home."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

# Default pantry items. Users can expand via `madplan pantry add`.
DEFAULT_PANTRY_ITEMS: set[str] = {
    # Water
    "vand",
    # Salt & pepper
    "salt",
    "peber",
    "sort peber",
    # Oil & vinegar
    "olie",
    "olivenolie",
    "rapsolie",
    "eddike",
    # Flour
    "mel",
    "hvedemel",
    # Spices
    "spidskommen",
    "paprika",
    "kanel",
    "oregano",
    "timian",
    "karry",
    "muskatnød",
    "chiliflager",
}


@dataclass
class PantryConfig:
    """Configuration for pantry items."""

    user_items: set[str] = field(default_factory=set)
    excluded_defaults: set[str] = field(default_factory=set)
    updated_at: datetime | None = None

    @property
    def all_pantry_items(self) -> set[str]:
        """Get all active pantry items (defaults + user, minus excluded)."""
        return (DEFAULT_PANTRY_ITEMS - self.excluded_defaults) | self.user_items

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "version": 1,
            "user_items": sorted(self.user_items),
            "excluded_defaults": sorted(self.excluded_defaults),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PantryConfig:
        """Create from dict."""
        updated_at = None
        if data.get("updated_at"):
            updated_at = datetime.fromisoformat(data["updated_at"])

        return cls(
            user_items=set(data.get("user_items", [])),
            excluded_defaults=set(data.get("excluded_defaults", [])),
            updated_at=updated_at,
        )


def load_pantry_config(pantry_file: Path) -> PantryConfig:
    """Load pantry configuration from disk."""
    if not pantry_file.exists():
        return PantryConfig()

    try:
        with open(pantry_file, encoding="utf-8") as f:
            data = json.load(f)
        return PantryConfig.from_dict(data)
    except (OSError, json.JSONDecodeError):
        return PantryConfig()


def save_pantry_config(config: PantryConfig, pantry_file: Path) -> None:
    """Save pantry configuration to disk."""
    config.updated_at = datetime.now()
    pantry_file.parent.mkdir(parents=True, exist_ok=True)
    with open(pantry_file, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)


def _normalize_for_matching(name: str) -> str:
    return name.lower().strip()


def is_pantry_item(ingredient_name: str, pantry_items: Iterable[str]) -> bool:
    """
    Check if an ingredient is covered by the pantry vocabulary.

    Multi-word vocabulary entries match when contained in the name
    ("olivenolie" matches "ekstra jomfru olivenolie"). Single-word entries
    must match a whole word, so "mel" does not swallow "mælk" or "melon".
    """
    normalized = _normalize_for_matching(ingredient_name)
    if not normalized:
        return False

    items = {_normalize_for_matching(p) for p in pantry_items if p}

    # Exact match
    if normalized in items:
        return True

    for item in items:
        if " " in item and item in normalized:
            return True

    words = normalized.split()
    single_word_items = {p for p in items if " " not in p}
    return any(word in single_word_items for word in words)


def add_to_pantry(items: list[str], pantry_file: Path) -> PantryConfig:
    """Add items to the user's pantry."""
    config = load_pantry_config(pantry_file)
    for item in items:
        normalized = _normalize_for_matching(item)
        config.user_items.add(normalized)
        config.excluded_defaults.discard(normalized)
    save_pantry_config(config, pantry_file)
    return config


def remove_from_pantry(items: list[str], pantry_file: Path) -> PantryConfig:
    """Remove items from the user's pantry."""
    config = load_pantry_config(pantry_file)
    for item in items:
        normalized = _normalize_for_matching(item)
        config.user_items.discard(normalized)
        # A removed default is remembered as excluded
        if normalized in DEFAULT_PANTRY_ITEMS:
            config.excluded_defaults.add(normalized)
    save_pantry_config(config, pantry_file)
    return config


def clear_pantry(pantry_file: Path) -> None:
    """Clear all pantry customizations."""
    save_pantry_config(PantryConfig(), pantry_file)


def get_default_pantry_items() -> list[str]:
    """Get sorted list of default pantry items."""
    return sorted(DEFAULT_PANTRY_ITEMS)
