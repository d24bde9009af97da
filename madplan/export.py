"""Meal plan export in various formats."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .planner import MealPlan
from .shopping import STORE_DISPLAY_NAMES

EXPORT_FORMATS: dict[str, str] = {
    ".json": "json",
    ".md": "md",
    ".markdown": "md",
}


def export_to_json(plan: MealPlan, filepath: str | Path) -> None:
    """
    Export a meal plan to JSON format.

    Args:
        plan: Generated meal plan
        filepath: Output file path
    """
    data: dict[str, Any] = {
        "exported_at": datetime.now().isoformat(),
        **plan.to_dict(),
    }

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_to_markdown(plan: MealPlan, filepath: str | Path) -> None:
    """
    Export a meal plan and its shopping list to Markdown format.

    Args:
        plan: Generated meal plan
        filepath: Output file path
    """
    lines: list[str] = []

    # Header
    lines.append(f"# Madplan ({plan.days} dage)")
    lines.append("")
    lines.append(f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*")
    lines.append("")
    lines.append(plan.summary)
    lines.append("")

    # Summary
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Family size:** {plan.family_size}")
    lines.append(f"- **Total cost:** {plan.total_cost:.2f} DKK")
    lines.append(f"- **Budget left:** {plan.savings:.2f} DKK")
    lines.append(
        f"- **On sale:** {plan.total_deal_matches}/{plan.total_ingredients} "
        f"({plan.deal_percentage}%)"
    )
    lines.append(f"- **Stores:** {', '.join(plan.stores_used) or '-'}")
    lines.append("")

    # Days
    for day in plan.meal_plan_days:
        lines.append(f"## Dag {day.day}: {day.recipe_title}")
        lines.append("")
        lines.append(f"*{day.servings} personer, {day.cost:.2f} DKK, kilde: {day.source}*")
        lines.append("")
        for ingredient in day.ingredients:
            marker = " (tilbud)" if ingredient.on_sale else ""
            lines.append(
                f"- {ingredient.original_text} → {ingredient.store}, "
                f"{ingredient.price:.2f} DKK{marker}"
            )
        lines.append("")
        lines.append(f"> {day.stealth_upgrade}")
        lines.append("")
        for number, step in enumerate(day.instructions, 1):
            lines.append(f"{number}. {step}")
        lines.append("")

    # Shopping list
    lines.append("## Shopping List")
    lines.append("")
    for store_key, items in plan.shopping_list.items():
        lines.append(f"### {STORE_DISPLAY_NAMES.get(store_key, store_key)}")
        lines.append("")
        for item in items:
            count = f" (x{item.occurrence_count})" if item.occurrence_count > 1 else ""
            sale = " (tilbud)" if item.on_sale else ""
            lines.append(f"- [ ] **{item.item}**{count} - {item.aggregated_price:.2f} DKK{sale}")
        lines.append("")

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))


def detect_format(filepath: str | Path) -> str:
    """
    Detect the export format from a file extension.

    Raises:
        ValueError: If the extension is not supported
    """
    suffix = Path(filepath).suffix.lower()
    if suffix not in EXPORT_FORMATS:
        raise ValueError(
            f"Unsupported export format: {suffix or '(none)'}. Use .json, .md or .markdown"
        )
    return EXPORT_FORMATS[suffix]


def export_plan(plan: MealPlan, filepath: str | Path, format: str | None = None) -> str:
    """
    Export a meal plan, picking the format from the extension if not given.

    Args:
        plan: Generated meal plan
        filepath: Output file path
        format: "json" or "md" (None auto-detects)

    Returns:
        The format that was written

    Raises:
        ValueError: If the format is not supported
    """
    fmt = (format or detect_format(filepath)).lower()
    if fmt == "markdown":
        fmt = "md"

    if fmt == "json":
        export_to_json(plan, filepath)
    elif fmt == "md":
        export_to_markdown(plan, filepath)
    else:
        raise ValueError(f"Unsupported export format: {fmt}")

    return fmt
