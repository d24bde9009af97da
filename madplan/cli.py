"""CLI entry point for madplan."""

import logging
from dataclasses import replace
from pathlib import Path

import click

from . import __version__
from .catalog import Catalog, CatalogError, CatalogHolder
from .config import PANTRY_FILE, PlannerSettings, get_settings
from .deals import Preferences, filter_deals, store_statistics
from .export import export_plan
from .pantry import (
    DEFAULT_PANTRY_ITEMS,
    add_to_pantry,
    clear_pantry,
    load_pantry_config,
    remove_from_pantry,
)
from .planner import MealPlan, PlanningError, generate_plan, recommend_recipes
from .shopping import STORE_DISPLAY_NAMES
from .tui import interactive_review

verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Show debug logging on stderr"
)
data_dir_option = click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory with deal and recipe CSV files",
)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr; DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_catalog(data_dir: Path | None, settings: PlannerSettings) -> Catalog:
    """Load the catalog, exiting with an error message if it cannot be read."""
    try:
        return CatalogHolder(data_dir or settings.data_dir).snapshot()
    except CatalogError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None


def display_plan(plan: MealPlan) -> None:
    """Display a meal plan and its shopping list."""
    click.echo()
    click.echo("=" * 60)
    click.echo(f"MEAL PLAN ({plan.days} DAYS, {plan.family_size} PEOPLE)")
    click.echo("=" * 60)

    for day in plan.meal_plan_days:
        click.echo()
        click.echo(f"Day {day.day}: {day.recipe_title}  [{day.source}]")
        click.echo(
            f"  {day.cost:.2f} DKK | {day.deal_match_count}/{len(day.ingredients)} on sale"
            f" | {', '.join(day.stores_used)}"
        )
        for ingredient in day.ingredients:
            status = "✓" if ingredient.on_sale else " "
            click.echo(
                f"  {status} {ingredient.original_text[:35]:<35} "
                f"{ingredient.store:<12} {ingredient.price:>7.2f}"
            )
        click.echo(f"  ★ {day.stealth_upgrade}")

    click.echo()
    click.echo("=" * 60)
    click.echo("SHOPPING LIST")
    click.echo("=" * 60)

    for store_key, items in plan.shopping_list.items():
        click.echo()
        click.echo(f"{STORE_DISPLAY_NAMES.get(store_key, store_key)}:")
        for item in items:
            count = f" x{item.occurrence_count}" if item.occurrence_count > 1 else ""
            sale = " (tilbud)" if item.on_sale else ""
            click.echo(f"  • {item.item}{count} - {item.aggregated_price:.2f} DKK{sale}")

    click.echo()
    click.echo("-" * 60)
    click.echo(f"Total: {plan.total_cost:.2f} DKK (budget left: {plan.savings:.2f} DKK)")
    click.echo(plan.summary)
    click.echo()


# ============================================================================
# Main CLI Group
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="madplan")
def cli():
    """Deal-driven meal planner.

    Builds weekly meal plans from recipes and this week's grocery deals,
    spreading purchases across store chains.
    """
    pass


# ============================================================================
# Planning Commands
# ============================================================================


@cli.command("plan")
@click.option("--family-size", "-f", type=int, default=4, show_default=True, help="People to cook for")
@click.option("--budget", "-b", type=float, default=500.0, show_default=True, help="Budget in DKK")
@click.option("--days", "-d", type=int, default=7, show_default=True, help="Number of days")
@click.option("--organic", is_flag=True, help="Only use organic deals")
@click.option("--less-meat", is_flag=True, help="Leave out meat deals")
@click.option("--store", "stores", multiple=True, help="Preferred store (repeatable)")
@click.option("--seed", type=int, help="Random seed for a reproducible plan")
@click.option("--exclude-pantry", is_flag=True, help="Leave pantry staples out of the plan")
@data_dir_option
@click.option("--export", "export_path", type=click.Path(dir_okay=False), help="Export plan to file")
@click.option("--format", "export_format", type=click.Choice(["json", "md"]), help="Export format")
@click.option("--interactive", "-i", is_flag=True, help="Review the plan in a TUI before export")
@verbose_option
def plan_command(
    family_size: int,
    budget: float,
    days: int,
    organic: bool,
    less_meat: bool,
    stores: tuple[str, ...],
    seed: int | None,
    exclude_pantry: bool,
    data_dir: Path | None,
    export_path: str | None,
    export_format: str | None,
    interactive: bool,
    verbose: bool,
):
    """Generate a meal plan from current deals.

    Examples:

        madplan plan --days 5 --budget 400

        madplan plan -f 2 --organic --store Netto --store Lidl

        madplan plan --seed 42 --export plan.md
    """
    configure_logging(verbose)
    settings = get_settings()
    if seed is not None:
        settings = replace(settings, seed=seed)

    catalog = get_catalog(data_dir, settings)
    preferences = Preferences(organic=organic, less_meat=less_meat, preferred_stores=stores)

    pantry_items = None
    if exclude_pantry or settings.exclude_pantry:
        pantry_items = load_pantry_config(PANTRY_FILE).all_pantry_items

    try:
        plan = generate_plan(
            catalog,
            family_size,
            budget,
            days,
            preferences,
            settings=settings,
            pantry_items=pantry_items,
        )
    except PlanningError as e:
        click.echo(f"✗ Could not generate plan: {e}", err=True)
        raise SystemExit(1) from None

    if interactive:
        result = interactive_review(plan)
        if not result.confirmed:
            click.echo("Cancelled.")
            return
        plan = result.plan

    display_plan(plan)

    if export_path:
        try:
            written = export_plan(plan, export_path, export_format)
        except (ValueError, OSError) as e:
            click.echo(f"✗ Export failed: {e}", err=True)
            raise SystemExit(1) from None
        click.echo(f"✓ Exported plan ({written}) to {export_path}")


@cli.command("recommend")
@click.option("--limit", "-l", default=6, show_default=True, help="Maximum recipes to show")
@click.option("--min-score", default=40, show_default=True, help="Minimum percent on sale")
@click.option("--organic", is_flag=True, help="Only use organic deals")
@click.option("--less-meat", is_flag=True, help="Leave out meat deals")
@click.option("--store", "stores", multiple=True, help="Preferred store (repeatable)")
@data_dir_option
@verbose_option
def recommend_command(
    limit: int,
    min_score: int,
    organic: bool,
    less_meat: bool,
    stores: tuple[str, ...],
    data_dir: Path | None,
    verbose: bool,
):
    """Show recipes with the most ingredients on sale."""
    configure_logging(verbose)
    settings = get_settings()
    catalog = get_catalog(data_dir, settings)
    preferences = Preferences(organic=organic, less_meat=less_meat, preferred_stores=stores)

    recommendations = recommend_recipes(
        catalog, limit, min_score, preferences, settings=settings
    )
    if not recommendations:
        click.echo(f"No recipes with at least {min_score}% of ingredients on sale.")
        return

    click.echo()
    click.echo("RECOMMENDED RECIPES")
    click.echo("=" * 60)
    for rec in recommendations:
        click.echo(
            f"  {rec.match_score:>3}%  {rec.recipe.title}  "
            f"({rec.matched_ingredients}/{rec.total_ingredients} on sale, "
            f"{rec.stores_used} stores)"
        )
    click.echo()


# ============================================================================
# Catalog Commands
# ============================================================================


@cli.command("deals")
@click.option("--organic", is_flag=True, help="Only organic deals")
@click.option("--less-meat", is_flag=True, help="Leave out meat deals")
@click.option("--store", "stores", multiple=True, help="Only these stores (repeatable)")
@click.option("--limit", "-l", default=50, show_default=True, help="Maximum deals to show")
@data_dir_option
@verbose_option
def deals_command(
    organic: bool,
    less_meat: bool,
    stores: tuple[str, ...],
    limit: int,
    data_dir: Path | None,
    verbose: bool,
):
    """List food deals that fit the given preferences."""
    configure_logging(verbose)
    catalog = get_catalog(data_dir, get_settings())
    preferences = Preferences(organic=organic, less_meat=less_meat, preferred_stores=stores)
    deals = filter_deals(catalog.deals, preferences)

    if not deals:
        click.echo("No deals found.")
        return

    click.echo()
    click.echo(f"DEALS ({len(deals)})")
    click.echo("=" * 60)
    for deal in deals[:limit]:
        click.echo(f"  {deal.store:<10} {deal.name[:35]:<35} {deal.amount_text:<8} {deal.price_text}")
    if len(deals) > limit:
        click.echo(f"  ... and {len(deals) - limit} more")
    click.echo()


@cli.command("stores")
@data_dir_option
@verbose_option
def stores_command(data_dir: Path | None, verbose: bool):
    """Show stores with deal and category counts."""
    configure_logging(verbose)
    catalog = get_catalog(data_dir, get_settings())

    click.echo()
    click.echo("STORES")
    click.echo("=" * 50)
    for stats in store_statistics(catalog.deals):
        click.echo(
            f"  {stats['name']:<12} {stats['deal_count']:>4} deals  "
            f"{stats['categories']:>2} categories"
        )
    click.echo()


@cli.command("recipes")
@click.option("--limit", "-l", default=50, show_default=True, help="Maximum recipes to show")
@data_dir_option
@verbose_option
def recipes_command(limit: int, data_dir: Path | None, verbose: bool):
    """List recipes in the catalog."""
    configure_logging(verbose)
    catalog = get_catalog(data_dir, get_settings())

    click.echo()
    click.echo(f"RECIPES ({len(catalog.recipes)})")
    click.echo("=" * 60)
    for recipe in catalog.recipes[:limit]:
        click.echo(f"  {recipe.title}  [{recipe.source}, {recipe.servings} pers.]")
    if len(catalog.recipes) > limit:
        click.echo(f"  ... and {len(catalog.recipes) - limit} more")
    click.echo()


# ============================================================================
# Pantry Commands
# ============================================================================


@cli.group()
def pantry():
    """Manage your pantry items (staples you always have at home).

    With `madplan plan --exclude-pantry` these items are left out of
    matching and the shopping list.
    """
    pass


@pantry.command("list")
def pantry_list():
    """List your pantry items."""
    items = load_pantry_config(PANTRY_FILE).all_pantry_items

    click.echo()
    click.echo("YOUR PANTRY")
    click.echo("=" * 50)

    if items:
        for item in sorted(items):
            click.echo(f"  {item}")
    else:
        click.echo("  (empty)")

    click.echo()
    click.echo(f"Total: {len(items)} items")
    click.echo(f"File: {PANTRY_FILE}")
    click.echo()


@pantry.command("add")
@click.argument("items", nargs=-1, required=True)
def pantry_add(items: tuple[str, ...]):
    """Add items to your pantry.

    Examples:

        madplan pantry add sukker

        madplan pantry add "sesamolie" "sojasauce"
    """
    add_to_pantry(list(items), PANTRY_FILE)
    click.echo(f"✓ Added {len(items)} item(s) to pantry:")
    for item in items:
        click.echo(f"  • {item}")


@pantry.command("remove")
@click.argument("items", nargs=-1, required=True)
def pantry_remove(items: tuple[str, ...]):
    """Remove items from your pantry."""
    remove_from_pantry(list(items), PANTRY_FILE)
    click.echo(f"✓ Removed {len(items)} item(s) from pantry:")
    for item in items:
        click.echo(f"  • {item}")


@pantry.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def pantry_clear(yes: bool):
    """Reset the pantry to the default items."""
    if not yes:
        if not click.confirm("Reset pantry to defaults?"):
            click.echo("Cancelled.")
            return

    clear_pantry(PANTRY_FILE)
    click.echo("✓ Pantry reset to defaults")


@pantry.command("defaults")
def pantry_defaults():
    """Show default pantry items."""
    click.echo()
    click.echo("DEFAULT PANTRY ITEMS")
    click.echo("=" * 50)
    click.echo(f"({len(DEFAULT_PANTRY_ITEMS)} items)")
    click.echo()

    for item in sorted(DEFAULT_PANTRY_ITEMS):
        click.echo(f"  • {item}")

    click.echo()


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
