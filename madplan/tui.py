"""Interactive TUI for reviewing a generated meal plan."""

from dataclasses import dataclass

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, Label, Static

from .planner import MealPlan, MealPlanDay


@dataclass
class ReviewResult:
    """Result from the interactive review."""

    confirmed: bool
    plan: MealPlan


class DayIngredientsModal(ModalScreen[None]):
    """Modal dialog listing one day's ingredients."""

    BINDINGS = [
        Binding("escape", "close", "Close"),
    ]

    def __init__(
        self,
        day: MealPlanDay,
        name: str | None = None,
    ) -> None:
        super().__init__(name=name)
        self.day = day

    def compose(self) -> ComposeResult:
        with Vertical(id="day-dialog"):
            yield Label(f"Dag {self.day.day}: {self.day.recipe_title}", id="day-title")
            yield Label(self.day.stealth_upgrade, id="day-upgrade")
            yield Static("", id="day-spacer")

            table = DataTable(id="ingredients-table")
            table.cursor_type = "row"
            table.add_columns("Ingredient", "Store", "Price", "Sale")
            for ingredient in self.day.ingredients:
                table.add_row(
                    ingredient.original_text[:35],
                    ingredient.store,
                    f"{ingredient.price:.2f}",
                    "✓" if ingredient.on_sale else "",
                )
            yield table

            with Horizontal(id="day-buttons"):
                yield Button("Close", variant="default", id="btn-close")

    @on(Button.Pressed, "#btn-close")
    def on_close(self) -> None:
        self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)


class PlanReviewScreen(App[ReviewResult]):
    """Interactive screen for reviewing a meal plan day by day."""

    CSS = """
    Screen {
        background: $surface;
    }

    #main-container {
        height: 100%;
        padding: 1;
    }

    #summary {
        height: 3;
        padding: 0 1;
        background: $primary-background;
        color: $text;
        content-align: center middle;
    }

    #days-table {
        height: 1fr;
        margin: 1 0;
    }

    #button-bar {
        height: 3;
        align: center middle;
        padding: 0 1;
    }

    #button-bar Button {
        margin: 0 1;
    }

    #day-dialog {
        width: 80;
        height: auto;
        max-height: 80%;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }

    #day-title {
        text-style: bold;
        padding-bottom: 1;
    }

    #day-upgrade {
        color: $text-muted;
    }

    #day-spacer {
        height: 1;
    }

    #ingredients-table {
        height: auto;
        max-height: 20;
        margin-bottom: 1;
    }

    #day-buttons {
        height: 3;
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("q", "quit_cancel", "Cancel"),
        Binding("enter", "show_day", "Ingredients"),
        Binding("c", "confirm", "Confirm"),
        Binding("escape", "quit_cancel", "Cancel"),
    ]

    def __init__(self, plan: MealPlan) -> None:
        super().__init__()
        self.plan = plan

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main-container"):
            yield Static(self._get_summary(), id="summary")
            table = DataTable(id="days-table")
            table.cursor_type = "row"
            table.add_columns("Day", "Recipe", "Cost", "On sale", "Stores")
            yield table
            with Horizontal(id="button-bar"):
                yield Button("Confirm (c)", variant="success", id="btn-confirm")
                yield Button("Cancel (q)", variant="error", id="btn-cancel")
        yield Footer()

    def on_mount(self) -> None:
        self.title = f"Madplan ({self.plan.days} dage)"
        self._refresh_table()

    def _get_summary(self) -> str:
        plan = self.plan
        return (
            f"Days: {plan.days} | Total: {plan.total_cost:.2f} DKK | "
            f"Left: {plan.savings:.2f} DKK | On sale: {plan.deal_percentage}% | "
            f"Stores: {len(plan.stores_used)}"
        )

    def _refresh_table(self) -> None:
        table = self.query_one("#days-table", DataTable)
        table.clear()

        for day in self.plan.meal_plan_days:
            table.add_row(
                str(day.day),
                day.recipe_title[:35],
                f"{day.cost:.2f}",
                f"{day.deal_match_count}/{len(day.ingredients)}",
                ", ".join(day.stores_used)[:30],
            )

    def action_show_day(self) -> None:
        table = self.query_one("#days-table", DataTable)
        days = self.plan.meal_plan_days
        if table.cursor_row is not None and 0 <= table.cursor_row < len(days):
            self.push_screen(DayIngredientsModal(days[table.cursor_row]))

    @on(DataTable.RowSelected, "#days-table")
    def on_row_selected(self) -> None:
        self.action_show_day()

    def action_confirm(self) -> None:
        self.exit(ReviewResult(confirmed=True, plan=self.plan))

    def action_quit_cancel(self) -> None:
        self.exit(ReviewResult(confirmed=False, plan=self.plan))

    @on(Button.Pressed, "#btn-confirm")
    def on_confirm_button(self) -> None:
        self.action_confirm()

    @on(Button.Pressed, "#btn-cancel")
    def on_cancel_button(self) -> None:
        self.action_quit_cancel()


def interactive_review(plan: MealPlan) -> ReviewResult:
    """
    Launch interactive TUI for reviewing a meal plan.

    Args:
        plan: Generated meal plan

    Returns:
        ReviewResult with confirmed status and the plan
    """
    app = PlanReviewScreen(plan)
    result = app.run()
    if result is None:
        return ReviewResult(confirmed=False, plan=plan)
    return result
