# ruff: noqa: I001
"""CLI for the ``household_budget`` package.

This module exposes callable command handlers (``cmd_import_csv``,
``cmd_report``, ``cmd_learn``) and a Typer-based console interface. Environment
variables (``DATABASE_URL``, ``HOUSEHOLD_BUDGET_LOG_LEVEL``,
``HOUSEHOLD_BUDGET_RULES``) are loaded from a local ``.env`` using
``python-dotenv`` before delegating to command logic. Business logic lives in
the library modules; handlers only load inputs, call them and render tables.

Budget file
-----------
Commands read the household's categories and planned figures from a JSON
file validated by :class:`BudgetFile`::

    {
      "period_start": "2024-01-01",
      "categories": [{"id": "salary", "name": "Salary", "type": "Income"}],
      "income": [{"name": "Salary", "amount": "5,000.00", "frequency": "Monthly"}],
      "expenses": [{"name": "Groceries", "amount": "150", "frequency": "Weekly"}],
      "savings": [{"name": "Emergency Fund", "amount": "500"}]
    }
"""

from __future__ import annotations

import datetime as dt
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.models import OptionInfo

from .errors import HouseholdBudgetError
from .logging_setup import configure_logging
from .models import BudgetPlan, Category, CategoryType, PlannedFigure, Transaction
from .money import Frequency, Money

console = Console(highlight=False)

# ---------------------------------------------------------------------------
# Budget file
# ---------------------------------------------------------------------------


class CategoryEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: CategoryType
    keywords: list[str] = Field(default_factory=list)

    def to_category(self) -> Category:
        return Category(id=self.id, name=self.name, type=self.type, keywords=tuple(self.keywords))


class FigureEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    amount: str
    frequency: Frequency = Frequency.MONTHLY

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_text(cls, v: object) -> str:
        # Numbers in JSON go through their text form; parse_input does the rest.
        if isinstance(v, bool) or not isinstance(v, (str, int, float)):
            raise ValueError("amount must be a string or number")
        text = str(v)
        Money.parse_input(text)
        return text

    def to_figure(self) -> PlannedFigure:
        return PlannedFigure(
            name=self.name, amount=Money.parse_input(self.amount), frequency=self.frequency
        )


class BudgetFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    period_start: dt.date | None = None
    categories: list[CategoryEntry] = Field(default_factory=list)
    income: list[FigureEntry] = Field(default_factory=list)
    expenses: list[FigureEntry] = Field(default_factory=list)
    savings: list[FigureEntry] = Field(default_factory=list)

    def to_categories(self) -> list[Category]:
        return [c.to_category() for c in self.categories]

    def to_plan(self) -> BudgetPlan:
        return BudgetPlan(
            income=tuple(f.to_figure() for f in self.income),
            expenses=tuple(f.to_figure() for f in self.expenses),
            savings=tuple(f.to_figure() for f in self.savings),
            period_start=self.period_start,
        )


def load_budget(path: str | Path) -> BudgetFile:
    """Read and validate a budget JSON file.

    Raises ``FileNotFoundError``/``PermissionError`` for unreadable files and
    pydantic's ``ValidationError`` for invalid content.
    """

    return BudgetFile.model_validate_json(Path(path).read_text(encoding="utf-8"))


# ---- Small module-level helpers used by CLI commands -------------------------


def _fmt(amount: Money) -> str:
    return amount.format(symbol="$")


def _error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _unmapped_message(missing: Sequence[str], headers: Sequence[str]) -> str:
    return (
        f"could not map the {', '.join(missing)} column(s) from headers "
        f"{', '.join(headers) or '(none)'}; pass --profile with a saved mapping for this file"
    )


def _transactions_table(transactions: Sequence[Transaction]) -> Table:
    from .classifier import confidence_label

    table = Table(title="Imported transactions")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Category")
    table.add_column("Confidence")
    table.add_column("Review")
    for tx in transactions:
        table.add_row(
            tx.date.isoformat() if tx.date else "?",
            escape(tx.description),
            _fmt(tx.amount),
            escape(tx.category.name) if tx.category else "-",
            f"{confidence_label(tx.confidence)} ({tx.confidence:.1f})",
            "yes" if tx.needs_review else "",
        )
    return table


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_import_csv(
    csv_path: str | Path,
    budget_path: str | Path,
    *,
    profile: str | None = None,
    save_profile: str | None = None,
    profiles_file: str | Path | None = None,
    persist: bool = False,
    database_url: str | None = None,
    rules_path: str | Path | None = None,
) -> int:
    """Import a bank CSV, print the categorized rows and optionally persist them.

    Errors are written to stderr and the function returns a non-zero exit
    code; ``0`` means success.
    """

    from .ingest.profiles import MappingProfiles
    from .merchants import MerchantMappings
    from .rules import load_rules
    from .workflows.import_flow import import_csv_file

    try:
        budget = load_budget(budget_path)
    except (OSError, ValidationError) as e:
        return _error(f"failed to load budget file '{budget_path}': {e}")
    try:
        rules = load_rules(rules_path)
    except (OSError, ValueError) as e:
        return _error(f"failed to load rules: {e}")

    mappings = MerchantMappings()
    profiles = MappingProfiles()
    if profiles_file is not None:
        try:
            profiles = MappingProfiles.load(profiles_file)
        except (OSError, ValidationError) as e:
            return _error(f"failed to load mapping profiles '{profiles_file}': {e}")

    if persist:
        from .db.client import session_scope
        from .persistence import create_schema, load_merchant_mappings, load_profiles

        try:
            create_schema(database_url=database_url)
            with session_scope(database_url=database_url) as session:
                mappings = load_merchant_mappings(session)
                if profiles_file is None:
                    profiles = load_profiles(session)
        except Exception as e:
            return _error(f"failed to load saved state from the database: {e}")

    try:
        result = import_csv_file(
            csv_path,
            categories=budget.to_categories(),
            mappings=mappings,
            profiles=profiles,
            profile=profile,
            rules=rules,
            on_progress=console.print,
        )
    except HouseholdBudgetError as e:
        return _error(str(e))
    if not result.is_complete:
        return _error(_unmapped_message(result.missing_fields, result.headers))

    console.print(_transactions_table(result.transactions))
    s = result.summary
    console.print(
        f"Imported {s.total_imported} | categorized {s.categorized} | "
        f"needs review {s.needs_review} | ignored {s.ignored} | total {_fmt(s.total_amount)}"
    )
    if result.amount_errors:
        console.print(
            f"{result.amount_errors} amount cell(s) could not be parsed and were set to 0"
        )

    if save_profile:
        try:
            profiles.save(save_profile, result.mapping)
        except (HouseholdBudgetError, ValueError) as e:
            return _error(f"cannot save mapping profile: {e}")
        if profiles_file is not None:
            profiles.dump(profiles_file)
        console.print(f"Saved column mapping as profile '{save_profile.strip()}'")

    if persist:
        from .db.client import session_scope
        from .persistence import save_merchant_mappings, save_profiles, save_transactions

        try:
            with session_scope(database_url=database_url) as session:
                written = save_transactions(session, result.transactions)
                save_merchant_mappings(session, mappings)
                save_profiles(session, profiles)
        except Exception as e:
            return _error(f"persistence failed: {e}")
        console.print(f"Persisted {written} transaction(s)")
    return 0


def cmd_report(
    budget_path: str | Path,
    *,
    csv_path: str | Path | None = None,
    view: str = "month",
    month: str | None = None,
    as_of: dt.date | None = None,
    database_url: str | None = None,
) -> int:
    """Print planned vs actual totals for a month or the whole budget period.

    Transactions come from ``csv_path`` when given, otherwise from the
    database.
    """

    from .budget_math import (
        ViewMode,
        budget_performance,
        category_totals,
        check_plan_balance,
        filter_by_period,
        parse_month,
    )
    from .merchants import MerchantMappings
    from .workflows.import_flow import import_csv_file

    try:
        budget = load_budget(budget_path)
    except (OSError, ValidationError) as e:
        return _error(f"failed to load budget file '{budget_path}': {e}")
    try:
        mode = ViewMode(view)
        if month:
            parse_month(month)
    except ValueError as e:
        return _error(str(e))

    categories = budget.to_categories()
    plan = budget.to_plan()
    if csv_path is not None:
        try:
            imported = import_csv_file(
                csv_path, categories=categories, mappings=MerchantMappings()
            )
        except HouseholdBudgetError as e:
            return _error(str(e))
        if not imported.is_complete:
            return _error(_unmapped_message(imported.missing_fields, imported.headers))
        transactions = imported.transactions
    else:
        from .db.client import session_scope
        from .persistence import create_schema, load_transactions

        try:
            create_schema(database_url=database_url)
            with session_scope(database_url=database_url) as session:
                transactions = load_transactions(session, categories)
        except Exception as e:
            return _error(f"failed to load transactions from the database: {e}")

    perf = budget_performance(plan, transactions, mode, month, categories, today=as_of)
    title = f"Budget performance ({mode.value}"
    title += f", {perf.months} month(s))" if mode is ViewMode.PERIOD else ")"
    table = Table(title=title)
    table.add_column("")
    table.add_column("Planned", justify="right")
    table.add_column("Actual", justify="right")
    for label, pa in (
        ("Income", perf.income),
        ("Expenses", perf.expenses),
        ("Savings", perf.savings),
    ):
        table.add_row(label, _fmt(pa.planned), _fmt(pa.actual))
    console.print(table)

    window = filter_by_period(transactions, mode, month, plan.period_start, today=as_of)
    spent = [t for t in category_totals(window, categories) if not t.spent.is_zero()]
    if spent:
        by_category = Table(title="Spending by category")
        by_category.add_column("Category")
        by_category.add_column("Spent", justify="right")
        for line in spent:
            by_category.add_row(escape(line.category.name), _fmt(line.spent))
        console.print(by_category)

    balance = check_plan_balance(plan)
    if balance.is_balanced:
        console.print("Plan is balanced")
    elif balance.is_over_budget:
        console.print(f"Plan is over budget by {_fmt(balance.difference)} per month")
    else:
        console.print(f"Plan leaves {_fmt(balance.difference)} unallocated per month")
    return 0


def cmd_learn(description: str, category_id: str, *, database_url: str | None = None) -> int:
    """Store a merchant -> category correction in the database."""

    from .classifier import learn_merchant_mapping
    from .db.client import session_scope
    from .merchants import normalize
    from .persistence import create_schema, load_merchant_mappings, save_merchant_mappings

    key = normalize(description)
    if not key:
        return _error("description has no merchant text to learn from")
    try:
        create_schema(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            mappings = load_merchant_mappings(session)
            if not learn_merchant_mapping(mappings, description, category_id):
                return _error(f"category '{category_id}' cannot be learned")
            save_merchant_mappings(session, mappings)
    except Exception as e:
        return _error(f"failed to save merchant mapping: {e}")
    console.print(f"Learned '{key}' -> {category_id}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank CSV exports, categorize transactions and compare actual "
        "spending with a household budget. Loads settings from a local .env."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank-export CSV file",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing/unreadable files itself
)
BUDGET_OPTION: OptionInfo = typer.Option(
    ..., "--budget", help="Path to the budget JSON file", dir_okay=False
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
VERBOSE_OPTION: OptionInfo = typer.Option(
    False, "--verbose", "-v", help="Log at DEBUG level."
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("import-csv")
def import_csv_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    budget: Annotated[Path, BUDGET_OPTION],
    *,
    profile: str | None = typer.Option(None, help="Saved mapping profile to try first."),
    save_profile: str | None = typer.Option(
        None, help="Save the column mapping used for this file under this name."
    ),
    profiles_file: Path | None = typer.Option(
        None, help="JSON file holding saved mapping profiles (read and updated)."
    ),
    persist: bool = typer.Option(
        False, help="Load learned state from and save transactions to the database."
    ),
    database_url: str | None = DATABASE_URL_OPTION,
    rules: Path | None = typer.Option(
        None, help="Rule set JSON (falls back to HOUSEHOLD_BUDGET_RULES)."
    ),
) -> None:
    """Import and categorize a CSV export."""

    _exit(
        cmd_import_csv(
            csv_path,
            budget,
            profile=profile,
            save_profile=save_profile,
            profiles_file=profiles_file,
            persist=persist,
            database_url=database_url,
            rules_path=rules,
        )
    )


@app.command("report")
def report_cmd(
    budget: Annotated[Path, BUDGET_OPTION],
    *,
    csv_path: Path | None = typer.Option(
        None, help="Report on this CSV instead of the saved transactions."
    ),
    view: str = typer.Option("month", help="Reporting window: month or period."),
    month: str | None = typer.Option(None, help="Month to report (YYYY-MM); default current."),
    as_of: str | None = typer.Option(None, help="Treat this date (YYYY-MM-DD) as today."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Show planned vs actual income, expenses and savings."""

    today: dt.date | None = None
    if as_of:
        try:
            today = dt.date.fromisoformat(as_of)
        except ValueError:
            _exit(_error(f"invalid --as-of date: {as_of!r}"))
    _exit(
        cmd_report(
            budget,
            csv_path=csv_path,
            view=view,
            month=month,
            as_of=today,
            database_url=database_url,
        )
    )


@app.command("learn")
def learn_cmd(
    description: str = typer.Option(..., help="Transaction description to learn from."),
    category_id: str = typer.Option(..., help="Category id to assign to the merchant."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Teach the classifier a merchant -> category mapping."""

    _exit(cmd_learn(description, category_id, database_url=database_url))


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context, verbose: bool = VERBOSE_OPTION) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging("DEBUG" if verbose else None, force=verbose)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
