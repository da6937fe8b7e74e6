"""Console interface for the expense tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from expense_core.aggregation import (
    available_periods,
    dashboard_summary,
    filter_by_month,
    total_amount,
)
from expense_core.categories import DEFAULT_REGISTRY
from expense_core.config import Settings
from expense_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from expense_core.models import Expense
from expense_core.reports import format_money, generate_monthly_report
from expense_core.storage import FileStorage
from expense_core.store import ExpenseStore
from expense_core.validators import (
    parse_amount,
    validate_date,
    validate_month_name,
    validate_year,
)


def _parse_date(value: str) -> str:
    try:
        validate_date(value, "date")
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        ) from exc
    return value


def _parse_amount(value: str) -> str:
    try:
        parse_amount(value, "amount", allow_negative=False)
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    return value


def _load_store(settings: Settings) -> ExpenseStore:
    return ExpenseStore(FileStorage(settings.data_dir), settings.storage_slot)


def _format_expense(expense: Expense, symbol: str) -> str:
    category = DEFAULT_REGISTRY.resolve(expense.category)
    return (
        f"[{expense.id}] {expense.date.isoformat()} {format_money(expense.amount, symbol)}\n"
        f"  Category: {category.icon} {category.name}\n"
        f"  Description: {expense.description}\n"
    )


def _report_write_status(store: ExpenseStore) -> None:
    if not store.persisted:
        print(f"Warning: change was not saved ({store.last_write_error})", file=sys.stderr)


def handle_add(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    payload = {
        "amount": args.amount,
        "description": args.description,
        "category": args.category,
        "date": args.date,
    }
    expense = store.create(payload)
    print("Expense added:\n" + _format_expense(expense, settings.currency_symbol))
    _report_write_status(store)


def handle_list(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    result = store.load()
    if not result.ok:
        print(f"Warning: stored expenses could not be read ({result.status.value})", file=sys.stderr)
    expenses = result.expenses
    if args.month or args.year:
        expenses = filter_by_month(expenses, validate_month_name(args.month), validate_year(args.year))
    if not expenses:
        print("No expenses found.")
        return
    total = total_amount(expenses)
    print(f"Found {len(expenses)} expenses (total {format_money(total, settings.currency_symbol)}):")
    for expense in expenses:
        print(_format_expense(expense, settings.currency_symbol))


def handle_edit(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    changes = {
        "amount": args.amount,
        "description": args.description,
        "category": args.category,
        "date": args.date,
    }
    cleaned = {k: v for k, v in changes.items() if v is not None}
    existing = store.get(args.id)
    if existing is None or not store.update(args.id, cleaned):
        raise RecordNotFoundError(f"Expense {args.id} not found")
    expense = store.apply_changes(existing, cleaned)
    print("Expense updated:\n" + _format_expense(expense, settings.currency_symbol))
    _report_write_status(store)


def handle_delete(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    if not store.delete(args.id):
        raise RecordNotFoundError(f"Expense {args.id} not found")
    print(f"Expense {args.id} deleted.")
    _report_write_status(store)


def handle_summary(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    summary = dashboard_summary(store.list(), date.today())
    symbol = settings.currency_symbol
    print(f"Total expenses:     {format_money(summary.total, symbol)}")
    print(f"This month:         {format_money(summary.month_total, symbol)} ({summary.month_count} transactions)")
    print(f"Average expense:    {format_money(summary.average, symbol)}")
    print(f"Total transactions: {summary.count}")


def handle_categories(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    for category in DEFAULT_REGISTRY:
        print(f"{category.id:<14} {category.icon} {category.name}")


def handle_periods(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    periods = available_periods(store.list())
    if not periods:
        print("No expenses recorded yet.")
        return
    for period in periods:
        print(f"{period.month} {period.year}")


def handle_report(args: argparse.Namespace, store: ExpenseStore, settings: Settings) -> None:
    month = validate_month_name(args.month)
    year = validate_year(args.year)
    document = generate_monthly_report(
        store.list(), month, year, currency_symbol=settings.currency_symbol
    )
    output_dir: Path = args.output_dir

    def write_file(filename: str, content: bytes) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)
        try:
            (output_dir / filename).write_bytes(content)
        except OSError as exc:
            raise PersistenceError(f"Unable to write report to {output_dir / filename}") from exc

    document.save(write_file)
    print(f"Report written to {output_dir / document.filename} ({document.page_count} page(s)).")


HANDLERS = {
    "add": handle_add,
    "list": handle_list,
    "edit": handle_edit,
    "delete": handle_delete,
    "summary": handle_summary,
    "categories": handle_categories,
    "periods": handle_periods,
    "report": handle_report,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default=None,
        type=Path,
        help="Directory to store JSON data (default: $EXPENSE_TRACKER_DATA_DIR or ./data)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Add a new expense")
    add.add_argument("amount", type=_parse_amount)
    add.add_argument("category", choices=DEFAULT_REGISTRY.ids())
    add.add_argument("date", type=_parse_date)
    add.add_argument("description")

    list_parser = subparsers.add_parser("list", help="List expenses")
    list_parser.add_argument("--month", help="Full month name, e.g. January")
    list_parser.add_argument("--year", help="Four-digit year")

    edit = subparsers.add_parser("edit", help="Edit an existing expense")
    edit.add_argument("id")
    edit.add_argument("--amount", type=_parse_amount)
    edit.add_argument("--description")
    edit.add_argument("--category", choices=DEFAULT_REGISTRY.ids())
    edit.add_argument("--date", type=_parse_date)

    delete = subparsers.add_parser("delete", help="Delete an expense")
    delete.add_argument("id")

    subparsers.add_parser("summary", help="Show dashboard statistics")
    subparsers.add_parser("categories", help="List available categories")
    subparsers.add_parser("periods", help="List months that have expenses")

    report = subparsers.add_parser("report", help="Export a monthly PDF report")
    report.add_argument("month", help="Full month name, e.g. January")
    report.add_argument("year", help="Four-digit year")
    report.add_argument("--output-dir", default=Path("."), type=Path)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    )
    settings = Settings.from_env().with_data_dir(args.data_dir)
    store = _load_store(settings)

    try:
        HANDLERS[args.command](args, store, settings)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
