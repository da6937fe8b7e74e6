"""Pure summary views derived from an expense collection.

Every consumer (API charts, CLI listings, monthly report) goes through these
functions so category fallback and month grouping behave the same everywhere.
None of them mutate their input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .categories import DEFAULT_REGISTRY, Category, CategoryRegistry
from .models import Expense
from .validators import MONTH_ABBREVIATIONS, MONTH_NAMES, _quantize_two_decimals

__all__ = [
    "CategoryTotal",
    "DashboardSummary",
    "MonthTotal",
    "ReportPeriod",
    "available_periods",
    "category_totals",
    "dashboard_summary",
    "filter_by_month",
    "filter_by_period",
    "month_label",
    "month_totals",
    "recent",
    "total_amount",
]

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class CategoryTotal:
    category: Category
    total: Decimal
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.category.to_dict(),
            "total": f"{self.total:.2f}",
            "count": self.count,
        }


@dataclass(frozen=True)
class MonthTotal:
    year: int
    month: int
    label: str
    total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "label": self.label,
            "total": f"{self.total:.2f}",
        }


@dataclass(frozen=True)
class ReportPeriod:
    month: str
    year: str

    @property
    def key(self) -> str:
        return f"{self.month}-{self.year}"

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "month": self.month, "year": self.year}


@dataclass(frozen=True)
class DashboardSummary:
    total: Decimal
    month_total: Decimal
    month_count: int
    average: Decimal
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": f"{self.total:.2f}",
            "month_total": f"{self.month_total:.2f}",
            "month_count": self.month_count,
            "average": f"{self.average:.2f}",
            "count": self.count,
        }


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), start=ZERO)


def month_label(value: date) -> str:
    """Short chart label such as ``Jan 2024``."""
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"


def _month_name(value: date) -> str:
    return MONTH_NAMES[value.month - 1]


def category_totals(
    expenses: Iterable[Expense], registry: CategoryRegistry = DEFAULT_REGISTRY
) -> List[CategoryTotal]:
    """Sum amounts per category in registry order.

    Unknown category ids are counted under the registry's ``other`` entry and
    only strictly positive totals are returned.
    """
    sums: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    for expense in expenses:
        category_id = registry.resolve(expense.category).id
        sums[category_id] = sums.get(category_id, ZERO) + expense.amount
        counts[category_id] = counts.get(category_id, 0) + 1

    totals: List[CategoryTotal] = []
    for category in registry:
        total = sums.get(category.id, ZERO)
        if total > 0:
            totals.append(CategoryTotal(category, total, counts[category.id]))
    return totals


def month_totals(expenses: Iterable[Expense]) -> List[MonthTotal]:
    """Sum amounts per calendar month, oldest month first."""
    sums: Dict[Tuple[int, int], Decimal] = {}
    for expense in expenses:
        key = (expense.date.year, expense.date.month)
        sums[key] = sums.get(key, ZERO) + expense.amount

    return [
        MonthTotal(year, month, month_label(date(year, month, 1)), sums[(year, month)])
        for year, month in sorted(sums)
    ]


def filter_by_month(expenses: Iterable[Expense], month: str, year: str) -> List[Expense]:
    """Select expenses whose formatted month name and year equal ``month``/``year``.

    Matching compares labels, so ``"January"`` matches but ``"january"`` and
    ``"Jan"`` do not.
    """
    return [
        expense
        for expense in expenses
        if _month_name(expense.date) == month and str(expense.date.year) == year
    ]


def filter_by_period(expenses: Iterable[Expense], year: int, month: int) -> List[Expense]:
    """Select expenses by numeric year and month (1-12)."""
    return [
        expense
        for expense in expenses
        if expense.date.year == year and expense.date.month == month
    ]


def available_periods(expenses: Iterable[Expense]) -> List[ReportPeriod]:
    """Distinct month/year pairs in the order they first appear."""
    seen: Dict[str, ReportPeriod] = {}
    for expense in expenses:
        period = ReportPeriod(_month_name(expense.date), str(expense.date.year))
        seen.setdefault(period.key, period)
    return list(seen.values())


def recent(expenses: Sequence[Expense], limit: int = 5) -> List[Expense]:
    return list(expenses[:limit])


def dashboard_summary(expenses: Sequence[Expense], today: Optional[date] = None) -> DashboardSummary:
    today = today or date.today()
    total = total_amount(expenses)
    this_month = filter_by_period(expenses, today.year, today.month)
    count = len(expenses)
    average = _quantize_two_decimals(total / count) if count else ZERO
    return DashboardSummary(
        total=total,
        month_total=total_amount(this_month),
        month_count=len(this_month),
        average=average,
        count=count,
    )
