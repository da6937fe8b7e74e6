"""Core business logic package for the expense tracker."""

from .aggregation import (
    CategoryTotal,
    DashboardSummary,
    MonthTotal,
    ReportPeriod,
    available_periods,
    category_totals,
    dashboard_summary,
    filter_by_month,
    filter_by_period,
    month_totals,
)
from .categories import DEFAULT_REGISTRY, Category, CategoryRegistry, resolve_category
from .config import Settings
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .models import Expense, ExpenseDraft
from .reports import MonthlyReport, ReportDocument, build_monthly_report, generate_monthly_report, render_pdf
from .storage import FileStorage, MemoryStorage
from .store import ExpenseStore, LoadResult, LoadStatus

__all__ = [
    "Category",
    "CategoryRegistry",
    "CategoryTotal",
    "DEFAULT_REGISTRY",
    "DashboardSummary",
    "Expense",
    "ExpenseDraft",
    "ExpenseStore",
    "FileStorage",
    "LoadResult",
    "LoadStatus",
    "MemoryStorage",
    "MonthTotal",
    "MonthlyReport",
    "PersistenceError",
    "RecordNotFoundError",
    "ReportDocument",
    "ReportPeriod",
    "Settings",
    "ValidationError",
    "available_periods",
    "build_monthly_report",
    "category_totals",
    "dashboard_summary",
    "filter_by_month",
    "filter_by_period",
    "generate_monthly_report",
    "month_totals",
    "render_pdf",
    "resolve_category",
]
