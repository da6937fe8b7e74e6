"""Shared fixtures for the expense tracker test-suite."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from itertools import count
from typing import Callable, List

import pytest

from expense_core.models import Expense
from expense_core.storage import MemoryStorage
from expense_core.store import ExpenseStore

FIXED_NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_expense(
    expense_id: str,
    amount: str,
    category: str,
    day: str,
    description: str = "Item",
) -> Expense:
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        description=description,
        category=category,
        date=date.fromisoformat(day),
        created_at=FIXED_NOW,
    )


@pytest.fixture
def sample_expenses() -> List[Expense]:
    """Two January expenses and one February expense, in insertion order."""
    return [
        make_expense("a1", "50", "food", "2024-01-05", "Groceries"),
        make_expense("a2", "30", "food", "2024-02-10", "Dinner out"),
        make_expense("a3", "20", "transport", "2024-01-20", "Bus pass"),
    ]


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def id_sequence() -> Callable[[], str]:
    counter = count(1)
    return lambda: f"exp{next(counter):03d}"


@pytest.fixture
def store(storage: MemoryStorage, id_sequence: Callable[[], str]) -> ExpenseStore:
    return ExpenseStore(storage, clock=lambda: FIXED_NOW, id_factory=id_sequence)


@pytest.fixture
def expense_factory() -> Callable[..., Expense]:
    return make_expense
