"""Data models for the expense tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict

__all__ = [
    "Expense",
    "ExpenseDraft",
    "isoformat_utc",
    "parse_date",
    "parse_datetime",
]


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="milliseconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value: str) -> date:
    """Parse a calendar date from ``YYYY-MM-DD`` or a full ISO timestamp."""
    value = value.strip()
    if len(value) > 10:
        # Timestamps keep their calendar day as written, not shifted to UTC.
        value = value[:10]
    return date.fromisoformat(value)


@dataclass(frozen=True)
class ExpenseDraft:
    """Validated user input for a new expense, before an id is assigned."""

    amount: Decimal
    description: str
    category: str
    date: date


@dataclass(frozen=True)
class Expense:
    id: str
    amount: Decimal
    description: str
    category: str
    date: date
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to the persisted slot layout."""
        return {
            "id": self.id,
            "amount": f"{self.amount:.2f}",
            "description": self.description,
            "category": self.category,
            "date": self.date.isoformat(),
            "createdAt": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from persisted data.

        Amounts may be JSON numbers or strings; malformed rows raise
        ``KeyError``, ``TypeError`` or ``ValueError`` (``InvalidOperation``
        included) for the store to report as corruption.
        """
        amount = Decimal(str(data["amount"]))
        if not amount.is_finite():
            raise ValueError(f"Non-finite amount in expense {data.get('id')!r}")
        return cls(
            id=str(data["id"]),
            amount=amount,
            description=str(data["description"]),
            category=str(data["category"]),
            date=parse_date(data["date"]),
            created_at=parse_datetime(data["createdAt"]),
        )
