"""Expense store: CRUD over a single persisted storage slot."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Collection, Dict, List, Mapping, Optional, Protocol, Union

from .exceptions import PersistenceError, ValidationError
from .models import Expense, ExpenseDraft
from .validators import parse_amount, validate_date, validate_required_str

LOGGER = logging.getLogger(__name__)

DEFAULT_SLOT = "expenses"
UPDATABLE_FIELDS = frozenset({"amount", "description", "category", "date"})

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class SlotStorage(Protocol):
    def read(self, slot: str) -> Optional[str]: ...

    def write(self, slot: str, payload: str) -> None: ...


class LoadStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    MISSING = "missing"
    CORRUPTED = "corrupted"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class LoadResult:
    """Outcome of reading the slot.

    ``expenses`` is always usable; ``status`` tells an empty collection apart
    from one that could not be read.
    """

    expenses: List[Expense] = field(default_factory=list)
    status: LoadStatus = LoadStatus.OK
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (LoadStatus.OK, LoadStatus.EMPTY, LoadStatus.MISSING)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_expense_id(now: datetime, rng: Optional[random.Random] = None) -> str:
    """Millisecond timestamp in base 36 followed by a random base-36 suffix."""
    rng = rng or random.SystemRandom()
    prefix = _to_base36(int(now.timestamp() * 1000))
    suffix = "".join(rng.choice(_BASE36_DIGITS) for _ in range(11))
    return prefix + suffix


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExpenseStore:
    """Owns the persisted expense collection.

    Every mutation re-reads the slot, applies the change and writes the whole
    collection back. Read failures degrade to an empty collection and write
    failures are logged and recorded on :attr:`last_write_error`; neither
    propagates to the caller.
    """

    def __init__(
        self,
        storage: SlotStorage,
        slot: str = DEFAULT_SLOT,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._storage = storage
        self._slot = slot
        self._clock = clock or _utc_now
        self._id_factory = id_factory or (lambda: generate_expense_id(self._clock()))
        self._last_write_error: Optional[PersistenceError] = None

    # Public API -----------------------------------------------------------
    def load(self) -> LoadResult:
        """Read the slot and report how the read went."""
        try:
            raw = self._storage.read(self._slot)
        except PersistenceError as exc:
            LOGGER.error("Error loading expenses from slot '%s': %s", self._slot, exc)
            return LoadResult(status=LoadStatus.UNREADABLE, error=str(exc))

        if raw is None:
            return LoadResult(status=LoadStatus.MISSING)

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            return self._corrupted(f"Malformed JSON: {exc}")
        if not isinstance(payload, list):
            return self._corrupted(f"Expected list payload, found {type(payload).__name__}")

        try:
            expenses = [Expense.from_dict(row) for row in payload]
        except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError) as exc:
            return self._corrupted(f"Malformed expense record: {exc!r}")

        if not expenses:
            return LoadResult(status=LoadStatus.EMPTY)
        return LoadResult(expenses=expenses, status=LoadStatus.OK)

    def list(self) -> List[Expense]:
        """Return the collection in insertion order, empty on read failure."""
        return self.load().expenses

    def get(self, expense_id: str) -> Optional[Expense]:
        for expense in self.list():
            if expense.id == expense_id:
                return expense
        return None

    def create(self, draft: Union[ExpenseDraft, Mapping[str, object]]) -> Expense:
        if not isinstance(draft, ExpenseDraft):
            draft = self.validate_draft(draft)

        # Persisted timestamps carry millisecond precision.
        created_at = self._clock()
        created_at = created_at.replace(microsecond=created_at.microsecond // 1000 * 1000)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        expenses = self._load_for_write()
        expense = Expense(
            id=self._new_id({existing.id for existing in expenses}),
            amount=draft.amount,
            description=draft.description,
            category=draft.category,
            date=draft.date,
            created_at=created_at,
        )
        expenses.append(expense)
        self._persist(expenses)
        LOGGER.debug("Created expense %s", expense.id)
        return expense

    def update(self, expense_id: str, changes: Mapping[str, object]) -> bool:
        """Merge ``changes`` into the matching record; False when absent.

        An unknown id returns False before ``changes`` is validated.
        """
        expenses = self._load_for_write()
        for index, existing in enumerate(expenses):
            if existing.id == expense_id:
                expenses[index] = self.apply_changes(existing, changes)
                self._persist(expenses)
                LOGGER.debug("Updated expense %s fields %s", expense_id, sorted(changes))
                return True

        LOGGER.info("Update skipped: expense %s not found", expense_id)
        return False

    def delete(self, expense_id: str) -> bool:
        expenses = self._load_for_write()
        remaining = [expense for expense in expenses if expense.id != expense_id]
        if len(remaining) == len(expenses):
            LOGGER.info("Delete skipped: expense %s not found", expense_id)
            return False

        self._persist(remaining)
        LOGGER.debug("Deleted expense %s", expense_id)
        return True

    @property
    def last_write_error(self) -> Optional[PersistenceError]:
        return self._last_write_error

    @property
    def persisted(self) -> bool:
        """Whether the most recent write reached storage."""
        return self._last_write_error is None

    # Validation -----------------------------------------------------------
    @staticmethod
    def validate_draft(payload: Mapping[str, object]) -> ExpenseDraft:
        return ExpenseDraft(
            amount=parse_amount(payload.get("amount"), "amount"),
            description=validate_required_str(payload.get("description"), "description", 200),
            category=validate_required_str(payload.get("category"), "category", 50),
            date=validate_date(payload.get("date"), "date"),
        )

    @staticmethod
    def validate_changes(changes: Mapping[str, object]) -> Dict[str, object]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}"
            )

        cleaned: Dict[str, object] = {}
        if "amount" in changes:
            cleaned["amount"] = parse_amount(changes["amount"], "amount")
        if "description" in changes:
            cleaned["description"] = validate_required_str(
                changes["description"], "description", 200
            )
        if "category" in changes:
            cleaned["category"] = validate_required_str(changes["category"], "category", 50)
        if "date" in changes:
            cleaned["date"] = validate_date(changes["date"], "date")
        return cleaned

    @classmethod
    def apply_changes(cls, expense: Expense, changes: Mapping[str, object]) -> Expense:
        """Return ``expense`` with validated ``changes`` merged in."""
        return replace(expense, **cls.validate_changes(changes))

    # Internal helpers -----------------------------------------------------
    def _corrupted(self, reason: str) -> LoadResult:
        LOGGER.error("Error loading expenses from slot '%s': %s", self._slot, reason)
        return LoadResult(status=LoadStatus.CORRUPTED, error=reason)

    def _load_for_write(self) -> List[Expense]:
        result = self.load()
        if not result.ok:
            LOGGER.warning(
                "Slot '%s' is %s; the next write replaces its contents",
                self._slot,
                result.status.value,
            )
        return list(result.expenses)

    def _new_id(self, existing_ids: Collection[str]) -> str:
        candidate = self._id_factory()
        while candidate in existing_ids:
            candidate = self._id_factory()
        return candidate

    def _persist(self, expenses: List[Expense]) -> bool:
        try:
            payload = json.dumps([expense.to_dict() for expense in expenses], indent=2, ensure_ascii=False)
            self._storage.write(self._slot, payload)
        except PersistenceError as exc:
            LOGGER.error("Error saving expenses to slot '%s': %s", self._slot, exc)
            self._last_write_error = exc
            return False
        except (TypeError, ValueError) as exc:
            LOGGER.error("Error serialising expenses for slot '%s': %s", self._slot, exc)
            self._last_write_error = PersistenceError(f"Unable to serialise expenses: {exc}")
            return False

        self._last_write_error = None
        return True
