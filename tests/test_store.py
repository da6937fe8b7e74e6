"""Tests for the expense store: CRUD, persistence layout and failure recovery."""

from __future__ import annotations

import json
import random
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from expense_core.exceptions import PersistenceError, ValidationError
from expense_core.models import ExpenseDraft
from expense_core.storage import FileStorage, MemoryStorage
from expense_core.store import ExpenseStore, LoadStatus, generate_expense_id

from conftest import FIXED_NOW


def _draft(description: str = "Lunch", amount: str = "12.50", category: str = "food", day: str = "2024-01-05"):
    return {"amount": amount, "description": description, "category": category, "date": day}


class UnreadableStorage:
    def read(self, slot: str) -> Optional[str]:
        raise PersistenceError("disk unavailable")

    def write(self, slot: str, payload: str) -> None:
        raise PersistenceError("disk unavailable")


def test_create_then_list_preserves_insertion_order(store: ExpenseStore) -> None:
    created = [store.create(_draft(description=f"Item {index}")) for index in range(5)]

    listed = store.list()

    assert [expense.id for expense in listed] == [expense.id for expense in created]
    assert len({expense.id for expense in listed}) == 5
    assert listed == created


def test_create_stamps_created_at_and_quantizes_amount(store: ExpenseStore) -> None:
    expense = store.create(_draft(amount="19.999"))

    assert expense.created_at == FIXED_NOW
    assert expense.amount == Decimal("20.00")
    assert expense.date == date(2024, 1, 5)


def test_create_accepts_validated_draft(store: ExpenseStore) -> None:
    draft = ExpenseDraft(
        amount=Decimal("4.20"), description="Coffee", category="food", date=date(2024, 1, 2)
    )

    expense = store.create(draft)

    assert store.get(expense.id) == expense


def test_create_rejects_malformed_drafts(store: ExpenseStore) -> None:
    with pytest.raises(ValidationError):
        store.create(_draft(description="   "))
    with pytest.raises(ValidationError):
        store.create(_draft(amount="abc"))
    with pytest.raises(ValidationError):
        store.create(_draft(amount="NaN"))
    with pytest.raises(ValidationError):
        store.create(_draft(day="2024-13-01"))
    assert store.list() == []


def test_store_accepts_negative_amounts_and_unknown_categories(store: ExpenseStore) -> None:
    expense = store.create(_draft(amount="-5", category="pets"))

    assert expense.amount == Decimal("-5.00")
    assert store.get(expense.id).category == "pets"


def test_generated_ids_skip_existing_values(storage: MemoryStorage) -> None:
    candidates = iter(["dup", "dup", "dup", "fresh"])
    store = ExpenseStore(storage, clock=lambda: FIXED_NOW, id_factory=lambda: next(candidates))

    first = store.create(_draft())
    second = store.create(_draft())

    assert first.id == "dup"
    assert second.id == "fresh"


def test_generate_expense_id_prefixes_base36_timestamp() -> None:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    millis = int(now.timestamp() * 1000)

    generated = generate_expense_id(now, random.Random(7))

    assert int(generated[:-11], 36) == millis
    assert len(generated) == len(generated[:-11]) + 11
    assert generated != generate_expense_id(now, random.Random(8))


def test_default_store_generates_unique_ids(storage: MemoryStorage) -> None:
    store = ExpenseStore(storage)

    ids = {store.create(_draft()).id for _ in range(20)}

    assert len(ids) == 20


def test_update_changes_only_given_fields(store: ExpenseStore) -> None:
    expense = store.create(_draft())
    before = expense.to_dict()

    assert store.update(expense.id, {"description": "Team lunch", "amount": "30"}) is True

    after = store.get(expense.id).to_dict()
    assert after["description"] == "Team lunch"
    assert after["amount"] == "30.00"
    for key in ("id", "category", "date", "createdAt"):
        assert after[key] == before[key]


def test_update_missing_record_returns_false_without_writing(store: ExpenseStore, storage: MemoryStorage) -> None:
    store.create(_draft())
    raw_before = storage.read("expenses")

    assert store.update("missing", {"description": "Nope"}) is False
    assert storage.read("expenses") == raw_before


def test_update_missing_record_skips_field_validation(store: ExpenseStore) -> None:
    store.create(_draft())

    assert store.update("missing", {"description": ""}) is False
    assert store.update("missing", {"id": "other"}) is False


def test_apply_changes_merges_validated_fields(store: ExpenseStore) -> None:
    expense = store.create(_draft())

    merged = ExpenseStore.apply_changes(expense, {"amount": "7.005", "category": "travel"})

    assert merged.amount == Decimal("7.01")
    assert merged.category == "travel"
    assert merged.id == expense.id
    assert merged.created_at == expense.created_at
    assert store.get(expense.id) == expense


def test_update_rejects_immutable_and_unknown_fields(store: ExpenseStore) -> None:
    expense = store.create(_draft())

    with pytest.raises(ValidationError):
        store.update(expense.id, {"id": "other"})
    with pytest.raises(ValidationError):
        store.update(expense.id, {"createdAt": "2020-01-01T00:00:00Z"})
    with pytest.raises(ValidationError):
        store.update(expense.id, {"description": ""})
    assert store.get(expense.id) == expense


def test_delete_missing_record_leaves_collection_unchanged(store: ExpenseStore) -> None:
    created = [store.create(_draft(description=name)) for name in ("a", "b")]

    assert store.delete("missing") is False
    assert store.list() == created


def test_delete_removes_only_matching_record(store: ExpenseStore) -> None:
    first = store.create(_draft(description="first"))
    second = store.create(_draft(description="second"))

    assert store.delete(first.id) is True
    assert store.list() == [second]


def test_round_trip_leaves_empty_collection(store: ExpenseStore) -> None:
    expense = store.create(_draft())
    assert [item.id for item in store.list()] == [expense.id]

    assert store.update(expense.id, {"category": "travel"})
    assert store.list()[0].category == "travel"

    assert store.delete(expense.id)
    assert store.list() == []
    assert store.load().status is LoadStatus.EMPTY


def test_persisted_layout_uses_expected_field_names(store: ExpenseStore, storage: MemoryStorage) -> None:
    store.create(_draft())

    rows = json.loads(storage.read("expenses"))

    assert set(rows[0]) == {"id", "amount", "description", "category", "date", "createdAt"}
    assert rows[0]["date"] == "2024-01-05"
    assert rows[0]["createdAt"] == "2024-03-01T09:30:00.000Z"


def test_load_reports_missing_slot(store: ExpenseStore) -> None:
    result = store.load()

    assert result.status is LoadStatus.MISSING
    assert result.ok
    assert result.expenses == []


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        json.dumps({"id": "x"}),
        json.dumps([{"id": "x", "amount": "1"}]),
        json.dumps([{"id": "x", "amount": "abc", "description": "d", "category": "food",
                     "date": "2024-01-01", "createdAt": "2024-01-01T00:00:00Z"}]),
        json.dumps(["just a string"]),
    ],
)
def test_load_treats_malformed_data_as_corrupted(storage: MemoryStorage, payload: str, caplog) -> None:
    storage.write("expenses", payload)
    store = ExpenseStore(storage)

    result = store.load()

    assert result.status is LoadStatus.CORRUPTED
    assert not result.ok
    assert result.error
    assert store.list() == []
    assert "Error loading expenses" in caplog.text


def test_load_accepts_numeric_amounts_from_older_data(storage: MemoryStorage) -> None:
    storage.write(
        "expenses",
        json.dumps([
            {"id": "k1", "amount": 12.5, "description": "Taxi", "category": "transport",
             "date": "2024-01-05", "createdAt": "2024-01-05T10:00:00.000Z"},
        ]),
    )

    [expense] = ExpenseStore(storage).list()

    assert expense.amount == Decimal("12.5")
    assert expense.created_at == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)


def test_unreadable_storage_degrades_to_empty_collection() -> None:
    store = ExpenseStore(UnreadableStorage())

    result = store.load()

    assert result.status is LoadStatus.UNREADABLE
    assert result.expenses == []


def test_write_failure_is_recorded_but_not_raised(id_sequence) -> None:
    storage = MemoryStorage(capacity=10)
    store = ExpenseStore(storage, clock=lambda: FIXED_NOW, id_factory=id_sequence)

    expense = store.create(_draft())

    assert expense.description == "Lunch"
    assert store.persisted is False
    assert isinstance(store.last_write_error, PersistenceError)
    assert store.list() == []


def test_successful_write_clears_previous_failure(id_sequence) -> None:
    storage = MemoryStorage(capacity=400)
    store = ExpenseStore(storage, clock=lambda: FIXED_NOW, id_factory=id_sequence)
    store.create(_draft(description="x" * 200))
    assert store.persisted is True

    store.create(_draft(description="y" * 200))
    assert store.persisted is False

    store.delete(store.list()[0].id)
    assert store.persisted is True


def test_file_storage_round_trip_across_store_instances(tmp_path) -> None:
    first = ExpenseStore(FileStorage(tmp_path), clock=lambda: FIXED_NOW)
    created = first.create(_draft())

    second = ExpenseStore(FileStorage(tmp_path))

    assert second.list() == [created]
    assert (tmp_path / "expenses.json").exists()
    assert not (tmp_path / "expenses.json.tmp").exists()


def test_separate_slots_are_isolated(storage: MemoryStorage) -> None:
    personal = ExpenseStore(storage, "personal")
    work = ExpenseStore(storage, "work")

    personal.create(_draft())

    assert len(personal.list()) == 1
    assert work.list() == []
