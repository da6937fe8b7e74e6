"""Tests for the category registry."""

from __future__ import annotations

import pytest

from expense_core.categories import (
    DEFAULT_REGISTRY,
    Category,
    CategoryRegistry,
    resolve_category,
)
from expense_core.exceptions import ValidationError


def test_default_registry_order() -> None:
    assert DEFAULT_REGISTRY.ids() == [
        "food",
        "transport",
        "shopping",
        "entertainment",
        "health",
        "education",
        "utilities",
        "travel",
        "other",
    ]
    assert len(DEFAULT_REGISTRY) == 9


def test_resolve_known_and_unknown_ids() -> None:
    assert resolve_category("health").name == "Healthcare"
    assert resolve_category("crypto") is DEFAULT_REGISTRY.fallback
    assert resolve_category("").id == "other"
    assert DEFAULT_REGISTRY.get("crypto") is None
    assert "travel" in DEFAULT_REGISTRY


def test_custom_registry_requires_fallback_entry() -> None:
    with pytest.raises(ValidationError):
        CategoryRegistry([Category("food", "Food", "F")])


def test_custom_registry_rejects_duplicates() -> None:
    with pytest.raises(ValidationError):
        CategoryRegistry(
            [Category("other", "Other", "O"), Category("other", "Misc", "M")]
        )
