"""Fixed catalog of expense categories and the shared fallback lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import ValidationError

__all__ = [
    "Category",
    "CategoryRegistry",
    "DEFAULT_CATEGORIES",
    "DEFAULT_REGISTRY",
    "FALLBACK_CATEGORY_ID",
    "resolve_category",
]

FALLBACK_CATEGORY_ID = "other"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "icon": self.icon}


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("food", "Food & Dining", "🍽️"),
    Category("transport", "Transportation", "🚗"),
    Category("shopping", "Shopping", "🛍️"),
    Category("entertainment", "Entertainment", "🎬"),
    Category("health", "Healthcare", "🏥"),
    Category("education", "Education", "📚"),
    Category("utilities", "Utilities", "💡"),
    Category("travel", "Travel", "✈️"),
    Category(FALLBACK_CATEGORY_ID, "Other", "📄"),
)


class CategoryRegistry:
    """Immutable, ordered catalog of categories.

    Lookups by id never fail: :meth:`resolve` maps unknown ids to the
    catch-all ``other`` entry, which every registry must contain.
    """

    def __init__(self, categories: Iterable[Category]) -> None:
        self._categories: Tuple[Category, ...] = tuple(categories)
        self._by_id: Dict[str, Category] = {}
        for category in self._categories:
            if category.id in self._by_id:
                raise ValidationError(f"Duplicate category id: {category.id}")
            self._by_id[category.id] = category
        if FALLBACK_CATEGORY_ID not in self._by_id:
            raise ValidationError(
                f"Category registry must include a '{FALLBACK_CATEGORY_ID}' entry"
            )

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def ids(self) -> List[str]:
        return [category.id for category in self._categories]

    def get(self, category_id: str) -> Optional[Category]:
        return self._by_id.get(category_id)

    @property
    def fallback(self) -> Category:
        return self._by_id[FALLBACK_CATEGORY_ID]

    def resolve(self, category_id: str) -> Category:
        """Return the entry for ``category_id`` or the ``other`` entry."""
        return self._by_id.get(category_id, self.fallback)


DEFAULT_REGISTRY = CategoryRegistry(DEFAULT_CATEGORIES)


def resolve_category(category_id: str, registry: CategoryRegistry = DEFAULT_REGISTRY) -> Category:
    return registry.resolve(category_id)
