"""
Garment selection with slot rules.

One item per category slot.  A full outfit and the separates it replaces
(upper, lower, shoes) are mutually exclusive: picking one side clears the
other.  Outerwear has its own slot and combines with anything.
"""

from __future__ import annotations

from dataclasses import dataclass

from uzerimde.models.schemas import ClothingCategory, ClothingItem

SEPARATES = frozenset({
    ClothingCategory.upper.value,
    ClothingCategory.lower.value,
    ClothingCategory.shoes.value,
})


@dataclass(frozen=True)
class Selection:
    """Immutable, ordered selection; every change returns a new Selection."""
    entries: tuple[ClothingItem, ...] = ()

    def select(self, item: ClothingItem) -> Selection:
        category = item.category
        if category == ClothingCategory.full.value:
            cleared = SEPARATES | {category}
        elif category in SEPARATES:
            cleared = {category, ClothingCategory.full.value}
        else:
            cleared = {category}

        kept = tuple(e for e in self.entries if e.category not in cleared)
        return Selection(kept + (item,))

    def remove(self, category: str) -> Selection:
        return Selection(tuple(e for e in self.entries if e.category != category))

    def clear(self) -> Selection:
        return Selection()

    def get(self, category: str) -> ClothingItem | None:
        for entry in self.entries:
            if entry.category == category:
                return entry
        return None

    def items(self) -> list[ClothingItem]:
        """Selected items in the order they were picked."""
        return list(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
