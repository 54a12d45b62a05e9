"""
Client-side browsing over an already-fetched catalog.

These never touch the network; they take the published tuples from the
catalogs and return new sequences.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from wardrobe.models.catalog import ClothingItem, Outfit, OutfitMember

SORT_OPTIONS = {
    "recent": "Recently Added",
    "worn-most": "Most Worn",
    "worn-least": "Least Worn",
    "name": "Alphabetical",
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def filter_items(
    items: Iterable[ClothingItem],
    search: str = "",
    category: Optional[str] = None,
) -> list[ClothingItem]:
    """
    Items whose name or brand contains `search`, limited to one category.

    Args:
        items: Items to filter
        search: Case-insensitive substring; empty matches everything
        category: Category to keep; None or "all" keeps every category
    """
    term = search.strip().lower()
    wanted = (category or "all").lower()

    def matches(item: ClothingItem) -> bool:
        if term and term not in item.name.lower() and term not in (item.brand or "").lower():
            return False
        return wanted == "all" or item.category == wanted

    return [item for item in items if matches(item)]


def _created(item: ClothingItem) -> datetime:
    created = item.created_at
    if created is None:
        return _EPOCH
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


def sort_items(items: Iterable[ClothingItem], sort_by: str = "recent") -> list[ClothingItem]:
    """Sort items by one of SORT_OPTIONS."""
    items = list(items)
    if sort_by == "recent":
        return sorted(items, key=_created, reverse=True)
    if sort_by == "worn-most":
        return sorted(items, key=lambda item: item.wear_count, reverse=True)
    if sort_by == "worn-least":
        return sorted(items, key=lambda item: item.wear_count)
    if sort_by == "name":
        return sorted(items, key=lambda item: item.name.lower())
    raise ValueError(f"Unknown sort option: {sort_by} (choose from {', '.join(SORT_OPTIONS)})")


def items_by_category(outfit: Outfit, category: str) -> list[OutfitMember]:
    return [member for member in outfit.items if member.category == category]


def outfit_stats(outfit: Outfit) -> dict:
    """Summary of which kinds of pieces an outfit contains."""
    categories = [member.category for member in outfit.items]
    return {
        "total_items": len(outfit.items),
        "categories": list(dict.fromkeys(categories)),
        "has_tops": "tops" in categories,
        "has_bottoms": "bottoms" in categories,
        "has_shoes": "shoes" in categories,
        "has_accessories": "accessories" in categories,
    }
