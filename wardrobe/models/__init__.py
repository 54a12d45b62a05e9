"""Catalog record models."""

from .catalog import (
    CATEGORIES,
    ClothingItem,
    ItemDraft,
    Outfit,
    OutfitDraft,
    OutfitItem,
    OutfitMember,
)

__all__ = [
    "CATEGORIES",
    "ClothingItem",
    "ItemDraft",
    "Outfit",
    "OutfitDraft",
    "OutfitItem",
    "OutfitMember",
]
