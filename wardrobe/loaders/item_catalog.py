"""
Clothing item catalog.

Keeps the signed-in user's clothing items in memory, display-ready (photo
references resolved to signed URLs), and in step with the clothing_items
table.

Usage:
    catalog = ItemCatalog(client, SupabaseIdentity(client))

    items = await catalog.fetch_items()
    await catalog.toggle_favorite(items[0].id)
    await catalog.increment_wear_count(items[0].id)
"""

import asyncio
from datetime import date
from typing import Optional

from pydantic import ValidationError
from rich.console import Console

from wardrobe.models.catalog import ClothingItem, ItemDraft

from .catalog_base import CatalogBase

console = Console()

PHOTO_FIELDS = ("front_image_url", "back_image_url")


class ItemCatalog(CatalogBase):
    """
    Fetch and mutate one user's clothing items.

    Public operations never raise. Failures are reported through the
    notifier, and `error` holds the message of the last failed fetch.
    """

    def __init__(self, client, identity, **kwargs):
        super().__init__(client, identity, **kwargs)
        self.items: tuple[ClothingItem, ...] = ()

    def _table(self):
        return self.client.table(self.tables.items)

    # =========================================================================
    # READ
    # =========================================================================

    def get(self, item_id: str) -> Optional[ClothingItem]:
        return next((item for item in self.items if item.id == item_id), None)

    @property
    def favorites(self) -> tuple[ClothingItem, ...]:
        return tuple(item for item in self.items if item.favorite)

    async def fetch_items(self) -> tuple[ClothingItem, ...]:
        """
        Load the user's items, newest first, with fresh signed photo URLs.

        Returns:
            The published list. Without a signed-in user this is empty; on
            failure it is the last list that loaded successfully.
        """
        generation = self._begin_fetch()
        user_id = await self.identity.current_user_id()

        if not user_id:
            if self._is_current(generation):
                self.items = ()
                self.loading = False
            return self.items

        self.loading = True
        self.error = None

        try:
            result = await (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            records = [self._validate(row) for row in result.data or []]
            items = await asyncio.gather(
                *(self._with_signed_urls(item) for item in records if item)
            )
        except Exception as e:
            self._fetch_failed(generation, "clothing items", e)
            return self.items

        if self._is_current(generation):
            self.items = tuple(items)
            self.loading = False
        return self.items

    @staticmethod
    def _validate(row: dict) -> Optional[ClothingItem]:
        try:
            return ClothingItem.model_validate(row)
        except ValidationError as e:
            console.print(
                f"[yellow]Warning: skipping item {row.get('id')}: "
                f"{e.error_count()} invalid field(s)[/yellow]"
            )
            return None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _patch(self, item_id: str, **changes) -> None:
        self.items = tuple(
            item.model_copy(update=changes) if item.id == item_id else item
            for item in self.items
        )

    async def toggle_favorite(self, item_id: str) -> bool:
        """Flip the favorite flag. Unknown ids are ignored."""
        item = self.get(item_id)
        if item is None:
            return False

        favorite = not item.favorite
        try:
            await self._table().update({"favorite": favorite}).eq("id", item_id).execute()
        except Exception as e:
            return self._operation_failed(
                "Error toggling favorite", e, "Failed to update favorite status."
            )

        self._patch(item_id, favorite=favorite)
        if favorite:
            self.notifier.notify(
                "Added to favorites", f"{item.name} has been added to your favorites."
            )
        else:
            self.notifier.notify(
                "Removed from favorites",
                f"{item.name} has been removed from your favorites.",
            )
        return True

    async def increment_wear_count(self, item_id: str) -> bool:
        """Count one more wear and stamp today's date as last worn."""
        item = self.get(item_id)
        if item is None:
            return False

        # Read-modify-write; concurrent sessions can lose an increment
        wear_count = item.wear_count + 1
        today = date.today()
        try:
            await (
                self._table()
                .update({"wear_count": wear_count, "last_worn": today.isoformat()})
                .eq("id", item_id)
                .execute()
            )
        except Exception as e:
            return self._operation_failed(
                "Error updating wear count", e, "Failed to update wear count."
            )

        self._patch(item_id, wear_count=wear_count, last_worn=today)
        self.notifier.notify("Marked as worn!", f"{item.name} wear count updated.")
        return True

    async def delete_item(self, item_id: str) -> bool:
        try:
            await self._table().delete().eq("id", item_id).execute()
        except Exception as e:
            return self._operation_failed(
                "Error deleting item", e, "Failed to delete item."
            )

        self.items = tuple(item for item in self.items if item.id != item_id)
        self.notifier.notify(
            "Item deleted", "The clothing item has been removed from your wardrobe."
        )
        return True

    async def add_item(self, draft: ItemDraft) -> bool:
        """Insert a new item for the signed-in user, then reload the list."""
        if not draft.front_image_url:
            self.notifier.notify(
                "Image required",
                "Please upload at least a front image of the clothing item.",
                "destructive",
            )
            return False

        try:
            user_id = await self.identity.current_user_id()
            if not user_id:
                raise PermissionError("User not authenticated")
            record = {**draft.to_record(), "user_id": user_id}
            await self._table().insert(record).execute()
        except Exception as e:
            return self._operation_failed(
                "Error adding clothing item", e, "Failed to add item. Please try again."
            )

        self.notifier.notify(
            "Item added successfully!",
            "Your clothing item has been added to your wardrobe.",
        )
        await self.fetch_items()
        return True

    async def update_item(self, item_id: str, draft: ItemDraft) -> bool:
        """
        Overwrite an item's editable fields, then reload the list.

        Photo references missing from the draft are left as stored.
        """
        record = {
            key: value
            for key, value in draft.to_record().items()
            if not (key in PHOTO_FIELDS and value is None)
        }
        try:
            await self._table().update(record).eq("id", item_id).execute()
        except Exception as e:
            return self._operation_failed(
                "Error updating clothing item", e, "Failed to update item. Please try again."
            )

        self.notifier.notify(
            "Item updated successfully!", "Your clothing item has been updated."
        )
        await self.fetch_items()
        return True
