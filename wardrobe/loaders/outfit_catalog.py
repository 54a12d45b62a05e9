"""
Outfit catalog.

Outfits are fetched in two phases: the user's outfit rows first, then,
for each outfit independently, its member items through the outfit_items
join. Member photos get signed URLs the same way catalog items do.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Optional

from pydantic import ValidationError
from rich.console import Console

from wardrobe.models.catalog import Outfit, OutfitDraft, OutfitItem, OutfitMember

from .catalog_base import CatalogBase

console = Console()

# Columns of clothing_items embedded in each outfit_items row
MEMBER_SELECT = (
    "clothing_items(id, name, front_image_url, back_image_url, "
    "category, color_primary, brand)"
)


@dataclass
class MemberDiff:
    """Join rows to insert and delete to move an outfit to a new item set."""

    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def diff_members(original_ids: Iterable[str], new_ids: Iterable[str]) -> MemberDiff:
    """
    Compare an outfit's current members with the desired ones.

    Unchanged members appear in neither list, so they are never deleted
    and re-inserted.

    Args:
        original_ids: Item ids currently linked to the outfit
        new_ids: Item ids the outfit should end up with

    Returns:
        MemberDiff with additions in new_ids order and removals in
        original_ids order
    """
    original = list(dict.fromkeys(original_ids))
    desired = list(dict.fromkeys(new_ids))
    original_set, desired_set = set(original), set(desired)
    return MemberDiff(
        to_add=[item_id for item_id in desired if item_id not in original_set],
        to_remove=[item_id for item_id in original if item_id not in desired_set],
    )


class OutfitCatalog(CatalogBase):
    """Fetch and mutate one user's outfits."""

    def __init__(self, client, identity, **kwargs):
        super().__init__(client, identity, **kwargs)
        self.outfits: tuple[Outfit, ...] = ()
        self._member_limit = asyncio.Semaphore(
            self.resolver.config.max_concurrent_requests
        )

    def _outfits(self):
        return self.client.table(self.tables.outfits)

    def _outfit_items(self):
        return self.client.table(self.tables.outfit_items)

    def get(self, outfit_id: str) -> Optional[Outfit]:
        return next((o for o in self.outfits if o.id == outfit_id), None)

    # =========================================================================
    # READ
    # =========================================================================

    async def fetch_outfits(self) -> tuple[Outfit, ...]:
        """
        Load the user's outfits, newest first, each with its member items.

        A failed member lookup leaves that outfit with no members; it does
        not fail the whole load.
        """
        generation = self._begin_fetch()
        user_id = await self.identity.current_user_id()

        if not user_id:
            if self._is_current(generation):
                self.outfits = ()
                self.loading = False
            return self.outfits

        self.loading = True
        self.error = None

        try:
            result = await (
                self._outfits()
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            rows = result.data or []
            # gather keeps the phase-one order regardless of completion order
            assembled = await asyncio.gather(*(self._assemble(row) for row in rows))
        except Exception as e:
            self._fetch_failed(generation, "outfits", e)
            return self.outfits

        if self._is_current(generation):
            self.outfits = tuple(outfit for outfit in assembled if outfit)
            self.loading = False
        return self.outfits

    async def _assemble(self, row: dict) -> Optional[Outfit]:
        try:
            outfit = Outfit.model_validate(row)
        except ValidationError as e:
            console.print(
                f"[yellow]Warning: skipping outfit {row.get('id')}: "
                f"{e.error_count()} invalid field(s)[/yellow]"
            )
            return None
        members = await self._fetch_members(outfit.id)
        if members is None:
            return outfit.model_copy(update={"members_loaded": False})
        return outfit.model_copy(update={"items": members})

    async def _fetch_members(self, outfit_id: str) -> Optional[tuple[OutfitMember, ...]]:
        """Signed member items of one outfit, or None if the lookup failed."""
        try:
            async with self._member_limit:
                result = await (
                    self._outfit_items()
                    .select(MEMBER_SELECT)
                    .eq("outfit_id", outfit_id)
                    .execute()
                )
        except Exception as e:
            console.print(
                f"[yellow]Warning: could not load items for outfit {outfit_id}: {e}[/yellow]"
            )
            return None

        members = []
        for row in result.data or []:
            embedded = row.get("clothing_items")
            if not embedded:
                continue
            try:
                members.append(OutfitMember.model_validate(embedded))
            except ValidationError:
                console.print(
                    f"[yellow]Warning: skipping malformed member of outfit {outfit_id}[/yellow]"
                )
        resolved = await asyncio.gather(*(self._with_signed_urls(m) for m in members))
        return tuple(resolved)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def delete_outfit(self, outfit_id: str) -> bool:
        """Delete an outfit; its join rows go with it (ON DELETE CASCADE)."""
        try:
            await self._outfits().delete().eq("id", outfit_id).execute()
        except Exception as e:
            return self._operation_failed(
                "Error deleting outfit", e, "Failed to delete outfit."
            )

        self.outfits = tuple(o for o in self.outfits if o.id != outfit_id)
        self.notifier.notify(
            "Outfit deleted", "The outfit has been removed from your collection."
        )
        return True

    async def increment_wear_count(self, outfit_id: str) -> bool:
        outfit = self.get(outfit_id)
        if outfit is None:
            return False

        times_worn = outfit.times_worn + 1
        try:
            await (
                self._outfits()
                .update({"times_worn": times_worn})
                .eq("id", outfit_id)
                .execute()
            )
        except Exception as e:
            return self._operation_failed(
                "Error updating wear count", e, "Failed to update wear count."
            )

        self.outfits = tuple(
            o.model_copy(update={"times_worn": times_worn}) if o.id == outfit_id else o
            for o in self.outfits
        )
        self.notifier.notify("Marked as worn!", "Outfit wear count updated.")
        return True

    async def _stored_member_ids(self, outfit_id: str) -> list[str]:
        """Item ids linked to an outfit, read straight from the join table."""
        result = await (
            self._outfit_items().select("item_id").eq("outfit_id", outfit_id).execute()
        )
        return [row["item_id"] for row in result.data or []]

    async def apply_member_diff(self, outfit_id: str, diff: MemberDiff) -> None:
        """
        Write a member diff: one batched insert, one batched delete.

        Either call is skipped when it has nothing to do.

        Raises:
            Exception: Whatever the record store raises; callers report it
        """
        if diff.to_add:
            rows = [
                OutfitItem(outfit_id=outfit_id, item_id=item_id).model_dump()
                for item_id in diff.to_add
            ]
            await self._outfit_items().insert(rows).execute()

        if diff.to_remove:
            await (
                self._outfit_items()
                .delete()
                .eq("outfit_id", outfit_id)
                .in_("item_id", diff.to_remove)
                .execute()
            )

    async def create_outfit(self, draft: OutfitDraft, item_ids: list[str]) -> bool:
        """Create an outfit with its members, then reload the list."""
        item_ids = list(dict.fromkeys(item_ids))
        if not item_ids:
            self.notifier.notify(
                "Missing required fields",
                "Please provide a name and select at least one clothing item.",
                "destructive",
            )
            return False

        try:
            user_id = await self.identity.current_user_id()
            if not user_id:
                raise PermissionError("User not authenticated")

            result = await (
                self._outfits()
                .insert({**draft.to_record(), "user_id": user_id})
                .execute()
            )
            outfit_id = result.data[0]["id"]
            await self.apply_member_diff(outfit_id, MemberDiff(to_add=item_ids))
        except Exception as e:
            return self._operation_failed(
                "Error creating outfit", e, "Failed to create outfit. Please try again."
            )

        self.notifier.notify(
            "Outfit created successfully!",
            "Your new outfit has been added to your collection.",
        )
        await self.fetch_outfits()
        return True

    async def update_outfit(
        self, outfit_id: str, draft: OutfitDraft, item_ids: list[str]
    ) -> bool:
        """Update an outfit's fields and move its members to item_ids."""
        outfit = self.get(outfit_id)
        if outfit is None:
            self.notifier.notify(
                "Failed to update outfit", "Missing outfit to edit.", "destructive"
            )
            return False
        if not item_ids:
            self.notifier.notify(
                "Missing required fields",
                "Please provide a name and select at least one clothing item.",
                "destructive",
            )
            return False

        try:
            current_ids = (
                outfit.item_ids
                if outfit.members_loaded
                else await self._stored_member_ids(outfit_id)
            )
            diff = diff_members(current_ids, item_ids)
            await self._outfits().update(draft.to_record()).eq("id", outfit_id).execute()
            await self.apply_member_diff(outfit_id, diff)
        except Exception as e:
            return self._operation_failed(
                "Error updating outfit", e, "Failed to update outfit. Please try again."
            )

        self.notifier.notify("Outfit updated")
        await self.fetch_outfits()
        return True
