"""
Catalog loaders backed by Supabase.

Usage:
    from wardrobe.loaders import ItemCatalog, OutfitCatalog, SupabaseIdentity
    from wardrobe.loaders import create_supabase_client

    client = await create_supabase_client()
    identity = SupabaseIdentity(client)
    items = ItemCatalog(client, identity)
    outfits = OutfitCatalog(client, identity, resolver=items.resolver)
"""

from .item_catalog import ItemCatalog
from .outfit_catalog import MemberDiff, OutfitCatalog, diff_members
from .supabase_client import SupabaseIdentity, create_supabase_client, describe_error

__all__ = [
    "ItemCatalog",
    "OutfitCatalog",
    "MemberDiff",
    "diff_members",
    "SupabaseIdentity",
    "create_supabase_client",
    "describe_error",
]
