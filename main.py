#!/usr/bin/env python3
"""
Wardrobe Catalog - Main Entry Point

Browse and manage your clothing items and outfits stored in Supabase.

Usage:
    python main.py                          # List your clothing items
    python main.py --outfits                # List your outfits
    python main.py --favorite ITEM_ID       # Toggle an item's favorite flag
"""
import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from config.settings import AppConfig, config as default_config
from wardrobe.filters import SORT_OPTIONS, filter_items, outfit_stats, sort_items
from wardrobe.health import check_connection
from wardrobe.loaders import (
    ItemCatalog,
    OutfitCatalog,
    SupabaseIdentity,
    create_supabase_client,
)
from wardrobe.models import CATEGORIES, ItemDraft, OutfitDraft
from wardrobe.notifications import ConsoleNotifier
from wardrobe.storage import AccessUrlResolver, ImageRejected

console = Console()


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that preserves formatting and adds width."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=40, width=100)


def parse_args(argv: Optional[list[str]] = None):
    """Parse command line arguments."""

    category_list = ", ".join(CATEGORIES)
    sort_list = "\n".join(
        f"    {key:<12} {label}" for key, label in SORT_OPTIONS.items()
    )

    epilog = f"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
CATEGORIES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    {category_list}

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
SORT OPTIONS
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
{sort_list}

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
EXAMPLES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  Browsing:
    python main.py                              All items, newest first
    python main.py -c tops --sort worn-most     Tops, most worn first
    python main.py -s denim                     Items with "denim" in name/brand
    python main.py --outfits                    All outfits with their items

  Items:
    python main.py --favorite ITEM_ID           Toggle favorite
    python main.py --wear ITEM_ID               Mark as worn today
    python main.py --delete-item ITEM_ID        Delete an item
    python main.py --add-item "White Tee" --item-category tops --front tee.jpg

  Outfits:
    python main.py --new-outfit "Office" --with ID1 ID2 ID3
    python main.py --edit-outfit OUTFIT_ID --with ID1 ID4
    python main.py --wear-outfit OUTFIT_ID
    python main.py --delete-outfit OUTFIT_ID

  Diagnostics:
    python main.py --status                     Check auth, database and storage

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
NOTES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  • Requires .env with SUPABASE_URL, SUPABASE_KEY, WARDROBE_EMAIL, WARDROBE_PASSWORD
  • Photo links printed here are signed and expire after one hour
"""

    parser = argparse.ArgumentParser(
        prog="python main.py",
        description="""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
                              WARDROBE CATALOG
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
Manage the clothing items and outfits in your Supabase wardrobe:
  • Browse, search and sort items
  • Favorite, wear-count and delete items and outfits
  • Create and edit outfits
""",
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
    )

    # Catalog browsing group
    browse_group = parser.add_argument_group(
        "Catalog", "Choose what to list and how"
    )

    browse_group.add_argument(
        "--items",
        action="store_true",
        help="List clothing items (default when no action is given)",
    )

    browse_group.add_argument(
        "--outfits",
        action="store_true",
        help="List outfits with their member items",
    )

    browse_group.add_argument(
        "--category",
        "-c",
        type=str,
        default="all",
        choices=["all", *CATEGORIES],
        metavar="CAT",
        help="Only show items of this category (default: all)",
    )

    browse_group.add_argument(
        "--search",
        "-s",
        type=str,
        default="",
        metavar="TEXT",
        help="Only show items whose name or brand contains TEXT",
    )

    browse_group.add_argument(
        "--sort",
        type=str,
        default="recent",
        choices=list(SORT_OPTIONS),
        metavar="ORDER",
        help="Item order (default: recent). See list below.",
    )

    # Item actions group
    item_group = parser.add_argument_group("Item Actions", "Change one clothing item")

    item_group.add_argument(
        "--favorite", type=str, metavar="ITEM_ID", help="Toggle an item's favorite flag"
    )

    item_group.add_argument(
        "--wear", type=str, metavar="ITEM_ID", help="Mark an item as worn today"
    )

    item_group.add_argument(
        "--delete-item", type=str, metavar="ITEM_ID", help="Delete an item"
    )

    item_group.add_argument(
        "--add-item", type=str, metavar="NAME", help="Add a new item with this name"
    )

    item_group.add_argument(
        "--item-category",
        type=str,
        choices=list(CATEGORIES),
        metavar="CAT",
        help="Category of the new item (required with --add-item)",
    )

    item_group.add_argument(
        "--brand", type=str, default=None, metavar="BRAND", help="Brand of the new item"
    )

    item_group.add_argument(
        "--front",
        type=str,
        metavar="PATH_OR_URL",
        help="Front photo of the new item (file path or http URL)",
    )

    item_group.add_argument(
        "--back",
        type=str,
        metavar="PATH_OR_URL",
        help="Back photo of the new item (optional)",
    )

    # Outfit actions group
    outfit_group = parser.add_argument_group("Outfit Actions", "Change one outfit")

    outfit_group.add_argument(
        "--wear-outfit", type=str, metavar="OUTFIT_ID", help="Mark an outfit as worn"
    )

    outfit_group.add_argument(
        "--delete-outfit", type=str, metavar="OUTFIT_ID", help="Delete an outfit"
    )

    outfit_group.add_argument(
        "--new-outfit", type=str, metavar="NAME", help="Create an outfit with this name"
    )

    outfit_group.add_argument(
        "--edit-outfit",
        type=str,
        metavar="OUTFIT_ID",
        help="Replace an outfit's items with the ones given by --with",
    )

    outfit_group.add_argument(
        "--with",
        dest="with_items",
        type=str,
        nargs="+",
        default=[],
        metavar="ITEM_ID",
        help="Item ids for --new-outfit / --edit-outfit",
    )

    outfit_group.add_argument(
        "--occasion", type=str, default=None, metavar="TEXT", help="Occasion of the outfit"
    )

    outfit_group.add_argument(
        "--rating",
        type=int,
        default=None,
        choices=range(1, 6),
        metavar="1-5",
        help="Rating of the outfit",
    )

    # Diagnostics group
    diag_group = parser.add_argument_group("Diagnostics")

    diag_group.add_argument(
        "--status",
        action="store_true",
        help="Check the Supabase connection (auth, database, storage) and exit",
    )

    return parser.parse_args(argv)


# =============================================================================
# SESSION
# =============================================================================


async def open_session(app_config: AppConfig):
    """Create the client, sign in with the configured account, build catalogs."""
    client = await create_supabase_client(app_config.supabase)
    identity = SupabaseIdentity(client)

    if app_config.supabase.email and app_config.supabase.password:
        user_id = await identity.sign_in(
            app_config.supabase.email, app_config.supabase.password
        )
        if user_id:
            console.print(f"[dim]Signed in as {app_config.supabase.email}[/dim]")

    resolver = AccessUrlResolver(client, app_config.storage)
    notifier = ConsoleNotifier(console)
    items = ItemCatalog(
        client, identity, resolver=resolver, notifier=notifier, tables=app_config.tables
    )
    outfits = OutfitCatalog(
        client, identity, resolver=resolver, notifier=notifier, tables=app_config.tables
    )
    return client, identity, items, outfits


# =============================================================================
# COMMANDS
# =============================================================================


async def show_status(client, resolver: AccessUrlResolver, app_config: AppConfig) -> int:
    console.print("\n[bold cyan]Supabase Connection Status[/bold cyan]\n")
    report = await check_connection(client, resolver, app_config.tables)
    for component in report.components:
        mark = "[green]✓[/green]" if component.connected else "[red]✗[/red]"
        console.print(f"  {mark} {component.name:<10} {component.message}")
    return 0 if report.ok else 1


async def list_items(catalog: ItemCatalog, args) -> int:
    await catalog.fetch_items()
    if catalog.error:
        return 1

    shown = sort_items(
        filter_items(catalog.items, search=args.search, category=args.category),
        args.sort,
    )

    table = Table(
        title=f"My Wardrobe ({len(shown)} items • {len(catalog.favorites)} favorites)",
        show_header=True,
    )
    table.add_column("", width=1)
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Brand", style="dim")
    table.add_column("Worn", justify="right", style="green")
    table.add_column("Last worn", style="dim")
    table.add_column("ID", style="dim")

    for item in shown:
        table.add_row(
            "★" if item.favorite else "",
            item.name,
            item.category,
            item.brand or "",
            str(item.wear_count),
            item.last_worn.isoformat() if item.last_worn else "never",
            item.id,
        )

    console.print(table)
    return 0


async def list_outfits(catalog: OutfitCatalog) -> int:
    await catalog.fetch_outfits()
    if catalog.error:
        return 1

    table = Table(title=f"My Outfits ({len(catalog.outfits)})", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Occasion")
    table.add_column("Rating", justify="center")
    table.add_column("Worn", justify="right", style="green")
    table.add_column("Items")
    table.add_column("ID", style="dim")

    for outfit in catalog.outfits:
        stats = outfit_stats(outfit)
        members = ", ".join(member.name for member in outfit.items) or "[dim]none[/dim]"
        table.add_row(
            outfit.name,
            outfit.occasion or "",
            "★" * (outfit.rating or 0),
            str(outfit.times_worn),
            f"{members} [dim]({stats['total_items']})[/dim]",
            outfit.id,
        )

    console.print(table)
    return 0


async def _upload_photo(
    resolver: AccessUrlResolver, user_id: str, source: str
) -> Optional[str]:
    """Upload a local file or a web image and return its stored reference."""
    if source.startswith(("http://", "https://")):
        return await resolver.upload_image_from_url(user_id, source)

    path = Path(source)
    if not path.is_file():
        console.print(f"[red]No such file: {source}[/red]")
        return None
    content_type, _ = mimetypes.guess_type(path.name)
    return await resolver.upload_image(user_id, path.name, path.read_bytes(), content_type)


async def add_item(catalog: ItemCatalog, identity: SupabaseIdentity, args) -> int:
    if not args.item_category or not args.front:
        console.print("[red]--add-item needs --item-category and --front[/red]")
        return 1

    user_id = await identity.current_user_id()
    if not user_id:
        console.print("[red]Please sign in to upload images (set WARDROBE_EMAIL/PASSWORD)[/red]")
        return 1

    try:
        front = await _upload_photo(catalog.resolver, user_id, args.front)
        back = (
            await _upload_photo(catalog.resolver, user_id, args.back) if args.back else None
        )
    except ImageRejected as e:
        console.print(f"[red]{e}[/red]")
        return 1
    if not front or (args.back and not back):
        return 1

    try:
        draft = ItemDraft(
            name=args.add_item,
            category=args.item_category,
            brand=args.brand,
            front_image_url=front,
            back_image_url=back,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid item: {e}[/red]")
        return 1

    return 0 if await catalog.add_item(draft) else 1


async def save_outfit(catalog: OutfitCatalog, args) -> int:
    await catalog.fetch_outfits()

    if args.edit_outfit:
        existing = catalog.get(args.edit_outfit)
        if existing is None:
            console.print(f"[red]Outfit not found: {args.edit_outfit}[/red]")
            return 1
        fields = {
            "name": existing.name,
            "occasion": existing.occasion,
            "season": existing.season,
            "notes": existing.notes,
            "rating": existing.rating,
        }
        if args.occasion is not None:
            fields["occasion"] = args.occasion
        if args.rating is not None:
            fields["rating"] = args.rating
    else:
        fields = {"name": args.new_outfit, "occasion": args.occasion, "rating": args.rating}

    try:
        draft = OutfitDraft(**fields)
    except ValidationError as e:
        console.print(f"[red]Invalid outfit: {e}[/red]")
        return 1

    if args.edit_outfit:
        ok = await catalog.update_outfit(args.edit_outfit, draft, args.with_items)
    else:
        ok = await catalog.create_outfit(draft, args.with_items)
    return 0 if ok else 1


async def run(args, app_config: AppConfig = default_config) -> int:
    """Open a session and run the requested command."""
    try:
        client, identity, items, outfits = await open_session(app_config)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    if args.status:
        return await show_status(client, items.resolver, app_config)

    target = args.favorite or args.wear or args.delete_item
    if target:
        await items.fetch_items()
        if items.error:
            return 1
        if args.favorite:
            ok = await items.toggle_favorite(args.favorite)
        elif args.wear:
            ok = await items.increment_wear_count(args.wear)
        else:
            ok = await items.delete_item(args.delete_item)
        if not ok and items.get(target) is None:
            console.print("[yellow]Item not found[/yellow]")
        return 0 if ok else 1

    if args.add_item:
        return await add_item(items, identity, args)

    if args.wear_outfit or args.delete_outfit:
        await outfits.fetch_outfits()
        if args.wear_outfit:
            ok = await outfits.increment_wear_count(args.wear_outfit)
        else:
            ok = await outfits.delete_outfit(args.delete_outfit)
        return 0 if ok else 1

    if args.new_outfit or args.edit_outfit:
        return await save_outfit(outfits, args)

    if args.outfits:
        return await list_outfits(outfits)

    return await list_items(items, args)


def main():
    """Main entry point."""
    args = parse_args()

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        return 130
    except Exception as e:
        console.print(f"\n[bold red]Unexpected error: {e}[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
