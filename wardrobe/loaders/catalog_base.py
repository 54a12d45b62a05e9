"""
Shared plumbing for the item and outfit catalogs.

A catalog owns one published tuple of records. Every mutation waits for
the remote write to succeed and then publishes a new tuple; nothing is
changed locally before the store confirms, so there is nothing to roll
back when a write fails.
"""

import asyncio
from typing import Optional

from rich.console import Console

from config.settings import TableConfig
from wardrobe.notifications import ConsoleNotifier, Notifier
from wardrobe.storage.access_urls import AccessUrlResolver

from .supabase_client import describe_error

console = Console()


class CatalogBase:
    """Client handle, identity, resolver, notifier and fetch bookkeeping."""

    def __init__(
        self,
        client,
        identity,
        resolver: Optional[AccessUrlResolver] = None,
        notifier: Optional[Notifier] = None,
        tables: Optional[TableConfig] = None,
    ):
        self.client = client
        self.identity = identity
        self.resolver = resolver or AccessUrlResolver(client)
        self.notifier = notifier or ConsoleNotifier()
        self.tables = tables or TableConfig()

        self.loading = False
        self.error: Optional[str] = None
        self._generation = 0

    def _begin_fetch(self) -> int:
        """Start a fetch; only the most recent one may publish."""
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        if generation != self._generation:
            console.print("[dim]Discarding results of a superseded fetch[/dim]")
            return False
        return True

    def _fetch_failed(self, generation: int, what: str, error: Exception) -> None:
        if not self._is_current(generation):
            return
        message = describe_error(error)
        console.print(f"[red]Error fetching {what}: {message}[/red]")
        self.error = message
        self.loading = False
        self.notifier.notify("Error", message, "destructive")

    def _operation_failed(self, context: str, error: Exception, description: str) -> bool:
        console.print(f"[red]{context}: {describe_error(error)}[/red]")
        self.notifier.notify("Error", description, "destructive")
        return False

    async def _with_signed_urls(self, record):
        """Copy of record with its photo references swapped for signed URLs."""
        front, back = await asyncio.gather(
            self.resolver.resolve(record.front_image_url),
            self.resolver.resolve(record.back_image_url),
        )
        changes = {}
        if front != record.front_image_url:
            changes["front_image_url"] = front
        if back != record.back_image_url:
            changes["back_image_url"] = back
        return record.model_copy(update=changes) if changes else record
