"""
Supabase client handle and identity provider.

The client is created once and passed into each catalog, so tests can
hand the catalogs an in-memory fake instead.
"""

from typing import Optional

from rich.console import Console
from supabase import AsyncClient, acreate_client

from config.settings import SupabaseConfig

console = Console()


async def create_supabase_client(
    settings: Optional[SupabaseConfig] = None,
) -> AsyncClient:
    """
    Create the async Supabase client.

    Args:
        settings: Project URL and key (defaults to SUPABASE_URL / SUPABASE_KEY)

    Raises:
        ValueError: If the credentials are missing
    """
    settings = settings or SupabaseConfig()
    if not settings.is_configured:
        raise ValueError(
            "Supabase credentials required. Set SUPABASE_URL and SUPABASE_KEY "
            "environment variables or pass them in SupabaseConfig."
        )
    return await acreate_client(settings.url, settings.key)


def describe_error(error: BaseException) -> str:
    """Human-readable message for a store error (postgrest errors carry .message)."""
    message = getattr(error, "message", None)
    return str(message) if message else (str(error) or error.__class__.__name__)


class SupabaseIdentity:
    """Current authenticated user, read from the client's auth session."""

    def __init__(self, client):
        self.client = client

    async def current_user_id(self) -> Optional[str]:
        """Return the signed-in user's id, or None when there is no session."""
        try:
            response = await self.client.auth.get_user()
        except Exception as e:
            console.print(f"[yellow]Warning: could not read session: {e}[/yellow]")
            return None
        user = getattr(response, "user", None)
        return user.id if user else None

    async def sign_in(self, email: str, password: str) -> Optional[str]:
        """Open a password session and return the user id."""
        try:
            response = await self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            console.print(f"[red]Sign-in failed: {describe_error(e)}[/red]")
            return None
        user = getattr(response, "user", None)
        return user.id if user else None
