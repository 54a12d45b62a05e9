"""
Connection check for the Supabase project: auth, database, storage.
"""

from dataclasses import dataclass, field
from typing import Optional

from config.settings import TableConfig
from wardrobe.loaders.supabase_client import describe_error
from wardrobe.storage.access_urls import AccessUrlResolver


@dataclass
class ComponentStatus:
    name: str
    connected: bool
    message: str


@dataclass
class ConnectionReport:
    """Result of check_connection, one entry per component in check order."""

    components: list[ComponentStatus] = field(default_factory=list)
    user_email: Optional[str] = None

    @property
    def ok(self) -> bool:
        return all(c.connected for c in self.components)

    def status(self, name: str) -> Optional[ComponentStatus]:
        return next((c for c in self.components if c.name == name), None)


async def check_connection(
    client,
    resolver: Optional[AccessUrlResolver] = None,
    tables: Optional[TableConfig] = None,
) -> ConnectionReport:
    """Run the auth, database and storage checks in order."""
    tables = tables or TableConfig()
    resolver = resolver or AccessUrlResolver(client)
    report = ConnectionReport()

    # Auth
    try:
        response = await client.auth.get_user()
        user = getattr(response, "user", None)
        if user:
            report.user_email = getattr(user, "email", None)
            report.components.append(
                ComponentStatus("auth", True, f"Authenticated as: {report.user_email}")
            )
        else:
            report.components.append(
                ComponentStatus("auth", False, "No authenticated user")
            )
    except Exception as e:
        report.components.append(
            ComponentStatus("auth", False, f"Auth error: {describe_error(e)}")
        )

    # Database
    try:
        result = await (
            client.table(tables.items).select("id", count="exact").limit(1).execute()
        )
        report.components.append(
            ComponentStatus(
                "database",
                True,
                f"Database connected. Found {result.count or 0} clothing items",
            )
        )
    except Exception as e:
        report.components.append(
            ComponentStatus("database", False, f"Database error: {describe_error(e)}")
        )

    # Storage
    connected, message = await resolver.check_bucket()
    report.components.append(ComponentStatus("storage", connected, message))

    return report
