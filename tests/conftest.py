"""
pytest configuration and shared fixtures for wardrobe catalog tests.

FakeSupabase mimics the parts of the async Supabase client the catalogs
use: table queries, the photo bucket and the auth session. Failures can
be injected per (table, action), per outfit member lookup, or per photo
path.
"""

import asyncio
import sys
from itertools import count
from pathlib import Path
from types import SimpleNamespace
from typing import Optional
from urllib.parse import quote

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import StorageConfig  # noqa: E402
from wardrobe.loaders import ItemCatalog, OutfitCatalog  # noqa: E402
from wardrobe.notifications import Notifier  # noqa: E402
from wardrobe.storage import AccessUrlResolver  # noqa: E402

BASE_URL = "https://demo.supabase.co"
BUCKET = "clothing-images"
USER_ID = "user-1"


def public_url(path: str, bucket: str = BUCKET) -> str:
    return f"{BASE_URL}/storage/v1/object/public/{bucket}/{quote(path)}"


class StoreError(Exception):
    """Stand-in for postgrest's APIError (carries .message)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =============================================================================
# TABLES
# =============================================================================


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.count_mode = None
        self.filters: list[tuple[str, str, object]] = []
        self.order_by: Optional[tuple[str, bool]] = None
        self.row_limit: Optional[int] = None

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.action, self.columns, self.count_mode = "select", columns, count
        return self

    def insert(self, rows):
        self.action, self.payload = "insert", rows
        return self

    def update(self, values: dict):
        self.action, self.payload = "update", values
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column: str, value):
        self.filters.append((column, "eq", value))
        return self

    def in_(self, column: str, values):
        self.filters.append((column, "in", list(values)))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, n: int):
        self.row_limit = n
        return self

    def _matches(self, row: dict) -> bool:
        for column, op, value in self.filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "in" and row.get(column) not in value:
                return False
        return True

    def _eq_value(self, column: str):
        return next((v for c, op, v in self.filters if c == column and op == "eq"), None)

    async def execute(self):
        self.db.calls.append((self.table, self.action, self.payload, list(self.filters)))

        failure = self.db.failures.get((self.table, self.action))
        if failure is not None:
            raise failure
        if (
            self.table == "outfit_items"
            and self.action == "select"
            and self._eq_value("outfit_id") in self.db.failing_outfits
        ):
            raise StoreError("permission denied for table outfit_items")

        response = self._apply()
        delays = self.db.delays.get((self.table, self.action))
        await asyncio.sleep(delays.pop(0) if delays else 0)

        # Reads also fail when the failure is injected while they are in flight
        failure = self.db.failures.get((self.table, self.action))
        if failure is not None and self.action == "select":
            raise failure
        return response

    def _apply(self):
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "select":
            matched = [dict(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                matched.sort(key=lambda r: r.get(column) or "", reverse=desc)
            total = len(matched) if self.count_mode else None
            if self.row_limit is not None:
                matched = matched[: self.row_limit]
            if self.columns.startswith("clothing_items("):
                matched = [{"clothing_items": self._embed(r)} for r in matched]
            return SimpleNamespace(data=matched, count=total)

        if self.action == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for row in new_rows:
                row = dict(row)
                row.setdefault("id", f"{self.table}-{next(self.db.ids)}")
                row.setdefault("created_at", "2026-10-01T00:00:00+00:00")
                rows.append(row)
                inserted.append(dict(row))
            return SimpleNamespace(data=inserted, count=None)

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return SimpleNamespace(data=updated, count=None)

        removed = [r for r in rows if self._matches(r)]
        self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
        self.db.cascade(self.table, {r["id"] for r in removed if "id" in r})
        return SimpleNamespace(data=removed, count=None)

    def _embed(self, join_row: dict) -> Optional[dict]:
        item = next(
            (i for i in self.db.tables.get("clothing_items", []) if i["id"] == join_row["item_id"]),
            None,
        )
        if item is None:
            return None
        inner = self.columns[len("clothing_items(") : -1]
        wanted = [c.strip() for c in inner.split(",")]
        return {c: item.get(c) for c in wanted}


# =============================================================================
# STORAGE
# =============================================================================


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def _signed(self, path: str) -> str:
        token = next(self.storage.tokens)
        return f"{BASE_URL}/storage/v1/object/sign/{self.name}/{quote(path)}?token=tok-{token}"

    async def create_signed_url(self, path: str, expires_in: int):
        storage = self.storage
        storage.sign_calls.append((path, expires_in))
        storage.in_flight += 1
        storage.max_in_flight = max(storage.max_in_flight, storage.in_flight)
        try:
            await asyncio.sleep(storage.sign_delays.get(path, 0))
            if storage.fail_all or path in storage.failing_paths:
                raise StoreError("Object not found")
            url = self._signed(path)
            return {"signedURL": url, "signedUrl": url}
        finally:
            storage.in_flight -= 1

    async def create_signed_urls(self, paths: list[str], expires_in: int):
        self.storage.batch_calls.append((list(paths), expires_in))
        if self.storage.fail_all:
            raise StoreError("Storage unavailable")
        entries = []
        for path in paths:
            if path in self.storage.failing_paths:
                entries.append({"path": path, "error": "Object not found", "signedURL": None})
            else:
                url = self._signed(path)
                entries.append({"path": path, "error": None, "signedURL": url, "signedUrl": url})
        return entries

    async def upload(self, path: str, data: bytes, file_options=None):
        if self.storage.fail_all:
            raise StoreError("Storage unavailable")
        self.storage.objects[path] = (data, file_options)
        return SimpleNamespace(path=path)

    async def get_public_url(self, path: str, options=None) -> str:
        return public_url(path, self.name)

    async def list(self, path=None, options=None):
        if self.storage.fail_all:
            raise StoreError("Bucket not found")
        limit = (options or {}).get("limit", 100)
        return [{"name": name} for name in list(self.storage.objects)[:limit]]


class FakeStorage:
    def __init__(self):
        self.objects: dict = {}
        self.failing_paths: set = set()
        self.fail_all = False
        self.sign_delays: dict = {}
        self.sign_calls: list = []
        self.batch_calls: list = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.tokens = count(1)

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


# =============================================================================
# AUTH / CLIENT
# =============================================================================


class FakeAuth:
    def __init__(self):
        self.user = SimpleNamespace(id=USER_ID, email="me@example.com")
        self.fail = False

    async def get_user(self, jwt=None):
        if self.fail:
            raise StoreError("Invalid JWT")
        return SimpleNamespace(user=self.user) if self.user else None

    async def sign_in_with_password(self, credentials: dict):
        if credentials.get("password") != "secret":
            raise StoreError("Invalid login credentials")
        return SimpleNamespace(user=self.user)


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {
            "clothing_items": [],
            "outfits": [],
            "outfit_items": [],
        }
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self.failures: dict = {}
        self.failing_outfits: set = set()
        self.delays: dict = {}
        self.calls: list = []
        self.ids = count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def cascade(self, table: str, ids: set) -> None:
        """ON DELETE CASCADE from outfits / clothing_items to outfit_items."""
        column = {"outfits": "outfit_id", "clothing_items": "item_id"}.get(table)
        if column and ids:
            self.tables["outfit_items"] = [
                r for r in self.tables["outfit_items"] if r[column] not in ids
            ]

    def writes(self, table: str) -> list:
        return [c for c in self.calls if c[0] == table and c[1] != "select"]


class StaticIdentity:
    def __init__(self, user_id: Optional[str] = USER_ID):
        self.user_id = user_id

    async def current_user_id(self) -> Optional[str]:
        return self.user_id


class RecordingNotifier(Notifier):
    def __init__(self):
        self.notifications = []

    def deliver(self, notification) -> None:
        self.notifications.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notifications]

    @property
    def errors(self) -> list:
        return [n for n in self.notifications if n.variant == "destructive"]


# =============================================================================
# ROW BUILDERS
# =============================================================================


def item_row(
    item_id: str,
    name: str,
    category: str = "tops",
    created_at: str = "2026-01-01T10:00:00+00:00",
    user_id: str = USER_ID,
    **extra,
) -> dict:
    row = {
        "id": item_id,
        "user_id": user_id,
        "name": name,
        "category": category,
        "season": ["spring"],
        "occasions": ["casual"],
        "style_tags": [],
        "wear_count": 0,
        "last_worn": None,
        "favorite": False,
        "front_image_url": None,
        "back_image_url": None,
        "created_at": created_at,
        "updated_at": created_at,
    }
    row.update(extra)
    return row


def outfit_row(
    outfit_id: str,
    name: str,
    created_at: str = "2026-01-01T10:00:00+00:00",
    user_id: str = USER_ID,
    **extra,
) -> dict:
    row = {
        "id": outfit_id,
        "user_id": user_id,
        "name": name,
        "occasion": None,
        "season": [],
        "notes": None,
        "rating": None,
        "times_worn": 0,
        "created_at": created_at,
    }
    row.update(extra)
    return row


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def resolver(db) -> AccessUrlResolver:
    return AccessUrlResolver(db, StorageConfig())


@pytest.fixture
def item_catalog(db, notifier, resolver) -> ItemCatalog:
    return ItemCatalog(db, StaticIdentity(), resolver=resolver, notifier=notifier)


@pytest.fixture
def outfit_catalog(db, notifier, resolver) -> OutfitCatalog:
    return OutfitCatalog(db, StaticIdentity(), resolver=resolver, notifier=notifier)
