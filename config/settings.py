"""
Configuration settings for the wardrobe catalog sync.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file from project root
load_dotenv(Path(__file__).parent.parent / ".env")


@dataclass
class SupabaseConfig:
    """Credentials for the Supabase project."""

    url: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_URL"))
    key: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_KEY"))

    # Account used by the CLI to open a session
    email: Optional[str] = field(
        default_factory=lambda: os.getenv("WARDROBE_EMAIL")
    )
    password: Optional[str] = field(
        default_factory=lambda: os.getenv("WARDROBE_PASSWORD")
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)


@dataclass
class StorageConfig:
    """Configuration for the photo bucket."""

    bucket_name: str = "clothing-images"

    # Signed URLs expire, so every read mints a fresh one
    signed_url_ttl_seconds: int = 3600

    # Upper bound on simultaneous sign/member requests during a fetch
    max_concurrent_requests: int = 8

    # Upload limits
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    cache_control: str = "3600"


@dataclass
class TableConfig:
    """Remote table names."""

    items: str = "clothing_items"
    outfits: str = "outfits"
    outfit_items: str = "outfit_items"


@dataclass
class AppConfig:
    """Main configuration combining all settings."""

    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    tables: TableConfig = field(default_factory=TableConfig)


# Default configuration instance
config = AppConfig()
