"""
Access-URL resolver for photos in Supabase Storage.

Photos live in a private bucket. Records only keep a reference (the public
or a previously signed URL), and every read mints a fresh, time-limited
signed URL from that reference.

Usage:
    resolver = AccessUrlResolver(client)

    path = extract_storage_path(item.front_image_url)
    url = await resolver.get_signed_url(path)

    # Reference in, displayable URL out (original kept on failure)
    url = await resolver.resolve(item.front_image_url)
"""

import asyncio
import inspect
import re
import time
import uuid
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx
from rich.console import Console

from config.settings import StorageConfig

console = Console()

DEFAULT_BUCKET = "clothing-images"


class ImageRejected(ValueError):
    """Raised when a file is not an acceptable photo upload."""


def extract_storage_path(
    url: Optional[str], bucket_name: str = DEFAULT_BUCKET
) -> Optional[str]:
    """
    Extract the object path from a public or signed storage URL.

    Args:
        url: Full storage URL, e.g.
            https://x.supabase.co/storage/v1/object/public/clothing-images/u1/a.jpg
        bucket_name: Bucket the path must belong to

    Returns:
        The path inside the bucket ("u1/a.jpg"), or None if the reference
        is not a URL into that bucket
    """
    if not isinstance(url, str) or not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    pattern = (
        r"/storage/v1/object/(?:public/|sign/)?" + re.escape(bucket_name) + r"/(.+)"
    )
    match = re.search(pattern, parsed.path)
    if not match:
        return None
    return unquote(match.group(1))


def _signed_url_from(entry) -> Optional[str]:
    """Pull the URL out of a create_signed_url(s) response entry."""
    if not isinstance(entry, dict) or entry.get("error"):
        return None
    return entry.get("signedUrl") or entry.get("signedURL")


class AccessUrlResolver:
    """
    Mints signed URLs for objects in one bucket.

    All sign requests share a semaphore so a large catalog fetch never has
    more than max_concurrency requests in flight.
    """

    def __init__(
        self,
        client,
        storage_config: Optional[StorageConfig] = None,
    ):
        self.client = client
        self.config = storage_config or StorageConfig()
        self.bucket_name = self.config.bucket_name
        self._limit = asyncio.Semaphore(self.config.max_concurrent_requests)

    def _bucket(self):
        return self.client.storage.from_(self.bucket_name)

    def extract_storage_path(self, url: Optional[str]) -> Optional[str]:
        return extract_storage_path(url, self.bucket_name)

    async def get_signed_url(
        self, path: str, ttl_seconds: Optional[int] = None
    ) -> Optional[str]:
        """
        Create a signed URL for a private object.

        Args:
            path: Path of the object inside the bucket
            ttl_seconds: Lifetime of the URL (default: 1 hour)

        Returns:
            The signed URL, or None on any error
        """
        ttl = ttl_seconds if ttl_seconds is not None else self.config.signed_url_ttl_seconds
        try:
            async with self._limit:
                data = await self._bucket().create_signed_url(path, ttl)
        except Exception as e:
            console.print(f"[yellow]Warning: could not sign {path}: {e}[/yellow]")
            return None

        signed = _signed_url_from(data)
        if signed is None:
            console.print(f"[yellow]Warning: no signed URL returned for {path}[/yellow]")
        return signed

    async def get_signed_urls(
        self, paths: list[str], ttl_seconds: Optional[int] = None
    ) -> list[Optional[str]]:
        """
        Create signed URLs for several objects in one request.

        Returns:
            One entry per input path, in input order. Failed entries are
            None; if the whole request fails every entry is None.
        """
        if not paths:
            return []

        ttl = ttl_seconds if ttl_seconds is not None else self.config.signed_url_ttl_seconds
        try:
            async with self._limit:
                data = await self._bucket().create_signed_urls(list(paths), ttl)
        except Exception as e:
            console.print(f"[yellow]Warning: batch signing failed: {e}[/yellow]")
            return [None] * len(paths)

        entries = list(data or [])[: len(paths)]
        urls = [_signed_url_from(entry) for entry in entries]
        return urls + [None] * (len(paths) - len(urls))

    async def resolve(self, reference: Optional[str]) -> Optional[str]:
        """Turn a stored photo reference into a displayable URL.

        Falls back to the reference itself when it cannot be signed.
        """
        if not reference:
            return reference
        path = self.extract_storage_path(reference)
        if not path:
            return reference
        signed = await self.get_signed_url(path)
        return signed or reference

    # =========================================================================
    # UPLOADS
    # =========================================================================

    def validate_image(
        self, filename: str, size: int, content_type: Optional[str]
    ) -> None:
        """Reject non-images and files over the upload limit."""
        if not content_type or not content_type.startswith("image/"):
            raise ImageRejected(f"{filename} is not an image")
        if size > self.config.max_upload_bytes:
            limit_mb = self.config.max_upload_bytes // (1024 * 1024)
            raise ImageRejected(f"{filename} is larger than {limit_mb}MB")

    @staticmethod
    def build_object_path(user_id: str, filename: str) -> str:
        """Object path for a new upload: <user_id>/<millis>-<random>.<ext>."""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
        stamp = int(time.time() * 1000)
        return f"{user_id}/{stamp}-{uuid.uuid4().hex[:10]}.{ext}"

    async def upload_image(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: Optional[str],
    ) -> Optional[str]:
        """
        Upload a photo and return its public URL reference.

        Args:
            user_id: Owner; uploads are grouped under a folder per user
            filename: Original file name (used for the extension)
            data: File contents
            content_type: MIME type of the file

        Returns:
            The object's public URL (stored on the record), or None on failure

        Raises:
            ImageRejected: If the file is not an image or is too large
        """
        self.validate_image(filename, len(data), content_type)
        path = self.build_object_path(user_id, filename)

        try:
            await self._bucket().upload(
                path,
                data,
                {
                    "content-type": content_type,
                    "cache-control": self.config.cache_control,
                    "upsert": "false",
                },
            )
            public_url = self._bucket().get_public_url(path)
            if inspect.isawaitable(public_url):
                # sync in older storage3 releases
                public_url = await public_url
        except Exception as e:
            console.print(f"[red]Upload failed for {filename}: {e}[/red]")
            return None

        console.print(f"[dim]  Uploaded: {path}[/dim]")
        return public_url

    async def upload_image_from_url(self, user_id: str, url: str) -> Optional[str]:
        """Download an image from the web and store it as a new photo."""
        try:
            async with httpx.AsyncClient(follow_redirects=True) as http_client:
                response = await http_client.get(url, timeout=30.0)
                response.raise_for_status()
        except httpx.HTTPError as e:
            console.print(f"[red]Could not download {url}: {e}[/red]")
            return None

        content_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        filename = f"image{self._get_extension(url, content_type)}"
        return await self.upload_image(user_id, filename, response.content, content_type)

    def _get_extension(self, url: str, content_type: str) -> str:
        """Get file extension from URL or content-type."""
        url_lower = urlparse(url).path.lower()
        if url_lower.endswith((".jpg", ".jpeg")):
            return ".jpg"
        elif url_lower.endswith(".png"):
            return ".png"
        elif url_lower.endswith(".webp"):
            return ".webp"
        elif url_lower.endswith(".gif"):
            return ".gif"

        if "png" in content_type:
            return ".png"
        elif "webp" in content_type:
            return ".webp"
        elif "gif" in content_type:
            return ".gif"

        return ".jpg"

    async def check_bucket(self) -> tuple[bool, str]:
        """Verify the bucket is reachable with the current credentials."""
        try:
            files = await self._bucket().list("", {"limit": 1})
        except Exception as e:
            return False, f"Storage error: {e}"
        return True, f"Bucket '{self.bucket_name}' accessible ({len(files or [])} files)"
