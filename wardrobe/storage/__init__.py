"""Photo storage helpers."""

from .access_urls import AccessUrlResolver, ImageRejected, extract_storage_path

__all__ = ["AccessUrlResolver", "ImageRejected", "extract_storage_path"]
