"""Cache persistence exceptions."""

from __future__ import annotations

from vulnzap.exceptions.base import VulnzapError


class CacheIOError(VulnzapError, OSError):
    """Raised when a cache file cannot be written."""
