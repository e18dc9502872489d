"""Filesystem-backed cache for scan jobs and security-assistant sessions."""

from .paths import CachePaths
from .store import ScanCache

__all__ = ["CachePaths", "ScanCache"]
