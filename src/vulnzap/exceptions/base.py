"""Root exception type."""

from __future__ import annotations


class VulnzapError(Exception):
    """Base class for all errors raised by the VulnZap client."""
