"""Configuration-related exceptions."""

from __future__ import annotations

from vulnzap.exceptions.base import VulnzapError


class ConfigError(VulnzapError, ValueError):
    """Raised when client configuration is invalid."""
