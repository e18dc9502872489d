"""Configuration loading and validation for the VulnZap client.

This package facade re-exports the public names so callers can keep using
``from vulnzap.config import ...``.
"""

from __future__ import annotations

from vulnzap.config.loader import load_config
from vulnzap.config.model import ClientConfig

__all__ = ["ClientConfig", "load_config"]
