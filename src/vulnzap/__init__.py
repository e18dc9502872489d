"""VulnZap scan client package."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Any

__all__ = ["VulnzapClient", "__version__"]

try:
    __version__ = version("vulnzap")
except PackageNotFoundError:
    __version__ = "0.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())


def __getattr__(name: str) -> Any:
    """Lazily expose the client so submodules can be imported without cycles."""
    if name == "VulnzapClient":
        from vulnzap.client.coordinator import VulnzapClient

        return VulnzapClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
